from contextlib import asynccontextmanager
import logging
import time
import uuid

from fastapi import FastAPI
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.accounts import router as accounts_router
from app.api.budgets import router as budgets_router
from app.api.categories import router as categories_router
from app.api.income import router as income_router
from app.api.invitations import router as invitations_router
from app.api.spending import router as spending_router
from app.api.transactions import router as transactions_router
from app.api.users import router as users_router
from app.core.config import settings
from app.core.auth import parse_bearer_header
from app.db.base import Base
from app.db.seed import seed_system_categories
from app.db.session import engine, SessionLocal
import app.models  # noqa: F401 - register models with Base.metadata

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s %(message)s",
)
logger = logging.getLogger("app")
request_logger = logging.getLogger("app.request")


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        created = seed_system_categories(db)
        if created:
            logger.info("system_categories_seeded count=%s", created)
    finally:
        db.close()
    yield


app = FastAPI(
    title="Folda Finances API",
    description="Household budgeting: accounts, transactions, category budgets and what is left to spend",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.app_cors_origins.split(",") if settings.app_cors_origins else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

PROTECTED_API_PREFIX = "/api"


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    in_body = any(e.get("loc") and e["loc"][0] == "body" for e in errors)
    details = [{"loc": [str(p) for p in e.get("loc", ())], "msg": e.get("msg", "")} for e in errors]
    return JSONResponse(
        status_code=400,
        content={"error": "invalid request body" if in_body else "invalid query parameters", "details": details},
    )


@app.middleware("http")
async def request_logging_middleware(request, call_next):
    req_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        request_logger.exception(
            "request_failed id=%s method=%s path=%s ms=%s",
            req_id,
            request.method,
            request.url.path,
            elapsed_ms,
        )
        raise
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    response.headers["x-request-id"] = req_id
    request_logger.info(
        "request_done id=%s method=%s path=%s status=%s ms=%s",
        req_id,
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.middleware("http")
async def auth_middleware(request: Request, call_next):
    path = request.url.path
    # preflight requests carry no credentials
    if request.method == "OPTIONS" or not path.startswith(PROTECTED_API_PREFIX):
        return await call_next(request)

    user, error = parse_bearer_header(request.headers.get("authorization"))
    if not user:
        return JSONResponse(status_code=401, content={"error": error})
    request.state.user = user
    return await call_next(request)


app.include_router(users_router)
app.include_router(spending_router)
app.include_router(categories_router)
app.include_router(accounts_router)
app.include_router(transactions_router)
app.include_router(budgets_router)
app.include_router(income_router)
app.include_router(invitations_router)


@app.get("/health", include_in_schema=False)
def health():
    return {"status": "healthy"}
