from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class InvitationCreate(BaseModel):
    invitee_email: str = ""
    invited_role: str = ""


class InvitationRead(BaseModel):
    id: UUID
    budget_id: UUID
    inviter_id: UUID
    invitee_email: str
    invited_role: str
    token: str
    status: str
    expires_at: datetime
    created_at: datetime
    accepted_at: datetime | None = None

    model_config = {"from_attributes": True}
