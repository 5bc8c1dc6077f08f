from app.models.account import Account, AccountType
from app.models.budget import Budget
from app.models.category import Category
from app.models.category_budget import CategoryBudget, CategoryBudgetSplit
from app.models.income import ExpectedIncome
from app.models.invitation import BudgetInvitation
from app.models.transaction import Transaction
from app.models.user import User

__all__ = [
    "Account",
    "AccountType",
    "Budget",
    "BudgetInvitation",
    "Category",
    "CategoryBudget",
    "CategoryBudgetSplit",
    "ExpectedIncome",
    "Transaction",
    "User",
]
