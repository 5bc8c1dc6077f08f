"""
Seed the shared system categories (budget_id IS NULL) every household starts with.
Idempotent: categories already present by name are left alone.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from app.models.category import Category

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


# (name, color, icon): expenses first, then income
SYSTEM_CATEGORIES = [
    ("Housing", "#8B5CF6", "🏠"),
    ("Utilities", "#3B82F6", "⚡"),
    ("Groceries", "#10B981", "🛒"),
    ("Dining & Restaurants", "#F59E0B", "🍽️"),
    ("Transportation", "#EF4444", "🚗"),
    ("Healthcare", "#EC4899", "🏥"),
    ("Entertainment", "#6366F1", "🎬"),
    ("Shopping", "#8B5CF6", "🛍️"),
    ("Personal Care", "#14B8A6", "💆"),
    ("Education", "#F97316", "📚"),
    ("Subscriptions", "#A855F7", "📱"),
    ("Insurance", "#06B6D4", "🛡️"),
    ("Savings", "#22C55E", "💰"),
    ("Debt Payments", "#DC2626", "💳"),
    ("Gifts & Donations", "#F472B6", "🎁"),
    ("Miscellaneous", "#6B7280", "📦"),
    ("Salary", "#059669", "💵"),
    ("Freelance", "#0891B2", "💼"),
    ("Investments", "#7C3AED", "📈"),
    ("Other Income", "#84CC16", "💸"),
]


def seed_system_categories(session: "Session") -> int:
    """Insert missing system categories. Returns number of categories created."""
    existing = set(
        session.execute(
            select(Category.name).where(Category.budget_id.is_(None), Category.is_system.is_(True))
        ).scalars().all()
    )
    created = 0
    for name, color, icon in SYSTEM_CATEGORIES:
        if name in existing:
            continue
        session.add(Category(name=name, color=color, icon=icon, is_system=True))
        created += 1
    session.commit()
    return created
