"""
SQLAlchemy ORM models for the AI travel planner.

This module exports all database models and the declarative base.
Import models from this module to ensure they're registered with SQLAlchemy.
"""

from travel_planner.models.base import Base, ModelMixin, TimestampMixin, UUIDMixin
from travel_planner.models.travel_plan import (
    BUDGET_CATEGORIES,
    PLAN_STATUSES,
    BudgetItem,
    TravelPlan,
)
from travel_planner.models.user import User, default_preferences

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "ModelMixin",
    # Models
    "User",
    "TravelPlan",
    "BudgetItem",
    # Domain constants
    "BUDGET_CATEGORIES",
    "PLAN_STATUSES",
    "default_preferences",
]
