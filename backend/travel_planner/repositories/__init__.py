"""
Repository layer for data access.

Repositories wrap the async SQLAlchemy session with select / insert /
update / delete operations and return rows as dictionaries.
"""

from travel_planner.repositories.base import TableRepository
from travel_planner.repositories.travel_plans import BudgetItemRepository, TravelPlanRepository
from travel_planner.repositories.users import UserRepository

__all__ = [
    "TableRepository",
    "UserRepository",
    "TravelPlanRepository",
    "BudgetItemRepository",
]
