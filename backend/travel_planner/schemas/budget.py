"""
Pydantic schemas for budget item endpoints.
"""

import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from travel_planner.models.travel_plan import BUDGET_CATEGORIES


def _check_category(v: str) -> str:
    if v not in BUDGET_CATEGORIES:
        raise ValueError(f"Category must be one of: {', '.join(BUDGET_CATEGORIES)}")
    return v


def _check_amount(v: float) -> float:
    if v <= 0:
        raise ValueError("Amount must be a number greater than 0")
    return v


class BudgetItemCreate(BaseModel):
    """
    Request body for recording an expense.

    Attributes:
        category: One of the six budget categories
        description: What the money was spent on
        amount: Positive amount (numeric strings are accepted)
        date: Day of the expense
        notes: Optional notes
    """
    category: str = Field(examples=["food"])
    description: str
    amount: float
    date: datetime.date
    notes: str = ""

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        return _check_category(v)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: float) -> float:
        return _check_amount(v)

    @field_validator("description")
    @classmethod
    def require_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please provide category, description, amount and date")
        return v


class BudgetItemUpdate(BaseModel):
    category: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[float] = None
    date: Optional[datetime.date] = None
    notes: Optional[str] = None

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _check_category(v)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Optional[float]) -> Optional[float]:
        return v if v is None else _check_amount(v)
