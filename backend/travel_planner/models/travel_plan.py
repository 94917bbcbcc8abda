"""
Travel plan and budget item models.

A travel plan belongs to exactly one user; budget items belong to exactly
one plan and are removed with it.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from travel_planner.models.base import Base, ModelMixin, TimestampMixin, UUIDMixin

PLAN_STATUSES = ("draft", "generated", "active", "completed")

BUDGET_CATEGORIES = (
    "transportation",
    "accommodation",
    "food",
    "activities",
    "shopping",
    "other",
)


class TravelPlan(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    A trip created from the form or drafted by the LLM.

    Attributes:
        user_id: Owning user
        title, destination, notes: Free text
        start_date, end_date: ISO dates (YYYY-MM-DD), optional for AI drafts
        days: Inclusive trip length
        budget: Total budget
        travelers: Number of travelers
        preferences: List of preference tags
        status: draft | generated | active | completed
        itinerary, budget_breakdown, travel_tips, emergency_contacts:
            Structured content returned by the LLM
        ai_generated: Whether the plan was drafted by the LLM
    """

    __tablename__ = "travel_plans"

    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    destination = Column(String(255), nullable=False)
    start_date = Column(String(10), nullable=True)
    end_date = Column(String(10), nullable=True)
    days = Column(Integer, nullable=False)
    budget = Column(Float, nullable=False)
    travelers = Column(Integer, nullable=False)
    preferences = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=False, default="")
    status = Column(String(32), nullable=False, default="draft")
    itinerary = Column(JSON, nullable=False, default=list)
    budget_breakdown = Column(JSON, nullable=False, default=dict)
    travel_tips = Column(JSON, nullable=False, default=list)
    emergency_contacts = Column(JSON, nullable=False, default=list)
    ai_generated = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="travel_plans")
    budget_items = relationship(
        "BudgetItem",
        back_populates="plan",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_travel_plans_user_created", "user_id", "created_at"),
    )


class BudgetItem(Base, UUIDMixin, TimestampMixin, ModelMixin):
    """
    A single expense recorded against a travel plan.
    """

    __tablename__ = "budget_items"

    plan_id = Column(
        String(36),
        ForeignKey("travel_plans.id", ondelete="CASCADE"),
        nullable=False,
    )
    category = Column(String(32), nullable=False)
    description = Column(String(500), nullable=False)
    amount = Column(Float, nullable=False)
    date = Column(String(10), nullable=False)
    notes = Column(Text, nullable=False, default="")

    plan = relationship("TravelPlan", back_populates="budget_items")

    __table_args__ = (
        Index("idx_budget_items_plan_date", "plan_id", "date"),
    )
