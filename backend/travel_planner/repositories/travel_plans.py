"""
Travel plan and budget item repositories.

Every read and write is scoped to the owning user: a plan that exists but
belongs to someone else is reported exactly like a missing plan.
"""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select

from travel_planner.core.exceptions import NotFoundError
from travel_planner.models.travel_plan import BudgetItem, TravelPlan
from travel_planner.repositories.base import Row, TableRepository


class TravelPlanRepository(TableRepository):
    """Data access for the ``travel_plans`` table."""

    model = TravelPlan
    not_found_message = "Travel plan does not exist"

    async def list_for_user(self, user_id: str) -> List[Row]:
        """All plans of a user, newest first."""
        return await self.select({"user_id": user_id}, order_by="created_at", descending=True)

    async def get_owned(
        self,
        plan_id: str,
        user_id: str,
        columns: Optional[Iterable[str]] = None,
    ) -> Row:
        """
        Fetch a plan owned by ``user_id``.

        Raises:
            NotFoundError: If the plan is missing or owned by another user
        """
        return await self.select_one({"id": plan_id, "user_id": user_id}, columns=columns)

    async def create(self, user_id: str, values: Dict[str, Any]) -> Row:
        return await self.insert({**values, "user_id": user_id})

    async def update_owned(self, plan_id: str, user_id: str, values: Dict[str, Any]) -> Row:
        return await self.update({"id": plan_id, "user_id": user_id}, values)

    async def delete_owned(self, plan_id: str, user_id: str) -> None:
        removed = await self.delete({"id": plan_id, "user_id": user_id})
        if not removed:
            raise NotFoundError(self.not_found_message)

    async def status_rows_for_user(self, user_id: str) -> List[Row]:
        """Status and budget of each plan, for statistics."""
        return await self.select(
            {"user_id": user_id},
            columns=["status", "budget", "created_at"],
        )


class BudgetItemRepository(TableRepository):
    """Data access for the ``budget_items`` table."""

    model = BudgetItem
    not_found_message = "Budget item does not exist"

    async def list_for_plan(self, plan_id: str) -> List[Row]:
        """Items of a plan, most recent date first."""
        return await self.select({"plan_id": plan_id}, order_by="date", descending=True)

    async def amounts_for_plan(self, plan_id: str) -> List[Row]:
        return await self.select({"plan_id": plan_id}, columns=["category", "amount"])

    async def create(self, plan_id: str, values: Dict[str, Any]) -> Row:
        return await self.insert({**values, "plan_id": plan_id})

    async def get_owned(self, item_id: str, user_id: str) -> Row:
        """
        Fetch an item whose plan is owned by ``user_id``.

        Raises:
            NotFoundError: If the item is missing or its plan belongs to another user
        """
        stmt = (
            select(BudgetItem)
            .join(TravelPlan, BudgetItem.plan_id == TravelPlan.id)
            .where(BudgetItem.id == item_id, TravelPlan.user_id == user_id)
        )
        result = await self.session.execute(stmt)
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError(self.not_found_message)
        return item.to_dict()

    async def update_owned(self, item_id: str, user_id: str, values: Dict[str, Any]) -> Row:
        await self.get_owned(item_id, user_id)
        return await self.update({"id": item_id}, values)

    async def delete_owned(self, item_id: str, user_id: str) -> None:
        await self.get_owned(item_id, user_id)
        await self.delete({"id": item_id})
