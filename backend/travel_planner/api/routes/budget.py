"""
Budget item endpoints.

Expenses recorded against a plan, with spending summaries, per-category
statistics, LLM budget analysis and CSV export. Every route first checks that
the plan (or the item's plan) belongs to the caller.
"""

import csv
import io
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from fastapi import APIRouter, Response, status

from travel_planner.api.dependencies import AIService, CurrentUser, DatabaseSession
from travel_planner.core.exceptions import (
    TravelPlannerError,
    ValidationFailedError,
    VendorError,
    VendorNotConfiguredError,
    VendorUnavailableError,
)
from travel_planner.models.travel_plan import BUDGET_CATEGORIES
from travel_planner.repositories.travel_plans import BudgetItemRepository, TravelPlanRepository
from travel_planner.schemas.budget import BudgetItemCreate, BudgetItemUpdate
from travel_planner.schemas.common import ApiResponse, ok

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/budget", tags=["budget"])

CSV_HEADER = ["Category", "Description", "Amount", "Date", "Notes"]
SECONDS_PER_DAY = 24 * 60 * 60


def remaining_days(end_date: Optional[str], now: Optional[datetime] = None) -> int:
    """Whole days (rounded up) until midnight UTC of ``end_date``; 0 when past or unknown."""
    if not end_date:
        return 0
    end = datetime.fromisoformat(end_date).replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return max(0, math.ceil((end - now).total_seconds() / SECONDS_PER_DAY))


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves up (12.5 -> 13)."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def spending_by_category(items: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Spent amount and item count for each category present in ``items``."""
    by_category: Dict[str, Dict[str, Any]] = {}
    for item in items:
        entry = by_category.setdefault(item["category"], {"spent": 0, "count": 0})
        entry["spent"] += item["amount"]
        entry["count"] += 1
    return by_category


def build_summary(budget: float, items: List[Dict[str, Any]], days_left: int) -> Dict[str, Any]:
    total_spent = sum(item["amount"] for item in items)
    remaining = max(0, budget - total_spent)
    utilization = (total_spent / budget) * 100 if budget > 0 else 0
    return {
        "totalBudget": budget,
        "totalSpent": total_spent,
        "remainingBudget": remaining,
        "budgetUtilization": round_half_up(utilization, 2),
        "byCategory": spending_by_category(items),
        "remainingDays": days_left,
        "dailyBudget": remaining / days_left if days_left > 0 else 0,
    }


def build_category_stats(items: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """All six categories with spent, count and integer share of total spending."""
    categories = {name: {"spent": 0, "count": 0} for name in BUDGET_CATEGORIES}
    for item in items:
        if item["category"] in categories:
            categories[item["category"]]["spent"] += item["amount"]
            categories[item["category"]]["count"] += 1

    total_spent = sum(entry["spent"] for entry in categories.values())
    for entry in categories.values():
        entry["percentage"] = int(round_half_up(entry["spent"] / total_spent * 100)) if total_spent > 0 else 0
    return categories


def render_csv(items: Iterable[Dict[str, Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for item in items:
        writer.writerow([
            item["category"],
            item["description"],
            item["amount"],
            item["date"],
            item.get("notes") or "",
        ])
    return buffer.getvalue()


def _item_values(values: Dict[str, Any]) -> Dict[str, Any]:
    if values.get("date") is not None:
        values["date"] = values["date"].isoformat()
    return values


@router.get("/plans/{plan_id}/items", response_model=ApiResponse)
async def list_items(plan_id: str, current_user: CurrentUser, db: DatabaseSession) -> ApiResponse:
    await TravelPlanRepository(db).get_owned(plan_id, current_user.id, columns=["id"])
    items = await BudgetItemRepository(db).list_for_plan(plan_id)
    return ok(items, "Budget items retrieved")


@router.post("/plans/{plan_id}/items", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    plan_id: str,
    body: BudgetItemCreate,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> ApiResponse:
    await TravelPlanRepository(db).get_owned(plan_id, current_user.id, columns=["id"])
    item = await BudgetItemRepository(db).create(plan_id, _item_values(body.model_dump()))
    logger.info(
        "Budget item added",
        extra={"user_id": current_user.id, "plan_id": plan_id, "category": item["category"]},
    )
    return ok(item, "Budget item added")


@router.put("/items/{item_id}", response_model=ApiResponse)
async def update_item(
    item_id: str,
    body: BudgetItemUpdate,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> ApiResponse:
    values = _item_values(body.model_dump(exclude_unset=True))
    if not values:
        raise ValidationFailedError("No fields to update")
    if any(values.get(key) is None for key in ("category", "description", "amount", "date") if key in values):
        raise ValidationFailedError("Category, description, amount and date cannot be empty")
    if "notes" in values and values["notes"] is None:
        values["notes"] = ""

    item = await BudgetItemRepository(db).update_owned(item_id, current_user.id, values)
    return ok(item, "Budget item updated")


@router.delete("/items/{item_id}", response_model=ApiResponse)
async def delete_item(item_id: str, current_user: CurrentUser, db: DatabaseSession) -> ApiResponse:
    await BudgetItemRepository(db).delete_owned(item_id, current_user.id)
    return ok(None, "Budget item deleted")


@router.get("/plans/{plan_id}/summary", response_model=ApiResponse)
async def budget_summary(plan_id: str, current_user: CurrentUser, db: DatabaseSession) -> ApiResponse:
    plan = await TravelPlanRepository(db).get_owned(plan_id, current_user.id, columns=["id", "budget", "end_date"])
    items = await BudgetItemRepository(db).amounts_for_plan(plan_id)
    summary = build_summary(plan["budget"] or 0, items, remaining_days(plan["end_date"]))
    return ok(summary, "Budget summary retrieved")


@router.post("/plans/{plan_id}/analyze", response_model=ApiResponse)
async def analyze_budget(
    plan_id: str,
    current_user: CurrentUser,
    db: DatabaseSession,
    ai_service: AIService,
) -> ApiResponse:
    """LLM analysis of the plan's spending against its budget."""
    plan = await TravelPlanRepository(db).get_owned(plan_id, current_user.id, columns=["id", "budget", "end_date"])
    items = await BudgetItemRepository(db).amounts_for_plan(plan_id)

    by_category: Dict[str, float] = {}
    for item in items:
        by_category[item["category"]] = by_category.get(item["category"], 0) + item["amount"]

    try:
        result = await ai_service.analyze_budget(
            total_spent=sum(item["amount"] for item in items),
            by_category=by_category,
            total_budget=plan["budget"] or 0,
            remaining_days=remaining_days(plan["end_date"]),
        )
    except VendorNotConfiguredError as e:
        raise TravelPlannerError("AI service is not configured, unable to analyse the budget") from e
    except (VendorError, VendorUnavailableError) as e:
        logger.error("AI budget analysis failed", extra={"plan_id": plan_id, "error": e.message})
        raise TravelPlannerError(f"AI budget analysis failed: {e.message}") from e

    analysis: Dict[str, Any] = dict(result.data)
    if result.raw_content is not None:
        analysis["rawContent"] = result.raw_content
    return ok({"analysis": analysis, "usage": result.usage}, "Budget analysis completed")


@router.get("/plans/{plan_id}/categories", response_model=ApiResponse)
async def category_stats(plan_id: str, current_user: CurrentUser, db: DatabaseSession) -> ApiResponse:
    await TravelPlanRepository(db).get_owned(plan_id, current_user.id, columns=["id"])
    items = await BudgetItemRepository(db).amounts_for_plan(plan_id)
    return ok(build_category_stats(items), "Budget category statistics retrieved")


@router.get("/plans/{plan_id}/export")
async def export_items(plan_id: str, current_user: CurrentUser, db: DatabaseSession) -> Response:
    """Download the plan's items as ``budget-{plan_id}.csv``."""
    await TravelPlanRepository(db).get_owned(plan_id, current_user.id, columns=["id"])
    items = await BudgetItemRepository(db).list_for_plan(plan_id)
    return Response(
        content=render_csv(items),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="budget-{plan_id}.csv"'},
    )
