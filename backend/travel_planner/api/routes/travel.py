"""
Travel plan endpoints.

CRUD for the caller's plans, AI itinerary generation and advice, destination
search through the map vendor, and per-user statistics. Every plan read or
write is scoped to the authenticated user.
"""

import logging
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Query, status

from travel_planner.api.dependencies import AIService, CurrentUser, DatabaseSession, MapServiceDep
from travel_planner.core.exceptions import (
    TravelPlannerError,
    ValidationFailedError,
    VendorError,
    VendorNotConfiguredError,
    VendorUnavailableError,
)
from travel_planner.models.travel_plan import PLAN_STATUSES
from travel_planner.repositories.travel_plans import TravelPlanRepository
from travel_planner.schemas.common import ApiResponse, ok
from travel_planner.schemas.travel import (
    AdviceRequest,
    AIGenerateRequest,
    TravelPlanCreate,
    TravelPlanUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/travel", tags=["travel"])


# Only the dates may be cleared; AI drafts store them as NULL
CLEARABLE_PLAN_FIELDS = ("start_date", "end_date")


def trip_days(start: date, end: date) -> int:
    """Inclusive day count of a trip."""
    return (end - start).days + 1


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _ai_failure(error: TravelPlannerError, not_configured: str, failed: str) -> TravelPlannerError:
    if isinstance(error, VendorNotConfiguredError):
        return TravelPlannerError(not_configured)
    return TravelPlannerError(f"{failed}: {error.message}")


@router.get("/plans", response_model=ApiResponse)
async def list_plans(current_user: CurrentUser, db: DatabaseSession) -> ApiResponse:
    plans = await TravelPlanRepository(db).list_for_user(current_user.id)
    return ok(plans, "Travel plans retrieved")


@router.get("/plans/{plan_id}", response_model=ApiResponse)
async def get_plan(plan_id: str, current_user: CurrentUser, db: DatabaseSession) -> ApiResponse:
    plan = await TravelPlanRepository(db).get_owned(plan_id, current_user.id)
    return ok(plan, "Travel plan retrieved")


@router.post("/plans", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(body: TravelPlanCreate, current_user: CurrentUser, db: DatabaseSession) -> ApiResponse:
    """
    Create a draft plan by hand.

    Raises:
        ValidationFailedError 400: If the end date is before the start date
    """
    days = trip_days(body.start_date, body.end_date)
    if days <= 0:
        raise ValidationFailedError("End date cannot be earlier than start date")

    plan = await TravelPlanRepository(db).create(current_user.id, {
        "title": body.title,
        "destination": body.destination,
        "start_date": body.start_date.isoformat(),
        "end_date": body.end_date.isoformat(),
        "days": days,
        "budget": body.budget,
        "travelers": body.travelers,
        "preferences": body.preferences,
        "notes": body.notes,
        "status": "draft",
    })
    logger.info("Travel plan created", extra={"user_id": current_user.id, "plan_id": plan["id"]})
    return ok(plan, "Travel plan created")


@router.post("/plans/ai-generate", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def generate_plan(
    body: AIGenerateRequest,
    current_user: CurrentUser,
    db: DatabaseSession,
    ai_service: AIService,
) -> ApiResponse:
    """
    Generate an itinerary with the LLM and store it as a plan.

    Returns:
        ``{plan, aiResponse, usage}`` where ``aiResponse`` is the parsed
        completion (plus ``rawContent`` when the model did not answer JSON)
    """
    try:
        result = await ai_service.generate_travel_plan(
            destination=body.destination,
            days=body.days,
            budget=body.budget,
            travelers=body.travelers,
            preferences=body.preferences,
            start_date=_iso(body.start_date),
            end_date=_iso(body.end_date),
        )
    except (VendorNotConfiguredError, VendorError, VendorUnavailableError) as e:
        logger.error("AI plan generation failed", extra={"user_id": current_user.id, "error": e.message})
        raise _ai_failure(
            e,
            "AI service is not configured, unable to generate a travel plan",
            "AI travel plan generation failed",
        ) from e

    ai_plan = result.data
    plan = await TravelPlanRepository(db).create(current_user.id, {
        "title": ai_plan.get("title") or f"{body.destination} {body.days}-day trip",
        "destination": body.destination,
        "start_date": _iso(body.start_date),
        "end_date": _iso(body.end_date),
        "days": body.days,
        "budget": body.budget,
        "travelers": body.travelers,
        "preferences": body.preferences,
        "itinerary": ai_plan.get("dailyItinerary") or [],
        "budget_breakdown": ai_plan.get("budgetBreakdown") or {},
        "travel_tips": ai_plan.get("travelTips") or [],
        "emergency_contacts": ai_plan.get("emergencyContacts") or [],
        "status": "generated",
        "ai_generated": True,
    })
    logger.info(
        "AI travel plan generated",
        extra={"user_id": current_user.id, "plan_id": plan["id"], "tokens": result.usage.get("total_tokens")},
    )

    ai_response: Dict[str, Any] = dict(ai_plan)
    if result.raw_content is not None:
        ai_response["rawContent"] = result.raw_content
    return ok({"plan": plan, "aiResponse": ai_response, "usage": result.usage}, "AI travel plan generated")


@router.put("/plans/{plan_id}", response_model=ApiResponse)
async def update_plan(
    plan_id: str,
    body: TravelPlanUpdate,
    current_user: CurrentUser,
    db: DatabaseSession,
) -> ApiResponse:
    """Update whitelisted plan fields; ``days`` follows the dates."""
    plans = TravelPlanRepository(db)
    existing = await plans.get_owned(plan_id, current_user.id, columns=["start_date", "end_date"])

    values = body.model_dump(exclude_unset=True)
    null_fields = [key for key, value in values.items() if value is None and key not in CLEARABLE_PLAN_FIELDS]
    if null_fields:
        raise ValidationFailedError(f"Fields cannot be null: {', '.join(null_fields)}")

    for key in ("start_date", "end_date"):
        if key in values:
            values[key] = _iso(values[key])

    if "start_date" in values or "end_date" in values:
        start = values.get("start_date", existing["start_date"])
        end = values.get("end_date", existing["end_date"])
        if start and end:
            days = trip_days(date.fromisoformat(start), date.fromisoformat(end))
            if days <= 0:
                raise ValidationFailedError("End date cannot be earlier than start date")
            values["days"] = days

    if not values:
        raise ValidationFailedError("No fields to update")

    plan = await plans.update_owned(plan_id, current_user.id, values)
    logger.info("Travel plan updated", extra={"user_id": current_user.id, "plan_id": plan_id})
    return ok(plan, "Travel plan updated")


@router.delete("/plans/{plan_id}", response_model=ApiResponse)
async def delete_plan(plan_id: str, current_user: CurrentUser, db: DatabaseSession) -> ApiResponse:
    await TravelPlanRepository(db).delete_owned(plan_id, current_user.id)
    logger.info("Travel plan deleted", extra={"user_id": current_user.id, "plan_id": plan_id})
    return ok(None, "Travel plan deleted")


@router.post("/advice", response_model=ApiResponse)
async def travel_advice(body: AdviceRequest, current_user: CurrentUser, ai_service: AIService) -> ApiResponse:
    try:
        result = await ai_service.get_travel_advice(body.destination, body.preferences, body.questions)
    except (VendorNotConfiguredError, VendorError, VendorUnavailableError) as e:
        raise _ai_failure(
            e,
            "AI service is not configured, unable to provide travel advice",
            "Failed to get travel advice",
        ) from e

    advice: Dict[str, Any] = dict(result.data)
    if result.raw_content is not None:
        advice["rawContent"] = result.raw_content
    return ok({"advice": advice, "usage": result.usage}, "Travel advice retrieved")


@router.get("/search-destination", response_model=ApiResponse)
async def search_destination(
    current_user: CurrentUser,
    map_service: MapServiceDep,
    keyword: str = Query(default=""),
    city: str = Query(default=""),
) -> ApiResponse:
    """
    Search destinations through the map vendor's POI search.

    Vendor failures are reported as 400 with the vendor's message.
    """
    if not keyword.strip():
        raise ValidationFailedError("Please provide a search keyword")

    try:
        result = await map_service.search_poi(keyword.strip(), city, page=1, page_size=10)
    except (VendorNotConfiguredError, VendorError, VendorUnavailableError) as e:
        raise ValidationFailedError(e.message) from e
    return ok(result, "Destination search completed")


@router.get("/stats", response_model=ApiResponse)
async def plan_stats(current_user: CurrentUser, db: DatabaseSession) -> ApiResponse:
    rows = await TravelPlanRepository(db).status_rows_for_user(current_user.id)
    by_status = {plan_status: 0 for plan_status in PLAN_STATUSES}
    for row in rows:
        if row["status"] in by_status:
            by_status[row["status"]] += 1

    return ok({
        "totalPlans": len(rows),
        "completedPlans": by_status["completed"],
        "totalBudget": sum(row["budget"] or 0 for row in rows),
        "plansByStatus": by_status,
    }, "Travel plan statistics retrieved")
