"""
Travel AI Service

Builds prompts for the travel planning tasks, sends them through an
``ILLMClient`` and parses the JSON-shaped completions.

Key features:
- Itinerary generation, budget analysis and destination advice
- Tolerant parsing: Markdown code fences and surrounding prose are stripped
- Fallback structures (plus the raw completion) when the model ignores the
  requested JSON format, so callers always receive the documented shape
"""

import json
import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from travel_planner.core.exceptions import TravelPlannerError
from travel_planner.prompts.travel import (
    ADVICE_SYSTEM_PROMPT,
    BUDGET_SYSTEM_PROMPT,
    PLAN_SYSTEM_PROMPT,
    STATUS_CHECK_MESSAGES,
    build_advice_prompt,
    build_budget_prompt,
    build_plan_prompt,
)
from travel_planner.services.interfaces.llm_client import ILLMClient
from travel_planner.services.llm_client import create_llm_client

logger = logging.getLogger(__name__)

PLAN_TEMPERATURE = 0.7
PLAN_MAX_TOKENS = 3000
BUDGET_TEMPERATURE = 0.5
BUDGET_MAX_TOKENS = 1500
ADVICE_TEMPERATURE = 0.7
ADVICE_MAX_TOKENS = 2000

SUMMARY_PREVIEW_CHARS = 200

_CODE_FENCE = re.compile(r"^```(?:json)?\s*([\s\S]*?)\s*```$", re.IGNORECASE)


@dataclass
class AIResult:
    """Parsed completion with token usage; ``raw_content`` is set when parsing fell back."""

    data: Dict[str, Any]
    usage: Dict[str, Any] = field(default_factory=dict)
    raw_content: Optional[str] = None


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence (```json ... ```) if present."""
    stripped = text.strip()
    match = _CODE_FENCE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Extract a JSON object from LLM response text.

    Handles fenced responses and responses with text before/after the JSON.
    """
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
        if isinstance(data, dict):
            return data
    except json.JSONDecodeError:
        pass

    # Outermost balanced { } in the text
    depth = 0
    start_idx = None
    for i, char in enumerate(cleaned):
        if char == "{":
            if depth == 0:
                start_idx = i
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0 and start_idx is not None:
                try:
                    data = json.loads(cleaned[start_idx:i + 1])
                except json.JSONDecodeError:
                    start_idx = None
                    continue
                if isinstance(data, dict):
                    return data

    return None


class TravelAIService:
    """
    LLM-backed travel planning assistant.

    The underlying client raises ``VendorNotConfiguredError``, ``VendorError``
    or ``VendorUnavailableError``; this service lets them propagate so the
    route layer can pick the response message.
    """

    def __init__(self, client: Optional[ILLMClient] = None):
        self.client = client or create_llm_client()

    @property
    def model(self) -> str:
        return self.client.model

    def validate_config(self) -> None:
        self.client.validate_config()

    async def _complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float,
        max_tokens: int,
        task: str,
    ):
        correlation_id = str(uuid.uuid4())
        logger.info(
            "Sending travel AI request",
            extra={"task": task, "vendor": self.client.vendor, "correlation_id": correlation_id},
        )
        return await self.client.complete(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
            correlation_id=correlation_id,
        )

    async def generate_travel_plan(
        self,
        destination: str,
        days: int,
        budget: float,
        travelers: int,
        preferences: Optional[List[str]] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> AIResult:
        """
        Generate an itinerary.

        Returns:
            AIResult whose data has title, summary, dailyItinerary,
            budgetBreakdown, travelTips and emergencyContacts
        """
        preferences = preferences or []
        result = await self._complete(
            PLAN_SYSTEM_PROMPT,
            build_plan_prompt(destination, days, budget, travelers, preferences, start_date, end_date),
            PLAN_TEMPERATURE,
            PLAN_MAX_TOKENS,
            task="travel_plan",
        )

        plan = extract_json_object(result.content)
        if plan is not None:
            return AIResult(data=plan, usage=result.usage)

        logger.warning(
            "Travel plan response was not valid JSON, using fallback",
            extra={"response_preview": result.content[:300]},
        )
        summary = result.content[:SUMMARY_PREVIEW_CHARS]
        if len(result.content) > SUMMARY_PREVIEW_CHARS:
            summary += "..."
        fallback = {
            "title": f"{destination} {days}-day trip",
            "summary": summary,
            "dailyItinerary": [],
            "budgetBreakdown": {},
            "travelTips": [],
            "emergencyContacts": [],
        }
        return AIResult(data=fallback, usage=result.usage, raw_content=result.content)

    async def analyze_budget(
        self,
        total_spent: float,
        by_category: Dict[str, Any],
        total_budget: float,
        remaining_days: int,
    ) -> AIResult:
        """Analyse spending against the plan budget."""
        result = await self._complete(
            BUDGET_SYSTEM_PROMPT,
            build_budget_prompt(total_budget, total_spent, by_category, remaining_days),
            BUDGET_TEMPERATURE,
            BUDGET_MAX_TOKENS,
            task="budget_analysis",
        )

        analysis = extract_json_object(result.content)
        if analysis is not None:
            return AIResult(data=analysis, usage=result.usage)

        logger.warning(
            "Budget analysis response was not valid JSON, using fallback",
            extra={"response_preview": result.content[:300]},
        )
        utilization = total_spent / total_budget if total_budget else 0
        fallback = {
            "analysis": result.content,
            "currentStatus": {
                "totalSpent": total_spent,
                "remainingBudget": total_budget - total_spent,
                "budgetUtilization": utilization,
            },
            "categoryAnalysis": [],
            "recommendations": [],
            "forecast": {},
        }
        return AIResult(data=fallback, usage=result.usage, raw_content=result.content)

    async def get_travel_advice(
        self,
        destination: str,
        preferences: Optional[List[str]] = None,
        questions: Optional[List[str]] = None,
    ) -> AIResult:
        preferences = preferences or []
        questions = questions or []
        result = await self._complete(
            ADVICE_SYSTEM_PROMPT,
            build_advice_prompt(destination, preferences, questions),
            ADVICE_TEMPERATURE,
            ADVICE_MAX_TOKENS,
            task="travel_advice",
        )

        advice = extract_json_object(result.content)
        if advice is not None:
            return AIResult(data=advice, usage=result.usage)

        logger.warning(
            "Travel advice response was not valid JSON, using fallback",
            extra={"response_preview": result.content[:300]},
        )
        fallback = {
            "destinationInfo": {},
            "recommendations": {},
            "answers": [{"question": question, "answer": ""} for question in questions],
            "travelTips": [],
        }
        return AIResult(data=fallback, usage=result.usage, raw_content=result.content)

    async def check_status(self) -> Dict[str, Any]:
        """
        Probe the LLM with a tiny request.

        Never raises; failures are reported in the returned dict.
        """
        try:
            self.client.validate_config()
            await self.client.complete(STATUS_CHECK_MESSAGES, temperature=0.1, max_tokens=10)
        except TravelPlannerError as e:
            return {
                "success": False,
                "service": self.client.vendor,
                "status": "unavailable",
                "model": self.client.model,
                "error": e.message,
            }
        return {
            "success": True,
            "service": self.client.vendor,
            "status": "available",
            "model": self.client.model,
            "error": None,
        }
