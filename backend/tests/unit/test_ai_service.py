"""
Tests for the travel AI service: prompting and tolerant JSON parsing.
"""

import json

import pytest

from travel_planner.core.exceptions import VendorError, VendorNotConfiguredError
from travel_planner.prompts.travel import ADVICE_SYSTEM_PROMPT, BUDGET_SYSTEM_PROMPT, PLAN_SYSTEM_PROMPT
from travel_planner.services.ai_service import (
    SUMMARY_PREVIEW_CHARS,
    TravelAIService,
    extract_json_object,
    strip_code_fences,
)

PLAN = {
    "title": "Three days in Kyoto",
    "summary": "Temples and food",
    "dailyItinerary": [{"day": 1, "theme": "Temples", "activities": []}],
    "budgetBreakdown": {"total": 5000},
    "travelTips": ["Buy a bus pass"],
    "emergencyContacts": ["110"],
}


class TestJsonExtraction:

    def test_strip_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strip_plain_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_unfenced_text_untouched(self):
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'

    def test_extract_from_surrounding_prose(self):
        text = 'Here is your plan:\n{"title": "Trip", "nested": {"k": [1, 2]}}\nEnjoy!'
        assert extract_json_object(text) == {"title": "Trip", "nested": {"k": [1, 2]}}

    def test_extract_skips_invalid_brace_groups(self):
        text = 'Note {not json} then {"ok": true}'
        assert extract_json_object(text) == {"ok": True}

    def test_extract_returns_none_for_prose(self):
        assert extract_json_object("Sorry, I cannot help with that.") is None

    def test_top_level_array_is_not_an_object(self):
        assert extract_json_object("[1, 2, 3]") is None


class TestGenerateTravelPlan:

    async def test_parses_json_plan(self, fake_llm):
        llm = fake_llm([json.dumps(PLAN)])
        service = TravelAIService(client=llm)

        result = await service.generate_travel_plan("Kyoto", 3, 5000, 2, ["food"], "2030-03-01", "2030-03-03")

        assert result.data == PLAN
        assert result.raw_content is None
        assert result.usage == {"total_tokens": 42}

        call = llm.calls[0]
        assert call["temperature"] == 0.7
        assert call["max_tokens"] == 3000
        assert call["messages"][0] == {"role": "system", "content": PLAN_SYSTEM_PROMPT}
        user_prompt = call["messages"][1]["content"]
        assert "Destination: Kyoto" in user_prompt
        assert "Duration: 3 days" in user_prompt
        assert "Dates: 2030-03-01 to 2030-03-03" in user_prompt

    async def test_parses_fenced_plan(self, fake_llm):
        service = TravelAIService(client=fake_llm([f"```json\n{json.dumps(PLAN)}\n```"]))

        result = await service.generate_travel_plan("Kyoto", 3, 5000, 2)

        assert result.data["title"] == "Three days in Kyoto"

    async def test_fallback_when_not_json(self, fake_llm):
        prose = "Kyoto is lovely in spring. " * 20
        service = TravelAIService(client=fake_llm([prose]))

        result = await service.generate_travel_plan("Kyoto", 3, 5000, 2)

        assert result.data["title"] == "Kyoto 3-day trip"
        assert result.data["summary"] == prose[:SUMMARY_PREVIEW_CHARS] + "..."
        assert result.data["dailyItinerary"] == []
        assert result.data["budgetBreakdown"] == {}
        assert result.raw_content == prose

    async def test_short_fallback_summary_not_truncated(self, fake_llm):
        service = TravelAIService(client=fake_llm(["Enjoy Kyoto."]))

        result = await service.generate_travel_plan("Kyoto", 1, 500, 1)

        assert result.data["summary"] == "Enjoy Kyoto."

    async def test_vendor_errors_propagate(self, fake_llm):
        service = TravelAIService(client=fake_llm(error=VendorError("Fake LLM", "API error: quota")))

        with pytest.raises(VendorError):
            await service.generate_travel_plan("Kyoto", 3, 5000, 2)


class TestAnalyzeBudget:

    async def test_parses_analysis(self, fake_llm):
        analysis = {"analysis": "On track", "recommendations": []}
        llm = fake_llm([json.dumps(analysis)])

        result = await TravelAIService(client=llm).analyze_budget(400, {"food": 400}, 1000, 3)

        assert result.data == analysis
        call = llm.calls[0]
        assert call["messages"][0]["content"] == BUDGET_SYSTEM_PROMPT
        assert call["temperature"] == 0.5
        assert call["max_tokens"] == 1500
        assert "Remaining travel days: 3" in call["messages"][1]["content"]

    async def test_fallback_reports_current_status(self, fake_llm):
        result = await TravelAIService(client=fake_llm(["Spend less on taxis."])).analyze_budget(
            250, {"transportation": 250}, 1000, 2,
        )

        assert result.data["analysis"] == "Spend less on taxis."
        assert result.data["currentStatus"] == {
            "totalSpent": 250,
            "remainingBudget": 750,
            "budgetUtilization": 0.25,
        }
        assert result.raw_content == "Spend less on taxis."

    async def test_fallback_with_zero_budget(self, fake_llm):
        result = await TravelAIService(client=fake_llm(["n/a"])).analyze_budget(0, {}, 0, 0)
        assert result.data["currentStatus"]["budgetUtilization"] == 0


class TestTravelAdvice:

    async def test_fallback_lists_questions(self, fake_llm):
        llm = fake_llm(["Bring an umbrella."])

        result = await TravelAIService(client=llm).get_travel_advice(
            "Guilin", ["nature"], ["Best season?", "Local dishes?"],
        )

        assert result.data["answers"] == [
            {"question": "Best season?", "answer": ""},
            {"question": "Local dishes?", "answer": ""},
        ]
        assert llm.calls[0]["messages"][0]["content"] == ADVICE_SYSTEM_PROMPT
        assert llm.calls[0]["max_tokens"] == 2000


class TestCheckStatus:

    async def test_available(self, fake_llm):
        status = await TravelAIService(client=fake_llm(["pong"])).check_status()

        assert status["success"] is True
        assert status["status"] == "available"
        assert status["model"] == "fake-model"
        assert status["error"] is None

    async def test_not_configured(self, fake_llm):
        error = VendorNotConfiguredError("Fake LLM", ["LLM_API_KEY"])

        status = await TravelAIService(client=fake_llm(error=error)).check_status()

        assert status["success"] is False
        assert status["status"] == "unavailable"
        assert "LLM_API_KEY" in status["error"]
