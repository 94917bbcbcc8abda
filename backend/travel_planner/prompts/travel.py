"""
Travel Planning Prompts

System prompts and user prompt builders for the three LLM tasks: itinerary
generation, budget analysis and destination advice.

Every system prompt pins the exact JSON shape expected back so the parser in
``travel_planner.services.ai_service`` can load the completion directly.
"""

import json
from typing import Any, Dict, List, Optional

PLAN_SYSTEM_PROMPT = """You are a professional travel planner. Build a detailed, practical travel plan for the user's request.

Requirements:
1. Keep the schedule realistic: account for travel time between places and physical effort
2. Break the budget down in detail: transportation, accommodation, food, tickets, shopping
3. Respect the user's preferences and special needs
4. Include practical tips and precautions
5. Reply with valid JSON only, no other text

Return this JSON structure:
{
  "title": "Plan title",
  "summary": "Plan overview",
  "dailyItinerary": [
    {
      "day": 1,
      "date": "YYYY-MM-DD",
      "theme": "Theme of the day",
      "activities": [
        {
          "time": "08:00-10:00",
          "name": "Activity name",
          "description": "Activity description",
          "location": "Location",
          "cost": 100,
          "type": "sightseeing|shopping|dining|entertainment|relaxation"
        }
      ],
      "accommodation": {"name": "Hotel name", "type": "hotel|hostel|apartment|resort", "cost": 200},
      "meals": [
        {"time": "12:00-13:00", "type": "breakfast|lunch|dinner|snack", "restaurant": "Restaurant", "cost": 50}
      ],
      "transportation": [
        {"type": "flight|train|bus|car|walking", "description": "Route description", "cost": 50}
      ]
    }
  ],
  "budgetBreakdown": {
    "totalBudget": 5000,
    "transportation": 1000,
    "accommodation": 1500,
    "food": 800,
    "activities": 1200,
    "shopping": 300,
    "other": 200
  },
  "travelTips": ["Tip 1", "Tip 2"],
  "emergencyContacts": ["Emergency number 1", "Emergency number 2"]
}"""

BUDGET_SYSTEM_PROMPT = """You are a professional financial analyst. Analyse the user's travel expenses and give budget advice.

Requirements:
1. Summarise current spending
2. Identify over-spent and under-spent categories
3. Give concrete optimisation suggestions
4. Forecast how the remaining budget will be used
5. Reply with valid JSON only

Return this JSON structure:
{
  "analysis": "Overall analysis",
  "currentStatus": {"totalSpent": 2000, "remainingBudget": 3000, "budgetUtilization": 0.4},
  "categoryAnalysis": [
    {"category": "transportation", "spent": 500, "budget": 600, "status": "under|over|within", "percentage": 83.3}
  ],
  "recommendations": ["Suggestion 1", "Suggestion 2"],
  "forecast": {"estimatedTotalCost": 4500, "estimatedRemaining": 500, "riskLevel": "low|medium|high"}
}"""

ADVICE_SYSTEM_PROMPT = """You are an experienced travel consultant. Give professional advice for the user's destination and preferences.

Requirements:
1. Provide basic information about the destination
2. Recommend sights and activities matching the preferences
3. Answer the user's specific questions
4. Add practical travel tips
5. Reply with valid JSON only

Return this JSON structure:
{
  "destinationInfo": {
    "bestTime": "Best time to visit",
    "weather": "Climate",
    "currency": "Currency",
    "language": "Language",
    "visa": "Visa requirements"
  },
  "recommendations": {
    "mustSee": ["Sight 1", "Sight 2"],
    "localFood": ["Dish 1", "Dish 2"],
    "activities": ["Activity 1", "Activity 2"]
  },
  "answers": [{"question": "User question", "answer": "Detailed answer"}],
  "travelTips": ["Tip 1", "Tip 2"]
}"""

STATUS_CHECK_MESSAGES = [
    {"role": "system", "content": 'You are a test assistant. Reply with "OK".'},
    {"role": "user", "content": "Hello, this is a service status check."},
]


def build_plan_prompt(
    destination: str,
    days: int,
    budget: float,
    travelers: int,
    preferences: List[str],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> str:
    """User prompt for itinerary generation."""
    lines = [
        "Create a travel plan for the following request:",
        f"Destination: {destination}",
        f"Duration: {days} days",
        f"Total budget: {budget} CNY",
        f"Travelers: {travelers}",
        f"Preferences: {', '.join(preferences) if preferences else 'none'}",
    ]
    if start_date and end_date:
        lines.append(f"Dates: {start_date} to {end_date}")
    lines.append("")
    lines.append("Make the plan detailed and practical, and keep the budget allocation reasonable.")
    return "\n".join(lines)


def build_budget_prompt(
    total_budget: float,
    total_spent: float,
    by_category: Dict[str, Any],
    remaining_days: int,
) -> str:
    """User prompt for budget analysis."""
    return (
        "Analyse the following travel expenses:\n"
        f"Total budget: {total_budget} CNY\n"
        f"Spent so far: {total_spent} CNY\n"
        f"Spending by category: {json.dumps(by_category, ensure_ascii=False, indent=2)}\n"
        "\n"
        f"Remaining travel days: {remaining_days}\n"
        "Provide a detailed budget analysis and optimisation suggestions."
    )


def build_advice_prompt(destination: str, preferences: List[str], questions: List[str]) -> str:
    return (
        f"Destination: {destination}\n"
        f"Preferences: {', '.join(preferences) if preferences else 'none'}\n"
        f"Questions: {'; '.join(questions) if questions else 'none'}\n"
        "\n"
        "Provide professional travel advice and answer the questions."
    )
