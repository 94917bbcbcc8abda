"""HTTP route modules, one router per resource."""

from travel_planner.api.routes import auth, budget, health, map, travel, voice

__all__ = ["auth", "budget", "health", "map", "travel", "voice"]
