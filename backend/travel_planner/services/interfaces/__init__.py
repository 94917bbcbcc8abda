"""Service interface contracts (ABCs)"""

from travel_planner.services.interfaces.llm_client import ILLMClient, LLMResult

__all__ = [
    'ILLMClient',
    'LLMResult',
]
