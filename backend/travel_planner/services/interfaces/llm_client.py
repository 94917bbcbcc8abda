"""
LLM Client Interface Contract.

Defines the contract for chat-completion vendors used to draft itineraries,
budget analyses and travel advice. Implementations differ only in how they
authenticate and reach the vendor; prompting and JSON parsing live in
``travel_planner.services.ai_service``.

Key responsibilities:
- Configuration validation (report missing settings)
- API communication with the LLM provider
- Token usage reporting
- Mapping vendor failures to VendorError / VendorUnavailableError
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class LLMResult:
    """Text completion returned by a vendor."""

    content: str
    model: str
    usage: Dict[str, Any] = field(default_factory=dict)


class ILLMClient(ABC):
    """
    Abstract base class for LLM clients.

    Attributes:
        vendor: Human-readable vendor name used in logs and status payloads
        model: Model identifier sent with each request
    """

    vendor: str
    model: str

    @abstractmethod
    def validate_config(self) -> None:
        """
        Check that all required credentials are configured.

        Raises:
            VendorNotConfiguredError: Listing the missing settings
        """

    @abstractmethod
    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 2000,
        correlation_id: Optional[str] = None,
    ) -> LLMResult:
        """
        Send chat messages and return the completion.

        Args:
            messages: OpenAI-style ``[{"role": ..., "content": ...}]`` list
            temperature: Sampling temperature
            max_tokens: Completion token limit
            correlation_id: Optional request ID for tracing

        Returns:
            LLMResult with the completion text and token usage

        Raises:
            VendorNotConfiguredError: If credentials are missing
            VendorError: If the vendor rejects the request or answers malformed data
            VendorUnavailableError: If the vendor cannot be reached
        """
