"""
LLM client implementations.

Two interchangeable backends implement ``ILLMClient``:

- ``BailianClient``: Aliyun Bailian REST API, authenticated with an
  ``acs`` HMAC-SHA1 request signature
- ``OpenAICompatibleClient``: any OpenAI-compatible endpoint (DashScope
  compatible mode by default) through the official ``openai`` SDK

``create_llm_client()`` picks one according to ``LLM_PROVIDER``.

Features:
- Exponential backoff retry on transport errors
- Token usage reporting
- Correlation ID logging for observability
"""

import base64
import hashlib
import hmac
import json
import logging
import secrets
import time
import uuid
from email.utils import formatdate
from typing import Any, Dict, List, Mapping, Optional

import httpx
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from travel_planner.core.config import settings
from travel_planner.core.exceptions import (
    VendorError,
    VendorNotConfiguredError,
    VendorUnavailableError,
)
from travel_planner.core.retry import retry_with_backoff
from travel_planner.services.interfaces.llm_client import ILLMClient, LLMResult

logger = logging.getLogger(__name__)


def build_canonicalized_resource(path: str, query_params: Mapping[str, Any]) -> str:
    """Path followed by the query parameters sorted by name."""
    if not query_params:
        return path
    query = "&".join(f"{key}={query_params[key]}" for key in sorted(query_params))
    return f"{path}?{query}"


def build_canonicalized_headers(headers: Mapping[str, str]) -> str:
    """``x-acs-*`` headers, lower-cased, sorted, one ``name:value\\n`` per header."""
    acs_headers = {
        key.lower(): value
        for key, value in headers.items()
        if key.lower().startswith("x-acs-")
    }
    return "".join(f"{key}:{acs_headers[key]}\n" for key in sorted(acs_headers))


class BailianClient(ILLMClient):
    """Aliyun Bailian LLM client using signed REST requests"""

    vendor = "Aliyun Bailian"
    API_VERSION = "2023-06-01"
    COMPLETIONS_PATH = "/v2/app/completions"

    def __init__(
        self,
        access_key_id: Optional[str] = None,
        access_key_secret: Optional[str] = None,
        endpoint: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_key_id = access_key_id if access_key_id is not None else settings.aliyun_bailian_access_key_id
        self.access_key_secret = (
            access_key_secret if access_key_secret is not None else settings.aliyun_bailian_access_key_secret
        )
        self.endpoint = endpoint or settings.aliyun_bailian_endpoint
        self.model = model or settings.llm_model
        self.timeout = timeout or settings.vendor_timeout_seconds
        self._transport = transport

    def validate_config(self) -> None:
        missing = []
        if not self.access_key_id:
            missing.append("ALIYUN_BAILIAN_ACCESS_KEY_ID")
        if not self.access_key_secret:
            missing.append("ALIYUN_BAILIAN_ACCESS_KEY_SECRET")
        if missing:
            raise VendorNotConfiguredError(self.vendor, missing)

    def sign(
        self,
        method: str,
        path: str,
        query_params: Mapping[str, Any],
        headers: Mapping[str, str],
        body: str,
        date: str,
    ) -> str:
        """
        Build the ``Authorization`` header value for a request.

        String to sign::

            METHOD\\nContent-MD5\\napplication/json\\nDate\\n<x-acs headers><resource>

        Returns:
            ``acs <access_key_id>:<base64 hmac-sha1 signature>``
        """
        content_md5 = base64.b64encode(hashlib.md5(body.encode("utf-8")).digest()).decode("ascii")
        string_to_sign = (
            f"{method}\n{content_md5}\napplication/json\n{date}\n"
            f"{build_canonicalized_headers(headers)}"
            f"{build_canonicalized_resource(path, query_params)}"
        )
        digest = hmac.new(
            self.access_key_secret.encode("utf-8"),
            string_to_sign.encode("utf-8"),
            hashlib.sha1,
        ).digest()
        signature = base64.b64encode(digest).decode("ascii")
        return f"acs {self.access_key_id}:{signature}"

    @retry_with_backoff(max_retries=2, base_delay=0.5, max_delay=4.0, exceptions=(httpx.TransportError,))
    async def _post(self, url: str, body: str, headers: Dict[str, str]) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            return await client.post(url, content=body.encode("utf-8"), headers=headers)

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 2000,
        correlation_id: Optional[str] = None,
    ) -> LLMResult:
        self.validate_config()
        if correlation_id is None:
            correlation_id = str(uuid.uuid4())

        body = json.dumps(
            {
                "model": self.model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "stream": False,
            },
            ensure_ascii=False,
        )
        date = formatdate(usegmt=True)
        headers = {
            "Content-Type": "application/json",
            "Date": date,
            "x-acs-version": self.API_VERSION,
            "x-acs-signature-nonce": secrets.token_hex(16),
            "x-acs-signature-method": "HMAC-SHA1",
            "x-acs-signature-version": "1.0",
        }
        headers["Authorization"] = self.sign("POST", self.COMPLETIONS_PATH, {}, headers, body, date)

        url = f"https://{self.endpoint}{self.COMPLETIONS_PATH}"
        started = time.monotonic()
        try:
            response = await self._post(url, body, headers)
        except httpx.TransportError as e:
            logger.error(
                "LLM request failed to reach vendor",
                extra={"vendor": self.vendor, "correlation_id": correlation_id, "error": str(e)},
            )
            raise VendorUnavailableError(self.vendor, f"Network error: {e}") from e

        latency_ms = round((time.monotonic() - started) * 1000, 2)

        if response.is_error:
            try:
                detail = response.json().get("message") or response.reason_phrase
            except ValueError:
                detail = response.reason_phrase
            logger.error(
                "LLM vendor returned an error",
                extra={
                    "vendor": self.vendor,
                    "correlation_id": correlation_id,
                    "status_code": response.status_code,
                    "latency_ms": latency_ms,
                },
            )
            raise VendorError(self.vendor, f"API error: {detail}", code=response.status_code)

        try:
            payload = response.json()
            data = payload["data"]
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise VendorError(self.vendor, "Malformed API response") from e

        usage = data.get("usage") or {}
        logger.info(
            "LLM completion received",
            extra={
                "vendor": self.vendor,
                "model": self.model,
                "correlation_id": correlation_id,
                "latency_ms": latency_ms,
                "tokens": usage.get("total_tokens"),
            },
        )
        return LLMResult(content=content or "", model=self.model, usage=usage)


class OpenAICompatibleClient(ILLMClient):
    """LLM client for OpenAI-compatible chat completion endpoints"""

    vendor = "OpenAI-compatible LLM"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.llm_api_key
        self.base_url = base_url or settings.llm_base_url
        self.model = model or settings.llm_model
        self.timeout = timeout or settings.vendor_timeout_seconds
        self._client: Optional[AsyncOpenAI] = None

    def validate_config(self) -> None:
        if not self.api_key:
            raise VendorNotConfiguredError(self.vendor, ["LLM_API_KEY"])

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=2,
            )
        return self._client

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float = 0.7,
        max_tokens: int = 2000,
        correlation_id: Optional[str] = None,
    ) -> LLMResult:
        self.validate_config()
        if correlation_id is None:
            correlation_id = str(uuid.uuid4())

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except APIConnectionError as e:
            logger.error(
                "LLM request failed to reach vendor",
                extra={"vendor": self.vendor, "correlation_id": correlation_id, "error": str(e)},
            )
            raise VendorUnavailableError(self.vendor, f"Network error: {e}") from e
        except APIStatusError as e:
            logger.error(
                "LLM vendor returned an error",
                extra={"vendor": self.vendor, "correlation_id": correlation_id, "status_code": e.status_code},
            )
            raise VendorError(self.vendor, f"API error: {e.message}", code=e.status_code) from e

        if not response.choices:
            raise VendorError(self.vendor, "Malformed API response")

        usage = response.usage.model_dump() if response.usage else {}
        logger.info(
            "LLM completion received",
            extra={
                "vendor": self.vendor,
                "model": self.model,
                "correlation_id": correlation_id,
                "tokens": usage.get("total_tokens"),
            },
        )
        return LLMResult(
            content=response.choices[0].message.content or "",
            model=self.model,
            usage=usage,
        )


def create_llm_client() -> ILLMClient:
    """Build the LLM client selected by ``LLM_PROVIDER``."""
    if settings.llm_provider == "openai":
        return OpenAICompatibleClient()
    return BailianClient()
