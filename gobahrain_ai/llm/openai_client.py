# llm/openai_client.py
"""
Shared AsyncOpenAI client for the embedding and generation services,
plus the mapping from SDK errors to provider failures.
"""

from typing import Optional, Type

import httpx
from openai import APIError, APIStatusError, AsyncOpenAI

from ..config import Settings
from ..utils.ai_helpers import provider_error_message
from ..utils.exceptions import ProviderError

# The SDK refuses to build a client without a key; the services check the
# real key themselves before any call.
_UNSET_KEY = "unset"


def build_openai_client(settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> AsyncOpenAI:
    """
    One AsyncOpenAI client per process

    Retries are off: a failed call is reported to the caller, which decides
    whether the recipe can go on without it.
    """
    return AsyncOpenAI(
        api_key=settings.OPENAI_API_KEY or _UNSET_KEY,
        base_url=settings.OPENAI_BASE_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
        max_retries=0,
        http_client=http_client,
    )


def failure_from_openai(error: APIError, failure_cls: Type[ProviderError], label: str) -> ProviderError:
    """
    Convert an SDK error into the matching provider failure

    Status errors keep the provider's own message and the HTTP status;
    connection errors and timeouts carry no status.
    """
    if isinstance(error, APIStatusError):
        body = error.body if isinstance(error.body, dict) else {}
        message = provider_error_message(body, f"{label} error ({error.status_code})")
        return failure_cls(message, status_code=error.status_code)
    return failure_cls(f"{label} request failed: {error}")
