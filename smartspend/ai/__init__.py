import logging
import os

# -----------------------------------------------------------------------------
# Configure basic debug logging (caller can override)
# -----------------------------------------------------------------------------
logging.basicConfig(level=os.getenv("LLM_DEBUG", "INFO").upper())

from smartspend.ai.errors import (  # noqa: E402
    RATE_LIMIT,
    Failed,
    Ok,
    Outcome,
    RateLimited,
    RateLimitError,
    is_rate_limit_error,
)
from smartspend.ai.providers import LLMClient, LLMProvider, get_provider_from_env  # noqa: E402
from smartspend.ai.reports import CategorizeRequest, InsightsReport  # noqa: E402
from smartspend.ai.chat_session import ChatSession  # noqa: E402
from smartspend.ai.gateway import (  # noqa: E402
    LLMGateway,
    categorize_transactions,
    get_spending_insights,
)

__all__ = [
    "RATE_LIMIT",
    "CategorizeRequest",
    "ChatSession",
    "Failed",
    "InsightsReport",
    "LLMClient",
    "LLMGateway",
    "LLMProvider",
    "Ok",
    "Outcome",
    "RateLimitError",
    "RateLimited",
    "categorize_transactions",
    "get_provider_from_env",
    "get_spending_insights",
    "is_rate_limit_error",
]
