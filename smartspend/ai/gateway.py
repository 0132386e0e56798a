from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from smartspend.ai.chat_session import ChatSession
from smartspend.ai.errors import Outcome
from smartspend.ai.providers import LLMClient, LLMProvider
from smartspend.ai.reports import INSIGHTS_FAILURE_TEXT, CategorizeRequest, InsightsReport
from smartspend.core.models import CATEGORIES, Transaction


@dataclass
class LLMGateway:
    """Turns application requests into model calls and classifies failures."""

    client: LLMClient = field(default_factory=LLMClient)
    models: Dict[str, str | None] = field(default_factory=dict)
    categories: Sequence[str] = tuple(CATEGORIES)
    insights_limit: int = 50

    @classmethod
    def from_config(cls, config: dict, client: LLMClient | None = None) -> "LLMGateway":
        return cls(
            client=client or LLMClient(),
            models=dict(config.get("models") or {}),
            categories=tuple(config.get("categories") or CATEGORIES),
            insights_limit=int(config.get("insights_limit", 50)),
        )

    def categorize(self, transactions: Sequence[Transaction]) -> Outcome[List[dict]]:
        request = CategorizeRequest(model=self.models.get("categorize"), categories=self.categories)
        return request.generate(transactions, self.client)

    def insights(self, transactions: Sequence[Transaction]) -> Outcome[str]:
        report = InsightsReport(model=self.models.get("insights"), limit=self.insights_limit)
        return report.generate(transactions, self.client)

    def open_chat(self) -> ChatSession:
        return ChatSession(self.client, model=self.models.get("chat"))


# -----------------------------------------------------------------------------
# Plain helpers: rate limits raise, every other failure becomes a default value
# -----------------------------------------------------------------------------

def categorize_transactions(
    transactions: Sequence[Transaction], provider: LLMProvider | None = None
) -> List[dict]:
    """Return categorize records, ``[]`` on failure; raises RateLimitError."""
    gateway = LLMGateway(client=LLMClient(provider))
    return gateway.categorize(transactions).unwrap([])


def get_spending_insights(
    transactions: Sequence[Transaction], provider: LLMProvider | None = None
) -> str:
    """Return insight text or a fixed apology; raises RateLimitError."""
    gateway = LLMGateway(client=LLMClient(provider))
    return gateway.insights(transactions).unwrap(INSIGHTS_FAILURE_TEXT)
