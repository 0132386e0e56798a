"""View models: the state each screen shows plus the actions it offers.

Actions that reach the model are coroutines; the blocking provider work runs
in a worker thread so the event loop stays free.
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional

import anyio

from smartspend.ai.errors import is_rate_limit_error
from smartspend.ai.chat_session import ChatSession
from smartspend.ai.gateway import LLMGateway
from smartspend.ai.reports import INSIGHTS_FAILURE_TEXT
from smartspend.chat import Chunk, Completed, StreamFailed, apply_event
from smartspend.config import DEFAULT_CONFIG
from smartspend.core.categorizer import apply_categories, set_category, uncategorized
from smartspend.core.models import ChatMessage, ChatRole, MessageStatus, Transaction
from smartspend.loaders import get_loader
from smartspend.store import TransactionStore
from smartspend.summary import anomalies, category_breakdown, monthly_totals, summarize
from smartspend.utils import RequestGeneration, filter_transactions

logger = logging.getLogger(__name__)

CATEGORIZE_RATE_LIMIT_TEXT = "Quota exceeded. Please wait a minute."
CATEGORIZE_FAILURE_TEXT = "Failed to categorize. Try again later."
INSIGHTS_RATE_LIMIT_TEXT = "System is currently busy. Please wait a minute and try again."
CHAT_GREETING = (
    "Hello! I'm FinBot. Ask me anything about budgeting strategies, "
    "saving tips, or financial concepts."
)
CHAT_RATE_LIMIT_TEXT = "⚠️ usage limits exceeded. Please wait a minute before trying again."
CHAT_FAILURE_TEXT = "Sorry, I encountered an error. Please try again."

_DONE = object()


class TransactionListView:
    def __init__(self, store: TransactionStore, gateway: LLMGateway, config: dict | None = None) -> None:
        config = config or DEFAULT_CONFIG
        self.store = store
        self.gateway = gateway
        self.categories = list(config["categories"])
        self.category_policy = config["category_policy"]
        self.surface_failures = bool(config.get("surface_categorize_failures", False))
        self.loader = get_loader("csv", config)
        self.is_auto_categorizing = False
        self.error_message: str | None = None
        self._generation = RequestGeneration()

    @property
    def transactions(self) -> List[Transaction]:
        return self.store.transactions

    def filtered(self, query: str | None) -> List[Transaction]:
        return filter_transactions(self.store.transactions, query)

    def import_csv(self, text: str) -> int:
        new = self.loader.parse(text)
        self.store.append(new)
        return len(new)

    def import_file(self, path: str) -> int:
        new = self.loader.load(path)
        self.store.append(new)
        return len(new)

    def set_category(self, tx_id: str, category: str) -> bool:
        if self.store.get(tx_id) is None:
            return False
        self.store.update(lambda current: set_category(current, tx_id, category))
        return True

    def cancel(self) -> None:
        self._generation.cancel()

    async def run_auto_categorization(self) -> int:
        """Categorize every uncategorized transaction; return how many changed."""
        pending = uncategorized(self.store.transactions)
        if not pending or self.is_auto_categorizing:
            return 0

        self.is_auto_categorizing = True
        self.error_message = None
        token = self._generation.begin()
        try:
            outcome = await anyio.to_thread.run_sync(self.gateway.categorize, pending)
        finally:
            self.is_auto_categorizing = False

        if not self._generation.is_current(token):
            return 0

        if outcome.ok:
            before = self.store.transactions
            after = apply_categories(before, outcome.value, self.category_policy, self.categories)
            self.store.replace(after)
            return sum(1 for old, new in zip(before, after) if old != new)

        if outcome.rate_limited:
            self.error_message = CATEGORIZE_RATE_LIMIT_TEXT
        elif self.surface_failures:
            self.error_message = CATEGORIZE_FAILURE_TEXT
        return 0


class DashboardView:
    def __init__(self, store: TransactionStore, gateway: LLMGateway) -> None:
        self.store = store
        self.gateway = gateway
        self.insight: str | None = None
        self.loading_insight = False
        self.insight_error = False
        self.is_rate_limit = False
        self._generation = RequestGeneration()

    @property
    def summary(self) -> dict:
        return summarize(self.store.transactions)

    @property
    def category_data(self) -> List[dict]:
        return category_breakdown(self.store.transactions)

    @property
    def monthly_data(self) -> List[dict]:
        return monthly_totals(self.store.transactions)

    @property
    def anomalies(self) -> List[Transaction]:
        return anomalies(self.store.transactions)

    def cancel(self) -> None:
        self._generation.cancel()

    async def generate_insights(self) -> str | None:
        if self.loading_insight:
            return self.insight

        self.loading_insight = True
        self.insight_error = False
        self.is_rate_limit = False
        self.insight = None
        token = self._generation.begin()
        try:
            outcome = await anyio.to_thread.run_sync(self.gateway.insights, self.store.transactions)
        finally:
            self.loading_insight = False

        if not self._generation.is_current(token):
            return None

        if outcome.ok:
            self.insight = outcome.value
        elif outcome.rate_limited:
            self.insight_error = True
            self.is_rate_limit = True
            self.insight = INSIGHTS_RATE_LIMIT_TEXT
        else:
            self.insight = INSIGHTS_FAILURE_TEXT
        return self.insight


class ChatView:
    def __init__(self, session: ChatSession) -> None:
        self.session = session
        self.messages: List[ChatMessage] = [ChatMessage(role=ChatRole.MODEL, text=CHAT_GREETING)]
        self.is_streaming = False

    def _find(self, message_id: str) -> ChatMessage:
        return next(m for m in self.messages if m.id == message_id)

    def _apply(self, message_id: str, event) -> None:
        self.messages = apply_event(self.messages, message_id, event)

    async def send(
        self, text: str, on_update: Optional[Callable[[ChatMessage], None]] = None
    ) -> ChatMessage | None:
        """Send ``text`` and stream the reply into a new model message.

        ``on_update`` is called with the reply after every received fragment.
        Returns the final reply, or None when nothing was sent.
        """
        if not text.strip() or self.is_streaming:
            return None

        user_msg = ChatMessage(role=ChatRole.USER, text=text)
        reply = ChatMessage(role=ChatRole.MODEL, status=MessageStatus.PENDING)
        self.messages = self.messages + [user_msg, reply]
        self.is_streaming = True
        try:
            stream = self.session.send_message_stream(text)
            while True:
                chunk = await anyio.to_thread.run_sync(next, stream, _DONE)
                if chunk is _DONE:
                    break
                self._apply(reply.id, Chunk(chunk))
                if on_update is not None:
                    on_update(self._find(reply.id))
            self._apply(reply.id, Completed())
        except Exception as error:
            logger.error("Chat error: %s", error)
            error_text = CHAT_RATE_LIMIT_TEXT if is_rate_limit_error(error) else CHAT_FAILURE_TEXT
            self._apply(reply.id, StreamFailed(error_text))
        finally:
            self.is_streaming = False
        return self._find(reply.id)
