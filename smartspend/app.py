from __future__ import annotations

import logging
from enum import Enum

from smartspend.ai.gateway import LLMGateway
from smartspend.ai.providers import LLMClient
from smartspend.config import load_config
from smartspend.store import TransactionStore
from smartspend.views import ChatView, DashboardView, TransactionListView

logger = logging.getLogger(__name__)


class AppView(str, Enum):
    DASHBOARD = "DASHBOARD"
    TRANSACTIONS = "TRANSACTIONS"
    CHAT = "CHAT"


class SmartSpendApp:
    """Owns the store, the gateway and the single chat session."""

    def __init__(self, config: dict | None = None, client: LLMClient | None = None) -> None:
        self.config = config or load_config()
        self.store = TransactionStore(self.config["db_path"], self.config["storage_key"])
        self.gateway = LLMGateway.from_config(self.config, client)
        self.chat_session = self.gateway.open_chat()
        self.dashboard = DashboardView(self.store, self.gateway)
        self.transactions = TransactionListView(self.store, self.gateway, self.config)
        self.chat = ChatView(self.chat_session)
        self.current_view = AppView.DASHBOARD

    def view(self, name: AppView):
        return {
            AppView.DASHBOARD: self.dashboard,
            AppView.TRANSACTIONS: self.transactions,
            AppView.CHAT: self.chat,
        }[name]

    def switch_view(self, name: AppView) -> None:
        """Show another view; pending insight or categorize results of the old one are dropped."""
        if name == self.current_view:
            return
        leaving = self.view(self.current_view)
        cancel = getattr(leaving, "cancel", None)
        if cancel is not None:
            cancel()
        logger.debug("Switching view %s -> %s", self.current_view.value, name.value)
        self.current_view = name

    def close(self) -> None:
        self.chat_session.close()

    def __enter__(self) -> "SmartSpendApp":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
