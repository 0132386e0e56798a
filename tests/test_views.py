import json
from dataclasses import replace
from datetime import date

import anyio

from smartspend.ai import LLMClient, LLMGateway
from smartspend.ai.reports import INSIGHTS_FAILURE_TEXT, NO_INSIGHTS_TEXT
from smartspend.app import AppView, SmartSpendApp
from smartspend.config import DEFAULT_CONFIG, load_config
from smartspend.core.models import Transaction, TransactionType
from smartspend.store import TransactionStore
from smartspend.views import (
    CATEGORIZE_FAILURE_TEXT,
    CATEGORIZE_RATE_LIMIT_TEXT,
    INSIGHTS_RATE_LIMIT_TEXT,
    DashboardView,
    TransactionListView,
)


class DummyProvider:
    def __init__(self, reply="", error=None, on_call=None):
        self.reply = reply
        self.error = error
        self.on_call = on_call
        self.calls = 0

    def generate(self, messages, model=None, schema=None):
        self.calls += 1
        if self.on_call:
            self.on_call()
        if self.error:
            raise self.error
        return self.reply

    def stream(self, messages, model=None):
        yield self.reply


COFFEE = Transaction(
    id="1",
    date=date(2023, 11, 12),
    description="Coffee Shop",
    amount=6.50,
    type=TransactionType.EXPENSE,
    category="Uncategorized",
)
RENT = Transaction(
    id="2",
    date=date(2023, 11, 15),
    description="Rent Payment",
    amount=1800.0,
    type=TransactionType.EXPENSE,
    category="Uncategorized",
)


def _store(tmp_path, seed=(COFFEE,)):
    return TransactionStore(str(tmp_path / "smartspend.db"), seed=list(seed))


def _list_view(tmp_path, provider, seed=(COFFEE,), config=None):
    gateway = LLMGateway(client=LLMClient(provider=provider))
    return TransactionListView(_store(tmp_path, seed), gateway, config or DEFAULT_CONFIG)


def test_auto_categorize_merges_result_into_store(tmp_path):
    reply = json.dumps([{"id": "1", "category": "Food & Dining", "isAnomaly": False}])
    view = _list_view(tmp_path, DummyProvider(reply=reply))

    changed = anyio.run(view.run_auto_categorization)

    assert changed == 1
    tx = view.store.get("1")
    assert tx.category == "Food & Dining"
    assert tx.is_anomaly is False
    assert (tx.amount, tx.date, tx.description) == (6.50, date(2023, 11, 12), "Coffee Shop")
    assert view.is_auto_categorizing is False
    assert view.error_message is None

    # persisted: a fresh store sees the merge
    reloaded = TransactionStore(view.store.db_path, seed=[])
    assert reloaded.get("1").category == "Food & Dining"


def test_auto_categorize_leaves_unmatched_transactions_unchanged(tmp_path):
    reply = json.dumps([{"id": "2", "category": "Housing", "isAnomaly": True}])
    view = _list_view(tmp_path, DummyProvider(reply=reply), seed=(COFFEE, RENT))

    anyio.run(view.run_auto_categorization)

    assert view.store.get("1") == COFFEE
    assert view.store.get("2").category == "Housing"
    assert view.store.get("2").is_anomaly is True


def test_auto_categorize_skips_when_nothing_is_uncategorized(tmp_path):
    provider = DummyProvider(reply="[]")
    done = replace(COFFEE, category="Food & Dining")
    view = _list_view(tmp_path, provider, seed=(done,))

    assert anyio.run(view.run_auto_categorization) == 0
    assert provider.calls == 0


def test_auto_categorize_rate_limit_sets_message(tmp_path):
    view = _list_view(tmp_path, DummyProvider(error=Exception("RESOURCE_EXHAUSTED")))

    anyio.run(view.run_auto_categorization)

    assert view.error_message == CATEGORIZE_RATE_LIMIT_TEXT
    assert view.store.get("1") == COFFEE


def test_auto_categorize_other_failures_are_suppressed_by_default(tmp_path):
    view = _list_view(tmp_path, DummyProvider(error=ValueError("bad gateway")))
    anyio.run(view.run_auto_categorization)
    assert view.error_message is None


def test_auto_categorize_failures_can_be_surfaced(tmp_path):
    config = {**DEFAULT_CONFIG, "surface_categorize_failures": True}
    view = _list_view(tmp_path, DummyProvider(error=ValueError("bad gateway")), config=config)
    anyio.run(view.run_auto_categorization)
    assert view.error_message == CATEGORIZE_FAILURE_TEXT


def test_auto_categorize_coerce_policy(tmp_path):
    reply = json.dumps([{"id": "1", "category": "Coffee", "isAnomaly": True}])
    config = {**DEFAULT_CONFIG, "category_policy": "coerce"}
    view = _list_view(tmp_path, DummyProvider(reply=reply), config=config)

    anyio.run(view.run_auto_categorization)

    assert view.store.get("1").category == "Uncategorized"
    assert view.store.get("1").is_anomaly is True


def test_stale_categorize_response_is_discarded(tmp_path):
    reply = json.dumps([{"id": "1", "category": "Food & Dining", "isAnomaly": False}])
    provider = DummyProvider(reply=reply)
    view = _list_view(tmp_path, provider)
    provider.on_call = view.cancel

    assert anyio.run(view.run_auto_categorization) == 0
    assert view.store.get("1") == COFFEE
    assert view.is_auto_categorizing is False


def test_import_and_manual_category_edit(tmp_path):
    view = _list_view(tmp_path, DummyProvider())

    count = view.import_csv("Date,Description,Amount\n2024-01-01,Gym,-40\n2024-01-02,Bonus,500\n")

    assert count == 2
    assert [tx.description for tx in view.transactions] == ["Coffee Shop", "Gym", "Bonus"]
    assert view.set_category("1", "Food & Dining") is True
    assert view.store.get("1").category == "Food & Dining"
    assert view.set_category("missing", "Housing") is False
    assert [tx.description for tx in view.filtered("FOOD")] == ["Coffee Shop"]


def _dashboard(tmp_path, provider):
    return DashboardView(_store(tmp_path), LLMGateway(client=LLMClient(provider=provider)))


def test_insights_success(tmp_path):
    dashboard = _dashboard(tmp_path, DummyProvider(reply="- You buy a lot of coffee"))

    assert anyio.run(dashboard.generate_insights) == "- You buy a lot of coffee"
    assert dashboard.insight_error is False
    assert dashboard.loading_insight is False


def test_insights_empty_reply(tmp_path):
    dashboard = _dashboard(tmp_path, DummyProvider(reply=""))
    assert anyio.run(dashboard.generate_insights) == NO_INSIGHTS_TEXT


def test_insights_rate_limit_sets_flag(tmp_path):
    dashboard = _dashboard(tmp_path, DummyProvider(error=Exception("status 429")))

    anyio.run(dashboard.generate_insights)

    assert dashboard.insight == INSIGHTS_RATE_LIMIT_TEXT
    assert dashboard.is_rate_limit is True
    assert dashboard.insight_error is True


def test_insights_generic_failure_shows_apology_without_error_flag(tmp_path):
    dashboard = _dashboard(tmp_path, DummyProvider(error=TimeoutError("slow")))

    anyio.run(dashboard.generate_insights)

    assert dashboard.insight == INSIGHTS_FAILURE_TEXT
    assert dashboard.is_rate_limit is False
    assert dashboard.insight_error is False


def test_switching_view_discards_pending_insight(tmp_path):
    config = load_config(tmp_path / "missing.yaml")
    config["db_path"] = str(tmp_path / "app.db")
    provider = DummyProvider(reply="- stale")

    with SmartSpendApp(config, client=LLMClient(provider=provider)) as app:
        provider.on_call = lambda: app.switch_view(AppView.CHAT)
        result = anyio.run(app.dashboard.generate_insights)

        assert result is None
        assert app.dashboard.insight is None
        assert app.current_view is AppView.CHAT

    assert app.chat_session.closed


def test_dashboard_aggregates_come_from_store(tmp_path):
    dashboard = _dashboard(tmp_path, DummyProvider())
    assert dashboard.summary == {"income": 0.0, "expense": 6.5, "balance": -6.5}
    assert dashboard.category_data == [{"name": "Uncategorized", "value": 6.5}]
    assert dashboard.monthly_data == [{"name": "Nov", "income": 0.0, "expense": 6.5}]
    assert dashboard.anomalies == []
