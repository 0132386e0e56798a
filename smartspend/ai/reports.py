import json
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from smartspend.ai.errors import Ok, Outcome, classify
from smartspend.ai.providers import LLMClient
from smartspend.core.models import CATEGORIES, Transaction
from smartspend.utils import format_amount

logger = logging.getLogger(__name__)

NO_INSIGHTS_TEXT = "No insights available at this time."
INSIGHTS_FAILURE_TEXT = "Could not generate insights at this time. Please try again later."

CATEGORIZE_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "id": {"type": "string"},
            "category": {"type": "string"},
            "isAnomaly": {"type": "boolean"},
        },
        "required": ["id", "category", "isAnomaly"],
    },
}


class BaseAIOutput(ABC):
    """Composable layer for building prompts and parsing LLM responses."""

    schema: Optional[dict] = None
    task = "LLM request"

    def __init__(self, model: Optional[str] = None) -> None:
        self.model = model

    @abstractmethod
    def build_messages(self, transactions: Sequence[Transaction]) -> List[dict]:
        """Return chat messages describing the task."""

    def post_process(self, response: str):
        return response

    def generate(self, transactions: Sequence[Transaction], client: LLMClient | None = None) -> Outcome:
        client = client or LLMClient()
        messages = self.build_messages(transactions)
        try:
            out = client.chat(messages, model=self.model, schema=self.schema)
            return Ok(self.post_process(out))
        except Exception as e:
            logger.error("Failed to %s: %s", self.task, e)
            return classify(e)


class CategorizeRequest(BaseAIOutput):
    """Assign a category and an anomaly flag to every transaction in one call."""

    schema = CATEGORIZE_SCHEMA
    task = "categorize transactions"

    def __init__(self, model: Optional[str] = None, categories: Sequence[str] = CATEGORIES) -> None:
        super().__init__(model)
        self.categories = list(categories)

    def build_messages(self, transactions: Sequence[Transaction]) -> List[dict]:
        payload = json.dumps(
            [
                {"id": tx.id, "description": tx.description, "amount": tx.amount, "type": tx.type.value}
                for tx in transactions
            ]
        )
        prompt = (
            "You are a financial assistant. I will provide a list of transaction descriptions and amounts.\n"
            "For each transaction, assign the most appropriate category from this list:\n"
            f"{json.dumps(self.categories)}.\n\n"
            'Also, flag "isAnomaly" as true if the amount seems unusually high for that category context '
            "(e.g. > $200 for coffee/fast food, > $5000 for shopping) or strictly if the description "
            "looks like a scam/error.\n\n"
            "Return one object per input id.\n\n"
            f"Input Transactions:\n{payload}"
        )
        return [{"role": "user", "content": prompt}]

    def post_process(self, response: str) -> List[dict]:
        if not response:
            return []
        data = json.loads(response)
        if not isinstance(data, list):
            raise ValueError(f"Expected a JSON array, got {type(data).__name__}")
        return data


class InsightsReport(BaseAIOutput):
    """Short bulleted insights about recent spending."""

    task = "get insights"

    def __init__(self, model: Optional[str] = None, limit: int = 50) -> None:
        super().__init__(model)
        self.limit = limit

    def build_messages(self, transactions: Sequence[Transaction]) -> List[dict]:
        lines = [_tx_to_line(tx) for tx in transactions]
        prompt = (
            "Analyze these recent financial transactions and provide a short, bulleted list "
            "(max 3 points) of key insights.\n"
            "Focus on spending trends, potential savings, or unusual activity.\n"
            "Keep it friendly and concise.\n\n"
            "Data:\n" + "\n".join(lines)
        )
        return [{"role": "user", "content": prompt}]

    def generate(self, transactions: Sequence[Transaction], client: LLMClient | None = None) -> Outcome:
        # Token budget guard: only the head of the list is sent
        return super().generate(list(transactions)[: self.limit], client)

    def post_process(self, response: str) -> str:
        return response or NO_INSIGHTS_TEXT


# -----------------------------------------------------------------------------
# Helper utilities
# -----------------------------------------------------------------------------

def _tx_to_line(tx: Transaction) -> str:
    return f"{tx.date.isoformat()}: {tx.description} (${format_amount(tx.amount)}) - {tx.category}"
