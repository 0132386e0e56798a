# smartspend/core/models.py
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional
import uuid

UNCATEGORIZED = "Uncategorized"

CATEGORIES = [
    "Food & Dining",
    "Transportation",
    "Housing",
    "Utilities",
    "Entertainment",
    "Shopping",
    "Healthcare",
    "Income",
    UNCATEGORIZED,
]


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


@dataclass(frozen=True)
class Transaction:
    id: str
    date: date
    description: str
    amount: float
    type: TransactionType
    category: str = UNCATEGORIZED
    is_anomaly: Optional[bool] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": self.amount,
            "type": self.type.value,
            "category": self.category,
        }
        if self.is_anomaly is not None:
            data["isAnomaly"] = self.is_anomaly
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Transaction":
        return cls(
            id=str(data["id"]),
            date=date.fromisoformat(data["date"]),
            description=data.get("description", ""),
            amount=abs(float(data.get("amount", 0.0))),
            type=TransactionType(data.get("type", TransactionType.EXPENSE.value)),
            category=data.get("category") or UNCATEGORIZED,
            is_anomaly=data.get("isAnomaly"),
        )


class ChatRole(str, Enum):
    USER = "user"
    MODEL = "model"


class MessageStatus(str, Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (MessageStatus.COMPLETE, MessageStatus.FAILED)


@dataclass(frozen=True)
class ChatMessage:
    role: ChatRole
    text: str = ""
    status: MessageStatus = MessageStatus.COMPLETE
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now)
