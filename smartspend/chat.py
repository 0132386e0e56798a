"""Chat message lifecycle.

A model reply moves through ``PENDING -> STREAMING -> COMPLETE`` or ends in
``FAILED`` from either of the first two states. ``apply_event`` is the only
way a message changes: it takes the current list and returns a new one.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Sequence, Union

from smartspend.core.models import ChatMessage, MessageStatus


@dataclass(frozen=True)
class Chunk:
    text: str


@dataclass(frozen=True)
class Completed:
    pass


@dataclass(frozen=True)
class StreamFailed:
    error_text: str


MessageEvent = Union[Chunk, Completed, StreamFailed]


def _transition(message: ChatMessage, event: MessageEvent) -> ChatMessage:
    if message.status.is_terminal:
        return message
    if isinstance(event, Chunk):
        return replace(message, text=message.text + event.text, status=MessageStatus.STREAMING)
    if isinstance(event, Completed):
        return replace(message, status=MessageStatus.COMPLETE)
    if isinstance(event, StreamFailed):
        if message.text == "":
            return replace(message, text=event.error_text, status=MessageStatus.FAILED)
        return replace(message, status=MessageStatus.FAILED)
    raise TypeError(f"Unknown message event: {event!r}")


def apply_event(messages: Sequence[ChatMessage], message_id: str, event: MessageEvent) -> List[ChatMessage]:
    """Return ``messages`` with ``event`` applied to the message ``message_id``.

    A failure on a message that already shows partial text keeps that text
    and appends the error as a separate model message.
    """
    updated: List[ChatMessage] = []
    extra: List[ChatMessage] = []
    for message in messages:
        if message.id != message_id:
            updated.append(message)
            continue
        updated.append(_transition(message, event))
        if isinstance(event, StreamFailed) and not message.status.is_terminal and message.text:
            extra.append(ChatMessage(role=message.role, text=event.error_text, status=MessageStatus.FAILED))
    return updated + extra
