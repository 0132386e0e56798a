from __future__ import annotations

import logging
from typing import Iterator, List, Optional

from smartspend.ai.providers import LLMClient

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a helpful, smart personal finance assistant named 'FinBot'. "
    "You help users understand their spending, budgeting, and financial habits. "
    "You are NOT a financial advisor and should always disclaim that for investment advice. "
    "Be concise, professional, yet encouraging."
)


class ChatSession:
    """One conversation with the model.

    The session keeps the turn history and sends it with every message.
    Create it once, hand it to whoever needs it and ``close`` it when done.
    """

    def __init__(
        self,
        client: LLMClient,
        system_instruction: str = SYSTEM_INSTRUCTION,
        model: Optional[str] = None,
    ) -> None:
        self.client = client
        self.model = model
        self.system_instruction = system_instruction
        self._history: List[dict] = []
        self._closed = False

    @property
    def history(self) -> List[dict]:
        return list(self._history)

    @property
    def closed(self) -> bool:
        return self._closed

    def send_message_stream(self, text: str) -> Iterator[str]:
        """Send ``text`` and return an iterator over the reply fragments.

        Nothing is sent until the iterator is first advanced. The turn joins
        the history only when the stream completes.
        """
        if self._closed:
            raise RuntimeError("Chat session is closed")
        return self._stream(text)

    def _stream(self, text: str) -> Iterator[str]:
        user_turn = {"role": "user", "content": text}
        messages = [{"role": "system", "content": self.system_instruction}, *self._history, user_turn]
        parts: List[str] = []
        for chunk in self.client.stream(messages, model=self.model):
            if chunk:
                parts.append(chunk)
                yield chunk
        self._history.append(user_turn)
        self._history.append({"role": "assistant", "content": "".join(parts)})
        logger.debug("Chat turn complete (%d fragment(s))", len(parts))

    def close(self) -> None:
        self._closed = True
        self._history.clear()

    def __enter__(self) -> "ChatSession":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
