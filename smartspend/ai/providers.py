import json
import os
import logging
import urllib.request
from dataclasses import dataclass
from typing import Iterator, List, Optional, Protocol

import google.generativeai as genai
from huggingface_hub import InferenceClient

logger = logging.getLogger(__name__)

_OLLAMA_URL = "http://localhost:11434/api/chat"
_OPENAI_URL = "https://api.openai.com/v1/chat/completions"


class LLMProvider(Protocol):
    """A minimal protocol all concrete providers must implement."""

    def generate(self, messages: List[dict], model: Optional[str] = None, schema: Optional[dict] = None) -> str:
        """Return the model reply given a list-of-dicts chat history.

        When ``schema`` is given the reply must be JSON matching it.
        """

    def stream(self, messages: List[dict], model: Optional[str] = None) -> Iterator[str]:
        """Yield the model reply as successive text fragments."""


@dataclass
class LLMClient:
    """Simple client that delegates chat requests to an LLM provider.

    Without an explicit provider one is picked from the environment on first use.
    """
    provider: LLMProvider | None = None

    def _resolve(self) -> LLMProvider:
        if self.provider is None:
            self.provider = get_provider_from_env()
        return self.provider

    def chat(self, messages: List[dict], model: Optional[str] = None, schema: Optional[dict] = None) -> str:
        return self._resolve().generate(messages, model=model, schema=schema)

    def stream(self, messages: List[dict], model: Optional[str] = None) -> Iterator[str]:
        return iter(self._resolve().stream(messages, model=model))


# -----------------------------------------------------------------------------
# Structured output helpers
# -----------------------------------------------------------------------------

def _wrap_schema(schema: dict) -> dict:
    """OpenAI-style structured output needs an object at the top level."""
    if schema.get("type") == "object":
        return schema
    return {"type": "object", "properties": {"items": schema}, "required": ["items"]}


def _unwrap_reply(schema: dict, reply: str) -> str:
    if schema.get("type") == "object" or not reply:
        return reply
    data = json.loads(reply)
    if isinstance(data, dict) and "items" in data:
        return json.dumps(data["items"])
    return reply


def _json_schema_format(schema: dict) -> dict:
    return {
        "type": "json_schema",
        "json_schema": {"name": "response", "schema": _wrap_schema(schema)},
    }


# -----------------------------------------------------------------------------
# Hugging Face Inference API provider
# -----------------------------------------------------------------------------

@dataclass
class HuggingFaceProvider:
    model: str
    token: str | None = None

    def __post_init__(self) -> None:
        self._client = InferenceClient(provider="cerebras", api_key=self.token)

    def generate(self, messages: List[dict], model: Optional[str] = None, schema: Optional[dict] = None) -> str:
        kwargs = {}
        if schema is not None:
            kwargs["response_format"] = _json_schema_format(schema)
        out = self._client.chat_completion(messages=messages, model=model or self.model, **kwargs)
        reply = (out.choices[0].message.content or "").strip()
        return _unwrap_reply(schema, reply) if schema is not None else reply

    def stream(self, messages: List[dict], model: Optional[str] = None) -> Iterator[str]:
        chunks = self._client.chat_completion(messages=messages, model=model or self.model, stream=True)
        for chunk in chunks:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content
            if delta:
                yield delta


# -----------------------------------------------------------------------------
# OpenAI Chat Completions provider
# -----------------------------------------------------------------------------

@dataclass
class OpenAIProvider:
    model: str
    api_key: str
    url: str = _OPENAI_URL

    def _request(self, payload: dict) -> urllib.request.Request:
        data = json.dumps(payload).encode()
        req = urllib.request.Request(self.url, data=data, method="POST")
        req.add_header("Content-Type", "application/json")
        req.add_header("Authorization", f"Bearer {self.api_key}")
        return req

    def generate(self, messages: List[dict], model: Optional[str] = None, schema: Optional[dict] = None) -> str:
        payload = {"model": model or self.model, "messages": messages}
        if schema is not None:
            payload["response_format"] = _json_schema_format(schema)
        with urllib.request.urlopen(self._request(payload)) as resp:
            resp_data = json.load(resp)
        reply = (resp_data["choices"][0]["message"]["content"] or "").strip()
        return _unwrap_reply(schema, reply) if schema is not None else reply

    def stream(self, messages: List[dict], model: Optional[str] = None) -> Iterator[str]:
        payload = {"model": model or self.model, "messages": messages, "stream": True}
        with urllib.request.urlopen(self._request(payload)) as resp:
            # Server-sent events: "data: {...}" lines, terminated by "data: [DONE]"
            for raw in resp:
                line = raw.decode().strip()
                if not line.startswith("data:"):
                    continue
                data = line[len("data:"):].strip()
                if data == "[DONE]":
                    break
                choices = json.loads(data).get("choices") or []
                if not choices:
                    continue
                delta = (choices[0].get("delta") or {}).get("content")
                if delta:
                    yield delta


# -----------------------------------------------------------------------------
# Ollama provider with robust parsing and debug logging
# -----------------------------------------------------------------------------

def _ollama_content(resp_data: dict) -> str:
    # Ollama /api/chat returns either {'message': str, 'done': bool}
    # or {'message': {'role': 'assistant', 'content': str, ...}, 'done': bool}
    msg = resp_data.get("message", "")
    if isinstance(msg, dict):
        msg = msg.get("content", "")
    if not isinstance(msg, str):
        raise RuntimeError(f"Unexpected Ollama response format: {resp_data}")
    return msg


@dataclass
class OllamaProvider:
    model: str
    url: str = _OLLAMA_URL

    def _request(self, payload: dict) -> urllib.request.Request:
        data = json.dumps(payload).encode()
        logger.debug("Ollama ▶ POST %s – payload: %s", self.url, payload)
        req = urllib.request.Request(self.url, data=data, method="POST")
        req.add_header("Content-Type", "application/json")
        return req

    def _post(self, payload: dict) -> dict:
        """Low‑level helper: POST JSON and return parsed JSON with debug logs."""
        with urllib.request.urlopen(self._request(payload)) as resp:
            raw = resp.read().decode()
            logger.debug("Ollama ◀ %s", raw)
            return json.loads(raw)

    def generate(self, messages: List[dict], model: Optional[str] = None, schema: Optional[dict] = None) -> str:
        payload = {"model": model or self.model, "messages": messages, "stream": False}
        if schema is not None:
            payload["format"] = schema
        return _ollama_content(self._post(payload)).strip()

    def stream(self, messages: List[dict], model: Optional[str] = None) -> Iterator[str]:
        payload = {"model": model or self.model, "messages": messages, "stream": True}
        with urllib.request.urlopen(self._request(payload)) as resp:
            # One JSON object per line until {"done": true}
            for raw in resp:
                line = raw.decode().strip()
                if not line:
                    continue
                logger.debug("Ollama ◀ %s", line)
                event = json.loads(line)
                if "error" in event:
                    raise RuntimeError(f"Ollama error: {event['error']}")
                content = _ollama_content(event)
                if content:
                    yield content
                if event.get("done"):
                    break


# -----------------------------------------------------------------------------
# Google Gemini provider
# -----------------------------------------------------------------------------

def _gemini_schema(schema: dict) -> dict:
    """Gemini expects upper-case OpenAPI type names."""
    out = {}
    for key, value in schema.items():
        if key == "type":
            out[key] = value.upper()
        elif key == "items":
            out[key] = _gemini_schema(value)
        elif key == "properties":
            out[key] = {name: _gemini_schema(prop) for name, prop in value.items()}
        else:
            out[key] = value
    return out


def _gemini_contents(messages: List[dict]) -> tuple[str | None, List[dict]]:
    system = None
    contents = []
    for m in messages:
        if m["role"] == "system":
            system = m["content"]
            continue
        role = "user" if m["role"] == "user" else "model"
        contents.append({"role": role, "parts": [m["content"]]})
    return system, contents


@dataclass
class GeminiProvider:
    model: str
    api_key: str | None = None

    def __post_init__(self) -> None:
        genai.configure(api_key=self.api_key)

    def _model(self, model: Optional[str], system: str | None):
        return genai.GenerativeModel(model or self.model, system_instruction=system)

    def generate(self, messages: List[dict], model: Optional[str] = None, schema: Optional[dict] = None) -> str:
        system, contents = _gemini_contents(messages)
        config = None
        if schema is not None:
            config = genai.GenerationConfig(
                response_mime_type="application/json",
                response_schema=_gemini_schema(schema),
            )
        resp = self._model(model, system).generate_content(contents, generation_config=config)
        return (resp.text or "").strip()

    def stream(self, messages: List[dict], model: Optional[str] = None) -> Iterator[str]:
        system, contents = _gemini_contents(messages)
        for chunk in self._model(model, system).generate_content(contents, stream=True):
            if chunk.parts and chunk.text:
                yield chunk.text


# -----------------------------------------------------------------------------
# Provider selection
# -----------------------------------------------------------------------------

def get_provider_from_env() -> LLMProvider:
    provider = os.environ.get("SMARTSPEND_LLM_PROVIDER", "huggingface").lower()

    if provider == "openai":
        api_key = os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY not set")
        model = os.environ.get("SMARTSPEND_LLM_MODEL", "gpt-4o-mini")
        return OpenAIProvider(model=model, api_key=api_key)

    if provider == "ollama":
        model = os.environ.get("SMARTSPEND_LLM_MODEL", "phi3:mini")
        url = os.environ.get("OLLAMA_URL", _OLLAMA_URL)
        return OllamaProvider(model=model, url=url)

    if provider == "gemini":
        api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
        if not api_key:
            raise RuntimeError("GEMINI_API_KEY not set")
        model = os.environ.get("SMARTSPEND_LLM_MODEL", "gemini-2.5-flash")
        return GeminiProvider(model=model, api_key=api_key)

    if provider != "huggingface":
        raise RuntimeError(f"Unknown LLM provider '{provider}'")

    # Default → Hugging Face
    token = os.environ.get("HF_API_TOKEN")
    model = os.environ.get("SMARTSPEND_LLM_MODEL", "Qwen/Qwen3-32B")
    return HuggingFaceProvider(model=model, token=token)
