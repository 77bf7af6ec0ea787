"""
# services/llm.py
# - Hybrid client: online through an OpenAI-compatible endpoint (Groq or OpenAI) when a key
#   is present, offline otherwise (generate raises LLMUnavailableError)
"""

from __future__ import annotations
import logging
import os
from functools import lru_cache
from typing import Optional

from openai import OpenAI

from config import (
    GROQ_BASE_URL, LLM_JSON_MODE, LLM_MAX_TOKENS, LLM_MODEL_GROQ, LLM_MODEL_OPENAI,
    LLM_TEMPERATURE, LLM_TIMEOUT_S,
)
from infra.env_loader import active_provider, ensure_api_keys_loaded, is_llm_ready

logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    pass


def openai_available() -> bool:
    ensure_api_keys_loaded()
    return is_llm_ready()


@lru_cache(maxsize=2)
def _openai_client(provider: str) -> Optional[OpenAI]:
    # keys already injected by env_loader
    if provider == "groq":
        return OpenAI(api_key=os.environ["GROQ_API_KEY"], base_url=GROQ_BASE_URL)
    if provider == "openai":
        return OpenAI(api_key=os.environ["OPENAI_API_KEY"])
    return None


def default_model(provider: Optional[str]) -> str:
    return LLM_MODEL_GROQ if provider == "groq" else LLM_MODEL_OPENAI


class LLMClient:
    def __init__(self, model: str | None = None, temperature: float | None = None, json_mode: bool | None = None):
        self.provider = active_provider() if openai_available() else None
        self.client = _openai_client(self.provider) if self.provider else None
        self._online = self.client is not None
        self.model = model or os.getenv("LLM_MODEL") or default_model(self.provider)
        if temperature is not None:
            self.temperature = float(temperature)
        else:
            try:
                self.temperature = float(os.getenv("LLM_TEMPERATURE", str(LLM_TEMPERATURE)))
            except ValueError:
                self.temperature = LLM_TEMPERATURE
        if json_mode is None:
            json_mode = os.getenv("LLM_JSON_MODE", str(LLM_JSON_MODE)).lower() in ("1", "true", "yes")
        self.json_mode = bool(json_mode)

    @property
    def online(self) -> bool:
        return self._online

    def generate(self, system: str, user: str, tools=None, *, model: str | None = None,
                 max_tokens: int | None = None, force_json: bool | None = None) -> str:
        if not self._online or self.client is None:
            raise LLMUnavailableError("LLM not available: no API key configured (set GROQ_API_KEY or OPENAI_API_KEY).")
        use_model = model or self.model
        kwargs = dict(
            model=use_model,
            temperature=float(self.temperature),
            messages=[{"role": "system", "content": system}, {"role": "user", "content": user}],
            max_tokens=int(max_tokens or LLM_MAX_TOKENS),
        )
        if tools:
            kwargs["tools"] = tools
            first_tool = (tools[0].get("function") or {}).get("name")
            if first_tool:
                kwargs["tool_choice"] = {"type": "function", "function": {"name": first_tool}}
        else:
            use_force_json = self.json_mode if force_json is None else bool(force_json)
            if use_force_json:
                kwargs["response_format"] = {"type": "json_object"}

        logger.debug("LLM call provider=%s model=%s tools=%s", self.provider, use_model, bool(tools))
        resp = self.client.chat.completions.create(**kwargs, timeout=LLM_TIMEOUT_S)
        msg = resp.choices[0].message
        tool_calls = getattr(msg, "tool_calls", None)
        if tool_calls:
            args = getattr(tool_calls[0].function, "arguments", None)
            return (args or "").strip()
        return (msg.content or "").strip()
