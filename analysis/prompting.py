from __future__ import annotations
import json
import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional

from config import LLM_MAX_RETRIES, LLM_RETRY_PAUSE_S

logger = logging.getLogger(__name__)

GenerateFn = Callable[..., str]


class LLMResponseError(ValueError):
    """The model never produced a JSON object with the expected keys."""


def safe_load(s: str) -> Any:
    """Strict JSON loader: code fences removed, then plain json.loads (no surrounding prose)."""
    text = (s or "").strip()
    text = re.sub(r"^\s*```(?:json|JSON)?\s*\n", "", text)
    text = re.sub(r"\n\s*```\s*$", "", text)
    return json.loads(text.strip())


def tool_schema(name: str, description: str, properties: Dict[str, str]) -> dict:
    """Function-call schema whose properties are all required strings."""
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": {k: {"type": "string", "description": v} for k, v in properties.items()},
                "required": list(properties),
            },
        },
    }


def call_json_flow(
    *,
    system: str,
    user: str,
    tool: dict,
    generate_fn: Optional[GenerateFn],
    model: Optional[str] = None,
    max_tokens: Optional[int] = None,
    max_retries: int = LLM_MAX_RETRIES,
    retry_pause_s: float = LLM_RETRY_PAUSE_S,
) -> Dict[str, str]:
    """
    One prompt round-trip: generate -> strict JSON -> required keys present.
    Retries up to `max_retries` times; the last failure is raised as LLMResponseError.
    """
    if generate_fn is None:
        raise RuntimeError("generate_fn not provided (LLM dependency must be injected)")
    required: List[str] = tool["function"]["parameters"]["required"]
    name = tool["function"]["name"]
    last_err: Optional[Exception] = None

    for attempt in range(max_retries + 1):
        try:
            raw = generate_fn(
                system=system, user=user, model=model,
                max_tokens=max_tokens, tools=[tool], force_json=False,
            )
            obj = safe_load(raw)
            if not isinstance(obj, dict):
                raise ValueError(f"expected a JSON object, got {type(obj).__name__}")
            missing = [k for k in required if k not in obj]
            if missing:
                raise ValueError(f"missing keys: {missing}")
            return {k: ("" if obj[k] is None else str(obj[k])) for k in required}
        except Exception as e:
            last_err = e
            logger.warning("%s: attempt %d/%d failed: %s", name, attempt + 1, max_retries + 1, e)
            if attempt < max_retries:
                time.sleep(retry_pause_s)

    raise LLMResponseError(f"{name}: model failed to produce valid JSON after retries. Details: {last_err}")
