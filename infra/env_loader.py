from __future__ import annotations
import logging
import os
from typing import Optional

from dotenv import dotenv_values

ENV_FILES = (".env", "API_KEY.env")

# Synonym keys -> canonical key
_KEY_ALIASES = {
    "GROQ_API_KEY": ["GROQ_API_KEY", "GROQ_KEY", "GROQ_TOKEN", "GROQAPIKEY"],
    "OPENAI_API_KEY": ["OPENAI_API_KEY", "OPENAI_KEY", "OPENAI_TOKEN", "OPENAIAPIKEY", "OPENAI_APIKEY"],
}


def _normalize_env(d: dict) -> None:
    # Fill a missing canonical key from the first non-empty synonym
    for canonical, aliases in _KEY_ALIASES.items():
        if d.get(canonical):
            continue
        for k in aliases:
            if d.get(k):
                d[canonical] = d[k]
                break


def ensure_api_keys_loaded(paths=ENV_FILES) -> bool:
    """Merge the .env files into os.environ (existing variables win) and publish LLM_AVAILABLE."""
    merged: dict = {}
    for p in paths:
        if os.path.exists(p):
            merged.update({k: v for k, v in dotenv_values(p).items() if v})

    _normalize_env(merged)
    # Aliases already exported in the real environment count too
    env_view = {k: os.environ[k] for aliases in _KEY_ALIASES.values() for k in aliases if os.environ.get(k)}
    _normalize_env(env_view)
    for canonical in _KEY_ALIASES:
        if canonical in env_view and canonical not in os.environ:
            os.environ[canonical] = env_view[canonical]

    for k, v in merged.items():
        if k not in os.environ and v:
            os.environ[k] = v

    ok = bool(os.environ.get("GROQ_API_KEY") or os.environ.get("OPENAI_API_KEY"))
    os.environ["LLM_AVAILABLE"] = "1" if ok else "0"
    return ok


def is_llm_ready() -> bool:
    return os.environ.get("LLM_AVAILABLE", "0") == "1"


def active_provider() -> Optional[str]:
    if os.environ.get("GROQ_API_KEY"):
        return "groq"
    if os.environ.get("OPENAI_API_KEY"):
        return "openai"
    return None


def configure_logging(level: Optional[str] = None) -> None:
    lvl = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, lvl, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def log_llm_status(logger: Optional[logging.Logger] = None) -> None:
    logger = logger or logging.getLogger("costdash")
    provider = active_provider()
    if is_llm_ready() and provider:
        logger.info("LLM key found (%s): forecasts and anomaly reports run online.", provider)
    else:
        logger.warning("No LLM key found: forecast and anomaly detection are disabled (offline mode).")


# App boot entry point
def boot() -> bool:
    configure_logging()
    ok = ensure_api_keys_loaded()
    log_llm_status()
    return ok
