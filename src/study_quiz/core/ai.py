"""OpenAI client helpers."""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from openai import OpenAI

__all__ = ["API_KEY_ENV", "load_client", "key_from_env"]

API_KEY_ENV = "OPENAI_API_KEY"


def key_from_env() -> str | None:
    """Return the API key from the environment (or a ``.env`` file)."""
    load_dotenv()
    value = os.getenv(API_KEY_ENV, "").strip()
    return value or None


def load_client(
    api_key: str | None = None,
    *,
    api_base: str | None = None,
    timeout: float | None = None,
) -> Any:
    """Initialize an OpenAI client for ``api_key`` or the environment key."""
    key = (api_key or "").strip() or key_from_env()
    if not key:
        raise RuntimeError(
            f"{API_KEY_ENV} not found in environment. Set it, add it to .env "
            "or pass a key explicitly."
        )
    kwargs: dict[str, Any] = {"api_key": key}
    if api_base:
        kwargs["base_url"] = api_base
    if timeout is not None:
        kwargs["timeout"] = timeout
    return OpenAI(**kwargs)
