"""OpenAI client factory shared by conversion commands."""

from __future__ import annotations

import os
from typing import Any, Optional

from dotenv import load_dotenv

try:  # Allow module import even when the OpenAI dependency is absent.
    from openai import OpenAI  # type: ignore
except ImportError:  # pragma: no cover - optional dependency guard
    OpenAI = None  # type: ignore

__all__ = ["API_KEY_ENV", "BASE_URL_ENV", "load_client"]

API_KEY_ENV = "OPENAI_API_KEY"
BASE_URL_ENV = "OPENAI_BASE_URL"


def load_client(*, base_url: Optional[str] = None) -> Any:
    """Initialize an OpenAI client from ``OPENAI_API_KEY`` (env or .env)."""
    if OpenAI is None:
        raise RuntimeError(
            "The 'openai' package is required to create a client. "
            "Install it and retry."
        )
    load_dotenv()
    api_key = os.getenv(API_KEY_ENV)
    if not api_key:
        raise RuntimeError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    kwargs: dict[str, Any] = {"api_key": api_key}
    endpoint = base_url or os.getenv(BASE_URL_ENV)
    if endpoint:
        kwargs["base_url"] = endpoint
    return OpenAI(**kwargs)
