"""Convert text and documents into structured formats with an LLM."""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
