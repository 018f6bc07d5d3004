"""Model-backed conversion: prompt shaping and the OpenAI chat call."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from uniconvert.core.ai import load_client

from .errors import PayloadTooLargeError, classify_error
from .payloads import (
    BinaryTransport,
    MAX_PAYLOAD_BYTES,
    Payload,
    TextTransport,
    Transport,
    build_transport,
)
from .targets import ConversionTarget

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 4096
EMPTY_RESULT_PLACEHOLDER = "No content was generated."

_SYSTEM_PROMPT = (
    "You are a strict document conversion engine. "
    "Your task is to transform the input data into the requested format "
    "(e.g., {label}). "
    "Do NOT include conversational filler, explanations, or markdown code "
    "fences (like ```json) UNLESS the target format is Markdown. "
    "Just output the raw converted content. "
    "If the input is an image or PDF, extract all relevant text and data "
    "structures and format them accordingly.\n\n"
    "IMPORTANT: If the input document contains tables, you MUST preserve the "
    "table structure in the target format (e.g., as Markdown tables, HTML "
    "<table> tags, CSV rows, or structured JSON arrays). Do not flatten "
    "tables into plain text unless requested."
)

_DOCX_PROMPT = (
    "\n\nFor the target format DOCX (Word), generate clean, semantic HTML5 "
    "with inline styles suitable for a document. Use <h1>, <h2> for "
    "headings, <table> for data, and <p> for text. Do not include <html> or "
    "<body> tags, just the content. This HTML will be saved as a .doc file "
    "which Word can open."
)

_DOCX_FROM_PDF_PROMPT = (
    "\n\nSince the input is a PDF, meticulously extract the text, tables, "
    "and document structure. Preserve the flow, hierarchy, and formatting "
    "(bold, italics) of the original document in the generated HTML so the "
    "converted Word document closely matches the PDF."
)

_INSTRUCTIONS_HEADER = "\n\nAdditional Instructions & Rules:\n"


class Converter(Protocol):
    """Anything that turns a payload into text in the requested format."""

    def convert(
        self,
        payload: Payload,
        target: ConversionTarget,
        instructions: Optional[str] = None,
    ) -> str:
        """Return the converted text or raise."""


def build_system_prompt(target: ConversionTarget, transport: Transport) -> str:
    prompt = _SYSTEM_PROMPT.format(label=target.label)
    if target is ConversionTarget.DOCX:
        prompt += _DOCX_PROMPT
        if (
            isinstance(transport, BinaryTransport)
            and transport.content_type == "application/pdf"
        ):
            prompt += _DOCX_FROM_PDF_PROMPT
    return prompt


def build_user_prompt(
    target: ConversionTarget,
    transport: Transport,
    instructions: Optional[str] = None,
) -> str:
    """Primary instruction text, with extra instructions appended once."""
    if isinstance(transport, BinaryTransport):
        prompt = (
            "Analyze the content of this file and convert it to "
            f"{target.label}."
        )
    elif transport.is_file:
        prompt = (
            f"Convert the following file content to {target.label}. "
            f"Filename: {transport.name}\n\nContent:\n{transport.text}"
        )
    else:
        prompt = (
            f"Convert the following text content to {target.label}:"
            f"\n\n{transport.text}"
        )
    if instructions and instructions.strip():
        prompt += _INSTRUCTIONS_HEADER + instructions.strip()
    return prompt


def build_messages(
    target: ConversionTarget,
    transport: Transport,
    instructions: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Chat messages for one conversion request."""
    prompt = build_user_prompt(target, transport, instructions)
    user_content: Any
    if isinstance(transport, TextTransport):
        user_content = prompt
    else:
        user_content = [
            _file_part(transport),
            {"type": "text", "text": prompt},
        ]
    return [
        {"role": "system", "content": build_system_prompt(target, transport)},
        {"role": "user", "content": user_content},
    ]


def _file_part(transport: BinaryTransport) -> Dict[str, Any]:
    if transport.content_type.startswith("image/"):
        return {
            "type": "image_url",
            "image_url": {"url": transport.data_url},
        }
    return {
        "type": "file",
        "file": {
            "filename": transport.name or "upload",
            "file_data": transport.data_url,
        },
    }


class OpenAIConverter:
    """Converter backed by OpenAI chat completions."""

    def __init__(
        self,
        *,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        api_base: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = client if client is not None else load_client(
            base_url=api_base
        )

    @property
    def model(self) -> str:
        return self._model

    def convert(
        self,
        payload: Payload,
        target: ConversionTarget,
        instructions: Optional[str] = None,
    ) -> str:
        if payload.size > MAX_PAYLOAD_BYTES:
            raise PayloadTooLargeError(
                f"File {payload.name or '(text)'} exceeds the 5MB upload limit."
            )
        transport = build_transport(payload)
        params: Dict[str, Any] = {
            "model": self._model,
            "messages": build_messages(target, transport, instructions),
            "temperature": self._temperature,
        }
        if "gpt-5" in self._model:
            params["max_completion_tokens"] = self._max_tokens
        else:
            params["max_tokens"] = self._max_tokens
        if target is ConversionTarget.JSON:
            params["response_format"] = {"type": "json_object"}

        try:
            response = self._client.chat.completions.create(**params)
        except Exception as exc:
            raise classify_error(exc) from exc

        content = response.choices[0].message.content or ""
        return content if content.strip() else EMPTY_RESULT_PLACEHOLDER


__all__ = [
    "Converter",
    "OpenAIConverter",
    "DEFAULT_MODEL",
    "DEFAULT_TEMPERATURE",
    "DEFAULT_MAX_TOKENS",
    "EMPTY_RESULT_PLACEHOLDER",
    "build_messages",
    "build_system_prompt",
    "build_user_prompt",
]
