"""Shared decode-or-default handling for structured model calls."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from voice_assistant.core.interfaces import StructuredModelProvider

LOGGER = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)
DefaultT = TypeVar("DefaultT")


@lru_cache(maxsize=None)
def schema_hint(schema: type[BaseModel]) -> str:
    """Return the compact JSON schema sent alongside a structured prompt."""
    return json.dumps(
        schema.model_json_schema(by_alias=True),
        ensure_ascii=False,
        separators=(",", ":"),
    )


def decode_payload(raw: Any, schema: type[SchemaT]) -> SchemaT:
    """Parse ``raw`` into ``schema``; raise ``ValueError`` when it does not fit."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        try:
            raw = json.loads(_strip_code_fence(raw))
        except json.JSONDecodeError as exc:
            raise ValueError("Structured output was not valid JSON") from exc
    if not isinstance(raw, dict):
        raise ValueError("Structured output must be a JSON object")
    return schema.model_validate(raw)


def decode_or_default(
    raw: Any, schema: type[SchemaT], default: DefaultT, *, label: str
) -> SchemaT | DefaultT:
    """Decode ``raw`` or log and return ``default`` when it does not fit."""
    try:
        return decode_payload(raw, schema)
    except (ValidationError, ValueError, TypeError) as exc:
        LOGGER.warning("Discarding malformed %s output: %s", label, exc)
        return default


async def extract_or_default(
    provider: StructuredModelProvider | None,
    *,
    system_prompt: str,
    user_prompt: str,
    schema: type[SchemaT],
    default: DefaultT,
    label: str,
    model: str | None = None,
) -> SchemaT | DefaultT:
    """Run one structured call; transport and decode failures yield ``default``."""
    if provider is None:
        LOGGER.debug("No structured model configured for %s", label)
        return default
    try:
        raw = await provider.extract_json(
            system_prompt, user_prompt, schema_hint(schema), model=model
        )
    except Exception as exc:  # noqa: BLE001 - any provider failure degrades
        LOGGER.warning("%s call failed, using default: %s", label, exc)
        return default
    return decode_or_default(raw, schema, default, label=label)


def _strip_code_fence(payload: str) -> str:
    text = payload.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


__all__ = [
    "decode_or_default",
    "decode_payload",
    "extract_or_default",
    "schema_hint",
]
