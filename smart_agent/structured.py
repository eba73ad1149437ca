"""Structured output helpers.

An output schema is a pydantic model class or any type pydantic can
validate (``list[int]``, ``TypedDict``...).
"""

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

_FENCED_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def output_json_schema(schema: Any) -> dict[str, Any]:
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema.model_json_schema()
    return TypeAdapter(schema).json_schema()


def validate_output(schema: Any, value: Any) -> Any:
    """Validate a value against the output schema.

    Returns:
        Plain Python data (models are dumped to dicts)

    Raises:
        pydantic.ValidationError: When the value does not match
    """
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return schema.model_validate(value).model_dump()
    adapter = TypeAdapter(schema)
    return adapter.dump_python(adapter.validate_python(value))


def extract_json(text: str) -> Any:
    """Pull a JSON value out of model text.

    Tries the whole text, then a fenced code block, then the span from the
    first ``{`` or ``[`` to the matching last closer.

    Raises:
        ValueError: When no JSON value can be decoded
    """
    candidates = [text.strip()]
    match = _FENCED_RE.search(text)
    if match:
        candidates.append(match.group(1).strip())
    for opener, closer in (("{", "}"), ("[", "]")):
        start, end = text.find(opener), text.rfind(closer)
        if start != -1 and end > start:
            candidates.append(text[start : end + 1])

    for candidate in candidates:
        if not candidate:
            continue
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    raise ValueError("No JSON value found in model output")


def parse_structured_output(schema: Any, text: str) -> Any | None:
    """Parse and validate final answer text; None when it does not conform."""
    try:
        return validate_output(schema, extract_json(text))
    except (ValueError, ValidationError) as e:
        logger.warning(f"Final answer does not match the output schema: {e}")
        return None
