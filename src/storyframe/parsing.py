"""Parsing of loosely-structured generator replies into artifact models."""

import json
import logging
import re
from typing import Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import ResponseParseError, SchemaValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE = re.compile(r"```(?:json|JSON)?\s*\n?")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_MISSING_COLON = re.compile(r'([{,]\s*)"([^"\n]+)"\s+"')


def strip_fences(text: str) -> str:
    """Remove fenced-code markup a model may wrap its JSON in."""
    return _FENCE.sub("", text).strip()


def extract_json_block(text: str) -> str:
    """Return the first balanced ``{...}`` block in ``text``.

    Braces that appear inside JSON strings are ignored.

    Raises:
        ResponseParseError: If no complete object is present.
    """
    cleaned = strip_fences(text or "")
    start = cleaned.find("{")
    if start == -1:
        raise ResponseParseError("response not parseable: no JSON object found")

    depth = 0
    in_string = False
    escaped = False
    for i, char in enumerate(cleaned[start:], start):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return cleaned[start:i + 1]

    raise ResponseParseError("response not parseable: unbalanced JSON object")


def repair_json(text: str) -> str:
    """Fix the formatting slips generators commonly make.

    Handles trailing commas before a closing bracket and a missing colon
    between a key and its string value (``"title" "x"``).
    """
    fixed = _MISSING_COLON.sub(r'\1"\2": "', text)
    return _TRAILING_COMMA.sub(r"\1", fixed)


def load_json_object(text: str) -> dict:
    """Extract and decode the JSON object in a reply."""
    block = extract_json_block(text)
    try:
        data = json.loads(block)
    except json.JSONDecodeError:
        try:
            data = json.loads(repair_json(block))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON: {e}")
            logger.debug(f"Raw block: {block[:500]}")
            raise ResponseParseError(f"Invalid JSON in response: {e}") from e
    if not isinstance(data, dict):
        raise ResponseParseError("response not parseable: top level is not an object")
    return data


def validate_payload(data: dict, model: Type[ModelT]) -> ModelT:
    """Validate decoded JSON against ``model``.

    Raises:
        SchemaValidationError: If the data does not fit the schema.
    """
    try:
        return model.model_validate(data)
    except ValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        logger.error(f"{model.__name__} failed schema validation: {len(errors)} error(s)")
        raise SchemaValidationError(
            f"could not validate against schema {model.__name__}",
            details=[
                {"loc": ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
                for err in errors
            ],
        ) from e


def parse_reply(text: str, model: Type[ModelT]) -> ModelT:
    """Parse a generator reply into ``model``."""
    return validate_payload(load_json_object(text), model)
