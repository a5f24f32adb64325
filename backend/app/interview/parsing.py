from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Generic, Type, TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


@dataclass(frozen=True)
class Decoded(Generic[ModelT]):
    """Either a parsed value or a substituted fallback, never an exception."""

    value: ModelT
    fallback: bool = False
    error: str | None = None

    @property
    def parsed(self) -> bool:
        return not self.fallback


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", str(text or "")).strip()


def extract_json_dict(text: str) -> dict | None:
    text = strip_code_fences(text)
    if not text:
        return None

    try:
        parsed = json.loads(text)
        return parsed if isinstance(parsed, dict) else None
    except json.JSONDecodeError:
        pass

    fenced = re.search(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", text, re.IGNORECASE)
    if fenced:
        try:
            parsed = json.loads(fenced.group(1))
            return parsed if isinstance(parsed, dict) else None
        except json.JSONDecodeError:
            pass

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        try:
            parsed = json.loads(text[start:end + 1])
            return parsed if isinstance(parsed, dict) else None
        except json.JSONDecodeError:
            return None

    return None


def decode_model(text: str, model: Type[ModelT], fallback: ModelT) -> Decoded[ModelT]:
    data = extract_json_dict(text)
    if data is None:
        return Decoded(value=fallback, fallback=True, error="no JSON object in response")
    try:
        return Decoded(value=model.model_validate(data))
    except ValidationError as exc:
        return Decoded(value=fallback, fallback=True, error=f"{exc.error_count()} validation error(s)")
