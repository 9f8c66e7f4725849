"""Extract structured results from free-form text completions."""

import json
from typing import Any, Dict, Optional


class CompletionParseError(ValueError):
    """Raised when a completion does not contain a JSON object."""

    def __init__(self, message: str, text: str = "") -> None:
        super().__init__(message)
        self.text = text


def _balanced_end(text: str, start: int) -> Optional[int]:
    """Return the index of the brace closing the object opened at ``start``."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
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
                return index
    return None


def extract_json_object(text: Optional[str]) -> Dict[str, Any]:
    """Return the first balanced ``{...}`` span of ``text`` that decodes to a dict.

    Models wrap JSON in prose or markdown fences, so every opening brace is
    tried in order until one yields a decodable object.

    Raises:
        CompletionParseError: when no such object exists.
    """
    if not text:
        raise CompletionParseError("Empty completion", text or "")

    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end is not None:
            try:
                data = json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                data = None
            if isinstance(data, dict):
                return data
        start = text.find("{", start + 1)

    raise CompletionParseError("No JSON object found in completion", text)
