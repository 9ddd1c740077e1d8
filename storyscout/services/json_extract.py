"""Best-effort extraction of a JSON object embedded in free-form model output.

Language models often wrap the requested JSON in prose or Markdown fences.
:func:`extract_json_object` finds the first balanced ``{…}`` span, skipping
braces that appear inside JSON string literals, and returns it unparsed.
"""

import json
from typing import Any, Dict


class NoJSONFoundError(ValueError):
    """Raised when the text contains no balanced ``{…}`` span."""


def extract_json_object(text: str) -> str:
    """Return the first balanced ``{…}`` substring of *text*.

    Raises:
        NoJSONFoundError: if no opening brace has a matching closing brace.
    """
    start = text.find("{")
    while start != -1:
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
            elif char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        # Unbalanced from this brace on; a later one may still close
        start = text.find("{", start + 1)

    raise NoJSONFoundError("No JSON object found in the response text.")


def parse_json_object(text: str) -> Dict[str, Any]:
    """Extract and decode the first JSON object in *text*.

    Raises:
        NoJSONFoundError: if there is no ``{…}`` span.
        json.JSONDecodeError: if the span is not valid JSON.
    """
    return json.loads(extract_json_object(text))
