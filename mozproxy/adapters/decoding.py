"""
Strict JSON decoding for upstream response bodies
"""

import json
from typing import Any, Union


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Out of range float value {name} is not valid JSON")


def strict_json_loads(content: Union[str, bytes]) -> Any:
    """
    Decode a JSON document, rejecting ``NaN``, ``Infinity`` and ``-Infinity``.

    The stdlib decoder accepts those literals, but they cannot be rendered
    back out in a response body.
    """
    return json.loads(content, parse_constant=_reject_constant)
