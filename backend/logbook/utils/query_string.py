# logbook/utils/query_string.py
"""
Bracket-notation query string decoding.

    filter[created][from]=1&filter[tag][values]=1,2&page[limit]=10

becomes

    {"filter": {"created": {"from": "1"}, "tag": {"values": "1,2"}},
     "page": {"limit": "10"}}

Rules:
- Keys that are not well-formed bracket paths are kept verbatim as top-level keys.
- A repeated key keeps its last value.
- When a path is used both as a scalar and as an object, the object wins.
- Key order follows first appearance in the query string (sort keys depend on it).
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Tuple

_KEY_RE = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_SEGMENT_RE = re.compile(r"\[([^\[\]]*)\]")


def split_key(key: str) -> List[str]:
    """`filter[created][from]` -> ["filter", "created", "from"]."""
    match = _KEY_RE.match(key)
    if not match:
        return [key]
    return [match.group(1)] + _SEGMENT_RE.findall(match.group(2))


def decode_nested(pairs: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    root: Dict[str, Any] = {}
    for raw_key, value in pairs:
        path = split_key(raw_key)
        node = root
        for segment in path[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child

        leaf = path[-1]
        if isinstance(node.get(leaf), dict):
            continue
        node[leaf] = value
    return root
