# adminkit/utils/form_data.py

import re
from typing import Any, Dict, Iterable, List, Tuple

_SEGMENT = re.compile(r"\[([^\[\]]*)\]")


def split_key(key: str) -> List[str]:
    """
    "Post[title]" => ["Post", "title"], "Post[tags][]" => ["Post", "tags", ""].
    Keys that are not well-formed stay flat.
    """
    head, bracket, rest = key.partition("[")
    if not bracket or not head:
        return [key]
    segments = _SEGMENT.findall(bracket + rest)
    if "".join(f"[{s}]" for s in segments) != bracket + rest:
        return [key]
    return [head, *segments]


def parse_form_body(items: Iterable[Tuple[str, Any]]) -> Dict[str, Any]:
    """
    Builds a nested payload from submitted (key, value) pairs.

    A trailing "[]" collects values into a list; a list replaces a scalar
    submitted earlier under the same key (the "unselect" hidden input of
    multiple selects).
    """
    data: Dict[str, Any] = {}
    for key, value in items:
        parts = split_key(key)
        append = len(parts) > 1 and parts[-1] == ""
        if append:
            parts = parts[:-1]

        node = data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child

        last = parts[-1]
        if append:
            current = node.get(last)
            if isinstance(current, list):
                current.append(value)
            else:
                node[last] = [value]
        else:
            node[last] = value
    return data
