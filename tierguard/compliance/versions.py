from __future__ import annotations

import functools
import re
from typing import List

_COMPONENT_RE = re.compile(r"\s*([0-9]+)\s*")


def _parse_component(part: str) -> int:
    m = _COMPONENT_RE.fullmatch(part)
    if m is None:
        return 0
    try:
        return int(m.group(1))
    except ValueError:
        # digit run longer than the interpreter's int conversion limit
        return 0



def version_parts(version: str) -> List[int]:
    """Split a dotted version into integers; unparsable components become 0."""
    return [_parse_component(p) for p in (version or "").split(".")]


def compare_versions(a: str, b: str) -> int:
    """
    Three-way comparison of dotted version strings.

    Shorter versions are padded with trailing zeros, so "1.2" == "1.2.0".
    Returns the signed difference of the first differing component, or 0.
    Never raises.
    """
    pa = version_parts(a)
    pb = version_parts(b)
    width = max(len(pa), len(pb))
    pa += [0] * (width - len(pa))
    pb += [0] * (width - len(pb))
    for x, y in zip(pa, pb):
        if x != y:
            return x - y
    return 0


def is_ahead(a: str, b: str) -> bool:
    return compare_versions(a, b) > 0


version_key = functools.cmp_to_key(compare_versions)
