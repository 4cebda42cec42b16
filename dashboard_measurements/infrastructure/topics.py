"""Topic pattern matching.

Patterns are written with ``/`` between segments: ``*`` matches exactly one
segment (or part of one, as in ``dev*``), ``**`` matches any number of
segments including none. Leading and trailing separators are ignored, so
``/device/**`` and ``device/**`` are the same pattern.
"""

from __future__ import annotations

import re
from functools import lru_cache


@lru_cache(maxsize=128)
def pattern_to_regex(pattern: str, separator: str = "/") -> re.Pattern[str]:
    """Compile a topic pattern for topics whose segments use ``separator``."""
    sep = re.escape(separator)
    segments = [s for s in pattern.split("/") if s]
    parts: list[str] = []
    for i, seg in enumerate(segments):
        if seg == "**":
            parts.append(".*" if i == 0 else f"(?:{sep}.*)?")
            continue
        body = re.escape(seg).replace(r"\*", f"[^{sep}]*")
        parts.append(body if i == 0 else sep + body)
    return re.compile(f"^{sep}?{''.join(parts)}{sep}?$")


def topic_matches(pattern: str, topic: str, separator: str = "/") -> bool:
    return pattern_to_regex(pattern, separator).match(topic) is not None


def pattern_to_glob(pattern: str) -> str:
    """Translate to a Redis ``PSUBSCRIBE`` glob, where ``*`` spans separators."""
    glob = "/".join(s for s in pattern.split("/") if s)
    while "**" in glob:
        glob = glob.replace("**", "*")
    return glob
