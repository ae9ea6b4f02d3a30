from __future__ import annotations

from typing import Any, Optional, Tuple


def dig(obj: Any, *path: Any, default: Any = None) -> Any:
    """
    Walk nested dicts/lists along `path` (str keys, int indexes).
    Returns `default` as soon as a step is missing or has the wrong shape.
    """
    cur = obj
    for step in path:
        if isinstance(step, int):
            if not isinstance(cur, list) or not (-len(cur) <= step < len(cur)):
                return default
            cur = cur[step]
        else:
            if not isinstance(cur, dict):
                return default
            cur = cur.get(step)
        if cur is None:
            return default
    return cur


def text_or_none(val: Any) -> Optional[str]:
    if val is None:
        return None
    s = str(val).strip()
    return s or None


def split_timestamp(ts: Any) -> Tuple[Optional[str], Optional[str]]:
    """'2025-10-02T08:36:00+02:00' -> ('2025-10-02', '08:36:00'). Offsets are dropped."""
    s = text_or_none(ts)
    if not s:
        return None, None
    if "T" not in s:
        return s, None
    day, clock = s.split("T", 1)
    for sep in ("+", "-", "Z"):
        if sep in clock:
            clock = clock.split(sep, 1)[0]
    return day or None, clock or None
