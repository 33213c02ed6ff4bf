from __future__ import annotations

import json
from typing import Any, Optional


def _strip_code_fences(s: str) -> str:
    """Remove a surrounding ```json ... ``` fence, as models often add one."""
    s = s.strip()
    if not s.startswith("```"):
        return s
    newline = s.find("\n")
    inner = s[newline + 1 :] if newline != -1 else s
    end = inner.rfind("```")
    if end != -1:
        inner = inner[:end]
    return inner.strip()


def _extract_balanced_json(s: str) -> Optional[str]:
    """Return the first balanced JSON object or array found in ``s``."""
    start = next((i for i, ch in enumerate(s) if ch in "{["), None)
    if start is None:
        return None

    opener = s[start]
    closer = "}" if opener == "{" else "]"
    depth = 0
    in_string = False
    escape = False

    for i in range(start, len(s)):
        c = s[i]
        if escape:
            escape = False
            continue
        if c == "\\" and in_string:
            escape = True
            continue
        if c == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if c == opener:
            depth += 1
        elif c == closer:
            depth -= 1
            if depth == 0:
                return s[start : i + 1]
    return None


def safe_json_loads(raw: str | None) -> Any:
    """Parse LLM output that should be JSON but may carry fences or chatter.

    Raises the original ``json.JSONDecodeError`` when nothing parseable is found.
    """
    if raw is None:
        raise ValueError("safe_json_loads: input is None")

    text = _strip_code_fences(str(raw))
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        candidate = _extract_balanced_json(text)
        if candidate:
            return json.loads(candidate)
        raise
