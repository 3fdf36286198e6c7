"""
StrongPW - Variable References

Stored passwords may be parameterized, e.g. "db-${ENV}-pass" or
"%%DB_PASSWORD%%", with the real value supplied at runtime. Such strings must
never be encrypted as they are, since the actual secret is not known yet.
"""

from typing import List, Optional

UNIX_OPEN = "${"
UNIX_CLOSE = "}"
WINDOWS_OPEN = "%%"
WINDOWS_CLOSE = "%%"


def _scan(text: str, open_tag: str, close_tag: str, found: List[str]) -> None:
    pos = text.find(open_tag)
    while pos >= 0:
        start = pos + len(open_tag)
        # Names are at least one character long
        end = text.find(close_tag, start + 1)
        if end < 0:
            return
        name = text[start:end]
        if name not in found:
            found.append(name)
        pos = text.find(open_tag, end + len(close_tag))


def get_used_variables(text: Optional[str]) -> List[str]:
    """
    List the variable names referenced in a string.

    Both Unix style ${NAME} and Windows style %%NAME%% references are
    recognized. Unix references are listed first, each name only once.
    """
    found: List[str] = []
    if not text:
        return found
    _scan(text, UNIX_OPEN, UNIX_CLOSE, found)
    _scan(text, WINDOWS_OPEN, WINDOWS_CLOSE, found)
    return found


def contains_unresolved_variables(text: Optional[str]) -> bool:
    """True if the string holds at least one variable reference."""
    return bool(get_used_variables(text))
