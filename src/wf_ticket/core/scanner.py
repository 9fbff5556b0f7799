"""Recognise and strip ``#WF-XXXXXXXX`` tags in task titles.

Two independent contracts:

* ``match_canonical`` reads the trailing canonical tag, ``#WF-`` followed by
  exactly eight digits at the very end of the title.
* ``strip_loose`` removes every WF-style tag anywhere in the title, including
  legacy and malformed forms (``#wf 12``, ``# WF_0042``), before a fresh
  canonical tag is appended.
"""

import re
from typing import List, Optional

#: Prefix written in front of every canonical token
CANONICAL_PREFIX = "#WF-"

# Trailing canonical tag; trailing whitespace is ignored for the anchor.
# Digits are ASCII only; \d in a str pattern also accepts other scripts.
CANONICAL_RE = re.compile(r"#WF-([0-9]{8})\s*$", re.IGNORECASE)

# Legacy/malformed tags anywhere in the text.
LOOSE_RE = re.compile(r"#\s*wf[-\s_]?([0-9]{1,8})\b", re.IGNORECASE)

_WHITESPACE_RE = re.compile(r"\s+")


def squash_spaces(text: Optional[str]) -> str:
    """Collapse whitespace runs to single spaces and trim both ends."""
    return _WHITESPACE_RE.sub(" ", str(text or "")).strip()


def match_canonical(text: Optional[str]) -> Optional[str]:
    """Return the 8-digit token of the trailing canonical tag, if any.

    Example:
        >>> match_canonical("Ship it #WF-00041200")
        '00041200'
        >>> match_canonical("#WF-00041200 is not trailing") is None
        True
    """
    match = CANONICAL_RE.search(text or "")
    if match is None:
        return None
    return match.group(1)


def find_loose(text: Optional[str]) -> List[str]:
    """Return the digits of every loose WF tag in ``text``, in order."""
    return LOOSE_RE.findall(text or "")


def strip_loose(text: Optional[str]) -> str:
    """Remove every WF-style tag from ``text`` and normalise spacing.

    Example:
        >>> strip_loose("Task #wf-123 extra #WF_45678901 done")
        'Task extra done'
    """
    return squash_spaces(LOOSE_RE.sub("", text or ""))


def format_tag(token: str) -> str:
    """Render ``token`` as a canonical tag."""
    return f"{CANONICAL_PREFIX}{token}"
