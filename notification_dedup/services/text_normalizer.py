"""Text normalization service for notification content.

Handles:
- Lowercasing and accent folding (Portuguese vowels and cedilla)
- Removal of everything outside ``[a-z0-9\\s]``
- HTML/markdown markup stripping
- Whitespace normalization
"""

import re
from typing import Final

_ACCENT_TABLE: Final[dict[int, str]] = str.maketrans(
    {
        **dict.fromkeys("áàãâä", "a"),
        **dict.fromkeys("éèêë", "e"),
        **dict.fromkeys("íìîï", "i"),
        **dict.fromkeys("óòõôö", "o"),
        **dict.fromkeys("úùûü", "u"),
        "ç": "c",
    }
)

_NON_ALPHANUMERIC: Final[re.Pattern[str]] = re.compile(r"[^a-z0-9\s]")
_WHITESPACE: Final[re.Pattern[str]] = re.compile(r"\s+")
_HTML_TAG: Final[re.Pattern[str]] = re.compile(r"<[^>]*>")
_EMPHASIS_MARKERS: Final[re.Pattern[str]] = re.compile(r"[*_`~]")
_BLOCK_MARKERS: Final[re.Pattern[str]] = re.compile(r"[#\-+>!]")


def collapse_whitespace(text: str) -> str:
    """Collapse whitespace runs into single spaces and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def normalize(text: str) -> str:
    """Normalize text for similarity scoring.

    Args:
        text: Raw text

    Returns:
        Lowercase ASCII-folded text with single spaces

    Example:
        >>> normalize("  Orçamento   ESTOURADO! ")
        'orcamento estourado'
    """
    text = text.lower().translate(_ACCENT_TABLE)
    text = _NON_ALPHANUMERIC.sub("", text)
    return collapse_whitespace(text)


def strip_markup(content: str) -> str:
    """Remove HTML tags and markdown markers from content.

    Tags and markers are replaced by spaces so adjacent words stay apart.

    Example:
        >>> strip_markup("<b>Meta</b> **atingida**!")
        'Meta atingida'
    """
    content = _HTML_TAG.sub(" ", content)
    content = _EMPHASIS_MARKERS.sub(" ", content)
    content = _BLOCK_MARKERS.sub(" ", content)
    return collapse_whitespace(content)
