"""Markup stripping and tokenization for the index.

The rules here are deliberately byte-oriented and approximate: markup is
removed with a two-flag scanner rather than a parser, case folding is ASCII
only, and anything outside ``[A-Za-z0-9]`` separates tokens. The downstream
index depends on this exact output, so changes here change what gets indexed.
"""

import re

STOP_WORDS = frozenset({
    "a", "an", "the", "is", "are", "was", "were", "be", "been", "being",
    "have", "has", "had", "do", "does", "did", "will", "would", "shall",
    "should", "may", "might", "must", "can", "could", "am", "it", "its",
    "in", "on", "at", "to", "for", "of", "with", "by", "from", "as",
    "into", "through", "during", "before", "after", "above", "below",
    "between", "out", "off", "over", "under", "again", "further", "then",
    "once", "here", "there", "when", "where", "why", "how", "all", "both",
    "each", "few", "more", "most", "other", "some", "such", "no", "nor",
    "not", "only", "own", "same", "so", "than", "too", "very", "just",
    "because", "but", "and", "or", "if", "while", "about", "up", "that",
    "this", "these", "those", "he", "she", "they", "we", "you", "i", "me",
    "him", "her", "us", "them", "my", "your", "his", "our", "their", "what",
    "which", "who", "whom",
})

_WORD_RE = re.compile(r"[A-Za-z0-9]+")
_ASCII_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ",
    "abcdefghijklmnopqrstuvwxyz",
)


def _opens_raw_element(html: str, start: int) -> bool:
    """Whether the element name at ``start`` is script or style."""
    return (
        html[start:start + 6].lower() == "script"
        or html[start:start + 5].lower() == "style"
    )


def strip_html(html: str) -> str:
    """Remove tags and script/style bodies, replacing each tag with a space.

    Unclosed ``<`` swallows the rest of the input. Entities are left as-is.
    A closing tag only needs to start with ``</script`` or ``</style`` to end
    a raw element.
    """
    out = []
    in_tag = False
    in_script = False

    for i, ch in enumerate(html):
        if not in_tag and ch == "<":
            if _opens_raw_element(html, i + 1):
                in_script = True
            if html[i + 1:i + 2] == "/" and _opens_raw_element(html, i + 2):
                in_script = False
            in_tag = True
        elif in_tag and ch == ">":
            in_tag = False
            out.append(" ")
        elif not in_tag and not in_script:
            out.append(ch)

    return "".join(out)


def to_lower(text: str) -> str:
    """Lowercase ASCII letters only; everything else passes through."""
    return text.translate(_ASCII_LOWER)


def is_stop_word(word: str) -> bool:
    """Check if a word is in the stop-word set."""
    return word in STOP_WORDS


def tokenize_text(text: str) -> list[str]:
    """Tokenize text that has already been through strip_html."""
    return [word for word in _WORD_RE.findall(to_lower(text)) if not is_stop_word(word)]


def tokenize(html: str) -> list[str]:
    """Strip markup, lowercase, split on alphanumeric runs, drop stop words."""
    return tokenize_text(strip_html(html))
