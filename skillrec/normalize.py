from __future__ import annotations

"""
Text normalization utilities used across the recommender.

These helpers perform basic cleaning (HTML stripping, unicode
normalization, whitespace collapsing), the noise stripping applied
before skill extraction, and the word tokenization used by the
content-based scorer.  Keeping normalization logic centralized here
ensures resumes, profile text and course content are treated the same
way.
"""

import re
import unicodedata
from typing import List

from bs4 import BeautifulSoup
from loguru import logger

from .config import MAX_INPUT_CHARS


# ---------------------------
# Basic helpers
# ---------------------------

def clamp_text_length(text: str, max_chars: int = MAX_INPUT_CHARS) -> str:
    """
    Hard cap on input size so a pasted document can't blow up the
    quadratic parts of extraction.
    """
    if not isinstance(text, str):
        text = str(text)
    if len(text) <= max_chars:
        return text
    logger.warning("Input of {} chars truncated to {}", len(text), max_chars)
    return text[:max_chars]


def strip_html(raw: str) -> str:
    """
    Strip HTML tags using BeautifulSoup while keeping line structure.
    If parsing fails, the input is returned unchanged to fail open
    rather than drop text.
    """
    if not raw:
        return ""
    # Fast path: if there's no '<', it's almost certainly not HTML
    if "<" not in raw:
        return raw

    try:
        soup = BeautifulSoup(raw, "lxml")
        return soup.get_text("\n")
    except Exception:
        return raw


def normalize_unicode(text: str) -> str:
    """
    Normalize weird unicode (fancy quotes, etc.) into a more stable
    form.  Using NFC keeps things mostly intact but canonicalized.
    """
    if not text:
        return ""
    return unicodedata.normalize("NFC", text)


def normalize_whitespace(text: str) -> str:
    """
    Collapse all whitespace runs into a single space and strip edges.
    """
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def basic_clean(text: str) -> str:
    """
    Clamp, strip HTML and normalize unicode.  Whitespace is left alone so
    callers can decide whether line boundaries matter to them.
    """
    if text is None:
        return ""
    text = clamp_text_length(str(text))
    text = strip_html(text)
    return normalize_unicode(text)


# ---------------------------
# Extraction preprocessing
# ---------------------------

# Anything that isn't a word char, whitespace or . , ; : ( ) - + #
NOISE_RE = re.compile(r"[^\w\s.,;:()\-+#]")
# Keeps the bullet so list items in skill sections stay separable
SECTION_NOISE_RE = re.compile(r"[^\w\s.,;:()\-+#•]")


def preprocess_for_extraction(text: str) -> str:
    """Single-line form used by the direct, pattern and linguistic passes."""
    text = basic_clean(text)
    return normalize_whitespace(NOISE_RE.sub(" ", text))


def preprocess_keep_lines(text: str) -> str:
    """
    Same noise stripping, but horizontal whitespace is collapsed per line
    and newlines survive, so section boundaries can be found.
    """
    text = basic_clean(text)
    text = SECTION_NOISE_RE.sub(" ", text).replace("\r\n", "\n").replace("\r", "\n")
    lines = [re.sub(r"[ \t\f\v]+", " ", line).strip() for line in text.split("\n")]
    return "\n".join(lines).strip()


# ---------------------------
# Tokenization
# ---------------------------

WORD_RE = re.compile(r"[A-Za-z0-9_]+")


def word_tokenize(text: str) -> List[str]:
    """
    Lowercase and split into alphanumeric runs.  Punctuation is dropped,
    so "node.js" becomes ["node", "js"] here; skill matching never uses
    this path.
    """
    if not text:
        return []
    return WORD_RE.findall(text.lower())


if __name__ == "__main__":
    sample = "Senior <b>Python</b> dev - 6+ years with Django & AWS.\n\nSkills: SQL, Docker"
    print("BASIC CLEAN:", basic_clean(sample))
    print("EXTRACTION:", preprocess_for_extraction(sample))
    print("LINES:", repr(preprocess_keep_lines(sample)))
    print("TOKENS:", word_tokenize(sample))
