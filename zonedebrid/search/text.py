"""Title normalization shared by relevance scoring and consolidation."""

from __future__ import annotations

import re
import unicodedata

_TRADEMARK_RE = re.compile(r"[®©™℠℗]|\((?:tm|sm|r|c|p)\)")
_PUNCTUATION_RE = re.compile(r"[()\[\]{}.:,'\"_!?#/\\-]+")
_MARKER_TOKEN_RE = re.compile(r"\b(?:tm|sm|r|c|p)\b")
_WHITESPACE_RE = re.compile(r"\s+")
_SEASON_SUFFIX_RE = re.compile(r"\s*-\s*Saison\s*\d+.*$", re.IGNORECASE)
_SEASON_LINK_RE = re.compile(r"saison(\d+)", re.IGNORECASE)


def normalize_text(value: str) -> str:
    """Lowercase, strip accents/trademarks/punctuation and collapse spaces."""
    text = _TRADEMARK_RE.sub(" ", value.lower())
    text = unicodedata.normalize("NFD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _PUNCTUATION_RE.sub(" ", text)
    text = _MARKER_TOKEN_RE.sub(" ", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize(value: str) -> list[str]:
    normalized = normalize_text(value)
    return normalized.split(" ") if normalized else []


def strip_season_suffix(title: str) -> str:
    """Drop a trailing ' - Saison N' so every season shares one display title."""
    return _SEASON_SUFFIX_RE.sub("", title).strip()


def season_from_link(link: str) -> int | None:
    match = _SEASON_LINK_RE.search(link)
    if match is None:
        return None
    return int(match.group(1))
