"""Levenshtein similarity and query relevance scoring."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

from zonedebrid.search.text import normalize_text, tokenize

SHORT_TOKEN_LENGTH = 3
SHORT_TOKEN_MIN_SIMILARITY = 0.9
SHORT_TOKEN_WEIGHT = 0.8
LONG_TOKEN_MIN_SIMILARITY = 0.85
MIN_MATCHED_RATIO = 0.8
PARTIAL_MATCH_PENALTY = 0.3
PREFIX_BONUS = 0.2
NO_MATCH_SCORE = 0.01


def levenshtein_distance(a: str, b: str) -> int:
    """Unit-cost insert/delete/substitute edit distance."""
    return Levenshtein.distance(a, b)


def string_similarity(a: str, b: str) -> float:
    longer = max(len(a), len(b))
    if longer == 0:
        return 1.0
    return (longer - levenshtein_distance(a, b)) / longer


def _best_token_score(query_token: str, title_tokens: list[str]) -> float:
    best = 0.0
    for title_token in title_tokens:
        if title_token == query_token:
            return 1.0
        similarity = string_similarity(query_token, title_token)
        if len(query_token) <= SHORT_TOKEN_LENGTH:
            if similarity >= SHORT_TOKEN_MIN_SIMILARITY:
                best = max(best, similarity * SHORT_TOKEN_WEIGHT)
        elif similarity >= LONG_TOKEN_MIN_SIMILARITY:
            best = max(best, similarity)
    return best


def relevance_score(query: str, title: str) -> float:
    """
    Score how well ``title`` answers ``query`` in [0, 1].

    A verbatim normalized substring match is always 1.0. Otherwise each query
    token takes its best fuzzy match among the title tokens; short tokens must
    match almost exactly. Titles matching fewer than 80% of the query tokens
    are penalized, and titles starting with the query get a small bonus.
    """
    normalized_query = normalize_text(query)
    normalized_title = normalize_text(title)
    if normalized_query and normalized_query in normalized_title:
        return 1.0

    query_tokens = tokenize(query)
    if not query_tokens:
        return 0.0
    title_tokens = tokenize(title)

    total = 0.0
    matched = 0
    for token in query_tokens:
        score = _best_token_score(token, title_tokens)
        if score > 0:
            matched += 1
            total += score

    if matched == 0:
        return NO_MATCH_SCORE

    score = total / len(query_tokens)
    if matched / len(query_tokens) < MIN_MATCHED_RATIO:
        score *= PARTIAL_MATCH_PENALTY
    if normalized_title.startswith(normalized_query):
        score += PREFIX_BONUS
    return min(score, 1.0)


def minimum_score(query: str) -> float:
    """Relevance floor for listing candidates, tightened for longer queries."""
    token_count = len(tokenize(query))
    if token_count >= 3:
        return 0.85
    if token_count == 2:
        return 0.8
    return 0.9
