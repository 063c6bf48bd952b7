"""Duplicate-issue heuristic.

A cheap, high-recall lexical filter used to warn while a new issue is being
typed. It is advisory only: it never blocks creation.

Matching uses substring containment rather than token equality, so short
terms also match inside longer words ("log" hits "login"). That trade-off is
intentional and kept.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .models import Issue

MIN_TITLE_CHARS = 3
MIN_DESCRIPTION_CHARS = 5
MIN_TERM_LENGTH = 3
MIN_TITLE_WORD_LENGTH = 4
DEFAULT_LIMIT = 5

STOP_WORDS: frozenset[str] = frozenset(
    {
        "the", "and", "for", "are", "but", "not", "you", "all", "can",
        "her", "was", "one", "our", "out", "day", "get", "has", "him",
        "his", "how", "its", "may", "new", "now", "old", "see", "two",
        "who", "way", "use", "she", "had", "did", "say", "man", "boy",
        "let", "put", "too",
    }
)  # fmt: skip


def should_check(title: str, description: str) -> bool:
    """True when the input carries enough signal to bother searching."""
    return len(title) >= MIN_TITLE_CHARS or len(description) >= MIN_DESCRIPTION_CHARS


def _tokens(text: str) -> list[str]:
    return text.lower().split()


def search_terms(title: str, description: str) -> set[str]:
    return {
        word
        for word in _tokens(title) + _tokens(description)
        if len(word) >= MIN_TERM_LENGTH and word not in STOP_WORDS
    }


def _is_similar(issue: Issue, terms: Iterable[str], title_words: Sequence[str]) -> bool:
    issue_title = issue.title.lower()
    issue_desc = issue.description.lower()
    match_count = sum(1 for term in terms if term in issue_title or term in issue_desc)
    title_similarity = any(
        len(word) >= MIN_TITLE_WORD_LENGTH and (word in issue_title or word in issue_desc)
        for word in title_words
    )
    return match_count >= 1 or title_similarity


def find_similar_issues(
    title: str,
    description: str,
    existing: Iterable[Issue],
    *,
    limit: int = DEFAULT_LIMIT,
) -> list[Issue]:
    """Return up to ``limit`` issues from ``existing`` that look like duplicates.

    ``existing`` is expected in the store's natural (newest first) order; the
    result preserves it.
    """
    if not should_check(title, description):
        return []
    terms = search_terms(title, description)
    if not terms:
        return []
    title_words = _tokens(title)
    similar: list[Issue] = []
    for issue in existing:
        if len(similar) >= limit:
            break
        if _is_similar(issue, terms, title_words):
            similar.append(issue)
    return similar


__all__ = [
    "DEFAULT_LIMIT",
    "STOP_WORDS",
    "find_similar_issues",
    "search_terms",
    "should_check",
]
