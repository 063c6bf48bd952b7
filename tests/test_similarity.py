from __future__ import annotations

from datetime import datetime, timedelta, timezone

from issueboard.models import Issue, Priority, Status
from issueboard.similarity import STOP_WORDS, find_similar_issues, search_terms, should_check

BASE = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _issue(issue_id: str, title: str, description: str, minutes: int = 0) -> Issue:
    return Issue(
        id=issue_id,
        title=title,
        description=description,
        priority=Priority.MEDIUM,
        status=Status.OPEN,
        created_by="someone@example.com",
        created_time=BASE + timedelta(minutes=minutes),
    )


EXISTING = [
    _issue("a", "Login button broken", "Cannot click login on mobile"),
    _issue("b", "Dark mode colours", "Contrast is too low in settings"),
]


def test_short_input_is_not_checked():
    assert not should_check("ab", "abcd")
    assert should_check("abc", "")
    assert should_check("", "abcde")
    assert find_similar_issues("lo", "butt", EXISTING) == []


def test_login_scenario_matches_shared_tokens():
    result = find_similar_issues("login bug", "button does not work", EXISTING)
    assert [i.id for i in result] == ["a"]


def test_no_overlap_returns_empty():
    result = find_similar_issues("payment gateway", "invoices missing totals", EXISTING)
    assert result == []


def test_only_stop_words_yields_no_signal():
    assert search_terms("the and for", "was has did") == set()
    assert find_similar_issues("the and for", "was has did", EXISTING) == []


def test_stop_words_are_deduplicated_set():
    assert isinstance(STOP_WORDS, frozenset)
    assert {"the", "and", "did", "too"} <= STOP_WORDS


def test_substring_containment_is_permissive():
    # "log" is shorter than a real word but still hits "login"
    result = find_similar_issues("log", "", EXISTING)
    assert [i.id for i in result] == ["a"]


def test_title_word_matches_even_when_candidate_is_mixed_case():
    result = find_similar_issues("CONTRAST", "", EXISTING)
    assert [i.id for i in result] == ["b"]


def test_results_capped_and_keep_input_order():
    existing = [_issue(f"i{n}", f"crash number {n}", "app crash", minutes=-n) for n in range(8)]
    result = find_similar_issues("crash on start", "", existing)
    assert len(result) == 5
    assert [i.id for i in result] == ["i0", "i1", "i2", "i3", "i4"]


def test_custom_limit():
    existing = [_issue(f"i{n}", "crash", "crash") for n in range(4)]
    assert len(find_similar_issues("crash", "", existing, limit=2)) == 2
