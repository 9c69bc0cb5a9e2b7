"""Tests for payload models and the memo slot."""

from __future__ import annotations

import pytest

from badge_stats.models import FieldState, Memo, Repository, RepositoryPage


def test_repository_from_payload_defaults_missing_fields():
    repo = Repository.from_payload({
        "nameWithOwner": "alice/a",
        "stargazers": None,
        "forkCount": "3",
        "languages": {"edges": [{"size": 10, "node": {"name": None}}, "junk"]},
    })
    assert repo.name_with_owner == "alice/a"
    assert repo.stargazers == 0
    assert repo.fork_count == 0
    assert [(lang.name, lang.size, lang.color) for lang in repo.languages] == [("Other", 10, None)]


def test_repository_without_name_is_dropped():
    assert Repository.from_payload({"forkCount": 1}) is None
    assert Repository.from_payload(None) is None


def test_repository_page_from_missing_payload():
    page = RepositoryPage.from_payload(None)
    assert page.nodes == []
    assert page.page_info.has_next_page is False
    assert page.page_info.end_cursor is None


def test_memo_distinguishes_empty_from_unset():
    memo: Memo[int] = Memo()
    assert memo.state is FieldState.UNSET
    with pytest.raises(LookupError):
        memo.value

    assert memo.set(0) == 0
    assert memo.is_set
    assert memo.value == 0
