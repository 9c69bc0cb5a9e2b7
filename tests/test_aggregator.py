"""Tests for the statistics aggregator."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from badge_stats.github.client import GitHubClient
from badge_stats.stats import Stats, StatsUnavailableError


def _node(name, stars=0, forks=0, langs=None):
    return {
        "nameWithOwner": name,
        "stargazers": {"totalCount": stars},
        "forkCount": forks,
        "languages": {
            "edges": [
                {"size": size, "node": {"name": lang, "color": color}}
                for lang, size, color in (langs or [])
            ]
        },
    }


def _source(nodes, has_next=False, cursor=None):
    return {"pageInfo": {"hasNextPage": has_next, "endCursor": cursor}, "nodes": nodes}


def _page(owned, contrib=None, name="Alice", login="alice"):
    viewer = {"login": login, "name": name, "repositories": owned}
    if contrib is not None:
        viewer["repositoriesContributedTo"] = contrib
    return {"data": {"viewer": viewer}}


def _client(pages=(), rest=None) -> AsyncMock:
    client = AsyncMock(spec=GitHubClient)
    client.query.side_effect = list(pages)
    if rest is not None:
        client.query_rest.side_effect = rest
    return client


@pytest.fixture
def two_pages():
    return [
        _page(
            _source([_node("u/a", 5, 1, [("TypeScript", 100, "#3178c6")])], True, "o1"),
            _source([], False, None),
        ),
        _page(
            _source(
                [_node("u/b", 3, 0, [("TypeScript", 50, "#3178c6"), ("JavaScript", 50, "#f1e05a")])],
                False,
                "o2",
            ),
            _source([], False, None),
        ),
    ]


@pytest.mark.asyncio
async def test_aggregates_across_pages(two_pages):
    client = _client(two_pages)
    s = Stats("alice", client)

    assert await s.get_stargazers() == 8
    assert await s.get_forks() == 1
    assert await s.get_repos() == {"u/a", "u/b"}
    languages = await s.get_languages()
    assert languages["TypeScript"].size == 150
    assert languages["TypeScript"].occurrences == 2
    assert languages["TypeScript"].color == "#3178c6"
    assert languages["JavaScript"].size == 50
    assert await s.get_languages_proportional() == {"TypeScript": 75.0, "JavaScript": 25.0}
    assert await s.get_name() == "Alice"
    assert client.query.await_count == 2


@pytest.mark.asyncio
async def test_second_page_uses_first_page_cursor(two_pages):
    client = _client(two_pages)
    await Stats("alice", client).get_stats()

    first_query = client.query.await_args_list[0].args[0]
    second_query = client.query.await_args_list[1].args[0]
    assert first_query.count("after: null") == 2
    assert 'after: "o1"' in second_query


@pytest.mark.asyncio
async def test_finished_source_keeps_its_last_cursor():
    pages = [
        _page(_source([_node("u/a")], False, "o1"), _source([_node("x/c1")], True, "c1")),
        _page(_source([], False, None), _source([_node("x/c2")], True, "c2")),
        _page(_source([], False, None), _source([_node("x/c3")], False, "c3")),
    ]
    client = _client(pages)
    s = Stats("alice", client)

    assert await s.get_repos() == {"u/a", "x/c1", "x/c2", "x/c3"}
    third_query = client.query.await_args_list[2].args[0]
    assert 'after: "o1"' in third_query
    assert 'after: "c2"' in third_query


@pytest.mark.parametrize(
    "split",
    [
        [["u/1", "u/2", "u/3", "u/4", "u/5"]],
        [["u/1", "u/2"], ["u/3", "u/4", "u/5"]],
        [["u/1"], ["u/2"], ["u/3"], ["u/4"], ["u/5"]],
        [["u/1", "u/2", "u/3"], ["u/3", "u/4"], ["u/1", "u/5"]],
    ],
)
@pytest.mark.asyncio
async def test_page_boundaries_do_not_change_repo_set(split):
    pages = [
        _page(
            _source([_node(n, stars=1) for n in names], i < len(split) - 1, f"o{i}"),
            _source([_node(n, stars=1) for n in names[:1]], False, None),
        )
        for i, names in enumerate(split)
    ]
    s = Stats("alice", _client(pages))

    assert len(await s.get_repos()) == 5
    assert await s.get_stargazers() == 5


@pytest.mark.asyncio
async def test_excluded_repo_never_counted():
    shared = _node("u/secret", 100, 50, [("Go", 1000, "#00ADD8")])
    pages = [
        _page(_source([shared, _node("u/a", 1, 0, [("Python", 10, None)])], True, "o1"), _source([shared])),
        _page(_source([shared], False, "o2"), _source([shared])),
    ]
    s = Stats("alice", _client(pages), exclude_repos={"u/secret"})

    assert await s.get_repos() == {"u/a"}
    assert await s.get_stargazers() == 1
    assert await s.get_forks() == 0
    assert "Go" not in await s.get_languages()


@pytest.mark.asyncio
async def test_excluded_language_is_case_insensitive():
    pages = [
        _page(_source([_node("u/b", 0, 0, [("TypeScript", 50, None), ("JavaScript", 50, None)])]), _source([])),
    ]
    s = Stats("alice", _client(pages), exclude_langs={"javascript"})

    languages = await s.get_languages()
    assert list(languages) == ["TypeScript"]
    assert languages["TypeScript"].prop == pytest.approx(100.0)


@pytest.mark.asyncio
async def test_percentages_sum_to_one_hundred():
    langs = [("A", 7, None), ("B", 13, None), ("C", 101, None), ("D", 3, None)]
    pages = [
        _page(_source([_node("u/x", langs=langs), _node("u/y", langs=langs[1:3])]), _source([])),
    ]
    s = Stats("alice", _client(pages))

    props = await s.get_languages_proportional()
    assert sum(props.values()) == pytest.approx(100.0, abs=1e-6)


@pytest.mark.asyncio
async def test_zero_sized_languages_get_zero_percent():
    pages = [_page(_source([_node("u/x", langs=[("Markdown", 0, None)])]), _source([]))]
    s = Stats("alice", _client(pages))
    assert await s.get_languages_proportional() == {"Markdown": 0.0}


@pytest.mark.asyncio
async def test_ignore_forked_repos_skips_contributed_source():
    pages = [
        _page(_source([_node("u/a", 2)], False, "o1"), _source([_node("x/contrib", 40)], True, "c1")),
    ]
    client = _client(pages)
    s = Stats("alice", client, ignore_forked_repos=True)

    assert await s.get_repos() == {"u/a"}
    assert await s.get_stargazers() == 2
    assert client.query.await_count == 1
    assert "repositoriesContributedTo" not in client.query.await_args.args[0]


@pytest.mark.asyncio
async def test_results_are_memoized(two_pages):
    client = _client(two_pages)
    s = Stats("alice", client)

    await s.get_stargazers()
    await s.get_forks()
    await s.get_languages()
    await s.get_repos()
    await s.get_name()
    assert client.query.await_count == 2


@pytest.mark.asyncio
async def test_name_falls_back_to_login():
    pages = [_page(_source([]), _source([]), name=None, login="alice")]
    s = Stats("alice", _client(pages))
    assert await s.get_name() == "alice"


@pytest.mark.asyncio
async def test_missing_name_is_fatal_but_totals_degrade_to_zero():
    client = _client([{}])
    s = Stats("alice", client)

    assert await s.get_stargazers() == 0
    assert await s.get_repos() == set()
    with pytest.raises(StatsUnavailableError):
        await s.get_name()
    assert client.query.await_count == 1


@pytest.mark.asyncio
async def test_malformed_nodes_are_skipped():
    owned = {
        "pageInfo": {"hasNextPage": "yes", "endCursor": 5},
        "nodes": [None, {"stargazers": {"totalCount": 9}}, _node("u/ok", 2), "junk"],
    }
    s = Stats("alice", _client([_page(owned)]))
    assert await s.get_repos() == {"u/ok"}
    assert await s.get_stargazers() == 2


@pytest.mark.asyncio
async def test_total_contributions_sums_years():
    client = _client([
        {"data": {"viewer": {"contributionsCollection": {"contributionYears": [2023, 2022]}}}},
        {
            "data": {
                "viewer": {
                    "year2023": {"contributionCalendar": {"totalContributions": 25}},
                    "year2022": {"contributionCalendar": {"totalContributions": 10}},
                }
            }
        },
    ])
    s = Stats("alice", client)

    assert await s.get_total_contributions() == 35
    assert await s.get_total_contributions() == 35
    assert client.query.await_count == 2
    by_year_query = client.query.await_args_list[1].args[0]
    assert 'from: "2022-01-01T00:00:00Z"' in by_year_query
    assert 'to: "2024-01-01T00:00:00Z"' in by_year_query


@pytest.mark.asyncio
async def test_zero_contributions_is_cached():
    client = _client([{"data": {"viewer": {"contributionsCollection": {"contributionYears": []}}}}])
    s = Stats("alice", client)

    assert await s.get_total_contributions() == 0
    assert await s.get_total_contributions() == 0
    assert client.query.await_count == 1


@pytest.mark.asyncio
async def test_lines_changed_counts_only_the_user():
    pages = [_page(_source([_node("u/a"), _node("u/b")]), _source([]))]
    contributors = {
        "/repos/u/a/stats/contributors": [
            {"author": {"login": "Alice"}, "weeks": [{"a": 10, "d": 2}, {"a": 5, "d": 1}]},
            {"author": {"login": "bob"}, "weeks": [{"a": 1000, "d": 1000}]},
            {"author": None, "weeks": [{"a": 7, "d": 7}]},
            {"author": "alice", "weeks": [{"a": 7, "d": 7}]},
            "not-a-dict",
        ],
        "/repos/u/b/stats/contributors": {},
    }

    async def rest(path, params=None):
        return contributors[path]

    client = _client(pages, rest=rest)
    s = Stats("alice", client)

    assert await s.get_lines_changed() == (15, 3)
    assert await s.get_lines_changed() == (15, 3)
    assert client.query_rest.await_count == 2


@pytest.mark.asyncio
async def test_views_summed_across_repos():
    pages = [_page(_source([_node("u/a"), _node("u/b"), _node("u/c")]), _source([]))]
    views = {
        "/repos/u/a/traffic/views": {"count": 10, "views": [{"count": 4}, {"count": 6}]},
        "/repos/u/b/traffic/views": {"count": 1, "views": [{"count": 1}]},
        "/repos/u/c/traffic/views": {},
    }

    async def rest(path, params=None):
        return views[path]

    client = _client(pages, rest=rest)
    s = Stats("alice", client)

    assert await s.get_views() == 11
    assert await s.get_views() == 11
    assert client.query_rest.await_count == 3


@pytest.mark.asyncio
async def test_to_str_summarizes_everything(two_pages):
    pages = two_pages + [
        {"data": {"viewer": {"contributionsCollection": {"contributionYears": [2024]}}}},
        {"data": {"viewer": {"year2024": {"contributionCalendar": {"totalContributions": 1234}}}}},
    ]

    async def rest(path, params=None):
        if path.endswith("contributors"):
            return [{"author": {"login": "alice"}, "weeks": [{"a": 1000, "d": 500}]}]
        return {"views": [{"count": 3}]}

    s = Stats("alice", _client(pages, rest=rest))
    text = await s.to_str()

    assert "Name: Alice" in text
    assert "Stargazers: 8" in text
    assert "All-time contributions: 1,234" in text
    assert "Lines of code changed: 3,000" in text
    assert "Project page views: 6" in text
    assert "TypeScript: 75.0000%" in text
