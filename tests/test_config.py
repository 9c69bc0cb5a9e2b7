"""Tests for configuration parsing."""

from __future__ import annotations

import pytest

from badge_stats.config import ConfigError, StatsConfig, parse_flag, parse_name_list


def test_parse_name_list():
    assert parse_name_list("alice/a, alice/b,,  alice/c ") == {"alice/a", "alice/b", "alice/c"}
    assert parse_name_list("") == set()
    assert parse_name_list(None) == set()


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, False),
        ("", False),
        ("  ", False),
        ("false", False),
        ("FALSE ", False),
        ("true", True),
        ("1", True),
        ("yes", True),
    ],
)
def test_parse_flag(raw, expected):
    assert parse_flag(raw) is expected


def test_config_normalizes_iterables():
    config = StatsConfig(
        username="alice",
        access_token="token",
        exclude_repos=["alice/a", "alice/a"],
        exclude_langs=("HTML",),
    )
    assert config.exclude_repos == {"alice/a"}
    assert config.exclude_langs == {"HTML"}
    assert config.max_connections == 10
    assert config.ignore_forked_repos is False


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(username="alice", access_token=""),
        dict(username="", access_token="token"),
        dict(username="alice", access_token="token", max_connections=0),
    ],
)
def test_config_rejects_invalid_settings(kwargs):
    with pytest.raises(ConfigError):
        StatsConfig(**kwargs)
