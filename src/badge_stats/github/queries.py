"""GraphQL documents sent to the GitHub query endpoint."""

from __future__ import annotations

from collections.abc import Iterable

_REPO_FIELDS = """
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        nameWithOwner
        stargazers {
          totalCount
        }
        forkCount
        languages(first: 10, orderBy: {field: SIZE, direction: DESC}) {
          edges {
            size
            node {
              name
              color
            }
          }
        }
      }"""


def _cursor(value: str | None) -> str:
    return "null" if value is None else f'"{value}"'


def repos_overview(
    owned_cursor: str | None = None,
    contrib_cursor: str | None = None,
    include_contributed: bool = True,
) -> str:
    """One page of owned repositories and, optionally, contributed-to ones."""
    contributed = ""
    if include_contributed:
        contributed = f"""
    repositoriesContributedTo(
      first: 100,
      includeUserRepositories: false,
      orderBy: {{field: UPDATED_AT, direction: DESC}},
      contributionTypes: [COMMIT, PULL_REQUEST, REPOSITORY, PULL_REQUEST_REVIEW],
      after: {_cursor(contrib_cursor)}
    ) {{{_REPO_FIELDS}
    }}"""
    return f"""{{
  viewer {{
    login
    name
    repositories(
      first: 100,
      orderBy: {{field: UPDATED_AT, direction: DESC}},
      isFork: false,
      after: {_cursor(owned_cursor)}
    ) {{{_REPO_FIELDS}
    }}{contributed}
  }}
}}
"""


def contrib_years() -> str:
    return """
query {
  viewer {
    contributionsCollection {
      contributionYears
    }
  }
}
"""


def contribs_by_year(year: int | str) -> str:
    year = int(year)
    return f"""
    year{year}: contributionsCollection(
      from: "{year}-01-01T00:00:00Z",
      to: "{year + 1}-01-01T00:00:00Z"
    ) {{
      contributionCalendar {{
        totalContributions
      }}
    }}"""


def all_contribs(years: Iterable[int | str]) -> str:
    by_years = "\n".join(contribs_by_year(year) for year in years)
    return f"""
query {{
  viewer {{{by_years}
  }}
}}
"""
