"""
Platform drivers.

Modules:
    github: Bisected repository search (GithubDriver, GithubSearchClient)
    gitlab: Most starred projects, parallel pages (GitlabDriver)
    bitbucket: Cursor-paginated repositories (BitbucketDriver)
    pypi: Bulk and incremental PyPI strategies
    npm: Registry replication feed (NpmDriver)
"""

__all__ = [
    "github",
    "gitlab",
    "bitbucket",
    "pypi",
    "npm",
]
