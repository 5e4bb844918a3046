from __future__ import annotations

from typing import Protocol

from github import Github

from prverdict_core.models import ChangedFile, PullRequestInfo


class PullRequestSource(Protocol):
    """What the review pipeline needs from the code host."""

    def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequestInfo: ...

    def list_changed_files(self, owner: str, repo: str, number: int) -> list[ChangedFile]: ...

    def create_review_comment(self, owner: str, repo: str, number: int, body: str) -> None: ...


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_diff(pr):
    return pr.get_files()


def to_changed_file(file) -> ChangedFile:
    """Convert a PyGithub File into our immutable ChangedFile."""
    return ChangedFile(
        filename=file.filename,
        additions=file.additions or 0,
        deletions=file.deletions or 0,
        status=file.status,
        patch=file.patch,
    )


class GitHubPullRequestSource:
    """PullRequestSource backed by PyGithub.

    Every call is a single request; GithubException propagates to the caller.
    """

    def __init__(self, token: str | None = None, client: Github | None = None):
        self._github = client if client is not None else Github(token)

    def _pull(self, owner: str, repo: str, number: int):
        return get_pull(self._github.get_repo(f"{owner}/{repo}"), number)

    def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequestInfo:
        pr = self._pull(owner, repo, number)
        return PullRequestInfo(title=pr.title or "", body=pr.body or "", number=pr.number)

    def list_changed_files(self, owner: str, repo: str, number: int) -> list[ChangedFile]:
        pr = self._pull(owner, repo, number)
        return [to_changed_file(f) for f in get_diff(pr)]

    def create_review_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        pr = self._pull(owner, repo, number)
        pr.create_review(body=body, event="COMMENT")
