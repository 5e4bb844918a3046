"""GitHub token lookup for the CLI.

``load_config`` already copies GITHUB_TOKEN into ``config["github_token"]``.
Only when that is empty do we ask a logged-in GitHub CLI for its token.
"""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)

GH_TIMEOUT = 5


class GitHubTokenError(Exception):
    """No token in the environment and the gh CLI could not provide one."""


def gh_cli_token(timeout: float = GH_TIMEOUT) -> str:
    """Return the token of the current ``gh auth login`` session.

    Raises GitHubTokenError carrying the reason gh gave no token.
    """
    try:
        result = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError:
        raise GitHubTokenError("gh CLI is not installed")
    except subprocess.TimeoutExpired:
        raise GitHubTokenError(f"`gh auth token` timed out after {timeout}s")

    token = (result.stdout or "").strip()
    if result.returncode != 0 or not token:
        detail = (result.stderr or "").strip() or f"exit status {result.returncode}"
        raise GitHubTokenError(f"`gh auth token` failed: {detail}")
    return token


def resolve_github_token(config: dict) -> str:
    token = config.get("github_token")
    if token:
        return token
    logger.debug("GITHUB_TOKEN not set; asking the gh CLI for a token.")
    return gh_cli_token()
