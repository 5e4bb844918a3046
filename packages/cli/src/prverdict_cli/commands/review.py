"""review command: run the AI review on a pull request."""

from __future__ import annotations

import os
import uuid

import click
from rich.console import Console
from rich.markdown import Markdown

from prverdict_core.config import PROVIDERS
from prverdict_core.models import ReviewResult, Stack
from prverdict_core.reviewer import build_agent
from prverdict_core.utils.code import parse_patterns

console = Console()


def split_repo(repo: str) -> tuple[str, str]:
    owner, sep, name = repo.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise click.BadParameter("Expected owner/name, e.g. octocat/hello-world.", param_hint="--repo")
    return owner, name


def load_cli_config(ctx: click.Context, overrides: dict) -> dict:
    """Load the config file, apply CLI overrides and resolve the GitHub token.

    Raises click.UsageError when the token is missing.
    """
    from prverdict_cli.auth import GitHubTokenError, resolve_github_token
    from prverdict_core.config import load_config

    config_path = (ctx.obj or {}).get("config_path", ".prverdict.yml")
    config = load_config(config_path, cli_overrides=overrides)

    try:
        config["github_token"] = resolve_github_token(config)
    except GitHubTokenError as e:
        raise click.UsageError(
            f"No GitHub token found ({e}). Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    return config


def write_action_outputs(result: ReviewResult, path: str | None = None) -> None:
    """Append step outputs for GitHub Actions when $GITHUB_OUTPUT is set."""
    path = path or os.environ.get("GITHUB_OUTPUT")
    if not path:
        return
    outputs = {
        "review-score": str(result.score if result.score is not None else 0),
        "recommendation": result.recommendation or "UNKNOWN",
        "issues-found": str(result.issues_count or 0),
        "review-summary": result.summary or "No summary available",
    }
    with open(path, "a", encoding="utf-8") as f:
        for name, value in outputs.items():
            delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
            f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")


def print_result(result: ReviewResult) -> None:
    if result.recommendation is None:
        console.print("[yellow]No relevant files were reviewed.[/yellow]")
        return
    console.print(f"Review score:   [bold]{result.score}/10[/bold]")
    console.print(f"Recommendation: [bold]{result.recommendation}[/bold]")
    console.print(f"Issues found:   {result.issues_count}")
    if result.stack:
        console.print(f"Stack:          {result.stack}")


@click.command("review")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option(
    "--provider",
    type=click.Choice(PROVIDERS),
    default=None,
    help="Completion provider. Overrides config file.",
)
@click.option("--model", default=None, help="Model identifier. Defaults to the provider's default model.")
@click.option("--include", "include", default=None, help="Comma-separated glob patterns of files to review.")
@click.option("--exclude", "exclude", default=None, help="Comma-separated glob patterns of files to skip.")
@click.option(
    "--stack",
    type=click.Choice([s.value for s in Stack]),
    default=None,
    help="Force the reviewer persona instead of detecting the stack.",
)
@click.option(
    "--post/--no-post",
    "post_comment",
    default=None,
    help="Post the report on the pull request. --no-post prints it to the terminal instead.",
)
@click.option("--min-score", "min_score_threshold", type=click.IntRange(1, 10), default=None)
@click.option("--fail-on-low-score/--no-fail-on-low-score", "fail_on_low_score", default=None)
@click.pass_context
def review_cmd(
    ctx,
    repo: str,
    pr_number: int,
    provider: str | None,
    model: str | None,
    include: str | None,
    exclude: str | None,
    stack: str | None,
    post_comment: bool | None,
    min_score_threshold: int | None,
    fail_on_low_score: bool | None,
):
    """Review a pull request with an LLM and publish the verdict.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub token (or use gh CLI)
      OPENAI_API_KEY       Required when using --provider openai
      ANTHROPIC_API_KEY    Required when using --provider anthropic
      GEMINI_API_KEY       Required when using --provider gemini
    """
    from prverdict_core.config import require_credentials

    owner, name = split_repo(repo)
    config = load_cli_config(
        ctx,
        {
            "provider": provider,
            "model": model,
            "include": parse_patterns(include) if include is not None else None,
            "exclude": parse_patterns(exclude) if exclude is not None else None,
            "stack": stack,
            "post_comment": post_comment,
            "min_score_threshold": min_score_threshold,
            "fail_on_low_score": fail_on_low_score,
        },
    )
    try:
        require_credentials(config)
        agent = build_agent(config)
    except (ValueError, ImportError) as e:
        raise click.UsageError(str(e))

    result = agent.review_pull_request(owner, name, pr_number)

    if not result.success:
        raise click.ClickException(f"Review failed: {result.error}")

    if not config["post_comment"] and result.report:
        console.print(Markdown(result.report))

    write_action_outputs(result)
    print_result(result)

    threshold = config["min_score_threshold"]
    if config["fail_on_low_score"] and result.score is not None and result.score < threshold:
        raise click.ClickException(f"Review score {result.score} is below threshold {threshold}")

    console.print("[green]AI code review completed successfully.[/green]")
