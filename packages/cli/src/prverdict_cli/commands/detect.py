"""detect command: preview which files would be reviewed and with which persona."""

from __future__ import annotations

import click
from github import GithubException
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from prverdict_cli.commands.review import load_cli_config, split_repo
from prverdict_core.gh.pull_request import GitHubPullRequestSource
from prverdict_core.stack import detect_stack, stack_role
from prverdict_core.utils.code import as_patterns, filter_relevant_files, parse_patterns

console = Console()


@click.command("detect")
@click.option("--repo", required=True, help="GitHub repository in owner/name format.")
@click.option("--pr", "pr_number", type=int, required=True, help="Pull request number.")
@click.option("--include", "include", default=None, help="Comma-separated glob patterns of files to review.")
@click.option("--exclude", "exclude", default=None, help="Comma-separated glob patterns of files to skip.")
@click.pass_context
def detect_cmd(ctx, repo: str, pr_number: int, include: str | None, exclude: str | None):
    """Fetch and filter a pull request's files without calling the model.

    Shows each changed file, whether it passes the filter, and the stack the
    reviewer persona would be chosen for.
    """
    owner, name = split_repo(repo)
    config = load_cli_config(
        ctx,
        {
            "include": parse_patterns(include) if include is not None else None,
            "exclude": parse_patterns(exclude) if exclude is not None else None,
        },
    )

    source = GitHubPullRequestSource(token=config["github_token"])
    try:
        files = source.list_changed_files(owner, name, pr_number)
    except GithubException as e:
        raise click.ClickException(f"Failed to fetch PR: {e}")
    relevant = filter_relevant_files(files, as_patterns(config.get("include")), as_patterns(config.get("exclude")))
    kept = {f.filename for f in relevant}

    table = Table(title=f"{repo}#{pr_number}", show_header=True)
    table.add_column("File")
    table.add_column("Status")
    table.add_column("+/-", justify="right")
    table.add_column("Reviewed", justify="center")
    for f in files:
        mark = "[green]yes[/green]" if f.filename in kept else "[dim]no[/dim]"
        table.add_row(escape(f.filename), f.status, f"+{f.additions}/-{f.deletions}", mark)
    console.print(table)

    if not relevant:
        console.print("[yellow]No relevant files; a review would finish without a verdict.[/yellow]")
        return

    stack = detect_stack(relevant)
    console.print(f"Detected stack: [bold cyan]{stack.value}[/bold cyan]")
    console.print(f"Reviewer role:  {stack_role(stack)}")
