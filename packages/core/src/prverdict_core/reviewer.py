"""Core PR review orchestration.

One review is a fixed sequence of stages driven by an explicit state machine:

    FETCH -> FILTER -> ANALYZE -> FORMAT -> PUBLISH -> END
    (any of the first four) -> ERROR -> END

After every stage the transition rule is the same: an error routes to ERROR,
a stage that declared the run done (only FILTER, on an empty file set) routes
straight to END, anything else advances. PUBLISH and ERROR always end the run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

from prverdict_core.gh.pull_request import GitHubPullRequestSource, PullRequestSource
from prverdict_core.models import (
    ChangedFile,
    PullRequestInfo,
    PullRequestRef,
    ReviewResult,
    Stack,
    StructuredReview,
)
from prverdict_core.parsing import parse_review_response
from prverdict_core.prompt import DEFAULT_MAX_CHARS_PER_FILE, build_review_prompt
from prverdict_core.providers.base import CompletionProvider, get_provider
from prverdict_core.report import format_review_comment
from prverdict_core.stack import detect_stack, stack_role
from prverdict_core.utils.code import as_patterns, filter_relevant_files

console = Console()
logger = logging.getLogger(__name__)


class Stage(str, Enum):
    FETCH = "fetch"
    FILTER = "filter"
    ANALYZE = "analyze"
    FORMAT = "format"
    PUBLISH = "publish"
    ERROR = "error"
    END = "end"


_NEXT_STAGE = {
    Stage.FETCH: Stage.FILTER,
    Stage.FILTER: Stage.ANALYZE,
    Stage.ANALYZE: Stage.FORMAT,
    Stage.FORMAT: Stage.PUBLISH,
}


@dataclass
class RunState:
    """Mutable record of a single review run, owned by ReviewAgent."""

    ref: PullRequestRef
    pull_request: Optional[PullRequestInfo] = None
    files: Optional[list[ChangedFile]] = None
    relevant_files: Optional[list[ChangedFile]] = None
    stack: Optional[Stack] = None
    review: Optional[StructuredReview] = None
    report: Optional[str] = None
    error: Optional[str] = None
    done: bool = False

    def apply(self, update: dict) -> None:
        if self.done:
            raise RuntimeError("RunState is final; no further updates allowed.")
        for key, value in update.items():
            if not hasattr(self, key):
                raise AttributeError(f"RunState has no field {key!r}")
            setattr(self, key, value)


def next_stage(stage: Stage, state: RunState) -> Stage:
    """Transition rule evaluated after each stage completes."""
    if stage in (Stage.PUBLISH, Stage.ERROR):
        return Stage.END
    if state.error is not None:
        return Stage.ERROR
    if state.done:
        return Stage.END
    return _NEXT_STAGE[stage]


@dataclass
class ReviewOptions:
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    post_comment: bool = True
    stack: Optional[Stack] = None
    max_chars_per_file: int = DEFAULT_MAX_CHARS_PER_FILE

    @classmethod
    def from_config(cls, config: dict) -> "ReviewOptions":
        stack = config.get("stack")
        return cls(
            include=as_patterns(config.get("include")),
            exclude=as_patterns(config.get("exclude")),
            post_comment=config.get("post_comment", True),
            stack=Stack(stack) if stack else None,
            max_chars_per_file=config.get("max_chars_per_file", DEFAULT_MAX_CHARS_PER_FILE),
        )


class ReviewAgent:
    """Runs the review pipeline against a PR source and a completion provider.

    The agent holds only configuration and the two (stateless) collaborators;
    every call to review_pull_request gets a fresh RunState, so one agent can
    serve any number of independent reviews.
    """

    def __init__(self, source: PullRequestSource, provider: CompletionProvider, options: ReviewOptions | None = None):
        self.source = source
        self.provider = provider
        self.options = options or ReviewOptions()
        self._stages: dict[Stage, Callable[[RunState], dict]] = {
            Stage.FETCH: self._fetch,
            Stage.FILTER: self._filter,
            Stage.ANALYZE: self._analyze,
            Stage.FORMAT: self._format,
            Stage.PUBLISH: self._publish,
            Stage.ERROR: self._handle_error,
        }

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def review_pull_request(self, owner: str, repo: str, number: int) -> ReviewResult:
        """Review one pull request. Never raises; inspect ``success`` instead."""
        ref = PullRequestRef(owner=owner, repo=repo, number=number)
        console.print(f"[bold]Reviewing {ref.full_name}#{ref.number}[/bold] with {self.provider!r}")
        try:
            state = self.run(ref)
        except Exception as e:
            logger.exception("Review of %s#%d aborted unexpectedly", ref.full_name, ref.number)
            return ReviewResult(success=False, error=str(e) or e.__class__.__name__)
        return self.to_result(state)

    def run(self, ref: PullRequestRef) -> RunState:
        """Drive the state machine to END and return the terminal state."""
        state = RunState(ref=ref)
        stage = Stage.FETCH
        while stage is not Stage.END:
            logger.debug("Entering stage %s", stage.value)
            state.apply(self._stages[stage](state))
            stage = next_stage(stage, state)
        return state

    @staticmethod
    def to_result(state: RunState) -> ReviewResult:
        if state.error is not None:
            return ReviewResult(success=False, error=state.error)

        review = state.review
        if review is None:
            # Empty-file short circuit: success without a verdict.
            return ReviewResult(success=True, stack=state.stack.value if state.stack else None)
        return ReviewResult(
            success=True,
            recommendation=review.recommendation.value,
            score=review.overall_score,
            issues_count=len(review.findings),
            summary=review.summary,
            stack=state.stack.value if state.stack else None,
            report=state.report,
        )

    # ------------------------------------------------------------------ #
    # Stages: each returns the fields it sets on RunState                 #
    # ------------------------------------------------------------------ #

    def _fetch(self, state: RunState) -> dict:
        ref = state.ref
        try:
            pull_request = self.source.get_pull_request(ref.owner, ref.repo, ref.number)
            files = self.source.list_changed_files(ref.owner, ref.repo, ref.number)
        except Exception as e:
            return {"error": f"Failed to fetch PR: {e}"}
        title = escape(pull_request.title)
        console.print(f"Fetched PR #{pull_request.number} '{title}' ({len(files)} changed file(s))")
        return {"pull_request": pull_request, "files": list(files)}

    def _filter(self, state: RunState) -> dict:
        if state.files is None:
            return {"error": "PR data missing"}

        relevant = filter_relevant_files(state.files, self.options.include, self.options.exclude)
        skipped = len(state.files) - len(relevant)
        console.print(f"{len(relevant)} relevant file(s) for review" + (f", {skipped} skipped" if skipped else ""))
        if not relevant:
            console.print("[yellow]No relevant files to review. Nothing to do.[/yellow]")
            return {"relevant_files": [], "done": True}
        return {"relevant_files": relevant}

    def _analyze(self, state: RunState) -> dict:
        if not state.relevant_files or state.pull_request is None:
            return {"error": "Missing data for analysis"}

        stack = self.options.stack or detect_stack(state.relevant_files)
        role = stack_role(stack)
        logger.info("Using %s reviewer persona%s", stack.value, " (forced)" if self.options.stack else "")

        prompt = build_review_prompt(
            state.relevant_files, state.pull_request, role, max_chars_per_file=self.options.max_chars_per_file
        )
        console.print(f"Analyzing {len(state.relevant_files)} file(s) as a {stack.value} reviewer...")
        try:
            raw = self.provider.complete(prompt)
        except Exception as e:
            return {"stack": stack, "error": f"Analysis failed: {e}"}
        return {"stack": stack, "review": parse_review_response(raw)}

    def _format(self, state: RunState) -> dict:
        if state.review is None:
            return {"error": "AI review data missing"}
        return {"report": format_review_comment(state.review)}

    def _publish(self, state: RunState) -> dict:
        if state.report is None:
            return {"error": "Review comment missing"}

        if not self.options.post_comment:
            console.print("[dim]post_comment is disabled; review not posted.[/dim]")
            return {"done": True}

        ref = state.ref
        try:
            self.source.create_review_comment(ref.owner, ref.repo, ref.number, state.report)
        except Exception as e:
            logger.error("Failed to post review on %s#%d: %s", ref.full_name, ref.number, e)
            return {"error": f"Failed to post review: {e}"}
        console.print(f"[green]Review posted on PR #{ref.number}[/green]")
        return {"done": True}

    def _handle_error(self, state: RunState) -> dict:
        logger.error("Review of %s#%d failed: %s", state.ref.full_name, state.ref.number, state.error)
        console.print(f"[red]Review failed: {state.error}[/red]")
        return {"done": True}


def build_agent(config: dict) -> ReviewAgent:
    """Wire the GitHub source, the configured provider and the review options."""
    return ReviewAgent(
        source=GitHubPullRequestSource(token=config.get("github_token")),
        provider=get_provider(config),
        options=ReviewOptions.from_config(config),
    )
