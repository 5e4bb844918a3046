"""Tests for the review pipeline: state machine transitions and end-to-end runs."""

import json
from unittest.mock import MagicMock

import pytest

from prverdict_core.models import ChangedFile, PullRequestInfo, PullRequestRef, Stack
from prverdict_core.parsing import FALLBACK_SUMMARY
from prverdict_core.providers.base import CompletionProvider
from prverdict_core.reviewer import ReviewAgent, ReviewOptions, RunState, Stage, build_agent, next_stage

REF = PullRequestRef(owner="octo", repo="hello", number=7)

VALID_REVIEW = json.dumps(
    {
        "overall_score": 8,
        "recommendation": "POSITIVE",
        "summary": "Nice, focused change.",
        "detailed_findings": [
            {
                "category": "MAINTAINABILITY",
                "severity": "LOW",
                "file": "src/app.tsx",
                "line": 3,
                "issue": "Magic number",
                "suggestion": "Extract a constant",
            }
        ],
        "positive_aspects": ["Small diff"],
        "areas_for_improvement": [],
    }
)


def make_file(filename="src/app.tsx", status="modified", patch="@@ -1 +1 @@\n-a\n+b"):
    return ChangedFile(filename=filename, additions=1, deletions=1, status=status, patch=patch)


class StubSource:
    def __init__(self, files, fetch_error=None, post_error=None):
        self.files = files
        self.fetch_error = fetch_error
        self.post_error = post_error
        self.posted = []
        self.title = "Update app"

    def get_pull_request(self, owner, repo, number):
        if self.fetch_error:
            raise self.fetch_error
        return PullRequestInfo(title=self.title, body="Tweaks the app shell.", number=number)

    def list_changed_files(self, owner, repo, number):
        return list(self.files)

    def create_review_comment(self, owner, repo, number, body):
        if self.post_error:
            raise self.post_error
        self.posted.append((owner, repo, number, body))


class StubProvider(CompletionProvider):
    model = "stub"

    def __init__(self, reply=VALID_REVIEW, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


def make_agent(files=None, provider=None, **options):
    source = StubSource([make_file()] if files is None else files)
    agent = ReviewAgent(source, provider or StubProvider(), ReviewOptions(**options))
    return agent, source


# ---------------------------------------------------------------------------
# Transition rule
# ---------------------------------------------------------------------------


class TestNextStage:
    def test_advances_along_backbone(self):
        state = RunState(ref=REF)
        assert next_stage(Stage.FETCH, state) is Stage.FILTER
        assert next_stage(Stage.FILTER, state) is Stage.ANALYZE
        assert next_stage(Stage.ANALYZE, state) is Stage.FORMAT
        assert next_stage(Stage.FORMAT, state) is Stage.PUBLISH

    @pytest.mark.parametrize("stage", [Stage.FETCH, Stage.FILTER, Stage.ANALYZE, Stage.FORMAT])
    def test_error_routes_to_error_stage(self, stage):
        assert next_stage(stage, RunState(ref=REF, error="boom")) is Stage.ERROR

    def test_done_routes_to_end(self):
        assert next_stage(Stage.FILTER, RunState(ref=REF, done=True)) is Stage.END

    @pytest.mark.parametrize("stage", [Stage.PUBLISH, Stage.ERROR])
    def test_publish_and_error_always_end(self, stage):
        assert next_stage(stage, RunState(ref=REF, error="x")) is Stage.END
        assert next_stage(stage, RunState(ref=REF)) is Stage.END


class TestRunState:
    def test_apply_sets_fields(self):
        state = RunState(ref=REF)
        state.apply({"report": "r"})
        assert state.report == "r"

    def test_final_state_rejects_updates(self):
        state = RunState(ref=REF, done=True)
        with pytest.raises(RuntimeError):
            state.apply({"report": "late"})

    def test_unknown_field_rejected(self):
        with pytest.raises(AttributeError):
            RunState(ref=REF).apply({"bogus": 1})


# ---------------------------------------------------------------------------
# End-to-end scenarios
# ---------------------------------------------------------------------------


class TestReviewPullRequest:
    def test_docs_only_pr_short_circuits(self):
        provider = StubProvider()
        agent, source = make_agent(files=[make_file("README.md")], provider=provider)

        result = agent.review_pull_request("octo", "hello", 7)

        assert result.success is True
        assert result.recommendation is None
        assert result.score is None
        assert result.issues_count is None
        assert result.error is None
        assert provider.prompts == []
        assert source.posted == []

    def test_title_with_markup_brackets_is_reviewed(self):
        agent, source = make_agent()
        source.title = "Fix list[/] slicing [bold]"

        result = agent.review_pull_request("octo", "hello", 7)

        assert result.success is True, result.error
        assert result.score == 8
        assert len(source.posted) == 1

    def test_valid_review_is_posted(self):
        agent, source = make_agent()

        result = agent.review_pull_request("octo", "hello", 7)

        assert result.success is True
        assert result.score == 8
        assert result.recommendation == "POSITIVE"
        assert result.issues_count == 1
        assert result.summary == "Nice, focused change."
        assert len(source.posted) == 1
        owner, repo, number, body = source.posted[0]
        assert (owner, repo, number) == ("octo", "hello", 7)
        assert body.startswith("## ✅ AI Code Review Report")
        assert body == result.report

    def test_malformed_model_output_degrades(self):
        agent, source = make_agent(provider=StubProvider(reply="Sorry, I cannot process this."))

        result = agent.review_pull_request("octo", "hello", 7)

        assert result.success is True
        assert result.score == 5
        assert result.recommendation == "NEEDS_CHANGES"
        assert result.issues_count == 0
        assert result.summary == FALLBACK_SUMMARY
        assert "Manual review required" in result.summary
        assert len(source.posted) == 1

    def test_fetch_failure_is_terminal(self):
        provider = StubProvider()
        source = StubSource([make_file()], fetch_error=ConnectionError("API rate limit exceeded"))
        agent = ReviewAgent(source, provider)

        result = agent.review_pull_request("octo", "hello", 7)

        assert result.success is False
        assert "API rate limit exceeded" in result.error
        assert result.recommendation is None
        assert result.score is None
        assert result.issues_count is None
        assert result.summary is None
        assert provider.prompts == []

    def test_provider_failure_is_terminal_without_retry(self):
        provider = StubProvider(error=RuntimeError("invalid api key"))
        agent, source = make_agent(provider=provider)

        result = agent.review_pull_request("octo", "hello", 7)

        assert result.success is False
        assert "invalid api key" in result.error
        assert len(provider.prompts) == 1
        assert source.posted == []

    def test_publish_failure_is_an_error(self):
        source = StubSource([make_file()], post_error=RuntimeError("403 Forbidden"))
        agent = ReviewAgent(source, StubProvider())

        result = agent.review_pull_request("octo", "hello", 7)

        assert result.success is False
        assert "403 Forbidden" in result.error

    def test_post_comment_disabled_still_succeeds(self):
        agent, source = make_agent(post_comment=False)

        result = agent.review_pull_request("octo", "hello", 7)

        assert result.success is True
        assert result.score == 8
        assert result.report is not None
        assert source.posted == []

    def test_unexpected_exception_never_escapes(self, mocker):
        agent, _ = make_agent()
        mocker.patch("prverdict_core.reviewer.format_review_comment", side_effect=KeyError("glyph"))

        result = agent.review_pull_request("octo", "hello", 7)

        assert result.success is False
        assert "glyph" in result.error


class TestAnalyzeStage:
    def test_prompt_uses_detected_stack(self):
        provider = StubProvider()
        files = [make_file("components/Card.vue"), make_file("package.json", patch='+  "nuxt": "^3.0.0"')]
        agent, _ = make_agent(files=files, provider=provider)

        result = agent.review_pull_request("octo", "hello", 7)

        assert result.stack == "nuxt"
        assert "Nuxt developer" in provider.prompts[0]
        assert "Update app" in provider.prompts[0]

    def test_forced_stack_bypasses_detection(self):
        provider = StubProvider()
        agent, _ = make_agent(provider=provider, stack=Stack.LARAVEL)

        result = agent.review_pull_request("octo", "hello", 7)

        assert result.stack == "laravel"
        assert "Laravel" in provider.prompts[0]

    def test_only_relevant_files_reach_the_prompt(self):
        provider = StubProvider()
        files = [make_file("src/app.tsx"), make_file("docs/intro.md"), make_file("src/old.ts", status="removed")]
        agent, _ = make_agent(files=files, provider=provider)

        agent.review_pull_request("octo", "hello", 7)

        assert "FILE: src/app.tsx" in provider.prompts[0]
        assert "docs/intro.md" not in provider.prompts[0]
        assert "src/old.ts" not in provider.prompts[0]

    def test_include_and_exclude_patterns_applied(self):
        provider = StubProvider()
        files = [make_file("src/a.ts"), make_file("src/gen/b.ts"), make_file("lib/c.ts")]
        agent, _ = make_agent(files=files, provider=provider, include=["src/**"], exclude=["src/gen/**"])

        agent.review_pull_request("octo", "hello", 7)

        prompt = provider.prompts[0]
        assert "FILE: src/a.ts" in prompt
        assert "src/gen/b.ts" not in prompt
        assert "lib/c.ts" not in prompt


class TestMissingPrerequisites:
    def test_filter_without_files(self):
        agent, _ = make_agent()
        assert agent._filter(RunState(ref=REF)) == {"error": "PR data missing"}

    def test_analyze_without_relevant_files(self):
        agent, _ = make_agent()
        assert "error" in agent._analyze(RunState(ref=REF))

    def test_format_without_review(self):
        agent, _ = make_agent()
        assert agent._format(RunState(ref=REF)) == {"error": "AI review data missing"}

    def test_publish_without_report(self):
        agent, _ = make_agent()
        assert agent._publish(RunState(ref=REF)) == {"error": "Review comment missing"}

    def test_error_stage_preserves_first_error(self):
        agent, _ = make_agent()
        state = RunState(ref=REF, error="first")
        state.apply(agent._handle_error(state))
        assert state.done is True
        assert state.error == "first"


class TestIndependentRuns:
    def test_each_call_gets_fresh_state(self):
        agent, source = make_agent()
        first = agent.review_pull_request("octo", "hello", 1)
        second = agent.review_pull_request("octo", "hello", 2)
        assert first.success and second.success
        assert [p[2] for p in source.posted] == [1, 2]


class TestReviewOptions:
    def test_from_config(self):
        options = ReviewOptions.from_config(
            {"include": ["src/**"], "exclude": [], "post_comment": False, "stack": "django", "max_chars_per_file": 10}
        )
        assert options.include == ["src/**"]
        assert options.post_comment is False
        assert options.stack is Stack.DJANGO
        assert options.max_chars_per_file == 10

    def test_string_patterns_from_yaml_are_split(self):
        options = ReviewOptions.from_config({"include": "src/**", "exclude": "dist/**, *.min.js"})
        assert options.include == ["src/**"]
        assert options.exclude == ["dist/**", "*.min.js"]

    def test_string_include_does_not_match_top_level_files(self):
        agent, source = make_agent(
            files=[make_file("setup.py"), make_file("src/app.tsx")],
            include=ReviewOptions.from_config({"include": "src/**"}).include,
        )
        state = agent.run(REF)
        assert [f.filename for f in state.relevant_files] == ["src/app.tsx"]

    def test_invalid_stack_rejected(self):
        with pytest.raises(ValueError):
            ReviewOptions.from_config({"stack": "rails"})


def test_build_agent_wires_collaborators(mocker):
    source_cls = mocker.patch("prverdict_core.reviewer.GitHubPullRequestSource")
    provider = MagicMock()
    mocker.patch("prverdict_core.reviewer.get_provider", return_value=provider)

    agent = build_agent({"github_token": "tok", "provider": "openai", "exclude": ["dist/**"]})

    source_cls.assert_called_once_with(token="tok")
    assert agent.provider is provider
    assert agent.options.exclude == ["dist/**"]
