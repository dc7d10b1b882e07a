"""Data models for commitgen."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


FileStatus = Literal["added", "modified", "deleted", "renamed"]
SymbolType = Literal["function", "class", "interface", "type", "variable", "constant", "import", "export"]
SymbolAction = Literal["added", "deleted", "modified", "renamed"]
MessageRole = Literal["system", "user", "assistant"]


class FileChange(BaseModel):
    """Represents a single staged file change."""

    path: str = Field(description="Path to the file relative to repo root")
    status: FileStatus = Field(description="Change status: added, modified, deleted, renamed")
    insertions: int = Field(default=0, description="Lines added in this file")
    deletions: int = Field(default=0, description="Lines removed from this file")


class DiffStats(BaseModel):
    """Aggregate counters from `git diff --staged --shortstat`."""

    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0


class CodeSymbol(BaseModel):
    """One semantic unit (function, class, ...) changed in one file."""

    name: str = Field(description="Identifier of the symbol")
    type: SymbolType = Field(description="Kind of symbol")
    action: SymbolAction = Field(description="What happened to the symbol")
    old_name: str | None = Field(default=None, description="Previous name, set only for renames")
    file: str = Field(description="File the symbol lives in")


class CodeContext(BaseModel):
    """Semantic context extracted from a diff."""

    symbols: list[CodeSymbol] = Field(default_factory=list)
    summary: str = Field(default="", description="Human-readable summary of changes")


class HistoricalCommit(BaseModel):
    """A past commit scored against the current change set."""

    hash: str = Field(description="Full commit hash")
    message: str = Field(description="Commit subject line")
    files: list[str] = Field(default_factory=list, description="Paths touched by the commit")
    similarity: float = Field(default=0.0, ge=0.0, le=1.0, description="0-1 score against current changes")


class DiffContext(BaseModel):
    """Everything the prompt builder needs to know about one commit attempt."""

    diff: str = Field(description="Filtered (and possibly truncated) unified diff")
    files_changed: int = Field(description="Number of file headers in the filtered diff")
    truncated: bool = False
    stats: DiffStats | None = None
    files: list[FileChange] | None = None
    code_context: CodeContext | None = None
    similar_commits: list[HistoricalCommit] | None = None


class LLMMessage(BaseModel):
    """A chat message in the OpenAI-style role/content shape."""

    role: MessageRole
    content: str


class GenerationOptions(BaseModel):
    """Per-call overrides for a provider."""

    temperature: float | None = None
    max_tokens: int | None = None
    model: str | None = None


class ParsedCommit(BaseModel):
    """Tag/scope/description triple parsed from a bracketed commit message."""

    category: str | None = None
    scope: str | None = None
    description: str | None = None


class CheckConfig(BaseModel):
    """A configured verification command."""

    enabled: bool = True
    command: str = Field(description="Shell command to run")
    blocking: bool = Field(default=False, description="Fail the commit if the check fails")
    message: str | None = Field(default=None, description="Text shown while the check runs")
    autofix: str | None = Field(default=None, description="Command that fixes the check's failures")
    timeout: int = Field(default=30000, gt=0, description="Timeout in milliseconds")


class CheckResult(BaseModel):
    """Outcome of one check run."""

    name: str
    passed: bool
    output: str = ""
    error: str | None = None
    duration: int = Field(default=0, description="Elapsed milliseconds")
    auto_fix_available: bool = False


class CheckSummary(BaseModel):
    """Aggregated results of the checks that actually ran."""

    total_checks: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    results: list[CheckResult] = Field(default_factory=list)
    total_duration: int = 0


class WorkflowStep(str, Enum):
    """The fixed set of steps a workflow can be built from."""

    STAGE_ALL = "stage:all"
    STAGE_PROMPT = "stage:prompt"
    CHECK_ALL = "check:all"
    CHECK_BUILD = "check:build"
    CHECK_LINT = "check:lint"
    CHECK_TEST = "check:test"
    CHECK_TYPECHECK = "check:typecheck"
    COMMIT_AUTO = "commit:auto"
    COMMIT_REVIEW = "commit:review"
    COMMIT_INTERACTIVE = "commit:interactive"
    PUSH = "push"
    PUSH_PROMPT = "push:prompt"
    CREATE_PR = "create-pr"

    @property
    def description(self) -> str:
        return STEP_DESCRIPTIONS[self]


STEP_DESCRIPTIONS = {
    WorkflowStep.STAGE_ALL: "Stage all changes (git add .)",
    WorkflowStep.STAGE_PROMPT: "Prompt to stage changes",
    WorkflowStep.CHECK_ALL: "Run all enabled checks",
    WorkflowStep.CHECK_BUILD: "Run build check",
    WorkflowStep.CHECK_LINT: "Run lint check",
    WorkflowStep.CHECK_TEST: "Run test suite",
    WorkflowStep.CHECK_TYPECHECK: "Run type check",
    WorkflowStep.COMMIT_AUTO: "Generate and commit (no review)",
    WorkflowStep.COMMIT_REVIEW: "Generate and commit (with review)",
    WorkflowStep.COMMIT_INTERACTIVE: "Interactive commit (accept/retry/edit)",
    WorkflowStep.PUSH: "Push to remote",
    WorkflowStep.PUSH_PROMPT: "Prompt before pushing",
    WorkflowStep.CREATE_PR: "Create pull request",
}


class WorkflowConfig(BaseModel):
    """An ordered list of steps to run."""

    steps: list[WorkflowStep] = Field(description="Steps in execution order; repeats allowed")
    checks: list[str] | None = Field(default=None, description="Specific checks to run")
    interactive: bool = Field(
        default=False,
        description="Informational: whether the steps include prompting ones; those steps prompt regardless",
    )
    description: str | None = None


class WorkflowResult(BaseModel):
    """Outcome of one workflow execution."""

    success: bool
    steps_completed: int
    total_steps: int
    failed_step: WorkflowStep | None = None
    error: str | None = None
