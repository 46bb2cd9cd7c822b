"""
Structured output contracts the agent is asked to keep updated.

Sessions report arbitrary JSON; these models describe the shape the prompts
request. A payload that does not match is not an error: the parse helpers
return None and callers show the raw JSON instead.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError


class ActionStep(BaseModel):
    step: int
    title: str
    details: str


class ScopeOutput(BaseModel):
    issue_number: int
    title: str
    confidence_score: float = Field(ge=0, le=100)
    confidence_rationale: str
    assumptions: list[str]
    unknowns: list[str]
    risks: list[str]
    action_plan: list[ActionStep]
    ready_to_execute: bool


class TestsRun(BaseModel):
    __test__ = False  # not a pytest class

    ran: bool
    summary: str


class ExecuteOutput(BaseModel):
    status: Literal["pending", "in_progress", "completed", "blocked", "failed"]
    current_task: str
    completed_tasks: list[str]
    next_task: str
    files_changed: list[str]
    tests_run: TestsRun
    needs_human_input: bool
    blocking_issue: str


def parse_scope_output(output: Optional[dict[str, Any]]) -> Optional[ScopeOutput]:
    if not output:
        return None
    try:
        return ScopeOutput.model_validate(output)
    except ValidationError:
        return None


def parse_execute_output(output: Optional[dict[str, Any]]) -> Optional[ExecuteOutput]:
    if not output:
        return None
    try:
        return ExecuteOutput.model_validate(output)
    except ValidationError:
        return None


def confidence_band(score: float) -> str:
    if score >= 80:
        return "high"
    if score >= 50:
        return "medium"
    return "low"


SCOPE_OUTPUT_EXAMPLE = """{
  "issue_number": 123,
  "title": "Fix failing auth redirect",
  "confidence_score": 72,
  "confidence_rationale": "Score based on clarity of repro steps + existing tests; reduced due to unclear acceptance criteria.",
  "assumptions": ["The auth redirect bug is related to the OAuth callback handler", "Tests exist for the auth flow"],
  "unknowns": ["Are there any edge cases with different OAuth providers?"],
  "risks": ["Changes to auth flow may affect other login methods"],
  "action_plan": [
    {"step": 1, "title": "Reproduce bug", "details": "Set up a test environment and reproduce the failing auth redirect"},
    {"step": 2, "title": "Implement fix", "details": "Update the OAuth callback handler to correctly redirect"},
    {"step": 3, "title": "Add/adjust tests", "details": "Add test cases for the redirect behavior"}
  ],
  "ready_to_execute": true
}"""

EXECUTE_OUTPUT_EXAMPLE = """{
  "status": "in_progress",
  "current_task": "Implementing fix in auth callback",
  "completed_tasks": ["Reproduced bug locally", "Identified root cause"],
  "next_task": "Add tests for redirect behaviour",
  "files_changed": ["src/auth/callback.py", "src/auth/oauth.py"],
  "tests_run": {"ran": false, "summary": ""},
  "needs_human_input": false,
  "blocking_issue": ""
}"""
