"""
Prompt templates for scope and execute sessions.

Both prompts embed an example of the structured output the agent must keep
updated, so the poller can render progress.
"""

import json
from typing import Any, Optional

from issue_dispatch.models.issue import Issue, Repo
from issue_dispatch.models.output import (
    EXECUTE_OUTPUT_EXAMPLE,
    SCOPE_OUTPUT_EXAMPLE,
    parse_scope_output,
)

BASE_TAGS = ["issue-dispatch", "github-issues"]
TITLE_MAX_CHARS = 50

SCOPE_TEMPLATE = """# Task: Scope GitHub Issue #{number}

## Issue Details
**Repository:** {repo}
**Title:** {title}
**URL:** {url}

**Description:**
{body}

## Your Task

You are an expert software engineer. Analyze this GitHub issue and produce a comprehensive scope assessment.

1. **Read and understand the issue thoroughly**
2. **Summarize root cause hypotheses** if it's a bug, or implementation approaches if it's a feature
3. **Assess the confidence level** (0-100) based on:
   - Clarity of requirements
   - Availability of reproduction steps
   - Existing test coverage
   - Complexity of the codebase area involved
4. **Identify assumptions you're making**
5. **List unknowns** that need clarification
6. **Identify potential risks**
7. **Create a step-by-step action plan**

## IMPORTANT: Structured Output

You MUST update the structured_output field with the following JSON schema. Update it as your analysis progresses.

```json
{schema}
```

**Guidelines:**
- Set `issue_number` to {number}
- Set `title` to the issue title
- `confidence_score` should be 0-100 based on clarity and feasibility
- `confidence_rationale` should explain your score
- Include at least 1-3 items in `assumptions`, `unknowns`, and `risks`
- `action_plan` should have 2-5 concrete steps
- Set `ready_to_execute` to true when you have a complete plan

Keep updating structured_output as your understanding evolves."""

EXECUTE_TEMPLATE = """# Task: Execute Action Plan for GitHub Issue #{number}

## Issue Details
**Repository:** {repo}
**Title:** {title}
**URL:** {url}

**Description:**
{body}

## Action Plan from Scoping Session

{plan}
{clarifications}
## Your Task

You are an expert software engineer. Execute the action plan above to resolve this GitHub issue.

### Instructions:

1. **Clone the repository** if needed: `git clone https://github.com/{repo}.git`
2. **Authenticate to GitHub** using the secret GITHUB_TOKEN provided to this session
3. **Create a feature branch** from `{base_branch}`
4. **Implement the changes** following the action plan
5. **Keep changes small and focused** - one logical change at a time
6. **Add or update tests** as appropriate
7. **Update documentation** if necessary
8. **Create a Pull Request** against `{base_branch}`

### PR Guidelines:
- Use a clear, descriptive title referencing issue #{number}
- Include a summary of changes in the PR description
- Link to the issue using "Fixes #{number}" or "Closes #{number}"

## IMPORTANT: Structured Output

You MUST update the structured_output field with progress. Update it frequently as you work.

```json
{schema}
```

**Status values:**
- `pending` - Not started yet
- `in_progress` - Actively working
- `completed` - Successfully finished
- `blocked` - Need human input or hit an issue
- `failed` - Unable to complete

Update structured_output after each major step."""


def _issue_fields(issue: Issue, repo: Repo) -> dict[str, Any]:
    return {
        "number": issue.number,
        "repo": repo.full_name,
        "title": issue.title,
        "url": issue.html_url,
        "body": issue.body or "No description provided.",
    }


def build_scope_prompt(issue: Issue, repo: Repo) -> str:
    return SCOPE_TEMPLATE.format(schema=SCOPE_OUTPUT_EXAMPLE, **_issue_fields(issue, repo))


def action_plan_text(scope_output: dict[str, Any]) -> str:
    """Numbered plan, or the raw JSON when the output is not a valid scope."""
    parsed = parse_scope_output(scope_output)
    if parsed is None:
        return json.dumps(scope_output, indent=2)
    return "\n".join(f"{s.step}. **{s.title}**: {s.details}" for s in parsed.action_plan)


def build_execute_prompt(
    issue: Issue,
    repo: Repo,
    scope_output: dict[str, Any],
    base_branch: str = "main",
    clarifications: Optional[str] = None,
) -> str:
    section = f"\n## Additional Constraints/Clarifications\n\n{clarifications}\n" if clarifications else ""
    return EXECUTE_TEMPLATE.format(
        schema=EXECUTE_OUTPUT_EXAMPLE,
        plan=action_plan_text(scope_output),
        clarifications=section,
        base_branch=base_branch,
        **_issue_fields(issue, repo),
    )


def session_title(stage: str, issue: Issue) -> str:
    return f"{stage}: {issue.title[:TITLE_MAX_CHARS]}"


def session_tags(stage: str, issue: Issue, repo: Repo, scope_session_id: Optional[str] = None) -> list[str]:
    tags = [*BASE_TAGS, f"stage:{stage}", f"issue:{issue.number}", f"repo:{repo.full_name}"]
    if scope_session_id:
        tags.append(f"scope:{scope_session_id}")
    return tags
