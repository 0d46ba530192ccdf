"""Tests for render_prompt."""

from wigen.extractors import defect, requirement, task
from wigen.extractors.base import run
from wigen.main import render_prompt
from wigen.models import RepositoryConfig, WorkItem


def test_header_format(defect_item: WorkItem, repository_config: RepositoryConfig) -> None:
    rendered = render_prompt(run(defect.EXTRACTOR, defect_item, repository_config).prompt)
    assert rendered.startswith("# Work Item #4521: Save button fails on invoice form")
    assert "**Type:** Bug" in rendered
    assert "**Tags:** regression" in rendered


def test_bug_includes_reproduction_steps(defect_item: WorkItem, repository_config: RepositoryConfig) -> None:
    rendered = render_prompt(run(defect.EXTRACTOR, defect_item, repository_config).prompt)
    assert "## Reproduction Steps" in rendered
    assert "## Acceptance Criteria" not in rendered
    assert "### Bug Fix Module" in rendered
    assert "- `tests/test_{{module_name}}.py` (test)" in rendered
    assert "Generate code that fixes the reported bug:" in rendered


def test_story_includes_acceptance_criteria(requirement_item: WorkItem, repository_config: RepositoryConfig) -> None:
    rendered = render_prompt(run(requirement.EXTRACTOR, requirement_item, repository_config).prompt)
    assert "## Acceptance Criteria" in rendered
    assert "**Assigned To:** Sam Rivera" in rendered
    assert "### Python Service" in rendered


def test_project_context_and_standards(task_item: WorkItem, repository_config: RepositoryConfig) -> None:
    rendered = render_prompt(run(task.EXTRACTOR, task_item, repository_config).prompt)
    assert "- **Project:** default" in rendered
    assert "- **Language:** python" in rendered
    assert "- **Dev dependencies:** pytest" in rendered
    assert "- **Linting:** ruff" in rendered
    assert "coverage ≥ 80%" in rendered
    assert "- `src/**/*.py`: Python source files (required)" in rendered


def test_unassigned_and_no_templates(task_item: WorkItem, typescript_config: RepositoryConfig) -> None:
    rendered = render_prompt(run(task.EXTRACTOR, task_item, typescript_config).prompt)
    assert "**Assigned To:** Unassigned" in rendered
    assert "## Code Templates" not in rendered
    assert "- **Framework:** express" in rendered
    assert "- typescript" in rendered


def test_no_description_placeholder(repository_config: RepositoryConfig) -> None:
    item = WorkItem(id=5, type="Task", title="Bare", area_path="A")
    rendered = render_prompt(run(task.EXTRACTOR, item, repository_config).prompt)
    assert "_No description provided._" in rendered
