"""Tests for the shared orchestration in wigen.extractors.base."""

import asyncio
import dataclasses
import logging
import time

import pytest

from wigen.extractors import defect, requirement, task
from wigen.extractors.base import MAX_TEXT_LENGTH, VALIDATION_FAILED, bound_work_item, process, run, validate_common
from wigen.models import RepositoryConfig, WorkItem, WorkItemType


def _boom(work_item: WorkItem) -> dict:
    raise ValueError("extraction exploded")


def _silent_boom(work_item: WorkItem) -> dict:
    raise KeyError


class TestValidateCommon:
    def test_clean_item(self, task_item: WorkItem) -> None:
        assert validate_common(task_item) == []

    def test_blank_title_and_area_path_are_errors(self) -> None:
        item = WorkItem(id=1, type=WorkItemType.TASK, title="   ", description="d")
        findings = {f.field_name: f for f in validate_common(item)}
        assert findings["title"].severity == "error"
        assert findings["areaPath"].severity == "error"
        assert not findings["title"].is_valid

    def test_missing_description_is_warning(self) -> None:
        item = WorkItem(id=1, type=WorkItemType.TASK, title="t", area_path="A")
        [only] = validate_common(item)
        assert only.field_name == "description"
        assert only.severity == "warning"


class TestProcess:
    def test_success(self, task_item: WorkItem, repository_config: RepositoryConfig) -> None:
        result = asyncio.run(process(task.EXTRACTOR, task_item, repository_config))
        assert result.success
        assert result.error is None
        assert result.prompt is not None
        assert result.prompt.work_item == task_item
        assert result.metadata.strategy == "TaskTechnicalImplementation"
        assert result.metadata.extracted_fields["id"] == 2402
        assert result.metadata.extracted_fields["type"] == "Task"

    def test_deterministic(self, requirement_item: WorkItem, repository_config: RepositoryConfig) -> None:
        first = asyncio.run(process(requirement.EXTRACTOR, requirement_item, repository_config))
        second = asyncio.run(process(requirement.EXTRACTOR, requirement_item, repository_config))
        assert first == second

    def test_bug_without_steps_fails_validation(self, repository_config: RepositoryConfig) -> None:
        item = WorkItem(
            id=7,
            type=WorkItemType.DEFECT,
            title="Crash on login",
            description="The app crashes when logging in with a long password value.",
            area_path="Contoso\\Auth",
        )
        result = asyncio.run(process(defect.EXTRACTOR, item, repository_config))
        assert not result.success
        assert result.error == VALIDATION_FAILED
        assert result.prompt is None
        assert result.metadata.extracted_fields == {}
        errors = [f for f in result.metadata.validation_results if f.severity == "error"]
        assert [f.field_name for f in errors] == ["reproductionSteps"]

    def test_validation_failure_is_logged(
        self, repository_config: RepositoryConfig, caplog: pytest.LogCaptureFixture
    ) -> None:
        item = WorkItem(id=8, type=WorkItemType.TASK, title="", area_path="A")
        with caplog.at_level(logging.WARNING, logger="wigen"):
            run(task.EXTRACTOR, item, repository_config)
        assert "Work item 8 failed validation" in caplog.text

    def test_warnings_do_not_block(self, repository_config: RepositoryConfig) -> None:
        item = WorkItem(id=3, type=WorkItemType.TASK, title="Tidy", description="short", area_path="A")
        result = run(task.EXTRACTOR, item, repository_config)
        assert result.success
        assert {f.severity for f in result.metadata.validation_results} <= {"warning", "info"}

    def test_fault_becomes_failed_result(
        self, task_item: WorkItem, repository_config: RepositoryConfig, caplog: pytest.LogCaptureFixture
    ) -> None:
        broken = dataclasses.replace(task.EXTRACTOR, extract=_boom)
        with caplog.at_level(logging.ERROR, logger="wigen"):
            result = asyncio.run(process(broken, task_item, repository_config))
        assert not result.success
        assert result.error == "extraction exploded"
        assert result.metadata.strategy == "TaskTechnicalImplementation"
        assert "Failed to process work item 2402" in caplog.text

    def test_fault_keeps_findings(self, repository_config: RepositoryConfig) -> None:
        broken = dataclasses.replace(task.EXTRACTOR, extract=_boom)
        item = WorkItem(id=4, type=WorkItemType.TASK, title="t", area_path="A")
        result = run(broken, item, repository_config)
        assert not result.success
        assert "description" in [f.field_name for f in result.metadata.validation_results]

    def test_fault_with_empty_message_uses_class_name(
        self, task_item: WorkItem, repository_config: RepositoryConfig
    ) -> None:
        broken = dataclasses.replace(task.EXTRACTOR, extract=_silent_boom)
        result = run(broken, task_item, repository_config)
        assert result.error == "KeyError"


class TestPrompt:
    def test_templates_filtered_by_type(self, defect_item: WorkItem, repository_config: RepositoryConfig) -> None:
        prompt = run(defect.EXTRACTOR, defect_item, repository_config).prompt
        assert [t.name for t in prompt.code_templates] == ["Bug Fix Module"]

    def test_project_context_from_config(self, task_item: WorkItem, typescript_config: RepositoryConfig) -> None:
        prompt = run(task.EXTRACTOR, task_item, typescript_config).prompt
        assert prompt.target_language.value == "typescript"
        assert prompt.project_context.project_name == "web"
        assert prompt.project_context.framework == "express"
        assert prompt.project_context.dependencies == ["express"]
        assert prompt.coding_standards == typescript_config.coding_standards
        assert prompt.code_templates == []
        assert prompt.instructions.preferred_libraries == ["typescript", "jest", "winston"]


class TestBounding:
    def test_long_text_is_clipped(self) -> None:
        item = WorkItem(id=1, type=WorkItemType.TASK, title="t", description="x" * 50, area_path="A")
        bounded = bound_work_item(item, max_text_length=10)
        assert bounded.description == "x" * 10
        assert bounded.title == "t"

    def test_short_item_returned_unchanged(self, task_item: WorkItem) -> None:
        assert bound_work_item(task_item) is task_item

    def test_prompt_keeps_original_item(self, repository_config: RepositoryConfig) -> None:
        description = "Implement the export service. " * 20
        item = WorkItem(id=5, type=WorkItemType.TASK, title="Export", description=description, area_path="A")
        result = run(task.EXTRACTOR, item, repository_config, max_text_length=100)
        assert result.success
        assert result.prompt.work_item.description == description
        assert len(result.metadata.extracted_fields["description"]) == 100

    @pytest.mark.parametrize("chunk", ["word ", "then ", "needs x ", "must depend on the service "])
    def test_unpunctuated_task_at_limit_is_fast(self, chunk: str, repository_config: RepositoryConfig) -> None:
        description = (chunk * (MAX_TEXT_LENGTH // len(chunk) + 1))[:MAX_TEXT_LENGTH]
        item = WorkItem(id=6, type=WorkItemType.TASK, title="Long", description=description, area_path="A")
        started = time.perf_counter()
        result = run(task.EXTRACTOR, item, repository_config)
        assert result.success
        assert time.perf_counter() - started < 1.0
