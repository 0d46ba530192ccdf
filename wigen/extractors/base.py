"""Capability record shared by every work-item extractor, plus the orchestration around it.

Each supported work-item type is described by an ``Extractor``: a frozen record of three
pure functions (extra validation, field extraction, prompt instructions). ``process`` is
the single control flow all of them run through:

    bound text -> validate -> (stop on error) -> extract -> build prompt -> wrap result
"""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from wigen.models import (
    CodeGenerationPrompt,
    ProcessingMetadata,
    ProcessingResult,
    ProjectContext,
    PromptInstructions,
    RepositoryConfig,
    ValidationFinding,
    WorkItem,
    WorkItemType,
)

logger = logging.getLogger(__name__)

VALIDATION_FAILED = "Work item validation failed"

# Upper bound on any free-text field handed to the pattern scanners.
MAX_TEXT_LENGTH = 20_000

_TEXT_FIELDS = ("title", "description", "acceptance_criteria", "reproduction_steps")

# Vendor custom-field reference names.
STORY_POINTS_FIELD = "Microsoft.VSTS.Scheduling.StoryPoints"
EFFORT_FIELDS = ("Microsoft.VSTS.Scheduling.Effort", "Microsoft.VSTS.Scheduling.OriginalEstimate")
REMAINING_WORK_FIELD = "Microsoft.VSTS.Scheduling.RemainingWork"
SEVERITY_FIELD = "Microsoft.VSTS.Common.Severity"


@dataclass(frozen=True)
class Extractor:
    kind: WorkItemType
    strategy: str
    validate: Callable[[WorkItem], list[ValidationFinding]]
    extract: Callable[[WorkItem], dict[str, Any]]
    build_instructions: Callable[[dict[str, Any], RepositoryConfig], PromptInstructions]


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def finding(field_name: str, message: str, severity: str, is_valid: bool = False) -> ValidationFinding:
    return ValidationFinding(field_name=field_name, is_valid=is_valid, message=message, severity=severity)


def word_pattern(keyword: str) -> re.Pattern[str]:
    """Case-insensitive whole-word matcher for a vocabulary keyword."""
    return re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)


def leading_word_pattern(keyword: str) -> re.Pattern[str]:
    """Case-insensitive matcher for a keyword at the start of a word ("test" hits "tests")."""
    return re.compile(rf"\b{re.escape(keyword)}", re.IGNORECASE)


def first_category(content: str, categories: Iterable[tuple[str, list[re.Pattern[str]]]], default: str) -> str:
    """Return the first category (in declared order) with any matching keyword."""
    for category, patterns in categories:
        if any(p.search(content) for p in patterns):
            return category
    return default


def as_number(value: Any) -> float | None:
    """Coerce a custom-field value to a number; anything non-numeric counts as absent."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int | float):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def custom_field(work_item: WorkItem, *keys: str) -> Any:
    """Return the first truthy custom field among keys, or None."""
    for key in keys:
        value = work_item.custom_fields.get(key)
        if value:
            return value
    return None


def numbered(items: Iterable[str], indent: str = "  ") -> list[str]:
    return [f"{indent}{i}. {item}" for i, item in enumerate(items, start=1)]


# ---------------------------------------------------------------------------
# Common validation, fields and prompt
# ---------------------------------------------------------------------------


def validate_common(work_item: WorkItem) -> list[ValidationFinding]:
    results = []
    if not work_item.title.strip():
        results.append(finding("title", "Title is required and cannot be empty", "error"))
    if not (work_item.description or "").strip():
        results.append(finding("description", "Description is required for code generation", "warning"))
    if not work_item.area_path.strip():
        results.append(finding("areaPath", "Area path is required to determine target repository", "error"))
    return results


def validate(extractor: Extractor, work_item: WorkItem) -> list[ValidationFinding]:
    return validate_common(work_item) + extractor.validate(work_item)


def common_fields(work_item: WorkItem) -> dict[str, Any]:
    return {
        "id": work_item.id,
        "type": work_item.type.value,
        "title": work_item.title,
        "description": work_item.description,
        "assigned_to": work_item.assigned_to,
        "area_path": work_item.area_path,
        "iteration_path": work_item.iteration_path,
        "state": work_item.state,
        "priority": work_item.priority,
        "tags": list(work_item.tags),
    }


def build_prompt(
    extractor: Extractor,
    work_item: WorkItem,
    repository_config: RepositoryConfig,
    fields: dict[str, Any],
) -> CodeGenerationPrompt:
    context = ProjectContext(
        project_name=repository_config.name,
        primary_language=repository_config.target_language,
        framework=repository_config.framework,
        structure=repository_config.structure,
        dependencies=repository_config.dependencies,
        dev_dependencies=repository_config.dev_dependencies,
    )
    return CodeGenerationPrompt(
        work_item=work_item,
        target_language=repository_config.target_language,
        project_context=context,
        code_templates=[t for t in repository_config.code_templates if work_item.type in t.work_item_types],
        coding_standards=repository_config.coding_standards,
        instructions=extractor.build_instructions(fields, repository_config),
    )


def bound_work_item(work_item: WorkItem, max_text_length: int = MAX_TEXT_LENGTH) -> WorkItem:
    """Clip free-text fields so every pattern scan runs over bounded input."""
    update = {}
    for name in _TEXT_FIELDS:
        text = getattr(work_item, name)
        if text is not None and len(text) > max_text_length:
            update[name] = text[:max_text_length]
    if not update:
        return work_item
    logger.debug("Clipped %s on work item %s to %d chars", ", ".join(update), work_item.id, max_text_length)
    return work_item.model_copy(update=update)


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def run(
    extractor: Extractor,
    work_item: WorkItem,
    repository_config: RepositoryConfig,
    *,
    max_text_length: int = MAX_TEXT_LENGTH,
) -> ProcessingResult:
    """Synchronous body of ``process``. Never raises for per-ticket problems."""
    findings: list[ValidationFinding] = []
    logger.debug("Processing work item %s with %s", work_item.id, extractor.strategy)
    try:
        bounded = bound_work_item(work_item, max_text_length)
        findings = validate(extractor, bounded)
        if any(f.severity == "error" for f in findings):
            logger.warning(
                "Work item %s failed validation: %s",
                work_item.id,
                "; ".join(f"{f.field_name}: {f.message}" for f in findings if f.severity == "error"),
            )
            return ProcessingResult(
                success=False,
                error=VALIDATION_FAILED,
                metadata=ProcessingMetadata(strategy=extractor.strategy, validation_results=findings),
            )

        fields = extractor.extract(bounded)
        prompt = build_prompt(extractor, work_item, repository_config, fields)
    except Exception as exc:
        logger.exception("Failed to process work item %s", work_item.id)
        return ProcessingResult(
            success=False,
            error=str(exc) or type(exc).__name__,
            metadata=ProcessingMetadata(strategy=extractor.strategy, validation_results=findings),
        )

    return ProcessingResult(
        success=True,
        prompt=prompt,
        metadata=ProcessingMetadata(extracted_fields=fields, strategy=extractor.strategy, validation_results=findings),
    )


async def process(
    extractor: Extractor,
    work_item: WorkItem,
    repository_config: RepositoryConfig,
    *,
    max_text_length: int = MAX_TEXT_LENGTH,
) -> ProcessingResult:
    """Async entry point so callers can compose it with I/O-bound collaborators.

    Performs no awaiting of its own.
    """
    return run(extractor, work_item, repository_config, max_text_length=max_text_length)
