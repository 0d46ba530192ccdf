"""Bug extractor: reproduction steps, expected vs actual behaviour, error details, impact."""

import re
from typing import Any

from wigen.extractors.base import (
    SEVERITY_FIELD,
    Extractor,
    common_fields,
    finding,
    first_category,
    leading_word_pattern,
    numbered,
    word_pattern,
)
from wigen.models import (
    ProgrammingLanguage,
    PromptInstructions,
    RepositoryConfig,
    ValidationFinding,
    WorkItem,
    WorkItemType,
)

STRATEGY = "BugFixImplementation"

DEFAULT_SEVERITY = "Medium"
MIN_STEPS_LENGTH = 30
MIN_DESCRIPTION_LENGTH = 50

COMPONENT_KEYWORDS = ["api", "service", "controller", "component", "database", "ui"]

# Declared order is precedence order.
DEFECT_CATEGORIES = {
    "functional": ["feature", "function", "behavior", "logic"],
    "ui": ["ui", "interface", "display", "layout"],
    "performance": ["slow", "performance", "timeout"],
    "data": ["data", "database", "corruption"],
}

_CATEGORY_PATTERNS = [(name, [leading_word_pattern(kw) for kw in kws]) for name, kws in DEFECT_CATEGORIES.items()]
_COMPONENT_PATTERNS = [(kw, word_pattern(kw)) for kw in COMPONENT_KEYWORDS]

_NUMBERED_STEP = re.compile(r"^\s*(\d+)\.\s*(.+?)(?=^\s*\d+\.|$)", re.MULTILINE | re.DOTALL)
_BULLET_STEP = re.compile(r"^\s*[-*•]\s*(.+?)(?=^\s*[-*•]|$)", re.MULTILINE | re.DOTALL)
_FREE_TEXT_SPLIT = re.compile(r"[.\n]")

_EXPECTED_PATTERNS = [
    re.compile(
        rf"\b{lead}\b[:\-\s]*(.+?)(?:\.|\bbut\b|\bhowever\b|\binstead\b|\bactual|$)",
        re.IGNORECASE | re.MULTILINE,
    )
    for lead in ("expected", "should")
]
_ACTUAL_PATTERNS = [
    re.compile(rf"\b{lead}\b[:\-\s]*(.+?)(?:\.|$)", re.IGNORECASE | re.MULTILINE)
    for lead in ("actual(?:ly)?", "instead", "but")
]

_ERROR_MESSAGE_PATTERNS = [
    re.compile(r"error[:\-\s]*(.+?)$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"exception[:\-\s]*(.+?)$", re.IGNORECASE | re.MULTILINE),
]
_HTTP_STATUS = re.compile(r"\b[45]\d{2}\b")
_ERROR_CONSTANT = re.compile(r"\bERR(?:OR)?_[A-Z0-9_]+\b")

# Azure DevOps sends ranked severities such as "2 - High".
_SEVERITY_RANK = re.compile(r"^\s*\d+\s*-\s*")

_PREFERRED_LIBRARIES = {
    ProgrammingLanguage.PYTHON: ["pytest", "hypothesis", "pydantic"],
    ProgrammingLanguage.TYPESCRIPT: ["jest", "supertest", "joi"],
    ProgrammingLanguage.JAVASCRIPT: ["jest", "supertest", "joi"],
}


def validate_defect(work_item: WorkItem) -> list[ValidationFinding]:
    results = []
    steps = (work_item.reproduction_steps or "").strip()

    if not steps:
        results.append(
            finding(
                "reproductionSteps",
                "Reproduction steps are essential for understanding and fixing the bug",
                "error",
            )
        )
    elif len(steps) < MIN_STEPS_LENGTH:
        results.append(
            finding(
                "reproductionSteps",
                "Reproduction steps should be detailed enough to reliably reproduce the issue",
                "warning",
            )
        )

    description = work_item.description or ""
    if description and len(description) < MIN_DESCRIPTION_LENGTH:
        results.append(
            finding("description", "Bug description should clearly explain the issue and its impact", "warning")
        )

    return results


def parse_reproduction_steps(steps: str) -> dict[str, Any]:
    """Numbered list first, then bullets, else sentences/lines as free text."""
    numbered_steps = [
        {"step_number": int(m.group(1)), "action": m.group(2).strip()}
        for m in _NUMBERED_STEP.finditer(steps)
        if m.group(2).strip()
    ]
    if numbered_steps:
        return {"format": "numbered", "steps": numbered_steps}

    bullets = [m.group(1).strip() for m in _BULLET_STEP.finditer(steps) if m.group(1).strip()]
    if bullets:
        return {
            "format": "bullet_points",
            "steps": [{"step_number": i, "action": action} for i, action in enumerate(bullets, start=1)],
        }

    sentences = [part.strip() for part in _FREE_TEXT_SPLIT.split(steps) if part.strip()]
    return {
        "format": "free_text",
        "steps": [{"step_number": i, "action": action} for i, action in enumerate(sentences, start=1)],
    }


def _first_group(patterns: list[re.Pattern[str]], text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def extract_behavior_analysis(description: str) -> dict[str, str | None]:
    """Expected: "expected ..." then "should ...". Actual: "actual(ly) ...", "instead ...", "but ...".

    Lead words match as whole words, so "button" never opens an actual-behaviour clause.
    """
    return {
        "expected_behavior": _first_group(_EXPECTED_PATTERNS, description),
        "actual_behavior": _first_group(_ACTUAL_PATTERNS, description),
    }


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def extract_error_information(work_item: WorkItem) -> dict[str, list[str]]:
    text = f"{work_item.description or ''} {work_item.reproduction_steps or ''}"
    messages = [m.group(0).strip() for p in _ERROR_MESSAGE_PATTERNS for m in p.finditer(text)]
    codes = _unique([m.group(0) for m in _HTTP_STATUS.finditer(text)] + [m.group(0) for m in _ERROR_CONSTANT.finditer(text)])
    return {"error_messages": messages, "error_codes": codes}


def extract_affected_components(work_item: WorkItem) -> list[str]:
    text = f"{work_item.title} {work_item.description or ''}"
    return [kw for kw, p in _COMPONENT_PATTERNS if p.search(text)]


def normalize_severity(value: Any) -> str:
    """Severity label without any rank prefix; "Medium" when unset."""
    if not value:
        return DEFAULT_SEVERITY
    return _SEVERITY_RANK.sub("", str(value)).strip() or DEFAULT_SEVERITY


def assess_impact(work_item: WorkItem) -> dict[str, str]:
    severity = normalize_severity(work_item.custom_fields.get(SEVERITY_FIELD)).lower()
    priority = work_item.priority

    if severity == "critical" or priority == 1:
        return {"user_impact": "high", "urgency": "immediate"}
    if severity == "high" or priority == 2:
        return {"user_impact": "high", "urgency": "high"}
    if severity == "low" or priority == 4:
        return {"user_impact": "low", "urgency": "low"}
    return {"user_impact": "medium", "urgency": "medium"}


def categorize_defect(work_item: WorkItem) -> str:
    content = f"{work_item.title} {work_item.description or ''}"
    return first_category(content, _CATEGORY_PATTERNS, "general")


def extract_defect(work_item: WorkItem) -> dict[str, Any]:
    return {
        **common_fields(work_item),
        "reproduction_steps": parse_reproduction_steps(work_item.reproduction_steps or ""),
        "behavior_analysis": extract_behavior_analysis(work_item.description or ""),
        "error_info": extract_error_information(work_item),
        "affected_components": extract_affected_components(work_item),
        "impact_assessment": assess_impact(work_item),
        "severity": normalize_severity(work_item.custom_fields.get(SEVERITY_FIELD)),
        "bug_category": categorize_defect(work_item),
    }


def _style_block(fields: dict[str, Any]) -> str:
    lines = [
        "Generate code that fixes the reported bug:",
        f"- Bug Category: {fields.get('bug_category')}",
        f"- Severity: {fields.get('severity')}",
    ]

    expected = fields.get("behavior_analysis", {}).get("expected_behavior")
    if expected:
        lines.append(f"- Expected Behavior: {expected}")

    steps = fields.get("reproduction_steps", {}).get("steps", [])
    if steps:
        lines.append("- Reproduction Steps:")
        lines += numbered(step["action"] for step in steps)

    return "\n".join(lines)


def build_defect_instructions(fields: dict[str, Any], repository_config: RepositoryConfig) -> PromptInstructions:
    return PromptInstructions(
        requirements=[
            "Fix the root cause, not just symptoms",
            "Ensure the fix doesn't introduce new issues",
            "Add appropriate error handling and validation",
            "Include regression tests to prevent reoccurrence",
        ],
        patterns=["Error Handling", "Validation", "Testing"],
        preferred_libraries=_PREFERRED_LIBRARIES.get(repository_config.target_language, []),
        style_preferences=[_style_block(fields)],
    )


EXTRACTOR = Extractor(
    kind=WorkItemType.DEFECT,
    strategy=STRATEGY,
    validate=validate_defect,
    extract=extract_defect,
    build_instructions=build_defect_instructions,
)
