"""User Story extractor: acceptance criteria, persona and business value."""

import re
from typing import Any

from wigen.extractors.base import (
    STORY_POINTS_FIELD,
    Extractor,
    as_number,
    common_fields,
    custom_field,
    finding,
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

STRATEGY = "UserStoryRequirementsExtraction"

ROLE_KEYWORDS = ["user", "customer", "admin", "administrator", "manager", "developer", "analyst"]
HIGH_PRIORITY_TAGS = ["critical", "urgent", "mvp", "release-blocker"]

_ROLE_PATTERNS = [word_pattern(role) for role in ROLE_KEYWORDS]
_AS_A_ROLE = re.compile(r"\bas\s+(?:a|an)\s+([^,\n]+)", re.IGNORECASE)
_GHERKIN_MARKER = re.compile(r"\b(?:given|when|then)\b", re.IGNORECASE)
_GHERKIN_SEGMENT = re.compile(
    r"\b(given|when|then)\s+(.+?)(?=\b(?:given|when|then)\b|\Z)",
    re.IGNORECASE | re.DOTALL,
)
_BULLET_MARKER = re.compile(r"^\s*[-*•]\s", re.MULTILINE)
_BULLET_ITEM = re.compile(r"^\s*[-*•]\s*(.+)$", re.MULTILINE)

# Checked in order; the first alternative that matches wins.
_BUSINESS_VALUE_PATTERNS = [
    re.compile(r"\bso\s+that\s+(.+?)(?:\.|$)", re.IGNORECASE | re.MULTILINE),
    re.compile(r"\bin\s+order\s+to\s+(.+?)(?:\.|$)", re.IGNORECASE | re.MULTILINE),
    re.compile(r"\bto\s+(?:be\s+able\s+to\s+)?(.+?)(?:\.|$)", re.IGNORECASE | re.MULTILINE),
]

_PREFERRED_LIBRARIES = {
    ProgrammingLanguage.PYTHON: ["fastapi", "pydantic", "sqlalchemy"],
    ProgrammingLanguage.TYPESCRIPT: ["express", "joi", "bcrypt"],
    ProgrammingLanguage.JAVASCRIPT: ["express", "joi", "bcrypt"],
}


def validate_requirement(work_item: WorkItem) -> list[ValidationFinding]:
    results = []
    criteria = work_item.acceptance_criteria or ""

    if not criteria.strip():
        results.append(
            finding(
                "acceptanceCriteria",
                "Acceptance criteria are highly recommended for User Stories to ensure clear requirements",
                "warning",
            )
        )
    elif not _GHERKIN_MARKER.search(criteria) and not _BULLET_MARKER.search(criteria):
        results.append(
            finding(
                "acceptanceCriteria",
                "Consider using structured format (Given-When-Then or bullet points) for better clarity",
                "info",
                is_valid=True,
            )
        )

    description = work_item.description or ""
    if description:
        has_role = _AS_A_ROLE.search(description) or any(p.search(description) for p in _ROLE_PATTERNS)
        if not has_role:
            results.append(
                finding(
                    "description",
                    'Consider including user role or persona in the description (e.g., "As a user...")',
                    "info",
                    is_valid=True,
                )
            )

    return results


def parse_acceptance_criteria(criteria: str) -> dict[str, Any]:
    """Parse acceptance criteria into ``{"format", "items"}``.

    Precedence: Gherkin (any given/when/then segment) → bullet list → one free-text item.
    Blank input yields free_text with no items.
    """
    if not criteria.strip():
        return {"format": "free_text", "items": []}

    segments = list(_GHERKIN_SEGMENT.finditer(criteria))
    if segments:
        return {
            "format": "gherkin",
            "items": [{"type": m.group(1).lower(), "content": m.group(2).strip()} for m in segments],
        }

    bullets = list(_BULLET_ITEM.finditer(criteria))
    if bullets:
        return {
            "format": "bullet_points",
            "items": [{"type": "bullet", "content": m.group(1).strip()} for m in bullets],
        }

    return {"format": "free_text", "items": [{"type": "text", "content": criteria.strip()}]}


def extract_user_role(description: str) -> str | None:
    """An explicit "as a/an <role>" wins, else the first vocabulary role mentioned."""
    match = _AS_A_ROLE.search(description)
    if match and match.group(1).strip():
        return match.group(1).strip()
    for role, pattern in zip(ROLE_KEYWORDS, _ROLE_PATTERNS):
        if pattern.search(description):
            return role
    return None


def extract_business_value(description: str) -> str | None:
    for pattern in _BUSINESS_VALUE_PATTERNS:
        match = pattern.search(description)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def extract_functional_requirements(work_item: WorkItem) -> list[str]:
    requirements = []
    if work_item.title:
        requirements.append(f"Implement: {work_item.title}")
    if work_item.acceptance_criteria:
        criteria = parse_acceptance_criteria(work_item.acceptance_criteria)
        requirements += [item["content"] for item in criteria["items"] if item["type"] in ("when", "bullet")]
    return requirements


def calculate_business_priority(work_item: WorkItem) -> str:
    score = 0

    if work_item.priority <= 1:
        score += 3
    elif work_item.priority <= 2:
        score += 2
    else:
        score += 1

    if any(tag_kw in tag.lower() for tag in work_item.tags for tag_kw in HIGH_PRIORITY_TAGS):
        score += 2

    # Small stories are quick wins.
    story_points = as_number(work_item.custom_fields.get(STORY_POINTS_FIELD))
    if story_points and story_points <= 3:
        score += 1

    if score >= 5:
        return "high"
    if score >= 3:
        return "medium"
    return "low"


def extract_requirement(work_item: WorkItem) -> dict[str, Any]:
    description = work_item.description or ""
    return {
        **common_fields(work_item),
        "acceptance_criteria": parse_acceptance_criteria(work_item.acceptance_criteria or ""),
        "user_role": extract_user_role(description),
        "business_value": extract_business_value(description),
        "functional_requirements": extract_functional_requirements(work_item),
        "story_points": custom_field(work_item, STORY_POINTS_FIELD),
        "business_priority": calculate_business_priority(work_item),
    }


def _style_block(fields: dict[str, Any]) -> str:
    lines = [
        "Generate code that implements the user story requirements:",
        f"- User Role: {fields.get('user_role') or 'General User'}",
        f"- Business Value: {fields.get('business_value') or 'Improve user experience'}",
    ]

    criteria = fields.get("acceptance_criteria", {}).get("items", [])
    if criteria:
        lines.append("- Acceptance Criteria:")
        lines += numbered(item["content"] for item in criteria)

    requirements = fields.get("functional_requirements", [])
    if requirements:
        lines.append("- Functional Requirements:")
        lines += numbered(requirements)

    lines += [
        "",
        "Focus on:",
        "- User interface components if applicable",
        "- Business logic implementation",
        "- Data validation and error handling",
        "- Integration with existing systems",
        "- Performance and scalability considerations",
    ]
    return "\n".join(lines)


def build_requirement_instructions(fields: dict[str, Any], repository_config: RepositoryConfig) -> PromptInstructions:
    return PromptInstructions(
        requirements=[
            "Implement user-facing functionality",
            "Follow acceptance criteria strictly",
            "Include input validation",
            "Add appropriate error handling",
            "Consider user experience and accessibility",
        ],
        patterns=["MVC", "Repository", "Service Layer"],
        preferred_libraries=_PREFERRED_LIBRARIES.get(repository_config.target_language, []),
        style_preferences=[_style_block(fields)],
    )


EXTRACTOR = Extractor(
    kind=WorkItemType.REQUIREMENT,
    strategy=STRATEGY,
    validate=validate_requirement,
    extract=extract_requirement,
    build_instructions=build_requirement_instructions,
)
