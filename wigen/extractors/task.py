"""Task extractor: technical specs, implementation approach, dependencies, complexity."""

import re
from typing import Any

from wigen.extractors.base import (
    EFFORT_FIELDS,
    REMAINING_WORK_FIELD,
    Extractor,
    as_number,
    common_fields,
    custom_field,
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

STRATEGY = "TaskTechnicalImplementation"

MIN_DESCRIPTION_LENGTH = 50

TECHNICAL_KEYWORDS = [
    "implement", "create", "update", "delete", "refactor", "optimize",
    "api", "endpoint", "function", "method", "class", "component",
    "database", "query", "service", "integration",
]  # fmt: skip

DATABASE_KEYWORDS = ["database", "table", "collection", "schema", "query", "SQL", "NoSQL", "MongoDB", "PostgreSQL", "MySQL"]
TECHNOLOGY_KEYWORDS = ["TypeScript", "JavaScript", "Node.js", "Express", "React", "Angular", "Vue", "Docker", "Kubernetes"]
PATTERN_KEYWORDS = ["MVC", "Repository", "Factory", "Singleton", "Observer", "Strategy", "middleware", "service"]
DEPENDENCY_KEYWORDS = ["npm", "package", "library", "framework", "service", "API", "database"]
EXTERNAL_KEYWORDS = ["third-party", "external", "vendor", "partner"]

# Substring weights; each keyword counts once.
COMPLEXITY_WEIGHTS = {
    3: ["integration", "migration", "refactor", "architecture", "performance", "security", "scalability"],
    2: ["api", "database", "service", "component", "algorithm"],
    1: ["fix", "update", "change", "add", "remove"],
}

# Declared order is precedence order.
TASK_CATEGORIES = {
    "frontend": ["ui", "frontend", "react", "angular", "vue", "component", "page", "form"],
    "backend": ["api", "backend", "server", "endpoint", "service", "controller"],
    "database": ["database", "db", "table", "schema", "query", "migration"],
    "infrastructure": ["deploy", "infrastructure", "docker", "kubernetes", "ci/cd", "pipeline"],
    "testing": ["test", "testing", "unit test", "integration test", "e2e"],
    "documentation": ["document", "documentation", "readme", "guide", "manual"],
    "bugfix": ["fix", "bug", "issue", "error", "problem"],
    "refactoring": ["refactor", "cleanup", "optimize", "improve", "restructure"],
}

_CATEGORY_PATTERNS = [(name, [leading_word_pattern(kw) for kw in kws]) for name, kws in TASK_CATEGORIES.items()]

_API_PATTERNS = [
    re.compile(r"\b(?:REST|GraphQL|SOAP)\s+API", re.IGNORECASE),
    re.compile(r"\b(?:GET|POST|PUT|DELETE|PATCH)\s+/[\w/\-{}]+", re.IGNORECASE),
    re.compile(r"\bendpoint\s+[\w/\-{}]+", re.IGNORECASE),
]
_DATABASE_PATTERNS = [(kw, word_pattern(kw)) for kw in DATABASE_KEYWORDS]
_TECHNOLOGY_PATTERNS = [(kw, word_pattern(kw)) for kw in TECHNOLOGY_KEYWORDS]
_PATTERN_PATTERNS = [(kw, word_pattern(kw)) for kw in PATTERN_KEYWORDS]
_SENTENCE = re.compile(r"[^.!?]+[.!?]?")
_REQUIREMENT_WORD = re.compile(r"\b(?:must|should|need to|required to)\b", re.IGNORECASE)

_STEP_PATTERNS = [
    re.compile(r"\b(?:step\s+\d+|first|second|third|then|next|finally)\b[:\-\s]*([^.\n]+)", re.IGNORECASE),
    re.compile(r"^\s*\d+\.\s*([^.\n]+)", re.MULTILINE),
    re.compile(r"^\s*[-*]\s*([^.\n]+)", re.MULTILINE),
]
_CONSIDERATION = re.compile(
    r"(?:^|(?<=[.!?]))\s*(?:consider|note|important|warning|caution|remember)\b[:\-\s]*([^.\n]+)",
    re.IGNORECASE | re.MULTILINE,
)

# Dependency sentences end at a period only.
_DEPENDENCY_SENTENCE = re.compile(r"[^.]+")
_DEPENDENCY_LEAD = re.compile(r"(?:depends on|requires|needs)\s+", re.IGNORECASE)
_DEPENDENCY_PATTERNS = [word_pattern(dep) for dep in DEPENDENCY_KEYWORDS]
_WORK_ITEM_REFERENCE = re.compile(r"#\d+|\bwork item\s+\d+|\btask\s+\d+|\bstory\s+\d+", re.IGNORECASE)

_DELIVERABLE_PATTERNS = [
    re.compile(r"\b(?:deliver|create|implement|build|develop)\s+([^.\n]+)", re.IGNORECASE),
    re.compile(r"\b(?:output|result|deliverable)\b[:\-\s]*([^.\n]+)", re.IGNORECASE),
]

_PREFERRED_LIBRARIES = {
    ProgrammingLanguage.PYTHON: ["pydantic", "pytest", "structlog"],
    ProgrammingLanguage.TYPESCRIPT: ["typescript", "jest", "winston"],
    ProgrammingLanguage.JAVASCRIPT: ["jest", "winston"],
}


def _effort(work_item: WorkItem) -> Any:
    return custom_field(work_item, *EFFORT_FIELDS)


def validate_task(work_item: WorkItem) -> list[ValidationFinding]:
    results = []
    description = work_item.description or ""

    if description and len(description) < MIN_DESCRIPTION_LENGTH:
        results.append(
            finding(
                "description",
                "Task description should be detailed enough to provide clear implementation guidance",
                "warning",
            )
        )

    if description and not any(kw in description.lower() for kw in TECHNICAL_KEYWORDS):
        results.append(
            finding(
                "description",
                "Consider adding more technical details about the implementation approach",
                "info",
                is_valid=True,
            )
        )

    if not _effort(work_item):
        results.append(finding("effort", "Consider adding effort estimation for better planning", "info", is_valid=True))

    return results


def _sentences(pattern: re.Pattern[str], text: str) -> list[str]:
    return [m.group(0).strip() for m in pattern.finditer(text) if m.group(0).strip()]


def _technical_dependencies(description: str) -> list[str]:
    """Per keyword, each sentence from its first dependency lead onward, if the keyword follows that lead."""
    leads = []
    for sentence in _sentences(_DEPENDENCY_SENTENCE, description):
        lead = _DEPENDENCY_LEAD.search(sentence)
        if lead:
            leads.append((sentence, lead))
    return [
        sentence[lead.start() :]
        for pattern in _DEPENDENCY_PATTERNS
        for sentence, lead in leads
        if pattern.search(sentence, lead.end())
    ]


def _group_matches(patterns: list[re.Pattern[str]], text: str) -> list[str]:
    return [m.group(1).strip() for p in patterns for m in p.finditer(text) if m.group(1).strip()]


def extract_technical_specs(description: str) -> dict[str, list[str]]:
    """Pull API mentions, vocabulary hits and must/should clauses out of the description.

    Vocabulary keywords are matched as whole words and reported in vocabulary spelling.
    """
    return {
        "apis": [m.group(0) for p in _API_PATTERNS for m in p.finditer(description)],
        "databases": [kw for kw, p in _DATABASE_PATTERNS if p.search(description)],
        "technologies": [kw for kw, p in _TECHNOLOGY_PATTERNS if p.search(description)],
        "patterns": [kw for kw, p in _PATTERN_PATTERNS if p.search(description)],
        "requirements": [s for s in _sentences(_SENTENCE, description) if _REQUIREMENT_WORD.search(s)],
    }


def extract_implementation_approach(description: str) -> dict[str, Any]:
    """Approach precedence: refactor, optimize, integrate, create/implement, else standard."""
    lowered = description.lower()
    if "refactor" in lowered:
        approach = "refactoring"
    elif "optimize" in lowered:
        approach = "optimization"
    elif "integrate" in lowered:
        approach = "integration"
    elif "create" in lowered or "implement" in lowered:
        approach = "new_development"
    else:
        approach = "standard"

    return {
        "approach": approach,
        "steps": _group_matches(_STEP_PATTERNS, description),
        "considerations": _group_matches([_CONSIDERATION], description),
    }


def extract_dependencies(work_item: WorkItem) -> dict[str, list[str]]:
    description = work_item.description or ""
    lowered = description.lower()
    return {
        "technical": _technical_dependencies(description),
        "work_items": [m.group(0) for m in _WORK_ITEM_REFERENCE.finditer(description)],
        "external": [kw for kw in EXTERNAL_KEYWORDS if kw in lowered],
    }


def extract_deliverables(description: str) -> list[str]:
    return _group_matches(_DELIVERABLE_PATTERNS, description)


def assess_complexity(work_item: WorkItem) -> str:
    description = (work_item.description or "").lower()
    score = sum(weight for weight, keywords in COMPLEXITY_WEIGHTS.items() for kw in keywords if kw in description)

    effort = as_number(_effort(work_item))
    if effort:
        if effort > 16:
            score += 3
        elif effort > 8:
            score += 2
        elif effort > 4:
            score += 1

    if score >= 8:
        return "high"
    if score >= 4:
        return "medium"
    return "low"


def categorize_task(work_item: WorkItem) -> str:
    """First category in declared order with a keyword starting a word of title + description."""
    content = f"{work_item.title} {work_item.description or ''}"
    return first_category(content, _CATEGORY_PATTERNS, "general")


def extract_task(work_item: WorkItem) -> dict[str, Any]:
    description = work_item.description or ""
    return {
        **common_fields(work_item),
        "technical_specs": extract_technical_specs(description),
        "implementation_approach": extract_implementation_approach(description),
        "dependencies": extract_dependencies(work_item),
        "deliverables": extract_deliverables(description),
        "complexity": assess_complexity(work_item),
        "effort": _effort(work_item),
        "remaining_work": custom_field(work_item, REMAINING_WORK_FIELD),
        "task_category": categorize_task(work_item),
    }


def _style_block(fields: dict[str, Any]) -> str:
    lines = [
        "Generate code that implements the technical task requirements:",
        f"- Task Category: {fields.get('task_category')}",
        f"- Complexity Level: {fields.get('complexity')}",
    ]

    sections = [
        ("- Technical Requirements:", fields.get("technical_specs", {}).get("requirements", [])),
        ("- Implementation Steps:", fields.get("implementation_approach", {}).get("steps", [])),
        ("- Expected Deliverables:", fields.get("deliverables", [])),
        ("- Technical Dependencies:", fields.get("dependencies", {}).get("technical", [])),
    ]
    for heading, items in sections:
        if items:
            lines.append(heading)
            lines += numbered(items)

    lines += [
        "",
        "Focus on:",
        "- Clean, maintainable code structure",
        "- Proper error handling and logging",
        "- Performance optimization where applicable",
        "- Following established coding standards",
        "- Including appropriate tests",
    ]
    return "\n".join(lines)


def build_task_instructions(fields: dict[str, Any], repository_config: RepositoryConfig) -> PromptInstructions:
    return PromptInstructions(
        requirements=[
            "Follow technical specifications exactly",
            "Implement efficient and maintainable code",
            "Include comprehensive error handling",
            "Add appropriate logging and monitoring",
            "Follow established patterns and conventions",
            "Include unit tests for new functionality",
        ],
        patterns=["Factory", "Strategy", "Observer"],
        preferred_libraries=_PREFERRED_LIBRARIES.get(repository_config.target_language, []),
        style_preferences=[_style_block(fields)],
    )


EXTRACTOR = Extractor(
    kind=WorkItemType.TASK,
    strategy=STRATEGY,
    validate=validate_task,
    extract=extract_task,
    build_instructions=build_task_instructions,
)
