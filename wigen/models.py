"""Shared pydantic models: the contract between the tracker boundary, the extractors and the CLI."""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class WorkItemType(str, Enum):
    REQUIREMENT = "User Story"
    TASK = "Task"
    DEFECT = "Bug"
    FEATURE = "Feature"
    EPIC = "Epic"


class ProgrammingLanguage(str, Enum):
    PYTHON = "python"
    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    CSHARP = "csharp"
    JAVA = "java"


Severity = Literal["error", "warning", "info"]


# ---------------------------------------------------------------------------
# Work item
# ---------------------------------------------------------------------------


class WorkItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    type: WorkItemType
    title: str
    description: str | None = None
    acceptance_criteria: str | None = None  # User Story only
    reproduction_steps: str | None = None  # Bug only
    assigned_to: str | None = None
    area_path: str = ""
    iteration_path: str = ""
    state: str = "New"
    priority: int = Field(default=2, ge=1, le=4)  # 1 = highest
    tags: list[str] = []
    custom_fields: dict[str, Any] = {}  # vendor reference name -> value


# ---------------------------------------------------------------------------
# Repository configuration
# ---------------------------------------------------------------------------


class NamingConventions(BaseModel):
    model_config = ConfigDict(frozen=True)

    variables: str = "snake_case"
    functions: str = "snake_case"
    classes: str = "PascalCase"
    constants: str = "UPPER_SNAKE_CASE"
    files: str = "snake_case"
    directories: str = "snake_case"


class FileStructureRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern: str
    description: str = ""
    required_structure: list[str] = []
    naming_convention: str = ""
    mandatory: bool = False


class QualityThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    max_complexity: int
    max_function_length: int
    max_file_length: int
    min_test_coverage: int


class CodingStandards(BaseModel):
    model_config = ConfigDict(frozen=True)

    linting_rules: str = ""
    formatting_config: str = ""
    naming_conventions: NamingConventions = NamingConventions()
    file_structure: list[FileStructureRule] = []
    quality_thresholds: QualityThresholds | None = None


class TemplateFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    target_path: str
    content: str = ""
    file_type: str = "source"  # "source" | "test" | "config" | "documentation"
    variables: list[str] = []


class CodeTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    work_item_types: list[WorkItemType]
    template_files: list[TemplateFile] = []
    variables: dict[str, str] = {}


class ProjectStructure(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_dir: str = "src"
    test_dir: str = "tests"
    config_dir: str | None = "config"
    docs_dir: str | None = "docs"


class RepositoryConfig(BaseModel):
    """Caller-owned description of the repository code is generated for."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str | None = None
    target_language: ProgrammingLanguage = ProgrammingLanguage.PYTHON
    framework: str | None = None
    structure: ProjectStructure = ProjectStructure()
    dependencies: list[str] = []
    dev_dependencies: list[str] = []
    code_templates: list[CodeTemplate] = []
    coding_standards: CodingStandards = CodingStandards()
    area_paths: list[str] = []  # tracker area paths routed to this repository


# ---------------------------------------------------------------------------
# Pipeline output
# ---------------------------------------------------------------------------


class ValidationFinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    field_name: str
    is_valid: bool
    message: str
    severity: Severity


class ProjectContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_name: str
    primary_language: ProgrammingLanguage
    framework: str | None = None
    structure: ProjectStructure
    dependencies: list[str] = []
    dev_dependencies: list[str] = []


class PromptInstructions(BaseModel):
    model_config = ConfigDict(frozen=True)

    requirements: list[str] = []
    patterns: list[str] = []
    preferred_libraries: list[str] = []
    style_preferences: list[str] = []


class CodeGenerationPrompt(BaseModel):
    """Everything the code-generation collaborator needs for one work item."""

    model_config = ConfigDict(frozen=True)

    work_item: WorkItem
    target_language: ProgrammingLanguage
    project_context: ProjectContext
    code_templates: list[CodeTemplate] = []
    coding_standards: CodingStandards
    instructions: PromptInstructions = PromptInstructions()


class ProcessingMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    extracted_fields: dict[str, Any] = {}
    strategy: str
    validation_results: list[ValidationFinding] = []


class ProcessingResult(BaseModel):
    """Returned by the orchestrator; success iff no error finding and no fault."""

    model_config = ConfigDict(frozen=True)

    success: bool
    prompt: CodeGenerationPrompt | None = None
    error: str | None = None
    metadata: ProcessingMetadata
