"""Built-in repository configuration and area-path routing."""

from collections.abc import Sequence

from wigen.models import (
    CodeTemplate,
    CodingStandards,
    FileStructureRule,
    NamingConventions,
    ProgrammingLanguage,
    ProjectStructure,
    QualityThresholds,
    RepositoryConfig,
    TemplateFile,
    WorkItem,
    WorkItemType,
)

_SERVICE_TEMPLATE = '''\
"""{{service_name}}: generated from work item {{work_item_id}}.

{{description}}
"""


class {{service_name}}:
    def __init__(self) -> None:
        pass
'''

_BUG_FIX_TEMPLATE = '''\
"""Bug fix: {{title}}

Work item: {{work_item_id}}
Description: {{description}}
Reproduction steps: {{reproduction_steps}}
"""


def fix() -> None:
    """Fix the issue described in work item {{work_item_id}}."""
'''

DEFAULT_CODE_TEMPLATES = [
    CodeTemplate(
        name="Python Service",
        description="Service module with a single class",
        work_item_types=[WorkItemType.TASK, WorkItemType.REQUIREMENT],
        template_files=[
            TemplateFile(
                name="service",
                target_path="src/services/{{module_name}}.py",
                content=_SERVICE_TEMPLATE,
                variables=["service_name", "module_name", "work_item_id", "description"],
            )
        ],
        variables={
            "service_name": "Derived from the work item title",
            "module_name": "Snake-case form of service_name",
            "work_item_id": "Work item ID",
            "description": "Work item description",
        },
    ),
    CodeTemplate(
        name="Bug Fix Module",
        description="Fix module with a regression test",
        work_item_types=[WorkItemType.DEFECT],
        template_files=[
            TemplateFile(
                name="fix",
                target_path="src/fixes/{{module_name}}.py",
                content=_BUG_FIX_TEMPLATE,
                variables=["module_name", "title", "work_item_id", "description", "reproduction_steps"],
            ),
            TemplateFile(
                name="regression test",
                target_path="tests/test_{{module_name}}.py",
                file_type="test",
                variables=["module_name", "work_item_id"],
            ),
        ],
        variables={
            "module_name": "Derived from the bug title",
            "title": "Bug title",
            "work_item_id": "Work item ID",
            "description": "Bug description",
            "reproduction_steps": "Steps to reproduce the bug",
        },
    ),
]

DEFAULT_CODING_STANDARDS = CodingStandards(
    linting_rules="ruff",
    formatting_config="black",
    naming_conventions=NamingConventions(),
    file_structure=[
        FileStructureRule(
            pattern="src/**/*.py",
            description="Python source files",
            required_structure=["src"],
            naming_convention="snake_case",
            mandatory=True,
        ),
        FileStructureRule(
            pattern="tests/**/test_*.py",
            description="Test files",
            required_structure=["tests"],
            naming_convention="snake_case",
        ),
    ],
    quality_thresholds=QualityThresholds(
        max_complexity=10,
        max_function_length=50,
        max_file_length=500,
        min_test_coverage=80,
    ),
)

DEFAULT_REPOSITORY_CONFIG = RepositoryConfig(
    name="default",
    target_language=ProgrammingLanguage.PYTHON,
    structure=ProjectStructure(),
    dev_dependencies=["pytest"],
    code_templates=DEFAULT_CODE_TEMPLATES,
    coding_standards=DEFAULT_CODING_STANDARDS,
)


def matches_area_path(config: RepositoryConfig, area_path: str) -> bool:
    """True when area_path equals, or sits below, one of the config's area paths (case-insensitive)."""
    path = area_path.strip().lower()
    if not path:
        return False
    for candidate in config.area_paths:
        candidate = candidate.strip().lower()
        if candidate and (path == candidate or path.startswith(candidate + "\\")):
            return True
    return False


def resolve_repository(work_item: WorkItem, configs: Sequence[RepositoryConfig]) -> RepositoryConfig:
    """Pick the repository for a work item: first area-path match, else the first config.

    With no configs at all the built-in default is used.
    """
    if not configs:
        return DEFAULT_REPOSITORY_CONFIG
    for config in configs:
        if matches_area_path(config, work_item.area_path):
            return config
    return configs[0]
