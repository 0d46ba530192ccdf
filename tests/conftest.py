"""Shared test fixtures."""

import pytest

from wigen.models import ProgrammingLanguage, RepositoryConfig, WorkItem, WorkItemType
from wigen.repository import DEFAULT_REPOSITORY_CONFIG


@pytest.fixture
def requirement_item() -> WorkItem:
    return WorkItem(
        id=1201,
        type=WorkItemType.REQUIREMENT,
        title="Export invoices as CSV",
        description="As a billing manager, I want to export invoices so that I can reconcile payments.",
        acceptance_criteria=(
            "Given I am on the invoices page\n"
            "When I click export\n"
            "Then a CSV file is downloaded"
        ),
        assigned_to="Sam Rivera",
        area_path="Contoso\\Billing",
        iteration_path="Contoso\\Sprint 12",
        state="Active",
        priority=1,
        tags=["mvp", "billing"],
        custom_fields={"Microsoft.VSTS.Scheduling.StoryPoints": 3},
    )


@pytest.fixture
def task_item() -> WorkItem:
    return WorkItem(
        id=2402,
        type=WorkItemType.TASK,
        title="Refactor payment service",
        description="Refactor the payment service to improve performance. Effort: 20.",
        area_path="Contoso\\Payments",
        custom_fields={"Microsoft.VSTS.Scheduling.Effort": 20},
    )


@pytest.fixture
def defect_item() -> WorkItem:
    return WorkItem(
        id=4521,
        type=WorkItemType.DEFECT,
        title="Save button fails on invoice form",
        description="Expected the form to save but actual result is a 500 error",
        reproduction_steps="1. Open page\n2. Click submit\n3. See error",
        area_path="Contoso\\Billing\\Web",
        priority=2,
        tags=["regression"],
        custom_fields={"Microsoft.VSTS.Common.Severity": "2 - High"},
    )


@pytest.fixture
def repository_config() -> RepositoryConfig:
    return DEFAULT_REPOSITORY_CONFIG


@pytest.fixture
def typescript_config() -> RepositoryConfig:
    return RepositoryConfig(
        name="web",
        target_language=ProgrammingLanguage.TYPESCRIPT,
        framework="express",
        dependencies=["express"],
        area_paths=["Contoso\\Web"],
    )
