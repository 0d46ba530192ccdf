"""Tests for the Task extractor."""

from wigen.extractors.task import (
    EXTRACTOR,
    assess_complexity,
    categorize_task,
    extract_deliverables,
    extract_dependencies,
    extract_implementation_approach,
    extract_technical_specs,
    validate_task,
)
from wigen.models import RepositoryConfig, WorkItem, WorkItemType


def _task(description: str | None = None, title: str = "Task", **kwargs) -> WorkItem:
    return WorkItem(id=1, type=WorkItemType.TASK, title=title, description=description, area_path="A", **kwargs)


class TestScenario:
    def test_refactor_payment_service(self, task_item: WorkItem) -> None:
        fields = EXTRACTOR.extract(task_item)
        assert fields["implementation_approach"]["approach"] == "refactoring"
        assert fields["complexity"] == "high"
        assert fields["task_category"] == "backend"
        assert fields["effort"] == 20
        assert fields["remaining_work"] is None


class TestTechnicalSpecs:
    def test_apis(self) -> None:
        specs = extract_technical_specs("Expose a REST API with POST /invoices/{id}/export and endpoint /health.")
        assert specs["apis"] == ["REST API", "POST /invoices/{id}/export", "endpoint /health"]

    def test_vocabularies_match_whole_words(self) -> None:
        specs = extract_technical_specs("Store rows in PostgreSQL using the Repository pattern with Docker.")
        assert specs["databases"] == ["PostgreSQL"]
        assert specs["technologies"] == ["Docker"]
        assert specs["patterns"] == ["Repository"]

    def test_no_hit_inside_other_words(self) -> None:
        specs = extract_technical_specs("Update the servicer tables")
        assert specs["patterns"] == []
        assert specs["databases"] == []

    def test_requirements(self) -> None:
        specs = extract_technical_specs("The job must be idempotent. Logs are optional. It should retry twice!")
        assert specs["requirements"] == ["The job must be idempotent.", "It should retry twice!"]


class TestImplementationApproach:
    def test_precedence(self) -> None:
        assert extract_implementation_approach("Optimize and refactor")["approach"] == "refactoring"
        assert extract_implementation_approach("Optimize the query")["approach"] == "optimization"
        assert extract_implementation_approach("Integrate with Stripe")["approach"] == "integration"
        assert extract_implementation_approach("Implement export")["approach"] == "new_development"
        assert extract_implementation_approach("Tweak copy")["approach"] == "standard"

    def test_steps(self) -> None:
        approach = extract_implementation_approach("First add the column. Then backfill rows.\n1. Deploy")
        assert approach["steps"] == ["add the column", "backfill rows", "Deploy"]

    def test_considerations(self) -> None:
        approach = extract_implementation_approach("Add caching. Note: cache keys include tenant.")
        assert approach["considerations"] == ["cache keys include tenant"]


class TestDependencies:
    def test_all_kinds(self) -> None:
        item = _task("This requires the billing service. Blocked by #42 and task 17. Uses a vendor SDK.")
        deps = extract_dependencies(item)
        assert deps["technical"] == ["requires the billing service"]
        assert deps["work_items"] == ["#42", "task 17"]
        assert deps["external"] == ["vendor"]

    def test_keyword_must_follow_lead(self) -> None:
        item = _task("The database job needs a new library. Service owners need a heads-up.")
        assert extract_dependencies(item)["technical"] == ["needs a new library"]

    def test_one_entry_per_keyword(self) -> None:
        item = _task("Export depends on the orders API and the reporting database")
        assert extract_dependencies(item)["technical"] == [
            "depends on the orders API and the reporting database",
            "depends on the orders API and the reporting database",
        ]

    def test_empty(self) -> None:
        assert extract_dependencies(_task()) == {"technical": [], "work_items": [], "external": []}


class TestDeliverables:
    def test_verbs_and_labels(self) -> None:
        deliverables = extract_deliverables("Build an export job. Output: a CSV in S3")
        assert deliverables == ["an export job", "a CSV in S3"]


class TestComplexity:
    def test_low(self) -> None:
        assert assess_complexity(_task("Fix typo")) == "low"

    def test_medium(self) -> None:
        assert assess_complexity(_task("Add a database api endpoint")) == "medium"

    def test_effort_bonus(self) -> None:
        item = _task("Add an api endpoint", custom_fields={"Microsoft.VSTS.Scheduling.OriginalEstimate": "9"})
        assert assess_complexity(item) == "medium"
        item = _task("Security review of the api", custom_fields={"Microsoft.VSTS.Scheduling.Effort": 17})
        assert assess_complexity(item) == "high"


class TestCategorize:
    def test_declared_order_wins(self) -> None:
        assert categorize_task(_task("Wire the controller", title="Fix login page")) == "frontend"

    def test_form_not_matched_inside_performance(self) -> None:
        assert categorize_task(_task("Improve performance", title="Speed")) == "refactoring"

    def test_keyword_prefix_matches(self) -> None:
        assert categorize_task(_task("Add tests for checkout", title="Coverage")) == "testing"

    def test_general(self) -> None:
        assert categorize_task(_task("Misc", title="Chores")) == "general"


class TestValidateTask:
    def test_clean(self, task_item: WorkItem) -> None:
        assert validate_task(task_item) == []

    def test_short_non_technical_no_effort(self) -> None:
        findings = validate_task(_task("Make it nicer"))
        assert [(f.field_name, f.severity) for f in findings] == [
            ("description", "warning"),
            ("description", "info"),
            ("effort", "info"),
        ]


class TestInstructions:
    def test_style_block(self, task_item: WorkItem, repository_config: RepositoryConfig) -> None:
        instructions = EXTRACTOR.build_instructions(EXTRACTOR.extract(task_item), repository_config)
        assert instructions.patterns == ["Factory", "Strategy", "Observer"]
        assert instructions.preferred_libraries == ["pydantic", "pytest", "structlog"]
        [style] = instructions.style_preferences
        assert "- Task Category: backend" in style
        assert "- Complexity Level: high" in style
        assert "- Implementation Steps:" not in style
