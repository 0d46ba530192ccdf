"""wigen CLI: all commands."""

import asyncio
import json
from pathlib import Path
from typing import Annotated

import tomlkit
import typer
from rich import print as rprint
from rich.table import Table

from wigen.log import setup_logging
from wigen.models import CodeGenerationPrompt, ProcessingResult, ValidationFinding, WorkItem, WorkItemType
from wigen.naming import generate_branch_name, generate_commit_message
from wigen.providers.base import WorkItemSource
from wigen.providers.file import FileWorkItemSource
from wigen.registry import UnsupportedWorkItemTypeError, list_extractors, process_work_item
from wigen.repository import DEFAULT_REPOSITORY_CONFIG
from wigen.settings import (
    CONFIG_PATH,
    _list_profiles,
    _load_toml,
    get_repository_config,
    get_settings,
    load_repository_configs,
)

app = typer.Typer(help="wigen: turn tracker work items into code-generation prompts", no_args_is_help=True)

WorkItemArg = Annotated[str, typer.Argument(help="Work item ID (looked up as <work_item_dir>/<id>.json) or path")]

RepositoryOpt = Annotated[
    str | None,
    typer.Option("--repository", "-r", help="Repository profile name from ~/.config/wigen/config.toml"),
]

_SEVERITY_STYLE = {"error": "red", "warning": "yellow", "info": "cyan"}


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output to stderr")] = False,
) -> None:
    setup_logging("DEBUG" if verbose else get_settings().log_level)


# ---------------------------------------------------------------------------
# Work-item loading and pipeline
# ---------------------------------------------------------------------------


def get_source() -> WorkItemSource:
    return FileWorkItemSource(get_settings().work_item_dir)


def _load_work_item(work_item_id: str) -> WorkItem:
    try:
        return get_source().get_work_item(work_item_id)
    except RuntimeError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc


def _run_pipeline(work_item: WorkItem, repository: str | None = None) -> ProcessingResult:
    repository_config = get_repository_config(work_item, repository)
    try:
        return asyncio.run(
            process_work_item(work_item, repository_config, max_text_length=get_settings().max_text_length)
        )
    except UnsupportedWorkItemTypeError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc


def _findings_table(findings: list[ValidationFinding], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Severity")
    table.add_column("Field", style="bold")
    table.add_column("Message")
    for f in findings:
        style = _SEVERITY_STYLE[f.severity]
        table.add_row(f"[{style}]{f.severity}[/{style}]", f.field_name, f.message)
    return table


# ---------------------------------------------------------------------------
# Prompt rendering
# ---------------------------------------------------------------------------


def _bullets(items: list[str], empty: str = "_none_") -> list[str]:
    return [f"- {item}" for item in items] if items else [empty]


def render_prompt(prompt: CodeGenerationPrompt) -> str:
    """Render the prompt as a markdown document for the code-generation collaborator."""
    item = prompt.work_item
    context = prompt.project_context
    standards = prompt.coding_standards
    instructions = prompt.instructions

    lines = [
        f"# Work Item #{item.id}: {item.title}",
        "",
        f"**Type:** {item.type.value}",
        f"**State:** {item.state}",
        f"**Priority:** {item.priority}",
        f"**Area Path:** {item.area_path or '—'}",
        f"**Iteration:** {item.iteration_path or '—'}",
        f"**Assigned To:** {item.assigned_to or 'Unassigned'}",
        f"**Tags:** {', '.join(item.tags) if item.tags else 'none'}",
        "",
        "## Description",
        "",
        item.description or "_No description provided._",
    ]

    if item.type == WorkItemType.REQUIREMENT and item.acceptance_criteria:
        lines += ["", "## Acceptance Criteria", "", item.acceptance_criteria]
    if item.type == WorkItemType.DEFECT and item.reproduction_steps:
        lines += ["", "## Reproduction Steps", "", item.reproduction_steps]

    lines += [
        "",
        "## Project Context",
        "",
        f"- **Project:** {context.project_name}",
        f"- **Language:** {prompt.target_language.value}",
    ]
    if context.framework:
        lines.append(f"- **Framework:** {context.framework}")
    lines += [
        f"- **Source directory:** {context.structure.source_dir}",
        f"- **Test directory:** {context.structure.test_dir}",
        f"- **Dependencies:** {', '.join(context.dependencies) or 'none'}",
        f"- **Dev dependencies:** {', '.join(context.dev_dependencies) or 'none'}",
    ]

    if prompt.code_templates:
        lines += ["", "## Code Templates"]
        for template in prompt.code_templates:
            lines += ["", f"### {template.name}"]
            if template.description:
                lines.append(template.description)
            lines += [f"- `{f.target_path}` ({f.file_type})" for f in template.template_files]

    naming = standards.naming_conventions
    lines += [
        "",
        "## Coding Standards",
        "",
        f"- **Linting:** {standards.linting_rules or 'none'}",
        f"- **Formatting:** {standards.formatting_config or 'none'}",
        f"- **Naming:** functions {naming.functions}, classes {naming.classes}, "
        f"variables {naming.variables}, constants {naming.constants}, files {naming.files}",
    ]
    if standards.quality_thresholds:
        q = standards.quality_thresholds
        lines.append(
            f"- **Quality:** complexity ≤ {q.max_complexity}, function length ≤ {q.max_function_length}, "
            f"file length ≤ {q.max_file_length}, coverage ≥ {q.min_test_coverage}%"
        )
    for rule in standards.file_structure:
        required = " (required)" if rule.mandatory else ""
        lines.append(f"- `{rule.pattern}`: {rule.description}{required}")

    lines += ["", "## Instructions", "", "### Requirements", ""]
    lines += _bullets(instructions.requirements)
    lines += ["", "### Patterns", ""]
    lines += _bullets(instructions.patterns)
    lines += ["", "### Preferred Libraries", ""]
    lines += _bullets(instructions.preferred_libraries)
    for block in instructions.style_preferences:
        lines += ["", block]

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("process")
def process_cmd(
    work_item_id: WorkItemArg,
    repository: RepositoryOpt = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the prompt to a file instead of stdout"),
    ] = None,
) -> None:
    """Validate and extract a work item, then render its code-generation prompt."""
    work_item = _load_work_item(work_item_id)
    result = _run_pipeline(work_item, repository)

    if result.metadata.validation_results:
        rprint(_findings_table(result.metadata.validation_results, f"Findings for #{work_item.id}"))

    if not result.success:
        rprint(f"[red]✗ {result.error}[/red]")
        raise typer.Exit(1)

    rendered = render_prompt(result.prompt)
    if output:
        output.write_text(rendered)
        rprint(f"[green]✓[/green] Wrote prompt to {output}")
    else:
        typer.echo(rendered)


@app.command("validate")
def validate_cmd(
    work_item_id: WorkItemArg,
    repository: RepositoryOpt = None,
) -> None:
    """Show validation findings; exit 1 when any finding blocks generation."""
    work_item = _load_work_item(work_item_id)
    findings = _run_pipeline(work_item, repository).metadata.validation_results

    if not findings:
        rprint(f"[green]✓[/green] #{work_item.id} passed validation with no findings")
        return

    rprint(_findings_table(findings, f"Findings for #{work_item.id}"))
    if any(f.severity == "error" for f in findings):
        raise typer.Exit(1)


@app.command("fields")
def fields_cmd(
    work_item_id: WorkItemArg,
    repository: RepositoryOpt = None,
) -> None:
    """Print the extracted fields as JSON."""
    work_item = _load_work_item(work_item_id)
    result = _run_pipeline(work_item, repository)
    if not result.success:
        rprint(f"[red]✗ {result.error}[/red]")
        raise typer.Exit(1)
    typer.echo(json.dumps(result.metadata.extracted_fields, indent=2, default=str))


@app.command("branch-name")
def branch_name_cmd(work_item_id: WorkItemArg) -> None:
    """Print the branch name for the work item (no trailing newline)."""
    work_item = _load_work_item(work_item_id)
    # No trailing newline: designed for $(wigen branch-name 4521)
    typer.echo(generate_branch_name(work_item), nl=False)


@app.command("commit-message")
def commit_message_cmd(
    work_item_id: WorkItemArg,
    description: Annotated[str, typer.Argument(help="One-line summary of the change")],
) -> None:
    """Print the commit message for a change made for the work item."""
    work_item = _load_work_item(work_item_id)
    typer.echo(generate_commit_message(work_item, description))


@app.command("list-types")
def list_types() -> None:
    """List supported work item types and their extraction strategies."""
    table = Table(title="Supported Work Item Types")
    table.add_column("Type", style="cyan")
    table.add_column("Strategy")
    for extractor in list_extractors():
        table.add_row(extractor.kind.value, extractor.strategy)
    rprint(table)


@app.command("set-default")
def set_default(
    repository: Annotated[str, typer.Argument(help="Repository profile name to set as default")],
) -> None:
    """Set the default repository profile in ~/.config/wigen/config.toml."""
    if CONFIG_PATH.exists():
        with CONFIG_PATH.open() as f:
            doc = tomlkit.load(f)
    else:
        doc = tomlkit.document()

    profiles = _list_profiles(doc) or [DEFAULT_REPOSITORY_CONFIG.name]
    if repository not in profiles:
        rprint(f"[red]Profile '{repository}' not found in {CONFIG_PATH}. Available: {profiles}[/red]")
        raise typer.Exit(1)

    doc["default_repository"] = repository
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    _load_toml.cache_clear()
    rprint(f'[green]✓[/green] Default repository set to "{repository}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show() -> None:
    """Show resolved settings and known repository profiles."""
    settings = get_settings()

    table = Table(title="wigen Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("config_path", str(CONFIG_PATH))
    table.add_row("default_repository", settings.default_repository or "[dim](not set)[/dim]")
    table.add_row("log_level", settings.log_level)
    table.add_row("max_text_length", str(settings.max_text_length))
    table.add_row("work_item_dir", str(settings.work_item_dir))
    rprint(table)

    configs = load_repository_configs()
    profiles = Table(title="Repository Profiles")
    profiles.add_column("Name", style="cyan")
    profiles.add_column("Language")
    profiles.add_column("Area Paths")
    if not configs:
        default = DEFAULT_REPOSITORY_CONFIG
        profiles.add_row(f"{default.name} [dim](built-in)[/dim]", default.target_language.value, "—")
    for config in configs:
        profiles.add_row(config.name, config.target_language.value, ", ".join(config.area_paths) or "—")
    rprint(profiles)
