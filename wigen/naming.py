"""Branch names and commit messages handed to the version-control collaborator."""

import re

from wigen.models import WorkItem, WorkItemType

# Git allows 255; leave headroom for remote prefixes.
MAX_BRANCH_NAME_LENGTH = 250

_FORBIDDEN_BRANCH_CHARS = re.compile(r"[~^:?*\[\]\\@{}<>|!\"']")
_BAD_BRANCH_EDGE = re.compile(r"^[.\-/\s]|[.\-/\s]$")

_COMMIT_TYPES = {
    WorkItemType.DEFECT: "fix",
    WorkItemType.TASK: "feat",
    WorkItemType.REQUIREMENT: "feat",
    WorkItemType.FEATURE: "feat",
}


def _slugify(text: str, max_len: int = 0) -> str:
    slug = re.sub(r"\s+", "-", text.lower())
    slug = re.sub(r"[^a-z0-9_-]", "", slug)
    slug = re.sub(r"[-_]*-[-_]*", "-", slug)
    slug = re.sub(r"_+", "_", slug).strip("-_")
    if max_len:
        slug = slug[:max_len].strip("-_")
    return slug


def generate_branch_name(work_item: WorkItem) -> str:
    """Return ``<prefix>/<id>_<slug>`` for the work item.

    Bug → bugfix/4521_login-fails-on-safari
    Task, User Story, Feature, Epic → feat/77_add-export-endpoint
    """
    prefix = "bugfix" if work_item.type == WorkItemType.DEFECT else "feat"
    head = f"{prefix}/{work_item.id}_"
    slug = _slugify(work_item.title, max_len=max(1, MAX_BRANCH_NAME_LENGTH - len(head))) or "untitled"
    return f"{head}{slug}"


def validate_branch_name(name: str) -> bool:
    """Check a branch name against git's ref-name rules."""
    if not name or len(name) > MAX_BRANCH_NAME_LENGTH:
        return False
    if re.search(r"\s", name):
        return False
    if _FORBIDDEN_BRANCH_CHARS.search(name):
        return False
    if "//" in name:
        return False
    if _BAD_BRANCH_EDGE.search(name):
        return False
    return not name.endswith(".lock")


def _commit_scope(area_path: str) -> str:
    area = area_path.split("\\")[-1].strip()
    return re.sub(r"[^\w-]", "", area, flags=re.ASCII) or "general"


def generate_commit_message(work_item: WorkItem, description: str) -> str:
    commit_type = _COMMIT_TYPES.get(work_item.type, "chore")
    title = work_item.title if work_item.title.strip() else "Untitled Work Item"

    lines = [
        f"{commit_type}({_commit_scope(work_item.area_path)}): {description}",
        "",
        f"Work Item: #{work_item.id} - {title}",
    ]
    if work_item.description:
        lines += ["", f"Description: {work_item.description}"]
    if work_item.acceptance_criteria:
        lines += ["", "Acceptance Criteria:", work_item.acceptance_criteria]
    if work_item.tags:
        lines += ["", f"Tags: {', '.join(work_item.tags)}"]
    return "\n".join(lines).strip()
