"""Work items from JSON exports on disk (normalized or raw Azure DevOps REST payloads)."""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from wigen.models import WorkItem, WorkItemType
from wigen.providers.base import WorkItemSource

logger = logging.getLogger(__name__)

_TYPES_BY_NAME = {kind.value.lower(): kind for kind in WorkItemType}


def map_work_item_type(name: str | None) -> WorkItemType:
    """Case-insensitive tracker type name → WorkItemType; unknown names fall back to Task."""
    kind = _TYPES_BY_NAME.get((name or "").strip().lower())
    if kind is None:
        logger.warning("Unknown work item type: %s, defaulting to Task", name)
        return WorkItemType.TASK
    return kind


def _split_tags(tags: str | None) -> list[str]:
    return [tag.strip() for tag in (tags or "").split(";") if tag.strip()]


def work_item_from_azure(payload: dict[str, Any]) -> WorkItem:
    """Map a ``{"id", "fields"}`` Azure DevOps work-item payload to a WorkItem.

    Every field is also kept in ``custom_fields`` under its reference name.
    """
    fields = payload.get("fields") or {}
    assigned_to = fields.get("System.AssignedTo")
    if isinstance(assigned_to, dict):
        assigned_to = assigned_to.get("displayName")

    return WorkItem(
        id=payload["id"],
        type=map_work_item_type(fields.get("System.WorkItemType")),
        title=fields.get("System.Title") or "",
        description=fields.get("System.Description") or None,
        acceptance_criteria=fields.get("Microsoft.VSTS.Common.AcceptanceCriteria") or None,
        reproduction_steps=fields.get("Microsoft.VSTS.TCM.ReproSteps") or None,
        assigned_to=assigned_to or None,
        area_path=fields.get("System.AreaPath") or "",
        iteration_path=fields.get("System.IterationPath") or "",
        state=fields.get("System.State") or "New",
        priority=fields.get("Microsoft.VSTS.Common.Priority") or 2,
        tags=_split_tags(fields.get("System.Tags")),
        custom_fields=dict(fields),
    )


def work_item_from_payload(payload: dict[str, Any]) -> WorkItem:
    if "fields" in payload:
        return work_item_from_azure(payload)
    return WorkItem.model_validate({**payload, "type": map_work_item_type(payload.get("type"))})


class FileWorkItemSource(WorkItemSource):
    """Reads ``<root>/<id>.json``, or the given path when it names an existing file."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    def _path_for(self, work_item_id: str) -> Path:
        direct = Path(work_item_id)
        if direct.suffix == ".json" or direct.is_file():
            return direct
        return self._root / f"{work_item_id.lstrip('#')}.json"

    def get_work_item(self, work_item_id: str) -> WorkItem:
        path = self._path_for(work_item_id)
        if not path.is_file():
            raise RuntimeError(f"Work item {work_item_id} not found: {path} does not exist")
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"Work item file {path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise RuntimeError(f"Work item file {path} must contain a JSON object")
        try:
            work_item = work_item_from_payload(payload)
        except (KeyError, ValidationError) as exc:
            raise RuntimeError(f"Work item file {path} is not a valid work item: {exc}") from exc
        logger.debug("Loaded work item %s (%s) from %s", work_item.id, work_item.type.value, path)
        return work_item
