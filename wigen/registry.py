"""Work-item type → extractor lookup."""

from types import MappingProxyType

from wigen.extractors import defect, requirement, task
from wigen.extractors.base import MAX_TEXT_LENGTH, Extractor, process
from wigen.models import ProcessingResult, RepositoryConfig, WorkItem, WorkItemType


class UnsupportedWorkItemTypeError(LookupError):
    def __init__(self, kind: WorkItemType | str) -> None:
        self.kind = kind
        name = kind.value if isinstance(kind, WorkItemType) else kind
        super().__init__(f"No extractor registered for work item type: {name}")


_EXTRACTORS = MappingProxyType(
    {extractor.kind: extractor for extractor in (requirement.EXTRACTOR, task.EXTRACTOR, defect.EXTRACTOR)}
)


def resolve(kind: WorkItemType) -> Extractor:
    try:
        return _EXTRACTORS[kind]
    except KeyError:
        raise UnsupportedWorkItemTypeError(kind) from None


def list_extractors() -> list[Extractor]:
    return list(_EXTRACTORS.values())


def list_supported_kinds() -> list[WorkItemType]:
    return list(_EXTRACTORS)


async def process_work_item(
    work_item: WorkItem,
    repository_config: RepositoryConfig,
    *,
    max_text_length: int = MAX_TEXT_LENGTH,
) -> ProcessingResult:
    """Resolve the extractor for the work item's type and run the pipeline.

    Raises UnsupportedWorkItemTypeError for types with no extractor.
    """
    extractor = resolve(work_item.type)
    return await process(extractor, work_item, repository_config, max_text_length=max_text_length)
