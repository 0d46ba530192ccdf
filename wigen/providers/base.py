"""Abstract base class for work-item sources."""

from abc import ABC, abstractmethod

from wigen.models import WorkItem


class WorkItemSource(ABC):
    @abstractmethod
    def get_work_item(self, work_item_id: str) -> WorkItem: ...
