from backend.models import (
    ACTIVE_STATUSES,
    STATUS_COMPLETED,
    STATUS_DELETED,
    STATUS_PENDING,
)
from backend.store import TaskStore

FILTERS = {
    "all": ACTIVE_STATUSES,
    "pending": (STATUS_PENDING,),
    "completed": (STATUS_COMPLETED,),
    "deleted": (STATUS_DELETED,),
}
DEFAULT_FILTER = "all"


def normalize_filter(filter_name):
    # Неизвестный фильтр ведёт себя как "all"
    return filter_name if filter_name in FILTERS else DEFAULT_FILTER


class DashboardService:
    def __init__(self, store: TaskStore):
        self.store = store

    def list_tasks(self, owner_id, filter_name=DEFAULT_FILTER):
        tasks = self.store.query(owner_id, FILTERS[normalize_filter(filter_name)])
        return tasks, self.stats(owner_id)

    def stats(self, owner_id):
        counts = self.store.count_by_status(owner_id)
        pending = counts.get(STATUS_PENDING, 0)
        completed = counts.get(STATUS_COMPLETED, 0)
        return {"total": pending + completed, "pending": pending, "completed": completed}
