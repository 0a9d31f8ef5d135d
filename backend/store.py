import logging
from contextlib import contextmanager

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.errors import StorageError
from backend.models import PRIORITY_RANK, Task, utcnow

logger = logging.getLogger(__name__)

# high > medium > low, неизвестные значения в конце
priority_order = case(PRIORITY_RANK, value=Task.priority, else_=-1)


class TaskStore:
    """
    Хранилище задач. Каждый запрос фильтруется по owner_id, поэтому чужая
    задача для вызывающего просто не существует. Изменения выполняются одним
    условным UPDATE/DELETE, без чтения перед записью.
    """

    def __init__(self, db: Session, clock=utcnow):
        self.db = db
        self.clock = clock

    @contextmanager
    def _guard(self, action):
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Ошибка хранилища при операции %s", action)
            raise StorageError() from exc

    def _scoped(self, task_id, owner_id):
        return self.db.query(Task).filter(Task.id == task_id, Task.owner_id == owner_id)

    def add(self, owner_id, title, description, priority) -> Task:
        now = self.clock()
        task = Task(
            title=title,
            description=description,
            priority=priority,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        with self._guard("create"):
            self.db.add(task)
            self.db.commit()
            self.db.refresh(task)
        return task

    def get(self, task_id, owner_id, statuses=None):
        with self._guard("get"):
            query = self._scoped(task_id, owner_id)
            if statuses is not None:
                query = query.filter(Task.status.in_(list(statuses)))
            return query.first()

    def update_status(self, task_id, owner_id, target, from_statuses) -> bool:
        """Меняет статус, только если текущий входит в from_statuses."""
        with self._guard("update_status"):
            count = (
                self._scoped(task_id, owner_id)
                .filter(Task.status.in_(sorted(from_statuses)))
                .update({Task.status: target, Task.updated_at: self.clock()}, synchronize_session=False)
            )
            self.db.commit()
        return count > 0

    def update_fields(self, task_id, owner_id, values) -> bool:
        values = dict(values)
        values["updated_at"] = self.clock()
        with self._guard("update_fields"):
            count = self._scoped(task_id, owner_id).update(
                {getattr(Task, key): value for key, value in values.items()},
                synchronize_session=False,
            )
            self.db.commit()
        return count > 0

    def delete_if_status(self, task_id, owner_id, status) -> bool:
        with self._guard("delete"):
            count = (
                self._scoped(task_id, owner_id)
                .filter(Task.status == status)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        return count > 0

    def query(self, owner_id, statuses):
        with self._guard("query"):
            return (
                self.db.query(Task)
                .filter(Task.owner_id == owner_id, Task.status.in_(list(statuses)))
                .order_by(priority_order.desc(), Task.created_at.desc(), Task.id.asc())
                .all()
            )

    def count_by_status(self, owner_id):
        with self._guard("count"):
            rows = (
                self.db.query(Task.status, func.count(Task.id))
                .filter(Task.owner_id == owner_id)
                .group_by(Task.status)
                .all()
            )
        return {status: count for status, count in rows}
