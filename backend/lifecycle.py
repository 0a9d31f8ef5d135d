import logging

from backend.errors import InvalidStatus, InvalidTransition, NotFound, ValidationError
from backend.models import (
    ACTIVE_STATUSES,
    DEFAULT_PRIORITY,
    DESCRIPTION_MAX_LENGTH,
    PRIORITIES,
    STATUS_COMPLETED,
    STATUS_DELETED,
    STATUS_PENDING,
    STATUSES,
    TITLE_MAX_LENGTH,
)
from backend.store import TaskStore

logger = logging.getLogger(__name__)

# -----------------------------
# Машина состояний задачи
# -----------------------------
# (из, событие, в); purge удаляет запись и обрабатывается отдельно
TRANSITIONS = (
    (STATUS_PENDING, "mark_complete", STATUS_COMPLETED),
    (STATUS_COMPLETED, "mark_pending", STATUS_PENDING),
    (STATUS_PENDING, "soft_delete", STATUS_DELETED),
    (STATUS_COMPLETED, "soft_delete", STATUS_DELETED),
    (STATUS_DELETED, "restore", STATUS_PENDING),
)

# целевой статус -> статусы, из которых в него можно попасть
ALLOWED_SOURCES = {}
for _source, _event, _target in TRANSITIONS:
    ALLOWED_SOURCES.setdefault(_target, set()).add(_source)

EVENT_TARGETS = {event: target for _, event, target in TRANSITIONS}


def normalize_priority(priority):
    if priority in PRIORITIES:
        return priority
    return DEFAULT_PRIORITY


def clean_title(title):
    title = (title or "").strip()
    if not title:
        raise ValidationError("Заголовок задачи обязателен")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Заголовок не длиннее {TITLE_MAX_LENGTH} символов")
    return title


def clean_description(description):
    description = (description or "").strip()
    if len(description) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError(f"Описание не длиннее {DESCRIPTION_MAX_LENGTH} символов")
    return description


def check_status(status):
    if status not in STATUSES:
        raise InvalidStatus()
    return status


class TaskLifecycle:
    """Правила владения и переходов статуса поверх TaskStore."""

    def __init__(self, store: TaskStore):
        self.store = store

    def create(self, owner_id, title, description="", priority=None):
        task = self.store.add(
            owner_id=owner_id,
            title=clean_title(title),
            description=clean_description(description),
            priority=normalize_priority(priority),
        )
        logger.info("Создана задача %s пользователем %s", task.id, owner_id)
        return task

    def get_for_edit(self, task_id, owner_id):
        task = self.store.get(task_id, owner_id, statuses=ACTIVE_STATUSES)
        if task is None:
            raise NotFound()
        return task

    def update_fields(self, task_id, owner_id, title, description=None, priority=None, status=None):
        """
        Полное редактирование задачи. В отличие от transition_status, статус
        здесь можно выставить любой допустимый напрямую, минуя таблицу переходов.
        """
        values = {"title": clean_title(title)}
        if description is not None:
            values["description"] = clean_description(description)
        if priority is not None:
            values["priority"] = normalize_priority(priority)
        if status is not None:
            values["status"] = check_status(status)

        if not self.store.update_fields(task_id, owner_id, values):
            raise NotFound()
        logger.info("Задача %s отредактирована пользователем %s", task_id, owner_id)
        return self._reload(task_id, owner_id)

    def transition_status(self, task_id, owner_id, target):
        check_status(target)
        sources = ALLOWED_SOURCES[target]
        if not self.store.update_status(task_id, owner_id, target, sources):
            # Поиск тоже ограничен владельцем: чужая задача даёт NotFound
            if self.store.get(task_id, owner_id) is None:
                raise NotFound()
            raise InvalidTransition()
        logger.info("Задача %s переведена в %s пользователем %s", task_id, target, owner_id)
        return self._reload(task_id, owner_id)

    def apply(self, task_id, owner_id, event):
        if event == "purge":
            return self.purge(task_id, owner_id)
        if event not in EVENT_TARGETS:
            raise InvalidTransition(f"Неизвестное событие: {event}")
        return self.transition_status(task_id, owner_id, EVENT_TARGETS[event])

    def purge(self, task_id, owner_id):
        if not self.store.delete_if_status(task_id, owner_id, STATUS_DELETED):
            if self.store.get(task_id, owner_id) is None:
                raise NotFound()
            raise InvalidTransition("Удалить навсегда можно только задачу из корзины")
        logger.info("Задача %s удалена навсегда пользователем %s", task_id, owner_id)

    def _reload(self, task_id, owner_id):
        task = self.store.get(task_id, owner_id)
        if task is None:
            # Задачу удалили между обновлением и чтением
            raise NotFound()
        return task
