"""Заполняет базу тестовым пользователем и примерами задач.

Запуск: python -m backend.seed
Все существующие пользователи и задачи удаляются.
"""
import logging

from backend.config import load_settings
from backend.database import Database
from backend.lifecycle import TaskLifecycle
from backend.logging_setup import setup_logging
from backend.models import Task, User
from backend.security import CredentialStore
from backend.store import TaskStore

logger = logging.getLogger(__name__)

TEST_USERNAME = "testuser"
TEST_PASSWORD = "password123"

SAMPLE_TASKS = [
    {
        "title": "Сдать домашнее задание",
        "description": "Доделать трекер задач с аутентификацией",
        "priority": "high",
        "status": "pending",
    },
    {
        "title": "Разобраться с индексами",
        "description": "Почитать про составные индексы и планы запросов",
        "priority": "medium",
        "status": "pending",
    },
    {
        "title": "Задеплоить приложение",
        "description": "Выложить сервис на хостинг",
        "priority": "high",
        "status": "pending",
    },
    {
        "title": "Написать тесты",
        "description": "Юнит-тесты для машины состояний",
        "priority": "medium",
        "status": "completed",
    },
    {
        "title": "Настроить репозиторий",
        "description": "Залить код и настроить CI",
        "priority": "low",
        "status": "completed",
    },
]


def seed(database: Database):
    database.create_all()
    db = database.SessionLocal()
    try:
        db.query(Task).delete()
        db.query(User).delete()
        db.commit()
        logger.info("Существующие данные удалены")

        user_id = CredentialStore(db).register(TEST_USERNAME, TEST_PASSWORD)
        logger.info("Создан пользователь %s / %s", TEST_USERNAME, TEST_PASSWORD)

        lifecycle = TaskLifecycle(TaskStore(db))
        for sample in SAMPLE_TASKS:
            task = lifecycle.create(user_id, sample["title"], sample["description"], sample["priority"])
            if sample["status"] != task.status:
                lifecycle.transition_status(task.id, user_id, sample["status"])
        logger.info("Создано задач: %d", len(SAMPLE_TASKS))
        return user_id
    finally:
        db.close()


def main():
    settings = load_settings()
    setup_logging(settings.log_level)
    database = Database(settings.database_url)
    try:
        seed(database)
    finally:
        database.dispose()


if __name__ == "__main__":
    main()
