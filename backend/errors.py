class TaskTrackerError(Exception):
    """Базовая ошибка ядра: текст сообщения можно показывать пользователю."""

    message = "Ошибка"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ConfigError(TaskTrackerError):
    message = "Некорректная конфигурация"


class ValidationError(TaskTrackerError):
    message = "Некорректные данные"


class WeakPassword(ValidationError):
    message = "Пароль должен содержать не менее 6 символов"


class PasswordMismatch(ValidationError):
    message = "Пароли не совпадают"


class DuplicateUsername(TaskTrackerError):
    message = "Пользователь уже существует"


class AuthFailure(TaskTrackerError):
    message = "Неверные имя пользователя или пароль"


class Unauthenticated(TaskTrackerError):
    message = "Требуется вход в систему"


class NotFound(TaskTrackerError):
    message = "Задача не найдена"


class InvalidStatus(TaskTrackerError):
    message = "Недопустимый статус"


class InvalidTransition(TaskTrackerError):
    message = "Недопустимый переход статуса"


class StorageError(TaskTrackerError):
    message = "Ошибка хранилища. Попробуйте позже."
