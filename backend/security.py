import logging

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.errors import (
    AuthFailure,
    DuplicateUsername,
    PasswordMismatch,
    StorageError,
    ValidationError,
    WeakPassword,
)
from backend.models import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


# Хеш-заглушка: проверка неизвестного пользователя занимает столько же времени
_DUMMY_HASH = None


def _dummy_hash():
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = get_password_hash("dummy-password")
    return _DUMMY_HASH


class CredentialStore:
    """Регистрация пользователей и проверка паролей."""

    def __init__(self, db: Session):
        self.db = db

    def register(self, username, password, confirm_password=None) -> str:
        if not username or not username.strip():
            raise ValidationError("Имя пользователя обязательно")
        if not password:
            raise ValidationError("Пароль обязателен")
        if confirm_password is not None and password != confirm_password:
            raise PasswordMismatch()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPassword()

        try:
            existing = self.db.query(User.id).filter(User.username == username).first()
            if existing:
                raise DuplicateUsername()
            user = User(username=username, hashed_password=get_password_hash(password))
            self.db.add(user)
            self.db.commit()
        except IntegrityError:
            # Параллельная регистрация с тем же именем
            self.db.rollback()
            raise DuplicateUsername()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Ошибка регистрации пользователя")
            raise StorageError() from exc

        logger.info("Зарегистрирован пользователь %s", user.id)
        return user.id

    def verify(self, username, password) -> str:
        try:
            user = self.db.query(User).filter(User.username == username).first()
        except SQLAlchemyError as exc:
            logger.exception("Ошибка чтения пользователя")
            raise StorageError() from exc

        if user is None:
            verify_password(password or "", _dummy_hash())
            raise AuthFailure()
        if not verify_password(password or "", user.hashed_password):
            raise AuthFailure()
        return user.id
