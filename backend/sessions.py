import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from backend.errors import Unauthenticated

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SESSION_COOKIE = "session_token"


@dataclass(frozen=True)
class SessionInfo:
    user_id: str
    username: str
    expires_at: datetime


def _utcnow():
    return datetime.now(timezone.utc)


class SessionManager:
    """
    Сессии хранятся в памяти процесса: перезапуск сбрасывает все входы.
    Наружу отдаётся идентификатор сессии, подписанный SESSION_SECRET (JWT),
    поэтому подделанный или чужой токен отбрасывается ещё до поиска в словаре.
    """

    def __init__(self, secret: str, ttl: timedelta = timedelta(hours=24), clock=_utcnow):
        self.secret = secret
        self.ttl = ttl
        self.clock = clock
        self._sessions = {}
        self._lock = threading.Lock()

    def create_session(self, user_id: str, username: str) -> str:
        now = self.clock()
        sid = secrets.token_urlsafe(32)
        expires_at = now + self.ttl
        with self._lock:
            self._evict_expired(now)
            self._sessions[sid] = SessionInfo(user_id=user_id, username=username, expires_at=expires_at)
        logger.info("Создана сессия для пользователя %s", user_id)
        return jwt.encode({"sid": sid, "exp": expires_at}, self.secret, algorithm=ALGORITHM)

    def resolve_session(self, token) -> SessionInfo:
        sid = self._decode(token)
        if sid is None:
            raise Unauthenticated()
        now = self.clock()
        with self._lock:
            info = self._sessions.get(sid)
            if info is not None and info.expires_at <= now:
                del self._sessions[sid]
                info = None
        if info is None:
            raise Unauthenticated()
        return info

    def destroy_session(self, token) -> None:
        sid = self._decode(token)
        if sid is None:
            return
        with self._lock:
            info = self._sessions.pop(sid, None)
        if info is not None:
            logger.info("Сессия пользователя %s завершена", info.user_id)

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def _decode(self, token):
        if not token:
            return None
        try:
            # Срок жизни проверяется по часам менеджера, а не по системным
            payload = jwt.decode(
                token, self.secret, algorithms=[ALGORITHM], options={"verify_exp": False}
            )
        except jwt.PyJWTError:
            return None
        sid = payload.get("sid")
        if not isinstance(sid, str):
            return None
        return sid

    def _evict_expired(self, now):
        expired = [sid for sid, info in self._sessions.items() if info.expires_at <= now]
        for sid in expired:
            del self._sessions[sid]
