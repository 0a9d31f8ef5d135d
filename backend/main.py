import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Form, Request, Response
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.config import Settings, load_settings
from backend.dashboard import DashboardService, normalize_filter
from backend.database import Database
from backend.errors import (
    AuthFailure,
    DuplicateUsername,
    InvalidStatus,
    InvalidTransition,
    NotFound,
    StorageError,
    TaskTrackerError,
    Unauthenticated,
    ValidationError,
)
from backend.lifecycle import TaskLifecycle
from backend.models import utcnow
from backend.schemas import (
    Dashboard,
    TaskCreate,
    TaskOut,
    TaskUpdate,
    Token,
    UserCreate,
    UserOut,
)
from backend.security import CredentialStore
from backend.sessions import SESSION_COOKIE, SessionInfo, SessionManager
from backend.store import TaskStore

logger = logging.getLogger(__name__)

# Ошибка ядра -> HTTP-код; ищется по MRO, так что подклассы наследуют код
ERROR_STATUS = {
    ValidationError: 400,
    DuplicateUsername: 400,
    AuthFailure: 400,
    InvalidStatus: 400,
    Unauthenticated: 401,
    NotFound: 404,
    InvalidTransition: 409,
    StorageError: 500,
}


def status_for(exc: TaskTrackerError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return 500


# -----------------------------
# Зависимости
# -----------------------------
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="login", auto_error=False)


def get_db(request: Request):
    yield from request.app.state.database.session()


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def get_session_token(request: Request, bearer: Optional[str] = Depends(oauth2_scheme)):
    # Явный заголовок Authorization приоритетнее cookie браузера
    return bearer or request.cookies.get(SESSION_COOKIE)


def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    sessions: SessionManager = Depends(get_sessions),
) -> SessionInfo:
    return sessions.resolve_session(token)


def get_store(request: Request, db: Session = Depends(get_db)) -> TaskStore:
    return TaskStore(db, clock=request.app.state.clock)


def get_lifecycle(store: TaskStore = Depends(get_store)) -> TaskLifecycle:
    return TaskLifecycle(store)


def get_dashboard(store: TaskStore = Depends(get_store)) -> DashboardService:
    return DashboardService(store)


def get_credentials(db: Session = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


async def get_requested_status(request: Request):
    # Тело без корректного JSON или поля status даёт InvalidStatus в ядре
    try:
        body = await request.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("status")
    return None


router = APIRouter()

# -----------------------------
# Эндпоинты аутентификации
# -----------------------------
@router.post("/register", response_model=UserOut)
def register(user: UserCreate, credentials: CredentialStore = Depends(get_credentials)):
    user_id = credentials.register(user.username, user.password, user.confirm_password)
    return {"id": user_id, "username": user.username}


@router.post("/login", response_model=Token)
def login(
    request: Request,
    response: Response,
    username: str = Form(""),
    password: str = Form(""),
    credentials: CredentialStore = Depends(get_credentials),
    sessions: SessionManager = Depends(get_sessions),
):
    if not username or not password:
        raise ValidationError("Имя пользователя и пароль обязательны")
    user_id = credentials.verify(username, password)
    token = sessions.create_session(user_id, username)

    settings: Settings = request.app.state.settings
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=int(settings.session_ttl.total_seconds()),
        httponly=True,
        secure=settings.cookie_secure or request.url.scheme == "https",
        samesite="lax",
    )
    return {"access_token": token, "token_type": "bearer", "username": username}


@router.get("/logout")
def logout(
    response: Response,
    token: Optional[str] = Depends(get_session_token),
    sessions: SessionManager = Depends(get_sessions),
):
    sessions.destroy_session(token)
    response.delete_cookie(SESSION_COOKIE)
    return {"detail": "Вы вышли из системы"}


# -----------------------------
# Дашборд
# -----------------------------
@router.get("/dashboard", response_model=Dashboard)
def dashboard(
    filter: str = "all",
    current_user: SessionInfo = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard),
):
    filter_name = normalize_filter(filter)
    tasks, stats = service.list_tasks(current_user.user_id, filter_name)
    return {
        "username": current_user.username,
        "filter": filter_name,
        "tasks": [TaskOut.model_validate(task) for task in tasks],
        "stats": stats,
    }


# -----------------------------
# Задачи
# -----------------------------
@router.post("/tasks", response_model=TaskOut)
def create_task(
    task: TaskCreate,
    current_user: SessionInfo = Depends(get_current_user),
    lifecycle: TaskLifecycle = Depends(get_lifecycle),
):
    return lifecycle.create(current_user.user_id, task.title, task.description, task.priority)


@router.post("/tasks/{task_id}/status")
def update_task_status(
    task_id: str,
    requested_status=Depends(get_requested_status),
    current_user: SessionInfo = Depends(get_current_user),
    lifecycle: TaskLifecycle = Depends(get_lifecycle),
):
    try:
        task = lifecycle.transition_status(task_id, current_user.user_id, requested_status)
    except StorageError:
        return JSONResponse(status_code=500, content={"error": "Не удалось обновить задачу"})
    except TaskTrackerError as exc:
        return JSONResponse(status_code=status_for(exc), content={"error": exc.message})
    return {
        "success": True,
        "task": {"id": task.id, "title": task.title, "status": task.status, "priority": task.priority},
    }


@router.post("/tasks/{task_id}/delete")
def purge_task(
    task_id: str,
    current_user: SessionInfo = Depends(get_current_user),
    lifecycle: TaskLifecycle = Depends(get_lifecycle),
):
    lifecycle.purge(task_id, current_user.user_id)
    return {"detail": "Задача удалена навсегда"}


@router.get("/tasks/{task_id}/edit", response_model=TaskOut)
def get_task(
    task_id: str,
    current_user: SessionInfo = Depends(get_current_user),
    lifecycle: TaskLifecycle = Depends(get_lifecycle),
):
    return lifecycle.get_for_edit(task_id, current_user.user_id)


@router.post("/tasks/{task_id}/edit", response_model=TaskOut)
def edit_task(
    task_id: str,
    task_update: TaskUpdate,
    current_user: SessionInfo = Depends(get_current_user),
    lifecycle: TaskLifecycle = Depends(get_lifecycle),
):
    """Поля со значением null (описание, приоритет, статус) сохраняют прежние значения."""
    return lifecycle.update_fields(
        task_id,
        current_user.user_id,
        task_update.title,
        task_update.description,
        task_update.priority,
        task_update.status,
    )


@router.get("/health")
def health(request: Request):
    connected = request.app.state.database.ping()
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected" if connected else "disconnected",
    }


# -----------------------------
# Инициализация приложения
# -----------------------------
def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None, clock=None) -> FastAPI:
    settings = settings or load_settings()
    settings.validate()
    database = database or Database(settings.database_url)

    app = FastAPI(title="Task Tracker")
    app.state.settings = settings
    app.state.database = database
    app.state.sessions = SessionManager(settings.session_secret, ttl=settings.session_ttl)
    app.state.clock = clock or utcnow
    app.include_router(router)

    @app.on_event("startup")
    def startup():
        # Автоматическая инициализация таблиц
        database.create_all()
        logger.info("Приложение запущено, окружение: %s", settings.environment)

    @app.on_event("shutdown")
    def shutdown():
        database.dispose()
        logger.info("Соединения с БД закрыты")

    @app.exception_handler(TaskTrackerError)
    async def tracker_error_handler(request: Request, exc: TaskTrackerError):
        return JSONResponse(status_code=status_for(exc), content={"detail": exc.message})

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Необработанная ошибка БД: %s", exc, exc_info=exc)
        detail = str(exc) if settings.debug else StorageError.message
        return JSONResponse(status_code=500, content={"detail": detail})

    return app
