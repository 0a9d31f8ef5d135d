import os

import streamlit as st

from frontend.api_client import ApiError, TaskTrackerClient

API_URL = os.getenv("API_URL", "http://localhost:8000")  # URL FastAPI-приложения

PRIORITIES = ["low", "medium", "high"]
STATUSES = ["pending", "completed", "deleted"]
FILTERS = {"Все": "all", "В ожидании": "pending", "Выполненные": "completed", "Корзина": "deleted"}
PRIORITY_LABELS = {"high": "🔴 высокий", "medium": "🟡 средний", "low": "🟢 низкий"}

# Инициализация session_state для хранения токена, имени пользователя и текущей «страницы»
if "token" not in st.session_state:
    st.session_state.token = None
if "username" not in st.session_state:
    st.session_state.username = None
if "menu" not in st.session_state:
    st.session_state.menu = "Login"

client = TaskTrackerClient(API_URL, token=st.session_state.token)


def call(action, success_message=None):
    """Выполняет запрос к API и показывает ошибку вместо исключения."""
    try:
        result = action()
    except ApiError as exc:
        if exc.status_code == 401:
            st.session_state.token = None
            st.session_state.menu = "Login"
        st.error(exc.message)
        return None
    if success_message:
        st.success(success_message)
    return result


# -----------------------------
# Боковое меню
# -----------------------------
st.sidebar.title("Меню")

if st.session_state.token is None:
    if st.sidebar.button("Вход"):
        st.session_state.menu = "Login"
    if st.sidebar.button("Регистрация"):
        st.session_state.menu = "Register"
else:
    st.sidebar.write(f"Пользователь: **{st.session_state.username}**")
    if st.sidebar.button("Задачи"):
        st.session_state.menu = "Dashboard"
    if st.sidebar.button("Выйти"):
        call(client.logout)
        st.session_state.token = None
        st.session_state.username = None
        st.session_state.menu = "Login"

# -----------------------------
# Основной контент
# -----------------------------
st.title("Трекер задач")

if st.session_state.menu == "Login":
    st.header("Вход")
    with st.form("login_form"):
        username = st.text_input("Имя пользователя")
        password = st.text_input("Пароль", type="password")
        submitted = st.form_submit_button("Войти")
    if submitted:
        data = call(lambda: client.login(username, password), "С возвращением!")
        if data:
            st.session_state.token = data["access_token"]
            st.session_state.username = data["username"]
            st.session_state.menu = "Dashboard"
            st.rerun()

elif st.session_state.menu == "Register":
    st.header("Регистрация")
    with st.form("register_form"):
        username = st.text_input("Имя пользователя")
        password = st.text_input("Пароль", type="password")
        confirm = st.text_input("Повторите пароль", type="password")
        submitted = st.form_submit_button("Зарегистрироваться")
    if submitted:
        if call(lambda: client.register(username, password, confirm), "Регистрация прошла успешно! Войдите."):
            st.session_state.menu = "Login"

elif st.session_state.menu == "Dashboard":
    if st.session_state.token is None:
        st.warning("Сначала необходимо выполнить вход!")
        st.stop()

    with st.expander("Новая задача"):
        with st.form("create_task_form", clear_on_submit=True):
            title = st.text_input("Заголовок", max_chars=200)
            description = st.text_area("Описание", max_chars=1000)
            priority = st.selectbox("Приоритет", PRIORITIES, index=1)
            if st.form_submit_button("Создать задачу"):
                call(lambda: client.create_task(title, description, priority), "Задача создана!")

    label = st.radio("Фильтр", list(FILTERS), horizontal=True)
    data = call(lambda: client.dashboard(FILTERS[label]))
    if data is None:
        st.stop()

    col_total, col_pending, col_done = st.columns(3)
    col_total.metric("Всего", data["stats"]["total"])
    col_pending.metric("В ожидании", data["stats"]["pending"])
    col_done.metric("Выполнено", data["stats"]["completed"])

    if not data["tasks"]:
        st.info("Задачи не найдены.")

    for task in data["tasks"]:
        task_id = task["id"]
        st.subheader(task["title"])
        if task["description"]:
            st.write(task["description"])
        st.caption(f"{PRIORITY_LABELS.get(task['priority'], task['priority'])} · {task['status']} · {task['created_at']}")

        buttons = st.columns(3)
        if task["status"] == "pending":
            if buttons[0].button("Выполнено", key=f"complete_{task_id}"):
                if call(lambda: client.set_status(task_id, "completed")):
                    st.rerun()
        elif task["status"] == "completed":
            if buttons[0].button("Вернуть в работу", key=f"undo_{task_id}"):
                if call(lambda: client.set_status(task_id, "pending")):
                    st.rerun()

        if task["status"] == "deleted":
            if buttons[0].button("Восстановить", key=f"restore_{task_id}"):
                if call(lambda: client.set_status(task_id, "pending")):
                    st.rerun()
            if buttons[1].button("Удалить навсегда", key=f"purge_{task_id}"):
                if call(lambda: client.purge(task_id), "Задача удалена навсегда"):
                    st.rerun()
        else:
            if buttons[1].button("В корзину", key=f"delete_{task_id}"):
                if call(lambda: client.set_status(task_id, "deleted")):
                    st.rerun()
            with buttons[2].expander("Редактировать"):
                with st.form(f"edit_form_{task_id}"):
                    new_title = st.text_input("Заголовок", value=task["title"], max_chars=200)
                    new_description = st.text_area("Описание", value=task["description"], max_chars=1000)
                    new_priority = st.selectbox(
                        "Приоритет", PRIORITIES, index=PRIORITIES.index(task["priority"])
                    )
                    new_status = st.selectbox("Статус", STATUSES, index=STATUSES.index(task["status"]))
                    submitted_update = st.form_submit_button("Сохранить")
                if submitted_update:
                    updated = call(
                        lambda: client.edit_task(task_id, new_title, new_description, new_priority, new_status),
                        "Задача обновлена!",
                    )
                    if updated:
                        st.rerun()
        st.write("---")
