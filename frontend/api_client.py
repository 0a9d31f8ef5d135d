import requests


class ApiError(Exception):
    def __init__(self, status_code, message):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _error_message(response):
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        message = body.get("detail") or body.get("error")
        if message:
            return message if isinstance(message, str) else str(message)
    return response.text


class TaskTrackerClient:
    """
    Клиент HTTP API трекера. Подходит любой объект с интерфейсом
    requests.Session (в тестах: fastapi.testclient.TestClient).
    """

    def __init__(self, base_url, http=None, token=None):
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()
        self.token = token

    def _request(self, method, path, **kwargs):
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        response = self.http.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
        if response.status_code >= 400:
            raise ApiError(response.status_code, _error_message(response))
        return response.json()

    # -----------------------------
    # Аутентификация
    # -----------------------------
    def register(self, username, password, confirm_password=None):
        payload = {"username": username, "password": password}
        if confirm_password is not None:
            payload["confirm_password"] = confirm_password
        return self._request("POST", "/register", json=payload)

    def login(self, username, password):
        data = self._request("POST", "/login", data={"username": username, "password": password})
        self.token = data["access_token"]
        return data

    def logout(self):
        data = self._request("GET", "/logout")
        self.token = None
        return data

    # -----------------------------
    # Задачи
    # -----------------------------
    def dashboard(self, filter_name="all"):
        return self._request("GET", "/dashboard", params={"filter": filter_name})

    def create_task(self, title, description="", priority="medium"):
        payload = {"title": title, "description": description, "priority": priority}
        return self._request("POST", "/tasks", json=payload)

    def set_status(self, task_id, status):
        return self._request("POST", f"/tasks/{task_id}/status", json={"status": status})["task"]

    def purge(self, task_id):
        return self._request("POST", f"/tasks/{task_id}/delete")

    def get_task(self, task_id):
        return self._request("GET", f"/tasks/{task_id}/edit")

    def edit_task(self, task_id, title, description=None, priority=None, status=None):
        payload = {"title": title, "description": description, "priority": priority, "status": status}
        return self._request("POST", f"/tasks/{task_id}/edit", json=payload)

    def health(self):
        return self._request("GET", "/health")
