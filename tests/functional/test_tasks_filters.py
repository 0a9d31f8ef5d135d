import asyncio

from faker import Faker

fake = Faker()

PRIORITIES = ["low", "medium", "high"]
RANK = {"low": 0, "medium": 1, "high": 2}


async def _headers(aclient):
    await aclient.post("/register", json={"username": "kate", "password": "123456"})
    token = (
        await aclient.post(
            "/login",
            data={"username": "kate", "password": "123456"},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
    ).json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


async def _bulk_create(aclient, headers, n=30):
    tasks = [
        {"title": fake.word(), "description": fake.text(max_nb_chars=200), "priority": PRIORITIES[i % 3]}
        for i in range(n)
    ]
    responses = await asyncio.gather(*[aclient.post("/tasks", json=task, headers=headers) for task in tasks])
    return [r.json() for r in responses]


async def test_dashboard_order_and_stats(aclient):
    headers = await _headers(aclient)
    created = await _bulk_create(aclient, headers)

    # часть задач выполняем, часть отправляем в корзину
    for task in created[:5]:
        await aclient.post(f"/tasks/{task['id']}/status", json={"status": "completed"}, headers=headers)
    for task in created[5:8]:
        await aclient.post(f"/tasks/{task['id']}/status", json={"status": "deleted"}, headers=headers)

    r_all = await aclient.get("/dashboard", headers=headers)
    assert r_all.status_code == 200
    body = r_all.json()
    assert body["filter"] == "all"
    assert body["stats"] == {"total": 27, "pending": 22, "completed": 5}
    assert len(body["tasks"]) == 27

    # приоритет по убыванию, внутри приоритета новые первыми
    keys = [(RANK[t["priority"]], t["created_at"]) for t in body["tasks"]]
    assert keys == sorted(keys, reverse=True)

    for filter_name, count in [("pending", 22), ("completed", 5), ("deleted", 3)]:
        r = await aclient.get(f"/dashboard?filter={filter_name}", headers=headers)
        tasks = r.json()["tasks"]
        assert len(tasks) == count
        assert all(t["status"] == filter_name for t in tasks)
        # счётчики не зависят от фильтра
        assert r.json()["stats"]["total"] == 27


async def test_unknown_filter_shows_all(aclient):
    headers = await _headers(aclient)
    await _bulk_create(aclient, headers, n=3)
    r = await aclient.get("/dashboard?filter=whatever", headers=headers)
    assert r.status_code == 200
    assert r.json()["filter"] == "all"
    assert len(r.json()["tasks"]) == 3
