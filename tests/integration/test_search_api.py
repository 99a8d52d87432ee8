import pytest


@pytest.fixture
def tasks(client):
    task_type = client.post("/taskTypes", json={"name": "Dinner"}).json()
    created = []
    for index, (name, requester, start) in enumerate([
        ("Dinner at home", "p1", 100),
        ("Dinner out", "p2", 200),
        ("Lunch", "p1", 300),
    ]):
        response = client.post(
            "/tasks",
            json={
                "taskTypeId": task_type["id"],
                "requesterId": requester,
                "appId": "app-1",
                "goal": {"name": name, "keywords": ["food", f"k{index}"]},
                "startTs": start,
            },
        )
        assert response.status_code == 201, response.text
        created.append(response.json())
    return created


def _add_transaction(client, task, label, actioneer):
    response = client.post(f"/tasks/{task['id']}/transactions", json={"label": label, "actioneerId": actioneer})
    assert response.status_code == 201, response.text
    return response.json()


def _add_message(client, task, transaction, receiver, label):
    response = client.post(
        f"/tasks/{task['id']}/transactions/{transaction['id']}/messages",
        json={"receiverId": receiver, "label": label},
    )
    assert response.status_code == 201, response.text


def test_tasks_page_filters(client, tasks):
    response = client.get("/tasks", params={"requesterId": "p1", "order": "-startTs"})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert [t["goal"]["name"] for t in body["tasks"]] == ["Lunch", "Dinner at home"]

    body = client.get("/tasks", params={"goalName": "/^Dinner/", "startFrom": 150}).json()
    assert [t["goal"]["name"] for t in body["tasks"]] == ["Dinner out"]

    body = client.get("/tasks", params={"goalKeywords": "food, k2"}).json()
    assert [t["goal"]["name"] for t in body["tasks"]] == ["Lunch"]

    body = client.get("/tasks", params={"startFrom": 300, "startTo": 100}).json()
    assert body == {"offset": 0, "total": 0, "tasks": []}


def test_tasks_page_paging(client, tasks):
    body = client.get("/tasks", params={"limit": 2}).json()
    assert body["total"] == 3
    assert len(body["tasks"]) == 2

    body = client.get("/tasks", params={"offset": 3}).json()
    assert body == {"offset": 3, "total": 3, "tasks": []}


def test_tasks_page_bad_order(client, tasks):
    response = client.get("/tasks", params={"order": "startTs,startTs"})
    assert response.status_code == 400
    assert response.json()["code"] == "bad_order[1]"


def test_task_transactions_page(client, tasks):
    first = _add_transaction(client, tasks[0], "accept", "p3")
    _add_transaction(client, tasks[0], "decline", "p4")
    third = _add_transaction(client, tasks[1], "accept", "p3")

    body = client.get("/taskTransactions", params={"actioneerId": "p3", "order": "-taskId,id"}).json()
    assert body["total"] == 2
    expected = sorted([first, third], key=lambda t: t["taskId"], reverse=True)
    assert [t["id"] for t in body["transactions"]] == [t["id"] for t in expected]
    assert {t["taskId"] for t in body["transactions"]} == {tasks[0]["id"], tasks[1]["id"]}

    body = client.get("/taskTransactions", params={"taskId": tasks[0]["id"], "label": "/^dec/"}).json()
    assert [t["label"] for t in body["transactions"]] == ["decline"]

    body = client.get("/taskTransactions", params={"requesterId": "p2"}).json()
    assert [t["id"] for t in body["transactions"]] == [third["id"]]

    response = client.get("/taskTransactions", params={"order": "goal.name"})
    assert response.status_code == 400
    assert response.json()["code"] == "bad_order[0]"


def test_messages_page(client, tasks):
    accept = _add_transaction(client, tasks[0], "accept", "p3")
    decline = _add_transaction(client, tasks[1], "decline", "p4")
    _add_message(client, tasks[0], accept, "p1", "welcome")
    _add_message(client, tasks[0], accept, "p3", "thanks")
    _add_message(client, tasks[1], decline, "p1", "sorry")

    body = client.get("/messages", params={"receiverId": "p1", "order": "label"}).json()
    assert body["total"] == 2
    assert [m["label"] for m in body["messages"]] == ["sorry", "welcome"]

    body = client.get("/messages", params={"transactionLabel": "accept"}).json()
    assert [m["label"] for m in body["messages"]] == ["welcome", "thanks"]

    body = client.get("/messages", params={"taskId": tasks[1]["id"]}).json()
    assert [m["receiverId"] for m in body["messages"]] == ["p1"]

    response = client.get("/messages", params={"transactionLabel": "/(/"})
    assert response.status_code == 400
    assert response.json()["code"] == "bad_transactionLabel"


def test_task_transactions_page_by_task_app(client, tasks):
    other_app = client.post(
        "/tasks",
        json={
            "taskTypeId": tasks[0]["taskTypeId"],
            "requesterId": "p9",
            "appId": "app-2",
            "goal": {"name": "Breakfast"},
        },
    ).json()
    _add_transaction(client, tasks[0], "accept", "p3")
    other = _add_transaction(client, other_app, "accept", "p3")

    body = client.get("/taskTransactions", params={"appId": "app-2"}).json()
    assert body["total"] == 1
    assert [t["id"] for t in body["transactions"]] == [other["id"]]

    body = client.get("/taskTransactions", params={"appId": "/^app-/"}).json()
    assert body["total"] == 2


def test_messages_page_by_task_app(client, tasks):
    other_app = client.post(
        "/tasks",
        json={
            "taskTypeId": tasks[0]["taskTypeId"],
            "requesterId": "p9",
            "appId": "app-2",
            "goal": {"name": "Breakfast"},
        },
    ).json()
    accept = _add_transaction(client, tasks[0], "accept", "p3")
    other = _add_transaction(client, other_app, "accept", "p3")
    _add_message(client, tasks[0], accept, "p1", "welcome")
    _add_message(client, other_app, other, "p1", "morning")

    body = client.get("/messages", params={"taskAppId": "app-2"}).json()
    assert [m["label"] for m in body["messages"]] == ["morning"]

    response = client.get("/messages", params={"taskAppId": "/(/"})
    assert response.status_code == 400
    assert response.json()["code"] == "bad_taskAppId"
