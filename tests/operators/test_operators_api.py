def test_operator_crud(client):
    resp = client.post("/api/operators", json={"name": "Ana Souza"})
    assert resp.status_code == 201
    operator = resp.get_json()

    assert client.get(f"/api/operators/{operator['id']}").get_json()["name"] == "Ana Souza"
    resp = client.put(f"/api/operators/{operator['id']}", json={"name": "Ana S."})
    assert resp.status_code == 200
    assert resp.get_json()["name"] == "Ana S."
    assert [o["name"] for o in client.get("/api/operators").get_json()] == ["Ana S."]


def test_operator_requires_name(client):
    resp = client.post("/api/operators", json={"name": "   "})
    assert resp.status_code == 400


def test_unknown_operator_is_404(client):
    assert client.get("/api/operators/nope").status_code == 404
    assert client.put("/api/operators/nope", json={"name": "x"}).status_code == 404
    assert client.delete("/api/operators/nope").status_code == 404


def test_delete_operator_unassigns_machines(client):
    operator = client.post("/api/operators", json={"name": "Bruno"}).get_json()
    machine = client.post("/api/machines", json={"name": "Press", "operatorId": operator["id"]}).get_json()
    assert machine["operatorId"] == operator["id"]

    assert client.delete(f"/api/operators/{operator['id']}").status_code == 204
    reloaded = client.get(f"/api/machines/{machine['id']}")
    assert reloaded.status_code == 200
    assert reloaded.get_json()["operatorId"] is None
