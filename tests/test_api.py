"""
HTTP API tests. Real app and SQLite database, scripted AI gateway.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import FakeGateway, FakeSearch, make_product, png_base64
from easystyle.core.dependencies import get_pipeline
from easystyle.factory import create_app
from easystyle.services.pipeline import StylingPipeline

USER = {"X-User-Email": "Kim@Example.com"}
OTHER = {"X-User-Email": "lee@example.com"}
ADMIN = {"X-User-Email": "admin@easystyle.com"}

PLAN = {
    "description": "편안하면서도 세련된 캐주얼 데이트룩",
    "items": [
        {"category": "상의", "searchKeyword": "남성 린넨 셔츠"},
        {"category": "하의", "searchKeyword": "남성 치노 팬츠"},
    ],
}


@pytest.fixture()
def gateway():
    return FakeGateway(plan=PLAN, crops={"린넨 셔츠": "Q1JPUA=="})


@pytest.fixture()
def client(database_url, gateway):
    search = FakeSearch({
        "남성 린넨 셔츠": make_product("린넨 셔츠", 59_000),
        "남성 치노 팬츠": make_product("치노 팬츠", 49_000),
    })
    app = create_app()
    app.dependency_overrides[get_pipeline] = lambda: StylingPipeline(gateway, search)
    with TestClient(app) as c:
        yield c


def _start(client, headers=USER):
    resp = client.post(
        "/v1/styling/sessions",
        json={"image": f"data:image/png;base64,{png_base64()}"},
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()["sessionId"]


def _generate(client, session_id):
    resp = client.post(
        f"/v1/styling/sessions/{session_id}/question",
        json={"prompt": "캐주얼 데이트룩"},
        headers=USER,
    )
    assert resp.status_code == 200
    resp = client.post(
        f"/v1/styling/sessions/{session_id}/generate",
        json={"answer": "카페에 갈 거예요"},
        headers=USER,
    )
    assert resp.status_code == 200
    return resp.json()


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_identity_required(client):
    assert client.post("/v1/styling/sessions", json={"image": png_base64()}).status_code == 401
    resp = client.post(
        "/v1/styling/sessions",
        json={"image": png_base64()},
        headers={"X-User-Email": "not-an-email"},
    )
    assert resp.status_code == 401


def test_bad_upload(client):
    resp = client.post("/v1/styling/sessions", json={"image": "bm90IGFuIGltYWdl"}, headers=USER)
    assert resp.status_code == 400


def test_full_styling_flow(client, gateway):
    session_id = _start(client)
    body = _generate(client, session_id)

    assert gateway.plan_prompts == ["캐주얼 데이트룩\n\n추가 정보: 카페에 갈 거예요"]
    assert body["description"] == PLAN["description"]
    assert list(body["groups"]) == ["상의", "하의"]
    assert body["selectedCount"] == 2
    assert body["totalPrice"] == 108_000

    top = body["groups"]["상의"][0]
    assert top["selected"] is True
    assert top["imageSources"][0] == "data:image/png;base64,Q1JPUA=="
    assert top["imageSources"][-1] == "data:image/png;base64,U1RZTEVE"

    resp = client.post(
        f"/v1/styling/sessions/{session_id}/selection/toggle",
        json={"productUrl": top["product"]["productUrl"]},
        headers=USER,
    )
    assert resp.json()["totalPrice"] == 49_000

    resp = client.post(f"/v1/styling/sessions/{session_id}/purchase", headers=USER)
    assert resp.status_code == 201
    purchase = resp.json()
    assert purchase["totalPrice"] == 49_000
    assert purchase["status"] == "Pending"
    assert purchase["userEmail"] == "kim@example.com"


def test_generate_without_products(client, gateway):
    gateway.plan = {"description": "룩", "items": [{"category": "신발", "searchKeyword": "없음"}]}
    session_id = _start(client)
    client.post(f"/v1/styling/sessions/{session_id}/question", json={"prompt": "운동화"}, headers=USER)

    resp = client.post(f"/v1/styling/sessions/{session_id}/generate", json={}, headers=USER)

    assert resp.status_code == 422
    assert "추천할만한 상품을 찾지 못했습니다" in resp.json()["detail"]


def test_empty_prompt_rejected(client):
    session_id = _start(client)
    resp = client.post(f"/v1/styling/sessions/{session_id}/question", json={"prompt": "  "}, headers=USER)
    assert resp.status_code == 400


def test_sessions_are_private(client):
    session_id = _start(client)
    assert client.get(f"/v1/styling/sessions/{session_id}", headers=OTHER).status_code == 404


def test_save_history_load_and_share(client):
    session_id = _start(client)
    _generate(client, session_id)

    resp = client.post(f"/v1/styling/sessions/{session_id}/save", headers=USER)
    assert resp.status_code == 201
    item_id = resp.json()["id"]
    assert client.post(f"/v1/styling/sessions/{session_id}/save", headers=USER).status_code == 409

    history = client.get("/v1/history", headers=USER).json()
    assert [item["id"] for item in history] == [item_id]
    assert client.get("/v1/history", headers=OTHER).json() == []

    resp = client.post(f"/v1/history/{item_id}/load", json={}, headers=USER)
    assert resp.status_code == 200
    loaded = resp.json()
    assert loaded["sessionId"] != session_id
    assert loaded["saved"] is True
    assert loaded["selectedCount"] == 2

    share = client.get(f"/v1/history/{item_id}/share", headers=USER).json()
    assert share["title"] == "EasyStyle AI Stylist"
    assert share["text"] == "AI가 추천해준 제 새로운 스타일을 확인해보세요! - 캐주얼 데이트룩"

    assert client.get(f"/v1/history/{item_id}/share", headers=OTHER).status_code == 404


def test_admin_dashboard(client):
    session_id = _start(client)
    _generate(client, session_id)
    client.post(f"/v1/styling/sessions/{session_id}/save", headers=USER)
    request_id = client.post(f"/v1/styling/sessions/{session_id}/purchase", headers=USER).json()["id"]

    assert client.get("/v1/admin/purchases", headers=USER).status_code == 403

    dashboard = client.get("/v1/admin/purchases", headers=ADMIN).json()
    assert [r["id"] for r in dashboard["pending"]] == [request_id]
    assert dashboard["completed"] == []

    resp = client.post(f"/v1/admin/purchases/{request_id}/complete", headers=ADMIN)
    assert resp.json()["status"] == "Completed"
    assert client.post("/v1/admin/purchases/nope/complete", headers=ADMIN).status_code == 404

    dashboard = client.get("/v1/admin/purchases", headers=ADMIN).json()
    assert dashboard["pending"] == []
    assert [r["id"] for r in dashboard["completed"]] == [request_id]

    users = client.get("/v1/admin/users", headers=ADMIN).json()
    assert [(u["email"], u["registered"]) for u in users] == [("kim@example.com", False)]
    history = client.get("/v1/admin/users/kim@example.com/history", headers=ADMIN).json()
    assert len(history) == 1


def test_delete_session(client):
    session_id = _start(client)

    assert client.delete(f"/v1/styling/sessions/{session_id}", headers=OTHER).status_code == 404
    assert client.delete(f"/v1/styling/sessions/{session_id}", headers=USER).status_code == 204
    assert client.get(f"/v1/styling/sessions/{session_id}", headers=USER).status_code == 404


def test_profile_registration_and_admin_user_list(client):
    assert client.get("/v1/users/me", headers=OTHER).status_code == 404

    resp = client.put("/v1/users/me", json={"name": "이영희", "phone": "010-1234-5678"}, headers=OTHER)
    assert resp.status_code == 200
    assert resp.json()["name"] == "이영희"

    resp = client.put("/v1/users/me", json={"name": "이영희", "phone": "010-9999-0000"}, headers=OTHER)
    assert resp.json()["phone"] == "010-9999-0000"
    assert client.get("/v1/users/me", headers=OTHER).json()["phone"] == "010-9999-0000"

    assert client.put("/v1/users/me", json={"name": "   "}, headers=OTHER).status_code == 400

    session_id = _start(client)
    _generate(client, session_id)
    client.post(f"/v1/styling/sessions/{session_id}/save", headers=USER)

    users = client.get("/v1/admin/users", headers=ADMIN).json()
    assert [u["email"] for u in users] == ["kim@example.com", "lee@example.com"]
    lee = users[1]
    assert lee["name"] == "이영희"
    assert lee["phone"] == "010-9999-0000"
    assert lee["registered"] is True
    assert users[0]["registered"] is False
