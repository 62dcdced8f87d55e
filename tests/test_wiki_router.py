# tests/test_wiki_router.py
import logging
import os

from personal_wiki.util.helpers import render_markdown
from personal_wiki.website.wiki_router import WikiRequest

from conftest import TEST_ORIGIN


def _create(client, username="alice", content="# Hi", password="secret"):
    return client.post("/wikis", json={"username": username, "content": content, "password": password})


def test_create_wiki_returns_url(client):
    resp = _create(client)

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True, "error": None, "url": "/wikis/alice"}


def test_create_duplicate_returns_reason(client):
    _create(client)
    resp = _create(client, content="# Other")

    assert resp.status_code == 200
    assert resp.get_json() == {"success": False, "error": "User already exists", "url": None}


def test_get_wiki_renders_page(client):
    _create(client, content="# Hi\n\nSome *text*")

    resp = client.get("/wikis/alice")

    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "<title>alice's Wiki</title>" in body
    assert render_markdown("# Hi\n\nSome *text*") in body
    assert "wiki-container" in body


def test_get_missing_wiki_is_friendly_placeholder(client):
    resp = client.get("/wikis/ghost")

    assert resp.status_code == 200
    assert "Wiki for user ghost not found... Please create one and try again!" in resp.get_data(as_text=True)


def test_update_wiki(client):
    _create(client)

    wrong = client.patch("/wikis", json={"username": "alice", "content": "# Bye", "password": "wrong"})
    assert wrong.get_json() == {"success": False, "error": "Wrong username or password", "url": None}

    resp = client.patch("/wikis", json={"username": "alice", "content": "# Bye", "password": "secret"})
    assert resp.get_json() == {"success": True, "error": None, "url": "/wikis/alice"}
    assert render_markdown("# Bye") in client.get("/wikis/alice").get_data(as_text=True)


def test_update_missing_user(client):
    resp = client.patch("/wikis", json={"username": "ghost", "content": "# Bye", "password": "secret"})

    assert resp.get_json()["error"] == "User does not exist"


def test_delete_wiki(client):
    _create(client)

    resp = client.delete("/wikis", json={"username": "alice", "password": "secret"})

    assert resp.get_json() == {"success": True, "error": None}
    assert "not found" in client.get("/wikis/alice").get_data(as_text=True)


def test_delete_wrong_password(client):
    _create(client)

    resp = client.delete("/wikis", json={"username": "alice", "password": "nope"})

    assert resp.get_json() == {"success": False, "error": "Wrong username or password"}


def test_conversion_failure_is_reported(client):
    resp = _create(client, content="")

    assert resp.get_json()["error"] == "Could not convert markdown text to HTML"


def test_malformed_body_is_bad_request(client):
    resp = client.post("/wikis", data="not json", content_type="application/json")

    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_missing_fields_are_bad_request(client):
    resp = client.post("/wikis", json={"username": "alice", "content": "# Hi"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Missing field(s): password"

    resp = client.delete("/wikis", json={"username": "alice"})
    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "error": "Missing field(s): password"}


def test_non_string_fields_are_bad_request(client):
    resp = client.post("/wikis", json={"username": "alice", "content": 42, "password": "secret"})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Field 'content' must be a string"


def test_cors_headers_for_allowed_origin(client):
    resp = client.post(
        "/wikis",
        json={"username": "alice", "content": "# Hi", "password": "secret"},
        headers={"Origin": TEST_ORIGIN},
    )

    assert resp.headers["Access-Control-Allow-Origin"] == TEST_ORIGIN
    assert "PATCH" in resp.headers["Access-Control-Allow-Methods"]
    assert resp.headers["Access-Control-Allow-Headers"] == "Content-Type"


def test_cors_headers_absent_for_other_origin(client):
    resp = _create(client)
    assert "Access-Control-Allow-Origin" not in resp.headers

    resp = client.post(
        "/wikis",
        json={"username": "bob", "content": "# Hi", "password": "secret"},
        headers={"Origin": "https://evil.example"},
    )
    assert "Access-Control-Allow-Origin" not in resp.headers


def test_cors_preflight(client):
    resp = client.options(
        "/wikis",
        headers={"Origin": TEST_ORIGIN, "Access-Control-Request-Method": "DELETE"},
    )

    assert resp.status_code == 200
    assert resp.headers["Access-Control-Allow-Origin"] == TEST_ORIGIN
    assert "DELETE" in resp.headers["Access-Control-Allow-Methods"]


def test_read_route_has_no_cors_headers(client):
    resp = client.get("/wikis/alice", headers={"Origin": TEST_ORIGIN})

    assert "Access-Control-Allow-Origin" not in resp.headers


def test_wiki_request_repr_hides_password():
    payload = WikiRequest.from_json({"username": "alice", "content": "# Hi", "password": "hunter2"})

    assert "hunter2" not in repr(payload)
    assert "alice" in repr(payload)


def test_static_pages(client):
    assert "createWiki" in client.get("/").get_data(as_text=True)
    assert client.get("/about").status_code == 200
    assert client.get("/static/scripts/script.js").status_code == 200
    assert client.get("/health").get_json() == {"status": "ok"}


def test_unknown_route_is_404(client):
    assert client.get("/does/not/exist").status_code == 404


def test_log_file_is_written(app):
    log_dir = app.config["LOG_DIR"]

    assert os.path.exists(os.path.join(log_dir, "wiki.log"))


def test_write_routes_are_rate_limited(make_app):
    client = make_app(RATELIMIT_ENABLED=True, WRITE_RATE_LIMIT="1 per minute").test_client()

    first = _create(client)
    second = _create(client, username="bob")

    assert first.status_code == 200
    assert second.status_code == 429
    # reads are not subject to the write limit
    assert client.get("/wikis/alice").status_code == 200


def test_limiter_falls_back_to_memory_storage(make_app):
    app = make_app(RATELIMIT_ENABLED=True, RATELIMIT_STORAGE_URI="bogus://")

    assert _create(app.test_client()).get_json()["success"] is True
    with open(os.path.join(app.config["LOG_DIR"], "wiki.log"), encoding="utf-8") as f:
        log_text = f.read()
    assert "Error initializing limiter" in log_text
    assert "Failover limiter initialized with in-memory storage" in log_text


def test_log_file_and_level_come_from_config(make_app):
    app = make_app(LOG_FILE="custom.log", LOG_LEVEL="warning")
    _create(app.test_client())
    app.logger.warning("only warnings get through")
    for handler in app.logger.handlers:
        handler.flush()

    with open(os.path.join(app.config["LOG_DIR"], "custom.log"), encoding="utf-8") as f:
        log_text = f.read()
    assert app.logger.level == logging.WARNING
    assert "only warnings get through" in log_text
    assert "Wiki successfully created" not in log_text
