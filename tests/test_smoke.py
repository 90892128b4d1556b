from fastapi.testclient import TestClient
from propconv.main import app

client = TestClient(app)

def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}

def test_parse_comma_delimited():
    r = client.post("/parse", json={"text": "a=1,bad,c=3"})
    assert r.status_code == 200

    data = r.json()
    assert data["properties"] == {"a": "1", "c": "3"}
    assert data["report"]["summary"]["records"] == 3
    assert data["report"]["summary"]["round_trip_safe"] is False
    assert data["report"]["conversions"]["records"]["separator"] == "comma"

    [warning] = data["report"]["warnings"]
    assert warning["issue"] == "malformed_record"
    assert warning["record"] == 2
    assert warning["value"] == "bad"
    assert warning["action"] == "skipped"

def test_parse_missing_text():
    r = client.post("/parse", json={})
    assert r.status_code == 200
    assert r.json()["properties"] == {}

def test_parse_keeps_carriage_return_in_text_body():
    r = client.post("/parse", json={"text": "a=1\r\nb=2"})
    assert r.json()["properties"] == {"a": "1\r", "b": "2"}

def test_parse_file_decodes_latin1_and_normalizes_newlines():
    # Include a Latin-1 character to force non-ASCII handling
    raw = "name=Paul\r\ncity=Montréal\r\n".encode("latin-1")

    files = {"file": ("settings.properties", raw, "text/plain")}
    r = client.post("/parse/file", files=files)
    assert r.status_code == 200

    data = r.json()
    assert data["properties"]["name"] == "Paul"
    assert "Montréal" in data["properties"]["city"]

    newlines = data["report"]["conversions"]["newlines"]
    assert newlines["changed"] is True
    assert newlines["before"]["crlf"] == 2
    assert "encoding" in data["report"]["conversions"]

def test_parse_file_rejects_other_extensions():
    files = {"file": ("settings.csv", b"a=1", "text/csv")}
    r = client.post("/parse/file", files=files)
    assert r.status_code == 422

def test_format():
    r = client.post("/format", json={"properties": {"a": "1", "b": "2"}})
    assert r.status_code == 200

    data = r.json()
    assert data["text"] == "a=1,b=2"
    assert data["report"]["summary"]["errors"] == 0

def test_format_delimiter_collision_returns_empty_text():
    r = client.post("/format", json={"properties": {"a": "1", "b": "x,y"}})
    assert r.status_code == 200

    data = r.json()
    assert data["text"] == ""
    assert data["report"]["conversions"]["records"]["delimiter_collision"] is True

    [error] = data["report"]["errors"]
    assert error["issue"] == "delimiter_collision"
    assert error["key"] == "b"
    assert error["action"] == "returned_empty"

def test_format_missing_properties():
    r = client.post("/format", json={"properties": None})
    assert r.status_code == 200
    assert r.json()["text"] == ""

def test_logging_configured_on_startup_not_import(monkeypatch):
    import importlib
    import logging
    import propconv.main

    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    module = importlib.reload(propconv.main)
    assert calls == []

    with TestClient(module.app) as started:
        assert started.get("/health").status_code == 200
    assert calls == [{"level": logging.INFO}]
