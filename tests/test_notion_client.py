import json

import pytest

import app_runtime as rt


class DummyResp:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload
        self.text = str(payload)

    def json(self):
        return self._payload


def test_append_children_returns_json(monkeypatch):
    notion = rt.NotionClient(token="x")
    payload = {"results": [{"id": "abc", "type": "heading_2"}]}
    seen = {}

    def fake_patch(url, headers, data):
        seen.update({"url": url, "headers": headers, "body": json.loads(data)})
        return DummyResp(200, payload)

    monkeypatch.setattr(rt.requests, "patch", fake_patch)

    out = notion.append_children("PAGE", [{"object": "block"}])

    assert out == payload
    assert seen["url"] == "https://api.notion.com/v1/blocks/PAGE/children"
    assert seen["headers"]["Authorization"] == "Bearer x"
    assert seen["headers"]["Notion-Version"] == rt.NOTION_VERSION
    assert seen["body"] == {"children": [{"object": "block"}]}


def test_append_children_raises_on_http_error(monkeypatch):
    notion = rt.NotionClient(token="x")
    monkeypatch.setattr(rt.requests, "patch", lambda url, headers, data: DummyResp(401, {"message": "unauthorized"}))

    with pytest.raises(RuntimeError, match="Notion error 401"):
        notion.append_children("PAGE", [])
