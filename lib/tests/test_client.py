from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import timedelta
from email import policy
from email.parser import BytesParser

import httpx
import pytest

from blackbeard_client import (
    ClientBuilder,
    ConfigurationError,
    ConstructionError,
    EncodingError,
    MultipartFileError,
    NetworkError,
    decode_into,
    new_multipart_body,
)
from blackbeard_client.client import BASE_PATH_ENV

BASE = "http://localhost"


class _Recorder:
    """MockTransport handler keeping every request it served."""

    def __init__(self, status: int = 200, body: object = None, echo: bool = False):
        self.status = status
        self.body = body if body is not None else {"ok": True}
        self.echo = echo
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.echo:
            return httpx.Response(self.status, content=request.content, headers={"Content-Type": "application/json"})
        return httpx.Response(self.status, json=self.body)


def _builder(handler) -> ClientBuilder:
    return ClientBuilder().with_base_path(BASE).with_port(3000).with_transport(httpx.MockTransport(handler))


@dataclass
class Post:
    title: str
    author: str
    id: int | None = None


def test_builder_methods_return_same_instance() -> None:
    builder = ClientBuilder()
    assert builder.with_base_path(BASE) is builder
    assert builder.with_port(3000).to_service("truman").with_version("vTest") is builder


def test_builder_getters_and_last_write_wins() -> None:
    builder = (
        ClientBuilder()
        .with_base_path("http://first/")
        .with_base_path("http://localhost/")
        .with_port(3000)
        .to_service("truman")
        .with_version("vTest")
        .with_timeout(timedelta(seconds=3))
    )
    assert builder.base_path == "http://localhost"
    assert builder.port == 3000
    assert builder.service == "truman"
    assert builder.version == "vTest"
    assert builder.timeout == 3.0


def test_invalid_port_and_timeout_are_rejected() -> None:
    with pytest.raises(ConfigurationError):
        ClientBuilder().with_port(-1)
    with pytest.raises(ConfigurationError):
        ClientBuilder().with_timeout(-0.5)


def test_default_base_path_reads_env_only_when_asked(monkeypatch) -> None:
    monkeypatch.setenv(BASE_PATH_ENV, "http://localhost/")
    assert ClientBuilder().base_path == ""
    assert ClientBuilder().with_default_base_path().base_path == "http://localhost"


def test_default_base_path_missing_env(monkeypatch) -> None:
    monkeypatch.delenv(BASE_PATH_ENV, raising=False)
    with pytest.raises(ConfigurationError):
        ClientBuilder().with_default_base_path()


def test_get_composes_url_and_query() -> None:
    rec = _Recorder()
    client = _builder(rec).with_version("v1").to_service("svc").with_api_key("k1").build()

    resp = client.get("/posts", {"author": ["capote", "truman"]})

    assert resp.status_code == 200
    sent = rec.requests[0]
    assert sent.method == "GET"
    assert sent.url.scheme == "http"
    assert sent.url.host == "localhost"
    assert sent.url.port == 3000
    assert sent.url.path == "/v1/svc/posts"
    assert sent.url.params.get_list("author") == ["capote", "truman"]
    assert sent.url.params["key"] == "k1"
    assert sent.content == b""
    assert "content-type" not in sent.headers


def test_post_put_delete_send_json_bodies() -> None:
    rec = _Recorder()
    client = _builder(rec).build()

    client.post("/posts", {"title": "Desayuno con diamantes", "author": "Truman Capote"})
    client.put("/posts/1", Post("Desayuno con Diamantes", "Truman Capote"))
    client.delete("/posts/1")

    post, put, delete = rec.requests
    assert (post.method, put.method, delete.method) == ("POST", "PUT", "DELETE")
    assert json.loads(post.content) == {"title": "Desayuno con diamantes", "author": "Truman Capote"}
    assert post.headers["content-type"] == "application/json"
    assert json.loads(put.content)["title"] == "Desayuno con Diamantes"
    assert put.url.path == "/posts/1"
    assert delete.content == b""


def test_application_errors_are_returned_not_raised() -> None:
    client = _builder(_Recorder(status=404, body={"message": "not found"})).build()
    resp = client.get("/wrong")
    assert resp.status_code == 404


def test_inherited_authorization_reaches_outgoing_request() -> None:
    rec = _Recorder()
    inbound = httpx.Request("GET", "http://gateway/in", headers={"Authorization": "Bearer T", "Cookie": "sid=1"})
    client = _builder(rec).inherit_from_parent_context(inbound).build()

    client.get("/posts")

    assert rec.requests[0].headers["authorization"] == "Bearer T"
    assert "cookie" not in rec.requests[0].headers


def test_round_trip_through_echo_service() -> None:
    client = _builder(_Recorder(echo=True)).build()
    original = Post(title="Desayuno", author="Truman Capote", id=7)

    resp = client.post("/echo", original)

    assert decode_into(resp.json(), Post) == original


def test_encoding_error_happens_before_network() -> None:
    rec = _Recorder()
    client = _builder(rec).build()
    with pytest.raises(EncodingError):
        client.post("/posts", {"bad": {1, 2}})
    assert rec.requests == []


@pytest.mark.parametrize("base", ["localhost:3000", "http://local host", "ftp://localhost"])
def test_malformed_base_path_is_a_construction_error(base) -> None:
    rec = _Recorder()
    client = ClientBuilder().with_base_path(base).with_transport(httpx.MockTransport(rec)).build()
    with pytest.raises(ConstructionError):
        client.get("/x")
    assert rec.requests == []


def test_transport_failure_is_network_error_and_not_cached() -> None:
    calls = []

    def _handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    client = _builder(_handler).with_cache().build()
    for _ in range(2):
        with pytest.raises(NetworkError) as exc:
            client.get("/posts")
        assert isinstance(exc.value.__cause__, httpx.ConnectError)
    assert len(calls) == 2
    assert len(client.cache) == 0


def test_identical_calls_hit_the_cache_once() -> None:
    rec = _Recorder(body={"id": 1, "title": "x"})
    client = _builder(rec).with_cache().build()

    first = client.get("/posts/1", {"q": "a"})
    second = client.get("/posts/1", {"q": "a"})

    assert len(rec.requests) == 1
    assert second.status_code == first.status_code
    assert second.json() == first.json()


def test_different_calls_do_not_share_cache_entries() -> None:
    rec = _Recorder()
    client = _builder(rec).with_cache().build()

    client.get("/posts/1")
    client.get("/posts/2")
    client.post("/posts/1", {"a": 1})

    assert len(rec.requests) == 3


def test_without_cache_every_call_goes_out() -> None:
    rec = _Recorder()
    client = _builder(rec).build()
    client.get("/posts")
    client.get("/posts")
    assert len(rec.requests) == 2
    assert client.cache is None


def test_error_responses_are_cached_only_on_request() -> None:
    rec = _Recorder(status=500, body={"message": "boom"})
    client = _builder(rec).with_cache().build()
    client.get("/x")
    client.get("/x")
    assert len(rec.requests) == 2

    rec = _Recorder(status=500, body={"message": "boom"})
    client = _builder(rec).with_cache(cache_errors=True).build()
    client.get("/x")
    client.get("/x")
    assert len(rec.requests) == 1


def test_close_tears_down_cache() -> None:
    client = _builder(_Recorder()).with_cache().build()
    client.get("/posts")
    assert len(client.cache) == 1
    client.close()
    assert len(client.cache) == 0


def test_multipart_overrides_content_type_for_one_call(tmp_path) -> None:
    upload = tmp_path / "cover.txt"
    upload.write_bytes(b"In Cold Blood")
    rec = _Recorder()
    client = _builder(rec).with_json_content().build()

    client.multipart("/upload", new_multipart_body({"title": "capote"}, {"doc": str(upload)}), {"draft": "1"})
    client.post("/posts", {"a": 1})

    multipart, plain = rec.requests
    content_type = multipart.headers["content-type"]
    assert content_type.startswith("multipart/form-data; boundary=")
    assert multipart.url.params["draft"] == "1"
    msg = BytesParser(policy=policy.default).parsebytes(
        f"Content-Type: {content_type}\r\n\r\n".encode() + multipart.content
    )
    parts = {p.get_param("name", header="content-disposition"): p for p in msg.iter_parts()}
    assert parts["doc"].get_filename() == "cover.txt"
    assert parts["doc"].get_payload(decode=True) == b"In Cold Blood"
    assert parts["title"].get_payload(decode=True) == b"capote"

    assert plain.headers["content-type"] == "application/json"
    assert client.headers["content-type"] == "application/json"


def test_multipart_missing_file_aborts_before_network(tmp_path) -> None:
    rec = _Recorder()
    client = _builder(rec).build()
    with pytest.raises(MultipartFileError):
        client.multipart("/upload", new_multipart_body(files={"doc": str(tmp_path / "missing.pdf")}))
    assert rec.requests == []


def test_client_as_context_manager() -> None:
    rec = _Recorder()
    with _builder(rec).build() as client:
        client.get("/posts")
    assert len(rec.requests) == 1


def test_redirect_loop_is_network_error() -> None:
    rec = []

    def _loop(request: httpx.Request) -> httpx.Response:
        rec.append(request)
        return httpx.Response(302, headers={"Location": "/loop"})

    client = _builder(_loop).with_cache().build()
    with pytest.raises(NetworkError) as exc:
        client.get("/loop")
    assert isinstance(exc.value.__cause__, httpx.TooManyRedirects)
    assert len(rec) > 1
    assert len(client.cache) == 0


def test_undecodable_body_is_network_error() -> None:
    def _bad_gzip(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b'{"id": 1}')

    client = _builder(_bad_gzip).build()
    with pytest.raises(NetworkError) as exc:
        client.get("/posts/1")
    assert isinstance(exc.value.__cause__, httpx.DecodingError)


def test_edited_upload_is_sent_again(tmp_path) -> None:
    upload = tmp_path / "doc.txt"
    upload.write_bytes(b"first draft")
    rec = _Recorder()
    client = _builder(rec).with_cache().build()
    body = new_multipart_body({"title": "draft"}, {"doc": str(upload)})

    client.multipart("/upload", body)
    client.multipart("/upload", body)
    assert len(rec.requests) == 1

    upload.write_bytes(b"second draft")
    client.multipart("/upload", body)

    assert len(rec.requests) == 2
    assert b"second draft" in rec.requests[1].content
