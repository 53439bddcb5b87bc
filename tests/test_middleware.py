"""Tests for switchyard.middleware — built-in middleware behaviour."""

import logging

import pytest

from switchyard.app import App
from switchyard.context import RequestContext
from switchyard.errors import ConfigurationError
from switchyard.middleware import AuthConfig, BodyConfig, FormBody, HeaderAuth, JSONBody, RequestLogger
from switchyard.routing import Proceed
from switchyard.testing import TestClient


def _echo_attribute(name: str):
    def handler(ctx: RequestContext, proceed: Proceed) -> None:
        ctx.send({"value": ctx.attributes.get(name)})

    return handler


class TestRequestLogger:
    async def test_logs_method_and_url(self, caplog: pytest.LogCaptureFixture) -> None:
        app = App()
        app.use(RequestLogger())
        app.get("/items", lambda ctx, proceed: ctx.send("ok"))

        with caplog.at_level(logging.INFO, logger="switchyard.access"):
            async with TestClient(app) as client:
                response = await client.get("/items?page=2")

        assert response.status == 200
        assert "GET request for '/items?page=2'" in [r.getMessage() for r in caplog.records]

    async def test_stores_start_time(self) -> None:
        app = App()
        app.use(RequestLogger())
        app.get("/", lambda ctx, proceed: ctx.send(str("started_at" in ctx.attributes)))

        async with TestClient(app) as client:
            response = await client.get("/")

        assert response.text == "True"

    async def test_custom_logger_and_level(self, caplog: pytest.LogCaptureFixture) -> None:
        app = App()
        app.use(RequestLogger(logging.getLogger("myapp.requests"), level=logging.DEBUG))
        app.get("/", lambda ctx, proceed: ctx.send("ok"))

        with caplog.at_level(logging.DEBUG, logger="myapp.requests"):
            async with TestClient(app) as client:
                await client.get("/")

        assert [r.name for r in caplog.records if r.name == "myapp.requests"] == ["myapp.requests"]


class TestJSONBody:
    async def test_parses_json(self) -> None:
        app = App()
        app.use(JSONBody())
        app.post("/", _echo_attribute("body"))

        async with TestClient(app) as client:
            response = await client.post("/", json={"name": "Item 3"})

        assert response.json() == {"value": {"name": "Item 3"}}

    async def test_other_content_types_pass_through(self) -> None:
        app = App()
        app.use(JSONBody())
        app.post("/", _echo_attribute("body"))

        async with TestClient(app) as client:
            response = await client.post("/", body=b"plain", headers={"content-type": "text/plain"})

        assert response.json() == {"value": None}

    async def test_empty_body_is_none(self) -> None:
        app = App()
        app.use(JSONBody())
        app.post("/", lambda ctx, proceed: ctx.send(str("body" in ctx.attributes)))

        async with TestClient(app) as client:
            response = await client.post("/", headers={"content-type": "application/json"})

        assert response.text == "True"

    async def test_malformed_json_is_bad_request(self) -> None:
        app = App()
        app.use(JSONBody())
        app.post("/", _echo_attribute("body"))

        async with TestClient(app) as client:
            response = await client.post(
                "/", body=b"[1, 2", headers={"content-type": "application/json; charset=utf-8"}
            )

        assert response.status == 400
        assert response.text == "Malformed JSON body"

    async def test_oversized_body_is_payload_too_large(self) -> None:
        app = App()
        app.use(JSONBody(BodyConfig(max_bytes=8)))
        app.post("/", _echo_attribute("body"))

        async with TestClient(app) as client:
            response = await client.post("/", json={"name": "far too long"})

        assert response.status == 413
        assert response.text == "Request body too large"

    async def test_declared_length_rejected_before_reading(self) -> None:
        app = App()
        app.use(FormBody(BodyConfig(attribute="form", max_bytes=4)))
        app.post("/", _echo_attribute("form"))

        async with TestClient(app) as client:
            response = await client.post(
                "/",
                body=b"a=1",
                headers={
                    "content-type": "application/x-www-form-urlencoded",
                    "content-length": "5000",
                },
            )

        assert response.status == 413

    async def test_custom_attribute(self) -> None:
        app = App()
        app.use(JSONBody(BodyConfig(attribute="payload")))
        app.post("/", _echo_attribute("payload"))

        async with TestClient(app) as client:
            response = await client.post("/", json=[1, 2, 3])

        assert response.json() == {"value": [1, 2, 3]}


class TestFormBody:
    async def test_parses_form(self) -> None:
        app = App()
        app.use(FormBody())

        @app.post("/login")
        def login(ctx: RequestContext, proceed: Proceed) -> None:
            form = ctx.attributes["form"]
            ctx.send({"user": form["user"], "tags": form.get_list("tag")})

        async with TestClient(app) as client:
            response = await client.post(
                "/login",
                body=b"user=ada&tag=a&tag=b",
                headers={"content-type": "application/x-www-form-urlencoded"},
            )

        assert response.json() == {"user": "ada", "tags": ["a", "b"]}

    async def test_json_requests_pass_through(self) -> None:
        app = App()
        app.use(FormBody())
        app.post("/", lambda ctx, proceed: ctx.send(str("form" in ctx.attributes)))

        async with TestClient(app) as client:
            response = await client.post("/", json={"a": 1})

        assert response.text == "False"


class TestHeaderAuth:
    async def test_valid_token(self) -> None:
        app = App()
        app.use(HeaderAuth(AuthConfig(tokens=frozenset({"mysecrettoken"}))))
        app.get("/", _echo_attribute("user"))

        async with TestClient(app) as client:
            response = await client.get("/", headers={"Authorization": "mysecrettoken"})

        assert response.json() == {"value": "mysecrettoken"}

    @pytest.mark.parametrize("headers", [{}, {"Authorization": "wrong"}, {"Authorization": ""}])
    async def test_rejects_missing_or_invalid(self, headers: dict[str, str]) -> None:
        visited: list[str] = []
        app = App()
        app.use(HeaderAuth(AuthConfig(tokens=frozenset({"mysecrettoken"}))))
        app.get("/", lambda ctx, proceed: visited.append("route"))

        async with TestClient(app) as client:
            response = await client.get("/", headers=headers)

        assert response.status == 403
        assert response.text == "Forbidden"
        assert visited == []

    async def test_scheme_required(self) -> None:
        app = App()
        app.use(HeaderAuth(AuthConfig(tokens=frozenset({"abc"}), scheme="Bearer")))
        app.get("/", _echo_attribute("user"))

        async with TestClient(app) as client:
            ok = await client.get("/", headers={"Authorization": "bearer abc"})
            raw = await client.get("/", headers={"Authorization": "abc"})

        assert ok.status == 200
        assert raw.status == 403

    async def test_async_verifier(self) -> None:
        users = {"t-1": {"name": "ada"}}

        async def verify(token: str):
            return users.get(token)

        app = App()
        app.use(HeaderAuth(AuthConfig(verify=verify, header="x-api-key", status=401, message="Unauthorized")))
        app.get("/", _echo_attribute("user"))

        async with TestClient(app) as client:
            ok = await client.get("/", headers={"X-Api-Key": "t-1"})
            bad = await client.get("/", headers={"X-Api-Key": "t-2"})

        assert ok.json() == {"value": {"name": "ada"}}
        assert bad.status == 401
        assert bad.text == "Unauthorized"

    async def test_only_guards_its_prefix(self) -> None:
        app = App()
        app.use("/api", HeaderAuth(AuthConfig(tokens=frozenset({"abc"}))))
        app.get("/public", lambda ctx, proceed: ctx.send("public"))
        app.get("/api/private", lambda ctx, proceed: ctx.send("private"))

        async with TestClient(app) as client:
            public = await client.get("/public")
            private = await client.get("/api/private")

        assert public.text == "public"
        assert private.status == 403

    def test_needs_exactly_one_source(self) -> None:
        with pytest.raises(ConfigurationError):
            HeaderAuth(AuthConfig())
        with pytest.raises(ConfigurationError):
            HeaderAuth(AuthConfig(tokens=frozenset({"a"}), verify=lambda token: token))
