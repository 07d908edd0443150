"""
Tests for the bundled plugins.
"""

import logging

import pytest
from aiohttp import web
from aiohttp import test_utils

from reify import EvalContext, execute, register_plugin
from reify.plugins import (
    apply_operator,
    apply_operators,
    create_cache_plugin,
    create_http_plugin,
    create_log_plugin,
    create_store_plugin,
    entity_plugin,
)


class TestApplyOperators:
    """Tests for operator application."""

    def test_inc_and_dec(self):
        assert apply_operator(5, {"$inc": 2}) == 7
        assert apply_operator(None, {"$inc": 1}) == 1
        assert apply_operator(5, {"$dec": 3}) == 2

    def test_default(self):
        assert apply_operator(None, {"$default": "x"}) == "x"
        assert apply_operator("kept", {"$default": "x"}) == "kept"

    def test_list_operators(self):
        assert apply_operator(["a"], {"$push": "b"}) == ["a", "b"]
        assert apply_operator(None, {"$push": ["a", "b"]}) == ["a", "b"]
        assert apply_operator(["a", "b", "a"], {"$pull": "a"}) == ["b"]
        assert apply_operator(["a"], {"$addToSet": ["a", "b"]}) == ["a", "b"]

    def test_apply_operators_merges(self):
        existing = {"id": "1", "count": 5, "tags": ["x"], "name": "a"}
        updated = apply_operators(
            existing, {"count": {"$inc": 1}, "tags": {"$push": "y"}, "name": "b"}
        )

        assert updated == {"id": "1", "count": 6, "tags": ["x", "y"], "name": "b"}
        assert existing["count"] == 5


class TestEntityPlugin:
    """Tests for the descriptive entity plugin."""

    @pytest.mark.asyncio
    async def test_create_assigns_temp_id(self):
        register_plugin(entity_plugin)
        outcome = await execute(
            {"$do": "entity.create", "$with": {"type": "User", "name": "John"}}
        )

        assert outcome.steps[0].result == {
            "$op": "create",
            "$type": "User",
            "id": "temp_1",
            "name": "John",
        }

    def test_update_and_delete(self):
        ctx = EvalContext()
        update = entity_plugin.effects["update"]
        delete = entity_plugin.effects["delete"]

        assert update({"type": "User", "id": "u1", "age": {"$inc": 1}}, ctx) == {
            "$op": "update",
            "$type": "User",
            "id": "u1",
            "age": {"$inc": 1},
        }
        assert delete({"type": "User", "id": "u1"}, ctx) == {
            "$op": "delete",
            "$type": "User",
            "id": "u1",
        }

    def test_upsert_picks_operation(self):
        ctx = EvalContext()
        upsert = entity_plugin.effects["upsert"]

        assert upsert({"type": "User", "id": "u1"}, ctx)["$op"] == "update"
        created = upsert({"type": "User"}, ctx)
        assert created["$op"] == "create"
        assert created["id"] == "temp_1"


class TestCachePlugin:
    """Tests for the in-memory cache adapter."""

    @pytest.mark.asyncio
    async def test_create_with_temp_id(self):
        cache = {}
        register_plugin(create_cache_plugin(cache))

        await execute({"$do": "entity.create", "$with": {"type": "User", "name": "John"}})

        assert cache == {"User:temp_1": {"id": "temp_1", "name": "John"}}
        assert list(cache["User:temp_1"]) == ["id", "name"]

    @pytest.mark.asyncio
    async def test_create_with_provided_id(self):
        cache = {}
        register_plugin(create_cache_plugin(cache))

        await execute(
            {"$do": "entity.create", "$with": {"type": "User", "id": "u1", "name": "John"}}
        )

        assert cache["User:u1"] == {"id": "u1", "name": "John"}

    @pytest.mark.asyncio
    async def test_create_with_null_id_generates_one(self):
        cache = {}
        register_plugin(create_cache_plugin(cache))

        await execute({"$do": "entity.create", "$with": {"type": "User", "id": None}})

        assert cache == {"User:temp_1": {"id": "temp_1"}}

    @pytest.mark.asyncio
    async def test_update_applies_operators(self):
        cache = {"Post:p1": {"id": "p1", "views": 3, "tags": ["a"]}}
        register_plugin(create_cache_plugin(cache))

        await execute(
            {
                "$do": "entity.update",
                "$with": {
                    "type": "Post",
                    "id": "p1",
                    "views": {"$inc": 1},
                    "tags": {"$push": "b"},
                },
            }
        )

        assert cache["Post:p1"] == {"id": "p1", "views": 4, "tags": ["a", "b"]}

    @pytest.mark.asyncio
    async def test_delete(self):
        cache = {"User:u1": {"id": "u1", "name": "John"}}
        register_plugin(create_cache_plugin(cache))

        outcome = await execute({"$do": "entity.delete", "$with": {"type": "User", "id": "u1"}})

        assert cache == {}
        assert outcome.steps[0].result == {"id": "u1", "name": "John"}

    @pytest.mark.asyncio
    async def test_upsert(self):
        cache = {"User:u1": {"id": "u1", "logins": 1}}
        register_plugin(create_cache_plugin(cache))

        await execute(
            {"$do": "entity.upsert", "$with": {"type": "User", "id": "u1", "logins": {"$inc": 1}}}
        )
        await execute(
            {"$do": "entity.upsert", "$with": {"type": "User", "id": "u2", "logins": {"$inc": 1}}}
        )

        assert cache["User:u1"] == {"id": "u1", "logins": 2}
        assert cache["User:u2"] == {"id": "u2", "logins": 1}

    @pytest.mark.asyncio
    async def test_pipeline_links_records_by_reference(self):
        cache = {}
        register_plugin(create_cache_plugin(cache))

        outcome = await execute(
            {
                "$pipe": [
                    {
                        "$do": "entity.create",
                        "$with": {"type": "Session", "title": {"$input": "title"}},
                        "$as": "session",
                    },
                    {
                        "$do": "entity.create",
                        "$with": {
                            "type": "Message",
                            "sessionId": {"$ref": "session.id"},
                            "content": {"$input": "content"},
                        },
                        "$as": "message",
                    },
                ],
                "$return": {"sessionId": {"$ref": "session.id"}},
            },
            {"title": "Chat", "content": "Hello"},
        )

        assert outcome.result == {"sessionId": "temp_1"}
        assert cache["Message:temp_2"] == {
            "id": "temp_2",
            "sessionId": "temp_1",
            "content": "Hello",
        }

    @pytest.mark.asyncio
    async def test_custom_key_and_id_generator(self):
        cache = {}
        register_plugin(
            create_cache_plugin(
                cache,
                key=lambda entity_type, entity_id: f"{entity_type.lower()}/{entity_id}",
                generate_id=lambda: "generated",
            )
        )

        await execute({"$do": "entity.create", "$with": {"type": "User"}})

        assert cache == {"user/generated": {"id": "generated"}}


class FakeDelegate:
    def __init__(self, calls):
        self.calls = calls

    async def create(self, data):
        self.calls.append(("create", data))
        return {"id": "db_1", **data}

    async def update(self, where, data):
        self.calls.append(("update", where, data))
        return {**where, **data}

    async def delete(self, where):
        self.calls.append(("delete", where))
        return where

    async def upsert(self, where, create, update):
        self.calls.append(("upsert", where, create, update))
        return create


class FakeClient:
    def __init__(self):
        self.calls = []
        self.user = FakeDelegate(self.calls)
        self.blogPost = FakeDelegate(self.calls)


class TestStorePlugin:
    """Tests for the async store adapter."""

    @pytest.mark.asyncio
    async def test_create_and_reference(self):
        client = FakeClient()
        register_plugin(create_store_plugin(client))

        outcome = await execute(
            {
                "$pipe": [
                    {"$do": "entity.create", "$with": {"type": "User", "name": "John"}, "$as": "user"},
                    {
                        "$do": "entity.create",
                        "$with": {"type": "BlogPost", "authorId": {"$ref": "user.id"}},
                    },
                ]
            }
        )

        assert client.calls == [
            ("create", {"name": "John"}),
            ("create", {"authorId": "db_1"}),
        ]
        assert outcome.result["user"] == {"id": "db_1", "name": "John"}

    @pytest.mark.asyncio
    async def test_update_passes_operators_through(self):
        client = FakeClient()
        register_plugin(create_store_plugin(client))

        await execute(
            {"$do": "entity.update", "$with": {"type": "User", "id": "u1", "age": {"$inc": 1}}}
        )

        assert client.calls == [("update", {"id": "u1"}, {"age": {"$inc": 1}})]

    @pytest.mark.asyncio
    async def test_delete_and_upsert(self):
        client = FakeClient()
        register_plugin(create_store_plugin(client))

        await execute({"$do": "entity.delete", "$with": {"type": "User", "id": "u1"}})
        await execute({"$do": "entity.upsert", "$with": {"type": "User", "id": "u2", "name": "A"}})
        await execute({"$do": "entity.upsert", "$with": {"type": "User", "name": "B"}})

        assert client.calls == [
            ("delete", {"id": "u1"}),
            ("upsert", {"id": "u2"}, {"id": "u2", "name": "A"}, {"name": "A"}),
            ("create", {"name": "B"}),
        ]


class TestLogPlugin:
    """Tests for the log plugin."""

    @pytest.mark.asyncio
    async def test_logs_message_and_fields(self, caplog):
        caplog.set_level(logging.INFO, logger="reify")
        register_plugin(create_log_plugin())

        outcome = await execute(
            {"$do": "log.info", "$with": {"message": "Created user", "id": {"$input": "id"}}},
            {"id": "u1"},
        )

        assert "Created user: {'id': 'u1'}" in caplog.messages
        assert outcome.steps[0].result == {"message": "Created user", "id": "u1"}

    @pytest.mark.asyncio
    async def test_default_message_and_level(self, caplog):
        caplog.set_level(logging.DEBUG, logger="audit")
        register_plugin(create_log_plugin(logging.getLogger("audit")))

        await execute({"$do": "log.warning"})

        record = next(r for r in caplog.records if r.name == "audit")
        assert record.levelno == logging.WARNING
        assert record.getMessage() == "log.warning"


async def users_handler(request):
    body = await request.json()
    return web.json_response(
        {"created": body, "token": request.headers.get("X-Token")}, status=201
    )


async def ping_handler(request):
    return web.Response(text=f"pong {request.query.get('n', '')}".strip())


def make_app():
    app = web.Application()
    app.router.add_post("/users", users_handler)
    app.router.add_get("/ping", ping_handler)
    return app


class TestHttpPlugin:
    """Tests for the HTTP plugin against a local aiohttp server."""

    @pytest.mark.asyncio
    async def test_post_json(self):
        server = test_utils.TestServer(make_app())
        await server.start_server()
        try:
            register_plugin(
                create_http_plugin(
                    base_url=str(server.make_url("/")), headers={"X-Token": "secret"}
                )
            )
            outcome = await execute(
                {
                    "$do": "http.post",
                    "$with": {"url": "/users", "json": {"name": {"$input": "name"}}},
                    "$as": "response",
                },
                {"name": "John"},
            )
        finally:
            await server.close()

        assert outcome.result["response"] == {
            "status": 201,
            "data": {"created": {"name": "John"}, "token": "secret"},
        }

    @pytest.mark.asyncio
    async def test_get_text_with_params(self):
        server = test_utils.TestServer(make_app())
        await server.start_server()
        try:
            register_plugin(create_http_plugin())
            outcome = await execute(
                {
                    "$do": "http.request",
                    "$with": {
                        "method": "get",
                        "url": str(server.make_url("/ping")),
                        "params": {"n": "1"},
                    },
                }
            )
        finally:
            await server.close()

        assert outcome.steps[0].result == {"status": 200, "data": "pong 1"}

    @pytest.mark.asyncio
    async def test_not_found_status(self):
        server = test_utils.TestServer(make_app())
        await server.start_server()
        try:
            register_plugin(create_http_plugin(base_url=str(server.make_url("/"))))
            outcome = await execute({"$do": "http.get", "$with": {"url": "missing"}})
        finally:
            await server.close()

        assert outcome.steps[0].result["status"] == 404
