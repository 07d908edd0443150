"""
Store adapter: entity CRUD against an async database client.

The client is expected to expose one delegate per model with Prisma-style
coroutine methods:

    await client.user.create(data={...})
    await client.user.update(where={"id": ...}, data={...})
    await client.user.delete(where={"id": ...})
    await client.user.upsert(where={"id": ...}, create={...}, update={...})

Operator markers ($inc, $push, ...) are passed through to the client
untouched; translating them is the client's concern.
"""

from typing import Any, Callable, Dict, Optional

from ..base import EvalContext
from ..registry import Plugin


def default_model_name(entity_type: str) -> str:
    """User -> user, BlogPost -> blogPost"""
    return entity_type[:1].lower() + entity_type[1:]


def create_store_plugin(
    client: Any,
    model_name: Optional[Callable[[str], str]] = None,
    namespace: str = "entity",
) -> Plugin:
    """
    Create an entity plugin that executes against an async store client.

    Args:
        client: Object exposing per-model delegates as attributes
        model_name: Maps an entity type to a delegate attribute name
        namespace: Namespace to register under
    """
    to_model = model_name or default_model_name

    def delegate(entity_type: str) -> Any:
        return getattr(client, to_model(entity_type))

    async def create(args: Dict[str, Any], ctx: EvalContext) -> Any:
        data = dict(args)
        entity_type = data.pop("type")
        return await delegate(entity_type).create(data=data)

    async def update(args: Dict[str, Any], ctx: EvalContext) -> Any:
        data = dict(args)
        entity_type = data.pop("type")
        entity_id = data.pop("id")
        return await delegate(entity_type).update(where={"id": entity_id}, data=data)

    async def delete(args: Dict[str, Any], ctx: EvalContext) -> Any:
        return await delegate(args["type"]).delete(where={"id": args["id"]})

    async def upsert(args: Dict[str, Any], ctx: EvalContext) -> Any:
        data = dict(args)
        entity_type = data.pop("type")
        entity_id = data.pop("id", None)
        model = delegate(entity_type)

        if entity_id:
            return await model.upsert(
                where={"id": entity_id},
                create={"id": entity_id, **data},
                update=data,
            )
        # No id means there is nothing to match on
        return await model.create(data=data)

    return Plugin(
        namespace=namespace,
        effects={
            "create": create,
            "update": update,
            "delete": delete,
            "upsert": upsert,
        },
        description="Entity CRUD against an async database client",
    )
