"""
Cache adapter: entity CRUD against an in-memory mapping.

Useful for optimistic client-side updates and for tests. Entities are
stored under "<type>:<id>".

Example:
    >>> cache = {}
    >>> register_plugin(create_cache_plugin(cache))
    >>> await execute(
    ...     {"$do": "entity.create", "$with": {"type": "User", "name": "John"}},
    ... )
    >>> cache["User:temp_1"]
    {'id': 'temp_1', 'name': 'John'}
"""

from typing import Any, Callable, Dict, MutableMapping, Optional
import logging

from ..base import EvalContext
from ..registry import Plugin
from .operators import apply_operators, strip_operators

logger = logging.getLogger("reify")


def default_cache_key(entity_type: str, entity_id: Any) -> str:
    return f"{entity_type}:{entity_id}"


def create_cache_plugin(
    cache: MutableMapping[str, Any],
    key: Optional[Callable[[str, Any], str]] = None,
    generate_id: Optional[Callable[[], str]] = None,
    namespace: str = "entity",
) -> Plugin:
    """
    Create an entity plugin that executes against a cache.

    Args:
        cache: Any mutable mapping (a dict works)
        key: Builds the cache key from (type, id); default "<type>:<id>"
        generate_id: Id source for creates without an id; default is the
                     run's temp-id source (ctx.new_temp_id)
        namespace: Namespace to register under

    Returns:
        Plugin with create, update, delete and upsert effects
    """
    cache_key = key or default_cache_key

    def new_id(ctx: EvalContext) -> str:
        return generate_id() if generate_id else ctx.new_temp_id()

    def create(args: Dict[str, Any], ctx: EvalContext) -> Dict[str, Any]:
        data = dict(args)
        entity_type = data.pop("type")
        entity_id = data.pop("id", None) or new_id(ctx)
        entity = {"id": entity_id, **strip_operators(data)}

        cache[cache_key(entity_type, entity_id)] = entity
        logger.debug(f"cache: created {entity_type}:{entity_id}")
        return entity

    def update(args: Dict[str, Any], ctx: EvalContext) -> Dict[str, Any]:
        data = dict(args)
        entity_type = data.pop("type")
        entity_id = data.pop("id")
        cache_id = cache_key(entity_type, entity_id)

        existing = cache.get(cache_id) or {"id": entity_id}
        updated = apply_operators(existing, data)
        cache[cache_id] = updated
        return updated

    def delete(args: Dict[str, Any], ctx: EvalContext) -> Dict[str, Any]:
        entity_id = args["id"]
        existing = cache.pop(cache_key(args["type"], entity_id), None)
        return existing if existing is not None else {"id": entity_id}

    def upsert(args: Dict[str, Any], ctx: EvalContext) -> Dict[str, Any]:
        data = dict(args)
        entity_type = data.pop("type")
        entity_id = data.pop("id", None) or new_id(ctx)
        cache_id = cache_key(entity_type, entity_id)

        existing = cache.get(cache_id)
        if existing is not None:
            entity = apply_operators(existing, data)
        else:
            entity = {"id": entity_id, **strip_operators(data)}
        cache[cache_id] = entity
        return entity

    return Plugin(
        namespace=namespace,
        effects={
            "create": create,
            "update": update,
            "delete": delete,
            "upsert": upsert,
        },
        description="Entity CRUD against an in-memory cache",
    )
