"""
Entity plugin that describes CRUD operations without executing them.

Each handler returns a description such as
{"$op": "create", "$type": "User", "id": "temp_1", "name": "John"}.
Register a storage adapter (cache, store) under the same namespace to
actually apply the operations.
"""

from typing import Any, Dict

from ..base import EvalContext
from ..registry import Plugin


def _create(args: Dict[str, Any], ctx: EvalContext) -> Dict[str, Any]:
    data = dict(args)
    entity_type = data.pop("type", None)
    entity_id = data.pop("id", None) or ctx.new_temp_id()
    return {"$op": "create", "$type": entity_type, "id": entity_id, **data}


def _update(args: Dict[str, Any], ctx: EvalContext) -> Dict[str, Any]:
    data = dict(args)
    entity_type = data.pop("type", None)
    entity_id = data.pop("id", None)
    return {"$op": "update", "$type": entity_type, "id": entity_id, **data}


def _delete(args: Dict[str, Any], ctx: EvalContext) -> Dict[str, Any]:
    return {"$op": "delete", "$type": args.get("type"), "id": args.get("id")}


def _upsert(args: Dict[str, Any], ctx: EvalContext) -> Dict[str, Any]:
    data = dict(args)
    entity_type = data.pop("type", None)
    entity_id = data.pop("id", None)
    op = "update" if entity_id else "create"
    return {
        "$op": op,
        "$type": entity_type,
        "id": entity_id or ctx.new_temp_id(),
        **data,
    }


entity_plugin = Plugin(
    namespace="entity",
    effects={
        "create": _create,
        "update": _update,
        "delete": _delete,
        "upsert": _upsert,
    },
    description="Describe entity CRUD operations without executing them",
)
