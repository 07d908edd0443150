"""
Log plugin: write effect arguments to a logger.

Handy as a dry-run backend: swap the real plugin for this one and the same
tree logs what it would have done.

Example:
    >>> register_plugin(create_log_plugin())
    >>> await execute({"$do": "log.info",
    ...                "$with": {"message": "Created user", "id": {"$ref": "user.id"}}})
"""

from typing import Any, Dict, Optional
import logging

from ..base import EvalContext
from ..registry import Plugin

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def create_log_plugin(
    logger: Optional[logging.Logger] = None, namespace: str = "log"
) -> Plugin:
    """
    Create a plugin with one effect per log level.

    Each effect logs `message` (default: the effect name) followed by the
    remaining arguments, and returns the arguments unchanged.

    Args:
        logger: Logger to write to (default: "reify")
        namespace: Namespace to register under
    """
    target = logger or logging.getLogger("reify")

    def make_handler(level_name: str, level: int):
        def handler(args: Dict[str, Any], ctx: EvalContext) -> Dict[str, Any]:
            fields = dict(args)
            message = fields.pop("message", f"{namespace}.{level_name}")
            if fields:
                target.log(level, "%s: %s", message, fields)
            else:
                target.log(level, "%s", message)
            return args

        return handler

    return Plugin(
        namespace=namespace,
        effects={name: make_handler(name, level) for name, level in LEVELS.items()},
        description="Log effect arguments",
    )
