"""
HTTP plugin: effects that make HTTP requests.

Requires the 'aiohttp' package to be installed:
    pip install reify[http]

Example:
    >>> register_plugin(create_http_plugin(base_url="https://api.example.com"))
    >>> await execute({
    ...     "$do": "http.post",
    ...     "$with": {"url": "/users", "json": {"name": {"$input": "name"}}},
    ...     "$as": "response",
    ... }, {"name": "John"})
"""

from typing import Any, Dict, Optional
import logging

from ..base import EvalContext
from ..registry import Plugin

logger = logging.getLogger("reify")

METHODS = ("get", "post", "put", "patch", "delete")


def create_http_plugin(
    base_url: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 30,
    raise_for_status: bool = False,
    namespace: str = "http",
) -> Plugin:
    """
    Create a plugin with one effect per HTTP method plus a generic `request`.

    Effect arguments:
        url: Absolute URL, or a path joined onto base_url
        params: Query parameters
        headers: Extra headers, merged over the plugin defaults
        json: JSON body
        data: Raw body
        method: HTTP method (only for `request`, default GET)

    Each effect returns {"status": <int>, "data": <parsed JSON or text>}.

    Args:
        base_url: Prefix for relative urls
        headers: Default headers for every request
        timeout: Total request timeout in seconds
        raise_for_status: Raise aiohttp.ClientResponseError on 4xx/5xx
        namespace: Namespace to register under
    """
    default_headers = headers or {}

    def build_url(url: str) -> str:
        if base_url and not url.startswith(("http://", "https://")):
            return base_url.rstrip("/") + "/" + url.lstrip("/")
        return url

    async def send(method: str, args: Dict[str, Any]) -> Dict[str, Any]:
        try:
            import aiohttp
        except ImportError as e:
            raise ImportError(
                "aiohttp is required for the http plugin. "
                "Install it with: pip install reify[http]"
            ) from e

        url = build_url(args.get("url", ""))
        request_kwargs = {
            "headers": {**default_headers, **(args.get("headers") or {})},
            "params": args.get("params"),
            "timeout": aiohttp.ClientTimeout(total=timeout),
        }
        if args.get("json") is not None:
            request_kwargs["json"] = args["json"]
        elif args.get("data") is not None:
            request_kwargs["data"] = args["data"]

        async with aiohttp.ClientSession(raise_for_status=raise_for_status) as session:
            async with session.request(method, url, **request_kwargs) as response:
                if response.content_type == "application/json":
                    data = await response.json()
                else:
                    data = await response.text()
                logger.info(f"{namespace}: {method} {url} -> {response.status}")
                return {"status": response.status, "data": data}

    def make_handler(method: str):
        async def handler(args: Dict[str, Any], ctx: EvalContext) -> Dict[str, Any]:
            return await send(method, args)

        return handler

    async def request(args: Dict[str, Any], ctx: EvalContext) -> Dict[str, Any]:
        return await send(args.get("method", "GET").upper(), args)

    effects = {method: make_handler(method.upper()) for method in METHODS}
    effects["request"] = request

    return Plugin(
        namespace=namespace,
        effects=effects,
        description="HTTP requests via aiohttp",
    )
