from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from formflow.application.exceptions import PluginExecutionError
from formflow.domain.entities.plugin import PluginContext, PluginResult

_SLOT_RE = re.compile(r"\{([^}]+)\}")
_BODY_METHODS = {"POST", "PUT", "PATCH"}
DEFAULT_TIMEOUT_MS = 5000


class HttpCallerPlugin:
    """
    Calls an external HTTP API and maps the JSON response onto slots.

    Config:
        method: GET, POST, PUT, PATCH or DELETE
        url: may reference slots as {slot_id}
        headers: optional request headers
        body: optional JSON body for POST/PUT/PATCH, slot references are filled in
        responseMapping: {"dotted.response.path": "slot_id"}
        timeout: milliseconds, default 5000
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport
        self._logger = logging.getLogger(__name__)

    async def on_field_validated(self, context: PluginContext) -> PluginResult:
        config = context.config
        method = str(config.get("method") or "").upper()
        url = config.get("url")
        response_mapping = config.get("responseMapping")

        if not url or not method or not response_mapping:
            raise PluginExecutionError(
                "HttpCallerPlugin requires url, method, and responseMapping in config"
            )

        interpolated_url = interpolate_string(url, context.data)
        timeout_s = float(config.get("timeout") or DEFAULT_TIMEOUT_MS) / 1000.0

        request_kwargs: dict[str, Any] = {"headers": dict(config.get("headers") or {})}
        if config.get("body") is not None and method in _BODY_METHODS:
            request_kwargs["json"] = interpolate_value(config["body"], context.data)

        try:
            async with httpx.AsyncClient(timeout=timeout_s, transport=self._transport) as client:
                response = await client.request(method, interpolated_url, **request_kwargs)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            raise PluginExecutionError(
                f"HttpCallerPlugin failed: HTTP {e.response.status_code}: {e.response.reason_phrase}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise PluginExecutionError(f"HttpCallerPlugin failed: {e}") from e

        slot_updates: dict[str, Any] = {}
        for api_path, slot_id in response_mapping.items():
            value = get_nested_value(payload, api_path)
            if value is not None:
                slot_updates[slot_id] = value

        self._logger.info(
            "HTTP call completed",
            extra={
                "conversation_id": context.conversation_id,
                "method": method,
                "url": interpolated_url,
                "status": response.status_code,
            },
        )
        return PluginResult(
            slot_updates=slot_updates,
            metadata={"status": response.status_code, "url": interpolated_url, "method": method},
        )


def interpolate_string(template: str, data: dict[str, Any]) -> str:
    """Replace {slot} with the slot's value; unknown slots stay as written."""

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        return str(data[key]) if data.get(key) is not None else match.group(0)

    return _SLOT_RE.sub(replace, template)


def interpolate_value(value: Any, data: dict[str, Any]) -> Any:
    if isinstance(value, str):
        return interpolate_string(value, data)
    if isinstance(value, dict):
        return {key: interpolate_value(item, data) for key, item in value.items()}
    if isinstance(value, list):
        return [interpolate_value(item, data) for item in value]
    return value


def get_nested_value(obj: Any, path: str) -> Any:
    current = obj
    for key in path.split("."):
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return None
    return current
