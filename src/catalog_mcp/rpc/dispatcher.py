"""JSON-RPC 2.0 envelope handling for the protocol endpoint.

``RpcDispatcher.handle`` turns a raw request body into an ``RpcOutcome``
carrying both the JSON-RPC payload and the HTTP status it travels with:

====================  ======  ==========
condition             HTTP    code
====================  ======  ==========
invalid JSON          400     -32700
bad envelope          400     -32600
unknown method        400     -32601
tool error            200     -32602
unexpected failure    500     -32603
====================  ======  ==========
"""

from __future__ import annotations

import json
import logging
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any

from catalog_mcp.core.settings import settings
from catalog_mcp.rpc.tools import ToolError, ToolHandler

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class RpcMethod(str, Enum):
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"


class RpcError(Exception):
    """An error reported to the caller as a JSON-RPC error object."""

    code = INTERNAL_ERROR
    status_code = 500

    def __init__(self, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data


class ParseError(RpcError):
    code = PARSE_ERROR
    status_code = 400


class InvalidRequest(RpcError):
    code = INVALID_REQUEST
    status_code = 400


class MethodNotFound(RpcError):
    code = METHOD_NOT_FOUND
    status_code = 400


class InvalidParams(RpcError):
    code = INVALID_PARAMS
    status_code = 200


@dataclass(frozen=True)
class RpcOutcome:
    """Response payload plus the facts the HTTP layer and usage log need."""

    status_code: int
    payload: dict[str, Any]
    method: str | None = None
    tool_name: str | None = None

    @property
    def is_error(self) -> bool:
        return "error" in self.payload


def error_payload(request_id: Any, code: int, message: str, data: Any = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def _text_content(result: Any) -> dict[str, Any]:
    text = result if isinstance(result, str) else json.dumps(result, indent=2)
    return {"content": [{"type": "text", "text": text}]}


class RpcDispatcher:
    """Validate a JSON-RPC request and route it to the tool handler."""

    def __init__(self, tools: ToolHandler, *, expose_stack: bool | None = None) -> None:
        self.tools = tools
        self.expose_stack = not settings.is_production if expose_stack is None else expose_stack

    def _decode(self, raw: bytes | str) -> Any:
        try:
            return json.loads(raw) if raw else {}
        except (ValueError, UnicodeDecodeError) as err:
            raise ParseError("Parse error: Invalid JSON") from err

    def _validate(self, body: Any) -> dict[str, Any]:
        if not isinstance(body, dict):
            raise InvalidRequest("Invalid Request: body must be a JSON object")
        if body.get("jsonrpc") != JSONRPC_VERSION:
            raise InvalidRequest('Invalid Request: jsonrpc must be "2.0"')
        method = body.get("method")
        if not isinstance(method, str) or not method:
            raise InvalidRequest("Invalid Request: method is required")
        return body

    def _call(self, method: RpcMethod, params: Any) -> tuple[Any, str | None]:
        match method:
            case RpcMethod.TOOLS_LIST:
                return {"tools": self.tools.list_tools()}, None
            case RpcMethod.TOOLS_CALL:
                if not isinstance(params, dict):
                    raise InvalidParams("Invalid params: expected an object with a tool name")
                name = params.get("name")
                try:
                    result = self.tools.call(name, params.get("arguments"))
                except ToolError as err:
                    raise InvalidParams(err.message, {"tool": name, **err.data}) from err
                return _text_content(result), str(name)

    def handle(self, raw: bytes | str, request_id: str | None = None) -> RpcOutcome:
        """Process one request body; never raises."""
        rpc_id: Any = None
        method_name: str | None = None
        tool_name: str | None = None
        try:
            decoded = self._decode(raw)
            if isinstance(decoded, dict):
                rpc_id = decoded.get("id")
            body = self._validate(decoded)
            method_name = body["method"]
            params = body.get("params")
            if method_name == RpcMethod.TOOLS_CALL.value and isinstance(params, dict):
                tool_name = str(params.get("name")) if params.get("name") is not None else None
            try:
                method = RpcMethod(method_name)
            except ValueError as err:
                raise MethodNotFound(f"Method not found: {method_name}") from err
            result, tool_name = self._call(method, params)
            return RpcOutcome(
                status_code=200,
                payload={"jsonrpc": JSONRPC_VERSION, "id": rpc_id, "result": result},
                method=method_name,
                tool_name=tool_name,
            )
        except RpcError as err:
            if isinstance(err, InvalidParams):
                logger.warning("Tool call failed: %s", err.message)
            return RpcOutcome(
                status_code=err.status_code,
                payload=error_payload(rpc_id, err.code, err.message, err.data),
                method=method_name,
                tool_name=tool_name,
            )
        except Exception as err:
            logger.exception("Request failed: %s", request_id)
            data: dict[str, Any] = {"request_id": request_id}
            if self.expose_stack:
                data["stack"] = traceback.format_exc()
            return RpcOutcome(
                status_code=500,
                payload=error_payload(rpc_id, INTERNAL_ERROR, str(err) or "Internal Server Error", data),
                method=method_name,
                tool_name=tool_name,
            )
