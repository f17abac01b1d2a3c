"""
JSON-RPC 2.0 envelope for the structured RPC transport.

Implements the JSON-RPC 2.0 specification:
https://www.jsonrpc.org/specification

Every store error is reported the same way: a generic server fault
(code -32000) whose message is the error text and whose data carries
``faultcode`` and ``kind``.
"""

from typing import Any, Dict, Optional, Union, List
from pydantic import BaseModel, Field, ValidationError
from loguru import logger


# === JSON-RPC 2.0 Schemas ===

class JSONRPCRequest(BaseModel):
    """
    JSON-RPC 2.0 Request.

    Example:
        {"jsonrpc": "2.0", "method": "listTables", "params": {"dbName": "shop"}, "id": 1}
    """
    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    method: str = Field(..., description="Method name to invoke")
    params: Optional[Union[Dict[str, Any], List[Any]]] = Field(
        default=None,
        description="Method parameters (object or array)"
    )
    id: Optional[Union[str, int]] = Field(
        default=None,
        description="Request ID (null for notifications)"
    )


class JSONRPCError(BaseModel):
    """
    JSON-RPC 2.0 Error object.

    Standard error codes:
        -32700: Parse error
        -32600: Invalid Request
        -32601: Method not found
        -32602: Invalid params
        -32603: Internal error
        -32000: Server fault (every store error)
    """
    code: int = Field(..., description="Error code")
    message: str = Field(..., description="Error message")
    data: Optional[Any] = Field(default=None, description="Additional error data")


class JSONRPCResponse(BaseModel):
    """
    JSON-RPC 2.0 Response.

    Success example:
        {"jsonrpc": "2.0", "result": {"affectedRows": 1}, "id": 1}

    Error example:
        {"jsonrpc": "2.0", "error": {"code": -32601, "message": "Method not found"}, "id": 1}
    """
    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    result: Optional[Any] = Field(default=None, description="Result (on success)")
    error: Optional[JSONRPCError] = Field(default=None, description="Error (on failure)")
    id: Optional[Union[str, int]] = Field(default=None, description="Request ID")


# === Error Code Constants ===

class RPCErrorCode:
    """Standard JSON-RPC 2.0 error codes."""
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    SERVER_FAULT = -32000


# === Helper Functions ===

def create_success_response(result: Any, request_id: Optional[Union[str, int]]) -> JSONRPCResponse:
    return JSONRPCResponse(jsonrpc="2.0", result=result, id=request_id)


def create_error_response(
    code: int,
    message: str,
    request_id: Optional[Union[str, int]] = None,
    data: Optional[Any] = None,
) -> JSONRPCResponse:
    """
    Create an error JSON-RPC response.

    Args:
        code: Error code
        message: Error message
        request_id: Original request ID
        data: Additional error data

    Returns:
        JSONRPCResponse with error
    """
    return JSONRPCResponse(
        jsonrpc="2.0",
        error=JSONRPCError(code=code, message=message, data=data),
        id=request_id,
    )


def create_fault_response(message: str, kind: str, request_id: Optional[Union[str, int]] = None) -> JSONRPCResponse:
    """Uniform server fault used for every store error."""
    return create_error_response(
        code=RPCErrorCode.SERVER_FAULT,
        message=message,
        request_id=request_id,
        data={"faultcode": "Server", "kind": kind},
    )


def parse_rpc_request(data: Any) -> Union[JSONRPCRequest, JSONRPCResponse]:
    """
    Parse raw JSON data into a JSON-RPC request.

    Returns:
        JSONRPCRequest on success, or JSONRPCResponse with error on failure
    """
    if not isinstance(data, dict):
        return create_error_response(
            code=RPCErrorCode.INVALID_REQUEST,
            message="Invalid Request: expected a JSON object",
        )
    try:
        return JSONRPCRequest(**data)
    except ValidationError as e:
        logger.error(f"Failed to parse JSON-RPC request: {e}")
        return create_error_response(
            code=RPCErrorCode.INVALID_REQUEST,
            message=f"Invalid Request: {e}",
            request_id=data.get("id") if isinstance(data.get("id"), (str, int)) else None,
        )


def to_wire(response: JSONRPCResponse) -> Dict[str, Any]:
    """Serialize a response, keeping only one of result or error."""
    body = response.model_dump()
    if response.error is None:
        body.pop("error")
    else:
        body.pop("result")
    return body
