"""
Blockza directory MCP server.

FastAPI application with two surfaces over the same handlers:
- plain HTTP routes (/tool/*, /resource/*, /prompt/*) for direct calls and docs
- /mcp, a JSON-RPC 2.0 endpoint for MCP clients, with session tracking
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError

from . import __version__
from .models import (
    ToolListResponse,
    ToolCallRequest,
    ToolCallResponse,
    ResourceListResponse,
    ResourceTemplateListResponse,
    ResourceReadRequest,
    ResourceReadResponse,
    PromptListResponse,
    PromptGetRequest,
    PromptGetResponse,
    JSONRPCRequest,
    JSONRPCResponse,
    MCPError,
)
from .handlers import tools, resources, prompts
from .sessions import SessionRegistry

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVER_NAME = "blockza-directory"
PROTOCOL_VERSION = "2025-03-26"
SESSION_HEADER = "Mcp-Session-Id"

# JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
BAD_SESSION = -32000

app = FastAPI(
    title="Blockza Directory MCP Server",
    description="Model Context Protocol server for the Blockza companies, events and podcasts directory",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)
app.state.sessions = SessionRegistry()

# Browser-based MCP clients need to read the session header
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", SESSION_HEADER],
    expose_headers=[SESSION_HEADER],
)


# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(ValueError)
async def value_error_handler(request, exc: ValueError):
    """Unknown tool, resource or prompt names are client errors."""
    return JSONResponse(
        status_code=400,
        content=MCPError(code=400, message=str(exc), data={"type": type(exc).__name__}).model_dump()
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=MCPError(
            code=500,
            message="Internal server error",
            data={"type": type(exc).__name__, "detail": str(exc)}
        ).model_dump()
    )


# ============================================================================
# Service info
# ============================================================================

@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    return {
        "status": "healthy",
        "server": SERVER_NAME,
        "version": __version__,
        "tools": len(tools.TOOL_REGISTRY),
        "sessions": len(request.app.state.sessions),
    }


@app.get("/", tags=["Root"])
async def root():
    """Service name, version and route map."""
    return {
        "service": "Blockza Directory MCP Server",
        "version": __version__,
        "protocol": "Model Context Protocol",
        "endpoints": {
            "mcp": "/mcp (JSON-RPC 2.0)",
            "tools": "/tool/list, /tool/call",
            "resources": "/resource/list, /resource/templates, /resource/read",
            "prompts": "/prompt/list, /prompt/get",
            "docs": "/docs"
        }
    }


# ============================================================================
# Tool Endpoints
# ============================================================================

@app.get("/tool/list", response_model=ToolListResponse, tags=["Tools"], summary="List directory tools")
async def list_tools_endpoint():
    return await tools.list_tools()


@app.post("/tool/call", response_model=ToolCallResponse, tags=["Tools"], summary="Run a directory tool")
async def call_tool_endpoint(request: ToolCallRequest):
    """
    Run one tool.

    Failures inside the tool come back with ``isError: true`` and HTTP 200;
    an unknown tool name is a 400.
    """
    return await tools.call_tool(request)


# ============================================================================
# Resource Endpoints
# ============================================================================

@app.get("/resource/list", response_model=ResourceListResponse, tags=["Resources"], summary="List fixed-URI resources")
async def list_resources_endpoint():
    return await resources.list_resources()


@app.get(
    "/resource/templates",
    response_model=ResourceTemplateListResponse,
    tags=["Resources"],
    summary="List resource templates"
)
async def list_resource_templates_endpoint():
    """Parameterised resources, e.g. blockza://company/{slug}."""
    return await resources.list_resource_templates()


@app.post("/resource/read", response_model=ResourceReadResponse, tags=["Resources"], summary="Read a blockza:// resource")
async def read_resource_endpoint(request: ResourceReadRequest):
    """
    Read one resource, e.g. ``{"uri": "blockza://company/acme"}``.

    The document is JSON text; lookup and upstream failures produce an
    ``{"error": ...}`` document rather than an HTTP error.
    """
    return await resources.read_resource(request)


# ============================================================================
# Prompt Endpoints
# ============================================================================

@app.get("/prompt/list", response_model=PromptListResponse, tags=["Prompts"], summary="List directory prompts")
async def list_prompts_endpoint():
    return await prompts.list_prompts()


@app.post("/prompt/get", response_model=PromptGetResponse, tags=["Prompts"], summary="Fill a prompt with directory data")
async def get_prompt_endpoint(request: PromptGetRequest):
    """Fill a prompt template with live directory records and return it as a single user message."""
    return await prompts.get_prompt(request)


# ============================================================================
# JSON-RPC Endpoint
# ============================================================================

async def _rpc_tools_call(params: Dict[str, Any]) -> Dict[str, Any]:
    request = ToolCallRequest(name=params.get("name"), arguments=params.get("arguments") or {})
    return (await tools.call_tool(request)).model_dump()


async def _rpc_resources_read(params: Dict[str, Any]) -> Dict[str, Any]:
    response = await resources.read_resource(ResourceReadRequest(uri=params.get("uri")))
    return {"contents": response.contents}


async def _rpc_prompts_get(params: Dict[str, Any]) -> Dict[str, Any]:
    request = PromptGetRequest(name=params.get("name"), arguments=params.get("arguments"))
    response = await prompts.get_prompt(request)
    return response.model_dump(exclude={"isError"}, exclude_none=True)


async def _rpc_ping(params: Dict[str, Any]) -> Dict[str, Any]:
    return {}


async def _rpc_tools_list(params: Dict[str, Any]) -> Dict[str, Any]:
    return (await tools.list_tools()).model_dump(exclude_none=True)


async def _rpc_resources_list(params: Dict[str, Any]) -> Dict[str, Any]:
    return (await resources.list_resources()).model_dump(exclude_none=True)


async def _rpc_resource_templates_list(params: Dict[str, Any]) -> Dict[str, Any]:
    return (await resources.list_resource_templates()).model_dump(exclude_none=True)


async def _rpc_prompts_list(params: Dict[str, Any]) -> Dict[str, Any]:
    return (await prompts.list_prompts()).model_dump(exclude_none=True)


RPC_METHODS: Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]] = {
    "ping": _rpc_ping,
    "tools/list": _rpc_tools_list,
    "tools/call": _rpc_tools_call,
    "resources/list": _rpc_resources_list,
    "resources/templates/list": _rpc_resource_templates_list,
    "resources/read": _rpc_resources_read,
    "prompts/list": _rpc_prompts_list,
    "prompts/get": _rpc_prompts_get,
}


def _rpc_result(request_id: Optional[Union[int, str]], result: Dict[str, Any], headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    body = JSONRPCResponse(id=request_id, result=result).model_dump(exclude={"error"})
    return JSONResponse(content=body, headers=headers)


def _rpc_error(request_id: Optional[Union[int, str]], code: int, message: str, status_code: int = 200) -> JSONResponse:
    body = JSONRPCResponse(id=request_id, error={"code": code, "message": message}).model_dump(exclude={"result"})
    return JSONResponse(status_code=status_code, content=body)


def _initialize(request: Request, rpc: JSONRPCRequest) -> JSONResponse:
    session = request.app.state.sessions.create(
        client_info=rpc.params.get("clientInfo"),
        protocol_version=rpc.params.get("protocolVersion"),
    )
    result = {
        "protocolVersion": PROTOCOL_VERSION,
        "capabilities": {"tools": {}, "resources": {}, "prompts": {}},
        "serverInfo": {"name": SERVER_NAME, "version": __version__},
    }
    return _rpc_result(rpc.id, result, headers={SESSION_HEADER: session.session_id})


@app.post("/mcp", tags=["MCP"], summary="JSON-RPC 2.0 MCP endpoint")
async def mcp_endpoint(request: Request):
    """
    Handle a JSON-RPC message from an MCP client.

    ``initialize`` opens a session and returns its id in the
    ``Mcp-Session-Id`` header; every other message must carry that header.
    """
    try:
        body = await request.json()
    except ValueError:
        return _rpc_error(None, PARSE_ERROR, "Parse error", status_code=400)

    try:
        rpc = JSONRPCRequest.model_validate(body)
    except PydanticValidationError:
        return _rpc_error(None, INVALID_REQUEST, "Invalid Request", status_code=400)

    if rpc.jsonrpc != "2.0":
        return _rpc_error(rpc.id, INVALID_REQUEST, "Invalid Request: jsonrpc must be \"2.0\"", status_code=400)

    if rpc.method == "initialize":
        return _initialize(request, rpc)

    session_id = request.headers.get(SESSION_HEADER)
    if request.app.state.sessions.get(session_id) is None:
        return _rpc_error(
            rpc.id, BAD_SESSION,
            "Bad Request: No valid session ID provided or not an initialization request",
            status_code=400,
        )

    # Notifications get no response body
    if rpc.id is None:
        return Response(status_code=202)

    handler = RPC_METHODS.get(rpc.method)
    if handler is None:
        return _rpc_error(rpc.id, METHOD_NOT_FOUND, f"Method not found: {rpc.method}")

    try:
        result = await handler(rpc.params)
    except ValueError as e:
        return _rpc_error(rpc.id, INVALID_PARAMS, str(e))
    except Exception as e:
        logger.error(f"Error handling MCP request '{rpc.method}': {e}", exc_info=True)
        return _rpc_error(rpc.id, INTERNAL_ERROR, "Internal server error")

    return _rpc_result(rpc.id, result)


@app.delete("/mcp", tags=["MCP"], summary="Close an MCP session")
async def close_session(request: Request):
    """Terminate the session named by the ``Mcp-Session-Id`` header."""
    session_id = request.headers.get(SESSION_HEADER)
    if not request.app.state.sessions.close(session_id):
        return JSONResponse(status_code=404, content={"detail": f"Unknown session: {session_id}"})
    return {"status": "closed", "session_id": session_id}
