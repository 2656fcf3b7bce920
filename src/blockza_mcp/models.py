"""
Wire models for the directory MCP server.

Shapes follow the Model Context Protocol: tool, resource and prompt
listings, their call/read/get exchanges, and the JSON-RPC 2.0 envelope
used by the ``/mcp`` endpoint.
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List, Union


# ============================================================================
# Tools
# ============================================================================

class ToolDefinition(BaseModel):
    """One entry in ``tools/list``."""
    name: str = Field(..., description="Stable tool name used by callers")
    title: Optional[str] = Field(None, description="Display title")
    description: str = Field(..., description="What the tool returns and when to use it")
    inputSchema: Dict[str, Any] = Field(..., description="JSON Schema object describing the arguments")


class ToolListResponse(BaseModel):
    tools: List[ToolDefinition] = Field(..., description="Directory tools")


class ToolCallRequest(BaseModel):
    """A tool invocation."""
    name: str = Field(..., description="Name of the tool to run")
    arguments: Dict[str, Any] = Field(default_factory=dict, description="Arguments keyed by wire name")


class ToolCallResponse(BaseModel):
    """Tool output as text content blocks."""
    content: List[Dict[str, Any]] = Field(..., description="Content blocks, each {type, text}")
    isError: bool = Field(default=False, description="True when the text describes a failure")


# ============================================================================
# Resources
# ============================================================================

class ResourceDefinition(BaseModel):
    """A fixed-URI resource such as ``blockza://companies``."""
    uri: str = Field(..., description="blockza:// URI")
    name: str = Field(..., description="Registry key")
    title: Optional[str] = Field(None, description="Display title")
    description: Optional[str] = Field(None, description="What the document contains")
    mimeType: Optional[str] = Field(None, description="Content type of the document")


class ResourceListResponse(BaseModel):
    resources: List[ResourceDefinition] = Field(..., description="Fixed-URI resources")


class ResourceTemplateDefinition(BaseModel):
    """A parameterised resource such as ``blockza://company/{slug}``."""
    uriTemplate: str = Field(..., description="RFC 6570 style URI template")
    name: str = Field(..., description="Registry key")
    title: Optional[str] = Field(None, description="Display title")
    description: Optional[str] = Field(None, description="What the document contains")
    mimeType: Optional[str] = Field(None, description="Content type of the document")


class ResourceTemplateListResponse(BaseModel):
    resourceTemplates: List[ResourceTemplateDefinition] = Field(..., description="Templated resources")


class ResourceReadRequest(BaseModel):
    uri: str = Field(..., description="blockza:// URI to read")


class ResourceReadResponse(BaseModel):
    """Documents produced for a resource read."""
    contents: List[Dict[str, Any]] = Field(..., description="Documents, each {uri, mimeType, text}")
    isError: bool = Field(default=False, description="True when the document is an error payload")


# ============================================================================
# Prompts
# ============================================================================

class PromptArgument(BaseModel):
    name: str = Field(..., description="Argument name")
    description: Optional[str] = Field(None, description="What the argument selects")
    required: bool = Field(default=True, description="Whether callers are expected to supply it")


class PromptDefinition(BaseModel):
    """One entry in ``prompts/list``."""
    name: str = Field(..., description="Stable prompt name used by callers")
    title: Optional[str] = Field(None, description="Display title")
    description: Optional[str] = Field(None, description="What the prompt asks the model to do")
    arguments: List[PromptArgument] = Field(default_factory=list, description="Accepted arguments")


class PromptListResponse(BaseModel):
    prompts: List[PromptDefinition] = Field(..., description="Directory prompts")


class PromptGetRequest(BaseModel):
    name: str = Field(..., description="Name of the prompt to fill")
    arguments: Optional[Dict[str, str]] = Field(None, description="String arguments keyed by name")


class PromptGetResponse(BaseModel):
    """A filled prompt."""
    description: Optional[str] = Field(None, description="Prompt description from the registry")
    messages: List[Dict[str, Any]] = Field(..., description="Messages, each {role, content}")
    isError: bool = Field(default=False, description="True when filling failed unexpectedly")


# ============================================================================
# JSON-RPC
# ============================================================================

class JSONRPCRequest(BaseModel):
    """JSON-RPC 2.0 request or notification."""
    jsonrpc: str = Field("2.0", description="Protocol version marker")
    id: Optional[Union[int, str]] = Field(None, description="Request id (absent for notifications)")
    method: str = Field(..., description="Method name")
    params: Dict[str, Any] = Field(default_factory=dict, description="Method parameters")


class JSONRPCResponse(BaseModel):
    """JSON-RPC 2.0 response."""
    jsonrpc: str = Field("2.0", description="Protocol version marker")
    id: Optional[Union[int, str]] = Field(None, description="Id of the request being answered")
    result: Optional[Dict[str, Any]] = Field(None, description="Result on success")
    error: Optional[Dict[str, Any]] = Field(None, description="Error on failure")


class MCPError(BaseModel):
    """Body returned by the HTTP error handlers."""
    code: int = Field(..., description="HTTP status code")
    message: str = Field(..., description="Readable failure reason")
    data: Optional[Dict[str, Any]] = Field(None, description="Exception type and detail")
