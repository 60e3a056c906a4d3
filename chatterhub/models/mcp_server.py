"""
Tool-server (MCP) registration data models.

Only registration metadata lives here; discovery and invocation traffic is
handled by the proxy that reads these records.
"""
from pydantic import BaseModel
from typing import Any, Dict, List, Literal, Optional

Approval = Literal['always', 'never']

class MCPTool(BaseModel):
    name: str
    description: Optional[str] = None
    input_schema: Optional[Dict[str, Any]] = None

class MCPServer(BaseModel):
    id: str
    name: str
    serverUrl: str
    serverLabel: str
    description: Optional[str] = None
    requireApproval: Approval = 'never'
    customHeaders: Dict[str, str] = {}
    isActive: bool = False
    isBuiltin: bool = False
    allowedTools: Optional[List[str]] = None
    availableTools: Optional[List[MCPTool]] = None
    toolsLastFetched: Optional[int] = None
    authorizationToken: Optional[str] = None
    createdAt: int
    updatedAt: int

class MCPServerCreate(BaseModel):
    name: str
    serverUrl: str
    serverLabel: str
    description: Optional[str] = None
    requireApproval: Approval = 'never'
    customHeaders: Dict[str, str] = {}
    isActive: bool = False
    isBuiltin: bool = False
    allowedTools: Optional[List[str]] = None
    authorizationToken: Optional[str] = None

class MCPServerUpdate(BaseModel):
    name: Optional[str] = None
    serverUrl: Optional[str] = None
    serverLabel: Optional[str] = None
    description: Optional[str] = None
    requireApproval: Optional[Approval] = None
    customHeaders: Optional[Dict[str, str]] = None
    isActive: Optional[bool] = None
    allowedTools: Optional[List[str]] = None
    availableTools: Optional[List[MCPTool]] = None
    toolsLastFetched: Optional[int] = None
    authorizationToken: Optional[str] = None

# Fields a built-in server accepts on update; everything else is fixed.
BUILTIN_MUTABLE_FIELDS = frozenset({
    'isActive',
    'serverUrl',
    'customHeaders',
    'requireApproval',
    'authorizationToken',
    'allowedTools',
    'availableTools',
    'toolsLastFetched',
})
