"""
Tool-server (MCP) registration API endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional

from ..models.mcp_server import MCPServer, MCPServerCreate, MCPServerUpdate
from ..storage.backend import Store
from ..storage.mcp_servers import MCPServerStorage
from .deps import get_store

router = APIRouter(prefix="/api/v1/mcp-servers", tags=["mcp-servers"])


@router.get("", response_model=List[MCPServer])
async def list_mcp_servers(active: bool = False, store: Store = Depends(get_store)):
    storage = MCPServerStorage(store)
    return await storage.active() if active else await storage.list()


@router.post("", response_model=MCPServer)
async def create_mcp_server(data: MCPServerCreate, store: Store = Depends(get_store)):
    """Register a user server. Only built-in initialization may set ``isBuiltin``."""
    storage = MCPServerStorage(store)
    fields = data.model_dump()
    fields['isBuiltin'] = False
    return await storage.get(await storage.create(fields))


@router.post("/initialize-builtins", response_model=List[str])
async def initialize_builtin_servers(store: Store = Depends(get_store)):
    return await MCPServerStorage(store).initialize_builtins()


@router.get("/{server_id}", response_model=MCPServer)
async def get_mcp_server(server_id: str, store: Store = Depends(get_store)):
    server = await MCPServerStorage(store).get(server_id)
    if not server:
        raise HTTPException(status_code=404, detail="MCP server not found")
    return server


@router.put("/{server_id}", response_model=Optional[MCPServer])
async def update_mcp_server(server_id: str, data: MCPServerUpdate, store: Store = Depends(get_store)):
    return await MCPServerStorage(store).update(server_id, data)


@router.delete("/{server_id}")
async def delete_mcp_server(server_id: str, store: Store = Depends(get_store)):
    """Delete a user server. Built-in servers report ``deleted: false``."""
    return {"deleted": await MCPServerStorage(store).delete(server_id)}


@router.post("/{server_id}/toggle-status")
async def toggle_mcp_server(server_id: str, store: Store = Depends(get_store)):
    return {"isActive": await MCPServerStorage(store).toggle_status(server_id)}
