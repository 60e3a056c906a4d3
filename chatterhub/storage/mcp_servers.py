"""
Tool-server (MCP) registration storage.
"""
from typing import Dict, List, Optional

from chatterhub.utils.logging_utils import logger

from ..models.mcp_server import BUILTIN_MUTABLE_FIELDS, MCPServer, MCPServerCreate
from .base import BaseStorage, Fields, as_fields

API_KEY_PLACEHOLDER = 'YOUR_API_KEY'

BUILTIN_MCP_SERVERS: List[MCPServerCreate] = [
    MCPServerCreate(
        name='Tavily Search',
        serverUrl=f'https://mcp.tavily.com/mcp/?tavilyApiKey={API_KEY_PLACEHOLDER}',
        serverLabel='tavily',
        description='Real-time web search and content extraction for AI agents',
        requireApproval='never',
        isActive=False,
        isBuiltin=True,
    ),
    MCPServerCreate(
        name='Exa Search',
        serverUrl=f'https://mcp.exa.ai/mcp?exaApiKey={API_KEY_PLACEHOLDER}',
        serverLabel='exa',
        description='AI-optimized semantic search with company research, crawling and deep research',
        requireApproval='never',
        isActive=False,
        isBuiltin=True,
    ),
]


class MCPServerStorage(BaseStorage[MCPServer]):
    """Registration records read by the tool proxy. Built-in servers are protected."""

    collection = 'mcpServers'
    model = MCPServer

    async def update(self, server_id: str, data: Fields) -> Optional[MCPServer]:
        server = await self.get(server_id)
        if not server:
            return None
        update_dict = as_fields(data, exclude_unset=True)
        update_dict.pop('isBuiltin', None)
        if server.isBuiltin:
            update_dict = {k: v for k, v in update_dict.items() if k in BUILTIN_MUTABLE_FIELDS}
        return await super().update(server_id, update_dict)

    async def delete(self, server_id: str) -> bool:
        """Delete a user-registered server. Built-in servers are kept."""
        server = await self.get(server_id)
        if not server or server.isBuiltin:
            return False
        return await super().delete(server_id)

    async def toggle_status(self, server_id: str) -> Optional[bool]:
        return await self.toggle(server_id, 'isActive')

    async def active(self) -> List[MCPServer]:
        return self._query(where={'isActive': True})

    async def get_by_label(self, label: str) -> Optional[MCPServer]:
        servers = self._query(where={'serverLabel': label})
        return servers[0] if servers else None

    async def initialize_builtins(self) -> List[str]:
        """
        Make sure every built-in server exists exactly once.

        Duplicated built-ins (same serverLabel) are merged into the first
        one: a configured URL wins over a placeholder one, the server is
        active if any copy was, headers come from the first copy that has
        any, and the stricter approval setting is kept. Returns ids of
        built-ins that were added.
        """
        by_label: Dict[str, List[MCPServer]] = {}
        for server in self._query(where={'isBuiltin': True}):
            by_label.setdefault(server.serverLabel, []).append(server)

        for label, servers in by_label.items():
            if len(servers) < 2:
                continue
            keeper = servers[0]
            configured = next((s.serverUrl for s in servers if API_KEY_PLACEHOLDER not in s.serverUrl), None)
            headers = next((s.customHeaders for s in servers if s.customHeaders), None)
            await super().update(keeper.id, {
                'serverUrl': configured or keeper.serverUrl,
                'isActive': any(s.isActive for s in servers),
                'customHeaders': headers or keeper.customHeaders,
                'requireApproval': 'always' if any(s.requireApproval == 'always' for s in servers) else keeper.requireApproval,
            })
            for duplicate in servers[1:]:
                self.store.delete(self.collection, duplicate.id)
            logger.info(f"Merged {len(servers)} copies of built-in MCP server '{label}'")

        added = []
        for builtin in BUILTIN_MCP_SERVERS:
            if builtin.serverLabel not in by_label:
                added.append(await self.create(builtin))
        return added
