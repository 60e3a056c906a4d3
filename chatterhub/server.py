"""
FastAPI application assembly.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatterhub import __version__
from chatterhub.utils.custom_exceptions import (
    ChatterHubError, FolderCycleError, NotFoundError, UnknownCollectionError, ValidationError,
)
from chatterhub.utils.logging_utils import logger

from .api import chat_groups, custom_models, data, folders, live, mcp_servers, model_parameters, prompts, system_prompt
from .api.deps import get_store, reset_live_engines
from .storage.groups import ChatGroupStorage
from .storage.mcp_servers import MCPServerStorage

ROUTERS = (
    folders.router,
    chat_groups.router,
    prompts.router,
    custom_models.router,
    mcp_servers.router,
    model_parameters.router,
    system_prompt.router,
    live.router,
    data.router,
)

# Most specific first
ERROR_STATUS = (
    (FolderCycleError, 409),
    (NotFoundError, 404),
    (UnknownCollectionError, 404),
    (ValidationError, 422),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup housekeeping: built-in tool servers and expired temporary chats."""
    store = app.dependency_overrides.get(get_store, get_store)()
    added = await MCPServerStorage(store).initialize_builtins()
    if added:
        logger.info(f"Added {len(added)} built-in MCP servers")
    await ChatGroupStorage(store).cleanup_temporary()
    yield
    closed = reset_live_engines()
    if closed:
        logger.debug(f"Closed {closed} live query engines")


async def chatterhub_error_handler(request: Request, exc: ChatterHubError):
    status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 400)
    logger.warning(f"{request.method} {request.url.path} failed with {status_code}: {exc.message}")
    return JSONResponse({"detail": exc.message}, status_code=status_code)


def create_app() -> FastAPI:
    app = FastAPI(
        title="ChatterHub API",
        description="Local data core for ChatterHub: folders, chat groups, prompts and model settings",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ChatterHubError, chatterhub_error_handler)

    for router in ROUTERS:
        app.include_router(router)
    return app
