"""
Export, import and maintenance API endpoints.
"""
from dataclasses import asdict
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from typing import List, Optional
import json

from pydantic import ValidationError as PydanticValidationError

from ..services.chatgpt_import import ChatGPTImportOptions, OrganizationStrategy, import_chatgpt, parse_chatgpt_export
from ..services.export import export_all, from_zip, import_archive, to_zip
from ..storage.backend import Store
from ..storage.maintenance import database_size, delete_all_chat_data
from .deps import get_store

router = APIRouter(prefix="/api/v1", tags=["data"])

ZIP_MEDIA_TYPE = "application/zip"


@router.get("/export")
async def export_data(
    include_images: bool = True,
    folder_ids: Optional[List[str]] = Query(None),
    chat_group_ids: Optional[List[str]] = Query(None),
    format: str = "zip",
    store: Store = Depends(get_store),
):
    """Export folders and chat groups as a zip download, or as JSON with ``format=json``."""
    archive = export_all(
        store,
        include_images=include_images,
        folder_ids=folder_ids,
        chat_group_ids=chat_group_ids,
    )
    if format == "json":
        return archive
    filename = f"chatterhub-export-{datetime.now().strftime('%Y-%m-%d')}.zip"
    return Response(
        content=to_zip(archive),
        media_type=ZIP_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import")
async def import_data(request: Request, store: Store = Depends(get_store)):
    """Import a zip export (``application/zip``) or its JSON form."""
    body = await request.body()
    if request.headers.get("content-type", "").startswith(ZIP_MEDIA_TYPE):
        archive = from_zip(body)
    else:
        try:
            archive = json.loads(body)
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=422, detail=f"Invalid JSON archive: {e}")
    result = await import_archive(store, archive)
    return asdict(result)


@router.post("/import/chatgpt")
async def import_chatgpt_data(
    request: Request,
    organization_strategy: OrganizationStrategy = "root",
    folder_name: Optional[str] = None,
    skip_archived: bool = False,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    include_images: bool = True,
    model_mapping: Optional[str] = Query(None, description="JSON object mapping ChatGPT model slugs to model ids"),
    store: Store = Depends(get_store),
):
    """Import a ChatGPT data export zip, or its ``conversations.json``."""
    try:
        mapping = json.loads(model_mapping) if model_mapping else {}
        options = ChatGPTImportOptions(
            organizationStrategy=organization_strategy,
            folderName=folder_name,
            skipArchived=skip_archived,
            dateFrom=date_from,
            dateTo=date_to,
            includeImages=include_images,
            modelMapping=mapping,
        )
    except (json.JSONDecodeError, PydanticValidationError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid import options: {e}")
    export = parse_chatgpt_export(await request.body())
    result = await import_chatgpt(store, export, options)
    return asdict(result)


@router.get("/database/size")
async def get_database_size(store: Store = Depends(get_store)):
    return await database_size(store)


@router.delete("/database/chat-data")
async def delete_chat_data(store: Store = Depends(get_store)):
    """Remove all folders, chat groups, chats, messages, attachments and parameters."""
    return {"deleted": await delete_all_chat_data(store)}
