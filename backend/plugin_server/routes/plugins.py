"""
Plugin API Routes
Upload, download, listing and CRUD of plugin archives
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from ..auth import get_current_user, utc_now
from ..config import get_settings
from ..database import get_db
from ..models.plugin_models import PluginListResponse, PluginResponse
from ..repositories.plugin_repository import PluginStore, SqlPluginStore
from ..services.plugins.handlers import (
    PluginDeleteHandler,
    PluginDownloadHandler,
    PluginFilterHandler,
    PluginHandlerContext,
    PluginListHandler,
    PluginLoadHandler,
    PluginUpload,
    PluginUploadHandler,
    Selection,
    UploadPart,
)
from ..services.plugins.media_types import MULTIPART_FORM_DATA, base_media_type

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/plugin", tags=["Plugins"])

# Handlers hold no state, one instance serves every request
load_handler = PluginLoadHandler()
delete_handler = PluginDeleteHandler()
filter_handler = PluginFilterHandler()
list_handler = PluginListHandler()
upload_handler = PluginUploadHandler()


def get_plugin_store(db: Session = Depends(get_db)) -> PluginStore:
    """Plugin store dependency, one SQL session per request"""
    return SqlPluginStore(db)


def get_plugin_context(
    store: PluginStore = Depends(get_plugin_store),
    user: Optional[str] = Depends(get_current_user),
) -> PluginHandlerContext:
    return PluginHandlerContext(store=store, clock=utc_now, user=user)


def no_content() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def download_base_path() -> str:
    return f"{get_settings().api_prefix}{router.prefix}"


@router.get("/{name}/download")
@router.get("/{name}/download/{file_path:path}")
async def download_plugin(
    request: Request,
    accept: Optional[str] = Header(None),
    context: PluginHandlerContext = Depends(get_plugin_context),
):
    """
    Download a plugin archive, or one file from inside it

    - /plugin/{name}/download returns the stored JAR unchanged
    - /plugin/{name}/download/{path} returns the file at that archive path

    Unknown plugins, unknown paths and unacceptable media types answer 204.
    """
    handler = PluginDownloadHandler(download_base_path(), context.store, context.detector)
    return handler.handle(request.url.path, accept)


@router.get("/{name}/list")
async def list_plugin_entries(
    name: str,
    accept: Optional[str] = Header(None),
    context: PluginHandlerContext = Depends(get_plugin_context),
):
    """
    List the files and directories inside a plugin archive

    Requires "Accept: application/json". Entries are returned in the order
    they appear in the archive, as a JSON array.
    """
    response = list_handler.dispatch(Selection.parse(name), context, accept=accept)
    return response if response is not None else no_content()


@router.post("/*/upload")
async def upload_plugin(
    request: Request,
    context: PluginHandlerContext = Depends(get_plugin_context),
):
    """
    Upload a plugin JAR

    The plugin name comes from the "plugin-name" attribute of the JAR
    manifest. Uploading a name again replaces the stored plugin. The stored
    archive is echoed back with an X-Plugin-Name header.
    """
    upload = PluginUpload(
        accept=request.headers.get("accept"),
        content_type=request.headers.get("content-type"),
        content_disposition=request.headers.get("content-disposition"),
    )

    if base_media_type(upload.content_type) == MULTIPART_FORM_DATA:
        form = await request.form()
        for key, value in form.multi_items():
            upload.parts.append(await _upload_part(key, value))
    else:
        upload.body = await request.body()

    return upload_handler.handle_all(context, upload=upload)


async def _upload_part(key: str, value: Union[UploadFile, str]) -> UploadPart:
    if isinstance(value, UploadFile):
        return UploadPart(name=key, filename=value.filename, content=await value.read())
    return UploadPart(name=key, filename=None, content=value.encode("utf-8"))


@router.get("/*/filter", response_model=PluginListResponse)
async def filter_plugins(
    query: Optional[str] = Query(None, description="Case-insensitive substring of the plugin name, * for all"),
    offset: Optional[int] = Query(None, description="Number of plugins to skip"),
    count: Optional[int] = Query(None, description="Page size, default 20, at most 40"),
    context: PluginHandlerContext = Depends(get_plugin_context),
):
    """Find plugins by name"""
    plugins = filter_handler.handle_all(context, query=query, offset=offset, count=count)
    return PluginListResponse.from_plugins(plugins)


@router.get("/{selection}")
async def load_plugins(
    selection: str,
    offset: Optional[int] = Query(None, description="Number of plugins to skip when loading all"),
    count: Optional[int] = Query(None, description="Page size when loading all, default 20, at most 40"),
    context: PluginHandlerContext = Depends(get_plugin_context),
):
    """
    Load plugins

    - "*" loads one page of all plugins
    - "a..b" loads plugins with names between a and b inclusive
    - any other value loads the plugin with that name, 204 when unknown
    """
    parsed = Selection.parse(selection)
    result = load_handler.dispatch(parsed, context, offset=offset, count=count)

    if parsed.kind == "one":
        return PluginResponse.from_plugin(result) if result is not None else no_content()
    return PluginListResponse.from_plugins(result)


@router.delete("/{selection}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_plugins(
    selection: str,
    context: PluginHandlerContext = Depends(get_plugin_context),
):
    """Delete one plugin, a name range, or all plugins ("*")"""
    delete_handler.dispatch(Selection.parse(selection), context)
    return no_content()
