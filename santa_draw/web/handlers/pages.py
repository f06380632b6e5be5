from __future__ import annotations

from pathlib import Path

from aiohttp import web
from loguru import logger

from santa_draw.web.utils import NO_STORE, SETTINGS_KEY, error_response

routes = web.RouteTableDef()


@routes.get("/", allow_head=False)
@routes.get("/index.html", allow_head=False)
async def index_handler(request: web.Request) -> web.StreamResponse:
    path = Path(request.app[SETTINGS_KEY].html_path)
    if not path.is_file():
        logger.bind(path=str(path)).error("HTML file is missing")
        return error_response("Could not read HTML file.", status=500)
    return web.FileResponse(path, headers=NO_STORE)


@routes.get("/favicon.ico", allow_head=False)
async def favicon_handler(request: web.Request) -> web.Response:
    return web.Response(status=204)
