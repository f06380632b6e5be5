from __future__ import annotations

import asyncio
import sys

import uvloop
from aiohttp import web
from loguru import logger

from santa_draw.core.config import Settings, load_settings
from santa_draw.core.logging import setup_logging
from santa_draw.core.roster import load_roster
from santa_draw.db import create_schema, init_engine
from santa_draw.services.assignment import AssignmentError
from santa_draw.services.draw_state import DrawManager
from santa_draw.web import create_app
from santa_draw.web.utils import MANAGER_KEY


async def on_startup(app: web.Application) -> None:
    summary = app[MANAGER_KEY].summary()
    logger.info("server starting...")
    logger.info("Draw         - #{draw_id}", draw_id=summary.draw_id)
    logger.info("Participants - {total}", total=summary.total)
    logger.info("Remaining    - {remaining}", remaining=summary.remaining)


async def on_shutdown(app: web.Application) -> None:
    logger.info("server stopping...")


def build_manager(settings: Settings) -> DrawManager:
    engine = init_engine(settings.database_url)
    create_schema(engine)
    roster = load_roster(settings.roster_path, symmetric=settings.symmetric_exclusions)
    return DrawManager(roster, max_attempts=settings.max_attempts)


async def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_path)

    try:
        manager = build_manager(settings)
        manager.load()
    except (AssignmentError, ValueError) as exc:
        logger.error("Failed to build the draw: {error}", error=str(exc))
        sys.exit(1)

    app = create_app(manager, settings)
    app.on_startup.append(on_startup)
    app.on_shutdown.append(on_shutdown)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, settings.host, settings.port)
    await site.start()
    logger.info(
        "Secret Santa server running on http://{host}:{port}",
        host=settings.host,
        port=settings.port,
    )

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
        logger.info("server stopped")


if __name__ == "__main__":
    if not getattr(asyncio, "debug", False):
        uvloop.install()

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
