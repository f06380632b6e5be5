from __future__ import annotations

import json
from typing import Any, Dict, Optional

from aiohttp import web
from loguru import logger

from santa_draw.core.config import Settings
from santa_draw.services.draw_state import DrawManager, DrawSummary
from santa_draw.services.rate_limit import RateLimiter

MANAGER_KEY = web.AppKey("manager", DrawManager)
SETTINGS_KEY = web.AppKey("settings", Settings)
RATE_LIMITER_KEY = web.AppKey("rate_limiter", RateLimiter)

MAX_BODY_SIZE = 1_000_000
RATE_LIMIT_MESSAGE = "You're doing that too often. Please slow down."

NO_STORE = {"Cache-Control": "no-store"}
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
}


class RequestBodyError(Exception):
    def __init__(self, message: str, status: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def json_response(payload: Any, status: int = 200, headers: Optional[Dict[str, str]] = None) -> web.Response:
    response_headers = {**NO_STORE, "Access-Control-Allow-Origin": "*"}
    if headers:
        response_headers.update(headers)
    return web.json_response(payload, status=status, headers=response_headers)


def error_response(message: str, status: int, headers: Optional[Dict[str, str]] = None) -> web.Response:
    return json_response({"error": message}, status=status, headers=headers)


def summary_payload(summary: DrawSummary) -> Dict[str, Any]:
    return {
        "participants": list(summary.participants),
        "revealed": dict(summary.revealed),
        "remaining": summary.remaining,
        "total": summary.total,
        "takenRecipients": list(summary.taken_recipients),
        "createdAt": summary.created_at.isoformat() if summary.created_at else None,
    }


async def read_json(request: web.Request) -> Any:
    try:
        body = await request.read()
    except web.HTTPRequestEntityTooLarge:
        raise RequestBodyError("Payload too large", status=413) from None
    if not body:
        return {}
    try:
        return json.loads(body.decode(request.charset or "utf-8"))
    except (LookupError, ValueError):
        raise RequestBodyError("Invalid JSON payload", status=400) from None


def check_rate_limit(request: web.Request, action: str) -> bool:
    key = f"{request.remote}:{action}"
    result = request.app[RATE_LIMITER_KEY].allow(key)
    return result.allowed


def log_handler_exception(action: str, remote: Optional[str], error: Exception) -> None:
    logger.bind(action=action, remote=remote).exception("Handler error: {error}", error=str(error))
