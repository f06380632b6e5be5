from __future__ import annotations

from aiohttp import web
from loguru import logger

from santa_draw.services.assignment import AssignmentError
from santa_draw.services.draw_state import (
    AlreadyRevealed,
    DrawError,
    InvalidGiver,
    MissingAssignment,
    PersistenceError,
    UnknownParticipant,
)
from santa_draw.web.utils import (
    MANAGER_KEY,
    RATE_LIMIT_MESSAGE,
    RequestBodyError,
    check_rate_limit,
    error_response,
    json_response,
    read_json,
    summary_payload,
)

routes = web.RouteTableDef()

DRAW_ERROR_STATUS = {
    InvalidGiver: 400,
    UnknownParticipant: 404,
    AlreadyRevealed: 409,
    MissingAssignment: 500,
    PersistenceError: 500,
}


@routes.get("/api/state", allow_head=False)
async def state_handler(request: web.Request) -> web.Response:
    try:
        summary = request.app[MANAGER_KEY].summary()
    except AssignmentError as exc:
        logger.bind(action="state").error("Could not build a draw: {error}", error=str(exc))
        return error_response(str(exc), status=500)
    return json_response(summary_payload(summary))


@routes.post("/api/draw")
async def draw_handler(request: web.Request) -> web.Response:
    if not check_rate_limit(request, "draw"):
        return error_response(RATE_LIMIT_MESSAGE, status=429)

    try:
        body = await read_json(request)
    except RequestBodyError as exc:
        return error_response(exc.message, status=exc.status)

    giver = body.get("giver") if isinstance(body, dict) else None
    try:
        result = request.app[MANAGER_KEY].reveal(giver)
    except DrawError as exc:
        return error_response(str(exc), status=DRAW_ERROR_STATUS.get(type(exc), 500))

    return json_response(
        {
            "giver": result.giver,
            "recipient": result.recipient,
            "remaining": result.remaining,
            "total": result.total,
            "takenRecipients": result.taken_recipients,
        }
    )


@routes.post("/api/reset")
async def reset_handler(request: web.Request) -> web.Response:
    if not check_rate_limit(request, "reset"):
        return error_response(RATE_LIMIT_MESSAGE, status=429)

    try:
        summary = request.app[MANAGER_KEY].reset()
    except AssignmentError as exc:
        logger.bind(action="reset", remote=request.remote).error("Reset failed: {error}", error=str(exc))
        return error_response(str(exc), status=500)

    logger.bind(draw_id=summary.draw_id, remote=request.remote).info("Draw reset")
    return json_response(
        {
            "message": "Secret Santa assignments reset.",
            "remaining": summary.remaining,
            "total": summary.total,
        }
    )
