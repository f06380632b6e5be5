from __future__ import annotations

from aiohttp import web

from santa_draw.web.utils import CORS_HEADERS, NO_STORE, error_response, log_handler_exception


def _preflight() -> web.Response:
    return web.Response(status=204, headers=CORS_HEADERS)


def _not_found() -> web.Response:
    return web.Response(status=404, text="Not Found", content_type="text/plain", headers=NO_STORE)


def _method_not_allowed(exc: web.HTTPMethodNotAllowed) -> web.Response:
    allowed = ",".join(sorted(exc.allowed_methods))
    return error_response(
        f"Method not allowed. Use {allowed}.",
        status=405,
        headers={"Allow": allowed},
    )


@web.middleware
async def error_middleware(request: web.Request, handler):
    if request.method == "OPTIONS" and request.path.startswith("/api/"):
        return _preflight()

    try:
        return await handler(request)
    except web.HTTPMethodNotAllowed as exc:
        return _method_not_allowed(exc)
    except web.HTTPNotFound:
        return _not_found()
    except web.HTTPException:
        raise
    except Exception as exc:
        log_handler_exception(request.path, request.remote, exc)
        return error_response("Internal server error", status=500)
