from aiohttp import web

from santa_draw.core.config import Settings
from santa_draw.services.draw_state import DrawManager
from santa_draw.services.rate_limit import RateLimiter
from santa_draw.web.handlers import route_tables
from santa_draw.web.middlewares import error_middleware
from santa_draw.web.utils import MANAGER_KEY, MAX_BODY_SIZE, RATE_LIMITER_KEY, SETTINGS_KEY


def create_app(manager: DrawManager, settings: Settings) -> web.Application:
    app = web.Application(middlewares=[error_middleware], client_max_size=MAX_BODY_SIZE)
    app[MANAGER_KEY] = manager
    app[SETTINGS_KEY] = settings
    app[RATE_LIMITER_KEY] = RateLimiter(
        max_calls=settings.rate_limit_calls,
        period_seconds=settings.rate_limit_period,
    )
    for routes in route_tables:
        app.add_routes(routes)
    return app
