from santa_draw.web.handlers import draw, pages

route_tables = [
    draw.routes,
    pages.routes,
]
