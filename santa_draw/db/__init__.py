from santa_draw.db.models import Assignment, Base, Draw, DrawStatus
from santa_draw.db.session import SessionLocal, create_schema, get_session, init_engine

__all__ = [
    "Assignment",
    "Base",
    "Draw",
    "DrawStatus",
    "SessionLocal",
    "create_schema",
    "get_session",
    "init_engine",
]
