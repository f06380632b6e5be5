from santa_draw.services.assignment import (
    AssignmentError,
    Infeasible,
    InvalidRoster,
    generate_assignments,
    validate_assignments,
)
from santa_draw.services.draw_state import DrawError, DrawManager

__all__ = [
    "AssignmentError",
    "Infeasible",
    "InvalidRoster",
    "generate_assignments",
    "validate_assignments",
    "DrawError",
    "DrawManager",
]
