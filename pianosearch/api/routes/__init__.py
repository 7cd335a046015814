from . import (
    auth,
    billing,
    classrooms,
    contact,
    me,
    misc,
)

__all__ = [
    "auth",
    "billing",
    "classrooms",
    "contact",
    "me",
    "misc",
]
