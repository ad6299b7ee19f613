"""
db - Database layer.

Public API:
    init_db()       → create engine + tables
    get_session()   → new Session
    session_scope() → Session closed on exit
    Author, Post    → ORM models
"""

from db.engine import init_db, get_session, session_scope, dispose_db   # noqa: F401
from db.models import Base, Author, Post                 # noqa: F401
