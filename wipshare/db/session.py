from contextvars import ContextVar, Token
from uuid import uuid4
from sqlalchemy.ext.asyncio import (
    async_scoped_session,
    async_sessionmaker,
    create_async_engine,
)

from wipshare.db.config import DatabaseSettings
settings = DatabaseSettings()
class DatabaseManager:
    def __init__(self):
        url = settings.url
        self.engine = create_async_engine(
            url,
            pool_recycle=28000,      # MySQL wait_timeout
            pool_pre_ping=True,
        )
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
        )


# request/task scoped session key
session_context_var: ContextVar[tuple[str | None, str | None]] = ContextVar(
    "session_context", default=(None, None)
)


def reset_session(token: Token) -> None:
    session_context_var.reset(token)


def start_default_session() -> Token:
    return session_context_var.set((uuid4().hex, None))


def get_session_id() -> str | None:
    """scopefunc for async_scoped_session."""
    return session_context_var.get()[0]


SESSION = async_scoped_session(
    session_factory=DatabaseManager().session_factory,
    scopefunc=get_session_id,
)
