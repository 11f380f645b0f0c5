from __future__ import annotations
from typing import AsyncGenerator
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from hackcontrol.config import settings

class Base(DeclarativeBase):
    pass

def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")

_engine_kwargs: dict = {}
if is_sqlite(settings.database_url):
    # aiosqlite connections must not outlive the event loop that opened them
    _engine_kwargs["poolclass"] = NullPool

engine = create_async_engine(settings.database_url, future=True, echo=False, **_engine_kwargs)

if is_sqlite(settings.database_url):
    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_foreign_keys(dbapi_conn, _record):
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        yield session
