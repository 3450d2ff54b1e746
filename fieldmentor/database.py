import os
import ssl
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

DATABASE_URL = os.getenv("DATABASE_URL", "")

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required.")

parsed = urlparse(DATABASE_URL)
connect_args = {}
engine_kwargs = {}

if parsed.scheme in ("postgres", "postgresql"):
    # Hosted Postgres URLs carry sslmode/channel_binding query params that
    # asyncpg rejects; SSL goes through connect_args instead.
    query_params = parse_qs(parsed.query)
    _needs_ssl = query_params.pop("sslmode", [None])[0] == "require"
    query_params.pop("channel_binding", None)

    clean_query = urlencode(query_params, doseq=True)
    DATABASE_URL = urlunparse(
        parsed._replace(scheme="postgresql+asyncpg", query=clean_query)
    )
    if _needs_ssl:
        connect_args["ssl"] = ssl.create_default_context()
elif parsed.scheme.startswith("sqlite"):
    # aiosqlite connections are bound to the loop that opened them.
    engine_kwargs["poolclass"] = NullPool

engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args=connect_args,
    **engine_kwargs,
)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    pass
