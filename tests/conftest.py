import os
import re

os.environ.setdefault("DATABASE_ASYNC_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CREATE_TABLES", "false")

import httpx
import pytest_asyncio

from database import create_tables, get_sessionmaker, make_engine, make_sessionmaker
from main import app

ID_IN_LOCATION = re.compile(r"/(\d+)$")


@pytest_asyncio.fixture
async def sessionmaker(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'library.sqlite'}")
    await create_tables(engine)
    yield make_sessionmaker(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def client(sessionmaker):
    app.dependency_overrides[get_sessionmaker] = lambda: sessionmaker
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as c:
        yield c
    app.dependency_overrides.clear()


def created_id(resp: httpx.Response) -> int:
    assert resp.status_code == 302, f"expected redirect, got {resp.status_code}: {resp.text}"
    match = ID_IN_LOCATION.search(resp.headers["location"])
    assert match, resp.headers["location"]
    return int(match.group(1))


async def create_author(client, first_name="Jane", family_name="Austen", **extra) -> int:
    resp = await client.post(
        "/catalog/author/create",
        data={"first_name": first_name, "family_name": family_name, **extra},
    )
    return created_id(resp)


async def create_genre(client, name="Fiction") -> int:
    resp = await client.post("/catalog/genre/create", data={"name": name})
    return created_id(resp)


async def create_book(client, author_id, genre_ids=(), title="Emma", **extra) -> int:
    data = {
        "title": title,
        "author": str(author_id),
        "summary": "A novel about youthful hubris.",
        "isbn": "9780141439587",
        "genre": [str(g) for g in genre_ids],
        **extra,
    }
    resp = await client.post("/catalog/book/create", data=data)
    return created_id(resp)


async def create_copy(client, book_id, imprint="Penguin, 2003", **extra) -> int:
    resp = await client.post(
        "/catalog/bookinstance/create",
        data={"book": str(book_id), "imprint": imprint, **extra},
    )
    return created_id(resp)
