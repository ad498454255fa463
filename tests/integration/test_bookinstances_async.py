import pytest
from sqlalchemy import select

from conftest import create_author, create_book, create_copy
from models import BookInstance, BookStatus


@pytest.fixture
def book_factory(client):
    async def make(title="Emma"):
        author_id = await create_author(client)
        return await create_book(client, author_id, title=title)

    return make


@pytest.mark.asyncio
async def test_create_copy_defaults_to_maintenance(client, sessionmaker, book_factory):
    book_id = await book_factory()
    copy_id = await create_copy(client, book_id)

    async with sessionmaker() as db:
        copy = await db.get(BookInstance, copy_id)
    assert copy.status is BookStatus.maintenance
    assert copy.due_back is None

    resp = await client.get(f"/catalog/bookinstance/{copy_id}")
    assert resp.status_code == 200
    assert "Copy: Emma" in resp.text
    assert "Penguin, 2003" in resp.text


@pytest.mark.asyncio
async def test_invalid_copy_is_not_saved(client, sessionmaker, book_factory):
    book_id = await book_factory()

    resp = await client.post(
        "/catalog/bookinstance/create",
        data={"book": str(book_id), "imprint": "", "status": "Lost", "due_back": "2025-13-45"},
    )
    assert resp.status_code == 200
    assert "Imprint must be specified" in resp.text
    assert "Invalid status" in resp.text
    assert "Invalid date" in resp.text
    assert f'value="{book_id}" selected' in resp.text

    resp = await client.post("/catalog/bookinstance/create", data={"imprint": "Penguin"})
    assert "Book must be specified" in resp.text

    resp = await client.post(
        "/catalog/bookinstance/create", data={"book": "999", "imprint": "Penguin"}
    )
    assert "Book does not exist." in resp.text

    async with sessionmaker() as db:
        assert (await db.execute(select(BookInstance))).scalars().all() == []


@pytest.mark.asyncio
async def test_update_copy_status_and_due_date(client, sessionmaker, book_factory):
    book_id = await book_factory()
    copy_id = await create_copy(client, book_id, status="Available")

    resp = await client.get(f"/catalog/bookinstance/{copy_id}/update")
    assert resp.status_code == 200
    assert 'value="Available" selected' in resp.text

    resp = await client.post(
        f"/catalog/bookinstance/{copy_id}/update",
        data={"book": str(book_id), "imprint": "Penguin, 2003", "status": "Loaned", "due_back": "2025-01-01"},
    )
    assert resp.status_code == 302
    assert resp.headers["location"] == f"/catalog/bookinstance/{copy_id}"

    resp = await client.get(f"/catalog/bookinstance/{copy_id}")
    assert "Loaned" in resp.text
    assert "Jan 01, 2025" in resp.text

    async with sessionmaker() as db:
        copies = (await db.execute(select(BookInstance))).scalars().all()
    assert [c.id for c in copies] == [copy_id]
    assert copies[0].status is BookStatus.loaned
    assert copies[0].due_back.isoformat() == "2025-01-01"


@pytest.mark.asyncio
async def test_copy_list_and_delete(client, book_factory):
    book_id = await book_factory("Persuasion")
    copy_id = await create_copy(client, book_id, imprint="Vintage")

    resp = await client.get("/catalog/bookinstances")
    assert resp.status_code == 200
    assert "Persuasion : Vintage" in resp.text

    resp = await client.get(f"/catalog/bookinstance/{copy_id}/delete")
    assert resp.status_code == 200
    assert "Do you really want to delete this BookInstance?" in resp.text

    resp = await client.post(f"/catalog/bookinstance/{copy_id}/delete")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/catalog/bookinstances"
    assert (await client.get(f"/catalog/bookinstance/{copy_id}")).status_code == 404

    # deleting again is harmless
    resp = await client.post(f"/catalog/bookinstance/{copy_id}/delete")
    assert resp.status_code == 302

    resp = await client.get(f"/catalog/bookinstance/{copy_id}/delete")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/catalog/bookinstances"


@pytest.mark.asyncio
async def test_rejected_update_leaves_copy_unchanged(client, sessionmaker, book_factory):
    book_id = await book_factory()
    copy_id = await create_copy(client, book_id, status="Available")

    resp = await client.post(
        f"/catalog/bookinstance/{copy_id}/update",
        data={"book": str(book_id), "imprint": "", "status": "Loaned"},
    )
    assert resp.status_code == 200
    assert "Imprint must be specified" in resp.text

    resp = await client.post(
        f"/catalog/bookinstance/{copy_id}/update",
        data={"book": "999", "imprint": "Vintage", "status": "Loaned"},
    )
    assert resp.status_code == 200
    assert "Book does not exist." in resp.text

    async with sessionmaker() as db:
        copy = await db.get(BookInstance, copy_id)
    assert copy.book_id == book_id
    assert copy.imprint == "Penguin, 2003"
    assert copy.status is BookStatus.available


@pytest.mark.asyncio
async def test_update_missing_copy_is_404_even_with_bad_fields(client):
    resp = await client.post("/catalog/bookinstance/999/update", data={"imprint": ""})
    assert resp.status_code == 404
    assert "Book copy not found" in resp.text


@pytest.mark.asyncio
async def test_out_of_range_book_reference_does_not_exist(client, sessionmaker):
    huge = "99999999999999999999"

    assert (await client.get(f"/catalog/bookinstance/{huge}")).status_code == 404

    resp = await client.post(
        "/catalog/bookinstance/create", data={"book": huge, "imprint": "Penguin"}
    )
    assert resp.status_code == 200
    assert "Book does not exist." in resp.text

    async with sessionmaker() as db:
        assert (await db.execute(select(BookInstance))).scalars().all() == []
