import pytest

from conftest import created_id


@pytest.mark.asyncio
async def test_full_crud_flow(client):
    # Create author, genre and a book by that author
    resp = await client.post(
        "/catalog/author/create", data={"first_name": "Jane", "family_name": "Austen"}
    )
    author_id = created_id(resp)
    resp = await client.get(resp.headers["location"])
    assert "Jane Austen" in resp.text

    resp = await client.post("/catalog/genre/create", data={"name": "Fiction"})
    genre_id = created_id(resp)

    resp = await client.post(
        "/catalog/book/create",
        data={
            "title": "Sense and Sensibility",
            "author": str(author_id),
            "summary": "Two sisters.",
            "isbn": "9780141439662",
            "genre": str(genre_id),
        },
    )
    book_id = created_id(resp)

    # Add a copy, then lend it out
    resp = await client.post(
        "/catalog/bookinstance/create",
        data={"book": str(book_id), "imprint": "Penguin Classics", "status": "Available"},
    )
    copy_id = created_id(resp)
    resp = await client.post(
        f"/catalog/bookinstance/{copy_id}/update",
        data={
            "book": str(book_id),
            "imprint": "Penguin Classics",
            "status": "Loaned",
            "due_back": "2025-01-01",
        },
    )
    assert resp.headers["location"] == f"/catalog/bookinstance/{copy_id}"

    resp = await client.get(f"/catalog/book/{book_id}", follow_redirects=True)
    assert "Sense and Sensibility" in resp.text
    assert "Loaned" in resp.text
    assert "Jan 01, 2025" in resp.text

    # Nothing referenced can be deleted yet
    for path in (
        f"/catalog/author/{author_id}/delete",
        f"/catalog/genre/{genre_id}/delete",
        f"/catalog/book/{book_id}/delete",
    ):
        resp = await client.post(path)
        assert resp.status_code == 200, path

    # Tear down from the leaves up
    for path, list_url in (
        (f"/catalog/bookinstance/{copy_id}/delete", "/catalog/bookinstances"),
        (f"/catalog/book/{book_id}/delete", "/catalog/books"),
        (f"/catalog/genre/{genre_id}/delete", "/catalog/genres"),
        (f"/catalog/author/{author_id}/delete", "/catalog/authors"),
    ):
        resp = await client.post(path)
        assert resp.status_code == 302, path
        assert resp.headers["location"] == list_url

    resp = await client.get("/catalog/authors")
    assert "Jane Austen" not in resp.text
    resp = await client.get("/catalog", follow_redirects=True)
    assert "<strong>Books:</strong> 0" in resp.text
