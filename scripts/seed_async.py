"""
Async seeding script to populate the running catalog with genres, authors, books and copies.

Usage:
    python scripts/seed_async.py --authors 10 --books 30 --copies 2 --base-url http://localhost:8000

The server must be running and reachable at the provided base URL. Records are
created through the same HTML forms a user would submit.
"""

import argparse
import asyncio
import os
import random
import uuid
from datetime import date, timedelta

import httpx

DEFAULT_BASE_URL = os.getenv("SEED_BASE_URL", "http://localhost:8000")

GENRES = ["Fantasy", "Science Fiction", "French Poetry", "Romance", "Mystery"]
STATUSES = ["Available", "Maintenance", "Loaned", "Reserved"]


def _isbn() -> str:
    # Generate a 13-digit ISBN-like string
    return f"978{uuid.uuid4().int % 10**10:010d}"


async def submit(client: httpx.AsyncClient, path: str, data: dict) -> int:
    """Post a create form and return the id of the record it redirected to."""
    resp = await client.post(path, data=data)
    if resp.status_code != 302:
        raise RuntimeError(f"{path} was rejected ({resp.status_code}): {resp.text[:200]}")
    return int(resp.headers["location"].rstrip("/").rsplit("/", 1)[-1])


async def create_author(client: httpx.AsyncClient, idx: int) -> int:
    born = date(1800, 1, 1) + timedelta(days=random.randint(0, 200 * 365))
    return await submit(
        client,
        "/catalog/author/create",
        {
            "first_name": f"Seed{idx}",
            "family_name": f"Author{uuid.uuid4().hex[:6]}",
            "date_of_birth": born.isoformat(),
        },
    )


async def create_book(
    client: httpx.AsyncClient, idx: int, author_id: int, genre_ids: list[int]
) -> int:
    return await submit(
        client,
        "/catalog/book/create",
        {
            "title": f"Seed Book {idx}-{uuid.uuid4().hex[:6]}",
            "author": str(author_id),
            "summary": "seeded via scripts/seed_async.py",
            "isbn": _isbn(),
            "genre": [str(g) for g in genre_ids],
        },
    )


async def create_copy(client: httpx.AsyncClient, book_id: int) -> int:
    status = random.choice(STATUSES)
    data = {"book": str(book_id), "imprint": "Seed Press, 2024", "status": status}
    if status != "Available":
        data["due_back"] = (date.today() + timedelta(days=random.randint(1, 60))).isoformat()
    return await submit(client, "/catalog/bookinstance/create", data)


async def seed(base_url: str, authors: int, books: int, copies: int):
    async with httpx.AsyncClient(base_url=base_url, timeout=30.0) as client:
        # an existing genre of the same name comes back as its id
        genre_ids = [
            await submit(client, "/catalog/genre/create", {"name": name}) for name in GENRES
        ]
        author_ids = [await create_author(client, idx) for idx in range(authors)]

        if not author_ids:
            print("No authors created; skipping book creation.")
            return

        book_ids: list[int] = []
        for idx in range(books):
            selected_genres = random.sample(genre_ids, k=random.randint(0, 2))
            book_ids.append(
                await create_book(client, idx, random.choice(author_ids), selected_genres)
            )

        copy_ids = [
            await create_copy(client, book_id) for book_id in book_ids for _ in range(copies)
        ]

    print(
        f"Seeded {len(genre_ids)} genres, {len(author_ids)} authors, "
        f"{len(book_ids)} books and {len(copy_ids)} copies to {base_url}"
    )


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Async seeder for the library catalog")
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL, help="Server base URL")
    parser.add_argument("--authors", type=int, default=10, help="Number of authors to create")
    parser.add_argument("--books", type=int, default=20, help="Number of books to create")
    parser.add_argument("--copies", type=int, default=2, help="Copies to create per book")
    return parser.parse_args()


def main():
    args = parse_args()
    asyncio.run(
        seed(
            base_url=args.base_url,
            authors=args.authors,
            books=args.books,
            copies=args.copies,
        )
    )


if __name__ == "__main__":
    main()
