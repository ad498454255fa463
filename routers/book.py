import logging
from collections.abc import Mapping
from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

import config
from database import get_async_db
from dependencies import Reader, RecordId, form_input, get_reader, sort_order
from helpers import echo_values, get_or_404, redirect, redirect_if_missing, render, validate_form
from models import Author, Book, BookInstance, Genre
from schemas.book import BookForm

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["books"])

LIST_URL = "/catalog/books"

book_sort = sort_order(
    {"title": Book.title, "isbn": Book.isbn},
    default="title",
    tiebreak=Book.id,
)


def _book(book_id: int):
    return (
        select(Book)
        .options(selectinload(Book.author))
        .options(selectinload(Book.genres))
        .where(Book.id == book_id)
    )


def _book_instances(book_id: int):
    return (
        select(BookInstance)
        .where(BookInstance.book_id == book_id)
        .order_by(BookInstance.id.asc())
    )


def _reference_lists(reader: Reader):
    return (
        reader.all(select(Author).order_by(Author.family_name.asc(), Author.id.asc())),
        reader.all(select(Genre).order_by(Genre.name.asc(), Genre.id.asc())),
    )


async def _render_form(
    request: Request, reader: Reader, title: str, values: dict, errors=None, book=None
):
    authors, genres = await reader.gather(*_reference_lists(reader))
    return render(
        request,
        "book_form.html",
        title=title,
        authors=authors,
        genres=genres,
        book=book,
        values=values,
        errors=errors or [],
    )


async def _resolve_references(db: AsyncSession, form: BookForm):
    """Load the submitted author and genres; report the ones that don't exist."""
    errors: list[dict] = []
    author = await db.get(Author, form.author)
    if author is None:
        errors.append({"field": "author", "msg": "Author does not exist."})

    genres: list[Genre] = []
    if form.genre:
        genres = list(
            (await db.execute(select(Genre).where(Genre.id.in_(form.genre)))).scalars().all()
        )
        if len(genres) != len(form.genre):
            errors.append({"field": "genre", "msg": "Genre does not exist."})
    return author, genres, errors


@router.get("/books")
async def book_list(
    request: Request,
    order: list = Depends(book_sort),
    reader: Reader = Depends(get_reader),
):
    books = await reader.all(
        select(Book).options(selectinload(Book.author)).order_by(*order)
    )
    return render(request, "book_list.html", title="Book List", book_list=books)


@router.get("/book/create")
async def book_create_get(request: Request, reader: Reader = Depends(get_reader)):
    return await _render_form(request, reader, "Create Book", {"genre": []})


@router.post("/book/create")
async def book_create_post(
    request: Request,
    data: Mapping[str, Any] = Depends(form_input),
    reader: Reader = Depends(get_reader),
    db: AsyncSession = Depends(get_async_db),
):
    form, errors = validate_form(BookForm, data)
    if not errors:
        author, genres, errors = await _resolve_references(db, form)
    if errors:
        await db.rollback()
        return await _render_form(
            request, reader, "Create Book", echo_values(data, "genre"), errors
        )

    book = Book(
        title=form.title,
        summary=form.summary,
        isbn=form.isbn,
        author_id=author.id,
        genres=genres,
    )
    db.add(book)
    await db.commit()
    logger.info("created book %s", book.id)
    return redirect(book.url)


@router.get("/book/{book_id}")
async def book_detail(
    request: Request,
    book_id: RecordId,
    reader: Reader = Depends(get_reader),
):
    book, instances = await reader.gather(
        reader.one(_book(book_id)),
        reader.all(_book_instances(book_id)),
    )
    get_or_404(book, "Book not found")
    return render(
        request, "book_detail.html", title=book.title, book=book, book_instances=instances
    )


@router.get("/book/{book_id}/delete")
async def book_delete_get(
    request: Request,
    book_id: RecordId,
    reader: Reader = Depends(get_reader),
):
    book, instances = await reader.gather(
        reader.one(_book(book_id)),
        reader.all(_book_instances(book_id)),
    )
    if (response := redirect_if_missing(book, LIST_URL)) is not None:
        return response
    return render(
        request,
        "book_delete.html",
        title="Delete Book",
        book=book,
        book_instances=instances,
        refuse_with_copies=config.BOOK_DELETE_REQUIRES_NO_COPIES,
    )


@router.post("/book/{book_id}/delete")
async def book_delete_post(
    request: Request,
    book_id: RecordId,
    reader: Reader = Depends(get_reader),
    db: AsyncSession = Depends(get_async_db),
):
    book, instances = await reader.gather(
        reader.one(_book(book_id)),
        reader.all(_book_instances(book_id)),
    )
    if (response := redirect_if_missing(book, LIST_URL)) is not None:
        return response

    if instances and config.BOOK_DELETE_REQUIRES_NO_COPIES:
        logger.warning("refusing to delete book %s: %d copies", book_id, len(instances))
        return render(
            request,
            "book_delete.html",
            title="Delete Book",
            book=book,
            book_instances=instances,
            refuse_with_copies=config.BOOK_DELETE_REQUIRES_NO_COPIES,
        )

    stmt = (
        select(Book)
        .options(selectinload(Book.genres))
        .options(selectinload(Book.instances))
        .where(Book.id == book_id)
    )
    old_book = (await db.execute(stmt)).scalar_one_or_none()
    if old_book is not None:
        await db.delete(old_book)
        await db.commit()
        logger.info("deleted book %s (%d copies)", book_id, len(instances))
    return redirect(LIST_URL)


@router.get("/book/{book_id}/update")
async def book_update_get(
    request: Request,
    book_id: RecordId,
    reader: Reader = Depends(get_reader),
):
    book, authors, genres = await reader.gather(
        reader.one(_book(book_id)), *_reference_lists(reader)
    )
    get_or_404(book, "Book not found")
    return render(
        request,
        "book_form.html",
        title="Update Book",
        authors=authors,
        genres=genres,
        book=book,
        values=book.form_values(),
        errors=[],
    )


@router.post("/book/{book_id}/update")
async def book_update_post(
    request: Request,
    book_id: RecordId,
    data: Mapping[str, Any] = Depends(form_input),
    reader: Reader = Depends(get_reader),
    db: AsyncSession = Depends(get_async_db),
):
    stmt = select(Book).options(selectinload(Book.genres)).where(Book.id == book_id)
    book = get_or_404((await db.execute(stmt)).scalar_one_or_none(), "Book not found")

    form, errors = validate_form(BookForm, data)
    if not errors:
        author, genres, errors = await _resolve_references(db, form)
    if errors:
        await db.rollback()
        return await _render_form(
            request, reader, "Update Book", echo_values(data, "genre"), errors
        )

    book.title = form.title
    book.summary = form.summary
    book.isbn = form.isbn
    book.author_id = author.id
    book.genres = genres
    await db.commit()
    logger.info("updated book %s", book_id)
    return redirect(book.url)
