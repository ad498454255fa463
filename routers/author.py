import logging
from collections.abc import Mapping
from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_db
from dependencies import Reader, RecordId, form_input, get_reader, sort_order
from helpers import echo_values, get_or_404, redirect, redirect_if_missing, render, validate_form
from models import Author, Book
from schemas.author import AuthorForm

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["authors"])

LIST_URL = "/catalog/authors"

author_sort = sort_order(
    {
        "family_name": Author.family_name,
        "first_name": Author.first_name,
        "date_of_birth": Author.date_of_birth,
    },
    default="family_name",
    tiebreak=Author.id,
)


def _author_books(author_id: int):
    return select(Book).where(Book.author_id == author_id).order_by(Book.title.asc())


@router.get("/authors")
async def author_list(
    request: Request,
    order: list = Depends(author_sort),
    reader: Reader = Depends(get_reader),
):
    authors = await reader.all(select(Author).order_by(*order))
    return render(request, "author_list.html", title="Author List", author_list=authors)


@router.get("/author/create")
async def author_create_get(request: Request):
    return render(request, "author_form.html", title="Create Author", values={})


@router.post("/author/create")
async def author_create_post(
    request: Request,
    data: Mapping[str, Any] = Depends(form_input),
    db: AsyncSession = Depends(get_async_db),
):
    form, errors = validate_form(AuthorForm, data)
    if errors:
        return render(
            request,
            "author_form.html",
            title="Create Author",
            values=echo_values(data),
            errors=errors,
        )

    author = Author(**form.model_dump())
    db.add(author)
    await db.commit()
    logger.info("created author %s", author.id)
    return redirect(author.url)


@router.get("/author/{author_id}")
async def author_detail(
    request: Request,
    author_id: RecordId,
    reader: Reader = Depends(get_reader),
):
    author, books = await reader.gather(
        reader.one(select(Author).where(Author.id == author_id)),
        reader.all(_author_books(author_id)),
    )
    get_or_404(author, "Author not found")
    return render(
        request, "author_detail.html", title="Author Detail", author=author, author_books=books
    )


@router.get("/author/{author_id}/delete")
async def author_delete_get(
    request: Request,
    author_id: RecordId,
    reader: Reader = Depends(get_reader),
):
    author, books = await reader.gather(
        reader.one(select(Author).where(Author.id == author_id)),
        reader.all(_author_books(author_id)),
    )
    if (response := redirect_if_missing(author, LIST_URL)) is not None:
        return response
    return render(
        request, "author_delete.html", title="Delete Author", author=author, author_books=books
    )


@router.post("/author/{author_id}/delete")
async def author_delete_post(
    request: Request,
    author_id: RecordId,
    reader: Reader = Depends(get_reader),
    db: AsyncSession = Depends(get_async_db),
):
    author, books = await reader.gather(
        reader.one(select(Author).where(Author.id == author_id)),
        reader.all(_author_books(author_id)),
    )
    if (response := redirect_if_missing(author, LIST_URL)) is not None:
        return response

    if books:
        logger.warning("refusing to delete author %s: %d book(s)", author_id, len(books))
        return render(
            request, "author_delete.html", title="Delete Author", author=author, author_books=books
        )

    await db.execute(delete(Author).where(Author.id == author_id))
    await db.commit()
    logger.info("deleted author %s", author_id)
    return redirect(LIST_URL)


@router.get("/author/{author_id}/update")
async def author_update_get(
    request: Request,
    author_id: RecordId,
    reader: Reader = Depends(get_reader),
):
    author = get_or_404(
        await reader.one(select(Author).where(Author.id == author_id)), "Author not found"
    )
    return render(
        request,
        "author_form.html",
        title="Update Author",
        author=author,
        values=author.form_values(),
    )


@router.post("/author/{author_id}/update")
async def author_update_post(
    request: Request,
    author_id: RecordId,
    data: Mapping[str, Any] = Depends(form_input),
    db: AsyncSession = Depends(get_async_db),
):
    author = get_or_404(await db.get(Author, author_id), "Author not found")

    form, errors = validate_form(AuthorForm, data)
    if errors:
        return render(
            request,
            "author_form.html",
            title="Update Author",
            author=author,
            values=echo_values(data),
            errors=errors,
        )

    for key, val in form.model_dump().items():
        setattr(author, key, val)
    await db.commit()
    logger.info("updated author %s", author_id)
    return redirect(author.url)
