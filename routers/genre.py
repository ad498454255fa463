import logging
from collections.abc import Mapping
from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_async_db
from dependencies import Reader, RecordId, form_input, get_reader, sort_order
from helpers import echo_values, get_or_404, redirect, redirect_if_missing, render, validate_form
from models import Book, Genre
from schemas.genre import GenreForm

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["genres"])

LIST_URL = "/catalog/genres"

genre_sort = sort_order({"name": Genre.name}, default="name", tiebreak=Genre.id)


def _genre_books(genre_id: int):
    return (
        select(Book)
        .where(Book.genres.any(Genre.id == genre_id))
        .order_by(Book.title.asc())
    )


async def _genre_with_books(reader: Reader, genre_id: int):
    return await reader.gather(
        reader.one(select(Genre).where(Genre.id == genre_id)),
        reader.all(_genre_books(genre_id)),
    )


@router.get("/genres")
async def genre_list(
    request: Request,
    order: list = Depends(genre_sort),
    reader: Reader = Depends(get_reader),
):
    genres = await reader.all(select(Genre).order_by(*order))
    return render(request, "genre_list.html", title="Genre List", genre_list=genres)


@router.get("/genre/create")
async def genre_create_get(request: Request):
    return render(request, "genre_form.html", title="Create Genre", values={})


@router.post("/genre/create")
async def genre_create_post(
    request: Request,
    data: Mapping[str, Any] = Depends(form_input),
    db: AsyncSession = Depends(get_async_db),
):
    form, errors = validate_form(GenreForm, data)
    if errors:
        return render(
            request,
            "genre_form.html",
            title="Create Genre",
            values=echo_values(data),
            errors=errors,
        )

    # same name, ignoring case: send the user to the existing genre
    stmt = (
        select(Genre)
        .where(func.lower(Genre.name) == form.name.lower())
        .order_by(Genre.id.asc())
        .limit(1)
    )
    existing = (await db.execute(stmt)).scalar_one_or_none()
    if existing is not None:
        logger.info("genre %r already exists as %s", form.name, existing.id)
        return redirect(existing.url)

    genre = Genre(name=form.name)
    db.add(genre)
    await db.commit()
    logger.info("created genre %s", genre.id)
    return redirect(genre.url)


@router.get("/genre/{genre_id}")
async def genre_detail(
    request: Request,
    genre_id: RecordId,
    reader: Reader = Depends(get_reader),
):
    genre, books = await _genre_with_books(reader, genre_id)
    get_or_404(genre, "Genre not found")
    return render(
        request, "genre_detail.html", title="Genre Detail", genre=genre, genre_books=books
    )


@router.get("/genre/{genre_id}/delete")
async def genre_delete_get(
    request: Request,
    genre_id: RecordId,
    reader: Reader = Depends(get_reader),
):
    genre, books = await _genre_with_books(reader, genre_id)
    if (response := redirect_if_missing(genre, LIST_URL)) is not None:
        return response
    return render(
        request, "genre_delete.html", title="Delete Genre", genre=genre, genre_books=books
    )


@router.post("/genre/{genre_id}/delete")
async def genre_delete_post(
    request: Request,
    genre_id: RecordId,
    reader: Reader = Depends(get_reader),
    db: AsyncSession = Depends(get_async_db),
):
    genre, books = await _genre_with_books(reader, genre_id)
    if (response := redirect_if_missing(genre, LIST_URL)) is not None:
        return response

    if books:
        logger.warning("refusing to delete genre %s: %d book(s)", genre_id, len(books))
        return render(
            request, "genre_delete.html", title="Delete Genre", genre=genre, genre_books=books
        )

    await db.execute(delete(Genre).where(Genre.id == genre_id))
    await db.commit()
    logger.info("deleted genre %s", genre_id)
    return redirect(LIST_URL)


@router.get("/genre/{genre_id}/update")
async def genre_update_get(
    request: Request,
    genre_id: RecordId,
    reader: Reader = Depends(get_reader),
):
    genre = get_or_404(
        await reader.one(select(Genre).where(Genre.id == genre_id)), "Genre not found"
    )
    return render(
        request, "genre_form.html", title="Update Genre", genre=genre, values=genre.form_values()
    )


@router.post("/genre/{genre_id}/update")
async def genre_update_post(
    request: Request,
    genre_id: RecordId,
    data: Mapping[str, Any] = Depends(form_input),
    db: AsyncSession = Depends(get_async_db),
):
    genre = get_or_404(await db.get(Genre, genre_id), "Genre not found")

    form, errors = validate_form(GenreForm, data)
    if errors:
        return render(
            request,
            "genre_form.html",
            title="Update Genre",
            genre=genre,
            values=echo_values(data),
            errors=errors,
        )

    genre.name = form.name
    await db.commit()
    logger.info("updated genre %s", genre_id)
    return redirect(genre.url)
