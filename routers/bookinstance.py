import logging
from collections.abc import Mapping
from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from database import get_async_db
from dependencies import Reader, RecordId, form_input, get_reader, sort_order
from helpers import echo_values, get_or_404, redirect, redirect_if_missing, render, validate_form
from models import Book, BookInstance, BookStatus
from schemas.bookinstance import BookInstanceForm

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["bookinstances"])

LIST_URL = "/catalog/bookinstances"

bookinstance_sort = sort_order(
    {
        "book": Book.title,
        "imprint": BookInstance.imprint,
        "status": BookInstance.status,
        "due_back": BookInstance.due_back,
    },
    default="book",
    tiebreak=BookInstance.id,
)


def _bookinstance(bookinstance_id: int):
    return (
        select(BookInstance)
        .options(joinedload(BookInstance.book))
        .where(BookInstance.id == bookinstance_id)
    )


def _book_list(reader: Reader):
    return reader.all(select(Book).order_by(Book.title.asc(), Book.id.asc()))


async def _render_form(
    request: Request, reader: Reader, title: str, values: dict, errors=None
):
    books = await _book_list(reader)
    return render(
        request,
        "bookinstance_form.html",
        title=title,
        book_list=books,
        statuses=list(BookStatus),
        values=values,
        errors=errors or [],
    )


@router.get("/bookinstances")
async def bookinstance_list(
    request: Request,
    order: list = Depends(bookinstance_sort),
    reader: Reader = Depends(get_reader),
):
    stmt = (
        select(BookInstance)
        .join(BookInstance.book)
        .options(joinedload(BookInstance.book))
        .order_by(*order)
    )
    instances = await reader.all(stmt)
    return render(
        request, "bookinstance_list.html", title="Book Instance List", bookinstance_list=instances
    )


@router.get("/bookinstance/create")
async def bookinstance_create_get(request: Request, reader: Reader = Depends(get_reader)):
    return await _render_form(
        request, reader, "Create BookInstance", {"status": BookStatus.maintenance.value}
    )


@router.post("/bookinstance/create")
async def bookinstance_create_post(
    request: Request,
    data: Mapping[str, Any] = Depends(form_input),
    reader: Reader = Depends(get_reader),
    db: AsyncSession = Depends(get_async_db),
):
    form, errors = validate_form(BookInstanceForm, data)
    if not errors and await db.get(Book, form.book) is None:
        errors = [{"field": "book", "msg": "Book does not exist."}]
    if errors:
        await db.rollback()
        return await _render_form(
            request, reader, "Create BookInstance", echo_values(data), errors
        )

    instance = BookInstance(**form.model_dump(exclude={"book"}), book_id=form.book)
    db.add(instance)
    await db.commit()
    logger.info("created book instance %s of book %s", instance.id, form.book)
    return redirect(instance.url)


@router.get("/bookinstance/{bookinstance_id}")
async def bookinstance_detail(
    request: Request,
    bookinstance_id: RecordId,
    reader: Reader = Depends(get_reader),
):
    instance = get_or_404(
        await reader.one(_bookinstance(bookinstance_id)), "Book copy not found"
    )
    return render(
        request,
        "bookinstance_detail.html",
        title=f"Copy: {instance.book.title}",
        bookinstance=instance,
    )


@router.get("/bookinstance/{bookinstance_id}/delete")
async def bookinstance_delete_get(
    request: Request,
    bookinstance_id: RecordId,
    reader: Reader = Depends(get_reader),
):
    instance = await reader.one(_bookinstance(bookinstance_id))
    if (response := redirect_if_missing(instance, LIST_URL)) is not None:
        return response
    return render(
        request, "bookinstance_delete.html", title="Delete BookInstance", bookinstance=instance
    )


@router.post("/bookinstance/{bookinstance_id}/delete")
async def bookinstance_delete_post(
    bookinstance_id: RecordId,
    db: AsyncSession = Depends(get_async_db),
):
    # nothing references a copy, so there is nothing to check
    result = await db.execute(delete(BookInstance).where(BookInstance.id == bookinstance_id))
    await db.commit()
    if result.rowcount:
        logger.info("deleted book instance %s", bookinstance_id)
    return redirect(LIST_URL)


@router.get("/bookinstance/{bookinstance_id}/update")
async def bookinstance_update_get(
    request: Request,
    bookinstance_id: RecordId,
    reader: Reader = Depends(get_reader),
):
    instance, books = await reader.gather(
        reader.one(_bookinstance(bookinstance_id)), _book_list(reader)
    )
    get_or_404(instance, "Book copy not found")
    return render(
        request,
        "bookinstance_form.html",
        title="Update BookInstance",
        book_list=books,
        statuses=list(BookStatus),
        bookinstance=instance,
        values=instance.form_values(),
        errors=[],
    )


@router.post("/bookinstance/{bookinstance_id}/update")
async def bookinstance_update_post(
    request: Request,
    bookinstance_id: RecordId,
    data: Mapping[str, Any] = Depends(form_input),
    reader: Reader = Depends(get_reader),
    db: AsyncSession = Depends(get_async_db),
):
    instance = get_or_404(
        await db.get(BookInstance, bookinstance_id), "Book copy not found"
    )

    form, errors = validate_form(BookInstanceForm, data)
    if not errors and await db.get(Book, form.book) is None:
        errors = [{"field": "book", "msg": "Book does not exist."}]
    if errors:
        await db.rollback()
        return await _render_form(
            request, reader, "Update BookInstance", echo_values(data), errors
        )

    instance.book_id = form.book
    instance.imprint = form.imprint
    instance.status = form.status
    instance.due_back = form.due_back
    await db.commit()
    logger.info("updated book instance %s", bookinstance_id)
    return redirect(instance.url)
