from fastapi import APIRouter, Depends, Request
from sqlalchemy import func, select

from dependencies import Reader, get_reader
from helpers import redirect, render
from models import Author, Book, BookInstance, BookStatus, Genre

router = APIRouter(tags=["catalog"])


def _count(model, *criteria):
    return select(func.count()).select_from(model).where(*criteria)


@router.get("/")
async def root():
    return redirect("/catalog")


@router.get("/catalog")
async def index(request: Request, reader: Reader = Depends(get_reader)):
    (
        book_count,
        book_instance_count,
        book_instance_available_count,
        author_count,
        genre_count,
    ) = await reader.gather(
        reader.scalar(_count(Book)),
        reader.scalar(_count(BookInstance)),
        reader.scalar(_count(BookInstance, BookInstance.status == BookStatus.available)),
        reader.scalar(_count(Author)),
        reader.scalar(_count(Genre)),
    )
    return render(
        request,
        "index.html",
        title="Local Library Home",
        book_count=book_count,
        book_instance_count=book_instance_count,
        book_instance_available_count=book_instance_available_count,
        author_count=author_count,
        genre_count=genre_count,
    )
