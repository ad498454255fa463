import enum
from datetime import date

from database import Base
from sqlalchemy import Column, Date, Enum, ForeignKey, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship


class BookStatus(str, enum.Enum):
    available = "Available"
    maintenance = "Maintenance"
    loaned = "Loaned"
    reserved = "Reserved"


def _iso(value: date | None) -> str:
    return value.isoformat() if value else ""


class Author(Base):
    __tablename__ = "authors"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    family_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    date_of_death: Mapped[date | None] = mapped_column(Date)

    books: Mapped[list["Book"]] = relationship(back_populates="author")

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.family_name}"

    @property
    def lifespan(self) -> str:
        born = self.date_of_birth.strftime("%b %d, %Y") if self.date_of_birth else ""
        died = self.date_of_death.strftime("%b %d, %Y") if self.date_of_death else ""
        if not born and not died:
            return ""
        return f"{born} - {died}"

    @property
    def url(self) -> str:
        return f"/catalog/author/{self.id}"

    def form_values(self) -> dict:
        return {
            "first_name": self.first_name,
            "family_name": self.family_name,
            "date_of_birth": _iso(self.date_of_birth),
            "date_of_death": _iso(self.date_of_death),
        }


class Genre(Base):
    __tablename__ = "genres"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    books: Mapped[list["Book"]] = relationship(
        secondary="book_genre",
        back_populates="genres",
    )

    @property
    def url(self) -> str:
        return f"/catalog/genre/{self.id}"

    def form_values(self) -> dict:
        return {"name": self.name}


class Book(Base):
    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(), nullable=False, index=True)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    isbn: Mapped[str] = mapped_column(String(32), nullable=False)
    author_id: Mapped[int] = mapped_column(ForeignKey("authors.id"), nullable=False)

    author: Mapped["Author"] = relationship(back_populates="books")

    # many-to-many: books → genres
    genres: Mapped[list["Genre"]] = relationship(
        secondary="book_genre",
        back_populates="books",
    )

    # only reached when a book is deleted while copies still exist
    instances: Mapped[list["BookInstance"]] = relationship(
        back_populates="book", cascade="all, delete-orphan"
    )

    @property
    def url(self) -> str:
        return f"/catalog/book/{self.id}"

    def form_values(self) -> dict:
        return {
            "title": self.title,
            "author": str(self.author_id),
            "summary": self.summary,
            "isbn": self.isbn,
            "genre": [str(g.id) for g in self.genres],
        }


class BookInstance(Base):
    __tablename__ = "book_instances"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    book_id: Mapped[int] = mapped_column(ForeignKey("books.id"), nullable=False)
    imprint: Mapped[str] = mapped_column(String(), nullable=False)
    status: Mapped[BookStatus] = mapped_column(
        Enum(BookStatus, values_callable=lambda e: [m.value for m in e], name="book_status"),
        nullable=False,
        default=BookStatus.maintenance,
        index=True,
    )
    due_back: Mapped[date | None] = mapped_column(Date)

    book: Mapped["Book"] = relationship(back_populates="instances")

    @property
    def due_back_formatted(self) -> str:
        return self.due_back.strftime("%b %d, %Y") if self.due_back else ""

    @property
    def url(self) -> str:
        return f"/catalog/bookinstance/{self.id}"

    def form_values(self) -> dict:
        return {
            "book": str(self.book_id),
            "imprint": self.imprint,
            "status": self.status.value,
            "due_back": _iso(self.due_back),
        }


book_genre = Table(
    "book_genre",
    Base.metadata,
    Column("book_id", ForeignKey("books.id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
)
