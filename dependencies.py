import asyncio
from collections.abc import Mapping
from types import MappingProxyType
from typing import Annotated, Any, Callable, List

from fastapi import Depends, HTTPException, Path, Query, Request, status
from sqlalchemy import Select, asc, desc
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database import get_sessionmaker
from schemas.shared import MAX_ID, SortControl, SortDirection

# path identifiers outside the primary key range can't name a record
RecordId = Annotated[int, Path(ge=1, le=MAX_ID)]


def parse_sort_items(items: List[str], allowed: Mapping[str, Any]) -> List[SortControl]:
    result: List[SortControl] = []

    for item in items:
        field_str, _, dir_str = item.partition(":")

        if field_str not in allowed:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid sort field '{field_str}'",
            )

        try:
            direction = SortDirection((dir_str or "asc").lower())
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid sort direction '{dir_str}'",
            )

        result.append(SortControl(sort_field=field_str, sort_direction=direction))

    return result


def sort_order(allowed: Mapping[str, Any], default: str, tiebreak: Any) -> Callable:
    """Build a dependency turning ``?sort=field:direction`` into ORDER BY clauses."""

    def dependency(
        sort: List[str] = Query(
            default=[], description="Sort spec like 'title:asc', 'name:desc'"
        )
    ) -> list:
        controls = parse_sort_items(sort, allowed) or [SortControl(sort_field=default)]
        order_exprs = [
            asc(allowed[c.sort_field])
            if c.sort_direction is SortDirection.asc
            else desc(allowed[c.sort_field])
            for c in controls
        ]
        order_exprs.append(tiebreak.asc())
        return order_exprs

    return dependency


class Reader:
    """Runs independent read queries concurrently, one session per query.

    An AsyncSession can't be shared between concurrent tasks, so every read
    gets its own short-lived session. Loaded objects stay usable after the
    session closes because the factory doesn't expire on commit.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self.sessionmaker = sessionmaker

    async def one(self, stmt: Select):
        async with self.sessionmaker() as db:
            return (await db.execute(stmt)).scalar_one_or_none()

    async def all(self, stmt: Select) -> list:
        async with self.sessionmaker() as db:
            return list((await db.execute(stmt)).scalars().unique().all())

    async def scalar(self, stmt: Select):
        async with self.sessionmaker() as db:
            return (await db.execute(stmt)).scalar_one()

    async def gather(self, *aws):
        return await asyncio.gather(*aws)


def get_reader(
    sessionmaker: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
) -> Reader:
    return Reader(sessionmaker)


async def form_input(request: Request) -> Mapping[str, Any]:
    """Read the submitted form into a read-only mapping.

    A key sent once maps to its string; a key sent several times maps to the
    list of strings, the way the form transport delivers it.
    """
    form = await request.form()
    data: dict[str, Any] = {}
    for key in form.keys():
        values = [v for v in form.getlist(key) if isinstance(v, str)]
        data[key] = values[0] if len(values) == 1 else values
    return MappingProxyType(data)
