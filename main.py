import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from database import async_engine, create_tables
from helpers import templates
from routers import author, book, bookinstance, catalog, genre

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.CREATE_TABLES:
        await create_tables()
    yield
    await async_engine.dispose()


def error_page(request: Request, status_code: int, message: str):
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": "Error", "message": message, "status_code": status_code},
        status_code=status_code,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_page(request, exc.status_code, str(exc.detail))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    # an identifier that can't be a primary key names no record
    if exc.errors() and all(err["loc"][0] == "path" for err in exc.errors()):
        return error_page(request, 404, "Not found")
    return error_page(request, 422, "Invalid request")


async def store_failure_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("store failure on %s %s", request.method, request.url.path)
    return error_page(request, 500, "Internal Server Error")


def create_app() -> FastAPI:
    config.configure_logging()
    app = FastAPI(title="Local Library", lifespan=lifespan)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, store_failure_handler)

    app.include_router(catalog.router)
    app.include_router(author.router)
    app.include_router(book.router)
    app.include_router(genre.router)
    app.include_router(bookinstance.router)
    return app


app = create_app()
