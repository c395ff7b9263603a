from contextlib import asynccontextmanager

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from techblog import config
from techblog.api import articles
from techblog.api import auth as auth_api
from techblog.api import categories
from techblog.api import home
from techblog.core.errors import NotFound, ValidationError
from techblog.db import sa


logger = logging.getLogger("techblog")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await sa.init_sa_engine()
    if config.DB_CREATE_TABLES:
        # create_all is idempotent; set DB_CREATE_TABLES=false when migrations own the schema
        await sa.create_tables(sa.get_engine())
        logger.info("Tables ensured", extra={"event": "create_tables"})
    try:
        yield
    finally:
        await sa.close_sa_engine()


app = FastAPI(
    title="techblog",
    lifespan=lifespan,
    root_path=config.ROOT_PATH,
)
app.include_router(home.router)
app.include_router(articles.router)
app.include_router(articles.manage_router)
app.include_router(categories.router)
app.include_router(categories.manage_router)
app.include_router(auth_api.router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": exc.message, "errors": exc.errors})


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": f"{exc.entity} not found"})


# Basic logging configuration (can be overridden by server config)
logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
# Suppress noisy bcrypt version warning from passlib when using bcrypt>=4
logging.getLogger("passlib.handlers.bcrypt").setLevel(logging.ERROR)
