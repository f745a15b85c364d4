from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from lms_backend.api.acl import acl_router
from lms_backend.database import get_db, init_db
from lms_backend.seeder import seed_builtin_roles
from lms_backend.settings import settings

logger = logging.getLogger(__name__)


def startup_logic():

    init_db()

    db = next(get_db())
    try:
        seed_builtin_roles(db)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):

    startup_logic()

    yield

app = FastAPI(lifespan=lifespan)

origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def development_user(request: Request, call_next):
    # Development stand-in for the host authentication layer
    if settings.DEBUG_MODE == "development":
        user_id = request.headers.get("X-User-Id")
        if user_id is not None:
            request.state.user_id = user_id
    return await call_next(request)


app.include_router(
    acl_router,
    prefix="/acl",
    tags=["acl"]
)
