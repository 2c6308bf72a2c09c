from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.api_v1.api import api_router
from core.config import settings
from log import setup_logging_to_console

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging_to_console()
    logger.info("%s started (%s)", settings.PROJECT_NAME, settings.ENVIRONMENT_NAME)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            str(origin).rstrip("/") for origin in settings.BACKEND_CORS_ORIGINS
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    body_only = all(tuple(error.get("loc", ()))[:1] == ("body",) for error in errors)
    if errors and body_only:
        detail = "Missing required fields"
    else:
        detail = "Invalid request parameters"
    return JSONResponse(
        status_code=400,
        content={
            "detail": detail,
            "errors": jsonable_encoder(errors),
        },
    )


app.include_router(api_router, prefix=settings.API_V1_STR)
