import asyncio
import logging
import os
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import bugsnag
from bugsnag.asgi import BugsnagMiddleware

from learnhub.auth.errors import AuthError
from learnhub.auth.jwt import ensure_signing_key
from learnhub.db import init_db
from learnhub.routes import auth
from learnhub.routes.portal import learner_router, operations_router, trainer_router
from learnhub.scheduler import scheduler
from learnhub.settings import settings
from learnhub.utils.logging import logger
from learnhub.utils.response import error_response


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application")

    # A missing or weak signing key stops startup instead of failing requests
    ensure_signing_key()
    await init_db()

    scheduler.start()

    yield

    logger.info("Shutting down application")
    scheduler.shutdown()


if settings.bugsnag_api_key:
    bugsnag.configure(
        api_key=settings.bugsnag_api_key,
        project_root=os.path.dirname(os.path.abspath(__file__)),
        release_stage=settings.env or "development",
        notify_release_stages=["development", "staging", "production"],
        auto_capture_sessions=True,
    )


app = FastAPI(lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logging.info(
        f"Incoming request: {request.method} {request.url.path} "
        f"from {request.client.host if request.client else 'unknown'}"
    )

    start_time = asyncio.get_event_loop().time()
    try:
        response = await call_next(request)
        process_time = asyncio.get_event_loop().time() - start_time

        logging.info(
            f"Request completed: {request.method} {request.url.path} "
            f"- Status: {response.status_code} - Duration: {process_time:.4f}s"
        )
        return response
    except Exception as e:
        process_time = asyncio.get_event_loop().time() - start_time
        logging.error(
            f"Error processing request: {request.method} {request.url.path} "
            f"- Error: {str(e)} - Duration: {process_time:.4f}s",
            exc_info=True,
        )
        raise


if settings.bugsnag_api_key:
    app.add_middleware(BugsnagMiddleware)


# Credentials are required so the browser sends the refresh cookie
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(learner_router, prefix="/learner", tags=["learner"])
app.include_router(trainer_router, prefix="/trainer", tags=["trainer"])
app.include_router(operations_router, prefix="/operations", tags=["operations"])


def _status_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logging.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)} "
        f"on {request.method} {request.url.path}",
        exc_info=True,
    )
    return error_response("An unexpected error occurred", 500, "Internal Server Error")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logging.warning(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )
    messages = [
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    ]
    return error_response(", ".join(messages), 422, "Validation Error")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc, AuthError):
        # The public message stays generic; the reason is for the logs only
        logging.info(
            f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.reason}"
        )
        return error_response(exc.detail, exc.status_code, exc.error)

    if exc.status_code >= 500:
        logging.error(
            f"HTTP {exc.status_code} error on {request.method} {request.url.path}: {exc.detail}"
        )
    else:
        logging.info(
            f"HTTP {exc.status_code} on {request.method} {request.url.path}: {exc.detail}"
        )

    message = exc.detail
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Route {request.method} {request.url.path} not found"

    return error_response(str(message), exc.status_code, _status_phrase(exc.status_code))


@app.api_route("/health", methods=["GET", "HEAD"])
async def health_check():
    return {"status": "ok"}
