import logging
from contextlib import asynccontextmanager
from typing import Annotated, Optional

from fastapi import FastAPI, Response, Request, Depends, Path, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from socialmedia.account_manager import AccountManager
from socialmedia.config import settings
from socialmedia.exceptions import SocialMediaError, UNEXPECTED_ERROR_DETAIL
from socialmedia.logging_utils import setup_logging, RequestLoggingMiddleware, log_operation_data
from socialmedia.message_manager import MessageManager
from socialmedia.metrics import record_operation_outcome, render_metrics
from socialmedia.schemas import (
    AccountRegistration,
    AccountResponse,
    ErrorResponse,
    HealthResponse,
    LoginCredentials,
    MessageCandidate,
    MessageResponse,
    MessageTextUpdate,
)
from socialmedia.storage import (
    AccountRepository,
    MessageRepository,
    check_db_health,
    get_db,
    init_db,
)
from socialmedia.utils import MAX_ID, MIN_ID


# Setup structured JSON logging
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    - Startup: Initialize database and create tables
    """
    init_db()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Accounts and short text messages",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

AccountIdPath = Annotated[int, Path(ge=MIN_ID, le=MAX_ID, description="accountId of the account")]
MessageIdPath = Annotated[int, Path(ge=MIN_ID, le=MAX_ID, description="messageId of the message")]


# =============================================================================
# Dependencies
# =============================================================================

def get_account_manager(db: Session = Depends(get_db)) -> AccountManager:
    return AccountManager(AccountRepository(db))


def get_message_manager(db: Session = Depends(get_db)) -> MessageManager:
    return MessageManager(MessageRepository(db), AccountRepository(db))


def _operation_name(request: Request) -> str:
    """Operation name for a request: the name of the matched route."""
    route = request.scope.get("route")
    return getattr(route, "name", None) or request.url.path


def record_outcome(request: Request, operation: str, result: str, **fields) -> None:
    """Count an operation outcome and attach it to the request log."""
    record_operation_outcome(operation, result)
    log_operation_data(request, operation=operation, result=result, **fields)


# =============================================================================
# Error Handlers
# =============================================================================

@app.exception_handler(SocialMediaError)
async def social_media_error_handler(request: Request, exc: SocialMediaError) -> JSONResponse:
    """Translate a manager failure into its status code and message."""
    logger.info(f"{exc.kind}: {exc.message}")
    record_outcome(request, _operation_name(request), exc.kind)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.message).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and path parameters are caller errors (400)."""
    logger.warning(f"Request validation failed: {exc.errors()}")
    record_outcome(request, _operation_name(request), "invalid_request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(detail="Invalid request body").model_dump(),
    )


@app.exception_handler(SQLAlchemyError)
async def datastore_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Datastore failures are reported with a generic message only."""
    logger.exception("Datastore operation failed")
    record_outcome(request, _operation_name(request), "unexpected")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(detail=UNEXPECTED_ERROR_DETAIL).model_dump(),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error")
    record_outcome(request, _operation_name(request), "unexpected")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(detail=UNEXPECTED_ERROR_DETAIL).model_dump(),
    )


# =============================================================================
# Health Check Routes
# =============================================================================

@app.get("/health/live", response_model=HealthResponse)
async def health_live() -> HealthResponse:
    """
    Liveness probe - always returns 200 once the app is running.
    """
    return HealthResponse(status="ok")


@app.get("/health/ready", response_model=HealthResponse)
async def health_ready(response: Response) -> HealthResponse:
    """
    Readiness probe - returns 200 only if the DB is reachable and the
    account and message tables exist, otherwise 503.
    """
    if not check_db_health():
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(
            status="not_ready",
            reason="Database not reachable or schema not applied"
        )

    return HealthResponse(status="ready")


# =============================================================================
# Account Routes
# =============================================================================

_account_errors = {
    400: {"model": ErrorResponse, "description": "Blank username, short password or malformed body"},
    409: {"model": ErrorResponse, "description": "Username already exists"},
}


@app.post("/register", response_model=AccountResponse, responses=_account_errors)
def register(
    candidate: AccountRegistration,
    request: Request,
    manager: AccountManager = Depends(get_account_manager),
) -> AccountResponse:
    """
    Register a new account.

    Any accountId in the body is ignored; the id is assigned on insert.
    """
    account = manager.register_account(candidate)
    record_outcome(request, "register", "success", account_id=account.account_id)
    return AccountResponse.model_validate(account)


@app.post(
    "/login",
    response_model=AccountResponse,
    responses={401: {"model": ErrorResponse, "description": "Invalid username or password"}},
)
def login(
    credentials: LoginCredentials,
    request: Request,
    manager: AccountManager = Depends(get_account_manager),
) -> AccountResponse:
    """
    Check credentials and return the matching account.

    No session or token is issued.
    """
    account = manager.authenticate(credentials)
    record_outcome(request, "login", "success", account_id=account.account_id)
    return AccountResponse.model_validate(account)


@app.get("/accounts/{account_id}/messages", response_model=list[MessageResponse])
def get_messages_by_account_id(
    account_id: AccountIdPath,
    request: Request,
    manager: MessageManager = Depends(get_message_manager),
) -> list[MessageResponse]:
    """List the messages posted by an account (empty for unknown accounts)."""
    messages = manager.get_messages_by_account_id(account_id)
    record_outcome(request, "get_messages_by_account_id", "success", account_id=account_id)
    return [MessageResponse.model_validate(message) for message in messages]


# =============================================================================
# Message Routes
# =============================================================================

@app.post(
    "/messages",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid message"}},
)
def create_message(
    candidate: MessageCandidate,
    request: Request,
    manager: MessageManager = Depends(get_message_manager),
) -> MessageResponse:
    message = manager.create_message(candidate)
    record_outcome(
        request,
        "create_message",
        "success",
        account_id=message.posted_by,
        message_id=message.message_id,
    )
    return MessageResponse.model_validate(message)


@app.get("/messages", response_model=list[MessageResponse])
def get_all_messages(
    request: Request,
    manager: MessageManager = Depends(get_message_manager),
) -> list[MessageResponse]:
    messages = manager.get_all_messages()
    record_outcome(request, "get_all_messages", "success")
    return [MessageResponse.model_validate(message) for message in messages]


@app.get("/messages/{message_id}", response_model=Optional[MessageResponse])
def get_message_by_id(
    message_id: MessageIdPath,
    request: Request,
    manager: MessageManager = Depends(get_message_manager),
) -> Optional[MessageResponse]:
    """Return the message, or null when it does not exist."""
    message = manager.get_message_by_id(message_id)
    if message is None:
        record_outcome(request, "get_message_by_id", "not_found", message_id=message_id)
        return None
    record_outcome(request, "get_message_by_id", "success", message_id=message_id)
    return MessageResponse.model_validate(message)


@app.delete("/messages/{message_id}", response_model=Optional[int])
def delete_message_by_id(
    message_id: MessageIdPath,
    request: Request,
    manager: MessageManager = Depends(get_message_manager),
) -> Optional[int]:
    """Return 1 when a message was deleted, null when there was none."""
    deleted = manager.delete_message_by_id(message_id)
    result = "success" if deleted else "not_found"
    record_outcome(request, "delete_message_by_id", result, message_id=message_id)
    return deleted


@app.patch(
    "/messages/{message_id}",
    response_model=int,
    responses={400: {"model": ErrorResponse, "description": "Invalid message or unknown id"}},
)
def update_message_text_by_id(
    message_id: MessageIdPath,
    update: MessageTextUpdate,
    request: Request,
    manager: MessageManager = Depends(get_message_manager),
) -> int:
    """Replace a message's text; returns the number of updated messages (1)."""
    updated = manager.update_message_text_by_id(message_id, update.message_text)
    record_outcome(request, "update_message_text_by_id", "success", message_id=message_id)
    return updated


# =============================================================================
# Metrics Route
# =============================================================================

@app.get("/metrics")
async def metrics() -> Response:
    """
    Expose Prometheus-style metrics.

    Includes http_requests_total, operation_outcomes_total and
    request_latency_seconds.
    """
    body, content_type = render_metrics()
    return Response(content=body, media_type=content_type)
