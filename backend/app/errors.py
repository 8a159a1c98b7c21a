from __future__ import annotations
import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from minio.error import S3Error
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

log = structlog.get_logger()


class DomainError(Exception):
    status_code = 400
    detail = "Bad request"

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail


# validation
class InvalidCode(DomainError):
    status_code = 400
    detail = "Invalid code"

class InvalidField(DomainError):
    status_code = 400
    detail = "Invalid field"

class PayloadTooLarge(DomainError):
    status_code = 413
    detail = "File too large"

class UnsupportedMediaType(DomainError):
    status_code = 415
    detail = "Unsupported video type (mp4 or mov required)"

# lookups
class EventNotFound(DomainError):
    status_code = 404
    detail = "Event not found"

class SubmissionNotFound(DomainError):
    status_code = 404
    detail = "Submission not found"

# state conflicts
class EventNotLive(DomainError):
    status_code = 409
    detail = "Event not live"

class SubmissionsClosed(DomainError):
    status_code = 409
    detail = "Submissions are closed"

class CodeAlreadyUsed(DomainError):
    status_code = 409
    detail = "Code already used"

class SubmissionMissing(DomainError):
    status_code = 409
    detail = "No submission for this event; redeem a code first"


async def domain_error_handler(request: Request, exc: DomainError):
    log.info("request_rejected", path=request.url.path, status=exc.status_code, reason=exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Malformed or missing fields are plain client errors
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

async def collaborator_error_handler(request: Request, exc: Exception):
    log.error("collaborator_failure", path=request.url.path, error=type(exc).__name__, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Server error"})

def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, collaborator_error_handler)
    app.add_exception_handler(S3Error, collaborator_error_handler)
    app.add_exception_handler(RedisError, collaborator_error_handler)
