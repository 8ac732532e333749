"""
Ledger error taxonomy and the HTTP boundary that maps it.

Services raise these errors from inside a unit of work; the unit rolls back
and the handlers registered here turn the error into the standard response
envelope.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base exception for ledger rule violations"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Ledger operation rejected"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(LedgerError):
    """Account, transaction or category does not exist for the caller"""
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class InactiveAccountError(LedgerError):
    """Mutation attempted on an account that is not active"""
    default_message = "Account is inactive"


class InsufficientFundsError(LedgerError):
    """Debit larger than an asset account's balance"""
    default_message = "Insufficient balance"


class CreditLimitExceededError(LedgerError):
    """Purchase would take a credit card over its limit"""
    default_message = "Transaction would exceed credit card limit"


class OverpaymentNotAllowedError(LedgerError):
    """Payment larger than the outstanding credit card debt"""
    default_message = "Insufficient balance to pay"


class InvalidAmountError(LedgerError):
    default_message = "Amount must be greater than zero"


class SameAccountTransferError(LedgerError):
    default_message = "Cannot transfer to the same account"


class CategoryResolutionError(LedgerError):
    default_message = "No valid category found. Please provide a categoryId in the request."


class LedgerValidationError(LedgerError):
    """Missing or inconsistent request field"""
    default_message = "Invalid input"


def error_body(status_code: int, message: str) -> dict:
    return {
        "statusCode": status_code,
        "data": None,
        "message": message,
        "success": False,
    }


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, exc.message))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()) if part != 'body')}: {err.get('msg')}"
        for err in errors
    ) or "Invalid input"
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(status.HTTP_422_UNPROCESSABLE_ENTITY, message),
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Persistence failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, "Something went wrong"),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(status.HTTP_500_INTERNAL_SERVER_ERROR, "Something went wrong"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the envelope-producing handlers to the application"""
    app.add_exception_handler(LedgerError, ledger_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
