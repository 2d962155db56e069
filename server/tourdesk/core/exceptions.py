"""Custom exceptions following RFC 9457 Problem Details for HTTP APIs."""

import logging
import uuid
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .clock import utcnow

logger = logging.getLogger(__name__)


class ProblemDetailsException(HTTPException):
    """
    Base exception class following RFC 9457 Problem Details for HTTP APIs.

    https://tools.ietf.org/rfc/rfc9457.txt
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize Problem Details exception.

        Args:
            status_code: HTTP status code
            title: Short, human-readable summary of the problem type
            detail: Human-readable explanation specific to this occurrence
            type_uri: URI reference that identifies the problem type
            instance: URI reference that identifies the specific occurrence
            extensions: Additional problem-specific information
            headers: HTTP headers to include in response
        """
        self.status_code = status_code
        self.title = title
        self.type_uri = type_uri or f"about:blank#{status_code}"
        self.instance = instance
        self.extensions = extensions or {}

        self.problem_details = {
            "type": self.type_uri,
            "title": self.title,
            "status": self.status_code,
        }

        if detail:
            self.problem_details["detail"] = detail

        if self.instance:
            self.problem_details["instance"] = self.instance

        self.problem_details.update(self.extensions)

        super().__init__(
            status_code=status_code,
            detail=self.problem_details,
            headers=headers
        )
        # HTTPException stores the payload in .detail; keep the message readable
        self.message = detail or title

    def __str__(self) -> str:
        return self.message


class ValidationError(ProblemDetailsException):
    """Client-detectable bad input, raised before any gateway call."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        errors: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if errors:
            extensions["errors"] = errors

        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri="https://tourdesk.dev/problems/validation-error",
            instance=instance,
            extensions=extensions,
        )


class AuthenticationError(ProblemDetailsException):
    """Exception for authentication errors."""

    def __init__(
        self,
        detail: str = "Authorization credentials are required",
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=401,
            title="Authorization Required",
            detail=detail,
            type_uri="https://tourdesk.dev/problems/authorization-required",
            instance=instance,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ProblemDetailsException):
    """Exception for authorization errors."""

    def __init__(
        self,
        detail: str = "Insufficient permissions to access this resource",
        required_role: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if required_role:
            extensions["required_role"] = required_role

        super().__init__(
            status_code=403,
            title="Access Forbidden",
            detail=detail,
            type_uri="https://tourdesk.dev/problems/access-forbidden",
            instance=instance,
            extensions=extensions,
        )


class NotFoundError(ProblemDetailsException):
    """Exception for resource not found errors."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"The requested {resource_type}"
            if resource_id:
                detail += f" with ID '{resource_id}'"
            detail += " could not be found"

        extensions = {
            "resource_type": resource_type,
        }
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri="https://tourdesk.dev/problems/resource-not-found",
            instance=instance,
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """Exception for requests that conflict with the current resource state."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        instance: Optional[str] = None,
    ):
        extensions = {}
        if conflicting_resource:
            extensions["conflicting_resource"] = conflicting_resource

        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri="https://tourdesk.dev/problems/resource-conflict",
            instance=instance,
            extensions=extensions,
        )


class GatewayError(ProblemDetailsException):
    """A call to the backing store failed (network, auth or constraint)."""

    def __init__(
        self,
        detail: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        extensions = {"retryable": False}
        if operation:
            extensions["operation"] = operation
        if table:
            extensions["table"] = table

        super().__init__(
            status_code=502,
            title="Gateway Error",
            detail=detail,
            type_uri="https://tourdesk.dev/problems/gateway-error",
            instance=instance,
            extensions=extensions,
        )
        self.operation = operation
        self.table = table


class StaleWriteError(ConflictError):
    """A conditional update found the row no longer in the state it was read in."""

    def __init__(self, table: str, row_id: str):
        super().__init__(
            detail=f"Row {row_id} in '{table}' changed since it was read",
            conflicting_resource={"table": table, "id": row_id},
        )
        self.problem_details.update({
            "code": "STALE_WRITE",
            "retryable": True,
        })
        self.table = table
        self.row_id = row_id


class PartialFailureError(ProblemDetailsException):
    """One step of a multi-step workflow failed after earlier steps succeeded."""

    def __init__(
        self,
        workflow: str,
        failed_step: str,
        completed_steps: List[str],
        cause: Optional[str] = None,
        detail: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        if not detail:
            detail = f"{workflow} stopped at step '{failed_step}'"
            if cause:
                detail += f": {cause}"

        super().__init__(
            status_code=500,
            title="Partial Failure",
            detail=detail,
            type_uri="https://tourdesk.dev/problems/partial-failure",
            instance=instance,
            extensions={
                "workflow": workflow,
                "failed_step": failed_step,
                "completed_steps": completed_steps,
            },
        )
        self.workflow = workflow
        self.failed_step = failed_step
        self.completed_steps = completed_steps


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """
    Exception handler for Problem Details exceptions.

    Args:
        request: FastAPI request object
        exc: Problem Details exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.problem_details,
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request body validation errors as a problem with violations."""
    violations = [
        {
            "path": ".".join(str(part) for part in error.get("loc", ())),
            "message": error.get("msg", "invalid value"),
        }
        for error in exc.errors()
    ]

    return JSONResponse(
        status_code=422,
        content={
            "type": "https://tourdesk.dev/problems/request-validation",
            "title": "Request Validation Failed",
            "status": 422,
            "instance": str(request.url),
            "violations": violations,
        },
        media_type="application/problem+json",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Generic exception handler that converts unhandled exceptions to Problem Details format.

    Args:
        request: FastAPI request object
        exc: Unhandled exception

    Returns:
        JSONResponse: Problem Details formatted response
    """
    error_id = str(uuid.uuid4())

    logger.error(
        "Unhandled exception",
        exc_info=exc,
        extra={"error_id": error_id, "path": request.url.path},
    )

    problem_details = {
        "type": "https://tourdesk.dev/problems/internal-server-error",
        "title": "Internal Server Error",
        "status": 500,
        "detail": "An unexpected error occurred while processing the request",
        "instance": str(request.url),
        "error_id": error_id,
        "timestamp": utcnow().isoformat() + "Z",
    }

    return JSONResponse(
        status_code=500,
        content=problem_details,
        media_type="application/problem+json",
    )
