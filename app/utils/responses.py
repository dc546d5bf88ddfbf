from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from fastapi import HTTPException, Request, status as http_status

from app.core.exceptions import (
    AppError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    PhaseError,
    UnauthorizedError,
    ValidationError,
)
from app.schemas.common import ApiResponse, ErrorDetail, ResponseMeta
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

# Most specific first; DatabaseError and unknown AppErrors fall through to 500
ERROR_STATUS = [
    (UnauthorizedError, http_status.HTTP_401_UNAUTHORIZED, "Unauthorized"),
    (ForbiddenError, http_status.HTTP_403_FORBIDDEN, "Forbidden"),
    (NotFoundError, http_status.HTTP_404_NOT_FOUND, "Not Found"),
    (ValidationError, http_status.HTTP_400_BAD_REQUEST, "Validation Error"),
    (PhaseError, http_status.HTTP_409_CONFLICT, "Phase Conflict"),
]


def _request_id(request: Optional[Request]) -> str:
    if request is not None:
        for attr in ("request_id", "correlation_id"):
            value = getattr(request.state, attr, None)
            if value:
                return value
    return str(uuid4())


def create_api_response(
    data: Any,
    message: str = "Operation successful",
    status: bool = True,
    request: Optional[Request] = None,
    api_version: str = "v1"
) -> Dict[str, Any]:
    """Create a standardized API response as a dictionary.

    Returns a dict to be compatible with FastAPI's response_model=dict.
    """
    meta = ResponseMeta(
        timestamp=datetime.now(timezone.utc),
        request_id=_request_id(request),
        api_version=api_version
    )

    data_dict: Dict[str, Any] = {}
    if isinstance(data, dict):
        data_dict = data
    elif hasattr(data, "model_dump"):
        data_dict = data.model_dump(mode="json")
    elif isinstance(data, list):
        data_dict = {"items": [item.model_dump(mode="json") if hasattr(item, "model_dump") else item for item in data]}
    elif data is not None:
        data_dict = {"value": data}

    response = ApiResponse(
        status=status,
        message=message,
        data=data_dict,
        meta=meta
    )
    return response.model_dump(mode="json")


def create_error_detail(
    title: str,
    status: int,
    detail: str,
    request: Optional[Request] = None,
    instance: Optional[str] = None,
    errors: Optional[List[Dict[str, Any]]] = None,
) -> ErrorDetail:
    """Create a standardized error detail (RFC 7807)."""
    return ErrorDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance or (request.url.path if request else None),
        request_id=_request_id(request),
        timestamp=datetime.now(timezone.utc),
        errors=errors or [],
    )


def http_error_from(error: AppError, request: Optional[Request] = None) -> HTTPException:
    """Map an application error to an HTTPException carrying an ErrorDetail.

    Storage and unexpected failures are logged and surfaced without detail.
    """
    for error_type, status_code, title in ERROR_STATUS:
        if isinstance(error, error_type):
            detail = create_error_detail(
                title=title,
                status=status_code,
                detail=str(error),
                request=request,
                errors=getattr(error, "errors", None),
            )
            headers = {"WWW-Authenticate": "Bearer"} if status_code == http_status.HTTP_401_UNAUTHORIZED else None
            return HTTPException(status_code=status_code, detail=detail.model_dump(mode="json"), headers=headers)

    LOGGER.error(
        f"Request failed: {str(error)}",
        exc_info=error.original_error or error,
        extra={"error_type": type(error).__name__, "database": isinstance(error, DatabaseError)},
    )
    detail = create_error_detail(
        title="Internal Server Error",
        status=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
        request=request,
    )
    return HTTPException(
        status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail.model_dump(mode="json"),
    )
