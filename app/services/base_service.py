"""Base class for caller actions on a single proposal."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from app.core.exceptions import AppError
from app.schemas.auth import CallerIdentity
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

RequestT = TypeVar("RequestT")
ResultT = TypeVar("ResultT")


class BaseService(ABC, Generic[RequestT, ResultT]):
    """A caller's action on one proposal: validate the request, then run it.

    Application errors pass through unchanged. Anything else is logged and
    wrapped in ``AppError`` so the endpoint answers with an opaque 500.
    """

    def __init__(self):
        self.logger = LOGGER

    async def execute(self, caller: CallerIdentity, proposal_id: int, request: RequestT) -> ResultT:
        """Validate, then run.

        Raises:
            AppError: If validation or execution fails
        """
        try:
            self.validate(caller, proposal_id, request)

            return await self.run(caller, proposal_id, request)

        except AppError:
            raise

        except Exception as e:
            self.logger.error(
                f"{self.__class__.__name__} failed on proposal {proposal_id}: {str(e)}",
                exc_info=True,
                extra={
                    "service": self.__class__.__name__,
                    "proposal_id": proposal_id,
                    "user_id": str(caller.id),
                },
            )
            raise AppError(f"Service execution failed: {str(e)}", original_error=e)

    def validate(self, caller: CallerIdentity, proposal_id: int, request: RequestT) -> None:
        """Reject bad input before anything is read or written.

        Raises:
            ValidationError: If input is invalid
        """

    @abstractmethod
    async def run(self, caller: CallerIdentity, proposal_id: int, request: RequestT) -> ResultT:
        """Perform the action."""
