# vidshare/services/base_service.py
"""
Base Service
Shared logging, validation and error translation for all services
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from vidshare.app.config import Config, get_config
from vidshare.app.models import is_valid_id
from vidshare.services.exceptions import (
    DatabaseError,
    InvalidIdentifierError,
    ResourceConflictError,
    ServiceError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
    ValidationError,
)


class BaseService(ABC):
    """
    Base class for services

    Provides:
    - Per-service logger
    - Input validation helpers
    - Pagination parameter normalization
    - Translation of low-level failures into ServiceError
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        self.logger = logging.getLogger(f"vidshare.services.{self.get_service_name()}")

    @abstractmethod
    def get_service_name(self) -> str:
        """Short name used for the logger"""

    # ========================================================================
    # Logging
    # ========================================================================

    def log_debug(self, message: str) -> None:
        self.logger.debug(message)

    def log_info(self, message: str) -> None:
        self.logger.info(message)

    def log_warning(self, message: str) -> None:
        self.logger.warning(f"⚠️ {message}")

    def log_error(self, message: str, error: Optional[Exception] = None) -> None:
        if error is not None:
            self.logger.error(f"❌ {message}: {type(error).__name__}: {error}")
        else:
            self.logger.error(f"❌ {message}")

    # ========================================================================
    # Validation
    # ========================================================================

    def validate_required(self, value: Any, field_name: str) -> None:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{field_name} is required", field=field_name)

    def validate_object_id(self, value: Any, field_name: str) -> str:
        """Return value if it is a well-formed identifier"""
        if not is_valid_id(value):
            raise InvalidIdentifierError(field_name, value)
        return value

    def validate_optional_object_id(self, value: Any, field_name: str) -> Optional[str]:
        if value is None:
            return None
        return self.validate_object_id(value, field_name)

    # ========================================================================
    # Pagination
    # ========================================================================

    def calculate_pagination(
        self, page: Optional[int], limit: Optional[int]
    ) -> Tuple[int, int, int]:
        """
        Normalize page/limit

        page defaults to 1 and is clamped to a minimum of 1; limit defaults
        to the configured default and is clamped to [1, max_limit].

        Returns:
            (page, limit, skip)
        """
        settings = self.config.pagination
        page = 1 if page is None else max(1, int(page))

        limit = settings.default_limit if limit is None else int(limit)
        limit = max(1, min(limit, settings.max_limit))

        return page, limit, (page - 1) * limit

    # ========================================================================
    # Error Handling
    # ========================================================================

    def handle_error(
        self,
        error: Exception,
        operation: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> ServiceError:
        """
        Map an exception to a ServiceError the caller should raise

        ServiceErrors pass through untouched.
        """
        if isinstance(error, ServiceError):
            return error

        context_str = f" {context}" if context else ""

        if isinstance(error, asyncio.TimeoutError):
            self.log_error(f"{operation} timed out{context_str}", error)
            return UpstreamTimeoutError(operation, self.config.query.max_execution_seconds)

        if isinstance(error, (OperationalError, InterfaceError)) or (
            isinstance(error, DBAPIError) and error.connection_invalidated
        ):
            self.log_error(f"{operation} could not reach the store{context_str}", error)
            return UpstreamUnavailableError(operation, str(error.orig or error))

        if isinstance(error, IntegrityError):
            self.log_warning(f"{operation} violated a uniqueness rule{context_str}")
            return ResourceConflictError(
                f"{operation} conflicts with an existing record", {"operation": operation}
            )

        if isinstance(error, SQLAlchemyError):
            self.log_error(f"{operation} failed in the database{context_str}", error)
            return DatabaseError(operation, str(error))

        self.log_error(f"{operation} failed unexpectedly{context_str}", error)
        return ServiceError(f"Unexpected error during {operation}", error_code="INTERNAL_ERROR")
