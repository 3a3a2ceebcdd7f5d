"""Error taxonomy and conversion of failures into typed outcomes."""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError


class ErrorCategory(str, Enum):
    """Categories of errors for better handling."""
    RESOLUTION = "resolution"  # No tenant could be resolved for the user
    FETCH = "fetch"  # Row or option retrieval failed
    VALIDATION = "validation"  # Request rejected before any mutation
    PERSISTENCE = "persistence"  # Update failed after it was attempted
    AUTH = "auth"  # Authentication/authorization failures
    NETWORK = "network"  # Connection issues, timeouts
    UNKNOWN = "unknown"  # Unknown errors


class DashboardError(Exception):
    """Base exception carrying a category and an HTTP status."""
    status_code: int = 500

    def __init__(self, message: str, category: ErrorCategory, status_code: Optional[int] = None, retryable: bool = False):
        self.message = message
        self.category = category
        self.retryable = retryable
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class NoTenantAccessError(DashboardError):
    """The user has no authorized tenant to act as."""
    def __init__(self, message: str = "No tenant access for this user"):
        super().__init__(message, ErrorCategory.RESOLUTION, status_code=403)


class FetchError(DashboardError):
    """Remote row or option retrieval failed."""
    def __init__(self, message: str, section: Optional[str] = None, retryable: bool = True):
        self.section = section
        super().__init__(message, ErrorCategory.FETCH, status_code=502, retryable=retryable)


class ValidationError(DashboardError):
    """Input validation errors."""
    def __init__(self, message: str):
        super().__init__(message, ErrorCategory.VALIDATION, status_code=400)


class PersistenceError(DashboardError):
    """An update call failed."""
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message, ErrorCategory.PERSISTENCE, status_code=status_code)


class AuthError(DashboardError):
    """Authentication/authorization errors."""
    def __init__(self, message: str, status_code: int = 401):
        super().__init__(message, ErrorCategory.AUTH, status_code=status_code)


@dataclass(frozen=True)
class ErrorDescriptor:
    """Serializable description of a failure, returned instead of raising."""
    category: ErrorCategory
    message: str
    retryable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        return data


def classify_error(error: Exception) -> Tuple[ErrorCategory, bool]:
    """
    Classify an error into a category and determine if it's retryable.

    Args:
        error: The exception to classify

    Returns:
        Tuple of (category, retryable)
    """
    if isinstance(error, DashboardError):
        return error.category, error.retryable

    # Lost or refused database connections
    if isinstance(error, (OperationalError, InterfaceError)):
        return ErrorCategory.NETWORK, True

    if isinstance(error, DBAPIError):
        return ErrorCategory.PERSISTENCE, False

    if isinstance(error, (ConnectionError, TimeoutError)):
        return ErrorCategory.NETWORK, True

    error_str = str(error).lower()
    if any(keyword in error_str for keyword in ['connection', 'timeout', 'network', 'refused']):
        return ErrorCategory.NETWORK, True

    if any(keyword in error_str for keyword in ['unauthorized', 'forbidden', '401', '403']):
        return ErrorCategory.AUTH, False

    return ErrorCategory.UNKNOWN, False


def describe_error(error: Exception) -> ErrorDescriptor:
    """Convert any exception into an ErrorDescriptor."""
    category, retryable = classify_error(error)
    message = error.message if isinstance(error, DashboardError) else str(error) or type(error).__name__
    return ErrorDescriptor(category=category, message=message, retryable=retryable)
