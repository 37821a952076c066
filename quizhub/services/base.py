"""Shared service plumbing: the request principal, pagination and validation."""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from ..constants import ERROR_ADMIN_ONLY, ROLE_ADMIN
from ..utils.errors import ForbiddenError, ValidationError
from ..utils.timeutil import utc_now

if TYPE_CHECKING:
    from ..config import Config

T = TypeVar("T")

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of a request."""

    user_id: str
    role: str = "student"

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def require_admin(principal: Principal) -> None:
    """Raise ForbiddenError unless the principal is an administrator."""
    if not principal.is_admin:
        raise ForbiddenError(ERROR_ADMIN_ONLY)


@dataclass
class Page(Generic[T]):
    """One page of a paginated listing."""

    items: List[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return (self.page - 1) * self.limit + len(self.items) < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1


@dataclass
class FieldErrors:
    """Collects field-level validation failures before raising them together."""

    errors: List[Dict[str, str]] = field(default_factory=list)

    def add(self, field_name: str, message: str) -> None:
        self.errors.append({"field": field_name, "message": message})

    def check(self, condition: bool, field_name: str, message: str) -> None:
        """Record an error when the condition does not hold."""
        if not condition:
            self.add(field_name, message)

    def text(
        self,
        field_name: str,
        value: Optional[str],
        max_length: int,
        min_length: int = 1,
        label: Optional[str] = None,
    ) -> None:
        """Validate a required string's trimmed length."""
        label = label or field_name
        if value is None or not value.strip():
            self.add(field_name, f"{label} is required")
        elif not min_length <= len(value.strip()) <= max_length:
            self.add(
                field_name,
                f"{label} must be between {min_length} and {max_length} characters",
            )

    def choice(self, field_name: str, value: Any, choices: Iterable[Any]) -> None:
        choices = tuple(choices)
        if value not in choices:
            self.add(field_name, f"{field_name} must be one of: {', '.join(map(str, choices))}")

    def number(self, field_name: str, value: Any, minimum: float, maximum: float) -> None:
        if not isinstance(value, (int, float)) or isinstance(value, bool) or not minimum <= value <= maximum:
            self.add(field_name, f"{field_name} must be between {minimum} and {maximum}")

    def raise_if_any(self) -> None:
        if self.errors:
            message = self.errors[0]["message"] if len(self.errors) == 1 else "Validation failed"
            raise ValidationError(message, errors=list(self.errors))


class BaseService:
    """Base class for services that need configuration and a clock.

    Args:
        config: Application configuration
        clock: Callable returning the current aware UTC time
    """

    def __init__(self, config: "Config", clock: Optional[Clock] = None):
        self.config = config
        self.clock = clock or utc_now

    def page_params(self, page: Optional[int], limit: Optional[int]) -> tuple:
        """Normalise page/limit and compute the row offset.

        Returns:
            Tuple of (page, limit, skip)
        """
        pagination = self.config.pagination
        page = page if page and page > 0 else 1
        limit = limit if limit and limit > 0 else pagination.default_limit
        limit = min(limit, pagination.max_limit)
        return page, limit, (page - 1) * limit
