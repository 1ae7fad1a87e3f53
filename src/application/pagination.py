from dataclasses import dataclass
from typing import Generic, TypeVar

from src.domain.errors import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    """1-based page number plus page size."""

    page: int = 1
    page_size: int = 20

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValidationError("Page must be 1 or greater.", field="page")
        if self.page_size < 1:
            raise ValidationError("Page size must be 1 or greater.", field="page_size")

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size if self.total else 0
