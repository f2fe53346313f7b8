from collections.abc import Callable, Iterable
from typing import TypeVar

T = TypeVar("T")


def filter_by_substring(
    items: Iterable[T], q: str | None, value_of: Callable[[T], object]
) -> list[T]:
    """Keep items whose selected value contains `q`, ignoring case."""
    if not q:
        return list(items)
    needle = q.lower()
    return [
        item
        for item in items
        if (value := value_of(item)) is not None and needle in str(value).lower()
    ]
