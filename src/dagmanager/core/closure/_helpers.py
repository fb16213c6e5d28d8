"""Argument guards and hop-bound resolution shared by the closure API.

Callers hand us identifiers from their own domain (request params,
ORM primary keys). These guards are the trust boundary: anything that
is not exactly what the closure table stores is rejected here, before
a query is built or a transaction opened.
"""

from collections.abc import Iterable

from dagmanager.contracts.errors import InvalidArgumentError


def require_vertex(value: object, name: str = "vertex") -> int:
    """Return ``value`` if it is a positive int, else raise.

    bool is rejected even though it subclasses int.
    """
    if type(value) is not int or value < 1:
        raise InvalidArgumentError(f"{name} must be a positive integer, got {value!r}")
    return value


def require_vertex_ids(values: Iterable[object] | int, name: str = "vertex_ids") -> list[int]:
    """Validate one vertex id or a collection of them.

    An empty collection is allowed and matches nothing.
    """
    if type(values) is int:
        return [require_vertex(values, name)]
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise InvalidArgumentError(f"{name} must be an integer or a collection of integers, got {values!r}")
    return [require_vertex(value, name) for value in values]


def require_source(value: object) -> str:
    """Return ``value`` if it is a non-empty string, else raise."""
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(f"source must be a non-empty string, got {value!r}")
    return value


def resolve_max_hops(override: int | None, ceiling: int) -> int:
    """Effective hop bound for a query.

    An override is clamped to [0, ceiling]; without one the ceiling
    applies as is.
    """
    if override is None:
        return ceiling
    return max(min(override, ceiling), 0)
