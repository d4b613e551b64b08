"""k1s0 paginate library."""

from .exceptions import PaginateError, PaginateErrorCodes
from .executor import QueryBuilder, QueryExecutor
from .loader import load_options
from .memory import Document, InMemoryCollection, InMemoryQuery
from .models import DEFAULT_LIMIT, PaginateOptions, PaginateResult
from .paginator import Paginator, install

__all__ = [
    "DEFAULT_LIMIT",
    "Document",
    "InMemoryCollection",
    "InMemoryQuery",
    "PaginateError",
    "PaginateErrorCodes",
    "PaginateOptions",
    "PaginateResult",
    "Paginator",
    "QueryBuilder",
    "QueryExecutor",
    "install",
    "load_options",
]
