"""Cursor pagination for GraphQL connections."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a connection."""

    items: list[T]
    has_next_page: bool
    end_cursor: str | None = None


def parse_connection(
    connection: dict[str, Any], node: Callable[[dict[str, Any]], T]
) -> Page[T]:
    """Build a Page from a `{pageInfo, edges: [{node}]}` connection object."""
    page_info = connection.get("pageInfo") or {}
    return Page(
        items=[node(edge["node"]) for edge in connection.get("edges") or []],
        has_next_page=bool(page_info.get("hasNextPage")),
        end_cursor=page_info.get("endCursor"),
    )


async def paginate(
    fetch_page: Callable[[str | None], Awaitable[Page[T]]],
) -> list[T]:
    """Fetch every page, passing each page's end cursor to the next request.

    Items are accumulated in page order. Iteration stops when a page reports
    no next page, or reports one without a cursor to continue from.
    """
    items: list[T] = []
    cursor: str | None = None
    while True:
        page = await fetch_page(cursor)
        items.extend(page.items)
        if not page.has_next_page or not page.end_cursor:
            return items
        cursor = page.end_cursor
