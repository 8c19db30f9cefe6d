"""Cache backend protocol."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Cache(Protocol):
    """String key/value storage with explicit invalidation and no TTL."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def clear(self) -> None: ...

    async def count(self) -> int: ...
