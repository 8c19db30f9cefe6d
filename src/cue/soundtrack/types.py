"""Typed results of Soundtrack API operations."""

from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class Account:
    id: str
    business_name: str

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> "Account":
        return cls(id=node["id"], business_name=node.get("businessName") or "")


@dataclass(frozen=True)
class Location:
    id: str
    name: str


@dataclass(frozen=True)
class Zone:
    """A sound zone. `location` is None for zones the API cannot place."""

    id: str
    name: str
    account_id: str
    location: Location | None = None

    @classmethod
    def from_node(cls, node: dict[str, Any], account_id: str) -> "Zone":
        location = node.get("location")
        return cls(
            id=node["id"],
            name=node.get("name") or "",
            account_id=account_id,
            location=Location(id=location["id"], name=location.get("name") or "")
            if location
            else None,
        )


@dataclass(frozen=True)
class Assignable:
    """Music that can be assigned to a zone: a playlist or a schedule."""

    kind: str
    id: str
    name: str
    image_url: str | None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_node(cls, node: dict[str, Any]) -> "Assignable":
        sizes = ((node.get("display") or {}).get("image") or {}).get("sizes") or {}
        return cls(
            kind=node.get("__typename") or "",
            id=node["id"],
            name=node.get("name") or "",
            image_url=sizes.get("thumbnail"),
            created_at=node.get("createdAt"),
            updated_at=node.get("updatedAt"),
        )


@dataclass(frozen=True)
class AccountLibrary:
    playlists: list[Assignable]
    schedules: list[Assignable]


@dataclass(frozen=True)
class LoginResponse:
    token: str
    expires_at: datetime
    refresh_token: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "LoginResponse":
        expires_at = datetime.fromisoformat(payload["expiresAt"].replace("Z", "+00:00"))
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        return cls(
            token=payload["token"],
            expires_at=expires_at,
            refresh_token=payload["refreshToken"],
        )


def to_dict(value: Any) -> Any:
    """JSON-ready form of a result dataclass or list of them."""
    if isinstance(value, list):
        return [to_dict(v) for v in value]
    return asdict(value)
