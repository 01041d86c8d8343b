"""Data carried in request and response bodies."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any

_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1


def _dump(data: Any) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def _require_str(data: dict, key: str) -> str:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"field `{key}` must be a string")
    return value


@dataclass
class Item:
    """One submitted item and the name of its image file."""

    item_name: str
    item_image: str
    quantity: int

    @classmethod
    def from_dict(cls, data: Any) -> Item:
        """Build an item from decoded JSON, checking every field."""
        if not isinstance(data, dict):
            raise ValueError("item must be an object")
        item_name = _require_str(data, "item_name")
        item_image = _require_str(data, "item_image")
        if "quantity" not in data:
            raise ValueError("missing field `quantity`")
        quantity = data["quantity"]
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValueError("field `quantity` must be an integer")
        if not _I32_MIN <= quantity <= _I32_MAX:
            raise ValueError("field `quantity` is out of range")
        return cls(item_name=item_name, item_image=item_image, quantity=quantity)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ItemSubmissionData:
    """The JSON document sent in the ``data`` field of a submission."""

    items: list[Item] = field(default_factory=list)

    @classmethod
    def from_json(cls, raw: str | bytes) -> ItemSubmissionData:
        """Parse a submission document; raises ValueError when it is invalid."""
        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ValueError(f"invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ValueError("submission must be an object")
        if "items" not in data:
            raise ValueError("missing field `items`")
        items = data["items"]
        if not isinstance(items, list):
            raise ValueError("field `items` must be an array")
        return cls(items=[Item.from_dict(entry) for entry in items])

    def to_json(self) -> str:
        return _dump({"items": [item.to_dict() for item in self.items]})


@dataclass
class Message:
    """A body holding a single message."""

    message: str

    def to_json(self) -> str:
        return _dump({"message": self.message})


@dataclass
class MessageOk:
    """A body holding a success flag and a message."""

    ok: bool = False
    message: str = "n/a"

    def to_json(self) -> str:
        return _dump({"ok": self.ok, "message": self.message})


@dataclass
class StatusConfig:
    """Service status, version and release date."""

    status: int
    version: str
    release_date: str

    def to_json(self) -> str:
        return _dump(
            {
                "status": self.status,
                "version": self.version,
                "release_date": self.release_date,
            }
        )