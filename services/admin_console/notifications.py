"""Transient user-facing messages (the web client's toasts)."""

from dataclasses import dataclass, field
from typing import Literal

Level = Literal["info", "success", "error"]

# Toasts stack on screen; older ones fall off
MAX_VISIBLE = 5


@dataclass(frozen=True)
class Notification:
    level: Level
    message: str


@dataclass
class Notifications:
    limit: int = MAX_VISIBLE
    items: list[Notification] = field(default_factory=list)

    def _push(self, level: Level, message: str) -> None:
        self.items.append(Notification(level, message))
        del self.items[: -self.limit]

    def info(self, message: str) -> None:
        self._push("info", message)

    def success(self, message: str) -> None:
        self._push("success", message)

    def error(self, message: str) -> None:
        self._push("error", message)

    @property
    def errors(self) -> list[str]:
        return [n.message for n in self.items if n.level == "error"]

    @property
    def last(self) -> Notification | None:
        return self.items[-1] if self.items else None

    def drain(self) -> list[Notification]:
        """Hand the pending messages to the display and forget them."""
        shown, self.items = self.items, []
        return shown

    def clear(self) -> None:
        self.items.clear()
