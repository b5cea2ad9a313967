"""Ordered named payloads attached to outbound commands."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class AttachmentBundle:
    """Name -> text content, kept in insertion order.

    Owned by one invoker and reused across its runs; clearing is the caller's
    job. Re-adding a name replaces its content in place.
    """

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def add(self, name: str, data: str | bytes) -> None:
        if isinstance(data, (bytes, bytearray)):
            # Wire format is JSON text.
            data = bytes(data).decode("utf-8", errors="replace")
        self._items[name] = data

    def add_file(self, path: str | Path, encoding: str = "utf-8") -> str:
        """Read a file as text and attach it under its basename.

        Returns the attachment name. OSError propagates to the caller.
        """
        p = Path(path).expanduser()
        content = p.read_text(encoding=encoding, errors="replace")
        self.add(p.name, content)
        logger.debug("attachment added name=%s chars=%d", p.name, len(content))
        return p.name

    def remove(self, name: str) -> bool:
        return self._items.pop(name, None) is not None

    def clear(self) -> None:
        self._items.clear()

    def names(self) -> list[str]:
        return list(self._items)

    def as_dict(self) -> dict[str, str]:
        return dict(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, name: object) -> bool:
        return name in self._items
