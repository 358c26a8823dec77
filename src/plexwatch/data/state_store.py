"""JSON-backed pointer to the chat message that displays aggregate status."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from plexwatch.utils.logging import get_logger


logger = get_logger("StatusMessageStore")


class PointerRecord(BaseModel):
    """On-disk shape: ``{"statusMessageId": 1234}``."""

    model_config = ConfigDict(populate_by_name=True)

    status_message_id: Optional[int] = Field(default=None, alias="statusMessageId")


class StatusMessageStore:
    """Durable optional message id, read once at startup."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = asyncio.Lock()
        self._record = PointerRecord()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists():
            self._load()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def message_id(self) -> Optional[int]:
        return self._record.status_message_id

    def _load(self) -> None:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            self._record = PointerRecord.model_validate(data)
        except (OSError, ValueError, ValidationError) as exc:
            # an unreadable pointer only costs one duplicate message
            logger.warning("Ignoring unreadable status pointer %s: %s", self._path, exc)
            self._record = PointerRecord()

    def _dump(self) -> None:
        payload = json.dumps(self._record.model_dump(mode="json", by_alias=True))
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_path, self._path)

    async def set(self, message_id: Optional[int]) -> None:
        async with self._lock:
            self._record = PointerRecord(status_message_id=message_id)
            await asyncio.to_thread(self._dump)
