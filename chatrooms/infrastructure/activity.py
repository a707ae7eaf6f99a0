# chatrooms/infrastructure/activity.py
import asyncio
import logging
from datetime import UTC, datetime
from typing import Any, Mapping, Optional


class ActivityRecorder:
    """Fire-and-forget audit trail of user activity.

    record() schedules the write and returns immediately; a failing write is
    reported on the recorder's own logger and never reaches the caller.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger("ChatAPI.activity")
        self._pending: set[asyncio.Task] = set()

    def record(
        self,
        user_id: int,
        activity: str,
        timestamp: Optional[datetime] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> None:
        entry = {
            "user_id": user_id,
            "activity": activity,
            "timestamp": (timestamp or datetime.now(UTC)).isoformat(),
            "ip_address": (metadata or {}).get("ip_address"),
            "user_agent": (metadata or {}).get("user_agent"),
        }
        try:
            task = asyncio.get_running_loop().create_task(self._write(entry))
        except RuntimeError:
            # no loop running (sync callers, shutdown): write inline
            self._write_now(entry)
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write(self, entry: dict) -> None:
        self._write_now(entry)

    def _write_now(self, entry: dict) -> None:
        try:
            self.logger.info(
                f"User activity: user_id={entry['user_id']} "
                f"activity={entry['activity']!r} ip_address={entry['ip_address']} "
                f"user_agent={entry['user_agent']!r} timestamp={entry['timestamp']}",
                extra={"activity_entry": entry},
            )
        except Exception as e:
            logging.getLogger("ChatAPI").debug(f"Dropped activity record: {e!r}")

    async def flush(self) -> None:
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)


def request_metadata(request) -> dict:
    client = getattr(request, "client", None)
    return {
        "ip_address": client.host if client else None,
        "user_agent": request.headers.get("user-agent"),
    }
