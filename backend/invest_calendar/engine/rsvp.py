"""RSVP state machine with optimistic updates.

Confirmed responses (what the backend acknowledged) are the single source of
truth. A click adds an optimistic overlay for the event; the visible status is
the newest overlay if any, else the confirmed record, else pending. A write
ends either confirmed (record replaced) or rolled back (overlay dropped, the
visible status falls back to the confirmed value).

pending, accepted and declined can each move to any other status.
"""
import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from invest_calendar.engine.backend import BackendError, CalendarBackend
from invest_calendar.engine.types import UserEventResponse
from invest_calendar.models.response import ResponseStatus

logger = logging.getLogger(__name__)


class WriteState(str, enum.Enum):
    pending_local = "pending_local"
    confirmed = "confirmed"
    rolled_back = "rolled_back"


@dataclass(eq=False)
class ResponseWrite:
    """One user-initiated RSVP change and how it ended."""

    event_id: str
    target: ResponseStatus
    previous: ResponseStatus
    note: Optional[str] = None
    state: WriteState = WriteState.pending_local
    error: Optional[str] = None
    noop: bool = False


class RsvpStateMachine:
    def __init__(
        self,
        backend: CalendarBackend,
        user_id: str,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._backend = backend
        self._user_id = user_id
        self._on_change = on_change
        self._confirmed: dict[str, UserEventResponse] = {}
        self._in_flight: dict[str, list[ResponseWrite]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        # Bumped on every confirmed write; _written_at maps event id to the epoch of its last one.
        self._epoch = 0
        self._written_at: dict[str, int] = {}

    # ── Reads ──────────────────────────────────────────────────────

    @property
    def epoch(self) -> int:
        return self._epoch

    def load(self, responses: Iterable[UserEventResponse], since: Optional[int] = None) -> None:
        """Replace the confirmed set with freshly fetched records.

        `since` is the epoch read when the fetch started. Events confirmed after
        that, or with a write still in flight, keep their local record; the
        fetched value for them may predate the write.
        """
        fetched = {r.event_id: r for r in responses}
        if since is not None:
            keep = {
                event_id
                for event_id in set(self._confirmed) | set(self._in_flight)
                if self._written_at.get(event_id, 0) > since or self.is_writing(event_id)
            }
            for event_id in keep:
                if event_id in self._confirmed:
                    fetched[event_id] = self._confirmed[event_id]
            if keep:
                logger.debug("Kept %d local RSVP records newer than the fetch", len(keep))
        self._confirmed = fetched
        self._notify()

    def response(self, event_id: str) -> Optional[UserEventResponse]:
        return self._confirmed.get(event_id)

    def confirmed_status(self, event_id: str) -> ResponseStatus:
        record = self._confirmed.get(event_id)
        return record.status if record else ResponseStatus.pending

    def status(self, event_id: str) -> ResponseStatus:
        """Status the user currently sees, optimistic overlay included."""
        writes = self._in_flight.get(event_id)
        if writes:
            return writes[-1].target
        return self.confirmed_status(event_id)

    def has_response(self, event_id: str) -> bool:
        return event_id in self._confirmed or bool(self._in_flight.get(event_id))

    def is_writing(self, event_id: str) -> bool:
        return bool(self._in_flight.get(event_id))

    # ── Writes ─────────────────────────────────────────────────────

    def _lock_for(self, event_id: str) -> asyncio.Lock:
        if event_id not in self._locks:
            self._locks[event_id] = asyncio.Lock()
        return self._locks[event_id]

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()

    async def set_response(
        self,
        event_id: str,
        status: ResponseStatus,
        note: Optional[str] = None,
    ) -> ResponseWrite:
        """Optimistically show `status`, persist it, confirm or roll back.

        Writes for the same event queue behind each other; writes for different
        events proceed concurrently. Failures are reported on the returned
        ResponseWrite, never raised.
        """
        target = ResponseStatus(status)
        write = ResponseWrite(event_id=event_id, target=target, previous=self.status(event_id), note=note)
        self._in_flight.setdefault(event_id, []).append(write)
        self._notify()

        try:
            async with self._lock_for(event_id):
                current = self._confirmed.get(event_id)
                if current is not None and current.status == target and note in (None, current.note):
                    logger.debug("RSVP for event %s already %s; nothing to send", event_id, target.value)
                    write.state = WriteState.confirmed
                    write.noop = True
                    return write

                try:
                    saved = await self._backend.submit_response(self._user_id, event_id, target, note)
                except BackendError as exc:
                    logger.warning("RSVP %s for event %s failed, rolling back: %s", target.value, event_id, exc)
                    write.state = WriteState.rolled_back
                    write.error = str(exc)
                    return write

                self._confirmed[event_id] = saved
                self._epoch += 1
                self._written_at[event_id] = self._epoch
                write.state = WriteState.confirmed
                logger.info("RSVP for event %s confirmed as %s", event_id, saved.status.value)
                return write
        finally:
            pending = self._in_flight.get(event_id, [])
            if write in pending:
                pending.remove(write)
            if not pending:
                self._in_flight.pop(event_id, None)
            self._notify()
