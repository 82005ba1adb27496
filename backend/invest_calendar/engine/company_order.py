"""Company order store — the user's single ordered list of company rows."""
import asyncio
import logging
from typing import Iterable, Optional

from invest_calendar.engine.backend import BackendError, CalendarBackend
from invest_calendar.engine.grid import order_companies
from invest_calendar.engine.types import Company

logger = logging.getLogger(__name__)


def move(order: list[str], company_id: str, new_index: int) -> list[str]:
    """Return a copy of `order` with `company_id` moved to `new_index`.

    The index is clamped to the list bounds. Everything between the old and
    the new position shifts by exactly one; no gaps, no duplicates.
    """
    if company_id not in order:
        raise ValueError(f"Unknown company {company_id}")
    result = [cid for cid in order if cid != company_id]
    index = max(0, min(new_index, len(result)))
    result.insert(index, company_id)
    return result


class CompanyOrderStore:
    def __init__(self, backend: CalendarBackend, user_id: str):
        self._backend = backend
        self._user_id = user_id
        self._companies: dict[str, Company] = {}
        # Order as last loaded, and the visible order (loaded plus any pending move).
        self._loaded: list[str] = []
        self._order: list[str] = []
        self._pending: Optional[tuple[str, int]] = None
        self._lock = asyncio.Lock()
        self.last_error: Optional[str] = None

    def load(self, companies: Iterable[Company]) -> None:
        """Replace the list; rows sort by stored order, ties by id.

        A reorder still waiting on the backend is re-applied on top of the new
        list when its company is still present.
        """
        ordered = order_companies(companies)
        self._companies = {c.id: c for c in ordered}
        self._loaded = list(self._companies)
        self._order = self._with_pending(self._loaded)

    def _with_pending(self, order: list[str]) -> list[str]:
        if self._pending is None or self._pending[0] not in order:
            return list(order)
        return move(order, *self._pending)

    def positions(self) -> dict[str, int]:
        return {cid: index for index, cid in enumerate(self._order)}

    def ordered(self) -> list[Company]:
        """Companies in row order with dense display_order 0..n-1."""
        return [
            self._companies[cid].model_copy(update={"display_order": index})
            for index, cid in enumerate(self._order)
        ]

    async def reorder(self, company_id: str, new_index: int) -> bool:
        """Move a company row and persist; roll back to the loaded order on failure.

        Returns True once the backend accepted the new order.
        """
        async with self._lock:
            self._order = move(self._order, company_id, new_index)
            self._pending = (company_id, new_index)
            try:
                await self._backend.submit_company_order(self._user_id, company_id, new_index)
            except BackendError as exc:
                logger.warning("Reorder of %s to %d failed, restoring order: %s", company_id, new_index, exc)
                self._order = list(self._loaded)
                self.last_error = str(exc)
                return False
            finally:
                self._pending = None
            self._loaded = list(self._order)
            self.last_error = None
            if company_id in self._order:
                logger.info("Moved company %s to position %d", company_id, self._order.index(company_id))
            return True
