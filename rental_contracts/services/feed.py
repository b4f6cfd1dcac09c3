"""Contract refresh feed: keeps one board view in sync with the backend.

A feed is the single subscription for its view. It refetches when the
socket reports a contract event and on a fixed polling interval, so a
missed event is caught by the next poll.
"""

import logging
from typing import Awaitable, Callable, List, Optional

from rental_contracts.models.contract import Contract
from rental_contracts.services.board import MY_CONTRACTS, ContractBoard, property_view
from rental_contracts.services.realtime import (
    CONTRACT_DELETED_EVENT,
    CONTRACT_REFRESH_EVENTS,
    SIGNATURE_REMINDER_EVENT,
    RealtimeClient,
)
from rental_contracts.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[List[Contract]]]


class ContractFeed:
    """Refetch loop for one named view on a ``ContractBoard``.

    Every fetch is stamped with an increasing sequence number. When an older
    fetch completes after a newer one was applied, its result is dropped.
    Contracts an action wrote to the board while the fetch was in flight
    keep their local copy.
    """

    def __init__(
        self,
        board: ContractBoard,
        fetcher: Fetcher,
        view: str = MY_CONTRACTS,
        realtime: Optional[RealtimeClient] = None,
        settings: Optional[Settings] = None,
        on_reminder: Optional[Callable[[dict], None]] = None,
    ):
        self.board = board
        self.fetcher = fetcher
        self.view = view
        self.realtime = realtime
        self.settings = settings or get_settings()
        self.on_reminder = on_reminder
        self._scheduler = None
        self._issued = 0
        self._applied = 0
        self.last_error: Optional[str] = None

    @classmethod
    def for_user(cls, client, board: ContractBoard, **kwargs) -> "ContractFeed":
        """Feed of the ``my`` view: every contract the caller is party to."""
        return cls(board, client.my_contracts, view=MY_CONTRACTS, **kwargs)

    @classmethod
    def for_property(cls, client, board: ContractBoard, property_id: str, **kwargs) -> "ContractFeed":
        """Feed of the contracts shown inside one property chat."""
        async def fetch():
            return await client.contracts_for_property(property_id)
        return cls(board, fetch, view=property_view(property_id), **kwargs)

    @property
    def scheduler(self):
        """Lazy-load APScheduler."""
        if self._scheduler is None:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            self._scheduler = AsyncIOScheduler()
        return self._scheduler

    @property
    def running(self) -> bool:
        return bool(self._scheduler and self._scheduler.running)

    async def refresh(self) -> bool:
        """Fetch and apply a snapshot. Returns False if it failed or went stale."""
        self._issued += 1
        seq = self._issued
        as_of = self.board.generation
        try:
            contracts = await self.fetcher()
        except Exception as e:
            self.last_error = str(e)
            logger.error(f"Refresh of '{self.view}' failed: {e}")
            return False

        if seq < self._applied:
            logger.debug(f"Dropping stale snapshot #{seq} for '{self.view}' (applied #{self._applied})")
            return False

        self._applied = seq
        self.last_error = None
        self.board.replace(self.view, contracts, as_of=as_of)
        return True

    async def _on_contract_event(self, data: dict) -> None:
        await self.refresh()

    def _on_contract_deleted(self, data: dict) -> None:
        contract_id = (data or {}).get("contractId")
        if contract_id:
            self.board.remove(contract_id)

    def _on_reminder(self, data: dict) -> None:
        logger.info(f"Signature reminder: {data.get('message', data)}")
        if self.on_reminder:
            self.on_reminder(data)

    def _subscribe(self) -> None:
        for event in CONTRACT_REFRESH_EVENTS:
            self.realtime.on(event, self._on_contract_event)
        self.realtime.on(CONTRACT_DELETED_EVENT, self._on_contract_deleted)
        self.realtime.on(SIGNATURE_REMINDER_EVENT, self._on_reminder)

    def _unsubscribe(self) -> None:
        for event in CONTRACT_REFRESH_EVENTS:
            self.realtime.off(event, self._on_contract_event)
        self.realtime.off(CONTRACT_DELETED_EVENT, self._on_contract_deleted)
        self.realtime.off(SIGNATURE_REMINDER_EVENT, self._on_reminder)

    async def start(self) -> None:
        """Fetch once, subscribe to contract events, then poll on an interval."""
        if self.running:
            logger.warning(f"Feed '{self.view}' already running")
            return

        await self.refresh()
        if self.realtime is not None:
            self._subscribe()

        from apscheduler.triggers.interval import IntervalTrigger

        self.scheduler.add_job(
            self.refresh,
            trigger=IntervalTrigger(seconds=self.settings.poll_interval_seconds),
            id=f"refresh_{self.view}",
            name=f"Refresh: {self.view}",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(f"Feed '{self.view}' polling every {self.settings.poll_interval_seconds}s")

    def stop(self) -> None:
        if self.realtime is not None:
            self._unsubscribe()
        if self._scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info(f"Feed '{self.view}' stopped")
