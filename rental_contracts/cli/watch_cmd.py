"""Watch command: live contract list driven by socket events and polling"""

import asyncio
import logging
from typing import Optional

import socketio
from rich.console import Console

from rental_contracts.cli.contract_cmd import contracts_table
from rental_contracts.models.user import User
from rental_contracts.services.api_client import ContractAPIClient
from rental_contracts.services.board import ContractBoard
from rental_contracts.services.feed import ContractFeed
from rental_contracts.services.realtime import RealtimeClient
from rental_contracts.utils.config import Settings

logger = logging.getLogger(__name__)

console = Console()


async def watch_contracts(settings: Settings, user: User, property_id: Optional[str] = None) -> None:
    """Print the contract table every time the view changes, until cancelled."""
    board = ContractBoard()
    title = f"Contracts for property {property_id}" if property_id else "My Contracts"
    board.subscribe(lambda view: console.print(contracts_table(board.view(view), user, title=title)))

    realtime: Optional[RealtimeClient] = RealtimeClient(settings)
    try:
        await realtime.connect()
        await realtime.register(user.id)
    except socketio.exceptions.ConnectionError as e:
        logger.warning(f"Socket unavailable, polling only: {e}")
        console.print(f"[yellow]Live updates unavailable ({e}); polling every "
                      f"{settings.poll_interval_seconds}s[/yellow]")
        realtime = None

    def on_reminder(data: dict) -> None:
        console.print(f"[bold yellow]Reminder:[/bold yellow] {data.get('message', 'Please sign your contract')}")

    async with ContractAPIClient(settings) as client:
        kwargs = dict(realtime=realtime, settings=settings, on_reminder=on_reminder)
        if property_id:
            feed = ContractFeed.for_property(client, board, property_id, **kwargs)
        else:
            feed = ContractFeed.for_user(client, board, **kwargs)

        await feed.start()
        try:
            await asyncio.Event().wait()
        finally:
            feed.stop()
            if realtime is not None:
                await realtime.disconnect()
