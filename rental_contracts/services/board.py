"""Local contract list views shared by every screen"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from rental_contracts.models.contract import Contract

logger = logging.getLogger(__name__)

MY_CONTRACTS = "my"


def property_view(property_id: str) -> str:
    """View name for the contracts shown in a property's chat."""
    return f"property:{property_id}"


class ContractBoard:
    """Named contract lists, e.g. ``"my"`` and ``"property:<id>"``.

    A refresh replaces a view wholesale with the fetched snapshot; the
    backend copy is authoritative. Removing or updating a contract touches
    every view that shows it.

    Local writes (``upsert``, ``remove``) bump ``generation``. A snapshot
    applied with ``as_of`` keeps any contract written after that generation,
    so a list fetch that started before an action cannot undo it.
    """

    def __init__(self):
        self._views: Dict[str, List[Contract]] = {}
        self._listeners: List[Callable[[str], None]] = []
        self._generation = 0
        # contract_id -> (generation, contract or None when removed)
        self._writes: Dict[str, Tuple[int, Optional[Contract]]] = {}

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, listener: Callable[[str], None]) -> None:
        """Call ``listener(view)`` whenever a view changes."""
        self._listeners.append(listener)

    def _changed(self, view: str) -> None:
        for listener in self._listeners:
            listener(view)

    def _stamp(self, contract_id: str, contract: Optional[Contract]) -> None:
        self._generation += 1
        self._writes[contract_id] = (self._generation, contract)

    def view(self, name: str) -> List[Contract]:
        return list(self._views.get(name, []))

    @property
    def view_names(self) -> List[str]:
        return list(self._views)

    def replace(self, name: str, contracts: List[Contract], as_of: Optional[int] = None) -> None:
        if as_of is not None:
            contracts = self._overlay(contracts, as_of)
        self._views[name] = list(contracts)
        self._changed(name)

    def _overlay(self, contracts: List[Contract], as_of: int) -> List[Contract]:
        result = []
        for contract in contracts:
            generation, written = self._writes.get(contract.contract_id, (0, contract))
            if generation <= as_of:
                result.append(contract)
            elif written is not None:
                logger.debug(f"Keeping local copy of {contract.contract_id} over older snapshot")
                result.append(written)
        return result

    def find(self, contract_id: str) -> Optional[Contract]:
        for contracts in self._views.values():
            for contract in contracts:
                if contract.contract_id == contract_id:
                    return contract
        return None

    def upsert(self, contract: Contract) -> None:
        """Replace ``contract`` in every view that already shows it."""
        self._stamp(contract.contract_id, contract)
        for name, contracts in self._views.items():
            for i, existing in enumerate(contracts):
                if existing.contract_id == contract.contract_id:
                    contracts[i] = contract
                    self._changed(name)
                    break

    def remove(self, contract_id: str) -> int:
        """Drop a contract from every view. Returns how many views held it."""
        self._stamp(contract_id, None)
        touched = 0
        for name, contracts in self._views.items():
            kept = [c for c in contracts if c.contract_id != contract_id]
            if len(kept) != len(contracts):
                self._views[name] = kept
                touched += 1
                self._changed(name)
        if touched:
            logger.info(f"Removed contract {contract_id} from {touched} view(s)")
        return touched
