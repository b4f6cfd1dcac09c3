"""Contract status evaluator: decides which actions a user may take on a contract.

Every view that renders a contract (contract list, chat thread, dashboard,
view service, CLI) asks this module; none of them re-derive the rules.

All functions are pure: they read an already-fetched ``Contract`` snapshot and
the viewing ``User`` and never touch the network.
"""

import logging
from typing import Optional

from rental_contracts.models.contract import Contract, ContractStatus, Party
from rental_contracts.models.permissions import BadgeColor, ContractPermissions, StatusBadge
from rental_contracts.models.user import User

logger = logging.getLogger(__name__)

# Statuses after which approvals can no longer change
APPROVAL_CLOSED = {
    ContractStatus.REJECTED,
    ContractStatus.APPROVED,
    ContractStatus.FULLY_SIGNED,
    ContractStatus.ACTIVE,
    ContractStatus.COMPLETED,
    ContractStatus.TERMINATED,
    ContractStatus.EXPIRED,
}

# Statuses in which nobody signs anymore
SIGNING_CLOSED = {
    ContractStatus.REJECTED,
    ContractStatus.FULLY_SIGNED,
    ContractStatus.ACTIVE,
    ContractStatus.COMPLETED,
    ContractStatus.TERMINATED,
    ContractStatus.EXPIRED,
}

# Landlord signs first; the status stays in the approval phase until then
SIGNING_TURN = {
    Party.LANDLORD: {
        ContractStatus.PENDING_LANDLORD_SIGNATURE,
        ContractStatus.DRAFT,
        ContractStatus.PENDING_APPROVAL,
        ContractStatus.LANDLORD_APPROVED,
        ContractStatus.TENANT_APPROVED,
        ContractStatus.APPROVED,
    },
    Party.TENANT: {ContractStatus.PENDING_TENANT_SIGNATURE},
}

# Ordered: first matching predicate wins
BADGE_REJECTED = StatusBadge(text="REJECTED", color=BadgeColor.RED)
BADGE_FULLY_SIGNED = StatusBadge(text="FULLY SIGNED", color=BadgeColor.GREEN)
BADGE_PENDING_SIGNATURES = StatusBadge(text="APPROVED - PENDING SIGNATURES", color=BadgeColor.BLUE)
BADGE_PARTIALLY_APPROVED = StatusBadge(text="PARTIALLY APPROVED", color=BadgeColor.YELLOW)
BADGE_PENDING_APPROVAL = StatusBadge(text="PENDING APPROVAL", color=BadgeColor.GRAY)


def _parse_status(value: Optional[str]) -> Optional[ContractStatus]:
    if not value:
        return None
    try:
        return ContractStatus(value)
    except ValueError:
        logger.warning(f"Unknown contract status '{value}', treating as draft")
        return ContractStatus.DRAFT


def resolve_status(contract: Contract) -> ContractStatus:
    """Collapse ``contractStatus.current`` and legacy ``status`` into one value.

    A rejection recorded in either field wins. Otherwise the fine-grained
    ``contractStatus.current`` is authoritative, then the legacy field, then
    ``draft``.
    """
    current = _parse_status(contract.contract_status.current if contract.contract_status else None)
    legacy = _parse_status(contract.status)

    if ContractStatus.REJECTED in (current, legacy):
        return ContractStatus.REJECTED
    return current or legacy or ContractStatus.DRAFT


def party_for(contract: Contract, user: Optional[User]) -> Optional[Party]:
    """Landlord or tenant role of ``user`` on this contract, if any."""
    if user is None:
        return None
    if str(contract.landlord_id) == str(user.id):
        return Party.LANDLORD
    if str(contract.tenant_id) == str(user.id):
        return Party.TENANT
    return None


def is_rejected(contract: Contract) -> bool:
    return resolve_status(contract) == ContractStatus.REJECTED


def both_signed(contract: Contract) -> bool:
    return contract.signatures.landlord.signed and contract.signatures.tenant.signed


def can_approve(contract: Contract, user: Optional[User]) -> bool:
    party = party_for(contract, user)
    if party is None:
        return False
    if resolve_status(contract) in APPROVAL_CLOSED:
        return False
    return not contract.approvals.for_party(party).approved


def can_reject(contract: Contract, user: Optional[User]) -> bool:
    # Reject shares the approve precondition; whichever lands first wins
    return can_approve(contract, user)


def can_sign(contract: Contract, user: Optional[User]) -> bool:
    party = party_for(contract, user)
    if party is None:
        return False
    if not contract.approvals.both_approved:
        return False
    if contract.signatures.for_party(party).signed:
        return False

    status = resolve_status(contract)
    if status in SIGNING_CLOSED:
        return False
    return status in SIGNING_TURN[party]


def can_delete(contract: Contract, user: Optional[User]) -> bool:
    """Landlord (the sender) or an admin, in any status."""
    if user is None:
        return False
    return party_for(contract, user) == Party.LANDLORD or user.is_admin


def can_edit(contract: Contract, user: Optional[User]) -> bool:
    """Parties may edit until the first signature; the backend clears signatures on changed details."""
    if party_for(contract, user) is None or is_rejected(contract):
        return False
    if resolve_status(contract) in SIGNING_CLOSED:
        return False
    return not (contract.signatures.landlord.signed or contract.signatures.tenant.signed)


def can_download(contract: Contract, user: Optional[User]) -> bool:
    return party_for(contract, user) is not None


def can_send_reminder(contract: Contract, user: Optional[User]) -> bool:
    party = party_for(contract, user)
    if party is None or is_rejected(contract):
        return False
    if not contract.approvals.both_approved:
        return False
    other = Party.TENANT if party == Party.LANDLORD else Party.LANDLORD
    return not contract.signatures.for_party(other).signed


def reminder_recipient(contract: Contract, user: Optional[User]) -> Optional[Party]:
    """The counterparty a reminder from ``user`` goes to."""
    party = party_for(contract, user)
    if party == Party.LANDLORD:
        return Party.TENANT
    if party == Party.TENANT:
        return Party.LANDLORD
    return None


def status_badge(contract: Contract) -> StatusBadge:
    approvals = contract.approvals
    if is_rejected(contract):
        return BADGE_REJECTED
    if both_signed(contract):
        return BADGE_FULLY_SIGNED
    if approvals.both_approved:
        return BADGE_PENDING_SIGNATURES
    if approvals.landlord.approved or approvals.tenant.approved:
        return BADGE_PARTIALLY_APPROVED
    return BADGE_PENDING_APPROVAL


def evaluate(contract: Contract, user: Optional[User]) -> ContractPermissions:
    """Bundle badge and every permission for one contract card."""
    return ContractPermissions(
        contract_id=contract.contract_id,
        party=party_for(contract, user),
        status=resolve_status(contract),
        badge=status_badge(contract),
        can_approve=can_approve(contract, user),
        can_reject=can_reject(contract, user),
        can_sign=can_sign(contract, user),
        can_delete=can_delete(contract, user),
        can_download=can_download(contract, user),
        can_send_reminder=can_send_reminder(contract, user),
        can_edit=can_edit(contract, user),
    )
