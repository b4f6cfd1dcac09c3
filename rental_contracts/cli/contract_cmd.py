"""Rendering of contract cards for the terminal"""

import json
from typing import Iterable

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from rental_contracts.models.contract import Contract
from rental_contracts.models.permissions import ContractPermissions
from rental_contracts.models.user import User
from rental_contracts.services.evaluator import evaluate
from rental_contracts.services.pdf_generator import format_currency

console = Console()

BADGE_STYLES = {
    "red": "bold red",
    "green": "bold green",
    "blue": "bold blue",
    "yellow": "bold yellow",
    "gray": "dim",
}

ACTION_LABELS = [
    ("can_approve", "approve"),
    ("can_reject", "reject"),
    ("can_sign", "sign"),
    ("can_send_reminder", "remind"),
    ("can_edit", "edit"),
    ("can_download", "pdf"),
    ("can_delete", "delete"),
]


def permitted_actions(permissions: ContractPermissions) -> list[str]:
    return [label for attr, label in ACTION_LABELS if getattr(permissions, attr)]


def card_dict(contract: Contract, user: User) -> dict:
    permissions = evaluate(contract, user)
    return {
        "contract": contract.model_dump(mode="json", by_alias=True),
        "permissions": permissions.model_dump(mode="json"),
        "actions": permitted_actions(permissions),
    }


def print_json(data) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def contracts_table(contracts: Iterable[Contract], user: User, title: str = "My Contracts") -> Table:
    table = Table(title=title)
    table.add_column("Contract ID", style="cyan", no_wrap=True)
    table.add_column("Property")
    table.add_column("Landlord")
    table.add_column("Tenant")
    table.add_column("Status")
    table.add_column("Actions", style="green")

    for contract in contracts:
        permissions = evaluate(contract, user)
        badge = permissions.badge
        table.add_row(
            contract.contract_id,
            contract.property_title or contract.property_address or "-",
            contract.landlord_name,
            contract.tenant_name,
            f"[{BADGE_STYLES[badge.color.value]}]{badge.text}[/]",
            ", ".join(permitted_actions(permissions)) or "-",
        )
    return table


def _mark(flag: bool) -> str:
    return "[green]yes[/green]" if flag else "[dim]no[/dim]"


def contract_panel(contract: Contract, user: User) -> Panel:
    permissions = evaluate(contract, user)
    badge = permissions.badge
    approvals, sigs = contract.approvals, contract.signatures

    lines = [
        f"[{BADGE_STYLES[badge.color.value]}]{badge.text}[/]  ({permissions.status.value})",
        "",
        f"Property:  {contract.property_title or contract.property_address}",
        f"Landlord:  {contract.landlord_name}  approved {_mark(approvals.landlord.approved)}"
        f"  signed {_mark(sigs.landlord.signed)}",
        f"Tenant:    {contract.tenant_name}  approved {_mark(approvals.tenant.approved)}"
        f"  signed {_mark(sigs.tenant.signed)}",
    ]
    if contract.witness_name:
        lines.append(f"Witness:   {contract.witness_name}  signed {_mark(sigs.witness.signed)}")
    lines += [
        f"Rent:      {format_currency(contract.monthly_rent, 'Rs.')} / month"
        f"  deposit {format_currency(contract.security_deposit, 'Rs.')}",
        f"Term:      {contract.duration_months} months",
        "",
        f"You are:   {permissions.party.value if permissions.party else 'not a party'}",
        f"Actions:   {', '.join(permitted_actions(permissions)) or 'none'}",
    ]
    return Panel("\n".join(lines), title=f"Contract {contract.contract_id}", border_style="blue")
