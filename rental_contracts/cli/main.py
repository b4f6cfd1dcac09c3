"""Main CLI application"""

import asyncio
import base64
import json
import logging
import mimetypes
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from rental_contracts.cli.contract_cmd import (
    card_dict,
    contract_panel,
    contracts_table,
    print_json,
)
from rental_contracts.models.contract import Contract
from rental_contracts.models.user import User, UserRole
from rental_contracts.services.actions import ContractActions
from rental_contracts.services.api_client import APIError, ContractAPIClient
from rental_contracts.services.validation import (
    ContractDraft,
    ContractUpdate,
    edit_form,
    generate_contract_id,
    validate_contract_edit,
    validate_contract_form,
    validate_signature_image,
)
from rental_contracts.utils.config import get_settings

app = typer.Typer(
    name="rental-contracts",
    help="Rental contract lifecycle: review, approve, sign and track contracts",
    add_completion=False,
)

console = Console()

T = TypeVar("T")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")):
    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _current_user() -> User:
    settings = get_settings()
    if not settings.user_id:
        console.print("[red]USER_ID is not set. Add it to .env or the environment.[/red]")
        raise typer.Exit(1)
    try:
        role = UserRole(settings.user_role)
    except ValueError:
        console.print(f"[red]Unknown USER_ROLE '{settings.user_role}'[/red]")
        raise typer.Exit(1)
    return User(_id=settings.user_id, name=settings.user_name, role=role)


def _run(action: Callable[[ContractAPIClient], Awaitable[T]]) -> T:
    """Run ``action(client)`` to completion, turning failures into a red message and exit 1."""
    async def runner():
        async with ContractAPIClient(get_settings()) as client:
            return await action(client)

    try:
        return asyncio.run(runner())
    except APIError as e:
        console.print(f"[red]Backend error: {e.message}[/red]")
    except ValueError as e:
        # ActionNotPermitted and SignatureRequired
        console.print(f"[red]{e}[/red]")
    raise typer.Exit(1)


def _act(contract_id: str, perform: Callable[[ContractActions, Contract], Awaitable[T]]) -> T:
    user = _current_user()

    async def action(client: ContractAPIClient):
        actions = ContractActions(client, user, settings=client.settings)
        contract = await client.get_contract(contract_id)
        return await perform(actions, contract)

    return _run(action)


@app.command("contracts")
def list_contracts(
    property_id: Optional[str] = typer.Option(None, "--property", "-p", help="Only contracts of this property"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List your contracts with status badge and permitted actions"""
    user = _current_user()

    async def fetch(client: ContractAPIClient):
        if property_id:
            return await client.contracts_for_property(property_id)
        return await client.my_contracts()

    contracts = _run(fetch)

    if json_output:
        print_json([card_dict(c, user) for c in contracts])
        return
    if not contracts:
        console.print("[yellow]No contracts found[/yellow]")
        return
    title = f"Contracts for property {property_id}" if property_id else "My Contracts"
    console.print(contracts_table(contracts, user, title=title))


def _print_form_errors(errors: dict) -> None:
    table = Table(title="Form errors", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Error", style="red")
    for field, message in errors.items():
        table.add_row(field, message)
    console.print(table)


@app.command("create")
def create(
    form_file: Path = typer.Argument(..., help="JSON file with the contract form fields"),
    property_id: str = typer.Option(..., "--property", "-p", help="Property ID"),
    tenant_id: str = typer.Option(..., "--tenant", help="Tenant user ID"),
):
    """Validate a contract form and send it to the tenant"""
    if not form_file.exists():
        console.print(f"[red]File not found: {form_file}[/red]")
        raise typer.Exit(1)
    form = json.loads(form_file.read_text(encoding="utf-8"))

    errors = validate_contract_form(form)
    if errors:
        _print_form_errors(errors)
        raise typer.Exit(1)

    draft = ContractDraft.from_form(
        form,
        contractId=form.get("contractId") or generate_contract_id(),
        propertyId=property_id,
        tenantId=tenant_id,
    )
    _run(lambda client: client.create_contract(draft.to_payload()))
    console.print(f"[green][OK] Contract {draft.contract_id} sent for approval[/green]")


@app.command("show")
def show(
    contract_id: str = typer.Argument(..., help="Contract ID"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Show one contract card"""
    user = _current_user()
    contract = _run(lambda client: client.get_contract(contract_id))

    if json_output:
        print_json(card_dict(contract, user))
        return
    console.print(contract_panel(contract, user))


@app.command("approve")
def approve(
    contract_id: str = typer.Argument(..., help="Contract ID"),
    feedback: str = typer.Option("", "--feedback", "-f", help="Optional note for the other party"),
):
    """Approve a contract"""
    contract = _act(contract_id, lambda actions, c: actions.approve(c, feedback))
    console.print(f"[green][OK] Contract {contract_id} approved[/green]")
    console.print(contract_panel(contract, _current_user()))


@app.command("reject")
def reject(
    contract_id: str = typer.Argument(..., help="Contract ID"),
    feedback: str = typer.Option("", "--feedback", "-f", help="Reason for rejecting"),
):
    """Reject a contract"""
    _act(contract_id, lambda actions, c: actions.reject(c, feedback))
    console.print(f"[yellow]Contract {contract_id} rejected[/yellow]")


def _image_data_url(path: Path) -> str:
    """A drawn signature file as a data URL; text files are taken verbatim."""
    if path.suffix.lower() in (".txt", ".url"):
        return path.read_text(encoding="utf-8").strip()
    mime = mimetypes.guess_type(path.name)[0] or "image/png"
    return f"data:{mime};base64,{base64.b64encode(path.read_bytes()).decode('ascii')}"


@app.command("sign")
def sign(
    contract_id: str = typer.Argument(..., help="Contract ID"),
    image: Optional[Path] = typer.Option(None, "--image", "-i", help="Signature image (PNG) or data-URL text file"),
    stored: bool = typer.Option(False, "--stored", help="Use your saved signature"),
    text: Optional[str] = typer.Option(None, "--text", "-t", help="Signature text"),
):
    """Sign a contract with a drawn or stored signature"""
    signature_image = None
    if image is not None:
        if not image.exists():
            console.print(f"[red]File not found: {image}[/red]")
            raise typer.Exit(1)
        signature_image = _image_data_url(image)

    contract = _act(contract_id, lambda actions, c: actions.sign(
        c, signature_image=signature_image, signature_text=text, use_stored_signature=stored,
    ))
    console.print(f"[green][OK] Contract {contract_id} signed[/green]")
    console.print(contract_panel(contract, _current_user()))


@app.command("delete")
def delete(
    contract_id: str = typer.Argument(..., help="Contract ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a contract (landlord or admin)"""
    if not yes and not typer.confirm(f"Delete contract {contract_id}?"):
        raise typer.Abort()
    _act(contract_id, lambda actions, c: actions.delete(c))
    console.print(f"[green][OK] Contract {contract_id} deleted[/green]")


@app.command("pdf")
def pdf(
    contract_id: str = typer.Argument(..., help="Contract ID"),
    output_dir: Optional[str] = typer.Option(None, "--output", "-o", help="Output directory"),
    local: bool = typer.Option(False, "--local", help="Render locally instead of downloading"),
):
    """Download the contract PDF"""
    path = _act(contract_id, lambda actions, c: actions.download_pdf(c, dest_dir=output_dir, local=local))
    console.print(f"[green][OK] PDF saved: {path}[/green]")


@app.command("remind")
def remind(contract_id: str = typer.Argument(..., help="Contract ID")):
    """Remind the other party to sign"""
    recipient = _act(contract_id, lambda actions, c: actions.send_reminder(c))
    console.print(f"[green][OK] Reminder sent to the {recipient}[/green]")


@app.command("edit")
def edit(
    contract_id: str = typer.Argument(..., help="Contract ID"),
    changes_file: Path = typer.Argument(..., help="JSON file with the form fields to change"),
):
    """Edit contract details before anyone has signed"""
    if not changes_file.exists():
        console.print(f"[red]File not found: {changes_file}[/red]")
        raise typer.Exit(1)
    changes = json.loads(changes_file.read_text(encoding="utf-8"))
    user = _current_user()

    current = _run(lambda client: client.get_contract(contract_id))
    form = {**edit_form(current), **changes}
    errors = validate_contract_edit(form)
    if errors:
        _print_form_errors(errors)
        raise typer.Exit(1)

    update = ContractUpdate.from_form(form)
    contract = _act(contract_id, lambda actions, c: actions.edit(c, update))
    console.print(f"[green][OK] Contract {contract_id} updated[/green]")
    console.print(contract_panel(contract, user))


@app.command("upload")
def upload(
    contract_id: str = typer.Argument(..., help="Contract ID"),
    file: Path = typer.Argument(..., help="Document to upload"),
    document_type: str = typer.Option(..., "--type", "-t", help="e.g. aadhaar, pan, idProof, propertyOwnership"),
):
    """Upload an identity or ownership document for your side of the contract"""
    if not file.exists():
        console.print(f"[red]File not found: {file}[/red]")
        raise typer.Exit(1)
    url = _act(contract_id, lambda actions, c: actions.upload_document(c, file, document_type))
    console.print(f"[green][OK] Uploaded {file.name}[/green] {url}")


@app.command("history")
def history(
    contract_id: str = typer.Argument(..., help="Contract ID"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Show signature progress and status history"""
    _current_user()
    report = _run(lambda client: client.contract_status(contract_id))

    if json_output:
        print_json(report.model_dump(mode="json", by_alias=True))
        return

    next_signature = report.next_signature.value if report.next_signature else "none"
    console.print(
        f"[bold]{report.contract_id}[/bold]  status: {report.current_status or '-'}  "
        f"next signature: {next_signature}"
    )
    table = Table(title="Status history")
    table.add_column("When")
    table.add_column("Status", style="cyan")
    table.add_column("Reason")
    for change in report.status_history:
        when = change.changed_at.strftime("%Y-%m-%d %H:%M") if change.changed_at else "-"
        table.add_row(when, change.status, change.reason or "")
    console.print(table)


@app.command("verify")
def verify(
    contract_id: str = typer.Argument(..., help="Contract ID"),
    digital_hash: str = typer.Argument(..., help="Hash printed on the contract PDF"),
):
    """Check a contract's verification hash against the backend"""
    body = _run(lambda client: client.verify_contract(contract_id, digital_hash))
    verification = body.get("verification", {})
    if verification.get("isValid"):
        console.print(f"[green][OK] {body.get('message', 'Contract verification successful')}[/green]")
        console.print(
            f"{verification.get('landlordName', '')} / {verification.get('tenantName', '')}, "
            f"{verification.get('propertyAddress', '')}"
        )
        return
    console.print(f"[red]{body.get('message', 'Contract verification failed')}[/red]")
    raise typer.Exit(1)


@app.command("signature")
def signature(
    save: Optional[Path] = typer.Option(None, "--save", "-s", help="Store this image as your signature"),
):
    """Show or replace your stored signature"""
    if save is not None:
        if not save.exists():
            console.print(f"[red]File not found: {save}[/red]")
            raise typer.Exit(1)
        image = _image_data_url(save)

        async def store(client: ContractAPIClient):
            return await client.save_signature(validate_signature_image(image))

        _run(store)
        console.print("[green][OK] Signature saved[/green]")
        return

    stored = _run(lambda client: client.get_stored_signature())
    if stored:
        console.print(f"Stored signature: {stored[:40]}... ({len(stored)} chars)")
    else:
        console.print("[yellow]No stored signature. Use --save IMAGE to add one.[/yellow]")


@app.command("watch")
def watch(
    property_id: Optional[str] = typer.Option(None, "--property", "-p", help="Watch one property's contracts"),
):
    """Keep the contract list up to date (Ctrl+C to stop)"""
    from rental_contracts.cli.watch_cmd import watch_contracts

    user = _current_user()
    try:
        asyncio.run(watch_contracts(get_settings(), user, property_id))
    except KeyboardInterrupt:
        console.print("\n[blue]Stopped[/blue]")


@app.command("chats")
def chats(json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON")):
    """List your property chats"""
    user = _current_user()

    async def fetch(client: ContractAPIClient):
        return await client.my_chats(), await client.unread_count()

    chat_list, unread = _run(fetch)

    if json_output:
        print_json({
            "chats": [c.model_dump(mode="json", by_alias=True) for c in chat_list],
            "unread": unread,
        })
        return

    table = Table(title=f"Chats ({unread} unread)")
    table.add_column("Chat ID", style="cyan")
    table.add_column("With")
    table.add_column("Last message")

    for chat in chat_list:
        other = chat.other_participant(user.id)
        last = chat.messages[-1].text if chat.messages else ""
        table.add_row(chat.id, other.name if other else "-", last[:50])

    console.print(table)


@app.command("chat")
def chat(
    property_id: str = typer.Argument(..., help="Property ID"),
    participant_id: str = typer.Argument(..., help="User to talk to"),
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Send this message"),
):
    """Open the chat about a property with another user and optionally send a message"""
    async def action(client: ContractAPIClient):
        opened = await client.initiate_chat(property_id, participant_id)
        sent = await client.send_message(opened.id, message) if message is not None else None
        return opened, sent

    opened, sent = _run(action)
    console.print(f"Chat [cyan]{opened.id}[/cyan] ({len(opened.messages)} messages)")
    if sent is not None:
        console.print("[green][OK] Message sent[/green]")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
):
    """Run the contract view API"""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "rental_contracts.api.app:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    app()
