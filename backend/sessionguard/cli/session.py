"""Flask CLI commands for inspecting and revoking sessions."""

from __future__ import annotations

import json
import logging

import click
from flask import current_app
from flask.cli import with_appcontext

from sessionguard.api.guard import get_guard
from sessionguard.core.extensions import get_revocation_gate
from sessionguard.schemas import claims_payload
from sessionguard.services._shared.errors import ServiceError
from sessionguard.services._shared.ports import AllowAllRevocationGate

LOGGER = logging.getLogger(__name__)


@click.group("session")
def session_cli() -> None:
    """Operator commands for session tokens."""


@session_cli.command("inspect")
@click.argument("token")
@with_appcontext
def inspect_command(token: str) -> None:
    """Verify TOKEN with the configured key and print its judgment and claims."""
    service = get_guard().service
    if service is None:  # pragma: no cover - init_app always sets it
        raise click.ClickException("Session guard is not initialized.")
    try:
        verified = service.codec.verify(token, now=service.now_utc())
    except ServiceError as exc:
        raise click.ClickException(f"Unable to verify token: {exc}") from exc

    payload = {
        "judgment": verified.judgment.name,
        "claims": claims_payload(verified.claims) if verified.claims is not None else None,
    }
    click.echo(json.dumps(payload, indent=2, sort_keys=True))


@session_cli.command("revoke")
@click.argument("session_id")
@with_appcontext
def revoke_command(session_id: str) -> None:
    """Revoke SESSION_ID through the configured revocation backend."""
    gate = get_revocation_gate(current_app)
    if isinstance(gate, AllowAllRevocationGate):
        raise click.ClickException("Revocation is disabled (REVOCATION_BACKEND=none).")
    try:
        gate.revoke(session_id)
    except Exception as exc:  # pragma: no cover - CLI safeguard
        raise click.ClickException(f"Revocation failed: {exc}") from exc
    LOGGER.info("session.revoked", extra={"session_id": session_id, "outcome": "revoked"})
    click.echo(f"Revoked session {session_id}")
