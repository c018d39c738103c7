from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import ValidationError

from solgate.challenge import ChallengeRecord, canonical_text, create_challenge
from solgate.config import get_settings, parse_log_level
from solgate.errors import KeypairFileError, SolgateError
from solgate.keys import address_from_public_key, generate_keypair, load_keypair, write_keypair
from solgate.signing import sign_challenge, verify_challenge

app = typer.Typer(help="solgate: Solana wallet sign-in challenges")


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str | None = typer.Option(None, help="Log level (overrides SOLGATE_LOG_LEVEL)"),
) -> None:
    try:
        settings = get_settings()
        level = parse_log_level(log_level or settings.log_level, source="--log-level")
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(2)
    logging.basicConfig(level=level)
    ctx.obj = settings


def _load_record(path: Path) -> ChallengeRecord:
    try:
        return ChallengeRecord.from_json(path.read_text())
    except (OSError, UnicodeDecodeError) as e:
        typer.echo(f"Cannot read challenge file {path}: {e}", err=True)
    except ValidationError as e:
        typer.echo(f"Invalid challenge in {path}:\n{e}", err=True)
    raise typer.Exit(2)


@app.command()
def keygen(
    out: Path | None = typer.Option(None, help="Write a Solana keypair JSON file here"),
) -> None:
    """Generate an Ed25519 keypair and print its address."""
    seed, public_key = generate_keypair()
    if out is not None:
        write_keypair(out, seed)
    typer.echo(address_from_public_key(public_key))


@app.command()
def challenge(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Base58 wallet address to challenge"),
    domain: str | None = typer.Option(None, help="Relying-party domain (default SOLGATE_DOMAIN)"),
) -> None:
    """Issue a challenge and print it as JSON."""
    try:
        record = create_challenge(domain or ctx.obj.domain, address)
    except SolgateError as e:
        typer.echo(e.detail, err=True)
        raise typer.Exit(1)
    typer.echo(record.to_json())


@app.command()
def message(record: Path = typer.Argument(..., help="Challenge JSON file")) -> None:
    """Print the canonical text a wallet signs for a challenge."""
    typer.echo(canonical_text(_load_record(record)))


@app.command()
def sign(
    record: Path = typer.Argument(..., help="Challenge JSON file"),
    keypair: Path = typer.Option(..., help="Solana keypair JSON file"),
) -> None:
    """Sign a challenge with a local keypair and print the base58 signature."""
    loaded = _load_record(record)
    try:
        seed, _ = load_keypair(keypair)
    except KeypairFileError as e:
        typer.echo(e.detail, err=True)
        raise typer.Exit(2)
    typer.echo(sign_challenge(seed, loaded))


@app.command()
def verify(
    record: Path = typer.Argument(..., help="Challenge JSON file"),
    signature: str = typer.Argument(..., help="Base58 signature"),
    detail: bool = typer.Option(False, help="Print the failure kind instead of true/false"),
) -> None:
    """Verify a signed challenge. Exits 0 when verified, 1 otherwise."""
    result = verify_challenge(_load_record(record), signature)
    if detail:
        typer.echo(result.value)
    else:
        typer.echo("true" if result.ok else "false")
    raise typer.Exit(0 if result.ok else 1)
