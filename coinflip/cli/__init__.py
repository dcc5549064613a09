"""
coinflip.cli
------------

Small command-line front end for the provably-fair coin flip.

Commands:
  - params   : Show the effective configuration.
  - commit   : Mint a sealed commitment and print its public hash.
  - derive   : Derive message/digest/outcome for (secret, client seed, nonce).
  - flip     : Run one or more flips in a fresh session and print the records.
  - verify   : Verify a flip record read from a JSON file (or '-' for stdin).

Environment:
  COINFLIP_SECRET_BYTES, COINFLIP_CLIENT_SEED_BYTES, COINFLIP_HISTORY_SIZE,
  COINFLIP_NONCE_START configure sessions; COINFLIP_LOG_FORMAT picks json/text.

Example:
  coinflip flip --client-seed lucky --count 3 > flips.json
  coinflip verify record.json
"""

from __future__ import annotations

import json
import sys
from typing import Any, Optional

import typer

from coinflip import logging as flog
from coinflip.commit_reveal.commit import CommitmentManager
from coinflip.commit_reveal.derive import derive
from coinflip.commit_reveal.verify import verify
from coinflip.config import FlipConfig
from coinflip.errors import FlipError, RecordFormatError
from coinflip.session.flip_session import FlipSession
from coinflip.types.core import VerificationStatus
from coinflip.types.wire import parse_record_json

__all__ = ["app", "main"]

# verify exit codes
EXIT_VERIFIED = 0
EXIT_FAILED = 1
EXIT_MALFORMED = 2

app = typer.Typer(
    name="coinflip",
    help="Provably-fair coin flip (commit → flip → reveal → verify).",
    no_args_is_help=True,
    add_completion=False,
)


def _echo_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2))


def _load_config() -> FlipConfig:
    try:
        return FlipConfig.from_env()
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


@app.callback()
def _root(
    log_level: str = typer.Option("WARNING", "--log-level", help="Minimum log level."),
    log_format: Optional[str] = typer.Option(
        None, "--log-format", help="json or text (default: COINFLIP_LOG_FORMAT / TTY detection)."
    ),
) -> None:
    if log_format is not None and log_format not in ("json", "text"):
        raise typer.BadParameter("--log-format must be 'json' or 'text'")
    flog.configure(
        json=None if log_format is None else log_format == "json",
        level=log_level,
    )


@app.command("params")
def cmd_params() -> None:
    """Show the effective configuration."""
    typer.echo(_load_config().to_json())


@app.command("commit")
def cmd_commit(
    reveal: bool = typer.Option(False, "--reveal", help="Also print the secret (testing only)."),
) -> None:
    """
    Mint a sealed commitment and print its public hash.

    The secret stays hidden unless --reveal is given; a real server would keep
    it until the flip resolves.
    """
    cfg = _load_config()
    c = CommitmentManager(cfg.secret_bytes).generate_commitment()
    out = {"publicHash": c.public_hash}
    if reveal:
        out["secret"] = c.secret
    _echo_json(out)


@app.command("derive")
def cmd_derive(
    secret: str = typer.Option(..., "--secret", "-s", help="Revealed server secret."),
    client_seed: str = typer.Option(..., "--client-seed", "-c", help="Client seed."),
    nonce: int = typer.Option(..., "--nonce", "-n", min=0, help="Flip nonce."),
) -> None:
    """Derive message, digest, derived value and outcome."""
    d = derive(secret, client_seed, nonce)
    _echo_json(
        {
            "message": d.message,
            "digest": d.digest,
            "derivedValue": d.derived_value,
            "outcome": int(d.outcome),
            "label": d.outcome.label,
        }
    )


@app.command("flip")
def cmd_flip(
    client_seed: Optional[str] = typer.Option(
        None, "--client-seed", "-c", help="Client seed (random if omitted)."
    ),
    count: int = typer.Option(1, "--count", "-n", min=1, max=10_000, help="Number of flips."),
    history: bool = typer.Option(False, "--history", help="Print history rows instead of records."),
) -> None:
    """Run flips in a fresh session and print the resolved records."""
    session = FlipSession(_load_config(), client_seed=client_seed)
    try:
        with flog.session_scope():
            session.start()
            records = []
            for _ in range(count):
                res = session.flip()
                res.raise_for_rejection()
                records.append(res.record.to_dict())
    except FlipError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)
    _echo_json(session.ledger.rows() if history else records)


@app.command("verify")
def cmd_verify(
    path: str = typer.Argument(..., help="JSON file holding one flip record, or '-' for stdin."),
) -> None:
    """Verify a flip record. Exit 0 verified, 1 failed, 2 malformed input."""
    try:
        if path == "-":
            text = sys.stdin.read()
        else:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        record = parse_record_json(text)
    except (OSError, RecordFormatError) as e:
        typer.echo(f"cannot read flip record: {e}", err=True)
        raise typer.Exit(code=EXIT_MALFORMED)

    res = verify(record)
    _echo_json(res.to_dict())
    if res.status is not VerificationStatus.VERIFIED:
        raise typer.Exit(code=EXIT_FAILED)


def main() -> None:  # pragma: no cover - thin wrapper
    """Entry-point for the `coinflip` console script."""
    try:
        app(prog_name="coinflip")
    except KeyboardInterrupt:
        typer.echo("", err=True)
        sys.exit(130)


if __name__ == "__main__":  # pragma: no cover
    main()
