"""
Command-line interface for desklic.
"""

from __future__ import annotations

import json
import logging
from functools import wraps
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from desklic.common.codec import encode_license_key
from desklic.common.config import Config
from desklic.common.exceptions import LicenseError
from desklic.common.logging_utils import setup_logger
from desklic.engine.service import LicenseService

if TYPE_CHECKING:
    from collections.abc import Callable

    from desklic.common.models import LicenseRecord


def handle_errors(func: Callable) -> Callable:
    """Report engine errors as click errors instead of tracebacks."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except LicenseError as err:
            raise click.ClickException(str(err)) from err
        except ValueError as err:
            raise click.BadParameter(str(err)) from err

    return wrapper


def _split_features(values: tuple[str, ...]) -> list[str]:
    return [part for value in values for part in value.split(",")]


def _record_summary(record: LicenseRecord) -> dict[str, Any]:
    data = record.model_dump(mode="json", exclude={"signature"})
    data["days_remaining"] = record.days_remaining()
    return data


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="DESKLIC_DATA_DIR",
    default=None,
    help="Directory holding keys and the license store (default: per-user app data dir)",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None, verbose: bool) -> None:  # noqa: FBT001
    """desklic license key administration"""
    config = Config()
    setup_logger(logging.getLogger("desklic"), logging.DEBUG if verbose else config.LOG_LEVEL)
    ctx.obj = LicenseService(config=config, data_dir=data_dir)


@cli.command()
@click.option("--bits", default=None, type=int, help="RSA modulus size (default: 2048)")
@click.option(
    "--force",
    is_flag=True,
    help="Overwrite existing keys; licenses signed with them stop verifying",
)
@click.pass_obj
@handle_errors
def keygen(service: LicenseService, bits: int | None, force: bool) -> None:  # noqa: FBT001
    """Generate a new signing key pair"""
    storage = service.storage
    if not force and (storage.private_key_path.exists() or storage.public_key_path.exists()):
        msg = f"Keys already exist in {storage.data_dir}; pass --force to replace them."
        raise click.ClickException(msg)
    service.generate_new_key_pair(bits)
    click.echo(f"Keys generated and saved in {storage.data_dir}")


@cli.command()
@click.argument("customer_name")
@click.argument("customer_email")
@click.option("--days", "expiry_days", required=True, type=click.IntRange(min=0), help="Days until expiry (0 = already expired)")
@click.option("-f", "--feature", "features", multiple=True, help="Feature tag; repeat or comma-separate")
@click.option("--machine", "machine_binding", default=None, help="Bind to this machine fingerprint")
@click.option("--bind-here", is_flag=True, help="Bind to the fingerprint of this machine")
@click.pass_obj
@handle_errors
def issue(
    service: LicenseService,
    customer_name: str,
    customer_email: str,
    expiry_days: int,
    features: tuple[str, ...],
    machine_binding: str | None,
    bind_here: bool,  # noqa: FBT001
) -> None:
    """Issue and store a new license, printing its key"""
    if bind_here:
        if machine_binding:
            msg = "--machine and --bind-here are mutually exclusive"
            raise click.UsageError(msg)
        machine_binding = service.current_fingerprint()
    key = service.issue(
        customer_name, customer_email, expiry_days, _split_features(features), machine_binding
    )
    click.echo(key)


@cli.command()
@click.argument("license_key")
@click.option("--machine", "machine_code", default=None, help="Machine fingerprint to check the binding against")
@click.option("--this-machine", is_flag=True, help="Check the binding against this machine")
@click.pass_obj
@handle_errors
def validate(
    service: LicenseService,
    license_key: str,
    machine_code: str | None,
    this_machine: bool,  # noqa: FBT001
) -> None:
    """Validate a license key; exits with status 1 when invalid"""
    if this_machine:
        machine_code = service.current_fingerprint()
    result = service.validate(license_key, machine_code)
    click.echo(f"Status: {result.message}")
    if result.info is not None:
        click.echo(json.dumps(_record_summary(result.info), indent=2, ensure_ascii=False))
    if not result.is_valid:
        raise SystemExit(1)


@cli.command(name="list")
@click.option("--json", "as_json", is_flag=True, help="Print records as JSON")
@click.pass_obj
@handle_errors
def list_command(service: LicenseService, as_json: bool) -> None:  # noqa: FBT001
    """List all issued licenses"""
    records = service.list_licenses()
    if as_json:
        click.echo(json.dumps([_record_summary(r) for r in records], indent=2, ensure_ascii=False))
        return
    if not records:
        click.echo("No licenses issued")
        return
    for record in records:
        status = "expired" if record.is_expired() else f"{record.days_remaining()}d left"
        features = ",".join(record.features) or "-"
        click.echo(
            f"{record.license_id}  {record.customer_name} <{record.customer_email}>  "
            f"[{features}]  {status}"
        )


@cli.command()
@click.argument("license_id")
@click.option("--key", "show_key", is_flag=True, help="Print the distributable license key")
@click.pass_obj
@handle_errors
def show(service: LicenseService, license_id: str, show_key: bool) -> None:  # noqa: FBT001
    """Show one stored license"""
    record = service.get_license(license_id)
    if record is None:
        msg = f"No license with id {license_id}"
        raise click.ClickException(msg)
    if show_key:
        click.echo(encode_license_key(record))
    else:
        click.echo(json.dumps(_record_summary(record), indent=2, ensure_ascii=False))


@cli.command()
@click.argument("license_id")
@click.pass_obj
@handle_errors
def delete(service: LicenseService, license_id: str) -> None:
    """Delete a stored license"""
    if not service.delete_license(license_id):
        msg = f"No license with id {license_id}"
        raise click.ClickException(msg)
    click.echo(f"Deleted {license_id}")


@cli.command(name="export-public-key")
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write the key to this file")
@click.pass_obj
@handle_errors
def export_public_key(service: LicenseService, output: Path | None) -> None:
    """Print the public verification key (PEM)"""
    pem = service.export_public_key()
    if output is None:
        click.echo(pem, nl=False)
        return
    try:
        output.write_text(pem, encoding="ascii")
    except OSError as err:
        msg = f"Cannot write {output}: {err}"
        raise click.ClickException(msg) from err
    click.echo(f"Public key written to {output}")


@cli.command()
@click.pass_obj
def fingerprint(service: LicenseService) -> None:
    """Print this machine's fingerprint"""
    click.echo(service.current_fingerprint())


if __name__ == "__main__":
    cli()
