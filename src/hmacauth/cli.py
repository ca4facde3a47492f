"""
Command line programs.

``jwt_verify <jwt> <secret>``
    Prints ``Signature: VALID`` and the decoded payload, or
    ``Signature: INVALID``.

``totp_tool generate <base32-secret>`` / ``totp_tool verify <base32-secret> <code> [window]``
    Prints the current 6-digit code, or ``VALID``/``INVALID``.

Exit status is 0 for success, 1 for usage and input errors and 2 for a
rejected signature or code.
"""
import logging
import sys
from typing import Annotated, List, Optional

import click
import typer

from . import jwt, totp
from .encoding import base32_decode
from .exceptions import HmacFailure, MalformedTokenError

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_INVALID = 2

jwt_app = typer.Typer(add_completion=False, help="Verify the HS256 signature of a JWT.")
totp_app = typer.Typer(add_completion=False, help="Generate or verify RFC 6238 TOTP codes.")

VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output to stderr")]
# no short alias: a secret such as "-vault" must reach the SECRET argument
LongVerboseOption = Annotated[bool, typer.Option("--verbose", help="Log debug output to stderr")]

# secrets and codes may start with "-"; unknown options are passed on as arguments
POSITIONAL_DASHES = {"ignore_unknown_options": True}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


@jwt_app.command(context_settings=POSITIONAL_DASHES)
def verify_jwt(
    token: Annotated[str, typer.Argument(metavar="JWT", help="Compact token header.payload.signature")],
    secret: Annotated[str, typer.Argument(help="Shared HS256 secret")],
    verbose: LongVerboseOption = False,
) -> None:
    """Check a token's HS256 signature and print its payload when valid."""
    _configure_logging(verbose)
    try:
        result = jwt.verify(token, secret)
    except MalformedTokenError:
        typer.echo("invalid jwt", err=True)
        raise typer.Exit(EXIT_USAGE)
    except HmacFailure as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(EXIT_USAGE)

    if not result.valid:
        typer.echo("Signature: INVALID")
        raise typer.Exit(EXIT_INVALID)
    typer.echo("Signature: VALID")
    if result.payload is not None:
        typer.echo("Payload: {}".format(result.payload.decode("utf-8", errors="replace")))


@totp_app.callback()
def totp_options(verbose: VerboseOption = False) -> None:
    _configure_logging(verbose)


@totp_app.command("generate", context_settings=POSITIONAL_DASHES)
def generate_code(
    secret: Annotated[str, typer.Argument(metavar="BASE32-SECRET", help="Shared secret in base32")],
) -> None:
    """Print the code for the current 30 second step."""
    if not base32_decode(secret):
        typer.echo("Failed to decode base32 secret", err=True)
        raise typer.Exit(EXIT_USAGE)
    try:
        code = totp.generate(secret)
    except HmacFailure as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(EXIT_USAGE)
    typer.echo("TOTP: {}".format(code))


@totp_app.command("verify", context_settings=POSITIONAL_DASHES)
def verify_code(
    secret: Annotated[str, typer.Argument(metavar="BASE32-SECRET", help="Shared secret in base32")],
    code: Annotated[str, typer.Argument(help="6-digit code to check")],
    window: Annotated[int, typer.Argument(min=0, help="Accepted drift in 30 second steps")] = totp.DEFAULT_WINDOW,
) -> None:
    """Check a code against the current step and WINDOW steps either side."""
    if not base32_decode(secret):
        typer.echo("Failed to decode base32 secret", err=True)
        raise typer.Exit(EXIT_USAGE)
    try:
        ok = totp.verify(secret, code, window)
    except HmacFailure as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(EXIT_USAGE)
    if not ok:
        typer.echo("INVALID")
        raise typer.Exit(EXIT_INVALID)
    typer.echo("VALID")


def _run(app: typer.Typer, prog_name: str, argv: Optional[List[str]]) -> int:
    # click reports usage errors with status 2, which these programs reserve
    # for a rejected signature or code
    try:
        rv = app(args=argv, prog_name=prog_name, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        return EXIT_USAGE
    except click.Abort:
        typer.echo("Aborted!", err=True)
        return EXIT_USAGE
    return rv if isinstance(rv, int) else EXIT_OK


def jwt_main(argv: Optional[List[str]] = None) -> None:
    sys.exit(_run(jwt_app, "jwt_verify", argv))


def totp_main(argv: Optional[List[str]] = None) -> None:
    sys.exit(_run(totp_app, "totp_tool", argv))
