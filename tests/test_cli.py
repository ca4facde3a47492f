"""Tests for the jwt_verify and totp_tool programs."""

from typing import List

import click
import pytest
import typer
from typer.testing import CliRunner

from hmacauth import cli, jwt, totp

SECRET = "your-256-bit-secret"
TOKEN = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9"
    ".eyJzdWIiOiIxMjM0NTY3ODkwIiwibmFtZSI6IkpvaG4gRG9lIiwiaWF0IjoxNTE2MjM5MDIyfQ"
    ".SflKxwRJSMeKKF2QT4fwpMeJf36POk6yJV_adQssw5c"
)
TOTP_SECRET = "JBSWY3DPEHPK3PXP"


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a CLI test runner."""
    return CliRunner()


@pytest.fixture
def fixed_time(monkeypatch: pytest.MonkeyPatch) -> float:
    now = 300.0
    monkeypatch.setattr(totp.time, "time", lambda: now)
    return now


def _exit_code(main, argv: List[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


class TestJwtVerify:
    def test_valid_token(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli.jwt_app, [TOKEN, SECRET])
        assert result.exit_code == 0
        assert result.stdout.splitlines() == [
            "Signature: VALID",
            'Payload: {"sub":"1234567890","name":"John Doe","iat":1516239022}',
        ]

    def test_invalid_signature(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli.jwt_app, [TOKEN, "wrong"])
        assert result.exit_code == cli.EXIT_INVALID
        assert result.stdout.strip() == "Signature: INVALID"

    def test_main_exit_codes(self, capsys: pytest.CaptureFixture) -> None:
        assert _exit_code(cli.jwt_main, [TOKEN, SECRET]) == 0
        assert "Signature: VALID" in capsys.readouterr().out
        assert _exit_code(cli.jwt_main, [TOKEN, "wrong"]) == 2
        assert "Signature: INVALID" in capsys.readouterr().out

    def test_malformed_token(self, capsys: pytest.CaptureFixture) -> None:
        assert _exit_code(cli.jwt_main, ["abc.def", SECRET]) == 1
        captured = capsys.readouterr()
        assert "invalid jwt" in captured.err
        assert "Signature" not in captured.out

    @pytest.mark.parametrize("argv", [[], [TOKEN], [TOKEN, SECRET, "extra"]])
    def test_usage_errors(self, argv: List[str], capsys: pytest.CaptureFixture) -> None:
        assert _exit_code(cli.jwt_main, argv) == 1
        assert "Usage" in capsys.readouterr().err

    def test_usage_errors_are_click_exceptions(self) -> None:
        # _run relies on typer raising the installed click's exception types
        with pytest.raises(click.UsageError):
            cli.jwt_app(args=[], prog_name="jwt_verify", standalone_mode=False)
        assert typer.Exit is click.exceptions.Exit

    @pytest.mark.parametrize("secret", ["-secret", "-vault", "--key", "-v"])
    def test_secret_starting_with_dash(self, secret: str, capsys: pytest.CaptureFixture) -> None:
        token = jwt.sign(b'{"sub":"1"}', secret)
        assert _exit_code(cli.jwt_main, [token, secret]) == 0
        assert capsys.readouterr().out.splitlines() == ["Signature: VALID", 'Payload: {"sub":"1"}']


class TestTotpTool:
    def test_generate(self, cli_runner: CliRunner, fixed_time: float) -> None:
        result = cli_runner.invoke(cli.totp_app, ["generate", TOTP_SECRET])
        assert result.exit_code == 0
        assert result.stdout.strip() == "TOTP: {}".format(totp.generate(TOTP_SECRET, for_time=fixed_time))

    def test_generate_undecodable_secret(self, capsys: pytest.CaptureFixture) -> None:
        assert _exit_code(cli.totp_main, ["generate", "!!!!"]) == 1
        assert "Failed to decode base32 secret" in capsys.readouterr().err

    def test_verify_valid(self, cli_runner: CliRunner, fixed_time: float) -> None:
        code = totp.generate(TOTP_SECRET, for_time=fixed_time)
        result = cli_runner.invoke(cli.totp_app, ["verify", TOTP_SECRET, code])
        assert result.exit_code == 0
        assert result.stdout.strip() == "VALID"

    def test_verify_default_window_accepts_previous_step(self, cli_runner: CliRunner, fixed_time: float) -> None:
        code = totp.generate(TOTP_SECRET, for_time=fixed_time - 30)
        assert cli_runner.invoke(cli.totp_app, ["verify", TOTP_SECRET, code]).exit_code == 0
        result = cli_runner.invoke(cli.totp_app, ["verify", TOTP_SECRET, code, "0"])
        assert result.exit_code == cli.EXIT_INVALID
        assert result.stdout.strip() == "INVALID"

    def test_verify_main_exit_codes(self, fixed_time: float, capsys: pytest.CaptureFixture) -> None:
        code = totp.generate(TOTP_SECRET, for_time=fixed_time)
        assert _exit_code(cli.totp_main, ["verify", TOTP_SECRET, code, "1"]) == 0
        wrong = str((int(code) + 1) % 1000000).zfill(6)
        assert _exit_code(cli.totp_main, ["verify", TOTP_SECRET, wrong, "0"]) == 2
        assert capsys.readouterr().out.splitlines() == ["VALID", "INVALID"]

    @pytest.mark.parametrize(
        "argv",
        [
            [],
            ["generate"],
            ["verify", TOTP_SECRET],
            ["verify", TOTP_SECRET, "123456", "many"],
            ["frobnicate", TOTP_SECRET],
        ],
    )
    def test_usage_errors(self, argv: List[str]) -> None:
        assert _exit_code(cli.totp_main, argv) == 1

    def test_verbose_flag(self, fixed_time: float) -> None:
        code = totp.generate(TOTP_SECRET, for_time=fixed_time)
        assert _exit_code(cli.totp_main, ["--verbose", "verify", TOTP_SECRET, code]) == 0

    def test_verify_undecodable_secret(self, capsys: pytest.CaptureFixture) -> None:
        assert _exit_code(cli.totp_main, ["verify", "!!!!", "123456"]) == 1
        captured = capsys.readouterr()
        assert "Failed to decode base32 secret" in captured.err
        assert captured.out == ""

    def test_negative_window_is_a_usage_error(self, capsys: pytest.CaptureFixture) -> None:
        assert _exit_code(cli.totp_main, ["verify", TOTP_SECRET, "123456", "-1"]) == 1
        assert "INVALID" not in capsys.readouterr().out

    def test_secret_starting_with_dash(self, fixed_time: float, capsys: pytest.CaptureFixture) -> None:
        # the base32 decoder skips "-", so this is the same key
        assert _exit_code(cli.totp_main, ["generate", "-" + TOTP_SECRET]) == 0
        code = totp.generate(TOTP_SECRET, for_time=fixed_time)
        assert capsys.readouterr().out.strip() == "TOTP: {}".format(code)
        assert _exit_code(cli.totp_main, ["verify", "-" + TOTP_SECRET, code]) == 0
