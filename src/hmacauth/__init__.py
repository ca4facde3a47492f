import hashlib
import secrets
from typing import Any, Dict
from urllib.parse import parse_qsl, unquote, urlparse

from . import jwt as jwt
from . import totp as totp
from .encoding import base32_encode
from .exceptions import DecodeError as DecodeError
from .exceptions import HmacAuthError as HmacAuthError
from .exceptions import HmacFailure as HmacFailure
from .exceptions import MalformedTokenError as MalformedTokenError
from .hotp import HOTP as HOTP
from .otp import OTP as OTP
from .totp import TOTP as TOTP

__version__ = "1.0.0"

# values of the otpauth "algorithm" parameter
_ALGORITHMS = {"SHA1": hashlib.sha1, "SHA256": hashlib.sha256, "SHA512": hashlib.sha512}


def random_base32(length: int = 32) -> str:
    """
    Returns a fresh unpadded base32 secret of ``length`` characters.

    At least 32 characters (160 bits) are required.
    """
    if length < 32:
        raise ValueError("Secrets should be at least 160 bits")
    # each base32 character carries 5 bits
    return base32_encode(secrets.token_bytes(length * 5 // 8 + 1))[:length]


def random_hex(length: int = 40) -> str:
    """Returns a fresh upper-case hex secret of ``length`` characters, at least 40."""
    if length < 40:
        raise ValueError("Secrets should be at least 160 bits")
    return secrets.token_hex(length // 2 + 1)[:length].upper()


def parse_uri(uri: str) -> OTP:
    """
    Builds a HOTP or TOTP handler from an ``otpauth://`` provisioning URI.

    See also:
        https://github.com/google/google-authenticator/wiki/Key-Uri-Format

    The label is ``issuer:account`` or just ``account``. ``counter`` is only
    read for hotp URIs and ``period`` only for totp URIs; ``digits`` is held
    to the same 1..10 bound as every other handler.

    :param uri: the otpauth URI
    :returns: a :class:`HOTP` or :class:`TOTP`
    :raises ValueError: for another scheme or OTP type, a missing secret, an
        unknown algorithm, a bad digit count or an issuer mismatch
    """
    parsed = urlparse(unquote(uri))
    if parsed.scheme != "otpauth":
        raise ValueError("Not an otpauth URI")
    if parsed.netloc not in ("hotp", "totp"):
        raise ValueError("Not a supported OTP type: {!r}".format(parsed.netloc))

    query = dict(parse_qsl(parsed.query))
    secret = query.get("secret")
    if not secret:
        raise ValueError("No secret found in URI")

    options: Dict[str, Any] = {}
    label_issuer, sep, account = parsed.path[1:].partition(":")
    if sep:
        options["issuer"] = label_issuer
        options["name"] = account
    else:
        options["name"] = label_issuer

    if "issuer" in query:
        if options.setdefault("issuer", query["issuer"]) != query["issuer"]:
            raise ValueError("If issuer is specified in both label and parameters, it should be equal.")
    if "algorithm" in query:
        if query["algorithm"] not in _ALGORITHMS:
            raise ValueError("Invalid value for algorithm, must be one of {}".format(", ".join(_ALGORITHMS)))
        options["digest"] = _ALGORITHMS[query["algorithm"]]
    if "digits" in query:
        # out-of-range values are rejected by the handler constructor
        options["digits"] = int(query["digits"])

    if parsed.netloc == "hotp":
        return HOTP(secret, initial_count=int(query.get("counter", 0)), **options)
    return TOTP(secret, interval=int(query.get("period", totp.DEFAULT_INTERVAL)), **options)
