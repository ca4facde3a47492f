import hmac
import unicodedata
from hmac import compare_digest
from typing import Any, List, Optional, Tuple
from urllib.parse import quote, urlencode, urlparse

from .exceptions import HmacFailure


def hmac_digest(key: bytes, message: bytes, digest: Any) -> bytes:
    """
    Computes ``HMAC(digest, key, message)``.

    :param digest: a hashlib constructor or hash name
    :raises HmacFailure: when the hash is not available to the HMAC primitive
    """
    try:
        return hmac.new(key, message, digest).digest()
    except (ValueError, TypeError) as e:
        raise HmacFailure("HMAC computation failed: {}".format(e)) from e


def bytes_equal(a: bytes, b: bytes) -> bool:
    """
    Fixed-time equality check over two buffers of the same length.

    Every byte pair is visited: the XOR of each pair is OR-ed into an
    accumulator and the buffers are equal only if it ends up zero. Length is
    not secret here; callers compare lengths first and must not pass buffers
    of different sizes.
    """
    if len(a) != len(b):
        raise ValueError("buffers must have the same length")
    diff = 0
    for x, y in zip(bytearray(a), bytearray(b)):
        diff |= x ^ y
    return diff == 0


def strings_equal(s1: str, s2: str) -> bool:
    """
    Timing-attack resistant string comparison.

    Normal comparison using == will short-circuit on the first mismatching
    character. This avoids that by scanning the whole string, though we
    still reveal to a timing attack whether the strings are the same
    length.
    """
    # "４８２１９３" (fullwidth digits) compares equal to "482193"
    s1 = unicodedata.normalize("NFKC", s1)
    s2 = unicodedata.normalize("NFKC", s2)
    # lone surrogates (undecodable argv bytes) still compare, never raise
    return compare_digest(s1.encode("utf-8", "surrogatepass"), s2.encode("utf-8", "surrogatepass"))


# otpauth parameters left out of the URI while they hold these values
_URI_DEFAULTS = {"algorithm": "SHA1", "digits": 6, "period": 30}


def _extra_param(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("otpauth parameter {!r} must be a string".format(key))
    if key == "image":
        image = urlparse(value)
        if image.scheme != "https" or not image.netloc or not image.path:
            raise ValueError("{!r} is not a valid https image url".format(value))
    return value


def build_uri(
    secret: str,
    name: str,
    initial_count: Optional[int] = None,
    issuer: Optional[str] = None,
    algorithm: Optional[str] = None,
    digits: Optional[int] = None,
    period: Optional[int] = None,
    **kwargs,
) -> str:
    """
    Returns the otpauth provisioning URI for a HOTP or TOTP secret, suitable
    for encoding in a QR code for an authenticator app.

    See also:
        https://github.com/google/google-authenticator/wiki/Key-Uri-Format

    :param secret: the base32 secret
    :param name: name of the account
    :param initial_count: starting counter value; the URI is a hotp one
        exactly when this is given, 0 included
    :param issuer: the name of the OTP issuer, also used as label prefix
    :param algorithm: hash name such as ``"sha256"``
    :param digits: the length of the generated code
    :param period: the number of seconds each TOTP code stays valid
    :param kwargs: extra string parameters, e.g. an https ``image``
    :returns: provisioning uri
    """
    label = quote(name) if issuer is None else "{}:{}".format(quote(issuer), quote(name))

    params: List[Tuple[str, Any]] = [("secret", secret)]
    if issuer is not None:
        params.append(("issuer", issuer))
    if initial_count is not None:
        params.append(("counter", initial_count))
    given = {"algorithm": algorithm.upper() if algorithm else None, "digits": digits, "period": period}
    for key, default in _URI_DEFAULTS.items():
        if given[key] is not None and given[key] != default:
            params.append((key, given[key]))
    params.extend((key, _extra_param(key, value)) for key, value in kwargs.items())

    otp_type = "totp" if initial_count is None else "hotp"
    # quote, not quote_plus: spaces become %20
    return "otpauth://{}/{}?{}".format(otp_type, label, urlencode(params, quote_via=quote))
