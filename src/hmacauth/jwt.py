"""
HS256 signature verification for compact, dot-delimited tokens.

Only HMAC-SHA256 is ever applied. The header segment is never decoded, so
the ``alg`` it declares has no influence on verification; a token that asks
for ``none`` or an asymmetric algorithm is still checked as HS256.
"""
import hashlib
import logging
from typing import NamedTuple, Optional, Tuple, Union

from . import utils
from .encoding import base64url_decode, base64url_encode
from .exceptions import DecodeError, MalformedTokenError

log = logging.getLogger(__name__)

HEADER = b'{"alg":"HS256","typ":"JWT"}'


class VerifyResult(NamedTuple):
    valid: bool
    # decoded payload, only ever set for a valid signature
    payload: Optional[bytes] = None


def _utf8(text: str) -> bytes:
    # undecodable argv bytes arrive as lone surrogates; restore the raw bytes
    try:
        return text.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        # surrogates outside the escape range cannot come from argv
        return text.encode("utf-8", "surrogatepass")


def _key(secret: Union[str, bytes]) -> bytes:
    if isinstance(secret, str):
        return _utf8(secret)
    return secret


def split_token(token: str) -> Tuple[str, str, str]:
    """
    Splits a token on its first two dots.

    Any further dots stay in the signature segment.

    :raises MalformedTokenError: when the token has fewer than two dots
    """
    parts = token.split(".", 2)
    if len(parts) != 3:
        raise MalformedTokenError("token must contain header, payload and signature separated by '.'")
    header, payload, signature = parts
    return header, payload, signature


def signing_input(header_segment: str, payload_segment: str) -> bytes:
    # the encoded segments are signed as-is, never re-decoded
    return _utf8("{}.{}".format(header_segment, payload_segment))


def sign(payload: bytes, secret: Union[str, bytes]) -> str:
    """
    Builds an HS256 token around an opaque payload.

    :param payload: payload bytes, typically compact JSON
    :param secret: the shared key, str secrets are UTF-8 encoded
    :returns: ``header.payload.signature``
    """
    header_segment = base64url_encode(HEADER)
    payload_segment = base64url_encode(payload)
    signature = utils.hmac_digest(_key(secret), signing_input(header_segment, payload_segment), hashlib.sha256)
    return "{}.{}.{}".format(header_segment, payload_segment, base64url_encode(signature))


def verify(token: str, secret: Union[str, bytes]) -> VerifyResult:
    """
    Checks the HMAC-SHA256 signature of a token.

    A signature that does not decode, has the wrong length or does not
    match gives ``VerifyResult(False, None)``. The payload is decoded and
    returned only once the signature has been accepted; if the payload
    segment itself is not valid Base64URL the result is
    ``VerifyResult(True, None)``.

    :param token: the compact token
    :param secret: the shared key, str secrets are UTF-8 encoded
    :raises MalformedTokenError: when the token does not have three segments
    """
    header_segment, payload_segment, signature_segment = split_token(token)

    try:
        signature = base64url_decode(signature_segment)
    except DecodeError:
        log.debug("token signature segment is not valid base64url")
        return VerifyResult(False)

    expected = utils.hmac_digest(_key(secret), signing_input(header_segment, payload_segment), hashlib.sha256)
    if len(expected) != len(signature) or not utils.bytes_equal(expected, signature):
        log.debug("token signature mismatch")
        return VerifyResult(False)

    try:
        payload = base64url_decode(payload_segment)
    except DecodeError:
        log.debug("token payload segment is not valid base64url")
        payload = None
    return VerifyResult(True, payload)
