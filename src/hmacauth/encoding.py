import base64
import binascii
import logging
from typing import Dict

from .exceptions import DecodeError

log = logging.getLogger(__name__)

BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

# symbol -> 5-bit value, lowercase letters fold onto their uppercase value
_BASE32_VALUES: Dict[str, int] = {ch: i for i, ch in enumerate(BASE32_ALPHABET)}
_BASE32_VALUES.update({ch.lower(): i for ch, i in _BASE32_VALUES.items() if ch.isalpha()})


def base64url_decode(text: str) -> bytes:
    """
    Decodes the URL-safe, unpadded base64 variant used by token segments.

    ``-`` and ``_`` are mapped back onto ``+`` and ``/``, the text is padded
    with ``=`` to a multiple of four characters and then decoded with the
    standard alphabet.

    :param text: Base64URL text, optionally carrying trailing ``=`` padding
    :returns: the decoded bytes
    :raises DecodeError: when the text is not valid base64 or decodes to
        zero bytes
    """
    standard = text.replace("-", "+").replace("_", "/")
    standard += "=" * (-len(standard) % 4)
    try:
        decoded = base64.b64decode(standard.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as e:
        log.debug("base64url segment rejected: %s", e)
        raise DecodeError("invalid base64url data") from e
    if not decoded:
        raise DecodeError("base64url data decodes to zero bytes")
    return decoded


def base64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def base32_decode(text: str) -> bytes:
    """
    Permissive RFC 4648 base32 decoder for human-entered secrets.

    Decoding stops at the first ``=`` or space. Characters outside the
    alphabet are skipped rather than rejected, and letters are accepted in
    either case. Trailing bits that do not complete a byte are dropped, so
    this never fails.

    :param text: base32 text, padding optional
    :returns: the decoded bytes
    """
    output = bytearray()
    buffer = 0
    bits_left = 0
    for ch in text:
        if ch in ("=", " "):
            break
        value = _BASE32_VALUES.get(ch)
        if value is None:
            continue
        buffer = (buffer << 5) | value
        bits_left += 5
        if bits_left >= 8:
            bits_left -= 8
            output.append((buffer >> bits_left) & 0xFF)
            # only the unconsumed low bits stay in the accumulator
            buffer &= (1 << bits_left) - 1
    return bytes(output)


def base32_encode(data: bytes) -> str:
    # The otpauth scheme does not use base32 padding, see random_base32()
    return base64.b32encode(data).decode("ascii").rstrip("=")
