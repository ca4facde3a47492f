import hashlib
import struct
from typing import Any, Optional

from . import utils
from .encoding import base32_decode

DEFAULT_DIGITS = 6
MAX_DIGITS = 10

# byte 19 of a SHA-1 digest carries the truncation offset
MIN_DIGEST_SIZE = 20


def truncate(digest: bytes) -> int:
    """
    RFC 4226 dynamic truncation.

    The low nibble of the final digest byte (byte 19 of a SHA-1 digest)
    selects an offset between 0 and 15; the four bytes starting there are
    read big-endian with the top bit masked off, giving a 31-bit value.

    :param digest: HMAC output of at least 20 bytes
    :returns: the truncated value
    """
    if len(digest) < MIN_DIGEST_SIZE:
        raise ValueError("digest must be at least {} bytes".format(MIN_DIGEST_SIZE))
    offset = digest[-1] & 0xF
    # e.g. offset 10 of 1f86...50ef7f19...5a -> 0x50ef7f19
    return struct.unpack(">I", digest[offset : offset + 4])[0] & 0x7FFFFFFF


def code_at(secret: bytes, counter: int, digits: int = DEFAULT_DIGITS, digest: Any = hashlib.sha1) -> str:
    """
    Computes the HOTP code for a raw secret and counter.

    :param secret: raw key bytes
    :param counter: the HMAC counter, for TOTP the time step
    :param digits: length of the zero-padded decimal code
    :param digest: hash used in the HMAC, SHA-1 unless configured otherwise
    :returns: the code as a string of exactly ``digits`` characters
    """
    if not 1 <= digits <= MAX_DIGITS:
        raise ValueError("digits must be between 1 and {}".format(MAX_DIGITS))
    if not 0 <= counter < 1 << 64:
        raise ValueError("counter must fit in an unsigned 64-bit integer")
    hmac_hash = utils.hmac_digest(secret, OTP.int_to_bytestring(counter), digest)
    code = truncate(hmac_hash) % 10**digits
    return "{:0{}d}".format(code, digits)


class OTP(object):
    """
    Base class for OTP handlers.
    """

    def __init__(
        self,
        s: str,
        digits: int = DEFAULT_DIGITS,
        digest: Any = hashlib.sha1,
        name: Optional[str] = None,
        issuer: Optional[str] = None,
    ) -> None:
        if not 1 <= digits <= MAX_DIGITS:
            raise ValueError("digits must be between 1 and {}".format(MAX_DIGITS))
        self.digits = digits
        if digest in [hashlib.md5, hashlib.shake_128]:
            raise ValueError("selected digest function must generate digest size greater than or equals to 20 bytes")
        self.digest = digest
        self.secret = s
        self.name = name or "Secret"
        self.issuer = issuer

    def generate_otp(self, input: int) -> str:
        """
        :param input: the HMAC counter value to use as the OTP input.
            Usually either the counter, or the computed integer based on the Unix timestamp
        """
        if input < 0:
            raise ValueError("input must be positive integer")
        return code_at(self.byte_secret(), input, digits=self.digits, digest=self.digest)

    def byte_secret(self) -> bytes:
        # "JBSWY3DPEHPK3PXP" -> b"Hello!\xde\xad\xbe\xef"
        return base32_decode(self.secret)

    @staticmethod
    def int_to_bytestring(i: int, padding: int = 8) -> bytes:
        """
        Turns an integer to the OATH specified
        bytestring, which is fed to the HMAC
        along with the secret
        """
        return i.to_bytes(padding, "big")
