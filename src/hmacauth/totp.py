import calendar
import datetime
import hashlib
import hmac
import logging
import time
from typing import Any, Optional, Union

from . import utils
from .encoding import base32_decode
from .otp import DEFAULT_DIGITS, OTP, code_at

log = logging.getLogger(__name__)

DEFAULT_INTERVAL = 30
DEFAULT_WINDOW = 1
# module-level verify() always compares codes of this length
VERIFY_DIGITS = 6

ForTime = Union[int, float, datetime.datetime]


def _timestamp(for_time: Optional[ForTime]) -> float:
    if for_time is None:
        return time.time()
    if isinstance(for_time, datetime.datetime):
        if for_time.tzinfo:
            return calendar.timegm(for_time.utctimetuple())
        return time.mktime(for_time.timetuple())
    return for_time


def time_step(for_time: Optional[ForTime] = None, interval: int = DEFAULT_INTERVAL) -> int:
    """
    Returns ``floor(unix_time / interval)``, the counter TOTP feeds to HOTP.

    :param for_time: Unix seconds or a datetime; the current time if omitted
    :param interval: step length in seconds
    """
    return int(_timestamp(for_time) // interval)


class TOTP(OTP):
    """
    Handler for time-based OTP counters.
    """

    def __init__(
        self,
        s: str,
        digits: int = DEFAULT_DIGITS,
        digest: Any = None,
        name: Optional[str] = None,
        issuer: Optional[str] = None,
        interval: int = DEFAULT_INTERVAL,
    ) -> None:
        """
        :param s: secret in base32 format
        :param interval: the time interval in seconds for OTP. This defaults to 30.
        :param digits: number of digits in the OTP
        :param digest: digest function to use in the HMAC, SHA-1 when omitted
        :param name: account name
        :param issuer: issuer
        """
        if interval <= 0:
            raise ValueError("interval must be a positive number of seconds")
        self.interval = interval
        super().__init__(s=s, digits=digits, digest=digest or hashlib.sha1, name=name, issuer=issuer)

    def at(self, for_time: ForTime, counter_offset: int = 0) -> str:
        """
        Accepts either a Unix timestamp integer or a datetime object.

        :param for_time: the time to generate an OTP for
        :param counter_offset: the amount of ticks to add to the time counter
        :returns: OTP value
        """
        return self.generate_otp(self.timecode(for_time) + counter_offset)

    def now(self) -> str:
        """
        Generate the current time OTP

        :returns: OTP value
        """
        return self.generate_otp(self.timecode(None))

    def verify(self, otp: str, for_time: Optional[ForTime] = None, valid_window: int = 0) -> bool:
        """
        Verifies the OTP passed in against the current time OTP.

        :param otp: the OTP to check against
        :param for_time: Time to check OTP at (defaults to now)
        :param valid_window: extends the validity to this many counter ticks before and after the current one
        :returns: True if verification succeeded, False otherwise
        """
        if valid_window < 0:
            raise ValueError("valid_window must not be negative")
        counter = self.timecode(for_time)
        for delta in range(-valid_window, valid_window + 1):
            if counter + delta < 0:
                continue
            if utils.strings_equal(str(otp), self.generate_otp(counter + delta)):
                return True
        return False

    def provisioning_uri(self, name: Optional[str] = None, issuer_name: Optional[str] = None, **kwargs) -> str:
        """
        Returns the otpauth:// URI used to provision an authenticator app.

        :param name: name of the user account
        :param issuer_name: the name of the OTP issuer
        :returns: provisioning URI
        """
        return utils.build_uri(
            self.secret,
            name or self.name,
            issuer=issuer_name or self.issuer,
            algorithm=self.digest().name,
            digits=self.digits,
            period=self.interval,
            **kwargs,
        )

    def timecode(self, for_time: Optional[ForTime]) -> int:
        """
        Accepts either a timezone naive (`for_time.tzinfo is None`) or
        a timezone aware datetime as argument and returns the
        corresponding counter value (timecode).
        """
        return time_step(for_time, self.interval)


def generate(secret_b32: str, for_time: Optional[ForTime] = None) -> str:
    """
    Returns the 6-digit SHA-1 TOTP code for a base32 secret at the current
    30 second step, or at ``for_time`` when given.
    """
    return code_at(base32_decode(secret_b32), time_step(for_time), VERIFY_DIGITS)


def verify(
    secret_b32: str,
    candidate_code: str,
    window: int = DEFAULT_WINDOW,
    for_time: Optional[ForTime] = None,
) -> bool:
    """
    Checks a code against the current time step and ``window`` steps on
    either side of it.

    Codes are always compared as 6-digit strings, whatever digit count was
    used to generate them. The comparison is exact but fixed-time; a
    candidate with non-ASCII characters never matches. Steps before the
    Unix epoch are skipped.

    :param secret_b32: the shared secret in base32
    :param candidate_code: the code supplied by the user
    :param window: accepted drift in steps, at least 0
    :param for_time: reference time, the current time if omitted
    :returns: True on the first matching step, False if none match
    """
    if window < 0:
        raise ValueError("window must not be negative")
    try:
        candidate = candidate_code.encode("ascii")
    except UnicodeEncodeError:
        log.debug("TOTP code rejected: not an ASCII string")
        return False
    secret = base32_decode(secret_b32)
    current = time_step(for_time)
    for delta in range(-window, window + 1):
        step = current + delta
        if step < 0:
            continue
        if hmac.compare_digest(candidate, code_at(secret, step, VERIFY_DIGITS).encode("ascii")):
            log.debug("TOTP code accepted at step offset %d", delta)
            return True
    log.debug("TOTP code rejected across %d steps", 2 * window + 1)
    return False
