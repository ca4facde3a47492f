import hashlib
import logging
from typing import Any, Optional

from . import utils
from .otp import DEFAULT_DIGITS, OTP

log = logging.getLogger(__name__)


class HOTP(OTP):
    """
    Handler for HMAC-based OTP counters (RFC 4226).
    """

    def __init__(
        self,
        s: str,
        digits: int = DEFAULT_DIGITS,
        digest: Any = None,
        name: Optional[str] = None,
        issuer: Optional[str] = None,
        initial_count: int = 0,
    ) -> None:
        """
        :param s: secret in base32 format
        :param initial_count: starting HMAC counter value, defaults to 0
        :param digits: number of digits in the OTP
        :param digest: digest function to use in the HMAC, SHA-1 when omitted
        :param name: account name
        :param issuer: issuer
        """
        if initial_count < 0:
            raise ValueError("initial_count must not be negative")
        self.initial_count = initial_count
        super().__init__(s=s, digits=digits, digest=digest or hashlib.sha1, name=name, issuer=issuer)

    def at(self, count: int) -> str:
        """
        Generates the OTP for the given count.

        :param count: the OTP HMAC counter, relative to ``initial_count``
        :returns: OTP
        """
        return self.generate_otp(self.initial_count + count)

    def verify(self, otp: str, counter: int, look_ahead: int = 0) -> bool:
        """
        Verifies a code against the counter and, to resynchronise a token
        that was pressed without being used, the next ``look_ahead`` counters.

        :param otp: the OTP to check against
        :param counter: the OTP HMAC counter expected by the server
        :param look_ahead: how many counters past ``counter`` are accepted
        """
        if look_ahead < 0:
            raise ValueError("look_ahead must not be negative")
        for count in range(counter, counter + look_ahead + 1):
            if utils.strings_equal(str(otp), self.at(count)):
                log.debug("HOTP code matched at counter offset %d", count - counter)
                return True
        return False

    def provisioning_uri(
        self,
        name: Optional[str] = None,
        initial_count: Optional[int] = None,
        issuer_name: Optional[str] = None,
        **kwargs,
    ) -> str:
        """
        Returns the otpauth:// URI used to provision an authenticator app.

        :param name: name of the user account
        :param initial_count: starting HMAC counter value, defaults to the
            handler's own
        :param issuer_name: the name of the OTP issuer
        :returns: provisioning URI
        """
        return utils.build_uri(
            self.secret,
            name=name or self.name,
            initial_count=self.initial_count if initial_count is None else initial_count,
            issuer=issuer_name or self.issuer,
            algorithm=self.digest().name,
            digits=self.digits,
            **kwargs,
        )
