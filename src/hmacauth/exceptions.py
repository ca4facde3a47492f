class HmacAuthError(Exception):
    """
    Base class for errors raised by hmacauth.
    """


class DecodeError(HmacAuthError, ValueError):
    """
    Raised when a Base64URL string does not decode to at least one byte.
    """


class MalformedTokenError(HmacAuthError, ValueError):
    """
    Raised when a token does not contain the two ``.`` delimiters separating
    header, payload and signature.
    """


class HmacFailure(HmacAuthError, RuntimeError):
    """
    Raised when the HMAC primitive cannot be computed, usually because the
    requested hash is not available on this platform.
    """
