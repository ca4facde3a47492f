"""Tests for comparison helpers, the HMAC wrapper and URI building."""

import hashlib
import hmac
import os

import pytest

from hmacauth import utils
from hmacauth.exceptions import HmacFailure


class TestBytesEqual:
    def test_identical_buffers(self) -> None:
        for length in (0, 1, 20, 32):
            data = os.urandom(length)
            assert utils.bytes_equal(data, bytes(data))

    def test_single_byte_difference_anywhere(self) -> None:
        data = os.urandom(32)
        for position in range(len(data)):
            changed = bytearray(data)
            changed[position] ^= 0x01
            assert not utils.bytes_equal(data, bytes(changed))

    def test_random_pairs(self) -> None:
        for _ in range(200):
            a, b = os.urandom(8), os.urandom(8)
            assert utils.bytes_equal(a, b) == (a == b)

    def test_length_mismatch_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            utils.bytes_equal(b"abc", b"abcd")


class TestStringsEqual:
    def test_equal(self) -> None:
        assert utils.strings_equal("482193", "482193")

    def test_not_equal(self) -> None:
        assert not utils.strings_equal("482193", "482194")
        assert not utils.strings_equal("482193", "48219")

    def test_fullwidth_digits_are_normalised(self) -> None:
        assert utils.strings_equal("４８２１９３", "482193")

    def test_lone_surrogate_compares_unequal(self) -> None:
        assert utils.strings_equal("\udcff", "a") is False
        assert utils.strings_equal("\udcff12345", "\udcff12345")


class TestHmacDigest:
    def test_matches_hmac_module(self) -> None:
        expected = hmac.new(b"key", b"message", hashlib.sha256).digest()
        assert utils.hmac_digest(b"key", b"message", hashlib.sha256) == expected

    def test_unknown_hash_raises_hmac_failure(self) -> None:
        with pytest.raises(HmacFailure):
            utils.hmac_digest(b"key", b"message", "no-such-hash")


class TestBuildUri:
    def test_totp_defaults(self) -> None:
        uri = utils.build_uri("JBSWY3DPEHPK3PXP", "alice@example.com", issuer="Example")
        assert uri == "otpauth://totp/Example:alice%40example.com?secret=JBSWY3DPEHPK3PXP&issuer=Example"

    def test_hotp_with_non_default_values(self) -> None:
        uri = utils.build_uri(
            "JBSWY3DPEHPK3PXP", "alice", initial_count=0, algorithm="sha256", digits=8, period=60
        )
        assert uri == (
            "otpauth://hotp/alice?secret=JBSWY3DPEHPK3PXP&counter=0&algorithm=SHA256&digits=8&period=60"
        )

    def test_image_must_be_https(self) -> None:
        with pytest.raises(ValueError):
            utils.build_uri("JBSWY3DPEHPK3PXP", "alice", image="http://example.com/logo.png")

    def test_extra_parameters_must_be_strings(self) -> None:
        with pytest.raises(ValueError):
            utils.build_uri("JBSWY3DPEHPK3PXP", "alice", colour=3)

    def test_defaults_are_omitted(self) -> None:
        uri = utils.build_uri("JBSWY3DPEHPK3PXP", "alice", algorithm="sha1", digits=6, period=30)
        assert uri == "otpauth://totp/alice?secret=JBSWY3DPEHPK3PXP"

    def test_spaces_are_percent_encoded(self) -> None:
        uri = utils.build_uri("JBSWY3DPEHPK3PXP", "alice smith", issuer="Big Co", image="https://example.com/a b.png")
        assert uri == (
            "otpauth://totp/Big%20Co:alice%20smith?secret=JBSWY3DPEHPK3PXP&issuer=Big%20Co"
            "&image=https%3A%2F%2Fexample.com%2Fa%20b.png"
        )
