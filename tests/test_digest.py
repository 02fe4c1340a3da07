"""Tests for the digest engine."""

import hashlib
import hmac
import inspect

import pytest

from hmacauth.core import digest as digest_module
from hmacauth.core.digest import DigestEngine, generate_secret
from hmacauth.core.errors import ConfigurationError

from conftest import SECRET


class TestDigestEngine:
    """Tests for HMAC create/verify."""

    @pytest.fixture
    def engine(self) -> DigestEngine:
        return DigestEngine(SECRET)

    def test_create_matches_hmac_sha256(self, engine):
        """Digest is lowercase hex HMAC-SHA256."""
        expected = hmac.new(SECRET.encode(), b"hello", hashlib.sha256).hexdigest()
        assert engine.create(b"hello") == expected
        assert len(engine.create(b"hello")) == 64
        assert engine.digest_size == 32

    def test_create_is_deterministic(self, engine):
        assert engine.create(b"payload") == engine.create(b"payload")

    def test_different_secrets_differ(self, engine):
        other = DigestEngine("b" * 32)
        assert engine.create(b"payload") != other.create(b"payload")

    def test_bytes_secret_matches_str_secret(self, engine):
        assert DigestEngine(SECRET.encode()).create(b"x") == engine.create(b"x")

    def test_verify_round_trip(self, engine):
        assert engine.verify(b"data", engine.create(b"data")) is True

    def test_verify_rejects_other_message(self, engine):
        assert engine.verify(b"data", engine.create(b"other")) is False

    def test_verify_accepts_uppercase_hex(self, engine):
        assert engine.verify(b"data", engine.create(b"data").upper()) is True

    @pytest.mark.parametrize(
        "candidate",
        ["", "invalid", "zz" * 32, "ab" * 31, "ab" * 33, "abc", None, 12345],
    )
    def test_verify_malformed_candidate_returns_false(self, engine, candidate):
        """Malformed candidates never raise."""
        assert engine.verify(b"data", candidate) is False

    def test_flipped_character_rejected(self, engine):
        good = engine.create(b"data")
        for i in range(len(good)):
            flipped = good[:i] + ("0" if good[i] != "0" else "1") + good[i + 1 :]
            assert engine.verify(b"data", flipped) is False

    @pytest.mark.parametrize("secret", [None, "", b""])
    def test_missing_secret_raises(self, secret):
        with pytest.raises(ConfigurationError):
            DigestEngine(secret)

    def test_unsupported_algorithm_raises(self):
        with pytest.raises(ConfigurationError):
            DigestEngine(SECRET, algorithm="md5")

    def test_sha512_digest_length(self):
        engine = DigestEngine(SECRET, algorithm="sha512")
        assert engine.digest_size == 64
        assert len(engine.create(b"x")) == 128
        assert engine.verify(b"x", engine.create(b"x")) is True

    def test_repr_hides_secret(self, engine):
        assert SECRET not in repr(engine)

    def test_verify_uses_constant_time_compare(self):
        """Comparison goes through hmac.compare_digest, not ==."""
        source = inspect.getsource(DigestEngine.verify)
        assert "compare_digest" in source
        assert "==" not in source


def test_generate_secret_length():
    secret = generate_secret()
    assert len(secret) == 64
    int(secret, 16)
    assert generate_secret(16) != generate_secret(16)
    assert len(generate_secret(16)) == 32


def test_supported_algorithms():
    assert digest_module.SUPPORTED_ALGORITHMS == ("sha256", "sha512", "sha1")
