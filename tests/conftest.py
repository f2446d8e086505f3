"""Shared fixtures for cryptokit tests."""
import pytest

from cryptokit.services.crypto import HashOptions, create_key_pair


@pytest.fixture(scope="session")
def rsa_pair():
    """RSA-2048 key pair shared across the session"""
    return create_key_pair("rsa", 2048)


@pytest.fixture(scope="session")
def other_rsa_pair():
    """A second, unrelated RSA key pair"""
    return create_key_pair("rsa", 2048)


@pytest.fixture(scope="session")
def encrypted_rsa_pair():
    """RSA-2048 key pair whose private PEM is passphrase-protected"""
    return create_key_pair("rsa", 2048, encrypted=True)


@pytest.fixture(scope="session")
def ec_pair():
    return create_key_pair("ec", 256)


@pytest.fixture(scope="session")
def ed25519_pair():
    return create_key_pair("ed25519")


@pytest.fixture
def fast_hash_options():
    """Cheap scrypt parameters to keep tests quick"""
    return HashOptions(n=1024, r=8, p=1)


class FakeClock:
    """Manually advanced clock for expiry tests"""

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


@pytest.fixture
def fake_clock():
    from datetime import datetime, timezone
    return FakeClock(datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc))
