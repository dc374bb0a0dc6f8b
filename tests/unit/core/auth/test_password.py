"""Tests for password hashing."""

import pytest

from taskhive.core.auth.password import PasswordHasher


class TestPasswordHasher:
    """Test bcrypt hashing and verification."""

    def test_hash_returns_bcrypt_hash(self, hasher: PasswordHasher) -> None:
        """Should return a bcrypt hash."""
        hashed = hasher.hash("mypassword123")
        assert hashed.startswith("$2b$10$")
        assert len(hashed) == 60

    def test_hash_is_salted(self, hasher: PasswordHasher) -> None:
        """Same password should produce different hashes."""
        assert hasher.hash("mypassword123") != hasher.hash("mypassword123")

    def test_verify_correct(self, hasher: PasswordHasher) -> None:
        """Should return True for the correct password."""
        hashed = hasher.hash("mypassword123")
        assert hasher.verify("mypassword123", hashed) is True

    def test_verify_incorrect(self, hasher: PasswordHasher) -> None:
        """Should return False for a wrong password."""
        hashed = hasher.hash("mypassword123")
        assert hasher.verify("wrongpassword", hashed) is False

    def test_verify_empty(self, hasher: PasswordHasher) -> None:
        """Should return False for an empty password."""
        hashed = hasher.hash("mypassword123")
        assert hasher.verify("", hashed) is False

    def test_verify_malformed_hash(self, hasher: PasswordHasher) -> None:
        """A corrupt stored hash never verifies."""
        assert hasher.verify("mypassword123", "not-a-hash") is False

    def test_rejects_low_cost(self) -> None:
        """Cost factors below 10 are refused."""
        with pytest.raises(ValueError):
            PasswordHasher(rounds=4)

    async def test_verify_async_without_hash_is_false(self, hasher: PasswordHasher) -> None:
        """A missing user still costs a bcrypt check and never verifies."""
        assert await hasher.verify_async("anything", None) is False

    async def test_async_round_trip(self, hasher: PasswordHasher) -> None:
        """Async hashing verifies like the sync path."""
        hashed = await hasher.hash_async("Secret123")
        assert await hasher.verify_async("Secret123", hashed) is True
