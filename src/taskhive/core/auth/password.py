"""Password hashing utilities using bcrypt."""

from __future__ import annotations

import asyncio

import bcrypt

MIN_ROUNDS = 10


class PasswordHasher:
    """bcrypt hashing with a configurable cost factor.

    The async variants run bcrypt in a worker thread so the event loop is not
    blocked for the duration of a hash.
    """

    def __init__(self, rounds: int = 12) -> None:
        """Initialize the hasher.

        Args:
            rounds: bcrypt cost factor, at least 10.

        Raises:
            ValueError: If rounds is below the minimum.
        """
        if rounds < MIN_ROUNDS:
            raise ValueError(f"bcrypt rounds must be at least {MIN_ROUNDS}")
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, password: str) -> str:
        """Hash a password.

        Args:
            password: Plain text password

        Returns:
            Bcrypt hash string
        """
        salt = bcrypt.gensalt(rounds=self.rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a hash.

        Args:
            plain_password: Plain text password to check
            hashed_password: Bcrypt hash to check against

        Returns:
            True if password matches hash
        """
        if not plain_password or not hashed_password:
            return False
        try:
            return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash
            return False

    def verify_dummy(self, plain_password: str) -> bool:
        """Spend the same time as a real check, against a throwaway hash.

        Used when the user does not exist so that response timing does not
        reveal whether an email is registered. Always returns False.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("dummy-password-never-matches")
        self.verify(plain_password or "x", self._dummy_hash)
        return False

    async def hash_async(self, password: str) -> str:
        """Hash a password in a worker thread."""
        return await asyncio.to_thread(self.hash, password)

    async def verify_async(self, plain_password: str, hashed_password: str | None) -> bool:
        """Verify a password in a worker thread.

        A None hash runs the dummy check and returns False.
        """
        if hashed_password is None:
            return await asyncio.to_thread(self.verify_dummy, plain_password)
        return await asyncio.to_thread(self.verify, plain_password, hashed_password)
