import asyncio

import bcrypt

BCRYPT_ROUNDS = 10


class BcryptPasswordHasher:
    """bcrypt hashing run in a worker thread so the event loop keeps serving."""

    def __init__(self, rounds: int = BCRYPT_ROUNDS) -> None:
        self.rounds = rounds

    async def hash(self, raw: str) -> str:
        if not raw:
            raise ValueError("Password cannot be empty")
        return await asyncio.to_thread(self._hash, raw)

    async def verify(self, raw: str, hashed: str) -> bool:
        if not raw or not hashed:
            return False
        return await asyncio.to_thread(self._verify, raw, hashed)

    def _hash(self, raw: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(raw.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def _verify(raw: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(raw.encode("utf-8"), hashed.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash
            return False
