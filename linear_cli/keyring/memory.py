"""In-memory backend for tests and keyring-less environments."""
from typing import Dict, Optional, Set

from ..errors import SecureStorageError


class MemoryBackend:
    """
    Dict-backed secure storage.

    Accounts listed in fail_get, fail_set or fail_delete raise
    SecureStorageError for that operation, simulating a tool failure.
    """

    def __init__(self, secrets: Optional[Dict[str, str]] = None):
        self.secrets: Dict[str, str] = dict(secrets or {})
        self.fail_get: Set[str] = set()
        self.fail_set: Set[str] = set()
        self.fail_delete: Set[str] = set()

    def get(self, account: str) -> Optional[str]:
        if account in self.fail_get:
            raise SecureStorageError(f"simulated lookup failure for {account}", exit_code=2)
        return self.secrets.get(account)

    def set(self, account: str, secret: str) -> None:
        if account in self.fail_set:
            raise SecureStorageError(f"simulated store failure for {account}", exit_code=2)
        self.secrets[account] = secret

    def delete(self, account: str) -> None:
        if account in self.fail_delete:
            raise SecureStorageError(f"simulated clear failure for {account}", exit_code=2)
        self.secrets.pop(account, None)
