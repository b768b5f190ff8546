"""
Per-account write serialization.

Two writers on the same account must never both read the same
opening balance. Within one process every balance change holds
the account's lock from the balance read through commit;
writers in other processes are caught by the Account.version
column instead.
"""

import threading
import weakref
from contextlib import contextmanager


class AccountLocks:
    """
    Registry handing out one re-entrant lock per account id.

    Entries live only while some caller still references the lock,
    so idle accounts do not accumulate.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, threading.RLock] = (
            weakref.WeakValueDictionary()
        )

    def for_account(self, account_id: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(account_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[account_id] = lock
            return lock

    @contextmanager
    def hold(self, account_id: str):
        lock = self.for_account(account_id)
        with lock:
            yield


# Shared by every LedgerService in the process
account_locks = AccountLocks()
