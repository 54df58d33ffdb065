import asyncio
import weakref
from uuid import UUID


class RecordLocks:
    """
    One asyncio.Lock per record id.

    Operations on the same record (a quiz session, or the question list of a
    quiz) run one after another inside this process; the row lock taken by
    the store covers other processes. Locks are dropped once no coroutine
    holds a reference to them.
    """

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()

    def for_record(self, record_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(record_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[record_id] = lock
        return lock


# quiz sessions, keyed by submission id
submission_locks = RecordLocks()

# question lists, keyed by quiz event id
question_locks = RecordLocks()
