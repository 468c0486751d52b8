import asyncio
from contextlib import asynccontextmanager


class RWLock:
    """
    Readers-writer lock for coroutines of a single event loop.

    Any number of readers may hold the lock together; a writer holds it
    alone. The reader group owns the writer lock from the moment the
    first reader enters until the last reader leaves.
    """

    def __init__(self):
        self._readers = 0
        self._readers_lock = asyncio.Lock()
        self._writer_lock = asyncio.Lock()

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def locked(self) -> bool:
        return self._writer_lock.locked()

    @asynccontextmanager
    async def read(self):
        await self._acquire_read()
        try:
            yield
        finally:
            await self._release_read()

    @asynccontextmanager
    async def write(self):
        await self._writer_lock.acquire()
        try:
            yield
        finally:
            self._writer_lock.release()

    async def _acquire_read(self):
        async with self._readers_lock:
            self._readers += 1
            if self._readers == 1:
                # first reader blocks writers
                try:
                    await self._writer_lock.acquire()
                except BaseException:
                    self._readers -= 1
                    raise

    async def _release_read(self):
        async with self._readers_lock:
            self._readers -= 1
            if self._readers == 0:
                # last reader releases writer lock
                self._writer_lock.release()


class ShardedLock:
    """
    Fixed pool of readers-writer locks addressed by digest.

    A digest is routed to shard `digest % shards`. All operations on the
    same record file therefore serialize on the same lock, while
    operations on records of other shards proceed independently. Memory
    is bounded by the shard count, not by the number of keys.

    Each shard favours readers: while at least one read of a shard is in
    progress, new reads join it and writers wait. A steady stream of
    reads on one shard can therefore hold off stores and deletes of
    every key routed to that shard for as long as it lasts.
    """

    def __init__(self, shards: int = 1024) -> None:
        if shards <= 0:
            raise ValueError("shards must be a positive integer")
        self._locks = [RWLock() for _ in range(shards)]

    @property
    def shards(self) -> int:
        return len(self._locks)

    def shard_for(self, digest: int) -> int:
        return digest % len(self._locks)

    def lock_for(self, digest: int) -> RWLock:
        return self._locks[self.shard_for(digest)]

    def read(self, digest: int):
        return self.lock_for(digest).read()

    def write(self, digest: int):
        return self.lock_for(digest).write()
