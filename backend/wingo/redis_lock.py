import os
import socket
import time
import uuid

import redis
from django.conf import settings

SCHEDULER_LOCK_KEY = "wingo:scheduler:lock"

# Both scripts only touch the key while it still holds our token.
_RENEW_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('pexpire', KEYS[1], ARGV[2])
end
return 0
"""
_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


def get_redis():
    return redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)


class LockLost(RuntimeError):
    pass


class RedisSchedulerLock:
    """
    Keeps a single round scheduler running across hosts.

    The stored token is ``host:pid:nonce``, so ``holder()`` tells an
    operator which process is ticking rounds when a second one refuses to
    start.
    """

    def __init__(self, key: str = SCHEDULER_LOCK_KEY, ttl_seconds: int = None, client=None):
        self.key = key
        self.ttl_ms = int((ttl_seconds or settings.WINGO_SCHEDULER_LOCK_TTL) * 1000)
        self.token = f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"
        self.r = client or get_redis()
        self._renew = self.r.register_script(_RENEW_SCRIPT)
        self._release = self.r.register_script(_RELEASE_SCRIPT)

    def acquire(self) -> bool:
        return bool(self.r.set(self.key, self.token, nx=True, px=self.ttl_ms))

    def renew(self) -> bool:
        return bool(self._renew(keys=[self.key], args=[self.token, self.ttl_ms]))

    def release(self) -> bool:
        return bool(self._release(keys=[self.key], args=[self.token]))

    def holder(self):
        return self.r.get(self.key)


class LockHeartbeat:
    """Renews the lock at most every ``every_seconds``; raises LockLost once it is gone."""

    def __init__(self, lock: RedisSchedulerLock, every_seconds: float = 5.0):
        self.lock = lock
        self.every = every_seconds
        self._next = time.monotonic() + self.every

    def tick(self):
        now = time.monotonic()
        if now >= self._next:
            if not self.lock.renew():
                raise LockLost(f"Lost scheduler lock {self.lock.key}")
            self._next = now + self.every
