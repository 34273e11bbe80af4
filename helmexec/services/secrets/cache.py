"""
Single-flight cache of decrypted secrets.

Decrypting a secrets file shells out to a helm plugin, which is slow and
may prompt a KMS. When many releases reference the same file concurrently,
exactly one caller decrypts it; everyone else waits for that result. The
outcome, success or failure, is final for the lifetime of the cache.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from ...core.interfaces.logger import ILogger
from ..logging import NullLogger


@dataclass
class _Entry:
    ready: threading.Event = field(default_factory=threading.Event)
    content: bytes = b""
    error: BaseException | None = None

    def result(self) -> bytes:
        self.ready.wait()
        if self.error is not None:
            # Shared by every caller; drop frames left by earlier raises
            raise self.error.with_traceback(None)
        return self.content


class DecryptedSecretCache:
    """
    Memoizes decrypted secret content by absolute path.

    The map lock is held only while looking up or inserting an entry, so a
    slow decrypt of one path never blocks callers asking for another.

    Example:
        >>> cache = DecryptedSecretCache()
        >>> cache.get_or_decrypt("/abs/secrets.yaml", lambda: b"key: value\\n")
        b'key: value\\n'
    """

    def __init__(self, logger: ILogger | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}
        self._logger = logger or NullLogger()

    def get_or_decrypt(self, key: str, decrypt: Callable[[], bytes]) -> bytes:
        """
        Return the decrypted content for ``key``, decrypting at most once.

        Args:
            key: Absolute path of the secrets file
            decrypt: Produces the content; only the first caller runs it

        Raises:
            Whatever ``decrypt`` raised, to the first caller and every later one
        """
        with self._lock:
            entry = self._entries.get(key)
            owner = entry is None
            if owner:
                entry = _Entry()
                self._entries[key] = entry

        if not owner:
            self._logger.debug("Found secret in cache %s", key)
            return entry.result()

        try:
            entry.content = decrypt()
        except BaseException as e:
            entry.error = e
            raise
        finally:
            entry.ready.set()
        return entry.content

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
