"""
Unit tests for the single-flight decrypted secret cache.

Tests verify:
- Concurrent requests for one path run the decrypt exactly once
- A slow decrypt of one path does not block another path
- Failures are cached as the terminal outcome
- The default temp-file writer
"""

import os
import threading
import time
import traceback
from concurrent.futures import ThreadPoolExecutor

import pytest

from helmexec.services.secrets.cache import DecryptedSecretCache
from helmexec.services.secrets.materialize import write_temp_file


class TestSingleFlight:
    """Tests for one-decrypt-per-key behavior."""

    def test_concurrent_callers_share_one_decrypt(self):
        cache = DecryptedSecretCache()
        calls = []
        started = threading.Event()
        release = threading.Event()

        def decrypt():
            calls.append(1)
            started.set()
            release.wait(5)
            return b"plaintext"

        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(cache.get_or_decrypt, "/abs/secrets.yaml", decrypt) for _ in range(8)]
            assert started.wait(5)
            release.set()
            results = [f.result(timeout=5) for f in futures]

        assert results == [b"plaintext"] * 8
        assert len(calls) == 1

    def test_sequential_hits_do_not_decrypt_again(self, logger):
        cache = DecryptedSecretCache(logger)
        calls = []

        def decrypt():
            calls.append(1)
            return b"a"

        cache.get_or_decrypt("/abs/a.yaml", decrypt)
        cache.get_or_decrypt("/abs/a.yaml", decrypt)

        assert len(calls) == 1
        assert logger.records == [("debug", "Found secret in cache /abs/a.yaml")]

    def test_slow_key_does_not_block_other_keys(self):
        cache = DecryptedSecretCache()
        release_a = threading.Event()
        a_started = threading.Event()

        def slow():
            a_started.set()
            release_a.wait(5)
            return b"a"

        with ThreadPoolExecutor(max_workers=2) as pool:
            future_a = pool.submit(cache.get_or_decrypt, "/abs/a.yaml", slow)
            assert a_started.wait(5)

            start = time.monotonic()
            assert cache.get_or_decrypt("/abs/b.yaml", lambda: b"b") == b"b"
            assert time.monotonic() - start < 1

            assert not future_a.done()
            release_a.set()
            assert future_a.result(timeout=5) == b"a"

    def test_keys_are_isolated(self):
        cache = DecryptedSecretCache()

        cache.get_or_decrypt("/abs/a.yaml", lambda: b"a")
        cache.get_or_decrypt("/abs/b.yaml", lambda: b"b")

        assert len(cache) == 2
        assert "/abs/a.yaml" in cache


class TestFailures:
    """Tests for error caching."""

    def test_error_is_terminal(self):
        cache = DecryptedSecretCache()
        calls = []

        def failing():
            calls.append(1)
            raise RuntimeError("kms unavailable")

        with pytest.raises(RuntimeError, match="kms unavailable"):
            cache.get_or_decrypt("/abs/a.yaml", failing)
        with pytest.raises(RuntimeError, match="kms unavailable"):
            cache.get_or_decrypt("/abs/a.yaml", lambda: b"never")

        assert len(calls) == 1

    def test_cached_error_traceback_does_not_grow(self):
        cache = DecryptedSecretCache()

        def failing():
            raise RuntimeError("kms unavailable")

        with pytest.raises(RuntimeError):
            cache.get_or_decrypt("/abs/a.yaml", failing)

        depths = []
        for _ in range(5):
            with pytest.raises(RuntimeError) as exc_info:
                cache.get_or_decrypt("/abs/a.yaml", failing)
            depths.append(len(traceback.extract_tb(exc_info.value.__traceback__)))

        assert len(set(depths)) == 1

    def test_waiters_see_the_owner_error(self):
        cache = DecryptedSecretCache()
        started = threading.Event()
        release = threading.Event()

        def failing():
            started.set()
            release.wait(5)
            raise RuntimeError("boom")

        with ThreadPoolExecutor(max_workers=4) as pool:
            owner = pool.submit(cache.get_or_decrypt, "/abs/a.yaml", failing)
            assert started.wait(5)
            waiters = [pool.submit(cache.get_or_decrypt, "/abs/a.yaml", lambda: b"x") for _ in range(3)]
            release.set()

            for future in [owner, *waiters]:
                with pytest.raises(RuntimeError, match="boom"):
                    future.result(timeout=5)


class TestWriteTempFile:
    def test_keeps_directory_and_extension(self, tmp_path):
        source = tmp_path / "secrets.yaml.gotmpl"

        path = write_temp_file(str(source), b"key: value\n")

        assert os.path.dirname(path) == str(tmp_path)
        assert os.path.basename(path).startswith("secret")
        assert path.endswith(".gotmpl")
        with open(path, "rb") as f:
            assert f.read() == b"key: value\n"

    def test_every_call_gets_a_fresh_file(self, tmp_path):
        source = str(tmp_path / "secrets.yaml")

        assert write_temp_file(source, b"a") != write_temp_file(source, b"a")
