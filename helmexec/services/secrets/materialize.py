"""
Writing decrypted secrets back to disk.

Helm plugins consume values files by path, so cached plaintext is written
to a fresh file on every request. The caller owns and removes that file.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable

# (source path, decrypted content) -> path of the written file
TempFileWriter = Callable[[str, bytes], str]


def write_temp_file(source: str, content: bytes) -> str:
    """
    Write ``content`` to ``secret*<ext>`` next to ``source``.

    Keeping the directory lets relative references inside the values file
    resolve; keeping the extension lets helm pick the right parser.
    """
    directory = os.path.dirname(source) or "."
    _, extension = os.path.splitext(source)
    fd, path = tempfile.mkstemp(prefix="secret", suffix=extension, dir=directory)
    with os.fdopen(fd, "wb") as f:
        f.write(content)
    return path
