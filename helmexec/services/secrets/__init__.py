"""Decrypted secret cache and temp-file materialization."""

from .cache import DecryptedSecretCache
from .materialize import TempFileWriter, write_temp_file

__all__ = ["DecryptedSecretCache", "TempFileWriter", "write_temp_file"]
