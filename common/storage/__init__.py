"""Storage abstraction layer for on-device key-value persistence."""

from .backend import KeyValueBackend
from .local import FileBackend, MemoryBackend

__all__ = ['KeyValueBackend', 'FileBackend', 'MemoryBackend']
