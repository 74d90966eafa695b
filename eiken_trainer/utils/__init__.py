"""Utility helpers package."""

from eiken_trainer.utils.cache import CacheBackend, cache_backend, build_cache_key
from eiken_trainer.utils.exceptions import (
    NotFoundError,
    ProgressConflictError,
    ProgressError,
    TrainerException,
)

__all__ = [
    "CacheBackend",
    "cache_backend",
    "build_cache_key",
    "NotFoundError",
    "ProgressConflictError",
    "ProgressError",
    "TrainerException",
]
