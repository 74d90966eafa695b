"""API endpoint modules for v1."""

from eiken_trainer.api.v1.endpoints import admin, levels, practice

__all__ = [
    "admin",
    "levels",
    "practice",
]
