"""Persistence port and its SQLAlchemy adapter."""
from .base import StatusPatch, TargetStore, apply_patch
from .sql import SqlTargetStore

__all__ = ["StatusPatch", "TargetStore", "SqlTargetStore", "apply_patch"]
