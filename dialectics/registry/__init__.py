"""
Finalized outcome registry and its optional JSON-file store.
"""

from dialectics.registry.registry import OutcomeRegistry
from dialectics.registry.store import OutcomeStore

__all__ = ["OutcomeRegistry", "OutcomeStore"]
