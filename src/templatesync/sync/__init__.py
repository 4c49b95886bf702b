"""
Template synchronization core.

A template save fans out to every implementation. For each one the engine
snapshots the fields the implementation keeps local, pours the template's
document over it, then puts those fields back without firing another save.

    snapshot -> merge document -> reconcile parameters -> restore locals -> persist
"""

from .engine import SyncReport, TemplateSyncEngine
from .parameters import ReconcileResult, reconcile_parameters
from .triggers import restore_triggers

__all__ = [
    "ReconcileResult",
    "SyncReport",
    "TemplateSyncEngine",
    "reconcile_parameters",
    "restore_triggers",
]
