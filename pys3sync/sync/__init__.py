"""Directory to bucket synchronization."""

from .clear import ClearEngine
from .comparator import FileComparator, SyncAction, SyncDecision, SyncPlan
from .engine import SyncEngine
from .matcher import PathMatcher, matches
from .operations import SyncOperations
from .params import SKIP, ParamResolver, resolve_params
from .progress import ProgressReporter, SyncProgressTracker
from .remote_index import RemoteObjectIndex, iter_batches
from .scanner import DirectoryScanner, LocalFile, RemoteObject
from .target import ParamRule, SyncTarget

__all__ = [
    "ClearEngine",
    "DirectoryScanner",
    "FileComparator",
    "LocalFile",
    "ParamResolver",
    "ParamRule",
    "PathMatcher",
    "ProgressReporter",
    "RemoteObject",
    "RemoteObjectIndex",
    "SKIP",
    "SyncAction",
    "SyncDecision",
    "SyncEngine",
    "SyncOperations",
    "SyncPlan",
    "SyncProgressTracker",
    "SyncTarget",
    "iter_batches",
    "matches",
    "resolve_params",
]
