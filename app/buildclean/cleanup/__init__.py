"""Fileset cleanup engine.

This module provides pattern matching, fileset resolution, deletion
planning and plan execution for cleaning build output directories.
"""

from buildclean.cleanup.deleter import Deleter, classify_error
from buildclean.cleanup.engine import CleanupEngine, EngineState
from buildclean.cleanup.errors import (
    CleanupError,
    DeletionFailedError,
    InvalidRequestError,
    InvalidTargetError,
)
from buildclean.cleanup.models import (
    CleanupPolicy,
    CleanupRequest,
    DeleteMode,
    DeletionFailure,
    DeletionPlan,
    DeletionResult,
    ErrorKind,
    FilesetSpec,
    PathKind,
    PlanEntry,
    PlanGroup,
    ResolvedFileset,
)
from buildclean.cleanup.patterns import DEFAULT_EXCLUDES, PatternMatcher, matches
from buildclean.cleanup.planner import DeletionPlanner
from buildclean.cleanup.resolver import FilesetResolver

__all__ = [
    "DEFAULT_EXCLUDES",
    "CleanupEngine",
    "CleanupError",
    "CleanupPolicy",
    "CleanupRequest",
    "DeleteMode",
    "Deleter",
    "DeletionFailedError",
    "DeletionFailure",
    "DeletionPlan",
    "DeletionPlanner",
    "DeletionResult",
    "EngineState",
    "ErrorKind",
    "FilesetResolver",
    "FilesetSpec",
    "InvalidRequestError",
    "InvalidTargetError",
    "PathKind",
    "PatternMatcher",
    "PlanEntry",
    "PlanGroup",
    "ResolvedFileset",
    "classify_error",
    "matches",
]
