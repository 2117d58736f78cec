"""Cleanup orchestration.

Composes resolution, planning and deletion for one CleanupRequest.
Structural problems are detected before anything is deleted; per-path
problems are handled by the Deleter according to the request's policy.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from enum import Enum
from typing import TYPE_CHECKING

from buildclean.cleanup.deleter import Deleter
from buildclean.cleanup.errors import InvalidRequestError, InvalidTargetError
from buildclean.cleanup.models import (
    CleanupPolicy,
    DeletionPlan,
    DeletionResult,
)
from buildclean.cleanup.planner import DeletionPlanner
from buildclean.cleanup.resolver import FilesetResolver

if TYPE_CHECKING:
    from buildclean.cleanup.models import CleanupRequest

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    """Lifecycle of a single cleanup invocation."""

    IDLE = "idle"
    PLANNING = "planning"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class CleanupEngine:
    """Runs cleanup requests end to end.

    Args:
        resolver: Fileset resolver. Defaults to FilesetResolver().
        planner: Deletion planner. Defaults to DeletionPlanner().
        deleter: Plan executor. Defaults to Deleter().

    Example:
        >>> engine = CleanupEngine()
        >>> result = engine.run(CleanupRequest(default_targets=(Path("target"),)))
        >>> result.deleted
        (PosixPath('/work/project/target'),)
    """

    def __init__(
        self,
        resolver: FilesetResolver | None = None,
        planner: DeletionPlanner | None = None,
        deleter: Deleter | None = None,
    ) -> None:
        self._resolver = resolver or FilesetResolver()
        self._planner = planner or DeletionPlanner()
        self._deleter = deleter or Deleter()
        self._state = EngineState.IDLE

    @property
    def state(self) -> EngineState:
        """State of the current or most recent invocation."""
        return self._state

    def plan(self, request: CleanupRequest) -> DeletionPlan:
        """Compute the deletion plan for a request without deleting anything.

        Args:
            request: Cleanup request.

        Returns:
            The ordered DeletionPlan.

        Raises:
            InvalidRequestError: If a fileset directory is not a directory.
            InvalidTargetError: If a default target is not a directory.
        """
        self._validate(request)

        targets = [t.absolute() for t in request.active_targets]

        resolved = []
        for spec in request.filesets:
            absolute_spec = replace(spec, directory=spec.directory.absolute())
            logger.debug("Resolving fileset %s", absolute_spec.directory)
            try:
                resolved.append(self._resolver.resolve(absolute_spec))
            except InvalidTargetError as e:
                raise InvalidRequestError(str(e)) from e

        return self._planner.plan(targets, resolved)

    def run(self, request: CleanupRequest) -> DeletionResult:
        """Run a cleanup request.

        Args:
            request: Cleanup request.

        Returns:
            DeletionResult describing every planned path.

        Raises:
            InvalidRequestError: If a fileset directory is not a directory.
            InvalidTargetError: If a default target is not a directory.
            DeletionFailedError: If fail_on_error is set and any path failed.
        """
        if request.skip:
            logger.info("Clean is skipped.")
            self._state = EngineState.COMPLETED
            return DeletionResult()

        self._state = EngineState.PLANNING
        try:
            plan = self.plan(request)
        except Exception:
            self._state = EngineState.FAILED
            raise

        logger.debug("Planned %d deletion(s) in %d subtree(s)", len(plan), len(plan.groups))

        self._state = EngineState.EXECUTING
        policy = CleanupPolicy(
            fail_on_error=request.fail_on_error,
            retry_on_error=request.retry_on_error,
        )
        try:
            result = self._deleter.execute(plan, policy)
        except Exception:
            self._state = EngineState.FAILED
            raise

        self._state = EngineState.COMPLETED
        return result

    @staticmethod
    def _validate(request: CleanupRequest) -> None:
        """Reject fileset directories that exist but are not directories."""
        for spec in request.filesets:
            directory = spec.directory
            if directory.exists() and not directory.is_dir():
                msg = f"Fileset directory is not a directory: {directory}"
                raise InvalidRequestError(msg)

