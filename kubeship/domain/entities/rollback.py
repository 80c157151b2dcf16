"""
Rollback Module

Architectural Intent:
- RollbackRun is the consistency boundary for one rollback of one deployment
- Lifecycle is Idle -> Validated -> CapturedPrior -> UndoIssued -> Ready|TimedOut
  -> CapturedAfter -> Done, with Failed reachable from any non-terminal state
- Transitions are enforced by domain methods and produce new instances
- The prior capture survives every outcome so results can always report it
"""

from __future__ import annotations
from enum import Enum, auto
from typing import Optional

from kubeship.domain.errors import NoRevisionHistory
from kubeship.domain.value_objects.cluster_state import DeploymentRef, RevisionHistory


class RollbackState(Enum):
    IDLE = auto()
    VALIDATED = auto()
    CAPTURED_PRIOR = auto()
    UNDO_ISSUED = auto()
    READY = auto()
    TIMED_OUT = auto()
    CAPTURED_AFTER = auto()
    DONE = auto()
    FAILED = auto()


class RollbackRun:
    __slots__ = (
        "_target",
        "_state",
        "_revision_count",
        "_previous_revision",
        "_previous_image",
        "_new_revision",
        "_new_image",
        "_ready_replicas",
        "_desired_replicas",
        "_error_message",
    )

    def __init__(
        self,
        target: DeploymentRef,
        state: RollbackState = RollbackState.IDLE,
        revision_count: int = 0,
        previous_revision: Optional[int] = None,
        previous_image: str = "",
        new_revision: Optional[int] = None,
        new_image: str = "",
        ready_replicas: int = 0,
        desired_replicas: int = 0,
        error_message: Optional[str] = None,
    ):
        self._target = target
        self._state = state
        self._revision_count = revision_count
        self._previous_revision = previous_revision
        self._previous_image = previous_image
        self._new_revision = new_revision
        self._new_image = new_image
        self._ready_replicas = ready_replicas
        self._desired_replicas = desired_replicas
        self._error_message = error_message

    @property
    def target(self) -> DeploymentRef:
        return self._target

    @property
    def state(self) -> RollbackState:
        return self._state

    @property
    def revision_count(self) -> int:
        return self._revision_count

    @property
    def previous_revision(self) -> Optional[int]:
        return self._previous_revision

    @property
    def previous_image(self) -> str:
        return self._previous_image

    @property
    def new_revision(self) -> Optional[int]:
        return self._new_revision

    @property
    def new_image(self) -> str:
        return self._new_image

    @property
    def ready_replicas(self) -> int:
        return self._ready_replicas

    @property
    def desired_replicas(self) -> int:
        return self._desired_replicas

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def succeeded(self) -> bool:
        return self._state == RollbackState.DONE

    def _evolve(self, **changes) -> "RollbackRun":
        fields = {
            "target": self._target,
            "state": self._state,
            "revision_count": self._revision_count,
            "previous_revision": self._previous_revision,
            "previous_image": self._previous_image,
            "new_revision": self._new_revision,
            "new_image": self._new_image,
            "ready_replicas": self._ready_replicas,
            "desired_replicas": self._desired_replicas,
            "error_message": self._error_message,
        }
        fields.update(changes)
        return RollbackRun(**fields)

    def _require(self, expected: RollbackState, action: str) -> None:
        if self._state != expected:
            raise ValueError(
                f"Rollback must be {expected.name} to {action} (is {self._state.name})"
            )

    def validate(self, history: RevisionHistory) -> "RollbackRun":
        self._require(RollbackState.IDLE, "validate")
        if not history.can_roll_back:
            raise NoRevisionHistory(
                f"No previous revision available for rollback of {self._target} "
                f"(found {history.count} revisions)"
            )
        return self._evolve(state=RollbackState.VALIDATED, revision_count=history.count)

    def capture_prior(self, revision: Optional[int], image: str) -> "RollbackRun":
        self._require(RollbackState.VALIDATED, "capture prior state")
        return self._evolve(
            state=RollbackState.CAPTURED_PRIOR,
            previous_revision=revision,
            previous_image=image,
        )

    def issue_undo(self) -> "RollbackRun":
        self._require(RollbackState.CAPTURED_PRIOR, "issue undo")
        return self._evolve(state=RollbackState.UNDO_ISSUED)

    def mark_ready(self) -> "RollbackRun":
        self._require(RollbackState.UNDO_ISSUED, "become ready")
        return self._evolve(state=RollbackState.READY)

    def mark_timed_out(self) -> "RollbackRun":
        self._require(RollbackState.UNDO_ISSUED, "time out")
        return self._evolve(state=RollbackState.TIMED_OUT)

    def capture_after(
        self,
        revision: Optional[int],
        image: str,
        ready_replicas: int,
        desired_replicas: int,
    ) -> "RollbackRun":
        if self._state not in (RollbackState.READY, RollbackState.TIMED_OUT):
            raise ValueError(
                f"Rollback must have finished waiting to capture state (is {self._state.name})"
            )
        return self._evolve(
            state=RollbackState.CAPTURED_AFTER,
            new_revision=revision,
            new_image=image,
            ready_replicas=ready_replicas,
            desired_replicas=desired_replicas,
        )

    def complete(self) -> "RollbackRun":
        self._require(RollbackState.CAPTURED_AFTER, "complete")
        return self._evolve(state=RollbackState.DONE)

    def fail(self, message: str) -> "RollbackRun":
        return self._evolve(state=RollbackState.FAILED, error_message=message)

    def __repr__(self) -> str:
        return (
            f"RollbackRun(target={self._target}, state={self._state.name}, "
            f"previous_revision={self._previous_revision}, new_revision={self._new_revision})"
        )
