"""Conversion session state: inputs, the batch queue and per-item outcomes.

:class:`ConversionState` is an immutable value. Every operation returns the
next state, so a caller (or :class:`~uniconvert.convert.controller.BatchQueueController`)
swaps its reference after each step and observers always see whole states.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Iterable, Optional

from .errors import InvalidTransitionError, QueueItemNotFoundError
from .payloads import Payload, check_admission
from .targets import ConversionTarget


class InputMode(Enum):
    """Which input is authoritative for the next run."""

    TEXT = "text"
    BATCH = "batch"


class ItemStatus(Enum):
    """Lifecycle of a single conversion: pending -> in_progress -> terminal."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ItemStatus.SUCCEEDED, ItemStatus.FAILED)


class RunStatus(Enum):
    """Whether a conversion pass is executing."""

    IDLE = "idle"
    RUNNING = "running"


def new_identity() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class QueueItem:
    """One unit of batch work.

    ``result`` is set only while SUCCEEDED and ``failure_reason`` only while
    FAILED; the transition methods are the only way to change status.
    """

    identity: str
    payload: Payload
    status: ItemStatus = ItemStatus.PENDING
    result: Optional[str] = None
    failure_reason: Optional[str] = None

    @property
    def name(self) -> str:
        return self.payload.name

    def start(self) -> "QueueItem":
        self._require(ItemStatus.PENDING, action="start")
        return replace(self, status=ItemStatus.IN_PROGRESS)

    def succeed(self, result: str) -> "QueueItem":
        self._require(ItemStatus.IN_PROGRESS, action="succeed")
        return replace(
            self,
            status=ItemStatus.SUCCEEDED,
            result=result,
            failure_reason=None,
        )

    def fail(self, reason: str) -> "QueueItem":
        self._require(ItemStatus.IN_PROGRESS, action="fail")
        return replace(
            self,
            status=ItemStatus.FAILED,
            result=None,
            failure_reason=reason,
        )

    def rearm(self) -> "QueueItem":
        """Send a FAILED item back to PENDING for a retry pass."""
        self._require(ItemStatus.FAILED, action="re-arm")
        return replace(
            self, status=ItemStatus.PENDING, failure_reason=None
        )

    def _require(self, expected: ItemStatus, *, action: str) -> None:
        if self.status is not expected:
            raise InvalidTransitionError(
                f"Cannot {action} item '{self.identity}' while it is "
                f"{self.status.value}."
            )


@dataclass(frozen=True)
class EnqueueResult:
    """Outcome of :meth:`ConversionState.enqueue`."""

    state: "ConversionState"
    accepted: tuple[QueueItem, ...]
    rejections: tuple[str, ...]

    @property
    def message(self) -> Optional[str]:
        if not self.rejections:
            return None
        return "\n".join(self.rejections)


@dataclass(frozen=True)
class ConversionState:
    """Everything a conversion session knows, as one immutable value."""

    mode: InputMode = InputMode.TEXT
    input_text: str = ""
    queue: tuple[QueueItem, ...] = ()
    active_identity: Optional[str] = None
    target: ConversionTarget = ConversionTarget.JSON
    instructions: str = ""
    run_status: RunStatus = RunStatus.IDLE
    error: Optional[str] = None
    text_status: ItemStatus = ItemStatus.PENDING
    text_result: Optional[str] = None
    text_error: Optional[str] = None
    custom_filename: str = ""
    identity_factory: Callable[[], str] = field(
        default_factory=lambda: new_identity, repr=False, compare=False
    )

    @classmethod
    def create(
        cls,
        *,
        target: ConversionTarget = ConversionTarget.JSON,
        instructions: str = "",
        mode: InputMode = InputMode.TEXT,
    ) -> "ConversionState":
        """Session-start state: empty queue, idle."""
        return cls(mode=mode, target=target, instructions=instructions)

    # Queries ---------------------------------------------------------------

    def index_of(self, identity: str) -> int:
        for index, item in enumerate(self.queue):
            if item.identity == identity:
                return index
        raise QueueItemNotFoundError(identity)

    def item(self, identity: str) -> QueueItem:
        return self.queue[self.index_of(identity)]

    def has_item(self, identity: Optional[str]) -> bool:
        return identity is not None and any(
            item.identity == identity for item in self.queue
        )

    def active_item(self) -> Optional[QueueItem]:
        if not self.has_item(self.active_identity):
            return None
        return self.item(self.active_identity)  # type: ignore[arg-type]

    def current_result(self) -> str:
        """Result the caller should display or save right now."""
        if self.mode is InputMode.TEXT:
            return self.text_result or ""
        active = self.active_item()
        if active is None:
            return ""
        return active.result or ""

    # User operations -------------------------------------------------------

    def enqueue(self, candidates: Iterable[Payload]) -> EnqueueResult:
        """Queue every admissible candidate; collect reasons for the rest."""
        accepted: list[QueueItem] = []
        rejections: list[str] = []
        taken = {item.identity for item in self.queue}
        for payload in candidates:
            failure = check_admission(payload)
            if failure is not None:
                rejections.append(str(failure))
                continue
            identity = self.identity_factory()
            while identity in taken:
                identity = self.identity_factory()
            taken.add(identity)
            accepted.append(QueueItem(identity=identity, payload=payload))

        active = self.active_identity
        if active is None and accepted:
            active = accepted[0].identity
        error = "\n".join(rejections) if rejections else self.error

        state = replace(
            self,
            queue=self.queue + tuple(accepted),
            active_identity=active,
            error=error,
        )
        return EnqueueResult(
            state=state,
            accepted=tuple(accepted),
            rejections=tuple(rejections),
        )

    def remove(self, identity: str) -> "ConversionState":
        index = self.index_of(identity)
        queue = self.queue[:index] + self.queue[index + 1:]
        active = self.active_identity
        if active == identity:
            active = queue[0].identity if queue else None
        return replace(self, queue=queue, active_identity=active)

    def select_active(self, identity: str) -> "ConversionState":
        self.index_of(identity)
        return replace(self, active_identity=identity)

    def set_target(self, target: ConversionTarget) -> "ConversionState":
        return replace(self, target=target, error=None)

    def set_instructions(self, text: str) -> "ConversionState":
        return replace(self, instructions=text, error=None)

    def set_input_text(self, text: str) -> "ConversionState":
        return replace(self, input_text=text, error=None)

    def set_input_mode(self, mode: InputMode) -> "ConversionState":
        return replace(self, mode=mode, error=None)

    def set_custom_filename(self, name: str) -> "ConversionState":
        return replace(self, custom_filename=name, error=None)

    # Controller operations -------------------------------------------------

    def replace_item(self, item: QueueItem) -> "ConversionState":
        index = self.index_of(item.identity)
        queue = self.queue[:index] + (item,) + self.queue[index + 1:]
        return replace(self, queue=queue)


__all__ = [
    "InputMode",
    "ItemStatus",
    "RunStatus",
    "QueueItem",
    "EnqueueResult",
    "ConversionState",
    "new_identity",
]
