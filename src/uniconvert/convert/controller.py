"""Sequential batch queue driver for conversion runs."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from .converter import Converter
from .errors import (
    ConversionValidationError,
    EmptyInputError,
    EmptyQueueError,
    classify_error,
)
from .payloads import TextPayload
from .state import ConversionState, InputMode, ItemStatus, QueueItem, RunStatus

StateListener = Callable[[ConversionState], None]

EMPTY_INPUT_MESSAGE = "Enter the text you want to convert."
EMPTY_QUEUE_MESSAGE = "Select at least one file."
INTERRUPTED_MESSAGE = "Conversion was interrupted before it finished."


class BatchQueueController:
    """Run queued conversions one at a time and record each outcome.

    ``state`` always holds the latest value; ``on_change`` receives every
    intermediate state so an observer can show progress. A failing item is
    marked FAILED and the run moves on to the next one.
    """

    def __init__(
        self,
        state: ConversionState,
        converter: Converter,
        *,
        logger: logging.Logger,
        on_change: Optional[StateListener] = None,
    ) -> None:
        self._state = state
        self._converter = converter
        self._logger = logger
        self._on_change = on_change

    @property
    def state(self) -> ConversionState:
        return self._state

    def update(self, state: ConversionState) -> ConversionState:
        """Adopt ``state`` (e.g. after a user edit) and notify the listener."""
        self._state = state
        if self._on_change is not None:
            self._on_change(state)
        return state

    def run_batch(self, *, retry_failed: bool = False) -> ConversionState:
        """Convert the current input and return the final state.

        SUCCEEDED items are never converted again. FAILED items stay failed
        unless ``retry_failed`` re-arms them for this pass.
        """

        self._validate()
        self.update(
            replace(self._state, run_status=RunStatus.RUNNING, error=None)
        )
        self._logger.info(
            "Starting conversion run",
            extra={
                "mode": self._state.mode.value,
                "target": self._state.target.value,
                "queue_length": len(self._state.queue),
                "retry_failed": retry_failed,
            },
        )
        try:
            if self._state.mode is InputMode.TEXT:
                self._run_text()
            else:
                self._run_queue(retry_failed=retry_failed)
        finally:
            self._fail_interrupted()
            self.update(replace(self._state, run_status=RunStatus.IDLE))

        self._log_completion()
        return self._state

    def _validate(self) -> None:
        state = self._state
        error: ConversionValidationError | None = None
        if state.mode is InputMode.TEXT and not state.input_text.strip():
            error = EmptyInputError(EMPTY_INPUT_MESSAGE)
        elif state.mode is InputMode.BATCH and not state.queue:
            error = EmptyQueueError(EMPTY_QUEUE_MESSAGE)
        if error is not None:
            self.update(replace(state, error=str(error)))
            raise error

    def _run_text(self) -> None:
        self.update(
            replace(
                self._state,
                text_status=ItemStatus.IN_PROGRESS,
                text_result=None,
                text_error=None,
            )
        )
        state = self._state
        try:
            result = self._converter.convert(
                TextPayload(state.input_text),
                state.target,
                state.instructions or None,
            )
        except Exception as exc:
            reason = str(classify_error(exc))
            self._logger.error(
                "Failed to convert text input",
                extra={"target": state.target.value, "reason": reason},
            )
            self.update(
                replace(
                    self._state,
                    text_status=ItemStatus.FAILED,
                    text_error=reason,
                )
            )
            return

        self._logger.info(
            "Converted text input", extra={"target": state.target.value}
        )
        self.update(
            replace(
                self._state,
                text_status=ItemStatus.SUCCEEDED,
                text_result=result,
            )
        )

    def _run_queue(self, *, retry_failed: bool) -> None:
        if retry_failed:
            for item in self._state.queue:
                if item.status is ItemStatus.FAILED:
                    self.update(self._state.replace_item(item.rearm()))

        # Snapshot identities; items are re-read by identity before each step.
        pending = [
            item.identity
            for item in self._state.queue
            if item.status is ItemStatus.PENDING
        ]
        for identity in pending:
            if not self._state.has_item(identity):
                continue
            current = self._state.item(identity)
            if current.status is not ItemStatus.PENDING:
                continue
            self._convert_item(current)

    def _convert_item(self, item: QueueItem) -> None:
        started = item.start()
        self.update(
            replace(
                self._state.replace_item(started),
                active_identity=started.identity,
            )
        )
        state = self._state
        try:
            result = self._converter.convert(
                started.payload,
                state.target,
                state.instructions or None,
            )
        except Exception as exc:
            reason = str(classify_error(exc))
            self._logger.error(
                "Failed to convert item",
                extra={
                    "identity": started.identity,
                    "source": started.name,
                    "target": state.target.value,
                    "reason": reason,
                },
            )
            self._record(started.fail(reason))
            return

        self._logger.info(
            "Converted item",
            extra={
                "identity": started.identity,
                "source": started.name,
                "target": state.target.value,
            },
        )
        self._record(started.succeed(result))

    def _record(self, item: QueueItem) -> None:
        if self._state.has_item(item.identity):
            self.update(self._state.replace_item(item))

    def _fail_interrupted(self) -> None:
        """Fail work a BaseException left IN_PROGRESS."""
        state = self._state
        for item in state.queue:
            if item.status is ItemStatus.IN_PROGRESS:
                state = state.replace_item(item.fail(INTERRUPTED_MESSAGE))
        if state.text_status is ItemStatus.IN_PROGRESS:
            state = replace(
                state,
                text_status=ItemStatus.FAILED,
                text_error=INTERRUPTED_MESSAGE,
            )
        if state is not self._state:
            self._logger.warning("Conversion run interrupted")
            self.update(state)

    def _log_completion(self) -> None:
        state = self._state
        if state.mode is InputMode.TEXT:
            extra = {"text_status": state.text_status.value}
        else:
            extra = {
                status.value: sum(
                    1 for item in state.queue if item.status is status
                )
                for status in ItemStatus
            }
        self._logger.info("Completed conversion run", extra=extra)


__all__ = [
    "BatchQueueController",
    "StateListener",
    "EMPTY_INPUT_MESSAGE",
    "EMPTY_QUEUE_MESSAGE",
    "INTERRUPTED_MESSAGE",
]
