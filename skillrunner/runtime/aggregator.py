"""
aggregator.py - Event ingestion and fragment projections for one run.

EventAggregator is the single entry point for session events. It appends
events to the run's AgentMetadata while the completion latch is open,
closes the latch on the terminal idle signal, and evaluates the optional
early-termination policy after every retained event.

Message and reasoning reconstruction is NOT done during ingest. The
collect_* functions below are read-time projections over the frozen event
history:
- fragments sharing an identifier are concatenated in arrival order
- a whole-unit event replaces whatever the fragments accumulated
- fragments arriving after the whole-unit event for that id extend it

Usage:
    latch = CompletionLatch()
    aggregator = EventAggregator(latch, should_early_terminate=policy,
                                 on_abort=request_abort)
    session.on(aggregator.ingest)
    await latch.wait()
    text = get_all_assistant_messages(aggregator.metadata)
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Type

from .latch import (
    REASON_EARLY_TERMINATION,
    REASON_ERROR,
    REASON_IDLE,
    CompletionLatch,
)
from .types import (
    AgentMetadata,
    AssistantMessage,
    AssistantMessageDelta,
    AssistantReasoning,
    AssistantReasoningDelta,
    EarlyTerminationPolicy,
    SessionEvent,
    SessionIdle,
)

logger = logging.getLogger(__name__)


class EventAggregator:
    """Accumulates one run's events behind a CompletionLatch.

    Args:
        latch: The run's completion latch. Owned by the caller.
        should_early_terminate: Optional predicate over the accumulated
            metadata; when it returns True the session is aborted.
        on_abort: Called at most once, when the policy fires, before the
            latch closes. Must not block.
    """

    def __init__(
        self,
        latch: CompletionLatch,
        should_early_terminate: Optional[EarlyTerminationPolicy] = None,
        on_abort: Optional[Callable[[], None]] = None,
    ) -> None:
        self._latch = latch
        self._should_early_terminate = should_early_terminate
        self._on_abort = on_abort
        self._metadata = AgentMetadata()
        self._aborted = False
        self._error: Optional[BaseException] = None

    @property
    def metadata(self) -> AgentMetadata:
        return self._metadata

    @property
    def latch(self) -> CompletionLatch:
        return self._latch

    @property
    def aborted(self) -> bool:
        """True if the early-termination policy requested an abort."""
        return self._aborted

    @property
    def error(self) -> Optional[BaseException]:
        """First failure recorded while the latch was open, if any."""
        return self._error

    def ingest(self, event: SessionEvent) -> bool:
        """Process one delivered event.

        Returns:
            True if the event was appended to the run metadata.

        Raises:
            Whatever the early-termination policy raises. The latch is
            closed (reason "error") before the exception propagates.
        """
        with self._latch.guard() as is_open:
            if not is_open:
                logger.debug("Dropping %s delivered after completion", event.type)
                return False

            logger.debug("=== session event %s", event.type)

            if isinstance(event, SessionIdle):
                self._latch.trip(REASON_IDLE)
                return False

            self._metadata.events.append(event)

            if self._should_early_terminate is None:
                return True

            try:
                terminate = self._should_early_terminate(self._metadata)
            except Exception as exc:
                self.fail(exc)
                raise

            if terminate:
                logger.debug(
                    "Early termination after %d events (last=%s)",
                    len(self._metadata.events),
                    event.type,
                )
                self._request_abort()
                self._latch.trip(REASON_EARLY_TERMINATION)
            return True

    def fail(self, exc: BaseException) -> bool:
        """Record a mid-stream failure and force the latch closed.

        Returns:
            True if the failure was recorded, False if the latch had already
            closed (a failure after completion does not change the outcome).
        """
        with self._latch.guard() as is_open:
            if not is_open:
                return False
            self._error = exc
            self._latch.trip(REASON_ERROR)
            return True

    def _request_abort(self) -> None:
        if self._aborted:
            return
        self._aborted = True
        if self._on_abort is None:
            return
        try:
            self._on_abort()
        except Exception as e:
            logger.debug("Abort request failed: %s", e)


# =============================================================================
# Fragment Table projections
# =============================================================================


def _project(
    metadata: AgentMetadata,
    whole_type: Type,
    delta_type: Type,
    id_attr: str,
) -> Dict[str, str]:
    table: Dict[str, str] = {}

    for event in metadata.events:
        if isinstance(event, whole_type):
            unit_id = getattr(event, id_attr)
            if unit_id and event.content:
                table[unit_id] = event.content
        elif isinstance(event, delta_type):
            unit_id = getattr(event, id_attr)
            if not unit_id:
                continue
            table[unit_id] = table.get(unit_id, "") + (event.delta_content or "")

    return table


def collect_messages(metadata: AgentMetadata) -> Dict[str, str]:
    """Build the message Fragment Table: message_id -> full text.

    Keys keep the order in which each message id first appeared.
    """
    return _project(metadata, AssistantMessage, AssistantMessageDelta, "message_id")


def collect_reasoning(metadata: AgentMetadata) -> Dict[str, str]:
    """Build the reasoning Fragment Table: reasoning_id -> full text."""
    return _project(
        metadata, AssistantReasoning, AssistantReasoningDelta, "reasoning_id"
    )


def get_all_assistant_messages(metadata: AgentMetadata) -> str:
    """All reconstructed assistant message text, one message per line block."""
    return "\n".join(collect_messages(metadata).values())
