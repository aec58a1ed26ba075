"""
Cue reinforcement decoupled from the retrieval path through a queue.
"""

import queue
import threading
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..models.core import Cue, ReinforcementEvent
from ..utils.logging_config import get_logger
from ..utils.timestamp_utils import ensure_aware
from .fact_store import FactStore, FactStoreError

logger = get_logger(__name__)

_STOP = object()


def reinforce(cue: Cue, observed_at: datetime, step: float = 0.1, ceiling: float = 0.95) -> Cue:
    """
    Return a copy of the cue with raised confidence and refreshed timestamp.

    Confidence moves up by step but never past ceiling, and is never lowered.

    Args:
        cue: Existing cue
        observed_at: Time of the repeated evidence
        step: Confidence increment
        ceiling: Upper bound reached by reinforcement

    Returns:
        Updated Cue
    """
    confidence = max(cue.confidence, min(ceiling, cue.confidence + step))
    last_reinforced = max(ensure_aware(cue.last_reinforced), ensure_aware(observed_at))
    return replace(cue, confidence=confidence, last_reinforced=last_reinforced)


class ReinforcementWorker:
    """Background consumer applying reinforcement events to the fact store."""

    def __init__(self, fact_store: FactStore, step: float = 0.1, ceiling: float = 0.95):
        self.fact_store = fact_store
        self.step = step
        self.ceiling = ceiling
        self.applied = 0
        self.skipped = 0
        self._queue: 'queue.Queue' = queue.Queue()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self._run, name='cue-reinforcement', daemon=True)
        self._thread.start()
        logger.info('Started reinforcement worker')

    def emit(self, event: ReinforcementEvent) -> None:
        """Queue an event without blocking the caller."""
        self._queue.put(event)

    def flush(self) -> None:
        """Block until every queued event has been processed."""
        self._queue.join()

    def stop(self) -> None:
        """Drain the queue and stop the worker thread."""
        if self._thread is None:
            return
        self._queue.put(_STOP)
        self._thread.join()
        self._thread = None
        logger.info('Stopped reinforcement worker')

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self.apply(item)
            finally:
                self._queue.task_done()

    def apply(self, event: ReinforcementEvent) -> bool:
        """
        Apply one event synchronously.

        Args:
            event: Reinforcement event

        Returns:
            True if a cue was updated
        """
        try:
            cue = self.fact_store.get_cue(event.owner_id, event.key, event.type)
            if cue is None:
                logger.debug(f'No cue {event.key} ({event.type.value}) for {event.owner_id}, skipping')
                self.skipped += 1
                return False

            self.fact_store.upsert_cue(reinforce(cue, event.observed_at, self.step, self.ceiling))
            self.applied += 1
            return True

        except FactStoreError as e:
            logger.warning(f'Fact store error while reinforcing {event.key}: {e}')
        except Exception as e:
            logger.error(f'Unexpected error while reinforcing {event.key}: {e}')
        self.skipped += 1
        return False
