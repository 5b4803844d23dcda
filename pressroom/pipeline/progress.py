"""Process-wide broadcast of generation lifecycle events."""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

import pendulum

logger = logging.getLogger(__name__)


class GenerationEvent(str, Enum):
    """Lifecycle events, in the order the pipeline emits them."""

    SOURCES_GATHERING = "sources-gathering"
    SOURCES_FOUND = "sources-found"
    CONTENT_GENERATED = "content-generated"
    IMAGE_CREATED = "image-created"
    ARTICLE_SAVED = "article-saved"
    AUDIO_CREATED = "audio-created"
    AUDIO_FAILED = "audio-failed"


@dataclass(frozen=True)
class ProgressUpdate:
    """One emitted event and its payload."""

    event: GenerationEvent
    payload: Dict[str, Any] = field(default_factory=dict)
    emitted_at: pendulum.DateTime = field(default_factory=lambda: pendulum.now("UTC"))


Listener = Callable[[ProgressUpdate], None]


class ProgressNotifier:
    """
    Fan out events to subscribed listeners.

    Nothing is buffered: a listener only sees events emitted while it is
    subscribed. Listener errors are logged and never reach the emitter.
    """

    def __init__(self) -> None:
        self._listeners: List[Tuple[Listener, Optional[Set[GenerationEvent]]]] = []
        self._lock = threading.Lock()

    def subscribe(
        self,
        listener: Listener,
        events: Optional[Iterable[GenerationEvent]] = None,
    ) -> Callable[[], None]:
        """
        Register a listener, optionally for a subset of events.

        Returns:
            A callable that unsubscribes the listener
        """
        wanted = set(events) if events is not None else None
        with self._lock:
            self._listeners.append((listener, wanted))
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners = [(l, e) for l, e in self._listeners if l is not listener]

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def emit(self, event: GenerationEvent, **payload: Any) -> None:
        update = ProgressUpdate(event=event, payload=payload)

        with self._lock:
            targets = [l for l, wanted in self._listeners if wanted is None or event in wanted]

        for listener in targets:
            try:
                listener(update)
            except Exception:
                logger.exception("Progress listener failed on %s", event.value)


progress = ProgressNotifier()
