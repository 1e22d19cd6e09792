"""
In-process delta bus.

Minimal host for delta input handlers: handlers form a chain in registration
order, each receiving (delta, forward). Deltas forwarded past the last handler
are handed to subscribers. Also persists plugin options as YAML.
"""

import logging
import threading
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional

import yaml

logger = logging.getLogger(__name__)

DeltaHandler = Callable[[dict, Callable[[dict], None]], None]


class DeltaBus:
    """Sequential delivery of deltas through registered input handlers."""

    def __init__(self, options_path: Optional[Path] = None, logger=None):
        self.options_path = Path(options_path) if options_path is not None else None
        self.logger = logger
        self.saved_options: Optional[dict] = None
        self._handlers: List[DeltaHandler] = []
        self._subscribers: List[Callable[[dict], None]] = []
        # One delta at a time through the chain
        self._lock = threading.RLock()

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def register_delta_input_handler(self, handler: DeltaHandler) -> Callable[[], None]:
        """Append handler to the chain. Returns a callable that removes it."""
        with self._lock:
            self._handlers.append(handler)

        def unsubscribe():
            with self._lock:
                if handler in self._handlers:
                    self._handlers.remove(handler)

        return unsubscribe

    def subscribe(self, callback: Callable[[dict], None]) -> Callable[[], None]:
        """Receive every delta that makes it through the handler chain."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, delta: dict) -> Optional[dict]:
        """
        Run delta through the handler chain.

        Returns the delta forwarded by the last handler, or None if some
        handler did not forward it.
        """
        forwarded: List[dict] = []
        with self._lock:
            handlers = list(self._handlers)
            subscribers = list(self._subscribers)

            def dispatch(index: int, current: dict):
                if index < len(handlers):
                    handlers[index](current, partial(dispatch, index + 1))
                else:
                    forwarded.append(current)

            dispatch(0, delta)

        for current in forwarded:
            for callback in subscribers:
                callback(current)
        return forwarded[-1] if forwarded else None

    def save_plugin_options(self, options: dict):
        """Keep the options and write them to options_path if configured."""
        self.saved_options = options
        if self.options_path is None:
            return
        self.options_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.options_path, 'w') as f:
            f.write(yaml.dump(options, default_flow_style=False, sort_keys=False))
        (self.logger or logger).debug(f"Saved plugin options to {self.options_path}")
