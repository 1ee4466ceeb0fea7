"""In-process event dispatcher.

Services announce what happened (``metadata_key.after_create.success``...);
other parts of the application subscribe with ``listen``. Listeners run
synchronously in registration order and their exceptions propagate.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]

_listeners: DefaultDict[str, List[Listener]] = defaultdict(list)


def listen(event_name: str, listener: Listener) -> None:
    _listeners[event_name].append(listener)


def forget(event_name: str, listener: Listener) -> None:
    if listener in _listeners.get(event_name, []):
        _listeners[event_name].remove(listener)


def dispatch(event_name: str, **payload: Any) -> int:
    """Call every listener of *event_name* with *payload*; return how many ran."""
    listeners = list(_listeners.get(event_name, []))
    logger.debug("Dispatching %s", event_name, extra={"listeners": len(listeners)})
    for listener in listeners:
        listener(**payload)
    return len(listeners)
