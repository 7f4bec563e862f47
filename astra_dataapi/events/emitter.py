# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from typing import Any, Callable, Dict, List

from astra_dataapi.events.events import BaseClientEvent, PropagationState

EventListener = Callable[[Any], None]

COMMAND_STARTED = "commandStarted"
COMMAND_SUCCEEDED = "commandSucceeded"
COMMAND_FAILED = "commandFailed"
COMMAND_WARNINGS = "commandWarnings"
ADMIN_COMMAND_STARTED = "adminCommandStarted"
ADMIN_COMMAND_POLLING = "adminCommandPolling"
ADMIN_COMMAND_SUCCEEDED = "adminCommandSucceeded"
ADMIN_COMMAND_FAILED = "adminCommandFailed"
ADMIN_COMMAND_WARNINGS = "adminCommandWarnings"

COMMAND_EVENT_NAMES = (
    COMMAND_STARTED,
    COMMAND_SUCCEEDED,
    COMMAND_FAILED,
    COMMAND_WARNINGS,
)
ADMIN_COMMAND_EVENT_NAMES = (
    ADMIN_COMMAND_STARTED,
    ADMIN_COMMAND_POLLING,
    ADMIN_COMMAND_SUCCEEDED,
    ADMIN_COMMAND_FAILED,
    ADMIN_COMMAND_WARNINGS,
)
EVENT_NAMES = COMMAND_EVENT_NAMES + ADMIN_COMMAND_EVENT_NAMES


class HierarchicalEmitter:
    """
    An event emitter that forwards ("bubbles") its events to a parent emitter.

    Client, database, collection and admin objects each own one of these, linked
    to the emitter of the object that spawned them: listeners registered on a
    DataAPIClient thus see the events of all its databases and collections.

    Args:
        parent: the emitter to forward events to after the local listeners
            have run, if any.

    Example:
        >>> root = HierarchicalEmitter()
        >>> child = HierarchicalEmitter(parent=root)
        >>> unsubscribe = root.on("commandStarted", lambda ev: print(ev.name))
        >>> child.emit("commandStarted", event)
        CommandStarted
        >>> unsubscribe()
    """

    def __init__(self, parent: HierarchicalEmitter | None = None) -> None:
        self.parent = parent
        self._listeners: Dict[str, List[EventListener]] = {}

    def __repr__(self) -> str:
        counts = {name: len(lsts) for name, lsts in self._listeners.items() if lsts}
        return f"{self.__class__.__name__}(listeners={counts})"

    def child(self) -> HierarchicalEmitter:
        """Spawn a new emitter having this one as parent."""
        return HierarchicalEmitter(parent=self)

    def on(self, event_name: str, listener: EventListener) -> Callable[[], None]:
        """
        Register a listener for an event name.

        Args:
            event_name: the name of the event, e.g. "commandStarted".
            listener: a callable receiving the event object.

        Returns:
            a no-argument callable removing this registration.
        """
        self._listeners.setdefault(event_name, []).append(listener)

        def _unsubscribe() -> None:
            self.off(event_name, listener)

        return _unsubscribe

    def once(self, event_name: str, listener: EventListener) -> Callable[[], None]:
        """Register a listener that is removed after its first invocation."""

        def _once_listener(event: Any) -> None:
            self.off(event_name, _once_listener)
            listener(event)

        return self.on(event_name, _once_listener)

    def off(self, event_name: str, listener: EventListener) -> None:
        """Remove a listener. Removing an unknown listener is a no-op."""
        listeners = self._listeners.get(event_name, [])
        if listener in listeners:
            listeners.remove(listener)

    def remove_all_listeners(self, event_name: str | None = None) -> None:
        if event_name is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event_name, None)

    def listener_count(self, event_name: str) -> int:
        return len(self._listeners.get(event_name, []))

    def has_listeners(self, event_name: str) -> bool:
        """Whether this emitter, or any of its ancestors, would notify anyone."""
        emitter: HierarchicalEmitter | None = self
        while emitter is not None:
            if emitter.listener_count(event_name) > 0:
                return True
            emitter = emitter.parent
        return False

    def emit(self, event_name: str, event: BaseClientEvent) -> None:
        """
        Dispatch an event to the local listeners, in registration order,
        then to the parent emitter.

        A listener calling `event.stop_immediate_propagation()` prevents any
        further listener, local or not, from running; one calling
        `event.stop_propagation()` lets the remaining local listeners run but
        prevents the bubbling to the parent.
        """
        # a snapshot, as `once` listeners deregister while running
        for listener in list(self._listeners.get(event_name, [])):
            listener(event)
            if event.propagation_state == PropagationState.STOP_IMMEDIATE:
                return
        if event.propagation_state == PropagationState.STOP:
            return
        if self.parent is not None:
            self.parent.emit(event_name, event)
