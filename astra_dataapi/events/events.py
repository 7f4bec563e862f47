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

import datetime
import json
import time
from abc import ABC
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from uuid6 import uuid7

from astra_dataapi.exceptions import DataAPIWarningDescriptor
from astra_dataapi.settings.defaults import DEFAULT_ASTRA_DB_KEYSPACE
from astra_dataapi.utils.timeouts import TimeoutManager


class PropagationState(Enum):
    """
    How far an event is allowed to travel while being emitted.

    Values:
        CONTINUE: all listeners run, then the event bubbles to the parent.
        STOP: the remaining local listeners still run, but no bubbling occurs.
        STOP_IMMEDIATE: no further listener runs at all, and no bubbling.
    """

    CONTINUE = 0
    STOP = 1
    STOP_IMMEDIATE = 2


def _new_request_id() -> str:
    return str(uuid7())


def _now_ms() -> float:
    return time.perf_counter() * 1000


@dataclass
class DataAPIRequestInfo:
    """The context of a Data API command, from which command events are built."""

    url: str
    command: dict[str, Any]
    keyspace: str | None
    collection: str | None
    timeout_manager: TimeoutManager
    request_id: str = field(default_factory=_new_request_id)
    started_ms: float = field(default_factory=_now_ms)


@dataclass
class DevOpsAPIRequestInfo:
    """The context of a DevOps API request, from which admin events are built."""

    method: str
    url: str
    params: dict[str, Any] | None
    body: dict[str, Any] | None
    invoking_method: str | None
    is_long_running: bool
    timeout_manager: TimeoutManager
    request_id: str = field(default_factory=_new_request_id)
    started_ms: float = field(default_factory=_now_ms)


class BaseClientEvent(ABC):
    """
    The common base of all events emitted by the client objects.

    Events are dispatched to the listeners registered on the object issuing the
    request, then bubble up to the objects that spawned it (for instance from a
    Collection to its Database, then to the DataAPIClient). A listener can halt
    the bubbling with `stop_propagation`, or halt everything with
    `stop_immediate_propagation`.

    Attributes:
        name: the event name, such as "CommandStarted".
        request_id: an identifier shared by all events about the same request
            (or long-running operation).
        timestamp: the (UTC) time of creation of the event.
    """

    name: str
    request_id: str
    timestamp: datetime.datetime

    def __init__(self, name: str, request_id: str) -> None:
        self.name = name
        self.request_id = request_id
        self.timestamp = datetime.datetime.now(tz=datetime.timezone.utc)
        self._propagation_state = PropagationState.CONTINUE

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.format(timestamp=False, name=False)})"

    @property
    def propagation_state(self) -> PropagationState:
        return self._propagation_state

    def stop_propagation(self) -> None:
        """Let the remaining local listeners run, but do not bubble to parents."""
        self._propagation_state = PropagationState.STOP

    def stop_immediate_propagation(self) -> None:
        """Skip all remaining listeners, local and parent alike."""
        self._propagation_state = PropagationState.STOP_IMMEDIATE

    def get_message_prefix(self) -> str:
        return ""

    def get_message(self) -> str:
        return ""

    def format(self, *, timestamp: bool = True, name: bool = True) -> str:
        """
        A one-line, human-readable description of the event, such as
        `2025-01-31 12:34:56 UTC [CommandStarted]: (default_keyspace.coll) find`.
        """
        pieces: list[str] = []
        if timestamp:
            pieces.append(self.timestamp.strftime("%Y-%m-%d %H:%M:%S UTC"))
        if name:
            pieces.append(f"[{self.name}]:")
        pieces.append(
            " ".join(pc for pc in (self.get_message_prefix(), self.get_message()) if pc)
        )
        return " ".join(pc for pc in pieces if pc)

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    def format_verbose(self) -> str:
        """A full JSON representation of the event."""
        return json.dumps(self.to_dict(), indent=2, default=str)


class CommandEvent(BaseClientEvent):
    """
    The common base of events about Data API commands.

    Attributes:
        command: the payload of the command, e.g. `{"find": {...}}`.
        command_name: the name of the command, e.g. "find".
        keyspace: the keyspace the command targets.
        collection: the collection the command targets, if any.
        url: the full URL of the request.
    """

    command: dict[str, Any]
    command_name: str
    keyspace: str
    collection: str | None
    url: str

    def __init__(self, name: str, info: DataAPIRequestInfo) -> None:
        super().__init__(name, info.request_id)
        self.command = info.command
        self.command_name = next(iter(info.command.keys()), "")
        self.keyspace = info.keyspace or DEFAULT_ASTRA_DB_KEYSPACE
        self.collection = info.collection
        self.url = info.url

    def get_message_prefix(self) -> str:
        target = f"{self.keyspace}.{self.collection}" if self.collection else self.keyspace
        return f"({target}) {self.command_name}"


class CommandStartedEvent(CommandEvent):
    """
    Emitted right before a command is sent to the Data API.

    Attributes:
        timeout: the timeouts applying to the command, by category.
    """

    timeout: dict[str, int]

    def __init__(self, info: DataAPIRequestInfo) -> None:
        super().__init__("CommandStarted", info)
        self.timeout = info.timeout_manager.initial()


class CommandSucceededEvent(CommandEvent):
    """
    Emitted when a command completes successfully.

    Attributes:
        duration_ms: the time elapsed since the command started.
        response: the (decoded) response from the API.
    """

    duration_ms: float
    response: dict[str, Any]

    def __init__(self, info: DataAPIRequestInfo, response: dict[str, Any]) -> None:
        super().__init__("CommandSucceeded", info)
        self.duration_ms = _now_ms() - info.started_ms
        self.response = response

    def get_message(self) -> str:
        return f"(took {int(self.duration_ms)}ms)"


class CommandFailedEvent(CommandEvent):
    """
    Emitted when a command fails, for whatever reason, before the
    corresponding exception propagates to the caller.

    Attributes:
        duration_ms: the time elapsed since the command started.
        error: the exception about to be raised.
    """

    duration_ms: float
    error: BaseException

    def __init__(self, info: DataAPIRequestInfo, error: BaseException) -> None:
        super().__init__("CommandFailed", info)
        self.duration_ms = _now_ms() - info.started_ms
        self.error = error

    def get_message(self) -> str:
        return f"(took {int(self.duration_ms)}ms) - '{self.error}'"


class CommandWarningsEvent(CommandEvent):
    """
    Emitted when the Data API response carries warnings.

    Attributes:
        warnings: the warnings, as found in the response status.
    """

    warnings: list[DataAPIWarningDescriptor]

    def __init__(
        self, info: DataAPIRequestInfo, warnings: list[DataAPIWarningDescriptor]
    ) -> None:
        super().__init__("CommandWarnings", info)
        self.warnings = warnings

    def get_message(self) -> str:
        return ", ".join(f"'{warning.summary()}'" for warning in self.warnings)


class AdminCommandEvent(BaseClientEvent):
    """
    The common base of events about DevOps API requests.

    Attributes:
        method: the HTTP method of the request.
        url: the full URL of the request.
        params: the query parameters, if any.
        body: the JSON body of the request, if any.
        invoking_method: the client method behind the request,
            e.g. "admin.create_database".
        is_long_running: whether the request starts a long-running operation
            that is then awaited by polling.
    """

    method: str
    url: str
    params: dict[str, Any] | None
    body: dict[str, Any] | None
    invoking_method: str | None
    is_long_running: bool

    def __init__(self, name: str, info: DevOpsAPIRequestInfo) -> None:
        super().__init__(name, info.request_id)
        self.method = info.method
        self.url = info.url
        self.params = info.params
        self.body = info.body
        self.invoking_method = info.invoking_method
        self.is_long_running = info.is_long_running

    def get_message_prefix(self) -> str:
        query = (
            "?" + "&".join(f"{k}={v}" for k, v in self.params.items())
            if self.params
            else ""
        )
        return f"({self.invoking_method}) {self.method} {self.url}{query}"


class AdminCommandStartedEvent(AdminCommandEvent):
    """
    Emitted right before a DevOps API request (or long-running operation) starts.

    Attributes:
        timeout: the timeouts applying to the operation, by category.
    """

    timeout: dict[str, int]

    def __init__(self, info: DevOpsAPIRequestInfo) -> None:
        super().__init__("AdminCommandStarted", info)
        self.timeout = info.timeout_manager.initial()

    def get_message(self) -> str:
        blocking_part = "(blocking)" if self.is_long_running else ""
        body_part = json.dumps(self.body, default=str) if self.body else ""
        return " ".join(pc for pc in (blocking_part, body_part) if pc)


class AdminCommandPollingEvent(AdminCommandEvent):
    """
    Emitted at each status check while awaiting a long-running operation.

    Attributes:
        elapsed_ms: the time elapsed since the operation started.
        poll_interval_ms: the time between consecutive status checks.
        poll_count: the ordinal of this status check, starting from 1.
    """

    elapsed_ms: float
    poll_interval_ms: int
    poll_count: int

    def __init__(
        self, info: DevOpsAPIRequestInfo, poll_interval_ms: int, poll_count: int
    ) -> None:
        super().__init__("AdminCommandPolling", info)
        self.elapsed_ms = _now_ms() - info.started_ms
        self.poll_interval_ms = poll_interval_ms
        self.poll_count = poll_count

    def get_message(self) -> str:
        return f"(poll #{self.poll_count}; {int(self.elapsed_ms)}ms elapsed)"


class AdminCommandSucceededEvent(AdminCommandEvent):
    """
    Emitted when a DevOps API request (or long-running operation) completes.

    Attributes:
        duration_ms: the time elapsed since the start.
        response: the response body, if any.
    """

    duration_ms: float
    response: Any

    def __init__(self, info: DevOpsAPIRequestInfo, response: Any) -> None:
        super().__init__("AdminCommandSucceeded", info)
        self.duration_ms = _now_ms() - info.started_ms
        self.response = response

    def get_message(self) -> str:
        return f"(took {int(self.duration_ms)}ms)"


class AdminCommandFailedEvent(AdminCommandEvent):
    """
    Emitted when a DevOps API request (or long-running operation) fails,
    before the corresponding exception propagates to the caller.

    Attributes:
        duration_ms: the time elapsed since the start.
        error: the exception about to be raised.
    """

    duration_ms: float
    error: BaseException

    def __init__(self, info: DevOpsAPIRequestInfo, error: BaseException) -> None:
        super().__init__("AdminCommandFailed", info)
        self.duration_ms = _now_ms() - info.started_ms
        self.error = error

    def get_message(self) -> str:
        return f"(took {int(self.duration_ms)}ms) - '{self.error}'"


class AdminCommandWarningsEvent(AdminCommandEvent):
    """
    Emitted when a DevOps API response carries warnings.

    Attributes:
        warnings: the warning messages.
    """

    warnings: list[str]

    def __init__(self, info: DevOpsAPIRequestInfo, warnings: list[str]) -> None:
        super().__init__("AdminCommandWarnings", info)
        self.warnings = warnings

    def get_message(self) -> str:
        return ", ".join(f"'{warning}'" for warning in self.warnings)
