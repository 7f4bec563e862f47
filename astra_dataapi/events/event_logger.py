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

import sys
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Union

from astra_dataapi.events.emitter import (
    ADMIN_COMMAND_FAILED,
    ADMIN_COMMAND_POLLING,
    ADMIN_COMMAND_STARTED,
    ADMIN_COMMAND_SUCCEEDED,
    ADMIN_COMMAND_WARNINGS,
    COMMAND_FAILED,
    COMMAND_STARTED,
    COMMAND_SUCCEEDED,
    COMMAND_WARNINGS,
    EVENT_NAMES,
    HierarchicalEmitter,
)
from astra_dataapi.events.events import BaseClientEvent
from astra_dataapi.utils.str_enum import StrEnum


class LoggingOutput(StrEnum):
    """
    Where an event goes when it occurs.

    Values:
        EVENT: dispatched to the listeners of the emitter hierarchy.
        STDOUT: printed, as a one-line summary, to standard output.
        STDERR: printed, as a one-line summary, to standard error.
        STDOUT_VERBOSE: printed, as full JSON, to standard output.
        STDERR_VERBOSE: printed, as full JSON, to standard error.
    """

    EVENT = "event"
    STDOUT = "stdout"
    STDERR = "stderr"
    STDOUT_VERBOSE = "stdout:verbose"
    STDERR_VERBOSE = "stderr:verbose"


PRINT_OUTPUTS = {
    LoggingOutput.STDOUT,
    LoggingOutput.STDERR,
    LoggingOutput.STDOUT_VERBOSE,
    LoggingOutput.STDERR_VERBOSE,
}

ALL_EVENTS = "all"

# outputs used when an event is named in the configuration without `emits`
DEFAULT_LOGGING_OUTPUTS: Dict[str, List[LoggingOutput]] = {
    ADMIN_COMMAND_STARTED: [LoggingOutput.EVENT, LoggingOutput.STDOUT],
    ADMIN_COMMAND_POLLING: [LoggingOutput.EVENT, LoggingOutput.STDOUT],
    ADMIN_COMMAND_SUCCEEDED: [LoggingOutput.EVENT, LoggingOutput.STDOUT],
    ADMIN_COMMAND_FAILED: [LoggingOutput.EVENT, LoggingOutput.STDERR],
    ADMIN_COMMAND_WARNINGS: [LoggingOutput.EVENT, LoggingOutput.STDERR],
    COMMAND_STARTED: [LoggingOutput.EVENT],
    COMMAND_SUCCEEDED: [LoggingOutput.EVENT],
    COMMAND_FAILED: [LoggingOutput.EVENT, LoggingOutput.STDERR],
    COMMAND_WARNINGS: [LoggingOutput.EVENT, LoggingOutput.STDERR],
}

LoggingLayer = Mapping[str, Any]
LoggingConfig = Union[str, LoggingLayer, Sequence[Union[str, LoggingLayer]], None]
ResolvedLoggingConfig = Dict[str, List[LoggingOutput]]


def _default_resolved_config() -> ResolvedLoggingConfig:
    return {event_name: [LoggingOutput.EVENT] for event_name in EVENT_NAMES}


def _parse_event_names(events: str | Iterable[str]) -> list[str]:
    event_names = [events] if isinstance(events, str) else list(events)
    if ALL_EVENTS in event_names:
        return list(EVENT_NAMES)
    for event_name in event_names:
        if event_name not in EVENT_NAMES:
            raise ValueError(
                f"Unknown event name '{event_name}' in logging configuration. "
                f"Allowed names are: {', '.join((ALL_EVENTS,) + EVENT_NAMES)}."
            )
    return event_names


def _parse_outputs(emits: str | Iterable[str]) -> list[LoggingOutput]:
    raw_outputs = [emits] if isinstance(emits, str) else list(emits)
    outputs: list[LoggingOutput] = []
    for raw_output in raw_outputs:
        output = LoggingOutput.coerce(raw_output)
        if output not in outputs:
            outputs.append(output)
    print_outputs = [output for output in outputs if output in PRINT_OUTPUTS]
    if len(print_outputs) > 1:
        raise ValueError(
            "Conflicting logging outputs: at most one of "
            f"{', '.join(sorted(out.value for out in PRINT_OUTPUTS))} can be "
            f"given for an event (got: {', '.join(out.value for out in print_outputs)})."
        )
    return outputs


def parse_logging_config(
    config: LoggingConfig,
    base: ResolvedLoggingConfig | None = None,
) -> ResolvedLoggingConfig:
    """
    Resolve a logging configuration into the list of outputs for each event.

    Args:
        config: one of:
            "all", for all events with their default outputs;
            an event name, for that event with its default outputs;
            a single layer (see below);
            a list of event names and/or layers. A layer is a dictionary
            `{"events": <"all", a name or a list of names>, "emits": <outputs>}`,
            where outputs are a single output or a list thereof ("event",
            "stdout", "stderr", "stdout:verbose", "stderr:verbose"). A layer
            without "emits" applies the default outputs to its events, while
            an empty "emits" silences them completely.
            Later entries override earlier ones for the events they name.
        base: the resolved configuration to apply `config` on top of.
            Defaults to all events going to the "event" output only.

    Returns:
        a dictionary from each event name to its list of outputs.

    Example:
        >>> resolved = parse_logging_config([
        ...     "all",
        ...     {"events": "commandStarted", "emits": ["event", "stdout:verbose"]},
        ... ])
        >>> resolved["commandStarted"]
        [<LoggingOutput.EVENT: 'event'>, <LoggingOutput.STDOUT_VERBOSE: 'stdout:verbose'>]
    """

    resolved = (
        {name: list(outputs) for name, outputs in base.items()}
        if base is not None
        else _default_resolved_config()
    )
    if config is None:
        return resolved
    layers: Sequence[str | LoggingLayer] = (
        [config] if isinstance(config, (str, Mapping)) else config
    )
    for layer in layers:
        if isinstance(layer, str):
            for event_name in _parse_event_names(layer):
                resolved[event_name] = list(DEFAULT_LOGGING_OUTPUTS[event_name])
        elif isinstance(layer, Mapping):
            if "events" not in layer:
                raise ValueError("A logging layer requires an 'events' entry.")
            event_names = _parse_event_names(layer["events"])
            if "emits" in layer:
                outputs = _parse_outputs(layer["emits"])
                for event_name in event_names:
                    resolved[event_name] = list(outputs)
            else:
                for event_name in event_names:
                    resolved[event_name] = list(DEFAULT_LOGGING_OUTPUTS[event_name])
        else:
            raise ValueError(f"Unsupported logging configuration entry: {layer!r}.")
    return resolved


class EventLogger:
    """
    The point through which client objects emit their events: according to the
    logging configuration, an event is dispatched to the emitter hierarchy
    and/or printed to the standard streams.

    Args:
        emitter: the emitter of the object owning this logger.
        config: the resolved logging configuration. Defaults to
            dispatching all events to the emitter, without printing.
    """

    def __init__(
        self,
        emitter: HierarchicalEmitter,
        config: ResolvedLoggingConfig | None = None,
    ) -> None:
        self.emitter = emitter
        self.config = config if config is not None else _default_resolved_config()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(emitter={self.emitter})"

    def spawn(self, logging_config: LoggingConfig = None) -> EventLogger:
        """
        Create the logger for a child object: it has a child emitter and
        the same configuration, optionally overridden by `logging_config`.
        """
        return EventLogger(
            emitter=self.emitter.child(),
            config=parse_logging_config(logging_config, base=self.config),
        )

    def outputs(self, event_name: str) -> list[LoggingOutput]:
        return self.config.get(event_name, [])

    def is_active(self, event_name: str) -> bool:
        """Whether emitting this event would have any effect at all."""
        outputs = self.outputs(event_name)
        if any(output in PRINT_OUTPUTS for output in outputs):
            return True
        return LoggingOutput.EVENT in outputs and self.emitter.has_listeners(
            event_name
        )

    def emit(self, event_name: str, event: BaseClientEvent) -> None:
        for output in self.outputs(event_name):
            if output == LoggingOutput.EVENT:
                self.emitter.emit(event_name, event)
            elif output == LoggingOutput.STDOUT:
                print(event.format(), file=sys.stdout)
            elif output == LoggingOutput.STDERR:
                print(event.format(), file=sys.stderr)
            elif output == LoggingOutput.STDOUT_VERBOSE:
                print(event.format_verbose(), file=sys.stdout)
            elif output == LoggingOutput.STDERR_VERBOSE:
                print(event.format_verbose(), file=sys.stderr)
