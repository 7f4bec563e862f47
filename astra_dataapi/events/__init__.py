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

from astra_dataapi.events.emitter import (
    ADMIN_COMMAND_EVENT_NAMES,
    ADMIN_COMMAND_FAILED,
    ADMIN_COMMAND_POLLING,
    ADMIN_COMMAND_STARTED,
    ADMIN_COMMAND_SUCCEEDED,
    ADMIN_COMMAND_WARNINGS,
    COMMAND_EVENT_NAMES,
    COMMAND_FAILED,
    COMMAND_STARTED,
    COMMAND_SUCCEEDED,
    COMMAND_WARNINGS,
    EVENT_NAMES,
    EventListener,
    HierarchicalEmitter,
)
from astra_dataapi.events.event_logger import (
    DEFAULT_LOGGING_OUTPUTS,
    EventLogger,
    LoggingConfig,
    LoggingOutput,
    parse_logging_config,
)
from astra_dataapi.events.events import (
    AdminCommandEvent,
    AdminCommandFailedEvent,
    AdminCommandPollingEvent,
    AdminCommandStartedEvent,
    AdminCommandSucceededEvent,
    AdminCommandWarningsEvent,
    BaseClientEvent,
    CommandEvent,
    CommandFailedEvent,
    CommandStartedEvent,
    CommandSucceededEvent,
    CommandWarningsEvent,
    DataAPIRequestInfo,
    DevOpsAPIRequestInfo,
    PropagationState,
)

__all__ = [
    "ADMIN_COMMAND_EVENT_NAMES",
    "ADMIN_COMMAND_FAILED",
    "ADMIN_COMMAND_POLLING",
    "ADMIN_COMMAND_STARTED",
    "ADMIN_COMMAND_SUCCEEDED",
    "ADMIN_COMMAND_WARNINGS",
    "AdminCommandEvent",
    "AdminCommandFailedEvent",
    "AdminCommandPollingEvent",
    "AdminCommandStartedEvent",
    "AdminCommandSucceededEvent",
    "AdminCommandWarningsEvent",
    "BaseClientEvent",
    "COMMAND_EVENT_NAMES",
    "COMMAND_FAILED",
    "COMMAND_STARTED",
    "COMMAND_SUCCEEDED",
    "COMMAND_WARNINGS",
    "CommandEvent",
    "CommandFailedEvent",
    "CommandStartedEvent",
    "CommandSucceededEvent",
    "CommandWarningsEvent",
    "DEFAULT_LOGGING_OUTPUTS",
    "DataAPIRequestInfo",
    "DevOpsAPIRequestInfo",
    "EVENT_NAMES",
    "EventListener",
    "EventLogger",
    "HierarchicalEmitter",
    "LoggingConfig",
    "LoggingOutput",
    "PropagationState",
    "parse_logging_config",
]
