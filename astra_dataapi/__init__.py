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

from astra_dataapi.version import __version__

import astra_dataapi.constants  # noqa: F401, E402
import astra_dataapi.ids  # noqa: E402, F401
from astra_dataapi.admin import AstraDBAdmin, AstraDBDatabaseAdmin  # noqa: E402
from astra_dataapi.client import DataAPIClient  # noqa: E402
from astra_dataapi.data.collection import AsyncCollection, Collection  # noqa: E402
from astra_dataapi.data.cursors import (  # noqa: E402
    AsyncFindCursor,
    CursorState,
    FindCursor,
)

# A circular-import issue requires this to happen at the end of this module:
from astra_dataapi.data.database import AsyncDatabase, Database  # noqa: E402

__all__ = [
    "AstraDBAdmin",
    "AstraDBDatabaseAdmin",
    "AsyncCollection",
    "AsyncDatabase",
    "AsyncFindCursor",
    "Collection",
    "CursorState",
    "Database",
    "DataAPIClient",
    "FindCursor",
    "__version__",
]
