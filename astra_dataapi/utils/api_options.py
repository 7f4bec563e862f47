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

from dataclasses import dataclass, field
from typing import Mapping

from astra_dataapi.settings.defaults import (
    DEFAULT_COLLECTION_ADMIN_TIMEOUT_MS,
    DEFAULT_DATABASE_ADMIN_TIMEOUT_MS,
    DEFAULT_GENERAL_METHOD_TIMEOUT_MS,
    DEFAULT_KEYSPACE_ADMIN_TIMEOUT_MS,
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_TABLE_ADMIN_TIMEOUT_MS,
)
from astra_dataapi.utils.str_enum import StrEnum
from astra_dataapi.utils.unset import _UNSET, UnsetType

TIMEOUT_CATEGORIES = (
    "request_timeout_ms",
    "general_method_timeout_ms",
    "collection_admin_timeout_ms",
    "table_admin_timeout_ms",
    "database_admin_timeout_ms",
    "keyspace_admin_timeout_ms",
)


@dataclass
class TimeoutOptions:
    """
    A partial set of timeout settings, used to override the timeouts
    inherited from a parent object (client, database) or the defaults.

    All values are in milliseconds; a zero value signifies "no timeout".
    Fields left unset keep the value they would otherwise have.

    Attributes:
        request_timeout_ms: the timeout imposed on a single HTTP request.
            Defaults to 10 s.
        general_method_timeout_ms: a timeout on the overall duration of
            DML methods (for methods issuing a single request, the smaller
            of this and `request_timeout_ms` applies). Defaults to 30 s.
        collection_admin_timeout_ms: a timeout for collection schema
            operations, such as creating or dropping a collection.
            Defaults to 60 s.
        table_admin_timeout_ms: a timeout for table schema operations.
            Defaults to 30 s.
        database_admin_timeout_ms: a timeout for database admin operations,
            including the whole polling phase of database creation and
            termination. Defaults to 10 m.
        keyspace_admin_timeout_ms: a timeout for keyspace admin operations.
            Defaults to 30 s.
    """

    request_timeout_ms: int | UnsetType = _UNSET
    general_method_timeout_ms: int | UnsetType = _UNSET
    collection_admin_timeout_ms: int | UnsetType = _UNSET
    table_admin_timeout_ms: int | UnsetType = _UNSET
    database_admin_timeout_ms: int | UnsetType = _UNSET
    keyspace_admin_timeout_ms: int | UnsetType = _UNSET

    def get(self, category: str) -> int | None:
        """Return the value for a category, or None if it is unset."""
        value = getattr(self, category)
        if isinstance(value, UnsetType):
            return None
        return value


@dataclass
class FullTimeoutOptions(TimeoutOptions):
    """
    A complete set of timeout settings: every category has a defined value.
    See `TimeoutOptions` for the meaning of each category.
    """

    request_timeout_ms: int
    general_method_timeout_ms: int
    collection_admin_timeout_ms: int
    table_admin_timeout_ms: int
    database_admin_timeout_ms: int
    keyspace_admin_timeout_ms: int

    def __init__(
        self,
        *,
        request_timeout_ms: int,
        general_method_timeout_ms: int,
        collection_admin_timeout_ms: int,
        table_admin_timeout_ms: int,
        database_admin_timeout_ms: int,
        keyspace_admin_timeout_ms: int,
    ) -> None:
        TimeoutOptions.__init__(
            self,
            request_timeout_ms=request_timeout_ms,
            general_method_timeout_ms=general_method_timeout_ms,
            collection_admin_timeout_ms=collection_admin_timeout_ms,
            table_admin_timeout_ms=table_admin_timeout_ms,
            database_admin_timeout_ms=database_admin_timeout_ms,
            keyspace_admin_timeout_ms=keyspace_admin_timeout_ms,
        )

    def get(self, category: str) -> int:
        return getattr(self, category)  # type: ignore[no-any-return]

    def with_override(self, other: TimeoutOptions | None) -> FullTimeoutOptions:
        """
        Return a new full set of timeouts where the fields set on `other`
        replace those of this object. A None `other` returns this very object.
        """

        if other is None:
            return self
        merged = {
            category: (
                self.get(category)
                if isinstance(getattr(other, category), UnsetType)
                else getattr(other, category)
            )
            for category in TIMEOUT_CATEGORIES
        }
        return FullTimeoutOptions(**merged)

    def as_dict(self) -> dict[str, int]:
        return {category: self.get(category) for category in TIMEOUT_CATEGORIES}


defaultTimeoutOptions = FullTimeoutOptions(
    request_timeout_ms=DEFAULT_REQUEST_TIMEOUT_MS,
    general_method_timeout_ms=DEFAULT_GENERAL_METHOD_TIMEOUT_MS,
    collection_admin_timeout_ms=DEFAULT_COLLECTION_ADMIN_TIMEOUT_MS,
    table_admin_timeout_ms=DEFAULT_TABLE_ADMIN_TIMEOUT_MS,
    database_admin_timeout_ms=DEFAULT_DATABASE_ADMIN_TIMEOUT_MS,
    keyspace_admin_timeout_ms=DEFAULT_KEYSPACE_ADMIN_TIMEOUT_MS,
)


class NumberRepresentation(StrEnum):
    """
    How a number read from the Data API is represented in the returned documents.

    Values:
        NUMBER: a plain `int` or `float` (lossy for huge or very precise values).
        BIGINT: an `int`; integral decimals are made into `int` exactly.
        DECIMAL: a `decimal.Decimal`, preserving every digit.
        STRING: the exact textual representation, as a `str`.
    """

    NUMBER = "number"
    BIGINT = "bigint"
    DECIMAL = "decimal"
    STRING = "string"


@dataclass
class SerdesOptions:
    """
    Serialization/deserialization settings for documents exchanged with the API.

    Attributes:
        big_number_policy: an optional mapping from field paths to the way
            numbers found there are represented when reading documents.
            Paths are dot-separated (list items are addressed by their index),
            a segment "*" matches any single segment and the path "*" alone
            acts as the catch-all. When several paths match a field, the
            longest one wins; for equally long paths, the one with fewer
            wildcards wins. Leaving this unset (or empty) means numbers
            are returned as plain int/float values.
    """

    big_number_policy: Mapping[str, str | NumberRepresentation] | UnsetType = _UNSET


@dataclass
class FullSerdesOptions(SerdesOptions):
    big_number_policy: dict[str, NumberRepresentation] = field(default_factory=dict)

    def __init__(
        self,
        *,
        big_number_policy: Mapping[str, str | NumberRepresentation] | None = None,
    ) -> None:
        self.big_number_policy = {
            path: NumberRepresentation.coerce(representation)
            for path, representation in (big_number_policy or {}).items()
        }

    def with_override(self, other: SerdesOptions | None) -> FullSerdesOptions:
        if other is None or isinstance(other.big_number_policy, UnsetType):
            return self
        return FullSerdesOptions(big_number_policy=other.big_number_policy)


defaultSerdesOptions = FullSerdesOptions()
