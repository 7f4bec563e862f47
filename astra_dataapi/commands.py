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

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Union

from astra_dataapi.constants import DocumentType, FilterType, ProjectionType
from astra_dataapi.utils.unset import UnsetType


def _pick(**kwargs: Any) -> dict[str, Any]:
    # keep only the entries that carry some information
    return {
        k: v
        for k, v in kwargs.items()
        if v is not None and not isinstance(v, UnsetType) and v != {}
    }


class DataAPICommand(ABC):
    """
    A command to the Data API. Each command has a name and produces the
    JSON-ready payload to send, an object with a single top-level key.
    """

    name: ClassVar[str]

    @abstractmethod
    def to_payload(self) -> dict[str, Any]: ...


@dataclass(frozen=True)
class InsertOneCommand(DataAPICommand):
    name: ClassVar[str] = "insertOne"
    document: DocumentType

    def to_payload(self) -> dict[str, Any]:
        return {self.name: {"document": self.document}}


@dataclass(frozen=True)
class InsertManyCommand(DataAPICommand):
    """
    An insertion of several documents. The API is always asked to return
    per-document responses, so that partial successes can be reconstructed.
    """

    name: ClassVar[str] = "insertMany"
    documents: List[DocumentType]
    ordered: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            self.name: {
                "documents": self.documents,
                "options": {
                    "ordered": self.ordered,
                    "returnDocumentResponses": True,
                },
            }
        }


@dataclass(frozen=True)
class FindCommand(DataAPICommand):
    """
    A request for one page of documents matching a filter. The filter is
    always sent, even when empty.
    """

    name: ClassVar[str] = "find"
    filter: FilterType = field(default_factory=dict)
    projection: Union[ProjectionType, None] = None
    sort: Union[Dict[str, Any], None] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            self.name: {
                "filter": self.filter,
                **_pick(
                    projection=self.projection,
                    sort=self.sort,
                    options=self.options,
                ),
            }
        }


@dataclass(frozen=True)
class FindOneCommand(DataAPICommand):
    name: ClassVar[str] = "findOne"
    filter: FilterType = field(default_factory=dict)
    projection: Union[ProjectionType, None] = None
    sort: Union[Dict[str, Any], None] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            self.name: {
                "filter": self.filter,
                **_pick(
                    projection=self.projection,
                    sort=self.sort,
                    options=self.options,
                ),
            }
        }


@dataclass(frozen=True)
class DeleteManyCommand(DataAPICommand):
    name: ClassVar[str] = "deleteMany"
    filter: FilterType = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {self.name: {"filter": self.filter}}


@dataclass(frozen=True)
class UpdateManyCommand(DataAPICommand):
    """
    An update of all documents matching a filter. The API may process only
    part of them, returning a `nextPageState` to be passed in the options
    of the following request.
    """

    name: ClassVar[str] = "updateMany"
    filter: FilterType
    update: Dict[str, Any]
    options: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            self.name: {
                "filter": self.filter,
                "update": self.update,
                **_pick(options=self.options),
            }
        }


@dataclass(frozen=True)
class UpdateOneCommand(DataAPICommand):
    name: ClassVar[str] = "updateOne"
    filter: FilterType
    update: Dict[str, Any]
    sort: Union[Dict[str, Any], None] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            self.name: {
                "filter": self.filter,
                "update": self.update,
                **_pick(sort=self.sort, options=self.options),
            }
        }


@dataclass(frozen=True)
class DeleteOneCommand(DataAPICommand):
    name: ClassVar[str] = "deleteOne"
    filter: FilterType
    sort: Union[Dict[str, Any], None] = None

    def to_payload(self) -> dict[str, Any]:
        return {self.name: {"filter": self.filter, **_pick(sort=self.sort)}}


@dataclass(frozen=True)
class FindOneAndUpdateCommand(DataAPICommand):
    """
    An update of the first document matching a filter, returning that
    document (as it was before or after the update, as set in the options).
    """

    name: ClassVar[str] = "findOneAndUpdate"
    filter: FilterType
    update: Dict[str, Any]
    projection: Union[ProjectionType, None] = None
    sort: Union[Dict[str, Any], None] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            self.name: {
                "filter": self.filter,
                "update": self.update,
                **_pick(
                    projection=self.projection,
                    sort=self.sort,
                    options=self.options,
                ),
            }
        }


@dataclass(frozen=True)
class FindOneAndReplaceCommand(DataAPICommand):
    """
    A replacement of the first document matching a filter. This is also
    the command behind `replace_one`, which discards the returned document.
    """

    name: ClassVar[str] = "findOneAndReplace"
    filter: FilterType
    replacement: DocumentType
    projection: Union[ProjectionType, None] = None
    sort: Union[Dict[str, Any], None] = None
    options: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            self.name: {
                "filter": self.filter,
                "replacement": self.replacement,
                **_pick(
                    projection=self.projection,
                    sort=self.sort,
                    options=self.options,
                ),
            }
        }


@dataclass(frozen=True)
class FindOneAndDeleteCommand(DataAPICommand):
    name: ClassVar[str] = "findOneAndDelete"
    filter: FilterType
    projection: Union[ProjectionType, None] = None
    sort: Union[Dict[str, Any], None] = None

    def to_payload(self) -> dict[str, Any]:
        return {
            self.name: {
                "filter": self.filter,
                **_pick(projection=self.projection, sort=self.sort),
            }
        }


@dataclass(frozen=True)
class EstimatedDocumentCountCommand(DataAPICommand):
    name: ClassVar[str] = "estimatedDocumentCount"

    def to_payload(self) -> dict[str, Any]:
        return {self.name: {}}


@dataclass(frozen=True)
class CountDocumentsCommand(DataAPICommand):
    name: ClassVar[str] = "countDocuments"
    filter: FilterType = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {self.name: {"filter": self.filter}}


@dataclass(frozen=True)
class CreateCollectionCommand(DataAPICommand):
    name: ClassVar[str] = "createCollection"
    collection_name: str
    options: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {self.name: _pick(name=self.collection_name, options=self.options)}


@dataclass(frozen=True)
class DeleteCollectionCommand(DataAPICommand):
    name: ClassVar[str] = "deleteCollection"
    collection_name: str

    def to_payload(self) -> dict[str, Any]:
        return {self.name: {"name": self.collection_name}}


@dataclass(frozen=True)
class FindCollectionsCommand(DataAPICommand):
    name: ClassVar[str] = "findCollections"
    explain: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {self.name: {"options": {"explain": self.explain}}}


@dataclass(frozen=True)
class RawCommand(DataAPICommand):
    """
    Any command, given as its full payload. The name is the payload's
    (first) top-level key.
    """

    payload: Dict[str, Any]

    @property  # type: ignore[misc]
    def name(self) -> str:  # type: ignore[override]
        return next(iter(self.payload.keys()), "")

    def to_payload(self) -> dict[str, Any]:
        return self.payload


def to_command(command: DataAPICommand | dict[str, Any]) -> DataAPICommand:
    """Accept either a command object or a bare payload dictionary."""
    if isinstance(command, DataAPICommand):
        return command
    return RawCommand(payload=command)


__all__ = [
    "DataAPICommand",
    "InsertOneCommand",
    "InsertManyCommand",
    "FindCommand",
    "FindOneCommand",
    "DeleteManyCommand",
    "UpdateManyCommand",
    "UpdateOneCommand",
    "DeleteOneCommand",
    "FindOneAndUpdateCommand",
    "FindOneAndReplaceCommand",
    "FindOneAndDeleteCommand",
    "EstimatedDocumentCountCommand",
    "CountDocumentsCommand",
    "CreateCollectionCommand",
    "DeleteCollectionCommand",
    "FindCollectionsCommand",
    "RawCommand",
    "to_command",
]
