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

import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from astra_dataapi.commands import FindCommand
from astra_dataapi.constants import FilterType, ProjectionType, normalize_optional_projection
from astra_dataapi.utils.timeouts import TimeoutManager

if TYPE_CHECKING:
    from astra_dataapi.data.collection import AsyncCollection, Collection

logger = logging.getLogger(__name__)

TCOLL = TypeVar("TCOLL")


class _CollectionFindQueryEngine(Generic[TCOLL]):
    """
    The part of a find cursor that knows how to run the `find` command
    for one page of results against a (sync or async) collection.
    """

    collection: TCOLL
    filter: FilterType | None
    projection: ProjectionType | None
    sort: dict[str, Any] | None
    skip: int | None
    include_similarity: bool | None
    include_sort_vector: bool | None

    def __init__(
        self,
        *,
        collection: TCOLL,
        filter: FilterType | None,
        projection: ProjectionType | None,
        sort: dict[str, Any] | None,
        skip: int | None,
        include_similarity: bool | None,
        include_sort_vector: bool | None = None,
    ) -> None:
        self.collection = collection
        self.filter = filter
        self.projection = projection
        self.sort = sort
        self.skip = skip
        self.include_similarity = include_similarity
        self.include_sort_vector = include_sort_vector

    def _find_command(self, *, page_state: str | None, limit: int | None) -> FindCommand:
        options = {
            k: v
            for k, v in {
                "limit": limit,
                "pageState": page_state,
                "skip": self.skip,
                "includeSimilarity": self.include_similarity,
                "includeSortVector": self.include_sort_vector,
            }.items()
            if v is not None
        }
        return FindCommand(
            filter=self.filter or {},
            projection=normalize_optional_projection(self.projection),
            sort=self.sort or None,
            options=options,
        )

    @staticmethod
    def _parse_page(
        response: dict[str, Any],
    ) -> tuple[list[dict[str, Any]], str | None, dict[str, Any]]:
        data = response.get("data") or {}
        documents = data.get("documents") or []
        next_page_state = data.get("nextPageState")
        status = response.get("status") or {}
        logger.info(
            f"fetched a page of {len(documents)} documents "
            f"({'more pages' if next_page_state else 'last page'})"
        )
        return documents, next_page_state, status

    def _fetch_page(
        self,
        *,
        page_state: str | None,
        limit: int | None,
        timeout_manager: TimeoutManager,
    ) -> tuple[list[dict[str, Any]], str | None, dict[str, Any]]:
        """Fetch one page: return (documents, next-page-state, status)."""
        collection: Collection = self.collection  # type: ignore[assignment]
        response = collection._commander.execute_command(
            self._find_command(page_state=page_state, limit=limit),
            timeout_manager=timeout_manager,
            keyspace=collection.keyspace,
            collection=collection.name,
        )
        return self._parse_page(response)

    async def _async_fetch_page(
        self,
        *,
        page_state: str | None,
        limit: int | None,
        timeout_manager: TimeoutManager,
    ) -> tuple[list[dict[str, Any]], str | None, dict[str, Any]]:
        """Fetch one page: return (documents, next-page-state, status)."""
        collection: AsyncCollection = self.collection  # type: ignore[assignment]
        response = await collection._commander.async_execute_command(
            self._find_command(page_state=page_state, limit=limit),
            timeout_manager=timeout_manager,
            keyspace=collection.keyspace,
            collection=collection.name,
        )
        return self._parse_page(response)
