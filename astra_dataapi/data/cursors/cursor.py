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
from abc import ABC
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from astra_dataapi.constants import DocumentType, FilterType, ProjectionType
from astra_dataapi.exceptions import CursorException
from astra_dataapi.utils.timeouts import TimeoutManager, TimeoutOverride
from astra_dataapi.utils.unset import _UNSET, UnsetType

# A cursor reads raw documents from the DB and maps them to T if any mapping.
# A new cursor returned by .map will map to TNEW
T = TypeVar("T")
TNEW = TypeVar("TNEW")

logger = logging.getLogger(__name__)

CURSOR_IN_USE_MESSAGE = (
    "Cursor is already initialized/in use; cannot perform options "
    "modification. Rewind or clone the cursor."
)


class CursorState(Enum):
    """
    This enum expresses the possible states for a cursor.

    Values:
        IDLE: Iteration over results has not started yet (alive=T, started=F)
        STARTED: Iteration has started, *can* still yield results (alive=T, started=T)
        CLOSED: Finished/forcibly stopped. Won't return more documents (alive=F)
    """

    # Iteration over results has not started yet (alive=T, started=F)
    IDLE = "idle"
    # Iteration has started, *can* still yield results (alive=T, started=T)
    STARTED = "started"
    # Finished/forcibly stopped. Won't return more documents (alive=F)
    CLOSED = "closed"


class _Exhausted:
    pass


# returned by the read primitive when no further document is available
EXHAUSTED = _Exhausted()


class AbstractCursor(ABC, Generic[T]):
    """
    A cursor obtained from the invocation of a find-type method over a collection.
    This is the main interface to scroll through the documents.

    This class is not meant to be directly instantiated by the user, rather it
    is a superclass capturing the state management and query settings common
    to the sync and async find cursors.

    Cursors provide a seamless interface to the caller code, allowing iteration
    over results while chunks of new data (pages) are exchanged periodically with
    the API. For this reason, cursors internally manage a local buffer that is
    progressively emptied and re-filled with a new page in a manner hidden from the
    user -- except, some cursor methods allow to peek into this buffer should it
    be necessary.
    """

    _state: CursorState
    _buffer: list[DocumentType]
    _pages_retrieved: int
    _consumed: int
    _fetched: int
    _next_page_state: str | None | UnsetType
    _last_response_status: dict[str, Any] | None
    _materialization_timeout_manager: TimeoutManager | None

    _filter: FilterType | None
    _projection: ProjectionType | None
    _sort: dict[str, Any] | None
    _limit: int | None
    _skip: int | None
    _batch_size: int | None
    _include_similarity: bool | None
    _include_sort_vector: bool | None
    _initial_page_state: str | None
    _timeout_ms: TimeoutOverride
    _mapper: Callable[[DocumentType], T] | None

    def __init__(
        self,
        *,
        filter: FilterType | None,
        projection: ProjectionType | None,
        sort: dict[str, Any] | None,
        limit: int | None,
        skip: int | None,
        batch_size: int | None,
        include_similarity: bool | None,
        include_sort_vector: bool | None,
        initial_page_state: str | None,
        timeout_ms: TimeoutOverride,
        mapper: Callable[[DocumentType], T] | None,
    ) -> None:
        self._filter = filter
        self._projection = projection
        self._sort = sort
        self._limit = limit
        self._skip = skip
        self._batch_size = batch_size
        self._include_similarity = include_similarity
        self._include_sort_vector = include_sort_vector
        self._initial_page_state = initial_page_state
        self._timeout_ms = timeout_ms
        self._mapper = mapper
        self.rewind()

    def _settings(self) -> dict[str, Any]:
        return {
            "filter": self._filter,
            "projection": self._projection,
            "sort": self._sort,
            "limit": self._limit,
            "skip": self._skip,
            "batch_size": self._batch_size,
            "include_similarity": self._include_similarity,
            "include_sort_vector": self._include_sort_vector,
            "initial_page_state": self._initial_page_state,
            "timeout_ms": self._timeout_ms,
        }

    def _ensure_idle(self) -> None:
        if self._state != CursorState.IDLE:
            raise CursorException(
                text=CURSOR_IN_USE_MESSAGE,
                cursor_state=self._state.value,
            )

    def _compose_mapper(
        self, mapper: Callable[[T], TNEW]
    ) -> Callable[[DocumentType], TNEW]:
        old_mapper = self._mapper
        if old_mapper is None:
            return mapper  # type: ignore[return-value]

        def _composite(document: DocumentType) -> TNEW:
            return mapper(old_mapper(document))

        return _composite

    def _next_page_limit(self) -> int | None:
        """
        The limit for the next page request: the smaller of the documents still
        needed to satisfy the cursor limit and the batch size, if any is set.
        """
        candidates: list[int] = []
        if self._limit:
            candidates.append(self._limit - self._fetched)
        if self._batch_size:
            candidates.append(self._batch_size)
        return min(candidates) if candidates else None

    def _pop_from_buffer(self, peek_only: bool) -> Any:
        document = self._buffer.pop(0)
        if peek_only:
            return document
        self._consumed += 1
        if self._mapper is None:
            return document
        try:
            return self._mapper(document)
        except Exception:
            self.close()
            raise

    def _current_page_state(self) -> str | None:
        # before the first page, the (optional) initial page state applies
        if isinstance(self._next_page_state, UnsetType):
            return self._initial_page_state
        return self._next_page_state

    def _accept_page(
        self,
        documents: list[DocumentType],
        next_page_state: str | None,
        status: dict[str, Any],
    ) -> None:
        self._pages_retrieved += 1
        self._fetched += len(documents)
        self._buffer = documents
        self._next_page_state = next_page_state
        if self._last_response_status is None or "sortVector" in status:
            self._last_response_status = status

    def _sort_vector(self) -> list[float] | None:
        if self._last_response_status is None:
            return None
        return self._last_response_status.get("sortVector")  # type: ignore[no-any-return]

    def _must_fetch_for_sort_vector(self) -> bool:
        return bool(
            self._include_sort_vector
            and self._pages_retrieved == 0
            and self._state != CursorState.CLOSED
        )

    @property
    def next_page_state(self) -> str | None:
        """
        The page state returned by the API with the most recently fetched page,
        if any. Passing it as `initial_page_state` to a new `find` (with the same
        query settings) resumes the iteration after the documents of that page.

        Returns:
            the page state string; None if no page has been fetched yet,
            or if the last page has been reached.
        """

        if isinstance(self._next_page_state, UnsetType):
            return None
        return self._next_page_state

    @property
    def state(self) -> CursorState:
        """
        The current state of this cursor.

        Returns:
            a value in `astra_dataapi.data.cursors.CursorState`.
        """

        return self._state

    @property
    def consumed(self) -> int:
        """
        The number of items the cursors has yielded, i.e. how many items
        have been already read by the code consuming the cursor.

        Returns:
            consumed: a non-negative integer, the count of items yielded so far.
        """

        return self._consumed

    @property
    def buffered_count(self) -> int:
        """
        The number of documents currently stored in the client-side buffer of
        this cursor. Reading this property never triggers new API calls to
        re-fill the buffer.

        Returns:
            buffered_count: a non-negative integer, the amount of items currently
                stored in the local buffer.
        """

        return len(self._buffer)

    def close(self) -> None:
        """
        Close the cursor, regardless of its state. A cursor can be closed at any
        time, possibly discarding the portion of results that has not yet been
        consumed, if any.

        This is an in-place modification of the cursor.
        """

        self._state = CursorState.CLOSED
        self._buffer = []

    def rewind(self) -> None:
        """
        Rewind the cursor, bringing it back to its pristine state of no items
        retrieved/consumed yet, regardless of its current state.
        All cursor settings (filter, mapping, projection, etc) are retained.

        A cursor can be rewound at any time. Keep in mind that, subject to changes
        occurred on the collection, the results may be different if a cursor
        is browsed a second time after rewinding it.

        This is an in-place modification of the cursor.
        """
        self._state = CursorState.IDLE
        self._buffer = []
        self._pages_retrieved = 0
        self._consumed = 0
        self._fetched = 0
        self._next_page_state = _UNSET
        self._last_response_status = None
        self._materialization_timeout_manager = None

    def consume_buffer(self, n: int | None = None) -> list[DocumentType]:
        """
        Consume (return) up to the requested number of buffered documents.
        The returned documents are marked as consumed, meaning that subsequently
        consuming the cursor will start after those items.

        This method is an in-place modification of the cursor and only concerns
        the local buffer: it never triggers fetching of new pages from the Data API.
        The mapping function, if any, is not applied: the raw documents are returned.

        This method can be called regardless of the cursor state without exceptions
        being raised.

        Args:
            n: amount of items to return. If omitted, the whole buffer is returned.

        Returns:
            list: a list of documents. If there are fewer items than requested,
                the whole buffer is returned without errors: in particular, if it
                is empty (such as when the cursor is closed), an empty list
                is returned.
        """
        _n = n if n is not None else len(self._buffer)
        if _n < 0:
            raise ValueError("A negative amount of items was requested.")
        returned, remaining = self._buffer[:_n], self._buffer[_n:]
        self._buffer = remaining
        self._consumed += len(returned)
        return returned
