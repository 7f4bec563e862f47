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

import inspect
import logging
from types import TracebackType
from typing import (
    TYPE_CHECKING,
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Iterator,
    Union,
)

from astra_dataapi.constants import DocumentType, FilterType, ProjectionType
from astra_dataapi.data.cursors.cursor import (
    EXHAUSTED,
    TNEW,
    AbstractCursor,
    CursorState,
    T,
)
from astra_dataapi.data.cursors.query_engine import _CollectionFindQueryEngine
from astra_dataapi.data.utils.distinct_extractors import (
    DistinctValueCollector,
    _reduce_distinct_key_to_safe,
)
from astra_dataapi.utils.timeouts import TimeoutManager, TimeoutOverride
from astra_dataapi.utils.unset import _UNSET, UnsetType

if TYPE_CHECKING:
    from astra_dataapi.data.collection import AsyncCollection, Collection

logger = logging.getLogger(__name__)


class FindCursor(AbstractCursor[T]):
    """
    A synchronous cursor over documents, as returned by a `find` invocation on
    a Collection. A cursor can be iterated over, materialized into a list,
    and queried/manipulated in various ways.

    Some cursor operations mutate it in-place (such as consuming its documents),
    other return a new cursor without changing the original one. In particular,
    all methods changing the query settings (`filter`, `sort`, `limit`, `map`...)
    return a new cursor and are allowed only while the cursor is IDLE.

    Iterating with `for` closes the cursor once it is exhausted, or as soon
    as the loop is exited early. A cursor can also be used as a context manager,
    being closed on exit.

    Example:
        >>> cursor = collection.find(
        ...     {},
        ...     projection={"seq": True, "_id": False},
        ...     limit=5,
        ... )
        >>> for document in cursor:
        ...     print(document)
        ...
        {'seq': 1}
        {'seq': 4}
        {'seq': 15}
        {'seq': 22}
        {'seq': 11}
    """

    _query_engine: _CollectionFindQueryEngine[Collection]

    def __init__(
        self,
        *,
        collection: Collection,
        filter: FilterType | None = None,
        projection: ProjectionType | None = None,
        sort: dict[str, Any] | None = None,
        limit: int | None = None,
        skip: int | None = None,
        batch_size: int | None = None,
        include_similarity: bool | None = None,
        include_sort_vector: bool | None = None,
        initial_page_state: str | None = None,
        timeout_ms: TimeoutOverride = None,
        mapper: Callable[[DocumentType], T] | None = None,
    ) -> None:
        AbstractCursor.__init__(
            self,
            filter=filter,
            projection=projection,
            sort=sort,
            limit=limit,
            skip=skip,
            batch_size=batch_size,
            include_similarity=include_similarity,
            include_sort_vector=include_sort_vector,
            initial_page_state=initial_page_state,
            timeout_ms=timeout_ms,
            mapper=mapper,
        )
        self._query_engine = _CollectionFindQueryEngine(
            collection=collection,
            filter=filter,
            projection=projection,
            sort=sort,
            skip=skip,
            include_similarity=include_similarity,
            include_sort_vector=include_sort_vector,
        )

    def _copy(
        self,
        *,
        mapper: Callable[[DocumentType], Any] | None | UnsetType = _UNSET,
        **kwargs: Any,
    ) -> FindCursor[Any]:
        return FindCursor(
            collection=self._query_engine.collection,
            mapper=self._mapper if isinstance(mapper, UnsetType) else mapper,
            **{**self._settings(), **kwargs},
        )

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}("{self.data_source.name}", '
            f"{self._state.value}, "
            f"consumed so far: {self.consumed})"
        )

    def __enter__(self) -> FindCursor[T]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()

    def _page_timeout_manager(self) -> TimeoutManager:
        if self._materialization_timeout_manager is not None:
            return self._materialization_timeout_manager
        return self.data_source._timeouts.single(
            "general_method_timeout_ms", self._timeout_ms
        )

    def _fetch_next_page(self) -> None:
        limit = self._next_page_limit()
        if limit is not None and limit <= 0:
            self._next_page_state = None
            return
        page_state = self._current_page_state()
        try:
            page = self._query_engine._fetch_page(
                page_state=page_state,
                limit=limit,
                timeout_manager=self._page_timeout_manager(),
            )
        except Exception:
            self.close()
            raise
        self._accept_page(*page)

    def _next(self, *, peek_only: bool, blocking: bool) -> Any:
        """
        Read the next document, fetching a new page if needed. Return
        the EXHAUSTED marker if there are no more documents; if not `blocking`,
        also return it when a page turns out empty.
        """
        if self._state == CursorState.CLOSED:
            return EXHAUSTED
        self._state = CursorState.STARTED
        while True:
            if self._buffer:
                return self._pop_from_buffer(peek_only)
            if self._next_page_state is None:
                return EXHAUSTED
            self._fetch_next_page()
            if not self._buffer and not blocking:
                return EXHAUSTED

    def _iterate(self) -> Iterator[T]:
        try:
            while True:
                item = self._next(peek_only=False, blocking=True)
                if item is EXHAUSTED:
                    break
                yield item
        finally:
            self.close()

    def __iter__(self) -> Iterator[T]:
        return self._iterate()

    def __next__(self) -> T:
        item = self._next(peek_only=False, blocking=True)
        if item is EXHAUSTED:
            self.close()
            raise StopIteration
        return item  # type: ignore[no-any-return]

    @property
    def data_source(self) -> Collection:
        """
        The Collection object that originated this cursor through a `find` operation.

        Returns:
            a Collection instance.
        """

        return self._query_engine.collection

    def clone(self) -> FindCursor[DocumentType]:
        """
        Create a copy of this cursor with:
        - the same query settings (filter, projection, limit, timeouts etc),
        - no mapping function,
        - the cursor is in its pristine IDLE state.

        Returns:
            a new FindCursor, similar to this one but rewound to its initial
            state and returning the raw documents.

        Example:
            >>> cursor = collection.find(
            ...     {},
            ...     projection={"seq": True, "_id": False},
            ...     limit=2,
            ... ).map(lambda doc: doc["seq"])
            >>> cursor.to_list()
            [1, 4]
            >>> cursor.clone().to_list()
            [{'seq': 1}, {'seq': 4}]
        """

        return self._copy(mapper=None)

    def filter(self, filter: FilterType | None) -> FindCursor[T]:
        """
        Return a copy of this cursor with a new filter setting.
        This operation is allowed only if the cursor state is still IDLE.

        Args:
            filter: a new filter setting to apply to the returned new cursor.

        Returns:
            a new FindCursor with the same settings as this one,
                except for the specified option.
        """

        self._ensure_idle()
        return self._copy(filter=filter)

    def project(self, projection: ProjectionType | None) -> FindCursor[T]:
        """
        Return a copy of this cursor with a new projection setting.
        This operation is allowed only if the cursor state is still IDLE.

        Args:
            projection: a new projection setting to apply to the returned new cursor.

        Returns:
            a new FindCursor with the same settings as this one,
                except for the specified option.
        """

        self._ensure_idle()
        return self._copy(projection=projection)

    def sort(self, sort: dict[str, Any] | None) -> FindCursor[T]:
        """Return a copy of this cursor with a new sort setting (IDLE cursors only)."""
        self._ensure_idle()
        return self._copy(sort=sort)

    def limit(self, limit: int | None) -> FindCursor[T]:
        """
        Return a copy of this cursor with a new limit setting.
        This operation is allowed only if the cursor state is still IDLE.

        Args:
            limit: a new limit setting to apply to the returned new cursor.
                A limit of zero (or None) means no limit.
        """

        self._ensure_idle()
        return self._copy(limit=limit)

    def skip(self, skip: int | None) -> FindCursor[T]:
        """Return a copy of this cursor with a new skip setting (IDLE cursors only)."""
        self._ensure_idle()
        return self._copy(skip=skip)

    def batch_size(self, batch_size: int | None) -> FindCursor[T]:
        """
        Return a copy of this cursor with a new batch size, i.e. the maximum
        number of documents requested for each page.
        This operation is allowed only if the cursor state is still IDLE.
        """

        self._ensure_idle()
        return self._copy(batch_size=batch_size)

    def include_similarity(self, include_similarity: bool | None) -> FindCursor[T]:
        """
        Return a copy of this cursor with a new include_similarity setting.
        This operation is allowed only if the cursor state is still IDLE.

        Args:
            include_similarity: whether the documents returned by a vector search
                should come with their similarity score in the "$similarity" field.
        """

        self._ensure_idle()
        return self._copy(include_similarity=include_similarity)

    def include_sort_vector(self, include_sort_vector: bool | None) -> FindCursor[T]:
        """
        Return a copy of this cursor with a new include_sort_vector setting.
        This operation is allowed only if the cursor state is still IDLE.

        Args:
            include_sort_vector: whether the API should return the query vector
                of a vector search, to be read with `get_sort_vector`.
        """

        self._ensure_idle()
        return self._copy(include_sort_vector=include_sort_vector)

    def initial_page_state(self, initial_page_state: str | None) -> FindCursor[T]:
        """
        Return a copy of this cursor that starts reading from the provided
        page state, as obtained earlier from the `next_page_state` property
        of a cursor with the same query settings.
        This operation is allowed only if the cursor state is still IDLE.

        Args:
            initial_page_state: the page state to start from. None means
                starting from the first page.

        Example:
            >>> cursor = collection.find({}, batch_size=2)
            >>> next(cursor)
            {'_id': 'a'}
            >>> page_state = cursor.next_page_state
            >>> collection.find({}, batch_size=2).initial_page_state(
            ...     page_state
            ... ).to_list()
            [{'_id': 'c'}, {'_id': 'd'}]
        """

        self._ensure_idle()
        return self._copy(initial_page_state=initial_page_state)

    def get_sort_vector(self) -> list[float] | None:
        """
        Return the query vector used in the vector (ANN) search that originated
        this cursor, if applicable. If this is not an ANN search, or it was invoked
        without the `include_sort_vector` flag, return None.

        Calling `get_sort_vector` on an IDLE cursor triggers the first page fetch,
        but the cursor stays in the IDLE state until actual consumption starts.
        Without `include_sort_vector`, no API request is ever made.

        Returns:
            the query vector used in the search as a list of numbers
                (also for vectorize-based searches), otherwise None.
        """

        if self._must_fetch_for_sort_vector():
            self._fetch_next_page()
        return self._sort_vector()

    def map(self, mapper: Callable[[T], TNEW]) -> FindCursor[TNEW]:
        """
        Return a copy of this cursor with a mapping function to transform
        the returned items. Calling this method on a cursor with a mapping
        already set results in the mapping functions being composed.

        This operation is allowed only if the cursor state is still IDLE.

        Args:
            mapper: a function transforming the objects returned by the cursor
                into something else (i.e. a function T => TNEW).

        Returns:
            a new FindCursor with a new mapping function on the results,
                possibly composed with any pre-existing mapping function.

        Example:
            >>> cursor_mapped_twice = collection.find(
            ...     {},
            ...     projection={"seq": True, "_id": False},
            ...     limit=2,
            ... ).map(lambda doc: doc["seq"]).map(lambda num: "x" * num)
            >>> for value in cursor_mapped_twice:
            ...     print(value)
            ...
            x
            xxxx
        """

        self._ensure_idle()
        return self._copy(mapper=self._compose_mapper(mapper))

    def has_next(self) -> bool:
        """
        Whether the cursor actually has more documents to return.

        `has_next` can be called on any cursor, but on a CLOSED cursor
        will always return False.

        This method can trigger the fetch operation of a new page, if the current
        buffer is empty. The document possibly read to answer is kept in the
        buffer, so that it is not lost.

        Returns:
            a boolean value of True if there is at least one further item
                available to consume; False otherwise.
        """

        if self._state == CursorState.CLOSED:
            return False
        if self._buffer:
            return True
        document = self._next(peek_only=True, blocking=True)
        if document is EXHAUSTED:
            return False
        self._buffer.insert(0, document)
        return True

    def _materialize(self, timeout_ms: TimeoutOverride) -> Iterator[T]:
        self._materialization_timeout_manager = self.data_source._timeouts.multipart(
            "general_method_timeout_ms",
            timeout_ms if timeout_ms is not None else self._timeout_ms,
        )
        try:
            yield from self._iterate()
        finally:
            self._materialization_timeout_manager = None

    def to_list(self, *, timeout_ms: TimeoutOverride = None) -> list[T]:
        """
        Materialize all documents that remain to be consumed from a cursor into a list.

        Calling this method on a CLOSED cursor returns an empty list, with no API calls.

        If the cursor is IDLE, the result will be the whole set of documents returned
        by the `find` operation; otherwise, the documents already consumed by the cursor
        will not be in the resulting list. The cursor is CLOSED afterwards.

        Args:
            timeout_ms: a timeout, in milliseconds, for the whole duration of this
                method (all page fetches together). Defaults to the general method
                timeout in effect for the collection.

        Returns:
            a list of documents (or other values depending on the mapping
                function, if one is set).

        Example:
            >>> collection.find(
            ...     {},
            ...     projection={"seq": True, "_id": False},
            ...     limit=3,
            ... ).to_list()
            [{'seq': 1}, {'seq': 4}, {'seq': 15}]
        """

        return list(self._materialize(timeout_ms))

    def for_each(
        self,
        function: Callable[[T], bool | None],
        *,
        timeout_ms: TimeoutOverride = None,
    ) -> None:
        """
        Consume the remaining documents in the cursor, invoking a provided callback
        function on each of them.

        Calling this method on a CLOSED cursor is a no-op (no API calls are made).

        If the function returns the boolean `False`, the iteration stops early.
        In any case the cursor is CLOSED when this method returns.

        Args:
            function: a callback function whose only parameter is of the type returned
                by the cursor.
            timeout_ms: a timeout, in milliseconds, for the whole duration of this
                method (all page fetches together).
        """

        items = self._materialize(timeout_ms)
        try:
            for item in items:
                if function(item) is False:
                    break
        finally:
            items.close()  # type: ignore[attr-defined]

    def distinct(self, key: str, *, timeout_ms: TimeoutOverride = None) -> list[Any]:
        """
        Return a list of the unique values of `key` across the documents
        matched by this cursor's query. This cursor is not affected.

        Args:
            key: the name of the field whose value is inspected across documents.
                Keys can use dot-notation to descend to deeper document levels.
                Lists encountered along the way are unrolled, and a numeric
                segment can also address an item in a list.
            timeout_ms: a timeout, in milliseconds, for the whole operation.

        Returns:
            a list of all different values for `key` found across the documents,
            in the order they are first encountered.

        Example:
            >>> collection.insert_many(
            ...     [{"name": "Marco", "food": ["apple", "orange"]},
            ...      {"name": "Emma", "food": {"likes_fruit": True, "allergies": []}}]
            ... )
            >>> collection.find().distinct("food")
            ['apple', 'orange', {'likes_fruit': True, 'allergies': []}]
        """

        collector = DistinctValueCollector(key)
        raw_cursor = self._copy(
            mapper=None,
            projection={_reduce_distinct_key_to_safe(key): True},
        )
        for document in raw_cursor.to_list(timeout_ms=timeout_ms):
            collector.add_document(document)
        return collector.values


class AsyncFindCursor(AbstractCursor[T]):
    """
    An asynchronous cursor over documents, as returned by a `find` invocation on
    an AsyncCollection. This class is the async counterpart of `FindCursor`:
    it is iterated with `async for`, and the methods that may fetch data
    (`has_next`, `to_list`, `for_each`, `distinct`) are coroutines.

    Example:
        >>> cursor = async_collection.find({}, limit=3)
        >>> async for document in cursor:
        ...     print(document["seq"])
        ...
        1
        4
        15
    """

    _query_engine: _CollectionFindQueryEngine[AsyncCollection]

    def __init__(
        self,
        *,
        collection: AsyncCollection,
        filter: FilterType | None = None,
        projection: ProjectionType | None = None,
        sort: dict[str, Any] | None = None,
        limit: int | None = None,
        skip: int | None = None,
        batch_size: int | None = None,
        include_similarity: bool | None = None,
        include_sort_vector: bool | None = None,
        initial_page_state: str | None = None,
        timeout_ms: TimeoutOverride = None,
        mapper: Callable[[DocumentType], T] | None = None,
    ) -> None:
        AbstractCursor.__init__(
            self,
            filter=filter,
            projection=projection,
            sort=sort,
            limit=limit,
            skip=skip,
            batch_size=batch_size,
            include_similarity=include_similarity,
            include_sort_vector=include_sort_vector,
            initial_page_state=initial_page_state,
            timeout_ms=timeout_ms,
            mapper=mapper,
        )
        self._query_engine = _CollectionFindQueryEngine(
            collection=collection,
            filter=filter,
            projection=projection,
            sort=sort,
            skip=skip,
            include_similarity=include_similarity,
            include_sort_vector=include_sort_vector,
        )

    def _copy(
        self,
        *,
        mapper: Callable[[DocumentType], Any] | None | UnsetType = _UNSET,
        **kwargs: Any,
    ) -> AsyncFindCursor[Any]:
        return AsyncFindCursor(
            collection=self._query_engine.collection,
            mapper=self._mapper if isinstance(mapper, UnsetType) else mapper,
            **{**self._settings(), **kwargs},
        )

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}("{self.data_source.name}", '
            f"{self._state.value}, "
            f"consumed so far: {self.consumed})"
        )

    async def __aenter__(self) -> AsyncFindCursor[T]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()

    def _page_timeout_manager(self) -> TimeoutManager:
        if self._materialization_timeout_manager is not None:
            return self._materialization_timeout_manager
        return self.data_source._timeouts.single(
            "general_method_timeout_ms", self._timeout_ms
        )

    async def _fetch_next_page(self) -> None:
        limit = self._next_page_limit()
        if limit is not None and limit <= 0:
            self._next_page_state = None
            return
        page_state = self._current_page_state()
        try:
            page = await self._query_engine._async_fetch_page(
                page_state=page_state,
                limit=limit,
                timeout_manager=self._page_timeout_manager(),
            )
        except Exception:
            self.close()
            raise
        self._accept_page(*page)

    async def _next(self, *, peek_only: bool, blocking: bool) -> Any:
        if self._state == CursorState.CLOSED:
            return EXHAUSTED
        self._state = CursorState.STARTED
        while True:
            if self._buffer:
                return self._pop_from_buffer(peek_only)
            if self._next_page_state is None:
                return EXHAUSTED
            await self._fetch_next_page()
            if not self._buffer and not blocking:
                return EXHAUSTED

    async def _aiterate(self) -> AsyncIterator[T]:
        try:
            while True:
                item = await self._next(peek_only=False, blocking=True)
                if item is EXHAUSTED:
                    break
                yield item
        finally:
            self.close()

    def __aiter__(self) -> AsyncIterator[T]:
        return self._aiterate()

    async def __anext__(self) -> T:
        item = await self._next(peek_only=False, blocking=True)
        if item is EXHAUSTED:
            self.close()
            raise StopAsyncIteration
        return item  # type: ignore[no-any-return]

    @property
    def data_source(self) -> AsyncCollection:
        """
        The AsyncCollection object that originated this cursor through
        a `find` operation.
        """

        return self._query_engine.collection

    def clone(self) -> AsyncFindCursor[DocumentType]:
        """
        Create a copy of this cursor with the same query settings, no mapping
        function, in its pristine IDLE state.
        """

        return self._copy(mapper=None)

    def filter(self, filter: FilterType | None) -> AsyncFindCursor[T]:
        """Return a copy of this cursor with a new filter (IDLE cursors only)."""
        self._ensure_idle()
        return self._copy(filter=filter)

    def project(self, projection: ProjectionType | None) -> AsyncFindCursor[T]:
        """Return a copy of this cursor with a new projection (IDLE cursors only)."""
        self._ensure_idle()
        return self._copy(projection=projection)

    def sort(self, sort: dict[str, Any] | None) -> AsyncFindCursor[T]:
        """Return a copy of this cursor with a new sort setting (IDLE cursors only)."""
        self._ensure_idle()
        return self._copy(sort=sort)

    def limit(self, limit: int | None) -> AsyncFindCursor[T]:
        """Return a copy of this cursor with a new limit (IDLE cursors only)."""
        self._ensure_idle()
        return self._copy(limit=limit)

    def skip(self, skip: int | None) -> AsyncFindCursor[T]:
        """Return a copy of this cursor with a new skip setting (IDLE cursors only)."""
        self._ensure_idle()
        return self._copy(skip=skip)

    def batch_size(self, batch_size: int | None) -> AsyncFindCursor[T]:
        """Return a copy of this cursor with a new batch size (IDLE cursors only)."""
        self._ensure_idle()
        return self._copy(batch_size=batch_size)

    def include_similarity(
        self, include_similarity: bool | None
    ) -> AsyncFindCursor[T]:
        """
        Return a copy of this cursor with a new include_similarity setting
        (IDLE cursors only).
        """
        self._ensure_idle()
        return self._copy(include_similarity=include_similarity)

    def include_sort_vector(
        self, include_sort_vector: bool | None
    ) -> AsyncFindCursor[T]:
        """
        Return a copy of this cursor with a new include_sort_vector setting
        (IDLE cursors only).
        """
        self._ensure_idle()
        return self._copy(include_sort_vector=include_sort_vector)

    def initial_page_state(
        self, initial_page_state: str | None
    ) -> AsyncFindCursor[T]:
        """
        Return a copy of this cursor that starts reading from the provided
        page state (IDLE cursors only). See `FindCursor.initial_page_state`.
        """
        self._ensure_idle()
        return self._copy(initial_page_state=initial_page_state)

    async def get_sort_vector(self) -> list[float] | None:
        """
        Return the query vector used in the vector (ANN) search that originated
        this cursor, if it was requested with `include_sort_vector`.
        See `FindCursor.get_sort_vector`.
        """

        if self._must_fetch_for_sort_vector():
            await self._fetch_next_page()
        return self._sort_vector()

    def map(self, mapper: Callable[[T], TNEW]) -> AsyncFindCursor[TNEW]:
        """
        Return a copy of this cursor with a mapping function to transform
        the returned items, composed with any pre-existing mapping function.
        This operation is allowed only if the cursor state is still IDLE.
        """
        self._ensure_idle()
        return self._copy(mapper=self._compose_mapper(mapper))

    async def has_next(self) -> bool:
        """
        Whether the cursor actually has more documents to return.
        See `FindCursor.has_next`.
        """

        if self._state == CursorState.CLOSED:
            return False
        if self._buffer:
            return True
        document = await self._next(peek_only=True, blocking=True)
        if document is EXHAUSTED:
            return False
        self._buffer.insert(0, document)
        return True

    async def _materialize(self, timeout_ms: TimeoutOverride) -> AsyncIterator[T]:
        self._materialization_timeout_manager = self.data_source._timeouts.multipart(
            "general_method_timeout_ms",
            timeout_ms if timeout_ms is not None else self._timeout_ms,
        )
        items = self._aiterate()
        try:
            async for item in items:
                yield item
        finally:
            await items.aclose()  # type: ignore[attr-defined]
            self._materialization_timeout_manager = None

    async def to_list(self, *, timeout_ms: TimeoutOverride = None) -> list[T]:
        """
        Materialize all documents that remain to be consumed from a cursor into a list.
        See `FindCursor.to_list`.
        """

        return [item async for item in self._materialize(timeout_ms)]

    async def for_each(
        self,
        function: Callable[[T], Union[bool, None, Awaitable[Union[bool, None]]]],
        *,
        timeout_ms: TimeoutOverride = None,
    ) -> None:
        """
        Consume the remaining documents in the cursor, invoking a provided callback
        function (or coroutine function) on each of them. A return value of
        `False` stops the iteration early. See `FindCursor.for_each`.
        """

        items = self._materialize(timeout_ms)
        try:
            async for item in items:
                result = function(item)
                if inspect.isawaitable(result):
                    result = await result
                if result is False:
                    break
        finally:
            await items.aclose()  # type: ignore[attr-defined]

    async def distinct(
        self, key: str, *, timeout_ms: TimeoutOverride = None
    ) -> list[Any]:
        """
        Return a list of the unique values of `key` across the documents
        matched by this cursor's query. See `FindCursor.distinct`.
        """

        collector = DistinctValueCollector(key)
        raw_cursor = self._copy(
            mapper=None,
            projection={_reduce_distinct_key_to_safe(key): True},
        )
        for document in await raw_cursor.to_list(timeout_ms=timeout_ms):
            collector.add_document(document)
        return collector.values
