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
from types import TracebackType
from typing import TYPE_CHECKING, Any, Iterable

from astra_dataapi.commands import (
    CountDocumentsCommand,
    DataAPICommand,
    DeleteManyCommand,
    DeleteOneCommand,
    EstimatedDocumentCountCommand,
    FindCollectionsCommand,
    FindOneAndDeleteCommand,
    FindOneAndReplaceCommand,
    FindOneAndUpdateCommand,
    FindOneCommand,
    InsertOneCommand,
    UpdateManyCommand,
    UpdateOneCommand,
)
from astra_dataapi.constants import (
    DocumentType,
    FilterType,
    ProjectionType,
    ReturnDocument,
    SortType,
    normalize_optional_projection,
)
from astra_dataapi.data.cursors import AsyncFindCursor, FindCursor
from astra_dataapi.data.insertion import (
    async_insert_many_ordered,
    async_insert_many_unordered,
    insert_many_ordered,
    insert_many_unordered,
)
from astra_dataapi.events import EventLogger, HierarchicalEmitter, LoggingConfig
from astra_dataapi.exceptions import (
    CollectionDeleteManyException,
    CollectionNotFoundException,
    CollectionUpdateManyException,
    DataAPIResponseException,
    TooManyDocumentsToCountException,
    UnexpectedDataAPIResponseException,
    to_dataapi_timeout_exception,
)
from astra_dataapi.results import (
    CollectionDeleteResult,
    CollectionInsertManyResult,
    CollectionInsertOneResult,
    CollectionUpdateResult,
)
from astra_dataapi.settings.defaults import (
    DEFAULT_INSERT_MANY_CHUNK_SIZE,
    DEFAULT_INSERT_MANY_CONCURRENCY,
)
from astra_dataapi.utils.api_commander import DataAPICommander
from astra_dataapi.utils.api_options import (
    FullSerdesOptions,
    SerdesOptions,
    TimeoutOptions,
)
from astra_dataapi.utils.timeouts import TimeoutManager, TimeoutOverride, Timeouts

if TYPE_CHECKING:
    from astra_dataapi.data.database import AsyncDatabase, Database

logger = logging.getLogger(__name__)


def _prepare_update_info(statuses: list[dict[str, Any]]) -> dict[str, Any]:
    reduced_status = {
        "matchedCount": sum(
            status["matchedCount"] for status in statuses if "matchedCount" in status
        ),
        "modifiedCount": sum(
            status["modifiedCount"] for status in statuses if "modifiedCount" in status
        ),
        "upsertedId": [
            status["upsertedId"] for status in statuses if "upsertedId" in status
        ],
    }
    if reduced_status["upsertedId"]:
        if len(reduced_status["upsertedId"]) == 1:
            ups_dict = {"upserted": reduced_status["upsertedId"][0]}
        else:
            ups_dict = {"upserteds": reduced_status["upsertedId"]}
    else:
        ups_dict = {}
    return {
        **{
            "n": reduced_status["matchedCount"] + len(reduced_status["upsertedId"]),
            "updatedExisting": reduced_status["modifiedCount"] > 0,
            "ok": 1.0,
            "nModified": reduced_status["modifiedCount"],
        },
        **ups_dict,
    }


def _insert_many_settings(
    ordered: bool, chunk_size: int | None, concurrency: int | None
) -> tuple[int, int]:
    _chunk_size = chunk_size if chunk_size is not None else DEFAULT_INSERT_MANY_CHUNK_SIZE
    if concurrency is None:
        _concurrency = 1 if ordered else DEFAULT_INSERT_MANY_CONCURRENCY
    else:
        _concurrency = concurrency
    if _concurrency > 1 and ordered:
        raise ValueError("Cannot run ordered insert_many concurrently.")
    return _chunk_size, _concurrency


def _parse_count(response: dict[str, Any], upper_bound: int) -> int:
    status = response.get("status") or {}
    if "count" not in status:
        raise UnexpectedDataAPIResponseException(
            text="Faulty response from countDocuments API command.",
            raw_response=response,
        )
    count: int = status["count"]
    if status.get("moreData", False):
        raise TooManyDocumentsToCountException(
            text=f"Document count exceeds {count}, the maximum allowed by the server",
            server_max_count_exceeded=True,
        )
    if count > upper_bound:
        raise TooManyDocumentsToCountException(
            text="Document count exceeds required upper bound",
            server_max_count_exceeded=False,
        )
    return count


def _parse_insert_one(response: dict[str, Any]) -> CollectionInsertOneResult:
    inserted_ids = (response.get("status") or {}).get("insertedIds")
    if not inserted_ids:
        raise UnexpectedDataAPIResponseException(
            text="Faulty response from insert_one API command.",
            raw_response=response,
        )
    return CollectionInsertOneResult(
        raw_results=[response],
        inserted_id=inserted_ids[0],
    )


def _parse_update_one(response: dict[str, Any]) -> CollectionUpdateResult:
    if "status" not in response:
        raise UnexpectedDataAPIResponseException(
            text="Faulty response from update_one API command.",
            raw_response=response,
        )
    return CollectionUpdateResult(
        raw_results=[response],
        update_info=_prepare_update_info([response["status"]]),
    )


def _parse_replace_one(response: dict[str, Any]) -> CollectionUpdateResult:
    if "document" not in (response.get("data") or {}):
        raise UnexpectedDataAPIResponseException(
            text="Faulty response from find_one_and_replace API command.",
            raw_response=response,
        )
    return CollectionUpdateResult(
        raw_results=[response],
        update_info=_prepare_update_info([response.get("status") or {}]),
    )


def _parse_found_document(
    response: dict[str, Any], method_name: str
) -> DocumentType | None:
    # the document is None when nothing matched (and no upsert took place)
    if "document" not in (response.get("data") or {}):
        raise UnexpectedDataAPIResponseException(
            text=f"Faulty response from {method_name} API command.",
            raw_response=response,
        )
    return response["data"]["document"]  # type: ignore[no-any-return]


def _parse_find_one_and_delete(response: dict[str, Any]) -> DocumentType | None:
    if "document" in (response.get("data") or {}):
        return response["data"]["document"]  # type: ignore[no-any-return]
    if (response.get("status") or {}).get("deletedCount") == 0:
        return None
    raise UnexpectedDataAPIResponseException(
        text="Faulty response from find_one_and_delete API command.",
        raw_response=response,
    )


def _parse_delete_one(response: dict[str, Any]) -> CollectionDeleteResult:
    deleted_count = (response.get("status") or {}).get("deletedCount")
    if deleted_count is None:
        raise UnexpectedDataAPIResponseException(
            text="Faulty response from delete_one API command.",
            raw_response=response,
        )
    return CollectionDeleteResult(
        deleted_count=deleted_count,
        raw_results=[response],
    )


def _parse_estimated_count(response: dict[str, Any]) -> int:
    status = response.get("status") or {}
    if "count" not in status:
        raise UnexpectedDataAPIResponseException(
            text="Faulty response from estimated_document_count API command.",
            raw_response=response,
        )
    return status["count"]  # type: ignore[no-any-return]


def _parse_collection_options(
    response: dict[str, Any],
    *,
    command: DataAPICommand,
    collection_name: str,
    keyspace: str,
) -> dict[str, Any]:
    """
    Pick the options of a collection out of a findCollections response
    obtained with `explain` set to true.
    """

    collections = (response.get("status") or {}).get("collections")
    if collections is None:
        raise UnexpectedDataAPIResponseException(
            text="Faulty response from findCollections API command.",
            raw_response=response,
        )
    for coll_desc in collections:
        if isinstance(coll_desc, dict) and coll_desc.get("name") == collection_name:
            return coll_desc.get("options") or {}  # type: ignore[no-any-return]
    raise CollectionNotFoundException(
        f"Collection '{collection_name}' not found in keyspace '{keyspace}'.",
        collection_name=collection_name,
        command=command.to_payload(),
        raw_response=response,
        error_descriptors=[],
        warning_descriptors=[],
    )


class Collection:
    """
    A Data API collection, the object to interact with the Data API for
    schemaless documents: inserting, querying, updating and deleting them.

    This class is not meant for direct instantiation by the user, rather
    it is obtained by invoking methods such as `get_collection`
    of Database, wherefrom the Collection inherits its API options such as
    authentication token, API endpoint, timeouts and logging configuration.

    Each collection has an emitter, a child of the database's one, on which
    listeners for the command events can be registered.

    Args:
        database: a Database object, instantiated earlier. This represents
            the database the collection belongs to.
        name: the collection name. This parameter should match an existing
            collection on the database.
        keyspace: this is the keyspace to which the collection belongs.
            If nothing is specified, the database's working keyspace is used.
        timeout_options: a partial set of timeouts overriding the database's ones.
        serdes_options: serialization options overriding the database's ones.
        logging: a logging configuration for the events of this collection,
            layered on top of the database's one.

    Example:
        >>> from astra_dataapi import DataAPIClient
        >>> client = DataAPIClient()
        >>> database = client.get_database(
        ...     "https://01234567-....apps.astra.datastax.com",
        ...     token="AstraCS:..."
        ... )
        >>> my_collection = database.get_collection("my_collection")
    """

    def __init__(
        self,
        *,
        database: Database,
        name: str,
        keyspace: str | None = None,
        timeout_options: TimeoutOptions | None = None,
        serdes_options: SerdesOptions | None = None,
        logging: LoggingConfig = None,
    ) -> None:
        self._database = database
        self._name = name
        self._keyspace = keyspace if keyspace is not None else database.keyspace
        self._timeouts = Timeouts(
            to_dataapi_timeout_exception,
            database._timeouts.base_timeouts.with_override(timeout_options),
        )
        self._serdes_options: FullSerdesOptions = (
            database._serdes_options.with_override(serdes_options)
        )
        self._event_logger: EventLogger = database._event_logger.spawn(logging)
        self._commander: DataAPICommander = database._make_commander(
            event_logger=self._event_logger,
            serdes_options=self._serdes_options,
        )

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(name="{self.name}", '
            f'keyspace="{self.keyspace}", '
            f'database.api_endpoint="{self.database.api_endpoint}")'
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Collection):
            return all(
                [
                    self._name == other._name,
                    self._keyspace == other._keyspace,
                    self._database == other._database,
                ]
            )
        else:
            return False

    @property
    def database(self) -> Database:
        """
        The Database this collection belongs to.

        Example:
            >>> my_coll.database.name
            'the_application_database'
        """

        return self._database

    @property
    def keyspace(self) -> str:
        """
        The keyspace this collection is in.

        Example:
            >>> my_coll.keyspace
            'default_keyspace'
        """

        return self._keyspace

    @property
    def name(self) -> str:
        """
        The name of this collection.

        Example:
            >>> my_coll.name
            'my_v_collection'
        """

        return self._name

    @property
    def full_name(self) -> str:
        """
        The fully-qualified collection name within the database,
        in the form "keyspace.collection_name".
        """

        return f"{self.keyspace}.{self.name}"

    @property
    def emitter(self) -> HierarchicalEmitter:
        """
        The event emitter of this collection. Events emitted here bubble
        up to the emitter of the database, then to that of the client.

        Example:
            >>> unsubscribe = my_coll.emitter.on(
            ...     "commandFailed", lambda event: print(event.format())
            ... )
        """

        return self._event_logger.emitter

    def _execute(
        self, command: DataAPICommand, timeout_manager: TimeoutManager
    ) -> dict[str, Any]:
        return self._commander.execute_command(
            command,
            timeout_manager=timeout_manager,
            keyspace=self.keyspace,
            collection=self.name,
        )

    def insert_one(
        self,
        document: DocumentType,
        *,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionInsertOneResult:
        """
        Insert a single document in the collection in an atomic operation.

        Args:
            document: the dictionary expressing the document to insert.
                The `_id` field of the document can be left out, in which
                case it will be created automatically.
            timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request, or a TimeoutOptions object.
                If not provided, this object's defaults apply.

        Returns:
            a CollectionInsertOneResult object.

        Example:
            >>> my_coll.count_documents({}, upper_bound=10)
            0
            >>> my_coll.insert_one(
            ...     {
            ...         "age": 30,
            ...         "name": "Smith",
            ...         "food": ["pear", "peach"],
            ...         "likes_fruit": True,
            ...     },
            ... )
            CollectionInsertOneResult(raw_results=..., inserted_id='ed4587a4-...')

        Note:
            If an `_id` is explicitly provided, which corresponds to a document
            that exists already in the collection, an error is raised and
            the insertion fails.
        """

        logger.info(f"insertOne on '{self.name}'")
        response = self._execute(
            InsertOneCommand(document=document),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished insertOne on '{self.name}'")
        return _parse_insert_one(response)

    def insert_many(
        self,
        documents: Iterable[DocumentType],
        *,
        ordered: bool = False,
        chunk_size: int | None = None,
        concurrency: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionInsertManyResult:
        """
        Insert a list of documents into the collection.
        This is not an atomic operation.

        Args:
            documents: an iterable of dictionaries, each a document to insert.
                Documents may specify their `_id` field or leave it out, in which
                case it will be added automatically.
            ordered: if False (default), the insertions can occur in arbitrary order
                and possibly concurrently. If True, they are processed sequentially.
                If there are no specific reasons against it, unordered insertions are
                to be preferred as they complete much faster.
            chunk_size: how many documents to include in a single API request.
                Exceeding the server maximum allowed value results in an error.
                Leave it unspecified (recommended) to use the system default.
            concurrency: maximum number of concurrent requests to the API at
                a given time. It cannot be more than one for ordered insertions.
            timeout_ms: a timeout, in milliseconds, for the whole requested
                operation (which may involve multiple API requests), or
                a TimeoutOptions object. If not passed, the collection-level
                setting is used instead.

        Returns:
            a CollectionInsertManyResult object.

        Raises:
            CollectionInsertManyException: some of the insertions failed. The
                `partial_result` attribute of the exception lists the IDs of the
                documents that were inserted nevertheless.

        Examples:
            >>> my_coll.count_documents({}, upper_bound=10)
            0
            >>> my_coll.insert_many(
            ...     [{"a": 10}, {"a": 5}, {"b": [True, False, False]}],
            ...     ordered=True,
            ... )
            CollectionInsertManyResult(raw_results=..., inserted_ids=['184bb06f-...', '...', '...'])
            >>> my_coll.insert_many(
            ...     [{"seq": i} for i in range(50)],
            ...     concurrency=5,
            ... )
            CollectionInsertManyResult(raw_results=..., inserted_ids=[... ...])

        Note:
            Unordered insertions are executed with some degree of concurrency,
            so it is usually better to prefer this mode unless the order in the
            document sequence is important.

        Note:
            A failure mode for this command is related to certain faulty documents
            found among those to insert: for example, a document may have an ID
            already found on the collection, or its vector dimension may not
            match the collection setting.

            For an ordered insertion, the method will raise an exception at
            the first such faulty document -- nevertheless, all documents processed
            until then will end up being written to the database.

            For unordered insertions, if the error stems from faulty documents
            the insertion proceeds until exhausting the input documents: then,
            an exception is raised -- and all insertable documents will have been
            written to the database, including those "after" the troublesome ones.
        """

        _chunk_size, _concurrency = _insert_many_settings(
            ordered, chunk_size, concurrency
        )
        timeout_manager = self._timeouts.multipart(
            "general_method_timeout_ms", timeout_ms
        )

        def _execute_chunk(command: DataAPICommand) -> dict[str, Any]:
            logger.info(f"insertMany(chunk) on '{self.name}'")
            return self._execute(command, timeout_manager)

        _documents = list(documents)
        logger.info(f"inserting {len(_documents)} documents in '{self.name}'")
        if ordered:
            result = insert_many_ordered(
                _documents,
                chunk_size=_chunk_size,
                execute=_execute_chunk,
            )
        else:
            result = insert_many_unordered(
                _documents,
                chunk_size=_chunk_size,
                concurrency=_concurrency,
                execute=_execute_chunk,
            )
        logger.info(f"finished inserting {len(_documents)} documents in '{self.name}'")
        return result

    def find(
        self,
        filter: FilterType | None = None,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        limit: int | None = None,
        skip: int | None = None,
        batch_size: int | None = None,
        include_similarity: bool | None = None,
        include_sort_vector: bool | None = None,
        initial_page_state: str | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> FindCursor[DocumentType]:
        """
        Find documents on the collection, matching a certain provided filter.

        The method returns a FindCursor that can then be iterated over. Depending
        on the method call pattern, the iteration over all documents can reflect
        collection mutations occurred since the `find` method was called, or not.
        No API request is made until the cursor is actually used.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax. Examples are:
                    {}
                    {"name": "John"}
                    {"price": {"$lt": 100}}
                    {"$and": [{"name": "John"}, {"price": {"$lt": 100}}]}
                See the Data API documentation for the full set of operators.
            projection: it controls which parts of the document are returned.
                It can be an allow-list: `{"f1": True, "f2": True}`,
                or a deny-list: `{"fx": False, "fy": False}`, but not a mixture
                (except for the `_id` and other special fields, which can be
                associated to both True or False independently of the rest
                of the specification).
            sort: with this dictionary parameter one can control the order
                the documents are returned. See the Note about sorting.
            limit: a maximum amount of documents to return. A zero or None
                limit means no limit.
            skip: with this integer parameter, what would be the first `skip`
                documents returned by the query are discarded, and the results
                start from the (skip+1)-th document.
                This parameter can be used only in conjunction with an explicit
                `sort` criterion of the ascending/descending type.
            batch_size: the maximum number of documents requested with each
                page of results.
            include_similarity: a boolean to request the numeric value of the
                similarity to be returned as an added "$similarity" key in each
                returned document. It can be used meaningfully only in a vector
                search (see `sort`).
            include_sort_vector: a boolean to request the query vector of
                a vector search. If set to True (and the search is a vector
                search), the cursor's `get_sort_vector` method returns it.
            initial_page_state: a page state, as read from the `next_page_state`
                property of an earlier cursor with the same query settings,
                to resume browsing the results from where that cursor was.
            timeout_ms: a timeout, in milliseconds, for each single one
                of the underlying HTTP requests used to fetch documents as the
                cursor is iterated over. The cursor methods that consume it
                as a whole (`to_list`, `for_each`, `distinct`) use this same
                value, unless they are given their own `timeout_ms`, as the
                overall budget for all of their page requests together.

        Returns:
            a FindCursor object, that can be iterated over (and manipulated
            in several ways).

        Examples:
            >>> my_coll.insert_many([{"seq": i} for i in range(5)])
            CollectionInsertManyResult(...)
            >>> cursor = my_coll.find(
            ...     {"seq": {"$gt": 1}},
            ...     projection={"_id": False},
            ...     limit=2,
            ... )
            >>> for document in cursor:
            ...     print(document)
            ...
            {'seq': 2}
            {'seq': 3}
            >>> my_coll.find({}, limit=3).map(lambda doc: doc["seq"]).to_list()
            [0, 1, 2]

        Note:
            When not specifying sorting criteria at all (by vector or otherwise),
            the cursor can scroll through an arbitrary number of documents as
            the Data API and the client periodically exchange new chunks (pages)
            of documents. It should be noted that the behavior of the cursor
            in the case documents have been added/removed after the `find`
            was started depends on database internals and it is not guaranteed,
            nor excluded, that such "real-time" changes in the data would be
            picked up by the cursor.
        """

        return FindCursor(
            collection=self,
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
        )

    def find_one(
        self,
        filter: FilterType | None = None,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        include_similarity: bool | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> DocumentType | None:
        """
        Run a search, returning the first document in the collection that matches
        provided filters, if any is found.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.
            projection: it controls which parts of the document are returned.
                See `find` for details.
            sort: with this dictionary parameter one can control the order
                the documents are returned.
            include_similarity: a boolean to request the numeric value of the
                similarity to be returned as an added "$similarity" key in the
                returned document (vector searches only).
            timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.

        Returns:
            a dictionary expressing the required document, otherwise None.

        Example:
            >>> my_coll.insert_many([{"x": 1}, {"x": 2}])
            CollectionInsertManyResult(...)
            >>> my_coll.find_one({"x": 1}, projection={"_id": False})
            {'x': 1}
            >>> my_coll.find_one({"x": 1000}) is None
            True
        """

        options = (
            {"includeSimilarity": include_similarity}
            if include_similarity is not None
            else {}
        )
        logger.info(f"findOne on '{self.name}'")
        response = self._execute(
            FindOneCommand(
                filter=filter or {},
                projection=normalize_optional_projection(projection),
                sort=sort or None,
                options=options,
            ),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished findOne on '{self.name}'")
        if "document" not in (response.get("data") or {}):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from findOne API command.",
                raw_response=response,
            )
        return response["data"]["document"]  # type: ignore[no-any-return]

    def distinct(
        self,
        key: str,
        *,
        filter: FilterType | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> list[Any]:
        """
        Return a list of the unique values of `key` across the documents
        in the collection that match the provided filter.

        Args:
            key: the name of the field whose value is inspected across documents.
                Keys can use dot-notation to descend to deeper document levels.
                Example of acceptable `key` values:
                    "field"
                    "field.subfield"
                    "field.3"
                    "field.3.subfield"
                If lists are encountered and no numeric index is specified,
                all items in the list are visited.
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.
            timeout_ms: a timeout, in milliseconds, for the whole requested
                operation (which may involve multiple API requests).

        Returns:
            a list of all different values for `key` found across the documents
            that match the filter, in the order they are first found.

        Example:
            >>> my_coll.insert_many(
            ...     [{"tags": ["a", "b"]}, {"tags": ["b"]}, {"tags": ["a"]}]
            ... )
            CollectionInsertManyResult(...)
            >>> my_coll.distinct("tags")
            ['a', 'b']

        Note:
            It must be kept in mind that `distinct` is a client-side operation,
            which effectively browses all required documents using the logic
            of the `find` method and collects the unique values found for `key`.
            As such, there may be performance, latency and ultimately
            billing implications if the amount of matching documents is large.
        """

        logger.info(f"running distinct() on '{self.name}'")
        values = self.find(filter).distinct(key, timeout_ms=timeout_ms)
        logger.info(f"finished running distinct() on '{self.name}'")
        return values

    def count_documents(
        self,
        filter: FilterType,
        *,
        upper_bound: int,
        timeout_ms: TimeoutOverride = None,
    ) -> int:
        """
        Count the documents in the collection matching the specified filter.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.
            upper_bound: a required ceiling on the result of the count operation.
                If the actual number of documents exceeds this value,
                an exception will be raised.
                Furthermore, if the actual number of documents exceeds the maximum
                count that the Data API can reach (regardless of upper_bound),
                an exception will be raised.
            timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.

        Returns:
            the exact count of matching documents.

        Example:
            >>> my_coll.insert_many([{"seq": i} for i in range(20)])
            CollectionInsertManyResult(...)
            >>> my_coll.count_documents({}, upper_bound=100)
            20
            >>> my_coll.count_documents({}, upper_bound=10)
            Traceback (most recent call last):
                ... ...
            astra_dataapi.exceptions.TooManyDocumentsToCountException
        """

        logger.info(f"countDocuments on '{self.name}'")
        response = self._execute(
            CountDocumentsCommand(filter=filter),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished countDocuments on '{self.name}'")
        return _parse_count(response, upper_bound)

    def update_many(
        self,
        filter: FilterType,
        update: dict[str, Any],
        *,
        upsert: bool = False,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionUpdateResult:
        """
        Apply an update operation to all documents matching a condition,
        optionally inserting one documents in absence of matches.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.
            update: the update prescription to apply to the documents, expressed
                as a dictionary as per Data API syntax. Examples are:
                    {"$set": {"field": "value}}
                    {"$inc": {"counter": 10}}
                    {"$unset": {"field": ""}}
            upsert: this parameter controls the behavior in absence of matches.
                If True, a single new document (resulting from applying `update`
                to an empty document) is inserted if no matches are found on
                the collection. If False, the operation silently does nothing
                in case of no matches.
            timeout_ms: a timeout, in milliseconds, for the whole
                requested operation (which may involve multiple API requests).

        Returns:
            a CollectionUpdateResult object summarizing the outcome of
            the update operation.

        Raises:
            CollectionUpdateManyException: one of the requests failed. The
                exception carries the outcome of the requests that succeeded.

        Example:
            >>> my_coll.insert_many([{"c": "red"}, {"c": "green"}, {"c": "blue"}])
            CollectionInsertManyResult(...)
            >>> my_coll.update_many({"c": {"$ne": "green"}}, {"$set": {"nongreen": True}})
            CollectionUpdateResult(raw_results=..., update_info={'n': 2, 'updatedExisting': True, 'ok': 1.0, 'nModified': 2})
        """

        timeout_manager = self._timeouts.multipart(
            "general_method_timeout_ms", timeout_ms
        )
        um_responses: list[dict[str, Any]] = []
        um_statuses: list[dict[str, Any]] = []
        page_state: str | None = None
        logger.info(f"starting update_many on '{self.name}'")
        while True:
            options: dict[str, Any] = {"upsert": upsert}
            if page_state is not None:
                options["pageState"] = page_state
            logger.info(f"updateMany on '{self.name}'")
            try:
                response = self._execute(
                    UpdateManyCommand(filter=filter, update=update, options=options),
                    timeout_manager,
                )
            except DataAPIResponseException as exc:
                raise CollectionUpdateManyException(
                    partial_result=CollectionUpdateResult(
                        raw_results=um_responses,
                        update_info=_prepare_update_info(
                            um_statuses + [exc.raw_response.get("status") or {}]
                        ),
                    ),
                    cause=exc,
                ) from exc
            logger.info(f"finished updateMany on '{self.name}'")
            if "status" not in response:
                raise UnexpectedDataAPIResponseException(
                    text="Faulty response from update_many API command.",
                    raw_response=response,
                )
            um_responses.append(response)
            um_statuses.append(response["status"])
            page_state = response["status"].get("nextPageState")
            if page_state is None:
                break
        logger.info(f"finished update_many on '{self.name}'")
        return CollectionUpdateResult(
            raw_results=um_responses,
            update_info=_prepare_update_info(um_statuses),
        )

    def delete_many(
        self,
        filter: FilterType,
        *,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionDeleteResult:
        """
        Delete all documents matching a provided filter.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.
                Passing an empty filter, `{}`, completely erases all contents
                of the collection.
            timeout_ms: a timeout, in milliseconds, for the whole
                requested operation (which may involve multiple API requests).

        Returns:
            a CollectionDeleteResult object summarizing the outcome of the
            delete operation.

        Raises:
            CollectionDeleteManyException: one of the requests failed. The
                exception carries the count of documents deleted until then.

        Example:
            >>> my_coll.insert_many([{"seq": 1}, {"seq": 0}, {"seq": 2}])
            CollectionInsertManyResult(...)
            >>> my_coll.delete_many({"seq": {"$lte": 1}})
            CollectionDeleteResult(raw_results=..., deleted_count=2)
            >>> my_coll.distinct("seq")
            [2]

        Note:
            This operation is in general not atomic. Depending on the amount
            of matching documents, it can keep running (in a blocking way)
            for a macroscopic time. In that case, new documents that are
            meanwhile inserted (e.g. from another process/application) will be
            deleted during the execution of this method call until the
            collection is devoid of matches.
        """

        timeout_manager = self._timeouts.multipart(
            "general_method_timeout_ms", timeout_ms
        )
        dm_responses: list[dict[str, Any]] = []
        deleted_count = 0
        must_proceed = True
        logger.info(f"starting delete_many on '{self.name}'")
        while must_proceed:
            logger.info(f"deleteMany on '{self.name}'")
            try:
                response = self._execute(
                    DeleteManyCommand(filter=filter), timeout_manager
                )
            except DataAPIResponseException as exc:
                failed_status = exc.raw_response.get("status") or {}
                raise CollectionDeleteManyException(
                    partial_result=CollectionDeleteResult(
                        deleted_count=deleted_count
                        + (failed_status.get("deletedCount") or 0),
                        raw_results=dm_responses,
                    ),
                    cause=exc,
                ) from exc
            logger.info(f"finished deleteMany on '{self.name}'")
            this_dc = (response.get("status") or {}).get("deletedCount")
            if this_dc is None:
                raise UnexpectedDataAPIResponseException(
                    text="Faulty response from delete_many API command.",
                    raw_response=response,
                )
            dm_responses.append(response)
            deleted_count += this_dc
            must_proceed = response["status"].get("moreData", False)
        logger.info(f"finished delete_many on '{self.name}'")
        return CollectionDeleteResult(
            deleted_count=deleted_count,
            raw_results=dm_responses,
        )

    def update_one(
        self,
        filter: FilterType,
        update: dict[str, Any],
        *,
        sort: SortType | None = None,
        upsert: bool = False,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionUpdateResult:
        """
        Update a single document on the collection as requested.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.
            update: the update prescription to apply to the document, expressed
                as a dictionary as per Data API syntax, such as
                `{"$set": {"field": "value"}}` or `{"$inc": {"counter": 10}}`.
            sort: with this dictionary parameter one can control the sorting
                order of the documents matching the filter, effectively
                determining what document will come first and hence be the
                updated one.
            upsert: if True, a new document (resulting from applying `update`
                to an empty document) is inserted if no matches are found.
                If False (default), the operation silently does nothing
                in case of no matches.
            timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.

        Returns:
            a CollectionUpdateResult object summarizing the outcome of
            the update operation.

        Example:
            >>> my_coll.insert_one({"Marco": "Polo"})
            CollectionInsertOneResult(...)
            >>> my_coll.update_one({"Marco": {"$exists": True}}, {"$inc": {"rank": 3}})
            CollectionUpdateResult(raw_results=..., update_info={'n': 1, 'updatedExisting': True, 'ok': 1.0, 'nModified': 1})
            >>> my_coll.update_one({"Mirko": "Nemo"}, {"$inc": {"rank": 3}}, upsert=True)
            CollectionUpdateResult(raw_results=..., update_info={'n': 1, 'updatedExisting': False, 'ok': 1.0, 'nModified': 0, 'upserted': '2a45ff60-...'})
        """

        logger.info(f"updateOne on '{self.name}'")
        response = self._execute(
            UpdateOneCommand(
                filter=filter,
                update=update,
                sort=sort or None,
                options={"upsert": upsert},
            ),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished updateOne on '{self.name}'")
        return _parse_update_one(response)

    def find_one_and_update(
        self,
        filter: FilterType,
        update: dict[str, Any],
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        upsert: bool = False,
        return_document: str = ReturnDocument.BEFORE,
        timeout_ms: TimeoutOverride = None,
    ) -> DocumentType | None:
        """
        Find a document on the collection and update it as requested,
        optionally inserting a new one if no match is found.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.
            update: the update prescription to apply to the document.
                See `update_one` for details.
            projection: it controls which parts of the returned document
                are included. See `find` for details.
            sort: with this dictionary parameter one can control the sorting
                order of the documents matching the filter, effectively
                determining what document will come first and hence be the
                updated one.
            upsert: if True, a new document (resulting from applying `update`
                to an empty document) is inserted if no matches are found.
            return_document: a flag controlling what document is returned:
                if set to `ReturnDocument.BEFORE`, or the string "before",
                the document found on database is returned; if set to
                `ReturnDocument.AFTER`, or the string "after", the new
                document is returned. The default is "before".
            timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.

        Returns:
            A document (or a projection thereof, as required), either the one
            before the update or the one after that. If no matches are found
            and no insertion took place, None is returned.
            Note that an upsert with `return_document` set to "before"
            also yields None.

        Example:
            >>> my_coll.insert_one({"Marco": "Polo"})
            CollectionInsertOneResult(...)
            >>> my_coll.find_one_and_update(
            ...     {"Marco": {"$exists": True}},
            ...     {"$set": {"title": "Mr."}},
            ...     projection={"_id": False},
            ...     return_document=ReturnDocument.AFTER,
            ... )
            {'Marco': 'Polo', 'title': 'Mr.'}
        """

        logger.info(f"findOneAndUpdate on '{self.name}'")
        response = self._execute(
            FindOneAndUpdateCommand(
                filter=filter,
                update=update,
                projection=normalize_optional_projection(projection),
                sort=sort or None,
                options={"returnDocument": return_document, "upsert": upsert},
            ),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished findOneAndUpdate on '{self.name}'")
        return _parse_found_document(response, "find_one_and_update")

    def replace_one(
        self,
        filter: FilterType,
        replacement: DocumentType,
        *,
        sort: SortType | None = None,
        upsert: bool = False,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionUpdateResult:
        """
        Replace a single document on the collection with a new one,
        optionally inserting a new one if no match is found.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.
            replacement: the new document to write into the collection.
            sort: with this dictionary parameter one can control the sorting
                order of the documents matching the filter, effectively
                determining what document will come first and hence be the
                replaced one.
            upsert: if True, `replacement` is inserted as a new document
                if no matches are found on the collection.
            timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.

        Returns:
            a CollectionUpdateResult object summarizing the outcome of
            the replace operation.

        Example:
            >>> my_coll.insert_one({"Marco": "Polo"})
            CollectionInsertOneResult(...)
            >>> my_coll.replace_one({"Marco": {"$exists": True}}, {"Buda": "Pest"})
            CollectionUpdateResult(raw_results=..., update_info={'n': 1, 'updatedExisting': True, 'ok': 1.0, 'nModified': 1})
        """

        logger.info(f"findOneAndReplace on '{self.name}'")
        response = self._execute(
            FindOneAndReplaceCommand(
                filter=filter,
                replacement=replacement,
                sort=sort or None,
                options={"upsert": upsert},
            ),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished findOneAndReplace on '{self.name}'")
        return _parse_replace_one(response)

    def find_one_and_replace(
        self,
        filter: FilterType,
        replacement: DocumentType,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        upsert: bool = False,
        return_document: str = ReturnDocument.BEFORE,
        timeout_ms: TimeoutOverride = None,
    ) -> DocumentType | None:
        """
        Find a document on the collection and replace it entirely with a new one,
        optionally inserting a new one if no match is found.
        The parameters are as for `find_one_and_update`, with `replacement`,
        the new document to write into the collection, in place of `update`.

        Returns:
            A document (or a projection thereof, as required), either the one
            before the replace operation or the one after that.
            If no matches are found and no insertion took place, None is returned.

        Example:
            >>> my_coll.insert_one({"_id": "rule1", "text": "all animals are equal"})
            CollectionInsertOneResult(...)
            >>> my_coll.find_one_and_replace(
            ...     {"_id": "rule1"},
            ...     {"text": "some animals are more equal!"},
            ... )
            {'_id': 'rule1', 'text': 'all animals are equal'}
        """

        logger.info(f"findOneAndReplace on '{self.name}'")
        response = self._execute(
            FindOneAndReplaceCommand(
                filter=filter,
                replacement=replacement,
                projection=normalize_optional_projection(projection),
                sort=sort or None,
                options={"returnDocument": return_document, "upsert": upsert},
            ),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished findOneAndReplace on '{self.name}'")
        return _parse_found_document(response, "find_one_and_replace")

    def delete_one(
        self,
        filter: FilterType,
        *,
        sort: SortType | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionDeleteResult:
        """
        Delete one document matching a provided filter.
        This method never deletes more than a single document, regardless
        of the number of matches to the provided filters.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.
            sort: with this dictionary parameter one can control the sorting
                order of the documents matching the filter, effectively
                determining what document will come first and hence be the
                deleted one.
            timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.

        Returns:
            a CollectionDeleteResult object summarizing the outcome of the
            delete operation.

        Example:
            >>> my_coll.insert_many([{"seq": 1}, {"seq": 0}, {"seq": 2}])
            CollectionInsertManyResult(...)
            >>> my_coll.delete_one({"seq": 1})
            CollectionDeleteResult(raw_results=..., deleted_count=1)
            >>> my_coll.delete_one({"seq": 99})
            CollectionDeleteResult(raw_results=..., deleted_count=0)
        """

        logger.info(f"deleteOne on '{self.name}'")
        response = self._execute(
            DeleteOneCommand(filter=filter, sort=sort or None),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished deleteOne on '{self.name}'")
        return _parse_delete_one(response)

    def find_one_and_delete(
        self,
        filter: FilterType,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> DocumentType | None:
        """
        Find a document in the collection and delete it. The deleted document,
        however, is the return value of the method.

        Args:
            filter: a predicate expressed as a dictionary according to the
                Data API filter syntax.
            projection: it controls which parts of the returned document
                are included. See `find` for details.
            sort: with this dictionary parameter one can control the sorting
                order of the documents matching the filter, effectively
                determining what document will come first and hence be the
                deleted one.
            timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.

        Returns:
            Either the document (or a projection thereof, as requested), or None
            if no matches were found in the first place.

        Example:
            >>> my_coll.insert_many([{"species": "swan"}, {"species": "frog"}])
            CollectionInsertManyResult(...)
            >>> my_coll.find_one_and_delete(
            ...     {"species": {"$ne": "frog"}},
            ...     projection=["species"],
            ... )
            {'_id': '5997fb48-...', 'species': 'swan'}
        """

        logger.info(f"findOneAndDelete on '{self.name}'")
        response = self._execute(
            FindOneAndDeleteCommand(
                filter=filter,
                projection=normalize_optional_projection(projection),
                sort=sort or None,
            ),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished findOneAndDelete on '{self.name}'")
        return _parse_find_one_and_delete(response)

    def estimated_document_count(self, *, timeout_ms: TimeoutOverride = None) -> int:
        """
        Query the API server for an estimate of the document count in the collection.

        Contrary to `count_documents`, this method has no filtering parameters
        and no upper bound.

        Args:
            timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.

        Returns:
            a server-provided estimate count of the documents in the collection.

        Example:
            >>> my_coll.estimated_document_count()
            35700
        """

        logger.info(f"estimatedDocumentCount on '{self.name}'")
        response = self._execute(
            EstimatedDocumentCountCommand(),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished estimatedDocumentCount on '{self.name}'")
        return _parse_estimated_count(response)

    def options(self, *, timeout_ms: TimeoutOverride = None) -> dict[str, Any]:
        """
        Get the collection options, i.e. its configuration as read from the
        database, as the "options" object found in the collection listing.

        Args:
            timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, the database's
                collection admin timeout applies.

        Returns:
            a dictionary with the collection options (e.g. vector settings),
            empty for a collection created with no options.

        Raises:
            CollectionNotFoundException: the collection is not found
                in its keyspace.

        Example:
            >>> my_coll.options()
            {'vector': {'dimension': 3, 'metric': 'cosine'}}
        """

        command = FindCollectionsCommand(explain=True)
        logger.info(f"getting collections in search of '{self.name}'")
        response = self._commander.execute_command(
            command,
            timeout_manager=self._timeouts.single(
                "collection_admin_timeout_ms", timeout_ms
            ),
            keyspace=self.keyspace,
        )
        logger.info(f"finished getting collections in search of '{self.name}'")
        return _parse_collection_options(
            response,
            command=command,
            collection_name=self.name,
            keyspace=self.keyspace,
        )

    def drop(self, *, timeout_ms: TimeoutOverride = None) -> None:
        """
        Drop the collection, i.e. delete it from the database along with
        all the documents it contains.

        Args:
            timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, the database's
                collection admin timeout applies.

        Note:
            Once the method succeeds, methods on this object can still be invoked:
            however, this hardly makes sense as the underlying actual collection
            is no more.
        """

        logger.info(f"dropping collection '{self.name}' (self)")
        self.database.drop_collection(
            self.name, keyspace=self.keyspace, timeout_ms=timeout_ms
        )
        logger.info(f"finished dropping collection '{self.name}' (self)")


class AsyncCollection:
    """
    A Data API collection, the object to interact with the Data API for
    schemaless documents, for use in an asyncio context.

    This class is not meant for direct instantiation by the user, rather
    it is obtained by invoking methods such as `get_collection`
    of AsyncDatabase. All methods issuing API requests are coroutines,
    except `find`, which returns an AsyncFindCursor right away.

    Args:
        database: an AsyncDatabase object, instantiated earlier.
        name: the collection name.
        keyspace: this is the keyspace to which the collection belongs.
            If nothing is specified, the database's working keyspace is used.
        timeout_options: a partial set of timeouts overriding the database's ones.
        serdes_options: serialization options overriding the database's ones.
        logging: a logging configuration for the events of this collection,
            layered on top of the database's one.

    Example:
        >>> async_database = client.get_async_database(
        ...     "https://01234567-....apps.astra.datastax.com",
        ...     token="AstraCS:..."
        ... )
        >>> my_async_collection = async_database.get_collection("my_collection")
    """

    def __init__(
        self,
        *,
        database: AsyncDatabase,
        name: str,
        keyspace: str | None = None,
        timeout_options: TimeoutOptions | None = None,
        serdes_options: SerdesOptions | None = None,
        logging: LoggingConfig = None,
    ) -> None:
        self._database = database
        self._name = name
        self._keyspace = keyspace if keyspace is not None else database.keyspace
        self._timeouts = Timeouts(
            to_dataapi_timeout_exception,
            database._timeouts.base_timeouts.with_override(timeout_options),
        )
        self._serdes_options: FullSerdesOptions = (
            database._serdes_options.with_override(serdes_options)
        )
        self._event_logger: EventLogger = database._event_logger.spawn(logging)
        self._commander: DataAPICommander = database._make_commander(
            event_logger=self._event_logger,
            serdes_options=self._serdes_options,
        )

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(name="{self.name}", '
            f'keyspace="{self.keyspace}", '
            f'database.api_endpoint="{self.database.api_endpoint}")'
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AsyncCollection):
            return all(
                [
                    self._name == other._name,
                    self._keyspace == other._keyspace,
                    self._database == other._database,
                ]
            )
        else:
            return False

    async def __aenter__(self) -> AsyncCollection:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self._commander.__aexit__(exc_type, exc_value, traceback)

    @property
    def database(self) -> AsyncDatabase:
        """The AsyncDatabase this collection belongs to."""
        return self._database

    @property
    def keyspace(self) -> str:
        """The keyspace this collection is in."""
        return self._keyspace

    @property
    def name(self) -> str:
        """The name of this collection."""
        return self._name

    @property
    def full_name(self) -> str:
        """
        The fully-qualified collection name within the database,
        in the form "keyspace.collection_name".
        """

        return f"{self.keyspace}.{self.name}"

    @property
    def emitter(self) -> HierarchicalEmitter:
        """
        The event emitter of this collection. Events emitted here bubble
        up to the emitter of the database, then to that of the client.
        """

        return self._event_logger.emitter

    async def _execute(
        self, command: DataAPICommand, timeout_manager: TimeoutManager
    ) -> dict[str, Any]:
        return await self._commander.async_execute_command(
            command,
            timeout_manager=timeout_manager,
            keyspace=self.keyspace,
            collection=self.name,
        )

    async def insert_one(
        self,
        document: DocumentType,
        *,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionInsertOneResult:
        """
        Insert a single document in the collection in an atomic operation.
        See `Collection.insert_one` for details.

        Example:
            >>> asyncio.run(my_async_coll.insert_one({"name": "Smith"}))
            CollectionInsertOneResult(raw_results=..., inserted_id='ed4587a4-...')
        """

        logger.info(f"insertOne on '{self.name}'")
        response = await self._execute(
            InsertOneCommand(document=document),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished insertOne on '{self.name}'")
        return _parse_insert_one(response)

    async def insert_many(
        self,
        documents: Iterable[DocumentType],
        *,
        ordered: bool = False,
        chunk_size: int | None = None,
        concurrency: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionInsertManyResult:
        """
        Insert a list of documents into the collection.
        This is not an atomic operation. See `Collection.insert_many` for details.

        Unordered insertions run up to `concurrency` requests at a time
        on the event loop.

        Example:
            >>> asyncio.run(my_async_coll.insert_many(
            ...     [{"seq": i} for i in range(50)],
            ...     concurrency=5,
            ... ))
            CollectionInsertManyResult(raw_results=..., inserted_ids=[... ...])
        """

        _chunk_size, _concurrency = _insert_many_settings(
            ordered, chunk_size, concurrency
        )
        timeout_manager = self._timeouts.multipart(
            "general_method_timeout_ms", timeout_ms
        )

        async def _execute_chunk(command: DataAPICommand) -> dict[str, Any]:
            logger.info(f"insertMany(chunk) on '{self.name}'")
            return await self._execute(command, timeout_manager)

        _documents = list(documents)
        logger.info(f"inserting {len(_documents)} documents in '{self.name}'")
        if ordered:
            result = await async_insert_many_ordered(
                _documents,
                chunk_size=_chunk_size,
                execute=_execute_chunk,
            )
        else:
            result = await async_insert_many_unordered(
                _documents,
                chunk_size=_chunk_size,
                concurrency=_concurrency,
                execute=_execute_chunk,
            )
        logger.info(f"finished inserting {len(_documents)} documents in '{self.name}'")
        return result

    def find(
        self,
        filter: FilterType | None = None,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        limit: int | None = None,
        skip: int | None = None,
        batch_size: int | None = None,
        include_similarity: bool | None = None,
        include_sort_vector: bool | None = None,
        initial_page_state: str | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> AsyncFindCursor[DocumentType]:
        """
        Find documents on the collection, matching a certain provided filter.
        See `Collection.find` for the parameters. As there, `timeout_ms`
        limits each page request and is also the overall budget for
        `to_list`, `for_each` and `distinct` on the returned cursor.

        Returns:
            an AsyncFindCursor object, to be consumed with `async for`
            or with its coroutine methods (e.g. `to_list`).

        Example:
            >>> async def print_seqs(acol: AsyncCollection) -> None:
            ...     async for document in acol.find({}, limit=2):
            ...         print(document["seq"])
            ...
            >>> asyncio.run(print_seqs(my_async_coll))
            0
            1
        """

        return AsyncFindCursor(
            collection=self,
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
        )

    async def find_one(
        self,
        filter: FilterType | None = None,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        include_similarity: bool | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> DocumentType | None:
        """
        Run a search, returning the first document in the collection that matches
        provided filters, if any is found. See `Collection.find_one`.
        """

        options = (
            {"includeSimilarity": include_similarity}
            if include_similarity is not None
            else {}
        )
        logger.info(f"findOne on '{self.name}'")
        response = await self._execute(
            FindOneCommand(
                filter=filter or {},
                projection=normalize_optional_projection(projection),
                sort=sort or None,
                options=options,
            ),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished findOne on '{self.name}'")
        if "document" not in (response.get("data") or {}):
            raise UnexpectedDataAPIResponseException(
                text="Faulty response from findOne API command.",
                raw_response=response,
            )
        return response["data"]["document"]  # type: ignore[no-any-return]

    async def distinct(
        self,
        key: str,
        *,
        filter: FilterType | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> list[Any]:
        """
        Return a list of the unique values of `key` across the documents
        in the collection that match the provided filter.
        See `Collection.distinct`.
        """

        logger.info(f"running distinct() on '{self.name}'")
        values = await self.find(filter).distinct(key, timeout_ms=timeout_ms)
        logger.info(f"finished running distinct() on '{self.name}'")
        return values

    async def count_documents(
        self,
        filter: FilterType,
        *,
        upper_bound: int,
        timeout_ms: TimeoutOverride = None,
    ) -> int:
        """
        Count the documents in the collection matching the specified filter.
        See `Collection.count_documents`.
        """

        logger.info(f"countDocuments on '{self.name}'")
        response = await self._execute(
            CountDocumentsCommand(filter=filter),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished countDocuments on '{self.name}'")
        return _parse_count(response, upper_bound)

    async def update_many(
        self,
        filter: FilterType,
        update: dict[str, Any],
        *,
        upsert: bool = False,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionUpdateResult:
        """
        Apply an update operation to all documents matching a condition,
        optionally inserting one documents in absence of matches.
        See `Collection.update_many`.
        """

        timeout_manager = self._timeouts.multipart(
            "general_method_timeout_ms", timeout_ms
        )
        um_responses: list[dict[str, Any]] = []
        um_statuses: list[dict[str, Any]] = []
        page_state: str | None = None
        logger.info(f"starting update_many on '{self.name}'")
        while True:
            options: dict[str, Any] = {"upsert": upsert}
            if page_state is not None:
                options["pageState"] = page_state
            logger.info(f"updateMany on '{self.name}'")
            try:
                response = await self._execute(
                    UpdateManyCommand(filter=filter, update=update, options=options),
                    timeout_manager,
                )
            except DataAPIResponseException as exc:
                raise CollectionUpdateManyException(
                    partial_result=CollectionUpdateResult(
                        raw_results=um_responses,
                        update_info=_prepare_update_info(
                            um_statuses + [exc.raw_response.get("status") or {}]
                        ),
                    ),
                    cause=exc,
                ) from exc
            logger.info(f"finished updateMany on '{self.name}'")
            if "status" not in response:
                raise UnexpectedDataAPIResponseException(
                    text="Faulty response from update_many API command.",
                    raw_response=response,
                )
            um_responses.append(response)
            um_statuses.append(response["status"])
            page_state = response["status"].get("nextPageState")
            if page_state is None:
                break
        logger.info(f"finished update_many on '{self.name}'")
        return CollectionUpdateResult(
            raw_results=um_responses,
            update_info=_prepare_update_info(um_statuses),
        )

    async def delete_many(
        self,
        filter: FilterType,
        *,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionDeleteResult:
        """
        Delete all documents matching a provided filter.
        See `Collection.delete_many`.
        """

        timeout_manager = self._timeouts.multipart(
            "general_method_timeout_ms", timeout_ms
        )
        dm_responses: list[dict[str, Any]] = []
        deleted_count = 0
        must_proceed = True
        logger.info(f"starting delete_many on '{self.name}'")
        while must_proceed:
            logger.info(f"deleteMany on '{self.name}'")
            try:
                response = await self._execute(
                    DeleteManyCommand(filter=filter), timeout_manager
                )
            except DataAPIResponseException as exc:
                failed_status = exc.raw_response.get("status") or {}
                raise CollectionDeleteManyException(
                    partial_result=CollectionDeleteResult(
                        deleted_count=deleted_count
                        + (failed_status.get("deletedCount") or 0),
                        raw_results=dm_responses,
                    ),
                    cause=exc,
                ) from exc
            logger.info(f"finished deleteMany on '{self.name}'")
            this_dc = (response.get("status") or {}).get("deletedCount")
            if this_dc is None:
                raise UnexpectedDataAPIResponseException(
                    text="Faulty response from delete_many API command.",
                    raw_response=response,
                )
            dm_responses.append(response)
            deleted_count += this_dc
            must_proceed = response["status"].get("moreData", False)
        logger.info(f"finished delete_many on '{self.name}'")
        return CollectionDeleteResult(
            deleted_count=deleted_count,
            raw_results=dm_responses,
        )

    async def update_one(
        self,
        filter: FilterType,
        update: dict[str, Any],
        *,
        sort: SortType | None = None,
        upsert: bool = False,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionUpdateResult:
        """
        Update a single document on the collection as requested.
        See `Collection.update_one`.
        """

        logger.info(f"updateOne on '{self.name}'")
        response = await self._execute(
            UpdateOneCommand(
                filter=filter,
                update=update,
                sort=sort or None,
                options={"upsert": upsert},
            ),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished updateOne on '{self.name}'")
        return _parse_update_one(response)

    async def find_one_and_update(
        self,
        filter: FilterType,
        update: dict[str, Any],
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        upsert: bool = False,
        return_document: str = ReturnDocument.BEFORE,
        timeout_ms: TimeoutOverride = None,
    ) -> DocumentType | None:
        """
        Find a document on the collection and update it as requested.
        See `Collection.find_one_and_update`.
        """

        logger.info(f"findOneAndUpdate on '{self.name}'")
        response = await self._execute(
            FindOneAndUpdateCommand(
                filter=filter,
                update=update,
                projection=normalize_optional_projection(projection),
                sort=sort or None,
                options={"returnDocument": return_document, "upsert": upsert},
            ),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished findOneAndUpdate on '{self.name}'")
        return _parse_found_document(response, "find_one_and_update")

    async def replace_one(
        self,
        filter: FilterType,
        replacement: DocumentType,
        *,
        sort: SortType | None = None,
        upsert: bool = False,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionUpdateResult:
        """
        Replace a single document on the collection with a new one.
        See `Collection.replace_one`.
        """

        logger.info(f"findOneAndReplace on '{self.name}'")
        response = await self._execute(
            FindOneAndReplaceCommand(
                filter=filter,
                replacement=replacement,
                sort=sort or None,
                options={"upsert": upsert},
            ),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished findOneAndReplace on '{self.name}'")
        return _parse_replace_one(response)

    async def find_one_and_replace(
        self,
        filter: FilterType,
        replacement: DocumentType,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        upsert: bool = False,
        return_document: str = ReturnDocument.BEFORE,
        timeout_ms: TimeoutOverride = None,
    ) -> DocumentType | None:
        """
        Find a document on the collection and replace it entirely with a new one.
        See `Collection.find_one_and_replace`.
        """

        logger.info(f"findOneAndReplace on '{self.name}'")
        response = await self._execute(
            FindOneAndReplaceCommand(
                filter=filter,
                replacement=replacement,
                projection=normalize_optional_projection(projection),
                sort=sort or None,
                options={"returnDocument": return_document, "upsert": upsert},
            ),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished findOneAndReplace on '{self.name}'")
        return _parse_found_document(response, "find_one_and_replace")

    async def delete_one(
        self,
        filter: FilterType,
        *,
        sort: SortType | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> CollectionDeleteResult:
        """
        Delete one document matching a provided filter.
        See `Collection.delete_one`.
        """

        logger.info(f"deleteOne on '{self.name}'")
        response = await self._execute(
            DeleteOneCommand(filter=filter, sort=sort or None),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished deleteOne on '{self.name}'")
        return _parse_delete_one(response)

    async def find_one_and_delete(
        self,
        filter: FilterType,
        *,
        projection: ProjectionType | None = None,
        sort: SortType | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> DocumentType | None:
        """
        Find a document in the collection and delete it, returning it.
        See `Collection.find_one_and_delete`.
        """

        logger.info(f"findOneAndDelete on '{self.name}'")
        response = await self._execute(
            FindOneAndDeleteCommand(
                filter=filter,
                projection=normalize_optional_projection(projection),
                sort=sort or None,
            ),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished findOneAndDelete on '{self.name}'")
        return _parse_find_one_and_delete(response)

    async def estimated_document_count(
        self, *, timeout_ms: TimeoutOverride = None
    ) -> int:
        """
        Query the API server for an estimate of the document count in the collection.
        See `Collection.estimated_document_count`.
        """

        logger.info(f"estimatedDocumentCount on '{self.name}'")
        response = await self._execute(
            EstimatedDocumentCountCommand(),
            self._timeouts.single("general_method_timeout_ms", timeout_ms),
        )
        logger.info(f"finished estimatedDocumentCount on '{self.name}'")
        return _parse_estimated_count(response)

    async def options(self, *, timeout_ms: TimeoutOverride = None) -> dict[str, Any]:
        """
        Get the collection options, i.e. its configuration as read from the
        database. See `Collection.options`.
        """

        command = FindCollectionsCommand(explain=True)
        logger.info(f"getting collections in search of '{self.name}'")
        response = await self._commander.async_execute_command(
            command,
            timeout_manager=self._timeouts.single(
                "collection_admin_timeout_ms", timeout_ms
            ),
            keyspace=self.keyspace,
        )
        logger.info(f"finished getting collections in search of '{self.name}'")
        return _parse_collection_options(
            response,
            command=command,
            collection_name=self.name,
            keyspace=self.keyspace,
        )

    async def drop(self, *, timeout_ms: TimeoutOverride = None) -> None:
        """
        Drop the collection, i.e. delete it from the database along with
        all the documents it contains. See `Collection.drop`.
        """

        logger.info(f"dropping collection '{self.name}' (self)")
        await self.database.drop_collection(
            self.name, keyspace=self.keyspace, timeout_ms=timeout_ms
        )
        logger.info(f"finished dropping collection '{self.name}' (self)")
