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
from typing import TYPE_CHECKING, Any

from astra_dataapi.admin.endpoints import (
    api_endpoint_parsing_error_message,
    parse_api_endpoint,
)
from astra_dataapi.commands import (
    CreateCollectionCommand,
    DeleteCollectionCommand,
    FindCollectionsCommand,
    RawCommand,
)
from astra_dataapi.constants import Environment
from astra_dataapi.data.collection import AsyncCollection, Collection
from astra_dataapi.events import EventLogger, HierarchicalEmitter, LoggingConfig
from astra_dataapi.exceptions import (
    UnexpectedDataAPIResponseException,
    to_dataapi_timeout_exception,
)
from astra_dataapi.settings.defaults import (
    DEFAULT_ASTRA_DB_KEYSPACE,
    DEFAULT_DATA_API_AUTH_HEADER,
    DEFAULT_DATA_API_PATH,
    DEFAULT_DATA_API_VERSION,
    EMBEDDING_HEADER_API_KEY,
)
from astra_dataapi.utils.api_commander import DataAPICommander
from astra_dataapi.utils.api_options import (
    FullSerdesOptions,
    SerdesOptions,
    TimeoutOptions,
    defaultSerdesOptions,
)
from astra_dataapi.utils.timeouts import TimeoutOverride, Timeouts

if TYPE_CHECKING:
    from astra_dataapi.admin import AstraDBDatabaseAdmin


logger = logging.getLogger(__name__)


def _normalize_create_collection_options(
    dimension: int | None,
    metric: str | None,
    indexing: dict[str, Any] | None,
    default_id_type: str | None,
    additional_options: dict[str, Any] | None,
) -> dict[str, Any]:
    """Raise errors related to invalid input, and return a ready-to-send payload."""
    if dimension is None and metric is not None:
        raise ValueError(
            "Cannot specify `metric` for non-vector collections in the "
            "create_collection method."
        )
    vector_options = {
        k: v
        for k, v in {
            "dimension": dimension,
            "metric": metric,
        }.items()
        if v is not None
    }
    full_options0 = {
        **({"indexing": indexing} if indexing else {}),
        **({"defaultId": {"type": default_id_type}} if default_id_type else {}),
        **({"vector": vector_options} if vector_options else {}),
    }
    overlap_keys = full_options0.keys() & (additional_options or {}).keys()
    if overlap_keys:
        raise ValueError(
            "Gotten forbidden key(s) in additional_options: "
            f"{','.join(sorted(overlap_keys))}."
        )
    return {
        **(additional_options or {}),
        **full_options0,
    }


class _DatabaseBase:
    """
    The state shared by the sync and async database classes: where the
    database is, how to authenticate against it and the settings (timeouts,
    serialization, event logging) inherited by the collections it spawns.
    """

    def __init__(
        self,
        *,
        api_endpoint: str,
        token: str | None = None,
        keyspace: str | None = None,
        environment: str | None = None,
        api_path: str | None = None,
        api_version: str | None = None,
        embedding_api_key: str | None = None,
        timeout_options: TimeoutOptions | None = None,
        serdes_options: SerdesOptions | None = None,
        event_logger: EventLogger | None = None,
        logging: LoggingConfig = None,
        dev_ops_url: str | None = None,
    ) -> None:
        self._environment = (environment or Environment.PROD).lower()
        if self._environment not in Environment.values:
            raise ValueError(f"Unrecognized environment '{environment}'.")
        self._api_endpoint = api_endpoint.strip("/")
        self._token = token
        self._keyspace = keyspace if keyspace is not None else DEFAULT_ASTRA_DB_KEYSPACE
        self._api_path = api_path if api_path is not None else DEFAULT_DATA_API_PATH
        self._api_version = (
            api_version if api_version is not None else DEFAULT_DATA_API_VERSION
        )
        self._embedding_api_key = embedding_api_key
        self._dev_ops_url = dev_ops_url
        self._timeouts = Timeouts(to_dataapi_timeout_exception, timeout_options)
        self._serdes_options: FullSerdesOptions = defaultSerdesOptions.with_override(
            serdes_options
        )
        self._event_logger: EventLogger = (
            event_logger or EventLogger(HierarchicalEmitter())
        ).spawn(logging)
        self._commander_headers: dict[str, str | None] = {
            DEFAULT_DATA_API_AUTH_HEADER: self._token,
            EMBEDDING_HEADER_API_KEY: self._embedding_api_key,
        }
        self._commander = self._make_commander(
            event_logger=self._event_logger,
            serdes_options=self._serdes_options,
        )

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(api_endpoint="{self.api_endpoint}", '
            f'keyspace="{self.keyspace}", environment="{self._environment}")'
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, self.__class__):
            return all(
                [
                    self._api_endpoint == other._api_endpoint,
                    self._keyspace == other._keyspace,
                    self._token == other._token,
                    self._environment == other._environment,
                    self._api_path == other._api_path,
                    self._api_version == other._api_version,
                ]
            )
        else:
            return False

    def _make_commander(
        self,
        *,
        event_logger: EventLogger,
        serdes_options: FullSerdesOptions,
    ) -> DataAPICommander:
        base_path = "/".join(
            comp
            for comp in [ncomp.strip("/") for ncomp in [self._api_path, self._api_version]]
            if comp != ""
        )
        return DataAPICommander(
            api_endpoint=self._api_endpoint,
            path=base_path,
            headers=self._commander_headers,
            event_logger=event_logger,
            serdes_options=serdes_options,
        )

    @property
    def api_endpoint(self) -> str:
        """
        The API endpoint this database targets, e.g.
        "https://<DB-ID>-<DB-REGION>.apps.astra.datastax.com".
        """

        return self._api_endpoint

    @property
    def keyspace(self) -> str:
        """
        The working keyspace of this database, used by default by
        the collections it spawns.

        Example:
            >>> my_db.keyspace
            'default_keyspace'
        """

        return self._keyspace

    @property
    def environment(self) -> str:
        return self._environment

    @property
    def id(self) -> str:
        """
        The ID of this database, extracted from the API endpoint.

        Example:
            >>> my_db.id
            '01234567-89ab-cdef-0123-456789abcdef'

        Raises:
            ValueError: the API endpoint is not that of an Astra DB database.
        """

        parsed_api_endpoint = parse_api_endpoint(self.api_endpoint)
        if parsed_api_endpoint is not None:
            return parsed_api_endpoint.database_id
        else:
            raise ValueError(api_endpoint_parsing_error_message(self.api_endpoint))

    @property
    def emitter(self) -> HierarchicalEmitter:
        """
        The event emitter of this database. Events from its collections
        bubble up here, then to the emitter of the client.
        """

        return self._event_logger.emitter

    def get_database_admin(
        self,
        *,
        token: str | None = None,
        dev_ops_url: str | None = None,
    ) -> AstraDBDatabaseAdmin:
        """
        Return an AstraDBDatabaseAdmin object corresponding to this database, for
        use in admin tasks such as managing keyspaces.

        Args:
            token: an access token with enough permission on the database to
                perform the desired tasks. If omitted, the token of this
                database is used.
            dev_ops_url: in case of custom deployments, this can be used to specify
                the URL to the DevOps API, such as "https://api.astra.datastax.com".
                Generally it can be omitted: the URL is determined from
                the environment.

        Returns:
            An AstraDBDatabaseAdmin instance targeting this database.

        Raises:
            ValueError: the database is not an Astra DB database.

        Example:
            >>> my_db_admin = my_db.get_database_admin()
            >>> if "new_keyspace" not in my_db_admin.list_keyspaces():
            ...     my_db_admin.create_keyspace("new_keyspace")
            >>> my_db_admin.list_keyspaces()
            ['default_keyspace', 'new_keyspace']
        """

        # lazy importing here to avoid circular dependency
        from astra_dataapi.admin import AstraDBDatabaseAdmin

        if self._environment not in Environment.astra_db_values:
            raise ValueError(
                "Database administration is only available for Astra DB databases."
            )
        parsed_api_endpoint = parse_api_endpoint(self.api_endpoint)
        if parsed_api_endpoint is None:
            raise ValueError(api_endpoint_parsing_error_message(self.api_endpoint))
        return AstraDBDatabaseAdmin(
            database_id=parsed_api_endpoint.database_id,
            region=parsed_api_endpoint.region,
            token=token or self._token,
            environment=self._environment,
            dev_ops_url=dev_ops_url or self._dev_ops_url,
            timeout_options=self._timeouts.base_timeouts,
            event_logger=self._event_logger,
        )


def _parse_collection_names(response: dict[str, Any]) -> list[str]:
    if "collections" not in (response.get("status") or {}):
        raise UnexpectedDataAPIResponseException(
            text="Faulty response from findCollections API command.",
            raw_response=response,
        )
    return response["status"]["collections"]  # type: ignore[no-any-return]


class Database(_DatabaseBase):
    """
    A Data API database. This is the object for doing database-level
    DML, such as creating/deleting collections, and for obtaining Collection
    objects themselves. This class has a synchronous interface.

    This class is not meant for direct instantiation by the user, rather
    it is obtained by invoking methods such as `get_database`
    of DataAPIClient, wherefrom the Database inherits its token, timeouts
    and logging configuration.

    Args:
        api_endpoint: the full "API Endpoint" string used to reach the Data API.
            Example: "https://<database_id>-<region>.apps.astra.datastax.com"
        token: an Access Token to the database. Example: "AstraCS:xyz..."
        keyspace: this is the keyspace all method calls will target, unless
            one is explicitly specified in the call. If no keyspace is supplied
            when creating a Database, the name "default_keyspace" is set.
        environment: a string representing the target Data API environment.
            It can be left unspecified for the default value of `Environment.PROD`.
        api_path: path to append to the API Endpoint. In typical usage, this
            should be left to its default of "/api/json".
        api_version: version specifier to append to the API path. In typical
            usage, this should be left to its default of "v1".
        embedding_api_key: an API key for the embedding service, sent with
            each request in the "X-Embedding-Api-Key" header.
        timeout_options: a partial set of timeouts overriding the defaults.
        serdes_options: settings for the encoding and decoding of documents.
        event_logger: the EventLogger of the spawning object (the client),
            whose emitter becomes the parent of this database's emitter.
        logging: a logging configuration for the events of this database.
        dev_ops_url: a custom URL for the DevOps API, used when spawning
            a database admin.

    Example:
        >>> from astra_dataapi import DataAPIClient
        >>> my_client = DataAPIClient("AstraCS:...")
        >>> my_db = my_client.get_database(
        ...    "https://01234567-....apps.astra.datastax.com"
        ... )
    """

    def __getitem__(self, collection_name: str) -> Collection:
        return self.get_collection(name=collection_name)

    def get_collection(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        timeout_options: TimeoutOptions | None = None,
        serdes_options: SerdesOptions | None = None,
        logging: LoggingConfig = None,
    ) -> Collection:
        """
        Spawn a `Collection` object instance representing a collection
        on this database.

        Creating a `Collection` instance does not have any effect on the
        actual state of the database: in other words, for the created
        `Collection` instance to be used meaningfully, the collection
        must exist already (for instance, it should have been created
        previously by calling the `create_collection` method).

        Args:
            name: the name of the collection.
            keyspace: the keyspace containing the collection. If no keyspace
                is specified, the general setting for this database is used.
            timeout_options: timeouts for the collection, overriding those
                of this database.
            serdes_options: serialization settings for the collection,
                overriding those of this database.
            logging: a logging configuration for the events of the collection.

        Returns:
            a `Collection` instance, representing the desired collection
                (but without any form of validation).

        Example:
            >>> my_col = my_db.get_collection("my_collection")
            >>> my_col.count_documents({}, upper_bound=100)
            41

        Note:
            The attribute and indexing syntax forms achieve the same effect
            as this method. In other words, the following are equivalent:
                my_db.get_collection("coll_name")
                my_db["coll_name"]
        """

        return Collection(
            database=self,
            name=name,
            keyspace=keyspace,
            timeout_options=timeout_options,
            serdes_options=serdes_options,
            logging=logging,
        )

    def create_collection(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        dimension: int | None = None,
        metric: str | None = None,
        indexing: dict[str, Any] | None = None,
        default_id_type: str | None = None,
        additional_options: dict[str, Any] | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> Collection:
        """
        Creates a collection on the database and return the Collection
        instance that represents it.

        This is a blocking operation: the method returns when the collection
        is ready to be used. As opposed to the `get_collection` instance,
        this method causes the collection to be actually created on DB.

        Args:
            name: the name of the collection.
            keyspace: the keyspace where the collection is to be created.
                If not specified, the general setting for this database is used.
            dimension: for vector collections, the dimension of the vectors
                (i.e. the number of their components).
            metric: the similarity metric used for vector searches.
                Allowed values are "dot_product", "euclidean" or "cosine" (default).
            indexing: optional specification of the indexing options for
                the collection, in the form of a dictionary such as
                    {"deny": [...]}
                or
                    {"allow": [...]}
            default_id_type: this sets what type of IDs the API server will
                generate when inserting documents that do not specify their
                `_id` field explicitly, e.g. "uuid" or "objectId".
            additional_options: any further set of key-value pairs that will
                be added to the "options" part of the payload when sending
                the Data API command to create a collection.
            timeout_ms: a timeout, in milliseconds, for the underlying HTTP request.
                If not passed, the collection admin timeout of this
                database applies.

        Returns:
            a (synchronous) `Collection` instance, representing the
            newly-created collection.

        Example:
            >>> new_col = my_db.create_collection("my_v_col", dimension=3)
            >>> new_col.insert_one({"name": "the_row", "$vector": [0.4, 0.5, 0.7]})
            CollectionInsertOneResult(raw_results=..., inserted_id='e22dd65e-...')
        """

        cc_options = _normalize_create_collection_options(
            dimension=dimension,
            metric=metric,
            indexing=indexing,
            default_id_type=default_id_type,
            additional_options=additional_options,
        )
        _keyspace = keyspace if keyspace is not None else self.keyspace
        logger.info(f"createCollection('{name}')")
        self._commander.execute_command(
            CreateCollectionCommand(collection_name=name, options=cc_options),
            timeout_manager=self._timeouts.single(
                "collection_admin_timeout_ms", timeout_ms
            ),
            keyspace=_keyspace,
        )
        logger.info(f"finished createCollection('{name}')")
        return self.get_collection(name, keyspace=_keyspace)

    def drop_collection(
        self,
        name_or_collection: str | Collection,
        *,
        keyspace: str | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> dict[str, Any]:
        """
        Drop a collection from the database, along with all documents therein.

        Args:
            name_or_collection: either the name of a collection or
                a `Collection` instance.
            keyspace: the keyspace of the collection, when passing a name.
                If not specified, the general setting for this database is used.
            timeout_ms: a timeout, in milliseconds, for the underlying HTTP request.

        Returns:
            a dictionary in the form {"ok": 1} if the command succeeds.

        Example:
            >>> my_db.list_collection_names()
            ['a_collection', 'my_v_col', 'another_col']
            >>> my_db.drop_collection("my_v_col")
            {'ok': 1}
            >>> my_db.list_collection_names()
            ['a_collection', 'another_col']
        """

        _keyspace: str
        _collection_name: str
        if isinstance(name_or_collection, Collection):
            _keyspace = name_or_collection.keyspace
            _collection_name = name_or_collection.name
        else:
            _keyspace = keyspace if keyspace is not None else self.keyspace
            _collection_name = name_or_collection
        logger.info(f"deleteCollection('{_collection_name}')")
        dc_response = self._commander.execute_command(
            DeleteCollectionCommand(collection_name=_collection_name),
            timeout_manager=self._timeouts.single(
                "collection_admin_timeout_ms", timeout_ms
            ),
            keyspace=_keyspace,
        )
        logger.info(f"finished deleteCollection('{_collection_name}')")
        return dc_response.get("status") or {}

    def list_collection_names(
        self,
        *,
        keyspace: str | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> list[str]:
        """
        List the names of all collections in a given keyspace of this database.

        Args:
            keyspace: the keyspace to be inspected. If not specified,
                the general setting for this database is assumed.
            timeout_ms: a timeout, in milliseconds, for the underlying HTTP request.

        Returns:
            a list of the collection names as strings, in no particular order.

        Example:
            >>> my_db.list_collection_names()
            ['a_collection', 'another_col']
        """

        logger.info("findCollections")
        fc_response = self._commander.execute_command(
            FindCollectionsCommand(),
            timeout_manager=self._timeouts.single(
                "collection_admin_timeout_ms", timeout_ms
            ),
            keyspace=keyspace if keyspace is not None else self.keyspace,
        )
        logger.info("finished findCollections")
        return _parse_collection_names(fc_response)

    def command(
        self,
        body: dict[str, Any],
        *,
        keyspace: str | None = None,
        collection_name: str | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> dict[str, Any]:
        """
        Send a POST request to the Data API for this database with
        an arbitrary, caller-provided payload.

        Args:
            body: a JSON-serializable dictionary, the payload of the request.
            keyspace: the keyspace to use. Requests always target a keyspace:
                if not specified, the general setting for this database is assumed.
            collection_name: if provided, the collection name is appended at the end
                of the endpoint. In this way, this method allows collection-level
                arbitrary POST requests as well.
            timeout_ms: a timeout, in milliseconds, for the underlying HTTP request.

        Returns:
            a dictionary with the response of the HTTP request.

        Example:
            >>> my_db.command({"findCollections": {}})
            {'status': {'collections': ['my_coll']}}
            >>> my_db.command({"countDocuments": {}}, collection_name="my_coll")
            {'status': {'count': 123}}
        """

        _cmd_desc = ",".join(sorted(body.keys()))
        logger.info(f"command={_cmd_desc} on {self.__class__.__name__}")
        response = self._commander.execute_command(
            RawCommand(payload=body),
            timeout_manager=self._timeouts.single(
                "general_method_timeout_ms", timeout_ms
            ),
            keyspace=keyspace if keyspace is not None else self.keyspace,
            collection=collection_name,
        )
        logger.info(f"finished command={_cmd_desc} on {self.__class__.__name__}")
        return response


class AsyncDatabase(_DatabaseBase):
    """
    A Data API database. This is the object for doing database-level
    DML, such as creating/deleting collections, and for obtaining Collection
    objects themselves. This class has an asynchronous interface.

    This class is not meant for direct instantiation by the user, rather
    it is obtained by invoking methods such as `get_async_database`
    of DataAPIClient. See `Database` for the constructor parameters.

    Example:
        >>> from astra_dataapi import DataAPIClient
        >>> my_client = DataAPIClient("AstraCS:...")
        >>> my_async_db = my_client.get_async_database(
        ...    "https://01234567-....apps.astra.datastax.com"
        ... )
    """

    def __getitem__(self, collection_name: str) -> AsyncCollection:
        return self.get_collection(name=collection_name)

    async def __aenter__(self) -> AsyncDatabase:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self._commander.__aexit__(exc_type, exc_value, traceback)

    def get_collection(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        timeout_options: TimeoutOptions | None = None,
        serdes_options: SerdesOptions | None = None,
        logging: LoggingConfig = None,
    ) -> AsyncCollection:
        """
        Spawn an `AsyncCollection` object instance representing a collection
        on this database. No API request is made.
        See `Database.get_collection` for the parameters.

        Example:
            >>> async def count_docs(adb: AsyncDatabase, c_name: str) -> int:
            ...    async_col = adb.get_collection(c_name)
            ...    return await async_col.count_documents({}, upper_bound=100)
            ...
            >>> asyncio.run(count_docs(my_async_db, "my_collection"))
            45
        """

        return AsyncCollection(
            database=self,
            name=name,
            keyspace=keyspace,
            timeout_options=timeout_options,
            serdes_options=serdes_options,
            logging=logging,
        )

    async def create_collection(
        self,
        name: str,
        *,
        keyspace: str | None = None,
        dimension: int | None = None,
        metric: str | None = None,
        indexing: dict[str, Any] | None = None,
        default_id_type: str | None = None,
        additional_options: dict[str, Any] | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> AsyncCollection:
        """
        Creates a collection on the database and return the AsyncCollection
        instance that represents it. See `Database.create_collection`.

        Example:
            >>> async def create_and_insert(adb: AsyncDatabase) -> None:
            ...     new_a_col = await adb.create_collection("my_v_col", dimension=3)
            ...     await new_a_col.insert_one({"name": "the_row"})
            ...
            >>> asyncio.run(create_and_insert(my_async_db))
        """

        cc_options = _normalize_create_collection_options(
            dimension=dimension,
            metric=metric,
            indexing=indexing,
            default_id_type=default_id_type,
            additional_options=additional_options,
        )
        _keyspace = keyspace if keyspace is not None else self.keyspace
        logger.info(f"createCollection('{name}')")
        await self._commander.async_execute_command(
            CreateCollectionCommand(collection_name=name, options=cc_options),
            timeout_manager=self._timeouts.single(
                "collection_admin_timeout_ms", timeout_ms
            ),
            keyspace=_keyspace,
        )
        logger.info(f"finished createCollection('{name}')")
        return self.get_collection(name, keyspace=_keyspace)

    async def drop_collection(
        self,
        name_or_collection: str | AsyncCollection,
        *,
        keyspace: str | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> dict[str, Any]:
        """
        Drop a collection from the database, along with all documents therein.
        See `Database.drop_collection`.
        """

        _keyspace: str
        _collection_name: str
        if isinstance(name_or_collection, AsyncCollection):
            _keyspace = name_or_collection.keyspace
            _collection_name = name_or_collection.name
        else:
            _keyspace = keyspace if keyspace is not None else self.keyspace
            _collection_name = name_or_collection
        logger.info(f"deleteCollection('{_collection_name}')")
        dc_response = await self._commander.async_execute_command(
            DeleteCollectionCommand(collection_name=_collection_name),
            timeout_manager=self._timeouts.single(
                "collection_admin_timeout_ms", timeout_ms
            ),
            keyspace=_keyspace,
        )
        logger.info(f"finished deleteCollection('{_collection_name}')")
        return dc_response.get("status") or {}

    async def list_collection_names(
        self,
        *,
        keyspace: str | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> list[str]:
        """
        List the names of all collections in a given keyspace of this database.
        See `Database.list_collection_names`.
        """

        logger.info("findCollections")
        fc_response = await self._commander.async_execute_command(
            FindCollectionsCommand(),
            timeout_manager=self._timeouts.single(
                "collection_admin_timeout_ms", timeout_ms
            ),
            keyspace=keyspace if keyspace is not None else self.keyspace,
        )
        logger.info("finished findCollections")
        return _parse_collection_names(fc_response)

    async def command(
        self,
        body: dict[str, Any],
        *,
        keyspace: str | None = None,
        collection_name: str | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> dict[str, Any]:
        """
        Send a POST request to the Data API for this database with
        an arbitrary, caller-provided payload. See `Database.command`.
        """

        _cmd_desc = ",".join(sorted(body.keys()))
        logger.info(f"command={_cmd_desc} on {self.__class__.__name__}")
        response = await self._commander.async_execute_command(
            RawCommand(payload=body),
            timeout_manager=self._timeouts.single(
                "general_method_timeout_ms", timeout_ms
            ),
            keyspace=keyspace if keyspace is not None else self.keyspace,
            collection=collection_name,
        )
        logger.info(f"finished command={_cmd_desc} on {self.__class__.__name__}")
        return response
