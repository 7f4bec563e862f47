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
from typing import TYPE_CHECKING, Any

from astra_dataapi.admin.endpoints import (
    api_endpoint_parsing_error_message,
    parse_api_endpoint,
)
from astra_dataapi.constants import Environment
from astra_dataapi.events import (
    EventLogger,
    HierarchicalEmitter,
    LoggingConfig,
    parse_logging_config,
)
from astra_dataapi.utils.api_options import (
    SerdesOptions,
    TimeoutOptions,
    defaultTimeoutOptions,
)

if TYPE_CHECKING:
    from astra_dataapi.admin import AstraDBAdmin
    from astra_dataapi.data.database import AsyncDatabase, Database


logger = logging.getLogger(__name__)


class DataAPIClient:
    """
    A client for using the Data API. This is the entry point, sitting
    at the top of the conceptual "client -> database -> collection" hierarchy
    and of the "client -> admin -> database admin" chain as well.

    A client is created first, optionally passing it a suitable Access Token.
    Starting from the client, then:
        - databases (Database and AsyncDatabase) are created for working with data
        - AstraDBAdmin objects can be created for admin-level work

    The client owns the root of the emitter hierarchy: listeners registered
    on `client.emitter` receive the events of every object spawned from it,
    unless the propagation of an event is stopped along the way.

    Args:
        token: an Access Token to the database. Example: `"AstraCS:xyz..."`.
            Note that generally one should pass the token later, when spawning
            Database instances from the client (with the `get_database`) method
            of DataAPIClient; the reason is that the typical tokens are scoped
            to a single database. However, when performing administrative tasks
            at the AstraDBAdmin level (such as creating databases), an org-wide
            token is required -- then it makes sense to provide it when creating
            the DataAPIClient instance.
        environment: a string representing the target Data API environment.
            It can be left unspecified for the default value of `Environment.PROD`;
            other values include `Environment.DEV`, `Environment.TEST`
            and `Environment.OTHER`.
        timeout_options: a partial set of timeouts overriding the defaults,
            inherited by all objects spawned from this client.
        logging: a logging configuration for the events, inherited by all
            objects spawned from this client. It can be "all", an event name,
            a list of event names or a list of layers such as
            `{"events": "all", "emits": ["event", "stderr"]}`.
        dev_ops_url: a custom URL for the DevOps API. Generally it can be
            omitted, as it is determined by the environment.

    Example:
        >>> from astra_dataapi import DataAPIClient
        >>> my_client = DataAPIClient("AstraCS:...")
        >>> my_db0 = my_client.get_database(
        ...     "https://01234567-....apps.astra.datastax.com"
        ... )
        >>> my_coll = my_db0.create_collection("movies", dimension=2)
        >>> my_coll.insert_one({"title": "The Title", "$vector": [0.1, 0.3]})
        >>> my_admin = my_client.get_admin()
        >>> database_list = my_admin.list_databases()
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        environment: str | None = None,
        timeout_options: TimeoutOptions | None = None,
        logging: LoggingConfig = None,
        dev_ops_url: str | None = None,
    ) -> None:
        self._environment = (environment or Environment.PROD).lower()
        if self._environment not in Environment.values:
            raise ValueError(f"Unsupported `environment` value: '{environment}'.")
        self._token = token
        self._timeout_options = defaultTimeoutOptions.with_override(timeout_options)
        self._dev_ops_url = dev_ops_url
        self._event_logger = EventLogger(
            HierarchicalEmitter(), config=parse_logging_config(logging)
        )

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}(environment="{self._environment}")'

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, DataAPIClient):
            return all(
                [
                    self._token == other._token,
                    self._environment == other._environment,
                    self._dev_ops_url == other._dev_ops_url,
                ]
            )
        else:
            return False

    def __getitem__(self, api_endpoint: str) -> Database:
        return self.get_database(api_endpoint)

    @property
    def emitter(self) -> HierarchicalEmitter:
        """
        The root event emitter. Events from all databases, collections and
        admin objects spawned by this client bubble up here.

        Example:
            >>> unsubscribe = my_client.emitter.on(
            ...     "commandStarted", lambda event: print(event.format())
            ... )
        """

        return self._event_logger.emitter

    def _check_api_endpoint(self, api_endpoint: str) -> None:
        if self._environment in Environment.astra_db_values:
            parsed_api_endpoint = parse_api_endpoint(api_endpoint)
            if parsed_api_endpoint is None:
                raise ValueError(api_endpoint_parsing_error_message(api_endpoint))
            if parsed_api_endpoint.environment != self._environment:
                raise ValueError(
                    "Environment mismatch between client and provided "
                    "API endpoint. You can try adding "
                    f'`environment="{parsed_api_endpoint.environment}"` '
                    "to the DataAPIClient creation statement."
                )

    def get_database(
        self,
        api_endpoint: str,
        *,
        token: str | None = None,
        keyspace: str | None = None,
        timeout_options: TimeoutOptions | None = None,
        serdes_options: SerdesOptions | None = None,
        logging: LoggingConfig = None,
    ) -> Database:
        """
        Get a Database object from this client, for doing data-related work.

        Args:
            api_endpoint: the API Endpoint for the target database
                (e.g. `https://<ID>-<REGION>.apps.astra.datastax.com`).
                The database must exist already for the resulting object
                to be effectively used; in other words, this invocation
                does not create the database, just the object instance.
            token: if supplied, is passed to the Database instead of the
                client token.
            keyspace: if provided, it is passed to the Database; otherwise
                the Database class will apply an environment-specific default.
            timeout_options: timeouts for the database, overriding those
                of this client.
            serdes_options: settings for the encoding and decoding of documents.
            logging: a logging configuration for the events of the database.

        Returns:
            a Database object with which to work on Data API collections.

        Example:
            >>> my_db1 = my_client.get_database(
            ...     "https://01234567-...-us-west1.apps.astra.datastax.com",
            ... )
            >>> my_db2 = my_client.get_database(
            ...     "https://01234567-...-us-west1.apps.astra.datastax.com",
            ...     token="AstraCS:...",
            ...     keyspace="prod_keyspace",
            ... )
            >>> my_coll = my_db1.get_collection("movies")
            >>> for doc in my_coll.find({}):
            ...     print(doc)
            ...

        Note:
            This method does not perform any admin-level operation through
            the DevOps API. For actual creation of a database, see the
            `create_database` method of class AstraDBAdmin.
        """

        # lazy importing here to avoid circular dependency
        from astra_dataapi.data.database import Database

        self._check_api_endpoint(api_endpoint)
        logger.info(f"getting database '{api_endpoint}'")
        return Database(
            api_endpoint=api_endpoint,
            token=token or self._token,
            keyspace=keyspace,
            environment=self._environment,
            timeout_options=self._timeout_options.with_override(timeout_options),
            serdes_options=serdes_options,
            event_logger=self._event_logger,
            logging=logging,
            dev_ops_url=self._dev_ops_url,
        )

    def get_async_database(
        self,
        api_endpoint: str,
        *,
        token: str | None = None,
        keyspace: str | None = None,
        timeout_options: TimeoutOptions | None = None,
        serdes_options: SerdesOptions | None = None,
        logging: LoggingConfig = None,
    ) -> AsyncDatabase:
        """
        Get an AsyncDatabase object from this client, for doing data-related work.
        See `get_database` for the parameters.

        Example:
            >>> async def create_and_insert(adb: AsyncDatabase) -> None:
            ...     my_a_coll = await adb.create_collection("movies", dimension=2)
            ...     await my_a_coll.insert_one({"title": "The Title"})
            ...
            >>> my_async_db = my_client.get_async_database(
            ...     "https://01234567-...-us-west1.apps.astra.datastax.com",
            ... )
            >>> asyncio.run(create_and_insert(my_async_db))
        """

        # lazy importing here to avoid circular dependency
        from astra_dataapi.data.database import AsyncDatabase

        self._check_api_endpoint(api_endpoint)
        logger.info(f"getting async database '{api_endpoint}'")
        return AsyncDatabase(
            api_endpoint=api_endpoint,
            token=token or self._token,
            keyspace=keyspace,
            environment=self._environment,
            timeout_options=self._timeout_options.with_override(timeout_options),
            serdes_options=serdes_options,
            event_logger=self._event_logger,
            logging=logging,
            dev_ops_url=self._dev_ops_url,
        )

    def get_admin(
        self,
        *,
        token: str | None = None,
        logging: LoggingConfig = None,
    ) -> AstraDBAdmin:
        """
        Get an AstraDBAdmin instance corresponding to this client, for
        admin work such as managing databases.

        Args:
            token: if supplied, is passed to the Astra DB Admin instead of the
                client token. This may be useful when switching to a more powerful,
                admin-capable permission set.
            logging: a logging configuration for the events of the admin.

        Returns:
            An AstraDBAdmin instance, wich which to perform management at the
            database level.

        Example:
            >>> my_adm = my_client.get_admin()
            >>> database_list = my_adm.list_databases()
            >>> my_db_admin = my_adm.create_database(
            ...     "the_other_database",
            ...     cloud_provider="AWS",
            ...     region="eu-west-1",
            ... )
            >>> my_db_admin.list_keyspaces()
            ['default_keyspace', 'that_other_one']
        """

        # lazy importing here to avoid circular dependency
        from astra_dataapi.admin import AstraDBAdmin

        if self._environment not in Environment.astra_db_values:
            raise ValueError("Method not supported outside of Astra DB.")
        return AstraDBAdmin(
            token=token or self._token,
            environment=self._environment,
            dev_ops_url=self._dev_ops_url,
            timeout_options=self._timeout_options,
            event_logger=self._event_logger,
            logging=logging,
        )
