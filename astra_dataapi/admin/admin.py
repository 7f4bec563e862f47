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
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import deprecation

from astra_dataapi.admin.devops_commander import DevOpsAPICommander, DevOpsAPIResponse
from astra_dataapi.admin.endpoints import build_api_endpoint, resolve_dev_ops_url
from astra_dataapi.constants import Environment
from astra_dataapi.events import EventLogger, HierarchicalEmitter, LoggingConfig
from astra_dataapi.exceptions import (
    UnexpectedDevOpsAPIResponseException,
    to_devopsapi_timeout_exception,
)
from astra_dataapi.settings.defaults import (
    DEFAULT_DEV_OPS_AUTH_HEADER,
    DEFAULT_DEV_OPS_AUTH_PREFIX,
    DEV_OPS_DATABASE_POLL_INTERVAL_MS,
    DEV_OPS_DATABASE_STATUS_ACTIVE,
    DEV_OPS_DATABASE_STATUS_ASSOCIATING,
    DEV_OPS_DATABASE_STATUS_INITIALIZING,
    DEV_OPS_DATABASE_STATUS_MAINTENANCE,
    DEV_OPS_DATABASE_STATUS_PENDING,
    DEV_OPS_DATABASE_STATUS_TERMINATED,
    DEV_OPS_DATABASE_STATUS_TERMINATING,
    DEV_OPS_KEYSPACE_POLL_INTERVAL_MS,
    DEV_OPS_VERSION,
)
from astra_dataapi.utils.api_options import TimeoutOptions
from astra_dataapi.utils.request_tools import HttpMethod
from astra_dataapi.utils.timeouts import TimeoutOverride, Timeouts
from astra_dataapi.version import __version__

if TYPE_CHECKING:
    from astra_dataapi.data.database import AsyncDatabase, Database


logger = logging.getLogger(__name__)


NAMESPACE_DEPRECATION_NOTICE_METHOD = (
    "The term 'namespace' is being replaced by 'keyspace' throughout the "
    "Data API and the clients. Please use the `*_keyspace` counterpart."
)

DATABASE_CREATION_LEGAL_STATES = [
    DEV_OPS_DATABASE_STATUS_INITIALIZING,
    DEV_OPS_DATABASE_STATUS_PENDING,
    DEV_OPS_DATABASE_STATUS_ASSOCIATING,
]
DATABASE_TERMINATION_LEGAL_STATES = [DEV_OPS_DATABASE_STATUS_TERMINATING]
KEYSPACE_CHANGE_LEGAL_STATES = [DEV_OPS_DATABASE_STATUS_MAINTENANCE]


@dataclass
class AstraDBAdminDatabaseInfo:
    """
    A structure representing the information returned by the DevOps API
    about a database.

    Attributes:
        id: the database ID.
        name: the database name.
        status: the database status, e.g. "ACTIVE".
        region: the region where the database is deployed.
        cloud_provider: the cloud provider, e.g. "AWS".
        keyspaces: the keyspaces found in the database.
        raw: the full response from the DevOps API.
    """

    id: str
    name: str | None
    status: str | None
    region: str | None
    cloud_provider: str | None
    keyspaces: list[str]
    raw: dict[str, Any]

    @staticmethod
    def from_dict(raw_dict: dict[str, Any]) -> AstraDBAdminDatabaseInfo:
        info = raw_dict.get("info") or {}
        return AstraDBAdminDatabaseInfo(
            id=raw_dict["id"],
            name=info.get("name"),
            status=raw_dict.get("status"),
            region=info.get("region"),
            cloud_provider=info.get("cloudProvider"),
            keyspaces=info.get("keyspaces") or [],
            raw=raw_dict,
        )


def _extract_location_id(response: DevOpsAPIResponse) -> str:
    # header names may come in any case
    for header_name, header_value in response.headers.items():
        if header_name.lower() == "location":
            return header_value
    raise UnexpectedDevOpsAPIResponseException(
        text="The database creation response has no 'Location' header.",
        raw_response=response.data,
    )


def _parse_database_info(response: DevOpsAPIResponse) -> AstraDBAdminDatabaseInfo:
    if not isinstance(response.data, dict) or "id" not in response.data:
        raise UnexpectedDevOpsAPIResponseException(
            text="Faulty response from the DevOps API for database info.",
            raw_response=response.data,
        )
    return AstraDBAdminDatabaseInfo.from_dict(response.data)


def _parse_database_list(response: DevOpsAPIResponse) -> list[AstraDBAdminDatabaseInfo]:
    if not isinstance(response.data, list):
        raise UnexpectedDevOpsAPIResponseException(
            text="Faulty response from the DevOps API for database list.",
            raw_response={"response": response.data},
        )
    return [AstraDBAdminDatabaseInfo.from_dict(db_dict) for db_dict in response.data]


class _DevOpsAdminBase:
    def __init__(
        self,
        *,
        token: str | None,
        environment: str | None,
        dev_ops_url: str | None,
        timeout_options: TimeoutOptions | None,
        event_logger: EventLogger | None,
        logging: LoggingConfig,
    ) -> None:
        self._environment = (environment or Environment.PROD).lower()
        if self._environment not in Environment.astra_db_values:
            raise ValueError("Environments outside of Astra DB are not supported.")
        self._token = token
        self._dev_ops_url = resolve_dev_ops_url(self._environment, dev_ops_url)
        self._timeouts = Timeouts(to_devopsapi_timeout_exception, timeout_options)
        self._event_logger: EventLogger = (
            event_logger or EventLogger(HierarchicalEmitter())
        ).spawn(logging)
        self._dev_ops_commander_headers: dict[str, str | None] = {
            DEFAULT_DEV_OPS_AUTH_HEADER: (
                f"{DEFAULT_DEV_OPS_AUTH_PREFIX}{self._token}" if self._token else None
            ),
        }
        self._dev_ops_api_commander = DevOpsAPICommander(
            api_endpoint=self._dev_ops_url,
            path=DEV_OPS_VERSION,
            headers=self._dev_ops_commander_headers,
            event_logger=self._event_logger,
        )

    @property
    def emitter(self) -> HierarchicalEmitter:
        """
        The event emitter of this admin object, receiving the admin
        command events it generates.
        """

        return self._event_logger.emitter


class AstraDBAdmin(_DevOpsAdminBase):
    """
    An "admin" object, able to perform administrative tasks at the databases
    level, such as creating, listing or dropping databases.

    This class is not meant for direct instantiation by the user, rather
    it is obtained by invoking methods such as `get_admin`
    of DataAPIClient.

    Args:
        token: an access token with enough permissions to do admin work.
        environment: one of the Astra DB environments, defaulting to "prod".
        dev_ops_url: a custom URL for the DevOps API. It is generally
            determined by the environment.
        timeout_options: a partial set of timeouts overriding the defaults.
        event_logger: the EventLogger of the spawning object, whose emitter
            becomes the parent of this object's emitter.
        logging: a logging configuration for the events of this object.

    Example:
        >>> from astra_dataapi import DataAPIClient
        >>> my_client = DataAPIClient("AstraCS:...")
        >>> my_astra_db_admin = my_client.get_admin()
        >>> database_list = my_astra_db_admin.list_databases()
        >>> len(database_list)
        3
        >>> database_list[2].id
        '01234567-...'
        >>> my_db_admin = my_astra_db_admin.get_database_admin(
        ...     "01234567-...", region="us-east1"
        ... )
        >>> my_db_admin.list_keyspaces()
        ['default_keyspace', 'staging_keyspace']

    Note:
        a more powerful token may be required than the one sufficient for working
        in the Database and Collection classes. Check the provided token
        if "Unauthorized" errors are encountered.
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        environment: str | None = None,
        dev_ops_url: str | None = None,
        timeout_options: TimeoutOptions | None = None,
        event_logger: EventLogger | None = None,
        logging: LoggingConfig = None,
    ) -> None:
        super().__init__(
            token=token,
            environment=environment,
            dev_ops_url=dev_ops_url,
            timeout_options=timeout_options,
            event_logger=event_logger,
            logging=logging,
        )

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(environment="{self._environment}", '
            f'dev_ops_url="{self._dev_ops_url}")'
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AstraDBAdmin):
            return all(
                [
                    self._token == other._token,
                    self._environment == other._environment,
                    self._dev_ops_url == other._dev_ops_url,
                ]
            )
        else:
            return False

    def _create_database_body(
        self,
        name: str,
        cloud_provider: str,
        region: str,
        keyspace: str | None,
    ) -> dict[str, Any]:
        return {
            k: v
            for k, v in {
                "name": name,
                "tier": "serverless",
                "cloudProvider": cloud_provider,
                "region": region,
                "capacityUnits": 1,
                "dbType": "vector",
                "keyspace": keyspace,
            }.items()
            if v is not None
        }

    def _spawn_database_admin(
        self, database_id: str, region: str
    ) -> AstraDBDatabaseAdmin:
        return AstraDBDatabaseAdmin(
            database_id=database_id,
            region=region,
            token=self._token,
            environment=self._environment,
            dev_ops_url=self._dev_ops_url,
            timeout_options=self._timeouts.base_timeouts,
            event_logger=self._event_logger,
        )

    def list_databases(
        self,
        *,
        include: str | None = None,
        provider: str | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> list[AstraDBAdminDatabaseInfo]:
        """
        Get the list of databases, as obtained with a request to the DevOps API.

        Args:
            include: a filter on what databases are to be returned. As per
                DevOps API, defaults to "nonterminated". Pass "all" to include
                the already terminated databases.
            provider: a filter on the cloud provider for the databases.
                As per DevOps API, defaults to "ALL". Pass e.g. "AWS" to
                restrict the results.
            timeout_ms: a timeout, in milliseconds, to impose on the
                underlying API request. If not provided, this object's defaults apply.

        Returns:
            A list of AstraDBAdminDatabaseInfo objects.

        Example:
            >>> database_list = my_astra_db_admin.list_databases()
            >>> database_list[2].status
            'ACTIVE'
        """

        params = {
            k: v
            for k, v in {"include": include, "provider": provider}.items()
            if v is not None
        }
        logger.info("getting databases (DevOps API)")
        response = self._dev_ops_api_commander.request(
            method=HttpMethod.GET,
            path="databases",
            params=params or None,
            timeout_manager=self._timeouts.single(
                "database_admin_timeout_ms", timeout_ms
            ),
            invoking_method="list_databases",
        )
        logger.info("finished getting databases (DevOps API)")
        return _parse_database_list(response)

    async def async_list_databases(
        self,
        *,
        include: str | None = None,
        provider: str | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> list[AstraDBAdminDatabaseInfo]:
        """
        Get the list of databases, as obtained with a request to the DevOps API.
        Async version of the method, for use in an asyncio context.
        See `list_databases` for the parameters.
        """

        params = {
            k: v
            for k, v in {"include": include, "provider": provider}.items()
            if v is not None
        }
        logger.info("getting databases (DevOps API), async")
        response = await self._dev_ops_api_commander.async_request(
            method=HttpMethod.GET,
            path="databases",
            params=params or None,
            timeout_manager=self._timeouts.single(
                "database_admin_timeout_ms", timeout_ms
            ),
            invoking_method="list_databases",
        )
        logger.info("finished getting databases (DevOps API), async")
        return _parse_database_list(response)

    def database_info(
        self,
        id: str,
        *,
        timeout_ms: TimeoutOverride = None,
    ) -> AstraDBAdminDatabaseInfo:
        """
        Get the full information on a given database, through a request to the
        DevOps API.

        Args:
            id: the ID of the target database, e. g.
                "01234567-89ab-cdef-0123-456789abcdef".
            timeout_ms: a timeout, in milliseconds, for the API request.

        Returns:
            An AstraDBAdminDatabaseInfo object.

        Example:
            >>> details_of_my_db = my_astra_db_admin.database_info("01234567-...")
            >>> details_of_my_db.id
            '01234567-...'
            >>> details_of_my_db.status
            'ACTIVE'
        """

        logger.info(f"getting database info for '{id}' (DevOps API)")
        response = self._dev_ops_api_commander.request(
            method=HttpMethod.GET,
            path=f"databases/{id}",
            timeout_manager=self._timeouts.single(
                "database_admin_timeout_ms", timeout_ms
            ),
            invoking_method="database_info",
        )
        logger.info(f"finished getting database info for '{id}' (DevOps API)")
        return _parse_database_info(response)

    async def async_database_info(
        self,
        id: str,
        *,
        timeout_ms: TimeoutOverride = None,
    ) -> AstraDBAdminDatabaseInfo:
        """
        Get the full information on a given database, through a request to the
        DevOps API. Async version of `database_info`, which see.
        """

        logger.info(f"getting database info for '{id}' (DevOps API), async")
        response = await self._dev_ops_api_commander.async_request(
            method=HttpMethod.GET,
            path=f"databases/{id}",
            timeout_manager=self._timeouts.single(
                "database_admin_timeout_ms", timeout_ms
            ),
            invoking_method="database_info",
        )
        logger.info(f"finished getting database info for '{id}' (DevOps API), async")
        return _parse_database_info(response)

    def create_database(
        self,
        name: str,
        *,
        cloud_provider: str,
        region: str,
        keyspace: str | None = None,
        wait_until_active: bool = True,
        poll_interval_ms: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> AstraDBDatabaseAdmin:
        """
        Create a database as requested, optionally waiting for it to be ready.

        Args:
            name: the desired name for the database.
            cloud_provider: one of 'aws', 'gcp' or 'azure'.
            region: any of the available cloud regions.
            keyspace: name for the one keyspace the database starts with.
                If omitted, DevOps API will use its default.
            wait_until_active: if True (default), the method returns only after
                the newly-created database is in ACTIVE state (a few minutes,
                usually). If False, it will return right after issuing the
                creation request to the DevOps API, and it will be responsibility
                of the caller to check the database status before working with it.
            poll_interval_ms: the wait between consecutive status checks
                while waiting for the database. Defaults to ten seconds.
            timeout_ms: a timeout, in milliseconds, for the whole requested
                operation to complete, including the waiting.

        Returns:
            An AstraDBDatabaseAdmin instance.

        Note: a timeout event is no guarantee at all that the
        creation request has not reached the API server and is not going
        to be, in fact, honored.

        Example:
            >>> my_new_db_admin = my_astra_db_admin.create_database(
            ...     "new_database",
            ...     cloud_provider="aws",
            ...     region="ap-south-1",
            ... )
            >>> my_new_db = my_new_db_admin.get_database()
            >>> my_coll = my_new_db.create_collection("movies", dimension=2)
        """

        logger.info(
            f"creating database {name}/({cloud_provider}, {region}) (DevOps API)"
        )
        response = self._dev_ops_api_commander.request_long_running(
            method=HttpMethod.POST,
            path="databases",
            body=self._create_database_body(name, cloud_provider, region, keyspace),
            timeout_manager=self._timeouts.multipart(
                "database_admin_timeout_ms", timeout_ms
            ),
            invoking_method="create_database",
            id_extractor=_extract_location_id,
            target_state=DEV_OPS_DATABASE_STATUS_ACTIVE,
            legal_states=DATABASE_CREATION_LEGAL_STATES,
            poll_interval_ms=(
                poll_interval_ms
                if poll_interval_ms is not None
                else DEV_OPS_DATABASE_POLL_INTERVAL_MS
            ),
            blocking=wait_until_active,
        )
        new_database_id = _extract_location_id(response)
        logger.info(
            f"finished creating database '{new_database_id}' = "
            f"{name}/({cloud_provider}, {region}) (DevOps API)"
        )
        return self._spawn_database_admin(new_database_id, region)

    async def async_create_database(
        self,
        name: str,
        *,
        cloud_provider: str,
        region: str,
        keyspace: str | None = None,
        wait_until_active: bool = True,
        poll_interval_ms: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> AstraDBDatabaseAdmin:
        """
        Create a database as requested, optionally waiting for it to be ready.
        This is an awaitable method suitable for use within an asyncio event loop.
        See `create_database` for the parameters.

        Example:
            >>> asyncio.run(
            ...     my_astra_db_admin.async_create_database(
            ...         "new_database",
            ...         cloud_provider="aws",
            ...         region="ap-south-1",
            ...     )
            ... )
            AstraDBDatabaseAdmin(id=...)
        """

        logger.info(
            f"creating database {name}/({cloud_provider}, {region}) "
            "(DevOps API), async"
        )
        response = await self._dev_ops_api_commander.async_request_long_running(
            method=HttpMethod.POST,
            path="databases",
            body=self._create_database_body(name, cloud_provider, region, keyspace),
            timeout_manager=self._timeouts.multipart(
                "database_admin_timeout_ms", timeout_ms
            ),
            invoking_method="create_database",
            id_extractor=_extract_location_id,
            target_state=DEV_OPS_DATABASE_STATUS_ACTIVE,
            legal_states=DATABASE_CREATION_LEGAL_STATES,
            poll_interval_ms=(
                poll_interval_ms
                if poll_interval_ms is not None
                else DEV_OPS_DATABASE_POLL_INTERVAL_MS
            ),
            blocking=wait_until_active,
        )
        new_database_id = _extract_location_id(response)
        logger.info(
            f"finished creating database '{new_database_id}' = "
            f"{name}/({cloud_provider}, {region}) (DevOps API), async"
        )
        return self._spawn_database_admin(new_database_id, region)

    def drop_database(
        self,
        id: str,
        *,
        wait_until_active: bool = True,
        poll_interval_ms: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> None:
        """
        Drop a database, i.e. delete it completely and permanently with all its data.

        Args:
            id: The ID of the database to drop, e. g.
                "01234567-89ab-cdef-0123-456789abcdef".
            wait_until_active: if True (default), the method returns only after
                the database has actually been deleted (generally a few minutes).
                If False, it will return right after issuing the
                drop request to the DevOps API, and it will be responsibility
                of the caller to check the database status/availability
                after that, if desired.
            poll_interval_ms: the wait between consecutive status checks
                while waiting for the termination. Defaults to ten seconds.
            timeout_ms: a timeout, in milliseconds, for the whole requested
                operation to complete, including the waiting.

        Note: a timeout event is no guarantee at all that the
        deletion request has not reached the API server and is not going
        to be, in fact, honored.

        Example:
            >>> database_list_pre = my_astra_db_admin.list_databases()
            >>> len(database_list_pre)
            3
            >>> my_astra_db_admin.drop_database("01234567-...")
            >>> database_list_post = my_astra_db_admin.list_databases()
            >>> len(database_list_post)
            2
        """

        logger.info(f"dropping database '{id}' (DevOps API)")
        self._dev_ops_api_commander.request_long_running(
            method=HttpMethod.POST,
            path=f"databases/{id}/terminate",
            timeout_manager=self._timeouts.multipart(
                "database_admin_timeout_ms", timeout_ms
            ),
            invoking_method="drop_database",
            id_extractor=id,
            target_state=DEV_OPS_DATABASE_STATUS_TERMINATED,
            legal_states=DATABASE_TERMINATION_LEGAL_STATES,
            poll_interval_ms=(
                poll_interval_ms
                if poll_interval_ms is not None
                else DEV_OPS_DATABASE_POLL_INTERVAL_MS
            ),
            blocking=wait_until_active,
        )
        logger.info(f"finished dropping database '{id}' (DevOps API)")

    async def async_drop_database(
        self,
        id: str,
        *,
        wait_until_active: bool = True,
        poll_interval_ms: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> None:
        """
        Drop a database, i.e. delete it completely and permanently with all its data.
        Async version of the method, for use in an asyncio context.
        See `drop_database` for the parameters.
        """

        logger.info(f"dropping database '{id}' (DevOps API), async")
        await self._dev_ops_api_commander.async_request_long_running(
            method=HttpMethod.POST,
            path=f"databases/{id}/terminate",
            timeout_manager=self._timeouts.multipart(
                "database_admin_timeout_ms", timeout_ms
            ),
            invoking_method="drop_database",
            id_extractor=id,
            target_state=DEV_OPS_DATABASE_STATUS_TERMINATED,
            legal_states=DATABASE_TERMINATION_LEGAL_STATES,
            poll_interval_ms=(
                poll_interval_ms
                if poll_interval_ms is not None
                else DEV_OPS_DATABASE_POLL_INTERVAL_MS
            ),
            blocking=wait_until_active,
        )
        logger.info(f"finished dropping database '{id}' (DevOps API), async")

    def get_database_admin(self, id: str, *, region: str) -> AstraDBDatabaseAdmin:
        """
        Create an AstraDBDatabaseAdmin object for admin work within a certain database.
        No API request is made.

        Args:
            id: the target database ID (e.g. `01234567-89ab-cdef-0123-456789abcdef`).
            region: the region of the database.

        Returns:
            An AstraDBDatabaseAdmin object representing the requested database.

        Example:
            >>> my_db_admin = my_astra_db_admin.get_database_admin(
            ...     "01234567-...", region="us-east1"
            ... )
            >>> my_db_admin.list_keyspaces()
            ['default_keyspace']
        """

        return self._spawn_database_admin(id, region)

    def get_database(
        self,
        id: str,
        *,
        region: str,
        keyspace: str | None = None,
    ) -> Database:
        """
        Create a Database instance for a specific database, to be used
        when doing data-level work (such as creating/managing collections).

        Args:
            id: e. g. "01234567-89ab-cdef-0123-456789abcdef".
            region: the region where the database is located.
            keyspace: used to specify a certain keyspace the resulting
                Database will primarily work on.

        Returns:
            A Database object ready to be used.

        Example:
            >>> my_db = my_astra_db_admin.get_database(
            ...     "01234567-...",
            ...     region="us-east1",
            ... )
            >>> my_coll = my_db.create_collection("movies", dimension=2)
        """

        return self._spawn_database_admin(id, region).get_database(keyspace=keyspace)

    def get_async_database(
        self,
        id: str,
        *,
        region: str,
        keyspace: str | None = None,
    ) -> AsyncDatabase:
        """
        Create an AsyncDatabase instance for a specific database, to be used
        when doing data-level work (such as creating/managing collections).
        See `get_database` for the parameters.
        """

        return self._spawn_database_admin(id, region).get_async_database(
            keyspace=keyspace
        )


class AstraDBDatabaseAdmin(_DevOpsAdminBase):
    """
    An "admin" object, able to perform administrative tasks at the keyspaces level
    (i.e. within a certain database), such as creating/listing/dropping keyspaces.

    This class is not meant for direct instantiation by the user, rather
    it is obtained by invoking methods such as `get_database_admin`
    of AstraDBAdmin or Database.

    Args:
        database_id: the ID of the database.
        region: the region of the database.
        token: an access token with enough permissions to do admin work.
        environment: one of the Astra DB environments, defaulting to "prod".
        dev_ops_url: a custom URL for the DevOps API.
        timeout_options: a partial set of timeouts overriding the defaults.
        event_logger: the EventLogger of the spawning object.
        logging: a logging configuration for the events of this object.

    Example:
        >>> from astra_dataapi import DataAPIClient
        >>> my_client = DataAPIClient("AstraCS:...")
        >>> admin_for_my_db = my_client.get_admin().get_database_admin(
        ...     "01234567-...", region="us-east1"
        ... )
        >>> admin_for_my_db.list_keyspaces()
        ['default_keyspace', 'staging_keyspace']
        >>> admin_for_my_db.info().status
        'ACTIVE'
    """

    def __init__(
        self,
        *,
        database_id: str,
        region: str,
        token: str | None = None,
        environment: str | None = None,
        dev_ops_url: str | None = None,
        timeout_options: TimeoutOptions | None = None,
        event_logger: EventLogger | None = None,
        logging: LoggingConfig = None,
    ) -> None:
        super().__init__(
            token=token,
            environment=environment,
            dev_ops_url=dev_ops_url,
            timeout_options=timeout_options,
            event_logger=event_logger,
            logging=logging,
        )
        self._database_id = database_id
        self._region = region

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(id="{self.id}", region="{self.region}", '
            f'environment="{self._environment}")'
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AstraDBDatabaseAdmin):
            return all(
                [
                    self._database_id == other._database_id,
                    self._region == other._region,
                    self._token == other._token,
                    self._environment == other._environment,
                    self._dev_ops_url == other._dev_ops_url,
                ]
            )
        else:
            return False

    @property
    def id(self) -> str:
        """
        The ID of this database admin.

        Example:
            >>> my_db_admin.id
            '01234567-89ab-cdef-0123-456789abcdef'
        """
        return self._database_id

    @property
    def region(self) -> str:
        """
        The region for this database admin.

        Example:
            >>> my_db_admin.region
            'us-east-1'
        """
        return self._region

    @property
    def api_endpoint(self) -> str:
        return build_api_endpoint(
            environment=self._environment,
            database_id=self._database_id,
            region=self._region,
        )

    def _keyspace_change(
        self, method: str, name: str, poll_interval_ms: int | None
    ) -> dict[str, Any]:
        return {
            "method": method,
            "path": f"databases/{self._database_id}/keyspaces/{name}",
            "id_extractor": self._database_id,
            "target_state": DEV_OPS_DATABASE_STATUS_ACTIVE,
            "legal_states": KEYSPACE_CHANGE_LEGAL_STATES,
            "poll_interval_ms": (
                poll_interval_ms
                if poll_interval_ms is not None
                else DEV_OPS_KEYSPACE_POLL_INTERVAL_MS
            ),
        }

    def info(self, *, timeout_ms: TimeoutOverride = None) -> AstraDBAdminDatabaseInfo:
        """
        Query the DevOps API for the full info on this database.

        Args:
            timeout_ms: a timeout, in milliseconds, for the DevOps API request.

        Returns:
            An AstraDBAdminDatabaseInfo object.

        Example:
            >>> my_db_info = my_db_admin.info()
            >>> my_db_info.status
            'ACTIVE'
            >>> my_db_info.region
            'us-east1'
        """

        logger.info(f"getting info ('{self._database_id}')")
        response = self._dev_ops_api_commander.request(
            method=HttpMethod.GET,
            path=f"databases/{self._database_id}",
            timeout_manager=self._timeouts.single(
                "database_admin_timeout_ms", timeout_ms
            ),
            invoking_method="info",
        )
        logger.info(f"finished getting info ('{self._database_id}')")
        return _parse_database_info(response)

    async def async_info(
        self, *, timeout_ms: TimeoutOverride = None
    ) -> AstraDBAdminDatabaseInfo:
        """
        Query the DevOps API for the full info on this database.
        Async version of the method, for use in an asyncio context.
        """

        logger.info(f"getting info ('{self._database_id}'), async")
        response = await self._dev_ops_api_commander.async_request(
            method=HttpMethod.GET,
            path=f"databases/{self._database_id}",
            timeout_manager=self._timeouts.single(
                "database_admin_timeout_ms", timeout_ms
            ),
            invoking_method="info",
        )
        logger.info(f"finished getting info ('{self._database_id}'), async")
        return _parse_database_info(response)

    def list_keyspaces(self, *, timeout_ms: TimeoutOverride = None) -> list[str]:
        """
        Query the DevOps API for a list of the keyspaces in the database.

        Args:
            timeout_ms: a timeout, in milliseconds, for the DevOps API request.

        Returns:
            A list of the keyspaces, each a string, in no particular order.

        Example:
            >>> my_db_admin.list_keyspaces()
            ['default_keyspace', 'staging_keyspace']
        """

        logger.info(f"getting keyspaces ('{self._database_id}')")
        info = self.info(timeout_ms=timeout_ms)
        logger.info(f"finished getting keyspaces ('{self._database_id}')")
        return info.keyspaces

    async def async_list_keyspaces(
        self, *, timeout_ms: TimeoutOverride = None
    ) -> list[str]:
        """
        Query the DevOps API for a list of the keyspaces in the database.
        Async version of the method, for use in an asyncio context.
        """

        logger.info(f"getting keyspaces ('{self._database_id}'), async")
        info = await self.async_info(timeout_ms=timeout_ms)
        logger.info(f"finished getting keyspaces ('{self._database_id}'), async")
        return info.keyspaces

    def create_keyspace(
        self,
        name: str,
        *,
        wait_until_active: bool = True,
        poll_interval_ms: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> None:
        """
        Create a keyspace in this database as requested,
        optionally waiting for it to be ready.

        Args:
            name: the keyspace name. If supplying a keyspace that exists
                already, the method call proceeds as usual, no errors are
                raised, and the whole invocation is a no-op.
            wait_until_active: if True (default), the method returns only after
                the target database is in ACTIVE state again (a few
                seconds, usually). If False, it will return right after issuing the
                creation request to the DevOps API, and it will be responsibility
                of the caller to check the database status/keyspace availability
                before working with it.
            poll_interval_ms: the wait between consecutive status checks.
                Defaults to one second.
            timeout_ms: a timeout, in milliseconds, for the whole requested
                operation to complete, including the waiting.

        Note: a timeout event is no guarantee at all that the
        creation request has not reached the API server and is not going
        to be, in fact, honored.

        Example:
            >>> my_db_admin.list_keyspaces()
            ['default_keyspace']
            >>> my_db_admin.create_keyspace("that_other_one")
            >>> my_db_admin.list_keyspaces()
            ['default_keyspace', 'that_other_one']
        """

        logger.info(
            f"creating keyspace '{name}' on '{self._database_id}' (DevOps API)"
        )
        self._dev_ops_api_commander.request_long_running(
            **self._keyspace_change(HttpMethod.POST, name, poll_interval_ms),
            timeout_manager=self._timeouts.multipart(
                "keyspace_admin_timeout_ms", timeout_ms
            ),
            invoking_method="create_keyspace",
            blocking=wait_until_active,
        )
        logger.info(
            f"finished creating keyspace '{name}' on "
            f"'{self._database_id}' (DevOps API)"
        )

    async def async_create_keyspace(
        self,
        name: str,
        *,
        wait_until_active: bool = True,
        poll_interval_ms: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> None:
        """
        Create a keyspace in this database as requested,
        optionally waiting for it to be ready.
        Async version of the method, for use in an asyncio context.
        See `create_keyspace` for the parameters.

        Example:
            >>> asyncio.run(
            ...     my_db_admin.async_create_keyspace("app_keyspace")
            ... )
        """

        logger.info(
            f"creating keyspace '{name}' on '{self._database_id}' (DevOps API), async"
        )
        await self._dev_ops_api_commander.async_request_long_running(
            **self._keyspace_change(HttpMethod.POST, name, poll_interval_ms),
            timeout_manager=self._timeouts.multipart(
                "keyspace_admin_timeout_ms", timeout_ms
            ),
            invoking_method="create_keyspace",
            blocking=wait_until_active,
        )
        logger.info(
            f"finished creating keyspace '{name}' on "
            f"'{self._database_id}' (DevOps API), async"
        )

    def drop_keyspace(
        self,
        name: str,
        *,
        wait_until_active: bool = True,
        poll_interval_ms: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> None:
        """
        Delete a keyspace from the database, optionally waiting for the database
        to become active again.

        Args:
            name: the keyspace to delete. If it does not exist in this database,
                an error is raised.
            wait_until_active: if True (default), the method returns only after
                the target database is in ACTIVE state again (a few
                seconds, usually). If False, it will return right after issuing the
                deletion request to the DevOps API, and it will be responsibility
                of the caller to check the database status/keyspace availability
                before working with it.
            poll_interval_ms: the wait between consecutive status checks.
                Defaults to one second.
            timeout_ms: a timeout, in milliseconds, for the whole requested
                operation to complete, including the waiting.

        Example:
            >>> my_db_admin.list_keyspaces()
            ['default_keyspace', 'that_other_one']
            >>> my_db_admin.drop_keyspace("that_other_one")
            >>> my_db_admin.list_keyspaces()
            ['default_keyspace']
        """

        logger.info(
            f"dropping keyspace '{name}' on '{self._database_id}' (DevOps API)"
        )
        self._dev_ops_api_commander.request_long_running(
            **self._keyspace_change(HttpMethod.DELETE, name, poll_interval_ms),
            timeout_manager=self._timeouts.multipart(
                "keyspace_admin_timeout_ms", timeout_ms
            ),
            invoking_method="drop_keyspace",
            blocking=wait_until_active,
        )
        logger.info(
            f"finished dropping keyspace '{name}' on "
            f"'{self._database_id}' (DevOps API)"
        )

    async def async_drop_keyspace(
        self,
        name: str,
        *,
        wait_until_active: bool = True,
        poll_interval_ms: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> None:
        """
        Delete a keyspace from the database, optionally waiting for the database
        to become active again.
        Async version of the method, for use in an asyncio context.
        See `drop_keyspace` for the parameters.
        """

        logger.info(
            f"dropping keyspace '{name}' on '{self._database_id}' (DevOps API), async"
        )
        await self._dev_ops_api_commander.async_request_long_running(
            **self._keyspace_change(HttpMethod.DELETE, name, poll_interval_ms),
            timeout_manager=self._timeouts.multipart(
                "keyspace_admin_timeout_ms", timeout_ms
            ),
            invoking_method="drop_keyspace",
            blocking=wait_until_active,
        )
        logger.info(
            f"finished dropping keyspace '{name}' on "
            f"'{self._database_id}' (DevOps API), async"
        )

    @deprecation.deprecated(  # type: ignore[misc]
        deprecated_in="0.1.0",
        removed_in="1.0.0",
        current_version=__version__,
        details=NAMESPACE_DEPRECATION_NOTICE_METHOD,
    )
    def create_namespace(
        self,
        name: str,
        *,
        wait_until_active: bool = True,
        poll_interval_ms: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> None:
        """
        Create a namespace in this database. *DEPRECATED*: use `create_keyspace`.
        """

        self.create_keyspace(
            name,
            wait_until_active=wait_until_active,
            poll_interval_ms=poll_interval_ms,
            timeout_ms=timeout_ms,
        )

    @deprecation.deprecated(  # type: ignore[misc]
        deprecated_in="0.1.0",
        removed_in="1.0.0",
        current_version=__version__,
        details=NAMESPACE_DEPRECATION_NOTICE_METHOD,
    )
    async def async_create_namespace(
        self,
        name: str,
        *,
        wait_until_active: bool = True,
        poll_interval_ms: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> None:
        """
        Create a namespace in this database. *DEPRECATED*: use
        `async_create_keyspace`.
        """

        await self.async_create_keyspace(
            name,
            wait_until_active=wait_until_active,
            poll_interval_ms=poll_interval_ms,
            timeout_ms=timeout_ms,
        )

    @deprecation.deprecated(  # type: ignore[misc]
        deprecated_in="0.1.0",
        removed_in="1.0.0",
        current_version=__version__,
        details=NAMESPACE_DEPRECATION_NOTICE_METHOD,
    )
    def drop_namespace(
        self,
        name: str,
        *,
        wait_until_active: bool = True,
        poll_interval_ms: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> None:
        """
        Drop a namespace from this database. *DEPRECATED*: use `drop_keyspace`.
        """

        self.drop_keyspace(
            name,
            wait_until_active=wait_until_active,
            poll_interval_ms=poll_interval_ms,
            timeout_ms=timeout_ms,
        )

    @deprecation.deprecated(  # type: ignore[misc]
        deprecated_in="0.1.0",
        removed_in="1.0.0",
        current_version=__version__,
        details=NAMESPACE_DEPRECATION_NOTICE_METHOD,
    )
    async def async_drop_namespace(
        self,
        name: str,
        *,
        wait_until_active: bool = True,
        poll_interval_ms: int | None = None,
        timeout_ms: TimeoutOverride = None,
    ) -> None:
        """
        Drop a namespace from this database. *DEPRECATED*: use
        `async_drop_keyspace`.
        """

        await self.async_drop_keyspace(
            name,
            wait_until_active=wait_until_active,
            poll_interval_ms=poll_interval_ms,
            timeout_ms=timeout_ms,
        )

    def get_database(self, *, keyspace: str | None = None) -> Database:
        """
        Create a Database instance from this database admin, for data-related tasks.

        Args:
            keyspace: an optional keyspace to set in the resulting Database.
                The same default logic as for `AstraDBAdmin.get_database` applies.

        Returns:
            A Database object, ready to be used for working with data and collections.

        Example:
            >>> my_db = my_db_admin.get_database()
            >>> my_db.list_collection_names()
            ['movies', 'another_collection']
        """

        # lazy importing here to avoid circular dependency
        from astra_dataapi.data.database import Database

        return Database(
            api_endpoint=self.api_endpoint,
            token=self._token,
            keyspace=keyspace,
            environment=self._environment,
            timeout_options=self._timeouts.base_timeouts,
            event_logger=self._event_logger,
            dev_ops_url=self._dev_ops_url,
        )

    def get_async_database(self, *, keyspace: str | None = None) -> AsyncDatabase:
        """
        Create an AsyncDatabase instance from this database admin,
        for data-related tasks. See `get_database` for the parameters.
        """

        # lazy importing here to avoid circular dependency
        from astra_dataapi.data.database import AsyncDatabase

        return AsyncDatabase(
            api_endpoint=self.api_endpoint,
            token=self._token,
            keyspace=keyspace,
            environment=self._environment,
            timeout_options=self._timeouts.base_timeouts,
            event_logger=self._event_logger,
            dev_ops_url=self._dev_ops_url,
        )
