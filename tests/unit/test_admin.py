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
"""
Unit tests for the DevOps API admin classes, long-running operations included
"""

from __future__ import annotations

from typing import Any

import pytest
from deprecation import DeprecatedWarning
from pytest_httpserver import HTTPServer

from astra_dataapi.admin import AstraDBAdmin, AstraDBDatabaseAdmin
from astra_dataapi.events import (
    ADMIN_COMMAND_FAILED,
    ADMIN_COMMAND_POLLING,
    ADMIN_COMMAND_STARTED,
    ADMIN_COMMAND_SUCCEEDED,
    BaseClientEvent,
)
from astra_dataapi.exceptions import (
    DevOpsAPIHttpException,
    DevOpsAPIResponseException,
    DevOpsAPITimeoutException,
    DevOpsAPIUnexpectedStateException,
    UnexpectedDevOpsAPIResponseException,
)
from astra_dataapi.utils.request_tools import HttpMethod

from ..conftest import TEST_DATABASE_ID, TEST_TOKEN

DB_PATH = f"/v2/databases/{TEST_DATABASE_ID}"


def _db_status(status: str, keyspaces: list[str] | None = None) -> dict[str, Any]:
    return {
        "id": TEST_DATABASE_ID,
        "status": status,
        "info": {
            "name": "my_db",
            "region": "us-east1",
            "cloudProvider": "GCP",
            "keyspaces": keyspaces or ["default_keyspace"],
        },
    }


def _expect_statuses(httpserver: HTTPServer, statuses: list[str]) -> None:
    for status in statuses:
        httpserver.expect_oneshot_request(
            DB_PATH, method=HttpMethod.GET
        ).respond_with_json(_db_status(status))


def _collect_events(admin: AstraDBAdmin | AstraDBDatabaseAdmin) -> list[BaseClientEvent]:
    events: list[BaseClientEvent] = []
    for event_name in (
        ADMIN_COMMAND_STARTED,
        ADMIN_COMMAND_POLLING,
        ADMIN_COMMAND_SUCCEEDED,
        ADMIN_COMMAND_FAILED,
    ):
        admin.emitter.on(event_name, events.append)
    return events


class TestAstraDBAdmin:
    @pytest.mark.describe("test of database listing and info")
    def test_list_and_info(self, httpserver: HTTPServer, admin: AstraDBAdmin) -> None:
        httpserver.expect_oneshot_request(
            "/v2/databases",
            method=HttpMethod.GET,
            headers={"Authorization": f"Bearer {TEST_TOKEN}"},
            query_string={"include": "all"},
        ).respond_with_json([_db_status("ACTIVE"), _db_status("TERMINATED")])
        databases = admin.list_databases(include="all")
        assert [db.status for db in databases] == ["ACTIVE", "TERMINATED"]
        assert databases[0].id == TEST_DATABASE_ID
        assert databases[0].cloud_provider == "GCP"

        httpserver.expect_oneshot_request(
            DB_PATH, method=HttpMethod.GET
        ).respond_with_json(_db_status("ACTIVE", ["ks1", "ks2"]))
        info = admin.database_info(TEST_DATABASE_ID)
        assert info.name == "my_db"
        assert info.region == "us-east1"
        assert info.keyspaces == ["ks1", "ks2"]

        httpserver.expect_oneshot_request(
            "/v2/databases", method=HttpMethod.GET
        ).respond_with_json({"not": "a list"})
        with pytest.raises(UnexpectedDevOpsAPIResponseException):
            admin.list_databases()

    @pytest.mark.describe("test of database creation with status polling")
    def test_create_database_polling(
        self, httpserver: HTTPServer, admin: AstraDBAdmin
    ) -> None:
        httpserver.expect_oneshot_request(
            "/v2/databases",
            method=HttpMethod.POST,
            json={
                "name": "my_db",
                "tier": "serverless",
                "cloudProvider": "GCP",
                "region": "us-east1",
                "capacityUnits": 1,
                "dbType": "vector",
                "keyspace": "my_ks",
            },
        ).respond_with_data("", status=201, headers={"Location": TEST_DATABASE_ID})
        _expect_statuses(httpserver, ["INITIALIZING", "INITIALIZING", "ACTIVE"])
        events = _collect_events(admin)

        db_admin = admin.create_database(
            "my_db",
            cloud_provider="GCP",
            region="us-east1",
            keyspace="my_ks",
            poll_interval_ms=10,
        )
        assert isinstance(db_admin, AstraDBDatabaseAdmin)
        assert db_admin.id == TEST_DATABASE_ID
        assert db_admin.region == "us-east1"
        assert db_admin.api_endpoint == (
            f"https://{TEST_DATABASE_ID}-us-east1.apps.astra.datastax.com"
        )

        assert [ev.name for ev in events] == [
            "AdminCommandStarted",
            "AdminCommandPolling",
            "AdminCommandPolling",
            "AdminCommandSucceeded",
        ]
        assert [getattr(ev, "poll_count") for ev in events[1:3]] == [1, 2]
        assert all(getattr(ev, "poll_interval_ms") == 10 for ev in events[1:3])
        assert len({ev.request_id for ev in events}) == 1
        assert getattr(events[0], "invoking_method") == "create_database"
        httpserver.check_assertions()

    @pytest.mark.describe("test of database creation without waiting")
    def test_create_database_nonblocking(
        self, httpserver: HTTPServer, admin: AstraDBAdmin
    ) -> None:
        httpserver.expect_oneshot_request(
            "/v2/databases", method=HttpMethod.POST
        ).respond_with_data("", status=201, headers={"location": TEST_DATABASE_ID})
        events = _collect_events(admin)
        db_admin = admin.create_database(
            "my_db", cloud_provider="GCP", region="us-east1", wait_until_active=False
        )
        assert db_admin.id == TEST_DATABASE_ID
        assert [ev.name for ev in events] == [
            "AdminCommandStarted",
            "AdminCommandSucceeded",
        ]

        httpserver.expect_oneshot_request(
            "/v2/databases", method=HttpMethod.POST
        ).respond_with_data("", status=201)
        with pytest.raises(UnexpectedDevOpsAPIResponseException):
            admin.create_database(
                "my_db", cloud_provider="GCP", region="us-east1", wait_until_active=False
            )

    @pytest.mark.describe("test of a database going to an unexpected state")
    def test_unexpected_state(self, httpserver: HTTPServer, admin: AstraDBAdmin) -> None:
        httpserver.expect_oneshot_request(
            "/v2/databases", method=HttpMethod.POST
        ).respond_with_data("", status=201, headers={"Location": TEST_DATABASE_ID})
        _expect_statuses(httpserver, ["PENDING", "ERROR"])
        events = _collect_events(admin)
        with pytest.raises(DevOpsAPIUnexpectedStateException) as exc:
            admin.create_database(
                "my_db", cloud_provider="GCP", region="us-east1", poll_interval_ms=10
            )
        assert exc.value.ok_states == ["ACTIVE", "INITIALIZING", "PENDING", "ASSOCIATING"]
        assert exc.value.raw_response is not None
        assert exc.value.raw_response["status"] == "ERROR"
        assert [ev.name for ev in events] == [
            "AdminCommandStarted",
            "AdminCommandPolling",
            "AdminCommandFailed",
        ]

    @pytest.mark.describe("test of a long-running operation timing out")
    def test_polling_timeout(self, httpserver: HTTPServer, admin: AstraDBAdmin) -> None:
        httpserver.expect_oneshot_request(
            f"{DB_PATH}/terminate", method=HttpMethod.POST
        ).respond_with_data("", status=202)
        httpserver.expect_request(DB_PATH, method=HttpMethod.GET).respond_with_json(
            _db_status("TERMINATING")
        )
        with pytest.raises(DevOpsAPITimeoutException) as exc:
            admin.drop_database(TEST_DATABASE_ID, poll_interval_ms=100, timeout_ms=350)
        assert exc.value.timed_out_categories == ("database_admin_timeout_ms",)

    @pytest.mark.describe("test of database termination")
    def test_drop_database(self, httpserver: HTTPServer, admin: AstraDBAdmin) -> None:
        httpserver.expect_oneshot_request(
            f"{DB_PATH}/terminate", method=HttpMethod.POST
        ).respond_with_data("", status=202)
        _expect_statuses(httpserver, ["TERMINATING", "TERMINATED"])
        admin.drop_database(TEST_DATABASE_ID, poll_interval_ms=10)
        httpserver.check_assertions()

    @pytest.mark.describe("test of DevOps API error responses")
    def test_error_responses(self, httpserver: HTTPServer, admin: AstraDBAdmin) -> None:
        httpserver.expect_oneshot_request(
            DB_PATH, method=HttpMethod.GET
        ).respond_with_json({"errors": [{"ID": 2000100, "message": "bad request"}]})
        with pytest.raises(DevOpsAPIResponseException) as exc:
            admin.database_info(TEST_DATABASE_ID)
        assert exc.value.text == "bad request"
        assert exc.value.error_descriptors[0].id == 2000100

        httpserver.expect_oneshot_request(
            DB_PATH, method=HttpMethod.GET
        ).respond_with_json({"errors": [{"message": "not found"}]}, status=404)
        with pytest.raises(DevOpsAPIHttpException):
            admin.database_info(TEST_DATABASE_ID)

    @pytest.mark.describe("test of admin objects outside Astra DB")
    def test_non_astra_environment(self) -> None:
        with pytest.raises(ValueError):
            AstraDBAdmin(token=TEST_TOKEN, environment="other")

    @pytest.mark.describe("test of database creation with polling, async")
    async def test_create_database_polling_async(
        self, httpserver: HTTPServer, admin: AstraDBAdmin
    ) -> None:
        httpserver.expect_oneshot_request(
            "/v2/databases", method=HttpMethod.POST
        ).respond_with_data("", status=201, headers={"Location": TEST_DATABASE_ID})
        _expect_statuses(httpserver, ["INITIALIZING", "INITIALIZING", "ACTIVE"])
        events = _collect_events(admin)
        db_admin = await admin.async_create_database(
            "my_db", cloud_provider="GCP", region="us-east1", poll_interval_ms=10
        )
        assert db_admin.id == TEST_DATABASE_ID
        assert [ev.name for ev in events].count("AdminCommandPolling") == 2

        httpserver.expect_oneshot_request(
            "/v2/databases", method=HttpMethod.GET
        ).respond_with_json([_db_status("ACTIVE")])
        assert len(await admin.async_list_databases()) == 1


class TestAstraDBDatabaseAdmin:
    @pytest.mark.describe("test of keyspace listing")
    def test_list_keyspaces(self, httpserver: HTTPServer, admin: AstraDBAdmin) -> None:
        db_admin = admin.get_database_admin(TEST_DATABASE_ID, region="us-east1")
        httpserver.expect_oneshot_request(
            DB_PATH, method=HttpMethod.GET
        ).respond_with_json(_db_status("ACTIVE", ["ks1", "ks2"]))
        assert db_admin.list_keyspaces() == ["ks1", "ks2"]

    @pytest.mark.describe("test of keyspace creation and deletion")
    def test_keyspace_lifecycle(
        self, httpserver: HTTPServer, admin: AstraDBAdmin
    ) -> None:
        db_admin = admin.get_database_admin(TEST_DATABASE_ID, region="us-east1")
        events = _collect_events(db_admin)
        admin_events = _collect_events(admin)

        httpserver.expect_oneshot_request(
            f"{DB_PATH}/keyspaces/new_ks", method=HttpMethod.POST
        ).respond_with_data("", status=201)
        _expect_statuses(httpserver, ["MAINTENANCE", "ACTIVE"])
        db_admin.create_keyspace("new_ks", poll_interval_ms=10)
        assert [ev.name for ev in events] == [
            "AdminCommandStarted",
            "AdminCommandPolling",
            "AdminCommandSucceeded",
        ]
        # events bubble up to the spawning admin
        assert [ev.name for ev in admin_events] == [ev.name for ev in events]

        httpserver.expect_oneshot_request(
            f"{DB_PATH}/keyspaces/new_ks", method=HttpMethod.DELETE
        ).respond_with_data("", status=202)
        _expect_statuses(httpserver, ["ACTIVE"])
        db_admin.drop_keyspace("new_ks", poll_interval_ms=10)
        httpserver.check_assertions()

    @pytest.mark.describe("test of deprecated namespace methods")
    def test_namespace_methods(
        self, httpserver: HTTPServer, admin: AstraDBAdmin
    ) -> None:
        db_admin = admin.get_database_admin(TEST_DATABASE_ID, region="us-east1")
        httpserver.expect_oneshot_request(
            f"{DB_PATH}/keyspaces/old_ns", method=HttpMethod.POST
        ).respond_with_data("", status=201)
        _expect_statuses(httpserver, ["ACTIVE"])
        with pytest.warns(DeprecatedWarning):
            db_admin.create_namespace("old_ns", poll_interval_ms=10)

        httpserver.expect_oneshot_request(
            f"{DB_PATH}/keyspaces/old_ns", method=HttpMethod.DELETE
        ).respond_with_data("", status=202)
        with pytest.warns(DeprecatedWarning):
            db_admin.drop_namespace("old_ns", wait_until_active=False)

    @pytest.mark.describe("test of keyspace operations, async")
    async def test_keyspace_lifecycle_async(
        self, httpserver: HTTPServer, admin: AstraDBAdmin
    ) -> None:
        db_admin = admin.get_database_admin(TEST_DATABASE_ID, region="us-east1")
        httpserver.expect_oneshot_request(
            f"{DB_PATH}/keyspaces/new_ks", method=HttpMethod.POST
        ).respond_with_data("", status=201)
        _expect_statuses(httpserver, ["MAINTENANCE", "ACTIVE"])
        await db_admin.async_create_keyspace("new_ks", poll_interval_ms=10)

        httpserver.expect_oneshot_request(
            DB_PATH, method=HttpMethod.GET
        ).respond_with_json(_db_status("ACTIVE", ["default_keyspace", "new_ks"]))
        assert await db_admin.async_list_keyspaces() == ["default_keyspace", "new_ks"]

    @pytest.mark.describe("test of databases spawned by a database admin")
    def test_get_database(self, admin: AstraDBAdmin) -> None:
        db_admin = admin.get_database_admin(TEST_DATABASE_ID, region="us-east1")
        database = db_admin.get_database(keyspace="the_ks")
        assert database.api_endpoint == db_admin.api_endpoint
        assert database.keyspace == "the_ks"
        assert database.id == TEST_DATABASE_ID
        async_database = admin.get_async_database(
            TEST_DATABASE_ID, region="us-east1"
        )
        assert async_database.keyspace == "default_keyspace"
