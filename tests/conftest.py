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
Main conftest for shared fixtures.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from blockbuster import BlockBuster, blockbuster_ctx
from pytest_httpserver import HTTPServer

from astra_dataapi import AsyncDatabase, DataAPIClient, Database
from astra_dataapi.admin import AstraDBAdmin

TEST_KEYSPACE = "ks"
TEST_COLLECTION = "coll"
TEST_TOKEN = "AstraCS:test-token"
TEST_DATABASE_ID = "01234567-89ab-cdef-0123-456789abcdef"


@pytest.fixture(autouse=True)
def blockbuster() -> Iterator[BlockBuster]:
    with blockbuster_ctx("astra_dataapi") as bb:
        # TODO: follow discussion in https://github.com/encode/httpx/discussions/3456
        bb.functions["os.stat"].can_block_in("httpx/_client.py", "_init_transport")
        yield bb


@pytest.fixture
def client() -> DataAPIClient:
    return DataAPIClient(environment="other")


@pytest.fixture
def database(httpserver: HTTPServer, client: DataAPIClient) -> Database:
    return client.get_database(
        httpserver.url_for("/"),
        token=TEST_TOKEN,
        keyspace=TEST_KEYSPACE,
    )


@pytest.fixture
def async_database(httpserver: HTTPServer, client: DataAPIClient) -> AsyncDatabase:
    return client.get_async_database(
        httpserver.url_for("/"),
        token=TEST_TOKEN,
        keyspace=TEST_KEYSPACE,
    )


@pytest.fixture
def admin(httpserver: HTTPServer) -> AstraDBAdmin:
    return AstraDBAdmin(token=TEST_TOKEN, dev_ops_url=httpserver.url_for("/"))


def collection_path(
    keyspace: str = TEST_KEYSPACE, collection: str | None = TEST_COLLECTION
) -> str:
    return "/".join(
        ["/api/json/v1", keyspace] + ([collection] if collection else [])
    )
