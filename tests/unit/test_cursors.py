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
Unit tests for the find cursors, run against a mock Data API
"""

from __future__ import annotations

import json
import time
from typing import Any

import pytest
from pytest_httpserver import HTTPServer
from werkzeug import Request, Response

from astra_dataapi import AsyncDatabase, Database
from astra_dataapi.data.cursors import CursorState
from astra_dataapi.exceptions import (
    CursorException,
    DataAPIResponseException,
    DataAPITimeoutException,
)
from astra_dataapi.utils.request_tools import HttpMethod

from ..conftest import TEST_COLLECTION, collection_path


def _docs(start: int, end: int) -> list[dict[str, Any]]:
    return [{"_id": f"d{i}", "seq": i} for i in range(start, end)]


def _expect_page(
    httpserver: HTTPServer,
    documents: list[dict[str, Any]],
    next_page_state: str | None,
    *,
    find_body: dict[str, Any] | None = None,
    status: dict[str, Any] | None = None,
) -> None:
    httpserver.expect_oneshot_request(
        collection_path(),
        method=HttpMethod.POST,
        **({"json": {"find": find_body}} if find_body is not None else {}),
    ).respond_with_json(
        {
            "data": {"documents": documents, "nextPageState": next_page_state},
            **({"status": status} if status is not None else {}),
        }
    )


class TestFindCursor:
    @pytest.mark.describe("test of cursor pagination with to_list")
    def test_pagination_to_list(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        _expect_page(
            httpserver,
            _docs(0, 20),
            "page2",
            find_body={"filter": {"age": {"$gt": 10}}},
        )
        _expect_page(
            httpserver,
            _docs(20, 25),
            None,
            find_body={
                "filter": {"age": {"$gt": 10}},
                "options": {"pageState": "page2"},
            },
        )
        cursor = collection.find({"age": {"$gt": 10}})
        assert cursor.state == CursorState.IDLE
        documents = cursor.to_list()
        assert [doc["seq"] for doc in documents] == list(range(25))
        assert cursor.state == CursorState.CLOSED
        assert cursor.consumed == 25
        httpserver.check_assertions()

        # a closed cursor yields nothing, and makes no requests
        assert cursor.to_list() == []
        assert not cursor.has_next()
        assert list(cursor) == []

    @pytest.mark.describe("test of cursor limit against page fetches")
    def test_limit(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        _expect_page(
            httpserver,
            _docs(0, 3),
            "more",
            find_body={"filter": {}, "options": {"limit": 3}},
        )
        cursor = collection.find({}).limit(3)
        assert [doc["seq"] for doc in cursor] == [0, 1, 2]
        assert cursor.state == CursorState.CLOSED
        assert len(httpserver.log) == 1

    @pytest.mark.describe("test of query options in the find command")
    def test_query_options(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        _expect_page(
            httpserver,
            _docs(0, 2),
            None,
            find_body={
                "filter": {"a": 1},
                "projection": {"seq": True},
                "sort": {"seq": -1},
                "options": {"limit": 5, "skip": 3, "includeSimilarity": True},
            },
        )
        cursor = (
            collection.find({"a": 1})
            .project(["seq"])
            .sort({"seq": -1})
            .skip(3)
            .batch_size(5)
            .include_similarity(True)
        )
        assert len(cursor.to_list()) == 2
        httpserver.check_assertions()

    @pytest.mark.describe("test of cursor state machine, rewind and clone")
    def test_rewind_clone(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        full_find_body = {
            "filter": {"z": 0},
            "projection": {"seq": True},
            "sort": {"seq": 1},
            "options": {"limit": 10, "skip": 2, "includeSimilarity": True},
        }
        cursor = collection.find(
            {"z": 0},
            projection=["seq"],
            sort={"seq": 1},
            skip=2,
            limit=10,
            include_similarity=True,
        ).map(lambda doc: doc["seq"])

        _expect_page(httpserver, _docs(0, 4), None, find_body=full_find_body)
        assert next(cursor) == 0
        assert cursor.state == CursorState.STARTED
        assert cursor.buffered_count == 3
        with pytest.raises(CursorException) as exc:
            cursor.limit(2)
        assert exc.value.cursor_state == "started"
        with pytest.raises(CursorException):
            cursor.map(str)

        cursor.rewind()
        assert cursor.state == CursorState.IDLE
        assert cursor.buffered_count == 0
        assert cursor.consumed == 0
        _expect_page(httpserver, _docs(0, 4), None, find_body=full_find_body)
        assert cursor.to_list() == [0, 1, 2, 3]

        # the clone keeps all query settings, but drops the mapping
        clone = cursor.clone()
        assert clone.state == CursorState.IDLE
        _expect_page(httpserver, _docs(0, 2), None, find_body=full_find_body)
        assert clone.to_list() == _docs(0, 2)
        assert len(httpserver.log) == 3
        httpserver.check_assertions()

    @pytest.mark.describe("test of sort vector retrieval")
    def test_sort_vector(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        # not requested: no API call is made
        plain_cursor = collection.find({}, sort={"$vector": [0.1, 0.2]})
        assert plain_cursor.get_sort_vector() is None
        assert len(httpserver.log) == 0

        sort = {"$vectorize": "query text"}
        _expect_page(
            httpserver,
            _docs(0, 2),
            "p2",
            find_body={
                "filter": {},
                "sort": sort,
                "options": {"includeSortVector": True},
            },
            status={"sortVector": [0.1, 0.2]},
        )
        _expect_page(
            httpserver,
            _docs(2, 3),
            None,
            find_body={
                "filter": {},
                "sort": sort,
                "options": {"includeSortVector": True, "pageState": "p2"},
            },
        )
        cursor = collection.find({}, sort=sort).include_sort_vector(True)
        assert cursor.get_sort_vector() == [0.1, 0.2]
        assert cursor.state == CursorState.IDLE
        assert cursor.buffered_count == 2
        assert cursor.get_sort_vector() == [0.1, 0.2]
        assert len(httpserver.log) == 1

        assert [doc["seq"] for doc in cursor] == [0, 1, 2]
        assert cursor.get_sort_vector() == [0.1, 0.2]
        httpserver.check_assertions()

    @pytest.mark.describe("test of resuming a cursor from a page state")
    def test_initial_page_state(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        _expect_page(
            httpserver,
            _docs(0, 2),
            "p2",
            find_body={"filter": {}, "options": {"limit": 2}},
        )
        first_cursor = collection.find({}, batch_size=2)
        assert first_cursor.next_page_state is None
        assert next(first_cursor) == _docs(0, 1)[0]
        page_state = first_cursor.next_page_state
        assert page_state == "p2"
        first_cursor.close()

        _expect_page(
            httpserver,
            _docs(2, 4),
            "p3",
            find_body={"filter": {}, "options": {"limit": 2, "pageState": "p2"}},
        )
        _expect_page(
            httpserver,
            _docs(4, 5),
            None,
            find_body={"filter": {}, "options": {"limit": 2, "pageState": "p3"}},
        )
        resumed = collection.find({}, batch_size=2, initial_page_state=page_state)
        assert [doc["seq"] for doc in resumed] == [2, 3, 4]
        assert resumed.next_page_state is None

        # rewinding goes back to the initial page state, not to the first page
        resumed.rewind()
        _expect_page(
            httpserver,
            _docs(2, 4),
            None,
            find_body={"filter": {}, "options": {"limit": 2, "pageState": "p2"}},
        )
        assert [doc["seq"] for doc in resumed.to_list()] == [2, 3]
        httpserver.check_assertions()

        with pytest.raises(CursorException):
            resumed.initial_page_state("p3")

    @pytest.mark.describe("test of the find timeout, per page and per to_list")
    def test_find_timeout(self, httpserver: HTTPServer, database: Database) -> None:
        def _slow_pages(request: Request) -> Response:
            time.sleep(0.4)
            options = request.get_json()["find"].get("options", {})
            if "pageState" in options:
                data = {"documents": _docs(1, 2), "nextPageState": None}
            else:
                data = {"documents": _docs(0, 1), "nextPageState": "p2"}
            return Response(
                json.dumps({"data": data}), content_type="application/json"
            )

        httpserver.expect_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_handler(_slow_pages)
        collection = database.get_collection(TEST_COLLECTION)

        # iterating: each page request gets the whole timeout
        assert [doc["seq"] for doc in collection.find({}, timeout_ms=600)] == [0, 1]

        # to_list: the same timeout bounds both page requests together
        with pytest.raises(DataAPITimeoutException):
            collection.find({}, timeout_ms=600).to_list()

        # unless to_list is given its own
        cursor = collection.find({}, timeout_ms=600)
        assert [doc["seq"] for doc in cursor.to_list(timeout_ms=3000)] == [0, 1]

    @pytest.mark.describe("test of has_next and buffer consumption")
    def test_has_next_consume_buffer(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        cursor = collection.find().map(lambda doc: doc["seq"] * 10)
        assert cursor.consume_buffer() == []
        assert len(httpserver.log) == 0

        _expect_page(httpserver, _docs(0, 5), "next")
        assert cursor.has_next()
        assert cursor.buffered_count == 5
        assert cursor.consume_buffer(2) == _docs(0, 2)
        assert cursor.consumed == 2
        assert len(httpserver.log) == 1
        with pytest.raises(ValueError):
            cursor.consume_buffer(-1)

        assert next(cursor) == 20
        cursor.close()
        assert cursor.state == CursorState.CLOSED
        assert cursor.consume_buffer() == []
        assert not cursor.has_next()

    @pytest.mark.describe("test of has_next on an exhausted cursor")
    def test_has_next_exhausted(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        _expect_page(httpserver, [], None)
        cursor = collection.find()
        assert not cursor.has_next()
        assert cursor.to_list() == []

    @pytest.mark.describe("test of map composition and mapping errors")
    def test_map(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        _expect_page(httpserver, _docs(0, 3), None)
        cursor = collection.find().map(lambda doc: doc["seq"]).map(lambda n: n + 100)
        assert cursor.to_list() == [100, 101, 102]

        def _failing(doc: dict[str, Any]) -> int:
            if doc["seq"] == 1:
                raise KeyError("no!")
            return doc["seq"]  # type: ignore[no-any-return]

        _expect_page(httpserver, _docs(0, 3), None)
        failing_cursor = collection.find().map(_failing)
        assert next(failing_cursor) == 0
        with pytest.raises(KeyError):
            next(failing_cursor)
        assert failing_cursor.state == CursorState.CLOSED

    @pytest.mark.describe("test of errors while fetching pages")
    def test_fetch_errors(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"errors": [{"message": "bad filter"}]})
        cursor = collection.find({"$bad": 1})
        with pytest.raises(DataAPIResponseException):
            cursor.to_list()
        assert cursor.state == CursorState.CLOSED

    @pytest.mark.describe("test of for_each with early stop")
    def test_for_each(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        _expect_page(httpserver, _docs(0, 5), "more")
        seen: list[int] = []

        def _visit(doc: dict[str, Any]) -> bool:
            seen.append(doc["seq"])
            return doc["seq"] < 2

        cursor = collection.find()
        cursor.for_each(_visit)
        assert seen == [0, 1, 2]
        assert cursor.state == CursorState.CLOSED

    @pytest.mark.describe("test of iteration closed early")
    def test_early_break(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        _expect_page(httpserver, _docs(0, 5), "more")
        with collection.find() as cursor:
            for doc in cursor:
                if doc["seq"] == 1:
                    break
            assert cursor.consumed == 2
        assert cursor.state == CursorState.CLOSED

    @pytest.mark.describe("test of distinct on a cursor")
    def test_distinct(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        _expect_page(
            httpserver,
            [{"tags": ["a", "b"]}, {"tags": ["b"]}, {"tags": ["a"]}],
            None,
            find_body={"filter": {}, "projection": {"tags": True}},
        )
        cursor = collection.find({}).map(lambda doc: doc["nope"])
        assert cursor.distinct("tags") == ["a", "b"]
        # the original cursor is untouched
        assert cursor.state == CursorState.IDLE
        httpserver.check_assertions()


class TestAsyncFindCursor:
    @pytest.mark.describe("test of cursor pagination, async")
    async def test_pagination_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        _expect_page(httpserver, _docs(0, 20), "page2")
        _expect_page(
            httpserver,
            _docs(20, 25),
            None,
            find_body={"filter": {}, "options": {"pageState": "page2"}},
        )
        cursor = collection.find({})
        documents = [doc async for doc in cursor]
        assert [doc["seq"] for doc in documents] == list(range(25))
        assert cursor.state == CursorState.CLOSED
        assert await cursor.to_list() == []

    @pytest.mark.describe("test of cursor methods, async")
    async def test_cursor_methods_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        _expect_page(
            httpserver,
            _docs(0, 3),
            "more",
            find_body={"filter": {}, "options": {"limit": 3}},
        )
        cursor = collection.find({}, limit=3).map(lambda doc: doc["seq"])
        assert await cursor.has_next()
        assert cursor.consume_buffer(1) == _docs(0, 1)
        assert await cursor.to_list() == [1, 2]

        _expect_page(
            httpserver,
            [{"tags": ["a", "b"]}, {"tags": ["b"]}, {"tags": ["a"]}],
            None,
            find_body={"filter": {}, "projection": {"tags": True}},
        )
        assert await collection.distinct("tags") == ["a", "b"]

        _expect_page(httpserver, _docs(0, 5), None)
        seen: list[int] = []
        await collection.find().for_each(lambda doc: seen.append(doc["seq"]))
        assert seen == [0, 1, 2, 3, 4]

    @pytest.mark.describe("test of sort vector and initial page state, async")
    async def test_sort_vector_page_state_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        assert await collection.find({}).get_sort_vector() is None
        assert len(httpserver.log) == 0

        sort = {"$vector": [0.3, 0.4]}
        _expect_page(
            httpserver,
            _docs(4, 6),
            None,
            find_body={
                "filter": {},
                "sort": sort,
                "options": {"includeSortVector": True, "pageState": "p3"},
            },
            status={"sortVector": [0.3, 0.4]},
        )
        cursor = (
            collection.find({}, sort=sort)
            .include_sort_vector(True)
            .initial_page_state("p3")
        )
        assert await cursor.get_sort_vector() == [0.3, 0.4]
        assert cursor.state == CursorState.IDLE
        assert [doc["seq"] async for doc in cursor] == [4, 5]
        assert await cursor.get_sort_vector() == [0.3, 0.4]
        assert len(httpserver.log) == 1
        httpserver.check_assertions()

    @pytest.mark.describe("test of cursor rewind and clone, async")
    async def test_rewind_clone_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        full_find_body = {
            "filter": {"z": 0},
            "projection": {"seq": True},
            "sort": {"seq": -1},
            "options": {"limit": 3, "skip": 1, "includeSimilarity": False},
        }
        cursor = collection.find(
            {"z": 0},
            projection={"seq": True},
            sort={"seq": -1},
            skip=1,
            limit=3,
            include_similarity=False,
        ).map(lambda doc: doc["seq"])
        _expect_page(httpserver, _docs(0, 3), None, find_body=full_find_body)
        assert await cursor.to_list() == [0, 1, 2]

        cursor.rewind()
        _expect_page(httpserver, _docs(0, 3), None, find_body=full_find_body)
        assert await cursor.to_list() == [0, 1, 2]

        _expect_page(httpserver, _docs(0, 1), None, find_body=full_find_body)
        assert await cursor.clone().to_list() == _docs(0, 1)
        httpserver.check_assertions()
