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
Unit tests for the chunked insertion of documents
"""

from __future__ import annotations

from typing import Any

import pytest

from astra_dataapi.commands import DataAPICommand, InsertManyCommand
from astra_dataapi.data.insertion import (
    async_insert_many_ordered,
    async_insert_many_unordered,
    chunk_documents,
    insert_many_ordered,
    insert_many_unordered,
    inserted_ids_from_response,
)
from astra_dataapi.exceptions import (
    CollectionInsertManyException,
    DataAPIResponseException,
    DataAPITimeoutException,
)
from astra_dataapi.ids import UUID

DOCUMENTS = [
    {"_id": i, "bad": True} if i == 59 else {"_id": i} for i in range(100)
]


class FakeDataAPI:
    """
    Responds to insertMany commands as the Data API would, with one
    document response per document: a document marked "bad" fails, and
    with ordered insertions the following ones are skipped.
    """

    def __init__(self) -> None:
        self.commands: list[InsertManyCommand] = []

    def execute(self, command: DataAPICommand) -> dict[str, Any]:
        assert isinstance(command, InsertManyCommand)
        self.commands.append(command)
        document_responses: list[dict[str, Any]] = []
        failed = False
        for document in command.documents:
            if failed and command.ordered:
                document_responses.append({"_id": document["_id"], "status": "SKIPPED"})
            elif document.get("bad"):
                failed = True
                document_responses.append(
                    {"_id": document["_id"], "status": "ERROR", "errorsIdx": 0}
                )
            else:
                document_responses.append({"_id": document["_id"], "status": "OK"})
        response: dict[str, Any] = {"status": {"documentResponses": document_responses}}
        if failed:
            response["errors"] = [
                {"errorCode": "SHRED_BAD_DOCUMENT", "message": "Bad document"}
            ]
            raise DataAPIResponseException.from_response(
                command=command.to_payload(), raw_response=response
            )
        return response

    async def async_execute(self, command: DataAPICommand) -> dict[str, Any]:
        return self.execute(command)


class TestInsertion:
    @pytest.mark.describe("test of document chunking")
    def test_chunking(self) -> None:
        chunks = chunk_documents(DOCUMENTS, 30)
        assert [len(chunk) for chunk in chunks] == [30, 30, 30, 10]
        assert chunk_documents([], 10) == []
        with pytest.raises(ValueError):
            chunk_documents(DOCUMENTS, 0)

    @pytest.mark.describe("test of inserted ids extraction")
    def test_inserted_ids_from_response(self) -> None:
        an_id = "8ff9b2c6-4b39-11ef-9e2f-5a0b0c0d0e0f"
        assert inserted_ids_from_response(
            {
                "status": {
                    "documentResponses": [
                        {"_id": {"$uuid": an_id}, "status": "OK"},
                        {"_id": 2, "status": "ERROR"},
                    ]
                }
            }
        ) == [UUID(an_id)]
        assert inserted_ids_from_response({"status": {"insertedIds": [1, 2]}}) == [1, 2]
        assert inserted_ids_from_response({}) == []

    @pytest.mark.describe("test of ordered insertion with a failing document")
    def test_ordered_failure(self) -> None:
        fake_api = FakeDataAPI()
        with pytest.raises(CollectionInsertManyException) as exc:
            insert_many_ordered(DOCUMENTS, chunk_size=50, execute=fake_api.execute)
        assert exc.value.inserted_ids == list(range(59))
        assert len(exc.value.partial_result.raw_results) == 2
        assert len(exc.value.detailed_error_descriptors) == 1
        assert (
            exc.value.detailed_error_descriptors[0].error_descriptors[0].error_code
            == "SHRED_BAD_DOCUMENT"
        )
        assert len(fake_api.commands) == 2
        assert all(command.ordered for command in fake_api.commands)
        assert "SHRED_BAD_DOCUMENT" in str(exc.value)
        assert "[with 59 inserted ids]" in str(exc.value)

    @pytest.mark.describe("test of ordered insertion stopping at the failing chunk")
    def test_ordered_stops(self) -> None:
        fake_api = FakeDataAPI()
        with pytest.raises(CollectionInsertManyException) as exc:
            insert_many_ordered(DOCUMENTS, chunk_size=20, execute=fake_api.execute)
        assert exc.value.inserted_ids == list(range(59))
        # chunks beyond the failing one are never sent
        assert len(fake_api.commands) == 3

    @pytest.mark.describe("test of unordered insertion with a failing document")
    def test_unordered_failure(self) -> None:
        fake_api = FakeDataAPI()
        with pytest.raises(CollectionInsertManyException) as exc:
            insert_many_unordered(
                DOCUMENTS, chunk_size=50, concurrency=8, execute=fake_api.execute
            )
        assert sorted(exc.value.inserted_ids) == [i for i in range(100) if i != 59]
        assert len(exc.value.detailed_error_descriptors) == 1
        assert len(fake_api.commands) == 2
        assert not any(command.ordered for command in fake_api.commands)

    @pytest.mark.describe("test of successful insertions")
    def test_success(self) -> None:
        good_documents = [{"_id": i} for i in range(23)]
        result = insert_many_ordered(
            good_documents, chunk_size=10, execute=FakeDataAPI().execute
        )
        assert result.inserted_ids == list(range(23))
        assert result.inserted_count == 23
        assert len(result.raw_results) == 3

        result = insert_many_unordered(
            good_documents, chunk_size=5, concurrency=3, execute=FakeDataAPI().execute
        )
        assert sorted(result.inserted_ids) == list(range(23))
        assert len(result.raw_results) == 5

        empty_result = insert_many_unordered(
            [], chunk_size=5, concurrency=3, execute=FakeDataAPI().execute
        )
        assert empty_result.inserted_ids == []

    @pytest.mark.describe("test of unordered insertion with non-API errors")
    def test_unordered_other_errors(self) -> None:
        timeout_error = DataAPITimeoutException(
            text="timed out", timeout_type="read", endpoint=None, raw_payload=None
        )
        calls: list[int] = []

        def _execute(command: DataAPICommand) -> dict[str, Any]:
            assert isinstance(command, InsertManyCommand)
            calls.append(len(command.documents))
            if command.documents[0]["_id"] == 0:
                raise timeout_error
            return {"status": {"insertedIds": [d["_id"] for d in command.documents]}}

        with pytest.raises(DataAPITimeoutException) as exc:
            insert_many_unordered(
                [{"_id": i} for i in range(10)],
                chunk_size=5,
                concurrency=1,
                execute=_execute,
            )
        assert exc.value is timeout_error
        # all chunks are attempted anyway
        assert calls == [5, 5]
        with pytest.raises(ValueError):
            insert_many_unordered(
                DOCUMENTS, chunk_size=5, concurrency=0, execute=_execute
            )

    @pytest.mark.describe("test of ordered insertion, async")
    async def test_ordered_failure_async(self) -> None:
        fake_api = FakeDataAPI()
        with pytest.raises(CollectionInsertManyException) as exc:
            await async_insert_many_ordered(
                DOCUMENTS, chunk_size=50, execute=fake_api.async_execute
            )
        assert exc.value.inserted_ids == list(range(59))

    @pytest.mark.describe("test of unordered insertion, async")
    async def test_unordered_failure_async(self) -> None:
        fake_api = FakeDataAPI()
        with pytest.raises(CollectionInsertManyException) as exc:
            await async_insert_many_unordered(
                DOCUMENTS, chunk_size=10, concurrency=8, execute=fake_api.async_execute
            )
        assert sorted(exc.value.inserted_ids) == [i for i in range(100) if i != 59]
        assert len(fake_api.commands) == 10
