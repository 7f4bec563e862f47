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
Unit tests for the collection methods, run against a mock Data API
"""

from __future__ import annotations

import json

import pytest
from pytest_httpserver import HTTPServer
from werkzeug import Request, Response

from astra_dataapi import AsyncDatabase, Database
from astra_dataapi.constants import ReturnDocument
from astra_dataapi.exceptions import (
    CollectionDeleteManyException,
    CollectionInsertManyException,
    CollectionNotFoundException,
    CollectionUpdateManyException,
    TooManyDocumentsToCountException,
    UnexpectedDataAPIResponseException,
)
from astra_dataapi.utils.request_tools import HttpMethod

from ..conftest import TEST_COLLECTION, collection_path


def _insert_many_handler(request: Request) -> Response:
    """
    Reply to insertMany as the API does: documents with a "$malformed" field
    are rejected; in ordered mode, those after a rejection are skipped.
    """
    im_payload = json.loads(request.data)["insertMany"]
    ordered = im_payload["options"]["ordered"]
    document_responses: list[dict[str, object]] = []
    errors: list[dict[str, str]] = []
    for document in im_payload["documents"]:
        if errors and ordered:
            document_responses.append({"_id": document["_id"], "status": "SKIPPED"})
        elif "$malformed" in document:
            document_responses.append(
                {"_id": document["_id"], "status": "ERROR", "errorsIdx": len(errors)}
            )
            errors.append(
                {
                    "message": "Document field name invalid",
                    "errorCode": "SHRED_DOC_KEY_NAME_VIOLATION",
                }
            )
        else:
            document_responses.append({"_id": document["_id"], "status": "OK"})
    body = {
        "status": {"documentResponses": document_responses},
        **({"errors": errors} if errors else {}),
    }
    return Response(json.dumps(body), content_type="application/json")


def _hundred_documents_sixtieth_malformed() -> list[dict[str, object]]:
    documents: list[dict[str, object]] = [{"_id": f"d{i}"} for i in range(100)]
    documents[59] = {"_id": "d59", "$malformed": True}
    return documents


class TestCollection:
    @pytest.mark.describe("test of collection insert_one")
    def test_insert_one(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={"insertOne": {"document": {"_id": "z", "a": 1}}},
        ).respond_with_json({"status": {"insertedIds": ["z"]}})
        result = collection.insert_one({"_id": "z", "a": 1})
        assert result.inserted_id == "z"
        assert result.raw_results == [{"status": {"insertedIds": ["z"]}}]

    @pytest.mark.describe("test of collection insert_one with a faulty response")
    def test_insert_one_faulty(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {}})
        with pytest.raises(UnexpectedDataAPIResponseException):
            collection.insert_one({"a": 1})

    @pytest.mark.describe("test of collection insert_many, ordered, with chunks")
    def test_insert_many_ordered(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        documents = [{"_id": f"d{i}"} for i in range(5)]
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "insertMany": {
                    "documents": documents[:3],
                    "options": {"ordered": True, "returnDocumentResponses": True},
                }
            },
        ).respond_with_json(
            {
                "status": {
                    "documentResponses": [
                        {"_id": doc["_id"], "status": "OK"} for doc in documents[:3]
                    ]
                }
            }
        )
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "insertMany": {
                    "documents": documents[3:],
                    "options": {"ordered": True, "returnDocumentResponses": True},
                }
            },
        ).respond_with_json(
            {
                "status": {
                    "documentResponses": [
                        {"_id": doc["_id"], "status": "OK"} for doc in documents[3:]
                    ]
                }
            }
        )
        result = collection.insert_many(documents, ordered=True, chunk_size=3)
        assert result.inserted_ids == ["d0", "d1", "d2", "d3", "d4"]
        assert len(result.raw_results) == 2
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection insert_many with a failing chunk")
    def test_insert_many_failure(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json(
            {
                "status": {
                    "documentResponses": [
                        {"_id": "d0", "status": "OK"},
                        {"_id": "d1", "status": "ERROR", "errorsIdx": 0},
                    ]
                },
                "errors": [
                    {"message": "Duplicate id", "errorCode": "DOCUMENT_ALREADY_EXISTS"}
                ],
            }
        )
        with pytest.raises(CollectionInsertManyException) as exc_info:
            collection.insert_many([{"_id": "d0"}, {"_id": "d1"}], concurrency=1)
        assert exc_info.value.inserted_ids == ["d0"]
        assert len(exc_info.value.detailed_error_descriptors) == 1
        descriptor = exc_info.value.detailed_error_descriptors[0]
        assert descriptor.error_descriptors[0].error_code == "DOCUMENT_ALREADY_EXISTS"

    @pytest.mark.describe("test of collection insert_many, invalid settings")
    def test_insert_many_invalid_settings(self, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        with pytest.raises(ValueError):
            collection.insert_many([{"a": 1}], ordered=True, concurrency=4)

    @pytest.mark.describe("test of collection count_documents")
    def test_count_documents(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={"countDocuments": {"filter": {"f": 1}}},
        ).respond_with_json({"status": {"count": 7}})
        assert collection.count_documents({"f": 1}, upper_bound=10) == 7

        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {"count": 7}})
        with pytest.raises(TooManyDocumentsToCountException) as exc_info:
            collection.count_documents({}, upper_bound=5)
        assert exc_info.value.server_max_count_exceeded is False

        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {"count": 1000, "moreData": True}})
        with pytest.raises(TooManyDocumentsToCountException) as exc_info:
            collection.count_documents({}, upper_bound=5000)
        assert exc_info.value.server_max_count_exceeded is True

        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {}})
        with pytest.raises(UnexpectedDataAPIResponseException):
            collection.count_documents({}, upper_bound=5000)

    @pytest.mark.describe("test of collection find_one")
    def test_find_one(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "findOne": {
                    "filter": {"name": "x"},
                    "projection": {"name": True},
                    "sort": {"age": -1},
                }
            },
        ).respond_with_json({"data": {"document": {"_id": "d1", "name": "x"}}})
        document = collection.find_one(
            {"name": "x"}, projection=["name"], sort={"age": -1}
        )
        assert document == {"_id": "d1", "name": "x"}

        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"data": {"document": None}})
        assert collection.find_one({"name": "y"}) is None

        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={"findOne": {"filter": {}}},
        ).respond_with_json({"data": {}})
        with pytest.raises(UnexpectedDataAPIResponseException):
            collection.find_one({})
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection delete_many looping on moreData")
    def test_delete_many(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        for deleted_count, more_data in [(20, True), (20, True), (3, False)]:
            httpserver.expect_oneshot_request(
                collection_path(),
                method=HttpMethod.POST,
                json={"deleteMany": {"filter": {"seq": {"$lt": 100}}}},
            ).respond_with_json(
                {"status": {"deletedCount": deleted_count, "moreData": more_data}}
            )
        result = collection.delete_many({"seq": {"$lt": 100}})
        assert result.deleted_count == 43
        assert len(result.raw_results) == 3
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection delete_many with a failure")
    def test_delete_many_failure(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {"deletedCount": 20, "moreData": True}})
        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json(
            {
                "status": {"deletedCount": 5},
                "errors": [{"message": "Overloaded", "errorCode": "SERVER_BUSY"}],
            }
        )
        with pytest.raises(CollectionDeleteManyException) as exc_info:
            collection.delete_many({})
        assert exc_info.value.partial_result.deleted_count == 25
        assert len(exc_info.value.partial_result.raw_results) == 1
        assert "Overloaded" in str(exc_info.value)

    @pytest.mark.describe("test of collection update_many with pagination")
    def test_update_many(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "updateMany": {
                    "filter": {"c": "red"},
                    "update": {"$set": {"hot": True}},
                    "options": {"upsert": False},
                }
            },
        ).respond_with_json(
            {
                "status": {
                    "matchedCount": 20,
                    "modifiedCount": 18,
                    "nextPageState": "next",
                }
            }
        )
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "updateMany": {
                    "filter": {"c": "red"},
                    "update": {"$set": {"hot": True}},
                    "options": {"upsert": False, "pageState": "next"},
                }
            },
        ).respond_with_json({"status": {"matchedCount": 4, "modifiedCount": 4}})
        result = collection.update_many({"c": "red"}, {"$set": {"hot": True}})
        assert result.update_info == {
            "n": 24,
            "updatedExisting": True,
            "ok": 1.0,
            "nModified": 22,
        }
        assert len(result.raw_results) == 2
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection update_many with upsert")
    def test_update_many_upsert(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "updateMany": {
                    "filter": {"c": "gold"},
                    "update": {"$set": {"hot": True}},
                    "options": {"upsert": True},
                }
            },
        ).respond_with_json(
            {"status": {"matchedCount": 0, "modifiedCount": 0, "upsertedId": "u1"}}
        )
        result = collection.update_many(
            {"c": "gold"}, {"$set": {"hot": True}}, upsert=True
        )
        assert result.update_info == {
            "n": 1,
            "updatedExisting": False,
            "ok": 1.0,
            "nModified": 0,
            "upserted": "u1",
        }

    @pytest.mark.describe("test of collection update_many with a failure")
    def test_update_many_failure(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json(
            {
                "status": {
                    "matchedCount": 10,
                    "modifiedCount": 10,
                    "nextPageState": "next",
                }
            }
        )
        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json(
            {
                "status": {"matchedCount": 2, "modifiedCount": 2},
                "errors": [{"message": "Overloaded", "errorCode": "SERVER_BUSY"}],
            }
        )
        with pytest.raises(CollectionUpdateManyException) as exc_info:
            collection.update_many({}, {"$inc": {"n": 1}})
        partial_result = exc_info.value.partial_result
        assert partial_result.update_info["nModified"] == 12
        assert len(partial_result.raw_results) == 1

    @pytest.mark.describe("test of collection drop")
    def test_drop(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(collection=None),
            method=HttpMethod.POST,
            json={"deleteCollection": {"name": TEST_COLLECTION}},
        ).respond_with_json({"status": {"ok": 1}})
        collection.drop()
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection properties and equality")
    def test_properties(self, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        assert collection.name == TEST_COLLECTION
        assert collection.keyspace == "ks"
        assert collection.full_name == "ks.coll"
        assert collection.database == database
        assert collection == database[TEST_COLLECTION]
        assert collection != database.get_collection("other_coll")

    @pytest.mark.describe("test of collection insert_many of 100, one malformed")
    def test_insert_many_one_malformed(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_handler(_insert_many_handler)
        documents = _hundred_documents_sixtieth_malformed()

        with pytest.raises(CollectionInsertManyException) as ordered_exc:
            collection.insert_many(documents, ordered=True)
        assert ordered_exc.value.inserted_ids == [f"d{i}" for i in range(59)]
        assert len(ordered_exc.value.partial_result.raw_results) == 2
        assert len(httpserver.log) == 2

        with pytest.raises(CollectionInsertManyException) as unordered_exc:
            collection.insert_many(documents, ordered=False)
        unordered_ids = unordered_exc.value.inserted_ids
        assert len(unordered_ids) == 99
        assert set(unordered_ids) == {f"d{i}" for i in range(100) if i != 59}
        assert len(unordered_exc.value.detailed_error_descriptors) == 1
        error_descriptor = unordered_exc.value.detailed_error_descriptors[0]
        assert (
            error_descriptor.error_descriptors[0].error_code
            == "SHRED_DOC_KEY_NAME_VIOLATION"
        )

    @pytest.mark.describe("test of collection update_one")
    def test_update_one(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "updateOne": {
                    "filter": {"c": "red"},
                    "update": {"$inc": {"n": 1}},
                    "sort": {"n": -1},
                    "options": {"upsert": False},
                }
            },
        ).respond_with_json({"status": {"matchedCount": 1, "modifiedCount": 1}})
        result = collection.update_one(
            {"c": "red"}, {"$inc": {"n": 1}}, sort={"n": -1}
        )
        assert result.update_info == {
            "n": 1,
            "updatedExisting": True,
            "ok": 1.0,
            "nModified": 1,
        }
        assert len(result.raw_results) == 1

        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "updateOne": {
                    "filter": {},
                    "update": {"$set": {"z": 0}},
                    "options": {"upsert": True},
                }
            },
        ).respond_with_json(
            {"status": {"matchedCount": 0, "modifiedCount": 0, "upsertedId": "u9"}}
        )
        result = collection.update_one({}, {"$set": {"z": 0}}, upsert=True)
        assert result.update_info["upserted"] == "u9"
        assert result.update_info["n"] == 1

        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"data": {}})
        with pytest.raises(UnexpectedDataAPIResponseException):
            collection.update_one({}, {"$set": {"z": 0}})
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection find_one_and_update")
    def test_find_one_and_update(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "findOneAndUpdate": {
                    "filter": {"_id": "d1"},
                    "update": {"$set": {"title": "Mr."}},
                    "projection": {"title": True},
                    "options": {"returnDocument": "after", "upsert": False},
                }
            },
        ).respond_with_json(
            {
                "data": {"document": {"_id": "d1", "title": "Mr."}},
                "status": {"matchedCount": 1, "modifiedCount": 1},
            }
        )
        document = collection.find_one_and_update(
            {"_id": "d1"},
            {"$set": {"title": "Mr."}},
            projection=["title"],
            return_document=ReturnDocument.AFTER,
        )
        assert document == {"_id": "d1", "title": "Mr."}

        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "findOneAndUpdate": {
                    "filter": {"_id": "nope"},
                    "update": {"$set": {"title": "Mr."}},
                    "sort": {"age": 1},
                    "options": {"returnDocument": "before", "upsert": True},
                }
            },
        ).respond_with_json(
            {
                "data": {"document": None},
                "status": {"matchedCount": 0, "modifiedCount": 0, "upsertedId": "u"},
            }
        )
        assert (
            collection.find_one_and_update(
                {"_id": "nope"},
                {"$set": {"title": "Mr."}},
                sort={"age": 1},
                upsert=True,
            )
            is None
        )

        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {"matchedCount": 0}})
        with pytest.raises(UnexpectedDataAPIResponseException):
            collection.find_one_and_update({}, {"$set": {"title": "Mr."}})
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection replace_one and find_one_and_replace")
    def test_replace(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "findOneAndReplace": {
                    "filter": {"Marco": {"$exists": True}},
                    "replacement": {"Buda": "Pest"},
                    "options": {"upsert": False},
                }
            },
        ).respond_with_json(
            {
                "data": {"document": {"_id": "m", "Marco": "Polo"}},
                "status": {"matchedCount": 1, "modifiedCount": 1},
            }
        )
        result = collection.replace_one({"Marco": {"$exists": True}}, {"Buda": "Pest"})
        assert result.update_info == {
            "n": 1,
            "updatedExisting": True,
            "ok": 1.0,
            "nModified": 1,
        }

        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {"matchedCount": 0, "modifiedCount": 0}})
        with pytest.raises(UnexpectedDataAPIResponseException):
            collection.replace_one({"a": 1}, {"b": 2})

        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "findOneAndReplace": {
                    "filter": {"_id": "rule1"},
                    "replacement": {"text": "some animals are more equal!"},
                    "projection": {"_id": False},
                    "sort": {"v": 1},
                    "options": {"returnDocument": "before", "upsert": False},
                }
            },
        ).respond_with_json(
            {
                "data": {"document": {"text": "all animals are equal"}},
                "status": {"matchedCount": 1, "modifiedCount": 1},
            }
        )
        document = collection.find_one_and_replace(
            {"_id": "rule1"},
            {"text": "some animals are more equal!"},
            projection={"_id": False},
            sort={"v": 1},
        )
        assert document == {"text": "all animals are equal"}
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection delete_one and find_one_and_delete")
    def test_delete_one(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={"deleteOne": {"filter": {"seq": 1}, "sort": {"seq": -1}}},
        ).respond_with_json({"status": {"deletedCount": 1}})
        result = collection.delete_one({"seq": 1}, sort={"seq": -1})
        assert result.deleted_count == 1
        assert len(result.raw_results) == 1

        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {}})
        with pytest.raises(UnexpectedDataAPIResponseException):
            collection.delete_one({"seq": 1})

        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "findOneAndDelete": {
                    "filter": {"species": {"$ne": "frog"}},
                    "projection": {"species": True},
                }
            },
        ).respond_with_json(
            {
                "data": {"document": {"_id": "s", "species": "swan"}},
                "status": {"deletedCount": 1},
            }
        )
        document = collection.find_one_and_delete(
            {"species": {"$ne": "frog"}}, projection=["species"]
        )
        assert document == {"_id": "s", "species": "swan"}

        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {"deletedCount": 0}})
        assert collection.find_one_and_delete({"species": "unicorn"}) is None

        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {"deletedCount": 1}})
        with pytest.raises(UnexpectedDataAPIResponseException):
            collection.find_one_and_delete({})
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection estimated_document_count")
    def test_estimated_document_count(
        self, httpserver: HTTPServer, database: Database
    ) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={"estimatedDocumentCount": {}},
        ).respond_with_json({"status": {"count": 35700}})
        assert collection.estimated_document_count() == 35700

        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {}})
        with pytest.raises(UnexpectedDataAPIResponseException):
            collection.estimated_document_count()
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection options")
    def test_options(self, httpserver: HTTPServer, database: Database) -> None:
        collection = database.get_collection(TEST_COLLECTION)
        listing = {
            "status": {
                "collections": [
                    {"name": "other_coll", "options": {}},
                    {
                        "name": TEST_COLLECTION,
                        "options": {"vector": {"dimension": 3, "metric": "cosine"}},
                    },
                ]
            }
        }
        httpserver.expect_oneshot_request(
            collection_path(collection=None),
            method=HttpMethod.POST,
            json={"findCollections": {"options": {"explain": True}}},
        ).respond_with_json(listing)
        assert collection.options() == {
            "vector": {"dimension": 3, "metric": "cosine"}
        }

        httpserver.expect_oneshot_request(
            collection_path(collection=None), method=HttpMethod.POST
        ).respond_with_json(listing)
        assert database.get_collection("other_coll").options() == {}

        httpserver.expect_oneshot_request(
            collection_path(collection=None), method=HttpMethod.POST
        ).respond_with_json(listing)
        with pytest.raises(CollectionNotFoundException) as exc_info:
            database.get_collection("missing").options()
        assert exc_info.value.collection_name == "missing"
        httpserver.check_assertions()


class TestAsyncCollection:
    @pytest.mark.describe("test of collection insert_one, async")
    async def test_insert_one_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={"insertOne": {"document": {"_id": "z"}}},
        ).respond_with_json({"status": {"insertedIds": ["z"]}})
        result = await collection.insert_one({"_id": "z"})
        assert result.inserted_id == "z"

    @pytest.mark.describe("test of collection insert_many, async")
    async def test_insert_many_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json(
            {
                "status": {
                    "documentResponses": [
                        {"_id": "d0", "status": "OK"},
                        {"_id": "d1", "status": "OK"},
                    ]
                }
            }
        )
        result = await collection.insert_many(
            [{"_id": "d0"}, {"_id": "d1"}], concurrency=1
        )
        assert result.inserted_ids == ["d0", "d1"]

    @pytest.mark.describe("test of collection count_documents, async")
    async def test_count_documents_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {"count": 3}})
        assert await collection.count_documents({}, upper_bound=10) == 3

    @pytest.mark.describe("test of collection find_one, async")
    async def test_find_one_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={"findOne": {"filter": {"_id": "d1"}}},
        ).respond_with_json({"data": {"document": {"_id": "d1"}}})
        assert await collection.find_one({"_id": "d1"}) == {"_id": "d1"}

        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={"findOne": {"filter": {}}},
        ).respond_with_json({"data": {"document": {"_id": "d0"}}})
        assert await collection.find_one() == {"_id": "d0"}
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection delete_many, async")
    async def test_delete_many_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {"deletedCount": 20, "moreData": True}})
        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {"deletedCount": 2}})
        result = await collection.delete_many({})
        assert result.deleted_count == 22

    @pytest.mark.describe("test of collection update_many, async")
    async def test_update_many_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "updateMany": {
                    "filter": {},
                    "update": {"$set": {"z": 0}},
                    "options": {"upsert": False},
                }
            },
        ).respond_with_json(
            {"status": {"matchedCount": 5, "modifiedCount": 5, "nextPageState": "n"}}
        )
        httpserver.expect_oneshot_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_json({"status": {"matchedCount": 1, "modifiedCount": 0}})
        result = await collection.update_many({}, {"$set": {"z": 0}})
        assert result.update_info["n"] == 6
        assert result.update_info["nModified"] == 5

    @pytest.mark.describe("test of collection drop, async")
    async def test_drop_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(collection=None),
            method=HttpMethod.POST,
            json={"deleteCollection": {"name": TEST_COLLECTION}},
        ).respond_with_json({"status": {"ok": 1}})
        await collection.drop()
        httpserver.check_assertions()

    @pytest.mark.describe("test of insert_many, one of 100 malformed, async")
    async def test_insert_many_one_malformed_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        httpserver.expect_request(
            collection_path(), method=HttpMethod.POST
        ).respond_with_handler(_insert_many_handler)
        documents = _hundred_documents_sixtieth_malformed()

        with pytest.raises(CollectionInsertManyException) as ordered_exc:
            await collection.insert_many(documents, ordered=True)
        assert ordered_exc.value.inserted_ids == [f"d{i}" for i in range(59)]

        with pytest.raises(CollectionInsertManyException) as unordered_exc:
            await collection.insert_many(documents, ordered=False)
        assert len(unordered_exc.value.inserted_ids) == 99
        assert "d59" not in unordered_exc.value.inserted_ids

    @pytest.mark.describe("test of collection single-document operations, async")
    async def test_single_document_operations_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "updateOne": {
                    "filter": {"a": 1},
                    "update": {"$set": {"b": 2}},
                    "options": {"upsert": False},
                }
            },
        ).respond_with_json({"status": {"matchedCount": 1, "modifiedCount": 0}})
        update_result = await collection.update_one({"a": 1}, {"$set": {"b": 2}})
        assert update_result.update_info["updatedExisting"] is False

        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "findOneAndUpdate": {
                    "filter": {"a": 1},
                    "update": {"$set": {"b": 3}},
                    "options": {"returnDocument": "after", "upsert": True},
                }
            },
        ).respond_with_json({"data": {"document": {"_id": "x", "a": 1, "b": 3}}})
        assert await collection.find_one_and_update(
            {"a": 1},
            {"$set": {"b": 3}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        ) == {"_id": "x", "a": 1, "b": 3}

        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "findOneAndReplace": {
                    "filter": {"a": 1},
                    "replacement": {"c": 4},
                    "options": {"upsert": True},
                }
            },
        ).respond_with_json(
            {
                "data": {"document": None},
                "status": {"matchedCount": 0, "modifiedCount": 0, "upsertedId": "y"},
            }
        )
        replace_result = await collection.replace_one({"a": 1}, {"c": 4}, upsert=True)
        assert replace_result.update_info["upserted"] == "y"

        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={
                "findOneAndReplace": {
                    "filter": {"c": 4},
                    "replacement": {"c": 5},
                    "options": {"returnDocument": "before", "upsert": False},
                }
            },
        ).respond_with_json({"data": {"document": {"_id": "y", "c": 4}}})
        assert await collection.find_one_and_replace({"c": 4}, {"c": 5}) == {
            "_id": "y",
            "c": 4,
        }

        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={"deleteOne": {"filter": {"c": 5}}},
        ).respond_with_json({"status": {"deletedCount": 0}})
        assert (await collection.delete_one({"c": 5})).deleted_count == 0

        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={"findOneAndDelete": {"filter": {}, "sort": {"c": 1}}},
        ).respond_with_json({"data": {"document": {"_id": "y", "c": 5}}})
        assert await collection.find_one_and_delete({}, sort={"c": 1}) == {
            "_id": "y",
            "c": 5,
        }

        httpserver.expect_oneshot_request(
            collection_path(),
            method=HttpMethod.POST,
            json={"estimatedDocumentCount": {}},
        ).respond_with_json({"status": {"count": 12}})
        assert await collection.estimated_document_count() == 12
        httpserver.check_assertions()

    @pytest.mark.describe("test of collection options, async")
    async def test_options_async(
        self, httpserver: HTTPServer, async_database: AsyncDatabase
    ) -> None:
        collection = async_database.get_collection(TEST_COLLECTION)
        httpserver.expect_oneshot_request(
            collection_path(collection=None),
            method=HttpMethod.POST,
            json={"findCollections": {"options": {"explain": True}}},
        ).respond_with_json(
            {"status": {"collections": [{"name": TEST_COLLECTION}]}}
        )
        assert await collection.options() == {}

        httpserver.expect_oneshot_request(
            collection_path(collection=None), method=HttpMethod.POST
        ).respond_with_json({"status": {"collections": []}})
        with pytest.raises(CollectionNotFoundException):
            await collection.options()

        httpserver.expect_oneshot_request(
            collection_path(collection=None), method=HttpMethod.POST
        ).respond_with_json({"status": {}})
        with pytest.raises(UnexpectedDataAPIResponseException):
            await collection.options()
        httpserver.check_assertions()
