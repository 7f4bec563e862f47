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

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Tuple

from astra_dataapi.commands import DataAPICommand, InsertManyCommand
from astra_dataapi.constants import DocumentType
from astra_dataapi.exceptions import (
    CollectionInsertManyException,
    DataAPIDetailedErrorDescriptor,
    DataAPIResponseException,
)
from astra_dataapi.results import CollectionInsertManyResult
from astra_dataapi.serdes import deserialize_value

logger = logging.getLogger(__name__)

CommandExecutor = Callable[[DataAPICommand], "dict[str, Any]"]
AsyncCommandExecutor = Callable[[DataAPICommand], Awaitable["dict[str, Any]"]]
ChunkOutcome = Tuple[Optional["dict[str, Any]"], Optional[Exception]]


def chunk_documents(
    documents: Iterable[DocumentType], chunk_size: int
) -> list[list[DocumentType]]:
    if chunk_size < 1:
        raise ValueError("The chunk size must be a positive integer.")
    _documents = list(documents)
    return [
        _documents[i : i + chunk_size] for i in range(0, len(_documents), chunk_size)
    ]


def inserted_ids_from_response(response: dict[str, Any]) -> list[Any]:
    """
    Read the IDs of the documents actually inserted from an insertMany
    response (a successful one, or the raw response attached to an error).
    """
    status = response.get("status") or {}
    document_responses = status.get("documentResponses")
    if document_responses is not None:
        inserted_ids = [
            document_response["_id"]
            for document_response in document_responses
            if document_response.get("status") == "OK"
        ]
    else:
        inserted_ids = list(status.get("insertedIds") or [])
    return [deserialize_value([], inserted_id, {}) for inserted_id in inserted_ids]


def _accumulate(
    outcomes: List[ChunkOutcome],
) -> CollectionInsertManyResult:
    # any error other than an API response reporting errors is raised as is
    inserted_ids: list[Any] = []
    raw_results: list[dict[str, Any]] = []
    detailed_error_descriptors: list[DataAPIDetailedErrorDescriptor] = []
    first_other_exception: Exception | None = None
    for response, exception in outcomes:
        if exception is None and response is not None:
            raw_results.append(response)
            inserted_ids.extend(inserted_ids_from_response(response))
        elif isinstance(exception, DataAPIResponseException):
            raw_results.append(exception.raw_response)
            inserted_ids.extend(inserted_ids_from_response(exception.raw_response))
            detailed_error_descriptors.extend(exception.detailed_error_descriptors)
        elif exception is not None and first_other_exception is None:
            first_other_exception = exception
    if first_other_exception is not None:
        raise first_other_exception
    result = CollectionInsertManyResult(
        raw_results=raw_results, inserted_ids=inserted_ids
    )
    if detailed_error_descriptors:
        raise CollectionInsertManyException(
            partial_result=result,
            detailed_error_descriptors=detailed_error_descriptors,
        )
    return result


def insert_many_ordered(
    documents: Iterable[DocumentType],
    *,
    chunk_size: int,
    execute: CommandExecutor,
) -> CollectionInsertManyResult:
    """
    Insert documents chunk by chunk, stopping at the first failing chunk.

    Args:
        documents: the documents to insert.
        chunk_size: how many documents go in each insertMany request.
        execute: a function running a command and returning the response.
            All requests must share the same time budget.

    Returns:
        a CollectionInsertManyResult.

    Raises:
        CollectionInsertManyException: a chunk failed. The partial result
            has the IDs of all documents inserted so far, including those
            from the failing chunk that made it.
    """
    inserted_ids: list[Any] = []
    raw_results: list[dict[str, Any]] = []
    chunks = chunk_documents(documents, chunk_size)
    for chunk_i, chunk in enumerate(chunks):
        try:
            response = execute(InsertManyCommand(documents=chunk, ordered=True))
        except DataAPIResponseException as exc:
            raw_results.append(exc.raw_response)
            inserted_ids.extend(inserted_ids_from_response(exc.raw_response))
            raise CollectionInsertManyException(
                partial_result=CollectionInsertManyResult(
                    raw_results=raw_results, inserted_ids=inserted_ids
                ),
                detailed_error_descriptors=exc.detailed_error_descriptors,
            ) from exc
        raw_results.append(response)
        inserted_ids.extend(inserted_ids_from_response(response))
        logger.info(f"finished insert_many chunk {chunk_i + 1}/{len(chunks)}")
    return CollectionInsertManyResult(raw_results=raw_results, inserted_ids=inserted_ids)


def insert_many_unordered(
    documents: Iterable[DocumentType],
    *,
    chunk_size: int,
    concurrency: int,
    execute: CommandExecutor,
) -> CollectionInsertManyResult:
    """
    Insert documents in chunks, up to `concurrency` requests at a time.
    Every chunk is attempted regardless of failures of the others.

    Returns:
        a CollectionInsertManyResult.

    Raises:
        CollectionInsertManyException: one or more chunks failed. The partial
            result has all inserted IDs, and there is one detailed error
            descriptor per failed request.
        any other exception occurring while running a chunk (such as
            a timeout), once all chunks have been attempted.
    """
    if concurrency < 1:
        raise ValueError("The concurrency must be a positive integer.")
    chunks = chunk_documents(documents, chunk_size)

    def _run_chunk(chunk: list[DocumentType]) -> ChunkOutcome:
        try:
            response = execute(InsertManyCommand(documents=chunk, ordered=False))
            logger.info(f"finished insert_many chunk of {len(chunk)} documents")
            return response, None
        except Exception as exc:
            return None, exc

    if concurrency > 1 and len(chunks) > 1:
        with ThreadPoolExecutor(max_workers=concurrency) as executor:
            outcomes = list(executor.map(_run_chunk, chunks))
    else:
        outcomes = [_run_chunk(chunk) for chunk in chunks]
    return _accumulate(outcomes)


async def async_insert_many_ordered(
    documents: Iterable[DocumentType],
    *,
    chunk_size: int,
    execute: AsyncCommandExecutor,
) -> CollectionInsertManyResult:
    """Async version of `insert_many_ordered`, which see."""
    inserted_ids: list[Any] = []
    raw_results: list[dict[str, Any]] = []
    chunks = chunk_documents(documents, chunk_size)
    for chunk_i, chunk in enumerate(chunks):
        try:
            response = await execute(InsertManyCommand(documents=chunk, ordered=True))
        except DataAPIResponseException as exc:
            raw_results.append(exc.raw_response)
            inserted_ids.extend(inserted_ids_from_response(exc.raw_response))
            raise CollectionInsertManyException(
                partial_result=CollectionInsertManyResult(
                    raw_results=raw_results, inserted_ids=inserted_ids
                ),
                detailed_error_descriptors=exc.detailed_error_descriptors,
            ) from exc
        raw_results.append(response)
        inserted_ids.extend(inserted_ids_from_response(response))
        logger.info(f"finished insert_many chunk {chunk_i + 1}/{len(chunks)}")
    return CollectionInsertManyResult(raw_results=raw_results, inserted_ids=inserted_ids)


async def async_insert_many_unordered(
    documents: Iterable[DocumentType],
    *,
    chunk_size: int,
    concurrency: int,
    execute: AsyncCommandExecutor,
) -> CollectionInsertManyResult:
    """Async version of `insert_many_unordered`, which see."""
    if concurrency < 1:
        raise ValueError("The concurrency must be a positive integer.")
    chunks = chunk_documents(documents, chunk_size)
    semaphore = asyncio.Semaphore(concurrency)

    async def _run_chunk(chunk: list[DocumentType]) -> ChunkOutcome:
        async with semaphore:
            try:
                response = await execute(
                    InsertManyCommand(documents=chunk, ordered=False)
                )
                logger.info(f"finished insert_many chunk of {len(chunk)} documents")
                return response, None
            except Exception as exc:
                return None, exc

    outcomes = await asyncio.gather(*[_run_chunk(chunk) for chunk in chunks])
    return _accumulate(list(outcomes))
