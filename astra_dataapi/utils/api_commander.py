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
from typing import Any, Iterable

import httpx

from astra_dataapi.commands import DataAPICommand, to_command
from astra_dataapi.events import (
    COMMAND_FAILED,
    COMMAND_STARTED,
    COMMAND_SUCCEEDED,
    COMMAND_WARNINGS,
    CommandFailedEvent,
    CommandStartedEvent,
    CommandSucceededEvent,
    CommandWarningsEvent,
    DataAPIRequestInfo,
    EventLogger,
)
from astra_dataapi.exceptions import (
    CollectionNotFoundException,
    DataAPIAuthenticationException,
    DataAPIHttpException,
    DataAPIResponseException,
    DataAPIWarningDescriptor,
    UnexpectedDataAPIResponseException,
    httpx_timeout_type,
)
from astra_dataapi.serdes import (
    decode_response,
    deserialize_document,
    deserialize_value,
    encode_payload,
    serialize_for_api,
)
from astra_dataapi.settings.defaults import (
    DATA_API_COLLECTION_NOT_EXIST_CODE,
    DATA_API_INVALID_TOKEN_MESSAGE,
    DEFAULT_REDACTED_HEADER_NAMES,
    FIXED_SECRET_PLACEHOLDER,
)
from astra_dataapi.utils.api_options import FullSerdesOptions, defaultSerdesOptions
from astra_dataapi.utils.request_tools import (
    HttpMethod,
    log_httpx_request,
    log_httpx_response,
    to_httpx_timeout,
)
from astra_dataapi.utils.timeouts import HTTPRequestInfo, TimeoutManager
from astra_dataapi.version import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"astra-dataapi/{__version__}"


class APICommander:
    """
    The HTTP layer shared by the Data API and DevOps API commanders:
    it composes URLs and headers, encodes payloads, enforces the time budget
    of each request through a TimeoutManager and logs the traffic.

    The synchronous client is shared by all instances of a class, while
    each instance owns its asynchronous client.
    """

    client = httpx.Client(http2=True)
    http2 = True
    _api_description = "Data API"

    def __init__(
        self,
        *,
        api_endpoint: str,
        path: str,
        headers: dict[str, str | None] = {},
        redacted_header_names: Iterable[str] | None = None,
        serdes_options: FullSerdesOptions | None = None,
    ) -> None:
        self.async_client = httpx.AsyncClient(http2=self.http2)
        self.api_endpoint = api_endpoint.rstrip("/")
        self.path = path.strip("/")
        self.headers = headers
        self.serdes_options = serdes_options or defaultSerdesOptions
        self.redacted_header_names = set(redacted_header_names or [])
        self.upper_full_redacted_header_names = {
            header_name.upper()
            for header_name in (
                self.redacted_header_names | DEFAULT_REDACTED_HEADER_NAMES
            )
        }
        self.full_headers: dict[str, str] = {
            k: v
            for k, v in {
                **{
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    "User-Agent": USER_AGENT,
                },
                **self.headers,
            }.items()
            if v is not None
        }
        self._loggable_headers = {
            k: v
            if k.upper() not in self.upper_full_redacted_header_names
            else FIXED_SECRET_PLACEHOLDER
            for k, v in self.full_headers.items()
        }
        self.full_path = "/".join(
            pc for pc in (self.api_endpoint, self.path) if pc
        ).rstrip("/")

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(api_endpoint={self.api_endpoint}, "
            f"path={self.path})"
        )

    async def __aenter__(self) -> APICommander:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        await self.async_client.aclose()

    def _compose_request_url(self, additional_path: str | None) -> str:
        if additional_path:
            return "/".join([self.full_path.rstrip("/"), additional_path.lstrip("/")])
        else:
            return self.full_path

    def _prepare_request(
        self,
        *,
        http_method: str,
        payload: dict[str, Any] | None,
        additional_path: str | None,
        request_params: dict[str, Any] | None,
        timeout_manager: TimeoutManager,
    ) -> tuple[str, str | None, httpx.Timeout | None, Any]:
        request_url = self._compose_request_url(additional_path)
        encoded_payload = encode_payload(serialize_for_api(payload))
        timeout_ms, mk_timeout_error = timeout_manager.advance(
            HTTPRequestInfo(url=request_url, payload=encoded_payload)
        )
        if timeout_ms <= 0:
            raise mk_timeout_error()
        log_httpx_request(
            http_method=http_method,
            full_url=request_url,
            request_params=request_params,
            redacted_request_headers=self._loggable_headers,
            encoded_payload=encoded_payload,
            timeout_ms=timeout_ms,
        )
        return (
            request_url,
            encoded_payload,
            to_httpx_timeout(timeout_ms),
            mk_timeout_error,
        )

    def raw_request(
        self,
        *,
        http_method: str = HttpMethod.POST,
        payload: dict[str, Any] | None = None,
        additional_path: str | None = None,
        request_params: dict[str, Any] | None = None,
        timeout_manager: TimeoutManager,
    ) -> httpx.Response:
        """
        Issue one HTTP request within the budget granted by the timeout
        manager, translating httpx timeouts into the API-specific
        timeout exception. No check is made on the response status.
        """
        request_url, encoded_payload, httpx_timeout, mk_timeout_error = (
            self._prepare_request(
                http_method=http_method,
                payload=payload,
                additional_path=additional_path,
                request_params=request_params,
                timeout_manager=timeout_manager,
            )
        )
        try:
            raw_response = self.client.request(
                method=http_method,
                url=request_url,
                content=encoded_payload.encode()
                if encoded_payload is not None
                else None,
                params=request_params,
                timeout=httpx_timeout,
                headers=self.full_headers,
            )
        except httpx.TimeoutException as timeout_exc:
            raise mk_timeout_error(httpx_timeout_type(timeout_exc)) from timeout_exc
        log_httpx_response(response=raw_response)
        return raw_response

    async def async_raw_request(
        self,
        *,
        http_method: str = HttpMethod.POST,
        payload: dict[str, Any] | None = None,
        additional_path: str | None = None,
        request_params: dict[str, Any] | None = None,
        timeout_manager: TimeoutManager,
    ) -> httpx.Response:
        request_url, encoded_payload, httpx_timeout, mk_timeout_error = (
            self._prepare_request(
                http_method=http_method,
                payload=payload,
                additional_path=additional_path,
                request_params=request_params,
                timeout_manager=timeout_manager,
            )
        )
        try:
            raw_response = await self.async_client.request(
                method=http_method,
                url=request_url,
                content=encoded_payload.encode()
                if encoded_payload is not None
                else None,
                params=request_params,
                timeout=httpx_timeout,
                headers=self.full_headers,
            )
        except httpx.TimeoutException as timeout_exc:
            raise mk_timeout_error(httpx_timeout_type(timeout_exc)) from timeout_exc
        log_httpx_response(response=raw_response)
        return raw_response


class DataAPICommander(APICommander):
    """
    The transport for Data API commands: each command is POSTed to the
    keyspace (or collection) URL, and the response envelope is decoded and
    checked for errors, with command events emitted along the way.

    Args:
        api_endpoint: the base URL of the database, e.g.
            "https://01234567-....apps.astra.datastax.com".
        path: the API path, e.g. "api/json/v1".
        headers: additional headers, such as the token header.
        event_logger: the EventLogger through which events are emitted.
        serdes_options: the serialization settings for the documents.
    """

    def __init__(
        self,
        *,
        api_endpoint: str,
        path: str,
        headers: dict[str, str | None] = {},
        event_logger: EventLogger | None = None,
        redacted_header_names: Iterable[str] | None = None,
        serdes_options: FullSerdesOptions | None = None,
    ) -> None:
        super().__init__(
            api_endpoint=api_endpoint,
            path=path,
            headers=headers,
            redacted_header_names=redacted_header_names,
            serdes_options=serdes_options,
        )
        self.event_logger = event_logger

    def _emit(self, event_name: str, event_factory: Any) -> None:
        if self.event_logger is not None and self.event_logger.is_active(event_name):
            self.event_logger.emit(event_name, event_factory())

    @staticmethod
    def _target_path(keyspace: str, collection: str | None) -> str:
        return "/".join(pc for pc in (keyspace, collection) if pc)

    def _process_raw_response(
        self,
        raw_response: httpx.Response,
        payload: dict[str, Any],
        request_info: DataAPIRequestInfo,
    ) -> dict[str, Any]:
        if raw_response.status_code == 401:
            try:
                unauth_json = decode_response(raw_response.text, self.serdes_options)
            except ValueError:
                unauth_json = {}
            raise DataAPIAuthenticationException.from_response(
                command=payload,
                raw_response=unauth_json if isinstance(unauth_json, dict) else {},
            )
        try:
            raw_response.raise_for_status()
        except httpx.HTTPStatusError as http_exc:
            raise DataAPIHttpException.from_httpx_error(http_exc) from http_exc

        try:
            response_json = decode_response(raw_response.text, self.serdes_options)
        except ValueError:
            raise UnexpectedDataAPIResponseException(
                text=(
                    "Unparseable response from API "
                    f"'{next(iter(payload.keys()), '')}' command."
                ),
                raw_response={"raw_response": raw_response.text},
            )
        if not isinstance(response_json, dict):
            raise UnexpectedDataAPIResponseException(
                text="Response from the Data API is not a JSON object.",
                raw_response={"raw_response": raw_response.text},
            )

        errors = response_json.get("errors") or []
        if errors:
            logger.warning(f"DataAPICommander about to raise from: {errors}")
            first_error = errors[0] if isinstance(errors[0], dict) else {}
            if first_error.get("message") == DATA_API_INVALID_TOKEN_MESSAGE:
                raise DataAPIAuthenticationException.from_response(
                    command=payload, raw_response=response_json
                )
            if first_error.get("errorCode") == DATA_API_COLLECTION_NOT_EXIST_CODE:
                message = first_error.get("message") or ""
                raise CollectionNotFoundException.from_response(
                    command=payload,
                    raw_response=response_json,
                    collection_name=(
                        message.rsplit(": ", 1)[-1] if ": " in message else None
                    ),
                )
            raise DataAPIResponseException.from_response(
                command=payload, raw_response=response_json
            )

        status = response_json.get("status")
        if isinstance(status, dict) and "warnings" in status:
            warning_descriptors = [
                DataAPIWarningDescriptor(warning)
                for warning in status.pop("warnings") or []
            ]
            for warning_descriptor in warning_descriptors:
                logger.warning(
                    f"The {self._api_description} returned a warning: "
                    f"{warning_descriptor.summary()}"
                )
            if warning_descriptors:
                self._emit(
                    COMMAND_WARNINGS,
                    lambda: CommandWarningsEvent(request_info, warning_descriptors),
                )
        return self._revive_response(response_json)

    def _revive_response(self, response_json: dict[str, Any]) -> dict[str, Any]:
        if isinstance(response_json.get("status"), dict):
            response_json["status"] = deserialize_value(
                [], response_json["status"], {}
            )
        data = response_json.get("data")
        if isinstance(data, dict):
            if isinstance(data.get("document"), dict):
                data["document"] = deserialize_document(
                    data["document"], self.serdes_options
                )
            if isinstance(data.get("documents"), list):
                data["documents"] = [
                    deserialize_document(document, self.serdes_options)
                    for document in data["documents"]
                ]
        return response_json

    def _start_command(
        self,
        command: DataAPICommand | dict[str, Any],
        timeout_manager: TimeoutManager,
        keyspace: str,
        collection: str | None,
    ) -> tuple[dict[str, Any], str, DataAPIRequestInfo]:
        payload = to_command(command).to_payload()
        target_path = self._target_path(keyspace, collection)
        request_info = DataAPIRequestInfo(
            url=self._compose_request_url(target_path),
            command=payload,
            keyspace=keyspace,
            collection=collection,
            timeout_manager=timeout_manager,
        )
        self._emit(COMMAND_STARTED, lambda: CommandStartedEvent(request_info))
        return payload, target_path, request_info

    def execute_command(
        self,
        command: DataAPICommand | dict[str, Any],
        *,
        timeout_manager: TimeoutManager,
        keyspace: str,
        collection: str | None = None,
    ) -> dict[str, Any]:
        """
        Send a command to the Data API and return the decoded response.

        Args:
            command: a DataAPICommand, or the raw payload as a dictionary.
            timeout_manager: the manager granting the time budget.
            keyspace: the keyspace the command targets.
            collection: the collection the command targets, if any.

        Returns:
            the response, a dictionary with optional "status", "data" and
            "errors" keys. Warnings, if any, are removed from "status".

        Raises:
            DataAPIAuthenticationException, CollectionNotFoundException,
            DataAPIResponseException: the API returned errors.
            DataAPIHttpException: the HTTP response had an error status.
            DataAPITimeoutException: the time budget was exceeded.
        """
        payload, target_path, request_info = self._start_command(
            command, timeout_manager, keyspace, collection
        )
        try:
            raw_response = self.raw_request(
                payload=payload,
                additional_path=target_path,
                timeout_manager=timeout_manager,
            )
            response_json = self._process_raw_response(
                raw_response, payload, request_info
            )
        except Exception as exc:
            self._emit(COMMAND_FAILED, lambda: CommandFailedEvent(request_info, exc))
            raise
        self._emit(
            COMMAND_SUCCEEDED,
            lambda: CommandSucceededEvent(request_info, response_json),
        )
        return response_json

    async def async_execute_command(
        self,
        command: DataAPICommand | dict[str, Any],
        *,
        timeout_manager: TimeoutManager,
        keyspace: str,
        collection: str | None = None,
    ) -> dict[str, Any]:
        """
        Send a command to the Data API and return the decoded response.
        Async version of `execute_command`, which see.
        """
        payload, target_path, request_info = self._start_command(
            command, timeout_manager, keyspace, collection
        )
        try:
            raw_response = await self.async_raw_request(
                payload=payload,
                additional_path=target_path,
                timeout_manager=timeout_manager,
            )
            response_json = self._process_raw_response(
                raw_response, payload, request_info
            )
        except Exception as exc:
            self._emit(COMMAND_FAILED, lambda: CommandFailedEvent(request_info, exc))
            raise
        self._emit(
            COMMAND_SUCCEEDED,
            lambda: CommandSucceededEvent(request_info, response_json),
        )
        return response_json
