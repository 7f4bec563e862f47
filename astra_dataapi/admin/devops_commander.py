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
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Union

import httpx

from astra_dataapi.events import (
    ADMIN_COMMAND_FAILED,
    ADMIN_COMMAND_POLLING,
    ADMIN_COMMAND_STARTED,
    ADMIN_COMMAND_SUCCEEDED,
    ADMIN_COMMAND_WARNINGS,
    AdminCommandFailedEvent,
    AdminCommandPollingEvent,
    AdminCommandStartedEvent,
    AdminCommandSucceededEvent,
    AdminCommandWarningsEvent,
    DevOpsAPIRequestInfo,
    EventLogger,
)
from astra_dataapi.exceptions import (
    DevOpsAPIHttpException,
    DevOpsAPIResponseException,
    DevOpsAPIUnexpectedStateException,
    UnexpectedDevOpsAPIResponseException,
    to_devopsapi_timeout_exception,
)
from astra_dataapi.settings.defaults import DEFAULT_DEV_OPS_OVERALL_TIMEOUT_MS
from astra_dataapi.utils.api_commander import APICommander
from astra_dataapi.utils.request_tools import HttpMethod
from astra_dataapi.utils.timeouts import TimedOutCategories, TimeoutManager, Timeouts

logger = logging.getLogger(__name__)

DEV_OPS_OVERALL_TIMEOUT_CATEGORY = "database_admin_timeout_ms"


@dataclass
class DevOpsAPIResponse:
    """
    A successful response from the DevOps API.

    Attributes:
        data: the JSON body of the response, if any.
        status_code: the HTTP status code.
        headers: the response headers.
    """

    data: Any
    status_code: int
    headers: dict[str, str]


IdExtractor = Union[str, Callable[[DevOpsAPIResponse], str]]


class DevOpsAPICommander(APICommander):
    """
    The transport for the DevOps API: plain REST requests (method, path,
    query parameters, JSON body) over HTTP/1.1, and long-running operations
    awaited by polling the status of the database they concern.

    Args:
        api_endpoint: the base URL of the DevOps API.
        path: the API version path, e.g. "v2".
        headers: additional headers, such as the authorization header.
        event_logger: the EventLogger through which events are emitted.
    """

    client = httpx.Client()
    http2 = False
    _api_description = "DevOps API"

    def __init__(
        self,
        *,
        api_endpoint: str,
        path: str,
        headers: dict[str, str | None] = {},
        event_logger: EventLogger | None = None,
        redacted_header_names: Iterable[str] | None = None,
    ) -> None:
        super().__init__(
            api_endpoint=api_endpoint,
            path=path,
            headers=headers,
            redacted_header_names=redacted_header_names,
        )
        self.event_logger = event_logger
        self.timeouts = Timeouts(to_devopsapi_timeout_exception)

    def _emit(self, event_name: str, event_factory: Any) -> None:
        if self.event_logger is not None and self.event_logger.is_active(event_name):
            self.event_logger.emit(event_name, event_factory())

    def default_timeout_manager(self) -> TimeoutManager:
        """
        A manager enforcing only the overall ceiling applied to DevOps API
        operations for which no other timeout is specified.
        """
        started_ms: int | None = None

        def _advance() -> tuple[int, TimedOutCategories]:
            nonlocal started_ms
            now_ms = int(time.time() * 1000)
            if started_ms is None:
                started_ms = now_ms
            return (
                DEFAULT_DEV_OPS_OVERALL_TIMEOUT_MS - (now_ms - started_ms),
                DEV_OPS_OVERALL_TIMEOUT_CATEGORY,
            )

        return self.timeouts.custom(
            {DEV_OPS_OVERALL_TIMEOUT_CATEGORY: DEFAULT_DEV_OPS_OVERALL_TIMEOUT_MS},
            _advance,
        )

    def _process_raw_response(
        self,
        raw_response: httpx.Response,
        body: dict[str, Any] | None,
        request_info: DevOpsAPIRequestInfo,
    ) -> DevOpsAPIResponse:
        try:
            raw_response.raise_for_status()
        except httpx.HTTPStatusError as http_exc:
            raise DevOpsAPIHttpException.from_httpx_error(http_exc) from http_exc

        response_json: Any = None
        if raw_response.text:
            try:
                response_json = json.loads(raw_response.text)
            except ValueError:
                raise UnexpectedDevOpsAPIResponseException(
                    text=(
                        "Unparseable response from DevOps API "
                        f"'{request_info.method} {request_info.url}'."
                    ),
                    raw_response={"raw_response": raw_response.text},
                )
        if isinstance(response_json, dict):
            if response_json.get("errors"):
                logger.warning(
                    f"DevOpsAPICommander about to raise from: {response_json['errors']}"
                )
                raise DevOpsAPIResponseException.from_response(
                    command=body, raw_response=response_json
                )
            warnings = [str(warning) for warning in response_json.get("warnings") or []]
            if warnings:
                for warning in warnings:
                    logger.warning(
                        f"The {self._api_description} returned a warning: {warning}"
                    )
                self._emit(
                    ADMIN_COMMAND_WARNINGS,
                    lambda: AdminCommandWarningsEvent(request_info, warnings),
                )
        return DevOpsAPIResponse(
            data=response_json,
            status_code=raw_response.status_code,
            headers=dict(raw_response.headers),
        )

    def _make_request_info(
        self,
        *,
        method: str,
        path: str | None,
        params: dict[str, Any] | None,
        body: dict[str, Any] | None,
        timeout_manager: TimeoutManager,
        invoking_method: str | None,
        is_long_running: bool,
    ) -> DevOpsAPIRequestInfo:
        return DevOpsAPIRequestInfo(
            method=method,
            url=self._compose_request_url(path),
            params=params,
            body=body,
            invoking_method=invoking_method,
            is_long_running=is_long_running,
            timeout_manager=timeout_manager,
        )

    def _request_once(
        self,
        *,
        method: str,
        path: str | None,
        params: dict[str, Any] | None,
        body: dict[str, Any] | None,
        timeout_manager: TimeoutManager,
        request_info: DevOpsAPIRequestInfo,
    ) -> DevOpsAPIResponse:
        raw_response = self.raw_request(
            http_method=method,
            payload=body,
            additional_path=path,
            request_params=params,
            timeout_manager=timeout_manager,
        )
        return self._process_raw_response(raw_response, body, request_info)

    async def _async_request_once(
        self,
        *,
        method: str,
        path: str | None,
        params: dict[str, Any] | None,
        body: dict[str, Any] | None,
        timeout_manager: TimeoutManager,
        request_info: DevOpsAPIRequestInfo,
    ) -> DevOpsAPIResponse:
        raw_response = await self.async_raw_request(
            http_method=method,
            payload=body,
            additional_path=path,
            request_params=params,
            timeout_manager=timeout_manager,
        )
        return self._process_raw_response(raw_response, body, request_info)

    def request(
        self,
        *,
        method: str = HttpMethod.GET,
        path: str | None = None,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        timeout_manager: TimeoutManager | None = None,
        invoking_method: str | None = None,
    ) -> DevOpsAPIResponse:
        """
        Issue a single request to the DevOps API.

        Args:
            method: the HTTP method.
            path: the path, relative to the API base URL, e.g. "/databases".
            params: query parameters, if any.
            body: the JSON body, if any.
            timeout_manager: the manager granting the time budget. If not
                provided, only an overall ceiling of 12 minutes applies.
            invoking_method: the name of the client method behind the
                request, for the events.

        Returns:
            a DevOpsAPIResponse.
        """
        _timeout_manager = timeout_manager or self.default_timeout_manager()
        request_info = self._make_request_info(
            method=method,
            path=path,
            params=params,
            body=body,
            timeout_manager=_timeout_manager,
            invoking_method=invoking_method,
            is_long_running=False,
        )
        self._emit(ADMIN_COMMAND_STARTED, lambda: AdminCommandStartedEvent(request_info))
        try:
            response = self._request_once(
                method=method,
                path=path,
                params=params,
                body=body,
                timeout_manager=_timeout_manager,
                request_info=request_info,
            )
        except Exception as exc:
            self._emit(
                ADMIN_COMMAND_FAILED,
                lambda: AdminCommandFailedEvent(request_info, exc),
            )
            raise
        self._emit(
            ADMIN_COMMAND_SUCCEEDED,
            lambda: AdminCommandSucceededEvent(request_info, response.data),
        )
        return response

    async def async_request(
        self,
        *,
        method: str = HttpMethod.GET,
        path: str | None = None,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        timeout_manager: TimeoutManager | None = None,
        invoking_method: str | None = None,
    ) -> DevOpsAPIResponse:
        """
        Issue a single request to the DevOps API.
        Async version of `request`, which see.
        """
        _timeout_manager = timeout_manager or self.default_timeout_manager()
        request_info = self._make_request_info(
            method=method,
            path=path,
            params=params,
            body=body,
            timeout_manager=_timeout_manager,
            invoking_method=invoking_method,
            is_long_running=False,
        )
        self._emit(ADMIN_COMMAND_STARTED, lambda: AdminCommandStartedEvent(request_info))
        try:
            response = await self._async_request_once(
                method=method,
                path=path,
                params=params,
                body=body,
                timeout_manager=_timeout_manager,
                request_info=request_info,
            )
        except Exception as exc:
            self._emit(
                ADMIN_COMMAND_FAILED,
                lambda: AdminCommandFailedEvent(request_info, exc),
            )
            raise
        self._emit(
            ADMIN_COMMAND_SUCCEEDED,
            lambda: AdminCommandSucceededEvent(request_info, response.data),
        )
        return response

    @staticmethod
    def _extract_id(id_extractor: IdExtractor, response: DevOpsAPIResponse) -> str:
        if isinstance(id_extractor, str):
            return id_extractor
        return id_extractor(response)

    @staticmethod
    def _check_status(
        database_id: str,
        status_response: DevOpsAPIResponse,
        target_state: str,
        legal_states: list[str],
    ) -> bool:
        # True when done, False to keep waiting, raise for unexpected states
        status = (
            status_response.data.get("status")
            if isinstance(status_response.data, dict)
            else None
        )
        if status == target_state:
            return True
        if status not in legal_states:
            ok_states = [target_state] + legal_states
            raise DevOpsAPIUnexpectedStateException(
                text=(
                    f"Database {database_id} is not in any legal state "
                    f"[{','.join(ok_states)}]; current state: {status}"
                ),
                ok_states=ok_states,
                raw_response=status_response.data,
            )
        return False

    def request_long_running(
        self,
        *,
        method: str = HttpMethod.POST,
        path: str | None = None,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        timeout_manager: TimeoutManager | None = None,
        invoking_method: str | None = None,
        id_extractor: IdExtractor,
        target_state: str,
        legal_states: list[str],
        poll_interval_ms: int,
        blocking: bool = True,
    ) -> DevOpsAPIResponse:
        """
        Issue a request starting a long-running operation on a database, and
        (unless `blocking` is False) wait until the database reaches the
        target status, polling it periodically.

        Initiating request and polling share the same timeout manager, hence
        one overall deadline.

        Args:
            method, path, params, body, timeout_manager, invoking_method:
                as for `request`, referring to the initiating request.
            id_extractor: the ID of the database to poll, or a function
                extracting it from the initiating response.
            target_state: the database status marking completion.
            legal_states: the statuses the database can go through
                while the operation is in progress.
            poll_interval_ms: the wait between consecutive status checks.
            blocking: if False, return right after the initiating request.

        Returns:
            the DevOpsAPIResponse for the initiating request.

        Raises:
            DevOpsAPIUnexpectedStateException: the database was found in a
                status that is neither the target nor a legal one.
            DevOpsAPITimeoutException: the overall deadline was exceeded.
        """
        _timeout_manager = timeout_manager or self.default_timeout_manager()
        request_info = self._make_request_info(
            method=method,
            path=path,
            params=params,
            body=body,
            timeout_manager=_timeout_manager,
            invoking_method=invoking_method,
            is_long_running=blocking,
        )
        self._emit(ADMIN_COMMAND_STARTED, lambda: AdminCommandStartedEvent(request_info))
        try:
            response = self._request_once(
                method=method,
                path=path,
                params=params,
                body=body,
                timeout_manager=_timeout_manager,
                request_info=request_info,
            )
            if blocking:
                database_id = self._extract_id(id_extractor, response)
                poll_count = 0
                while True:
                    poll_count += 1
                    logger.info(f"polling status of database {database_id}")
                    status_response = self._request_once(
                        method=HttpMethod.GET,
                        path=f"databases/{database_id}",
                        params=None,
                        body=None,
                        timeout_manager=_timeout_manager,
                        request_info=request_info,
                    )
                    if self._check_status(
                        database_id, status_response, target_state, legal_states
                    ):
                        break
                    # one polling event per status check short of the target state
                    self._emit(
                        ADMIN_COMMAND_POLLING,
                        lambda: AdminCommandPollingEvent(
                            request_info, poll_interval_ms, poll_count
                        ),
                    )
                    time.sleep(poll_interval_ms / 1000)
                logger.info(f"database {database_id} reached status {target_state}")
        except Exception as exc:
            self._emit(
                ADMIN_COMMAND_FAILED,
                lambda: AdminCommandFailedEvent(request_info, exc),
            )
            raise
        self._emit(
            ADMIN_COMMAND_SUCCEEDED,
            lambda: AdminCommandSucceededEvent(request_info, response.data),
        )
        return response

    async def async_request_long_running(
        self,
        *,
        method: str = HttpMethod.POST,
        path: str | None = None,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        timeout_manager: TimeoutManager | None = None,
        invoking_method: str | None = None,
        id_extractor: IdExtractor,
        target_state: str,
        legal_states: list[str],
        poll_interval_ms: int,
        blocking: bool = True,
    ) -> DevOpsAPIResponse:
        """
        Issue a request starting a long-running operation and wait for it.
        Async version of `request_long_running`, which see.
        """
        _timeout_manager = timeout_manager or self.default_timeout_manager()
        request_info = self._make_request_info(
            method=method,
            path=path,
            params=params,
            body=body,
            timeout_manager=_timeout_manager,
            invoking_method=invoking_method,
            is_long_running=blocking,
        )
        self._emit(ADMIN_COMMAND_STARTED, lambda: AdminCommandStartedEvent(request_info))
        try:
            response = await self._async_request_once(
                method=method,
                path=path,
                params=params,
                body=body,
                timeout_manager=_timeout_manager,
                request_info=request_info,
            )
            if blocking:
                database_id = self._extract_id(id_extractor, response)
                poll_count = 0
                while True:
                    poll_count += 1
                    logger.info(f"polling status of database {database_id}")
                    status_response = await self._async_request_once(
                        method=HttpMethod.GET,
                        path=f"databases/{database_id}",
                        params=None,
                        body=None,
                        timeout_manager=_timeout_manager,
                        request_info=request_info,
                    )
                    if self._check_status(
                        database_id, status_response, target_state, legal_states
                    ):
                        break
                    # one polling event per status check short of the target state
                    self._emit(
                        ADMIN_COMMAND_POLLING,
                        lambda: AdminCommandPollingEvent(
                            request_info, poll_interval_ms, poll_count
                        ),
                    )
                    await asyncio.sleep(poll_interval_ms / 1000)
                logger.info(f"database {database_id} reached status {target_state}")
        except Exception as exc:
            self._emit(
                ADMIN_COMMAND_FAILED,
                lambda: AdminCommandFailedEvent(request_info, exc),
            )
            raise
        self._emit(
            ADMIN_COMMAND_SUCCEEDED,
            lambda: AdminCommandSucceededEvent(request_info, response.data),
        )
        return response
