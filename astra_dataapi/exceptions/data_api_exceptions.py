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

from dataclasses import dataclass
from typing import Any, TypeVar

import httpx

from astra_dataapi.exceptions.error_descriptors import (
    DataAPIDetailedErrorDescriptor,
    DataAPIErrorDescriptor,
    DataAPIWarningDescriptor,
)

TResponseException = TypeVar("TResponseException", bound="DataAPIResponseException")


class DataAPIException(Exception):
    """
    Any exception occurred while issuing requests to the Data API
    and specific to it, such as:
      - the API returns a response with errors,
      - a collection is found not to exist,
      - an operation exceeds its time budget,
    but not, for instance,
      - a network error while sending an HTTP request to the API.
    """

    pass


@dataclass
class DataAPIResponseException(DataAPIException):
    """
    The Data API returned a response which reports API-specific error(s),
    possibly alongside partial successes.

    Attributes:
        text: a text message about the exception.
        command: the payload to the API that led to the response.
        raw_response: the full response from the API.
        error_descriptors: a list of DataAPIErrorDescriptor, one for each
            item in the API response's "errors" field.
        warning_descriptors: a list of DataAPIWarningDescriptor, one for each
            item in the API response's "status.warnings" field (if any).
        detailed_error_descriptors: the errors grouped by originating response.
            For exceptions coming from a single request this has one element.
    """

    text: str | None
    command: dict[str, Any] | None
    raw_response: dict[str, Any]
    error_descriptors: list[DataAPIErrorDescriptor]
    warning_descriptors: list[DataAPIWarningDescriptor]
    detailed_error_descriptors: list[DataAPIDetailedErrorDescriptor]

    def __init__(
        self,
        text: str | None,
        *,
        command: dict[str, Any] | None,
        raw_response: dict[str, Any],
        error_descriptors: list[DataAPIErrorDescriptor],
        warning_descriptors: list[DataAPIWarningDescriptor],
        detailed_error_descriptors: list[DataAPIDetailedErrorDescriptor] | None = None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.command = command
        self.raw_response = raw_response
        self.error_descriptors = error_descriptors
        self.warning_descriptors = warning_descriptors
        self.detailed_error_descriptors = (
            detailed_error_descriptors
            if detailed_error_descriptors is not None
            else [
                DataAPIDetailedErrorDescriptor(
                    error_descriptors=error_descriptors,
                    command=command,
                    raw_response=raw_response,
                )
            ]
        )

    def __str__(self) -> str:
        return self.text or self.__class__.__name__

    @classmethod
    def from_response(
        cls: type[TResponseException],
        *,
        command: dict[str, Any] | None,
        raw_response: dict[str, Any],
        **kwargs: Any,
    ) -> TResponseException:
        """Parse a raw response from the API into this exception."""

        error_descriptors = [
            DataAPIErrorDescriptor(error_dict)
            for error_dict in (raw_response or {}).get("errors") or []
        ]
        warning_descriptors = [
            DataAPIWarningDescriptor(warning_dict)
            for warning_dict in ((raw_response or {}).get("status") or {}).get(
                "warnings"
            )
            or []
        ]
        return cls(
            _summarize_error_descriptors(error_descriptors),
            command=command,
            raw_response=raw_response,
            error_descriptors=error_descriptors,
            warning_descriptors=warning_descriptors,
            **kwargs,
        )


def _summarize_error_descriptors(
    error_descriptors: list[DataAPIErrorDescriptor],
) -> str:
    summaries = [e_d.summary() for e_d in error_descriptors]
    if not summaries:
        return ""
    if len(summaries) == 1:
        return summaries[0]
    _j_summaries = "; ".join(
        f"[{summ_i + 1}] {summ_s}" for summ_i, summ_s in enumerate(summaries)
    )
    return f"[{len(summaries)} errors collected] {_j_summaries}"


class DataAPIAuthenticationException(DataAPIResponseException):
    """
    The Data API rejected the credentials: the response came with HTTP 401,
    or with an error stating the token is invalid.
    """

    def __str__(self) -> str:
        return self.text or "Authentication failed (invalid or missing token)"


@dataclass
class CollectionNotFoundException(DataAPIResponseException):
    """
    The Data API reported that the collection targeted by a command
    does not exist.

    Attributes:
        collection_name: the name of the missing collection, as parsed
            from the error message.
        (plus all attributes of DataAPIResponseException)
    """

    collection_name: str | None

    def __init__(
        self,
        text: str | None,
        *,
        collection_name: str | None = None,
        **kwargs: Any,
    ) -> None:
        DataAPIResponseException.__init__(self, text, **kwargs)
        self.collection_name = collection_name


@dataclass
class DataAPIHttpException(DataAPIException, httpx.HTTPStatusError):
    """
    A request to the Data API resulted in an HTTP 4xx or 5xx response
    (other than 401, which is an authentication error).

    In most cases this comes with additional information: the purpose
    of this class is to present such information in a structured way,
    akin to what happens for the DataAPIResponseException, while
    still raising (a subclass of) `httpx.HTTPStatusError`.

    Attributes:
        text: a text message about the exception.
        error_descriptors: a list of all DataAPIErrorDescriptor objects
            found in the response.
    """

    text: str | None
    error_descriptors: list[DataAPIErrorDescriptor]

    def __init__(
        self,
        text: str | None,
        *,
        httpx_error: httpx.HTTPStatusError,
        error_descriptors: list[DataAPIErrorDescriptor],
    ) -> None:
        DataAPIException.__init__(self, text)
        httpx.HTTPStatusError.__init__(
            self,
            message=str(httpx_error),
            request=httpx_error.request,
            response=httpx_error.response,
        )
        self.text = text
        self.httpx_error = httpx_error
        self.error_descriptors = error_descriptors

    def __str__(self) -> str:
        return self.text or str(self.httpx_error)

    @classmethod
    def from_httpx_error(
        cls,
        httpx_error: httpx.HTTPStatusError,
        **kwargs: Any,
    ) -> DataAPIHttpException:
        """Parse a httpx status error into this exception."""

        raw_response: dict[str, Any]
        # the attempt to extract a response structure cannot afford failure.
        try:
            raw_response = httpx_error.response.json() or {}
        except ValueError:
            raw_response = {}
        if not isinstance(raw_response, dict):
            raw_response = {}
        error_descriptors = [
            DataAPIErrorDescriptor(error_dict)
            for error_dict in raw_response.get("errors") or []
        ]
        if error_descriptors:
            text = f"{error_descriptors[0].message}. {httpx_error}"
        else:
            text = str(httpx_error)

        return cls(
            text=text,
            httpx_error=httpx_error,
            error_descriptors=error_descriptors,
            **kwargs,
        )


@dataclass
class DataAPITimeoutException(DataAPIException):
    """
    A Data API operation timed out. This can be a request timeout occurring
    during a specific HTTP request, or can happen over the course of a method
    involving several requests in a row, such as a paginated find.

    Attributes:
        text: a textual description of the error, naming the timeout
            setting(s) responsible for it.
        timeout_type: this denotes the phase of the HTTP request when the event
            occurred ("connect", "read", "write", "pool") or "generic" if there is
            not a specific request phase associated to the exception.
        endpoint: if the timeout is tied to a specific request, this is the
            URL that the request was targeting.
        raw_payload:  if the timeout is tied to a specific request, this is the
            associated payload (as a string).
        timeout_ms: the (nominal) timeout value that was exceeded.
        timed_out_categories: the name(s) of the timeout setting(s) responsible.
    """

    text: str
    timeout_type: str
    endpoint: str | None
    raw_payload: str | None
    timeout_ms: int | None
    timed_out_categories: tuple[str, ...]

    def __init__(
        self,
        text: str,
        *,
        timeout_type: str,
        endpoint: str | None,
        raw_payload: str | None,
        timeout_ms: int | None = None,
        timed_out_categories: tuple[str, ...] = (),
    ) -> None:
        super().__init__(text)
        self.text = text
        self.timeout_type = timeout_type
        self.endpoint = endpoint
        self.raw_payload = raw_payload
        self.timeout_ms = timeout_ms
        self.timed_out_categories = timed_out_categories


@dataclass
class CursorException(DataAPIException):
    """
    The cursor operation cannot be invoked in the current state of the cursor,
    for instance when trying to change the query settings of a cursor that
    has already started fetching results.

    Attributes:
        text: a text message about the exception.
        cursor_state: a string description of the current state
            of the cursor. See the documentation for FindCursor.
    """

    text: str
    cursor_state: str

    def __init__(
        self,
        text: str,
        *,
        cursor_state: str,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.cursor_state = cursor_state


@dataclass
class UnexpectedDataAPIResponseException(DataAPIException):
    """
    The Data API response is malformed in that it does not have
    expected field(s), or they are of the wrong type.

    Attributes:
        text: a text message about the exception.
        raw_response: the response returned by the API in the form of a dict.
    """

    text: str
    raw_response: dict[str, Any] | None

    def __init__(
        self,
        text: str,
        raw_response: dict[str, Any] | None,
    ) -> None:
        super().__init__(text)
        self.text = text
        self.raw_response = raw_response
