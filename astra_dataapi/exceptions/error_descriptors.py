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
from typing import Any


@dataclass
class DataAPIErrorDescriptor:
    """
    An object representing a single error, as returned from the Data API,
    typically with an error code, a text message and other properties.

    Data API responses may carry errors alongside an HTTP 200 status,
    possibly next to partial successes (for instance an insertMany
    that inserted some documents but not others).

    Attributes:
        error_code: a string code as found in the API error's "errorCode" field.
        message: the text found in the API error's "message" field.
        title:  the text found in the API error's "title" field.
        family:  the text found in the API error's "family" field.
        scope:  the text found in the API error's "scope" field.
        id:  the text found in the API error's "id" field.
        attributes: a dict with any further key-value pairs returned by the API.
    """

    title: str | None
    error_code: str | None
    message: str | None
    family: str | None
    scope: str | None
    id: str | None
    attributes: dict[str, Any]

    _known_dict_fields = {
        "title",
        "errorCode",
        "message",
        "family",
        "scope",
        "id",
    }

    def __init__(self, error_dict: dict[str, Any] | str) -> None:
        _error_dict: dict[str, Any] = (
            {"message": error_dict} if isinstance(error_dict, str) else error_dict
        )
        self.title = _error_dict.get("title")
        self.error_code = _error_dict.get("errorCode")
        self.message = _error_dict.get("message")
        self.family = _error_dict.get("family")
        self.scope = _error_dict.get("scope")
        self.id = _error_dict.get("id")
        self.attributes = {
            k: v for k, v in _error_dict.items() if k not in self._known_dict_fields
        }

    def __repr__(self) -> str:
        pieces = [
            f"{self.title!r}" if self.title else None,
            f"error_code={self.error_code!r}" if self.error_code else None,
            f"message={self.message!r}" if self.message else None,
            f"family={self.family!r}" if self.family else None,
            f"scope={self.scope!r}" if self.scope else None,
            f"id={self.id!r}" if self.id else None,
            f"attributes={self.attributes!r}" if self.attributes else None,
        ]
        return f"{self.__class__.__name__}({', '.join(pc for pc in pieces if pc)})"

    def __str__(self) -> str:
        return self.summary()

    def summary(self) -> str:
        """
        Determine a succinct string description of this descriptor,
        such as "Title: message (ERROR_CODE)", omitting missing parts.
        """
        if self.title and self.message:
            text_part = f"{self.title}: {self.message}"
        else:
            text_part = self.title or self.message or ""
        if self.error_code:
            return f"{text_part} ({self.error_code})" if text_part else self.error_code
        return text_part


@dataclass
class DataAPIWarningDescriptor(DataAPIErrorDescriptor):
    """
    An object representing a single warning returned by the Data API
    in the "status.warnings" part of an otherwise successful response.
    Its attributes are the same as for `DataAPIErrorDescriptor`.
    """

    def __init__(self, error_dict: dict[str, Any] | str) -> None:
        DataAPIErrorDescriptor.__init__(self, error_dict=error_dict)


@dataclass
class DataAPIDetailedErrorDescriptor:
    """
    The errors returned by a single Data API response, grouped together with
    the command that caused them and the response itself.

    An operation spanning several requests (such as `insert_many`) may collect
    one of these for each failed request.

    Attributes:
        error_descriptors: a list of DataAPIErrorDescriptor, one for each
            item in the response "errors" field.
        command: the payload of the request that resulted in the errors.
        raw_response: the full response from the API.
    """

    error_descriptors: list[DataAPIErrorDescriptor]
    command: dict[str, Any] | None
    raw_response: dict[str, Any]
