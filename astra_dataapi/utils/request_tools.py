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
from typing import Any

import httpx

from astra_dataapi.settings.defaults import EFFECTIVELY_INFINITE_TIMEOUT_MS

logger = logging.getLogger(__name__)

# payloads and responses longer than this are shortened in the debug logs
MAX_LOGGED_BODY_LENGTH = 2048


class HttpMethod:
    GET = "GET"
    POST = "POST"
    DELETE = "DELETE"


def _shorten(body: str) -> str:
    if len(body) <= MAX_LOGGED_BODY_LENGTH:
        return body
    omitted = len(body) - MAX_LOGGED_BODY_LENGTH
    return f"{body[:MAX_LOGGED_BODY_LENGTH]}... ({omitted} more characters)"


def log_httpx_request(
    http_method: str,
    full_url: str,
    request_params: dict[str, Any] | None,
    redacted_request_headers: dict[str, str],
    encoded_payload: str | None,
    timeout_ms: int | None,
) -> None:
    """
    Log an outgoing request at debug level.

    The headers are logged as they are passed: secrets must have been
    replaced by the caller already.
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return
    timeout_desc = (
        "none" if to_httpx_timeout(timeout_ms) is None else f"{timeout_ms} ms"
    )
    logger.debug(f"Request: {http_method} {full_url} (timeout: {timeout_desc})")
    if request_params:
        logger.debug(f"Request params: {request_params}")
    logger.debug(f"Request headers: {redacted_request_headers}")
    if encoded_payload is not None:
        logger.debug(f"Request payload: {_shorten(encoded_payload)}")


def log_httpx_response(response: httpx.Response) -> None:
    """Log a received response (status and body) at debug level."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(
        f"Response: {response.status_code} {response.reason_phrase} "
        f"from {response.request.method} {response.request.url}"
    )
    logger.debug(f"Response body: {_shorten(response.text)}")


def to_httpx_timeout(timeout_ms: int | None) -> httpx.Timeout | None:
    # zero and the 'infinite' sentinel both mean no timeout at the wire
    if not timeout_ms or timeout_ms >= EFFECTIVELY_INFINITE_TIMEOUT_MS:
        return None
    return httpx.Timeout(timeout_ms / 1000)
