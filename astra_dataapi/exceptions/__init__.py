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

import httpx

from astra_dataapi.exceptions.collection_exceptions import (
    CollectionDeleteManyException,
    CollectionInsertManyException,
    CollectionUpdateManyException,
    TooManyDocumentsToCountException,
)
from astra_dataapi.exceptions.data_api_exceptions import (
    CollectionNotFoundException,
    CursorException,
    DataAPIAuthenticationException,
    DataAPIException,
    DataAPIHttpException,
    DataAPIResponseException,
    DataAPITimeoutException,
    UnexpectedDataAPIResponseException,
)
from astra_dataapi.exceptions.devops_api_exceptions import (
    DevOpsAPIErrorDescriptor,
    DevOpsAPIException,
    DevOpsAPIHttpException,
    DevOpsAPIResponseException,
    DevOpsAPITimeoutException,
    DevOpsAPIUnexpectedStateException,
    UnexpectedDevOpsAPIResponseException,
)
from astra_dataapi.exceptions.error_descriptors import (
    DataAPIDetailedErrorDescriptor,
    DataAPIErrorDescriptor,
    DataAPIWarningDescriptor,
)
from astra_dataapi.utils.timeouts import (
    PROVIDED_TIMEOUT,
    HTTPRequestInfo,
    TimedOutCategories,
    TimeoutManager,
    format_timeout_message,
)


def httpx_timeout_type(httpx_timeout: httpx.TimeoutException) -> str:
    """Name the phase of the HTTP request during which a timeout occurred."""
    if isinstance(httpx_timeout, httpx.ConnectTimeout):
        return "connect"
    elif isinstance(httpx_timeout, httpx.ReadTimeout):
        return "read"
    elif isinstance(httpx_timeout, httpx.WriteTimeout):
        return "write"
    elif isinstance(httpx_timeout, httpx.PoolTimeout):
        return "pool"
    else:
        return "generic"


def _timeout_exception_kwargs(
    timeout_manager: TimeoutManager,
    categories: TimedOutCategories,
    info: HTTPRequestInfo,
    timeout_type: str,
) -> dict[str, object]:
    initial = timeout_manager.initial()
    category_tuple: tuple[str, ...]
    if categories == PROVIDED_TIMEOUT:
        category_tuple = tuple(initial.keys())
    elif isinstance(categories, tuple):
        category_tuple = categories
    else:
        category_tuple = (categories,)
    return {
        "text": format_timeout_message(timeout_manager, categories),
        "timeout_type": timeout_type,
        "endpoint": info.url,
        "raw_payload": info.payload,
        "timeout_ms": initial.get(category_tuple[0]) if category_tuple else None,
        "timed_out_categories": category_tuple,
    }


def to_dataapi_timeout_exception(
    timeout_manager: TimeoutManager,
    categories: TimedOutCategories,
    info: HTTPRequestInfo,
    timeout_type: str = "generic",
) -> DataAPITimeoutException:
    return DataAPITimeoutException(
        **_timeout_exception_kwargs(  # type: ignore[arg-type]
            timeout_manager, categories, info, timeout_type
        )
    )


def to_devopsapi_timeout_exception(
    timeout_manager: TimeoutManager,
    categories: TimedOutCategories,
    info: HTTPRequestInfo,
    timeout_type: str = "generic",
) -> DevOpsAPITimeoutException:
    return DevOpsAPITimeoutException(
        **_timeout_exception_kwargs(  # type: ignore[arg-type]
            timeout_manager, categories, info, timeout_type
        )
    )


__all__ = [
    "DevOpsAPIException",
    "DevOpsAPIHttpException",
    "DevOpsAPITimeoutException",
    "DevOpsAPIErrorDescriptor",
    "DevOpsAPIUnexpectedStateException",
    "UnexpectedDevOpsAPIResponseException",
    "DevOpsAPIResponseException",
    "DataAPIErrorDescriptor",
    "DataAPIWarningDescriptor",
    "DataAPIDetailedErrorDescriptor",
    "DataAPIException",
    "DataAPIHttpException",
    "DataAPIAuthenticationException",
    "CollectionNotFoundException",
    "DataAPITimeoutException",
    "CursorException",
    "TooManyDocumentsToCountException",
    "UnexpectedDataAPIResponseException",
    "DataAPIResponseException",
    "CollectionInsertManyException",
    "CollectionDeleteManyException",
    "CollectionUpdateManyException",
]

__pdoc__ = {
    "to_dataapi_timeout_exception": False,
    "to_devopsapi_timeout_exception": False,
    "httpx_timeout_type": False,
}
