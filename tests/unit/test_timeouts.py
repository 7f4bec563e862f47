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

import time

import pytest

from astra_dataapi.exceptions import (
    DataAPITimeoutException,
    DevOpsAPITimeoutException,
    to_dataapi_timeout_exception,
    to_devopsapi_timeout_exception,
)
from astra_dataapi.settings.defaults import EFFECTIVELY_INFINITE_TIMEOUT_MS
from astra_dataapi.utils.api_options import TimeoutOptions, defaultTimeoutOptions
from astra_dataapi.utils.timeouts import PROVIDED_TIMEOUT, HTTPRequestInfo, Timeouts

GM = "general_method_timeout_ms"
RQ = "request_timeout_ms"


class TestTimeouts:
    @pytest.mark.describe("test of timeout options merging")
    def test_timeout_options_merging(self) -> None:
        merged = defaultTimeoutOptions.with_override(
            TimeoutOptions(request_timeout_ms=123)
        )
        assert merged.request_timeout_ms == 123
        assert merged.general_method_timeout_ms == 30000
        assert defaultTimeoutOptions.with_override(None) is defaultTimeoutOptions
        assert TimeoutOptions().get(GM) is None

    @pytest.mark.describe("test of single-request timeout manager, default settings")
    def test_single_default(self) -> None:
        timeouts = Timeouts(to_dataapi_timeout_exception)
        manager = timeouts.single(GM)
        remaining_ms, mk_error = manager.advance(
            HTTPRequestInfo(url="http://x/y", payload="{}")
        )
        assert remaining_ms == 10000
        error = mk_error("read")
        assert isinstance(error, DataAPITimeoutException)
        assert error.text == "Command timed out after 10000ms (request_timeout_ms timed out)"
        assert error.timed_out_categories == (RQ,)
        assert error.timeout_type == "read"
        assert error.endpoint == "http://x/y"
        assert error.raw_payload == "{}"

    @pytest.mark.describe("test of single-request timeout manager, method-bound")
    def test_single_method_bound(self) -> None:
        timeouts = Timeouts(
            to_dataapi_timeout_exception,
            TimeoutOptions(general_method_timeout_ms=500),
        )
        remaining_ms, mk_error = timeouts.single(GM).advance()
        assert remaining_ms == 500
        assert mk_error().text == (
            "Command timed out after 500ms (general_method_timeout_ms timed out)"
        )

    @pytest.mark.describe("test of single-request timeout manager, equal categories")
    def test_single_simultaneous(self) -> None:
        timeouts = Timeouts(to_dataapi_timeout_exception)
        manager = timeouts.single(
            GM, TimeoutOptions(request_timeout_ms=2000, general_method_timeout_ms=2000)
        )
        remaining_ms, mk_error = manager.advance()
        assert remaining_ms == 2000
        error = mk_error()
        assert error.text == (
            "Command timed out after 2000ms (request_timeout_ms and "
            "general_method_timeout_ms simultaneously timed out)"
        )
        assert error.timed_out_categories == (RQ, GM)
        assert error.timeout_type == "generic"

    @pytest.mark.describe("test of single-request timeout manager, flat override")
    def test_single_flat(self) -> None:
        timeouts = Timeouts(to_dataapi_timeout_exception)
        remaining_ms, mk_error = timeouts.single(GM, 1500).advance()
        assert remaining_ms == 1500
        assert mk_error().text == (
            "Command timed out after 1500ms "
            "(The timeout provided via `timeout_ms=<number>` timed out)"
        )

        remaining_ms, _ = timeouts.single(GM, 0).advance()
        assert remaining_ms == EFFECTIVELY_INFINITE_TIMEOUT_MS

    @pytest.mark.describe("test of zero meaning no timeout")
    def test_zero_is_infinite(self) -> None:
        timeouts = Timeouts(
            to_dataapi_timeout_exception,
            TimeoutOptions(request_timeout_ms=0, general_method_timeout_ms=0),
        )
        remaining_ms, _ = timeouts.single(GM).advance()
        assert remaining_ms == EFFECTIVELY_INFINITE_TIMEOUT_MS
        remaining_ms, _ = timeouts.multipart(GM).advance()
        assert remaining_ms == EFFECTIVELY_INFINITE_TIMEOUT_MS

    @pytest.mark.describe("test of multipart timeout manager, overall deadline")
    def test_multipart_deadline(self) -> None:
        timeouts = Timeouts(to_dataapi_timeout_exception)
        manager = timeouts.multipart(GM, 1000)
        remaining_1, _ = manager.advance()
        assert remaining_1 == 1000
        time.sleep(0.6)
        remaining_2, _ = manager.advance()
        assert 0 < remaining_2 <= 400
        time.sleep(0.6)
        remaining_3, mk_error = manager.advance()
        assert remaining_3 <= 0
        error = mk_error()
        assert isinstance(error, DataAPITimeoutException)
        assert error.timed_out_categories == (GM,)
        assert error.timeout_ms == 1000
        assert error.text == (
            "Command timed out after 1000ms (general_method_timeout_ms timed out)"
        )

    @pytest.mark.describe("test of multipart timeout manager, request cap")
    def test_multipart_request_cap(self) -> None:
        timeouts = Timeouts(to_dataapi_timeout_exception)
        manager = timeouts.multipart(
            GM, TimeoutOptions(request_timeout_ms=200, general_method_timeout_ms=5000)
        )
        remaining_ms, mk_error = manager.advance()
        assert remaining_ms == 200
        assert mk_error().timed_out_categories == (RQ,)

        # a flat override only concerns the overall deadline
        flat_manager = timeouts.multipart(GM, 50000)
        assert flat_manager.initial() == {RQ: 10000, GM: 50000}
        remaining_ms, _ = flat_manager.advance()
        assert remaining_ms == 10000

    @pytest.mark.describe("test of timeout exceptions for the DevOps API")
    def test_devops_timeouts(self) -> None:
        timeouts = Timeouts(to_devopsapi_timeout_exception)
        manager = timeouts.custom(
            {"database_admin_timeout_ms": 100},
            lambda: (-5, "database_admin_timeout_ms"),
        )
        remaining_ms, mk_error = manager.advance()
        assert remaining_ms == -5
        error = mk_error("connect")
        assert isinstance(error, DevOpsAPITimeoutException)
        assert error.timeout_type == "connect"
        assert error.text == (
            "Command timed out after 100ms (database_admin_timeout_ms timed out)"
        )

    @pytest.mark.describe("test of provided-timeout category reporting")
    def test_provided_timeout_categories(self) -> None:
        timeouts = Timeouts(to_dataapi_timeout_exception)
        manager = timeouts.custom({RQ: 300, GM: 300}, lambda: (300, PROVIDED_TIMEOUT))
        error = manager.advance()[1]()
        assert error.timed_out_categories == (RQ, GM)
        assert error.timeout_ms == 300
