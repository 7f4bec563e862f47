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
from dataclasses import dataclass
from typing import Callable, Tuple, Union

from astra_dataapi.settings.defaults import EFFECTIVELY_INFINITE_TIMEOUT_MS
from astra_dataapi.utils.api_options import (
    FullTimeoutOptions,
    TimeoutOptions,
    defaultTimeoutOptions,
)

PROVIDED_TIMEOUT = "provided"

# A single category name, a pair of simultaneously-expired categories,
# or PROVIDED_TIMEOUT for a flat `timeout_ms=<number>` override.
TimedOutCategories = Union[str, Tuple[str, ...]]

# What a method accepts to override its timeouts for one invocation.
TimeoutOverride = Union[int, TimeoutOptions, None]


@dataclass
class HTTPRequestInfo:
    """
    Details on the HTTP request about to be attempted, so that an eventual
    timeout error can report them.

    Attributes:
        url: the full URL targeted by the request.
        payload: the encoded request body, if any.
    """

    url: str | None = None
    payload: str | None = None


class TimeoutManager:
    """
    A per-operation object keeping track of the time budget of an operation,
    which may span one or more HTTP requests.

    The `advance` method is to be called right before each HTTP request:
    it returns the time the request is allowed to last and a factory for the
    exception to raise should that time be non-positive (or should the request
    itself time out).

    Instances are obtained through the methods of `Timeouts`.
    """

    def __init__(
        self,
        *,
        initial: dict[str, int],
        advance: Callable[[], tuple[int, TimedOutCategories]],
        mk_timeout_error: MkTimeoutError,
    ) -> None:
        self._initial = initial
        self._advance = advance
        self._mk_timeout_error = mk_timeout_error

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._initial})"

    def initial(self) -> dict[str, int]:
        """The resolved timeouts (by category name) this manager enforces."""
        return dict(self._initial)

    def advance(
        self, info: HTTPRequestInfo | None = None
    ) -> tuple[int, Callable[..., Exception]]:
        """
        Compute the time budget for the next HTTP request.

        Args:
            info: details on the request, used to enrich the timeout error.

        Returns:
            a (remaining_ms, error_factory) pair. The factory accepts an
            optional `timeout_type` string ("connect", "read", ...) and
            builds the timeout exception naming the responsible categories.
        """
        remaining_ms, categories = self._advance()
        _info = info or HTTPRequestInfo()

        def _error_factory(timeout_type: str = "generic") -> Exception:
            return self._mk_timeout_error(self, categories, _info, timeout_type)

        return remaining_ms, _error_factory


MkTimeoutError = Callable[
    [TimeoutManager, TimedOutCategories, HTTPRequestInfo, str], Exception
]


def _effective(timeout_ms: int | None) -> int:
    return timeout_ms or EFFECTIVELY_INFINITE_TIMEOUT_MS


def format_timeout_message(
    timeout_manager: TimeoutManager,
    categories: TimedOutCategories,
) -> str:
    initial = timeout_manager.initial()
    if categories == PROVIDED_TIMEOUT:
        timeout_ms = next(iter(initial.values()), 0)
        description = "The timeout provided via `timeout_ms=<number>` timed out"
    elif isinstance(categories, tuple):
        timeout_ms = initial.get(categories[0], 0)
        description = " and ".join(categories) + " simultaneously timed out"
    else:
        timeout_ms = initial.get(categories, 0)
        description = f"{categories} timed out"
    return f"Command timed out after {timeout_ms}ms ({description})"


class Timeouts:
    """
    The factory of timeout managers for a given API, holding the base timeouts
    in effect (the defaults, possibly overridden by the user on the client,
    database or collection).

    Args:
        mk_timeout_error: a function building the timeout exception, given
            the manager, the expired categories, the request info and the
            timeout type.
        base_timeouts: a partial set of timeouts overriding the defaults.
    """

    base_timeouts: FullTimeoutOptions

    def __init__(
        self,
        mk_timeout_error: MkTimeoutError,
        base_timeouts: TimeoutOptions | None = None,
    ) -> None:
        self._mk_timeout_error = mk_timeout_error
        self.base_timeouts = Timeouts.merge(defaultTimeoutOptions, base_timeouts)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.base_timeouts})"

    def single(self, category: str, timeout: TimeoutOverride = None) -> TimeoutManager:
        """
        A manager for an operation issuing exactly one HTTP request:
        the smaller of the request timeout and the `category` timeout applies.

        Args:
            category: the timeout category governing the operation,
                e.g. "general_method_timeout_ms".
            timeout: an optional override, either a flat number of milliseconds
                (applied to both involved categories) or a `TimeoutOptions`.
        """
        if isinstance(timeout, int):
            flat_ms = _effective(timeout)
            return self.custom(
                {"request_timeout_ms": flat_ms, category: flat_ms},
                lambda: (flat_ms, PROVIDED_TIMEOUT),
            )

        override = timeout or TimeoutOptions()
        request_ms = _effective(
            _first_not_none(
                override.get("request_timeout_ms"),
                self.base_timeouts.request_timeout_ms,
            )
        )
        category_ms = _effective(
            _first_not_none(override.get(category), self.base_timeouts.get(category))
        )
        timeout_ms = min(request_ms, category_ms)
        categories: TimedOutCategories
        if request_ms == category_ms:
            categories = ("request_timeout_ms", category)
        elif request_ms < category_ms:
            categories = "request_timeout_ms"
        else:
            categories = category
        return self.custom(
            {"request_timeout_ms": request_ms, category: category_ms},
            lambda: (timeout_ms, categories),
        )

    def multipart(
        self, category: str, timeout: TimeoutOverride = None
    ) -> TimeoutManager:
        """
        A manager for an operation issuing a sequence of HTTP requests, all
        subject to one overall deadline (`category`) and each individually
        capped by the request timeout. The clock starts at the first `advance`.

        Args:
            category: the timeout category governing the whole operation.
            timeout: an optional override. A flat number is taken as the
                overall timeout; a `TimeoutOptions` may set both categories.
        """
        if isinstance(timeout, TimeoutOptions):
            request_ms = _effective(
                _first_not_none(
                    timeout.get("request_timeout_ms"),
                    self.base_timeouts.request_timeout_ms,
                )
            )
            overall_ms = _effective(
                _first_not_none(
                    timeout.get(category), self.base_timeouts.get(category)
                )
            )
        else:
            request_ms = _effective(self.base_timeouts.request_timeout_ms)
            overall_ms = _effective(
                timeout if isinstance(timeout, int) else self.base_timeouts.get(category)
            )

        started_ms: int | None = None

        def _advance() -> tuple[int, TimedOutCategories]:
            nonlocal started_ms
            now_ms = int(time.time() * 1000)
            if started_ms is None:
                started_ms = now_ms
            overall_left_ms = overall_ms - (now_ms - started_ms)
            if overall_left_ms < request_ms:
                return overall_left_ms, category
            elif overall_left_ms > request_ms:
                return request_ms, "request_timeout_ms"
            else:
                return overall_left_ms, ("request_timeout_ms", category)

        return self.custom(
            {"request_timeout_ms": request_ms, category: overall_ms},
            _advance,
        )

    def custom(
        self,
        initial: dict[str, int],
        advance: Callable[[], tuple[int, TimedOutCategories]],
    ) -> TimeoutManager:
        """
        A manager with caller-supplied timing logic.

        Args:
            initial: the resolved timeouts, by category, for reporting purposes.
            advance: a function returning (remaining_ms, responsible categories).
        """
        return TimeoutManager(
            initial=initial,
            advance=advance,
            mk_timeout_error=self._mk_timeout_error,
        )

    @staticmethod
    def merge(
        base: FullTimeoutOptions, override: TimeoutOptions | None
    ) -> FullTimeoutOptions:
        """
        Apply the fields set in `override` on top of `base`. If `override`
        is None, `base` itself is returned.
        """
        return base.with_override(override)


def _first_not_none(*values: int | None) -> int | None:
    for value in values:
        if value is not None:
            return value
    return None

