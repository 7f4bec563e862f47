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

from enum import Enum, EnumMeta
from typing import TypeVar

T = TypeVar("T", bound="StrEnum")


class StrEnumMeta(EnumMeta):
    def _lookup_member_name(cls, value: str) -> str | None:
        """Find the member name matching `value` by name or by value, ignoring case."""
        u_value = value.upper()
        for name, member in cls._member_map_.items():
            if name.upper() == u_value or str(member.value).upper() == u_value:
                return name
        return None

    def __contains__(cls, value: object) -> bool:
        if isinstance(value, str):
            return cls._lookup_member_name(value) is not None
        return isinstance(value, cls)


class StrEnum(Enum, metaclass=StrEnumMeta):
    """
    An Enum whose members are strings, which can be built leniently out of
    user-provided strings (matching member names or values, case-insensitive).
    """

    @classmethod
    def coerce(cls: type[T], value: str | T) -> T:
        """
        Return the member corresponding to the input, which can be either
        a member already or a string. Raise ValueError for non-matching inputs.
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            member_name = cls._lookup_member_name(value)
            if member_name is not None:
                return cls[member_name]
        raise ValueError(
            f"Invalid value '{value}' for {cls.__name__}. "
            f"Allowed values are: {cls.values()}"
        )

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]
