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

import datetime
import json
import re
from decimal import Decimal
from typing import Any, Dict, Iterable, Mapping, cast

from bson import ObjectId

from astra_dataapi.ids import UUID
from astra_dataapi.settings.defaults import CHECK_DECIMAL_ESCAPING_CONSISTENCY
from astra_dataapi.utils.api_options import FullSerdesOptions, NumberRepresentation

CATCH_ALL_PATH = "*"
WILDCARD_SEGMENT = "*"

# these are a mixture from disparate alphabet, to minimize the chance
# of a collision with user-provided actual content:
DECIMAL_MARKER_PREFIX_STR = "ðä¸‚"
DECIMAL_MARKER_SUFFIX_STR = "âˆ€ðŸ‡¦ðŸ‡«"
DECIMAL_CLEANER_PATTERN = re.compile(
    f'"{DECIMAL_MARKER_PREFIX_STR}([-+0-9.eE]+){DECIMAL_MARKER_SUFFIX_STR}"'
)


class _MarkedDecimalDefuser(json.JSONEncoder):
    def default(self, obj: object) -> Any:
        if isinstance(obj, Decimal):
            return "(defused decimal)"
        return super().default(obj)


class _MarkedDecimalEncoder(json.JSONEncoder):
    def default(self, obj: object) -> Any:
        if isinstance(obj, Decimal):
            if not obj.is_finite():
                raise ValueError(f"Non-finite Decimal values cannot be sent: {obj}.")
            return f"{DECIMAL_MARKER_PREFIX_STR}{obj}{DECIMAL_MARKER_SUFFIX_STR}"
        return super().default(obj)

    @staticmethod
    def _check_mark_match(json_string: str) -> bool:
        return bool(DECIMAL_CLEANER_PATTERN.search(json_string))

    @staticmethod
    def _clean_encoded_string(json_string: str) -> str:
        return re.sub(DECIMAL_CLEANER_PATTERN, r"\1", json_string)


def convert_vector_to_floats(vector: Iterable[Any]) -> list[float]:
    return [float(value) for value in vector]


def is_list_of_floats(vector: Iterable[Any]) -> bool:
    """
    Safely determine if it's a list of floats.
    Assumption: if list, and first item is float, then all items are.
    """
    return isinstance(vector, list) and (
        len(vector) == 0 or isinstance(vector[0], (float, int))
    )


def convert_to_ejson_date_object(
    date_value: datetime.date | datetime.datetime,
) -> dict[str, int]:
    if isinstance(date_value, datetime.datetime):
        if date_value.tzinfo is None:
            # naive datetimes are taken to be UTC
            date_value = date_value.replace(tzinfo=datetime.timezone.utc)
    else:
        date_value = datetime.datetime(
            date_value.year,
            date_value.month,
            date_value.day,
            tzinfo=datetime.timezone.utc,
        )
    return {"$date": int(date_value.timestamp() * 1000)}


def convert_ejson_date_object_to_datetime(
    date_object: dict[str, int],
) -> datetime.datetime:
    return datetime.datetime.fromtimestamp(
        date_object["$date"] / 1000.0, tz=datetime.timezone.utc
    )


def serialize_value(path: list[str], value: Any) -> Any:
    """
    Convert a value into its wire representation.
    The path helps determining special treatments.
    """
    _l2 = ".".join(path[-2:])
    _l1 = ".".join(path[-1:])
    if _l1 == "$vector" and _l2 != "projection.$vector":
        if not is_list_of_floats(value):
            return convert_vector_to_floats(value)
        return value
    if isinstance(value, dict):
        return {k: serialize_value(path + [k], v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [serialize_value(path + [""], list_item) for list_item in value]
    elif isinstance(value, (datetime.datetime, datetime.date)):
        return convert_to_ejson_date_object(value)
    elif isinstance(value, UUID):
        return {"$uuid": str(value)}
    elif isinstance(value, ObjectId):
        return {"$objectId": str(value)}
    else:
        return value


def serialize_for_api(payload: dict[str, Any] | None) -> dict[str, Any] | None:
    """
    Prepare a command payload for the API: dates, UUIDs and ObjectIds
    are made into their `{"$date": ...}`-like extended-JSON forms, and
    values for "$vector" are made into plain lists of floats.

    Decimal values are left untouched, to be written exactly by `encode_payload`.
    """

    if payload:
        return cast(Dict[str, Any], serialize_value([], payload))
    return payload


def encode_payload(payload: dict[str, Any] | None) -> str | None:
    """
    JSON-encode a payload. Decimal values are written as JSON numbers
    with all their digits.
    """
    if payload is None:
        return None
    if CHECK_DECIMAL_ESCAPING_CONSISTENCY:
        _naive_dump = json.dumps(
            payload,
            allow_nan=False,
            separators=(",", ":"),
            ensure_ascii=False,
            cls=_MarkedDecimalDefuser,
        )
        if _MarkedDecimalEncoder._check_mark_match(_naive_dump):
            raise ValueError(
                "The pattern to work around Decimals was detected in a "
                "user-provided item. This payload cannot be JSON-encoded."
            )
    dec_marked_dump = json.dumps(
        payload,
        allow_nan=False,
        separators=(",", ":"),
        ensure_ascii=False,
        cls=_MarkedDecimalEncoder,
    )
    return _MarkedDecimalEncoder._clean_encoded_string(dec_marked_dump)


def decode_response(response_text: str, serdes_options: FullSerdesOptions) -> Any:
    """
    Parse a response body. If a big-number policy is in place, non-integer
    numbers are parsed into Decimal so that no digit is lost before the
    policy is applied to the documents.
    """
    if serdes_options.big_number_policy:
        return json.loads(response_text, parse_float=Decimal)
    return json.loads(response_text)


def _match_priority(pattern: str, path: list[str]) -> tuple[int, int] | None:
    # (segments, -wildcards) of a matching pattern, the higher the better
    if pattern == CATCH_ALL_PATH:
        return (0, 0)
    segments = pattern.split(".")
    if len(segments) != len(path):
        return None
    wildcards = 0
    for p_segment, segment in zip(segments, path):
        if p_segment == WILDCARD_SEGMENT:
            wildcards += 1
        elif p_segment != segment:
            return None
    return (len(segments), -wildcards)


def representation_for_path(
    path: list[str],
    big_number_policy: Mapping[str, NumberRepresentation],
) -> NumberRepresentation:
    """
    Find the number representation prescribed for a (document) path:
    the longest matching pattern wins, ties going to fewer wildcards.
    Paths not covered by the policy use plain numbers.
    """
    best: tuple[int, int] | None = None
    best_repr = NumberRepresentation.NUMBER
    for pattern, representation in big_number_policy.items():
        priority = _match_priority(pattern, path)
        if priority is not None and (best is None or priority > best):
            best = priority
            best_repr = representation
    return best_repr


def coerce_number(
    value: int | float | Decimal, representation: NumberRepresentation
) -> Any:
    if representation == NumberRepresentation.NUMBER:
        return float(value) if isinstance(value, Decimal) else value
    elif representation == NumberRepresentation.BIGINT:
        if isinstance(value, float) or (
            isinstance(value, Decimal) and value != value.to_integral_value()
        ):
            raise ValueError(f"Cannot represent non-integer {value} as an integer.")
        return int(value)
    elif representation == NumberRepresentation.DECIMAL:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    else:
        return str(value)


def deserialize_value(
    path: list[str],
    value: Any,
    big_number_policy: Mapping[str, NumberRepresentation],
) -> Any:
    """
    Restore a value read from the API: extended-JSON objects become
    datetimes, UUIDs and ObjectIds, and numbers are represented according
    to the big-number policy, if any. The path addresses the value within
    its document, list items being addressed by their index.
    """
    if isinstance(value, dict):
        if len(value) == 1 and "$date" in value:
            return convert_ejson_date_object_to_datetime(value)
        elif len(value) == 1 and "$uuid" in value:
            return UUID(value["$uuid"])
        elif len(value) == 1 and "$objectId" in value:
            return ObjectId(value["$objectId"])
        return {
            k: deserialize_value(path + [k], v, big_number_policy)
            for k, v in value.items()
        }
    elif isinstance(value, list):
        return [
            deserialize_value(path + [str(item_i)], item, big_number_policy)
            for item_i, item in enumerate(value)
        ]
    elif isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        if big_number_policy:
            return coerce_number(
                value, representation_for_path(path, big_number_policy)
            )
        return value
    else:
        return value


def deserialize_document(
    document: dict[str, Any], serdes_options: FullSerdesOptions
) -> dict[str, Any]:
    """Process a document just returned from the API."""
    return cast(
        Dict[str, Any],
        deserialize_value([], document, serdes_options.big_number_policy),
    )
