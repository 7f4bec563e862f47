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

import hashlib
import json
from typing import (
    Any,
    Callable,
    Iterable,
    Optional,
    Tuple,
)

from astra_dataapi.serdes import serialize_value

IndexPairType = Tuple[Optional[str], Optional[int]]

ERROR_NO_EMPTY_SAFE_KEYSTART = (
    "The 'key' parameter for distinct cannot be empty or start with a list index."
)
ERROR_NO_EMPTY_KEYPATH = (
    "Field path specification cannot be empty or have empty segments"
)


def _maybe_valid_list_index(key_block: str) -> int | None:
    # '0', '1' is good. '00', '01', '-30' are not.
    try:
        kb_index = int(key_block)
        if kb_index >= 0 and key_block == str(kb_index):
            return kb_index
        else:
            return None
    except ValueError:
        return None


def _create_document_key_extractor(
    key: str,
) -> Callable[[dict[str, Any]], Iterable[Any]]:
    """
    Build a function yielding all values found at a dotted path in a document.
    Lists met along the way are unrolled one level, and a numeric segment
    addresses either a dictionary key or a list item, depending on the
    value it is applied to.
    """
    key_blocks0: list[IndexPairType] = [
        (kb_str, _maybe_valid_list_index(kb_str)) for kb_str in key.split(".")
    ]
    if any(kb[0] == "" for kb in key_blocks0):
        raise ValueError(ERROR_NO_EMPTY_KEYPATH)

    def _extract_with_key_blocks(
        key_blocks: list[IndexPairType], value: Any
    ) -> Iterable[Any]:
        if key_blocks == []:
            if isinstance(value, list):
                for item in value:
                    yield item
            else:
                yield value
            return
        else:
            # go deeper as requested
            rest_key_blocks = key_blocks[1:]
            k_str, k_int = key_blocks[0]
            if isinstance(value, dict):
                if k_str is not None and k_str in value:
                    for item in _extract_with_key_blocks(rest_key_blocks, value[k_str]):
                        yield item
                return
            elif isinstance(value, list):
                if k_int is not None:
                    if len(value) > k_int:
                        for item in _extract_with_key_blocks(
                            rest_key_blocks, value[k_int]
                        ):
                            yield item
                    # otherwise the list has no such element. Nothing to extract.
                else:
                    # auto-unroll of lists:
                    for list_item in value:
                        for item in _extract_with_key_blocks(key_blocks, list_item):
                            yield item
                return
            else:
                # keyblocks are deeper than the document. Nothing to extract.
                return

    def _item_extractor(document: dict[str, Any]) -> Iterable[Any]:
        return _extract_with_key_blocks(key_blocks=key_blocks0, value=document)

    return _item_extractor


def _reduce_distinct_key_to_safe(distinct_key: str) -> str:
    """
    In light of the twofold interpretation of "0" as index and dict key
    in selection (for distinct), and the auto-unroll of lists, it is not
    safe to go beyond the first numeric segment when projecting. See this example:
        document = {'x': [{'y': 'Y', '0': 'ZERO'}]}
        key = "x.0"
    With full key as projection, we would lose the `"y": "Y"` part (mistakenly).
    """
    valid_portion: list[str] = []
    for block in distinct_key.split("."):
        if _maybe_valid_list_index(block) is None:
            valid_portion.append(block)
        else:
            break
    if valid_portion == []:
        raise ValueError(ERROR_NO_EMPTY_SAFE_KEYSTART)
    if valid_portion[0] == "":
        raise ValueError(ERROR_NO_EMPTY_KEYPATH)
    return ".".join(valid_portion)


def _hash_document(document: Any) -> str:
    _normalized_item = serialize_value(path=[], value=document)
    _normalized_json = json.dumps(
        _normalized_item, sort_keys=True, separators=(",", ":"), default=str
    )
    _item_hash = hashlib.md5(_normalized_json.encode()).hexdigest()
    return _item_hash


class DistinctValueCollector:
    """Accumulate the distinct values found at a key, in encounter order."""

    def __init__(self, key: str) -> None:
        self._extractor = _create_document_key_extractor(key)
        self._seen_hashes: set[str] = set()
        self.values: list[Any] = []

    def add_document(self, document: dict[str, Any]) -> None:
        for item in self._extractor(document):
            item_hash = _hash_document(item)
            if item_hash not in self._seen_hashes:
                self._seen_hashes.add(item_hash)
                self.values.append(item)
