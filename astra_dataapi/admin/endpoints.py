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

import re
from dataclasses import dataclass

from astra_dataapi.settings.defaults import (
    API_ENDPOINT_TEMPLATE_ENV_MAP,
    DATA_API_ENVIRONMENT_PROD,
    DEV_OPS_URL_ENV_MAP,
)

_ASTRA_API_ENDPOINT_PATTERN = re.compile(
    r"^https://"
    r"(?P<database_id>[0-9a-fA-F]{8}(?:-[0-9a-fA-F]{4}){3}-[0-9a-fA-F]{12})"
    r"-(?P<region>[a-z0-9\-]+)"
    r"\.apps\.astra(?:-(?P<environment>dev|test))?\.datastax\.com"
    r"/?$"
)
ASTRA_API_ENDPOINT_FORM = (
    "https://<db uuid, 8-4-4-4-12 hex format>-<db region>.apps.astra.datastax.com"
)


@dataclass
class ParsedAPIEndpoint:
    """
    The parts of an Astra DB API endpoint.

    Attributes:
        database_id: e. g. "01234567-89ab-cdef-0123-456789abcdef".
        region: a region ID, such as "us-west1".
        environment: one of Environment.PROD, Environment.DEV or Environment.TEST.
    """

    database_id: str
    region: str
    environment: str


def parse_api_endpoint(api_endpoint: str) -> ParsedAPIEndpoint | None:
    """
    Split an Astra DB API endpoint into database ID, region and environment.

    Returns:
        a ParsedAPIEndpoint, or None if the endpoint is not in the Astra DB form
        (such as for self-hosted deployments).
    """

    match = _ASTRA_API_ENDPOINT_PATTERN.match(api_endpoint.strip())
    if match is None:
        return None
    return ParsedAPIEndpoint(
        database_id=match.group("database_id"),
        region=match.group("region"),
        environment=match.group("environment") or DATA_API_ENVIRONMENT_PROD,
    )


def api_endpoint_parsing_error_message(failing_url: str) -> str:
    return (
        f"Cannot parse the supplied API endpoint ({failing_url}). The endpoint "
        f'must be in the following form: "{ASTRA_API_ENDPOINT_FORM}".'
    )


def build_api_endpoint(environment: str, database_id: str, region: str) -> str:
    """Compose the API endpoint of an Astra DB database from its parts."""
    return API_ENDPOINT_TEMPLATE_ENV_MAP[environment].format(
        database_id=database_id,
        region=region,
    )


def resolve_dev_ops_url(environment: str, dev_ops_url: str | None = None) -> str:
    """
    The base URL of the DevOps API for an environment, unless an explicit
    URL is given. Trailing slashes are removed.
    """
    return (dev_ops_url or DEV_OPS_URL_ENV_MAP[environment]).rstrip("/")
