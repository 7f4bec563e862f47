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

# Environment names
DATA_API_ENVIRONMENT_PROD = "prod"
DATA_API_ENVIRONMENT_DEV = "dev"
DATA_API_ENVIRONMENT_TEST = "test"
DATA_API_ENVIRONMENT_OTHER = "other"

# Defaults/settings for Database management
DEFAULT_ASTRA_DB_KEYSPACE = "default_keyspace"
DEFAULT_DATA_API_PATH = "/api/json"
DEFAULT_DATA_API_VERSION = "v1"

# Defaults/settings for Data API requests
DEFAULT_INSERT_MANY_CHUNK_SIZE = 50
DEFAULT_INSERT_MANY_CONCURRENCY = 8
DEFAULT_REQUEST_TIMEOUT_MS = 10000
DEFAULT_GENERAL_METHOD_TIMEOUT_MS = 30000
DEFAULT_COLLECTION_ADMIN_TIMEOUT_MS = 60000
DEFAULT_TABLE_ADMIN_TIMEOUT_MS = 30000
DEFAULT_DATABASE_ADMIN_TIMEOUT_MS = 600000
DEFAULT_KEYSPACE_ADMIN_TIMEOUT_MS = 30000
# a zero timeout means "no timeout": this stands in for it in arithmetic
EFFECTIVELY_INFINITE_TIMEOUT_MS = 2**31 - 1
DEFAULT_DATA_API_AUTH_HEADER = "Token"
EMBEDDING_HEADER_API_KEY = "X-Embedding-Api-Key"
DATA_API_INVALID_TOKEN_MESSAGE = "UNAUTHENTICATED: Invalid token"
DATA_API_COLLECTION_NOT_EXIST_CODE = "COLLECTION_NOT_EXIST"

# Defaults/settings for DevOps API requests and admin operations
DEFAULT_DEV_OPS_AUTH_HEADER = "Authorization"
DEFAULT_DEV_OPS_AUTH_PREFIX = "Bearer "
DEFAULT_DEV_OPS_OVERALL_TIMEOUT_MS = 12 * 60 * 1000
DEV_OPS_KEYSPACE_POLL_INTERVAL_MS = 1000
DEV_OPS_DATABASE_POLL_INTERVAL_MS = 10000
DEV_OPS_DATABASE_STATUS_MAINTENANCE = "MAINTENANCE"
DEV_OPS_DATABASE_STATUS_ACTIVE = "ACTIVE"
DEV_OPS_DATABASE_STATUS_PENDING = "PENDING"
DEV_OPS_DATABASE_STATUS_INITIALIZING = "INITIALIZING"
DEV_OPS_DATABASE_STATUS_ASSOCIATING = "ASSOCIATING"
DEV_OPS_DATABASE_STATUS_ERROR = "ERROR"
DEV_OPS_DATABASE_STATUS_TERMINATING = "TERMINATING"
DEV_OPS_DATABASE_STATUS_TERMINATED = "TERMINATED"
DEV_OPS_URL_ENV_MAP = {
    DATA_API_ENVIRONMENT_PROD: "https://api.astra.datastax.com",
    DATA_API_ENVIRONMENT_DEV: "https://api.dev.cloud.datastax.com",
    DATA_API_ENVIRONMENT_TEST: "https://api.test.cloud.datastax.com",
}
API_ENDPOINT_TEMPLATE_ENV_MAP = {
    DATA_API_ENVIRONMENT_PROD: "https://{database_id}-{region}.apps.astra.datastax.com",
    DATA_API_ENVIRONMENT_DEV: "https://{database_id}-{region}.apps.astra-dev.datastax.com",
    DATA_API_ENVIRONMENT_TEST: "https://{database_id}-{region}.apps.astra-test.datastax.com",
}
DEV_OPS_VERSION = "v2"
DEV_OPS_RESPONSE_HTTP_ACCEPTED = 202
DEV_OPS_RESPONSE_HTTP_CREATED = 201

# Settings for redacting secrets in string representations and logging
FIXED_SECRET_PLACEHOLDER = "***"
DEFAULT_REDACTED_HEADER_NAMES = {
    DEFAULT_DATA_API_AUTH_HEADER,
    DEFAULT_DEV_OPS_AUTH_HEADER,
    EMBEDDING_HEADER_API_KEY,
}

# Whether to double-check that encoded payloads contain no accidental
# occurrence of the markers used to write Decimal values exactly
CHECK_DECIMAL_ESCAPING_CONSISTENCY = False
