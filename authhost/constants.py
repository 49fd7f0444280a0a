from __future__ import annotations

import logging

LOGGER = logging.getLogger("clientauth.host")
APP_VERSION = "0.1.0"

STORE_BACKENDS = {"memory", "file"}
TOKEN_BACKENDS = {"signed", "http"}

DEFAULT_STORE_PATH = ".clientauth.json"
DEFAULT_TOKEN_TTL_SECONDS = 3600
DEFAULT_HTTP_RETRIES = 2
