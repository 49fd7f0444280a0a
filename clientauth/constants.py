from __future__ import annotations

import logging

LOGGER = logging.getLogger("clientauth")

CLIENT_KIND = "oauth2_client"
DRAFT_STATUS = "draft"

CLIENT_ID_KEY = "_oauth2_client_id"
CLIENT_SECRET_KEY = "_oauth2_client_secret"
TYPE_KEY = "_oauth2_client_type"
REDIRECT_URI_KEY = "_oauth2_redirect_uri"
AUTH_CODE_KEY_PREFIX = "_oauth2_authcode_"

CLIENT_ID_LENGTH = 12
CLIENT_SECRET_LENGTH = 48
AUTH_CODE_LENGTH = 12
AUTH_CODE_TTL_SECONDS = 600

MAX_GENERATION_ATTEMPTS = 5
