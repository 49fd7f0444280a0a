from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, Sequence

from clientauth import secret_generator
from clientauth.callback import CallbackValidator
from clientauth.constants import (
    AUTH_CODE_KEY_PREFIX,
    AUTH_CODE_LENGTH,
    AUTH_CODE_TTL_SECONDS,
    CLIENT_ID_KEY,
    CLIENT_ID_LENGTH,
    CLIENT_KIND,
    CLIENT_SECRET_KEY,
    CLIENT_SECRET_LENGTH,
    DRAFT_STATUS,
    LOGGER,
    MAX_GENERATION_ATTEMPTS,
    REDIRECT_URI_KEY,
    TYPE_KEY,
)
from clientauth.errors import DuplicateKeyError, StorageError, ValidationError
from clientauth.models import AccessToken, AuthorizationCode, Record

if TYPE_CHECKING:
    from clientauth.bridge import TokenIssuer
    from clientauth.store import Store


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a non-empty string.", field=field)
    return value


def _normalize_redirect_uris(value: str | Sequence[str]) -> list[str]:
    if isinstance(value, str):
        uris = [value]
    elif isinstance(value, (list, tuple)):
        uris = list(value)
    else:
        raise ValidationError(
            "redirect_uri must be a string or a list of strings.",
            field="redirect_uri",
        )

    if not uris:
        raise ValidationError("At least one redirect URI is required.", field="redirect_uri")
    for uri in uris:
        _require_text(uri, "redirect_uri")
    return uris


def _require_type(value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError("client_type must be a string.", field="client_type")
    return value


class Client:
    """A registered third-party application.

    Instances wrap a snapshot of the stored record; operations write through
    the store and refresh the snapshot. Build them through ``Client.create``
    or a ``ClientRepository`` lookup rather than directly.
    """

    def __init__(
        self,
        store: "Store",
        record: Record,
        *,
        validator: CallbackValidator | None = None,
        token_issuer: "TokenIssuer | None" = None,
        clock=time.time,
    ) -> None:
        self._store = store
        self._record = record
        self._validator = validator or CallbackValidator()
        self._token_issuer = token_issuer
        self._clock = clock

    def __repr__(self) -> str:
        return (
            f"Client(entity_id={self.entity_id}, client_id={self.client_id!r}, "
            f"name={self.name!r})"
        )

    # -- accessors -------------------------------------------------------------

    @property
    def entity_id(self) -> int:
        return self._record.entity_id

    @property
    def client_id(self) -> str | None:
        return self._record.meta.get(CLIENT_ID_KEY)

    @property
    def client_secret(self) -> str:
        return self._record.meta.get(CLIENT_SECRET_KEY) or ""

    @property
    def name(self) -> str:
        return self._record.fields.get("title", "")

    @property
    def description(self) -> str:
        return self._record.fields.get("content", "")

    @property
    def type(self) -> str:
        return self._record.meta.get(TYPE_KEY) or ""

    @property
    def redirect_uris(self) -> list[str]:
        value = self._record.meta.get(REDIRECT_URI_KEY)
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return list(value)

    @property
    def status(self) -> str | None:
        return self._record.status

    def to_public_dict(self) -> dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "client_id": self.client_id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "redirect_uris": self.redirect_uris,
            "status": self.status,
        }

    # -- lifecycle -------------------------------------------------------------

    @classmethod
    async def create(
        cls,
        store: "Store",
        *,
        name: str,
        description: str,
        redirect_uri: str | Sequence[str],
        client_type: str,
        validator: CallbackValidator | None = None,
        token_issuer: "TokenIssuer | None" = None,
        clock=time.time,
    ) -> "Client":
        fields = {
            "title": _require_text(name, "name"),
            "content": _require_text(description, "description"),
            "status": DRAFT_STATUS,
        }
        meta = {
            REDIRECT_URI_KEY: _normalize_redirect_uris(redirect_uri),
            TYPE_KEY: _require_type(client_type),
            CLIENT_SECRET_KEY: secret_generator.generate(CLIENT_SECRET_LENGTH),
        }

        for attempt in range(1, MAX_GENERATION_ATTEMPTS + 1):
            meta[CLIENT_ID_KEY] = secret_generator.generate(CLIENT_ID_LENGTH)
            try:
                entity_id = await store.create_record(
                    CLIENT_KIND, fields, meta, unique=(CLIENT_ID_KEY,)
                )
            except DuplicateKeyError:
                LOGGER.warning(
                    "Generated client_id collided; retrying (attempt %s/%s)",
                    attempt,
                    MAX_GENERATION_ATTEMPTS,
                )
                continue
            break
        else:
            raise StorageError("client_id_collision", "Could not generate a unique client ID.")

        record = await store.get_record(entity_id)
        if record is None:
            raise StorageError(
                "not_found",
                "Created client record could not be read back.",
                entity_id=entity_id,
            )

        client = cls(
            store,
            record,
            validator=validator,
            token_issuer=token_issuer,
            clock=clock,
        )
        LOGGER.info("Created client entity_id=%s client_id=%s", entity_id, client.client_id)
        return client

    async def update(
        self,
        *,
        name: str,
        description: str,
        redirect_uri: str | Sequence[str],
        client_type: str,
    ) -> "Client":
        fields = {
            "title": _require_text(name, "name"),
            "content": _require_text(description, "description"),
        }
        meta = {
            REDIRECT_URI_KEY: _normalize_redirect_uris(redirect_uri),
            TYPE_KEY: _require_type(client_type),
        }

        await self._store.update_record(self.entity_id, fields, meta)
        await self._reload()
        LOGGER.info("Updated client entity_id=%s client_id=%s", self.entity_id, self.client_id)
        return self

    async def regenerate_secret(self) -> bool:
        secret = secret_generator.generate(CLIENT_SECRET_LENGTH)
        if not await self._store.set_meta(self.entity_id, CLIENT_SECRET_KEY, secret):
            raise StorageError(
                "secret_regeneration_failed",
                "Could not regenerate the client secret.",
                entity_id=self.entity_id,
            )

        self._record.meta[CLIENT_SECRET_KEY] = secret
        LOGGER.info("Regenerated secret for client_id=%s", self.client_id)
        return True

    async def delete(self) -> bool:
        deleted = bool(await self._store.delete_record(self.entity_id, cascade=True))
        if deleted:
            LOGGER.info("Deleted client entity_id=%s client_id=%s", self.entity_id, self.client_id)
        else:
            LOGGER.warning("Failed to delete client entity_id=%s", self.entity_id)
        return deleted

    async def _reload(self) -> None:
        record = await self._store.get_record(self.entity_id)
        if record is None:
            raise StorageError(
                "not_found",
                "Client record no longer exists.",
                entity_id=self.entity_id,
            )
        self._record = record

    # -- redirect URIs ---------------------------------------------------------

    def check_redirect_uri(self, uri: str) -> bool:
        return self._validator.check(self, uri)

    # -- authorization codes ---------------------------------------------------

    async def issue_authorization_code(self, user_id: str) -> str:
        """Mint a single-use authorization code for ``user_id``.

        The code is stored as metadata on this client, so it is scoped to
        the client and removed along with it. Redemption (expiry check and
        deletion) belongs to the token endpoint.
        """
        _require_text(user_id, "user_id")

        for attempt in range(1, MAX_GENERATION_ATTEMPTS + 1):
            code = secret_generator.generate(AUTH_CODE_LENGTH)
            issued_at = self._clock()
            authorization = AuthorizationCode(
                code=code,
                client_id=self.client_id or "",
                user_id=user_id,
                issued_at=issued_at,
                expires_at=issued_at + AUTH_CODE_TTL_SECONDS,
            )
            added = await self._store.add_meta(
                self.entity_id,
                AUTH_CODE_KEY_PREFIX + code,
                authorization.to_meta(),
                unique=True,
            )
            if added:
                LOGGER.info(
                    "Issued authorization code client_id=%s user_id=%s",
                    self.client_id,
                    user_id,
                )
                return code

            if await self._store.get_record(self.entity_id) is None:
                raise StorageError(
                    "not_found",
                    "Client record no longer exists.",
                    entity_id=self.entity_id,
                )
            LOGGER.warning(
                "Authorization code collided for client_id=%s; retrying (attempt %s/%s)",
                self.client_id,
                attempt,
                MAX_GENERATION_ATTEMPTS,
            )

        raise StorageError(
            "authorization_code_collision",
            "Could not store a unique authorization code.",
            entity_id=self.entity_id,
        )

    async def get_authorization_code(self, code: str) -> AuthorizationCode | None:
        if not isinstance(code, str) or not code:
            return None
        payload = await self._store.get_meta(self.entity_id, AUTH_CODE_KEY_PREFIX + code)
        if not isinstance(payload, dict):
            return None
        return AuthorizationCode.from_meta(code, self.client_id or "", payload)

    async def delete_authorization_code(self, code: str) -> bool:
        if not isinstance(code, str) or not code:
            return False
        return await self._store.delete_meta(self.entity_id, AUTH_CODE_KEY_PREFIX + code)

    # -- tokens ----------------------------------------------------------------

    async def issue_token(self, user_id: str) -> AccessToken:
        if self._token_issuer is None:
            raise RuntimeError("No token issuer configured for this client.")
        return await self._token_issuer.issue_token(self, user_id)
