from __future__ import annotations

import time
from typing import TYPE_CHECKING, Sequence

from clientauth.callback import CallbackValidator
from clientauth.client import Client
from clientauth.constants import CLIENT_ID_KEY, CLIENT_KIND, LOGGER
from clientauth.models import Record

if TYPE_CHECKING:
    from clientauth.bridge import TokenIssuer
    from clientauth.store import Store


class ClientRepository:
    def __init__(
        self,
        store: "Store",
        *,
        validator: CallbackValidator | None = None,
        token_issuer: "TokenIssuer | None" = None,
        clock=time.time,
    ) -> None:
        self.store = store
        self.validator = validator or CallbackValidator()
        self.token_issuer = token_issuer
        self._clock = clock

    def _wrap(self, record: Record) -> Client:
        return Client(
            self.store,
            record,
            validator=self.validator,
            token_issuer=self.token_issuer,
            clock=self._clock,
        )

    async def create(
        self,
        *,
        name: str,
        description: str,
        redirect_uri: str | Sequence[str],
        client_type: str,
    ) -> Client:
        return await Client.create(
            self.store,
            name=name,
            description=description,
            redirect_uri=redirect_uri,
            client_type=client_type,
            validator=self.validator,
            token_issuer=self.token_issuer,
            clock=self._clock,
        )

    async def get_by_entity_id(self, entity_id: int) -> Client | None:
        record = await self.store.get_record(entity_id)
        if record is None or record.kind != CLIENT_KIND:
            return None
        return self._wrap(record)

    async def get_by_client_id(self, client_id: str) -> Client | None:
        """Look up a client by its public ID.

        Anything other than exactly one match is treated as not found;
        duplicates point at a data-integrity fault and must not be resolved
        by picking one.
        """
        if not isinstance(client_id, str) or not client_id:
            return None

        records = await self.store.query_records(CLIENT_KIND, {CLIENT_ID_KEY: client_id})
        if len(records) > 1:
            LOGGER.warning(
                "Ambiguous client_id=%s matched %s records: %s",
                client_id,
                len(records),
                [record.entity_id for record in records],
            )
        if len(records) != 1:
            return None
        return self._wrap(records[0])
