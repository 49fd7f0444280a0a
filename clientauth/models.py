from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Record:
    entity_id: int
    kind: str
    fields: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def status(self) -> str | None:
        return self.fields.get("status")


@dataclass
class AuthorizationCode:
    code: str
    client_id: str
    user_id: str
    issued_at: float
    expires_at: float

    def is_expired(self, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return current >= self.expires_at

    def to_meta(self) -> dict[str, Any]:
        return {
            "user": self.user_id,
            "issued_at": self.issued_at,
            "expires_at": self.expires_at,
        }

    @classmethod
    def from_meta(cls, code: str, client_id: str, payload: dict) -> "AuthorizationCode":
        return cls(
            code=code,
            client_id=client_id,
            user_id=payload["user"],
            issued_at=float(payload["issued_at"]),
            expires_at=float(payload["expires_at"]),
        )


@dataclass
class AccessToken:
    token: str
    client_id: str
    user_id: str
    expires_at: float
    token_type: str = "bearer"

    def expires_in(self, now: float | None = None) -> int:
        current = time.time() if now is None else now
        return max(0, int(self.expires_at - current))

    @classmethod
    def from_payload(cls, payload: dict, *, client_id: str, user_id: str) -> "AccessToken":
        token = payload.get("access_token")
        expires_in = payload.get("expires_in")
        token_type = payload.get("token_type", "bearer")

        if not isinstance(token, str) or not token:
            raise RuntimeError("Token response missing access_token.")
        if not isinstance(expires_in, int) or isinstance(expires_in, bool):
            raise RuntimeError("Token response missing expires_in.")
        if not isinstance(token_type, str):
            raise RuntimeError("Token response token_type must be a string.")

        return cls(
            token=token,
            client_id=client_id,
            user_id=user_id,
            expires_at=time.time() + expires_in,
            token_type=token_type.lower(),
        )
