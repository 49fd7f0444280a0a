from __future__ import annotations


class ValidationError(ValueError):
    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class StorageError(RuntimeError):
    def __init__(
        self,
        code: str,
        message: str,
        *,
        entity_id: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.entity_id = entity_id

    def __str__(self) -> str:
        if self.entity_id is None:
            return f"{self.code}: {self.message}"
        return f"{self.code}: {self.message} (entity {self.entity_id})"


class DuplicateKeyError(StorageError):
    def __init__(self, key: str, *, kind: str) -> None:
        super().__init__(
            "duplicate_key",
            f"A {kind} record already holds this value for {key}.",
        )
        self.key = key
        self.kind = kind
