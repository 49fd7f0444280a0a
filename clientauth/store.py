from __future__ import annotations

import copy
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable

from clientauth.errors import DuplicateKeyError, StorageError
from clientauth.models import Record
from clientauth.schema import EntitySchema


class Store(ABC):
    """Record and metadata storage consumed by the client core.

    Every record belongs to a kind declared through ``register_kind`` and
    carries two mappings: ``fields`` (title, content, status, ...) and
    ``meta`` (arbitrary keyed values attached to the record).
    """

    @abstractmethod
    def register_kind(self, schema: EntitySchema) -> None:
        raise NotImplementedError

    @abstractmethod
    async def create_record(
        self,
        kind: str,
        fields: dict[str, Any],
        meta: dict[str, Any] | None = None,
        unique: Iterable[str] = (),
    ) -> int:
        raise NotImplementedError

    @abstractmethod
    async def update_record(
        self,
        entity_id: int,
        fields: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> int:
        raise NotImplementedError

    @abstractmethod
    async def delete_record(self, entity_id: int, cascade: bool = True) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def get_record(self, entity_id: int) -> Record | None:
        raise NotImplementedError

    @abstractmethod
    async def query_records(self, kind: str, meta_filter: dict[str, Any]) -> list[Record]:
        raise NotImplementedError

    @abstractmethod
    async def get_meta(self, entity_id: int, key: str) -> Any | None:
        raise NotImplementedError

    @abstractmethod
    async def set_meta(self, entity_id: int, key: str, value: Any, unique: bool = False) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def add_meta(self, entity_id: int, key: str, value: Any, unique: bool = False) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def delete_meta(self, entity_id: int, key: str) -> bool:
        raise NotImplementedError


def _empty_state() -> dict[str, Any]:
    return {"next_id": 1, "records": {}}


class MemoryStore(Store):
    def __init__(self) -> None:
        self._schemas: dict[str, EntitySchema] = {}
        self._state = _empty_state()

    def register_kind(self, schema: EntitySchema) -> None:
        existing = self._schemas.get(schema.kind)
        if existing is not None and existing != schema:
            raise ValueError(f"Entity kind {schema.kind!r} is already registered differently.")
        self._schemas[schema.kind] = schema

    async def create_record(
        self,
        kind: str,
        fields: dict[str, Any],
        meta: dict[str, Any] | None = None,
        unique: Iterable[str] = (),
    ) -> int:
        if kind not in self._schemas:
            raise StorageError("unknown_kind", f"Entity kind {kind!r} is not registered.")

        meta = dict(meta or {})
        state = self._read_all()
        for key in unique:
            if key not in meta:
                raise ValueError(f"Unique key {key!r} has no value.")
            if self._find_holder(state, kind, key, meta[key]) is not None:
                raise DuplicateKeyError(key, kind=kind)

        entity_id = int(state["next_id"])
        state["next_id"] = entity_id + 1
        state["records"][str(entity_id)] = {
            "kind": kind,
            "fields": copy.deepcopy(dict(fields)),
            "meta": copy.deepcopy(meta),
        }
        self._write_all(state)
        return entity_id

    async def update_record(
        self,
        entity_id: int,
        fields: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> int:
        state = self._read_all()
        raw = state["records"].get(str(entity_id))
        if raw is None:
            raise StorageError("not_found", "Record does not exist.", entity_id=entity_id)

        raw["fields"].update(copy.deepcopy(dict(fields)))
        raw["meta"].update(copy.deepcopy(dict(meta or {})))
        self._write_all(state)
        return entity_id

    async def delete_record(self, entity_id: int, cascade: bool = True) -> bool:
        state = self._read_all()
        raw = state["records"].get(str(entity_id))
        if raw is None:
            return False
        if not cascade and raw["meta"]:
            return False

        del state["records"][str(entity_id)]
        self._write_all(state)
        return True

    async def get_record(self, entity_id: int) -> Record | None:
        raw = self._read_all()["records"].get(str(entity_id))
        if raw is None:
            return None
        return self._to_record(str(entity_id), raw)

    async def query_records(self, kind: str, meta_filter: dict[str, Any]) -> list[Record]:
        matches = []
        for key, raw in self._read_all()["records"].items():
            if raw["kind"] != kind:
                continue
            if all(raw["meta"].get(name) == value for name, value in meta_filter.items()):
                matches.append(self._to_record(key, raw))
        return sorted(matches, key=lambda record: record.entity_id)

    async def get_meta(self, entity_id: int, key: str) -> Any | None:
        raw = self._read_all()["records"].get(str(entity_id))
        if raw is None:
            return None
        return copy.deepcopy(raw["meta"].get(key))

    async def set_meta(self, entity_id: int, key: str, value: Any, unique: bool = False) -> bool:
        state = self._read_all()
        raw = state["records"].get(str(entity_id))
        if raw is None:
            return False
        if unique:
            holder = self._find_holder(state, raw["kind"], key, value)
            if holder is not None and holder != str(entity_id):
                return False

        raw["meta"][key] = copy.deepcopy(value)
        self._write_all(state)
        return True

    async def add_meta(self, entity_id: int, key: str, value: Any, unique: bool = False) -> bool:
        state = self._read_all()
        raw = state["records"].get(str(entity_id))
        if raw is None:
            return False
        if unique and key in raw["meta"]:
            return False

        raw["meta"][key] = copy.deepcopy(value)
        self._write_all(state)
        return True

    async def delete_meta(self, entity_id: int, key: str) -> bool:
        state = self._read_all()
        raw = state["records"].get(str(entity_id))
        if raw is None or key not in raw["meta"]:
            return False

        del raw["meta"][key]
        self._write_all(state)
        return True

    @staticmethod
    def _find_holder(state: dict[str, Any], kind: str, key: str, value: Any) -> str | None:
        for record_key, raw in state["records"].items():
            if raw["kind"] == kind and key in raw["meta"] and raw["meta"][key] == value:
                return record_key
        return None

    @staticmethod
    def _to_record(key: str, raw: dict[str, Any]) -> Record:
        return Record(
            entity_id=int(key),
            kind=raw["kind"],
            fields=copy.deepcopy(raw["fields"]),
            meta=copy.deepcopy(raw["meta"]),
        )

    def _read_all(self) -> dict[str, Any]:
        return self._state

    def _write_all(self, payload: dict[str, Any]) -> None:
        self._state = payload


class FileStore(MemoryStore):
    """JSON-file backed store; the whole document is rewritten on each change."""

    def __init__(self, path: str | Path = ".clientauth.json") -> None:
        super().__init__()
        self._path = Path(path)

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return _empty_state()

        raw = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict) or not isinstance(raw.get("records"), dict):
            raise StorageError(
                "corrupt_store",
                "Store file is invalid; expected a JSON object with a records mapping.",
            )
        raw.setdefault("next_id", 1)
        return raw

    def _write_all(self, payload: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f"{self._path.name}.",
            suffix=".tmp",
            dir=self._path.parent,
        )
        tmp_path = Path(tmp_name)

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
