from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from clientauth.constants import CLIENT_KIND, LOGGER

if TYPE_CHECKING:
    from clientauth.store import Store


@dataclass(frozen=True)
class EntitySchema:
    """Storage shape declared for client records.

    ``supports`` lists the human-visible record features; ``field_labels``
    maps the storage field names onto the client attributes they back.
    """

    kind: str = CLIENT_KIND
    supports: tuple[str, ...] = ("title", "editor", "revisions", "author", "thumbnail")
    public: bool = False
    hierarchical: bool = True
    capability_type: tuple[str, str] = ("client", "clients")
    field_labels: dict[str, str] = field(
        default_factory=lambda: {"title": "name", "editor": "description"},
        hash=False,
    )


def register_client_type(store: "Store", schema: EntitySchema | None = None) -> EntitySchema:
    """Declare the client record kind to ``store``.

    Call once at process start, before any client is created.
    """
    schema = schema or EntitySchema()
    store.register_kind(schema)
    LOGGER.info(
        "Registered entity kind=%s public=%s capability=%s",
        schema.kind,
        schema.public,
        "/".join(schema.capability_type),
    )
    return schema
