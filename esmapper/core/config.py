from __future__ import annotations

from enum import Enum

from .data_model import DataModel

DEFAULT_SIZE = 10000


class IdType(str, Enum):
    """Identifier generation mode.

    Attributes:
        BACKEND: Identifier assigned by the backend on insert.
        UUID: Random UUID generated on insert.
        CUSTOM: Identifier read from the entity key field.
    """

    BACKEND = "backend"
    UUID = "uuid"
    CUSTOM = "custom"


class MapperConfig(DataModel):
    """Mapper config.

    Passed explicitly to the mapper at construction; there is
    no process-wide configuration.
    """

    date_format: str | None = None
    """Date format (strftime) used when a field declares none."""

    id_type: IdType = IdType.BACKEND
    """Identifier mode for document types that do not declare one."""

    log_dsl: bool = False
    """A value indicating whether compiled search requests are logged."""

    default_size: int = DEFAULT_SIZE
    """Search size used when the conditions set no limit."""

    write_back_ids: bool = True
    """A value indicating whether identifiers assigned on write
    are set back onto the written entities."""

    refresh: bool | str | None = None
    """Refresh policy forwarded on write requests
    (True, False or "wait_for")."""
