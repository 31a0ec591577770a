"""Base model and enum for configuration records.

Every record model inherits from :class:`LinkSyncBaseModel` which
provides:

* ``alias_generator=to_camel`` so the camelCase keys of the wire body
  map automatically to snake_case fields.
* A ``model_validator(mode="before")`` that renames legacy keys listed
  in a subclass ``_KEY_ALIASES`` table and drops ``None`` values so the
  field default is used.

Enumerations inherit from :class:`LinkSyncEnum` which adds an ``UNKNOWN``
member at ``-1`` and a ``_missing_`` hook that returns ``UNKNOWN`` for
any value without a mapped member.
"""

from __future__ import annotations

import enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class LinkSyncEnum(enum.IntEnum):
    """Base for record enums.

    Every subclass **must** define ``UNKNOWN = -1``.
    """

    @classmethod
    def _missing_(cls, value: object) -> LinkSyncEnum:
        # pylint: disable=no-member
        if hasattr(cls, "UNKNOWN"):
            unknown: LinkSyncEnum = cls.UNKNOWN  # type: ignore[attr-defined]
            return unknown
        return next(iter(cls))


class LinkSyncBaseModel(BaseModel):
    """Base for configuration record models."""

    _KEY_ALIASES: ClassVar[dict[str, str]] = {}
    """Legacy camelCase key -> current camelCase key."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @staticmethod
    def _clean_dict(values: dict[str, Any], aliases: dict[str, str] | None = None) -> dict[str, Any]:
        working = dict(values)
        if aliases:
            for old_key, new_key in aliases.items():
                if old_key in working and new_key not in working:
                    working[new_key] = working.pop(old_key)
        return {key: value for key, value in working.items() if value is not None}

    @model_validator(mode="before")
    @classmethod
    def _apply_key_aliases(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        aliases: dict[str, str] = getattr(cls, "_KEY_ALIASES", {})
        return LinkSyncBaseModel._clean_dict(values, aliases)
