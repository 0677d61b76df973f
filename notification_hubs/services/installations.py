"""Installation JSON codec."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from notification_hubs.exceptions import RegistrationDecodeError
from notification_hubs.models.installation import Installation, InstallationChange

if TYPE_CHECKING:
    from collections.abc import Sequence

INSTALLATIONS_PATH = "installations"
INSTALLATION_CONTENT_TYPE = "application/json"
INSTALLATION_PATCH_CONTENT_TYPE = "application/json-patch+json"

_changes_adapter = TypeAdapter(list[InstallationChange])


def encode_installation(installation: Installation) -> bytes:
    """camelCase JSON body for ``PUT installations/{id}``; unset fields are omitted."""
    return installation.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


def decode_installation(data: bytes | str) -> Installation:
    """
    Decode a ``GET installations/{id}`` response.

    Raises:
        RegistrationDecodeError: If the body is not a valid installation
    """
    try:
        return Installation.model_validate_json(data)
    except ValidationError as e:
        msg = f"invalid installation: {e}"
        raise RegistrationDecodeError(msg) from e


def encode_changes(changes: Sequence[InstallationChange]) -> bytes:
    """JSON-Patch document for ``PATCH installations/{id}``."""
    return _changes_adapter.dump_json(list(changes), exclude_none=True)
