"""Identifier casing for generated methods and types.

  login_user      -> loginUser / LoginUser
  get-pet-by-id   -> getPetById / GetPetById
  "List all pets" -> listAllPets / ListAllPets
  getPetById      -> getPetById / GetPetById
"""

import re
from typing import List

FALLBACK_NAME = "unknown"

# Runs of anything that is not a letter or digit (underscore included)
_SEPARATORS = re.compile(r"[\W_]+")


def _split(raw: str) -> List[str]:
    return [part for part in _SEPARATORS.split(raw or "") if part]


def _join(parts: List[str], upper_first: bool) -> str:
    name = "".join(part[:1].upper() + part[1:] for part in parts)
    if not name:
        return ""
    head = name[:1].upper() if upper_first else name[:1].lower()
    name = head + name[1:]
    if name[0].isdigit():
        name = "_" + name
    return name


def to_method_name(raw: str) -> str:
    """Convert an arbitrary identifier to lowerCamelCase."""
    return _join(_split(raw), upper_first=False) or FALLBACK_NAME


def to_type_name(raw: str) -> str:
    """Convert an arbitrary identifier to PascalCase."""
    return _join(_split(raw), upper_first=True) or FALLBACK_NAME.capitalize()


def operation_name_source(operation) -> str:
    """Pick the raw name for an operation: operationId, summary, then the fallback."""
    return operation.operation_id or operation.summary or FALLBACK_NAME
