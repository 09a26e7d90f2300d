from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import DatabaseError, ErrorCode
from .json_store import normalize_name

DEFAULT_FILE_NAME = "database"
DEFAULT_SPACES = 4


class StoreOptions(BaseModel):
    """
    Construction options of a Database.

    Accepts both snake_case names and the camelCase spelling
    (``fileName``, ``autoWrite``) so option dicts written for the JSON
    world can be passed straight through.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    file_name: str = Field(default=DEFAULT_FILE_NAME, alias="fileName")
    cache: bool = False
    auto_write: bool = Field(default=True, alias="autoWrite")
    spaces: int = DEFAULT_SPACES
    directory: Path = Field(default_factory=Path.cwd)

    @field_validator("file_name", mode="before")
    @classmethod
    def _default_file_name(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            return DEFAULT_FILE_NAME
        return normalize_name(v)

    @field_validator("spaces", mode="before")
    @classmethod
    def _coerce_spaces(cls, v: Any) -> int:
        if isinstance(v, bool):
            return DEFAULT_SPACES
        try:
            n = int(v)
        except (TypeError, ValueError):
            return DEFAULT_SPACES
        return max(n, 0)


def get_options(file_name: str | None = None, **overrides: Any) -> StoreOptions:
    raw: dict[str, Any] = dict(overrides)
    if file_name is not None:
        raw["file_name"] = file_name
    try:
        options = StoreOptions.model_validate(raw)
    except ValidationError as e:
        raise DatabaseError(f"invalid options: {e}", ErrorCode.INVALID_INPUT) from e

    # Both off means every mutation would silently vanish.
    if not options.auto_write and not options.cache:
        raise DatabaseError("autoWrite and cache cannot be turned off at the same time", ErrorCode.CONFIGURATION)
    return options
