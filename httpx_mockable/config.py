import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, field_validator, model_validator

from .compare import ALL_HEADERS, DEFAULT_IGNORED_HEADERS, IgnoreHeaders
from .models import Mode, Unrecognized

# Read when mode is "env"
ENV_MODE = "HTTPX_MOCKABLE_MODE"
ENV_FILE = "HTTPX_MOCKABLE_FILE"


class MockableConfig(BaseModel):
    """Settings for a Mockable session, validated once at construction."""

    mode: Mode = Mode.passthrough
    file: Path | None = None
    unrecognized: Unrecognized = Unrecognized.exception
    ignore_headers: list[str] | Literal["all"] = []
    ignore_body: bool = False
    # Stripped from recordings, and therefore never compared in playback
    filter_headers: list[str] = []

    @field_validator("mode", "unrecognized", mode="before")
    @classmethod
    def _lower(cls, value):
        return value.lower() if isinstance(value, str) else value

    @field_validator("ignore_headers", mode="before")
    @classmethod
    def _ignore_all(cls, value):
        if isinstance(value, str) and value.lower() == ALL_HEADERS:
            return ALL_HEADERS
        return value

    @model_validator(mode="after")
    def _resolve_mode(self) -> "MockableConfig":
        if self.mode == Mode.env:
            if self.file is not None:
                raise ValueError(
                    f"Do not specify 'file' when 'mode' is 'env'; set {ENV_FILE} instead"
                )
            self.mode = self.mode_from_env()
            env_file = os.getenv(ENV_FILE)
            self.file = Path(env_file) if env_file else None

        if self.mode != Mode.passthrough and self.file is None:
            raise ValueError(f"A recording file is required in {self.mode} mode")
        return self

    @staticmethod
    def mode_from_env() -> Mode:
        value = os.getenv(ENV_MODE, Mode.passthrough).lower()
        if value == Mode.env or value not in Mode.__members__:
            raise ValueError(
                f"Invalid {ENV_MODE} value {value!r}; must be one of "
                f"'{Mode.passthrough}', '{Mode.record}' or '{Mode.playback}'"
            )
        return Mode(value)

    @property
    def effective_ignore_headers(self) -> IgnoreHeaders:
        if self.ignore_headers == ALL_HEADERS:
            return ALL_HEADERS
        names = {*self.ignore_headers, *self.filter_headers}
        return DEFAULT_IGNORED_HEADERS | {name.lower() for name in names}
