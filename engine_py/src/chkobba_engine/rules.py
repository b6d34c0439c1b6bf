"""
Room settings and validation.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from .constants import (
    DEFAULT_TARGET_SCORE, MAX_TARGET_SCORE, MIN_TARGET_SCORE, MODE_1V1, MODE_2V2,
)


def normalize_target_score(value: Any) -> int:
    """
    Coerce a requested target score into the playable range.

    Non-numeric or non-positive input falls back to the default; anything
    else is rounded and clamped to [MIN_TARGET_SCORE, MAX_TARGET_SCORE].
    """
    if isinstance(value, bool):
        return DEFAULT_TARGET_SCORE
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return DEFAULT_TARGET_SCORE
    if parsed != parsed or parsed <= 0:  # NaN
        return DEFAULT_TARGET_SCORE
    if parsed == float('inf'):
        return MAX_TARGET_SCORE
    return max(MIN_TARGET_SCORE, min(int(round(parsed)), MAX_TARGET_SCORE))


def normalize_mode(value: Any) -> str:
    """Lenient mode parsing for client input: anything but '2v2' is a duel."""
    return MODE_2V2 if value == MODE_2V2 else MODE_1V1


class RoomSettings(BaseModel):
    """Configuration a host may change from the lobby."""

    mode: str = Field(
        default=MODE_1V1,
        description="Either '1v1' (two players) or '2v2' (two teams of two)"
    )
    target_score: int = Field(
        default=DEFAULT_TARGET_SCORE,
        ge=MIN_TARGET_SCORE,
        le=MAX_TARGET_SCORE,
        description="Cumulative score that ends the match"
    )

    @field_validator('mode', mode='before')
    @classmethod
    def validate_mode(cls, v):
        return normalize_mode(v)

    @field_validator('target_score', mode='before')
    @classmethod
    def validate_target_score(cls, v):
        return normalize_target_score(v)


default_settings = RoomSettings()


def create_settings(**overrides) -> RoomSettings:
    """Create RoomSettings with optional overrides; None values are ignored."""
    config_dict = default_settings.model_dump()
    config_dict.update({k: v for k, v in overrides.items() if v is not None})
    return RoomSettings(**config_dict)
