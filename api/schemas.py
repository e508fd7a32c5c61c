"""Pydantic schemas for API requests and responses."""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

PASSWORD_SPECIAL_CHARS = "#?!.@$%^&*-"


# User schemas
class LoginRequest(BaseModel):
    """Credentials for logging in."""

    username: str
    password: str


class RegisterRequest(LoginRequest):
    """Credentials for a new account."""

    username: str = Field(..., min_length=5)
    password: str = Field(..., min_length=8)

    @field_validator("username")
    @classmethod
    def _lowercase_alphanumeric(cls, value: str) -> str:
        if not (value.isascii() and value.isalnum()):
            raise ValueError("Username must only contain letters and digits")
        if value != value.lower():
            raise ValueError("Username must be lower-case")
        return value

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        checks = [
            re.search(r"[A-Z]", value),
            re.search(r"[a-z]", value),
            re.search(r"[0-9]", value),
            re.search(f"[{re.escape(PASSWORD_SPECIAL_CHARS)}]", value),
        ]
        if not all(checks):
            raise ValueError(
                "Password should contain at least one upper-case letter, one lower-case "
                f"letter, one digit and one special char ({PASSWORD_SPECIAL_CHARS})"
            )
        return value


class UserResponse(BaseModel):
    """Public user representation."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    created_at: datetime
    updated_at: datetime


# Game schemas
class CardResponse(BaseModel):
    """Card representation."""

    kind: str
    number: int
    name: str | None = None


class GameResponse(BaseModel):
    """Stored game with its engine state."""

    id: int
    created_at: datetime
    updated_at: datetime
    deck: list[CardResponse]
    hand: list[CardResponse]
    finished: bool
    user_won: bool
    round: int
    deck_card_count: int
    aces_in_deck: list[CardResponse]


class GameStatusResponse(BaseModel):
    """Result of a deal or reset."""

    message: str
    details: GameResponse


# Statistics schemas
class StatsResponse(BaseModel):
    """Finished-game counts over a time window."""

    games_played: int
    games_won: int
    games_lost: int
    since: datetime
