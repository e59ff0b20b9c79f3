"""Authenticated actor entity."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AuthContext:
    """Identity and role flags of the user invoking an operation."""

    user_id: str
    is_tutor: bool = False
