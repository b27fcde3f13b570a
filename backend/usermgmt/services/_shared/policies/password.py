"""Password strength rules applied on registration and password changes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class PasswordPolicy:
    """
    Configurable password requirements.

    :param min_length: Minimum number of characters.
    :param require_digit: At least one ``0-9``.
    :param require_lowercase: At least one lowercase letter.
    :param require_uppercase: At least one uppercase letter.
    :param require_non_alphanumeric: At least one symbol.
    """

    min_length: int = 6
    require_digit: bool = True
    require_lowercase: bool = True
    require_uppercase: bool = True
    require_non_alphanumeric: bool = True

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> PasswordPolicy:
        return cls(
            min_length=int(config.get("PASSWORD_MIN_LENGTH", 6)),
            require_digit=bool(config.get("PASSWORD_REQUIRE_DIGIT", True)),
            require_lowercase=bool(config.get("PASSWORD_REQUIRE_LOWERCASE", True)),
            require_uppercase=bool(config.get("PASSWORD_REQUIRE_UPPERCASE", True)),
            require_non_alphanumeric=bool(
                config.get("PASSWORD_REQUIRE_NON_ALPHANUMERIC", True)
            ),
        )


def check_password_policy(password: str, policy: PasswordPolicy) -> list[str]:
    """
    Return one message per rule ``password`` violates (empty when valid).

    :param password: Candidate password.
    :param policy: Rules to enforce.
    :rtype: list[str]
    """
    errors: list[str] = []
    if len(password) < policy.min_length:
        errors.append(f"Passwords must be at least {policy.min_length} characters.")
    if policy.require_non_alphanumeric and all(ch.isalnum() for ch in password):
        errors.append("Passwords must have at least one non alphanumeric character.")
    if policy.require_digit and not any(ch.isdigit() for ch in password):
        errors.append("Passwords must have at least one digit ('0'-'9').")
    if policy.require_lowercase and not any(ch.islower() for ch in password):
        errors.append("Passwords must have at least one lowercase ('a'-'z').")
    if policy.require_uppercase and not any(ch.isupper() for ch in password):
        errors.append("Passwords must have at least one uppercase ('A'-'Z').")
    return errors
