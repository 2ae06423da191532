"""Enums for the Users Service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    DEVELOPER = "developer"
    CREATOR = "creator"
    BUYER = "buyer"
