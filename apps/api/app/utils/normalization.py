"""Normalization utilities for applicant identity fields."""

from typing import Optional


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email to lowercase.

    Args:
        email: Raw email input

    Returns:
        Lowercased email or None if empty
    """
    if not email:
        return None
    return email.strip().lower()


def normalize_name(name: Optional[str]) -> Optional[str]:
    """
    Normalize name by stripping whitespace and collapsing multiple spaces.

    Args:
        name: Raw name input

    Returns:
        Cleaned name or None if empty
    """
    if not name:
        return None
    # Strip leading/trailing whitespace and collapse internal spaces
    return " ".join(name.split())


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """Keep a leading '+' and digits only; None when nothing is left."""
    if not phone:
        return None
    stripped = phone.strip()
    digits = "".join(ch for ch in stripped if ch.isdigit())
    if not digits:
        return None
    return f"+{digits}" if stripped.startswith("+") else digits
