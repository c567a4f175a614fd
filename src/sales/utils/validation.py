"""Format checks shared by several aggregates."""

import re

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
COLOR_PATTERN = re.compile(r"^#[0-9a-fA-F]{6}$")
TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
BELGIAN_ZIP_PATTERN = re.compile(r"^\d{4}$")
BELGIAN_PHONE_PATTERN = re.compile(r"^(\+32|0032|0)[1-9]\d{7,8}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_slug(value: str | None) -> bool:
    return bool(value) and SLUG_PATTERN.match(value) is not None


def clean_phone(phone: str) -> str:
    return re.sub(r"[\s\-.()]", "", phone)


def is_valid_belgian_phone(phone: str | None) -> bool:
    return bool(phone) and BELGIAN_PHONE_PATTERN.match(clean_phone(phone)) is not None


def is_valid_belgian_zip(zip_code: str | None) -> bool:
    return bool(zip_code) and BELGIAN_ZIP_PATTERN.match(zip_code) is not None


def is_valid_email(email: str | None) -> bool:
    return bool(email) and EMAIL_PATTERN.match(email) is not None
