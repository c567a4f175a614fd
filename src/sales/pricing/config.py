"""Per-event settings, typed and versioned.

Events used to store their settings as a free-form JSON blob with defaults
re-derived at every call site. ``EventSettings`` resolves the defaults once
and ``migrate_settings`` upgrades older blobs before validation.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

SETTINGS_SCHEMA_VERSION = 2

DEFAULT_DELIVERY_MIN_UNITS = 5
DEFAULT_ORDER_CODE_PREFIX = "ORD"
MAX_PREFIX_LENGTH = 10

# Version 1 keys that were renamed in version 2
_V1_RENAMES = {
    "delivery_min_bottles": "delivery_min_units",
    "discount_10for9": "bundle_discount_enabled",
}

# Version 1 readers fell back to the default on any falsy value
_V1_FALSY_MEANS_DEFAULT = ("delivery_min_units", "delivery_fee_cents", "order_code_prefix")


class EventSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    schema_version: int = SETTINGS_SCHEMA_VERSION
    delivery_enabled: bool = False
    delivery_min_units: int = Field(default=DEFAULT_DELIVERY_MIN_UNITS, ge=0)
    delivery_fee_cents: int = Field(default=0, ge=0)
    allowed_zip_codes: tuple[str, ...] = ()
    bundle_discount_enabled: bool = False
    order_code_prefix: str = Field(default=DEFAULT_ORDER_CODE_PREFIX, pattern=rf"^[A-Z0-9]{{1,{MAX_PREFIX_LENGTH}}}$")
    pickup_address: str | None = None
    iban_override: str | None = None
    iban_name_override: str | None = None

    @field_validator("allowed_zip_codes", mode="before")
    @classmethod
    def normalize_zip_codes(cls, value):
        if value is None:
            return ()
        return tuple(sorted({str(code).strip() for code in value if str(code).strip()}))

    @field_validator("order_code_prefix", mode="before")
    @classmethod
    def uppercase_prefix(cls, value):
        return value.strip().upper() if isinstance(value, str) else value

    @classmethod
    def from_blob(cls, blob: dict[str, Any] | None, default_prefix: str | None = None) -> "EventSettings":
        """Build settings from a stored JSON blob of any known version.

        ``default_prefix`` replaces ``DEFAULT_ORDER_CODE_PREFIX`` when the blob
        sets no order code prefix of its own.
        """
        data = migrate_settings(blob or {})
        if default_prefix and "order_code_prefix" not in data:
            data["order_code_prefix"] = default_prefix
        return cls.model_validate(data)

    def to_blob(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def serves_zip(self, zip_code: str | None) -> bool:
        if not self.allowed_zip_codes:
            return True
        return (zip_code or "").strip() in self.allowed_zip_codes


def migrate_settings(blob: dict[str, Any]) -> dict[str, Any]:
    """Upgrade a settings blob to the current schema version."""
    data = dict(blob)
    version = data.get("schema_version", 1)

    if version > SETTINGS_SCHEMA_VERSION:
        raise ValueError(f"Unknown event settings schema version {version}")

    if version < 2:
        for old_key, new_key in _V1_RENAMES.items():
            if old_key in data:
                data.setdefault(new_key, data.pop(old_key))
        for key in _V1_FALSY_MEANS_DEFAULT:
            if key in data and not data[key]:
                del data[key]

    data = {key: value for key, value in data.items() if value is not None}
    data["schema_version"] = SETTINGS_SCHEMA_VERSION
    return data
