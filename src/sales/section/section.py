"""Section aggregate — the scouting section that runs events and receives payments."""

from protean.exceptions import ValidationError
from protean.fields import DateTime, Integer, String

from sales.domain import sales
from sales.utils.clock import utcnow
from sales.utils.validation import COLOR_PATTERN, is_valid_slug

DEFAULT_COLOR = "#f59e0b"


@sales.aggregate
class Section:
    name: String(required=True, max_length=100)
    slug: String(required=True, max_length=100)
    color: String(max_length=7, default=DEFAULT_COLOR)
    iban: String(max_length=34)
    iban_name: String(max_length=100)
    sort_order: Integer(default=0)
    created_at: DateTime(default=utcnow)

    @classmethod
    def create(cls, name, slug, color=None, iban=None, iban_name=None, sort_order=0):
        errors = {}
        if not name or not name.strip():
            errors["name"] = ["Section name is required"]
        if not is_valid_slug(slug):
            errors["slug"] = ["Slug must contain only lowercase alphanumeric characters and hyphens"]
        if color and not COLOR_PATTERN.match(color):
            errors["color"] = ["Color must be a hex code like #1a2b3c"]
        if errors:
            raise ValidationError(errors)

        return cls(
            name=name.strip(),
            slug=slug,
            color=color or DEFAULT_COLOR,
            iban=iban.replace(" ", "").upper() if iban else None,
            iban_name=iban_name,
            sort_order=sort_order or 0,
            created_at=utcnow(),
        )
