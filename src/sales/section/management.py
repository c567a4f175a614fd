"""Section management — command, handler and the public section listing."""

from dataclasses import dataclass

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from sales.domain import sales
from sales.event.event import EventStatus, SaleEvent
from sales.section.section import Section
from sales.utils.queries import find_all, find_first


@sales.command(part_of="Section")
class CreateSection:
    name = String(required=True, max_length=100)
    slug = String(required=True, max_length=100)
    color = String(max_length=7)
    iban = String(max_length=50)
    iban_name = String(max_length=100)
    sort_order = Integer(default=0)


@sales.command_handler(part_of=Section)
class ManageSectionHandler:
    @handle(CreateSection)
    def create_section(self, command):
        if find_first(Section, slug=command.slug) is not None:
            raise ValidationError({"slug": [f"A section with slug '{command.slug}' already exists"]})

        section = Section.create(
            name=command.name,
            slug=command.slug,
            color=command.color,
            iban=command.iban,
            iban_name=command.iban_name,
            sort_order=command.sort_order,
        )
        current_domain.repository_for(Section).add(section)
        return str(section.id)


@dataclass(frozen=True)
class SectionListing:
    section: Section
    active_events_count: int


def list_sections() -> list[SectionListing]:
    """Every section in display order, with how many of its events are open."""
    active = [str(event.section_id) for event in find_all(SaleEvent, status=EventStatus.ACTIVE.value)]
    sections = sorted(find_all(Section), key=lambda section: (section.sort_order or 0, section.name.lower()))
    return [SectionListing(section=section, active_events_count=active.count(str(section.id))) for section in sections]
