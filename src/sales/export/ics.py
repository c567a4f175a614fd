"""iCalendar reminder for a pickup or on-site slot.

The event lasts 15 minutes from the slot start, in the organization's local
time, with a display alarm one hour before.
"""

import datetime as dt
from zoneinfo import ZoneInfo

from sales.utils import settings
from sales.utils.clock import utcnow

PRODID = "-//ScoutShop//Ventes//FR"
PICKUP_DURATION = dt.timedelta(minutes=15)
DEFAULT_LOCATION = "Adresse du retrait"


def escape_text(value: str) -> str:
    return value.replace("\\", "\\\\").replace(";", "\\;").replace(",", "\\,").replace("\n", "\\n")


def format_local(value: dt.datetime) -> str:
    return value.strftime("%Y%m%dT%H%M%S")


def pickup_start(slot_date: dt.date, start_time: str, timezone: str | None = None) -> dt.datetime:
    hours, minutes = (int(part) for part in start_time.split(":"))
    return dt.datetime.combine(slot_date, dt.time(hours, minutes), tzinfo=ZoneInfo(timezone or settings.TIMEZONE))


def generate_pickup_ics(
    order_code: str,
    customer_name: str,
    event_name: str,
    slot_date: dt.date,
    start_time: str,
    location: str | None = None,
    now: dt.datetime | None = None,
) -> str:
    timezone = settings.TIMEZONE
    start = pickup_start(slot_date, start_time, timezone)
    end = start + PICKUP_DURATION
    stamp = (now or utcnow()).astimezone(dt.UTC)
    site_host = settings.SITE_URL.split("://", 1)[-1].split("/", 1)[0]

    summary = f"Retrait commande {order_code} - {event_name}"
    description = (
        f"Retrait de votre commande {order_code} pour {event_name} ({customer_name}).\n"
        "N'oubliez pas d'apporter votre confirmation ou le QR code."
    )

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{PRODID}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-TIMEZONE:{timezone}",
        "BEGIN:VEVENT",
        f"UID:{escape_text(order_code)}@{site_host}",
        f"DTSTAMP:{format_local(stamp)}Z",
        f"DTSTART;TZID={timezone}:{format_local(start)}",
        f"DTEND;TZID={timezone}:{format_local(end)}",
        f"SUMMARY:{escape_text(summary)}",
        f"DESCRIPTION:{escape_text(description)}",
        f"LOCATION:{escape_text(location or DEFAULT_LOCATION)}",
        f"ORGANIZER;CN={escape_text(settings.ORGANIZER_NAME)}:mailto:{settings.ORGANIZER_EMAIL}",
        "STATUS:CONFIRMED",
        "SEQUENCE:0",
        "BEGIN:VALARM",
        "TRIGGER:-PT1H",
        "ACTION:DISPLAY",
        "DESCRIPTION:Rappel: retrait dans 1 heure",
        "END:VALARM",
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\r\n".join(lines) + "\r\n"
