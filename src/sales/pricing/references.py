"""Human-facing order references: order code, payment communication, scan payload."""

import re

# Generic words only count when a space follows them ("Souper souper-b" keeps "souper-b")
_GENERIC_EVENT_WORDS = re.compile(r"\b(vente de|souper|tombola) ", re.IGNORECASE)
_YEAR = re.compile(r"\b(\d{2})(\d{2})\b")
_SLUG_WORDS = re.compile(r"[a-z0-9]+")


def generate_order_code(prefix: str, year: int, sequence_number: int) -> str:
    """``{prefix}-{year}-{sequence}``, the sequence zero-padded to five digits.

    Padding only: sequences beyond 99999 keep all their digits.
    """
    if sequence_number < 1:
        raise ValueError(f"Sequence numbers start at 1, got {sequence_number}")
    return f"{prefix}-{year}-{sequence_number:05d}"


def prefix_from_slug(slug: str, max_length: int = 10) -> str:
    """Default order code prefix of an event: word initials, numbers kept whole.

    ``"vente-cremant-2025"`` gives ``"VC2025"``.
    """
    parts = [word if word.isdigit() else word[0] for word in _SLUG_WORDS.findall(slug.lower())]
    return "".join(parts).upper()[:max_length]


def shorten_event_name(event_name: str) -> str:
    """Drop generic words and shorten four-digit years ("2025" -> "25")."""
    shortened = _GENERIC_EVENT_WORDS.sub("", event_name)
    shortened = _YEAR.sub(lambda match: match.group(2), shortened)
    return shortened.strip()


def generate_payment_communication(customer_full_name: str, event_name: str) -> str:
    """Memo line for a bank transfer: ``"{last} {first} - {short event name}"``.

    The first token of the name is taken as the last name. Not unique: two
    customers can share a communication.
    """
    parts = customer_full_name.split()
    last_name = parts[0] if parts else ""
    first_name = parts[1] if len(parts) > 1 else ""
    return f"{last_name} {first_name} - {shorten_event_name(event_name)}".strip()


def scan_payload(site_url: str, order_code: str) -> str:
    """Content of the order's QR code: the staff scan page for the order."""
    return f"{site_url.rstrip('/')}/admin/scan/{order_code}"
