"""WhatsApp JID to phone number utilities."""

import re

import phonenumbers

INDIVIDUAL_SUFFIX = "@s.whatsapp.net"
GROUP_SUFFIX = "@g.us"


def normalize_phone(phone):
    """Normalize phone number to just digits."""
    if not phone:
        return ''
    return re.sub(r'[^\d]', '', phone)


def is_individual(jid):
    return bool(jid) and jid.endswith(INDIVIDUAL_SUFFIX)


def jid_to_digits(jid, default_country=None):
    """
    Convert a 1:1 chat JID to canonical phone digits (country code + number).

    Group and other non-individual JIDs return None. A number that parses and
    validates is returned in E.164 form without the leading '+'; anything
    else falls back to the digits found in the JID's local part.
    """
    if not is_individual(jid):
        return None
    raw = jid[:-len(INDIVIDUAL_SUFFIX)]
    region = default_country.strip().upper() if default_country else None

    try:
        parsed = phonenumbers.parse(raw, region or None)
    except phonenumbers.NumberParseException:
        parsed = None

    if parsed is not None and phonenumbers.is_valid_number(parsed):
        e164 = phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)
        return e164.lstrip('+')

    return normalize_phone(raw) or None


def format_phone_number(digits):
    """Add dashes for readability. Display only, never use the result for dialing."""
    if len(digits) == 10:
        return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
    if len(digits) == 11:
        return f"{digits[:1]}-{digits[1:4]}-{digits[4:7]}-{digits[7:]}"
    if len(digits) == 7:
        return f"{digits[:3]}-{digits[3:]}"
    return digits
