"""
Phone number normalization for M-Pesa (Kenyan MSISDN, 254 prefix).
"""

COUNTRY_PREFIX = "254"


def normalize_phone(phone: str) -> str:
    """Rewrite a local '07XXXXXXXX' number to '2547XXXXXXXX'.

    Any other format is returned unchanged (after trimming whitespace).
    """
    phone = phone.strip()
    if phone.startswith("0"):
        return COUNTRY_PREFIX + phone[1:]
    return phone


def mask_phone(phone: str) -> str:
    """Hide the middle digits for logging: '254712345678' -> '2547****5678'."""
    if len(phone) <= 8:
        return "*" * len(phone)
    return phone[:4] + "*" * (len(phone) - 8) + phone[-4:]
