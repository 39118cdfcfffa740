import re

FALLBACK_ID = "client"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def derive_id(name: str) -> str:
    """Map a display name to its client id, e.g. ``"Acme Corp!"`` -> ``"acme-corp"``."""
    slug = _NON_ALNUM.sub("-", name.strip().lower()).strip("-")
    return slug or FALLBACK_ID


__all__ = ["FALLBACK_ID", "derive_id"]
