import re


def clean_text(s: str) -> str:
    """Collapse all whitespace to single spaces, trim edges."""
    return re.sub(r"\s+", " ", (s or "")).strip()


def normalize_title(title: str) -> str:
    """
    Comparable form of a job title: lowercase, alphanumerics and spaces only,
    single-spaced. "Barista (Part-Time)!" -> "barista parttime".
    """
    t = (title or "").lower()
    t = re.sub(r"[^a-z0-9\s]", "", t)
    return clean_text(t)
