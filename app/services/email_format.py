"""
app/services/email_format.py
Normalisation et contrôle de format des emails. Fonctions pures, aucun I/O.
"""
import re

# local@domaine.tld : pas d'espace, un seul "@", au moins un "." après le "@"
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(raw: str) -> str:
    """Clé de recherche : trim + minuscules. Idempotente."""
    return (raw or "").strip().lower()


def is_valid_email_format(raw: str) -> bool:
    if not raw:
        return False
    return EMAIL_PATTERN.match(raw.strip()) is not None


def compare_emails(first: str, second: str) -> bool:
    return normalize_email(first) == normalize_email(second)
