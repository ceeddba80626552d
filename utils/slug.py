import re
import unicodedata

SLUG_MAX_LENGTH = 63


def normalize_slug(value: str) -> str:
    """Slug de tenant: minúsculo, ASCII, palavras separadas por hífen.

    ``"Café  do João"`` vira ``"cafe-do-joao"``.
    """
    if not value:
        return ""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = value.lower()
    value = re.sub(r"[^a-z0-9]+", "-", value).strip("-")

    return value[:SLUG_MAX_LENGTH].rstrip("-")

