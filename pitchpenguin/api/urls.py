import re

_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def normalize_api_base_url(value: str | None) -> str:
    """
    Trims the configured API host and makes sure it carries a scheme.
    An empty value means "same origin", i.e. relative paths.
    """
    trimmed = (value or "").strip().rstrip("/")
    if not trimmed:
        return ""
    if _SCHEME.match(trimmed):
        return trimmed
    return f"https://{trimmed}"


def api_url(base_url: str, path: str) -> str:
    if _SCHEME.match(path):
        return path
    normalized_path = path if path.startswith("/") else f"/{path}"
    return f"{base_url}{normalized_path}" if base_url else normalized_path
