"""Domain filter normalization for provider web tools."""

import re

_SCHEME_RE = re.compile(r"^https?://")


def normalize_domain(value: str | None) -> str:
    """Reduce a user-supplied URL or domain pattern to a bare hostname.

    Trims and lowercases the value, drops an http(s) scheme and any path,
    and treats "*.example.com" as "example.com". Purely syntactic.

    Args:
        value: Raw domain string, e.g. "https://Docs.Python.org/3/".

    Returns:
        The normalized hostname, or "" if nothing remains.
    """
    normalized = (value or "").strip().lower()
    without_scheme = _SCHEME_RE.sub("", normalized)
    hostname = without_scheme.split("/", 1)[0].strip()
    # Strip every leading wildcard label so the result is a fixed point.
    while hostname.startswith("*."):
        hostname = hostname[2:].strip()
    return hostname


def collect_domains(values: list[str] | None) -> list[str]:
    """Normalize, drop empties and deduplicate, keeping first-seen order."""
    domains: dict[str, None] = {}
    for value in values or []:
        domain = normalize_domain(value)
        if domain:
            domains.setdefault(domain)
    return list(domains)
