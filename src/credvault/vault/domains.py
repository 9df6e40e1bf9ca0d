# Vault - Domain Matching
#
# Hostname normalization and the rules that decide which stored
# credentials belong to a requested site.
#
# Base domain = last two labels. This is a naive heuristic with no public
# suffix list: "a.example.co.uk" has base "co.uk". Known limitation.

import logging
import re
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

_DOMAIN_RE = re.compile(
    r"^[a-zA-Z0-9][a-zA-Z0-9-]{0,61}[a-zA-Z0-9]"
    r"(?:\.[a-zA-Z0-9][a-zA-Z0-9-]{0,61}[a-zA-Z0-9])*$"
)


def normalize(domain: str) -> str:
    """Lowercase and strip surrounding whitespace."""
    return domain.lower().strip()


def split_base(domain: str) -> Tuple[str, str]:
    """Split into (subdomain, base domain) on the last two labels.

    >>> split_base("a.b.example.com")
    ('a.b', 'example.com')
    >>> split_base("example.com")
    ('', 'example.com')
    """
    parts = domain.split(".")
    if len(parts) > 2:
        return ".".join(parts[:-2]), ".".join(parts[-2:])
    return "", domain


def get_subdomain(domain: str) -> str:
    return split_base(domain)[0]


def get_base_domain(domain: str) -> str:
    return split_base(domain)[1]


def matches_exact(a: str, b: str) -> bool:
    return normalize(a) == normalize(b)


def matches_domain(stored: str, query: str) -> bool:
    """Lookup-by-domain rule: normalized equality AND equal base domains.

    Given the two-label split, the base-domain check never widens the
    match; a subdomain query does not match its parent.
    """
    stored_n, query_n = normalize(stored), normalize(query)
    return stored_n == query_n and get_base_domain(stored_n) == get_base_domain(query_n)


def matches_domain_loose(stored: str, query: str) -> bool:
    """Lookup-by-domain-and-username rule: normalized equality OR equal base domains."""
    stored_n, query_n = normalize(stored), normalize(query)
    return stored_n == query_n or get_base_domain(stored_n) == get_base_domain(query_n)


def filter_by_domain(entries: Iterable, domain: str) -> List:
    """All entries whose domain matches under the strict rule."""
    return [e for e in entries if matches_domain(e.domain, domain)]


def first_by_domain_and_username(entries: Iterable, domain: str, username: str) -> Optional[object]:
    """First entry matching the loose domain rule with the exact username."""
    for entry in entries:
        if matches_domain_loose(entry.domain, domain) and entry.username == username:
            return entry
    return None


# ── URL helpers ──────────────────────────────────────────────────────


def parse_url(url: str):
    """Split an absolute URL, raising ValueError if it is not one."""
    parts = urlsplit(url)
    _ = parts.port  # raises ValueError on a malformed port
    if not parts.scheme or not (parts.netloc or parts.path):
        raise ValueError(f"Not an absolute URL: {url!r}")
    return parts


def extract_domain(url: str) -> str:
    """Hostname of ``url``, or "" if it cannot be parsed."""
    try:
        return parse_url(url).hostname or ""
    except ValueError:
        logger.debug("Invalid URL: %r", url)
        return ""


def extract_full_url(url: str) -> str:
    """Origin plus path (no query or fragment), or "" if unparseable."""
    try:
        parts = parse_url(url)
    except ValueError:
        logger.debug("Invalid URL: %r", url)
        return ""
    if not parts.hostname:
        return ""
    origin = f"{parts.scheme}://{parts.hostname}"
    if parts.port is not None:
        origin += f":{parts.port}"
    return origin + (parts.path or "/")


def is_same_domain(url1: str, url2: str) -> bool:
    return extract_domain(url1) == extract_domain(url2)


def is_valid_domain(domain: str) -> bool:
    return bool(_DOMAIN_RE.fullmatch(domain))


def domain_key(domain: str, username: str) -> str:
    return f"{domain}:{username}"
