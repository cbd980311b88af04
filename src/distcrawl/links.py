"""Outbound link discovery."""

import re

HREF_PATTERN = re.compile(r'href\s*=\s*["\']([^"\']+)["\']', re.IGNORECASE)


def base_authority(base_url: str) -> str | None:
    """Return ``scheme://authority`` of a URL, or None if it has no scheme."""
    proto_end = base_url.find("://")
    if proto_end == -1:
        return None

    slash = base_url.find("/", proto_end + 3)
    return base_url if slash == -1 else base_url[:slash]


def extract_links(html: str, base_url: str) -> list[str]:
    """Extract absolute URLs from href attributes, in document order.

    Protocol-relative links get ``https:``, root-relative links are resolved
    against the authority of ``base_url`` and anything else that does not
    start with ``http`` (relative paths, fragments, mailto:, javascript:) is
    dropped. Duplicates are kept.
    """
    authority = base_authority(base_url)
    links = []

    for match in HREF_PATTERN.finditer(html):
        href = match.group(1)

        if href.startswith("//"):
            href = "https:" + href
        elif href.startswith("/"):
            if authority is None:
                continue
            href = authority + href
        elif not href.startswith("http"):
            continue

        links.append(href)

    return links
