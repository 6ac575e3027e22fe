"""Discover a portal's display title from its homepage."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass
from typing import Any, Dict

from opengov_mcp.core.client import SocrataClient
from opengov_mcp.core.errors import OpenGovError
from opengov_mcp.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TITLE = "Data Portal"

_TITLE = re.compile(r"<title>([^<]+)</title>", re.IGNORECASE)


@dataclass
class PortalInfo:
    title: str
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def clean_title(raw: str) -> str:
    """Drop repeated ``|``-separated segments, keeping first occurrences."""
    segments = [s.strip() for s in raw.strip().split("|")]
    return " | ".join(dict.fromkeys(segments))


async def get_portal_info(client: SocrataClient, portal_url: str) -> PortalInfo:
    """Fetch the portal homepage and read its ``<title>``.

    Never raises for fetch problems: the title falls back to
    ``"Data Portal"`` and a warning is logged.
    """
    info = PortalInfo(title=DEFAULT_TITLE, url=portal_url)
    if not re.match(r"^https?://", portal_url):
        portal_url = f"https://{portal_url}"

    try:
        html = await client.fetch_text(portal_url)
    except OpenGovError as e:
        logger.warning(f"Failed to fetch portal title from {portal_url}: {e}")
        return info

    match = _TITLE.search(html)
    if match:
        info.title = clean_title(match.group(1))
    return info
