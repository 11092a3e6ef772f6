"""Build login fingerprints from request data.

The user-agent string is parsed with ``user-agents``; geolocation is
delegated to a pluggable :class:`GeoLocator` so deployments can wire in their
own lookup.  The default locator knows nothing and reports ``Unknown``.
"""

from __future__ import annotations

import ipaddress
from typing import Optional, Protocol

from user_agents import parse as parse_user_agent

from echoguard.context.models import Fingerprint
from echoguard.errors import ValidationError

UNKNOWN = "Unknown"


class GeoLocator(Protocol):
    def lookup(self, ip: str) -> Optional[tuple[str, str]]:
        """Return ``(country, city)`` for *ip*, or None when unknown."""
        ...


class NullGeoLocator:
    """Geolocation disabled: every address resolves to nothing."""

    def lookup(self, ip: str) -> Optional[tuple[str, str]]:
        return None


class StaticGeoLocator:
    """Table-driven locator, keyed by exact address or CIDR network."""

    def __init__(self, table: dict[str, tuple[str, str]]) -> None:
        self._exact: dict[str, tuple[str, str]] = {}
        self._networks: list[tuple[ipaddress.IPv4Network | ipaddress.IPv6Network, tuple[str, str]]] = []
        for key, location in table.items():
            if "/" in key:
                self._networks.append((ipaddress.ip_network(key, strict=False), location))
            else:
                self._exact[key] = location

    def lookup(self, ip: str) -> Optional[tuple[str, str]]:
        if ip in self._exact:
            return self._exact[ip]
        try:
            addr = ipaddress.ip_address(ip)
        except ValueError:
            return None
        for network, location in self._networks:
            if addr in network:
                return location
        return None


def _device_type(ua) -> str:
    if ua.is_bot:
        return "Bot"
    if ua.is_tablet:
        return "Tablet"
    if ua.is_mobile:
        return "Mobile"
    return "Desktop"


def _join(name: str, version: str) -> str:
    return f"{name} {version}".strip() if version else name


def build_fingerprint(
    ip: str,
    user_agent: str,
    geo: Optional[GeoLocator] = None,
) -> Fingerprint:
    """Derive a :class:`Fingerprint` from a client address and UA header.

    The browser field carries ``"<family> <major.minor>"`` so that upgrades
    across minor releases register as a different context.
    """
    if not user_agent or not user_agent.strip():
        raise ValidationError("A User-Agent header is required to fingerprint a login")

    ua = parse_user_agent(user_agent)
    browser_version = ".".join(str(p) for p in ua.browser.version[:2])
    os_family = ua.os.family or UNKNOWN

    device = ua.device.family
    if not device or device == "Other":
        device = _device_type(ua)

    country, city = UNKNOWN, UNKNOWN
    if ip and geo is not None:
        location = geo.lookup(ip)
        if location:
            country, city = location

    return Fingerprint(
        browser=_join(ua.browser.family or UNKNOWN, browser_version),
        platform=os_family,
        os=_join(os_family, ua.os.version_string),
        device=device,
        device_type=_device_type(ua),
        ip=ip or "",
        country=country,
        city=city,
    )
