"""Client address resolution from WSGI environ headers."""

from __future__ import annotations

import ipaddress
from typing import Mapping, Optional, Sequence

# Checked in order; the first public address wins.
IP_HEADER_KEYS = (
    "HTTP_CLIENT_IP",
    "HTTP_X_FORWARDED_FOR",
    "HTTP_X_FORWARDED",
    "HTTP_X_CLUSTER_CLIENT_IP",
    "HTTP_FORWARDED_FOR",
    "HTTP_FORWARDED",
    "REMOTE_ADDR",
)


def _public_address(candidate: str) -> Optional[str]:
    try:
        address = ipaddress.ip_address(candidate.strip())
    except ValueError:
        return None
    if address.is_private or address.is_reserved or address.is_loopback or address.is_link_local:
        return None
    if address.is_unspecified or address.is_multicast:
        return None
    return str(address)


class HeaderIpResolver:
    """Guess the client IP from proxy headers, skipping private and reserved ranges."""

    def __init__(self, header_keys: Sequence[str] = IP_HEADER_KEYS) -> None:
        self.header_keys = tuple(header_keys)

    def client_ip(self, environ: Mapping[str, str]) -> Optional[str]:
        for key in self.header_keys:
            raw = environ.get(key)
            if not raw:
                continue
            for candidate in raw.split(","):
                address = _public_address(candidate)
                if address:
                    return address
        return None


def guess_ip_address(environ: Mapping[str, str]) -> Optional[str]:
    return HeaderIpResolver().client_ip(environ)


__all__ = ["HeaderIpResolver", "IP_HEADER_KEYS", "guess_ip_address"]
