"""Trusted subnet guard for internal endpoints."""

import ipaddress

from fastapi import HTTPException, Request, status


def is_trusted(real_ip: str, trusted_subnet: str) -> bool:
    """Check whether ``real_ip`` lies inside ``trusted_subnet``.

    Malformed addresses and an empty subnet are never trusted.
    """
    if not real_ip or not trusted_subnet:
        return False
    try:
        address = ipaddress.ip_address(real_ip.strip())
        network = ipaddress.ip_network(trusted_subnet.strip(), strict=False)
    except ValueError:
        return False
    return address in network


async def require_trusted_subnet(request: Request) -> None:
    """Dependency: reject requests whose X-Real-IP is outside the trusted subnet."""
    config = request.app.state.config
    if not is_trusted(request.headers.get("X-Real-IP", ""), config.trusted_subnet or ""):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
