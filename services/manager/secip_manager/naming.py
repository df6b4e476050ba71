from __future__ import annotations

from secip_manager.errors import ValidationError


def name_for(hostname: str, address: str) -> str:
    """
    Метка для вторичного адреса:
      IPv4 -> <hostname><octet3><octet4>   (hostname-label, DNS)
      IPv6 -> <hostname><last segment hex> (только display-name)
    """
    if ":" in address:
        last = address.rsplit(":", 1)[1] or "0"
        try:
            return f"{hostname}{int(last, 16):x}"
        except ValueError as e:
            raise ValidationError(f"invalid IPv6 address: {address}") from e
    octets = address.split(".")
    if len(octets) != 4:
        raise ValidationError(f"invalid IPv4 address: {address}")
    try:
        o3, o4 = int(octets[2]), int(octets[3])
    except ValueError as e:
        raise ValidationError(f"invalid IPv4 address: {address}") from e
    return f"{hostname}{o3}{o4}"
