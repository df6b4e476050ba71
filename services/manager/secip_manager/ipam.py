from __future__ import annotations

from ipaddress import IPv4Address, IPv6Address
from typing import List, Literal

from secip_manager.errors import RangeOverflow, ValidationError

Family = Literal["ipv4", "ipv6"]


def family_of(address: str) -> Family:
    if ":" in address:
        return "ipv6"
    if "." in address:
        return "ipv4"
    raise ValidationError(f"invalid IP address format: {address}")


def allocate_range(start: str, count: int) -> List[str]:
    """
    Детерминированная генерация count адресов подряд, начиная со start.
    IPv4: растёт только последний октет, > 255 -> RangeOverflow до любых create.
    IPv6: растёт последний hex-сегмент, без проверки на 0xffff.
    """
    if count < 0:
        raise ValidationError(f"count must be >= 0, got {count}")
    if family_of(start) == "ipv6":
        return _allocate_ipv6(start, count)
    return _allocate_ipv4(start, count)


def _allocate_ipv4(start: str, count: int) -> List[str]:
    try:
        IPv4Address(start)
    except ValueError as e:
        raise ValidationError(f"invalid IPv4 address: {start}") from e
    o1, o2, o3, o4 = (int(x) for x in start.split("."))
    res: List[str] = []
    for i in range(count):
        cur = o4 + i
        if cur > 255:
            raise RangeOverflow(
                f"IP address range {start} + {count} exceeds 255 in the last octet"
            )
        res.append(f"{o1}.{o2}.{o3}.{cur}")
    return res


def _allocate_ipv6(start: str, count: int) -> List[str]:
    try:
        IPv6Address(start)
    except ValueError as e:
        raise ValidationError(f"invalid IPv6 address: {start}") from e
    head, last = start.rsplit(":", 1)
    prefix = head + ":"
    # "2001:db8::" -> пустой последний сегмент считаем нулём
    # "::ffff:10.0.0.1", "fe80::1%eth0": валидный IPv6, но не hex-сегмент
    try:
        base = int(last, 16) if last else 0
    except ValueError as e:
        raise ValidationError(f"invalid IPv6 address: {start}") from e
    # NB: переполнение сегмента (> ffff) не проверяем, адрес рендерится как есть
    return [f"{prefix}{base + i:x}" for i in range(count)]
