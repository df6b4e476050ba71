from __future__ import annotations


class SecIpError(Exception):
    """Базовая ошибка: всё, что прерывает команду с кодом 1."""


class ValidationError(SecIpError, ValueError):
    pass


class InvalidPrefix(ValidationError):
    pass


class MissingPrimary(SecIpError):
    pass


class RuleNotFound(SecIpError):
    pass


class RangeOverflow(SecIpError):
    pass


class DiscoveryFailed(SecIpError):
    pass


class PublishFailed(SecIpError):
    pass


class OciError(SecIpError):
    def __init__(self, msg: str, argv: list[str] | None = None, stderr: str = "") -> None:
        super().__init__(msg)
        self.argv = list(argv or [])
        self.stderr = stderr


class RemoteCallError(SecIpError):
    def __init__(self, msg: str, host: str = "", rc: int | None = None, stderr: str = "") -> None:
        super().__init__(msg)
        self.host = host
        self.rc = rc
        self.stderr = stderr


class PrefixUpdateError(SecIpError):
    pass
