from collections.abc import Sequence
from typing import Optional, Protocol
from urllib.parse import parse_qs, urlencode, urlsplit


class LocationSync(Protocol):
    def publish(self, from_currency: str, to_currency: str) -> None: ...


class QueryStringLocation:
    """Keeps a shareable ``/swap?from=XXX&to=YYY`` link for the current pair."""

    def __init__(self, path: str = "/swap") -> None:
        self.path = path
        self.href: Optional[str] = None

    def publish(self, from_currency: str, to_currency: str) -> None:
        self.href = f"{self.path}?{urlencode({'from': from_currency, 'to': to_currency})}"

    def pair(self) -> tuple[Optional[str], Optional[str]]:
        """Read the pair back out of the current link, as a reload would."""
        if self.href is None:
            return None, None
        query = parse_qs(urlsplit(self.href).query)
        return query.get("from", [None])[0], query.get("to", [None])[0]


def initial_currency(param: Optional[str], options: Sequence[str], fallback: str) -> str:
    if param and param in options:
        return param
    return fallback
