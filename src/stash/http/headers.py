"""Read-only multi-valued mappings: request headers and query parameters.

Both are parsed once at request creation into ``name -> [values]``.
``__getitem__`` returns the first value, ``get_list`` every value.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qs


class _MultiMap(Mapping[str, str]):
    __slots__ = ("_data",)

    _data: dict[str, list[str]]

    def _key(self, key: str) -> str:
        return key

    def __getitem__(self, key: str) -> str:
        values = self._data.get(self._key(key))
        if not values:
            raise KeyError(key)
        return values[0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._key(key) in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v[0]!r}" for k, v in self._data.items())
        return f"{type(self).__name__}({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        values = self._data.get(self._key(key))
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        return list(self._data.get(self._key(key), ()))


class Headers(_MultiMap):
    """Case-insensitive HTTP headers built from ASGI ``(name, value)`` byte pairs.

    Keys are stored lowercased; lookups accept any case.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw
        self._data = {}
        for name, value in raw:
            self._data.setdefault(name.decode("latin-1").lower(), []).append(
                value.decode("latin-1")
            )

    def _key(self, key: str) -> str:
        return key.lower()

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """Raw header byte pairs, as received."""
        return self._raw


class QueryParams(_MultiMap):
    """Query string parameters. Blank values are kept (``?name=`` -> ``""``)."""

    __slots__ = ("_raw",)

    def __init__(self, query_string: bytes = b"") -> None:
        self._raw = query_string
        self._data = parse_qs(query_string.decode("latin-1"), keep_blank_values=True)

    @property
    def raw(self) -> bytes:
        """The undecoded query string."""
        return self._raw
