"""
Text Encoding Resolution
========================

Character, numeric and date fields are stored as text. The codec used for
a field comes either from a single name applied to every field, or from a
per-field mapping that must carry a 'default' entry:

    >>> resolver = EncodingResolver({"default": "cp1252", "NOTES": "utf-8"})
    >>> resolver.resolve("NOTES")
    'utf-8'
    >>> resolver.resolve("NAME")
    'cp1252'

Codec names are checked with codecs.lookup() when the resolver is built,
so a misspelt codec is reported before any file is opened.
"""

from typing import Iterable, Mapping, Union
import codecs

from dbffile.errors import ConfigurationError

EncodingConfig = Union[str, Mapping[str, str]]

DEFAULT_ENCODING = "utf-8"


def _check_codec(name: str, key: str) -> None:
    try:
        codecs.lookup(name)
    except LookupError:
        raise ConfigurationError(
            f"Invalid encoding option: unknown codec '{name}' for '{key}'."
        ) from None


class EncodingResolver:
    """Maps field names to codec names."""

    def __init__(self, config: EncodingConfig = DEFAULT_ENCODING):
        if isinstance(config, str):
            _check_codec(config, "default")
            self._default = config
            self._per_field: dict[str, str] = {}
        elif isinstance(config, Mapping):
            default = config.get("default")
            if not isinstance(default, str):
                raise ConfigurationError(
                    "Invalid encoding option: missing required 'default' property."
                )
            for key, value in config.items():
                if not isinstance(value, str):
                    raise ConfigurationError(
                        f"Invalid encoding option: property '{key}' must be a string."
                    )
                _check_codec(value, key)
            self._default = default
            self._per_field = {k: v for k, v in config.items() if k != "default"}
        else:
            raise ConfigurationError(
                "Invalid encoding option: must be a string or a mapping with string values."
            )

    @property
    def default(self) -> str:
        return self._default

    def resolve(self, field_name: str) -> str:
        """Get the codec name for a field."""
        return self._per_field.get(field_name, self._default)

    def resolve_all(self, names: Iterable[str]) -> dict[str, str]:
        """Resolve a codec for each field name once, ahead of a read or write."""
        return {name: self.resolve(name) for name in names}

    def __repr__(self) -> str:
        if not self._per_field:
            return f"EncodingResolver({self._default!r})"
        return f"EncodingResolver(default={self._default!r}, fields={self._per_field!r})"
