"""
Simple configuration parser for ini-like .cfg files.

Format:
- Lines starting with ; or # are comments
- Comments may also follow a value on the same line
- Empty lines are ignored
- Key-value pairs: key = value
- Quoted values: key = "value" (one pair of surrounding quotes is removed)
- Section headers like [name] are ignored, all keys share one namespace
- Keys are case-sensitive; when a key is repeated the last definition wins
"""

import logging
import os
from typing import Any, Callable, Dict, Iterator, NamedTuple, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

COMMENT_CHARS = (';', '#')
QUOTE_CHAR = '"'

TRUE_VALUES = ('true', 'yes', 'on', '1')
FALSE_VALUES = ('false', 'no', 'off', '0')

T = TypeVar('T')


class ConfigError(Exception):
    """Base class for all errors raised by this module."""


class SourceReadError(ConfigError):
    """The config source could not be opened or read."""

    def __init__(self, source: Any, reason: str):
        self.source = source
        super().__init__(f"Failed to read config source {source!r}: {reason}")


class ParseError(ConfigError, ValueError):
    """A line could not be parsed (strict mode only)."""

    def __init__(self, line_number: int, line: str):
        self.line_number = line_number
        self.line = line
        super().__init__(f"Invalid config line {line_number}: {line!r}")


class KeyNotFoundError(ConfigError, LookupError):
    """The requested key has no value."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Config key not found: {key!r}")


class ConversionError(ConfigError, ValueError):
    """A stored value could not be converted to the requested type."""

    def __init__(self, key: str, value: str, target: Any, reason: str):
        self.key = key
        self.value = value
        self.target = target
        name = getattr(target, '__name__', repr(target))
        super().__init__(f"Cannot convert {key}={value!r} to {name}: {reason}")


class Entry(NamedTuple):
    """One key/value pair taken from a config line."""

    key: str
    value: str


def _find_comment(line: str, start: int = 0) -> int:
    """Index of the first comment character at or after start, or -1."""
    found = [i for i in (line.find(c, start) for c in COMMENT_CHARS) if i != -1]
    return min(found) if found else -1


def strip_comment(line: str) -> str:
    """Cut a line at the first comment character outside of a quoted value.

    Only a value that starts with a quote protects comment characters, up
    to its closing quote. A stray quote anywhere else is plain text.

    Args:
        line: Raw config line

    Returns:
        The part of the line before the comment (or the whole line)
    """
    index = _find_comment(line)
    eq = line.find('=')
    if index == -1 or eq == -1 or index < eq:
        return line if index == -1 else line[:index]

    value_start = len(line) - len(line[eq + 1:].lstrip())
    if line.startswith(QUOTE_CHAR, value_start):
        closing = line.find(QUOTE_CHAR, value_start + 1)
        if closing != -1:
            index = _find_comment(line, closing + 1)

    return line if index == -1 else line[:index]


def is_section(line: str) -> bool:
    """Check whether a trimmed line is a [section] header."""
    return line.startswith('[') and line.endswith(']')


def unquote(value: str) -> str:
    """Remove one pair of double quotes surrounding a value."""
    if len(value) >= 2 and value[0] == QUOTE_CHAR and value[-1] == QUOTE_CHAR:
        return value[1:-1]
    return value


def parse_line(line: str) -> Optional[Entry]:
    """Tokenize a single config line.

    Args:
        line: Raw config line, with or without the trailing newline

    Returns:
        Entry for an assignment line, or None for blank, comment,
        section and malformed lines
    """
    line = strip_comment(line).strip()

    if not line or is_section(line):
        return None

    # Only the first = separates key from value
    key, sep, value = line.partition('=')
    if not sep:
        return None

    return Entry(key.strip(), unquote(value.strip()))


def parse_bool(value: str) -> bool:
    """Parse a boolean config value.

    Args:
        value: Stored string value

    Returns:
        True or False

    Raises:
        ValueError: If the value is not one of the known boolean words
    """
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"not a boolean: {value!r}")


class Config:
    """Flat key/value store populated from ini-like text."""

    def __init__(self, defaults: Optional[Dict[str, Any]] = None, strict: bool = False):
        """Create an empty config.

        Args:
            defaults: Optional dictionary of default values, overridden by
                anything parsed later
            strict: If True, lines that are not assignments, comments or
                section headers raise ParseError instead of being skipped
        """
        self.strict = strict
        self._data: Dict[str, str] = {}
        if defaults:
            for key, value in defaults.items():
                self._data[key] = value if isinstance(value, str) else str(value)

    def parse(self, text: str) -> 'Config':
        """Parse config text and merge it into this config.

        Args:
            text: Full config contents

        Returns:
            This config, so calls can be chained

        Raises:
            ParseError: In strict mode, for a malformed line. Nothing from
                the text is stored in that case
        """
        parsed: Dict[str, str] = {}
        for line_num, raw_line in enumerate(text.split('\n'), 1):
            entry = parse_line(raw_line)

            if entry is None:
                if self.strict and not self._is_ignorable(raw_line):
                    raise ParseError(line_num, raw_line.rstrip('\r'))
                if raw_line.strip():
                    logger.debug(f"Skipping line {line_num}: {raw_line.strip()!r}")
                continue

            if not entry.key:
                logger.debug(f"Skipping line {line_num}: empty key")
                continue

            parsed[entry.key] = entry.value

        self._data.update(parsed)
        return self

    def load(self, source: Union[str, os.PathLike, Any], encoding: Optional[str] = None) -> 'Config':
        """Read a config file (or open handle) and merge it into this config.

        Args:
            source: Path to the config file, or a file-like object with read()
            encoding: Text encoding, defaults to the platform encoding for
                paths and UTF-8 for binary handles

        Returns:
            This config, so calls can be chained

        Raises:
            SourceReadError: If the source cannot be read
        """
        try:
            if hasattr(source, 'read'):
                contents = source.read()
                name = getattr(source, 'name', source)
            else:
                with open(source, 'r', encoding=encoding) as f:
                    contents = f.read()
                name = source
            if isinstance(contents, bytes):
                contents = contents.decode(encoding or 'utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise SourceReadError(source, str(e)) from e

        logger.info(f"Loaded configuration from {name}")
        return self.parse(contents)

    # Builder-style names: Config().text(...).file(...)
    text = parse
    file = load

    def get_str(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get the raw string value for a key.

        Args:
            key: Config key (case-sensitive)
            default: Returned when the key is missing

        Returns:
            Stored value, or default
        """
        return self._data.get(key, default)

    def get(self, key: str, type_: Callable[[str], T] = str) -> T:
        """Get a value converted to the requested type.

        Any callable that builds a value from a string works as type_
        (int, float, Decimal, Path, ...). bool is handled by parse_bool.

        Args:
            key: Config key (case-sensitive)
            type_: Target type or conversion function

        Returns:
            Converted value

        Raises:
            KeyNotFoundError: If the key is missing
            ConversionError: If the value cannot be converted
        """
        if key not in self._data:
            raise KeyNotFoundError(key)

        value = self._data[key]
        # bool(str) is True for any non-empty string
        converter = parse_bool if type_ is bool else type_
        try:
            return converter(value)
        except (ValueError, TypeError, ArithmeticError) as e:
            raise ConversionError(key, value, type_, str(e)) from e

    def to_dict(self) -> Dict[str, str]:
        """Return a copy of all stored values."""
        return dict(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __repr__(self):
        return f"Config({self._data!r})"

    @staticmethod
    def _is_ignorable(raw_line: str) -> bool:
        line = strip_comment(raw_line).strip()
        return not line or is_section(line)


def parse_config(text: str, defaults: Optional[Dict[str, Any]] = None) -> Config:
    """Parse config text into a new Config."""
    return Config(defaults).parse(text)


def load_config(source: Union[str, os.PathLike, Any], defaults: Optional[Dict[str, Any]] = None,
                encoding: Optional[str] = None) -> Config:
    """Load configuration from a .cfg file.

    Args:
        source: Path to the configuration file, or an open file object
        defaults: Optional dictionary of default values
        encoding: Optional text encoding

    Returns:
        Populated Config

    Raises:
        SourceReadError: If the file cannot be read
    """
    return Config(defaults).load(source, encoding=encoding)
