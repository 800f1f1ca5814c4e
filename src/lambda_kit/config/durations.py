"""
Duration parsing helpers for environment configuration.

Timeouts are configured with Go-style duration strings such as ``30s``,
``1m30s`` or ``250ms``. These helpers convert between those strings and
``datetime.timedelta``.
"""

import re
from datetime import timedelta
from typing import Any

_UNIT_SECONDS = {
    'ns': 1e-9,
    'us': 1e-6,
    'µs': 1e-6,
    'ms': 1e-3,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}

_COMPONENT = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')


def parse_duration(value: Any) -> timedelta:
    """
    Parse a duration value into a timedelta.

    Accepts a timedelta, a number of seconds, or a duration string made of
    one or more ``<number><unit>`` components with an optional sign.

    Raises:
        ValueError: If the value cannot be interpreted as a duration
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f'invalid duration: {value!r}')
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if not isinstance(value, str):
        raise ValueError(f'invalid duration: {value!r}')

    text = value.strip()
    sign = 1
    if text[:1] in ('-', '+'):
        sign = -1 if text[0] == '-' else 1
        text = text[1:]

    if text == '0':
        return timedelta(0)
    if not text:
        raise ValueError(f'invalid duration: {value!r}')

    total = 0.0
    position = 0
    for match in _COMPONENT.finditer(text):
        if match.start() != position:
            raise ValueError(f'invalid duration: {value!r}')
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise ValueError(f'invalid duration: {value!r}')

    return timedelta(seconds=sign * total)


def format_duration(duration: timedelta) -> str:
    """Render a timedelta the way it is written in configuration (``29s``, ``1m30s``, ``500ms``)."""
    micros = round(duration.total_seconds() * 1_000_000)
    if micros == 0:
        return '0s'

    sign = '-' if micros < 0 else ''
    micros = abs(micros)

    if micros < 1_000:
        return f'{sign}{micros}µs'
    if micros < 1_000_000:
        return f'{sign}{_trim(micros / 1_000)}ms'

    hours, rest = divmod(micros, 3_600_000_000)
    minutes, rest = divmod(rest, 60_000_000)
    seconds = _trim(rest / 1_000_000)

    parts = []
    if hours:
        parts.append(f'{hours}h')
    if hours or minutes:
        parts.append(f'{minutes}m')
    parts.append(f'{seconds}s')
    return sign + ''.join(parts)


def _trim(number: float) -> str:
    return f'{number:.6f}'.rstrip('0').rstrip('.')
