'''
Unicode JSON codec.

All the text stored into a pixp blob is JSON where each character occupies
one UTF-16 code unit, i.e. two bytes little-endian. Characters outside the
BMP take two code units (a surrogate pair), exactly like a JavaScript string.
'''
import json
import logging
import math
from typing import Any

from .exceptions import SerializationError, MalformedBlobError


logger = logging.getLogger(__name__)

BYTES_PER_CODE_UNIT = 2
TEXT_ENCODING = 'utf-16-le'


def _reject_constant(name):
    raise ValueError(f'non-finite number {name} is not valid JSON')


def _parse_finite_float(literal):
    value = float(literal)
    if not math.isfinite(value):
        raise ValueError(f'number {literal} overflows a double')

    return value


def to_json(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, separators=(',', ':'), allow_nan=False)
    except (TypeError, ValueError, RecursionError) as e:
        # ValueError covers "Circular reference detected" and non-finite floats
        raise SerializationError(f'cannot serialize {value.__class__.__name__} to JSON: {e}') from e


def encode(value: Any) -> bytes:
    '''Serialize value as JSON and returns its UTF-16 code units'''
    text = to_json(value)
    raw = text.encode(TEXT_ENCODING, 'surrogatepass')

    logger.debug('encoded %s as %d code units' % (value.__class__.__name__, len(text)))

    return raw


def decode(raw) -> Any:
    '''Inverse of encode(): raw can be any bytes-like object'''
    if len(raw) % BYTES_PER_CODE_UNIT:
        raise MalformedBlobError(f'UTF-16 text with odd length ({len(raw)} bytes)')

    try:
        text = bytes(raw).decode(TEXT_ENCODING, 'surrogatepass')
        return json.loads(text, parse_constant=_reject_constant, parse_float=_parse_finite_float)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise MalformedBlobError(f'invalid JSON text: {e}') from e
