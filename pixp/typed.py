'''
Classification of the data stored into a block.

A block contains either a numeric buffer of one of the fixed-width element
kinds listed in ElementKind or any other JSON-serializable value. The
classification produces the triple (dataType, bytesPerElement, signed)
stored into the block's encoding metadata.

NOTE: the signed flag is inverted for the 8/16/32 bits integer kinds
(unsigned kinds are marked signed and vice versa). Blobs in the wild carry
these values so the decoder maps the triple back through the same table.
'''
import logging
from collections import namedtuple
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import numpy as np

from . import codec
from .exceptions import EncodingMismatchError, MalformedBlobError


logger = logging.getLogger(__name__)


class DataType(Enum):
    INT   = 'int'
    FLOAT = 'float'
    JSON  = 'json'


class ElementKind(Enum):
    INT8          = 'int8'
    UINT8         = 'uint8'
    UINT8_CLAMPED = 'uint8_clamped'
    INT16         = 'int16'
    UINT16        = 'uint16'
    INT32         = 'int32'
    UINT32        = 'uint32'
    FLOAT32       = 'float32'
    FLOAT64       = 'float64'


TypeSpec = namedtuple('TypeSpec', ['data_type', 'bytes_per_element', 'signed', 'dtype'])


KIND2SPEC = {
    ElementKind.INT8:          TypeSpec(DataType.INT,   1, False, np.dtype('<i1')),
    ElementKind.UINT8:         TypeSpec(DataType.INT,   1, True,  np.dtype('<u1')),
    ElementKind.UINT8_CLAMPED: TypeSpec(DataType.INT,   1, True,  np.dtype('<u1')),
    ElementKind.INT16:         TypeSpec(DataType.INT,   2, False, np.dtype('<i2')),
    ElementKind.UINT16:        TypeSpec(DataType.INT,   2, True,  np.dtype('<u2')),
    ElementKind.INT32:         TypeSpec(DataType.INT,   4, False, np.dtype('<i4')),
    ElementKind.UINT32:        TypeSpec(DataType.INT,   4, True,  np.dtype('<u4')),
    ElementKind.FLOAT32:       TypeSpec(DataType.FLOAT, 4, False, np.dtype('<f4')),
    ElementKind.FLOAT64:       TypeSpec(DataType.FLOAT, 8, False, np.dtype('<f8')),
}

JSON_SPEC = TypeSpec(DataType.JSON, codec.BYTES_PER_CODE_UNIT, False, None)

# uint8 comes before uint8_clamped so it wins the (int, 1, true) triple
SPEC2KIND = {}
for _kind, _spec in KIND2SPEC.items():
    SPEC2KIND.setdefault((_spec.data_type, _spec.bytes_per_element, _spec.signed), _kind)

# ndarray dtypes are matched by (kind, itemsize) whatever the byte order
_DTYPE2KIND = {
    (_spec.dtype.kind, _spec.dtype.itemsize): _kind
    for _kind, _spec in KIND2SPEC.items() if _kind != ElementKind.UINT8_CLAMPED
}


class TypedArray:
    '''A numeric buffer with an explicit element kind.

    The values are converted to the dtype of the kind; for UINT8_CLAMPED
    they are rounded half to even and clipped into [0, 255].'''

    def __init__(self, kind: ElementKind, values):
        self.kind = ElementKind(kind)
        dtype = KIND2SPEC[self.kind].dtype

        if self.kind == ElementKind.UINT8_CLAMPED:
            values = np.clip(np.rint(np.asarray(values, dtype=np.float64)), 0, 255)

        self.array = np.ascontiguousarray(values, dtype=dtype).reshape(-1)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.kind.value}, {self.array.tolist()!r})>'

    def __len__(self):
        return len(self.array)

    def __eq__(self, other):
        if not isinstance(other, TypedArray):
            return NotImplemented

        return self.kind == other.kind and np.array_equal(self.array, other.array)

    @property
    def nbytes(self):
        return self.array.nbytes

    def tobytes(self) -> bytes:
        return self.array.tobytes()


def element_kind_of(data) -> Optional[ElementKind]:
    '''Returns the ElementKind of data or None if it's not a supported numeric buffer'''
    if isinstance(data, TypedArray):
        return data.kind

    if isinstance(data, np.ndarray):
        return _DTYPE2KIND.get((data.dtype.kind, data.dtype.itemsize))

    return None


def classify(data) -> TypeSpec:
    kind = element_kind_of(data)

    return JSON_SPEC if kind is None else KIND2SPEC[kind]


def to_raw(data) -> bytes:
    '''Returns the bytes stored as raw data of the block for data'''
    kind = element_kind_of(data)

    if kind is None:
        return codec.encode(data)

    if isinstance(data, TypedArray):
        return data.tobytes()

    # any layout and byte order becomes contiguous little-endian
    return np.ascontiguousarray(data, dtype=KIND2SPEC[kind].dtype).tobytes()


@dataclass(frozen=True)
class EncodingDescriptor:
    '''Machine readable description of the raw data of a block.'''
    original_type: Optional[str]
    data_type: DataType
    bytes_per_element: int
    signed: bool
    byte_length: int

    @classmethod
    def for_data(cls, data, raw, original_type=None):
        spec = classify(data)

        return cls(
            original_type=original_type,
            data_type=spec.data_type,
            bytes_per_element=spec.bytes_per_element,
            signed=spec.signed,
            byte_length=len(raw),
        )

    @classmethod
    def from_dict(cls, value):
        if not isinstance(value, dict):
            raise MalformedBlobError(f'encoding metadata must be an object, not {value.__class__.__name__}')

        try:
            original_type = value['originalType']
            data_type = DataType(value['dataType'])
            bytes_per_element = value['bytesPerElement']
            signed = value['signed']
            byte_length = value['byteLength']
        except KeyError as e:
            raise MalformedBlobError(f'missing {e} in encoding metadata') from e
        except ValueError as e:
            raise EncodingMismatchError(f'unknown data type {value["dataType"]!r}') from e

        for name, number in (('bytesPerElement', bytes_per_element), ('byteLength', byte_length)):
            if not isinstance(number, int) or isinstance(number, bool) or number < 0:
                raise MalformedBlobError(f'{name} must be a non-negative integer, not {number!r}')

        if not isinstance(signed, bool):
            raise MalformedBlobError(f'signed must be a boolean, not {signed!r}')

        return cls(original_type, data_type, bytes_per_element, signed, byte_length)

    def as_dict(self):
        return {
            'originalType': self.original_type,
            'bytesPerElement': self.bytes_per_element,
            'dataType': self.data_type.value,
            'signed': self.signed,
            'byteLength': self.byte_length,
        }

    @property
    def element_kind(self) -> Optional[ElementKind]:
        if self.data_type == DataType.JSON:
            return None

        try:
            return SPEC2KIND[(self.data_type, self.bytes_per_element, self.signed)]
        except KeyError:
            raise EncodingMismatchError(
                f'no element kind is {self.data_type.value} with {self.bytes_per_element} bytes'
                f' and signed={self.signed}') from None

    def decode(self, raw) -> Any:
        '''Reinterpret raw as the original data: numeric buffers become
        read-only views over raw, JSON text a fresh python value.'''
        if len(raw) != self.byte_length:
            raise EncodingMismatchError(f'declared {self.byte_length} bytes but {len(raw)} are present')

        if self.data_type == DataType.JSON:
            if self.bytes_per_element != JSON_SPEC.bytes_per_element:
                raise EncodingMismatchError(f'JSON data with {self.bytes_per_element} bytes per element')
            return codec.decode(raw)

        kind = self.element_kind

        if self.byte_length % self.bytes_per_element:
            raise EncodingMismatchError(
                f'{self.byte_length} bytes are not a whole number of {self.bytes_per_element} bytes elements')

        logger.debug('viewing %d bytes as %s' % (self.byte_length, kind.value))

        return np.frombuffer(raw, dtype=KIND2SPEC[kind].dtype)
