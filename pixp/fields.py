"""
A Field is "fundamental" datatype from the format point of view, something directly
packable/unpackable without need for relayouting.
"""
import logging
import struct

from . import codec
from .meta import FieldBase, Endianess
from .properties import ChunkPhase, Dependency, PropertyDescriptor
from .exceptions import MalformedBlobError, SerializationError


class Field(FieldBase):
    """Base class to subclass from"""

    def __init__(self, *args, name=None, father=None, default=None, offset=None,
                 endianess=Endianess.LITTLE_ENDIAN):
        super().__init__()
        self._phase = ChunkPhase.INIT
        self.logger = logging.getLogger(__name__)
        self.name = name
        self.father = father
        self.default = default
        self.offset = offset
        self.endianess = endianess

        self.init()

    def init(self):
        self.value = self.value_from_default()

    def value_from_default(self):
        return self.default

    def _get_value(self):
        return self._value

    def _set_value(self, value):
        self._value = value

    value = property(
        fget=lambda self: self._get_value(),
        fset=lambda self, value: self._set_value(value))

    def _get_size(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_size() not implemented")

    size = property(
        fget=lambda self: self._get_size(),
    )

    def _get_raw(self):
        raise NotImplementedError(f"method {self.__class__.__name__}._get_raw() not implemented")

    raw = property(
        fget=lambda self: self._get_raw(),
    )

    def relayout(self, offset=0):
        self.logger.debug("relayouting %s", self.__class__.__name__)
        self.offset = offset

        return self.size

    def pack(self, stream, relayout=True):
        '''Write the raw representation at the offset of the field'''
        if relayout:
            self.relayout(offset=stream.tell())

        self._phase = ChunkPhase.PACKING
        stream.seek(self.offset)
        stream.write(self.raw)
        self._phase = ChunkPhase.DONE

    def unpack(self, stream):
        raise NotImplementedError('you need to implement this in the subclass')


class StructField(Field):
    """
    Simplest of the fields: mimic the behaviour of the struct module packing/unpacking
    integers to/from bytes.
    """

    ENDIANESS_PREFIX = {
        Endianess.LITTLE_ENDIAN: '<',
        Endianess.BIG_ENDIAN: '>',
    }

    def __init__(self, format, default=0, **kw):
        self.format = format
        super().__init__(default=default, **kw)

    def __repr__(self):
        return '<%s(%s)>' % (self.__class__.__name__, hex(self.value))

    def get_format(self):
        return '%s%s' % (self.ENDIANESS_PREFIX[self.endianess], self.format)

    def _get_size(self):
        return struct.calcsize(self.get_format())

    def _get_raw(self) -> bytes:
        try:
            return struct.pack(self.get_format(), self.value)
        except struct.error as e:
            raise SerializationError(f'value {self.value!r} doesn\'t fit into \'{self.format}\': {e}') from e

    def unpack(self, stream):
        self._phase = ChunkPhase.UNPACKING
        raw = stream.read_exact(self.size)
        self.value = struct.unpack(self.get_format(), raw)[0]
        self._phase = ChunkPhase.DONE


class StringField(Field):
    """Represent a contiguous chunk of bytes.

    The length can be a Dependency, in that case unpacking reads the number
    of bytes the dependency resolves to and setting the value writes back
    its length.
    """

    length = PropertyDescriptor('length', int)

    def __init__(self, n=None, **kw):
        if n is None and 'default' not in kw:
            raise ValueError(f"{self.__class__.__name__} must have 'n' or 'default' indicated!")

        self.length = n if n is not None else len(kw['default'])

        super().__init__(**kw)

    def __repr__(self):
        return '<%s(%d bytes)>' % (self.__class__.__name__, len(self.raw))

    def __len__(self):
        return self.size

    def has_dependency(self):
        return isinstance(self.__dict__['length'], Dependency)

    def value_from_default(self):
        if self.default is not None:
            return self.default

        return b'' if self.has_dependency() else b'\x00' * self.length

    def _get_size(self):
        return len(self.raw)

    def _get_raw(self):
        return self.value

    def _set_value(self, value) -> None:
        """Without a Dependency the length is fixed and we must follow that indication,
        otherwise we are going to write back the length where necessary."""
        if not self.has_dependency() and len(value) != self.length:
            raise ValueError(f'you are trying to set a value with the wrong size (that is {self.length} bytes)')

        super()._set_value(value)
        self._update_length(len(value))

    def _update_length(self, length):
        self.length = length

    def _read_length(self):
        n = self.length

        if not isinstance(n, int) or isinstance(n, bool) or n < 0:
            raise MalformedBlobError(f'invalid length {n!r} for field \'{self.name}\'', chain=[])

        return n

    def unpack(self, stream):
        self._phase = ChunkPhase.UNPACKING
        raw = stream.read_exact(self._read_length())
        # bypass the setter: the length comes from the blob
        self._value = raw
        self._phase = ChunkPhase.DONE


class UnicodeJSONField(StringField):
    """Field holding any JSON-serializable value encoded as UTF-16 text.

    The value is decoded lazily from the raw bytes the first time is accessed.
    """

    def __init__(self, n=None, **kw):
        self._raw = b''
        self._decoded, self._is_decoded = None, False
        super().__init__(n=n if n is not None else 0, **kw)

    def value_from_default(self):
        return self.default

    def _get_value(self):
        if not self._is_decoded:
            self._decoded = codec.decode(self._raw) if len(self._raw) else self.default
            self._is_decoded = True

        return self._decoded

    def _set_value(self, value) -> None:
        if value is None and self._phase == ChunkPhase.INIT:
            self._raw, self._decoded, self._is_decoded = b'', None, True
            return

        raw = codec.encode(value)
        self._raw, self._decoded, self._is_decoded = raw, value, True
        self._update_length(len(raw))

    def _get_raw(self):
        return self._raw

    def set_raw(self, raw):
        '''Use an already encoded text: it's decoded only when needed'''
        if len(raw) % codec.BYTES_PER_CODE_UNIT:
            raise MalformedBlobError(f'UTF-16 text with odd length ({len(raw)} bytes)', chain=[])

        self._raw, self._is_decoded = raw, False
        self._update_length(len(raw))

    def set_encoded(self, value, raw):
        '''Like set_raw() when the caller already has the value raw is the encoding of'''
        self.set_raw(raw)
        self._decoded, self._is_decoded = value, True

    def unpack(self, stream):
        self._phase = ChunkPhase.UNPACKING
        self._raw = stream.read_exact(self._read_length())
        self._is_decoded = False
        # decode now so that the errors are raised where the payload is
        self._get_value()
        self._phase = ChunkPhase.DONE
