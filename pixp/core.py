"""
Core module for the abstraction of the pixp format

"""
from typing import Tuple, List, Dict

from .fields import Field
from .meta import MetaChunk
from .streams import Stream
from .exceptions import PixpException
from .properties import ChunkPhase


class Chunk(Field, metaclass=MetaChunk):
    """
    Together with Field is the main class that defines a format: its main attributes
    are offset and size that identify a Chunk.

    A Chunk can contain sub-chunks, they are laid out contiguously in the order
    they are declared in the class body.
    """

    def __init__(self, source=None, **kwargs):
        super().__init__(**kwargs)

        # now we have setup all the fields necessary and we can unpack if
        # some data is passed with the constructor
        if source is not None:
            stream = source if isinstance(source, Stream) else Stream(source)
            self.logger.debug('unpacking \'%s\' from %s' % (self.__class__.__name__, stream))
            self.unpack(stream)
        else:
            self.relayout()

    def get_ordered_fields_name(self) -> List[str]:
        return self._meta.fields

    def get_fields(self) -> List[Tuple[str, Field]]:
        '''It returns a list of couples (name, instance) for each field.'''
        return [(_, getattr(self, _)) for _ in self.get_ordered_fields_name()]

    def __repr__(self):
        msg = []
        for field_name, field in self.get_fields():
            msg.append('%s=%s' % (field_name, repr(field)))
        return '<%s(%s)>' % (self.__class__.__name__, ','.join(msg))

    def init(self):
        for _, field in self.get_fields():
            field.init()

    def _get_value(self):
        return {name: field.value for name, field in self.get_fields()}

    def _get_size(self):
        '''the size parameter MUST not be set but MUST be derived from the subchunks'''
        size = 0
        for _, field in self.get_fields():
            size += field.size

        return size

    def _get_raw(self):
        return b''.join(bytes(field.raw) for _, field in self.get_fields())

    @property
    def layout(self) -> Dict[str, Tuple[int, int]]:
        result = {}
        for name, field in self.get_fields():
            result[name] = (field.offset, field.size)

        return result

    def relayout(self, offset=0):
        '''This method triggers the chunk's children to reset the offsets
        in order to pack correctly.

        In practice it's like packing() but it's only interested in the sizes
        of the chunks.'''
        phase_old = self._phase
        self._phase = ChunkPhase.RELAYOUTING
        self.offset = offset

        size = 0
        for field_name, field_instance in self.get_fields():
            self.logger.debug('relayouting %s.%s' % (self.__class__.__name__, field_name))
            size += field_instance.relayout(offset=offset + size)

        self._phase = phase_old

        return size

    def pack(self, stream=None, relayout=True):
        '''Write the chunk into the stream (a new one if not passed)
        and return the bytes packed so far.'''
        self._phase = ChunkPhase.PACKING

        stream = Stream(b'', flags='w') if stream is None else stream

        if relayout:
            self.relayout(offset=stream.tell())

        for field_name, field_instance in self.get_fields():
            if field_instance.offset is None:
                raise AttributeError(f'offset for field named "{field_name}" {field_instance!r} is not defined!')

            self.logger.debug('packing %s.%s at offset %08x' % (self.__class__.__name__, field_name, field_instance.offset))
            try:
                field_instance.pack(stream=stream, relayout=False)
            except PixpException as e:
                e.chain.insert(0, field_name)
                raise

        self._phase = ChunkPhase.DONE

        return stream.getvalue()

    def unpack(self, stream):
        '''Take the binary data from the actual position of the stream and
        fill the fields in order: each field knows how many bytes it needs,
        directly or via a Dependency on a field already unpacked.'''
        self._phase = ChunkPhase.UNPACKING
        self.offset = stream.tell()

        for field_name, field in self.get_fields():
            field.offset = stream.tell()
            self.logger.debug('unpacking %s.%s at offset %d' % (self.__class__.__name__, field_name, field.offset))

            try:
                field.unpack(stream)
            except PixpException as e:
                e.chain.insert(0, field_name)
                raise

        self._phase = ChunkPhase.DONE
