import io
import logging
import os

from .exceptions import MalformedBlobError


logger = logging.getLogger(__name__)


class Stream(object):
    '''This is a simple wrapper around bytes/path/file object to
    uniform its properties: the whole blob is materialized in memory and
    reads return zero-copy slices of it.

    With flags='w' the stream is backed by an io.BytesIO and used for packing.'''
    def __init__(self, obj, flags='r'):
        '''Here we normalize the object in order to be accessed as a memory buffer'''
        if isinstance(obj, os.PathLike):
            obj = os.fspath(obj)

        self._type = type(obj)
        self.flags = flags
        self.obj = obj
        self.position = 0

        init_method_name = 'init_%s' % self.obj.__class__.__name__
        if flags == 'w':
            init_method_name = 'init_writer'

        init_method = getattr(self, init_method_name, None)

        if init_method is None:
            if not hasattr(self.obj, 'read'):
                raise ValueError('\'%s\' is the wrong kind of object to use as stream' % self._type.__name__)
            init_method = self.init_file

        init_method()

    def __repr__(self):
        return '<%s(%s, %d bytes)>' % (self.__class__.__name__, self._type.__name__, len(self))

    def __len__(self):
        if self.is_writable:
            position = self.obj.tell()
            end = self.obj.seek(0, io.SEEK_END)
            self.obj.seek(position)
            return end

        return len(self.obj)

    @property
    def is_writable(self):
        return self.flags == 'w'

    def init_str(self):
        '''We think this is a path'''
        logger.debug('opening path \'%s\'' % self.obj)
        with open(self.obj, 'rb') as f:
            self.obj = memoryview(f.read())

    def init_file(self):
        '''A binary file object: we read it all before parsing'''
        logger.debug('reading from %s' % self._type.__name__)
        self.obj = memoryview(self.obj.read())

    def init_bytes(self):
        '''We think these are raw bytes'''
        self.obj = memoryview(self.obj)

    def init_bytearray(self):
        self.obj = memoryview(self.obj)

    def init_memoryview(self):
        if not self.obj.c_contiguous:
            # strided views can't be sliced into struct/numpy buffers
            logger.debug('copying non contiguous memoryview')
            self.obj = memoryview(self.obj.tobytes())

        self.obj = self.obj.cast('B') if self.obj.format != 'B' or self.obj.ndim != 1 else self.obj

    def init_writer(self):
        self.obj = io.BytesIO(self.obj)

    def seek(self, offset):
        if not isinstance(offset, int):
            raise ValueError('\'%s\' is the wrong kind of offset to use' % offset.__class__.__name__)

        if offset < 0 or offset > len(self):
            raise MalformedBlobError('offset %d is outside of the blob (%d bytes)' % (offset, len(self)))

        if self.is_writable:
            self.obj.seek(offset)

        self.position = offset

    def tell(self):
        return self.obj.tell() if self.is_writable else self.position

    def read(self, n):
        '''Returns at most n bytes as a view of the underlying buffer'''
        start = self.tell()
        data = self.obj[start:start + n]
        self.position = start + len(data)

        return data

    def read_exact(self, n):
        '''Like read() but fails if the blob doesn't have enough bytes'''
        offset = self.tell()
        data = self.read(n)

        if len(data) != n:
            raise MalformedBlobError(
                'expected %d bytes at offset %d but only %d are available' % (n, offset, len(data)))

        return data

    def write(self, data):
        return self.obj.write(data)

    def getvalue(self):
        return self.obj.getvalue()
