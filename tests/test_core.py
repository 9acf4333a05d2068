import pytest

from pixp.core import Chunk
from pixp.exceptions import MalformedBlobError
from pixp.fields import StructField, StringField, UnicodeJSONField
from pixp.properties import Dependency, KeyDependency


def test_chunk():
    """Check that building a Chunk from fields behaves correctly."""
    class Dummy(Chunk):
        a = StructField('I', default=0xbad)
        b = StringField(0x10)
        c = StructField('I', default=0xdeadbeef)

    dummy = Dummy()

    assert dummy.a.size == 4
    assert dummy.a.raw == b'\xad\x0b\x00\x00'
    assert dummy.a.value == 0xbad
    assert dummy.a.offset == 0x00
    assert dummy.a.father is dummy

    assert dummy.b.size == 0x10
    assert dummy.b.raw == b'\x00' * 0x10
    assert dummy.b.offset == 0x04

    assert dummy.c.size == 0x4
    assert dummy.c.raw == b'\xef\xbe\xad\xde'
    assert dummy.c.offset == 0x14

    assert dummy.size == 0x18
    assert len(dummy.raw) == dummy.size
    assert dummy.raw == (
        b'\xad\x0b\x00\x00' +
        b'\x00' * 0x10 +
        b'\xef\xbe\xad\xde'
    )
    assert dummy.pack() == dummy.raw


def test_chunk_fields_are_not_shared():
    class Dummy(Chunk):
        a = StructField('I')

    first, second = Dummy(), Dummy()
    first.a.value = 1

    assert first.a is not second.a
    assert second.a.value == 0


def test_chunk_w_dependencies():
    class Example(Chunk):
        sz = StructField('I')
        data = StringField(Dependency('.sz'), default=b'kebab')

    example = Example()

    assert example.sz.father is example
    assert example.sz.value == 5
    assert example.data.value == b'kebab'

    example.data.value = b'kebabbone'

    assert example.sz.value == 9
    assert example.pack() == b'\x09\x00\x00\x00kebabbone'


def test_chunk_unpack_w_dependencies():
    class Example(Chunk):
        sz = StructField('I')
        data = StringField(Dependency('.sz'), default=b'')
        tail = StructField('H')

    example = Example(b'\x03\x00\x00\x00abc\x01\x02')

    assert example.sz.value == 3
    assert example.data.value == b'abc'
    assert example.tail.value == 0x0201
    assert example.value == {'sz': 3, 'data': b'abc', 'tail': 0x0201}
    assert example.layout == {
        'sz': (0, 4),
        'data': (4, 3),
        'tail': (7, 2),
    }


def test_chunk_unpack_error_chain():
    class Example(Chunk):
        sz = StructField('I')
        data = StringField(Dependency('.sz'), default=b'')

    with pytest.raises(MalformedBlobError) as excinfo:
        Example(b'\x09\x00\x00\x00abc')

    assert excinfo.value.chain == ['data']


def test_nested_chunks():
    """A length prefixed JSON header followed by as many bytes as it says."""
    class Header(Chunk):
        length = StructField('I')
        payload = UnicodeJSONField(Dependency('.length'))

    class Record(Chunk):
        header = Header()
        body = StringField(KeyDependency('.header.payload', 'size'))

    record = Record()
    record.header.payload.value = {'size': 3}
    record.body.value = b'xyz'

    raw = record.pack()

    assert raw[:4] == b'\x14\x00\x00\x00'
    assert raw[4:24] == '{"size":3}'.encode('utf-16-le')
    assert raw[24:] == b'xyz'

    other = Record(raw)

    assert other.header.payload.value == {'size': 3}
    assert other.body.value == b'xyz'
    assert other.size == len(raw)

    with pytest.raises(MalformedBlobError) as excinfo:
        Record(raw[:-1])

    assert excinfo.value.chain == ['body']
