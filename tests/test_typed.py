import numpy as np
import pytest

from pixp import codec
from pixp.exceptions import EncodingMismatchError, MalformedBlobError
from pixp.typed import (
    DataType,
    ElementKind,
    EncodingDescriptor,
    KIND2SPEC,
    TypedArray,
    classify,
    element_kind_of,
    to_raw,
)


# the signed flag of the integer kinds is inverted in the existing blobs
@pytest.mark.parametrize('kind,data_type,bytes_per_element,signed', [
    (ElementKind.INT8,          DataType.INT,   1, False),
    (ElementKind.UINT8,         DataType.INT,   1, True),
    (ElementKind.UINT8_CLAMPED, DataType.INT,   1, True),
    (ElementKind.INT16,         DataType.INT,   2, False),
    (ElementKind.UINT16,        DataType.INT,   2, True),
    (ElementKind.INT32,         DataType.INT,   4, False),
    (ElementKind.UINT32,        DataType.INT,   4, True),
    (ElementKind.FLOAT32,       DataType.FLOAT, 4, False),
    (ElementKind.FLOAT64,       DataType.FLOAT, 8, False),
])
def test_classify_element_kinds(kind, data_type, bytes_per_element, signed):
    spec = classify(TypedArray(kind, [1, 2, 3]))

    assert spec.data_type == data_type
    assert spec.bytes_per_element == bytes_per_element
    assert spec.signed is signed
    assert spec.dtype.itemsize == bytes_per_element


def test_mapping_is_exhaustive():
    assert set(KIND2SPEC) == set(ElementKind)


@pytest.mark.parametrize('dtype,kind', [
    (np.int8, ElementKind.INT8),
    (np.uint8, ElementKind.UINT8),
    (np.int16, ElementKind.INT16),
    (np.uint16, ElementKind.UINT16),
    (np.int32, ElementKind.INT32),
    (np.uint32, ElementKind.UINT32),
    (np.float32, ElementKind.FLOAT32),
    (np.float64, ElementKind.FLOAT64),
    ('>i4', ElementKind.INT32),
    ('>f8', ElementKind.FLOAT64),
])
def test_element_kind_of_ndarray(dtype, kind):
    assert element_kind_of(np.zeros(3, dtype=dtype)) == kind


@pytest.mark.parametrize('data', [
    np.zeros(3, dtype=np.int64),
    np.zeros(3, dtype=np.float16),
    np.zeros(3, dtype=bool),
    [1, 2, 3],
    {'a': 1},
    'text',
    None,
    42,
])
def test_classify_json(data):
    spec = classify(data)

    assert element_kind_of(data) is None
    assert spec.data_type == DataType.JSON
    assert spec.bytes_per_element == 2
    assert spec.signed is False


def test_clamped_values():
    array = TypedArray(ElementKind.UINT8_CLAMPED, [-10, 0.5, 1.5, 254.7, 256, 1000])

    assert array.array.tolist() == [0, 0, 2, 255, 255, 255]
    assert array.tobytes() == bytes([0, 0, 2, 255, 255, 255])


def test_to_raw_is_little_endian_and_contiguous():
    big = np.array([[1, 2], [3, 4]], dtype='>u2')

    assert to_raw(big) == b'\x01\x00\x02\x00\x03\x00\x04\x00'
    assert to_raw(big.T) == b'\x01\x00\x03\x00\x02\x00\x04\x00'


def test_to_raw_json():
    assert to_raw({'a': 1}) == codec.encode({'a': 1})


def test_descriptor_for_data():
    data = np.array([1.0, 2.0, 3.0], dtype=np.float32)
    encoding = EncodingDescriptor.for_data(data, to_raw(data), original_type='Image2D')

    assert encoding.as_dict() == {
        'originalType': 'Image2D',
        'bytesPerElement': 4,
        'dataType': 'float',
        'signed': False,
        'byteLength': 12,
    }
    assert list(encoding.as_dict()) == ['originalType', 'bytesPerElement', 'dataType', 'signed', 'byteLength']
    assert EncodingDescriptor.from_dict(encoding.as_dict()) == encoding


def test_descriptor_reverse_mapping():
    encoding = EncodingDescriptor(None, DataType.INT, 1, True, 3)

    # clamping can't be recovered from the blob
    assert encoding.element_kind == ElementKind.UINT8
    assert EncodingDescriptor(None, DataType.INT, 2, False, 0).element_kind == ElementKind.INT16
    assert EncodingDescriptor(None, DataType.JSON, 2, False, 0).element_kind is None

    with pytest.raises(EncodingMismatchError):
        EncodingDescriptor(None, DataType.FLOAT, 2, False, 0).element_kind


def test_descriptor_decode_numeric_is_a_view():
    raw = memoryview(np.array([1, -2, 3], dtype='<i2').tobytes())
    encoding = EncodingDescriptor(None, DataType.INT, 2, False, len(raw))

    data = encoding.decode(raw)

    assert data.dtype == np.dtype('<i2')
    assert data.tolist() == [1, -2, 3]
    assert not data.flags.writeable
    assert np.shares_memory(data, np.frombuffer(raw, dtype=np.uint8))


def test_descriptor_decode_mismatch():
    with pytest.raises(EncodingMismatchError):
        EncodingDescriptor(None, DataType.INT, 4, False, 6).decode(b'\x00' * 6)

    with pytest.raises(EncodingMismatchError):
        EncodingDescriptor(None, DataType.INT, 4, False, 8).decode(b'\x00' * 4)

    with pytest.raises(EncodingMismatchError):
        EncodingDescriptor(None, DataType.JSON, 1, False, 4).decode(codec.encode(1) * 2)


@pytest.mark.parametrize('value,error', [
    ([], MalformedBlobError),
    ({'dataType': 'int'}, MalformedBlobError),
    ({'originalType': None, 'dataType': 'complex', 'bytesPerElement': 8, 'signed': False, 'byteLength': 8},
     EncodingMismatchError),
    ({'originalType': None, 'dataType': 'int', 'bytesPerElement': 1, 'signed': False, 'byteLength': -1},
     MalformedBlobError),
    ({'originalType': None, 'dataType': 'int', 'bytesPerElement': 1, 'signed': False, 'byteLength': '4'},
     MalformedBlobError),
    ({'originalType': None, 'dataType': 'int', 'bytesPerElement': 1, 'signed': 'no', 'byteLength': 4},
     MalformedBlobError),
])
def test_descriptor_from_dict_invalid(value, error):
    with pytest.raises(error):
        EncodingDescriptor.from_dict(value)
