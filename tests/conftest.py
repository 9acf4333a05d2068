import logging
import os

import numpy as np
import pytest

from pixp import PixpEncoder, TypedArray, ElementKind


logging.basicConfig(level=logging.DEBUG if 'DEBUG' in os.environ else logging.INFO)


@pytest.fixture
def study_blocks():
    '''A study with a numeric buffer of each kind and a couple of JSON objects'''
    return [
        (np.array([-128, 0, 127], dtype=np.int8), {'name': 'int8'}, 'Image2D'),
        (np.array([0, 200, 255], dtype=np.uint8), {'name': 'uint8'}, None),
        (TypedArray(ElementKind.UINT8_CLAMPED, [-3, 12.5, 300]), {'name': 'clamped'}, 'Image2D'),
        (np.array([-32768, 1, 32767], dtype=np.int16), {'name': 'int16'}, None),
        (np.array([0, 65535], dtype=np.uint16), {'name': 'uint16'}, 'Image3D'),
        (np.array([-(1 << 31), 7], dtype=np.int32), {'name': 'int32'}, None),
        (np.array([(1 << 32) - 1], dtype=np.uint32), {'name': 'uint32'}, None),
        (np.array([1.5, -2.25, 3.0], dtype=np.float32), {'name': 'float32'}, 'Image3D'),
        (np.array([np.pi, -1e300], dtype=np.float64), {'name': 'float64'}, None),
        ({'patient': 'Zoë', 'slices': [1, 2, 3], 'nested': {'ok': True}}, {'name': 'json'}, 'Provenance'),
        ('just a string 🧠', None, None),
    ]


@pytest.fixture
def study_metadata():
    return {'study': 'brain MRI', 'date': '2017-11-07', 'series': [1, 2]}


@pytest.fixture
def blob(study_blocks, study_metadata):
    encoder = PixpEncoder()
    for data, metadata, original_type in study_blocks:
        encoder.add_block(data, metadata, original_type)
    encoder.set_study_metadata(study_metadata)

    return encoder.build()
