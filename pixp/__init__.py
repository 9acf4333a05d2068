"""
# Pixp: multi-dataset binary container.

A pixp blob bundles one or more datasets (numeric buffers or any JSON-serializable
value) together with the metadata of each dataset and of the whole study into a
single contiguous sequence of bytes, no external schema is needed to read it back.

Two basic main operations are defined

 1. encoding: PixpEncoder collects the blocks via add_block() and the metadata of
    the study via set_study_metadata(), then build() returns the blob

 2. decoding: PixpDecoder.decode() takes the blob (bytes, path or file) and returns
    the metadata of the study and the blocks in the order they were added

The layout is described in pixp.format, the classification of the data in pixp.typed.
"""
from .enum import Compliant
from .exceptions import (
    PixpException,
    SerializationError,
    ConsistencyError,
    MalformedBlobError,
    EncodingMismatchError,
)
from .typed import DataType, ElementKind, TypedArray, EncodingDescriptor
from .format import MIME_TYPE
from .encoder import PixpEncoder
from .decoder import PixpDecoder, DecodedStudy, DecodedBlock


def encode(blocks, study_metadata=None) -> bytes:
    '''Build a blob in one shot: blocks is an iterable of tuples
    (data, metadata) or (data, metadata, original_type).'''
    encoder = PixpEncoder()

    for block in blocks:
        encoder.add_block(*block)

    if study_metadata is not None:
        encoder.set_study_metadata(study_metadata)

    return encoder.build()


def decode(source, compliant=Compliant.STRICT) -> DecodedStudy:
    return PixpDecoder(compliant=compliant).decode(source)
