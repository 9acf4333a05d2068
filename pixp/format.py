'''
# Pixp blob

A binary pixp blob is composed of a study sidecar followed by the blocks.

    [length: uint32][study sidecar: UTF-16 JSON]
    [length: uint32][block sidecar: UTF-16 JSON][data]
    ...

As a JSON object, the study sidecar is composed of 2 things:

 - blockStarts: the offset of each block, counting from the first byte after the study sidecar
 - studyMetadata: the metadata of the whole study

and each block's sidecar of

 - encodingMetadata: how the data is encoded (see pixp.typed.EncodingDescriptor)
 - originalMetadata: the metadata set by the user for this block

All the integers are little endian.
'''
from . import fields
from .core import Chunk
from .properties import Dependency, KeyDependency


MIME_TYPE = 'application/octet-binary'


class SidecarFrame(Chunk):
    '''Length prefixed JSON text.'''
    length  = fields.StructField('I')
    payload = fields.UnicodeJSONField(Dependency('.length'))


class Block(Chunk):
    '''A sidecar followed by the data it describes: the amount of data is
    declared into the sidecar itself.'''
    sidecar = SidecarFrame()
    data    = fields.StringField(KeyDependency('.sidecar.payload', 'encodingMetadata', 'byteLength'))

    @property
    def encoding_metadata(self):
        return self.sidecar.payload.value['encodingMetadata']

    @property
    def original_metadata(self):
        # a producer writing undefined metadata omits the key
        return self.sidecar.payload.value.get('originalMetadata')
