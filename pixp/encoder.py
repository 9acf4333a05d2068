'''
Assembler of pixp blobs.

Add the datasets one after the other with add_block(), set the metadata of
the study with set_study_metadata() and get the blob with build().
'''
import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from . import codec
from .exceptions import ConsistencyError, PixpException, SerializationError
from .format import Block, SidecarFrame
from .streams import Stream
from .typed import EncodingDescriptor, to_raw


logger = logging.getLogger(__name__)

MAX_OFFSET = 0xffffffff


class PixpEncoder:

    def __init__(self):
        # sidecars ([encoding metadata + original metadata]) along with their encoding
        self._sidecars: List[Tuple[Dict[str, Any], bytes]] = []
        self._data_buffers: List[bytes] = []
        self._study_metadata: Any = {}

    def __len__(self):
        return len(self._data_buffers)

    def __repr__(self):
        return f'<{self.__class__.__name__}({len(self)} blocks)>'

    def add_block(self, data, metadata, original_type: Optional[str] = None) -> None:
        '''Add a new dataset to the encoder after the others.

        data can be a numpy array, a pixp.TypedArray or any JSON-serializable value;
        metadata must be JSON-serializable; original_type is stored as it is so that
        who decodes knows what kind of object the data was.
        '''
        data_buffer = to_raw(data)
        encoding = EncodingDescriptor.for_data(data, data_buffer, original_type=original_type)

        sidecar = {
            'encodingMetadata': encoding.as_dict(),
            'originalMetadata': metadata,
        }

        sidecar_buffer = codec.encode(sidecar)

        logger.debug('block %d: %s with %d bytes of sidecar' % (len(self), encoding, len(sidecar_buffer)))

        # metadata still belongs to the caller
        sidecar['originalMetadata'] = copy.deepcopy(metadata)

        self._sidecars.append((sidecar, sidecar_buffer))
        self._data_buffers.append(data_buffer)

    def set_study_metadata(self, value: Any) -> None:
        self._study_metadata = value

    @property
    def study_metadata(self):
        return self._study_metadata

    def _get_blocks(self) -> List[Block]:
        if len(self._sidecars) != len(self._data_buffers):
            raise ConsistencyError(
                f'{len(self._sidecars)} sidecars for {len(self._data_buffers)} data buffers')

        blocks = []
        for index, ((sidecar, sidecar_buffer), data_buffer) in enumerate(zip(self._sidecars, self._data_buffers)):
            block = Block()
            try:
                block.sidecar.payload.set_encoded(sidecar, sidecar_buffer)
                block.data.value = data_buffer
            except PixpException as e:
                e.chain.insert(0, f'blocks[{index}]')
                raise
            blocks.append(block)

        return blocks

    @property
    def layout(self) -> List[Tuple[int, int]]:
        '''The (offset, size) of each block into the blocks region'''
        result = []
        position = 0
        for block in self._get_blocks():
            size = block.relayout(offset=position)
            result.append((position, size))
            position += size

        return result

    def build(self) -> bytes:
        '''Returns the blob: the study sidecar followed by all the blocks'''
        blocks = self._get_blocks()

        # the position of the first byte of each block
        block_starts = []
        position = 0
        for block in blocks:
            block_starts.append(position)
            position += block.relayout(offset=position)

        if block_starts and block_starts[-1] > MAX_OFFSET:
            raise SerializationError(f'block offset {block_starts[-1]} doesn\'t fit into 32 bits')

        header = SidecarFrame()
        stream = Stream(b'', flags='w')
        try:
            header.payload.value = self._get_study_sidecar(block_starts)
            header.pack(stream)
        except PixpException as e:
            e.chain.insert(0, 'study')
            raise

        for index, block in enumerate(blocks):
            try:
                block.pack(stream)
            except PixpException as e:
                e.chain.insert(0, f'blocks[{index}]')
                raise

        blob = stream.getvalue()

        logger.debug('built blob of %d bytes with %d blocks (study sidecar of %d bytes)' % (
            len(blob), len(blocks), header.payload.size))

        return blob

    def _get_study_sidecar(self, block_starts: List[int]) -> Dict[str, Any]:
        return {
            'blockStarts': block_starts,
            'studyMetadata': self._study_metadata,
        }
