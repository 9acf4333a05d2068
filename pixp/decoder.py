'''
Parser of pixp blobs.

Decoding is all or nothing: any malformed part of the blob raises an
exception and no partial study is returned.
'''
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .enum import Compliant
from .exceptions import MalformedBlobError, PixpException
from .format import Block, SidecarFrame
from .streams import Stream
from .typed import EncodingDescriptor


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedBlock:
    encoding_metadata: EncodingDescriptor
    original_metadata: Any
    # numeric data is compared through its raw bytes
    data: Any = field(compare=False)
    raw: memoryview = field(repr=False)

    @property
    def original_type(self) -> Optional[str]:
        return self.encoding_metadata.original_type


@dataclass(frozen=True)
class DecodedStudy:
    study_metadata: Any
    blocks: Tuple[DecodedBlock, ...]

    def __len__(self):
        return len(self.blocks)

    def __iter__(self):
        return iter(self.blocks)

    def __getitem__(self, index):
        return self.blocks[index]


class PixpDecoder:

    def __init__(self, compliant: Compliant = Compliant.STRICT):
        self.compliant = compliant

    def _unpack_study_sidecar(self, stream: Stream) -> Tuple[SidecarFrame, List[int], Any]:
        header = SidecarFrame()

        try:
            header.unpack(stream)
            block_starts, study_metadata = self._check_study_sidecar(header.payload.value)
        except PixpException as e:
            e.chain.insert(0, 'study')
            raise

        logger.debug('study sidecar of %d bytes declares %d blocks' % (header.payload.size, len(block_starts)))

        return header, block_starts, study_metadata

    def _check_study_sidecar(self, sidecar) -> Tuple[List[int], Any]:
        if not isinstance(sidecar, dict) or 'blockStarts' not in sidecar or 'studyMetadata' not in sidecar:
            raise MalformedBlobError('study sidecar must be an object with blockStarts and studyMetadata')

        block_starts = sidecar['blockStarts']

        if not isinstance(block_starts, list) or not all(
                isinstance(_, int) and not isinstance(_, bool) and _ >= 0 for _ in block_starts):
            raise MalformedBlobError(f'blockStarts must be a list of offsets, not {block_starts!r}')

        is_valid = (not block_starts or block_starts[0] == 0) and all(
            a < b for a, b in zip(block_starts, block_starts[1:]))

        if not is_valid:
            if self.compliant & Compliant.OFFSETS:
                raise MalformedBlobError(f'blockStarts {block_starts!r} must start at 0 and be strictly increasing')
            logger.warning('blockStarts %r are not contiguous increasing offsets' % (block_starts,))

        return block_starts, sidecar['studyMetadata']

    def read_study_sidecar(self, source) -> Tuple[List[int], Any]:
        '''Read only the study sidecar: returns the offsets of the blocks and the metadata of the study'''
        stream = source if isinstance(source, Stream) else Stream(source)
        _, block_starts, study_metadata = self._unpack_study_sidecar(stream)

        return block_starts, study_metadata

    def decode(self, source) -> DecodedStudy:
        '''Decode a whole blob, source can be bytes-like, a path or a binary file object'''
        stream = source if isinstance(source, Stream) else Stream(source)

        header, block_starts, study_metadata = self._unpack_study_sidecar(stream)
        blocks_region_start = header.size

        blocks = []
        for index in range(len(block_starts)):
            try:
                blocks.append(self._decode_block(stream, blocks_region_start, block_starts, index))
            except PixpException as e:
                e.chain.insert(0, f'blocks[{index}]')
                raise

        logger.debug('decoded %d blocks from %d bytes' % (len(blocks), len(stream)))

        return DecodedStudy(study_metadata=study_metadata, blocks=tuple(blocks))

    def _decode_block(self, stream: Stream, blocks_region_start: int, block_starts: List[int], index: int) -> DecodedBlock:
        offset = blocks_region_start + block_starts[index]
        logger.debug('block %d at offset %d' % (index, offset))

        stream.seek(offset)

        block = Block()
        block.unpack(stream)

        sidecar = block.sidecar.payload.value
        if not isinstance(sidecar, dict) or 'encodingMetadata' not in sidecar:
            raise MalformedBlobError('block sidecar must be an object with encodingMetadata', chain=['sidecar'])

        end = block.offset + block.size
        if index + 1 < len(block_starts):
            limit = blocks_region_start + block_starts[index + 1]
            if end > limit:
                if self.compliant & Compliant.BOUNDS:
                    raise MalformedBlobError(
                        f'block ends at {end} after the start of the next one at {limit}')
                logger.warning('block %d ends at %d after the start of the next one at %d' % (index, end, limit))

        encoding = EncodingDescriptor.from_dict(block.encoding_metadata)
        raw = block.data.value

        return DecodedBlock(
            encoding_metadata=encoding,
            original_metadata=block.original_metadata,
            data=encoding.decode(raw),
            raw=raw,
        )
