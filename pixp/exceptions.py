class PixpException(Exception):
    '''Base class to extend in order to throw exception in pixp.

    It takes a message and the chain of the layers that caused the exception,
    the chain is extended while the exception bubbles up through the chunks.
    '''

    def __init__(self, message='', chain=None):
        self.message = message
        self.chain = chain if chain is not None else []
        super().__init__(message)

    def __str__(self):
        if not self.chain:
            return self.message

        return '%s (at %s)' % (self.message, '.'.join(str(_) for _ in self.chain))


class SerializationError(PixpException):
    '''A value cannot be turned into JSON or packed into the binary layout.'''
    pass


class ConsistencyError(PixpException):
    '''Internal invariant violated: this is a bug of the encoder, not bad input.'''
    pass


class MalformedBlobError(PixpException):
    '''The blob declares more bytes than available or contains unparsable text.'''
    pass


class EncodingMismatchError(PixpException):
    '''The encoding metadata of a block doesn't agree with its data.'''
    pass
