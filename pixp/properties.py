import logging
from enum import Enum, auto
from typing import List

from .exceptions import ConsistencyError, MalformedBlobError


class ChunkPhase(Enum):
    '''Enum to state the actual phase of a chunk'''
    INIT      = 0
    RELAYOUTING = auto()
    PACKING   = auto()
    UNPACKING = auto()
    DONE      = auto()


class Dependency:
    '''This makes the relation between fields possible.

    In practice this class allows to write something like

        class SidecarFrame(Chunk):
            length = fields.StructField('I')
            payload = fields.UnicodeJSONField(Dependency('.length'))

    and have the (internal) length of the payload strictly connected to
    the field named 'length': unpacking reads as many bytes as the length
    says, setting the payload writes back its length.

    The expression is resolved like a relative python module path: the
    leading '.' indicates we start from the chunk containing the field.
    '''
    def __init__(self, expression):
        if not expression.startswith('.'):
            raise ValueError(f'dependency expression \'{expression}\' must be relative')

        self.expression = expression
        self.logger = logging.getLogger(__name__)

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.expression})>'

    def resolve_field(self, instance):
        self.logger.debug('trying to resolve \'%s\' using class \'%s\'' % (
            self.expression,
            self.__class__.__name__,
        ))

        # '.sidecar.payload'.split(".") -> ['', 'sidecar', 'payload']
        fields_path: List[str] = self.expression.split('.')[1:]
        field = instance.father

        if field is None:
            raise AttributeError(f'cannot resolve \'{self.expression}\' for a field without father')

        for component_name in fields_path:
            field = getattr(field, component_name)
            self.logger.debug(' resolved sub-component "%s" from "%s"' % (
                field.__class__.__name__, component_name))

        return field

    def _do_resolve(self, instance, field):
        return field.value

    def resolve(self, instance):
        '''With this method we resolve the attribute with respect to the instance
        passed as argument.'''
        field = self.resolve_field(instance)

        value = self._do_resolve(instance, field)
        self.logger.debug(' resolved with value %r' % (value,))

        return value

    def resolve_and_set(self, instance, value):
        """Write back the value into the field we depend on"""
        self.resolve_field(instance).value = value


class KeyDependency(Dependency):
    '''Dependency on an entry of a JSON-like value held by another field.

    The keys are followed in order starting from the value of the field the
    expression resolves to, so that

        KeyDependency('.sidecar.payload', 'encodingMetadata', 'byteLength')

    reads the byte length declared into the sidecar of the same block.

    This dependency is read-only: setting the dependent attribute only
    checks that the new value agrees with the one declared.
    '''

    def __init__(self, expression, *keys):
        super().__init__(expression)
        self.keys = keys

    def __repr__(self):
        return f'<{self.__class__.__name__}({self.expression}{"".join(f"[{_!r}]" for _ in self.keys)})>'

    def _do_resolve(self, instance, field):
        value = field.value

        try:
            for key in self.keys:
                value = value[key]
        except (KeyError, IndexError, TypeError):
            # a freshly created chunk has nothing to look into yet
            if instance._phase != ChunkPhase.UNPACKING:
                return 0

            raise MalformedBlobError(
                f'missing entry {"/".join(self.keys)} in {field.name}', chain=[])

        return value

    def resolve_and_set(self, instance, value):
        declared = self.resolve(instance)

        if declared != value:
            raise ConsistencyError(
                f'{instance.name} has length {value} but {"/".join(self.keys)} declares {declared}', chain=[])


class PropertyDescriptor(object):
    """This the glue for dependency management"""

    def __init__(self, name: str, _type: type):
        self.name = name
        self.type = _type

    def __get__(self, instance: "Field", owner):
        if instance is None:
            return self

        data = instance.__dict__
        if self.name not in data:
            raise AttributeError(f"no '{self.name}' here!")

        value = data[self.name]

        if isinstance(value, Dependency):
            # without a father there is nothing to resolve against
            if instance.father is None:
                return data.get(f'_{self.name}_cache', 0)

            return value.resolve(instance)

        return value

    def __set__(self, instance: "Field", value):
        if not isinstance(value, (self.type, Dependency)):
            raise ValueError(f"A property must be of type {self.type} or a Dependency")

        data = instance.__dict__

        # the first time we add without thinking much
        if self.name not in data or not isinstance(data[self.name], Dependency):
            data[self.name] = value
            return

        if instance.father is None:
            data[f'_{self.name}_cache'] = value
            return

        data[self.name].resolve_and_set(instance, value)
