"""
Optonaut utilities (internal helpers, carefully exposed)

Scope
- Core building blocks used across the package for consistent semantics and UX.
- Public-but-internal leaning: stable enough for consumers, designed primarily
  to support the declarations/results layers.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- rename(callable, name) / @rename("name")
  • Assign stable __name__/__qualname__ to generated wrappers for clean tracebacks and reprs.

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) as an
    immutable view (tuple / MappingProxyType / frozenset for containers).

- RecordType
  • Metaclass for the small immutable value types (declarations and parse results):
    read-only fields, generated __repr__/__rich_repr__ and __match_args__.

Usage guidance
- Prefer Unset for API defaults when None is a meaningful user value; materialize with coalesce().
- Use rename() on dynamic callables so tracebacks remain readable.
- Use mirror() to expose internal state safely as read-only properties.

Quick examples
    >>> one = coalesce(Unset, "fallback")  # "fallback"
    >>> two = coalesce(None, "fallback")    # None  (None is preserved)
    >>> @rename("do_work")
    ... def work(): ...
    ...
    >>> class X:
    ...     _items = [1, 2]
    ...     items = mirror("items")
    ... X().items
    (1, 2)
"""
import builtins
import functools
import operator
import re
from collections.abc import Sequence, Mapping, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    This is used when None is a legitimate user value, but the API needs a way
    to distinguish “not provided” from “provided as None”. A single instance,
    Unset, is exposed for use as the default in internal parameters.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset" for friendly diagnostics.
    - Non-subclassable: this type is sealed; do not subclass.
    - Singleton per process: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations (e.g., str | UnsetType).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        """
        Support reversed PEP 604 unions when UnsetType appears on the right.
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        """
        Ensure a single instance for this sentinel type.
        """
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        """
        Disallow subclassing to preserve sentinel semantics.
        """
        raise TypeError("type 'UnsetType' is not an acceptable base type")


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Use Unset as a default when None is a valid, user-meaningful value but you still
need to distinguish “no input” from “explicitly passed None”.
"""


def coalesce(object, default=None, /):
    """
    Resolve an internal Unset sentinel to a concrete default.

    This returns the given object unless it is the Unset sentinel, in which case
    the provided default is returned. Falsey values like None, 0, "" or [] are
    preserved as-is; they are not treated as “unset”.

    Examples
    - coalesce("name", "fallback") -> "name"
    - coalesce(Unset, "fallback")  -> "fallback"
    - coalesce(None, "fallback")   -> None
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set a stable __name__/__qualname__ on a callable, or return a decorator
    that will do so later.

    Forms
    - Function form: rename(callable, name) -> callable
    - Decorator form: rename(name) -> (decorator)

    Notes
    - This utility does not alter behavior beyond metadata.
    - Some built-in or C-implemented callables are not updatable and will
      raise TypeError.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _freeze(object):
    """
    Shallow immutable view of a container value.

    - Sequence (non-string) → tuple
    - Mapping               → MappingProxyType
    - Set                   → frozenset
    - anything else         → returned as-is
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return tuple(object)
    elif isinstance(object, Mapping):
        return MappingProxyType(object)
    elif isinstance(object, Set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads from an attribute named "_{name}" on the
    instance, and returns an immutable view for container types so the public
    API can never be used to mutate internal state.

    Example
    - Given self._names, declare names = mirror("names") to expose it safely.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


class RecordType(type):
    """
    Metaclass for small immutable value types.

    Responsibilities
    - Publish every name in __introspectable__ as a read-only property backed
      by "_{name}" (see mirror()), and reserve the backing slots.
    - Expose the same names as __match_args__ so instances can be used in
      class patterns: `case ParsedOption("f", value):`.
    - Provide stable __repr__/__rich_repr__ implementations; __displayable__
      (if set) narrows the fields shown, otherwise __introspectable__ is used.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages and representations.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        fields = namespace.get("__introspectable__", ())
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
                "__slots__": tuple("_" + field for field in fields),
            } | {
                field: mirror(field) for field in fields
            } | (
                {"__match_args__": tuple(fields)} if "__introspectable__" in namespace else {}
            ),
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - parsed-option(name='v', value='high', label='verbose', negated=False)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            """
            Yield (name, object) pairs for pretty printers such as rich.
            """
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _rebuild(cls, fields, /):
    """
    Recreate a record from its backing fields without running __init__ (unpickling).
    """
    self = object.__new__(cls)
    self._assign(**fields)
    return self


class RecordBase(metaclass=RecordType):
    """
    Root of every record: blocks writes once construction is over.

    Subclasses assign their backing fields through _assign() inside __init__.
    Records are immutable, so copies are the record itself and pickling stores
    the backing fields.
    """
    __slots__ = ()

    def _assign(self, **fields):
        for name, value in fields.items():
            object.__setattr__(self, "_" + name, value)

    def __setattr__(self, name, value, /):
        raise AttributeError(f"{type(self).__typename__} is immutable")

    def __delattr__(self, name, /):
        raise AttributeError(f"{type(self).__typename__} is immutable")

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return _rebuild, (type(self), {
            name: getattr(self, "_" + name) for name in type(self).__introspectable__
        })


__all__ = (
    # Public API surface for consumers of optonaut.utils.
    # Note: Unset and its type are not intended to be used by external users.

    # Functions
    "coalesce",
    "rename",
    "mirror",

    # Types
    "UnsetType",
    "RecordType",
    "RecordBase",

    # Constants
    "Unset",
)
