"""
Optonaut parse results.

A parse produces a ResultSequence: the argument vector re-told as a tagged union
of three item kinds, in token order.

- ParsedOption: an option occurrence (declaration, name typed, value, label, negated).
- PositionalArg: one positional argument.
- Separator: the literal "--" that ended option parsing (a singleton).

Consuming results
- Views: results.options, results.arguments and results.rest (positional
  arguments strictly after the first separator).
- Lookup: results.get("v") / results.getall("verbose") by any name of the declaration.
- Structural pattern matching:

    for item in results:
        match item:
            case ParsedOption(label="help"):
                show_help()
            case ParsedOption(label="color", negated=negated):
                use_color(not negated)
            case PositionalArg(value=value):
                files.append(value)
            case SeparatorType():
                break

- Visitors: results.accept(visitor) calls visit_option/visit_argument/visit_separator
  on a ResultVisitor subclass and returns the list of their return values.
"""
import functools
import re
from collections.abc import Sequence
from typing import final

from rich.text import Text

from .declarations import OptionDeclaration
from .faults import Unreachable
from .utils import *


def _negated(declaration, name):
    """
    Tell whether `name` is the negated spelling of another name of `declaration`.

    `name` is normally a declared name (the one an abbreviation resolved to). An
    undeclared name is expanded to the declaration name it uniquely prefixes,
    so "no-q" against ("quiet", "no-quiet") counts as negated.
    """
    if name not in declaration.names:
        candidates = [declared for declared in declaration.names if declared.startswith(name)]
        if len(candidates) == 1:
            name, = candidates
    match = re.match(r"no-?", name)
    return bool(match) and name[match.end():] in declaration.names


class ParsedOption(RecordBase):
    """
    One option occurrence in the argument vector.

    Properties
    - name: the name exactly as typed, without dashes ("v", "verb", "no-color").
    - value: the argument as a string, or None when the option got none.
    - label: the declaration's label, copied so it can be matched on directly.
    - negated: True when a negated spelling ("no-x"/"nox") of another name was typed.
    - declaration: the registry's own OptionDeclaration object (never a copy).

    The keyword-only `declared` is the declaration name an abbreviated `name`
    resolved to (see OptionRegistry.resolve); it drives negation detection.
    """

    __introspectable__ = (
        "name",
        "value",
        "label",
        "negated",
        "declaration",
    )
    __displayable__ = (
        "name",
        "value",
        "label",
        "negated",
    )

    def __init__(self, declaration, name, value=None, *, declared=Unset):
        if not isinstance(declaration, OptionDeclaration):
            raise TypeError("parsed option declaration must be an option declaration")
        if not isinstance(name, str):
            raise TypeError("parsed option name must be a string")
        if not isinstance(value, str | None):
            raise TypeError("parsed option value must be a string or None")
        if declared is not Unset and declared not in declaration.names:
            raise ValueError("%r is not a name of %r" % (declared, declaration))
        self._assign(
            name=name,
            value=value,
            label=declaration.label,
            negated=_negated(declaration, coalesce(declared, name)),
            declaration=declaration,
        )

    @property
    def affirmed(self):
        """True unless a negated spelling was typed."""
        return not self._negated

    def __eq__(self, other, /):
        if not isinstance(other, ParsedOption):
            return NotImplemented
        return self._declaration is other._declaration and (
            (self._name, self._value) == (other._name, other._value)
        )

    def __hash__(self):
        return hash((id(self._declaration), self._name, self._value))


class PositionalArg(RecordBase):
    """
    One positional argument.
    """

    __introspectable__ = (
        "value",
    )

    def __init__(self, value):
        if not isinstance(value, str):
            raise TypeError("positional argument value must be a string")
        self._assign(value=value)

    def __str__(self):
        return self._value

    def __eq__(self, other, /):
        if not isinstance(other, PositionalArg):
            return NotImplemented
        return self._value == other._value

    def __hash__(self):
        return hash((PositionalArg, self._value))


@final
class SeparatorType:
    """
    Type of the Separator singleton, the marker for a literal "--" token.

    Match it with a class pattern (`case SeparatorType():`) or compare by identity.
    """

    __slots__ = ()

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __rich__(self):
        return Text("--", style="dim")

    def __repr__(self):
        return "Separator"

    def __reduce__(self):
        return "Separator"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'SeparatorType' is not an acceptable base type")


Separator = SeparatorType()


class ResultVisitor:
    """
    Base class for exhaustive traversal of a ResultSequence.

    Override the methods for the kinds you care about; the defaults return None.
    """

    def visit_option(self, option, /):
        return None

    def visit_argument(self, argument, /):
        return None

    def visit_separator(self, separator, /):
        return None


class ResultSequence(Sequence):
    """
    Immutable, ordered sequence of ParsedOption | PositionalArg | Separator.

    Built fresh by every parse; two parses of the same tokens against the same
    registry compare equal.
    """

    __slots__ = ("_items",)

    def __init__(self, items=(), /):
        items = tuple(items)
        for item in items:
            if not isinstance(item, ParsedOption | PositionalArg | SeparatorType):
                raise TypeError("result items must be parsed options, positional arguments or the separator")
        self._items = items

    @property
    def options(self):
        """Every ParsedOption, in order."""
        return ResultSequence(item for item in self._items if isinstance(item, ParsedOption))

    @property
    def arguments(self):
        """Every PositionalArg, in order (before and after the separator)."""
        return ResultSequence(item for item in self._items if isinstance(item, PositionalArg))

    @property
    def rest(self):
        """PositionalArg items strictly after the first Separator (empty without one)."""
        try:
            index = self._items.index(Separator)
        except ValueError:
            return ResultSequence()
        return ResultSequence(item for item in self._items[index + 1:] if isinstance(item, PositionalArg))

    def get(self, name, default=None, /):
        """
        Return the first ParsedOption whose declaration owns `name`, else default.
        """
        return next(iter(self.getall(name)), default)

    def getall(self, name, /):
        """
        Return every ParsedOption whose declaration owns `name`, as a ResultSequence.
        """
        if not isinstance(name, str):
            raise TypeError("option names must be strings")
        return ResultSequence(
            item for item in self._items
            if isinstance(item, ParsedOption) and name in item.declaration.names
        )

    def accept(self, visitor, /):
        """
        Dispatch every item to `visitor` and return the list of results, in order.
        """
        results = []
        for item in self._items:
            match item:
                case ParsedOption():
                    results.append(visitor.visit_option(item))
                case PositionalArg():
                    results.append(visitor.visit_argument(item))
                case SeparatorType():
                    results.append(visitor.visit_separator(item))
                case _:
                    raise Unreachable("unexpected result item %r" % (item,))
        return results

    def __getitem__(self, key, /):
        if isinstance(key, slice):
            return ResultSequence(self._items[key])
        return self._items[key]

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __eq__(self, other, /):
        if not isinstance(other, ResultSequence):
            return NotImplemented
        return self._items == other._items

    def __hash__(self):
        return hash(self._items)

    def __repr__(self):
        return "result-sequence(%s)" % ", ".join(map(repr, self._items))

    def __rich_repr__(self):
        yield from self._items


__all__ = (
    # Public API surface for consumers of optonaut.results.
    "ParsedOption",
    "PositionalArg",
    "SeparatorType",
    "Separator",
    "ResultVisitor",
    "ResultSequence",
)
