r"""
Optonaut option declarations and registries.

Overview
- Requirement: whether an option takes no argument, an optional one, or a required one.
- OptionDeclaration: one option's names, argument requirement and canonical label.
- OptionRegistry: ordered, duplicate-free collection of declarations with exact and
  abbreviated (prefix) lookup.

Declaring options
- The requirement is inferred from the first name when it is not given explicitly:
    OptionDeclaration("f")                     # -f          (no argument)
    OptionDeclaration("f?")                    # -f [X]      (optional argument)
    OptionDeclaration("f!")                    # -f X        (required argument)
    OptionDeclaration("f", "foo")              # -f, --foo
    OptionDeclaration("?", requirement="none") # explicit requirement keeps '?' literally
- The label is the first name longer than one character (else the first name); it is the
  stable handle for matching parse results regardless of the name actually typed.

Lookup rules
- Exact names win.
- Queries longer than one character may be abbreviations: "ver" finds "verbose" as long as
  every declared name starting with "ver" belongs to the same declaration.
- Single-character queries never use prefix matching.

Quick example:
    >>> registry = OptionRegistry(
    ...     OptionDeclaration("f", "flag"),
    ...     OptionDeclaration("v?", "verbose"),
    ... )
    >>> registry.lookup("verb").label
    'verbose'
    >>> print(registry)
    -f, --flag
    -v, --verbose [X]
"""
from collections.abc import Sequence
from enum import StrEnum

from .faults import *
from .utils import *


class Requirement(StrEnum):
    """
    argument requirement of an option.

    - NONE: the option never takes an argument (a flag).
    - OPTIONAL: the option takes an argument when one is attached or the next token is not option-shaped.
    - REQUIRED: the option always takes an argument; a missing one is an error.
    """
    NONE = "none"
    OPTIONAL = "optional"
    REQUIRED = "required"


# Trailing punctuation on the first name that implies a requirement.
_SUFFIXES = {
    "?": Requirement.OPTIONAL,
    "!": Requirement.REQUIRED,
}


class OptionDeclaration(RecordBase):
    """
    One option: its names, its argument requirement and its canonical label.

    Declarations are immutable and compare by identity: a registry hands out the
    very same object to every ParsedOption it produces, so `opt.declaration is decl`
    is the way to tell where a result came from.

    Properties
    - names: tuple[str, ...], ordered and distinct, without dash prefixes.
    - requirement: Requirement.
    - label: first name longer than one character, else the first name.
    """

    __introspectable__ = (
        "names",
        "requirement",
        "label",
    )

    def __init__(self, *names, requirement=Unset):
        """
        Construct a declaration.

        Parameters
        - names: one or more str, without dash prefixes ("f", "flag", "no-flag").
        - requirement: Unset | Requirement | "none" | "optional" | "required"
          When Unset, a trailing '?' or '!' on the first name selects optional or
          required (and is stripped); otherwise the option takes no argument.
          An explicit requirement keeps any trailing punctuation literally.

        Raises
        - TypeError: when a name is not a string.
        - InvalidNameError: when no name is given or a name is empty.
        - DuplicatedNameError: when the same name appears twice.
        - InvalidRequirementError: when requirement is not one of the three kinds.
        """
        names = list(names)
        for name in names:
            if not isinstance(name, str):
                raise TypeError(f"{type(self).__typename__} names must be strings")

        if not names:
            trigger(InvalidNameError(
                "option declaration needs at least one name",
                code=FaultCode.INVALID_NAME,
                title="missing option name",
                hint="pass one or more names, e.g. OptionDeclaration('f', 'flag')",
            ))

        if requirement is Unset:
            requirement = _SUFFIXES.get(names[0][-1:], Requirement.NONE)
            if requirement is not Requirement.NONE:
                names[0] = names[0][:-1]

        try:
            requirement = Requirement(requirement)
        except (ValueError, TypeError):
            trigger(InvalidRequirementError(
                "invalid argument requirement %r" % (requirement,),
                code=FaultCode.INVALID_REQUIREMENT,
                title="invalid requirement",
                hint="use one of: %s" % ", ".join(member.value for member in Requirement),
                requirement=requirement,
            ))

        seen = set()
        for name in names:
            if not name:
                trigger(InvalidNameError(
                    "option names cannot be empty",
                    code=FaultCode.INVALID_NAME,
                    title="empty option name",
                    hint="an option name needs at least one character besides '?' or '!'",
                ))
            if name in seen:
                trigger(DuplicatedNameError(
                    "option name %r is declared twice" % name,
                    code=FaultCode.DUPLICATED_NAME,
                    title="duplicated option name",
                    hint="keep a single %r in this declaration" % name,
                    names=(name,),
                ))
            seen.add(name)

        self._assign(
            names=tuple(names),
            requirement=requirement,
            label=next((name for name in names if len(name) > 1), names[0]),
        )

    @property
    def accepts_argument(self):
        """True when the option takes an optional or a required argument."""
        return self._requirement is not Requirement.NONE

    @property
    def requires_argument(self):
        """True when the option must be followed by an argument."""
        return self._requirement is Requirement.REQUIRED

    @property
    def negatable(self):
        """
        True when the declaration pairs a name with its negation.

        A pair is two adjacent names A, B where B is "no" + A or "no-" + A, as
        produced for `--[no-]color` or OptionDeclaration("color", "no-color").
        """
        return any(
            negative in ("no" + positive, "no-" + positive)
            for positive, negative in zip(self._names, self._names[1:])
        )

    def __str__(self):
        return ", ".join(("--" if len(name) > 1 else "-") + name for name in self._names) + {
            Requirement.REQUIRED: " X",
            Requirement.OPTIONAL: " [X]",
            Requirement.NONE: "",
        }[self._requirement]


class OptionRegistry(Sequence):
    """
    Ordered, duplicate-free collection of option declarations.

    Invariants
    - every member is an OptionDeclaration;
    - no two declarations share a name (construction fails otherwise, so a
      partially-usable registry never exists).

    A registry is immutable once built and can be shared read-only across any
    number of parses.
    """

    __slots__ = ("_declarations", "_index")

    def __init__(self, *declarations):
        """
        Build a registry from declarations, in order.

        Raises
        - TypeError: when a member is not an OptionDeclaration.
        - DuplicatedNameError: when a name is declared by more than one declaration.
        """
        index = {}
        collisions = []
        for declaration in declarations:
            if not isinstance(declaration, OptionDeclaration):
                raise TypeError("option registry members must be option declarations")
            for name in declaration.names:
                if name in index and name not in collisions:
                    collisions.append(name)
                index.setdefault(name, declaration)

        if collisions:
            trigger(DuplicatedNameError(
                "option names %s are declared more than once" % ", ".join(map(repr, collisions)),
                code=FaultCode.DUPLICATED_NAME,
                title="duplicated option names",
                hint="give each option a distinct set of names",
                names=tuple(collisions),
            ))

        self._declarations = tuple(declarations)
        self._index = index

    @classmethod
    def from_help(cls, source, /, **options):
        """
        Extract a registry from help text (see optonaut.grammar.extract).
        """
        from .grammar import extract
        return extract(source, **options)

    def resolve(self, name, /):
        """
        Resolve a name or an abbreviation.

        Returns
        - (declaration, declared_name) for an exact match, or for an abbreviation
          (len(name) > 1) whose candidate names all belong to one declaration; the
          declared name is the one the abbreviation expands to (the first candidate
          in declaration order when several names of that declaration match).
        - None when nothing matches or the abbreviation is ambiguous.
        """
        if not isinstance(name, str):
            raise TypeError("option names must be strings")
        try:
            return self._index[name], name
        except KeyError:
            pass
        if len(name) <= 1:
            return None
        candidates = [declared for declared in self._index if declared.startswith(name)]
        owners = {id(self._index[declared]) for declared in candidates}
        if len(owners) != 1:
            return None
        return self._index[candidates[0]], candidates[0]

    def lookup(self, name, /):
        """
        Return the declaration owning `name` (exactly or as an abbreviation), or None.
        """
        match self.resolve(name):
            case (declaration, _):
                return declaration
            case None:
                return None
            case _:
                raise Unreachable("resolve() returned an unexpected shape")

    def scaffold(self):
        """
        Return the source of a `match` statement covering every declaration.

        Each declaration gets a case keyed on its label, capturing the value when the
        option accepts an argument and the negation when it is negatable; positional
        arguments and the separator close the statement. Paste it into a program and
        fill in the bodies.
        """
        patterns = []
        for declaration in self._declarations:
            fields = ["label=%r" % declaration.label]
            if declaration.accepts_argument:
                fields.append("value=value")
            if declaration.negatable:
                fields.append("negated=negated")
            patterns.append(("case ParsedOption(%s):" % ", ".join(fields), str(declaration)))

        width = max((len(pattern) for pattern, _ in patterns), default=0)
        lines = [
            "for item in parse_or_exit(registry, sys.argv[1:]):",
            "    match item:",
        ]
        for pattern, comment in patterns:
            lines.append("        %s  # %s" % (pattern.ljust(width), comment))
            lines.append("            ...")
        lines.extend([
            "        case PositionalArg(value=value):",
            "            ...",
            "        case SeparatorType():",
            "            break  # handle results.rest separately",
            "        case _:",
            "            raise Unreachable(item)",
        ])
        return "\n".join(lines) + "\n"

    def __getitem__(self, key, /):
        if isinstance(key, str):
            if (declaration := self.lookup(key)) is None:
                raise KeyError(key)
            return declaration
        return self._declarations[key]

    def __len__(self):
        return len(self._declarations)

    def __iter__(self):
        return iter(self._declarations)

    def __contains__(self, item, /):
        if isinstance(item, str):
            return item in self._index
        return any(declaration is item for declaration in self._declarations)

    def __eq__(self, other, /):
        if not isinstance(other, OptionRegistry):
            return NotImplemented
        return len(self) == len(other) and all(
            (mine.names, mine.requirement) == (theirs.names, theirs.requirement)
            for mine, theirs in zip(self, other)
        )

    __hash__ = None

    def __str__(self):
        return "\n".join(map(str, self._declarations))

    def __repr__(self):
        return "option-registry(%s)" % ", ".join(map(repr, self._declarations))

    def __rich_repr__(self):
        yield from self._declarations


__all__ = (
    # Public API surface for consumers of optonaut.declarations.
    "Requirement",
    "OptionDeclaration",
    "OptionRegistry",
)
