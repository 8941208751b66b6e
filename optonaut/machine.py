"""
Optonaut parsing state machine: argument vector in, ResultSequence out.

States
- TOP:   take the next token and route it (separator, long, short or positional).
- LONG:  "--name" or "--name=value".
- SHORT: "-x", "-xVALUE" or a clump of flags "-abc".
- ARG:   the option accepts an argument that was not attached; peek at the next token.
- VALUE: emit the current token as a positional argument.
- END:   everything left is positional (after "--" or when tokens run out).

A token is option-shaped when it starts with "-"; the empty string and a bare
"-" are positional. A token that is exactly "--" ends option parsing.

Entry points
- ParsingStateMachine(registry, tokens).run(): one run per machine.
- parse(source, tokens): source is an OptionRegistry or help text.
- parse_or_exit(source, tokens): like parse(), but an OptionError is rendered on
  stderr and the process exits with status 1.

Example
    registry = OptionRegistry(OptionDeclaration("f"), OptionDeclaration("v?"))
    results = parse(registry, ["arg1", "-f", "arg2", "-v", "val", "arg3"])
    # arg1, -f, arg2, -v val, arg3
    results.get("v").value  # "val"
"""
import difflib
from collections import deque
from collections.abc import Iterable
from enum import Enum, auto

from .declarations import *
from .faults import *
from .results import *
from .utils import *


class State(Enum):
    """states of the parsing state machine."""
    TOP = auto()
    LONG = auto()
    SHORT = auto()
    ARG = auto()
    VALUE = auto()
    END = auto()


def _tokens(tokens):
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError("tokens must be an iterable of strings (not a single string)")
    tokens = list(tokens)
    for token in tokens:
        if not isinstance(token, str):
            raise TypeError("tokens must be strings, got %r" % (token,))
    return tokens


class ParsingStateMachine:
    """
    Consumes tokens against a registry and produces a ResultSequence.

    The registry is only read; every machine owns its own token queue, state and
    results, so one registry can serve any number of machines.
    """

    __slots__ = ("_registry", "_tokens", "_state", "_token", "_dashes", "_name", "_declared", "_declaration", "_items", "_finished")

    def __init__(self, registry, tokens, /):
        if not isinstance(registry, OptionRegistry):
            raise TypeError("parsing state machine needs an option registry")
        self._registry = registry
        self._tokens = deque(_tokens(tokens))
        self._state = State.TOP
        self._token = Unset  # remainder of the token being processed
        self._dashes = Unset  # "-" or "--", as typed
        self._name = Unset
        self._declared = Unset  # declaration name an abbreviation expands to
        self._declaration = Unset
        self._items = []
        self._finished = False

    @property
    def state(self):
        return self._state

    @property
    def registry(self):
        return self._registry

    def run(self):
        """
        Run the machine to completion and return the ResultSequence.

        Raises
        - UnknownOptionError, UnexpectedArgumentError, MissingArgumentError.
        - RuntimeError: when the machine already ran.
        """
        if self._finished:
            raise RuntimeError("parsing state machine already ran")
        self._finished = True

        while True:
            match self._state:
                case State.TOP:
                    self._top()
                case State.LONG:
                    self._long()
                case State.SHORT:
                    self._short()
                case State.ARG:
                    self._arg()
                case State.VALUE:
                    self._items.append(PositionalArg(self._token))
                    self._state = State.TOP
                case State.END:
                    self._items.extend(PositionalArg(token) for token in self._tokens)
                    self._tokens.clear()
                    return ResultSequence(self._items)
                case _:
                    raise Unreachable("unexpected state %r" % (self._state,))

    def _top(self):
        if not self._tokens:
            self._state = State.END
            return

        token = self._tokens.popleft()
        if token == "--":
            self._items.append(Separator)
            self._state = State.END
        elif token.startswith("--"):
            self._dashes, self._token, self._state = "--", token[2:], State.LONG
        elif token.startswith("-") and len(token) > 1:
            self._dashes, self._token, self._state = "-", token[1:], State.SHORT
        else:
            self._token, self._state = token, State.VALUE

    def _long(self):
        name, equals, value = self._token.partition("=")
        declaration = self._resolve(name)

        if equals and not declaration.accepts_argument:
            trigger(UnexpectedArgumentError(
                "Option --%s takes no argument" % name,
                code=FaultCode.UNEXPECTED_ARGUMENT,
                title="unexpected argument",
                hint="remove everything from '=' (for example: --%s)" % name,
                input="--" + name,
                value=value,
            ))

        if equals:
            self._emit(declaration, name, value)
        elif declaration.accepts_argument:
            self._state = State.ARG
        else:
            self._emit(declaration, name)

    def _short(self):
        name, residual = self._token[:1], self._token[1:]
        declaration = self._resolve(name)

        match (declaration.accepts_argument, residual):
            case (True, ""):
                self._state = State.ARG
            case (True, _):
                self._emit(declaration, name, residual)
            case (False, ""):
                self._emit(declaration, name)
            case (False, _):
                # the rest of a clump is read as more short options
                self._emit(declaration, name)
                self._token, self._state = residual, State.SHORT
            case _:
                raise Unreachable("unexpected short option shape %r" % (self._token,))

    def _arg(self):
        declaration, name = self._declaration, self._name
        # the next token is a value unless it is option-shaped
        peekable = lambda: self._tokens and not self._tokens[0].startswith("-")

        if peekable():
            self._emit(declaration, name, self._tokens.popleft())
        elif declaration.requires_argument:
            trigger(MissingArgumentError(
                "Expected argument for option %s%s" % (self._dashes, name),
                code=FaultCode.MISSING_ARGUMENT,
                title="missing argument",
                hint="provide a value (for example: %s%s%s)" % (
                    self._dashes, name, "=VALUE" if self._dashes == "--" else " VALUE",
                ),
                input=self._dashes + name,
            ))
        else:
            self._emit(declaration, name)

    def _resolve(self, name):
        """
        Look `name` up in the registry, remembering it for the ARG state.
        """
        if (resolved := self._registry.resolve(name)) is None:
            input = self._dashes + name
            known = [("--" if len(declared) > 1 else "-") + declared for entry in self._registry for declared in entry.names]
            suggestions = difflib.get_close_matches(input, known, 3)
            trigger(UnknownOptionError(
                "Unknown option: %s" % input,
                code=FaultCode.UNKNOWN_OPTION,
                title="unknown option",
                hint="did you mean %s?" % " or ".join(map(repr, suggestions)) if suggestions else None,
                input=input,
                suggestions=tuple(suggestions),
            ))
        declaration, declared = resolved
        self._name, self._declared, self._declaration = name, declared, declaration
        return declaration

    def _emit(self, declaration, name, value=None):
        self._items.append(ParsedOption(declaration, name, value, declared=self._declared))
        self._state = State.TOP


def _registry(source):
    match source:
        case OptionRegistry():
            return source
        case str():
            return OptionRegistry.from_help(source)
        case _:
            raise TypeError("parse() source must be an option registry or help text")


def parse(source, tokens, /):
    """
    Parse `tokens` against `source` (an OptionRegistry or help text).

    Raises
    - TypeError: when tokens is not an iterable of strings, or source has the wrong type.
    - OptionError: when the tokens do not fit the registry.
    - ConfigurationError: when help text cannot be turned into a registry.
    """
    registry = _registry(source)
    return ParsingStateMachine(registry, tokens).run()


def parse_or_exit(source, tokens, /):
    """
    Like parse(), but an OptionError is printed on stderr and ends the process
    with exit status 1.
    """
    registry = _registry(source)
    try:
        return ParsingStateMachine(registry, tokens).run()
    except OptionError as error:
        trigger(error, shell=True)
        raise Unreachable("shell faults exit the process") from error


__all__ = (
    "State",
    "ParsingStateMachine",
    "parse",
    "parse_or_exit",
)
