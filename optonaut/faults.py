"""
Optonaut faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all user-facing issues
  (errors and warnings). Codes are grouped by domain to keep copy consistent
  and make logs/searches predictable.
- FaultException: base type that carries message + options and knows how to
  render itself on the diagnostic console.
  • OptionError: parse-time faults (bad argument vector), recoverable.
  • ConfigurationError: declaration/registry/help-grammar faults, fail-fast.
- FaultWarning: non-fatal diagnostics (help text ambiguities).
- Unreachable: a state the parser declares impossible was reached (a defect, not bad input).
- trigger(): central entry point to surface any fault.

Integration
- The state machine and the help grammar build faults with a code, a title and a hint,
  then surface them through trigger(fault, **ctx).
- Errors are raised unless shell=True, in which case they are rendered via rich on
  stderr and the process exits with status 1. Warnings are always rendered.
"""
import copy
import os
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the library (stable identifiers).

    grouping (by high-level domain)
    - parsing (211xx)
      • UNKNOWN_OPTION, UNEXPECTED_ARGUMENT, MISSING_ARGUMENT
    - configuration (221xx)
      • INVALID_REQUIREMENT, INVALID_NAME, DUPLICATED_NAME, CONFLICTING_REQUIREMENTS
    - warnings (231xx)
      • AMBIGUOUS_ARGUMENT

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- parsing errors (211xx) ---
    UNKNOWN_OPTION              = 21101
    UNEXPECTED_ARGUMENT         = 21102
    MISSING_ARGUMENT            = 21103

    # --- configuration errors (221xx) ---
    INVALID_REQUIREMENT         = 22101
    INVALID_NAME                = 22102
    DUPLICATED_NAME             = 22103
    CONFLICTING_REQUIREMENTS    = 22104

    # --- warnings (231xx) ---
    AMBIGUOUS_ARGUMENT          = 23101

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _render(fault, palette, /):
    """
    build the rich renderable shared by errors and warnings.

    layout
    - header: "[ prog - code | title ]" (only when a code is known)
    - message: the fault message
    - hint: " → hint" (only when a hint is known)
    """
    main = __import__("__main__")
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", console.is_terminal)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        return Text(str(fragment), styles[style] if colorful else "")

    renders = []

    if (code := fault.options.get("code")) is not None:
        prog = getattr(main, "__prog__", os.path.basename(sys.argv[0]) or "optonaut")
        renders.append(Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " - ",
            text(code.normalize(), "code"),
            " | ",
            text(fault.options.get("title", "").title(), "title"),
            " ]"
        ))

    renders.append(text(fault.message, "message"))

    if hint := fault.options.get("hint"):
        renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    return Group(*renders)


class FaultException(Exception):
    """
    base type for every optonaut error.

    carries a message (also the str() form) plus read-only options such as
    code, title, hint and any context the reporter may want to show
    (input, names, forms...).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return "" if self.message is Unset else self.message

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "title": "bold #FF4DA6",  # friendly pinky title
            "message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        })

    def __trigger__(self):
        if not self.options.get("shell", False):
            raise self from None
        console.print(self, soft_wrap=True)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class OptionError(FaultException):
    """
    parse-time fault: the argument vector does not fit the registry.
    """


class UnknownOptionError(OptionError): ...
class UnexpectedArgumentError(OptionError): ...
class MissingArgumentError(OptionError): ...


class ConfigurationError(FaultException):
    """
    configuration-time fault: a declaration, registry or help text is malformed.

    raised before any parsing happens; never rendered-and-exited, always raised.
    """

    def __trigger__(self):
        raise self from None


class InvalidRequirementError(ConfigurationError): ...
class InvalidNameError(ConfigurationError): ...
class DuplicatedNameError(ConfigurationError): ...
class ConflictingRequirementsError(ConfigurationError): ...


class FaultWarning(Warning):
    """
    base type for non-fatal diagnostics; rendered on the stderr console.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return "" if self.message is Unset else self.message

    def __rich__(self):
        return _render(self, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "title": "bold #FFC2E0",  # softer pinky title for warnings
            "message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        })

    def __trigger__(self):
        console.print(self, soft_wrap=True)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class AmbiguousArgumentWarning(FaultWarning): ...


class Unreachable(AssertionError):
    """
    a state the parser declares impossible was reached.

    this signals a defect in optonaut itself, never bad user input; it is not
    part of the FaultException hierarchy so it cannot be caught by accident.
    """


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - errors are raised unless shell=True; warnings are printed on the stderr console.

    typical options
    - shell, colorful, title, code, hint, and any other context the reporter
      may want to show (e.g., input/names/forms).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "FaultException",
    "OptionError",
    "UnknownOptionError",
    "UnexpectedArgumentError",
    "MissingArgumentError",
    "ConfigurationError",
    "InvalidRequirementError",
    "InvalidNameError",
    "DuplicatedNameError",
    "ConflictingRequirementsError",
    "FaultWarning",
    "AmbiguousArgumentWarning",
    "Unreachable",
    "trigger",
)
