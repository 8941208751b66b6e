r"""
Optonaut help grammar: option declarations recovered from human-written help text.

The grammar is small and explicit:

- token classifier: classify(placeholder) maps an argument placeholder to a requirement
    None        → Unset (no explicit requirement)
    "[FILE]"    → Requirement.OPTIONAL   (also "[=FILE]")
    "FILE"      → Requirement.REQUIRED

- option forms (one logical option is written as one or more comma-separated forms)
    -f                      short, no argument
    -f FILE / -f [FILE]     short with a required / optional placeholder
    --flag                  long, no argument
    --flag=FILE             long, required (also "--flag FILE")
    --flag[=FILE]           long, optional (also "--flag [FILE]", "--flag=[FILE]")
    --[no-]flag, --[no]flag long with a negation marker

- line recognizer: recognize(line) accepts a line whose indentation matches the padding
  pattern (two or four spaces by default) and which then starts with one or more forms
  separated by a comma and at most two spaces. Whatever follows is the description.

Per line, reconcile(forms) merges the forms into (names, requirement): all explicit
requirements must agree, forms without a placeholder follow the explicit one, and
expand(form) turns "[no-]foo" into "foo" and "no-foo". Across lines, identical
entries collapse; a name used by two different entries is an error.

Ambiguous spacing
    --quiet Suppresses output
The recognizer reads "Suppresses" as a required argument of --quiet. Because the
description then follows after a single space, an AmbiguousArgumentWarning is shown
on stderr recommending two spaces before descriptions. Extraction still succeeds.
"""
import re
from collections import Counter

from .declarations import *
from .faults import *
from .utils import *

DEFAULT_PADDING = r"(?:  ){1,2}"

_SHORT = re.compile(r"-(?P<name>[^-\s,])(?:(?P<gap> )(?P<placeholder>\[\S+?\]|[^\s,]+))?")
_LONG = re.compile(
    r"--(?=[^-=,\s])"
    r"(?:\[(?P<negation>no-?)\])?"
    r"(?P<name>[^\s=,\[]+)"
    r"(?P<marker>\[=\S+?\]| \[\S+?\]|[ =][^\s,]+)?"
)
_COMMA = re.compile(r", {0,2}")
_AMBIGUOUS = re.compile(r" \S")


def classify(placeholder, /):
    """
    Map an argument placeholder to the requirement it expresses.

    Returns
    - Unset when there is no placeholder (the form says nothing about arguments).
    - Requirement.OPTIONAL for a bracketed placeholder ("[X]", "[=X]").
    - Requirement.REQUIRED for a bare placeholder ("X").
    """
    if placeholder is None:
        return Unset
    if not isinstance(placeholder, str) or not placeholder:
        raise TypeError("classify() argument must be a non-empty string or None")
    return Requirement.OPTIONAL if placeholder.startswith("[") else Requirement.REQUIRED


class OptionForm(RecordBase):
    """
    One option form as written in help text ("-f FILE", "--[no-]color", "--out[=X]").

    Properties
    - text: the form exactly as matched.
    - name: the bare name, without dashes or negation marker.
    - negation: "no" or "no-" when the form carried "[no]" / "[no-]", else None.
    - placeholder: the argument placeholder ("FILE", "[FILE]", "[=FILE]") or None.
    - gap: what separated the name from the placeholder (" ", "=" or ""), None without one.
    """

    __introspectable__ = (
        "text",
        "name",
        "negation",
        "placeholder",
        "gap",
    )

    def __init__(self, text, name, *, negation=None, placeholder=None, gap=None):
        self._assign(text=text, name=name, negation=negation, placeholder=placeholder, gap=gap)

    @property
    def requirement(self):
        """Unset, Requirement.OPTIONAL or Requirement.REQUIRED (see classify())."""
        return classify(self._placeholder)

    @property
    def ambiguous(self):
        """
        True when a bare placeholder follows the name after exactly one space.

        Such a placeholder may well be the first word of a description.
        """
        return self._gap == " " and self.requirement is Requirement.REQUIRED


def _match_form(line, position):
    """
    Match one option form at `position`; return (OptionForm, end) or None.
    """
    if found := _SHORT.match(line, position):
        form = OptionForm(
            found[0],
            found["name"],
            placeholder=found["placeholder"],
            gap=found["gap"],
        )
        return form, found.end()

    if found := _LONG.match(line, position):
        match marker := found["marker"]:
            case None:
                gap, placeholder = None, None
            case str() if marker.startswith("["):
                gap, placeholder = "", marker
            case str():
                gap, placeholder = marker[0], marker[1:]
            case _:
                raise Unreachable("unexpected marker %r" % (marker,))
        form = OptionForm(
            found[0],
            found["name"],
            negation=found["negation"],
            placeholder=placeholder,
            gap=gap,
        )
        return form, found.end()

    return None


def _compile_padding(padding):
    if isinstance(padding, re.Pattern):
        return padding
    if isinstance(padding, str):
        return re.compile(padding)
    raise TypeError("padding must be a string or a compiled regular expression")


def recognize(line, /, *, padding=DEFAULT_PADDING):
    """
    Recognize the option forms at the start of a help line.

    Returns
    - (forms, trailing) where forms is a non-empty list of OptionForm, in order, and
      trailing is the rest of the line (usually the description).
    - None when the line is not an option-definition line.
    """
    if not isinstance(line, str):
        raise TypeError("recognize() argument must be a string")
    padding = _compile_padding(padding)
    # the padding may only end where an option form can start
    indent = re.compile(r"(?:%s)(?=-)" % padding.pattern, padding.flags).match(line)
    if not indent:
        return None

    forms = []
    position = indent.end()
    while matched := _match_form(line, position):
        form, position = matched
        forms.append(form)
        # a comma only continues the list when another form follows it
        if not (comma := _COMMA.match(line, position)) or not _match_form(line, comma.end()):
            break
        position = comma.end()

    if not forms:
        return None
    return forms, line[position:]


def expand(form, /):
    """
    Return the names a form declares: (name,) or (name, negation + name).

        --[no-]foo → ("foo", "no-foo")
        --[no]foo  → ("foo", "nofoo")
    """
    if form.negation is None:
        return (form.name,)
    return form.name, form.negation + form.name


def reconcile(forms, /):
    """
    Merge the forms of one help line into (names, requirement).

    - names: every expanded name, deduplicated, first occurrence first.
    - requirement: the single explicit requirement among the forms, or Requirement.NONE.

    Raises
    - ConflictingRequirementsError: when forms disagree (e.g. "-f X, --flag [X]").
    """
    forms = list(forms)
    if not forms:
        raise ValueError("reconcile() needs at least one option form")

    explicit = []
    for form in forms:
        if (requirement := form.requirement) is not Unset and requirement not in explicit:
            explicit.append(requirement)

    if len(explicit) > 1:
        conflicting = tuple(form.text for form in forms if form.requirement is not Unset)
        trigger(ConflictingRequirementsError(
            "option forms %s have conflicting argument requirements: %s" % (
                ", ".join(map(repr, conflicting)),
                ", ".join(requirement.value for requirement in explicit),
            ),
            code=FaultCode.CONFLICTING_REQUIREMENTS,
            title="conflicting requirements",
            hint="write the argument placeholder the same way on every form, e.g. '-f [X], --flag [X]'",
            forms=conflicting,
        ))

    names = []
    for form in forms:
        for name in expand(form):
            if name not in names:
                names.append(name)

    return tuple(names), explicit[0] if explicit else Requirement.NONE


class HelpGrammarExtractor:
    """
    Extracts an OptionRegistry from help text.

    Parameters
    - padding: regular expression (string or compiled) the indentation of an
      option line must match; defaults to two or four spaces.
    """

    __slots__ = ("_padding",)

    def __init__(self, *, padding=DEFAULT_PADDING):
        self._padding = _compile_padding(padding)

    @property
    def padding(self):
        return self._padding

    def extract(self, source, /):
        """
        Extract declarations from help text (a string or a file-like object).

        Raises
        - TypeError: when the source is neither a string nor readable text.
        - ConflictingRequirementsError: when a line contradicts itself.
        - DuplicatedNameError: when a name appears in two different definitions.
        """
        if hasattr(source, "read") and callable(source.read):
            source = source.read()
        if not isinstance(source, str):
            raise TypeError("help text must be a string or a readable text stream")

        entries = []
        for line in source.split("\n"):
            line = line.removesuffix("\r")
            if (recognized := recognize(line, padding=self._padding)) is None:
                continue
            forms, trailing = recognized
            if forms[-1].ambiguous and _AMBIGUOUS.match(trailing):
                self._warn(line, forms[-1])
            if (entry := reconcile(forms)) not in entries:
                entries.append(entry)

        counts = Counter(name for names, _ in entries for name in names)
        if duplicates := [name for name, count in counts.items() if count > 1]:
            trigger(DuplicatedNameError(
                "option names %s are seen more than once in distinct definitions" % ", ".join(map(repr, duplicates)),
                code=FaultCode.DUPLICATED_NAME,
                title="duplicated option names",
                hint="define each option on a single help line",
                names=tuple(duplicates),
            ))

        return OptionRegistry(*(
            OptionDeclaration(*names, requirement=requirement) for names, requirement in entries
        ))

    def _warn(self, line, form):
        option = form.text[:-len(form.placeholder) - 1]
        trigger(AmbiguousArgumentWarning(
            "%r in %r was interpreted as argument of %r" % (form.placeholder, line.strip(), option),
            code=FaultCode.AMBIGUOUS_ARGUMENT,
            title="ambiguous argument",
            hint="put at least two spaces between %r and its description" % option,
            line=line,
            token=form.placeholder,
        ))


def extract(source, /, *, padding=DEFAULT_PADDING):
    """
    Extract an OptionRegistry from help text (see HelpGrammarExtractor).

    Example
        >>> registry = extract('''
        ... Options:
        ...   -f, --flag            Flag option
        ...   -v, --verbose LEVEL   Verbose level
        ...   -o, --output [FILE]   Output file
        ... ''')
        >>> [declaration.label for declaration in registry]
        ['flag', 'verbose', 'output']
    """
    return HelpGrammarExtractor(padding=padding).extract(source)


__all__ = (
    "DEFAULT_PADDING",
    "classify",
    "OptionForm",
    "recognize",
    "expand",
    "reconcile",
    "HelpGrammarExtractor",
    "extract",
)
