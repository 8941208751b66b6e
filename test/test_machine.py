"""
State machine behavioral tests (short, long, clumped and positional tokens).

Scope
- Validate routing of tokens: options, positional arguments, the "--" separator.
- Validate argument handling: attached, detached, optional, required, empty values.
- Validate parse-time faults and their messages.
- Validate the parse()/parse_or_exit() entry points and their input checks.

Conventions
- Test method names follow CamelCase per project convention.
- Options are rendered as "name=value" (or "name") to compare whole parses at once.
"""
import contextlib
import io
import unittest
from unittest import TestCase

from optonaut import (
    OptionDeclaration,
    OptionRegistry,
    ParsingStateMachine,
    ParsedOption,
    PositionalArg,
    Separator,
    State,
    OptionError,
    UnknownOptionError,
    UnexpectedArgumentError,
    MissingArgumentError,
    FaultCode,
    parse,
    parse_or_exit,
)


def _registry(*declarations):
    return OptionRegistry(*(OptionDeclaration(*names) for names in declarations))


def _options(results):
    return [option.name if option.value is None else "%s=%s" % (option.name, option.value) for option in results.options]


def _values(items):
    return [item.value for item in items]


class TestShortOptions(TestCase):
    """Behavioral tests for single-dash tokens."""

    def setUp(self):
        self.registry = _registry(["f"], ["v?"])

    def testFlag(self):
        results = parse(self.registry, ["-f"])
        self.assertEqual(len(results.options), 1)
        self.assertEqual(results[0].label, "f")
        self.assertIsNone(results[0].value)

    def testDetachedValue(self):
        results = parse(self.registry, ["-v", "value"])
        self.assertEqual(results[0].value, "value")

    def testAttachedValue(self):
        results = parse(self.registry, ["-v1"])
        self.assertEqual(results[0].value, "1")

    def testSingleLetterWithDoubleDash(self):
        results = parse(self.registry, ["--f"])
        self.assertEqual(results[0].label, "f")
        self.assertIsNone(results[0].value)

    def testOptionalArgumentNotTakenFromOption(self):
        results = parse(self.registry, ["-v", "-f"])
        self.assertEqual(_options(results), ["v", "f"])


class TestClumping(TestCase):
    """Behavioral tests for clumped short options."""

    def setUp(self):
        self.registry = _registry(["a"], ["b"], ["c!"], ["v"])

    def testFlags(self):
        self.assertEqual(_options(parse(self.registry, ["-ab"])), ["a", "b"])

    def testArgumentAfterClump(self):
        self.assertEqual(_options(parse(self.registry, ["-abc", "value"])), ["a", "b", "c=value"])

    def testArgumentInsideClump(self):
        self.assertEqual(_options(parse(self.registry, ["-abcvalue"])), ["a", "b", "c=value"])

    def testArgumentOptionFirst(self):
        self.assertEqual(_options(parse(self.registry, ["-cab"])), ["c=ab"])

    def testRepeatedOptions(self):
        self.assertEqual(_options(parse(self.registry, ["-aabcd"])), ["a", "a", "b", "c=d"])
        self.assertEqual(_options(parse(self.registry, ["-vvv"])), ["v", "v", "v"])
        self.assertEqual(_options(parse(self.registry, ["-c", "1", "-c", "2", "-c", "3"])), ["c=1", "c=2", "c=3"])

    def testClumpKeepsAbsentValues(self):
        for option in parse(self.registry, ["-vvv"]):
            self.assertIsNone(option.value)

    def testUnknownLetterInsideClump(self):
        with self.assertRaises(UnknownOptionError) as context:
            parse(self.registry, ["-abz"])
        self.assertEqual(str(context.exception), "Unknown option: -z")


class TestLongOptions(TestCase):
    """Behavioral tests for double-dash tokens."""

    def setUp(self):
        self.registry = _registry(["verbose?"], ["version"], ["amend"], ["output!"])

    def testOptionalArgumentAbsent(self):
        results = parse(self.registry, ["--verbose"])
        self.assertEqual(results[0].label, "verbose")
        self.assertIsNone(results[0].value)

    def testAttachedValue(self):
        self.assertEqual(parse(self.registry, ["--verbose=high"])[0].value, "high")

    def testDetachedValue(self):
        self.assertEqual(parse(self.registry, ["--output", "file.txt"])[0].value, "file.txt")

    def testAttachedAndDetachedAreEquivalent(self):
        self.assertEqual(parse(self.registry, ["--output=bar"]), parse(self.registry, ["--output", "bar"]))

    def testAbbreviation(self):
        results = parse(self.registry, ["--am"])
        self.assertEqual(results[0].label, "amend")
        self.assertEqual(results[0].name, "am")

    def testSingleLetterNeverAbbreviates(self):
        with self.assertRaises(UnknownOptionError) as context:
            parse(self.registry, ["--a"])
        self.assertEqual(str(context.exception), "Unknown option: --a")
        with self.assertRaises(UnknownOptionError) as context:
            parse(self.registry, ["-a"])
        self.assertEqual(str(context.exception), "Unknown option: -a")

    def testAmbiguousAbbreviation(self):
        with self.assertRaises(UnknownOptionError) as context:
            parse(self.registry, ["--ver"])
        self.assertEqual(str(context.exception), "Unknown option: --ver")

    def testValuesKeepSpecialCharacters(self):
        registry = _registry(["msg!"])
        self.assertEqual(parse(registry, ["--msg=--foo=bar"])[0].value, "--foo=bar")
        self.assertEqual(parse(registry, ["--msg=hello world"])[0].value, "hello world")


class TestEmptyValues(TestCase):
    """Behavioral tests for empty strings as values."""

    def setUp(self):
        self.registry = _registry(["output?"], ["req!"])

    def testEmptyAttachedValue(self):
        self.assertEqual(parse(self.registry, ["--output="])[0].value, "")
        self.assertEqual(parse(self.registry, ["--req="])[0].value, "")

    def testEmptyDetachedValue(self):
        self.assertEqual(parse(self.registry, ["--output", ""])[0].value, "")
        self.assertEqual(parse(self.registry, ["--req", ""])[0].value, "")

    def testEmptyTokenIsPositional(self):
        results = parse(self.registry, [""])
        self.assertEqual(list(results), [PositionalArg("")])


class TestPositionalsAndSeparator(TestCase):
    """Behavioral tests for positional arguments and "--"."""

    def setUp(self):
        self.registry = _registry(["f"], ["v?"])

    def testOnlyPositionals(self):
        results = parse(self.registry, ["a", "b", "c"])
        self.assertEqual(list(results), [PositionalArg("a"), PositionalArg("b"), PositionalArg("c")])

    def testLoneDashIsPositional(self):
        results = parse(self.registry, ["-", "-f"])
        self.assertEqual(_values(results.arguments), ["-"])
        self.assertEqual(_options(results), ["f"])

    def testSeparatorEndsOptions(self):
        results = parse(self.registry, ["-f", "--", "-not-an-option"])
        self.assertEqual(len(results.options), 1)
        self.assertEqual(_values(results.arguments), ["-not-an-option"])
        self.assertEqual(_values(results.rest), ["-not-an-option"])

    def testSeparatorItem(self):
        results = parse(self.registry, ["-f", "--", "arg"])
        self.assertEqual(len(results), 3)
        self.assertIsInstance(results[0], ParsedOption)
        self.assertIs(results[1], Separator)
        self.assertIsInstance(results[2], PositionalArg)

    def testSecondSeparatorIsPositional(self):
        results = parse(self.registry, ["--", "--"])
        self.assertEqual(_values(results.rest), ["--"])

    def testOptionShapedTokensAfterSeparator(self):
        results = parse(self.registry, ["--", "-f", "--verbose"])
        self.assertEqual(len(results.options), 0)
        self.assertEqual(_values(results.arguments), ["-f", "--verbose"])

    def testEmptyVector(self):
        results = parse(self.registry, [])
        self.assertEqual(len(results), 0)

    def testMixed(self):
        results = parse(self.registry, ["arg1", "-f", "arg2", "-v", "val", "arg3"])
        declarations = self.registry
        self.assertEqual(list(results), [
            PositionalArg("arg1"),
            ParsedOption(declarations["f"], "f"),
            PositionalArg("arg2"),
            ParsedOption(declarations["v"], "v", "val"),
            PositionalArg("arg3"),
        ])
        self.assertEqual(len(results.options), 2)
        self.assertEqual(len(results.arguments), 3)

    def testScenarios(self):
        registry = _registry(["d"], ["e"], ["a"], ["b?"], ["c!"], ["opt?"], ["req!"])
        scenarios = [
            ([], [], []),
            (["--"], [], []),
            (["--", "--"], [], ["--"]),
            (["-a"], ["a"], []),
            (["-a", "--"], ["a"], []),
            (["-a", "b", "--", "-z"], ["a"], ["-z"]),
            (["-b", "val"], ["b=val"], []),
            (["-c", "val"], ["c=val"], []),
            (["--opt=foo"], ["opt=foo"], []),
            (["--req=bar"], ["req=bar"], []),
            (["-cabd"], ["c=abd"], []),
            (["--opt=--foo"], ["opt=--foo"], []),
            (["--req=--foo=bar"], ["req=--foo=bar"], []),
            (["--opt=foo=bar"], ["opt=foo=bar"], []),
            (["-a", "-b", "--", "pos"], ["a", "b"], ["pos"]),
        ]
        for tokens, options, rest in scenarios:
            with self.subTest(tokens=tokens):
                results = parse(registry, tokens)
                self.assertEqual(_options(results), options)
                self.assertEqual(_values(results.rest), rest)


class TestFaults(TestCase):
    """Behavioral tests for parse-time faults."""

    def setUp(self):
        self.registry = _registry(["f"], ["req!"])

    def assertFault(self, tokens, kind, message, code):
        with self.assertRaises(kind) as context:
            parse(self.registry, tokens)
        self.assertEqual(str(context.exception), message)
        self.assertIs(context.exception.options["code"], code)
        self.assertIsInstance(context.exception, OptionError)

    def testUnknownLong(self):
        self.assertFault(["--unknown"], UnknownOptionError, "Unknown option: --unknown", FaultCode.UNKNOWN_OPTION)

    def testUnknownShort(self):
        self.assertFault(["-z"], UnknownOptionError, "Unknown option: -z", FaultCode.UNKNOWN_OPTION)

    def testShortClumpOfLongName(self):
        self.assertFault(["-req"], UnknownOptionError, "Unknown option: -r", FaultCode.UNKNOWN_OPTION)

    def testMalformedTokens(self):
        self.assertFault(["---"], UnknownOptionError, "Unknown option: ---", FaultCode.UNKNOWN_OPTION)
        self.assertFault(["--="], UnknownOptionError, "Unknown option: --", FaultCode.UNKNOWN_OPTION)

    def testFlagWithValue(self):
        self.assertFault(["--f=value"], UnexpectedArgumentError, "Option --f takes no argument", FaultCode.UNEXPECTED_ARGUMENT)

    def testMissingArgument(self):
        self.assertFault(["--req"], MissingArgumentError, "Expected argument for option --req", FaultCode.MISSING_ARGUMENT)
        self.assertFault(["--req", "-f"], MissingArgumentError, "Expected argument for option --req", FaultCode.MISSING_ARGUMENT)

    def testMissingArgumentShortForm(self):
        registry = _registry(["r!", "req"])
        with self.assertRaises(MissingArgumentError) as context:
            parse(registry, ["-r"])
        self.assertEqual(str(context.exception), "Expected argument for option -r")

    def testUnknownOptionSuggestions(self):
        with self.assertRaises(UnknownOptionError) as context:
            parse(self.registry, ["--rek"])
        self.assertIn("--req", context.exception.options["suggestions"])


class TestNegation(TestCase):
    """Behavioral tests for negated spellings."""

    def setUp(self):
        self.registry = _registry(["quiet", "no-quiet"])

    def testAffirmed(self):
        option = parse(self.registry, ["--quiet"])[0]
        self.assertEqual(option.name, "quiet")
        self.assertFalse(option.negated)
        self.assertTrue(option.affirmed)

    def testNegated(self):
        option = parse(self.registry, ["--no-quiet"])[0]
        self.assertEqual(option.name, "no-quiet")
        self.assertEqual(option.label, "quiet")
        self.assertTrue(option.negated)
        self.assertFalse(option.affirmed)

    def testAbbreviatedNegation(self):
        option = parse(self.registry, ["--no-q"])[0]
        self.assertEqual(option.name, "no-q")
        self.assertTrue(option.negated)

    def testAbbreviationSharedByNegatedSpellings(self):
        registry = _registry(["color", "no-color", "no-colour"])
        option = parse(registry, ["--no-col"])[0]
        self.assertEqual(option.name, "no-col")
        self.assertEqual(option.label, "color")
        self.assertTrue(option.negated)
        self.assertFalse(parse(registry, ["--col"])[0].negated)

    def testNegationFromHelp(self):
        option = parse("  --[no-]quiet  Quiet mode\n", ["--no-quiet"])[0]
        self.assertTrue(option.negated)
        self.assertEqual(option.label, "quiet")


class TestMachine(TestCase):
    """Behavioral tests for the machine object and the entry points."""

    def testRunsOnce(self):
        machine = ParsingStateMachine(_registry(["f"]), ["-f"])
        self.assertIs(machine.state, State.TOP)
        machine.run()
        self.assertIs(machine.state, State.END)
        with self.assertRaises(RuntimeError):
            machine.run()

    def testIdempotentParses(self):
        registry = _registry(["f"], ["v?"])
        tokens = ["-f", "a", "-v", "x", "--", "b"]
        self.assertEqual(parse(registry, tokens), parse(registry, tokens))

    def testOptionsReferenceRegistryDeclarations(self):
        registry = _registry(["f", "flag"])
        self.assertIs(parse(registry, ["--fl"])[0].declaration, registry[0])

    def testTokensMustBeIterableOfStrings(self):
        registry = _registry(["f"])
        with self.assertRaises(TypeError):
            parse(registry, "-f")
        with self.assertRaises(TypeError):
            parse(registry, None)
        with self.assertRaises(TypeError):
            parse(registry, ["-f", 1])

    def testTokensMayBeAnyIterable(self):
        results = parse(_registry(["f"]), (token for token in ["-f", "x"]))
        self.assertEqual(_values(results.arguments), ["x"])

    def testSourceMustBeRegistryOrHelp(self):
        with self.assertRaises(TypeError):
            parse(42, [])

    def testHelpTextSource(self):
        results = parse("  -f, --flag  Flag option\n", ["--flag"])
        self.assertEqual(results[0].label, "flag")

    def testParseOrExitReturnsResults(self):
        results = parse_or_exit(_registry(["f"]), ["-f"])
        self.assertEqual(_options(results), ["f"])

    def testParseOrExitExits(self):
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr), self.assertRaises(SystemExit) as context:
            parse_or_exit(_registry(["f"]), ["--unknown"])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("Unknown option: --unknown", stderr.getvalue())


if __name__ == "__main__":
    unittest.main()
