"""
Tests for the top-level driver loop and the AST dump code generator.

Author: xwest
"""

import unittest
import sys
import os
import io

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from kaleidoscope.driver import (
    Driver, DriverResult, CodeGenerator, ASTDumpGenerator, GenerationError, PRELUDE
)
from kaleidoscope.parser import PrecedenceTable, ParseError

EXAMPLES_DIR = os.path.join(project_root, "examples")


class RecordingGenerator(CodeGenerator):
    """Accepts everything except names listed in ``reject``."""

    def __init__(self, reject=()):
        self.reject = set(reject)
        self.seen = []

    def generate(self, node):
        self.seen.append(node)
        name = node.name
        return name not in self.reject

    def get_prototype(self, name):
        return None


class TestDriver(unittest.TestCase):

    def setUp(self):
        self.output = io.StringIO()
        self.generator = ASTDumpGenerator(self.output)

    def run_driver(self, source, **kwargs):
        return Driver(source, self.generator, **kwargs).run()

    def test_accepted_units(self):
        result = self.run_driver("extern sin(x); def f(x) sin(x); f(1);")

        self.assertIsInstance(result, DriverResult)
        self.assertFalse(result.has_errors())
        self.assertEqual([p.name for p in result.externs], ["sin"])
        self.assertEqual([d.name for d in result.definitions], ["f"])
        self.assertEqual(len(result.expressions), 1)

        self.assertEqual(
            self.output.getvalue(),
            "Read extern:\n(extern sin (x))\n"
            "Read function definition:\n(def f (x) (call sin x))\n"
            "Read top-level expression:\n(def __anon_expr () (call f 1))\n"
        )

    def test_recovers_after_parse_error(self):
        result = self.run_driver("def f(x) x +;\ndef g(y) y;\ng(1);")

        self.assertEqual(len(result.parse_errors), 1)
        self.assertIsInstance(result.errors[0], ParseError)
        self.assertEqual([d.name for d in result.definitions], ["g"])
        self.assertEqual(len(result.expressions), 1)

    def test_recovers_from_error_without_progress(self):
        result = self.run_driver("then 1; 2")
        self.assertEqual(len(result.parse_errors), 1)
        self.assertEqual(len(result.expressions), 1)
        self.assertEqual(result.expressions[0].body.value, 2.0)

    def test_unknown_function(self):
        result = self.run_driver("foo(1)")

        self.assertEqual(len(result.generation_errors), 1)
        error = result.generation_errors[0]
        self.assertIsInstance(error, GenerationError)
        self.assertEqual(error.message, "code generation failed for top-level expression '__anon_expr'")
        self.assertEqual(self.generator.errors, ["unknown function referenced: foo"])
        self.assertEqual(result.expressions, [])

    def test_wrong_argument_count(self):
        result = self.run_driver("extern sin(x); sin(1, 2)")
        self.assertTrue(result.has_errors())
        self.assertEqual(
            self.generator.errors,
            ["incorrect number of arguments passed to sin: expected 1, got 2"]
        )

    def test_recursive_definition(self):
        result = self.run_driver("def fib(x) if x < 3 then 1 else fib(x-1)+fib(x-2); fib(10)")
        self.assertFalse(result.has_errors())
        self.assertIsNotNone(self.generator.get_prototype("fib"))

    def test_anonymous_functions_are_not_registered(self):
        self.run_driver("1 + 2")
        self.assertIsNone(self.generator.get_prototype("__anon_expr"))

    def test_prelude(self):
        result = self.run_driver("putchard(65); printd(1)", prelude=True)
        self.assertFalse(result.has_errors())
        self.assertEqual([p.name for p in result.externs], ["putchard", "printd"])
        self.assertEqual(len(result.expressions), 2)

    def test_without_prelude_host_functions_are_unknown(self):
        result = self.run_driver("putchard(65)")
        self.assertEqual(self.generator.errors, ["unknown function referenced: putchard"])
        self.assertTrue(result.has_errors())

    def test_user_operators_must_be_declared(self):
        result = self.run_driver("!1")
        self.assertEqual(self.generator.errors, ["unknown unary operator: !"])

        result = Driver("def unary!(v) 0; !1", ASTDumpGenerator(io.StringIO())).run()
        self.assertFalse(result.has_errors())

    def test_generation_failure_removes_operator(self):
        driver = Driver("def binary| 5 (a b) missing(a);", self.generator)
        result = driver.run()

        self.assertEqual(
            result.generation_errors[0].message,
            "code generation failed for definition 'binary|'"
        )
        self.assertNotIn('|', driver.precedence)

    def test_generation_failure_restores_previous_precedence(self):
        table = PrecedenceTable()
        table.register('|', 7)
        self.run_driver("def binary| 5 (a b) missing(a);", precedence=table)
        self.assertEqual(table.get('|'), 7)

    def test_successful_operator_keeps_precedence(self):
        table = PrecedenceTable()
        result = self.run_driver("def binary| 5 (a b) a; 1 | 2 + 3", precedence=table)
        self.assertFalse(result.has_errors())
        self.assertEqual(table.get('|'), 5)
        self.assertIn("(def __anon_expr () (| 1 (+ 2 3)))", self.output.getvalue())

    def test_custom_generator(self):
        generator = RecordingGenerator(reject={"bad"})
        result = Driver("extern ok(); extern bad(); def good() 1;", generator).run()

        self.assertEqual([node.name for node in generator.seen], ["ok", "bad", "good"])
        self.assertEqual([p.name for p in result.externs], ["ok"])
        self.assertEqual(
            [e.message for e in result.generation_errors],
            ["code generation failed for extern 'bad'"]
        )

    def test_step(self):
        driver = Driver("def f() 1; 2", self.generator)
        self.assertTrue(driver.step())
        self.assertEqual(len(driver.result.definitions), 1)
        self.assertTrue(driver.step())
        self.assertTrue(driver.step())
        self.assertEqual(len(driver.result.expressions), 1)
        self.assertFalse(driver.step())

    def test_prompt(self):
        prompts = io.StringIO()
        self.run_driver("1;2", prompt="ready> ", prompt_stream=prompts)
        self.assertEqual(prompts.getvalue(), "ready> " * 4)

    def test_tree_output(self):
        generator = ASTDumpGenerator(self.output, tree=True)
        Driver("def f(x) x", generator).run()
        self.assertEqual(
            self.output.getvalue(),
            "Read function definition:\nFunctionDef f\n  Prototype f (x)\n  VariableReference x\n"
        )

    def test_long_expression(self):
        result = self.run_driver("+".join(["1"] * 3000))
        self.assertFalse(result.has_errors())
        self.assertEqual(len(result.expressions), 1)

    def test_deep_nesting_is_recorded_and_skipped(self):
        depth = sys.getrecursionlimit() + 10
        result = self.run_driver("(" * depth + "1" + ")" * depth + "; 2")

        self.assertEqual([e.message for e in result.errors], ["expression nested too deeply"])
        self.assertEqual(len(result.expressions), 1)
        self.assertEqual(result.expressions[0].body.value, 2.0)

    def test_long_unary_chain(self):
        result = self.run_driver("def unary-(v) 0-v; " + "-" * 400 + "1")
        self.assertFalse(result.has_errors())
        self.assertIn("(def __anon_expr () " + "(- " * 400 + "1", self.output.getvalue())

    def test_prelude_source(self):
        self.assertIn("extern putchard(char);", PRELUDE)
        self.assertIn("extern printd(x);", PRELUDE)


class TestExamplePrograms(unittest.TestCase):
    """The sample programs shipped in examples/ go through cleanly."""

    def run_example(self, name):
        path = os.path.join(EXAMPLES_DIR, name)
        with open(path, "r", encoding="utf-8") as f:
            return Driver(f, ASTDumpGenerator(io.StringIO()), filename=path).run()

    def test_fib(self):
        result = self.run_example("fib.kal")
        self.assertFalse(result.has_errors(), [str(e) for e in result.errors])
        self.assertEqual([d.name for d in result.definitions], ["binary:", "fib", "fibi"])

    def test_operators(self):
        result = self.run_example("operators.kal")
        self.assertFalse(result.has_errors(), [str(e) for e in result.errors])
        self.assertIn("printdensity", [d.name for d in result.definitions])
        self.assertEqual(len(result.expressions), 1)


if __name__ == '__main__':
    unittest.main()
