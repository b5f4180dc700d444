"""
Tests for the kal-parse command line entry point.

Author: xwest
"""

import unittest
import sys
import os
import io
import tempfile
from contextlib import redirect_stdout, redirect_stderr
from unittest import mock

# Add the project root to the Python path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, project_root)

from kaleidoscope import __version__
from kaleidoscope.cli import main, build_arg_parser


class TestCLI(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def write_source(self, text, name="input.kal"):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def write_bytes(self, data, name="input.kal"):
        path = os.path.join(self.tmpdir.name, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def run_main(self, argv, stdin=None):
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            if stdin is not None:
                with mock.patch("sys.stdin", io.StringIO(stdin)):
                    code = main(argv)
            else:
                code = main(argv)
        return code, stdout.getvalue(), stderr.getvalue()

    def test_clean_file(self):
        path = self.write_source("def add(a b) a+b;\nadd(1, 2);\n")
        code, out, err = self.run_main([path])

        self.assertEqual(code, 0)
        self.assertIn("Read function definition:\n(def add (a b) (+ a b))", out)
        self.assertIn("Read top-level expression:", out)
        self.assertEqual(err, "")

    def test_errors_exit_with_one(self):
        path = self.write_source("if 1 then 2;\n3;\n")
        code, out, err = self.run_main([path, "--log-level", "CRITICAL"])

        self.assertEqual(code, 1)
        self.assertIn("ERROR: expected 'else' after 'then' branch", err)
        self.assertIn(path + ":1:12", err)
        # The unit after the error still goes through
        self.assertIn("(def __anon_expr () 3)", out)

    def test_missing_file(self):
        code, out, err = self.run_main([os.path.join(self.tmpdir.name, "nope.kal")])
        self.assertEqual(code, 2)
        self.assertIn("cannot read", err)

    def test_tree_flag(self):
        path = self.write_source("def f(x) x")
        code, out, _ = self.run_main([path, "--tree"])
        self.assertEqual(code, 0)
        self.assertIn("FunctionDef f\n  Prototype f (x)", out)

    def test_prelude_flag(self):
        path = self.write_source("putchard(65)")
        self.assertEqual(self.run_main([path, "--log-level", "CRITICAL"])[0], 1)
        self.assertEqual(self.run_main([path, "--prelude"])[0], 0)

    def test_stdin(self):
        code, out, err = self.run_main(["--no-prompt"], stdin="1 + 2;")
        self.assertEqual(code, 0)
        self.assertIn("(def __anon_expr () (+ 1 2))", out)
        self.assertNotIn("ready>", err)

    def test_undecodable_bytes_in_comment(self):
        path = self.write_bytes(b"def f(x) x; # caf\xe9\nf(1);\n")
        code, out, err = self.run_main([path])

        self.assertEqual(code, 0)
        self.assertIn("(def f (x) x)", out)
        self.assertIn("(call f 1)", out)

    def test_undecodable_bytes_in_code(self):
        path = self.write_bytes(b"\xff;\n2;\n")
        code, out, err = self.run_main([path, "--log-level", "CRITICAL"])

        self.assertEqual(code, 1)
        self.assertIn("unknown token when expecting an expression", err)
        self.assertIn("(def __anon_expr () 2)", out)

    def test_version(self):
        stdout = io.StringIO()
        with redirect_stdout(stdout), self.assertRaises(SystemExit) as ctx:
            build_arg_parser().parse_args(["--version"])
        self.assertEqual(ctx.exception.code, 0)
        self.assertIn(__version__, stdout.getvalue())


if __name__ == '__main__':
    unittest.main()
