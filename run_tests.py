#!/usr/bin/env python3
"""
Main test runner for the Kaleidoscope front end.

Runs a quick lex/parse/dump pipeline over a few snippets and then the
unit tests under tests/.

Author: xwest
"""

import sys
import os
import io
import unittest

# Add the project root to the Python path
project_root = os.path.abspath(os.path.dirname(__file__))
sys.path.insert(0, project_root)


def run_pipeline_demo():
    """Push a few programs through lexer, parser and dump generator."""

    print("🚀 Kaleidoscope Front End Test Suite")
    print("=" * 60)

    try:
        from kaleidoscope.lexer import Lexer
        from kaleidoscope.parser import Parser, PrecedenceTable, ParseError, to_sexpr
        from kaleidoscope.driver import Driver, ASTDumpGenerator

        print("✅ All front end modules imported successfully")
        print()
    except ImportError as e:
        print(f"❌ Failed to import front end modules: {e}")
        return False

    print("Testing simple pipeline...")
    code = """
    def fib(x)
      if x < 3 then 1 else fib(x-1)+fib(x-2);
    fib(10);
    """

    try:
        print("  🔧 Lexing...")
        tokens = Lexer(code).tokenize()
        print(f"     Generated {len(tokens)} tokens")

        print("  🔧 Parsing...")
        program = Parser(code).parse()
        print(f"     Generated AST with {len(program.items)} top-level items")
        for item in program.items:
            print(f"     {to_sexpr(item)}")
        print()
    except ParseError as e:
        print(f"❌ Pipeline test FAILED:\n{e}")
        return False

    # User-defined operators change how later input parses
    print("  📝 Testing user-defined operators...")
    table = PrecedenceTable()
    parser = Parser("def binary| 5 (a b) a; 1 | 2 + 3", table)
    parser.parse()
    if table.get('|') != 5:
        print("     ❌ '|' was not registered")
        return False
    print(f"     ✅ {table}")

    print("  ❌ Testing error recovery...")
    output = io.StringIO()
    result = Driver("if 1 then 2; def ok() 1;", ASTDumpGenerator(output)).run()
    if len(result.errors) != 1 or len(result.definitions) != 1:
        print(f"     ❌ Expected one error and one definition, got {len(result.errors)} and {len(result.definitions)}")
        return False
    print(f"     ✅ Caught: {result.errors[0].message}")
    print()

    return True


def run_unit_tests():
    """Discover and run everything under tests/."""
    suite = unittest.defaultTestLoader.discover(os.path.join(project_root, "tests"))
    result = unittest.TextTestRunner(verbosity=1).run(suite)
    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_pipeline_demo() and run_unit_tests()
    if success:
        print()
        print("🎉 All tests PASSED!")
    sys.exit(0 if success else 1)
