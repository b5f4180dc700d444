"""
Top-level driver loop.

Reads one top-level unit at a time, hands each parsed definition, extern and
bare expression to a CodeGenerator, and keeps going after failures: a parse
error skips to the next unit boundary, a generation failure drops the unit
and takes back any operator precedence it introduced.

Author: xwest
"""

import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, TextIO, Union

from .lexer.lexer import Lexer
from .parser.ast_nodes import Item, Prototype, FunctionDef, Call, UnaryOp, BinaryOp
from .parser.errors import ParseError
from .parser.parser import Parser
from .parser.precedence import PrecedenceTable, DEFAULT_PRECEDENCES
from .parser.printer import to_sexpr, dump_tree

logger = logging.getLogger(__name__)

# Host functions available to example programs
PRELUDE = """\
extern putchard(char);
extern printd(x);
"""

DEFAULT_PROMPT = "ready> "


class CodeGenerator(ABC):
    """
    What the driver needs from a code generator.

    ``generate`` receives FunctionDef and Prototype nodes in input order and
    reports success; ``get_prototype`` looks up anything declared so far,
    which is how calls to externs and forward-declared functions resolve.
    """

    @abstractmethod
    def generate(self, node: Item) -> bool:
        pass

    @abstractmethod
    def get_prototype(self, name: str) -> Optional[Prototype]:
        pass


class GenerationError(Exception):
    """A unit that parsed but was rejected by the code generator."""

    def __init__(self, message: str, node: Item):
        super().__init__(message)
        self.message = message
        self.node = node


@dataclass
class DriverResult:
    """Everything a driver run accepted or rejected."""
    definitions: List[FunctionDef] = field(default_factory=list)
    externs: List[Prototype] = field(default_factory=list)
    expressions: List[FunctionDef] = field(default_factory=list)
    errors: List[Union[ParseError, GenerationError]] = field(default_factory=list)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    @property
    def parse_errors(self) -> List[ParseError]:
        return [e for e in self.errors if isinstance(e, ParseError)]

    @property
    def generation_errors(self) -> List[GenerationError]:
        return [e for e in self.errors if isinstance(e, GenerationError)]


class Driver:
    """
    The read-parse-generate loop.

    The parser is created lazily so an interactive prompt can be shown
    before the first token is read.
    """

    def __init__(self, source: Union[str, TextIO, Lexer], generator: CodeGenerator,
                 precedence: Optional[PrecedenceTable] = None, prelude: bool = False,
                 prompt: Optional[str] = None, prompt_stream: Optional[TextIO] = None,
                 filename: str = "<stdin>"):
        """
        Args:
            source: Source text, text stream or ready-made Lexer
            generator: Receives every successfully parsed unit
            precedence: Operator table for the session (a default one if omitted)
            prelude: Declare the PRELUDE externs before reading ``source``
            prompt: Written to ``prompt_stream`` before each unit
            prompt_stream: Where the prompt goes (stderr by default)
            filename: Used in locations when ``source`` isn't a Lexer
        """
        self.lexer = source if isinstance(source, Lexer) else Lexer(source, filename)
        self.generator = generator
        self.precedence = precedence if precedence is not None else PrecedenceTable()
        self.prelude = prelude
        self.prompt = prompt
        self.prompt_stream = prompt_stream if prompt_stream is not None else sys.stderr
        self.result = DriverResult()
        self._parser: Optional[Parser] = None

    @property
    def parser(self) -> Parser:
        if self._parser is None:
            self._parser = Parser(self.lexer, self.precedence)
        return self._parser

    def run(self) -> DriverResult:
        """Process every unit up to end of input."""
        if self.prelude:
            prelude_parser = Parser(Lexer(PRELUDE, "<prelude>"), self.precedence)
            while self._step(prelude_parser):
                pass

        self._show_prompt()
        while self._step(self.parser):
            self._show_prompt()

        logger.info("finished: %d definitions, %d externs, %d expressions, %d errors",
                    len(self.result.definitions), len(self.result.externs),
                    len(self.result.expressions), len(self.result.errors))
        return self.result

    def step(self) -> bool:
        """Process one unit of the main input; False once the input is exhausted."""
        return self._step(self.parser)

    def _step(self, parser: Parser) -> bool:
        if parser.at_end():
            return False

        unit_start = parser.position
        before = self.precedence.as_dict()
        try:
            item = parser.parse_top_level()
        except ParseError as e:
            logger.error("%s: %s", e.location, e.message)
            self.result.errors.append(e)
            parser.synchronize(unit_start)
            return True

        if item is not None:
            self._handle(item, before)
        return True

    def _handle(self, item: Item, precedence_before: Dict[str, int]):
        if isinstance(item, Prototype):
            kind, prototype, accepted = "extern", item, self.result.externs
        elif item.prototype.is_anonymous:
            kind, prototype, accepted = "top-level expression", item.prototype, self.result.expressions
        else:
            kind, prototype, accepted = "definition", item.prototype, self.result.definitions

        if self.generator.generate(item):
            logger.info("read %s %s", kind, prototype.name)
            accepted.append(item)
            return

        error = GenerationError(f"code generation failed for {kind} '{prototype.name}'", item)
        logger.error("%s", error.message)
        self.result.errors.append(error)

        if prototype.is_binary_op:
            self.precedence.restore(prototype.operator, precedence_before.get(prototype.operator))

    def _show_prompt(self):
        if self.prompt:
            self.prompt_stream.write(self.prompt)
            self.prompt_stream.flush()


class ASTDumpGenerator(CodeGenerator):
    """
    Stand-in code generator that prints what it is given.

    It performs the checks a real generator makes before emitting calls:
    every called function and user-defined operator must have been declared,
    with the right number of arguments. Anything else is accepted and
    printed as an S-expression (or as a tree).
    """

    def __init__(self, stream: Optional[TextIO] = None, tree: bool = False):
        self.stream = stream if stream is not None else sys.stdout
        self.tree = tree
        self.prototypes: Dict[str, Prototype] = {}
        self.errors: List[str] = []

    def get_prototype(self, name: str) -> Optional[Prototype]:
        return self.prototypes.get(name)

    def generate(self, node: Item) -> bool:
        if isinstance(node, Prototype):
            self.prototypes[node.name] = node
            self._emit("Read extern:", node)
            return True

        # A function may call itself
        visible = dict(self.prototypes)
        visible[node.prototype.name] = node.prototype

        problem = self._check_body(node, visible)
        if problem is not None:
            self.errors.append(problem)
            logger.error("%s in %s", problem, node.prototype.name)
            return False

        if node.prototype.is_anonymous:
            self._emit("Read top-level expression:", node)
        else:
            self.prototypes[node.prototype.name] = node.prototype
            self._emit("Read function definition:", node)
        return True

    def _check_body(self, node: FunctionDef, visible: Dict[str, Prototype]) -> Optional[str]:
        for child in node.body.walk():
            if isinstance(child, Call):
                callee = visible.get(child.callee)
                if callee is None:
                    return f"unknown function referenced: {child.callee}"
                if len(callee.params) != len(child.args):
                    return (f"incorrect number of arguments passed to {child.callee}: "
                            f"expected {len(callee.params)}, got {len(child.args)}")
            elif isinstance(child, UnaryOp):
                if "unary" + child.operator not in visible:
                    return f"unknown unary operator: {child.operator}"
            elif isinstance(child, BinaryOp):
                if child.operator not in DEFAULT_PRECEDENCES and "binary" + child.operator not in visible:
                    return f"unknown binary operator: {child.operator}"
        return None

    def _emit(self, header: str, node: Item):
        self.stream.write(header + "\n")
        self.stream.write((dump_tree(node) if self.tree else to_sexpr(node)) + "\n")
