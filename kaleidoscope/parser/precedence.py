"""
Binary operator precedence table.

Maps a single operator character to a positive precedence (higher binds
tighter). The parser consults it on every binary-operator continuation and
extends it whenever a ``binary`` operator prototype is parsed.

Author: xwest
"""

import logging
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)

# Built-in operators
DEFAULT_PRECEDENCES: Dict[str, int] = {
    '=': 2,
    '<': 10,
    '+': 20,
    '-': 20,
    '*': 40,
}

# Precedence of a user-defined binary operator that doesn't declare one
DEFAULT_BINARY_PRECEDENCE = 30

# Range accepted for a declared precedence
MIN_PRECEDENCE = 1
MAX_PRECEDENCE = 100

# Returned by lookups for anything that isn't a registered binary operator
NOT_AN_OPERATOR = -1


class PrecedenceTable:
    """
    Mutable operator precedence table for one parsing session.

    Lookups never fail: unregistered, multi-character and non-ASCII symbols
    all come back as NOT_AN_OPERATOR.
    """

    def __init__(self, initial: Optional[Dict[str, int]] = None):
        """
        Args:
            initial: Starting entries; defaults to DEFAULT_PRECEDENCES
        """
        self._table: Dict[str, int] = {}
        for op, precedence in (DEFAULT_PRECEDENCES if initial is None else initial).items():
            self.register(op, precedence)

    def get(self, op: str) -> int:
        """Return the precedence of ``op`` or NOT_AN_OPERATOR."""
        if not _is_operator_symbol(op):
            return NOT_AN_OPERATOR
        precedence = self._table.get(op, 0)
        if precedence <= 0:
            return NOT_AN_OPERATOR
        return precedence

    def register(self, op: str, precedence: int) -> Optional[int]:
        """
        Set the precedence of ``op``.

        Returns:
            The previous precedence, or None if ``op`` was not registered

        Raises:
            ValueError: If ``op`` is not a single ASCII character or the
                precedence is not positive
        """
        if not _is_operator_symbol(op):
            raise ValueError(f"operator must be a single ASCII character, got {op!r}")
        if precedence <= 0:
            raise ValueError(f"precedence of {op!r} must be positive, got {precedence}")

        previous = self._table.get(op)
        self._table[op] = precedence
        logger.debug("precedence of %r set to %d (was %s)", op, precedence, previous)
        return previous

    def unregister(self, op: str) -> Optional[int]:
        """Remove ``op``; returns the precedence it had, if any."""
        previous = self._table.pop(op, None)
        if previous is not None:
            logger.debug("precedence of %r removed (was %d)", op, previous)
        return previous

    def restore(self, op: str, previous: Optional[int]):
        """Undo a register() call given the value it returned."""
        if previous is None:
            self.unregister(op)
        else:
            self._table[op] = previous
            logger.debug("precedence of %r restored to %d", op, previous)

    def as_dict(self) -> Dict[str, int]:
        return dict(self._table)

    def copy(self) -> 'PrecedenceTable':
        return PrecedenceTable(self._table)

    def __contains__(self, op: str) -> bool:
        return self.get(op) != NOT_AN_OPERATOR

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __repr__(self) -> str:
        entries = ", ".join(f"{op!r}: {prec}" for op, prec in sorted(self._table.items(), key=lambda kv: kv[1]))
        return f"PrecedenceTable({{{entries}}})"


def _is_operator_symbol(op) -> bool:
    return isinstance(op, str) and len(op) == 1 and op.isascii()
