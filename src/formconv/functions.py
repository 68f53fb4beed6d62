"""
Supported formula functions.

Every function usable in a formula is listed in FUNCTIONS together with the
shape of its translation:

    RENAME   f(a, b)        -> target(a, b)
    METHOD   f(a, b, c)     -> (a).target(b, c)
    SPECIAL  custom wiring, handled one by one by the backend

The parser rejects names missing from the table and calls with a wrong
number of arguments; the backend relies on both checks.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class FunctionShape(Enum):
    RENAME = "rename"
    METHOD = "method"
    SPECIAL = "special"


@dataclass(frozen=True)
class FunctionSpec:
    """
    Properties:
        shape: Translation shape
        target: Target function/method name (unused by SPECIAL functions)
        min_args: Minimum number of arguments
        max_args: Maximum number of arguments, None for no limit
    """

    shape: FunctionShape
    target: str = ""
    min_args: int = 0
    max_args: Optional[int] = None

    def accepts(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args


def _rename(target: str, min_args: int = 1, max_args: Optional[int] = 1) -> FunctionSpec:
    return FunctionSpec(FunctionShape.RENAME, target, min_args, max_args)


def _method(target: str) -> FunctionSpec:
    return FunctionSpec(FunctionShape.METHOD, target, min_args=1)


def _special(arity: int) -> FunctionSpec:
    return FunctionSpec(FunctionShape.SPECIAL, min_args=arity, max_args=arity)


FUNCTIONS: Dict[str, FunctionSpec] = {
    # Math
    "max": _rename("Math.max", 1, None),
    "min": _rename("Math.min", 1, None),
    "floor": _rename("Math.floor"),
    "int": _rename("Math.floor"),
    "pow": _rename("Math.pow", 1, 2),
    "log": _rename("Math.log"),
    "log10": _rename("Math.log10"),
    "abs": _rename("Math.abs"),
    "sin": _rename("Math.sin"),
    "cos": _rename("Math.cos"),
    "tan": _rename("Math.tan"),
    "asin": _rename("Math.asin"),
    "acos": _rename("Math.acos"),
    "atan": _rename("Math.atan"),
    "atan2": _rename("Math.atan2", 2, 2),
    "sqrt": _rename("Math.sqrt"),
    "exp": _rename("Math.exp"),
    "random": _rename("Math.random", 0, 0),
    "round": _rename("Math.round", 1, 2),
    # Conversions and logic
    "string": _rename("String"),
    "number": _rename("Number"),
    "boolean": _rename("Boolean"),
    "not": _rename("!"),
    "selected": _rename("valueInChoice", 2, 2),
    # Strings
    "contains": _method("includes"),
    "starts-with": _method("startsWith"),
    "ends-with": _method("endsWith"),
    "substr": _method("substring"),
    "concat": _method("concat"),
    # Special forms
    "if": _special(3),
    "regex": _special(2),
    "string-length": _special(1),
    "count-selected": _special(1),
    "exp10": _special(1),
    "pi": _special(0),
    "true": _special(0),
    "false": _special(0),
}


def lookup_function(name: str) -> Optional[FunctionSpec]:
    return FUNCTIONS.get(name)
