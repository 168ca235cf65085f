"""Sandboxed execution of compiled block programs.

Programs are restricted Python, as emitted by a block-to-Python generator::

    while notDone():
        if isPathEast('b7'):
            moveEast('b8')
        else:
            moveSouth('b9')

The source is checked, rewritten so that every statement is preceded by a
suspension point, wrapped in a generator function and compiled with
RestrictedPython. ``SandboxedProgram.step`` runs the program up to its next
suspension point, which gives the execution driver a single-step primitive to
count against the tick budget.
"""

from __future__ import annotations

import ast
import logging
import operator
from functools import partial
from typing import Callable, Dict, Iterator, List

from RestrictedPython import compile_restricted, safe_builtins, safe_globals
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safer_getattr,
)
from RestrictedPython.PrintCollector import PrintCollector

from .commands import CommandLog, CommandRecord
from .errors import BlockedMove, ScriptCompileError
from .world import Direction, WorldModel

logger = logging.getLogger(__name__)

PROGRAM_FUNCTION = "maze_program"

_REJECTED_NODES = {
    ast.FunctionDef: "function definitions",
    ast.AsyncFunctionDef: "function definitions",
    ast.Lambda: "lambda expressions",
    ast.ClassDef: "class definitions",
    ast.Return: "return statements",
    ast.Yield: "yield expressions",
    ast.YieldFrom: "yield expressions",
    ast.Await: "await expressions",
    ast.AsyncFor: "async loops",
    ast.AsyncWith: "async with statements",
    ast.Global: "global statements",
    ast.Nonlocal: "nonlocal statements",
    ast.Import: "imports",
    ast.ImportFrom: "imports",
    ast.ListComp: "comprehensions",
    ast.SetComp: "comprehensions",
    ast.DictComp: "comprehensions",
    ast.GeneratorExp: "generator expressions",
}

# Builtins that loop over their argument inside a single statement.
_UNMETERED_BUILTINS = frozenset(
    {
        "all",
        "any",
        "dict",
        "enumerate",
        "filter",
        "frozenset",
        "list",
        "map",
        "max",
        "min",
        "pow",
        "reversed",
        "set",
        "sorted",
        "sum",
        "tuple",
        "zip",
    }
)

_INPLACE_OPS: Dict[str, Callable] = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
    "<<=": operator.ilshift,
    ">>=": operator.irshift,
    "&=": operator.iand,
    "|=": operator.ior,
    "^=": operator.ixor,
}


def _inplacevar(op: str, x, y):
    return _INPLACE_OPS[op](x, y)


def _block_key(block_id) -> str | None:
    """Block ids are logged as strings so the log survives an NDJSON round trip."""
    return None if block_id is None else str(block_id)


def _suspension() -> ast.stmt:
    return ast.Expr(value=ast.Yield(value=None))


def _with_suspensions(statements: List[ast.stmt]) -> List[ast.stmt]:
    out: List[ast.stmt] = []
    for statement in statements:
        out.append(_suspension())
        out.append(statement)
    return out


class _SuspensionInserter(ast.NodeTransformer):
    """Put a suspension point in front of every statement of every block."""

    def generic_visit(self, node: ast.AST) -> ast.AST:
        super().generic_visit(node)
        for name in ("body", "orelse", "finalbody"):
            statements = getattr(node, name, None)
            if isinstance(statements, list) and statements and isinstance(statements[0], ast.stmt):
                setattr(node, name, _with_suspensions(statements))
        return node


def _check_supported(tree: ast.Module) -> None:
    for node in ast.walk(tree):
        reason = _REJECTED_NODES.get(type(node))
        if isinstance(node, (ast.BinOp, ast.AugAssign)) and isinstance(node.op, ast.Pow):
            reason = "exponentiation"
        if reason is not None:
            line = getattr(node, "lineno", "?")
            raise ScriptCompileError(f"line {line}: {reason} are not allowed in maze programs")


def compile_program(source: str, filename: str = "<maze program>"):
    """Compile ``source`` into restricted bytecode defining ``maze_program``."""
    try:
        tree = ast.parse(source, filename, "exec")
    except SyntaxError as exc:
        raise ScriptCompileError(f"line {exc.lineno}: {exc.msg}") from exc
    _check_supported(tree)

    body = [_SuspensionInserter().visit(statement) for statement in tree.body]
    wrapper = ast.parse(f"def {PROGRAM_FUNCTION}():\n    yield\n", filename, "exec")
    wrapper.body[0].body = _with_suspensions(body) or [_suspension()]
    ast.fix_missing_locations(wrapper)

    try:
        return compile_restricted(wrapper, filename, "exec")
    except SyntaxError as exc:
        messages = exc.args[0] if exc.args else exc
        if isinstance(messages, (list, tuple)):
            messages = "; ".join(str(m) for m in messages)
        raise ScriptCompileError(str(messages)) from exc


def build_restricted_globals(api: Dict[str, Callable]) -> dict:
    restricted = dict(safe_globals)
    restricted.update(
        {
            "__builtins__": {
                name: value for name, value in safe_builtins.items() if name not in _UNMETERED_BUILTINS
            },
            "_getattr_": safer_getattr,
            "_getitem_": default_guarded_getitem,
            "_getiter_": default_guarded_getiter,
            "_write_": full_write_guard,
            "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
            "_unpack_sequence_": guarded_unpack_sequence,
            "_inplacevar_": _inplacevar,
            "_print_": PrintCollector,
        }
    )
    restricted.update(api)
    return restricted


class ScriptHost:
    """Capability surface the sandboxed program sees.

    Every capability call appends at most one record to ``log``. A blocked
    move is latched in ``fault`` so the run ends even if the program catches
    the exception.
    """

    def __init__(self, world: WorldModel, log: CommandLog) -> None:
        self.world = world
        self.log = log
        self.fault: BlockedMove | None = None

    def not_done(self) -> bool:
        return self.world.not_done()

    def move(self, direction: Direction, block_id: str | None = None) -> None:
        if self.fault is not None:
            raise self.fault
        block_id = _block_key(block_id)
        if not self.world.is_path(direction):
            self.log.append(CommandRecord.fail_forward(block_id))
            self.fault = BlockedMove(direction, block_id)
            logger.warning("Blocked move %s at %s", direction.name, self.world.pose.cell)
            raise self.fault
        self.world.move(direction)
        self.log.append(CommandRecord.move_to(direction, block_id))
        consumed = self.world.check_finish()
        if consumed is not None:
            logger.debug("Finish %d reached during execution", consumed)

    def is_path(self, direction: Direction, block_id: str | None = None) -> bool:
        if self.fault is not None:
            raise self.fault
        self.log.append(CommandRecord.look_at(direction, _block_key(block_id)))
        return self.world.is_path(direction)

    def api(self) -> Dict[str, Callable]:
        api: Dict[str, Callable] = {"notDone": self.not_done}
        for direction in Direction:
            suffix = direction.name.capitalize()
            api[f"move{suffix}"] = partial(self.move, direction)
            api[f"isPath{suffix}"] = partial(self.is_path, direction)
        return api


class SandboxedProgram:
    """A compiled program bound to a host, advanced one statement at a time."""

    def __init__(self, source: str, host: ScriptHost) -> None:
        self.host = host
        code = compile_program(source)
        namespace = build_restricted_globals(host.api())
        exec(code, namespace)
        self._steps: Iterator[None] | None = namespace[PROGRAM_FUNCTION]()

    @property
    def finished(self) -> bool:
        return self._steps is None

    def step(self) -> bool:
        """Run to the next suspension point; ``False`` once the program has ended."""
        if self._steps is None:
            return False
        try:
            next(self._steps)
        except StopIteration:
            self._steps = None
        except BaseException:
            self._steps = None
            raise
        if self.host.fault is not None:
            self._steps = None
            raise self.host.fault
        return self._steps is not None
