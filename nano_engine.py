"""
NanoLang engine: keyword-prefixed beginner syntax translated line by line into Python,
plus a scoped runner that executes the result and captures what it prints.
"""

from __future__ import annotations

import math
import os
import random
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

INDENT = "  "
CLOSING_MARKER = "# end"
FALLBACK_OUTPUT = "# Error parsing code"
SOURCE_NAME = "<nanolang>"


def _default_max_steps() -> Optional[int]:
    raw = os.environ.get("NANO_MAX_STEPS", "100000").strip()
    try:
        value = int(raw)
    except ValueError:
        return 100000
    return value if value > 0 else None


class StepLimitExceeded(Exception):
    """Raised inside a run when the program executes more lines than allowed."""


# Statement variants produced by classify().


@dataclass(frozen=True)
class Comment:
    text: str


@dataclass(frozen=True)
class Print:
    expr: str


@dataclass(frozen=True)
class Assign:
    name: str
    expr: str


@dataclass(frozen=True)
class MissingAssign:
    """A `set` line with no `=`; it produces no output."""

    raw_text: str


@dataclass(frozen=True)
class RepeatBegin:
    count_expr: str


@dataclass(frozen=True)
class CheckBegin:
    cond_expr: str


@dataclass(frozen=True)
class BlockEnd:
    pass


@dataclass(frozen=True)
class Unrecognized:
    raw_text: str


Statement = Union[
    Comment, Print, Assign, MissingAssign, RepeatBegin, CheckBegin, BlockEnd, Unrecognized
]


def classify(line: str) -> Statement:
    """Tag one source line by its leading keyword. First match wins."""
    stripped = line.strip()

    if stripped.startswith("note "):
        return Comment(stripped[5:])

    if stripped.startswith("say "):
        return Print(stripped[4:])

    if stripped.startswith("set "):
        parts = stripped[4:].split("=")
        if len(parts) < 2:
            return MissingAssign(stripped)
        # Everything after the first `=` belongs to the value, comparisons included.
        return Assign(parts[0].strip(), "=".join(parts[1:]).strip())

    if stripped.startswith("repeat "):
        return RepeatBegin(stripped[7:].strip())

    if stripped.startswith("check "):
        return CheckBegin(stripped[6:].strip())

    if stripped == "end":
        return BlockEnd()

    return Unrecognized(stripped)


def _pad(depth: int) -> str:
    return INDENT * max(depth, 0)


def _source_lines(source: str) -> List[str]:
    # Only "\n" separates lines; other Unicode breaks may sit inside string literals.
    return [line[:-1] if line.endswith("\r") else line for line in source.split("\n")]


def emit(
    statement: Statement, depth: int, body_pending: bool = False
) -> Tuple[Optional[str], int, bool]:
    """Return the Python line for a statement (or None), the depth after it, and
    whether the innermost open block still lacks an executable statement.

    Comments, unknown lines and dropped assignments do not count as a block body,
    so an `end` closing such a block becomes ``pass  # end`` one level deeper.
    """
    if isinstance(statement, Comment):
        return f"{_pad(depth)}# {statement.text}", depth, body_pending

    if isinstance(statement, Print):
        return f"{_pad(depth)}print({statement.expr})", depth, False

    if isinstance(statement, Assign):
        return f"{_pad(depth)}{statement.name} = {statement.expr}", depth, False

    if isinstance(statement, MissingAssign):
        return None, depth, body_pending

    if isinstance(statement, RepeatBegin):
        counter = f"i_{depth}"
        header = f"{_pad(depth)}for {counter} in range({statement.count_expr}):"
        return header, depth + 1, True

    if isinstance(statement, CheckBegin):
        return f"{_pad(depth)}if {statement.cond_expr}:", depth + 1, True

    if isinstance(statement, BlockEnd):
        if depth > 0 and body_pending:
            return f"{_pad(depth)}pass  {CLOSING_MARKER}", depth - 1, False
        # Clamp at zero: a stray `end` still closes at the outermost level.
        new_depth = depth - 1 if depth > 0 else 0
        return f"{_pad(new_depth)}{CLOSING_MARKER}", new_depth, False

    if isinstance(statement, Unrecognized):
        return f"{_pad(depth)}# Unknown syntax: {statement.raw_text}", depth, body_pending

    raise TypeError(f"Unknown statement: {statement!r}")


def transpile(source: str) -> str:
    """Translate NanoLang source into Python. Never raises."""
    py_lines: List[str] = []
    depth = 0
    body_pending = False

    try:
        for raw_line in _source_lines(source):
            if not raw_line.strip():
                continue
            python_line, depth, body_pending = emit(classify(raw_line), depth, body_pending)
            if python_line is not None:
                py_lines.append(python_line)
    except Exception:  # noqa: BLE001
        return FALLBACK_OUTPUT

    return "\n".join(py_lines)


@dataclass(frozen=True)
class Diagnostic:
    line: int
    kind: str
    message: str

    def to_dict(self) -> Dict[str, object]:
        return {"line": self.line, "kind": self.kind, "message": self.message}


def analyze(source: str) -> List[Diagnostic]:
    """Report lines that transpile() recovers from silently or only partly."""
    diagnostics: List[Diagnostic] = []
    open_blocks: List[Tuple[int, str]] = []

    for line_no, raw_line in enumerate(_source_lines(source), start=1):
        if not raw_line.strip():
            continue
        statement = classify(raw_line)

        if isinstance(statement, MissingAssign):
            diagnostics.append(
                Diagnostic(
                    line_no,
                    "missing-assign",
                    f"`set` needs a value, like `set x = 10`: {statement.raw_text}",
                )
            )
        elif isinstance(statement, Unrecognized):
            diagnostics.append(
                Diagnostic(line_no, "unknown-syntax", f"I could not understand: {statement.raw_text}")
            )
        elif isinstance(statement, RepeatBegin):
            open_blocks.append((line_no, "repeat"))
        elif isinstance(statement, CheckBegin):
            open_blocks.append((line_no, "check"))
        elif isinstance(statement, BlockEnd):
            if open_blocks:
                open_blocks.pop()
            else:
                diagnostics.append(
                    Diagnostic(line_no, "stray-end", "`end` without a matching `repeat` or `check`")
                )

    for line_no, keyword in open_blocks:
        diagnostics.append(
            Diagnostic(line_no, "unclosed-block", f"`{keyword}` block is never closed with `end`")
        )

    diagnostics.sort(key=lambda item: item.line)
    return diagnostics


def _build_safe_builtins(capture) -> Dict[str, object]:  # noqa: ANN001
    allowed_imports = {"math", "random"}

    def safe_import(name, globals=None, locals=None, fromlist=None, level=0):  # noqa: ANN001
        if name.split(".")[0] not in allowed_imports:
            raise ImportError(f"Import not allowed: {name}")
        return __import__(name, globals, locals, fromlist, level)

    return {
        "__import__": safe_import,
        "abs": abs,
        "all": all,
        "any": any,
        "bool": bool,
        "dict": dict,
        "enumerate": enumerate,
        "filter": filter,
        "float": float,
        "int": int,
        "isinstance": isinstance,
        "len": len,
        "list": list,
        "map": map,
        "max": max,
        "min": min,
        "print": capture,
        "range": range,
        "reversed": reversed,
        "round": round,
        "set": set,
        "sorted": sorted,
        "str": str,
        "sum": sum,
        "tuple": tuple,
        "zip": zip,
        "math": math,
        "random": random,
        "Exception": Exception,
        "ValueError": ValueError,
    }


def _step_tracer(max_steps: int):  # noqa: ANN202
    steps = 0

    def tracer(frame, event, arg):  # noqa: ANN001
        nonlocal steps
        if frame.f_code.co_filename != SOURCE_NAME:
            return None
        if event == "line":
            steps += 1
            if steps > max_steps:
                raise StepLimitExceeded(f"Step limit of {max_steps} exceeded")
        return tracer

    return tracer


_UNSET = object()


def execute(target_code: str, max_steps=_UNSET) -> List[str]:  # noqa: ANN001
    """Run generated Python in a fresh scope and return the captured print lines.

    Compile failures become a single ``System Error:`` entry; faults while running
    append a ``Runtime Error:`` entry after whatever was printed so far. An empty
    list means the program printed nothing.
    """
    if max_steps is _UNSET:
        max_steps = _default_max_steps()

    logs: List[str] = []

    def _capture(*args, **kwargs):  # noqa: ANN001
        sep = kwargs.get("sep")
        logs.append((" " if sep is None else str(sep)).join(str(arg) for arg in args))

    try:
        compiled = compile(target_code, SOURCE_NAME, "exec")
        scope: dict = {"__builtins__": _build_safe_builtins(_capture), "__name__": "__main__"}
    except Exception as exc:  # noqa: BLE001
        logs.append(f"System Error: {exc}")
        return logs

    previous_trace = sys.gettrace()
    if max_steps is not None:
        sys.settrace(_step_tracer(max_steps))
    try:
        exec(compiled, scope, scope)
    except Exception as exc:  # noqa: BLE001
        logs.append(f"Runtime Error: {exc}")
    finally:
        if max_steps is not None:
            sys.settrace(previous_trace)

    return logs


def run_python_code(python_code: str, max_steps=_UNSET) -> Dict[str, object]:  # noqa: ANN001
    logs = execute(python_code, max_steps=max_steps)

    error = None
    if logs and logs[-1].startswith(("Runtime Error:", "System Error:")):
        error = logs[-1]

    return {"ok": error is None, "code": python_code, "logs": logs, "error": error}


def run_nano_code(code: str, max_steps=_UNSET) -> Dict[str, object]:  # noqa: ANN001
    """Transpile NanoLang and run it; the dict mirrors what the editor displays."""
    result = run_python_code(transpile(code), max_steps=max_steps)
    result["nano"] = code
    return result
