"""Script statements and the recognizer that turns player text into them."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

ACTION_NAMES = ("moveLeft", "moveRight", "jump", "shoot", "moveBack", "setSpeed")

# Actions that take exactly one argument; every other action takes none.
_ACTIONS_WITH_ARGUMENT = frozenset({"setSpeed"})

_IDENTIFIER = r"[A-Za-z_]\w*"
_COMMENT = re.compile(r"//.*")
_WHITESPACE = re.compile(r"\s*")
_NUMBER = r"[0-9]+"
_ASSIGNMENT = re.compile(rf"({_IDENTIFIER})\s*=\s*({_NUMBER})\s*;")
_ACTION_CALL = re.compile(rf"({_IDENTIFIER})\s*\(\s*(\w*)\s*\)\s*;")
_IF_HEAD = re.compile(rf"if\s*\(\s*({_IDENTIFIER})\s*(?:==\s*true\s*)?\)\s*\{{")
_FOR_HEAD = re.compile(
    rf"for\s*\(\s*int\s+({_IDENTIFIER})\s*=\s*([^;]*?)\s*;"
    rf"\s*({_IDENTIFIER})\s*<\s*([^;]*?)\s*;"
    rf"\s*({_IDENTIFIER})\s*\+\+\s*\)\s*\{{"
)
_ANY_BLOCK_HEAD = re.compile(r"(if|for)\s*\([^{}\n]*\)\s*\{")


@dataclass(frozen=True)
class Assignment:
    name: str
    value: int


@dataclass(frozen=True)
class ActionCall:
    name: str
    arg: Union[int, str, None] = None


@dataclass(frozen=True)
class UnrecognizedStatement:
    text: str


@dataclass(frozen=True)
class MalformedLoop:
    """A ``for`` block whose header could not be turned into bounds."""

    text: str
    reason: str


SimpleStatement = Union[Assignment, ActionCall, UnrecognizedStatement]


def _ensure_flat(body: Iterable[object]) -> None:
    for statement in body:
        if isinstance(statement, (Conditional, ForLoop, MalformedLoop)):
            raise ValueError("block bodies cannot contain nested blocks")


@dataclass(frozen=True)
class Conditional:
    condition: str
    body: Tuple[SimpleStatement, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        _ensure_flat(self.body)

    def contains_action(self, name: str) -> bool:
        return any(isinstance(s, ActionCall) and s.name == name for s in self.body)


@dataclass(frozen=True)
class ForLoop:
    var_name: str
    start: int
    end: int
    body: Tuple[SimpleStatement, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        _ensure_flat(self.body)

    @property
    def iterations(self) -> int:
        return max(0, self.end - self.start)

    def has_action(self) -> bool:
        return any(isinstance(s, ActionCall) for s in self.body)

    def contains_action(self, name: str) -> bool:
        return any(isinstance(s, ActionCall) and s.name == name for s in self.body)


Statement = Union[Assignment, ActionCall, Conditional, ForLoop, MalformedLoop, UnrecognizedStatement]


def strip_comments(text: str) -> str:
    """Remove ``//`` comments up to the end of each line."""
    return _COMMENT.sub("", text)


def _is_number(text: str) -> bool:
    # ASCII only: str.isdigit() also accepts characters such as '²' that int() rejects
    return re.fullmatch(_NUMBER, text) is not None


def _collapse(text: str) -> str:
    return " ".join(text.split())


class ScriptParser:
    """Recognizes the statements of a level's script grammar.

    Recognition is a single left-to-right pass. ``if`` and ``for`` blocks are
    read as whole units whose body ends at the first closing brace, so only
    one level of nesting is possible. Text that fits no form is returned as an
    :class:`UnrecognizedStatement` and recognition carries on after it.
    """

    def __init__(self, allowed_actions: Iterable[str]) -> None:
        self._allowed_actions = frozenset(allowed_actions)
        unknown = self._allowed_actions.difference(ACTION_NAMES)
        if unknown:
            raise ValueError(f"Unknown actions: {', '.join(sorted(unknown))}")

    @property
    def allowed_actions(self) -> frozenset[str]:
        return self._allowed_actions

    def parse(self, text: str) -> List[Statement]:
        statements = self._scan(strip_comments(text), allow_blocks=True)
        logger.debug("Recognized %d statement(s)", len(statements))
        return statements

    def _scan(self, text: str, allow_blocks: bool) -> List[Statement]:
        statements: List[Statement] = []
        pos = 0
        length = len(text)
        while True:
            pos = _WHITESPACE.match(text, pos).end()
            if pos >= length:
                break

            line_end = text.find("\n", pos)
            if line_end == -1:
                line_end = length

            if _ANY_BLOCK_HEAD.match(text, pos):
                if not allow_blocks:
                    statements.append(UnrecognizedStatement(text[pos:line_end].strip()))
                    pos = line_end
                    continue
                block = self._read_block(text, pos)
                if block is None:
                    statements.append(UnrecognizedStatement(text[pos:line_end].strip()))
                    pos = line_end
                    continue
                statement, pos = block
                statements.append(statement)
                continue

            semicolon = text.find(";", pos, line_end)
            if semicolon == -1:
                statements.append(UnrecognizedStatement(text[pos:line_end].strip()))
                pos = line_end
                continue
            statements.append(self._classify(text[pos:semicolon + 1].strip()))
            pos = semicolon + 1
        return statements

    def _read_block(self, text: str, pos: int) -> Optional[Tuple[Statement, int]]:
        head = _ANY_BLOCK_HEAD.match(text, pos)
        close = text.find("}", head.end())
        if close == -1:
            return None
        block_text = _collapse(text[pos:close + 1])
        body_text = text[head.end():close]
        end = close + 1

        if head.group(1) == "if":
            m = _IF_HEAD.match(text, pos)
            if m is None or m.end() != head.end():
                return UnrecognizedStatement(block_text), end
            body = tuple(self._scan(body_text, allow_blocks=False))
            return Conditional(condition=m.group(1), body=body), end

        m = _FOR_HEAD.match(text, pos)
        if m is None or m.end() != head.end():
            return MalformedLoop(block_text, "loop header does not match 'for (int i = 0; i < n; i++)'"), end
        var_name, start_text, cond_var, end_text, step_var = m.groups()
        if cond_var != var_name or step_var != var_name:
            return MalformedLoop(block_text, f"loop header must use '{var_name}' throughout"), end
        if not _is_number(start_text) or not _is_number(end_text):
            return MalformedLoop(block_text, "loop bounds must be whole numbers"), end
        start, stop = int(start_text), int(end_text)
        if start > stop:
            return MalformedLoop(block_text, f"start {start} is greater than end {stop}"), end
        body = tuple(self._scan(body_text, allow_blocks=False))
        return ForLoop(var_name=var_name, start=start, end=stop, body=body), end

    def _classify(self, chunk: str) -> SimpleStatement:
        m = _ASSIGNMENT.fullmatch(chunk)
        if m:
            return Assignment(name=m.group(1), value=int(m.group(2)))

        m = _ACTION_CALL.fullmatch(chunk)
        if m and m.group(1) in self._allowed_actions:
            name, raw_arg = m.group(1), m.group(2)
            if name in _ACTIONS_WITH_ARGUMENT:
                if _is_number(raw_arg):
                    return ActionCall(name, int(raw_arg))
                if re.fullmatch(_IDENTIFIER, raw_arg):
                    return ActionCall(name, raw_arg)
            elif not raw_arg:
                return ActionCall(name)

        return UnrecognizedStatement(chunk)
