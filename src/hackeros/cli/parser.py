from __future__ import annotations

import difflib
import re
from dataclasses import dataclass, field

from hackeros.config.balance import Balance


@dataclass(slots=True, eq=False)
class ParseError(Exception):
    message: str
    unsupported: bool = False

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True, eq=False)
class UsageError(Exception):
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True)
class Token:
    text: str
    quoted: bool = False
    operator: bool = False


@dataclass(slots=True)
class Redirect:
    target: str
    append: bool = False


@dataclass(slots=True)
class CommandLine:
    raw: str
    expanded: str
    argv: list[str] = field(default_factory=list)
    redirect: Redirect | None = None

    @property
    def name(self) -> str:
        return self.argv[0] if self.argv else ""

    @property
    def args(self) -> list[str]:
        return self.argv[1:]


_VAR = re.compile(r"\$\{(\w+)\}|\$(\w+)")


def substitute_env(line: str, env: dict[str, str]) -> str:
    """Replace $NAME and ${NAME}; unknown names become empty, single-quoted text is left alone."""

    def _sub(chunk: str) -> str:
        return _VAR.sub(lambda m: env.get(m.group(1) or m.group(2), ""), chunk)

    out: list[str] = []
    start = 0
    in_double = False
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\" and i + 1 < len(line):
            i += 2
            continue
        if ch == '"':
            in_double = not in_double
        elif ch == "'" and not in_double:
            end = line.find("'", i + 1)
            if end == -1:
                break
            out.append(_sub(line[start:i]))
            out.append(line[i:end + 1])
            start = end + 1
            i = end + 1
            continue
        i += 1
    out.append(_sub(line[start:]))
    return "".join(out)


def expand_alias(line: str, aliases: dict[str, str], max_depth: int = Balance.ALIAS_MAX_DEPTH) -> str:
    seen: set[str] = set()
    for _ in range(max_depth):
        stripped = line.lstrip()
        if not stripped:
            return line
        head, sep, rest = stripped.partition(" ")
        if head not in aliases or head in seen:
            return line
        seen.add(head)
        line = aliases[head] + (sep + rest if rest else "")
    return line


def tokenize(line: str) -> list[Token]:
    tokens: list[Token] = []
    buf: list[str] = []
    quoted = False
    have_word = False
    i = 0

    def _flush() -> None:
        nonlocal buf, quoted, have_word
        if have_word:
            tokens.append(Token("".join(buf), quoted=quoted))
        buf, quoted, have_word = [], False, False

    while i < len(line):
        ch = line[i]
        if ch.isspace():
            _flush()
            i += 1
            continue
        if ch == "\\":
            if i + 1 < len(line):
                buf.append(line[i + 1])
            have_word = True
            i += 2
            continue
        if ch in ("'", '"'):
            end = i + 1
            chunk: list[str] = []
            while end < len(line) and line[end] != ch:
                if ch == '"' and line[end] == "\\" and end + 1 < len(line) and line[end + 1] in '"\\$':
                    end += 1
                chunk.append(line[end])
                end += 1
            if end >= len(line):
                raise ParseError(f"unexpected EOF while looking for matching `{ch}'")
            buf.extend(chunk)
            quoted = True
            have_word = True
            i = end + 1
            continue
        if ch in "|>":
            _flush()
            if ch == ">" and line.startswith(">>", i):
                tokens.append(Token(">>", operator=True))
                i += 2
            else:
                tokens.append(Token(ch, operator=True))
                i += 1
            continue
        buf.append(ch)
        have_word = True
        i += 1
    _flush()
    return tokens


def parse_line(raw: str, env: dict[str, str], aliases: dict[str, str]) -> CommandLine:
    expanded = expand_alias(substitute_env(raw.strip(), env), aliases)
    tokens = tokenize(expanded)
    argv: list[str] = []
    redirect: Redirect | None = None
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok.operator and tok.text == "|":
            raise ParseError("pipes are not supported", unsupported=True)
        if tok.operator:
            if i + 1 >= len(tokens) or tokens[i + 1].operator:
                nxt = tokens[i + 1].text if i + 1 < len(tokens) else "newline"
                raise ParseError(f"syntax error near unexpected token `{nxt}'")
            redirect = Redirect(target=tokens[i + 1].text, append=tok.text == ">>")
            i += 2
            continue
        argv.append(tok.text)
        i += 1
    return CommandLine(raw=raw.strip(), expanded=expanded.strip(), argv=argv, redirect=redirect)


def split_flags(args: list[str], known: str) -> tuple[set[str], list[str]]:
    """Split short flags ('-rf' -> {'r', 'f'}) from operands; '--' ends flag parsing."""
    flags: set[str] = set()
    operands: list[str] = []
    only_operands = False
    for arg in args:
        if only_operands or not arg.startswith("-") or arg == "-":
            operands.append(arg)
            continue
        if arg == "--":
            only_operands = True
            continue
        letters = arg[1:]
        if arg.startswith("--") or any(c not in known for c in letters):
            raise UsageError(f"invalid option -- '{letters.lstrip('-')}'")
        flags.update(letters)
    return flags, operands


def suggest_command(cmd: str, commands: list[str]) -> str | None:
    matches = difflib.get_close_matches(cmd, commands, n=1, cutoff=0.6)
    return matches[0] if matches else None
