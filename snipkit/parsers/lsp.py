from string import ascii_letters, digits
from typing import AbstractSet, MutableSequence, Sequence

from .lexer import context_from, next_char, pushback_chars, raise_err, token_parser
from .types import (
    Choice,
    End,
    IntBegin,
    Newline,
    ParserCtx,
    Template,
    TokenStream,
    VarBegin,
    VarRef,
)

#
# O(n) single pass parser for the LSP snippet grammar, minus transforms:
# https://github.com/microsoft/language-server-protocol/blob/main/snippetSyntax.md
#


"""
any         ::= tabstop | placeholder | choice | variable | text
tabstop     ::= '$' int | '${' int '}'
placeholder ::= '${' int ':' any '}'
choice      ::= '${' int '|' text (',' text)* '|}'
variable    ::= '$' var | '${' var '}'
                | '${' var ':' any '}'
var         ::= [_a-zA-Z] [_a-zA-Z0-9]*
int         ::= [0-9]+
text        ::= .*
"""


_ESC_CHARS = {"\\", "$", "}"}
_CHOICE_ESC_CHARS = _ESC_CHARS | {",", "|"}
_INT_CHARS = {*digits}
_VAR_BEGIN_CHARS = {*ascii_letters, "_"}
_VAR_CHARS = {*digits, *ascii_letters, "_"}


def _lex_escape(context: ParserCtx, *, escapable_chars: AbstractSet[str]) -> str:
    pos, char = next_char(context)
    assert char == "\\"

    pos, char = next_char(context)
    if char in escapable_chars:
        return char
    else:
        pushback_chars(context, (pos, char))
        return "\\"


def _lex_newline(context: ParserCtx) -> Newline:
    pos, char = next_char(context)
    pushback_chars(context, (pos, char))
    return Newline(blank=char in {"", "\n"})


# choice      ::= '${' int '|' text (',' text)* '|}'
def _lex_choice(context: ParserCtx, idx: int) -> Choice:
    pos, char = next_char(context)
    assert char == "|"

    options: MutableSequence[str] = []
    acc: MutableSequence[str] = []
    for pos, char in context:
        if char == "\\":
            pushback_chars(context, (pos, char))
            acc.append(_lex_escape(context, escapable_chars=_CHOICE_ESC_CHARS))
        elif char == "\n":
            raise_err(
                text=context.text,
                pos=pos,
                condition="choices must fit on one line",
                expected=(",", "|}"),
                actual=char,
            )
        elif char == ",":
            options.append("".join(acc))
            acc.clear()
        elif char == "|":
            pos, char = next_char(context)
            if char == "}":
                options.append("".join(acc))
                return Choice(idx=idx, options=tuple(options))
            else:
                raise_err(
                    text=context.text,
                    pos=pos,
                    condition="after |",
                    expected=("}",),
                    actual=char,
                )
        else:
            acc.append(char)

    raise_err(
        text=context.text,
        pos=pos,
        condition="while parsing choice",
        expected=("|}",),
        actual="",
    )


# tabstop | choice | placeholder
# -- all starts with (int)
def _lex_tcp(context: ParserCtx) -> TokenStream:
    idx_acc: MutableSequence[str] = []

    for pos, char in context:
        if char in _INT_CHARS:
            idx_acc.append(char)
        else:
            idx = int("".join(idx_acc))
            if char == "}":
                # tabstop     ::= '$' int | '${' int '}'
                yield IntBegin(idx=idx)
                yield End()
            elif char == "|":
                # choice      ::= '${' int '|' text (',' text)* '|}'
                pushback_chars(context, (pos, char))
                yield _lex_choice(context, idx=idx)
            elif char == ":":
                # placeholder ::= '${' int ':' any '}'
                if idx in context.stack:
                    raise_err(
                        text=context.text,
                        pos=pos,
                        condition=f"placeholder {idx} nested within itself",
                        expected=(),
                        actual=char,
                    )
                yield IntBegin(idx=idx)
                context.stack.append(idx)
            elif char == "/":
                raise_err(
                    text=context.text,
                    pos=pos,
                    condition="transformations are not supported",
                    expected=("}", "|", ":"),
                    actual=char,
                )
            else:
                raise_err(
                    text=context.text,
                    pos=pos,
                    condition="while parsing (tabstop | choice | placeholder)",
                    expected=("0-9", "}", "|", ":"),
                    actual=char,
                )
            break
    else:
        raise_err(
            text=context.text,
            pos=pos,
            condition="while parsing (tabstop | choice | placeholder)",
            expected=("0-9", "}", "|", ":"),
            actual="",
        )


# variable    ::= '$' var
def _lex_variable_naked(context: ParserCtx) -> TokenStream:
    name_acc: MutableSequence[str] = []

    for pos, char in context:
        if char in _VAR_CHARS:
            name_acc.append(char)
        else:
            pushback_chars(context, (pos, char))
            break

    yield VarRef(name="".join(name_acc))


# variable    ::= '${' var }'
#                | '${' var ':' any '}'
def _lex_variable_nested(context: ParserCtx) -> TokenStream:
    name_acc: MutableSequence[str] = []

    for pos, char in context:
        if char in _VAR_CHARS:
            name_acc.append(char)

        elif char == "}":
            # '${' var }'
            yield VarRef(name="".join(name_acc))
            break

        elif char == ":":
            # '${' var ':' any '}'
            name = "".join(name_acc)
            yield VarBegin(name=name)
            context.stack.append(name)
            break

        elif char == "/":
            raise_err(
                text=context.text,
                pos=pos,
                condition="transformations are not supported",
                expected=("}", ":"),
                actual=char,
            )

        else:
            raise_err(
                text=context.text,
                pos=pos,
                condition="parsing var",
                expected=("_", "a-z", "A-Z", "0-9", "}", ":"),
                actual=char,
            )
    else:
        raise_err(
            text=context.text,
            pos=pos,
            condition="parsing var",
            expected=("}", ":"),
            actual="",
        )


# ${...}
def _lex_inner_scope(context: ParserCtx) -> TokenStream:
    pos, char = next_char(context)
    assert char == "{"

    pos, char = next_char(context)
    if char in _INT_CHARS:
        # tabstop | placeholder | choice
        pushback_chars(context, (pos, char))
        yield from _lex_tcp(context)
    elif char in _VAR_BEGIN_CHARS:
        # variable
        pushback_chars(context, (pos, char))
        yield from _lex_variable_nested(context)
    else:
        raise_err(
            text=context.text,
            pos=pos,
            condition="after ${",
            expected=("_", "0-9", "A-z"),
            actual=char,
        )


# $...
def _lex_scope(context: ParserCtx) -> TokenStream:
    pos, char = next_char(context)
    assert char == "$"

    pos, char = next_char(context)
    if char == "{":
        pushback_chars(context, (pos, char))
        yield from _lex_inner_scope(context)
    elif char in _INT_CHARS:
        idx_acc = [char]
        # tabstop     ::= '$' int
        for pos, char in context:
            if char in _INT_CHARS:
                idx_acc.append(char)
            else:
                pushback_chars(context, (pos, char))
                break
        yield IntBegin(idx=int("".join(idx_acc)))
        yield End()
    elif char in _VAR_BEGIN_CHARS:
        pushback_chars(context, (pos, char))
        yield from _lex_variable_naked(context)
    else:
        # lone `$`
        pushback_chars(context, (pos, char))
        yield "$"


# any         ::= tabstop | placeholder | choice | variable | text
def _lex(context: ParserCtx) -> TokenStream:
    for pos, char in context:
        if char == "\\":
            pushback_chars(context, (pos, char))
            yield _lex_escape(context, escapable_chars=_ESC_CHARS)
        elif context.stack and char == "}":
            yield End()
            context.stack.pop()
        elif char == "$":
            pushback_chars(context, (pos, char))
            yield from _lex_scope(context)
        elif char == "\n":
            yield _lex_newline(context)
        else:
            yield char


def tokenizer(lines: Sequence[str]) -> Template:
    ctx = context_from(lines)
    tokens = _lex(ctx)
    parsed = token_parser(ctx, stream=tokens)
    return parsed
