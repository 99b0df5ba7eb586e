from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple

from errors import ParseError
from expression import Expr, Num, Sym, add, divide, fn, mul, negate, power
from rational import Rational

# =====================
# Tokenizer
# =====================


@dataclass
class ExprTok:
    kind: str
    lex: str = ""
    num: Optional[Rational] = None
    argc: int = 0


_OPERAND_END = ("ID", "NUM", ")")


def expr_tokenize(expr: str) -> List[ExprTok]:
    s = expr
    i, n = 0, len(s)
    toks: List[ExprTok] = []
    prev: Optional[ExprTok] = None

    def push(t: ExprTok) -> None:
        nonlocal prev
        # implicit multiplication: 2x, 2(x+1), (x+1)(x-1), x y
        if t.kind in ("NUM", "ID", "FUNC", "(") and prev and prev.kind in _OPERAND_END:
            toks.append(ExprTok("*", "*"))
        toks.append(t)
        prev = t

    while i < n:
        c = s[i]
        if c.isspace():
            i += 1
            continue
        if c in "+-*/^(),":
            k = c
            i += 1
            if k in "+-" and (prev is None or prev.kind in ("+", "-", "*", "/", "^", "(", ",", "NEG")):
                if k == "+":
                    continue
                k = "NEG"
            push(ExprTok(k, c))
            continue
        if c.isdigit() or (c == "." and i + 1 < n and s[i + 1].isdigit()):
            j = i
            has_dot = False
            while j < n and (s[j].isdigit() or (s[j] == "." and not has_dot)):
                has_dot = has_dot or s[j] == "."
                j += 1
            push(ExprTok("NUM", s[i:j], Rational(s[i:j])))
            i = j
            continue
        if c.isalpha() or c == "_":
            j = i + 1
            while j < n and (s[j].isalnum() or s[j] == "_"):
                j += 1
            name = s[i:j]
            k = j
            while k < n and s[k].isspace():
                k += 1
            is_func = k < n and s[k] == "("
            push(ExprTok("FUNC" if is_func else "ID", name))
            i = j
            continue
        raise ParseError(f"Unexpected char {c!r} in {expr!r}")
    return toks


# =====================
# Shunting-yard
# =====================

_expr_prec = {"^": 5, "NEG": 4, "*": 3, "/": 3, "+": 2, "-": 2}
_expr_right_assoc = {"^"}


def expr_to_rpn(toks: List[ExprTok]) -> List[ExprTok]:
    out: List[ExprTok] = []
    op: List[ExprTok] = []
    # one entry per open paren: the function token it belongs to, or None
    calls: List[Optional[ExprTok]] = []
    for idx, t in enumerate(toks):
        if t.kind in ("NUM", "ID"):
            out.append(t)
        elif t.kind in ("FUNC", "NEG"):
            # prefix operators never pop
            op.append(t)
        elif t.kind == ",":
            while op and op[-1].kind != "(":
                out.append(op.pop())
            if not calls or calls[-1] is None:
                raise ParseError("Comma outside of a function call")
            calls[-1].argc += 1
        elif t.kind in _expr_prec:
            while (
                op
                and op[-1].kind not in ("(", "FUNC")
                and (
                    _expr_prec[t.kind] < _expr_prec[op[-1].kind]
                    or (t.kind not in _expr_right_assoc and _expr_prec[t.kind] == _expr_prec[op[-1].kind])
                )
            ):
                out.append(op.pop())
            op.append(t)
        elif t.kind == "(":
            if op and op[-1].kind == "FUNC" and idx > 0 and toks[idx - 1] is op[-1]:
                f = op[-1]
                f.argc = 0 if idx + 1 < len(toks) and toks[idx + 1].kind == ")" else 1
                calls.append(f)
            else:
                calls.append(None)
            op.append(t)
        elif t.kind == ")":
            while op and op[-1].kind != "(":
                out.append(op.pop())
            if not op:
                raise ParseError("Mismatched parens")
            op.pop()
            calls.pop()
            if op and op[-1].kind == "FUNC":
                out.append(op.pop())
        else:
            raise ParseError("Unknown token kind")
    while op:
        if op[-1].kind in ("(", "FUNC"):
            raise ParseError("Mismatched parens")
        out.append(op.pop())
    return out


def rpn_to_expr(rpn: List[ExprTok]) -> Expr:
    stack: List[Expr] = []
    for t in rpn:
        if t.kind == "NUM":
            stack.append(Num(t.num if t.num is not None else Rational(0, 1)))
        elif t.kind == "ID":
            stack.append(Sym(t.lex))
        elif t.kind == "NEG":
            if not stack:
                raise ParseError("neg missing operand")
            stack.append(negate(stack.pop()))
        elif t.kind in ("+", "-", "*", "/", "^"):
            if len(stack) < 2:
                raise ParseError("binary op missing operands")
            b = stack.pop()
            a = stack.pop()
            if t.kind == "+":
                stack.append(add(a, b))
            elif t.kind == "-":
                stack.append(add(a, negate(b)))
            elif t.kind == "*":
                stack.append(mul(a, b))
            elif t.kind == "/":
                stack.append(divide(a, b))
            else:
                stack.append(power(a, b))
        elif t.kind == "FUNC":
            if len(stack) < t.argc:
                raise ParseError(f"{t.lex} missing argument")
            args = stack[len(stack) - t.argc:]
            del stack[len(stack) - t.argc:]
            stack.append(fn(t.lex, *args))
        else:
            raise ParseError("Unknown RPN token")
    if len(stack) != 1:
        raise ParseError("Invalid expression")
    return stack[-1]


def parse(expr: str) -> Expr:
    toks = expr_tokenize(expr)
    if not toks:
        raise ParseError("Empty expression")
    return rpn_to_expr(expr_to_rpn(toks))


def parse_equation(text: str) -> Tuple[Expr, Expr]:
    """Split ``lhs = rhs`` and parse both sides; a bare expression means ``= 0``."""
    parts = text.split("=")
    if len(parts) == 1:
        return parse(parts[0]), Num(0)
    if len(parts) != 2:
        raise ParseError(f"Expected a single '=' in {text!r}")
    return parse(parts[0]), parse(parts[1])
