"""Tokenizer, shunting-yard and equation splitting."""
import pytest

from errors import ParseError
from expression import Fn, Num, Sym, mul, negate, power
from parser import expr_tokenize, parse, parse_equation


class TestTokenizer:
    def test_implicit_multiplication(self):
        kinds = [t.kind for t in expr_tokenize("2x+3(x)")]
        assert kinds == ["NUM", "*", "ID", "+", "NUM", "*", "(", "ID", ")"]

    def test_function_names(self):
        toks = expr_tokenize("sin (x)")
        assert toks[0].kind == "FUNC"
        assert toks[0].lex == "sin"

    def test_unary_minus(self):
        kinds = [t.kind for t in expr_tokenize("-x*-2")]
        assert kinds == ["NEG", "ID", "*", "NEG", "NUM"]

    def test_bad_character(self):
        with pytest.raises(ParseError):
            expr_tokenize("x $ y")


class TestParse:
    def test_precedence(self):
        assert parse("-x^2") == negate(power(Sym("x"), Num(2)))
        assert parse("2^3^2") == Num(512)
        assert parse("2*3+4") == Num(10)
        assert parse("2*(3+4)") == Num(14)

    def test_implicit_products(self):
        x = Sym("x")
        assert parse("2x") == mul(Num(2), x)
        assert parse("(x+1)(x-1)") == mul(parse("x+1"), parse("x-1"))
        assert parse("x y") == mul(x, Sym("y"))

    def test_functions(self):
        e = parse("log(x, 2)")
        assert isinstance(e, Fn)
        assert e.name == "log"
        assert e.args == (Sym("x"), Num(2))
        assert parse("sin(0)") == Num(0)
        assert parse("exp(x)") == power(Sym("e"), Sym("x"))

    def test_decimals(self):
        assert parse("0.25") == parse("1/4")
        assert parse(".5x") == parse("x/2")

    @pytest.mark.parametrize("text", ["", "(x+1", "x+1)", "x+", "f(1,)", "1,2"])
    def test_malformed(self, text):
        with pytest.raises(ParseError):
            parse(text)


class TestParseEquation:
    def test_split(self):
        lhs, rhs = parse_equation("x+1=3")
        assert lhs == parse("x+1")
        assert rhs == Num(3)

    def test_bare_expression(self):
        assert parse_equation("x^2-1") == (parse("x^2-1"), Num(0))

    def test_two_equals(self):
        with pytest.raises(ParseError):
            parse_equation("x=1=2")
