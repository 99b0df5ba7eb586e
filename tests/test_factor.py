"""Factorisation and the factor accumulator."""
import pytest

from config import settings, timeout
from edag import evaluate
from errors import AlgorithmError, CancellationError
from expression import Num, expand
from factor import FactorSet, Factorizer, factor, factor_inner, integer_factors
from parser import parse
from rational import Rational


class TestFactorSet:
    def test_repeated_factor_becomes_a_power(self):
        fs = FactorSet()
        fs.add(parse("x+1"))
        fs.add(parse("x+1"))
        assert fs.count() == 1
        assert fs.to_expression() == parse("(x+1)^2")

    def test_numbers_share_one_slot(self):
        fs = FactorSet()
        fs.add(Num(2)).add(Num(3)).add(parse("x"))
        assert fs.count() == 2
        assert fs.to_expression() == parse("6x")

    def test_products_are_split(self):
        fs = FactorSet()
        fs.add(parse("4x*(x-1)"))
        assert sorted(str(f) for f in fs) == ["4", "x", "x-1"]

    def test_minus_one_is_absorbed(self):
        fs = FactorSet()
        fs.add(parse("x-1"))
        fs.add(Num(-1))
        assert fs.to_expression() == parse("1-x")

    def test_power_hook(self):
        fs = FactorSet()
        fs.power = Num(3)
        fs.add(parse("x+2"))
        assert fs.to_expression() == parse("(x+2)^3")

    def test_empty(self):
        assert FactorSet().to_expression() == Num(1)
        assert len(FactorSet()) == 0


class TestFactor:
    @pytest.mark.parametrize("expr,expected", [
        ("x^2-1", "(x-1)(x+1)"),
        ("x^2+2x+1", "(x+1)^2"),
        ("2x+4", "2(x+2)"),
        ("x^2-5x+6", "(x-2)(x-3)"),
        ("x^3-x", "x*(x-1)*(x+1)"),
        ("x^2-y^2", "(x-y)(x+y)"),
        ("x^2*y^2-1", "(x*y-1)*(x*y+1)"),
    ])
    def test_factors(self, expr, expected):
        assert factor(expr) == parse(expected)

    def test_irreducible_is_unchanged(self):
        assert factor("x^2+1") == parse("x^2+1")
        assert factor("x+1") == parse("x+1")

    def test_constants_and_symbols(self):
        assert factor("x") == parse("x")
        assert factor("7") == Num(7)
        assert factor("1") == Num(1)

    def test_integers_split_into_prime_powers(self):
        assert str(factor("12")) == "2^2*3"
        assert str(factor("8")) == "2^3"
        assert evaluate(factor("12")) == 12
        assert evaluate(factor("-90")) == -90
        assert integer_factors(Rational(30)) != Num(30)

    def test_cubic_with_quadratic_cofactor(self):
        f = factor("x^3-1")
        assert f == parse("(x-1)(x^2+x+1)")

    @pytest.mark.parametrize("expr", [
        "x^4-1", "6x^2+x-2", "x^3+3x^2+3x+1", "2x^3-8x", "x^2*y^2-1", "x^4*y^2-4",
    ])
    def test_expand_inverts_factor(self, expr):
        assert expand(factor(expr)) == expand(parse(expr))

    def test_idempotent(self):
        f = factor("x^4-1")
        assert factor(f) == f

    def test_rational_function(self):
        assert factor("(x^2-1)/(x^2+2x+1)") == parse("(x-1)/(x+1)")

    def test_function_atoms(self):
        assert factor("sin(x)^2-1") == parse("(sin(x)-1)(sin(x)+1)")

    def test_depth_budget_gives_up(self):
        with settings.override(max_factor_depth=0):
            assert factor("x^2-1") == parse("x^2-1")

    def test_cancellation_surfaces(self):
        with timeout(-1):
            with pytest.raises(CancellationError):
                factor("x^2-1")

    def test_cancellation_inside_a_step_surfaces(self, monkeypatch):
        def cancelled(self, s, factors, v):
            raise CancellationError("deadline")
        monkeypatch.setattr(Factorizer, "trial_and_error", cancelled)
        with pytest.raises(CancellationError):
            factor("x^2-5x+6")

    def test_failing_step_leaves_input_unchanged(self, monkeypatch):
        def broken(self, s, factors, v):
            raise AlgorithmError("no roots")
        monkeypatch.setattr(Factorizer, "trial_and_error", broken)
        assert factor("x^2-5x+6") == parse("x^2-5x+6")

    def test_split(self):
        c, s = Factorizer().split(parse("2x^2-2"))
        assert c == Num(2)
        assert s == parse("(x-1)(x+1)")

    def test_factor_inner_fills_a_given_set(self):
        fs = FactorSet()
        factor_inner(parse("3x+3"), fs)
        assert Num(3) in list(fs)
