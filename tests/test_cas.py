"""The public facade and the command line."""
import sys

import pytest

import cas
import main
from cas import CAS
from config import timeout
from errors import CancellationError
from expression import Num, Sym, ZERO
from parser import parse


class TestFacade:
    def test_parse(self):
        assert CAS().parse("2x+1") == parse("2*x+1")

    def test_factor(self):
        assert cas.factor("x^2-1") == parse("(x-1)*(x+1)")

    def test_expand(self):
        assert cas.expand("(x+1)^2") == parse("x^2+2x+1")

    def test_gcd_lcm(self):
        assert cas.gcd("x^2-1", "x-1") == parse("x-1")
        assert cas.lcm("x^2-1", "x-1") == parse("x^2-1")

    def test_div(self):
        assert cas.div("x^2-1", "x-1") == [parse("x+1"), ZERO]

    def test_divide(self):
        assert cas.divide("x^2+1", "x-1") == parse("x+1+2/(x-1)")

    def test_degree(self):
        assert cas.degree("x^3+x", "x") == Num(3)

    def test_solve(self):
        assert cas.solve("x-5", "x") == [Num(5)]

    def test_solve_system(self):
        assert cas.solve(["x+y=3", "x-y=-1"]) == {"x": Num(1), "y": Num(2)}

    def test_partial_fractions(self):
        assert cas.partial_fractions("1/(x^2-1)", "x") == parse("1/(2(x-1))-1/(2(x+1))")

    def test_sq_complete(self):
        out = cas.sq_complete("x^2+2x+5", "x")
        assert out["a"] == parse("x+1")
        assert out["c"] == Num(4)

    def test_line(self):
        assert cas.line([0, 1], [1, 3]) == parse("2x+1")


class TestSimplify:
    def test_cancels_common_factor(self):
        assert cas.simplify("(x^2-1)/(x-1)") == parse("x+1")

    def test_symbol_unchanged(self):
        assert cas.simplify("x") == Sym("x")

    def test_number_unchanged(self):
        assert cas.simplify("6") == Num(6)


class TestCancellation:
    def test_expired_deadline_propagates(self):
        with timeout(-1):
            with pytest.raises(CancellationError):
                cas.factor("x^2-1")

    def test_simplify_does_not_swallow_cancellation(self):
        with timeout(-1):
            with pytest.raises(CancellationError):
                cas.simplify("(x^2-1)/(x-1)")


class TestMain:
    def run(self, monkeypatch, capsys, *argv):
        monkeypatch.setattr(sys, "argv", ["main.py", *argv])
        main.main()
        return capsys.readouterr().out.split()

    def test_factor(self, monkeypatch, capsys):
        assert self.run(monkeypatch, capsys, "factor", "x^2-1") == [str(parse("(x-1)*(x+1)"))]

    def test_solve_prints_one_per_line(self, monkeypatch, capsys):
        assert self.run(monkeypatch, capsys, "solve", "x-5", "x") == ["5"]

    def test_unknown_operation(self, monkeypatch, capsys):
        with pytest.raises(SystemExit):
            self.run(monkeypatch, capsys, "integrate", "x")
