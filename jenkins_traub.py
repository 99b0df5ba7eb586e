"""
Jenkins-Traub Module

Numeric roots of real polynomials with the three stage RPOLY algorithm:
no-shift K polynomials, fixed quadratic shifts rotated by 94 degrees, then
variable-shift linear or quadratic iteration depending on which sequence
converges faster.

``numeric_roots`` returns complex numbers; ``proots`` returns expressions
with the decimal rounding used throughout the solver.
"""
from __future__ import annotations
import logging
import math
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from config import check_timeout, settings
from errors import NotPolynomialError, ValueLimitExceededError
from expression import Expr, I, Num, ZERO, add, mul, to_expr, variables
from polynomial import Polynomial
from rational import Rational

log = logging.getLogger(__name__)

_FLT = np.finfo(np.float64)
DBL_MAX = float(_FLT.max)
DBL_MIN = float(np.nextafter(0.0, 1.0))


def _machine_epsilon() -> float:
    eps, aa = 1.0, 1.0
    while 1.0 + aa > 1.0:
        eps = aa
        aa /= 2
    return eps


def quad_sd(nn: int, u: float, v: float, p: Sequence[float], q: List[float]) -> Tuple[float, float]:
    """Divide ``p`` by ``1 + u*z + v*z^2``; the quotient goes to ``q``, returns the remainder (a, b)."""
    b = q[0] = p[0]
    a = q[1] = -(u * b) + p[1]
    for i in range(2, nn):
        q[i] = -(u * a + v * b) + p[i]
        b, a = a, q[i]
    return a, b


def quad(a: float, b1: float, c: float) -> Tuple[float, float, float, float]:
    """Zeros of ``a*z^2 + b1*z + c`` as (sr, si, lr, li), guarded against overflow."""
    sr = si = lr = li = 0.0
    if a == 0:
        if b1 != 0:
            sr = -(c / b1)
        return sr, si, lr, li
    if c == 0:
        return sr, si, -(b1 / a), li
    b = b1 / 2.0
    if abs(b) < abs(c):
        e = a if c >= 0 else -a
        e = -e + b * (b / abs(c))
        d = math.sqrt(abs(e)) * math.sqrt(abs(c))
    else:
        e = -((a / b) * (c / b)) + 1.0
        d = math.sqrt(abs(e)) * abs(b)
    if e >= 0:
        d = -d if b >= 0 else d
        lr = (-b + d) / a
        if lr != 0:
            sr = c / lr / a
    else:
        lr = sr = -(b / a)
        si = abs(d / a)
        li = -si
    return sr, si, lr, li


class RPoly:
    """Working state of one RPOLY run.

    ``p`` holds the coefficients highest power first and is deflated in
    place as zeros are found.
    """

    def __init__(self, coeffs: Sequence[float]) -> None:
        self.eps = _machine_epsilon()
        self.p = [float(c) for c in coeffs]
        size = len(self.p)
        self.k = [0.0] * size
        self.qp = [0.0] * size
        self.qk = [0.0] * size
        self.n = size - 1
        self.nn = size
        # scalars shared by calc_sc, next_k and newest
        self.a1 = self.a3 = self.a7 = 0.0
        self.c = self.d = self.e = self.f = self.g = self.h = 0.0
        # zeros found by the last variable-shift stage
        self.nz = 0
        self.szr = self.szi = self.lzr = self.lzi = 0.0

    def calc_sc(self, a: float, b: float, u: float, v: float) -> int:
        n, k, eps = self.n, self.k, self.eps
        self.c, self.d = quad_sd(n, u, v, k, self.qk)
        c, d = self.c, self.d
        if abs(c) <= 100.0 * eps * abs(k[n - 1]) and abs(d) <= 100.0 * eps * abs(k[n - 2]):
            # the quadratic is almost a factor of K
            return 3
        self.h = v * b
        if abs(d) >= abs(c):
            self.e = a / d
            self.f = c / d
            self.g = u * b
            self.a3 = self.e * (self.g + a) + self.h * (b / d)
            self.a1 = -a + self.f * b
            self.a7 = self.h + (self.f + u) * a
            return 2
        self.e = a / c
        self.f = d / c
        self.g = self.e * u
        self.a3 = self.e * a + (self.g + self.h / c) * b
        self.a1 = -(a * (d / c)) + b
        self.a7 = self.g * d + self.h * self.f + a
        return 1

    def next_k(self, tflag: int, a: float, b: float) -> None:
        n, k, qk, qp = self.n, self.k, self.qk, self.qp
        if tflag == 3:
            k[0] = k[1] = 0.0
            for i in range(2, n):
                k[i] = qk[i - 2]
            return
        temp = b if tflag == 1 else a
        if abs(self.a1) > 10.0 * self.eps * abs(temp):
            self.a7 /= self.a1
            self.a3 /= self.a1
            k[0] = qp[0]
            k[1] = -(qp[0] * self.a7) + qp[1]
            for i in range(2, n):
                k[i] = -(qp[i - 1] * self.a7) + qk[i - 2] * self.a3 + qp[i]
        else:
            k[0] = 0.0
            k[1] = -(qp[0] * self.a7)
            for i in range(2, n):
                k[i] = -(qp[i - 1] * self.a7) + qk[i - 2] * self.a3

    def newest(self, tflag: int, a: float, b: float, u: float, v: float) -> Tuple[float, float]:
        """New estimate (uu, vv) of the quadratic; (0, 0) when none is available."""
        if tflag == 3:
            return 0.0, 0.0
        n, k, p = self.n, self.k, self.p
        if tflag != 2:
            a4 = a + u * b + self.h * self.f
            a5 = self.c + (u + v * self.f) * self.d
        else:
            a4 = (a + self.g) * self.f + self.h
            a5 = (self.f + u) * self.c + v * self.d
        b1 = -(k[n - 1] / p[n])
        b2 = -(k[n - 2] + b1 * p[n - 1]) / p[n]
        c1 = v * b2 * self.a1
        c2 = b1 * self.a7
        c3 = b1 * b1 * self.a3
        c4 = -(c2 + c3) + c1
        temp = -c4 + a5 + b1 * a4
        if temp == 0.0:
            return 0.0, 0.0
        uu = -((u * (c3 + c2) + v * (b1 * self.a1 + b2 * self.a7)) / temp) + u
        vv = v * (1.0 + c4 / temp)
        return uu, vv

    def quad_it(self, uu: float, vv: float) -> None:
        """Variable-shift iteration for a quadratic factor."""
        n, nn, p, qp, eps = self.n, self.nn, self.p, self.qp, self.eps
        self.nz = 0
        u, v = uu, vv
        j = 0
        tried = False
        relstp = omp = 0.0
        while True:
            sr, si, lr, li = quad(1.0, u, v)
            self.szr, self.szi, self.lzr, self.lzi = sr, si, lr, li
            # real zeros that are not close to a multiple pair
            if abs(abs(sr) - abs(lr)) > 0.01 * abs(lr):
                break
            a, b = quad_sd(nn, u, v, p, qp)
            mp = abs(-(sr * b) + a) + abs(si * b)
            zm = math.sqrt(abs(v))
            ee = 2.0 * abs(qp[0])
            t = -(sr * b)
            for i in range(1, n):
                ee = ee * zm + abs(qp[i])
            ee = ee * zm + abs(t + a)
            ee = (9.0 * ee + 2.0 * abs(t) - 7.0 * (abs(a + t) + zm * abs(b))) * eps
            if mp <= 20.0 * ee:
                self.nz = 2
                break
            j += 1
            if j > 20:
                break
            if j >= 2 and relstp <= 0.01 and mp >= omp and not tried:
                # a cluster stalls convergence: take five fixed steps near it
                relstp = math.sqrt(eps) if relstp < eps else math.sqrt(relstp)
                u -= u * relstp
                v += v * relstp
                a, b = quad_sd(nn, u, v, p, qp)
                for _ in range(5):
                    tflag = self.calc_sc(a, b, u, v)
                    self.next_k(tflag, a, b)
                tried = True
                j = 0
            omp = mp
            tflag = self.calc_sc(a, b, u, v)
            self.next_k(tflag, a, b)
            tflag = self.calc_sc(a, b, u, v)
            ui, vi = self.newest(tflag, a, b, u, v)
            if vi == 0:
                break
            relstp = abs((-v + vi) / vi)
            u, v = ui, vi

    def real_it(self, s: float) -> Tuple[int, float]:
        """Variable-shift iteration for a real zero.

        Returns ``(flag, s)``; flag 1 means a pair of zeros near the real axis
        was met and ``s`` is the point to start a quadratic iteration from.
        """
        n, nn, p, k, qp, qk, eps = self.n, self.nn, self.p, self.k, self.qp, self.qk, self.eps
        nm1 = n - 1
        self.nz = 0
        start = s
        j = 0
        t = omp = 0.0
        while True:
            pv = qp[0] = p[0]
            for i in range(1, nn):
                pv = pv * s + p[i]
                qp[i] = pv
            mp = abs(pv)
            ms = abs(s)
            ee = 0.5 * abs(qp[0])
            for i in range(1, nn):
                ee = ee * ms + abs(qp[i])
            if mp <= 20.0 * eps * (2.0 * ee - mp):
                self.nz = 1
                self.szr, self.szi = s, 0.0
                return 0, start
            j += 1
            if j > 10:
                return 0, start
            if j >= 2 and abs(t) <= 0.001 * abs(-t + s) and mp > omp:
                return 1, s
            omp = mp
            kv = qk[0] = k[0]
            for i in range(1, n):
                kv = kv * s + k[i]
                qk[i] = kv
            if abs(kv) > abs(k[nm1]) * 10.0 * eps:
                t = -(pv / kv)
                k[0] = qp[0]
                for i in range(1, n):
                    k[i] = t * qk[i - 1] + qp[i]
            else:
                k[0] = 0.0
                for i in range(1, n):
                    k[i] = qk[i - 1]
            kv = k[0]
            for i in range(1, n):
                kv = kv * s + k[i]
            t = -(pv / kv) if abs(kv) > abs(k[nm1]) * 10.0 * eps else 0.0
            s += t

    def fxshfr(self, l2: int, sr: float, v: float, u: float) -> None:
        """Up to ``l2`` fixed-shift steps, then a variable-shift stage."""
        n, nn, p, qp, k = self.n, self.nn, self.p, self.qp, self.k
        self.nz = 0
        betav = betas = 0.25
        oss, ovv = sr, v
        otv = ots = 0.0
        iflag = 1
        a, b = quad_sd(nn, u, v, p, qp)
        self.a1 = self.a3 = self.a7 = 0.0
        self.c = self.d = self.e = self.f = self.g = self.h = 0.0
        tflag = self.calc_sc(a, b, u, v)
        for j in range(l2):
            fflag = True
            self.next_k(tflag, a, b)
            tflag = self.calc_sc(a, b, u, v)
            ui, vi = self.newest(tflag, a, b, u, v)
            vv = vi
            ss = -(p[n] / k[n - 1]) if k[n - 1] != 0.0 else 0.0
            ts = tv = 1.0
            if j != 0 and tflag != 3:
                tv = abs((vv - ovv) / vv) if vv != 0.0 else tv
                ts = abs((ss - oss) / ss) if ss != 0.0 else ts
                tvv = tv * otv if tv < otv else 1.0
                tss = ts * ots if ts < ots else 1.0
                vpass = tvv < betav
                spass = tss < betas
                if spass or vpass:
                    svk = k[:n]
                    s = ss
                    stry = vtry = False
                    while True:
                        skip_quad = False
                        if fflag:
                            fflag = False
                            skip_quad = spass and (not vpass or tss < tvv)
                        if not skip_quad:
                            self.quad_it(ui, vi)
                            if self.nz > 0:
                                return
                            iflag = 1
                            vtry = True
                            betav *= 0.25
                            if stry or not spass:
                                iflag = 0
                            else:
                                k[:n] = svk
                        if iflag != 0:
                            iflag, s = self.real_it(s)
                            if self.nz > 0:
                                return
                            stry = True
                            betas *= 0.25
                            if iflag != 0:
                                # almost double real zero: try the quadratic iteration
                                ui = -(s + s)
                                vi = s * s
                                continue
                        k[:n] = svk
                        if not vpass or vtry:
                            break
                    a, b = quad_sd(nn, u, v, p, qp)
                    tflag = self.calc_sc(a, b, u, v)
            ovv, oss, otv, ots = vv, ss, tv, ts

    def solve(self) -> List[complex]:
        zeros: List[complex] = []
        # zeros at the origin
        while len(self.p) > 1 and self.p[-1] == 0:
            self.p.pop()
            zeros.append(0j)
        degree = len(self.p) - 1
        lo = DBL_MIN / self.eps
        cosr = math.cos(math.radians(94.0))
        sinr = math.sin(math.radians(94.0))
        xx = math.sqrt(0.5)
        yy = -xx
        while degree >= 1:
            check_timeout()
            p = self.p
            self.n, self.nn = degree, degree + 1
            nn = degree + 1
            if degree <= 2:
                if degree < 2:
                    zeros.append(complex(-(p[1] / p[0]), 0.0))
                else:
                    sr, si, lr, li = quad(p[0], p[1], p[2])
                    zeros.append(complex(sr, si))
                    zeros.append(complex(lr, li))
                break

            moduli_max = 0.0
            moduli_min = DBL_MAX
            for c in p[:nn]:
                x = abs(c)
                if x > moduli_max:
                    moduli_max = x
                if x != 0 and x < moduli_min:
                    moduli_min = x
            # scale by a power of two against overflow and undetected underflow
            sc = lo / moduli_min
            if (sc <= 1.0 and moduli_max >= 10) or (sc > 1.0 and DBL_MAX / sc >= moduli_max):
                sc = DBL_MIN if sc == 0 else sc
                factor = 2.0 ** math.floor(math.log(sc) / math.log(2) + 0.5)
                if factor != 1.0:
                    for i in range(nn):
                        p[i] *= factor

            # lower bound on the moduli of the zeros
            pt = [abs(c) for c in p[:nn]]
            pt[degree] = -pt[degree]
            nm1 = degree - 1
            x = math.exp((math.log(-pt[degree]) - math.log(pt[0])) / degree)
            if pt[nm1] != 0:
                xm = -pt[degree] / pt[nm1]
                x = xm if xm < x else x
            xm = x
            while True:
                x = xm
                xm = 0.1 * x
                ff = pt[0]
                for i in range(1, nn):
                    ff = ff * xm + pt[i]
                if ff <= 0:
                    break
            while True:
                df = ff = pt[0]
                for i in range(1, degree):
                    ff = x * ff + pt[i]
                    df = x * df + ff
                ff = x * ff + pt[degree]
                dx = ff / df
                x -= dx
                if abs(dx / x) <= 0.005:
                    break
            bnd = x

            # derivative as the first K polynomial, then five unshifted steps
            k = self.k
            for i in range(1, degree):
                k[i] = ((degree - i) * p[i]) / degree
            k[0] = p[0]
            aa, bb = p[degree], p[nm1]
            zerok = k[nm1] == 0
            for _ in range(5):
                cc = k[nm1]
                if zerok:
                    for i in range(nm1):
                        j = nm1 - i
                        k[j] = k[j - 1]
                    k[0] = 0.0
                    zerok = k[nm1] == 0
                else:
                    t = -aa / cc
                    for i in range(nm1):
                        j = nm1 - i
                        k[j] = t * k[j - 1] + p[j]
                    k[0] = p[0]
                    zerok = abs(k[nm1]) <= abs(bb) * self.eps * 10.0
            saved = k[:degree]

            for stage in range(1, 21):
                # shift to a point of modulus bnd rotated 94 degrees from the last one
                xxx = -(sinr * yy) + cosr * xx
                yy = sinr * xx + cosr * yy
                xx = xxx
                sr = bnd * xx
                u = -(2.0 * sr)
                self.fxshfr(20 * stage, sr, bnd, u)
                if self.nz != 0:
                    zeros.append(complex(self.szr, self.szi))
                    if self.nz != 1:
                        zeros.append(complex(self.lzr, self.lzi))
                    nn -= self.nz
                    degree = nn - 1
                    self.p = self.qp[:nn]
                    break
                k[:degree] = saved
            else:
                log.debug("rpoly: no convergence after 20 shifts, %d zeros left", degree)
                break
        return zeros


def _poly_of(symbol: Union[Expr, Polynomial, str, Sequence]) -> Polynomial:
    if isinstance(symbol, Polynomial):
        return symbol.clone().trim()
    if isinstance(symbol, (list, tuple)):
        # [[coeff, power], ...] pairs
        top = max(int(pw) for _, pw in symbol)
        coeffs: List[Rational] = [Rational(0)] * (top + 1)
        for c, pw in symbol:
            coeffs[int(pw)] = coeffs[int(pw)] + Rational(c)
        return Polynomial(coeffs).trim()
    expr = to_expr(symbol)
    if len(variables(expr)) > 1:
        raise NotPolynomialError(f"Cannot calculate roots. {expr} must be a polynomial!")
    return Polynomial.from_expression(expr).trim()


def numeric_roots(symbol: Union[Expr, Polynomial, str, Sequence]) -> List[complex]:
    """Numeric roots as complex numbers, zero roots of a monomial factor first."""
    poly = _poly_of(symbol)
    degree = poly.deg()
    if degree > settings.max_degree:
        raise ValueLimitExceededError(
            f"This utility accepts polynomials of degree up to {settings.max_degree}."
        )
    if degree < 1:
        return []
    coeffs = [float(c) for c in reversed(poly.coeffs)]
    return RPoly(coeffs).solve()


def _js_number(x: float) -> str:
    if x == int(x) and abs(x) < 1e21:
        return str(int(x))
    return repr(x)


def _to_root(z: complex, decp: int) -> Expr:
    img = round(z.imag, decp + 8)
    real = round(z.real, decp + 8)
    # keep the rounded real part only when rounding made it short
    if not decp - len(_js_number(real)) > 2:
        real = z.real
    parts: List[Expr] = []
    if real != 0:
        parts.append(Num(Rational(_js_number(real))))
    if img != 0:
        coeff = Num(Rational(_js_number(abs(img)))) if abs(img) != 1 else None
        term = I if coeff is None else mul(coeff, I)
        parts.append(term if img > 0 else mul(Num(-1), term))
    return add(*parts) if parts else ZERO


def proots(symbol: Union[Expr, Polynomial, str, Sequence], decp: Optional[int] = None) -> List[Expr]:
    """Roots of a univariate polynomial as expressions.

    A monomial factor contributes one zero root, listed last. Real and
    imaginary parts are rounded to ``decp + 8`` places.
    """
    decp = decp or settings.decp
    poly = _poly_of(symbol)
    known: List[Expr] = []
    lowest, _ = next(((i, c) for i, c in enumerate(poly.coeffs) if not c.is_zero()), (0, None))
    if lowest > 0:
        if poly.deg() == lowest:
            return [ZERO]
        poly = Polynomial(poly.coeffs[lowest:], poly.variable)
        known.append(ZERO)
    return [_to_root(z, decp) for z in numeric_roots(poly)] + known
