#!/usr/bin/env python3
import argparse
import logging

from cas import CAS
from errors import CasError

OPERATIONS = ("factor", "simplify", "expand", "roots", "solve", "partial_fractions", "degree", "coeffs")
# operations that take the variable as a second argument
WITH_VAR = ("solve", "partial_fractions", "degree", "coeffs")


def main():
    ap = argparse.ArgumentParser(description="Factor, simplify and solve polynomial expressions.")
    ap.add_argument("operation", choices=OPERATIONS)
    ap.add_argument("expression")
    ap.add_argument("var", nargs="?", default=None)
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    cas = CAS()
    op = getattr(cas, args.operation)
    try:
        result = op(args.expression, args.var) if args.operation in WITH_VAR else op(args.expression)
    except CasError as e:
        ap.exit(1, f"error: {e}\n")
    if isinstance(result, (list, tuple)):
        for x in result:
            print(x)
    else:
        print(result)


if __name__ == "__main__":
    main()
