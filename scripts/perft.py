#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import time
import os
import sys

# Allow running this script directly via `python scripts/perft.py`
# by adding the repo's `src/` to sys.path.
SRC_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)

from variant_chess.engine.perft import divide, perft
from variant_chess.engine.rules import RuleSet
from variant_chess.engine.setup import create_initial_state


def main() -> None:
    parser = argparse.ArgumentParser(description="Run perft from the initial position of a rule set")
    parser.add_argument(
        "--rules", type=str, default="standard", help="Comma-separated rule names (default: standard)"
    )
    parser.add_argument("--seed", type=str, default="perft", help="Game seed (default: perft)")
    parser.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    parser.add_argument("--divide", action="store_true", help="Print per-move counts")
    args = parser.parse_args()

    rules = RuleSet.parse(n.strip() for n in args.rules.split(",") if n.strip())
    state = create_initial_state(rules, args.seed)
    start = time.perf_counter()
    if args.divide:
        counts = divide(state, rules, args.depth)
        for move, count in sorted(counts.items()):
            print(f"{move}: {count}")
        nodes = sum(counts.values())
    else:
        nodes = perft(state, rules, args.depth)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")


if __name__ == "__main__":
    main()
