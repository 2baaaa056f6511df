"""
CLI runner for BTC dollar-cost-averaging replays.

Usage:
    python -m btc_dca.runner --amount 100 --frequency monthly --start 2024-01-01

    # Weekly buys with a 0.1 BTC goal, priced from Yahoo Finance
    python -m btc_dca.runner --amount 50 --frequency weekly \
        --start 2023-06-01 --goal 0.1 --source yahoo --details

    # Offline, reproducible (synthetic prices, fixed valuation date)
    python -m btc_dca.runner --amount 100 --start 2024-01-01 \
        --source synthetic --as-of 2025-05-01 --json
"""

import argparse
import json
import logging
import sys
from datetime import date

from btc_dca.config import DCAConfig, FallbackPolicy, PriceSourceKind
from btc_dca.errors import InvalidInput
from btc_dca.prices.fallback import build_price_source
from btc_dca.report import purchases_frame, render_summary, summary_to_dict
from btc_dca.simulation.engine import DCASimulator
from btc_dca.simulation.inputs import parse_inputs

logger = logging.getLogger(__name__)


def _progress_printer(every: int):
    def report(outcome):
        if (outcome.index + 1) % every == 0:
            bought = "bought" if outcome.purchase is not None else "skipped"
            print(f"  ... period {outcome.index + 1} ({outcome.date}) {bought}")
    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Simulate dollar-cost averaging into BTC over historical prices"
    )
    parser.add_argument("--amount", required=True,
                        help="USD invested each period")
    parser.add_argument("--frequency", default="monthly",
                        help="weekly or monthly (default: monthly)")
    parser.add_argument("--start", required=True,
                        help="First purchase date (YYYY-MM-DD)")
    parser.add_argument("--goal", default=None,
                        help="Optional BTC accumulation goal")
    parser.add_argument("--as-of", default=None,
                        help="Valuation date, defaults to today (YYYY-MM-DD)")

    parser.add_argument("--source", choices=[k.value for k in PriceSourceKind],
                        default=PriceSourceKind.COINGECKO.value)
    parser.add_argument("--fallback", choices=[p.value for p in FallbackPolicy],
                        default=FallbackPolicy.SYNTHETIC.value,
                        help="Behaviour when the live source fails (default: synthetic)")
    parser.add_argument("--timeout", type=float, default=10.0,
                        help="Per-request timeout in seconds (default: 10)")
    parser.add_argument("--interval", type=float, default=0.0,
                        help="Pause between API calls in seconds (default: 0)")
    parser.add_argument("--seed", type=int, default=42,
                        help="Synthetic price seed (default: 42, use -1 for random)")

    parser.add_argument("--details", action="store_true",
                        help="Print the per-purchase table")
    parser.add_argument("--json", action="store_true",
                        help="Print the summary as JSON instead of text")
    parser.add_argument("--plot", action="store_true",
                        help="Show the accumulation chart")
    parser.add_argument("--save-plot", default=None,
                        help="Write the accumulation chart to this path")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def run(args=None):
    parsed = build_parser().parse_args(args)

    logging.basicConfig(
        level=logging.INFO if parsed.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        today = date.fromisoformat(parsed.as_of) if parsed.as_of else date.today()
    except ValueError:
        raise InvalidInput("Please enter a valid --as-of date (YYYY-MM-DD).") from None

    if not parsed.timeout > 0:
        raise InvalidInput("--timeout must be a positive number of seconds.")
    if not parsed.interval >= 0:
        raise InvalidInput("--interval must not be negative.")

    params = parse_inputs(
        amount=parsed.amount,
        frequency=parsed.frequency,
        start_date=parsed.start,
        goal=parsed.goal,
        today=today,
    )

    config = DCAConfig(
        source=PriceSourceKind(parsed.source),
        fallback=FallbackPolicy(parsed.fallback),
        timeout=parsed.timeout,
        request_interval=parsed.interval,
        seed=parsed.seed if parsed.seed >= 0 else None,
    )
    source = build_price_source(config, today=today)

    if not parsed.json:
        print(f"\nReplaying {params.frequency.value} buys of ${params.periodic_amount:,.2f} "
              f"from {params.start_date} to {today} ({config.source.value})...")

    simulator = DCASimulator(source, today=today)
    summary = simulator.run(
        params,
        on_progress=_progress_printer(every=25) if parsed.verbose and not parsed.json else None,
    )

    if parsed.json:
        print(json.dumps(summary_to_dict(summary), indent=2))
    else:
        print(render_summary(summary))
        if parsed.details:
            print(purchases_frame(summary).to_string(index=False))

    if parsed.plot or parsed.save_plot:
        from btc_dca.simulation.plotting import plot_accumulation
        plot_accumulation(summary, show=parsed.plot, save_path=parsed.save_plot)

    return summary


def main():
    try:
        run()
    except InvalidInput as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
