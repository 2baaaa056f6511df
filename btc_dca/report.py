"""Text, dict and table renderings of a SimulationSummary."""

import pandas as pd

from btc_dca.simulation.engine import SimulationSummary


def format_usd(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_btc(amount: float) -> str:
    return f"{amount:.8f}"


def format_pct(value: float) -> str:
    return f"{value:+.2f}%"


def goal_message(summary: SimulationSummary) -> str | None:
    goal = summary.goal
    if goal is None:
        return None
    if goal.achieved:
        return "Congratulations! You've reached your Bitcoin goal!"
    return (
        f"You need {format_btc(goal.remaining_btc)} BTC more to hit your goal.\n"
        f"At this rate, it would take approximately {goal.periods_remaining} more "
        f"{summary.frequency.unit}s to reach your target."
    )


def render_summary(summary: SimulationSummary) -> str:
    avg = (
        format_usd(summary.average_price)
        if summary.average_price is not None else "n/a"
    )
    lines = [
        "=" * 60,
        f"  BTC DCA  |  {summary.frequency.value}  |  "
        f"{summary.start_date.isoformat()} to {summary.end_date.isoformat()}",
        "=" * 60,
        f"  Total Invested:   {format_usd(summary.total_invested):>20}",
        f"  BTC Accumulated:  {format_btc(summary.btc_accumulated):>16} BTC",
        f"  Current Value:    {format_usd(summary.current_value):>20}",
        f"  ROI:              {format_pct(summary.roi):>20}",
        f"  Average Price:    {avg:>20}",
        "  " + "-" * 56,
        f"  You made {summary.investment_count} {summary.frequency.value} investments",
    ]
    if summary.skipped_count:
        lines.append(f"  {summary.skipped_count} periods skipped (no price data)")
    lines.append(f"  Current BTC Price: {format_usd(summary.current_price)}")

    message = goal_message(summary)
    if message is not None:
        lines.append("  " + "-" * 56)
        lines.append(f"  Goal: {format_btc(summary.goal.goal_btc)} BTC")
        lines.extend(f"  {line}" for line in message.splitlines())

    lines.append("=" * 60)
    return "\n".join(lines)


def summary_to_dict(summary: SimulationSummary) -> dict:
    goal = summary.goal
    return {
        "total_invested": summary.total_invested,
        "btc_accumulated": summary.btc_accumulated,
        "current_value": summary.current_value,
        "current_price": summary.current_price,
        "average_price": summary.average_price,
        "roi": summary.roi,
        "investment_count": summary.investment_count,
        "period_count": summary.period_count,
        "frequency": summary.frequency.value,
        "start_date": summary.start_date.isoformat(),
        "end_date": summary.end_date.isoformat(),
        "goal": None if goal is None else {
            "goal_btc": goal.goal_btc,
            "remaining_btc": goal.remaining_btc,
            "periods_remaining": goal.periods_remaining,
            "achieved": goal.achieved,
        },
    }


PURCHASE_COLUMNS = [
    "date", "price", "usd_amount", "btc_bought", "btc_total", "invested_total", "value",
]


def purchases_frame(summary: SimulationSummary) -> pd.DataFrame:
    """One row per purchase; ``value`` is the running position at that day's price."""
    if not summary.purchases:
        return pd.DataFrame(columns=PURCHASE_COLUMNS)

    df = pd.DataFrame([
        {
            "date": p.date,
            "price": p.price,
            "usd_amount": p.usd_amount,
            "btc_bought": p.btc_bought,
            "btc_total": p.btc_total,
            "invested_total": p.invested_total,
        }
        for p in summary.purchases
    ])
    df["value"] = df["btc_total"] * df["price"]
    return df[PURCHASE_COLUMNS]
