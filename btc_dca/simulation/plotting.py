"""DCA visualization: capital vs position value, and BTC stack vs goal."""

import matplotlib.pyplot as plt
import matplotlib.ticker as mticker
import matplotlib.dates as mdates

from btc_dca.simulation.engine import SimulationSummary


def plot_accumulation(summary: SimulationSummary, show: bool = True,
                      save_path: str | None = None):
    """
    Two-panel plot:
      1. Invested capital vs position value at each purchase's price,
         closing with the valuation at the current price
      2. BTC accumulated (step), with the goal line when a goal is set
    """
    plt.close("all")

    fig, (ax_val, ax_btc) = plt.subplots(
        2, 1, figsize=(12, 8), height_ratios=[3, 2], sharex=True,
    )

    title_parts = [
        f"BTC {summary.frequency.value.capitalize()} DCA",
        f"{summary.investment_count} buys",
        f"ROI {summary.roi:+.1f}%",
    ]
    fig.suptitle("  |  ".join(title_parts), fontsize=11, fontweight="bold")

    purchases = summary.purchases
    dates = [p.date for p in purchases]
    invested = [p.invested_total for p in purchases]
    value = [p.btc_total * p.price for p in purchases]
    stack = [p.btc_total for p in purchases]

    # ── Panel 1: capital vs value ──
    if purchases:
        val_dates = dates + [summary.end_date]
        ax_val.step(val_dates, invested + [summary.total_invested], where="post",
                    color="#7f8c8d", linewidth=1.5, label="Invested")
        ax_val.plot(val_dates, value + [summary.current_value],
                    color="#e67e22", linewidth=2, label="Position value")
        ax_val.fill_between(val_dates, invested + [summary.total_invested],
                            value + [summary.current_value],
                            color="#e67e22", alpha=0.12)
    ax_val.set_ylabel("USD", fontsize=10)
    ax_val.legend(loc="upper left", fontsize=9, framealpha=0.9)
    ax_val.grid(True, alpha=0.25, linestyle="--")
    ax_val.yaxis.set_major_formatter(
        mticker.FuncFormatter(lambda x, _: f"${x:,.0f}")
    )

    # ── Panel 2: BTC stack ──
    if purchases:
        ax_btc.step(dates, stack, where="post", color="#f39c12",
                    linewidth=2, label="BTC accumulated")
    if summary.goal is not None:
        ax_btc.axhline(y=summary.goal.goal_btc, color="#8e44ad", linestyle="--",
                       linewidth=1, label=f"Goal {summary.goal.goal_btc:g} BTC")
    ax_btc.set_ylabel("BTC", fontsize=10)
    ax_btc.legend(loc="upper left", fontsize=9, framealpha=0.9)
    ax_btc.grid(True, alpha=0.25, linestyle="--")

    ax_btc.xaxis.set_major_formatter(mdates.DateFormatter("%b %Y"))
    fig.autofmt_xdate(rotation=30)

    plt.tight_layout()
    if save_path:
        fig.savefig(save_path, dpi=120)
    if show:
        plt.show(block=True)
    return fig
