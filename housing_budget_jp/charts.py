"""Chart generation for budget lines and scenario projections."""

import platform
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker

from housing_budget_jp.scenarios import SCENARIO_NAMES, ScenarioSet
from housing_budget_jp.simulation import YearlyBalance

# Projection color mapping (budget lines + scenarios)
PROJECTION_COLORS = {
    "current": "#7f7f7f",     # gray
    "safe": "#2ca02c",        # green
    "reasonable": "#ff7f0e",  # orange
    "max": "#d62728",         # red
    "baseline": "#1f77b4",    # blue
    "reduced": "#2ca02c",
    "investing": "#9467bd",   # purple
}

PROJECTION_NAMES = {
    "current": "現在の住まい",
    "safe": "安全ライン",
    "reasonable": "妥当ライン",
    "max": "MAXライン",
    **SCENARIO_NAMES,
}

DEFAULT_COLOR = "#7f7f7f"
MAN = 10_000


def _setup_japanese_font():
    """Configure matplotlib to use a Japanese font."""
    system = platform.system()
    if system == "Darwin":
        font_family = "Hiragino Sans"
    elif system == "Linux":
        font_family = "Noto Sans CJK JP"
    else:
        font_family = "sans-serif"
    plt.rcParams["font.family"] = font_family
    plt.rcParams["axes.unicode_minus"] = False


def _format_oku_axis(ax: plt.Axes):
    """Add 億円 labels on Y axis (secondary tick labels)."""
    ax.yaxis.set_major_formatter(
        ticker.FuncFormatter(lambda x, _: f"{x:,.0f}")
    )
    ax_right = ax.secondary_yaxis("right")
    ax_right.yaxis.set_major_formatter(
        ticker.FuncFormatter(lambda x, _: f"{x / 10000:.1f}億" if x != 0 else "0")
    )
    ax_right.set_ylabel("")


def _save(fig, output_path: Path, stem: str, name: str) -> Path:
    output_path.mkdir(parents=True, exist_ok=True)
    suffix = f"-{name}" if name else ""
    filepath = output_path / f"{stem}{suffix}.png"
    fig.tight_layout()
    fig.savefig(filepath, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return filepath


def plot_trajectory(
    projections: dict[str, list[YearlyBalance]],
    output_path: Path,
    name: str = "",
    event_markers: list[tuple[int, float, str]] | None = None,
) -> Path:
    """Line chart of total assets (預金 + 投資) per projection.

    Args:
        projections: key → projection, keys from PROJECTION_NAMES (e.g. "current", "safe").
        output_path: directory to save the PNG.
        name: optional suffix for the output filename (e.g. "35" → "trajectory-35.png").
        event_markers: one-off events [(age, amount_yen, label), ...]; positive = expense.

    Returns:
        Path to the generated PNG file.
    """
    _setup_japanese_font()
    if not any(projections.values()):
        raise ValueError("No projection for trajectory chart")

    fig, ax = plt.subplots(figsize=(14, 8))
    for key, projection in projections.items():
        if not projection:
            continue
        ages = [r.age for r in projection]
        totals = [r.total_assets / MAN for r in projection]
        color = PROJECTION_COLORS.get(key, DEFAULT_COLOR)
        ax.plot(ages, totals, label=PROJECTION_NAMES.get(key, key), color=color, linewidth=2)

    ax.axhline(0, color="black", linewidth=1.0)
    ax.set_xlabel("年齢")
    ax.set_ylabel("総資産（万円）")
    ax.set_title("総資産推移（予算ライン別）")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)
    _format_oku_axis(ax)

    if event_markers:
        COLOR_EXPENSE = "#c0392b"
        COLOR_INCOME = "#27ae60"
        y_lo, y_hi = ax.get_ylim()
        for i, (evt_age, evt_amount, evt_label) in enumerate(event_markers):
            color = COLOR_EXPENSE if evt_amount > 0 else COLOR_INCOME
            ax.axvline(evt_age, color="#888888", linewidth=0.7, linestyle=":", alpha=0.4, zorder=3)
            sign = "▲" if evt_amount > 0 else "+"
            y_pos = y_lo + (y_hi - y_lo) * (0.05 + 0.07 * (i % 4))
            ax.annotate(
                f"{sign}{evt_label} {abs(evt_amount) / MAN:,.0f}万",
                xy=(evt_age, y_pos),
                fontsize=11, color=color,
                ha="center", va="bottom",
                bbox=dict(boxstyle="round,pad=0.5", fc="white", ec=color, alpha=0.9, linewidth=0.8),
                zorder=10,
            )

    return _save(fig, output_path, "trajectory", name)


def plot_cashflow_stack(
    projections: dict[str, list[YearlyBalance]],
    output_path: Path,
    name: str = "",
) -> Path:
    """Stacked annual expenses vs gross income, one panel per projection."""
    _setup_japanese_font()

    items = [(key, p) for key, p in projections.items() if p]
    if not items:
        raise ValueError("No projection for cashflow chart")

    cols = 2
    rows = (len(items) + 1) // 2
    fig, axes = plt.subplots(rows, cols, figsize=(16, 7 * rows), squeeze=False)

    categories = [
        ("housing", "住居費", "#8da0cb"),
        ("education", "教育費", "#fc8d62"),
        ("living", "生活費", "#66c2a5"),
        ("insurance", "保険料", "#e78ac3"),
        ("tax", "税金", "#a6d854"),
        ("other", "その他", "#ffd92f"),
    ]

    for idx, (key, projection) in enumerate(items):
        ax = axes[idx // cols][idx % cols]
        ages = [r.age for r in projection]
        ax.stackplot(
            ages,
            *[[getattr(r.expenses, attr) / MAN for r in projection] for attr, _, _ in categories],
            labels=[label for _, label, _ in categories],
            colors=[color for _, _, color in categories],
            alpha=0.75,
        )
        ax.plot(ages, [r.income / MAN for r in projection], color="#1f77b4", linewidth=2, label="額面収入")

        negative = [r for r in projection if r.savings < 0]
        if negative:
            first = negative[0].age
            ax.axvline(first, color="#d62728", linewidth=2, linestyle=":")
            ax.annotate(
                f"{first}歳 預金マイナス",
                xy=(first, ax.get_ylim()[1] * 0.85),
                fontsize=11, fontweight="bold", color="#d62728",
                ha="right",
                bbox=dict(boxstyle="round,pad=0.3", fc="white", ec="#d62728", alpha=0.9),
            )

        ax.set_title(PROJECTION_NAMES.get(key, key))
        ax.set_xlabel("年齢")
        ax.set_ylabel("年間キャッシュフロー（万円）")
        ax.grid(True, alpha=0.3)
        ax.legend(loc="upper left", fontsize=9)

    for idx in range(len(items), rows * cols):
        axes[idx // cols][idx % cols].set_visible(False)

    fig.suptitle("キャッシュフロー積み上げ（年次）", fontsize=14, y=1.01)
    return _save(fig, output_path, "cashflow", name)


def plot_scenarios(scenarios: ScenarioSet, output_path: Path, name: str = "") -> Path:
    """Total assets of the baseline / reduced / investing scenarios."""
    _setup_japanese_font()

    fig, ax = plt.subplots(figsize=(14, 8))
    for key, projection in scenarios.projections().items():
        if not projection:
            continue
        ax.plot(
            [r.age for r in projection],
            [r.total_assets / MAN for r in projection],
            label=SCENARIO_NAMES[key],
            color=PROJECTION_COLORS.get(key, DEFAULT_COLOR),
            linewidth=2,
        )
    ax.axhline(0, color="black", linewidth=1.0)
    ax.set_xlabel("年齢")
    ax.set_ylabel("総資産（万円）")
    ax.set_title(f"シナリオ比較（リスク判定: {scenarios.risk_label}）")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)
    _format_oku_axis(ax)

    return _save(fig, output_path, "scenarios", name)
