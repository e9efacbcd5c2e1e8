"""
Score distribution analysis for simulation reports.

Given final scores per player label (see SimulationReport.scores_by_slot),
prints summary tables, draws an ASCII box plot for the terminal and saves a
matplotlib box plot image.
"""

from bisect import bisect_right
from dataclasses import asdict, dataclass
from itertools import chain

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt


# Lower bounds of each bucket after the first, and the bucket labels
BUCKET_EDGES = [-5, 0, 5, 10, 15, 20, 25]
BUCKET_ORDER = ["< -5", "-5 to -1", "0 to 4", "5 to 9", "10 to 14", "15 to 19", "20 to 24", "25+"]

BOX_COLORS = ["#e07a5f", "#81b29a", "#3d5a80", "#f2cc8f", "#9c89b8", "#48cae4", "#bbbbbb"]


@dataclass(frozen=True)
class ScoreSummary:
    n: int
    min: int
    q1: float
    median: float
    q3: float
    max: int
    mean: float

    @property
    def iqr(self) -> float:
        return self.q3 - self.q1

    def __getitem__(self, key: str):
        return self.iqr if key == "iqr" else asdict(self)[key]


def percentile(data: list[int], p: float) -> float:
    """p-th percentile with linear interpolation between closest ranks."""
    ordered = sorted(data)
    position = (len(ordered) - 1) * p / 100
    lower = int(position)
    upper = min(lower + 1, len(ordered) - 1)
    return ordered[lower] + (position - lower) * (ordered[upper] - ordered[lower])


def summarize(scores: list[int]) -> ScoreSummary:
    return ScoreSummary(
        n=len(scores),
        min=min(scores),
        q1=percentile(scores, 25),
        median=percentile(scores, 50),
        q3=percentile(scores, 75),
        max=max(scores),
        mean=sum(scores) / len(scores),
    )


def bucket_for(score: int) -> str:
    return BUCKET_ORDER[bisect_right(BUCKET_EDGES, score)]


def bucket_scores(scores: list[int]) -> dict[str, int]:
    """Count of scores in each bucket, every bucket present and in order."""
    counts = dict.fromkeys(BUCKET_ORDER, 0)
    for score in scores:
        counts[bucket_for(score)] += 1
    return counts


def _combined(all_scores: dict[str, list[int]]) -> list[int]:
    return list(chain.from_iterable(all_scores.values()))


def _banner(title: str) -> None:
    print()
    print("=" * 70)
    print(title)
    print("=" * 70)


def _summary_row(label: str, s: ScoreSummary) -> str:
    return (
        f"{label:<22} {s.n:>5} {s.min:>6} {s.q1:>6.1f} {s.median:>6.1f} "
        f"{s.q3:>6.1f} {s.max:>6} {s.mean:>7.1f}"
    )


def print_statistics(all_scores: dict[str, list[int]]) -> ScoreSummary:
    """
    Print per-player and overall statistics plus a score histogram.

    Returns:
        The summary over every score.
    """
    _banner("SCORE STATISTICS BY PLAYER")
    print(f"{'Player':<22} {'N':>5} {'Min':>6} {'Q1':>6} {'Med':>6} {'Q3':>6} {'Max':>6} {'Mean':>7}")
    print("-" * 70)
    for label in sorted(all_scores):
        print(_summary_row(label, summarize(all_scores[label])))

    combined = _combined(all_scores)
    overall = summarize(combined)
    print("-" * 70)
    print(_summary_row("OVERALL", overall))
    print(f"\nMiddle half of scores: {overall.q1:.0f} to {overall.q3:.0f} (IQR {overall.iqr:.1f})")

    _banner("SCORE DISTRIBUTION")
    for bucket, count in bucket_scores(combined).items():
        share = count / len(combined) * 100
        print(f"{bucket:>10}: {count:>4} ({share:>5.1f}%) {'#' * round(share / 2)}")

    return overall


def create_box_plot(all_scores: dict[str, list[int]], output_file: str = "score_distribution.png") -> str:
    """
    Save a box plot with one box per player and one for all scores.

    Returns:
        The path written.
    """
    labels = sorted(all_scores) + ["ALL"]
    data = [all_scores[label] for label in labels[:-1]] + [_combined(all_scores)]

    fig, ax = plt.subplots(figsize=(max(6, 2 * len(labels)), 6))
    boxes = ax.boxplot(data, patch_artist=True, showmeans=True)
    ax.set_xticks(range(1, len(labels) + 1))
    ax.set_xticklabels(labels, rotation=15)

    for patch, color in zip(boxes["boxes"], BOX_COLORS * len(labels)):
        patch.set_facecolor(color)
        patch.set_alpha(0.75)

    ax.axhline(0, color="gray", linestyle="--", linewidth=1)
    ax.set_ylabel("Final score (lower is better)")
    ax.set_title(f"6-Card Golf scores ({len(data[-1])} hands)")
    ax.grid(axis="y", alpha=0.3)

    fig.tight_layout()
    fig.savefig(output_file, dpi=120)
    plt.close(fig)
    print(f"\nBox plot saved to: {output_file}")
    return output_file


def _ascii_row(s: ScoreSummary, scale, width: int) -> str:
    lo, q1, med, q3, hi = (scale(v) for v in (s.min, s.q1, s.median, s.q3, s.max))
    cells = [" "] * width
    for i in range(lo, hi + 1):
        cells[i] = "-"
    for i in range(q1, q3 + 1):
        cells[i] = "="
    cells[lo] = cells[hi] = cells[med] = "|"
    return "".join(cells)


def create_ascii_box_plot(all_scores: dict[str, list[int]], width: int = 50) -> list[str]:
    """
    Print a box plot made of characters, one row per player plus COMBINED.

    Returns:
        The printed rows.
    """
    _banner("ASCII BOX PLOT (Score Distribution)")

    combined = _combined(all_scores)
    low, high = min(combined), max(combined)

    def scale(value: float) -> int:
        if high == low:
            return width // 2
        return round((value - low) / (high - low) * (width - 1))

    print(f"{'':>21} {low:<{width // 2}}{high:>{width - width // 2}}")

    rows = []
    for label, scores in sorted({**all_scores, "COMBINED": combined}.items()):
        row = f"{label:>21} {_ascii_row(summarize(scores), scale, width)}"
        rows.append(row)
        print(row)

    print("\n |--[===|===]--| = min, Q1, median, Q3, max (lower is better)")
    return rows
