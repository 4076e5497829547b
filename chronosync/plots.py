# chronosync/plots.py
from __future__ import annotations

from typing import Optional
import matplotlib.pyplot as plt

from .coach import peak_windows
from .models import ScheduleWindow, SyncResult


def _shade_window(ax, window: ScheduleWindow, label: str, color: str) -> None:
    """Shade [start, end) on a 0..24 axis, splitting at midnight when needed."""
    start = window.start % 24.0
    end = start + window.duration
    if end <= 24.0:
        ax.axvspan(start, end, alpha=0.12, color=color, label=label)
    else:
        ax.axvspan(start, 24.0, alpha=0.12, color=color, label=label)
        ax.axvspan(0.0, end - 24.0, alpha=0.12, color=color, label="_" + label)


def plot_learning_timeline(
    result: SyncResult,
    title: str = "ChronoSync - Learning Readiness",
    school: Optional[ScheduleWindow] = None,
    study: Optional[ScheduleWindow] = None,
    ax: Optional[plt.Axes] = None,
):
    """
    Plot the 96-bin learning timeline (0..1) over the day and shade peak windows.
    School/study windows are shaded too when given.
    Returns matplotlib Figure.
    """
    timeline = result.learning_timeline
    n = len(timeline)
    hours = [i * 24.0 / n for i in range(n)] if n else []

    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    ax.plot(hours, timeline, label="readiness (0..1)")

    for i, (s, e) in enumerate(peak_windows(timeline)):
        label = "Peak" if i == 0 else "_peak"
        if e <= 24.0:
            ax.axvspan(s, e, alpha=0.15, color="tab:green", label=label)
        else:
            ax.axvspan(s, 24.0, alpha=0.15, color="tab:green", label=label)
            ax.axvspan(0.0, e - 24.0, alpha=0.15, color="tab:green", label="_peak")

    if school is not None:
        _shade_window(ax, school, "School", "tab:blue")
    if study is not None:
        _shade_window(ax, study, "Study", "tab:orange")

    ax.axvline(result.learning_phase, linestyle="--", alpha=0.5, label=f"phase {result.learning_phase:.1f}h")

    ax.set_title(title)
    ax.set_xlim(0, 24)
    ax.set_ylim(-0.05, 1.05)
    ax.set_xticks(range(0, 25, 3))
    ax.set_xlabel("Hour of day")
    ax.set_ylabel("Learning readiness")
    ax.grid(True, alpha=0.2)
    ax.legend(loc="upper right")

    return fig
