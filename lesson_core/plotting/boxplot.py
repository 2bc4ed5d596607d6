"""Grouped boxplots with optional jittered points"""
from pathlib import Path
from typing import Optional, Sequence, Union
import numpy as np
import pandas as pd
from lesson_core.plotting.common import new_figure, save_figure


def boxplot(
    df: pd.DataFrame,
    x: str,
    y: str,
    path: Optional[Union[str, Path]] = None,
    show_points: bool = True,
    jitter_width: float = 0.15,
    order: Optional[Sequence] = None,
    title: Optional[str] = None,
    figsize=(7.0, 5.0),
    dpi: Optional[int] = None,
    seed: int = 0
):
    """
    One box of `y` per level of `x`.

    Rows with a missing y are left out (the count is printed). Groups follow
    `order` if given, otherwise sorted order. Returns (fig, ax), or the saved
    path when `path` is given.
    """
    for column in (x, y):
        if column not in df.columns:
            raise KeyError(f"Column '{column}' not found")
    if not pd.api.types.is_numeric_dtype(df[y]):
        raise ValueError(f"'{y}' must be numeric for a boxplot")

    data = df[[x, y]].dropna(subset=[y])
    dropped = len(df) - len(data)
    if dropped:
        print(f"[BOXPLOT] Removed {dropped} rows containing missing values ({y})")

    if order is None:
        levels = data[x].dropna().unique()
        try:
            order = sorted(levels)
        except TypeError:
            # mixed types
            order = sorted(levels, key=str)
    else:
        unknown = [g for g in order if g not in set(data[x])]
        if unknown:
            raise ValueError(f"Groups not present in '{x}': {unknown}")
    if len(order) == 0:
        raise ValueError(f"No data to plot for '{y}'")

    groups = [data.loc[data[x] == level, y].to_numpy() for level in order]

    fig, ax = new_figure(figsize)
    ax.boxplot(groups, showfliers=not show_points)
    ax.set_xticks(range(1, len(order) + 1))
    ax.set_xticklabels([str(level) for level in order])

    if show_points:
        rng = np.random.default_rng(seed)
        for i, values in enumerate(groups, start=1):
            offsets = rng.uniform(-jitter_width, jitter_width, size=len(values))
            ax.scatter(i + offsets, values, s=12, alpha=0.6, color='k', zorder=3)

    ax.set_xlabel(x)
    ax.set_ylabel(y)
    ax.grid(True, axis='y', alpha=0.3)
    if title:
        ax.set_title(title)

    if path is not None:
        return save_figure(fig, path, dpi=dpi)
    return fig, ax
