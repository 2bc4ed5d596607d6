"""Heatmaps of numeric matrices (gene expression, community tables)"""
from pathlib import Path
from typing import Optional, Sequence, Union
import numpy as np
import pandas as pd
from lesson_core.plotting.common import new_figure, save_figure


SCALE_OPTIONS = ['none', 'row', 'column']


def scale_matrix(matrix: pd.DataFrame, scale: str = 'none') -> pd.DataFrame:
    """
    z-score along rows or columns. A row/column with zero spread becomes 0.
    """
    if scale not in SCALE_OPTIONS:
        raise ValueError(f"Unknown scale '{scale}', expected one of {SCALE_OPTIONS}")
    if scale == 'none':
        return matrix.astype(float)

    values = matrix.astype(float)
    axis = 1 if scale == 'row' else 0
    mean = values.mean(axis=axis)
    sd = values.std(axis=axis, ddof=1)
    centered = values.sub(mean, axis=1 - axis)
    scaled = centered.div(sd.replace(0, np.nan), axis=1 - axis)
    # zero-spread lines: every value equals the mean
    zero_sd = sd.fillna(0) == 0
    if zero_sd.any():
        if scale == 'row':
            scaled.loc[zero_sd[zero_sd].index, :] = 0.0
        else:
            scaled.loc[:, zero_sd[zero_sd].index] = 0.0
    return scaled


def heatmap(
    matrix: pd.DataFrame,
    path: Optional[Union[str, Path]] = None,
    scale: str = 'none',
    cmap: str = 'viridis',
    annotate: bool = False,
    row_order: Optional[Sequence] = None,
    col_order: Optional[Sequence] = None,
    title: Optional[str] = None,
    figsize=(7.0, 5.0),
    dpi: Optional[int] = None
):
    """
    Draw `matrix` (numeric DataFrame) as a colour grid with a colorbar.

    Returns (fig, ax), or the saved path when `path` is given.
    """
    non_numeric = [c for c in matrix.columns if not pd.api.types.is_numeric_dtype(matrix[c])]
    if non_numeric:
        raise ValueError(f"Heatmap needs numeric columns; non-numeric: {non_numeric}")
    if matrix.empty:
        raise ValueError("Heatmap matrix is empty")

    if row_order is not None:
        matrix = matrix.loc[list(row_order)]
    if col_order is not None:
        matrix = matrix[list(col_order)]

    values = scale_matrix(matrix, scale)

    fig, ax = new_figure(figsize)
    image = ax.imshow(values.to_numpy(), cmap=cmap, aspect='auto', interpolation='nearest')
    colorbar = fig.colorbar(image, ax=ax)
    colorbar.set_label('z-score' if scale != 'none' else 'value')

    ax.set_xticks(range(values.shape[1]))
    ax.set_xticklabels([str(c) for c in values.columns], rotation=45, ha='right')
    ax.set_yticks(range(values.shape[0]))
    ax.set_yticklabels([str(i) for i in values.index])

    if annotate:
        for i in range(values.shape[0]):
            for j in range(values.shape[1]):
                cell = values.iat[i, j]
                if not pd.isna(cell):
                    ax.text(j, i, f"{cell:.2f}", ha='center', va='center', fontsize=7, color='w')

    if title:
        ax.set_title(title)

    if path is not None:
        return save_figure(fig, path, dpi=dpi)
    return fig, ax


def expression_heatmap(
    df: pd.DataFrame,
    gene_column: str,
    samples: Optional[Sequence[str]] = None,
    genes: Optional[Sequence] = None,
    **kwargs
):
    """heatmap() for a gene x sample expression table; genes become row labels"""
    if gene_column not in df.columns:
        raise KeyError(f"Gene column '{gene_column}' not found")

    table = df.set_index(gene_column)
    if samples is not None:
        missing = [s for s in samples if s not in table.columns]
        if missing:
            raise KeyError(f"Unknown sample column(s): {missing}")
        table = table[list(samples)]
    else:
        table = table.select_dtypes(include='number')

    if genes is not None:
        missing = [g for g in genes if g not in table.index]
        if missing:
            raise KeyError(f"Unknown gene(s): {missing}")
        table = table.loc[list(genes)]

    kwargs.setdefault('scale', 'row')
    return heatmap(table, **kwargs)
