"""Summary statistics: five-number summaries, standard error, per-group stats"""
import pandas as pd
import numpy as np
from typing import List, Optional, Sequence, Union


SUMMARY_LABELS = ['Min.', '1st Qu.', 'Median', 'Mean', '3rd Qu.', 'Max.', "NA's"]


def summarize_numeric(series: pd.Series, quantile_method: str = 'linear') -> pd.Series:
    """
    Six-number summary plus missing count, as printed by R's summary().

    Missing values are excluded from the statistics but counted in "NA's".
    Quartiles use numpy's 'linear' method by default (R's type 7).
    """
    if not pd.api.types.is_numeric_dtype(series):
        raise ValueError(f"summarize_numeric needs a numeric column, got {series.dtype} for '{series.name}'")

    values = series.dropna().to_numpy(dtype=float)
    n_missing = int(series.isna().sum())

    if len(values) == 0:
        stats = [np.nan] * 6
    else:
        q1, median, q3 = np.quantile(values, [0.25, 0.5, 0.75], method=quantile_method)
        stats = [values.min(), q1, median, values.mean(), q3, values.max()]

    return pd.Series(stats + [n_missing], index=SUMMARY_LABELS, name=series.name)


def summary_table(df: pd.DataFrame, columns: Optional[Sequence[str]] = None, quantile_method: str = 'linear') -> pd.DataFrame:
    """summarize_numeric for every numeric column; one output column per input column"""
    if columns is None:
        columns = df.select_dtypes(include='number').columns.tolist()
    else:
        unknown = [c for c in columns if c not in df.columns]
        if unknown:
            raise KeyError(f"Unknown column(s): {unknown}")

    if not columns:
        raise ValueError("No numeric columns to summarize")

    return pd.concat([summarize_numeric(df[c], quantile_method) for c in columns], axis=1)


def standard_error(values: Union[pd.Series, Sequence[float]], na_rm: bool = False) -> float:
    """sd / sqrt(n). NaN for fewer than two values, or for missing values unless na_rm."""
    values = pd.Series(values, dtype=float)
    if values.isna().any():
        if not na_rm:
            return np.nan
        values = values.dropna()
    if len(values) < 2:
        return np.nan
    return float(values.std(ddof=1) / np.sqrt(len(values)))


def group_stats(df: pd.DataFrame, by: Union[str, List[str]], value: str, na_rm: bool = True) -> pd.DataFrame:
    """
    n, mean, sd, se, median, min, max of `value` per group.

    n counts the values that went into the statistics (non-missing when na_rm).
    A missing group key is its own group, as with group_by.
    """
    by = [by] if isinstance(by, str) else list(by)
    unknown = [c for c in by + [value] if c not in df.columns]
    if unknown:
        raise KeyError(f"Unknown column(s): {unknown}")
    if not pd.api.types.is_numeric_dtype(df[value]):
        raise ValueError(f"'{value}' must be numeric")

    rows = []
    for keys, group in df.groupby(by, sort=True, dropna=False):
        if not isinstance(keys, tuple):
            keys = (keys,)
        values = group[value]
        has_missing = values.isna().any()
        if na_rm:
            values = values.dropna()

        row = dict(zip(by, keys))
        if has_missing and not na_rm:
            row.update({'n': len(values), 'mean': np.nan, 'sd': np.nan, 'se': np.nan,
                        'median': np.nan, 'min': np.nan, 'max': np.nan})
        else:
            n = len(values)
            row.update({
                'n': n,
                'mean': values.mean() if n else np.nan,
                'sd': values.std(ddof=1) if n > 1 else np.nan,
                'se': standard_error(values),
                'median': values.median() if n else np.nan,
                'min': values.min() if n else np.nan,
                'max': values.max() if n else np.nan,
            })
        rows.append(row)

    return pd.DataFrame(rows, columns=by + ['n', 'mean', 'sd', 'se', 'median', 'min', 'max'])
