"""Table verbs: filter, select, mutate, arrange, group/summarize, join, pivot"""
import pandas as pd
import numpy as np
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
from lesson_core.lesson_log import log_lesson_event


FILTER_OPS = ['==', '!=', '<', '<=', '>', '>=', 'in', 'not_in', 'contains', 'startswith', 'isna', 'notna']

AGG_FUNCS = ['mean', 'median', 'sum', 'min', 'max', 'sd', 'var', 'n', 'n_distinct', 'se']


def _as_list(columns: Union[str, Sequence[str]]) -> List[str]:
    if isinstance(columns, str):
        return [columns]
    return list(columns)


def _check_columns(df: pd.DataFrame, columns: Sequence[str]) -> None:
    unknown = [c for c in columns if c not in df.columns]
    if unknown:
        raise KeyError(f"Unknown column(s): {unknown}. Available: {list(df.columns)}")


def _string_mask(series: pd.Series, op: str, value: Any, case_sensitive: bool) -> pd.Series:
    text = series.astype('string')
    if op == 'contains':
        return text.str.contains(str(value), case=case_sensitive, regex=False)
    if op == 'startswith':
        if case_sensitive:
            return text.str.startswith(str(value))
        return text.str.lower().str.startswith(str(value).lower())

    # equality / membership
    values = value if op in ('in', 'not_in') else [value]
    if not case_sensitive:
        text = text.str.lower()
        values = [str(v).lower() for v in values]
    mask = text.isin([str(v) for v in values])
    if op in ('!=', 'not_in'):
        mask = ~mask
    return mask


def filter_rows(df: pd.DataFrame, column: str, op: str, value: Any = None, case_sensitive: bool = True) -> pd.DataFrame:
    """
    Keep rows where `column <op> value` holds.

    Rows whose value is missing never satisfy a comparison (only 'isna' keeps them).
    String comparisons are case-sensitive unless case_sensitive=False, so
    'Oak' and 'oak' are different species by default.
    """
    _check_columns(df, [column])
    if op not in FILTER_OPS:
        raise ValueError(f"Unknown filter op '{op}', expected one of {FILTER_OPS}")
    if op in ('in', 'not_in') and (isinstance(value, str) or not pd.api.types.is_list_like(value)):
        # a single value is a one-element set
        value = [value]

    series = df[column]
    if op == 'isna':
        mask = series.isna()
    elif op == 'notna':
        mask = series.notna()
    elif op in ('contains', 'startswith'):
        mask = _string_mask(series, op, value, case_sensitive)
    elif not pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series) and op in ('==', '!=', 'in', 'not_in'):
        mask = _string_mask(series, op, value, case_sensitive)
    else:
        present = series.dropna()
        if op == '==':
            matched = present == value
        elif op == '!=':
            matched = present != value
        elif op == '<':
            matched = present < value
        elif op == '<=':
            matched = present <= value
        elif op == '>':
            matched = present > value
        elif op == '>=':
            matched = present >= value
        elif op == 'in':
            matched = present.isin(list(value))
        else:
            matched = ~present.isin(list(value))
        mask = matched.reindex(series.index, fill_value=False)

    if op != 'isna':
        mask = mask & series.notna()

    result = df[mask.fillna(False).astype(bool)].reset_index(drop=True)
    log_lesson_event('rows_filtered', {
        'column': column,
        'op': op,
        'rows_in': len(df),
        'rows_out': len(result),
    })
    return result


def select_columns(df: pd.DataFrame, columns: Union[str, Sequence[str]]) -> pd.DataFrame:
    """Keep only `columns`, in the given order"""
    columns = _as_list(columns)
    _check_columns(df, columns)
    return df[columns].copy()


def mutate(df: pd.DataFrame, **new_columns: Any) -> pd.DataFrame:
    """
    Add or replace columns. Values may be scalars, sequences, or callables
    taking the (partially mutated) frame, so later columns can use earlier ones.
    """
    result = df.copy()
    for name, spec in new_columns.items():
        result[name] = spec(result) if callable(spec) else spec
    return result


def arrange(df: pd.DataFrame, by: Union[str, Sequence[str]], descending: bool = False) -> pd.DataFrame:
    """Sort rows; missing values always go last"""
    by = _as_list(by)
    _check_columns(df, by)
    return df.sort_values(by, ascending=not descending, na_position='last', kind='mergesort').reset_index(drop=True)


def _aggregate(values: pd.Series, func: str, na_rm: bool) -> Any:
    if func == 'n':
        return len(values)
    if func == 'n_distinct':
        return values.nunique(dropna=na_rm)

    if not na_rm and values.isna().any():
        return np.nan
    clean = values.dropna()

    if func == 'mean':
        return clean.mean()
    if func == 'median':
        return clean.median()
    if func == 'sum':
        return clean.sum()
    if func == 'min':
        return clean.min() if len(clean) else np.nan
    if func == 'max':
        return clean.max() if len(clean) else np.nan
    if func == 'sd':
        return clean.std(ddof=1)
    if func == 'var':
        return clean.var(ddof=1)
    # se
    if len(clean) < 2:
        return np.nan
    return clean.std(ddof=1) / np.sqrt(len(clean))


def group_summarize(
    df: pd.DataFrame,
    by: Union[str, Sequence[str]],
    aggregations: Dict[str, Tuple[str, str]],
    na_rm: bool = False
) -> pd.DataFrame:
    """
    Summarize each group of `by` into one row.

    Args:
        df: Input table
        by: Grouping column(s)
        aggregations: {output_name: (column, func)}; func in AGG_FUNCS
        na_rm: If False, a group containing any missing value yields NaN
               (mean of c(1, NA) is NA); if True, missing values are dropped first

    Returns:
        DataFrame with the grouping columns plus one column per aggregation
    """
    by = _as_list(by)
    _check_columns(df, by + [col for col, _ in aggregations.values()])
    for name, (_, func) in aggregations.items():
        if func not in AGG_FUNCS:
            raise ValueError(f"Unknown aggregation '{func}' for '{name}', expected one of {AGG_FUNCS}")

    rows = []
    for keys, group in df.groupby(by, sort=True, dropna=False):
        if not isinstance(keys, tuple):
            keys = (keys,)
        row = dict(zip(by, keys))
        for name, (column, func) in aggregations.items():
            row[name] = _aggregate(group[column], func, na_rm)
        rows.append(row)

    return pd.DataFrame(rows, columns=by + list(aggregations.keys()))


def count_by(df: pd.DataFrame, by: Union[str, Sequence[str]]) -> pd.DataFrame:
    """Row count per group, in column `n`"""
    by = _as_list(by)
    _check_columns(df, by)
    return df.groupby(by, sort=True, dropna=False).size().reset_index(name='n')


def join_tables(
    left: pd.DataFrame,
    right: pd.DataFrame,
    on: Union[str, Sequence[str]],
    how: str = 'inner',
    suffixes: Tuple[str, str] = ('.x', '.y')
) -> pd.DataFrame:
    """
    Join two tables on key column(s).

    Non-key columns present in both tables are kept twice with `suffixes`
    ('value' becomes 'value.x' and 'value.y'); the collision is logged.
    """
    on = _as_list(on)
    _check_columns(left, on)
    _check_columns(right, on)
    if how not in ('inner', 'left', 'right', 'outer'):
        raise ValueError(f"Unknown join type '{how}'")

    collisions = sorted((set(left.columns) & set(right.columns)) - set(on))
    if collisions:
        log_lesson_event('join_collision', {
            'columns': collisions,
            'suffixes': list(suffixes),
        })

    return left.merge(right, on=on, how=how, suffixes=suffixes)


def pivot_longer(df: pd.DataFrame, id_columns: Union[str, Sequence[str]], names_to: str = 'name', values_to: str = 'value') -> pd.DataFrame:
    """Wide -> long: every non-id column becomes (names_to, values_to) rows"""
    id_columns = _as_list(id_columns)
    _check_columns(df, id_columns)
    value_columns = [c for c in df.columns if c not in id_columns]
    return df.melt(id_vars=id_columns, value_vars=value_columns, var_name=names_to, value_name=values_to)


def pivot_wider(
    df: pd.DataFrame,
    id_columns: Union[str, Sequence[str]],
    names_from: str,
    values_from: str,
    fill_value: Optional[Any] = None
) -> pd.DataFrame:
    """Long -> wide. Duplicate (id, name) pairs raise ValueError."""
    id_columns = _as_list(id_columns)
    _check_columns(df, id_columns + [names_from, values_from])

    if df.duplicated(subset=id_columns + [names_from]).any():
        raise ValueError(f"Duplicate rows for ({', '.join(id_columns + [names_from])}); cannot pivot wider")

    wide = df.pivot(index=id_columns, columns=names_from, values=values_from)
    if fill_value is not None:
        wide = wide.fillna(fill_value)
    wide.columns.name = None
    return wide.reset_index()


def drop_missing(df: pd.DataFrame, columns: Optional[Union[str, Sequence[str]]] = None) -> pd.DataFrame:
    """Drop rows with a missing value in `columns` (all columns if None)"""
    subset = None
    if columns is not None:
        subset = _as_list(columns)
        _check_columns(df, subset)
    result = df.dropna(subset=subset).reset_index(drop=True)
    log_lesson_event('rows_dropped_missing', {
        'columns': subset if subset is not None else 'all',
        'rows_in': len(df),
        'rows_out': len(result),
    })
    return result


def apply_columns(df: pd.DataFrame, func: Callable[[pd.Series], Any], columns: Optional[Sequence[str]] = None) -> Dict[str, Any]:
    """Call `func` on each column (numeric columns if None); {column: result}"""
    if columns is None:
        columns = df.select_dtypes(include='number').columns.tolist()
    _check_columns(df, columns)
    return {column: func(df[column]) for column in columns}
