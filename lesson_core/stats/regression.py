"""Simple (one-predictor) linear regressions and the RegressSimple collection"""
import warnings
from dataclasses import dataclass, asdict
from typing import Iterator, List, Optional, Sequence, Union
import numpy as np
import pandas as pd
from scipy import stats


@dataclass
class SimpleRegressionSummary:
    """Summary of lm(response ~ predictor)"""
    predictor: str
    response: str
    n: int
    intercept: float
    slope: float
    slope_se: float
    t_value: float
    p_value: float
    r_squared: float
    adj_r_squared: float
    f_statistic: float
    residual_se: float


def significance_stars(p_value: float) -> str:
    """R's signif. codes: *** 0.001, ** 0.01, * 0.05, . 0.1"""
    if p_value is None or np.isnan(p_value):
        return ''
    if p_value < 0.001:
        return '***'
    if p_value < 0.01:
        return '**'
    if p_value < 0.05:
        return '*'
    if p_value < 0.1:
        return '.'
    return ''


def simple_regression(x: pd.Series, y: pd.Series, predictor: Optional[str] = None, response: Optional[str] = None) -> SimpleRegressionSummary:
    """
    Ordinary least squares fit of y = intercept + slope * x.

    Only pairwise complete observations are used. With fewer than 3 points or
    a constant predictor the fit is undefined: all statistics are NaN and a
    warning is emitted.
    """
    x = pd.Series(x, dtype=float).reset_index(drop=True)
    y = pd.Series(y, dtype=float).reset_index(drop=True)
    if len(x) != len(y):
        raise ValueError(f"x and y differ in length: {len(x)} != {len(y)}")

    predictor = predictor or (x.name if x.name is not None else 'x')
    response = response or (y.name if y.name is not None else 'y')

    complete = x.notna() & y.notna()
    xv = x[complete].to_numpy()
    yv = y[complete].to_numpy()
    n = len(xv)

    nan = float('nan')
    undefined = SimpleRegressionSummary(
        predictor=str(predictor), response=str(response), n=n,
        intercept=nan, slope=nan, slope_se=nan, t_value=nan, p_value=nan,
        r_squared=nan, adj_r_squared=nan, f_statistic=nan, residual_se=nan,
    )

    if n < 3:
        warnings.warn(f"Regression of '{response}' on '{predictor}' needs at least 3 complete observations, got {n}")
        return undefined

    x_mean = xv.mean()
    y_mean = yv.mean()
    sxx = np.sum((xv - x_mean) ** 2)
    if sxx == 0:
        warnings.warn(f"Predictor '{predictor}' has zero variance; slope is undefined")
        return undefined

    sxy = np.sum((xv - x_mean) * (yv - y_mean))
    slope = sxy / sxx
    intercept = y_mean - slope * x_mean

    residuals = yv - (intercept + slope * xv)
    sse = float(np.sum(residuals ** 2))
    sst = float(np.sum((yv - y_mean) ** 2))
    df_resid = n - 2

    residual_se = np.sqrt(sse / df_resid)
    slope_se = residual_se / np.sqrt(sxx)

    if slope_se == 0:
        # exact fit
        t_value = np.inf if slope != 0 else nan
        p_value = 0.0 if slope != 0 else nan
    else:
        t_value = slope / slope_se
        p_value = float(2 * stats.t.sf(abs(t_value), df_resid))

    r_squared = 1 - sse / sst if sst > 0 else nan
    adj_r_squared = 1 - (1 - r_squared) * (n - 1) / df_resid if sst > 0 else nan

    return SimpleRegressionSummary(
        predictor=str(predictor),
        response=str(response),
        n=n,
        intercept=float(intercept),
        slope=float(slope),
        slope_se=float(slope_se),
        t_value=float(t_value),
        p_value=p_value,
        r_squared=float(r_squared),
        adj_r_squared=float(adj_r_squared),
        f_statistic=float(t_value ** 2),
        residual_se=float(residual_se),
    )


class RegressSimple:
    """
    One simple regression of `response` per predictor column.

    Behaves like a list of SimpleRegressionSummary (len, iteration, indexing by
    position or predictor name); str() gives the compact printed table.
    """

    def __init__(self, data: pd.DataFrame, response: str, predictors: Optional[Sequence[str]] = None, digits: int = 4):
        if response not in data.columns:
            raise KeyError(f"Response column '{response}' not found")
        if not pd.api.types.is_numeric_dtype(data[response]):
            raise ValueError(f"Response column '{response}' must be numeric")

        if predictors is None:
            predictors = [c for c in data.select_dtypes(include='number').columns if c != response]
        else:
            predictors = list(predictors)
            unknown = [p for p in predictors if p not in data.columns]
            if unknown:
                raise KeyError(f"Predictor column(s) not found: {unknown}")
            non_numeric = [p for p in predictors if not pd.api.types.is_numeric_dtype(data[p])]
            if non_numeric:
                raise ValueError(f"Predictor column(s) must be numeric: {non_numeric}")

        if not predictors:
            raise ValueError(f"No predictor columns to regress '{response}' on")

        self.response = response
        self.digits = digits
        self.summaries: List[SimpleRegressionSummary] = [
            simple_regression(data[p], data[response], predictor=p, response=response)
            for p in predictors
        ]

    def __len__(self) -> int:
        return len(self.summaries)

    def __iter__(self) -> Iterator[SimpleRegressionSummary]:
        return iter(self.summaries)

    def __getitem__(self, key: Union[int, str]) -> SimpleRegressionSummary:
        if isinstance(key, str):
            for summary in self.summaries:
                if summary.predictor == key:
                    return summary
            raise KeyError(f"No regression for predictor '{key}'")
        return self.summaries[key]

    @property
    def predictors(self) -> List[str]:
        return [s.predictor for s in self.summaries]

    def to_frame(self) -> pd.DataFrame:
        """One row per predictor"""
        return pd.DataFrame([asdict(s) for s in self.summaries])

    def significant(self, alpha: float = 0.05) -> List[str]:
        """Predictors whose slope p-value is below alpha"""
        return [s.predictor for s in self.summaries if not np.isnan(s.p_value) and s.p_value < alpha]

    def __str__(self) -> str:
        d = self.digits
        width = max(len('Predictor'), *(len(p) for p in self.predictors))
        lines = [
            f"Simple regressions of {self.response} on {len(self)} predictor(s)",
            "",
            f"{'Predictor':<{width}}  {'Slope':>12}  {'Std.Err':>12}  {'t value':>10}  {'Pr(>|t|)':>12}  {'R2':>8}  {'n':>5}",
        ]
        for s in self.summaries:
            lines.append(
                f"{s.predictor:<{width}}  {s.slope:>12.{d}g}  {s.slope_se:>12.{d}g}  {s.t_value:>10.{d}g}  "
                f"{s.p_value:>12.{d}g}  {s.r_squared:>8.{d}g}  {s.n:>5d} {significance_stars(s.p_value)}".rstrip()
            )
        lines.append("---")
        lines.append("Signif. codes:  0 '***' 0.001 '**' 0.01 '*' 0.05 '.' 0.1 ' ' 1")
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return f"RegressSimple(response={self.response!r}, predictors={self.predictors!r})"
