"""CSV/Parquet dataset loader for the lesson walkthroughs"""
from pathlib import Path
from typing import Dict, Optional, List, Any
import pandas as pd
from .schema import DatasetSchema
from lesson_core.lesson_log import log_lesson_event


DEFAULT_NA_VALUES = ['NA', 'N/A', '', '.']


def read_table(path, na_values: Optional[List[str]] = None, keep_default_na: bool = True, strip_column_names: bool = True) -> pd.DataFrame:
    """
    Read a single CSV or Parquet file into a DataFrame.

    Missing-value tokens (R's "NA" included) become NaN. Header whitespace is
    stripped so that " Site" and "Site" are the same column.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file does not exist: {path}")

    if path.suffix == '.parquet':
        df = pd.read_parquet(path)
    else:
        df = pd.read_csv(
            path,
            na_values=DEFAULT_NA_VALUES if na_values is None else na_values,
            keep_default_na=keep_default_na,
        )

    if strip_column_names:
        df.columns = [str(c).strip() for c in df.columns]

    return df


class DatasetLoader:
    """Loads and validates named lesson datasets from a data directory"""

    def __init__(self, data_path: str, na_values: Optional[List[str]] = None, keep_default_na: bool = True, strip_column_names: bool = True):
        self.data_path = Path(data_path)
        if not self.data_path.exists():
            raise FileNotFoundError(f"Data path does not exist: {data_path}")

        self.na_values = DEFAULT_NA_VALUES if na_values is None else list(na_values)
        self.keep_default_na = keep_default_na
        self.strip_column_names = strip_column_names

        self._tables: Dict[str, pd.DataFrame] = {}
        self._kinds: Dict[str, Optional[str]] = {}
        self.events: List[Dict[str, Any]] = []

    @classmethod
    def from_params(cls, data_path: str, params) -> 'DatasetLoader':
        """Build a loader from the `io` section of a ParamsLoader"""
        return cls(
            data_path,
            na_values=params.get('io', 'na_values'),
            keep_default_na=params.get('io', 'keep_default_na', default=True),
            strip_column_names=params.get('io', 'strip_column_names', default=True),
        )

    def _resolve(self, name: str) -> Optional[Path]:
        for suffix in ('.csv', '.parquet'):
            candidate = self.data_path / f"{name}{suffix}"
            if candidate.exists():
                return candidate
        return None

    def load(self, name: str, kind: Optional[str] = None, **schema_kwargs) -> List[str]:
        """
        Load dataset `name` (<name>.csv or <name>.parquet).

        kind selects schema validation: 'community' (site_column=...),
        'expression' (gene_column=...) or 'regression' (response=..., predictors=...).
        Returns list of validation errors (empty if valid).
        """
        if kind is not None and kind not in DatasetSchema.KINDS:
            raise ValueError(f"Unknown dataset kind '{kind}', expected one of {DatasetSchema.KINDS}")
        if kind == 'expression' and not schema_kwargs.get('gene_column'):
            raise ValueError(f"Dataset kind 'expression' needs gene_column=... (loading '{name}')")
        if kind == 'regression' and not schema_kwargs.get('response'):
            raise ValueError(f"Dataset kind 'regression' needs response=... (loading '{name}')")

        path = self._resolve(name)
        if path is None:
            return [f"{name}: data file not found in {self.data_path}"]

        df = read_table(
            path,
            na_values=self.na_values,
            keep_default_na=self.keep_default_na,
            strip_column_names=self.strip_column_names,
        )

        if len(df) == 0:
            return [f"{name}: No rows in {path.name}"]

        errors: List[str] = []
        if kind == 'community':
            errors.extend(DatasetSchema.validate_community_matrix(df, name, schema_kwargs.get('site_column')))
        elif kind == 'expression':
            errors.extend(DatasetSchema.validate_expression_table(df, name, schema_kwargs['gene_column']))
        elif kind == 'regression':
            errors.extend(DatasetSchema.validate_regression_table(
                df, name, schema_kwargs['response'], schema_kwargs.get('predictors')
            ))

        self._tables[name] = df
        self._kinds[name] = kind

        log_lesson_event('dataset_loaded', {
            'name': name,
            'file': path.name,
            'rows': len(df),
            'columns': len(df.columns),
            'missing_values': int(df.isna().sum().sum()),
            'validation_errors': len(errors),
        }, logger=self.events)

        return errors

    def get(self, name: str) -> Optional[pd.DataFrame]:
        """Get a loaded dataset (None if not loaded)"""
        return self._tables.get(name)

    def get_kind(self, name: str) -> Optional[str]:
        return self._kinds.get(name)

    def get_names(self) -> List[str]:
        """Get list of loaded dataset names"""
        return list(self._tables.keys())

    def missing_report(self, name: str) -> pd.Series:
        """Per-column count of missing values for a loaded dataset"""
        df = self._tables.get(name)
        if df is None:
            raise KeyError(f"Dataset '{name}' is not loaded")
        return df.isna().sum()
