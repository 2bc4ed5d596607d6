"""Data schema validation for lesson datasets"""
from typing import List, Optional
import pandas as pd


class DatasetSchema:
    """Validates the table shapes the lessons work with"""

    # Dataset kinds understood by DatasetLoader.load
    KINDS = ['community', 'expression', 'regression']

    @staticmethod
    def validate_required_columns(df: pd.DataFrame, name: str, columns: List[str]) -> List[str]:
        """Check that every column in `columns` exists. Returns list of errors."""
        missing = []
        for column in columns:
            if column not in df.columns:
                missing.append(f"{name}: Missing required column '{column}'")
        return missing

    @staticmethod
    def validate_community_matrix(df: pd.DataFrame, name: str, site_column: Optional[str] = None) -> List[str]:
        """
        Validate a site x species count table.
        Species columns must be numeric and non-negative; site ids must be unique.
        """
        errors = []
        species_columns = list(df.columns)

        if site_column is not None:
            if site_column not in df.columns:
                return [f"{name}: Missing site column '{site_column}'"]
            species_columns.remove(site_column)
            duplicates = df[site_column].duplicated()
            if duplicates.any():
                dup_ids = df.loc[duplicates, site_column].astype(str).tolist()
                errors.append(f"{name}: Duplicate site ids: {', '.join(dup_ids)}")

        if not species_columns:
            errors.append(f"{name}: No species columns")
            return errors

        for column in species_columns:
            if not pd.api.types.is_numeric_dtype(df[column]):
                errors.append(f"{name}: Species column '{column}' must be numeric")
            elif (df[column] < 0).any():
                errors.append(f"{name}: Species column '{column}' has negative counts")

        return errors

    @staticmethod
    def validate_expression_table(df: pd.DataFrame, name: str, gene_column: str) -> List[str]:
        """Validate a gene x sample expression table."""
        if gene_column not in df.columns:
            return [f"{name}: Missing gene column '{gene_column}'"]

        errors = []
        duplicates = df[gene_column].duplicated()
        if duplicates.any():
            errors.append(f"{name}: {int(duplicates.sum())} duplicate gene ids in '{gene_column}'")

        sample_columns = [c for c in df.columns if c != gene_column]
        if not sample_columns:
            errors.append(f"{name}: No sample columns")
        for column in sample_columns:
            if not pd.api.types.is_numeric_dtype(df[column]):
                errors.append(f"{name}: Sample column '{column}' must be numeric")
        return errors

    @staticmethod
    def validate_regression_table(df: pd.DataFrame, name: str, response: str, predictors: Optional[List[str]] = None) -> List[str]:
        """Validate response/predictor columns for RegressSimple."""
        columns = [response] + list(predictors or [])
        errors = DatasetSchema.validate_required_columns(df, name, columns)
        if errors:
            return errors

        for column in columns:
            if not pd.api.types.is_numeric_dtype(df[column]):
                errors.append(f"{name}: '{column}' must be numeric")
        return errors
