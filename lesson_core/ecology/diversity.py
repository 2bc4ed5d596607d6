"""Diversity indices for site x species community matrices: shannon, simpson, invsimpson, richness, evenness"""
import pandas as pd
import numpy as np
from typing import Optional


DIVERSITY_INDICES = ['shannon', 'simpson', 'invsimpson']


def _numeric_matrix(community: pd.DataFrame, site_column: Optional[str] = None) -> pd.DataFrame:
    if site_column is not None:
        if site_column not in community.columns:
            raise KeyError(f"Site column '{site_column}' not found")
        community = community.set_index(site_column)

    non_numeric = [c for c in community.columns if not pd.api.types.is_numeric_dtype(community[c])]
    if non_numeric:
        raise ValueError(f"Community matrix has non-numeric species column(s): {non_numeric}")

    matrix = community.astype(float).fillna(0.0)
    if (matrix.to_numpy() < 0).any():
        raise ValueError("Community matrix has negative abundances")
    return matrix


def diversity(community: pd.DataFrame, index: str = 'shannon', margin: int = 1, base: Optional[float] = None, site_column: Optional[str] = None) -> pd.Series:
    """
    Diversity index per site (margin=1, rows) or per species (margin=2, columns).

    shannon:    H = -sum(p_i * log(p_i)), log in `base` (natural log if None)
    simpson:    D = 1 - sum(p_i^2)
    invsimpson: 1 / sum(p_i^2)

    Zero abundances contribute nothing. An empty site gives 0 for shannon and
    simpson and inf for invsimpson.
    """
    if index not in DIVERSITY_INDICES:
        raise ValueError(f"Unknown diversity index '{index}', expected one of {DIVERSITY_INDICES}")
    if margin not in (1, 2):
        raise ValueError(f"margin must be 1 (rows) or 2 (columns), got {margin}")

    matrix = _numeric_matrix(community, site_column)
    x = matrix.to_numpy()
    labels = matrix.index
    if margin == 2:
        x = x.T
        labels = matrix.columns

    totals = x.sum(axis=1, keepdims=True)
    with np.errstate(divide='ignore', invalid='ignore'):
        p = np.where(totals > 0, x / totals, 0.0)

        if index == 'shannon':
            logs = np.log(p, where=p > 0, out=np.zeros_like(p))
            if base is not None:
                logs = logs / np.log(base)
            values = -np.sum(p * logs, axis=1)
        else:
            sum_sq = np.sum(p ** 2, axis=1)
            if index == 'simpson':
                values = np.where(totals[:, 0] > 0, 1.0 - sum_sq, 0.0)
            else:
                values = np.where(sum_sq > 0, 1.0 / sum_sq, np.inf)

    return pd.Series(values + 0.0, index=labels, name=index)


def species_richness(community: pd.DataFrame, site_column: Optional[str] = None) -> pd.Series:
    """Number of species with abundance > 0 per site"""
    matrix = _numeric_matrix(community, site_column)
    return (matrix > 0).sum(axis=1).rename('richness')


def pielou_evenness(community: pd.DataFrame, site_column: Optional[str] = None) -> pd.Series:
    """Pielou's J = H / ln(S); NaN where richness <= 1"""
    h = diversity(community, 'shannon', site_column=site_column)
    s = species_richness(community, site_column=site_column).astype(float)
    with np.errstate(divide='ignore', invalid='ignore'):
        j = np.where(s > 1, h.to_numpy() / np.log(s.to_numpy()), np.nan)
    return pd.Series(j, index=h.index, name='evenness')


def diversity_table(community: pd.DataFrame, site_column: Optional[str] = None, base: Optional[float] = None) -> pd.DataFrame:
    """richness, shannon, simpson, invsimpson and evenness per site"""
    table = pd.DataFrame({
        'richness': species_richness(community, site_column),
        'shannon': diversity(community, 'shannon', base=base, site_column=site_column),
        'simpson': diversity(community, 'simpson', site_column=site_column),
        'invsimpson': diversity(community, 'invsimpson', site_column=site_column),
        'evenness': pielou_evenness(community, site_column),
    })
    table.index.name = site_column or community.index.name or 'site'
    return table


def community_matrix(df: pd.DataFrame, site_column: str, species_column: str, count_column: str) -> pd.DataFrame:
    """
    Long (site, species, count) records -> site x species matrix.
    Repeated (site, species) records are summed; absent pairs are 0.
    """
    unknown = [c for c in (site_column, species_column, count_column) if c not in df.columns]
    if unknown:
        raise KeyError(f"Unknown column(s): {unknown}")

    matrix = df.pivot_table(
        index=site_column,
        columns=species_column,
        values=count_column,
        aggfunc='sum',
        fill_value=0,
    )
    matrix.columns.name = None
    return matrix
