"""Tests for diversity indices"""
import pytest
import pandas as pd
import numpy as np

from lesson_core.ecology.diversity import (
    diversity,
    species_richness,
    pielou_evenness,
    diversity_table,
    community_matrix,
)
from tests.fixtures.toy_datasets import generate_species_counts, generate_long_counts


@pytest.fixture
def even_and_single():
    """Site 'even': 4 species, equal counts. Site 'single': one species. Site 'empty': nothing."""
    return pd.DataFrame(
        {'oak': [5, 9, 0], 'beech': [5, 0, 0], 'fern': [5, 0, 0], 'moss': [5, 0, 0]},
        index=pd.Index(['even', 'single', 'empty'], name='site'),
    )


def test_shannon(even_and_single):
    h = diversity(even_and_single, 'shannon')
    assert h['even'] == pytest.approx(np.log(4))
    assert h['single'] == 0.0
    assert h['empty'] == 0.0

    h2 = diversity(even_and_single, 'shannon', base=2)
    assert h2['even'] == pytest.approx(2.0)


def test_simpson_and_invsimpson(even_and_single):
    d = diversity(even_and_single, 'simpson')
    assert d['even'] == pytest.approx(0.75)
    assert d['single'] == 0.0
    assert d['empty'] == 0.0

    inv = diversity(even_and_single, 'invsimpson')
    assert inv['even'] == pytest.approx(4.0)
    assert inv['single'] == pytest.approx(1.0)
    assert np.isinf(inv['empty'])


def test_unequal_abundances():
    community = pd.DataFrame({'a': [1], 'b': [3]})
    h = diversity(community, 'shannon').iloc[0]
    assert h == pytest.approx(-(0.25 * np.log(0.25) + 0.75 * np.log(0.75)))
    assert diversity(community, 'simpson').iloc[0] == pytest.approx(1 - (0.0625 + 0.5625))


def test_margin_two(even_and_single):
    per_species = diversity(even_and_single, 'shannon', margin=2)
    assert list(per_species.index) == ['oak', 'beech', 'fern', 'moss']
    # beech occurs at one site only
    assert per_species['beech'] == 0.0
    assert per_species['oak'] > 0


def test_invalid_arguments(even_and_single):
    with pytest.raises(ValueError):
        diversity(even_and_single, 'berger')
    with pytest.raises(ValueError):
        diversity(even_and_single, margin=3)
    with pytest.raises(ValueError):
        diversity(pd.DataFrame({'a': [1, -1]}))
    with pytest.raises(ValueError):
        diversity(pd.DataFrame({'a': [1], 'label': ['x']}))


def test_richness_and_evenness(even_and_single):
    richness = species_richness(even_and_single)
    assert richness.to_dict() == {'even': 4, 'single': 1, 'empty': 0}

    evenness = pielou_evenness(even_and_single)
    assert evenness['even'] == pytest.approx(1.0)
    assert np.isnan(evenness['single'])
    assert np.isnan(evenness['empty'])


def test_diversity_table_with_site_column():
    counts = generate_species_counts().drop(columns=['habitat'])
    table = diversity_table(counts, site_column='site')

    assert list(table.columns) == ['richness', 'shannon', 'simpson', 'invsimpson', 'evenness']
    assert table.index.name == 'site'
    assert len(table) == 6
    assert table.loc['S1', 'richness'] == 1
    assert table.loc['S1', 'shannon'] == 0.0
    assert (table['simpson'] <= 1).all()


def test_missing_counts_are_zero():
    community = pd.DataFrame({'a': [2.0], 'b': [np.nan], 'c': [2.0]})
    assert diversity(community, 'invsimpson').iloc[0] == pytest.approx(2.0)


def test_community_matrix_from_long():
    matrix = community_matrix(generate_long_counts(), 'site', 'species', 'count')

    assert list(matrix.index) == ['A', 'B']
    assert matrix.loc['A', 'oak'] == 5  # 3 + 2
    assert matrix.loc['B', 'fern'] == 0
    assert matrix.loc['B', 'clover'] == 1

    with pytest.raises(KeyError):
        community_matrix(generate_long_counts(), 'plot', 'species', 'count')
