"""Tests for the table verbs"""
import pytest
import pandas as pd
import numpy as np

from lesson_core.wrangling.verbs import (
    filter_rows,
    select_columns,
    mutate,
    arrange,
    group_summarize,
    count_by,
    join_tables,
    pivot_longer,
    pivot_wider,
    drop_missing,
    apply_columns,
)
from tests.fixtures.toy_datasets import generate_measurements


@pytest.fixture
def measurements():
    return generate_measurements()


def test_filter_string_is_case_sensitive(measurements):
    """'Oak' and 'oak' are different values unless case_sensitive=False"""
    exact = filter_rows(measurements, 'species', '==', 'Oak')
    assert len(exact) == 2

    loose = filter_rows(measurements, 'species', '==', 'oak', case_sensitive=False)
    assert len(loose) == 3


def test_filter_numeric_drops_missing(measurements):
    """A missing height never satisfies a comparison"""
    tall = filter_rows(measurements, 'height', '>', 5)
    assert len(tall) == 4
    assert tall['height'].notna().all()

    not_ten = filter_rows(measurements, 'height', '!=', 10.0)
    assert len(not_ten) == 4


def test_filter_isna_and_membership(measurements):
    assert len(filter_rows(measurements, 'height', 'isna')) == 1
    assert len(filter_rows(measurements, 'height', 'notna')) == 5
    assert len(filter_rows(measurements, 'species', 'in', ['Beech', 'Fern'])) == 3
    assert len(filter_rows(measurements, 'species', 'not_in', ['Beech'])) == 4


def test_filter_membership_single_value(measurements):
    """A scalar is one value to match, not a sequence of characters"""
    assert len(filter_rows(measurements, 'species', 'in', 'Oak')) == 2
    assert len(filter_rows(measurements, 'species', 'not_in', 'Oak')) == 4
    assert len(filter_rows(measurements, 'height', 'in', 10.0)) == 1
    assert len(filter_rows(measurements, 'height', 'not_in', 10)) == 4


def test_filter_contains(measurements):
    assert len(filter_rows(measurements, 'species', 'contains', 'ee')) == 2
    assert len(filter_rows(measurements, 'species', 'contains', 'OAK')) == 0
    assert len(filter_rows(measurements, 'species', 'contains', 'OAK', case_sensitive=False)) == 3
    assert len(filter_rows(measurements, 'species', 'startswith', 'b', case_sensitive=False)) == 2


def test_filter_errors(measurements):
    with pytest.raises(KeyError):
        filter_rows(measurements, 'colour', '==', 'red')
    with pytest.raises(ValueError):
        filter_rows(measurements, 'height', '~', 1)


def test_select_and_mutate(measurements):
    selected = select_columns(measurements, ['site', 'height'])
    assert list(selected.columns) == ['site', 'height']

    with pytest.raises(KeyError):
        select_columns(measurements, ['weight'])

    mutated = mutate(
        measurements,
        height_m=lambda d: d['height'] / 100,
        height_cm=lambda d: d['height_m'] * 100,
        source='survey',
    )
    assert 'height' in measurements.columns and 'height_m' not in measurements.columns
    assert mutated['height_m'].iloc[0] == pytest.approx(0.1)
    assert mutated['height_cm'].iloc[1] == pytest.approx(12.0)
    assert (mutated['source'] == 'survey').all()


def test_arrange_missing_last(measurements):
    ascending = arrange(measurements, 'height')
    assert ascending['height'].iloc[0] == 1.5
    assert pd.isna(ascending['height'].iloc[-1])

    descending = arrange(measurements, 'height', descending=True)
    assert descending['height'].iloc[0] == 20.0
    assert pd.isna(descending['height'].iloc[-1])


def test_group_summarize_na_propagates(measurements):
    result = group_summarize(measurements, 'species', {
        'mean_height': ('height', 'mean'),
        'n': ('height', 'n'),
    })
    beech = result[result['species'] == 'Beech'].iloc[0]
    assert np.isnan(beech['mean_height'])
    assert beech['n'] == 2

    result = group_summarize(measurements, 'species', {'mean_height': ('height', 'mean')}, na_rm=True)
    beech = result[result['species'] == 'Beech'].iloc[0]
    assert beech['mean_height'] == 20.0


def test_group_summarize_multiple_keys(measurements):
    result = group_summarize(measurements, ['species', 'site'], {
        'total': ('height', 'sum'),
        'sd': ('height', 'sd'),
        'se': ('height', 'se'),
        'kinds': ('site', 'n_distinct'),
    }, na_rm=True)
    assert list(result.columns) == ['species', 'site', 'total', 'sd', 'se', 'kinds']
    assert len(result) == 6
    oak_a = result[(result['species'] == 'Oak') & (result['site'] == 'A')].iloc[0]
    assert oak_a['total'] == 10.0
    # single value: sd and se undefined
    assert np.isnan(oak_a['sd'])
    assert np.isnan(oak_a['se'])


def test_group_summarize_unknown_func(measurements):
    with pytest.raises(ValueError):
        group_summarize(measurements, 'species', {'x': ('height', 'mode')})


def test_count_by(measurements):
    counts = count_by(measurements, 'site')
    assert counts.set_index('site')['n'].to_dict() == {'A': 3, 'B': 3}


def test_join_suffixes_collisions(capsys):
    sites = pd.DataFrame({'site': ['A', 'B'], 'value': [1, 2]})
    soil = pd.DataFrame({'site': ['A', 'C'], 'value': [10, 30], 'ph': [6.5, 7.0]})

    joined = join_tables(sites, soil, on='site')
    assert list(joined.columns) == ['site', 'value.x', 'value.y', 'ph']
    assert len(joined) == 1
    assert 'join_collision' in capsys.readouterr().out

    left = join_tables(sites, soil, on='site', how='left')
    assert len(left) == 2
    assert pd.isna(left.loc[left['site'] == 'B', 'ph'].iloc[0])

    with pytest.raises(ValueError):
        join_tables(sites, soil, on='site', how='cross')


def test_pivot_longer_then_wider():
    wide = pd.DataFrame({'site': ['A', 'B'], 'oak': [1, 0], 'fern': [3, 2]})
    long = pivot_longer(wide, 'site', names_to='species', values_to='count')
    assert len(long) == 4
    assert set(long.columns) == {'site', 'species', 'count'}

    back = pivot_wider(long, 'site', names_from='species', values_from='count')
    assert back.set_index('site').loc['A', 'fern'] == 3


def test_pivot_wider_fill_and_duplicates():
    long = pd.DataFrame({'site': ['A', 'B'], 'species': ['oak', 'fern'], 'count': [1, 2]})
    wide = pivot_wider(long, 'site', 'species', 'count', fill_value=0)
    assert wide.set_index('site').loc['A', 'fern'] == 0

    dup = pd.DataFrame({'site': ['A', 'A'], 'species': ['oak', 'oak'], 'count': [1, 2]})
    with pytest.raises(ValueError):
        pivot_wider(dup, 'site', 'species', 'count')


def test_drop_missing(measurements):
    assert len(drop_missing(measurements)) == 5
    assert len(drop_missing(measurements, 'site')) == 6


def test_apply_columns(measurements):
    result = apply_columns(measurements, lambda s: s.max())
    assert list(result.keys()) == ['height']
    assert result['height'] == 20.0
