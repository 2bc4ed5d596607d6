"""Smoke tests for the lesson runner and data integrity scripts"""
import json
from pathlib import Path
import pytest
import pandas as pd
import numpy as np

from scripts.run_lesson import main as run_lesson
from scripts.validate_data_integrity import validate_table, has_failures, main as validate_main
from tests.fixtures.toy_datasets import (
    generate_species_counts,
    generate_expression,
    generate_regression_data,
    generate_measurements,
    write_datasets,
)


class TestRunLessonSmoke:
    @pytest.fixture
    def data_dir(self, tmp_path):
        return Path(write_datasets({
            'species': generate_species_counts(),
            'expression': generate_expression(),
            'growth': generate_regression_data(),
            'measurements': generate_measurements(),
        }, tmp_path))

    def test_summarize(self, data_dir, tmp_path):
        out = tmp_path / "summarize"
        report = run_lesson(['--output-dir', str(out), 'summarize', str(data_dir / 'measurements.csv'),
                             '--group-by', 'site', '--value', 'height'])

        assert (out / 'summary.csv').exists()
        assert (out / 'group_stats.csv').exists()
        assert (out / 'report.md').exists()
        assert set(report.tables) == {'summary', 'group_stats'}

    def test_regress(self, data_dir, tmp_path, capsys):
        out = tmp_path / "regress"
        run_lesson(['--output-dir', str(out), 'regress', str(data_dir / 'growth.csv'), '--response', 'growth'])

        printed = capsys.readouterr().out
        assert 'Simple regressions of growth on 3 predictor(s)' in printed
        regressions = pd.read_csv(out / 'regressions.csv')
        assert list(regressions['predictor']) == ['temperature', 'rainfall', 'noise']
        assert 'temperature' in (out / 'report.md').read_text()

    def test_diversity(self, data_dir, tmp_path):
        out = tmp_path / "diversity"
        run_lesson(['--output-dir', str(out), 'diversity', str(data_dir / 'species.csv'),
                    '--site-column', 'site', '--species', 'oak,beech,fern,moss,clover'])

        table = pd.read_csv(out / 'diversity.csv')
        assert list(table.columns) == ['site', 'richness', 'shannon', 'simpson', 'invsimpson', 'evenness']
        assert len(table) == 6

    def test_boxplot_and_heatmap(self, data_dir, tmp_path):
        out = tmp_path / "plots"
        run_lesson(['--output-dir', str(out), 'boxplot', str(data_dir / 'measurements.csv'), '--x', 'site', '--y', 'height'])
        assert (out / 'boxplot_height_by_site.png').exists()

        run_lesson(['--output-dir', str(out), 'heatmap', str(data_dir / 'expression.csv'), '--gene-column', 'gene', '--scale', 'none'])
        assert (out / 'heatmap.png').exists()

        with open(out / 'summary.json') as f:
            summary = json.load(f)
        assert 'heatmap' in summary['figures']

    def test_params_override(self, data_dir, tmp_path):
        overrides = tmp_path / "overrides.json"
        overrides.write_text(json.dumps({'plotting': {'format': 'pdf'}}))
        out = tmp_path / "pdf"
        run_lesson(['--params', str(overrides), '--output-dir', str(out),
                    'boxplot', str(data_dir / 'measurements.csv'), '--x', 'site', '--y', 'height'])
        assert (out / 'boxplot_height_by_site.pdf').exists()

    def test_options_after_subcommand(self, data_dir, tmp_path):
        overrides = tmp_path / "overrides.json"
        overrides.write_text(json.dumps({'plotting': {'format': 'svg'}}))
        out = tmp_path / "after"
        run_lesson(['boxplot', str(data_dir / 'measurements.csv'), '--x', 'site', '--y', 'height',
                    '--output-dir', str(out), '--params', str(overrides)])

        svg_path = out / 'boxplot_height_by_site.svg'
        assert svg_path.exists()
        assert '<svg' in svg_path.read_text()

    def test_options_before_subcommand_survive(self, data_dir, tmp_path):
        out = tmp_path / "before"
        run_lesson(['--output-dir', str(out), 'summarize', str(data_dir / 'measurements.csv')])
        assert (out / 'summary.csv').exists()

    def test_diversity_ordered_by_index(self, data_dir, tmp_path):
        out = tmp_path / "simpson"
        run_lesson(['diversity', str(data_dir / 'species.csv'), '--output-dir', str(out),
                    '--site-column', 'site', '--species', 'oak,beech,fern,moss,clover', '--index', 'simpson'])

        table = pd.read_csv(out / 'diversity.csv')
        assert list(table['simpson']) == sorted(table['simpson'], reverse=True)
        assert 'Sites ordered by simpson' in (out / 'report.md').read_text()


class TestValidateDataIntegrity:
    def test_clean_table(self):
        issues = validate_table('species', generate_species_counts(), count_columns=['oak', 'fern'])
        assert issues['duplicates'] == 0
        assert issues['negative_counts'] == {}
        assert not has_failures(issues)

    def test_problems_detected(self):
        df = pd.DataFrame({
            'species': ['Oak', 'oak', 'Fern', 'Fern'],
            'count': [1.0, -2.0, np.inf, np.inf],
            'label': ['x', 'y', 'z', 'z'],
        })
        issues = validate_table('bad', df, count_columns=['count', 'label'])

        assert issues['duplicates'] == 1
        assert issues['infs'] == {'count': 2}
        assert issues['negative_counts'] == {'count': 1}
        assert issues['non_numeric'] == ['label']
        assert issues['case_variants'] == {'species': ['Oak', 'oak']}
        assert has_failures(issues)

    def test_nans_counted_but_not_failing(self):
        issues = validate_table('m', generate_measurements())
        assert issues['nans'] == {'height': 1}
        assert issues['case_variants'] == {'species': ['Oak', 'oak']}
        assert not has_failures(issues)

    def test_main_strict_exit(self, tmp_path, monkeypatch):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        pd.DataFrame({'site': ['A', 'A'], 'n': [1, 1]}).to_csv(data_dir / 'dups.csv', index=False)
        out = tmp_path / "artifacts"

        monkeypatch.setattr('sys.argv', ['validate', '--data-path', str(data_dir), '--output-dir', str(out), '--strict'])
        with pytest.raises(SystemExit) as exc:
            validate_main()
        assert exc.value.code == 1

        with open(out / 'data_integrity_report.json') as f:
            report = json.load(f)
        assert report['failed'] == ['dups']
