"""
Lesson Runner
Runs one lesson step (summaries, simple regressions, diversity, boxplot, heatmap)
on a CSV table and writes tables, figures and a Markdown report.
"""
import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from lesson_core.config.params_loader import ParamsLoader
from lesson_core.data.loader import read_table
from lesson_core.reporting import LessonReport
from lesson_core.stats.summary import summary_table, group_stats
from lesson_core.stats.regression import RegressSimple
from lesson_core.ecology.diversity import diversity_table
from lesson_core.plotting.boxplot import boxplot
from lesson_core.plotting.heatmap import expression_heatmap


def _split(value):
    return [v for v in value.split(',') if v] if value else None


def _load(args, params):
    return read_table(
        args.input,
        na_values=params.get('io', 'na_values'),
        keep_default_na=params.get('io', 'keep_default_na', default=True),
        strip_column_names=params.get('io', 'strip_column_names', default=True),
    )


def run_summarize(args, params, report: LessonReport):
    """Summary table, plus per-group stats when --group-by and --value are given"""
    df = _load(args, params)
    table = summary_table(df, columns=_split(args.columns), quantile_method=params.get('summary', 'quantile_method'))
    report.add_table('summary', table, index=True)
    print(table.to_string())

    if args.group_by and args.value:
        stats = group_stats(df, _split(args.group_by), args.value, na_rm=params.get('summary', 'na_rm'))
        report.add_table('group_stats', stats)
        print()
        print(stats.to_string(index=False))


def run_regress(args, params, report: LessonReport):
    """RegressSimple of --response on each predictor"""
    df = _load(args, params)
    digits = params.get('regression', 'digits')
    result = RegressSimple(df, args.response, predictors=_split(args.predictors), digits=digits)
    print(result)

    report.add_table('regressions', result.to_frame())
    alpha = params.get('regression', 'alpha')
    significant = result.significant(alpha)
    report.add_text('Simple regressions', f"```\n{result}\n```")
    report.add_text('Significant predictors', f"alpha={alpha}: {', '.join(significant) if significant else 'none'}")


def run_diversity(args, params, report: LessonReport):
    """Per-site richness, shannon, simpson, invsimpson, evenness"""
    df = _load(args, params)
    community = df
    if args.species:
        keep = ([args.site_column] if args.site_column else []) + _split(args.species)
        community = df[keep]
    table = diversity_table(community, site_column=args.site_column, base=params.get('diversity', 'base'))
    index = args.index or params.get_default('diversity', 'index')
    table = table.sort_values(index, ascending=False)
    report.add_table('diversity', table, index=True)
    report.add_text('Diversity', f"Sites ordered by {index} (highest first)")
    print(table.to_string())


def run_boxplot(args, params, report: LessonReport):
    df = _load(args, params)
    fmt = params.get('plotting', 'format')
    path = boxplot(
        df, args.x, args.y,
        path=report.output_dir / f"boxplot_{args.y}_by_{args.x}.{fmt}",
        show_points=params.get('plotting', 'boxplot_show_points'),
        jitter_width=params.get('plotting', 'jitter_width'),
        title=args.title,
        figsize=params.get('plotting', 'figsize'),
        dpi=params.get('plotting', 'dpi'),
        seed=params.get('plotting', 'random_seed'),
    )
    report.add_figure('boxplot', path)


def run_heatmap(args, params, report: LessonReport):
    df = _load(args, params)
    fmt = params.get('plotting', 'format')
    path = expression_heatmap(
        df, args.gene_column,
        samples=_split(args.samples),
        genes=_split(args.genes),
        path=report.output_dir / f"heatmap.{fmt}",
        scale=args.scale or params.get('plotting', 'heatmap_scale'),
        cmap=params.get('plotting', 'cmap'),
        annotate=params.get('plotting', 'heatmap_annotate'),
        title=args.title,
        figsize=params.get('plotting', 'figsize'),
        dpi=params.get('plotting', 'dpi'),
    )
    report.add_figure('heatmap', path)


COMMANDS = {
    'summarize': run_summarize,
    'regress': run_regress,
    'diversity': run_diversity,
    'boxplot': run_boxplot,
    'heatmap': run_heatmap,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Run a lesson step on a CSV table')
    parser.add_argument('--params', type=str, default=None, help='Params overrides JSON (merged into base_params.json)')
    parser.add_argument('--output-dir', type=str, default=None, help='Output directory (default: params output.dir)')
    # subcommands accept the same options after their name; SUPPRESS keeps a value given before the subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--params', type=str, default=argparse.SUPPRESS, help='Params overrides JSON (merged into base_params.json)')
    common.add_argument('--output-dir', type=str, default=argparse.SUPPRESS, help='Output directory (default: params output.dir)')
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('summarize', parents=[common], help='Summary statistics')
    p.add_argument('input', type=str, help='Input CSV/Parquet')
    p.add_argument('--columns', type=str, default=None, help='Comma-separated numeric columns (default: all numeric)')
    p.add_argument('--group-by', type=str, default=None, help='Comma-separated grouping columns')
    p.add_argument('--value', type=str, default=None, help='Value column for per-group stats')

    p = sub.add_parser('regress', parents=[common], help='RegressSimple: one simple regression per predictor')
    p.add_argument('input', type=str)
    p.add_argument('--response', type=str, required=True)
    p.add_argument('--predictors', type=str, default=None, help='Comma-separated predictors (default: all other numeric)')

    p = sub.add_parser('diversity', parents=[common], help='Diversity indices per site')
    p.add_argument('input', type=str)
    p.add_argument('--site-column', type=str, default=None)
    p.add_argument('--species', type=str, default=None, help='Comma-separated species columns (default: all others)')
    p.add_argument('--index', type=str, choices=['shannon', 'simpson', 'invsimpson'], default=None, help='Index to order sites by')

    p = sub.add_parser('boxplot', parents=[common], help='Grouped boxplot')
    p.add_argument('input', type=str)
    p.add_argument('--x', type=str, required=True, help='Grouping column')
    p.add_argument('--y', type=str, required=True, help='Numeric column')
    p.add_argument('--title', type=str, default=None)

    p = sub.add_parser('heatmap', parents=[common], help='Expression heatmap')
    p.add_argument('input', type=str)
    p.add_argument('--gene-column', type=str, required=True)
    p.add_argument('--samples', type=str, default=None)
    p.add_argument('--genes', type=str, default=None)
    p.add_argument('--scale', type=str, choices=['none', 'row', 'column'], default=None)
    p.add_argument('--title', type=str, default=None)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    params = ParamsLoader(overrides_path=args.params) if args.params else ParamsLoader()
    output_dir = Path(args.output_dir or params.get('output', 'dir'))
    report = LessonReport(output_dir, digits=params.get('regression', 'digits'))

    print(f"Running '{args.command}' on {args.input}...", file=sys.stderr, flush=True)
    COMMANDS[args.command](args, params, report)

    report.write_summary_json(params.snapshot())
    report_path = report.write_markdown(title=f"Lesson: {args.command}")
    print(f"\nReport saved to {report_path}")
    return report


if __name__ == '__main__':
    main()
