"""Report generation: CSV/JSON outputs and a Markdown lesson report"""
import json
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import numpy as np
import pandas as pd
from lesson_core.lesson_log import log_lesson_event


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, (np.integer,)):
        return int(value)
    if isinstance(value, (np.floating,)):
        value = float(value)
    if isinstance(value, float) and (np.isnan(value) or np.isinf(value)):
        return None
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


def frame_to_markdown(df: pd.DataFrame, digits: int = 4, max_rows: int = 50) -> List[str]:
    """Render a DataFrame as Markdown table lines"""
    shown = df.head(max_rows)
    headers = [str(c) for c in shown.columns]
    lines = [
        "| " + " | ".join(headers) + " |",
        "|" + "|".join(["---"] * len(headers)) + "|",
    ]
    for _, row in shown.iterrows():
        cells = []
        for value in row:
            if isinstance(value, (float, np.floating)):
                cells.append("NA" if pd.isna(value) else f"{value:.{digits}g}")
            else:
                cells.append("NA" if value is None or (not isinstance(value, str) and pd.isna(value)) else str(value))
        lines.append("| " + " | ".join(cells) + " |")
    if len(df) > max_rows:
        lines.append("")
        lines.append(f"*... {len(df) - max_rows} more rows*")
    return lines


class LessonReport:
    """Collects tables, figures and notes from one lesson run and writes them out"""

    def __init__(self, output_dir: Union[str, Path], digits: int = 4):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.digits = digits
        self.tables: Dict[str, pd.DataFrame] = {}
        self.table_paths: Dict[str, Path] = {}
        self.figures: Dict[str, Path] = {}
        self.notes: List[Dict[str, str]] = []
        self.events: List[Dict[str, Any]] = []

    def add_table(self, name: str, df: pd.DataFrame, index: bool = False) -> Path:
        """Store `df` and write it to <output_dir>/<name>.csv"""
        path = self.output_dir / f"{name}.csv"
        df.to_csv(path, index=index)
        self.tables[name] = df.reset_index() if index else df
        self.table_paths[name] = path
        log_lesson_event('table_written', {'name': name, 'path': str(path), 'rows': len(df)}, logger=self.events)
        return path

    def add_figure(self, name: str, path: Union[str, Path]) -> None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Figure does not exist: {path}")
        self.figures[name] = path

    def add_text(self, section: str, text: str) -> None:
        self.notes.append({'section': section, 'text': text})

    def write_summary_json(self, params_snapshot: Optional[Dict[str, Any]] = None) -> Path:
        """Write summary.json: generation time, tables (rows/columns), figures, params"""
        summary = {
            'generated_at': datetime.now(UTC).isoformat(),
            'tables': {
                name: {
                    'path': str(self.table_paths[name].name),
                    'rows': len(df),
                    'columns': [str(c) for c in df.columns],
                }
                for name, df in self.tables.items()
            },
            'figures': {name: str(path) for name, path in self.figures.items()},
            'notes': self.notes,
            'params': params_snapshot or {},
        }
        path = self.output_dir / 'summary.json'
        with open(path, 'w') as f:
            json.dump(_to_jsonable(summary), f, indent=2, default=str)
        return path

    def write_markdown(self, title: str = 'Lesson Report') -> Path:
        """Write report.md with Tables, Figures and Notes sections"""
        lines = [f"# {title}", ""]
        lines.append(f"*Generated: {datetime.now(UTC).strftime('%Y-%m-%d %H:%M UTC')}*")
        lines.append("")

        if self.tables:
            lines.append("## Tables")
            lines.append("")
            for name, df in self.tables.items():
                lines.append(f"### {name}")
                lines.append("")
                lines.extend(frame_to_markdown(df, digits=self.digits))
                lines.append("")

        if self.figures:
            lines.append("## Figures")
            lines.append("")
            for name, path in self.figures.items():
                try:
                    rel = path.resolve().relative_to(self.output_dir.resolve())
                except ValueError:
                    rel = path
                lines.append(f"![{name}]({rel.as_posix()})")
                lines.append("")

        if self.notes:
            lines.append("## Notes")
            lines.append("")
            for note in self.notes:
                lines.append(f"**{note['section']}**")
                lines.append("")
                lines.append(note['text'])
                lines.append("")

        path = self.output_dir / 'report.md'
        with open(path, 'w', encoding='utf-8') as f:
            f.write('\n'.join(lines))
        return path
