"""Shared figure helpers (headless matplotlib, saving)"""
from pathlib import Path
from typing import Optional, Union
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from lesson_core.lesson_log import log_lesson_event


SUPPORTED_FORMATS = ['png', 'pdf', 'svg', 'jpg']


def new_figure(figsize=(7.0, 5.0)):
    """Create a single-axes figure"""
    fig, ax = plt.subplots(1, 1, figsize=tuple(figsize))
    return fig, ax


def save_figure(fig, path: Union[str, Path], dpi: Optional[int] = None, fmt: Optional[str] = None) -> Path:
    """
    Write `fig` to `path` and close it.

    The format comes from `fmt` or the file suffix; a path without a suffix
    gets '.png'. Parent directories are created.
    """
    path = Path(path)
    if fmt is None:
        fmt = path.suffix.lstrip('.').lower() or 'png'
    if fmt not in SUPPORTED_FORMATS:
        plt.close(fig)
        raise ValueError(f"Unsupported figure format '{fmt}', expected one of {SUPPORTED_FORMATS}")
    if not path.suffix:
        path = path.with_suffix(f".{fmt}")

    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=dpi or 150, format=fmt)
    plt.close(fig)

    log_lesson_event('figure_saved', {'path': str(path), 'format': fmt})
    return path
