"""Load and access lesson parameters from base_params.json"""
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import copy
import warnings

DEFAULT_PARAMS_FILE = Path(__file__).parent / "base_params.json"


def _read_json(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Params file does not exist: {path}")
    with open(path, 'r') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Params file {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Params file {path} must hold a JSON object, got {type(data).__name__}")
    return data


def _compatible(base: Any, override: Any) -> bool:
    """An override may change a value's type only between int and float, or to/from None"""
    if base is None or override is None or isinstance(override, type(base)):
        return True
    # bool is an int subclass; a flag must stay a flag
    if isinstance(base, bool) or isinstance(override, bool):
        return False
    return isinstance(base, (int, float)) and isinstance(override, (int, float))


class ParamsLoader:
    """
    Lesson parameters: NA tokens, summary and regression settings, diversity
    defaults, plot styling and the output directory.

    base_params.json holds every known key. Overrides (a JSON file and/or a
    dict) can only change existing keys unless strict=False.
    """

    def __init__(self, params_path: Optional[str] = None, base_path: Optional[Path] = None, overrides_path: Optional[Path] = None, overrides: Dict[str, Any] = None, strict: bool = True):
        params_file = Path(params_path or base_path or DEFAULT_PARAMS_FILE)
        self._params = _read_json(params_file)
        self.sources: List[str] = [str(params_file)]

        if overrides_path is not None:
            self.apply_overrides(_read_json(overrides_path), strict=strict)
            self.sources.append(str(overrides_path))
        if overrides:
            self.apply_overrides(overrides, strict=strict)
            self.sources.append('<overrides>')

    def apply_overrides(self, overrides: Dict[str, Any], strict: bool = True) -> None:
        self._params = self._deep_merge(self._params, overrides, strict=strict)

    def _deep_merge(self, base: Any, override: Any, strict: bool = True, path: str = "") -> Any:
        """
        Merge `override` into `base`.

        Nested objects merge key by key; lists and scalars replace the base
        value. Unknown keys raise KeyError and type changes raise TypeError
        in strict mode, and only warn otherwise.
        """
        if not (isinstance(base, dict) and isinstance(override, dict)):
            if not _compatible(base, override):
                msg = f"Type mismatch at '{path}': expected {type(base).__name__}, got {type(override).__name__}"
                if strict:
                    raise TypeError(msg)
                warnings.warn(msg)
            return override

        merged = copy.deepcopy(base)
        for key, value in override.items():
            key_path = f"{path}.{key}" if path else key
            if key in base:
                merged[key] = self._deep_merge(base[key], value, strict=strict, path=key_path)
                continue
            if strict:
                raise KeyError(f"Unknown params key '{key_path}'")
            warnings.warn(f"Unknown params key '{key_path}' added")
            merged[key] = value
        return merged

    def get(self, *keys: str, default: Any = None) -> Any:
        """Nested lookup, e.g. get('plotting', 'dpi')"""
        value = self._params
        for key in keys:
            if not isinstance(value, dict):
                return default
            value = value.get(key, default)
        return value

    def get_default(self, *keys: str) -> Any:
        """Like get, but unwraps {'default': ...} entries such as diversity.index"""
        value = self.get(*keys)
        if isinstance(value, dict) and 'default' in value:
            return value['default']
        return value

    def get_all(self) -> Dict[str, Any]:
        return copy.deepcopy(self._params)

    def snapshot(self) -> Dict[str, Any]:
        """Parameters as used by a run, for summary.json"""
        return self.get_all()
