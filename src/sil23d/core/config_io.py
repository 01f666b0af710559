from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import (
    DEFAULT_STL_HEADER,
    DEFAULT_THRESHOLD,
    MARKER_COLOR,
    ColorRGB,
    OutputConfig,
    ProjectConfig,
    SilhouetteConfig,
)


def _path_from_yaml(value: Any, base_dir: Path) -> Optional[Path]:
    """
    Convert a YAML path value (string or None) to a Path relative to base_dir.
    """
    if value is None:
        return None
    p = Path(str(value))
    if not p.is_absolute():
        p = base_dir / p
    return p


def _path_to_yaml(path: Optional[Path], base_dir: Path) -> Optional[str]:
    """
    Convert a Path to a relative string for YAML, relative to base_dir.
    """
    if path is None:
        return None
    try:
        rel = path.relative_to(base_dir)
    except ValueError:
        # If not under base_dir, keep the path as given
        rel = path
    return str(rel)


def _color_from_yaml(value: Any) -> ColorRGB:
    if value is None:
        return MARKER_COLOR
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ValueError(f"output.marker_color must be a list of 3 integers, got {value!r}")
    try:
        r, g, b = (int(c) for c in value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"output.marker_color must be a list of 3 integers, got {value!r}") from exc
    for c in (r, g, b):
        if not 0 <= c <= 255:
            raise ValueError(f"output.marker_color channels must be 0-255, got {value!r}")
    return (r, g, b)


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"{key} must be a mapping, got {type(value).__name__}")
    return value


def _int_from_yaml(value: Any, key: str) -> int:
    # bool is an int subclass; reject it along with None and lists.
    if isinstance(value, bool):
        raise ValueError(f"{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{key} must be an integer, got {value!r}") from exc


def load_project_config(path: Path) -> ProjectConfig:
    """
    Load a ProjectConfig from a YAML file.

    Paths inside the YAML are interpreted as relative to the YAML file
    location. Missing keys fall back to the dataclass defaults.
    """
    path = Path(path)
    base_dir = path.parent

    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Project config must be a mapping, got {type(data).__name__}")

    # --- SilhouetteConfig ---
    sil_d = _section(data, "silhouette")
    threshold = _int_from_yaml(sil_d.get("threshold", DEFAULT_THRESHOLD), "silhouette.threshold")
    if not 0 <= threshold <= 256:
        raise ValueError(f"silhouette.threshold must be in 0-256, got {threshold}")
    sil_cfg = SilhouetteConfig(
        threshold=threshold,
        dark_is_solid=bool(sil_d.get("dark_is_solid", False)),
    )

    # --- OutputConfig ---
    out_d = _section(data, "output")
    defaults = OutputConfig()
    out_cfg = OutputConfig(
        output_dir=_path_from_yaml(out_d.get("output_dir"), base_dir),
        error_suffix_xy=str(out_d.get("error_suffix_xy", defaults.error_suffix_xy)),
        error_suffix_xz=str(out_d.get("error_suffix_xz", defaults.error_suffix_xz)),
        error_suffix_zy=str(out_d.get("error_suffix_zy", defaults.error_suffix_zy)),
        model_suffix=str(out_d.get("model_suffix", defaults.model_suffix)),
        marker_color=_color_from_yaml(out_d.get("marker_color")),
        stl_header=str(out_d.get("stl_header", DEFAULT_STL_HEADER)),
    )

    return ProjectConfig(
        name=str(data.get("name", "sil23d Project")),
        silhouette=sil_cfg,
        output=out_cfg,
        config_path=path,
    )


def save_project_config(cfg: ProjectConfig, path: Path) -> None:
    """
    Save a ProjectConfig to YAML.

    Paths are stored as strings relative to the YAML file location.
    """
    path = Path(path)
    base_dir = path.parent
    base_dir.mkdir(parents=True, exist_ok=True)

    sil = cfg.silhouette
    sil_d: Dict[str, Any] = {
        "threshold": sil.threshold,
        "dark_is_solid": sil.dark_is_solid,
    }

    out = cfg.output
    out_d: Dict[str, Any] = {
        "output_dir": _path_to_yaml(out.output_dir, base_dir),
        "error_suffix_xy": out.error_suffix_xy,
        "error_suffix_xz": out.error_suffix_xz,
        "error_suffix_zy": out.error_suffix_zy,
        "model_suffix": out.model_suffix,
        "marker_color": list(out.marker_color),
        "stl_header": out.stl_header,
    }

    data: Dict[str, Any] = {
        "name": cfg.name,
        "silhouette": sil_d,
        "output": out_d,
    }

    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(
            data,
            f,
            sort_keys=False,
            default_flow_style=False,
        )
