"""Tests for YAML project configuration."""

from pathlib import Path

import pytest

from sil23d.core.config_io import load_project_config, save_project_config
from sil23d.core.models import (
    DEFAULT_THRESHOLD,
    MARKER_COLOR,
    OutputConfig,
    ProjectConfig,
    SilhouetteConfig,
)


def test_defaults_from_empty_file(tmp_path):
    path = tmp_path / "project.yaml"
    path.write_text("", encoding="utf-8")
    cfg = load_project_config(path)
    assert cfg.silhouette.threshold == DEFAULT_THRESHOLD
    assert cfg.silhouette.dark_is_solid is False
    assert cfg.output.output_dir is None
    assert cfg.output.marker_color == MARKER_COLOR
    assert cfg.config_path == path


def test_round_trip(tmp_path):
    path = tmp_path / "cfg" / "project.yaml"
    cfg = ProjectConfig(
        name="Teapot",
        silhouette=SilhouetteConfig(threshold=100, dark_is_solid=True),
        output=OutputConfig(
            output_dir=tmp_path / "cfg" / "out",
            model_suffix="_Hull",
            marker_color=(0, 255, 0),
            stl_header="teapot",
        ),
    )
    save_project_config(cfg, path)

    # Output dir is stored relative to the YAML file.
    assert "output_dir: out" in path.read_text(encoding="utf-8")

    loaded = load_project_config(path)
    assert loaded.name == "Teapot"
    assert loaded.silhouette == cfg.silhouette
    assert loaded.output.output_dir == tmp_path / "cfg" / "out"
    assert loaded.output.model_suffix == "_Hull"
    assert loaded.output.marker_color == (0, 255, 0)
    assert loaded.output.stl_header == "teapot"
    assert loaded.output.error_suffix_xy == "_Error_XY"


def test_relative_output_dir_resolves_against_yaml(tmp_path):
    path = tmp_path / "project.yaml"
    path.write_text("output:\n  output_dir: results\n", encoding="utf-8")
    cfg = load_project_config(path)
    assert cfg.output.output_dir == Path(tmp_path / "results")


@pytest.mark.parametrize(
    "text",
    [
        "silhouette:\n  threshold: 999\n",
        "output:\n  marker_color: [1, 2]\n",
        "output:\n  marker_color: [0, 0, 300]\n",
        "- just\n- a list\n",
        "silhouette: [unclosed\n",
        "silhouette:\n  threshold: null\n",
        "silhouette:\n  threshold: [1]\n",
        "silhouette: [1, 2]\n",
        "output: just text\n",
        "output:\n  marker_color: 5\n",
        "output:\n  marker_color: [a, b, c]\n",
    ],
)
def test_invalid_values(tmp_path, text):
    path = tmp_path / "bad.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ValueError):
        load_project_config(path)
