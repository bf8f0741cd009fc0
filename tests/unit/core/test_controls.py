"""Unit tests for Controls snapshots and the controls config file."""

import pytest

from jnkn_viz.config import COLORS, is_display_control, load_controls_file
from jnkn_viz.context import default_controls
from jnkn_viz.core.types import Category, Controls


class TestControls:
    def test_merge_returns_new_snapshot(self):
        base = default_controls()
        merged = base.merge({"nodeSize": 6, "colorClass": "#000000"})

        assert merged is not base
        assert merged.node_size == 6
        assert base.node_size == 3.0
        assert merged.flag("colorClass") == "#000000"

    def test_snapshot_is_frozen(self):
        with pytest.raises(ValueError):
            default_controls().node_size = 10

    def test_legacy_rotate_delay_key(self):
        controls = Controls.model_validate({"AUTO_ROTATE_DELAY": 2500})
        assert controls.auto_rotate_delay == 2500
        assert controls.to_wire()["autoRotateDelay"] == 2500

    def test_unknown_keys_survive_round_trip(self):
        controls = default_controls().merge({"panelTheme": "dark"})
        assert controls.merge({}).flag("panelTheme") == "dark"

    def test_type_color_prefers_nested_table(self):
        controls = default_controls().merge({
            "typeColors": {"node": {"Class": "#111111"}},
        })
        assert controls.type_color(Category.NODE, "Class") == "#111111"
        assert controls.type_color(Category.NODE, "Interface") == "#6ee7b7"
        assert controls.type_color(Category.NODE, "Enum") is None
        assert controls.type_color(Category.NODE, None) is None

    def test_type_visibility(self):
        controls = default_controls().merge({"showExtends": False})
        assert not controls.is_type_visible(Category.EDGE, "Extends")
        assert controls.is_type_visible(Category.EDGE, "SomethingNew")
        assert controls.is_type_visible(Category.NODE, None)

    def test_stack_trace_visibility_follows_flag(self):
        controls = default_controls().merge({"showStackTrace": False})
        assert not controls.is_type_visible(Category.EDGE, "StackTrace")

    def test_scheme_color_fallback(self):
        controls = default_controls().merge({"COLORS": {"LABEL": "#eeeeee"}})
        assert controls.color("LABEL") == "#eeeeee"
        assert controls.color("NODE_DEFAULT") == COLORS["NODE_DEFAULT"]


class TestDisplayControls:
    @pytest.mark.parametrize("key, expected", [
        ("search", True),
        ("hideIsolatedNodes", True),
        ("linkDistance", True),
        ("showInterface", True),
        ("showNames", False),
        ("showStackTrace", False),
        ("nodeSize", False),
        ("colorClass", False),
    ])
    def test_is_display_control(self, key, expected):
        assert is_display_control(key) is expected


class TestControlsFile:
    def test_missing_file(self, tmp_path):
        assert load_controls_file(tmp_path / "missing.toml") == {}

    def test_reads_controls_table(self, tmp_path):
        path = tmp_path / "viz.toml"
        path.write_text('[controls]\nis3DMode = true\nnodeSize = 5.0\n')
        assert load_controls_file(path) == {"is3DMode": True, "nodeSize": 5.0}

    def test_non_table_is_ignored(self, tmp_path):
        path = tmp_path / "viz.toml"
        path.write_text('controls = "nope"\n')
        assert load_controls_file(path) == {}
