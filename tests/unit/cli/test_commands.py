"""Tests for the replay and stack commands."""

import json

import pytest
from click.testing import CliRunner

from jnkn_viz.cli.commands.replay import replay
from jnkn_viz.cli.commands.stack import stack
from jnkn_viz.cli.main import main

GRAPH = {
    "nodes": [
        {"id": "A", "name": "app.Main", "type": "Class", "filePath": "/ws/src/app/Main.java"},
        {"id": "B", "name": "app.Service", "type": "Class", "filePath": "/ws/src/app/Service.java"},
        {"id": "C", "name": "app.Store", "type": "Interface", "filePath": "/ws/src/app/Store.java"},
    ],
    "links": [
        {"source": "A", "target": "B", "type": "MethodCall"},
        {"source": "B", "target": "C", "type": "TypeUse"},
    ],
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def transcript(tmp_path):
    path = tmp_path / "session.jsonl"
    lines = [
        "# recorded panel session",
        json.dumps({"type": "data", **GRAPH, "dataVersion": 4}),
        "",
        json.dumps({"type": "focusNodeById", "nodeId": "B"}),
    ]
    path.write_text("\n".join(lines))
    return path


class TestReplay:
    def test_json_output(self, runner, transcript):
        result = runner.invoke(replay, [str(transcript), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["mode"] == "2d"
        assert data["dataVersion"] == 4
        assert data["focused"] == "B"
        assert [n["label"] for n in data["nodes"]] == ["Main", "Service", "Store"]
        assert len(data["links"]) == 2

    def test_focus_dims_unrelated_nodes(self, runner, tmp_path):
        path = tmp_path / "focus.jsonl"
        path.write_text("\n".join([
            json.dumps({"type": "data", **GRAPH}),
            json.dumps({"type": "focusNodeById", "nodeId": "A"}),
        ]))

        result = runner.invoke(replay, [str(path), "--json"])

        colors = {n["id"]: n["color"] for n in json.loads(result.output)["nodes"]}
        assert colors["C"].endswith(", 0.2)")
        assert not colors["A"].startswith("rgba")

    def test_table_output(self, runner, transcript):
        result = runner.invoke(replay, [str(transcript)])

        assert result.exit_code == 0
        assert "Replayed 2 message(s)" in result.output
        assert "Focused: app.Service" in result.output
        assert "Nodes (3)" in result.output
        assert "Links (2)" in result.output

    def test_controls_file(self, runner, transcript, tmp_path):
        controls = tmp_path / "viz.toml"
        controls.write_text("[controls]\nis3DMode = true\n")

        result = runner.invoke(replay, [str(transcript), "--controls", str(controls), "--json"])

        assert result.exit_code == 0
        assert json.loads(result.output)["mode"] == "3d"

    def test_undecodable_lines_are_reported(self, runner, tmp_path):
        path = tmp_path / "broken.jsonl"
        path.write_text(json.dumps({"type": "data", **GRAPH}) + "\n{not json\n")

        result = runner.invoke(replay, [str(path)])

        assert result.exit_code == 0
        assert "skipping undecodable line" in result.output

    def test_no_data_fails(self, runner, tmp_path):
        path = tmp_path / "empty.jsonl"
        path.write_text(json.dumps({"type": "clearFocus"}) + "\n")

        result = runner.invoke(replay, [str(path)])

        assert result.exit_code == 1
        assert "No renderer is active" in result.output


class TestStack:
    @pytest.fixture
    def graph_file(self, tmp_path):
        path = tmp_path / "graph.json"
        path.write_text(json.dumps(GRAPH))
        return path

    def test_prints_stack_trace_message(self, runner, graph_file, tmp_path):
        frames = tmp_path / "frames.json"
        frames.write_text(json.dumps({
            "sessionId": "debug-1",
            "frames": [
                {"id": 1, "source": {"path": "/build/app/Store.java"}},
                {"id": 2, "source": {"path": "/build/app/Service.java"}},
                {"id": 3, "name": "<native>"},
                {"id": 4, "source": {"path": "/build/app/Main.java"}},
            ],
        }))

        result = runner.invoke(stack, [str(frames), "--graph", str(graph_file)])

        assert result.exit_code == 0
        message = json.loads(result.output)
        assert message["type"] == "stackTrace"
        assert [(p["link"]["source"], p["link"]["target"]) for p in message["paths"]] == [
            ("B", "C"),
            ("A", "B"),
        ]

    def test_invalid_session(self, runner, graph_file, tmp_path):
        frames = tmp_path / "frames.json"
        frames.write_text(json.dumps({"frames": []}))

        result = runner.invoke(stack, [str(frames), "-g", str(graph_file)])

        assert result.exit_code == 1
        assert "Invalid debug session" in result.output

    def test_graph_must_be_an_object(self, runner, tmp_path):
        graph = tmp_path / "graph.json"
        graph.write_text("[]")
        frames = tmp_path / "frames.json"
        frames.write_text(json.dumps({"sessionId": "s"}))

        result = runner.invoke(stack, [str(frames), "-g", str(graph)])

        assert result.exit_code == 1

    def test_invalid_json(self, runner, graph_file, tmp_path):
        frames = tmp_path / "frames.json"
        frames.write_text("{")

        result = runner.invoke(stack, [str(frames), "-g", str(graph_file)])

        assert result.exit_code == 1
        assert "Invalid JSON" in result.output


class TestMain:
    def test_help_lists_commands(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "replay" in result.output
        assert "stack" in result.output
