"""Unit tests for debugger stack correlation."""

import pytest

from jnkn_viz.core.model import GraphModel
from jnkn_viz.core.stacktrace import (
    DebugSession,
    StackFrame,
    build_stack_trace_links,
    collect_frame_paths,
    stack_trace_message,
)


@pytest.fixture
def model():
    m = GraphModel()
    m.replace(
        [
            {"id": "Main", "name": "Main", "filePath": "/ws/src/app/Main.java"},
            {"id": "ServiceA", "name": "ServiceA", "filePath": "/ws/src/app/ServiceA.java"},
            {"id": "ServiceB", "name": "ServiceB", "filePath": "/ws/src/app/ServiceB.java"},
            {"id": "Util", "name": "Util", "filePath": "/ws/src/app/Util.java"},
        ],
        [],
    )
    return m


def session(*paths, **extra):
    return DebugSession.model_validate({
        "sessionId": "s-1",
        "frames": [{"id": i, "source": {"path": p}} for i, p in enumerate(paths)],
        **extra,
    })


class TestCollectFramePaths:
    def test_dedupes_and_skips_blank(self):
        frames = [
            StackFrame.model_validate({"source": {"path": "/a/B.java"}}),
            StackFrame.model_validate({"source": {"path": "  "}}),
            StackFrame.model_validate({"name": "native"}),
            StackFrame.model_validate({"source": {"path": "/a/C.java"}}),
            StackFrame.model_validate({"source": {"path": "/a/B.java"}}),
        ]
        assert collect_frame_paths(frames) == ["/a/B.java", "/a/C.java"]


class TestBuildLinks:
    def test_consecutive_frames_point_caller_to_callee(self, model):
        paths = [
            "/debug/src/app/Main.java",
            "/debug/src/app/ServiceA.java",
            "/debug/src/app/ServiceB.java",
            "/debug/src/app/Util.java",
        ]
        links = build_stack_trace_links(model, paths)

        assert [(e.source, e.target) for e in links] == [
            ("ServiceA", "Main"),
            ("ServiceB", "ServiceA"),
            ("Util", "ServiceB"),
        ]
        assert all(e.type == "StackTrace" and e.is_stack_trace_link for e in links)

    def test_single_frame_has_no_links(self, model):
        assert build_stack_trace_links(model, ["/x/app/Main.java"]) == []

    def test_unmatched_paths_are_skipped(self, model):
        links = build_stack_trace_links(model, [
            "/x/app/Main.java",
            "/elsewhere/lib/Missing.java",
            "/x/app/Util.java",
        ])
        assert [(e.source, e.target) for e in links] == [("Util", "Main")]


class TestStackTraceMessage:
    def test_no_session(self, model):
        assert stack_trace_message(model, None) == {"type": "stackTrace", "paths": []}

    def test_empty_session(self, model):
        assert stack_trace_message(model, session()) == {"type": "stackTrace", "paths": []}

    def test_wire_shape(self, model):
        message = stack_trace_message(model, session("/d/app/ServiceA.java", "/d/app/Main.java"))
        assert message == {
            "type": "stackTrace",
            "paths": [
                {"link": {
                    "source": "Main",
                    "target": "ServiceA",
                    "type": "StackTrace",
                    "isStackTraceLink": True,
                }},
            ],
        }

    def test_session_requires_id(self):
        with pytest.raises(ValueError):
            DebugSession.model_validate({"frames": []})
