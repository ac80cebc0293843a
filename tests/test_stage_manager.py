"""Tests for stage discovery and sequential execution."""

import pytest

from proxylaunch.errors import NeighborFlushError
from proxylaunch.stage_base import BaseStage, LaunchContext, LaunchState
from proxylaunch.stage_manager import StageManager


def _stage(name, order, reached, calls, fail=None, exit_code=None):
    class Recorder(BaseStage):
        def run(self, context):
            calls.append(self.name)
            if fail is not None:
                raise fail
            if exit_code is not None:
                context.exit_code = exit_code

    Recorder.name = name
    Recorder.order = order
    Recorder.reached = reached
    return Recorder


def test_builtin_stages_load_in_pipeline_order():
    manager = StageManager()
    manager.load_builtin_stages()
    assert [s.name for s in manager.stages] == ["NeighborFlush", "Environment", "Build", "Launch"]
    assert [s.reached for s in manager.stages] == [
        LaunchState.CACHE_FLUSHED,
        LaunchState.ENV_CONFIGURED,
        LaunchState.BUILD_RESOLVED,
        LaunchState.LAUNCHED,
    ]


def test_register_sorts_by_order():
    calls = []
    manager = StageManager()
    manager.register_stage(_stage("b", 20, LaunchState.ENV_CONFIGURED, calls)(manager))
    manager.register_stage(_stage("a", 10, LaunchState.CACHE_FLUSHED, calls)(manager))
    manager.run_stages(LaunchContext())
    assert calls == ["a", "b"]


def test_duplicate_name_is_rejected():
    manager = StageManager()
    manager.register_stage(_stage("a", 10, LaunchState.CACHE_FLUSHED, [])(manager))
    with pytest.raises(ValueError, match="Duplicate stage name"):
        manager.register_stage(_stage("a", 20, LaunchState.ENV_CONFIGURED, [])(manager))


def test_duplicate_order_is_rejected():
    manager = StageManager()
    manager.register_stage(_stage("a", 10, LaunchState.CACHE_FLUSHED, [])(manager))
    with pytest.raises(ValueError, match="share order"):
        manager.register_stage(_stage("b", 10, LaunchState.ENV_CONFIGURED, [])(manager))


def test_failure_stops_later_stages():
    calls = []
    manager = StageManager()
    manager.register_stage(
        _stage("flush", 10, LaunchState.CACHE_FLUSHED, calls, fail=NeighborFlushError("denied"))(manager)
    )
    manager.register_stage(_stage("env", 20, LaunchState.ENV_CONFIGURED, calls)(manager))
    context = LaunchContext()
    with pytest.raises(NeighborFlushError):
        manager.run_stages(context)
    assert calls == ["flush"]
    assert context.state is LaunchState.FAILURE


def test_state_advances_to_success():
    calls = []
    manager = StageManager()
    manager.register_stage(_stage("a", 10, LaunchState.CACHE_FLUSHED, calls)(manager))
    manager.register_stage(_stage("b", 40, LaunchState.LAUNCHED, calls, exit_code=0)(manager))
    assert manager.run_stages(LaunchContext()).state is LaunchState.SUCCESS


def test_nonzero_child_exit_ends_in_failure():
    manager = StageManager()
    manager.register_stage(_stage("launch", 40, LaunchState.LAUNCHED, [], exit_code=3)(manager))
    context = manager.run_stages(LaunchContext())
    assert context.state is LaunchState.FAILURE
    assert context.exit_code == 3
