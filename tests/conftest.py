"""Pytest configuration and shared fixtures for cmd-workbench tests."""

import logging

import pytest

import cmd_workbench.io.logging_setup
from cmd_workbench.core.commands import CommandDef
from cmd_workbench.core.output import TextOutputSink
from cmd_workbench.core.tokens import SequentialTokens
from cmd_workbench.pipeline.channel import BroadcastChannel
from tests.harness.builders import RecordingWriter


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep settings and logs out of the real home directory."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("CMD_WORKBENCH_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("CMD_WORKBENCH_LOG_FILE", raising=False)
    monkeypatch.delenv("CMD_WORKBENCH_LOG_LEVEL", raising=False)
    monkeypatch.delenv("CMD_WORKBENCH_URL", raising=False)
    root_level = logging.getLogger().level
    yield
    cmd_workbench.io.logging_setup.reset()
    logging.getLogger().setLevel(root_level)


# ---------------------------------------------------------------------------
# Channel fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def channel():
    return BroadcastChannel()


@pytest.fixture
def writer(channel):
    """RecordingWriter attached to the channel fixture."""
    recorder = RecordingWriter()
    channel.attach(recorder)
    return recorder


@pytest.fixture
def tokens():
    return SequentialTokens()


@pytest.fixture
def shell_def():
    return CommandDef(
        key="shellSampleView",
        title="Sample: [sh command]",
        command="runjs",
        script="/sample/sh-test.mjs",
        args_enabled=True,
    )


@pytest.fixture
def build_def():
    return CommandDef(
        key="buildSampleView",
        title="Sample: [build script]",
        command="runjs",
        script="/sample/build-project-test.mjs",
    )


@pytest.fixture
def sink():
    return TextOutputSink()
