"""
Unit tests for the subprocess agent bridge using small runner scripts
"""
import os
import shlex
import sys
import textwrap

import pytest

from switchboard.services import agent_bridge
from switchboard.services.agent_bridge import (
    OUTPUT_END_MARKER,
    OUTPUT_START_MARKER,
    AgentSlot,
    AgentTurnParams,
    ContainerAgentBridge,
)


def _runner(tmp_path, body: str) -> str:
    script = tmp_path / "runner.py"
    script.write_text(textwrap.dedent(f"""
        import json, sys, time
        START = {OUTPUT_START_MARKER!r}
        END = {OUTPUT_END_MARKER!r}

        def emit(record):
            print(START)
            print(json.dumps(record, indent=2))
            print(END, flush=True)

        payload = json.loads(sys.stdin.read())
    """) + textwrap.dedent(body), encoding="utf-8")
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"


@pytest.fixture
def slot():
    return AgentSlot(name="WebUI", folder="web", trigger="@Web", added_at="2024-01-01T00:00:00.000Z")


@pytest.fixture
def params():
    return AgentTurnParams(
        prompt="hello",
        group_folder="web",
        chat_jid="web:local",
        is_main=True,
        assistant_name="Andy",
        session_id="sess-0",
        secrets={"ANTHROPIC_API_KEY": "sk-ant"},
        model="claude-sonnet",
    )


class OutputCollector:
    def __init__(self):
        self.outputs = []
        self.progress = []

    def on_progress(self, name):
        self.progress.append(name)

    async def on_output(self, output):
        self.outputs.append(output)


@pytest.mark.asyncio
async def test_streams_framed_records(tmp_path, slot, params):
    command = _runner(tmp_path, """
        print("runner booting")
        emit({"status": "success", "result": None, "newSessionId": "sess-1"})
        print("noise between blocks")
        emit({"status": "success", "result": "echo:" + payload["prompt"] + ":" + payload["secrets"]["ANTHROPIC_API_KEY"]
              + ":" + payload["slot"]["folder"] + ":" + payload["model"] + ":" + payload["sessionId"]})
    """)
    collector = OutputCollector()

    result = await ContainerAgentBridge(command, timeout_seconds=30).run_turn(
        slot, params, collector.on_progress, collector.on_output)

    assert result.ok
    assert result.new_session_id == "sess-1"
    assert [o.new_session_id for o in collector.outputs] == ["sess-1", None]
    assert collector.outputs[1].result == "echo:hello:sk-ant:web:claude-sonnet:sess-0"
    assert len(collector.progress) == 1


@pytest.mark.asyncio
async def test_secrets_not_on_command_line(tmp_path, slot, params):
    command = _runner(tmp_path, """
        emit({"status": "success", "result": " ".join(sys.argv)})
    """)
    collector = OutputCollector()

    await ContainerAgentBridge(command).run_turn(slot, params, collector.on_progress, collector.on_output)

    assert "sk-ant" not in collector.outputs[0].result


@pytest.mark.asyncio
async def test_malformed_block_is_skipped(tmp_path, slot, params):
    command = _runner(tmp_path, """
        print(START)
        print("{not json")
        print(END)
        emit({"status": "success", "result": "fine"})
    """)
    collector = OutputCollector()

    result = await ContainerAgentBridge(command).run_turn(slot, params, collector.on_progress, collector.on_output)

    assert result.ok
    assert [o.result for o in collector.outputs] == ["fine"]


@pytest.mark.asyncio
async def test_error_record_fails_turn(tmp_path, slot, params):
    command = _runner(tmp_path, """
        emit({"status": "error", "result": None, "newSessionId": "sess-9", "error": "tool crashed"})
    """)
    collector = OutputCollector()

    result = await ContainerAgentBridge(command).run_turn(slot, params, collector.on_progress, collector.on_output)

    assert not result.ok
    assert result.error == "tool crashed"
    assert result.new_session_id == "sess-9"
    assert collector.outputs[0].status == "error"


@pytest.mark.asyncio
async def test_non_zero_exit(tmp_path, slot, params):
    command = _runner(tmp_path, """
        sys.stderr.write("image missing")
        sys.exit(3)
    """)
    collector = OutputCollector()

    result = await ContainerAgentBridge(command).run_turn(slot, params, collector.on_progress, collector.on_output)

    assert not result.ok
    assert result.error == "agent_exit_3:image missing"


@pytest.mark.asyncio
async def test_timeout_kills_runner(tmp_path, slot, params):
    command = _runner(tmp_path, """
        emit({"status": "success", "result": "partial"})
        time.sleep(30)
    """)
    collector = OutputCollector()

    result = await ContainerAgentBridge(command, timeout_seconds=1.0).run_turn(
        slot, params, collector.on_progress, collector.on_output)

    assert result.error == "agent_timeout"
    assert [o.result for o in collector.outputs] == ["partial"]


def _assert_reaped(pid_file):
    with pytest.raises(ProcessLookupError):
        os.kill(int(pid_file.read_text()), 0)


@pytest.mark.asyncio
async def test_failing_output_handler_kills_runner(tmp_path, slot, params):
    pid_file = tmp_path / "runner.pid"
    command = _runner(tmp_path, f"""
        import os
        with open({str(pid_file)!r}, "w") as fh:
            fh.write(str(os.getpid()))
        emit({{"status": "success", "result": "partial"}})
        time.sleep(30)
    """)

    async def on_output(output):
        raise RuntimeError("ledger down")

    with pytest.raises(RuntimeError, match="ledger down"):
        await ContainerAgentBridge(command, timeout_seconds=20.0).run_turn(
            slot, params, lambda name: None, on_output)

    _assert_reaped(pid_file)


@pytest.mark.asyncio
async def test_oversized_line_kills_runner(tmp_path, slot, params, monkeypatch):
    monkeypatch.setattr(agent_bridge, "STREAM_LIMIT", 1024)
    pid_file = tmp_path / "runner.pid"
    command = _runner(tmp_path, f"""
        import os
        with open({str(pid_file)!r}, "w") as fh:
            fh.write(str(os.getpid()))
        sys.stdout.write("x" * 8192)
        sys.stdout.flush()
        time.sleep(30)
    """)
    collector = OutputCollector()

    with pytest.raises(ValueError):
        await ContainerAgentBridge(command, timeout_seconds=20.0).run_turn(
            slot, params, collector.on_progress, collector.on_output)

    _assert_reaped(pid_file)


@pytest.mark.asyncio
async def test_missing_command(slot, params):
    collector = OutputCollector()
    bridge = ContainerAgentBridge("/nonexistent/switchboard-agent-runner")

    result = await bridge.run_turn(slot, params, collector.on_progress, collector.on_output)

    assert not result.ok
    assert result.error.startswith("agent_start_failed:")
    assert collector.progress == []


def test_turn_params_wire_format(params):
    wire = params.to_wire()
    assert wire["sessionId"] == "sess-0"
    assert wire["groupFolder"] == "web"
    assert wire["chatJid"] == "web:local"
    assert wire["isMain"] is True
    assert wire["assistantName"] == "Andy"
    assert wire["model"] == "claude-sonnet"

    params.model = None
    assert "model" not in params.to_wire()
