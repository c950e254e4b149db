"""Sandboxed Agent Bridge - Container Subprocess Management

Runs one conversational turn of the sandboxed agent and streams its
structured output back to the caller:
- Turn parameters (secrets included) are written to the runner's stdin,
  never passed on the command line
- Output records are JSON blocks framed by sentinel lines on stdout
- Each record is delivered to ``on_output`` as soon as it is parsed
- A per-turn timeout kills the runner process
"""
import asyncio
import json
import shlex
import shutil
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import structlog

from switchboard.errors import excerpt

logger = structlog.get_logger()

OUTPUT_START_MARKER = "---SWITCHBOARD_OUTPUT_START---"
OUTPUT_END_MARKER = "---SWITCHBOARD_OUTPUT_END---"
STREAM_LIMIT = 8 * 1024 * 1024


@dataclass
class AgentSlot:
    """Conversation slot the turn runs in"""
    name: str
    folder: str
    trigger: str
    added_at: str
    requires_trigger: bool = False


@dataclass
class AgentTurnParams:
    """Input for a single agent turn"""
    prompt: str
    group_folder: str
    chat_jid: str
    is_main: bool
    assistant_name: str
    session_id: Optional[str] = None
    secrets: Dict[str, str] = field(default_factory=dict)
    model: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        data = {
            "prompt": self.prompt,
            "sessionId": self.session_id,
            "groupFolder": self.group_folder,
            "chatJid": self.chat_jid,
            "isMain": self.is_main,
            "assistantName": self.assistant_name,
            "secrets": self.secrets,
        }
        if self.model:
            data["model"] = self.model
        return data


@dataclass
class AgentOutput:
    """One structured output record emitted during a turn"""
    status: str = "success"
    result: Any = None
    new_session_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "AgentOutput":
        return cls(
            status=str(data.get("status") or "success"),
            result=data.get("result"),
            new_session_id=data.get("newSessionId"),
            error=data.get("error"),
        )


@dataclass
class AgentRunResult:
    """Final outcome of a turn"""
    status: str
    error: Optional[str] = None
    new_session_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != "error"


ProgressCallback = Callable[[str], None]
OutputCallback = Callable[[AgentOutput], Awaitable[None]]


class AgentBridge(ABC):
    """Interface to the agent execution engine"""

    @abstractmethod
    async def run_turn(
        self,
        slot: AgentSlot,
        params: AgentTurnParams,
        on_progress: ProgressCallback,
        on_output: OutputCallback,
    ) -> AgentRunResult:
        """Run a turn; ``on_output`` may fire many times before this returns"""
        pass


class ContainerAgentBridge(AgentBridge):
    """Drives the agent runner command as a subprocess"""

    def __init__(self, command: str, timeout_seconds: float = 600.0):
        self.command = shlex.split(command)
        self.timeout_seconds = timeout_seconds

    async def run_turn(
        self,
        slot: AgentSlot,
        params: AgentTurnParams,
        on_progress: ProgressCallback,
        on_output: OutputCallback,
    ) -> AgentRunResult:
        logger.info("Starting agent turn",
                    slot=slot.folder,
                    command=shlex.join(self.command),
                    resume=bool(params.session_id),
                    model=params.model)
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT,
            )
        except OSError as e:
            logger.error("Failed to start agent runner", error=str(e))
            return AgentRunResult(status="error", error=f"agent_start_failed:{e}")

        on_progress(f"agent-{process.pid}")

        payload = {"slot": asdict(slot), **params.to_wire()}
        try:
            return await asyncio.wait_for(
                self._drive(process, payload, on_output),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error("Agent turn timed out", slot=slot.folder, timeout=self.timeout_seconds)
            await self._kill(process)
            return AgentRunResult(status="error", error="agent_timeout")
        except BaseException:
            await self._kill(process)
            raise

    async def _drive(
        self,
        process: asyncio.subprocess.Process,
        payload: Dict[str, Any],
        on_output: OutputCallback,
    ) -> AgentRunResult:
        process.stdin.write(json.dumps(payload).encode())
        await process.stdin.drain()
        process.stdin.close()

        stderr_task = asyncio.create_task(process.stderr.read())
        try:
            return await self._collect(process, stderr_task, on_output)
        finally:
            if not stderr_task.done():
                stderr_task.cancel()

    async def _collect(
        self,
        process: asyncio.subprocess.Process,
        stderr_task: "asyncio.Task[bytes]",
        on_output: OutputCallback,
    ) -> AgentRunResult:
        last_session: Optional[str] = None
        error: Optional[str] = None
        block: Optional[List[str]] = None

        async for raw_line in process.stdout:
            line = raw_line.decode(errors="replace").rstrip("\n")
            if line.strip() == OUTPUT_START_MARKER:
                block = []
                continue
            if line.strip() == OUTPUT_END_MARKER and block is not None:
                output = self._parse_block(block)
                block = None
                if output is None:
                    continue
                if output.new_session_id:
                    last_session = output.new_session_id
                if output.status == "error":
                    error = output.error or "container_error"
                await on_output(output)
                continue
            if block is not None:
                block.append(line)

        returncode = await process.wait()
        stderr = (await stderr_task).decode(errors="replace")

        if error is None and returncode != 0:
            error = f"agent_exit_{returncode}:{excerpt(stderr.strip())}"
            logger.warning("Agent runner exited with error", returncode=returncode)

        return AgentRunResult(
            status="error" if error else "success",
            error=error,
            new_session_id=last_session,
        )

    @staticmethod
    def _parse_block(lines: List[str]) -> Optional[AgentOutput]:
        try:
            data = json.loads("\n".join(lines))
        except ValueError:
            logger.warning("Discarding malformed agent output block", size=len(lines))
            return None
        if not isinstance(data, dict):
            return None
        return AgentOutput.from_wire(data)

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        process.kill()
        try:
            await asyncio.wait_for(process.wait(), timeout=5.0)
        except asyncio.TimeoutError:
            logger.warning("Agent runner did not exit after kill", pid=process.pid)


async def _probe(*cmd: str) -> Tuple[bool, str]:
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await asyncio.wait_for(process.communicate(), timeout=15.0)
    except (OSError, asyncio.TimeoutError) as e:
        return False, str(e) or type(e).__name__
    if process.returncode != 0:
        return False, excerpt(stderr.decode(errors="replace").strip()) or f"exit {process.returncode}"
    return True, ""


async def check_container_runtime(runtime: str = "auto") -> Tuple[bool, Optional[str]]:
    """Report whether a container runtime is usable

    ``auto`` prefers Apple's ``container`` CLI when installed and falls
    back to ``docker info``.
    """
    if runtime in ("auto", "container") and shutil.which("container"):
        ok, detail = await _probe("container", "system", "status")
        if ok or runtime == "container":
            return ok, None if ok else f"container_runtime_unavailable:{detail}"
    if runtime == "container":
        return False, "container_runtime_unavailable:container CLI not found"

    if not shutil.which("docker"):
        return False, "container_runtime_unavailable:docker not found"
    ok, detail = await _probe("docker", "info")
    return ok, None if ok else f"container_runtime_unavailable:{detail}"
