"""
Runner subprocess management.

Processes are started with ``asyncio.create_subprocess_exec`` with stderr
folded into stdout. Output is streamed line by line into the runner log
channel and the tail is kept for result messages. Disposing the handler
terminates every live process (SIGTERM, then SIGKILL after a grace
period); that is how in-flight runs of a superseded session are aborted.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import time
from collections import deque
from pathlib import Path
from typing import Deque, List, Mapping, Optional, Sequence, Set

from ..core.components import ProcessResult
from ..core.errors import ProcessTerminatedError
from ..core.logging_utils import LoggerLike, ensure_structured_logger
from ..core.output_channel_log import OutputChannelLog

OUTPUT_TAIL_LINES = 200
READ_CHUNK_SIZE = 64 * 1024
DEFAULT_TERMINATE_TIMEOUT = 3.0


class ManagedProcess:

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        command: List[str],
        logger: LoggerLike = None,
        *,
        output_log: Optional[OutputChannelLog] = None,
        terminate_timeout: float = DEFAULT_TERMINATE_TIMEOUT,
    ) -> None:
        self.process = process
        self.command = command
        self.logger = ensure_structured_logger(logger, fallback_name="ManagedProcess")
        self.output_log = output_log
        self.terminate_timeout = terminate_timeout
        self.started_at = time.monotonic()
        self.terminated = False
        self.timed_out = False
        self._output: Deque[str] = deque(maxlen=OUTPUT_TAIL_LINES)

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def is_running(self) -> bool:
        return self.process.returncode is None

    @property
    def output(self) -> str:
        return "\n".join(self._output)

    def _record_line(self, raw: bytes) -> None:
        text = raw.decode("utf-8", errors="replace").rstrip("\r")
        self._output.append(text)
        if self.output_log is not None:
            self.output_log.append_line(text)

    async def _consume_output(self) -> None:
        # Chunked reads so lines longer than the stream limit are kept whole
        stream = self.process.stdout
        if stream is not None:
            partial = b""
            while True:
                chunk = await stream.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                *lines, partial = (partial + chunk).split(b"\n")
                for line in lines:
                    self._record_line(line)
            if partial:
                self._record_line(partial)
        await self.process.wait()

    async def wait(self, timeout: Optional[float] = None) -> ProcessResult:
        try:
            if timeout:
                await asyncio.wait_for(self._consume_output(), timeout=timeout)
            else:
                await self._consume_output()
        except asyncio.TimeoutError:
            self.timed_out = True
            self.logger.warning("Process %d timed out after %.1fs", self.pid, timeout)
            await self.terminate()

        returncode = await self.process.wait()
        return ProcessResult(
            command=list(self.command),
            returncode=returncode,
            output=self.output,
            duration=time.monotonic() - self.started_at,
            timed_out=self.timed_out,
            terminated=self.terminated,
        )

    async def terminate(self) -> None:
        if not self.is_running:
            return
        self.terminated = True
        self.logger.debug("Terminating process %d", self.pid)
        with contextlib.suppress(ProcessLookupError):
            self.process.terminate()
        try:
            await asyncio.wait_for(self.process.wait(), timeout=self.terminate_timeout)
            return
        except asyncio.TimeoutError:
            self.logger.warning("Process %d ignored SIGTERM, killing", self.pid)

        with contextlib.suppress(ProcessLookupError):
            self.process.kill()
        await self.process.wait()


class SimpleProcessHandler:

    def __init__(
        self,
        logger: LoggerLike = None,
        *,
        output_log: Optional[OutputChannelLog] = None,
        terminate_timeout: float = DEFAULT_TERMINATE_TIMEOUT,
    ) -> None:
        self.logger = ensure_structured_logger(logger, fallback_name="SimpleProcessHandler")
        self.output_log = output_log
        self.terminate_timeout = terminate_timeout
        self._processes: Set[ManagedProcess] = set()
        self._disposed = False

    @property
    def active_processes(self) -> List[ManagedProcess]:
        return [proc for proc in self._processes if proc.is_running]

    async def spawn(
        self,
        command: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> ManagedProcess:
        if self._disposed:
            raise ProcessTerminatedError("Process handler has been disposed")

        args = [str(part) for part in command]
        process_env = os.environ.copy()
        if env:
            process_env.update(env)

        self.logger.debug("Command: %s", " ".join(args))
        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=str(cwd) if cwd else None,
            env=process_env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        managed = ManagedProcess(
            process,
            args,
            self.logger,
            output_log=self.output_log,
            terminate_timeout=self.terminate_timeout,
        )
        self.logger.debug("Process started with PID: %d", process.pid)

        if self._disposed:
            # Disposed while the process was starting
            await managed.terminate()
            raise ProcessTerminatedError("Process handler has been disposed")

        self._processes.add(managed)
        return managed

    async def run(
        self,
        command: Sequence[str],
        *,
        cwd: Optional[Path] = None,
        env: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        managed = await self.spawn(command, cwd=cwd, env=env)
        try:
            return await managed.wait(timeout)
        except BaseException:
            await asyncio.shield(managed.terminate())
            raise
        finally:
            self._processes.discard(managed)

    async def dispose(self) -> None:
        self._disposed = True
        running = self.active_processes
        self._processes.clear()
        if not running:
            return
        self.logger.info("Terminating %d runner processes", len(running))
        results = await asyncio.gather(*(proc.terminate() for proc in running), return_exceptions=True)
        for proc, result in zip(running, results):
            if isinstance(result, Exception):
                self.logger.error("Failed to terminate process %d: %s", proc.pid, result)


__all__ = ["ManagedProcess", "SimpleProcessHandler"]
