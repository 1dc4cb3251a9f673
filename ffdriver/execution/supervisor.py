"""
FFmpeg process supervision.

One supervisor drives exactly one ffmpeg invocation:

    CREATED → LAUNCHED → RUNNING → {SUCCEEDED | FAILED | CANCELLED} → CLOSED

Design rules:
- One subprocess per supervisor; run() is single-shot
- stderr is read line by line on a reader thread while the caller blocks
  on process exit; the reader is joined before the result is built
- Every stderr line is kept in the diagnostic buffer and fed to the
  progress monitor, in emission order
- Success oracle is the output file: it must exist and be non-empty.
  ffmpeg often reports failures only on stderr, so exit code 0 proves nothing
- Cancellation is cooperative: a single "q" on stdin, then the normal
  exit + validation path. No kill in the default path
- No timeout, no retries
- Handles and the diagnostic buffer are released on every path
"""

import logging
import shlex
import subprocess
import threading
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import IO, List, Optional, Sequence, Union

from .progress import ProgressCallback, ProgressMonitor
from .results import FailureType, InvocationResult, InvocationStatus

logger = logging.getLogger(__name__)


# Written to ffmpeg's stdin to request a graceful stop
QUIT_TOKEN = "q"


class SupervisorState(str, Enum):
    """Lifecycle of one supervised invocation."""

    CREATED = "created"
    LAUNCHED = "launched"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    CLOSED = "closed"


_TERMINAL_STATES = {
    InvocationStatus.SUCCEEDED: SupervisorState.SUCCEEDED,
    InvocationStatus.FAILED: SupervisorState.FAILED,
    InvocationStatus.CANCELLED: SupervisorState.CANCELLED,
}

_CANCELLABLE_STATES = {SupervisorState.LAUNCHED, SupervisorState.RUNNING}


class ProcessSupervisor:
    """
    Launch ffmpeg, watch its stderr, classify the outcome.

    Usage:
        supervisor = ProcessSupervisor(
            executable="/usr/bin/ffmpeg",
            arguments=["-i", "in.mp4", "-c:v", "libx264", "out.mp4"],
            output_path="out.mp4",
            target_duration=120.0,
            on_progress=lambda pct: print(f"{pct}%"),
        )
        result = supervisor.run()       # blocks until exit
        result.raise_for_status()

    cancel() may be called from another thread while run() is blocked.
    """

    def __init__(
        self,
        executable: str,
        arguments: Sequence[str],
        output_path: Union[str, Path],
        target_duration: Union[float, int, timedelta, None] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        self.executable = str(executable)
        self.arguments = list(arguments)
        self.output_path = Path(output_path)

        self._monitor = ProgressMonitor(target_duration, on_progress)
        self._state = SupervisorState.CREATED
        self._outcome: Optional[SupervisorState] = None
        self._lock = threading.Lock()

        self._process: Optional[subprocess.Popen] = None
        self._reader: Optional[threading.Thread] = None
        self._diagnostics: List[str] = []
        self._cancel_sent = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def command(self) -> List[str]:
        return [self.executable, *self.arguments]

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def outcome(self) -> Optional[SupervisorState]:
        """Terminal state reached before CLOSED (None until then)."""
        return self._outcome

    @property
    def is_running(self) -> bool:
        return self._state == SupervisorState.RUNNING

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_sent

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> InvocationResult:
        """
        Execute the invocation and block until ffmpeg exits.

        Launch and process failures are returned as FAILED results, not
        raised; call raise_for_status() on the result to raise them.

        Returns:
            InvocationResult with status, exit code, and diagnostics on failure

        Raises:
            RuntimeError: If this supervisor has already been run
        """
        with self._lock:
            if self._state != SupervisorState.CREATED:
                raise RuntimeError(
                    f"ProcessSupervisor already used (state: {self._state.value}); "
                    "create one per invocation"
                )

        started_at = datetime.now()
        logger.info(f"[Supervisor] Executing: {shlex.join(self.command)}")

        try:
            process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            logger.error(f"[Supervisor] Failed to launch {self.executable}: {e}")
            result = InvocationResult(
                status=InvocationStatus.FAILED,
                command=self.command,
                output_path=str(self.output_path),
                failure_type=FailureType.LAUNCH,
                failure_reason=str(e),
                started_at=started_at,
                completed_at=datetime.now(),
            )
            self._set_state(SupervisorState.FAILED)
            self._close()
            return result

        self._process = process
        self._set_state(SupervisorState.LAUNCHED)
        logger.info(f"[Supervisor] Started PID {process.pid}")

        try:
            self._reader = threading.Thread(
                target=self._read_diagnostics,
                args=(process.stderr,),
                name=f"ffmpeg-stderr-{process.pid}",
                daemon=True,
            )
            self._reader.start()
            self._set_state(SupervisorState.RUNNING)

            exit_code = process.wait()
            self._reader.join()

            logger.info(f"[Supervisor] PID {process.pid} exited with code {exit_code}")
            return self._finalize(exit_code, started_at)

        except BaseException:
            # Interrupted while waiting: do not leave an orphan behind
            if process.poll() is None:
                logger.warning(f"[Supervisor] Killing PID {process.pid} after interruption")
                process.kill()
                process.wait()
            # stderr is closed next; the reader must be done with it
            if self._reader is not None and self._reader.is_alive():
                self._reader.join()
            raise

        finally:
            self._close()

    def cancel(self) -> bool:
        """
        Ask ffmpeg to stop by writing the quit token to its stdin.

        Sent at most once, and only once ffmpeg has been launched and has
        not yet exited. The invocation then completes through the normal
        exit + validation path.

        Returns:
            True if the quit token was written by this call
        """
        with self._lock:
            if self._state not in _CANCELLABLE_STATES or self._cancel_sent:
                return False

            process = self._process
            self._cancel_sent = True

            try:
                process.stdin.write(QUIT_TOKEN)
                process.stdin.flush()
            except OSError as e:
                logger.warning(f"[Supervisor] Could not send quit to PID {process.pid}: {e}")
                return False

        logger.info(f"[Supervisor] Sent quit to PID {process.pid}")
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_state(self, state: SupervisorState) -> None:
        with self._lock:
            self._state = state
            if state in _TERMINAL_STATES.values():
                self._outcome = state

    def _read_diagnostics(self, stream: IO[str]) -> None:
        """Reader thread: buffer every stderr line and feed the monitor."""
        for raw_line in stream:
            line = raw_line.rstrip("\r\n")
            self._diagnostics.append(line)
            logger.debug(f"[FFmpeg] {line}")

            if not self._monitor.enabled:
                continue

            try:
                self._monitor.feed(line)
            except Exception:
                # Keep draining stderr so ffmpeg never blocks on a full pipe
                logger.exception("[Supervisor] Progress callback failed; progress reporting disabled")
                self._monitor.on_progress = None

    def _output_is_valid(self) -> bool:
        try:
            return self.output_path.is_file() and self.output_path.stat().st_size > 0
        except OSError:
            return False

    def _finalize(self, exit_code: int, started_at: datetime) -> InvocationResult:
        """Validate the output and classify the outcome."""
        if self._output_is_valid():
            status = (
                InvocationStatus.CANCELLED if self._cancel_sent
                else InvocationStatus.SUCCEEDED
            )
            self._set_state(_TERMINAL_STATES[status])
            logger.info(f"[Supervisor] {status.value}: {self.output_path}")
            return InvocationResult(
                status=status,
                command=self.command,
                output_path=str(self.output_path),
                exit_code=exit_code,
                cancel_requested=self._cancel_sent,
                started_at=started_at,
                completed_at=datetime.now(),
            )

        if self.output_path.exists():
            failure_reason = f"Output file is zero bytes: {self.output_path}"
        else:
            failure_reason = f"Output file was not created: {self.output_path}"

        self._set_state(SupervisorState.FAILED)
        logger.error(f"[Supervisor] Failed (exit code {exit_code}): {failure_reason}")
        return InvocationResult(
            status=InvocationStatus.FAILED,
            command=self.command,
            output_path=str(self.output_path),
            exit_code=exit_code,
            failure_type=FailureType.PROCESS,
            failure_reason=failure_reason,
            diagnostics="\n".join(self._diagnostics),
            cancel_requested=self._cancel_sent,
            started_at=started_at,
            completed_at=datetime.now(),
        )

    def _close(self) -> None:
        """Release OS handles and discard the diagnostic buffer."""
        with self._lock:
            process = self._process
            if process is not None:
                for stream in (process.stdin, process.stderr):
                    if stream is None:
                        continue
                    try:
                        stream.close()
                    except BrokenPipeError:
                        pass  # stdin of a process that already exited

            self._process = None
            self._diagnostics = []
            self._state = SupervisorState.CLOSED
