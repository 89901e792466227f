"""
Runs `go tool objdump` into `llvm-mca` with the objdump transform between
them.

Three activities run concurrently: the transform, a wait on the producer
and a wait on the consumer. Closing the consumer's stdin is the only way
llvm-mca learns the instruction stream has ended, so the transform closes
it on every exit path. There is no timeout: a stalled process stalls the
whole pipeline.
"""
import logging
import shlex
import subprocess
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Callable, List, Optional

from .errors import ProcessError
from .parsing.transform import RenderConfig, fix

logger = logging.getLogger(__name__)

# objdump output is not guaranteed to be valid UTF-8; undecodable bytes
# pass through to llvm-mca unchanged.
STREAM_ENCODING = "utf-8"
STREAM_ERRORS = "surrogateescape"


def run_activities(*activities: Callable[[], None]) -> None:
    """
    Runs every activity on its own thread and waits for all of them.
    Re-raises the first failure in start order; later ones are dropped.
    """
    with ThreadPoolExecutor(max_workers=len(activities)) as pool:
        futures = [pool.submit(activity) for activity in activities]

    first: Optional[BaseException] = None
    for future in futures:
        exc = future.exception()
        if exc is None:
            continue
        if first is None:
            first = exc
        else:
            logger.debug("Discarding later failure: %s", exc)
    if first is not None:
        raise first


@contextmanager
def _owned(proc):
    # Pipes are released and the process reaped however we leave.
    try:
        yield proc
    finally:
        for stream in (proc.stdin, proc.stdout):
            if stream is not None and not stream.closed:
                stream.close()
        proc.wait()


class Pipeline:
    def __init__(
        self,
        producer_cmd: List[str],
        consumer_cmd: List[str],
        config: RenderConfig = RenderConfig(),
        spawn: Callable[..., subprocess.Popen] = subprocess.Popen,
    ):
        self.producer_cmd = producer_cmd
        self.consumer_cmd = consumer_cmd
        self.config = config
        self.spawn = spawn

    def run(self) -> None:
        """Raises the first failure of the transform or either process."""
        producer = self._start(self.producer_cmd, stdout=subprocess.PIPE)
        with _owned(producer):
            consumer = self._start(self.consumer_cmd, stdin=subprocess.PIPE)
            with _owned(consumer):
                run_activities(
                    lambda: self._transform(producer.stdout, consumer.stdin),
                    lambda: self._wait(producer, self.producer_cmd),
                    lambda: self._wait(consumer, self.consumer_cmd),
                )

    def _start(self, command: List[str], **kwargs):
        logger.debug("Starting %s", shlex.join(command))
        try:
            return self.spawn(command, encoding=STREAM_ENCODING, errors=STREAM_ERRORS, **kwargs)
        except OSError as e:
            raise ProcessError(command, reason=f"failed to start: {e}") from e

    def _transform(self, reader, writer):
        try:
            try:
                fix(writer, reader, self.config)
            finally:
                self._close_input(writer)
            # Drain what follows the first ret so the producer can exit cleanly.
            for _ in reader:
                pass
        finally:
            reader.close()

    def _close_input(self, writer):
        try:
            writer.close()
        except BrokenPipeError:
            # The consumer is gone; its wait reports why.
            logger.debug("%s closed its input early", self.consumer_cmd[0])

    def _wait(self, proc, command: List[str]):
        returncode = proc.wait()
        logger.debug("%s exited with status %s", command[0], returncode)
        if returncode != 0:
            raise ProcessError(command, returncode)
