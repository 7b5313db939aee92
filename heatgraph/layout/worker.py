"""
Threaded layout worker.

A LayoutWorker owns one LayoutEngine on a dedicated daemon thread and talks
to the rest of the pipeline through two one-way queues:

    commands  (caller -> worker):  StartCommand, StopCommand, ShutdownCommand
    ticks     (worker -> caller):  TickMessage, ErrorMessage

Ordering and cancellation rules:
    - messages are delivered in the order they were produced
    - the worker polls for commands before every tick, so STOP prevents the
      next tick from being scheduled but never interrupts one in progress
    - ``stop()`` discards undelivered ticks, leaving at most one stale tick
      (the one in progress when STOP was sent); ``run_id`` identifies it
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Iterator, Mapping, Optional, Union

from ..errors import SimulationDiverged
from ..events import EmitFn, log_event
from ..models import Graph
from ..presets import LayoutSettings
from .force3d import LayoutEngine
from .messages import (
    Command,
    ErrorMessage,
    Message,
    ShutdownCommand,
    StartCommand,
    StopCommand,
    TickMessage,
    is_final,
    parse_command,
)

logger = logging.getLogger(__name__)


class LayoutWorker:
    """
    Runs force layouts off the caller's thread.

    Usage::

        with LayoutWorker(settings) as worker:
            worker.start_layout(graph.nodes.values(), graph.edges.values())
            for msg in worker.iter_ticks(timeout=5.0):
                render(msg.positions)
    """

    def __init__(self, settings: Optional[LayoutSettings] = None, emit: Optional[EmitFn] = None) -> None:
        self.settings = settings or LayoutSettings()
        self.emit = emit
        self.commands: "queue.Queue[Command]" = queue.Queue()
        self.ticks: "queue.Queue[Message]" = queue.Queue()

        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._next_run_id = 0

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def open(self) -> "LayoutWorker":
        if self.alive:
            return self
        thread = threading.Thread(target=self._loop, name="heatgraph-layout", daemon=True)
        self._thread = thread
        thread.start()
        return self

    def close(self, timeout: Optional[float] = 5.0) -> None:
        if self._thread is None:
            return
        self.commands.put(ShutdownCommand())
        self._thread.join(timeout)
        if self._thread.is_alive():
            log_event(self.emit, "warn", "Layout worker did not stop within timeout",
                      logger=logger, timeout=timeout)
        self._thread = None

    def __enter__(self) -> "LayoutWorker":
        return self.open()

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Caller side
    # ------------------------------------------------------------------ #

    def send(self, command: Union[Command, Mapping[str, Any]]) -> Command:
        """Queue a command object or wire dict; starts the thread if needed."""
        cmd = parse_command(command)
        if isinstance(cmd, StartCommand) and cmd.run_id == 0:
            cmd = StartCommand(nodes=cmd.nodes, edges=cmd.edges, run_id=self._new_run_id())
        if not self.alive and not isinstance(cmd, ShutdownCommand):
            self.open()
        self.commands.put(cmd)
        if isinstance(cmd, StopCommand):
            self._drain_ticks()
        return cmd

    def start_layout(self, nodes: Any, edges: Any = ()) -> int:
        """Start a run over a copy of ``nodes`` / ``edges``; returns its run_id."""
        cmd = StartCommand.create(nodes, edges, run_id=self._new_run_id())
        self.send(cmd)
        return cmd.run_id

    def start_graph(self, graph: Graph) -> int:
        return self.start_layout(graph.nodes.values(), graph.edges.values())

    def stop(self) -> None:
        self.send(StopCommand())

    def next_message(self, timeout: Optional[float] = None) -> Optional[Message]:
        try:
            return self.ticks.get(timeout=timeout)
        except queue.Empty:
            return None

    def iter_ticks(self, timeout: Optional[float] = None, run_id: Optional[int] = None) -> Iterator[Message]:
        """
        Yield messages until the run converges or fails, or until no message
        arrives within ``timeout`` seconds. Messages of other runs are skipped
        when ``run_id`` is given.
        """
        while True:
            msg = self.next_message(timeout)
            if msg is None:
                return
            if run_id is not None and msg.run_id != run_id:
                continue
            yield msg
            if is_final(msg):
                return

    def _new_run_id(self) -> int:
        with self._lock:
            self._next_run_id += 1
            return self._next_run_id

    def _drain_ticks(self) -> None:
        kept = []
        while True:
            try:
                msg = self.ticks.get_nowait()
            except queue.Empty:
                break
            if not isinstance(msg, TickMessage):
                kept.append(msg)
        for msg in kept:
            self.ticks.put(msg)

    # ------------------------------------------------------------------ #
    # Worker side
    # ------------------------------------------------------------------ #

    def _fail(self, run_id: int, reason: str, iteration: int = 0) -> None:
        """Report a run that cannot continue; the thread stays up for the next START."""
        log_event(self.emit, "error", f"Layout run {run_id} {reason}",
                  logger=logger, run_id=run_id, iteration=iteration)
        self.ticks.put(ErrorMessage(error=reason, iteration=iteration, run_id=run_id))

    def _loop(self) -> None:
        engine = LayoutEngine(self.settings, self.emit)
        stride = self.settings.tick_stride
        running = False
        run_id = 0

        while True:
            try:
                cmd = self.commands.get(block=not running)
            except queue.Empty:
                cmd = None

            if cmd is not None:
                if isinstance(cmd, ShutdownCommand):
                    break
                if isinstance(cmd, StopCommand):
                    if running:
                        log_event(self.emit, "info", f"Layout run {run_id} stopped",
                                  logger=logger, run_id=run_id, iteration=engine.iteration)
                    running = False
                    continue
                if isinstance(cmd, StartCommand):
                    run_id = cmd.run_id
                    try:
                        engine.reset()
                        engine.start(cmd.nodes, cmd.edges)
                    except Exception as exc:
                        self._fail(run_id, f"rejected: {type(exc).__name__}: {exc}")
                        running = False
                        continue
                    running = True
                    continue

            if not running:
                continue

            try:
                snap = engine.tick()
            except SimulationDiverged as exc:
                self.ticks.put(ErrorMessage(
                    error=str(exc),
                    iteration=exc.iteration,
                    node_ids=tuple(exc.node_ids),
                    run_id=run_id,
                ))
                running = False
                continue
            except Exception as exc:
                self._fail(run_id, f"failed: {type(exc).__name__}: {exc}", engine.iteration)
                running = False
                continue

            if snap.converged or engine.iteration % stride == 0:
                self.ticks.put(TickMessage(
                    positions={k: [v[0], v[1], v[2]] for k, v in snap.positions.items()},
                    iteration=snap.iteration,
                    alpha=snap.alpha,
                    converged=snap.converged,
                    run_id=run_id,
                ))
            if snap.converged:
                running = False


__all__ = ["LayoutWorker"]
