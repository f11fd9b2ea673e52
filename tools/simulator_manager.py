#!/usr/bin/env python3
# tools/simulator_manager.py
"""
Reactor Simulator Manager - Main Orchestrator

Coordinates the reactor simulation process:
- Configuration loading (ConfigLoader)
- Structured logging (configure_logging)
- The simulation loop, on its own named thread (ReactorSimulation)
- The status monitor, as an asyncio task on the main thread (StatusMonitor)
- Signal handling and graceful shutdown

The simulation thread is the only writer during a tick; the monitor reads
snapshots under the state lock and publishes the StatusMode.
"""

import argparse
import asyncio
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Any

from config.config_loader import ConfigLoader, ReactorConfig
from reactorsim.diagnostics.logging_system import (
    EventCategory,
    EventSeverity,
    ReactorLogger,
    configure_logging,
    get_logger,
)
from reactorsim.monitoring.status_monitor import StatusMonitor
from reactorsim.simulation.reactor_simulation import ReactorSimulation
from reactorsim.state.reactor_state import ControlMode

logger = logging.getLogger(__name__)

DEFAULT_MONITOR_INTERVAL = 0.5  # seconds
TELEMETRY_LOG_INTERVAL = 20  # monitor checks
THREAD_JOIN_TIMEOUT = 5.0  # seconds


class SimulatorManager:
    """
    Main orchestrator for the reactor simulation.

    Manages the lifecycle from initialisation through execution to shutdown.

    Example:
        >>> manager = SimulatorManager(config_dir="config")
        >>> await manager.initialise()
        >>> await manager.start()
        >>> # Simulation runs...
        >>> await manager.stop()
    """

    def __init__(
        self,
        config_dir: str | Path = "config",
        duration: float | None = None,
        manual: bool = False,
        log_level: str | None = None,
        monitor_interval: float = DEFAULT_MONITOR_INTERVAL,
    ):
        """Initialise simulator manager.

        Args:
            config_dir: Directory containing reactor.yml
            duration: Stop automatically after this many seconds (None = run
                until signalled)
            manual: Start in MANUAL control mode
            log_level: Override the configured logging level
            monitor_interval: Seconds between status checks
        """
        if duration is not None and duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")
        if monitor_interval <= 0:
            raise ValueError(
                f"monitor_interval must be positive, got {monitor_interval}"
            )

        self.config_dir = Path(config_dir)
        self.duration = duration
        self.manual = manual
        self.log_level = log_level
        self.monitor_interval = monitor_interval

        self.config_loader = ConfigLoader(config_dir=self.config_dir)
        self.config: ReactorConfig | None = None
        self.simulation: ReactorSimulation | None = None
        self.monitor: StatusMonitor | None = None
        self.event_logger: ReactorLogger | None = None

        # Runtime state
        self._initialised = False
        self._running = False
        self._simulation_thread: threading.Thread | None = None
        self._monitor_task: asyncio.Task | None = None
        self._duration_task: asyncio.Task | None = None

        # Signal handling
        self._shutdown_event = asyncio.Event()
        self._previous_handlers: dict[int, Any] = {}

        logger.info("SimulatorManager created")

    # ----------------------------------------------------------------
    # Initialisation
    # ----------------------------------------------------------------

    async def initialise(self) -> None:
        """Load configuration and build the simulation components.

        Raises:
            RuntimeError: If initialisation fails
        """
        if self._initialised:
            logger.warning("Simulator already initialised")
            return

        try:
            logger.info("=== Starting Simulator Initialisation ===")

            logger.info("Loading configuration...")
            self.config = self.config_loader.load()

            logger.info("Creating reactor simulation...")
            self.simulation = ReactorSimulation.from_config(self.config)

            configure_logging(
                log_dir=self.config.logging.log_dir,
                clock=self.simulation.clock,
                level=self.log_level or self.config.logging.level,
            )
            self.event_logger = get_logger(
                "reactorsim.events",
                device="reactor",
                enable_json=self.config.logging.json,
            )

            if self.manual:
                self.simulation.state.set_control_mode(ControlMode.MANUAL)
                self.event_logger.log_audit(
                    "Control mode set to MANUAL at startup",
                    action="set_control_mode",
                    data={"mode": ControlMode.MANUAL.value},
                )

            self.monitor = StatusMonitor(
                self.simulation.state,
                self.config.temperature_range(),
                self.config.pressure_range(),
                self.config.humidity_range(),
                event_logger=self.event_logger,
            )

            self._initialised = True
            logger.info("=== Initialisation Complete ===")
            self._log_summary()

        except Exception as e:
            logger.error(f"Initialisation failed: {e}", exc_info=True)
            raise RuntimeError(f"Failed to initialise simulator: {e}") from e

    def _log_summary(self) -> None:
        config = self.config
        logger.info(
            f"Reactor: V={config.reaction.volume}m³, m={config.mass.input}kg, "
            f"T={config.reaction.temperature}K -> {config.reaction.needed_temp}K, "
            f"P={config.reaction.pressure}Pa -> {config.reaction.needed_pressure}Pa, "
            f"H={config.reaction.humidity}% -> {config.reaction.needed_humidity}%"
        )
        logger.info(
            f"Temperature strategy: {config.temperature_controller.strategy}, "
            f"tick {config.simulation.tick_ms}ms, "
            f"{config.simulation.time_acceleration}x speed, "
            f"mode {self.simulation.state.control_mode.value}"
        )

    # ----------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------

    async def start(self) -> None:
        """Start the simulation thread and the monitor task.

        Raises:
            RuntimeError: If not initialised
        """
        if not self._initialised:
            raise RuntimeError("Cannot start: simulator not initialised")

        if self._running:
            logger.warning("Simulator already running")
            return

        logger.info("=== Starting Simulation ===")

        self.simulation.start()
        self._simulation_thread = threading.Thread(
            target=self.simulation.run, name="reactor-simulation", daemon=True
        )
        self._simulation_thread.start()
        self._running = True

        self.event_logger.log_event(
            EventSeverity.NOTICE,
            EventCategory.SYSTEM,
            "Reactor simulation started",
        )

        self._monitor_task = asyncio.create_task(self._monitor_loop())
        if self.duration is not None:
            self._duration_task = asyncio.create_task(self._stop_after(self.duration))

    async def stop(self) -> None:
        """Stop the simulation gracefully."""
        if not self._running:
            logger.warning("Simulator not running")
            return

        logger.info("=== Stopping Simulation ===")
        self._running = False

        self.simulation.stop()

        for task in (self._monitor_task, self._duration_task):
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._monitor_task = None
        self._duration_task = None

        if self._simulation_thread:
            await asyncio.to_thread(
                self._simulation_thread.join, THREAD_JOIN_TIMEOUT
            )
            if self._simulation_thread.is_alive():
                logger.error("Simulation thread did not stop within timeout")
            self._simulation_thread = None

        self._log_final_statistics()
        logger.info("Simulation stopped")

    def pause(self) -> None:
        """Freeze simulated time. Ticks become no-ops until resumed."""
        self.simulation.clock.pause()

    def resume(self) -> None:
        self.simulation.clock.resume()

    # ----------------------------------------------------------------
    # Monitor loop
    # ----------------------------------------------------------------

    async def _monitor_loop(self) -> None:
        """Check reactor status at the monitor cadence.

        Requests shutdown if the simulation loop stops on its own.
        """
        checks = 0
        try:
            while self._running:
                self.monitor.check()
                checks += 1

                if checks % TELEMETRY_LOG_INTERVAL == 0:
                    self._log_status()

                if not self.simulation.is_running():
                    self.event_logger.log_event(
                        EventSeverity.ALERT,
                        EventCategory.SAFETY,
                        "Simulation loop stopped unexpectedly, shutting down",
                        component="simulator_manager",
                    )
                    self._shutdown_event.set()
                    break

                await asyncio.sleep(self.monitor_interval)

        except asyncio.CancelledError:
            logger.debug("Monitor loop cancelled")
            raise

    async def _stop_after(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
        logger.info(f"Configured duration of {seconds}s reached")
        self._shutdown_event.set()

    # ----------------------------------------------------------------
    # Status and monitoring
    # ----------------------------------------------------------------

    def get_status(self) -> dict[str, Any]:
        """Get simulation status.

        Returns:
            Dictionary with simulation status and telemetry
        """
        status: dict[str, Any] = {
            "running": self._running,
            "initialised": self._initialised,
        }
        if self.simulation:
            status["simulation"] = self.simulation.get_status()
        if self.monitor:
            status["telemetry"] = self.monitor.get_telemetry()
        return status

    def _log_status(self) -> None:
        telemetry = self.monitor.get_telemetry()
        logger.info(
            f"Status {telemetry['status_mode']}: "
            f"T={telemetry['temperature_k']}K, "
            f"P={telemetry['pressure_pa']}Pa, "
            f"H={telemetry['humidity_percent']}%, "
            f"E={telemetry['energy_consumption_w']}W"
        )

    def _log_final_statistics(self) -> None:
        clock_status = self.simulation.clock.get_status()
        elapsed_sim = clock_status["simulation_time"]
        elapsed_wall = clock_status["wall_time_elapsed"]
        ratio = elapsed_sim / elapsed_wall if elapsed_wall > 0 else 0

        logger.info("--- Final Statistics ---")
        logger.info(f"Total ticks: {self.simulation.tick_count}")
        logger.info(f"Simulation time elapsed: {elapsed_sim:.1f}s")
        logger.info(f"Wall-clock time elapsed: {elapsed_wall:.1f}s")
        logger.info(f"Time ratio: {ratio:.2f}x")
        logger.info("------------------------")

    # ----------------------------------------------------------------
    # Signal handling
    # ----------------------------------------------------------------

    def setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""

        def signal_handler(signum, frame):
            logger.info(f"Received signal {signum}")
            self._shutdown_event.set()

        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, signal_handler)

        logger.info("Signal handlers configured")

    def restore_signal_handlers(self) -> None:
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    async def wait_for_shutdown(self) -> None:
        """Wait for shutdown signal, duration expiry or loop failure."""
        await self._shutdown_event.wait()

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    # ----------------------------------------------------------------
    # Main run method
    # ----------------------------------------------------------------

    async def run(self) -> int:
        """Run complete simulation lifecycle.

        Returns:
            Process exit code: 0 on clean shutdown, 1 if initialisation failed
        """
        try:
            self.setup_signal_handlers()

            try:
                await self.initialise()
            except RuntimeError:
                return 1

            await self.start()

            logger.info("Simulation running. Press Ctrl+C to stop.")
            await self.wait_for_shutdown()
            return 0

        except KeyboardInterrupt:
            logger.info("KeyboardInterrupt received")
            return 0
        finally:
            if self._running:
                await self.stop()
            self.restore_signal_handlers()


# ----------------------------------------------------------------
# Command-line interface
# ----------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reactorsim",
        description="Closed chemical-reactor control and thermodynamics simulator",
    )
    parser.add_argument(
        "--config-dir",
        default="config",
        help="Directory containing reactor.yml (created with defaults if missing)",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until interrupted)",
    )
    parser.add_argument(
        "--manual",
        action="store_true",
        help="Start in MANUAL control mode (engine writes frozen)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override the configured logging level",
    )
    return parser


async def main(args: argparse.Namespace) -> int:
    """Main entry point."""
    logger.info("=== Reactor Control Simulator ===")

    manager = SimulatorManager(
        config_dir=args.config_dir,
        duration=args.duration,
        manual=args.manual,
        log_level=args.log_level,
    )
    return await manager.run()


def cli(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level or logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    sys.exit(asyncio.run(main(args)))


if __name__ == "__main__":
    cli()
