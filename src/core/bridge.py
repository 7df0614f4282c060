"""Runs one polling worker per target and waits for all of them."""

import asyncio
from collections.abc import Callable

import structlog

from src.adapters.mqtt.publisher import MQTTPublisher
from src.adapters.snmp.session import SNMPSession
from src.core.config import Settings
from src.core.errors import StartupError
from src.core.models import TargetDescriptor
from src.core.targets import build_targets
from src.core.worker import PollWorker, Publisher, Session

logger = structlog.get_logger()


def default_publisher(settings: Settings, target: TargetDescriptor) -> MQTTPublisher:
    return MQTTPublisher(
        host=settings.mqtt_broker_ip,
        port=settings.mqtt_broker_port,
        client_id=target.client_id,
        username=settings.mqtt_username,
        password=settings.mqtt_password,
        keepalive=settings.mqtt_keepalive,
        connect_timeout=settings.mqtt_connect_timeout,
        publish_timeout=settings.mqtt_publish_timeout,
    )


class Bridge:
    """Starts the workers concurrently; a failing worker does not stop the others."""

    def __init__(
        self,
        settings: Settings,
        targets: list[TargetDescriptor] | None = None,
        session_factory: Callable[[TargetDescriptor], Session] = SNMPSession,
        publisher_factory: Callable[[Settings, TargetDescriptor], Publisher] = default_publisher,
    ) -> None:
        self.settings = settings
        self.targets = targets if targets is not None else build_targets(settings)
        self.workers = [
            PollWorker(
                target=target,
                session=session_factory(target),
                publisher=publisher_factory(settings, target),
                poll_interval=settings.poll_interval,
                connect_attempts=settings.connect_attempts,
                backoff_initial=settings.connect_backoff_initial,
                backoff_max=settings.connect_backoff_max,
            )
            for target in self.targets
        ]
        self.fatal: StartupError | None = None

    def stop(self) -> None:
        """Signal every worker to stop."""
        logger.info("Stopping workers", count=len(self.workers))
        for worker in self.workers:
            worker.stop()

    async def _run_worker(self, worker: PollWorker, max_ticks: int | None) -> None:
        try:
            await worker.run(max_ticks=max_ticks)
        except StartupError as e:
            if worker.stopping:
                logger.info("Worker stopped during startup", target=worker.target.name)
                return
            logger.error("Worker failed to start", target=worker.target.name, error=str(e))
            if self.settings.startup_failure_policy == "exit":
                self.fatal = e
                self.stop()
        except Exception as e:
            logger.exception("Worker crashed", target=worker.target.name, error=str(e))

    async def run(self, max_ticks: int | None = None) -> None:
        """Run every worker and return once all of them have exited."""
        logger.info("Starting bridge", targets=[t.name for t in self.targets])
        await asyncio.gather(*(self._run_worker(w, max_ticks) for w in self.workers))
        logger.info("All workers exited", fatal=self.fatal is not None)
