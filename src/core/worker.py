"""Per-target polling worker: poll, decode, publish, repeat."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog

from src.core.decoders import decode, serialize
from src.core.models import PublishEnvelope, RawSample, TargetDescriptor, ValueType
from src.core.retry import retry_async

logger = structlog.get_logger()


class Session(Protocol):
    async def connect(self) -> None: ...

    async def poll(self, oids: tuple[str, ...]) -> RawSample | None: ...

    def close(self) -> None: ...


class Publisher(Protocol):
    async def connect(self) -> None: ...

    async def publish(self, envelope: PublishEnvelope) -> bool: ...

    async def disconnect(self) -> None: ...


class PollWorker:
    """Owns one target's SNMP session and broker connection."""

    def __init__(
        self,
        target: TargetDescriptor,
        session: Session,
        publisher: Publisher,
        poll_interval: float = 0.05,
        connect_attempts: int = 5,
        backoff_initial: float = 0.5,
        backoff_max: float = 10.0,
    ) -> None:
        self.target = target
        self.session = session
        self.publisher = publisher
        self.poll_interval = poll_interval
        self.connect_attempts = connect_attempts
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max
        self.ticks = 0
        self.published = 0
        self._stop = asyncio.Event()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Ask the loop to exit at the next tick boundary."""
        self._stop.set()

    async def _connect(self, operation: Callable[[], Awaitable[None]], description: str) -> None:
        await retry_async(
            operation,
            target=f"{self.target.name} {description}",
            attempts=self.connect_attempts,
            initial_delay=self.backoff_initial,
            max_delay=self.backoff_max,
            stop_event=self._stop,
        )

    async def run(self, max_ticks: int | None = None) -> None:
        """Connect, then tick until stopped or max_ticks is reached.

        Raises StartupError if either connection cannot be established.
        """
        logger.info("Starting worker", target=self.target.name, topic=self.target.topic)

        await self._connect(self.publisher.connect, "broker")
        try:
            await self._connect(self.session.connect, "session")
            try:
                while not self._stop.is_set():
                    await self.tick()
                    if max_ticks is not None and self.ticks >= max_ticks:
                        break
                    await self._wait()
            finally:
                self.session.close()
        finally:
            await self.publisher.disconnect()
            logger.info(
                "Worker stopped", target=self.target.name, ticks=self.ticks, published=self.published
            )

    async def _wait(self) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            pass

    async def tick(self) -> bool:
        """Run one poll-decode-publish cycle. Returns True if a record was published."""
        self.ticks += 1

        sample = await self.session.poll(self.target.oids)
        if sample is None:
            return False

        for index, var_bind in enumerate(sample.var_binds):
            value = var_bind.value
            if var_bind.type == ValueType.OCTET_STRING:
                value = value.decode("utf-8", errors="replace")
            logger.debug("Value read", target=self.target.name, index=index, oid=var_bind.oid, value=value)

        result = decode(self.target.device_class, sample)
        if not result.ok:
            logger.warning(
                "Sample does not match device layout",
                target=self.target.name,
                error=result.error.message,
                index=result.error.index,
            )
            return False

        payload = serialize(result.record)
        if payload is None:
            return False

        published = await self.publisher.publish(
            PublishEnvelope(topic=self.target.topic, payload=payload)
        )
        if published:
            self.published += 1
        return published
