"""
Access Log Worker

Consumes AccessLogRecords published by the redirect routes (when
ACCESS_LOG_DELIVERY=queue) and bulk-inserts them into the access-log store.

- Consumes messages in batches
- Acknowledges a batch only after it was stored
- A failed batch stays pending and is reclaimed once idle (Redis) or is
  put back at the head of the queue (in-memory)
"""

import asyncio
import logging
import signal
import sys
from typing import List

from tracker_app.config import settings
from tracker_app.queue.models import AccessLogRecord
from tracker_app.queue.strategies import QueueStrategy
from tracker_app.storage.strategies import AccessLogStore

logger = logging.getLogger(__name__)


class AccessLogWorker:
    def __init__(
        self,
        queue: QueueStrategy,
        store: AccessLogStore,
        queue_name: str = settings.queue_name,
        batch_size: int = settings.queue_batch_size,
    ):
        self.queue = queue
        self.store = store
        self.queue_name = queue_name
        self.batch_size = batch_size
        self.running = False
        self.processed_count = 0
        self.failed_batches = 0

    async def process_once(self, block_time: int = 1000) -> int:
        """
        Consume and store one batch.

        Returns:
            Number of records stored (0 when the queue was empty or the
            insert failed)
        """
        messages = await self.queue.consume_batch(
            queue_name=self.queue_name,
            batch_size=self.batch_size,
            block_time=block_time,
        )
        if not messages:
            return 0

        if not await self.store.insert_access_records(messages):
            self.failed_batches += 1
            logger.error("Batch of %d access records failed; will be retried", len(messages))
            await self.queue.requeue(self.queue_name, messages)
            return 0

        await self._ack(messages)
        self.processed_count += len(messages)
        logger.info("Stored %d access records. Total: %d", len(messages), self.processed_count)
        return len(messages)

    async def _ack(self, messages: List[AccessLogRecord]):
        message_ids = [msg.message_id for msg in messages if msg.message_id]
        if message_ids:
            await self.queue.ack(self.queue_name, message_ids)

    async def start(self):
        """Run until stop() is called or SIGINT/SIGTERM arrives."""
        self.running = True
        logger.info("Access log worker started (batch size %d)", self.batch_size)

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        while self.running:
            try:
                stored = await self.process_once()
                if stored == 0:
                    # In-memory consume does not block
                    await asyncio.sleep(1)
            except asyncio.CancelledError:
                logger.info("Worker task cancelled")
                break
            except Exception:
                logger.exception("Error processing access log batch")
                await asyncio.sleep(1)

        logger.info("Access log worker stopped")

    def _signal_handler(self, signum, frame):
        logger.info("Received signal %s. Shutting down gracefully...", signum)
        self.stop()

    def stop(self):
        self.running = False


async def main():
    """
    Usage:
        python -m tracker_app.hit_processor.access_log_worker
    """
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(
        "Environment: %s, queue backend: %s, queue: %s",
        settings.environment, settings.queue_backend, settings.queue_name,
    )

    from tracker_app.queue.factory import QueueFactory, QueueBackend
    from tracker_app.storage.factory import AccessLogStoreFactory
    from tracker_app.database.connection import Base, engine
    import tracker_app.models  # noqa: F401  registers tables

    Base.metadata.create_all(bind=engine)

    queue = QueueFactory.create(QueueBackend(settings.queue_backend))
    store = AccessLogStoreFactory.create()

    worker = AccessLogWorker(queue=queue, store=store)

    try:
        await worker.start()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception:
        logger.exception("Fatal worker error")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
