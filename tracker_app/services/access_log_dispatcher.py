import logging
from enum import Enum
from typing import Optional

from tracker_app.queue.models import AccessLogRecord
from tracker_app.queue.strategies import QueueStrategy
from tracker_app.storage.strategies import AccessLogStore

logger = logging.getLogger(__name__)


class DeliveryMode(Enum):
    BACKGROUND = "background"  # write to the store after the response
    QUEUE = "queue"  # publish; AccessLogWorker writes in batches


class AccessLogDispatcher:
    """
    Fire-and-forget hand-off of access records.

    dispatch() is scheduled as a response background task, so the visitor
    has been redirected before it runs. It never raises and never retries:
    a failed write is logged and the record is dropped.
    """

    def __init__(
        self,
        mode: DeliveryMode,
        store: Optional[AccessLogStore] = None,
        queue: Optional[QueueStrategy] = None,
        queue_name: str = "access_logs",
    ):
        if mode == DeliveryMode.BACKGROUND and store is None:
            raise ValueError("Background delivery needs an access log store")
        if mode == DeliveryMode.QUEUE and queue is None:
            raise ValueError("Queue delivery needs a queue")
        self.mode = mode
        self.store = store
        self.queue = queue
        self.queue_name = queue_name

    async def dispatch(self, record: AccessLogRecord) -> bool:
        try:
            if self.mode == DeliveryMode.QUEUE:
                delivered = await self.queue.publish(self.queue_name, record)
            else:
                delivered = await self.store.insert_access_record(record)
        except Exception:
            logger.exception(
                "Dropping access record for %s %s", record.entity_type, record.entity_id
            )
            return False

        if not delivered:
            logger.error(
                "Access record for %s %s was not stored", record.entity_type, record.entity_id
            )
        return delivered
