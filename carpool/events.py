import logging

from . import config
from .handlers import bookings, ratings, rides
from .schemas import DocumentEvent

logger = logging.getLogger(__name__)


def default_registry():
    return {
        ("ratings", "create"): ratings.update_avg_rating,
        ("bookings", "create"): bookings.notify_driver_on_booking,
        ("bookings", "update"): bookings.notify_on_booking_cancellation,
        ("rides", "update"): rides.on_ride_update,
    }


class EventRouter:
    """Invoke exactly one handler per document event.

    A handler failure is logged and turned into a None result; the event is
    never re-raised to the runtime.
    """

    def __init__(self, registry=None):
        self.registry = registry if registry is not None else default_registry()

    async def dispatch(self, ctx, event):
        handler = self.registry.get((event.resource, event.kind))
        if handler is None:
            logger.info(f"[Router] No handler for {event.resource}/{event.kind}")
            return None
        try:
            return await handler(ctx, event)
        except Exception as e:
            logger.error(
                f"[Router] {handler.__name__} failed for "
                f"{event.resource}/{event.document_id}: {e}"
            )
            ctx.db.rollback()
            return None


class EventQueue:
    """Redis list the document producers push change events onto."""

    def __init__(self, client, name=config.EVENT_QUEUE):
        self.client = client
        self.name = name

    def emit(self, event):
        self.client.lpush(self.name, event.model_dump_json())

    def pop(self, timeout=5):
        item = self.client.brpop(self.name, timeout=timeout)
        if not item:
            return None
        return DocumentEvent.model_validate_json(item[1])
