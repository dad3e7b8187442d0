"""
Trigger runtime: pops document events off redis, dispatches them through the
EventRouter, and runs the sweeps when the scheduler says they are due. Every
event and every sweep gets its own session and context.
"""

import asyncio
import logging

from . import database
from .context import HandlerContext
from .events import EventQueue, EventRouter
from .notifications import NotificationGateway
from .realtime import RealtimeStore, connect_redis
from .scheduler import Scheduler
from .sweeper import run_job, schedules

logger = logging.getLogger(__name__)

POP_TIMEOUT = 1
ERROR_BACKOFF = 5


class Worker:
    def __init__(self, redis_client, session_factory=database.SessionLocal, scheduler=None):
        self.redis = redis_client
        self.session_factory = session_factory
        self.queue = EventQueue(redis_client)
        self.router = EventRouter()
        self.notifier = NotificationGateway(redis_client)
        self.realtime = RealtimeStore(redis_client)
        self.scheduler = scheduler or Scheduler(schedules())

    def context(self, db):
        return HandlerContext(db, self.notifier, self.realtime, events=self.queue)

    async def handle_event(self, event):
        db = self.session_factory()
        try:
            return await self.router.dispatch(self.context(db), event)
        finally:
            db.close()

    async def run_scheduled(self, name):
        db = self.session_factory()
        try:
            result = await run_job(self.context(db), name)
            logger.info(f"[Worker] {name} finished: {result}")
            return result
        finally:
            db.close()

    async def tick(self):
        for name in self.scheduler.due():
            await self.run_scheduled(name)
        event = await asyncio.to_thread(self.queue.pop, POP_TIMEOUT)
        if event is not None:
            logger.info(f"[Worker] Event {event.resource}/{event.kind} {event.document_id}")
            await self.handle_event(event)

    async def run_forever(self):
        self.scheduler.start()
        logger.info("[Worker] Listening for document events...")
        while True:
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"[Worker] Error in worker loop: {e}")
                await asyncio.sleep(ERROR_BACKOFF)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    engine = database.init_engine()
    database.init_db(engine)
    asyncio.run(Worker(connect_redis()).run_forever())


if __name__ == "__main__":
    main()
