import asyncio

from . import config
from .batch import BatchWriter
from .models import User, utc_now


class HandlerContext:
    """The clients one trigger or sweep invocation works against.

    Built fresh per invocation by the worker (or by tests with fakes); handlers
    keep no state of their own between invocations.
    """

    def __init__(self, db, notifier, realtime, events=None, clock=utc_now,
                 batch_limit=config.BATCH_LIMIT):
        self.db = db
        self.notifier = notifier
        self.realtime = realtime
        self.events = events
        self.clock = clock
        self.batch_limit = batch_limit

    def get_user(self, user_id):
        if not user_id:
            return None
        return self.db.get(User, user_id)

    def get_users(self, user_ids):
        users = []
        for user_id in user_ids or []:
            user = self.get_user(user_id)
            if user is not None:
                users.append(user)
        return users

    def batch_writer(self):
        return BatchWriter(self.db, self.batch_limit)

    async def post_system_message(self, ride_id, text):
        return await asyncio.to_thread(self.realtime.push_system_message, ride_id, text)

    async def remove_ride_trees(self, ride_id):
        return await asyncio.to_thread(self.realtime.remove_ride_trees, ride_id)
