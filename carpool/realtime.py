import json
import logging
import time
import uuid

import redis

from . import config

logger = logging.getLogger(__name__)

# Delete the lease only while it still holds our token, in one round trip.
RELEASE_LEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


def connect_redis():
    return redis.Redis(
        host=config.REDIS_HOST,
        port=config.REDIS_PORT,
        decode_responses=True,
        socket_connect_timeout=2,
    )


def chat_path(ride_id):
    return f"chats/{ride_id}"


def location_path(ride_id):
    return f"rideLocations/{ride_id}"


def lease_path(job_name):
    return f"lease/{job_name}"


class RealtimeStore:
    """Key-path trees kept in redis: ride chats, ride locations and job leases."""

    def __init__(self, client):
        self.client = client

    def push_system_message(self, ride_id, text):
        message = {
            "senderID": "system",
            "senderName": "System",
            "senderRole": "system",
            "text": text,
            "messageType": "system",
            "timestamp": int(time.time() * 1000),
            "read": False,
        }
        self.client.rpush(chat_path(ride_id), json.dumps(message))
        return message

    def chat_messages(self, ride_id):
        return [json.loads(raw) for raw in self.client.lrange(chat_path(ride_id), 0, -1)]

    def remove_ride_trees(self, ride_id):
        self.client.delete(location_path(ride_id), chat_path(ride_id))

    def acquire_lease(self, job_name, ttl_seconds):
        """Return an owner token if the lease was taken, None if someone else holds it."""
        token = uuid.uuid4().hex
        if self.client.set(lease_path(job_name), token, nx=True, ex=ttl_seconds):
            return token
        return None

    def release_lease(self, job_name, token):
        if not self.client.eval(RELEASE_LEASE_SCRIPT, 1, lease_path(job_name), token):
            logger.warning(f"[Realtime] Lease {job_name} expired or taken over before release")
