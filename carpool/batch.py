import logging

from sqlalchemy import delete, update

from . import config
from .models import ArchivedRide, Ride, utc_now

logger = logging.getLogger(__name__)


class Mutation:
    """One pending write; counts as a single operation against the batch limit."""

    def apply(self, db):
        raise NotImplementedError


class SetFields(Mutation):
    def __init__(self, model, doc_id, **values):
        self.model = model
        self.doc_id = doc_id
        self.values = values

    def apply(self, db):
        db.execute(
            update(self.model)
            .where(self.model.id == self.doc_id)
            .values(**self.values)
            .execution_options(synchronize_session=False)
        )


class ArchiveRide(Mutation):
    """Copy a ride into archived_rides and delete the original, as one paired op."""

    def __init__(self, ride_id, data, archived_at=None):
        self.doc_id = ride_id
        self.data = data
        self.archived_at = archived_at or utc_now()

    def apply(self, db):
        db.merge(ArchivedRide(id=self.doc_id, data=self.data, archived_at=self.archived_at))
        db.execute(
            delete(Ride)
            .where(Ride.id == self.doc_id)
            .execution_options(synchronize_session=False)
        )


class BatchResult:
    def __init__(self):
        self.committed = []
        self.chunk_sizes = []
        self.failed = False

    @property
    def committed_count(self):
        return len(self.committed)


def chunked(items, size):
    for start in range(0, len(items), size):
        yield items[start:start + size]


class BatchWriter:
    """Commit mutations in atomic chunks of at most `limit` operations.

    Chunks are not atomic with each other. The first failing chunk is rolled
    back and the remaining chunks are left for the next run to reselect.
    """

    def __init__(self, db, limit=config.BATCH_LIMIT):
        if limit < 1:
            raise ValueError("batch limit must be positive")
        self.db = db
        self.limit = limit

    def commit(self, mutations):
        result = BatchResult()
        for chunk in chunked(list(mutations), self.limit):
            try:
                for mutation in chunk:
                    mutation.apply(self.db)
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                result.failed = True
                logger.error(
                    f"[Batch] Chunk of {len(chunk)} failed after "
                    f"{result.committed_count} committed ops: {e}"
                )
                break
            result.committed.extend(chunk)
            result.chunk_sizes.append(len(chunk))
        return result
