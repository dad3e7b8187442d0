import logging

from sqlalchemy import select, update

from ..models import User, utc_now
from ..schemas import RatingSnapshot

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 5


def next_average(avg_rating, ratings_count, new_rating):
    total = (avg_rating or 0) * (ratings_count or 0) + new_rating
    return round(total / ((ratings_count or 0) + 1), 2)


async def update_avg_rating(ctx, event):
    """Fold a newly created rating into the target user's running average.

    The write is a compare-and-swap on ratings_count, retried on a lost race.
    """
    rating = RatingSnapshot.model_validate(event.after)
    logger.info(f"[Ratings] New rating for user {rating.to_user_id}: {rating.rating}")

    for attempt in range(1, MAX_ATTEMPTS + 1):
        row = ctx.db.execute(
            select(User.avg_rating, User.ratings_count).where(User.id == rating.to_user_id)
        ).first()
        if row is None:
            logger.error(f"[Ratings] User {rating.to_user_id} not found")
            return None

        count = row.ratings_count or 0
        new_avg = next_average(row.avg_rating, count, rating.rating)
        result = ctx.db.execute(
            update(User)
            .where(User.id == rating.to_user_id, User.ratings_count == count)
            .values(avg_rating=new_avg, ratings_count=count + 1, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        ctx.db.commit()

        if result.rowcount == 1:
            logger.info(f"[Ratings] Updated user {rating.to_user_id} rating: {new_avg:.2f}")
            return {"avgRating": new_avg, "ratingsCount": count + 1}

        logger.warning(
            f"[Ratings] Concurrent update on user {rating.to_user_id}, "
            f"retrying ({attempt}/{MAX_ATTEMPTS})"
        )

    logger.error(f"[Ratings] Gave up updating user {rating.to_user_id} after {MAX_ATTEMPTS} attempts")
    return None
