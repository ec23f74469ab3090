"""Rating model.

One 1-5 star rating per (user, store) pair. The pair is unique at the storage
layer so two concurrent submissions cannot both land.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, SmallInteger, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from storerate.models.user import utcnow
from storerate.stores.postgres import Base

MIN_RATING = 1
MAX_RATING = 5


class Rating(Base):
    """A user's rating of a store."""

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "store_id", name="uq_ratings_user_store"),
        CheckConstraint(
            f"rating >= {MIN_RATING} AND rating <= {MAX_RATING}",
            name="ck_ratings_rating_range",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Relations
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    store_id: Mapped[int] = mapped_column(ForeignKey("stores.id"), index=True)

    rating: Mapped[int] = mapped_column(SmallInteger)

    # Timestamps (created_at never changes after insert)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Rating user={self.user_id} store={self.store_id} {self.rating}>"
