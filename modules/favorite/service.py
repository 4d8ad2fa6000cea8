"""
Favorite Module - Service Layer
=================================
Add / remove / toggle favorites and list a user's favorites.

like_count is rewritten from the row count inside the same transaction as
the favorite insert/delete, so it cannot drift from the table.
"""

import logging
from typing import Iterable, List, Set, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from common.exceptions import ValidationError
from modules.catalog.models import Design
from modules.catalog.query import DesignQuery
from modules.catalog.service import design_service
from modules.favorite.models import UserFavorite

logger = logging.getLogger("gallery.favorites")


class FavoriteService:

    def _find(self, db: Session, user_id: int, design_id: int):
        return db.query(UserFavorite).filter(
            UserFavorite.user_id == user_id,
            UserFavorite.design_id == design_id,
        ).with_for_update().first()

    def _sync_like_count(self, db: Session, design_id: int) -> int:
        """Set like_count to the current number of favorite rows. Returns it."""
        count_q = (
            select(func.count(UserFavorite.id))
            .where(UserFavorite.design_id == design_id)
            .scalar_subquery()
        )
        db.query(Design).filter(Design.id == design_id).update(
            {Design.like_count: count_q}, synchronize_session=False,
        )
        db.flush()
        return db.query(Design.like_count).filter(Design.id == design_id).scalar() or 0

    def _insert(self, db: Session, user_id: int, design_id: int) -> None:
        db.add(UserFavorite(user_id=user_id, design_id=design_id))
        try:
            db.flush()
        except IntegrityError:
            # a concurrent request inserted the same pair first
            db.rollback()
            raise ValidationError("Design already in favorites")

    def add_favorite(self, db: Session, user_id: int, design_id: int) -> int:
        """Returns the design's new like_count."""
        design_service.get_by_id(db, design_id)
        if self._find(db, user_id, design_id):
            raise ValidationError("Design already in favorites")
        self._insert(db, user_id, design_id)
        return self._sync_like_count(db, design_id)

    def remove_favorite(self, db: Session, user_id: int, design_id: int) -> int:
        """
        Returns the design's new like_count. Works for designs that have since
        been hidden, so a user can always drop a favorite they hold.
        """
        favorite = self._find(db, user_id, design_id)
        if not favorite:
            raise ValidationError("Design not in favorites")
        db.delete(favorite)
        db.flush()
        return self._sync_like_count(db, design_id)

    def toggle_favorite(self, db: Session, user_id: int, design_id: int) -> Tuple[bool, int]:
        """
        Flip the favorite state. Only adding needs a visible design.
        Returns: (is_favorited_now, like_count)
        """
        favorite = self._find(db, user_id, design_id)
        if favorite:
            db.delete(favorite)
            db.flush()
            favorited = False
        else:
            design_service.get_by_id(db, design_id)
            self._insert(db, user_id, design_id)
            favorited = True
        return favorited, self._sync_like_count(db, design_id)

    def list_favorites(self, db: Session, user_id: int, dq: DesignQuery) -> Tuple[List[Design], int]:
        """Visible favorited designs, most recently favorited first."""
        base = db.query(Design).join(UserFavorite, UserFavorite.design_id == Design.id).filter(
            UserFavorite.user_id == user_id,
        )
        total = dq.filtered(base.with_entities(func.count(Design.id))).scalar() or 0
        designs = (
            dq.filtered(base)
            .order_by(UserFavorite.created_at.desc(), UserFavorite.id.desc())
            .limit(dq.limit)
            .offset(dq.offset)
            .all()
        )
        return designs, total

    def favorited_ids(self, db: Session, user_id: int, design_ids: Iterable[int]) -> Set[int]:
        ids = list(design_ids)
        if not ids:
            return set()
        rows = db.query(UserFavorite.design_id).filter(
            UserFavorite.user_id == user_id,
            UserFavorite.design_id.in_(ids),
        ).all()
        return {r[0] for r in rows}

    def is_favorited(self, db: Session, user_id: int, design_id: int) -> bool:
        return bool(self.favorited_ids(db, user_id, [design_id]))


favorite_service = FavoriteService()
