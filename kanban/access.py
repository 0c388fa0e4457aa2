from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from .db import Board, BoardAccess, Card, ColumnModel
from .errors import AccessDenied, NotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoardGrants:
    """Who may touch a board: its owner plus every explicit grantee."""

    board_id: str
    owner_id: str
    grantee_ids: frozenset[str] = frozenset()

    def is_owner(self, user_id: str) -> bool:
        return user_id == self.owner_id

    def allows(self, user_id: str) -> bool:
        return self.is_owner(user_id) or user_id in self.grantee_ids


def load_grants(db: Session, board: Board) -> BoardGrants:
    grantees = db.scalars(select(BoardAccess.user_id).where(BoardAccess.board_id == board.id))
    return BoardGrants(board_id=board.id, owner_id=board.owner_id, grantee_ids=frozenset(grantees))


def has_access(db: Session, user_id: str, board_id: str) -> bool:
    board = db.get(Board, board_id)
    if board is None:
        return False
    return load_grants(db, board).allows(user_id)


# === Guards used by the route handlers ===


def require_access(db: Session, user_id: str, board_id: str) -> Board:
    board = db.get(Board, board_id)
    if board is None:
        raise NotFound("Board not found")
    if not has_access(db, user_id, board_id):
        logger.warning("user %s denied access to board %s", user_id, board_id)
        raise AccessDenied()
    return board


def require_owner(db: Session, user_id: str, board_id: str) -> Board:
    board = db.get(Board, board_id)
    if board is None:
        raise NotFound("Board not found")
    if board.owner_id != user_id:
        logger.warning("user %s is not the owner of board %s", user_id, board_id)
        raise AccessDenied()
    return board


def require_column(db: Session, user_id: str, column_id: str) -> ColumnModel:
    column = db.get(ColumnModel, column_id)
    if column is None:
        raise NotFound("Column not found")
    require_access(db, user_id, column.board_id)
    return column


def require_card(db: Session, user_id: str, card_id: str) -> Card:
    card = db.get(Card, card_id)
    if card is None:
        raise NotFound("Card not found")
    require_access(db, user_id, card.column.board_id)
    return card
