from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import positions
from .db import Board, BoardAccess, Card, ColumnModel, User
from .errors import Conflict, NotFound, ValidationFailed
from .utils import normalize_email, now_utc

logger = logging.getLogger(__name__)


class Storage:
    """Relational store operations for users, boards, columns, cards and grants.

    Every mutating method finishes with a single commit so that a reorder's
    shift and re-enumeration land together.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _touch(self, board: Board) -> None:
        board.updated_at = now_utc()

    # === User operations ===
    def create_user(self, name: str, email: str) -> User:
        email = normalize_email(email)
        if self.find_user_by_email(email) is not None:
            raise Conflict("Email already registered")
        user = User(name=name, email=email, email_verified=False)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Email already registered")
        self.db.refresh(user)
        logger.info("registered user %s", user.id)
        return user

    def find_user_by_email(self, email: str) -> Optional[User]:
        return self.db.scalars(select(User).where(User.email == normalize_email(email))).first()

    # === Board operations ===
    def create_board(self, owner_id: str, name: str) -> Board:
        board = Board(name=name, owner_id=owner_id)
        self.db.add(board)
        self.db.commit()
        self.db.refresh(board)
        logger.info("user %s created board %s", owner_id, board.id)
        return board

    def list_owned_boards(self, user_id: str) -> list[Board]:
        stmt = select(Board).where(Board.owner_id == user_id).order_by(Board.updated_at.desc())
        return list(self.db.scalars(stmt))

    def list_shared_boards(self, user_id: str) -> list[tuple[Board, User]]:
        stmt = (
            select(Board, User)
            .join(BoardAccess, BoardAccess.board_id == Board.id)
            .join(User, User.id == Board.owner_id)
            .where(BoardAccess.user_id == user_id)
            .order_by(Board.updated_at.desc())
        )
        return [(board, owner) for board, owner in self.db.execute(stmt)]

    def rename_board(self, board: Board, name: str) -> Board:
        board.name = name
        self._touch(board)
        self.db.commit()
        self.db.refresh(board)
        return board

    def delete_board(self, board: Board) -> None:
        board_id = board.id
        self.db.delete(board)
        self.db.commit()
        logger.info("deleted board %s", board_id)

    # === Column operations ===
    def list_columns(self, board_id: str) -> list[ColumnModel]:
        return positions.ordered(self.db.scalars(select(ColumnModel).where(ColumnModel.board_id == board_id)))

    def create_column(self, board: Board, name: str) -> ColumnModel:
        column = ColumnModel(
            board_id=board.id,
            name=name,
            position=positions.next_position(self.list_columns(board.id)),
        )
        self.db.add(column)
        self._touch(board)
        self.db.commit()
        self.db.refresh(column)
        return column

    def rename_column(self, column: ColumnModel, name: str) -> ColumnModel:
        column.name = name
        self._touch(column.board)
        self.db.commit()
        self.db.refresh(column)
        return column

    def move_column(self, column: ColumnModel, position: int) -> list[ColumnModel]:
        siblings = self.list_columns(column.board_id)
        result = positions.move_within(siblings, column, position)
        self._touch(column.board)
        self.db.commit()
        logger.info("moved column %s to position %d on board %s", column.id, column.position, column.board_id)
        return result

    def delete_column(self, column: ColumnModel) -> None:
        board = column.board
        remaining = [c for c in self.list_columns(board.id) if c.id != column.id]
        self.db.delete(column)
        positions.compact(remaining)
        self._touch(board)
        self.db.commit()

    # === Card operations ===
    def list_cards(self, column_id: str) -> list[Card]:
        return positions.ordered(self.db.scalars(select(Card).where(Card.column_id == column_id)))

    def cards_by_column(self, board_id: str) -> dict[str, list[Card]]:
        stmt = select(Card).join(ColumnModel, ColumnModel.id == Card.column_id).where(ColumnModel.board_id == board_id)
        grouped: dict[str, list[Card]] = {}
        for card in self.db.scalars(stmt):
            grouped.setdefault(card.column_id, []).append(card)
        return {column_id: positions.ordered(cards) for column_id, cards in grouped.items()}

    def create_card(
        self,
        column: ColumnModel,
        title: str,
        description: Optional[str],
        priority: str,
    ) -> Card:
        card = Card(
            column_id=column.id,
            title=title,
            description=description or "",
            priority=priority,
            position=positions.next_position(self.list_cards(column.id)),
        )
        self.db.add(card)
        self._touch(column.board)
        self.db.commit()
        self.db.refresh(card)
        return card

    def update_card(
        self,
        card: Card,
        title: str,
        description: Optional[str],
        priority: str,
    ) -> Card:
        card.title = title
        card.description = description or ""
        card.priority = priority
        self._touch(card.column.board)
        self.db.commit()
        self.db.refresh(card)
        return card

    def move_card(self, card: Card, to_column: ColumnModel, position: int) -> Card:
        from_column = card.column
        if to_column.board_id != from_column.board_id:
            raise ValidationFailed(
                "Cannot move a card to a column on another board",
                details={"columnId": "must belong to the same board"},
            )
        if to_column.id == from_column.id:
            positions.move_within(self.list_cards(from_column.id), card, position)
        else:
            source = self.list_cards(from_column.id)
            destination = self.list_cards(to_column.id)
            positions.move_across(source, destination, card, position)
            card.column = to_column
        self._touch(to_column.board)
        self.db.commit()
        logger.info(
            "moved card %s from column %s to column %s at position %d",
            card.id,
            from_column.id,
            to_column.id,
            card.position,
        )
        return card

    def delete_card(self, card: Card) -> None:
        column = card.column
        remaining = [c for c in self.list_cards(column.id) if c.id != card.id]
        self.db.delete(card)
        positions.compact(remaining)
        self._touch(column.board)
        self.db.commit()

    # === Sharing ===
    def list_collaborators(self, board_id: str) -> list[tuple[BoardAccess, User]]:
        stmt = (
            select(BoardAccess, User)
            .join(User, User.id == BoardAccess.user_id)
            .where(BoardAccess.board_id == board_id)
            .order_by(BoardAccess.granted_at.desc())
        )
        return [(grant, user) for grant, user in self.db.execute(stmt)]

    def find_grant(self, board_id: str, user_id: str) -> Optional[BoardAccess]:
        return self.db.scalars(
            select(BoardAccess).where(BoardAccess.board_id == board_id, BoardAccess.user_id == user_id)
        ).first()

    def share_board(self, board: Board, email: str) -> BoardAccess:
        target = self.find_user_by_email(email)
        if target is None:
            raise NotFound("User not found")
        if target.id == board.owner_id:
            raise ValidationFailed("Cannot share a board with its owner", details={"email": "is the board owner"})
        board_id, user_id = board.id, target.id
        if self.find_grant(board_id, user_id) is not None:
            raise Conflict("Board already shared with this user")
        grant = BoardAccess(board_id=board_id, user_id=user_id)
        self.db.add(grant)
        try:
            self.db.commit()
        except IntegrityError:
            # a concurrent request granted the same pair first
            self.db.rollback()
            raise Conflict("Board already shared with this user")
        logger.info("board %s shared with user %s", board_id, user_id)
        return grant

    def revoke_access(self, board: Board, user_id: str) -> None:
        grant = self.find_grant(board.id, user_id)
        if grant is None:
            return
        self.db.delete(grant)
        self.db.commit()
        logger.info("revoked access to board %s for user %s", board.id, user_id)
