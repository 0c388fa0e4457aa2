from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .access import require_access, require_card, require_column, require_owner
from .auth import SessionUser, get_current_user
from .config import API_PREFIX, LOG_LEVEL, VERSION
from .db import Board, BoardAccess, Card, ColumnModel, User, get_db, init_db
from .errors import Internal, KanbanError, ValidationFailed
from .schemas import (
    BoardIn,
    BoardOut,
    BoardsList,
    BoardView,
    CardIn,
    CardOut,
    CardReorder,
    CollaboratorOut,
    ColumnIn,
    ColumnOut,
    ColumnReorder,
    ColumnView,
    Health,
    SharedBoardOut,
    ShareIn,
    Success,
    UserIn,
    UserOut,
    Version,
)
from .storage import Storage

logger = logging.getLogger(__name__)


def configure_logging(level: str = LOG_LEVEL) -> None:
    root = logging.getLogger("kanban")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(level)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    configure_logging()
    init_db()
    logger.info("kanban api %s ready", VERSION)
    yield


app = FastAPI(title="Kanban API", version=VERSION, lifespan=lifespan)
router = APIRouter(prefix=API_PREFIX)


# === Error mapping ===


@app.exception_handler(KanbanError)
async def kanban_error_handler(_request: Request, exc: KanbanError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    details = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        details[".".join(loc) or "body"] = err.get("msg", "invalid")
    error = ValidationFailed("Invalid request", details=details)
    return JSONResponse(status_code=error.status_code, content=error.to_body())


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("store failure on %s %s", request.method, request.url.path)
    error = Internal()
    return JSONResponse(status_code=error.status_code, content=error.to_body())


# === Helpers ===


def user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        name=user.name,
        email=user.email,
        emailVerified=user.email_verified,
        createdAt=user.created_at,
    )


def board_out(board: Board) -> BoardOut:
    return BoardOut(
        id=board.id,
        name=board.name,
        ownerId=board.owner_id,
        createdAt=board.created_at,
        updatedAt=board.updated_at,
    )


def shared_board_out(board: Board, owner: User) -> SharedBoardOut:
    return SharedBoardOut(
        **board_out(board).model_dump(),
        ownerName=owner.name,
        ownerEmail=owner.email,
    )


def column_out(column: ColumnModel) -> ColumnOut:
    return ColumnOut(
        id=column.id,
        boardId=column.board_id,
        name=column.name,
        position=column.position,
        createdAt=column.created_at,
    )


def card_out(card: Card) -> CardOut:
    return CardOut(
        id=card.id,
        columnId=card.column_id,
        title=card.title,
        description=card.description,
        priority=card.priority,
        position=card.position,
        createdAt=card.created_at,
    )


def collaborator_out(grant: BoardAccess, user: User) -> CollaboratorOut:
    return CollaboratorOut(id=user.id, email=user.email, name=user.name, grantedAt=grant.granted_at)


def get_storage(db: Session = Depends(get_db)) -> Storage:
    return Storage(db)


def accessible_board(
    board_id: str,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Board:
    return require_access(db, user.id, board_id)


def owned_board(
    board_id: str,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Board:
    return require_owner(db, user.id, board_id)


def accessible_column(
    column_id: str,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ColumnModel:
    return require_column(db, user.id, column_id)


def accessible_card(
    card_id: str,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Card:
    return require_card(db, user.id, card_id)


# === Health & metadata ===


@router.get("/health", response_model=Health)
def health() -> Health:
    return Health()


@router.get("/version", response_model=Version)
def version() -> Version:
    return Version(version=VERSION)


# === Users ===


@router.post("/users", response_model=UserOut, status_code=201)
def register_user(payload: UserIn, storage: Storage = Depends(get_storage)):
    return user_out(storage.create_user(payload.name, payload.email))


@router.get("/me", response_model=UserOut)
def me(user: SessionUser = Depends(get_current_user), db: Session = Depends(get_db)):
    return user_out(db.get(User, user.id))


# === Board endpoints ===


@router.get("/boards", response_model=BoardsList)
def list_boards(user: SessionUser = Depends(get_current_user), storage: Storage = Depends(get_storage)):
    owned = [board_out(b) for b in storage.list_owned_boards(user.id)]
    shared = [shared_board_out(b, owner) for b, owner in storage.list_shared_boards(user.id)]
    return BoardsList(owned=owned, shared=shared)


@router.post("/boards", response_model=BoardOut, status_code=201)
def create_board(
    payload: BoardIn,
    user: SessionUser = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return board_out(storage.create_board(user.id, payload.name))


@router.get("/boards/{board_id}", response_model=BoardView)
def get_board(
    board: Board = Depends(accessible_board),
    user: SessionUser = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    cards = storage.cards_by_column(board.id)
    columns = [
        ColumnView(
            **column_out(column).model_dump(),
            cards=[card_out(card) for card in cards.get(column.id, [])],
        )
        for column in storage.list_columns(board.id)
    ]
    return BoardView(board=board_out(board), isOwner=board.owner_id == user.id, columns=columns)


@router.patch("/boards/{board_id}", response_model=BoardOut)
def rename_board(
    payload: BoardIn,
    board: Board = Depends(owned_board),
    storage: Storage = Depends(get_storage),
):
    return board_out(storage.rename_board(board, payload.name))


@router.delete("/boards/{board_id}", response_model=Success)
def delete_board(board: Board = Depends(owned_board), storage: Storage = Depends(get_storage)):
    storage.delete_board(board)
    return Success()


# === Column endpoints ===


@router.post("/boards/{board_id}/columns", response_model=ColumnOut, status_code=201)
def create_column(
    payload: ColumnIn,
    board: Board = Depends(accessible_board),
    storage: Storage = Depends(get_storage),
):
    return column_out(storage.create_column(board, payload.name))


@router.patch("/columns/{column_id}", response_model=ColumnOut)
def rename_column(
    payload: ColumnIn,
    column: ColumnModel = Depends(accessible_column),
    storage: Storage = Depends(get_storage),
):
    return column_out(storage.rename_column(column, payload.name))


@router.delete("/columns/{column_id}", response_model=Success)
def delete_column(column: ColumnModel = Depends(accessible_column), storage: Storage = Depends(get_storage)):
    storage.delete_column(column)
    return Success()


@router.post("/columns/reorder", response_model=Success)
def reorder_column(
    payload: ColumnReorder,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    column = require_column(db, user.id, payload.columnId)
    storage.move_column(column, payload.position)
    return Success()


# === Card endpoints ===


@router.post("/columns/{column_id}/cards", response_model=CardOut, status_code=201)
def create_card(
    payload: CardIn,
    column: ColumnModel = Depends(accessible_column),
    storage: Storage = Depends(get_storage),
):
    card = storage.create_card(column, payload.title, payload.description, payload.priority.value)
    return card_out(card)


@router.patch("/cards/{card_id}", response_model=CardOut)
def update_card(
    payload: CardIn,
    card: Card = Depends(accessible_card),
    storage: Storage = Depends(get_storage),
):
    card = storage.update_card(card, payload.title, payload.description, payload.priority.value)
    return card_out(card)


@router.delete("/cards/{card_id}", response_model=Success)
def delete_card(card: Card = Depends(accessible_card), storage: Storage = Depends(get_storage)):
    storage.delete_card(card)
    return Success()


@router.post("/cards/reorder", response_model=Success)
def reorder_card(
    payload: CardReorder,
    user: SessionUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: Storage = Depends(get_storage),
):
    card = require_card(db, user.id, payload.cardId)
    to_column = card.column
    if payload.columnId is not None and payload.columnId != card.column_id:
        to_column = require_column(db, user.id, payload.columnId)
    storage.move_card(card, to_column, payload.position)
    return Success()


# === Sharing ===


@router.get("/boards/{board_id}/share", response_model=list[CollaboratorOut])
def list_collaborators(board: Board = Depends(owned_board), storage: Storage = Depends(get_storage)):
    return [collaborator_out(grant, user) for grant, user in storage.list_collaborators(board.id)]


@router.post("/boards/{board_id}/share", response_model=list[CollaboratorOut])
def share_board(
    payload: ShareIn,
    board: Board = Depends(owned_board),
    storage: Storage = Depends(get_storage),
):
    storage.share_board(board, payload.email)
    return [collaborator_out(grant, user) for grant, user in storage.list_collaborators(board.id)]


@router.delete("/boards/{board_id}/share/{user_id}", response_model=Success)
def revoke_share(user_id: str, board: Board = Depends(owned_board), storage: Storage = Depends(get_storage)):
    storage.revoke_access(board, user_id)
    return Success()


app.include_router(router)
