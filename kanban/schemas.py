from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InputModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


class ErrorEnvelope(BaseModel):
    error: str
    details: Optional[dict[str, Any]] = None


class Health(BaseModel):
    status: str = "ok"


class Version(BaseModel):
    version: str


class Success(BaseModel):
    success: bool = True


# === Users ===


class UserIn(InputModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    emailVerified: bool
    createdAt: datetime


# === Boards ===


class BoardIn(InputModel):
    name: str = Field(min_length=1, max_length=255)


class BoardOut(BaseModel):
    id: str
    name: str
    ownerId: str
    createdAt: datetime
    updatedAt: datetime


class SharedBoardOut(BoardOut):
    ownerName: str
    ownerEmail: str


class BoardsList(BaseModel):
    owned: list[BoardOut]
    shared: list[SharedBoardOut]


# === Columns ===


class ColumnIn(InputModel):
    name: str = Field(min_length=1, max_length=255)


class ColumnOut(BaseModel):
    id: str
    boardId: str
    name: str
    position: int
    createdAt: datetime


class ColumnReorder(InputModel):
    columnId: str = Field(min_length=1)
    position: int = Field(ge=0)


# === Cards ===


class CardIn(InputModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=8000)
    priority: Priority = Priority.MEDIUM


class CardOut(BaseModel):
    id: str
    columnId: str
    title: str
    description: str
    priority: Priority
    position: int
    createdAt: datetime


class CardReorder(InputModel):
    cardId: str = Field(min_length=1)
    columnId: Optional[str] = None
    position: int = Field(ge=0)


class ColumnView(ColumnOut):
    cards: list[CardOut]


class BoardView(BaseModel):
    board: BoardOut
    isOwner: bool
    columns: list[ColumnView]


# === Sharing ===


class ShareIn(InputModel):
    email: EmailStr


class CollaboratorOut(BaseModel):
    id: str
    email: str
    name: str
    grantedAt: datetime
