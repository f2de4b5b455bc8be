from dataclasses import dataclass, field
from typing import Generic, TypeVar

from sqlalchemy import func
from sqlmodel import Session, SQLModel, select

from models.response import PaginationParams

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=SQLModel)
LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """Case-folded LIKE pattern matching the text literally anywhere"""
    escaped = text.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@dataclass
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    total: int = 0


class BaseRepository(Generic[ModelT]):
    """Thin wrapper around a session for a single table model"""

    model: type[ModelT]

    def __init__(self, session: Session):
        self.session = session

    def get(self, obj_id: int) -> ModelT | None:
        return self.session.get(self.model, obj_id)

    def save(self, obj: ModelT) -> ModelT:
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def delete(self, obj: ModelT) -> None:
        self.session.delete(obj)
        self.session.commit()

    def count(self, statement) -> int:
        count_stmt = select(func.count()).select_from(statement.order_by(None).subquery())
        return self.session.exec(count_stmt).one()

    def paginate(self, statement, params: PaginationParams) -> Page:
        total = self.count(statement)
        items = self.session.exec(statement.offset(params.skip).limit(params.limit)).unique().all()
        return Page(items=list(items), total=total)
