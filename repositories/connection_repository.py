from sqlalchemy import and_, or_, func
from sqlmodel import select

from models import Connection, ConnectionStatus, PaginationParams
from .base import BaseRepository, Page


def normalize_pair(user_a: int, user_b: int) -> tuple[int, int]:
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


class ConnectionRepository(BaseRepository[Connection]):
    model = Connection

    def find_between(self, user_a: int, user_b: int) -> Connection | None:
        """Any connection row between the two users, whichever way it was sent"""
        low, high = normalize_pair(user_a, user_b)
        return self.session.exec(
            select(Connection).where(
                Connection.user_low_id == low,
                Connection.user_high_id == high,
            )
        ).first()

    def find_directed(self, sender_id: int, receiver_id: int) -> Connection | None:
        return self.session.exec(
            select(Connection).where(
                Connection.sender_id == sender_id,
                Connection.receiver_id == receiver_id,
            )
        ).first()

    def connected_user_ids(self, user_id: int) -> list[int]:
        """Other party of every ACCEPTED connection, regardless of who sent it"""
        rows = self.session.exec(
            select(Connection.sender_id, Connection.receiver_id).where(
                Connection.status == ConnectionStatus.ACCEPTED,
                or_(Connection.sender_id == user_id, Connection.receiver_id == user_id),
            )
        ).all()
        return [receiver if sender == user_id else sender for sender, receiver in rows]

    def are_connected(self, user_a: int, user_b: int) -> bool:
        connection = self.find_between(user_a, user_b)
        return connection is not None and connection.status == ConnectionStatus.ACCEPTED

    def list_for_user(
        self,
        user_id: int,
        params: PaginationParams,
        status: ConnectionStatus | None = ConnectionStatus.ACCEPTED,
    ) -> Page[Connection]:
        statement = select(Connection).where(
            or_(Connection.sender_id == user_id, Connection.receiver_id == user_id)
        )
        if status is not None:
            statement = statement.where(Connection.status == status)
        statement = statement.order_by(Connection.updated_at.desc(), Connection.id.desc())
        return self.paginate(statement, params)

    def list_pending_received(self, user_id: int, params: PaginationParams) -> Page[Connection]:
        statement = (
            select(Connection)
            .where(
                Connection.receiver_id == user_id,
                Connection.status == ConnectionStatus.PENDING,
            )
            .order_by(Connection.created_at.desc(), Connection.id.desc())
        )
        return self.paginate(statement, params)

    def list_pending_sent(self, user_id: int, params: PaginationParams) -> Page[Connection]:
        statement = (
            select(Connection)
            .where(
                Connection.sender_id == user_id,
                Connection.status == ConnectionStatus.PENDING,
            )
            .order_by(Connection.created_at.desc(), Connection.id.desc())
        )
        return self.paginate(statement, params)

    def stats(self, user_id: int) -> dict[str, int]:
        accepted = self.session.exec(
            select(func.count(Connection.id)).where(
                Connection.status == ConnectionStatus.ACCEPTED,
                or_(Connection.sender_id == user_id, Connection.receiver_id == user_id),
            )
        ).one()
        pending_received = self.session.exec(
            select(func.count(Connection.id)).where(
                and_(Connection.receiver_id == user_id, Connection.status == ConnectionStatus.PENDING)
            )
        ).one()
        pending_sent = self.session.exec(
            select(func.count(Connection.id)).where(
                and_(Connection.sender_id == user_id, Connection.status == ConnectionStatus.PENDING)
            )
        ).one()
        return {
            "total_connections": accepted,
            "pending_requests": pending_received,
            "sent_requests": pending_sent,
        }
