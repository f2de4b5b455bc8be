from datetime import datetime, timezone
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from models import (
    Connection, ConnectionStatus, ConnectionStatusInfo, ConnectionStats,
    NotificationType, PaginationParams, User,
)
from repositories import ConnectionRepository, UserRepository, Page, normalize_pair
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)

# action -> resulting status for a PENDING request
TRANSITIONS = {
    "accept": ConnectionStatus.ACCEPTED,
    "decline": ConnectionStatus.DECLINED,
    "block": ConnectionStatus.BLOCKED,
}


class ConnectionService:
    def __init__(self, session: Session):
        self.session = session
        self.connections = ConnectionRepository(session)
        self.users = UserRepository(session)
        self.notifications = NotificationService(session)

    def send_request(self, sender: User, receiver_id: int, message: str | None = None) -> Connection:
        if sender.id == receiver_id:
            raise ValidationError("Cannot send connection request to yourself")
        receiver = self.users.get(receiver_id)
        if not receiver or receiver.disabled:
            raise NotFoundError("User not found")

        if self.connections.find_directed(sender.id, receiver_id):
            raise ConflictError("Connection request already exists")
        if self.connections.find_directed(receiver_id, sender.id):
            raise ConflictError("Connection already exists or pending")

        low, high = normalize_pair(sender.id, receiver_id)
        connection = Connection(
            sender_id=sender.id,
            receiver_id=receiver_id,
            user_low_id=low,
            user_high_id=high,
            message=message,
        )
        try:
            connection = self.connections.save(connection)
        except IntegrityError:
            # Concurrent request for the same pair won the insert
            self.session.rollback()
            raise ConflictError("Connection already exists or pending")

        self.notifications.notify(
            receiver_id,
            NotificationType.CONNECTION_REQUEST,
            "New connection request",
            f"{sender.first_name} {sender.last_name} wants to connect with you",
            data={"connection_id": connection.id, "sender_id": sender.id},
        )
        logger.info(f"User {sender.id} sent a connection request to {receiver_id}")
        return connection

    def get(self, connection_id: int) -> Connection:
        connection = self.connections.get(connection_id)
        if not connection:
            raise NotFoundError("Connection not found")
        return connection

    def respond(self, connection_id: int, user: User, action: str) -> Connection:
        connection = self.get(connection_id)
        if connection.receiver_id != user.id:
            raise ForbiddenError("You can only respond to requests sent to you")
        if connection.status != ConnectionStatus.PENDING:
            raise ValidationError("Connection request is no longer pending")
        if action not in TRANSITIONS:
            raise ValidationError("Invalid action")

        connection.status = TRANSITIONS[action]
        connection.updated_at = datetime.now(timezone.utc)
        connection = self.connections.save(connection)

        if connection.status == ConnectionStatus.ACCEPTED:
            self.notifications.notify(
                connection.sender_id,
                NotificationType.CONNECTION_ACCEPTED,
                "Connection accepted",
                f"{user.first_name} {user.last_name} accepted your connection request",
                data={"connection_id": connection.id, "user_id": user.id},
            )
        logger.info(f"User {user.id} set connection {connection.id} to {connection.status.value}")
        return connection

    def remove(self, connection_id: int, user: User) -> None:
        connection = self.get(connection_id)
        if user.id not in (connection.sender_id, connection.receiver_id):
            raise ForbiddenError("You can only remove your own connections")
        self.connections.delete(connection)

    def list_connections(
        self,
        user_id: int,
        params: PaginationParams,
        status: ConnectionStatus | None = ConnectionStatus.ACCEPTED,
    ) -> Page[Connection]:
        return self.connections.list_for_user(user_id, params, status)

    def pending_received(self, user_id: int, params: PaginationParams) -> Page[Connection]:
        return self.connections.list_pending_received(user_id, params)

    def pending_sent(self, user_id: int, params: PaginationParams) -> Page[Connection]:
        return self.connections.list_pending_sent(user_id, params)

    def status_with(self, user_id: int, other_id: int) -> ConnectionStatusInfo:
        connection = self.connections.find_between(user_id, other_id)
        if connection is None:
            return ConnectionStatusInfo(
                status=None,
                connection_id=None,
                can_send_request=user_id != other_id,
                is_pending=False,
                is_connected=False,
            )
        return ConnectionStatusInfo(
            status=connection.status,
            connection_id=connection.id,
            can_send_request=False,
            is_pending=connection.status == ConnectionStatus.PENDING,
            is_connected=connection.status == ConnectionStatus.ACCEPTED,
        )

    def stats(self, user_id: int) -> ConnectionStats:
        return ConnectionStats(**self.connections.stats(user_id))

    def connected_user_ids(self, user_id: int) -> list[int]:
        return self.connections.connected_user_ids(user_id)
