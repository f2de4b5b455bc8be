from .user import User, UserCreate, UserUpdate, UserPublic, UserPrivate, UserSummary
from .auth import Token, TokenData, LoginRequest, Availability
from .connection import (
    Connection, ConnectionStatus, ConnectionPublic, ConnectionRequest,
    ConnectionResponse, ConnectionStatusInfo, ConnectionStats,
)
from .team import (
    Team, TeamMember, TeamFollow, TeamJoinRequest, TeamInvitation,
    TeamVisibility, TeamType, TeamMemberStatus, RequestStatus, InvitationStatus,
    TeamCreate, TeamUpdate, TeamPublic, TeamMemberPublic, TeamMemberRoleUpdate,
    JoinRequestCreate, JoinRequestPublic, JoinRequestDecision,
    InvitationCreate, InvitationPublic, InvitationDecision,
)
from .project import (
    Project, ProjectMember, ProjectStatus, ProjectRole,
    ProjectCreate, ProjectUpdate, ProjectPublic, ProjectMemberPublic,
    ProjectInvite, ProjectRoleUpdate,
)
from .post import (
    Post, PostHashtag, Reaction, Comment, Share, Bookmark,
    PostType, PostVisibility, ReactionType, TeamSummary,
    PostCreate, PostUpdate, PostPublic, ReactionCreate, ReactionPublic,
    ShareCreate, SharePublic, BookmarkPublic,
    CommentCreate, CommentUpdate, CommentPublic, PostAnalytics,
)
from .notification import (
    Notification, NotificationType, NotificationCategory, NotificationPublic, UnreadCount,
)
from .chat import (
    Conversation, ConversationParticipant, Message, ConversationType, MessageStatus,
    ConversationCreate, ConversationPublic, MessageCreate, MessagePublic,
)
from .response import ApiResponse, BasicResponse, PaginationMeta, PaginationParams

__all__ = [
    "User", "UserCreate", "UserUpdate", "UserPublic", "UserPrivate", "UserSummary",
    "Token", "TokenData", "LoginRequest", "Availability",
    "Connection", "ConnectionStatus", "ConnectionPublic", "ConnectionRequest",
    "ConnectionResponse", "ConnectionStatusInfo", "ConnectionStats",
    "Team", "TeamMember", "TeamFollow", "TeamJoinRequest", "TeamInvitation",
    "TeamVisibility", "TeamType", "TeamMemberStatus", "RequestStatus", "InvitationStatus",
    "TeamCreate", "TeamUpdate", "TeamPublic", "TeamMemberPublic", "TeamMemberRoleUpdate",
    "JoinRequestCreate", "JoinRequestPublic", "JoinRequestDecision",
    "InvitationCreate", "InvitationPublic", "InvitationDecision",
    "Project", "ProjectMember", "ProjectStatus", "ProjectRole",
    "ProjectCreate", "ProjectUpdate", "ProjectPublic", "ProjectMemberPublic",
    "ProjectInvite", "ProjectRoleUpdate",
    "Post", "PostHashtag", "Reaction", "Comment", "Share", "Bookmark",
    "PostType", "PostVisibility", "ReactionType", "TeamSummary",
    "PostCreate", "PostUpdate", "PostPublic", "ReactionCreate", "ReactionPublic",
    "ShareCreate", "SharePublic", "BookmarkPublic",
    "CommentCreate", "CommentUpdate", "CommentPublic", "PostAnalytics",
    "Notification", "NotificationType", "NotificationCategory", "NotificationPublic", "UnreadCount",
    "Conversation", "ConversationParticipant", "Message", "ConversationType", "MessageStatus",
    "ConversationCreate", "ConversationPublic", "MessageCreate", "MessagePublic",
    "ApiResponse", "BasicResponse", "PaginationMeta", "PaginationParams",
]
