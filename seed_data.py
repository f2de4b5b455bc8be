import random
from sqlmodel import Session, SQLModel

from dependencies import engine
from models import (
    CommentCreate, ConversationCreate, ConversationType, PostCreate, PostType, PostVisibility,
    ProjectCreate, ReactionType, TeamCreate, TeamType, UserCreate,
)
from services.chat_service import ChatService
from services.connection_service import ConnectionService
from services.post_service import PostService
from services.project_service import ProjectService
from services.team_service import TeamService
from services.user_service import UserService

# Data pools
FIRST_NAMES = [
    "Juan", "María", "Alberto", "Lucía", "Pedro", "Ana", "Carlos", "Sofia",
    "John", "Emma", "Michael", "Sarah", "David", "Isabella", "James", "Laura"
]

LAST_NAMES = [
    "Domínguez", "García", "Rodríguez", "López", "Martínez", "González",
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Miller", "Davis"
]

SKILLS = ["python", "fastapi", "react", "vue", "docker", "postgres", "design", "ml", "devops"]

POSITIONS = ["Backend Developer", "Frontend Developer", "Data Scientist", "Product Designer", "DevOps Engineer"]

POST_CONTENTS = [
    "Just shipped the first version of our API #fastapi #python",
    "Looking for a designer to join our side project #design #hiring",
    "Anyone else loving the new TypeScript features? #coding",
    "Our team hit its first milestone today #teamwork",
    "Does anyone have good resources for learning Docker? #docker",
    "Pair programming session tonight, who's in? #coding",
    "Wrote up what we learned migrating to Postgres #postgres",
]

COMMENTS = [
    "Congrats, great work!",
    "Count me in",
    "Would love to read more about this",
    "Nice, which stack did you use?",
]

MESSAGES = [
    "Hey, saw your post about the project, still looking for help?",
    "Yes! Are you free for a quick call tomorrow?",
    "Sure, after 3 works for me",
]


def create_test_data():
    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        user_service = UserService(session)
        connection_service = ConnectionService(session)
        team_service = TeamService(session)
        project_service = ProjectService(session)
        post_service = PostService(session)
        chat_service = ChatService(session)

        users = []
        for i in range(10):
            first_name = random.choice(FIRST_NAMES)
            last_name = random.choice(LAST_NAMES)
            user = user_service.register(UserCreate(
                username=f"user{i}_{random.randint(1, 999)}",
                email=f"user{i}@example.com",
                first_name=first_name,
                last_name=last_name,
                password="password123",
            ))
            user.skills = random.sample(SKILLS, 3)
            user.position = random.choice(POSITIONS)
            session.add(user)
            users.append(user)
        session.commit()

        # Every user asks two others to connect; most requests get accepted
        for user in users:
            for other in random.sample([u for u in users if u.id != user.id], 2):
                if connection_service.status_with(user.id, other.id).status is not None:
                    continue
                connection = connection_service.send_request(user, other.id, "Let's connect!")
                if random.random() < 0.7:
                    connection_service.respond(connection.id, other, "accept")

        teams = []
        for owner in users[:3]:
            teams.append(team_service.create(owner, TeamCreate(
                name=f"{owner.first_name}'s crew",
                description="A team building open source tools",
                type=random.choice(list(TeamType)),
                max_members=5,
                skills=random.sample(SKILLS, 2),
            )))
        for user in users[3:]:
            team = random.choice(teams)
            if team_service.has_capacity(team):
                team_service.join(team.id, user)

        projects = []
        for owner in users[:4]:
            projects.append(project_service.create(owner, ProjectCreate(
                title=f"Project by {owner.first_name}",
                description="Collaborative side project",
            )))

        posts = []
        for _ in range(30):
            author = random.choice(users)
            posts.append(post_service.create(author, PostCreate(
                content=random.choice(POST_CONTENTS),
                type=random.choice([PostType.GENERAL, PostType.ACHIEVEMENT, PostType.QUESTION]),
                visibility=random.choice([PostVisibility.PUBLIC, PostVisibility.CONNECTIONS]),
            )))

        for user in users:
            for post in random.sample(posts, 5):
                if post_service.can_view(post, user.id):
                    post_service.react(post.id, user, random.choice(list(ReactionType)))
            post = random.choice(posts)
            if post_service.can_view(post, user.id):
                post_service.add_comment(post.id, user, CommentCreate(content=random.choice(COMMENTS)))

        conversations = 0
        for user in users:
            connected = connection_service.connected_user_ids(user.id)
            if not connected:
                continue
            conversation = chat_service.create(user, ConversationCreate(
                type=ConversationType.DIRECT,
                participant_ids=[connected[0]],
            ))
            other = user_service.get(connected[0])
            for i, content in enumerate(MESSAGES):
                chat_service.send(conversation.id, user if i % 2 == 0 else other, content)
            conversations += 1

        print("Test data created successfully!")
        print(f"Created {len(users)} users")
        print(f"Created {len(teams)} teams")
        print(f"Created {len(projects)} projects")
        print(f"Created {len(posts)} posts")
        print(f"Created {conversations} conversations")


if __name__ == "__main__":
    create_test_data()
