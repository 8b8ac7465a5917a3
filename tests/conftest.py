# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")

from community_guard.core.security import create_access_token
from community_guard.db.session import Base
from community_guard.db.session import get_db as app_get_session
from community_guard.main import app as fastapi_app
from community_guard.models import (
    Comment,
    Community,
    CommunityMember,
    CommunityRole,
    Post,
    User,
)
from community_guard.services import (
    AuditLog,
    BanManager,
    CommentModeration,
    CommunitySettingsService,
    JoinRequestWorkflow,
    MembershipStore,
    PermissionResolver,
    PostModerationQueue,
)

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)
_COMMUNITY_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    # Services commit for real, so each test gets a plain session and the
    # tables are emptied afterwards.
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


# ---------- Services ----------


@pytest.fixture()
def audit() -> AuditLog:
    return AuditLog()


@pytest.fixture()
def membership(audit: AuditLog) -> MembershipStore:
    return MembershipStore(audit)


@pytest.fixture()
def settings_service(audit: AuditLog) -> CommunitySettingsService:
    return CommunitySettingsService(audit)


@pytest.fixture()
def permissions(membership: MembershipStore, audit: AuditLog) -> PermissionResolver:
    return PermissionResolver(membership, audit)


@pytest.fixture()
def bans(membership: MembershipStore, audit: AuditLog) -> BanManager:
    return BanManager(membership, audit)


@pytest.fixture()
def join_requests(
    membership: MembershipStore,
    bans: BanManager,
    audit: AuditLog,
    settings_service: CommunitySettingsService,
) -> JoinRequestWorkflow:
    return JoinRequestWorkflow(membership, bans, audit, settings_service)


@pytest.fixture()
def post_queue(audit: AuditLog, settings_service: CommunitySettingsService) -> PostModerationQueue:
    return PostModerationQueue(audit, settings_service)


@pytest.fixture()
def comment_moderation(audit: AuditLog) -> CommentModeration:
    return CommentModeration(audit)


# ---------- Rows ----------


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory persisting users with unique usernames."""

    def _make(username: str | None = None) -> User:
        user = User(username=username or f"user{next(_USER_COUNTER)}")
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture()
def make_member(db_session: Session) -> Callable[..., CommunityMember]:
    """Return a factory inserting a membership row directly."""

    def _make(community: Community, user: User, role: CommunityRole = CommunityRole.MEMBER):
        member = CommunityMember(community_id=community.id, user_id=user.id, role=role)
        db_session.add(member)
        db_session.commit()
        return member

    return _make


@pytest.fixture()
def community(db_session: Session) -> Iterator[Community]:
    """Create a default test community."""
    community = Community(
        slug=f"test-{next(_COMMUNITY_COUNTER)}",
        display_name="Test Community",
        description="Test community description",
    )
    db_session.add(community)
    db_session.commit()
    yield community


@pytest.fixture()
def other_community(db_session: Session) -> Iterator[Community]:
    community = Community(
        slug=f"other-{next(_COMMUNITY_COUNTER)}",
        display_name="Other Community",
    )
    db_session.add(community)
    db_session.commit()
    yield community


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create the primary acting user."""
    return make_user("alice")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create a second user."""
    return make_user("bob")


@pytest.fixture()
def admin(make_user, make_member, community) -> User:
    """A user holding the admin role in ``community``."""
    user = make_user("admin")
    make_member(community, user, CommunityRole.ADMIN)
    return user


@pytest.fixture()
def moderator(make_user, make_member, community) -> User:
    """A user holding the moderator role in ``community`` with no permission row."""
    user = make_user("mod")
    make_member(community, user, CommunityRole.MODERATOR)
    return user


@pytest.fixture()
def member(make_user, make_member, community) -> User:
    """A plain member of ``community``."""
    user = make_user("member")
    make_member(community, user, CommunityRole.MEMBER)
    return user


@pytest.fixture()
def test_post(db_session: Session, community: Community, member: User) -> Iterator[Post]:
    """Create a baseline post in ``community``."""
    post = Post(community_id=community.id, author_id=member.id, title="Hello", body="First post")
    db_session.add(post)
    db_session.commit()
    yield post


@pytest.fixture()
def make_comment(db_session: Session, member: User) -> Callable[..., Comment]:
    """Return a factory persisting comments on a post."""

    def _make(post: Post, parent: Comment | None = None, body: str = "reply") -> Comment:
        comment = Comment(
            post_id=post.id,
            parent_id=parent.id if parent is not None else None,
            author_id=member.id,
            body=body,
        )
        db_session.add(comment)
        db_session.commit()
        return comment

    return _make


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a helper building bearer headers for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
