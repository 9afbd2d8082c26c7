from dataclasses import replace
from datetime import date, datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.common.errors import Conflict
from app.common.pagination import PageRequest
from app.identity.domain.models import UserAccount, UserFilters, UserRole
from app.identity.infrastructure.sqlalchemy_repository import SqlAlchemyUserRepository
from app.rdq.domain.models import Rdq, RdqFilters, RdqPriority, RdqStatus, RdqType
from app.rdq.infrastructure.sqlalchemy_repository import SqlAlchemyRdqRepository
from database import Base

from fakes import run


def at(day, hour=9, minute=0):
    return datetime(2026, 1, day, hour, minute, tzinfo=timezone.utc)


def account(email, role=UserRole.USER, manager_id=None):
    return UserAccount(
        id=None,
        email=email,
        first_name=email.split("@")[0].capitalize(),
        last_name="Test",
        role=role,
        password_hash="hashed:Secret1!",
        manager_id=manager_id,
        created_at=at(1),
        updated_at=at(1),
    )


def draft(owner, created_at, **overrides):
    values = dict(
        id=None,
        title="New laptop",
        description="My current laptop is five years old and slow.",
        type=RdqType.MATERIEL,
        priority=RdqPriority.MEDIUM,
        status=RdqStatus.DRAFT,
        owner=owner,
        created_at=created_at,
        updated_at=created_at,
    )
    values.update(overrides)
    return Rdq(**values)


@pytest.fixture
def sessions(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'rdq.db'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    run(create_tables())
    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)
    run(engine.dispose())


class Directory:
    """Two teams: bob manages alice, dave manages carol."""

    def __init__(self, sessions) -> None:
        self.sessions = sessions
        run(self._seed())

    async def _seed(self):
        async with self.sessions() as session:
            users = SqlAlchemyUserRepository(session)
            self.admin = await users.add_user(account("admin@example.com", UserRole.ADMIN))
            self.bob = await users.add_user(account("bob@example.com", UserRole.MANAGER))
            self.dave = await users.add_user(account("dave@example.com", UserRole.MANAGER))
            self.alice = await users.add_user(account("alice@example.com", manager_id=self.bob.id))
            self.carol = await users.add_user(account("carol@example.com", manager_id=self.dave.id))
            await users.commit()

    def add_requests(self, *entries):
        """Each entry is (owner account, created_at, field overrides)."""

        async def add():
            async with self.sessions() as session:
                repo = SqlAlchemyRdqRepository(session)
                created = []
                for owner, created_at, overrides in entries:
                    summary = await repo.get_user(owner.id)
                    created.append(await repo.add_request(draft(summary, created_at, **overrides)))
                await repo.commit()
                return created

        return run(add())

    def search(self, page=PageRequest(), **criteria):
        async def search():
            async with self.sessions() as session:
                return await SqlAlchemyRdqRepository(session).search_requests(
                    RdqFilters(**criteria), page
                )

        return run(search())


@pytest.fixture
def directory(sessions):
    return Directory(sessions)


def test_add_and_get_request_round_trips_owner(directory):
    (created,) = directory.add_requests((directory.alice, at(10), {"justification": "Builds"}))

    async def load():
        async with directory.sessions() as session:
            return await SqlAlchemyRdqRepository(session).get_request(created.id)

    loaded = run(load())

    assert loaded.title == "New laptop"
    assert loaded.justification == "Builds"
    assert loaded.owner.email == "alice@example.com"
    assert loaded.owner.manager_id == directory.bob.id
    assert loaded.version == 0


def test_stale_update_raises_conflict(directory):
    (created,) = directory.add_requests((directory.alice, at(10), {}))

    async def scenario():
        async with directory.sessions() as session:
            repo = SqlAlchemyRdqRepository(session)
            request = await repo.get_request(created.id)
            submitted = replace(request, status=RdqStatus.SUBMITTED, version=1)
            await repo.update_request(submitted, expected_version=0)
            await repo.commit()

        async with directory.sessions() as session:
            repo = SqlAlchemyRdqRepository(session)
            with pytest.raises(Conflict):
                await repo.update_request(replace(request, version=1), expected_version=0)
            with pytest.raises(Conflict):
                await repo.delete_request(created.id, expected_version=0)
            return await repo.get_request(created.id)

    stored = run(scenario())

    assert stored.status == RdqStatus.SUBMITTED
    assert stored.version == 1


def test_delete_with_current_version(directory):
    (created,) = directory.add_requests((directory.alice, at(10), {}))

    async def scenario():
        async with directory.sessions() as session:
            repo = SqlAlchemyRdqRepository(session)
            await repo.delete_request(created.id, expected_version=0)
            await repo.commit()
            return await repo.get_request(created.id)

    assert run(scenario()) is None


def test_search_filters_are_conjunctive(directory):
    directory.add_requests(
        (directory.alice, at(10), {"status": RdqStatus.SUBMITTED}),
        (directory.alice, at(11), {"status": RdqStatus.SUBMITTED, "type": RdqType.FORMATION}),
        (directory.alice, at(12), {}),
        (directory.carol, at(13), {"status": RdqStatus.SUBMITTED, "priority": RdqPriority.HIGH}),
    )

    page = directory.search(status=RdqStatus.SUBMITTED, type=RdqType.MATERIEL)
    own = directory.search(owner_id=directory.alice.id, status=RdqStatus.SUBMITTED)
    urgent = directory.search(status=RdqStatus.SUBMITTED, priority=RdqPriority.HIGH)

    assert page.total_elements == 2
    assert [r.owner.id for r in page.content] == [directory.carol.id, directory.alice.id]
    assert [r.type for r in own.content] == [RdqType.FORMATION, RdqType.MATERIEL]
    assert [r.owner.id for r in urgent.content] == [directory.carol.id]


def test_search_date_to_covers_the_whole_day(directory):
    directory.add_requests(
        (directory.alice, at(10, 8), {"title": "Early request"}),
        (directory.alice, at(15, 23, 30), {"title": "Late evening"}),
        (directory.alice, at(16, 0, 0), {"title": "Next midnight"}),
    )

    window = directory.search(date_from=date(2026, 1, 11), date_to=date(2026, 1, 15))
    from_day = directory.search(date_from=date(2026, 1, 15))
    until_day = directory.search(date_to=date(2026, 1, 10))

    assert [r.title for r in window.content] == ["Late evening"]
    assert [r.title for r in from_day.content] == ["Next midnight", "Late evening"]
    assert [r.title for r in until_day.content] == ["Early request"]


def test_search_by_manager_covers_direct_reports_only(directory):
    directory.add_requests(
        (directory.alice, at(10), {}),
        (directory.carol, at(11), {}),
        (directory.bob, at(12), {}),
    )

    team = directory.search(manager_id=directory.bob.id)
    other_team = directory.search(manager_id=directory.dave.id)

    assert [r.owner.id for r in team.content] == [directory.alice.id]
    assert [r.owner.id for r in other_team.content] == [directory.carol.id]


def test_search_text_is_case_insensitive(directory):
    directory.add_requests(
        (directory.alice, at(10), {"title": "Spring Boot training"}),
        (directory.alice, at(11), {"description": "Needs a SPRING framework licence for work."}),
        (directory.alice, at(12), {"title": "Second monitor"}),
    )

    found = directory.search(text="spring")

    assert found.total_elements == 2
    assert [r.id for r in found.content] == [2, 1]


def test_search_is_paginated_newest_first(directory):
    directory.add_requests(*[(directory.alice, at(day), {}) for day in (10, 12, 11)])

    first = directory.search(page=PageRequest(page=0, size=2))
    second = directory.search(page=PageRequest(page=1, size=2))

    assert first.total_elements == 3
    assert first.total_pages == 2
    assert [r.id for r in first.content] == [2, 3]
    assert [r.id for r in second.content] == [1]
    assert second.last is True


def test_user_lookup_by_email_is_exact(directory):
    async def lookup(email):
        async with directory.sessions() as session:
            return await SqlAlchemyUserRepository(session).get_user_by_email(email)

    assert run(lookup("alice@example.com")).id == directory.alice.id
    assert run(lookup("ALICE@example.com")) is None


def test_user_directory_queries(directory):
    async def scenario():
        async with directory.sessions() as session:
            users = SqlAlchemyUserRepository(session)
            return (
                await users.list_team(directory.bob.id),
                await users.count_by_role(UserRole.MANAGER),
                await users.get_manager_index(),
                await users.list_users(UserFilters(text="CAR")),
            )

    team, managers, index, found = run(scenario())

    assert [user.email for user in team] == ["alice@example.com"]
    assert managers == 2
    assert index[directory.alice.id] == directory.bob.id
    assert index[directory.admin.id] is None
    assert [user.email for user in found] == ["carol@example.com"]


def test_update_user_persists_changes(directory):
    async def scenario():
        async with directory.sessions() as session:
            users = SqlAlchemyUserRepository(session)
            moved = replace(directory.alice, manager_id=directory.dave.id, active=False)
            await users.update_user(replace(moved, updated_at=at(20)))
            await users.commit()

        async with directory.sessions() as session:
            return await SqlAlchemyUserRepository(session).get_user(directory.alice.id)

    stored = run(scenario())

    assert stored.manager_id == directory.dave.id
    assert stored.active is False
