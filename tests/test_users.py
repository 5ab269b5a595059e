import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.db.database import Base
from src.models.contest import ContestPlatform
from src.models.user import (
    ContestCategory,
    ReminderPreferences,
    User,
    categories_for_platform,
)
from src.repositories.users import UserRepository


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, expire_on_commit=False)
    Base.metadata.drop_all(engine)


@pytest.fixture
def users(session_factory):
    return UserRepository(session_factory)


class TestReminderPreferences:
    def test_defaults_to_no_notifications(self):
        prefs = ReminderPreferences()
        assert prefs.enabled_categories() == frozenset()

    def test_from_nested_dict(self):
        prefs = ReminderPreferences.from_dict(
            {"leetcode": True, "codeforces": {"div1": False, "div3": True}}
        )

        assert prefs == ReminderPreferences(leetcode=True, codeforces_div3=True)
        assert prefs.enabled_categories() == {
            ContestCategory.leetcode,
            ContestCategory.codeforces_div3,
        }

    def test_from_empty_or_none(self):
        assert ReminderPreferences.from_dict(None) == ReminderPreferences()
        assert ReminderPreferences.from_dict({"codeforces": None}) == ReminderPreferences()

    def test_to_dict_shape(self):
        prefs = ReminderPreferences(codeforces_div4=True)
        assert prefs.to_dict() == {
            "leetcode": False,
            "codeforces": {"div1": False, "div3": False, "div4": True},
        }


def test_platform_categories():
    assert categories_for_platform(ContestPlatform.leetcode) == {ContestCategory.leetcode}
    assert categories_for_platform(ContestPlatform.codeforces) == {
        ContestCategory.codeforces_div1,
        ContestCategory.codeforces_div3,
        ContestCategory.codeforces_div4,
    }


def test_user_preferences_property_round_trip():
    user = User(google_id="g-1", name="Ada", email="ada@example.com")
    user.preferences = ReminderPreferences(leetcode=True)

    assert user.notify_leetcode is True
    assert user.notify_codeforces_div1 is False
    assert user.preferences == ReminderPreferences(leetcode=True)


class TestUserRepository:
    def test_get_or_create_defaults_to_no_notifications(self, users):
        user = users.get_or_create("g-1", "Ada", "ada@example.com")

        assert user.id is not None
        assert user.email == "ada@example.com"
        assert user.preferences == ReminderPreferences()

    def test_get_or_create_is_idempotent(self, users):
        first = users.get_or_create("g-1", "Ada", "ada@example.com")
        second = users.get_or_create("g-1", "Ada L.", "other@example.com")

        assert first.id == second.id
        assert second.email == "ada@example.com"

    def test_update_preferences(self, users):
        user = users.get_or_create("g-1", "Ada", "ada@example.com")

        updated = users.update_preferences(user.id, ReminderPreferences(codeforces_div3=True))

        assert updated.preferences == ReminderPreferences(codeforces_div3=True)
        assert users.get(user.id).notify_codeforces_div3 is True

    def test_update_preferences_unknown_user(self, users):
        assert users.update_preferences(999, ReminderPreferences(leetcode=True)) is None

    def test_find_subscribers_matches_any_flag(self, users):
        ada = users.get_or_create("g-1", "Ada", "ada@example.com")
        bob = users.get_or_create("g-2", "Bob", "bob@example.com")
        users.get_or_create("g-3", "Cy", "cy@example.com")
        users.update_preferences(ada.id, ReminderPreferences(codeforces_div1=True))
        users.update_preferences(bob.id, ReminderPreferences(leetcode=True, codeforces_div4=True))

        codeforces = users.find_subscribers(
            categories_for_platform(ContestPlatform.codeforces)
        )
        leetcode = users.find_subscribers(categories_for_platform(ContestPlatform.leetcode))

        assert [u.email for u in codeforces] == ["ada@example.com", "bob@example.com"]
        assert [u.email for u in leetcode] == ["bob@example.com"]

    def test_find_subscribers_no_categories(self, users):
        users.get_or_create("g-1", "Ada", "ada@example.com")
        assert users.find_subscribers([]) == []

    def test_list_all_in_creation_order(self, users):
        users.get_or_create("g-2", "Bob", "bob@example.com")
        users.get_or_create("g-1", "Ada", "ada@example.com")

        assert [u.email for u in users.list_all()] == ["bob@example.com", "ada@example.com"]

    def test_list_all_empty(self, users):
        assert users.list_all() == []
