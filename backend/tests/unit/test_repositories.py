"""
Tests for the table repositories.

Uses an in-memory SQLite database (see ``db_session`` in conftest).
"""

import pytest

from travel_planner.core.exceptions import ConflictError, NotFoundError
from travel_planner.repositories.travel_plans import BudgetItemRepository, TravelPlanRepository
from travel_planner.repositories.users import UserRepository


async def make_user(session, email="ana@example.com", role="user"):
    return await UserRepository(session).create_user(
        email=email,
        hashed_password="hashed",
        name="Ana",
        role=role,
    )


async def make_plan(session, user_id, title="Trip", budget=1000.0):
    return await TravelPlanRepository(session).create(user_id, {
        "title": title,
        "destination": "Chengdu",
        "start_date": "2030-01-01",
        "end_date": "2030-01-03",
        "days": 3,
        "budget": budget,
        "travelers": 1,
    })


class TestUserRepository:

    async def test_create_user_sets_defaults(self, db_session):
        user = await make_user(db_session)

        assert user["id"]
        assert user["role"] == "user"
        assert user["preferences"] == {
            "travelStyles": [],
            "budgetRange": {"min": 0, "max": 10000},
            "interests": [],
        }
        assert "password" not in user

    async def test_get_by_email_includes_password_hash(self, db_session):
        await make_user(db_session)

        row = await UserRepository(db_session).get_by_email("ana@example.com")

        assert row["password"] == "hashed"
        assert set(row) == {"id", "email", "name", "avatar", "password"}

    async def test_get_by_email_unknown(self, db_session):
        assert await UserRepository(db_session).get_by_email("nobody@example.com") is None

    async def test_duplicate_email_conflicts(self, db_session):
        await make_user(db_session)
        with pytest.raises(ConflictError) as exc_info:
            await make_user(db_session)
        assert exc_info.value.message == "Data already exists"

    async def test_email_exists(self, db_session):
        users = UserRepository(db_session)
        assert await users.email_exists("ana@example.com") is False
        await make_user(db_session)
        assert await users.email_exists("ana@example.com") is True

    async def test_update_profile_returns_profile_columns(self, db_session):
        user = await make_user(db_session)

        profile = await UserRepository(db_session).update_profile(user["id"], {"name": "Ana Maria"})

        assert profile["name"] == "Ana Maria"
        assert set(profile) == {"id", "email", "name", "avatar", "preferences", "created_at"}

    async def test_list_users_never_returns_passwords(self, db_session):
        await make_user(db_session, "a@example.com")
        await make_user(db_session, "b@example.com", role="admin")

        users = await UserRepository(db_session).list_users()

        assert len(users) == 2
        assert all("password" not in user for user in users)
        assert {user["role"] for user in users} == {"user", "admin"}


class TestTableRepository:

    async def test_select_one_missing_raises_not_found(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await TravelPlanRepository(db_session).select_one({"id": "missing"})
        assert exc_info.value.message == "Travel plan does not exist"

    async def test_select_with_projection(self, db_session):
        user = await make_user(db_session)
        await make_plan(db_session, user["id"])

        rows = await TravelPlanRepository(db_session).select({"user_id": user["id"]}, columns=["title", "budget"])

        assert rows == [{"title": "Trip", "budget": 1000.0}]

    async def test_unknown_column_rejected(self, db_session):
        with pytest.raises(ValueError):
            await TravelPlanRepository(db_session).select({"no_such_column": 1})

    async def test_delete_without_filters_refused(self, db_session):
        with pytest.raises(ValueError):
            await TravelPlanRepository(db_session).delete({})

    async def test_update_missing_row(self, db_session):
        with pytest.raises(NotFoundError):
            await TravelPlanRepository(db_session).update({"id": "missing"}, {"title": "x"})


class TestTravelPlanRepository:

    async def test_plans_are_scoped_to_owner(self, db_session):
        owner = await make_user(db_session, "owner@example.com")
        other = await make_user(db_session, "other@example.com")
        plan = await make_plan(db_session, owner["id"])
        plans = TravelPlanRepository(db_session)

        assert (await plans.get_owned(plan["id"], owner["id"]))["id"] == plan["id"]
        with pytest.raises(NotFoundError):
            await plans.get_owned(plan["id"], other["id"])
        with pytest.raises(NotFoundError):
            await plans.delete_owned(plan["id"], other["id"])
        assert await plans.list_for_user(other["id"]) == []

    async def test_new_plan_defaults(self, db_session):
        user = await make_user(db_session)
        plan = await make_plan(db_session, user["id"])

        assert plan["status"] == "draft"
        assert plan["itinerary"] == []
        assert plan["budget_breakdown"] == {}
        assert plan["ai_generated"] is False
        assert plan["created_at"]

    async def test_update_owned(self, db_session):
        user = await make_user(db_session)
        plan = await make_plan(db_session, user["id"])

        updated = await TravelPlanRepository(db_session).update_owned(plan["id"], user["id"], {"status": "active"})

        assert updated["status"] == "active"


class TestBudgetItemRepository:

    async def test_items_follow_plan_ownership(self, db_session):
        owner = await make_user(db_session, "owner@example.com")
        other = await make_user(db_session, "other@example.com")
        plan = await make_plan(db_session, owner["id"])
        items = BudgetItemRepository(db_session)

        item = await items.create(plan["id"], {
            "category": "food",
            "description": "Hotpot",
            "amount": 120.0,
            "date": "2030-01-01",
        })

        assert (await items.get_owned(item["id"], owner["id"]))["description"] == "Hotpot"
        with pytest.raises(NotFoundError) as exc_info:
            await items.get_owned(item["id"], other["id"])
        assert exc_info.value.message == "Budget item does not exist"
        with pytest.raises(NotFoundError):
            await items.update_owned(item["id"], other["id"], {"amount": 1.0})

    async def test_list_for_plan_newest_date_first(self, db_session):
        user = await make_user(db_session)
        plan = await make_plan(db_session, user["id"])
        items = BudgetItemRepository(db_session)
        for day in ("2030-01-01", "2030-01-03", "2030-01-02"):
            await items.create(plan["id"], {
                "category": "food",
                "description": f"Meal {day}",
                "amount": 10.0,
                "date": day,
            })

        rows = await items.list_for_plan(plan["id"])

        assert [row["date"] for row in rows] == ["2030-01-03", "2030-01-02", "2030-01-01"]

    async def test_amounts_for_plan_projection(self, db_session):
        user = await make_user(db_session)
        plan = await make_plan(db_session, user["id"])
        items = BudgetItemRepository(db_session)
        await items.create(plan["id"], {
            "category": "shopping",
            "description": "Tea",
            "amount": 55.5,
            "date": "2030-01-02",
        })

        assert await items.amounts_for_plan(plan["id"]) == [{"category": "shopping", "amount": 55.5}]
