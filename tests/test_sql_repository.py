from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from factories import make_farm, make_quest, make_user, start_and_tick
from krishi_quest.db import SqlRepository
from krishi_quest.errors import Conflict
from krishi_quest.main import create_app
from krishi_quest.schemas import (
    MarketPriceCreate,
    QuestStatus,
    SchemeStatus,
    UserCreate,
    UserQuestCreate,
)
from krishi_quest.seed import seed_defaults
from krishi_quest.services.accrual import complete_quest
from krishi_quest.services.catalog import market_prices
from krishi_quest.services.leaderboard import build_leaderboard
from krishi_quest.services.quests import start_quest
from krishi_quest.utils import utcnow


def _url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{(tmp_path / 'krishi_quest.db').as_posix()}"


def _run(tmp_path: Path, scenario):
    async def wrapper():
        repo = SqlRepository(_url(tmp_path))
        await repo.init()
        try:
            return await scenario(repo)
        finally:
            await repo.close()

    return asyncio.run(wrapper())


def test_user_creation_also_creates_progress(tmp_path: Path) -> None:
    async def scenario(repo):
        user = await make_user(repo)
        return user, await repo.get_progress(user.id), await repo.get_user_by_mobile(user.mobile_number)

    user, progress, by_mobile = _run(tmp_path, scenario)

    assert progress.user_id == user.id
    assert progress.level == 1
    assert progress.badges == []
    assert by_mobile.id == user.id


def test_duplicate_mobile_raises_conflict(tmp_path: Path) -> None:
    async def scenario(repo):
        data = UserCreate(name="A", mobile_number="9811111111", age_group="18-30")
        await repo.create_user(data)
        with pytest.raises(Conflict):
            await repo.create_user(data)
        return await repo.list_users()

    assert len(_run(tmp_path, scenario)) == 1


def test_accrual_scenario_on_sql(tmp_path: Path) -> None:
    async def scenario(repo):
        user = await make_user(repo)
        q = await make_quest(repo, xp=10, coins=150, badge="Compost Master")
        r = await make_quest(repo, xp=8, coins=100, badge=None, title="Plant Marigold Border")

        uq = await start_and_tick(repo, user.id, q)
        done = await complete_quest(repo, uq.id)
        with pytest.raises(Conflict):
            await complete_quest(repo, uq.id)

        uq2 = await start_and_tick(repo, user.id, r)
        await complete_quest(repo, uq2.id)

        with pytest.raises(Conflict):
            await start_quest(repo, UserQuestCreate(user_id=user.id, quest_id=q.id))

        return done, await repo.get_progress(user.id), await repo.list_user_quests(user.id)

    done, progress, user_quests = _run(tmp_path, scenario)

    assert done.status == QuestStatus.COMPLETED
    assert done.completed_at is not None
    assert progress.total_xp == 18
    assert progress.total_coins == 250
    assert progress.sustainability_score == 9
    assert progress.badges == ["Compost Master"]
    assert progress.completed_quests == 2
    assert [uq.status for uq in user_quests] == [QuestStatus.COMPLETED, QuestStatus.COMPLETED]


def test_concurrent_completions_for_one_user_are_not_lost(tmp_path: Path) -> None:
    async def scenario(repo):
        user = await make_user(repo)
        attempts = []
        for i in range(3):
            quest = await make_quest(repo, xp=10, coins=100, badge=f"Badge {i}", title=f"Quest {i}")
            attempts.append(await start_and_tick(repo, user.id, quest))
        await asyncio.gather(*(complete_quest(repo, uq.id) for uq in attempts))
        return await repo.get_progress(user.id)

    progress = _run(tmp_path, scenario)

    assert progress.completed_quests == 3
    assert progress.total_xp == 30
    assert progress.total_coins == 300
    assert sorted(progress.badges) == ["Badge 0", "Badge 1", "Badge 2"]


def test_leaderboard_and_market_on_sql(tmp_path: Path) -> None:
    async def scenario(repo):
        await seed_defaults(repo)
        wardha = await make_user(repo, name="Wardha Farmer")
        nagpur = await make_user(repo, name="Nagpur Farmer")
        await make_farm(repo, wardha.id, district="Wardha")
        await make_farm(repo, nagpur.id, district="Nagpur")
        await repo.update_progress(wardha.id, {"sustainability_score": 40})
        await repo.update_progress(nagpur.id, {"sustainability_score": 90})
        return (
            await build_leaderboard(repo),
            await build_leaderboard(repo, district="Wardha"),
            await market_prices(repo, district="Wardha"),
        )

    everyone, wardha_only, prices = _run(tmp_path, scenario)

    assert [e.user.name for e in everyone] == ["Nagpur Farmer", "Wardha Farmer"]
    assert [e.user.name for e in wardha_only] == ["Wardha Farmer"]
    assert [p.crop for p in prices] == ["Wheat", "Maize", "Cotton"]


def test_app_runs_on_sql_backend(tmp_path: Path) -> None:
    app = create_app(repository=SqlRepository(_url(tmp_path)), seed=True)
    with TestClient(app) as client:
        user = client.post(
            "/api/users",
            json={"name": "Asha Bhoyar", "mobileNumber": "9370000001", "ageGroup": "18-30"},
        ).json()
        quest = client.get("/api/quests", params={"category": "Soil Health"}).json()[0]
        uq = client.post("/api/user-quests", json={"userId": user["id"], "questId": quest["id"]}).json()
        assert uq["progress"] == [False] * 4

        client.patch(f"/api/user-quests/{uq['id']}", json={"progress": [True] * 4})
        resp = client.post(f"/api/user-quests/{uq['id']}/complete")
        assert resp.status_code == 200

        progress = client.get(f"/api/user-progress/{user['id']}").json()
        assert progress["totalCoins"] == 150
        assert progress["badges"] == ["Compost Master"]


def test_offset_quote_dates_sort_by_instant(tmp_path: Path) -> None:
    async def scenario(repo):
        # 10:00 IST is 04:30 UTC, earlier than the 06:00 UTC quote
        for price, date in ((1, "2024-01-01T10:00:00+05:30"), (2, "2024-01-01T06:00:00+00:00")):
            await repo.create_market_price(
                MarketPriceCreate(
                    crop="Cotton", price=price, mandi="Wardha Mandi", district="Wardha",
                    state="Maharashtra", date=date,
                )
            )
        return await market_prices(repo, crop="Cotton")

    prices = _run(tmp_path, scenario)

    assert [p.price for p in prices] == [2, 1]
    assert prices[1].date == datetime(2024, 1, 1, 4, 30, tzinfo=timezone.utc)


def test_completion_is_recorded_once_without_the_service_lock(tmp_path: Path) -> None:
    async def scenario(repo):
        user = await make_user(repo)
        quest = await make_quest(repo)
        uq = await start_and_tick(repo, user.id, quest)
        credit = {"total_xp": 10, "completed_quests": 1}
        first = await repo.record_completion(uq.id, utcnow(), credit)
        with pytest.raises(Conflict):
            await repo.record_completion(uq.id, utcnow(), {"total_xp": 20, "completed_quests": 2})
        return first, await repo.get_progress(user.id)

    first, progress = _run(tmp_path, scenario)

    assert first.status == QuestStatus.COMPLETED
    assert progress.total_xp == 10
    assert progress.completed_quests == 1


def test_unique_keys_reject_duplicates_below_the_services(tmp_path: Path) -> None:
    async def scenario(repo):
        await seed_defaults(repo)
        user = await make_user(repo)
        quest = await make_quest(repo)
        scheme = (await repo.list_schemes())[0]

        await make_farm(repo, user.id)
        with pytest.raises(Conflict):
            await make_farm(repo, user.id, district="Nagpur")

        await repo.create_user_quest(user.id, quest.id, QuestStatus.IN_PROGRESS, [False] * 4)
        with pytest.raises(Conflict):
            await repo.create_user_quest(user.id, quest.id, QuestStatus.IN_PROGRESS, [False] * 4)

        await repo.create_user_scheme(user.id, scheme.id, SchemeStatus.IN_PROGRESS, {}, utcnow())
        with pytest.raises(Conflict):
            await repo.create_user_scheme(user.id, scheme.id, SchemeStatus.IN_PROGRESS, {}, utcnow())

        return (
            await repo.get_farm_by_user_id(user.id),
            await repo.list_user_quests(user.id),
            await repo.list_user_schemes(user.id),
        )

    farm, user_quests, applications = _run(tmp_path, scenario)

    assert farm.district == "Wardha"
    assert len(user_quests) == 1
    assert len(applications) == 1
