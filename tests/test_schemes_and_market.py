from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient

from factories import make_user
from krishi_quest.errors import Conflict
from krishi_quest.memory_repo import MemoryRepository
from krishi_quest.schemas import MarketPriceCreate, SchemeStatus, UserSchemeCreate, UserSchemeUpdate
from krishi_quest.seed import DEFAULT_SCHEMES, seed_defaults
from krishi_quest.services import catalog, schemes


def _user_id(client: TestClient) -> str:
    resp = client.post(
        "/api/users",
        json={"name": "Vitthal Kale", "mobileNumber": "9422000111", "ageGroup": "46-60"},
    )
    return resp.json()["id"]


def _scheme(client: TestClient, name: str) -> dict:
    return next(s for s in client.get("/api/schemes").json() if s["name"] == name)


def test_scheme_catalog(client: TestClient) -> None:
    names = [s["name"] for s in client.get("/api/schemes").json()]
    assert names == ["PM-KISAN Scheme", "Drip Irrigation Subsidy"]

    income = client.get("/api/schemes", params={"category": "Income Support"}).json()
    assert len(income) == 1
    assert income[0]["documentsRequired"][0] == "Aadhaar Card"
    assert client.get(f"/api/schemes/{income[0]['id']}").json()["name"] == "PM-KISAN Scheme"
    assert client.get("/api/schemes/nope").status_code == 404


def test_apply_for_scheme(client: TestClient) -> None:
    user_id = _user_id(client)
    scheme = _scheme(client, "PM-KISAN Scheme")

    resp = client.post(
        "/api/user-schemes",
        json={"userId": user_id, "schemeId": scheme["id"], "applicationData": {"aadhaar": "verified"}},
    )
    assert resp.status_code == 200
    application = resp.json()
    assert application["status"] == "in_progress"
    assert application["appliedAt"] is not None
    assert application["approvedAt"] is None
    assert application["applicationData"] == {"aadhaar": "verified"}

    listed = client.get(f"/api/user-schemes/{user_id}").json()
    assert [a["id"] for a in listed] == [application["id"]]

    dup = client.post("/api/user-schemes", json={"userId": user_id, "schemeId": scheme["id"]})
    assert dup.status_code == 409


def test_apply_for_scheme_errors(client: TestClient) -> None:
    user_id = _user_id(client)
    scheme = _scheme(client, "Drip Irrigation Subsidy")

    assert client.post("/api/user-schemes", json={"userId": user_id}).status_code == 400
    assert client.post(
        "/api/user-schemes", json={"userId": "ghost", "schemeId": scheme["id"]}
    ).status_code == 404
    assert client.post(
        "/api/user-schemes", json={"userId": user_id, "schemeId": "ghost"}
    ).status_code == 404


def test_application_status_transitions(client: TestClient) -> None:
    user_id = _user_id(client)
    scheme = _scheme(client, "Drip Irrigation Subsidy")
    app_id = client.post(
        "/api/user-schemes", json={"userId": user_id, "schemeId": scheme["id"]}
    ).json()["id"]

    resp = client.patch(f"/api/user-schemes/{app_id}", json={"applicationData": {"quotation": "uploaded"}})
    assert resp.json()["applicationData"] == {"quotation": "uploaded"}
    assert resp.json()["status"] == "in_progress"

    resp = client.patch(f"/api/user-schemes/{app_id}", json={"status": "approved"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "approved"
    assert resp.json()["approvedAt"] is not None
    assert resp.json()["applicationData"] == {"quotation": "uploaded"}

    resp = client.patch(f"/api/user-schemes/{app_id}", json={"status": "rejected"})
    assert resp.status_code == 409

    assert client.patch(f"/api/user-schemes/{app_id}", json={"status": "bogus"}).status_code == 400
    assert client.patch("/api/user-schemes/nope", json={"status": "approved"}).status_code == 404


def test_rejection_does_not_stamp_approval(repo: MemoryRepository) -> None:
    async def scenario():
        await seed_defaults(repo)
        user = await make_user(repo)
        scheme = (await repo.list_schemes())[0]
        application = await schemes.apply_for_scheme(
            repo, UserSchemeCreate(user_id=user.id, scheme_id=scheme.id)
        )
        rejected = await schemes.update_application(
            repo, application.id, UserSchemeUpdate(status=SchemeStatus.REJECTED)
        )
        with pytest.raises(Conflict):
            await schemes.update_application(
                repo, application.id, UserSchemeUpdate(status=SchemeStatus.IN_PROGRESS)
            )
        return rejected

    rejected = asyncio.run(scenario())

    assert rejected.status == SchemeStatus.REJECTED
    assert rejected.approved_at is None


def test_market_prices_by_district(client: TestClient) -> None:
    prices = client.get("/api/market-prices").json()
    assert [p["crop"] for p in prices] == ["Wheat", "Maize", "Cotton"]
    assert all(p["unit"] == "quintal" for p in prices)

    client.post(
        "/api/market-prices",
        json={
            "crop": "Soybean",
            "price": 4600,
            "mandi": "Hinganghat Mandi",
            "district": "Nagpur",
            "state": "Maharashtra",
            "date": "2024-10-01T00:00:00Z",
            "trend": "up",
        },
    )
    assert [p["crop"] for p in client.get("/api/market-prices", params={"district": "Nagpur"}).json()] == [
        "Soybean"
    ]
    assert len(client.get("/api/market-prices", params={"district": "Wardha"}).json()) == 3


def test_market_prices_latest_first_for_crop(client: TestClient) -> None:
    for price, date in ((2100, "2024-01-05T00:00:00"), (2200, "2024-03-05T00:00:00Z")):
        resp = client.post(
            "/api/market-prices",
            json={
                "crop": "Wheat",
                "variety": "Lokwan",
                "price": price,
                "mandi": "Wardha Mandi",
                "district": "Wardha",
                "state": "Maharashtra",
                "date": date,
            },
        )
        assert resp.status_code == 200

    wheat = client.get("/api/market-prices", params={"crop": "Wheat"}).json()
    # seeded quote is dated today, so it comes first
    assert [p["price"] for p in wheat] == [2350, 2200, 2100]
    assert client.get("/api/market-prices", params={"crop": "Rice"}).json() == []


def test_market_price_validation(client: TestClient) -> None:
    resp = client.post(
        "/api/market-prices",
        json={"crop": "Wheat", "price": -5, "mandi": "M", "district": "D", "state": "S", "date": "2024-01-01"},
    )
    assert resp.status_code == 400
    resp = client.post(
        "/api/market-prices",
        json={"crop": "Wheat", "price": 5, "mandi": "M", "district": "D", "state": "S",
              "date": "2024-01-01", "trend": "sideways"},
    )
    assert resp.status_code == 400


def test_equal_dates_keep_insertion_order(repo: MemoryRepository) -> None:
    async def scenario():
        for mandi in ("Wardha Mandi", "Arvi Mandi", "Pulgaon Mandi"):
            await repo.create_market_price(
                MarketPriceCreate(
                    crop="Cotton", price=5800, mandi=mandi, district="Wardha",
                    state="Maharashtra", date="2024-02-01T00:00:00Z",
                )
            )
        return await catalog.market_prices(repo, crop="Cotton")

    assert [p.mandi for p in asyncio.run(scenario())] == ["Wardha Mandi", "Arvi Mandi", "Pulgaon Mandi"]


def test_seed_runs_once(repo: MemoryRepository) -> None:
    async def scenario():
        first = await seed_defaults(repo)
        second = await seed_defaults(repo)
        return first, second, await repo.list_schemes()

    first, second, seeded = asyncio.run(scenario())

    assert (first, second) == (True, False)
    assert len(seeded) == len(DEFAULT_SCHEMES)
