# krishi_quest/services/catalog.py
"""Read-only lookups over the quest, scheme and market-price catalogs."""

import logging
from typing import List, Optional

from krishi_quest.errors import NotFound
from krishi_quest.repository import Repository
from krishi_quest.schemas import MarketPrice, MarketPriceCreate, Quest, Scheme

logger = logging.getLogger(__name__)


async def list_quests(repo: Repository, category: Optional[str] = None) -> List[Quest]:
    return await repo.list_quests(category=category or None)


async def get_quest(repo: Repository, quest_id: str) -> Quest:
    quest = await repo.get_quest(quest_id)
    if quest is None:
        raise NotFound("Quest not found")
    return quest


async def set_quest_active(repo: Repository, quest_id: str, is_active: bool) -> Quest:
    quest = await repo.update_quest(quest_id, {"is_active": is_active})
    if quest is None:
        raise NotFound("Quest not found")
    logger.info("quest id=%s is_active=%s", quest_id, is_active)
    return quest


async def list_schemes(repo: Repository, category: Optional[str] = None) -> List[Scheme]:
    return await repo.list_schemes(category=category or None)


async def get_scheme(repo: Repository, scheme_id: str) -> Scheme:
    scheme = await repo.get_scheme(scheme_id)
    if scheme is None:
        raise NotFound("Scheme not found")
    return scheme


async def market_prices(
    repo: Repository, district: Optional[str] = None, crop: Optional[str] = None
) -> List[MarketPrice]:
    """
    Quotes filtered by district and/or crop. With a crop the list is the
    latest-first view for that crop: newest quote date first, equal dates in
    insertion order.
    """
    prices = await repo.list_market_prices(district=district or None, crop=crop or None)
    if crop:
        prices = sorted(prices, key=lambda p: p.date, reverse=True)
    return prices


async def add_market_price(repo: Repository, payload: MarketPriceCreate) -> MarketPrice:
    price = await repo.create_market_price(payload)
    logger.info("market price added crop=%s mandi=%s price=%s", price.crop, price.mandi, price.price)
    return price
