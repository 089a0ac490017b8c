# krishi_quest/routes/market.py
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from krishi_quest.deps import get_repository
from krishi_quest.repository import Repository
from krishi_quest.schemas import MarketPrice, MarketPriceCreate
from krishi_quest.services import catalog

router = APIRouter(tags=["market"])


@router.get("/market-prices", response_model=List[MarketPrice])
async def list_market_prices(
    district: Optional[str] = Query(None),
    crop: Optional[str] = Query(None),
    repo: Repository = Depends(get_repository),
):
    """
    Mandi quotes. Optional filters: district, crop. With ``crop`` the newest
    quotes come first.
    """
    return await catalog.market_prices(repo, district=district, crop=crop)


@router.post("/market-prices", response_model=MarketPrice)
async def add_market_price(
    payload: MarketPriceCreate = Body(...),
    repo: Repository = Depends(get_repository),
):
    return await catalog.add_market_price(repo, payload)
