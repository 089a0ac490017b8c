# krishi_quest/seed.py
"""
Default catalog: starter quests, government schemes and a few Wardha mandi
quotes. Loaded at startup when SEED_DEFAULTS is on and no quests exist yet.
"""

import logging

from krishi_quest.repository import Repository
from krishi_quest.schemas import MarketPriceCreate, QuestCreate, SchemeCreate
from krishi_quest.utils import utcnow

logger = logging.getLogger(__name__)

DEFAULT_QUESTS = [
    QuestCreate(
        title="Prepare Jeevamrutha",
        description="Create organic liquid fertilizer using cow dung, cow urine, jaggery, and gram flour.",
        category="Soil Health",
        difficulty="medium",
        coin_reward=150,
        xp_reward=10,
        badge_reward="Compost Master",
        steps=[
            "Watch preparation video",
            "Gather ingredients (cow dung, cow urine, jaggery, gram flour)",
            "Mix and ferment for 7 days",
            "Upload completion photo",
        ],
    ),
    QuestCreate(
        title="Install Drip Irrigation",
        description="Set up efficient drip irrigation system for water conservation in vegetable crops.",
        category="Water Management",
        difficulty="high",
        coin_reward=200,
        xp_reward=15,
        badge_reward="Water Saver",
        steps=[
            "Plan irrigation layout",
            "Purchase drip irrigation kit",
            "Install main pipeline",
            "Connect drippers to plants",
            "Test system and upload photo",
        ],
    ),
    QuestCreate(
        title="Plant Marigold Border",
        description="Plant marigold flowers around crop fields for natural pest control.",
        category="Pest Control",
        difficulty="easy",
        coin_reward=100,
        xp_reward=8,
        steps=[
            "Purchase marigold seeds",
            "Prepare border areas",
            "Sow seeds around field perimeter",
            "Water and maintain for 2 weeks",
            "Upload growth photo",
        ],
    ),
]

DEFAULT_SCHEMES = [
    SchemeCreate(
        name="PM-KISAN Scheme",
        description="Direct Income Support to small and marginal farmers",
        category="Income Support",
        eligibility_criteria=[
            "Small and marginal farmer families",
            "Land ownership records",
            "Valid Aadhaar card",
            "Bank account",
        ],
        benefits="₹6,000 per year in three installments of ₹2,000 each",
        application_steps=[
            "Aadhaar verification",
            "Bank account linking",
            "Land ownership document upload",
            "Visit Patwari for verification",
            "Submit final application",
        ],
        documents_required=[
            "Aadhaar Card",
            "Bank Account Details",
            "Land Ownership Documents",
            "Mobile Number",
        ],
    ),
    SchemeCreate(
        name="Drip Irrigation Subsidy",
        description="Water conservation subsidy for efficient irrigation systems",
        category="Water Conservation",
        eligibility_criteria=[
            "Farmers with water source",
            "Minimum 0.5 acre land",
            "No previous subsidy for irrigation",
        ],
        benefits="Up to 55% subsidy on drip irrigation system installation",
        application_steps=[
            "Technical assessment",
            "Quotation submission",
            "Approval and installation",
            "Verification and payment",
        ],
        documents_required=[
            "Land Documents",
            "Water Source Certificate",
            "Technical Quotation",
            "Bank Details",
        ],
    ),
]

# (crop, variety, price per quintal, trend)
WARDHA_QUOTES = [
    ("Wheat", "Premium", 2350, "up"),
    ("Maize", "Standard", 1890, "down"),
    ("Cotton", "Medium Staple", 5890, "stable"),
]


async def seed_defaults(repo: Repository) -> bool:
    """Load the default catalog into an empty store. Returns True if seeded."""
    if await repo.list_quests(active_only=False):
        logger.info("seed skipped: quest catalog already populated")
        return False

    for quest in DEFAULT_QUESTS:
        await repo.create_quest(quest)
    for scheme in DEFAULT_SCHEMES:
        await repo.create_scheme(scheme)

    today = utcnow()
    for crop, variety, price, trend in WARDHA_QUOTES:
        await repo.create_market_price(
            MarketPriceCreate(
                crop=crop,
                variety=variety,
                price=price,
                mandi="Wardha Mandi",
                district="Wardha",
                state="Maharashtra",
                date=today,
                trend=trend,
            )
        )

    logger.info(
        "seeded %s quests, %s schemes, %s market prices",
        len(DEFAULT_QUESTS), len(DEFAULT_SCHEMES), len(WARDHA_QUOTES),
    )
    return True
