"""
Market Intelligence - Fallback seed dataset.

Used when every live source fails and nothing is stored yet, so
the dashboard always has something to show. Scores here are
curated rather than computed.
"""

from datetime import datetime, timedelta
from typing import List

from .models import Article, ImpactLevel, Sector


_SEED_ROWS = [
    (
        "MarketWatch",
        "Federal Reserve Signals Potential Rate Cuts Ahead as Inflation Cools",
        "Fed officials indicate a shift toward more accommodative monetary policy as "
        "inflation metrics show continued decline toward the 2% target.",
        0.7, ("SPY", "QQQ", "TLT"), Sector.FINANCE, ImpactLevel.HIGH,
        "https://example.com/fed-rate-cuts",
    ),
    (
        "CNBC",
        "Tech Stocks Rally on AI Infrastructure Spending Surge",
        "Major technology companies report record capital expenditures on AI "
        "infrastructure, driving sector-wide optimism among investors.",
        0.8, ("NVDA", "GOOGL", "MSFT", "AMZN"), Sector.TECHNOLOGY, ImpactLevel.HIGH,
        "https://example.com/tech-ai-rally",
    ),
    (
        "Bloomberg",
        "Energy Sector Faces Headwinds Amid Renewable Transition",
        "Traditional energy companies grapple with declining fossil fuel demand as "
        "renewable energy adoption accelerates globally.",
        -0.4, ("XOM", "CVX", "COP"), Sector.ENERGY, ImpactLevel.MEDIUM,
        "https://example.com/energy-headwinds",
    ),
    (
        "Reuters",
        "Healthcare Innovation Drives Sector Growth Despite Regulatory Concerns",
        "Breakthrough treatments and medical technologies fuel healthcare sector "
        "expansion, though regulatory oversight remains a key risk factor.",
        0.5, ("JNJ", "PFE", "UNH", "MRNA"), Sector.HEALTHCARE, ImpactLevel.MEDIUM,
        "https://example.com/healthcare-growth",
    ),
    (
        "Financial Times",
        "Consumer Spending Shows Resilience Despite Economic Uncertainty",
        "Retail sales data indicates sustained consumer demand across key categories, "
        "supporting economic growth expectations.",
        0.6, ("WMT", "AMZN", "TGT", "COST"), Sector.CONSUMER, ImpactLevel.MEDIUM,
        "https://example.com/consumer-resilience",
    ),
    (
        "Wall Street Journal",
        "Manufacturing Sector Contracts for Third Consecutive Month",
        "Industrial production declines as global supply chain disruptions and reduced "
        "demand impact manufacturing output.",
        -0.6, ("CAT", "GE", "BA", "MMM"), Sector.INDUSTRIAL, ImpactLevel.HIGH,
        "https://example.com/manufacturing-decline",
    ),
    (
        "Yahoo Finance",
        "Real Estate Market Shows Signs of Stabilization",
        "Housing market data suggests bottoming out of the correction cycle, with "
        "mortgage rates showing modest decline.",
        0.3, ("VNQ", "REZ", "IYR"), Sector.REAL_ESTATE, ImpactLevel.LOW,
        "https://example.com/real-estate-stabilization",
    ),
    (
        "MarketWatch",
        "Cryptocurrency Market Volatility Continues Amid Regulatory Clarity",
        "Digital asset prices experience sharp swings as investors await clearer "
        "regulatory frameworks from major economies.",
        -0.2, ("BTC", "ETH", "COIN"), Sector.CRYPTOCURRENCY, ImpactLevel.MEDIUM,
        "https://example.com/crypto-volatility",
    ),
    (
        "CNBC",
        "Utilities Sector Benefits from Infrastructure Investment Surge",
        "Power companies see increased investment opportunities as grid modernization "
        "and renewable energy projects accelerate nationwide.",
        0.4, ("NEE", "DUK", "SO", "AEP"), Sector.UTILITIES, ImpactLevel.LOW,
        "https://example.com/utilities-infrastructure",
    ),
    (
        "Bloomberg",
        "Global Supply Chain Disruptions Impact Materials Pricing",
        "Raw material costs surge as geopolitical tensions and weather events disrupt "
        "key supply routes, affecting manufacturing costs.",
        -0.5, ("FCX", "NEM", "AA", "X"), Sector.MATERIALS, ImpactLevel.HIGH,
        "https://example.com/materials-supply-chain",
    ),
]


def build_seed_articles(now: datetime) -> List[Article]:
    """
    The built-in dataset, newest first.

    Articles are spaced two hours apart starting two hours before now.
    """
    articles = []
    for i, (source, headline, summary, sentiment, tickers, sector, impact, url) in enumerate(
        _SEED_ROWS, start=1
    ):
        created = now - timedelta(hours=2 * i)
        articles.append(
            Article(
                id=f"seed-{i}",
                source=source,
                headline=headline,
                summary=summary,
                sentiment_score=sentiment,
                sector=sector,
                impact_level=impact,
                tickers_mentioned=frozenset(tickers),
                relevance_score=0.5,
                published_date=created,
                created_date=created,
                updated_date=created,
                url=url,
            )
        )
    return articles
