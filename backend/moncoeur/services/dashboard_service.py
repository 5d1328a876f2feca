# Overview: Aggregates behind the dashboard (stock by status, revenue and margin).

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime

from sqlalchemy import func

from ..constants import BAG_STATUSES, MONTH_NAMES, PLATFORMS, SOLD_STATUS
from ..extensions import db
from ..models import Bag, Sale
from ..time_utils import month_start, next_month_start, utcnow


CHART_MONTHS = 6
RECENT_SALES = 5
TOP_BRANDS = 5


def bags_by_status() -> dict[str, int]:
    counts = dict(
        db.session.query(Bag.status, func.count(Bag.id)).group_by(Bag.status).all()
    )
    return {status: counts.get(status, 0) for status in BAG_STATUSES}


def month_totals(now: datetime) -> dict:
    start = month_start(now)
    revenue, margin, count = (
        db.session.query(
            func.coalesce(func.sum(Sale.sale_price), 0),
            func.coalesce(func.sum(Sale.margin), 0),
            func.count(Sale.id),
        )
        .filter(Sale.sale_date >= start, Sale.sale_date < next_month_start(now))
        .one()
    )
    return {"revenue": round(float(revenue), 2), "margin": round(float(margin), 2), "salesCount": count}


def monthly_chart(now: datetime, months: int = CHART_MONTHS) -> list[dict]:
    """Revenue and margin for the last `months` months, oldest first, empty months included."""
    buckets: "OrderedDict[tuple[int, int], dict]" = OrderedDict()
    for back in range(months - 1, -1, -1):
        start = month_start(now, back)
        buckets[(start.year, start.month)] = {
            "month": MONTH_NAMES[start.month - 1],
            "revenue": 0.0,
            "margin": 0.0,
            "count": 0,
        }

    rows = (
        db.session.query(Sale.sale_date, Sale.sale_price, Sale.margin)
        .filter(Sale.sale_date >= month_start(now, months - 1), Sale.sale_date < next_month_start(now))
        .all()
    )
    for sale_date, price, margin in rows:
        bucket = buckets.get((sale_date.year, sale_date.month))
        if bucket is None:
            continue
        bucket["revenue"] += price or 0
        bucket["margin"] += margin or 0
        bucket["count"] += 1

    for bucket in buckets.values():
        bucket["revenue"] = round(bucket["revenue"], 2)
        bucket["margin"] = round(bucket["margin"], 2)
    return list(buckets.values())


def platform_split() -> list[dict]:
    rows = (
        db.session.query(Sale.sale_platform, func.sum(Sale.sale_price), func.count(Sale.id))
        .group_by(Sale.sale_platform)
        .order_by(func.sum(Sale.sale_price).desc())
        .all()
    )
    return [
        {
            "platform": platform,
            "name": PLATFORMS.get(platform, platform),
            "value": round(float(value or 0), 2),
            "count": count,
        }
        for platform, value, count in rows
    ]


def top_brands(limit: int = TOP_BRANDS) -> list[dict]:
    revenue = func.sum(Sale.sale_price)
    rows = (
        db.session.query(Bag.brand, revenue, func.sum(Sale.margin), func.count(Sale.id))
        .join(Bag, Sale.bag_id == Bag.id)
        .group_by(Bag.brand)
        .order_by(revenue.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "brand": brand,
            "revenue": round(float(total or 0), 2),
            "margin": round(float(margin or 0), 2),
            "count": count,
        }
        for brand, total, margin, count in rows
    ]


def dashboard_stats(now: datetime | None = None) -> dict:
    now = now or utcnow()
    by_status = bags_by_status()
    recent = (
        db.session.query(Sale)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .limit(RECENT_SALES)
        .all()
    )
    return {
        "bagsByStatus": by_status,
        "totalInStock": sum(n for status, n in by_status.items() if status != SOLD_STATUS),
        "monthly": month_totals(now),
        "chart": monthly_chart(now),
        "platforms": platform_split(),
        "topBrands": top_brands(),
        "recentSales": [s.to_dict() for s in recent],
    }
