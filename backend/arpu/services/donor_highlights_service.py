"""
Donor Highlights - public wall of recent supporters

Named donors are merged by email (or name when no email was given);
anonymous donations are listed one by one with the amount hidden.
"""

from datetime import datetime
from typing import Dict, List, Any
import math

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from arpu.models.donation import Donation, PaymentStatus

MAX_LIMIT = 100
ANONYMOUS_LABEL = "Anonymous Donor"


def display_name(full_name: str) -> str:
    """'Priya Sharma' -> 'Priya S.'"""
    parts = (full_name or "").split()
    if not parts:
        return ANONYMOUS_LABEL
    if len(parts) == 1:
        return parts[0]
    return f"{parts[0]} {parts[-1][0].upper()}."


def donor_key(donation: Donation) -> str:
    if donation.donor_email:
        return donation.donor_email.strip().lower()
    return donation.donor_name.strip().lower()


def aggregate_donors(donations: List[Donation]) -> List[Dict[str, Any]]:
    """Collapse SUCCESS donations into highlight rows, sorted amount desc, date desc, name"""
    named: Dict[str, Dict[str, Any]] = {}
    anonymous: List[Dict[str, Any]] = []

    for donation in donations:
        if donation.is_anonymous:
            anonymous.append({
                "name": ANONYMOUS_LABEL,
                "total": donation.amount,
                "donation_count": 1,
                "last_donation_date": donation.created_at,
                "is_anonymous": True,
            })
            continue

        key = donor_key(donation)
        entry = named.get(key)
        if entry is None:
            named[key] = {
                "name": display_name(donation.donor_name),
                "total": donation.amount,
                "donation_count": 1,
                "last_donation_date": donation.created_at,
                "is_anonymous": False,
            }
        else:
            entry["total"] += donation.amount
            entry["donation_count"] += 1
            if donation.created_at > entry["last_donation_date"]:
                entry["last_donation_date"] = donation.created_at

    rows = list(named.values()) + anonymous
    rows.sort(key=lambda r: r["name"])
    rows.sort(key=lambda r: (r["total"], r["last_donation_date"]), reverse=True)

    for row in rows:
        total = row.pop("total")
        row["amount"] = None if row["is_anonymous"] else total
        row["amount_inr"] = None if row["is_anonymous"] else total / 100
    return rows


class DonorHighlightsService:

    async def get_highlights(self, db: AsyncSession, limit: int = 30, page: int = 0) -> Dict[str, Any]:
        limit = max(1, min(limit, MAX_LIMIT))
        page = max(0, page)

        result = await db.execute(
            select(Donation)
            .where(Donation.payment_status == PaymentStatus.SUCCESS)
            .order_by(Donation.created_at.desc())
        )
        rows = aggregate_donors(list(result.scalars().all()))

        total = len(rows)
        total_pages = math.ceil(total / limit) if total else 0
        start = page * limit
        return {
            "donors": rows[start:start + limit],
            "total_count": total,
            "current_page": page,
            "total_pages": total_pages,
            "has_more": start + limit < total,
            "last_updated": datetime.utcnow(),
        }


donor_highlights_service = DonorHighlightsService()
