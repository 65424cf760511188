"""
CSV export of donations for the admin panel
"""

from typing import Iterable, List
import csv
import io

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from arpu.models.donation import Donation

DONATION_COLUMNS: List[str] = [
    "Date",
    "Donor Name",
    "Email",
    "Phone",
    "Amount",
    "Currency",
    "Payment Status",
    "Payment ID",
    "Referral Code",
    "Program ID",
    "Is Anonymous",
]


def donation_row(donation: Donation) -> List[str]:
    return [
        donation.created_at.strftime("%Y-%m-%d %H:%M:%S") if donation.created_at else "",
        donation.donor_name,
        donation.donor_email or "",
        donation.donor_phone or "",
        f"{donation.amount_inr:.2f}",
        donation.currency.value,
        donation.payment_status.value,
        donation.razorpay_payment_id or "",
        donation.referral_code_value or "",
        donation.program_id or "",
        "Yes" if donation.is_anonymous else "No",
    ]


def donations_to_csv(donations: Iterable[Donation]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(DONATION_COLUMNS)
    for donation in donations:
        writer.writerow(donation_row(donation))
    return output.getvalue()


async def export_donations(db: AsyncSession, query) -> str:
    """Run an admin donation query (see donation_service.admin_query) and render it"""
    result = await db.execute(query.options(selectinload(Donation.referral_code)))
    return donations_to_csv(result.scalars().all())
