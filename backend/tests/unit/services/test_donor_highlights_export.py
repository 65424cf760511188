"""
Unit Tests for the public donor wall and the admin CSV export
"""
import csv
import io
import pytest
from datetime import datetime, timedelta

from arpu.models.donation import Currency, Donation, PaymentStatus
from arpu.models.referral_code import ReferralCode
from arpu.services.donation_service import donation_service
from arpu.services.donor_highlights_service import (
    aggregate_donors,
    display_name,
    donor_highlights_service,
)
from arpu.services.export_service import DONATION_COLUMNS, donations_to_csv, export_donations

NOW = datetime(2026, 3, 1, 12, 0, 0)


def donation(name, amount, email=None, anonymous=False, minutes_ago=0, **fields):
    return Donation(
        donor_name=name,
        donor_email=email,
        amount=amount,
        is_anonymous=anonymous,
        currency=Currency.INR,
        payment_status=PaymentStatus.SUCCESS,
        created_at=NOW - timedelta(minutes=minutes_ago),
        **fields,
    )


class TestDisplayName:

    @pytest.mark.parametrize("full_name,expected", [
        ("Priya Sharma", "Priya S."),
        ("Ravi Kumar Verma", "Ravi V."),
        ("Madhu", "Madhu"),
        ("", "Anonymous Donor"),
    ])
    def test_display_name(self, full_name, expected):
        assert display_name(full_name) == expected


class TestAggregateDonors:

    def test_merges_by_email(self):
        rows = aggregate_donors([
            donation("Priya Sharma", 10000, email="priya@example.com", minutes_ago=5),
            donation("Priya S Sharma", 5000, email="Priya@Example.com", minutes_ago=1),
        ])

        assert len(rows) == 1
        assert rows[0]["name"] == "Priya S."
        assert rows[0]["amount"] == 15000
        assert rows[0]["amount_inr"] == 150.0
        assert rows[0]["donation_count"] == 2
        assert rows[0]["last_donation_date"] == NOW - timedelta(minutes=1)

    def test_merges_by_name_without_email(self):
        rows = aggregate_donors([donation("Arjun Mehta", 1000), donation("arjun mehta ", 2000)])
        assert len(rows) == 1
        assert rows[0]["amount"] == 3000

    def test_anonymous_listed_separately_and_hidden(self):
        rows = aggregate_donors([
            donation("Hidden One", 50000, email="same@example.com", anonymous=True),
            donation("Hidden Two", 40000, email="same@example.com", anonymous=True),
        ])

        assert len(rows) == 2
        assert all(r["name"] == "Anonymous Donor" for r in rows)
        assert all(r["amount"] is None and r["amount_inr"] is None for r in rows)

    def test_sorted_by_amount_then_date(self):
        rows = aggregate_donors([
            donation("Small Giver", 1000, minutes_ago=1),
            donation("Big Giver", 90000, minutes_ago=30),
            donation("Early Even", 5000, minutes_ago=20),
            donation("Late Even", 5000, minutes_ago=2),
        ])
        assert [r["name"] for r in rows] == ["Big G.", "Late E.", "Early E.", "Small G."]


@pytest.mark.asyncio
class TestHighlightsPaging:

    async def test_pages(self, db_session):
        for i in range(5):
            db_session.add(donation(f"Donor Number{i}", 1000 * (i + 1), email=f"d{i}@example.com"))
        db_session.add(Donation(donor_name="Pending Person", amount=99999, payment_status=PaymentStatus.PENDING))
        await db_session.commit()

        first = await donor_highlights_service.get_highlights(db_session, limit=2, page=0)
        last = await donor_highlights_service.get_highlights(db_session, limit=2, page=2)

        assert first["total_count"] == 5
        assert first["total_pages"] == 3
        assert first["has_more"] is True
        assert first["donors"][0]["amount"] == 5000
        assert len(last["donors"]) == 1
        assert last["has_more"] is False


class TestCsvRendering:

    def test_rows(self):
        gift = donation("Meera Iyer", 123456, email="meera@example.com", donor_phone="9876543210",
                        razorpay_payment_id="pay_9")
        gift.referral_code = ReferralCode(code="RAVKUM-BIH", region="Bihar")

        rows = list(csv.reader(io.StringIO(donations_to_csv([gift]))))

        assert rows[0] == DONATION_COLUMNS
        assert rows[1] == [
            "2026-03-01 12:00:00", "Meera Iyer", "meera@example.com", "9876543210", "1234.56",
            "INR", "SUCCESS", "pay_9", "RAVKUM-BIH", "", "No",
        ]

    def test_empty_export_has_header(self):
        assert donations_to_csv([]).strip() == ",".join(DONATION_COLUMNS)


@pytest.mark.asyncio
class TestExportQuery:

    async def test_status_filter(self, db_session):
        db_session.add(donation("Asha Verma", 10000))
        db_session.add(Donation(donor_name="Failed Donor", amount=5000, payment_status=PaymentStatus.FAILED))
        await db_session.commit()

        content = await export_donations(db_session, donation_service.admin_query(status=PaymentStatus.SUCCESS))

        rows = list(csv.reader(io.StringIO(content)))
        assert len(rows) == 2
        assert rows[1][1] == "Asha Verma"
