"""
Unit Tests for request schema validation
"""
import pytest
from pydantic import ValidationError

from arpu.core.roles import UserRole
from arpu.schemas.auth import ChangePasswordRequest, ProfileUpdate, UserRegister
from arpu.schemas.donation import DonationOrderCreate, ManualDonationCreate, ReceiptCreate


def register(**overrides):
    data = {"email": "Asha.Verma@Example.com", "password": "Testpass123", "name": "Asha Verma"}
    data.update(overrides)
    return UserRegister(**data)


class TestUserRegister:

    def test_defaults(self):
        user = register()
        assert user.email == "asha.verma@example.com"
        assert user.role == UserRole.VOLUNTEER

    @pytest.mark.parametrize("password", ["short1A", "alllowercase1", "ALLUPPERCASE1", "NoDigitsHere"])
    def test_weak_passwords(self, password):
        with pytest.raises(ValidationError):
            register(password=password)

    def test_admin_cannot_self_register(self):
        with pytest.raises(ValidationError):
            register(role=UserRole.ADMIN)

    def test_name_cleanup(self):
        assert register(name="  Dr.  Asha   Verma ").name == "Dr. Asha Verma"
        with pytest.raises(ValidationError):
            register(name="Asha123")

    def test_phone(self):
        assert register(phone="98765 43210").phone == "9876543210"
        assert register(phone="").phone is None
        with pytest.raises(ValidationError):
            register(phone="12345")


class TestProfileUpdates:

    def test_partial_update_keeps_unset_fields_out(self):
        update = ProfileUpdate(district="Gaya")
        assert update.model_dump(exclude_unset=True) == {"district": "Gaya"}

    def test_new_password_strength(self):
        with pytest.raises(ValidationError):
            ChangePasswordRequest(current_password="Testpass123", new_password="weakpass")


class TestDonationOrderCreate:

    def _order(self, **overrides):
        data = {"donor_name": "Meera Iyer", "amount": 50000}
        data.update(overrides)
        return DonationOrderCreate(**data)

    def test_amount_bounds(self):
        assert self._order(amount=10000).amount == 10000
        assert self._order(amount=10000000).amount == 10000000
        with pytest.raises(ValidationError):
            self._order(amount=9999)
        with pytest.raises(ValidationError):
            self._order(amount=10000001)

    def test_referral_code_normalised(self):
        assert self._order(referral_code=" ravkum-bih ").referral_code == "RAVKUM-BIH"
        assert self._order(referral_code="   ").referral_code is None
        assert self._order().referral_code is None

    def test_donor_email_lowercased(self):
        assert self._order(donor_email="Meera@Example.COM").donor_email == "meera@example.com"

    def test_donor_name_letters_only(self):
        with pytest.raises(ValidationError):
            self._order(donor_name="<script>")


class TestManualDonation:

    def test_positive_amount(self):
        with pytest.raises(ValidationError):
            ManualDonationCreate(donor_name="Asha Verma", amount=0)

    def test_no_minimum_for_offline_gifts(self):
        assert ManualDonationCreate(donor_name="Asha Verma", amount=500).amount == 500


class TestReceiptCreate:

    def test_pan_format(self):
        assert ReceiptCreate(donor_pan="ABCDE1234F").donor_pan == "ABCDE1234F"
        with pytest.raises(ValidationError):
            ReceiptCreate(donor_pan="abcde1234f")
