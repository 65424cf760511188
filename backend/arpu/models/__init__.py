from arpu.models.user import User, UserStatus
from arpu.models.referral_code import ReferralCode, ReferralCodeType
from arpu.models.program import Program
from arpu.models.donation import Donation, Receipt, PaymentStatus, Currency
from arpu.models.commission import CommissionLog, CommissionStatus
from arpu.models.target import Target, TargetStatus, Transaction, TransactionStatus, PaymentMode
from arpu.models.survey import Survey, SurveyType, SurveyStatus
from arpu.models.certificate import Certificate, CertificateType, CertificateStatus
from arpu.models.volunteer import VolunteerRequest, VolunteerStatus, VolunteerInterest
from arpu.models.contact import ContactMessage, ContactStatus, InquiryType
from arpu.core.roles import UserRole

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "ReferralCode",
    "ReferralCodeType",
    "Program",
    "Donation",
    "Receipt",
    "PaymentStatus",
    "Currency",
    "CommissionLog",
    "CommissionStatus",
    "Target",
    "TargetStatus",
    "Transaction",
    "TransactionStatus",
    "PaymentMode",
    "Survey",
    "SurveyType",
    "SurveyStatus",
    "Certificate",
    "CertificateType",
    "CertificateStatus",
    "VolunteerRequest",
    "VolunteerStatus",
    "VolunteerInterest",
    "ContactMessage",
    "ContactStatus",
    "InquiryType",
]
