"""Initial schema: users, referrals, programs, donations, commissions, targets, outreach

Revision ID: 0001_initial
Revises:
Create Date: 2026-03-02 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

JSON_DOC = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")

ENUMS = {
    'userrole': ['ADMIN', 'CENTRAL_PRESIDENT', 'STATE_PRESIDENT', 'STATE_COORDINATOR', 'ZONE_COORDINATOR',
                 'DISTRICT_PRESIDENT', 'DISTRICT_COORDINATOR', 'BLOCK_COORDINATOR', 'NODAL_OFFICER',
                 'PRERAK', 'PRERNA_SAKHI', 'VOLUNTEER', 'DONOR'],
    'userstatus': ['ACTIVE', 'INACTIVE', 'PENDING'],
    'referralcodetype': ['COORDINATOR', 'SUB_COORDINATOR'],
    'paymentstatus': ['PENDING', 'SUCCESS', 'FAILED', 'REFUNDED'],
    'currency': ['INR', 'USD'],
    'commissionstatus': ['PENDING', 'PAID', 'FAILED', 'CANCELLED'],
    'targetstatus': ['PENDING', 'IN_PROGRESS', 'COMPLETED', 'OVERDUE', 'CANCELLED'],
    # SQLAlchemy stores enum member names
    'paymentmode': ['CASH', 'ONLINE', 'CHEQUE', 'UPI', 'BANK_TRANSFER', 'OTHER'],
    'transactionstatus': ['PENDING', 'VERIFIED', 'REJECTED'],
    'surveytype': ['HOSPITAL', 'SCHOOL', 'HEALTH_CAMP', 'COMMUNITY_WELFARE', 'STAFF_VOLUNTEER',
                   'BUSINESS', 'CITIZEN', 'POLITICAL_ANALYSIS'],
    'surveystatus': ['DRAFT', 'SUBMITTED', 'REVIEWED', 'ARCHIVED'],
    'certificatetype': ['APPRECIATION', 'MEMBERSHIP', 'CONTRIBUTION', 'VOLUNTEER', 'EVENT', 'CONTEST'],
    'certificatestatus': ['PENDING', 'GENERATED', 'SENT'],
    'volunteerstatus': ['PENDING', 'REVIEWED', 'ACCEPTED', 'REJECTED'],
    'contactstatus': ['NEW', 'IN_PROGRESS', 'RESOLVED', 'CLOSED'],
    'inquirytype': ['GENERAL', 'VOLUNTEER', 'PARTNERSHIP', 'DONATION', 'MEDIA', 'OTHER'],
}


def enum(name: str) -> sa.Enum:
    return sa.Enum(*ENUMS[name], name=name)


def timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    # users
    op.create_table('users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=15), nullable=True),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', enum('userrole'), nullable=False),
        sa.Column('status', enum('userstatus'), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('reset_token_hash', sa.String(length=64), nullable=True),
        sa.Column('reset_token_expires', sa.DateTime(), nullable=True),
        sa.Column('parent_coordinator_id', sa.String(length=36), nullable=True),
        sa.Column('father_name', sa.String(length=100), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('region', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('zone', sa.String(length=100), nullable=True),
        sa.Column('district', sa.String(length=100), nullable=True),
        sa.Column('block', sa.String(length=100), nullable=True),
        sa.Column('panchayat', sa.String(length=100), nullable=True),
        sa.Column('gram_sabha', sa.String(length=100), nullable=True),
        sa.Column('revenue_village', sa.String(length=100), nullable=True),
        sa.Column('referral_code', sa.String(length=20), nullable=True),
        sa.Column('total_donations_referred', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_amount_referred', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('commission_wallet', sa.BigInteger(), nullable=False, server_default='0'),
        *timestamps(),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['parent_coordinator_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('referral_code')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role_status', 'users', ['role', 'status'], unique=False)
    op.create_index('ix_users_parent', 'users', ['parent_coordinator_id'], unique=False)
    op.create_index('ix_users_state_district', 'users', ['state', 'district'], unique=False)

    # referral_codes
    op.create_table('referral_codes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('owner_user_id', sa.String(length=36), nullable=False),
        sa.Column('parent_code_id', sa.String(length=36), nullable=True),
        sa.Column('type', enum('referralcodetype'), nullable=False),
        sa.Column('region', sa.String(length=100), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('total_donations', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('last_used', sa.DateTime(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['owner_user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['parent_code_id'], ['referral_codes.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_referral_codes_code', 'referral_codes', ['code'], unique=True)
    op.create_index('ix_referral_codes_owner_active', 'referral_codes', ['owner_user_id', 'active'], unique=False)
    op.create_index('ix_referral_codes_parent', 'referral_codes', ['parent_code_id'], unique=False)
    op.create_index('ix_referral_codes_region', 'referral_codes', ['region'], unique=False)

    # programs
    op.create_table('programs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('long_description', sa.Text(), nullable=True),
        sa.Column('image', sa.String(length=500), nullable=True),
        sa.Column('gallery', JSON_DOC, nullable=False),
        sa.Column('target_amount', sa.BigInteger(), nullable=True),
        sa.Column('raised_amount', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('donation_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('priority', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('meta_title', sa.String(length=60), nullable=True),
        sa.Column('meta_description', sa.String(length=160), nullable=True),
        *timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_programs_name', 'programs', ['name'], unique=False)
    op.create_index('ix_programs_slug', 'programs', ['slug'], unique=True)
    op.create_index('ix_programs_active_priority', 'programs', ['active', 'priority'], unique=False)

    # donations
    op.create_table('donations',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('donor_name', sa.String(length=100), nullable=False),
        sa.Column('donor_email', sa.String(length=255), nullable=True),
        sa.Column('donor_phone', sa.String(length=15), nullable=True),
        sa.Column('is_anonymous', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('currency', enum('currency'), nullable=False),
        sa.Column('program_id', sa.String(length=36), nullable=True),
        sa.Column('payment_status', enum('paymentstatus'), nullable=False),
        sa.Column('razorpay_order_id', sa.String(length=100), nullable=True),
        sa.Column('razorpay_payment_id', sa.String(length=100), nullable=True),
        sa.Column('razorpay_signature', sa.String(length=255), nullable=True),
        sa.Column('failure_reason', sa.String(length=500), nullable=True),
        sa.Column('is_manual', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('recorded_by', sa.String(length=36), nullable=True),
        sa.Column('referral_code_id', sa.String(length=36), nullable=True),
        sa.Column('attributed_to_user_id', sa.String(length=36), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=500), nullable=True),
        sa.Column('distributed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('distributed_at', sa.DateTime(), nullable=True),
        sa.Column('total_commission_distributed', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('organization_fund_amount', sa.BigInteger(), nullable=False, server_default='0'),
        *timestamps(),
        sa.ForeignKeyConstraint(['program_id'], ['programs.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['recorded_by'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['referral_code_id'], ['referral_codes.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['attributed_to_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('razorpay_order_id')
    )
    op.create_index('ix_donations_donor_email', 'donations', ['donor_email'], unique=False)
    op.create_index('ix_donations_status_created', 'donations', ['payment_status', 'created_at'], unique=False)
    op.create_index('ix_donations_attributed', 'donations', ['attributed_to_user_id'], unique=False)
    op.create_index('ix_donations_referral', 'donations', ['referral_code_id'], unique=False)
    op.create_index('ix_donations_program', 'donations', ['program_id'], unique=False)
    op.create_index('ix_donations_distributed', 'donations', ['distributed'], unique=False)

    # receipts
    op.create_table('receipts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('receipt_number', sa.String(length=50), nullable=False),
        sa.Column('donation_id', sa.String(length=36), nullable=False),
        sa.Column('cin_number', sa.String(length=50), nullable=False),
        sa.Column('pan_number', sa.String(length=20), nullable=False),
        sa.Column('registration_number', sa.String(length=50), nullable=False),
        sa.Column('documentation_number', sa.String(length=50), nullable=False),
        sa.Column('donor_name', sa.String(length=100), nullable=False),
        sa.Column('donor_email', sa.String(length=255), nullable=True),
        sa.Column('donor_phone', sa.String(length=15), nullable=True),
        sa.Column('donor_pan', sa.String(length=10), nullable=True),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='INR'),
        sa.Column('program_name', sa.String(length=100), nullable=True),
        sa.Column('payment_reference', sa.String(length=100), nullable=True),
        sa.Column('donation_date', sa.DateTime(), nullable=False),
        sa.Column('email_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('email_sent_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['donation_id'], ['donations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('donation_id')
    )
    op.create_index('ix_receipts_receipt_number', 'receipts', ['receipt_number'], unique=True)

    # commission_logs
    op.create_table('commission_logs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('donation_id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('user_name', sa.String(length=100), nullable=False),
        sa.Column('user_role', sa.String(length=50), nullable=False),
        sa.Column('hierarchy_level', sa.String(length=50), nullable=False),
        sa.Column('depth', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('commission_amount', sa.BigInteger(), nullable=False),
        sa.Column('commission_percentage', sa.Float(), nullable=False),
        sa.Column('status', enum('commissionstatus'), nullable=False),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('transaction_id', sa.String(length=100), nullable=True),
        sa.Column('payment_method', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.String(length=500), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['donation_id'], ['donations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_commission_logs_donation', 'commission_logs', ['donation_id'], unique=False)
    op.create_index('ix_commission_logs_user_status', 'commission_logs', ['user_id', 'status'], unique=False)
    op.create_index('ix_commission_logs_created', 'commission_logs', ['created_at'], unique=False)

    # targets
    op.create_table('targets',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('assigned_to', sa.String(length=36), nullable=False),
        sa.Column('assigned_by', sa.String(length=36), nullable=True),
        sa.Column('parent_target_id', sa.String(length=36), nullable=True),
        sa.Column('target_amount', sa.BigInteger(), nullable=False),
        sa.Column('personal_collection', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('team_collection', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('total_collection', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('remaining_amount', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('progress_percentage', sa.Float(), nullable=False, server_default='0'),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('status', enum('targetstatus'), nullable=False),
        sa.Column('is_overdue', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_divided', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('description', sa.String(length=500), nullable=True),
        sa.Column('notes', sa.String(length=1000), nullable=True),
        sa.Column('level', sa.String(length=50), nullable=False),
        sa.Column('region', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('zone', sa.String(length=100), nullable=True),
        sa.Column('district', sa.String(length=100), nullable=True),
        sa.Column('block', sa.String(length=100), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_by'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['parent_target_id'], ['targets.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_targets_assignee_status', 'targets', ['assigned_to', 'status'], unique=False)
    op.create_index('ix_targets_assigner', 'targets', ['assigned_by'], unique=False)
    op.create_index('ix_targets_parent', 'targets', ['parent_target_id'], unique=False)
    op.create_index('ix_targets_end_date', 'targets', ['end_date'], unique=False)

    # transactions
    op.create_table('transactions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('target_id', sa.String(length=36), nullable=True),
        sa.Column('donation_id', sa.String(length=36), nullable=True),
        sa.Column('referral_code_id', sa.String(length=36), nullable=True),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('payment_mode', enum('paymentmode'), nullable=False),
        sa.Column('status', enum('transactionstatus'), nullable=False),
        sa.Column('donor_name', sa.String(length=100), nullable=True),
        sa.Column('donor_contact', sa.String(length=20), nullable=True),
        sa.Column('donor_email', sa.String(length=255), nullable=True),
        sa.Column('purpose', sa.String(length=200), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('receipt_number', sa.String(length=50), nullable=True),
        sa.Column('transaction_id', sa.String(length=100), nullable=True),
        sa.Column('verified_by', sa.String(length=36), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        sa.Column('rejection_reason', sa.String(length=500), nullable=True),
        sa.Column('collection_date', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        *timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['target_id'], ['targets.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['donation_id'], ['donations.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['referral_code_id'], ['referral_codes.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['verified_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_transactions_user_status', 'transactions', ['user_id', 'status'], unique=False)
    op.create_index('ix_transactions_target', 'transactions', ['target_id'], unique=False)
    op.create_index('ix_transactions_collection_date', 'transactions', ['collection_date'], unique=False)

    # surveys
    op.create_table('surveys',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('survey_type', enum('surveytype'), nullable=False),
        sa.Column('status', enum('surveystatus'), nullable=False),
        sa.Column('location', sa.String(length=200), nullable=False),
        sa.Column('district', sa.String(length=100), nullable=True),
        sa.Column('state', sa.String(length=100), nullable=True),
        sa.Column('surveyor_name', sa.String(length=100), nullable=False),
        sa.Column('surveyor_contact', sa.String(length=20), nullable=True),
        sa.Column('survey_date', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('data', JSON_DOC, nullable=False),
        sa.Column('submitted_by', sa.String(length=36), nullable=True),
        sa.Column('reviewed_by', sa.String(length=36), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['submitted_by'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_surveys_type_status', 'surveys', ['survey_type', 'status'], unique=False)
    op.create_index('ix_surveys_state_district', 'surveys', ['state', 'district'], unique=False)
    op.create_index('ix_surveys_created', 'surveys', ['created_at'], unique=False)

    # certificates
    op.create_table('certificates',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('certificate_number', sa.String(length=50), nullable=False),
        sa.Column('certificate_type', enum('certificatetype'), nullable=False),
        sa.Column('status', enum('certificatestatus'), nullable=False),
        sa.Column('recipient_name', sa.String(length=100), nullable=False),
        sa.Column('recipient_email', sa.String(length=255), nullable=True),
        sa.Column('recipient_designation', sa.String(length=100), nullable=True),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('donation_id', sa.String(length=36), nullable=True),
        sa.Column('event_name', sa.String(length=200), nullable=True),
        sa.Column('activity_description', sa.Text(), nullable=True),
        sa.Column('date_of_event', sa.DateTime(), nullable=True),
        sa.Column('place_of_event', sa.String(length=200), nullable=True),
        sa.Column('membership_id', sa.String(length=50), nullable=True),
        sa.Column('membership_start', sa.DateTime(), nullable=True),
        sa.Column('membership_type', sa.String(length=50), nullable=True),
        sa.Column('issue_date', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('issued_by', sa.String(length=36), nullable=True),
        sa.Column('signature_name', sa.String(length=100), nullable=True),
        sa.Column('generated_at', sa.DateTime(), nullable=True),
        sa.Column('email_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('email_sent_at', sa.DateTime(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['donation_id'], ['donations.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['issued_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_certificates_certificate_number', 'certificates', ['certificate_number'], unique=True)
    op.create_index('ix_certificates_user_type', 'certificates', ['user_id', 'certificate_type'], unique=False)
    op.create_index('ix_certificates_issue_date', 'certificates', ['issue_date'], unique=False)

    # volunteer_requests
    op.create_table('volunteer_requests',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=10), nullable=False),
        sa.Column('state', sa.String(length=100), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('interests', JSON_DOC, nullable=False),
        sa.Column('message', sa.String(length=1000), nullable=True),
        sa.Column('availability', sa.String(length=200), nullable=True),
        sa.Column('experience', sa.Text(), nullable=True),
        sa.Column('status', enum('volunteerstatus'), nullable=False),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('reviewed_by', sa.String(length=36), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('certificate_issued', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('certificate_id', sa.String(length=36), nullable=True),
        sa.Column('certificate_issued_at', sa.DateTime(), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['reviewed_by'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['certificate_id'], ['certificates.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_volunteer_requests_email_status', 'volunteer_requests', ['email', 'status'], unique=False)
    op.create_index('ix_volunteer_requests_created', 'volunteer_requests', ['created_at'], unique=False)

    # contact_messages
    op.create_table('contact_messages',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('subject', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('inquiry_type', enum('inquirytype'), nullable=False),
        sa.Column('status', enum('contactstatus'), nullable=False),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('resolved_by', sa.String(length=36), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        *timestamps(),
        sa.ForeignKeyConstraint(['resolved_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_contact_messages_email', 'contact_messages', ['email'], unique=False)
    op.create_index('ix_contact_messages_status_created', 'contact_messages', ['status', 'created_at'], unique=False)


def downgrade() -> None:
    for table in [
        'contact_messages', 'volunteer_requests', 'certificates', 'surveys', 'transactions',
        'targets', 'commission_logs', 'receipts', 'donations', 'programs', 'referral_codes', 'users',
    ]:
        op.drop_table(table)

    bind = op.get_bind()
    for name in ENUMS:
        sa.Enum(name=name).drop(bind, checkfirst=True)
