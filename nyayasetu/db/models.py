"""
SQLAlchemy Models for Database
==============================

Schema for the virtual courtroom:
- Users, profiles and wallets
- Cases, evidence and procedural milestones
- Legal knowledge (acts and sections) used by the case assistant
- Court sessions with append-only hearing transcripts
- Notifications
- Payments, wallet transactions, promo codes and invoices
- Audit logs for AI calls

Supports both PostgreSQL and SQLite via SQLAlchemy.
"""

import enum
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, DateTime, Date, Enum, ForeignKey,
    UniqueConstraint, Index, JSON
)
from sqlalchemy.orm import relationship, declarative_base
import uuid

# Use JSON for cross-database compatibility (works with both PostgreSQL and SQLite)
JSONB = JSON

Base = declarative_base()


def generate_uuid():
    return str(uuid.uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class UserRole(str, enum.Enum):
    """Application role"""
    ADMIN = "admin"
    USER = "user"


class CaseStatus(str, enum.Enum):
    """Case lifecycle status"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    ADJOURNED = "adjourned"
    VERDICT_DELIVERED = "verdict_delivered"
    CLOSED = "closed"


class EvidenceParty(str, enum.Enum):
    """Which side provided the evidence"""
    PROSECUTION = "prosecution"
    DEFENCE = "defence"
    COURT = "court"
    POLICE = "police"


class SessionStatus(str, enum.Enum):
    """Court session status"""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    ADJOURNED = "adjourned"
    COMPLETED = "completed"


class LawyerType(str, enum.Enum):
    """Who argues for the user in a session"""
    AI_LAWYER = "ai_lawyer"
    ACTUAL_LAWYER = "actual_lawyer"


class NotificationType(str, enum.Enum):
    INFO = "info"
    HAND_RAISE = "hand_raise"
    SESSION_STATUS = "session_status"
    DATE_REQUEST = "date_request"
    WITNESS_SUMMON = "witness_summon"
    VERIFICATION = "verification"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentGateway(str, enum.Enum):
    RAZORPAY = "razorpay"
    PHONEPE = "phonepe"
    WALLET = "wallet"


class PaymentType(str, enum.Enum):
    WALLET_TOPUP = "wallet_topup"
    HEARING_PAYMENT = "hearing_payment"
    ADDON_PAYMENT = "addon_payment"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


# =============================================================================
# USERS
# =============================================================================

class User(Base):
    """Registered user"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    email_verified = Column(Boolean, default=False)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    extra_data = Column(JSONB, default=dict)  # Note: 'metadata' is reserved by SQLAlchemy

    # Relationships
    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    wallet = relationship("UserWallet", back_populates="user", uselist=False, cascade="all, delete-orphan")
    cases = relationship("Case", back_populates="owner", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    display_name = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    preferred_language = Column(String(20), default="en")
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="profile")


class UserWallet(Base):
    __tablename__ = "user_wallets"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    balance = Column(Float, default=0.0, nullable=False)
    currency = Column(String(3), default="INR")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="wallet")
    transactions = relationship("WalletTransaction", back_populates="wallet", cascade="all, delete-orphan")


class WalletTransaction(Base):
    """Signed wallet movement; positive amounts are credits"""
    __tablename__ = "wallet_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    wallet_id = Column(String(36), ForeignKey("user_wallets.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Float, nullable=False)
    transaction_type = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    reference_id = Column(String(36), nullable=True)
    reference_type = Column(String(50), nullable=True)
    balance_after = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    wallet = relationship("UserWallet", back_populates="transactions")


# =============================================================================
# CASES
# =============================================================================

class Case(Base):
    """Court case filed by a user"""
    __tablename__ = "cases"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    case_number = Column(String(100), nullable=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    plaintiff = Column(String(255), nullable=True)
    defendant = Column(String(255), nullable=True)
    category = Column(String(100), default="Custom Case")
    status = Column(Enum(CaseStatus), default=CaseStatus.PENDING, nullable=False)
    user_role = Column(String(50), nullable=True)  # court_party_role of the filing user
    next_hearing_date = Column(Date, nullable=True)
    verdict = Column(Text, nullable=True)
    state = Column(String(100), nullable=True)
    court_level = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_cases_user_created", "user_id", "created_at"),
    )

    # Relationships
    owner = relationship("User", back_populates="cases")
    evidence = relationship("Evidence", back_populates="case", cascade="all, delete-orphan")
    milestones = relationship("CaseMilestone", back_populates="case", cascade="all, delete-orphan")
    sessions = relationship("CourtSession", back_populates="case", cascade="all, delete-orphan")


class Evidence(Base):
    """Evidence file attached to a case"""
    __tablename__ = "case_evidence"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    case_id = Column(String(36), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False)
    file_name = Column(String(500), nullable=False)
    file_type = Column(String(255), nullable=True)
    file_url = Column(String(1000), nullable=True)
    file_size = Column(Integer, nullable=True)
    provided_by = Column(Enum(EvidenceParty), nullable=False)
    description = Column(Text, nullable=True)
    uploaded_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    ai_analysis = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    case = relationship("Case", back_populates="evidence")


class CaseMilestone(Base):
    """Procedural milestone (FIR filed, chargesheet, ...) and whether it is present"""
    __tablename__ = "case_milestones"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    case_id = Column(String(36), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False)
    milestone_name = Column(String(255), nullable=False)
    status = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    case = relationship("Case", back_populates="milestones")


class CaseStrengthAnalysis(Base):
    """Latest evidence-based strength score of a case (one row per case)"""
    __tablename__ = "case_strength_analyses"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    case_id = Column(String(36), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False, unique=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    strength_percentage = Column(Float, nullable=False, default=0.0)
    analysis_data = Column(JSONB, default=dict)
    analyzed_documents = Column(JSONB, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class CaseStrengthSuggestion(Base):
    __tablename__ = "case_strength_suggestions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    case_id = Column(String(36), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    suggestion_type = Column(String(50), nullable=False)  # missing_document | legal_strategy
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    impact_percentage = Column(Float, default=0.0)
    priority = Column(String(10), default="medium")
    document_category = Column(String(50), nullable=True)
    estimated_strength_after = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


# =============================================================================
# LEGAL KNOWLEDGE
# =============================================================================

class LegalAct(Base):
    __tablename__ = "legal_acts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    year = Column(Integer, nullable=True)

    sections = relationship("LegalSection", back_populates="act", cascade="all, delete-orphan")


class LegalSection(Base):
    __tablename__ = "legal_sections"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    act_id = Column(String(36), ForeignKey("legal_acts.id", ondelete="CASCADE"), nullable=False)
    section_number = Column(String(50), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)

    act = relationship("LegalAct", back_populates="sections")


class CaseAssistantLog(Base):
    """Audit trail for case assistant queries"""
    __tablename__ = "case_assistant_logs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), nullable=True)
    case_id = Column(String(36), ForeignKey("cases.id", ondelete="CASCADE"), nullable=True)
    user_input = Column(Text, nullable=False)
    retrieved_documents = Column(JSONB, default=list)
    ai_response = Column(Text, nullable=True)
    sources = Column(JSONB, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)


class AIUsageLog(Base):
    __tablename__ = "ai_usage_logs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), nullable=True)
    action = Column(String(100), nullable=False)
    model_used = Column(String(100), nullable=True)
    tokens_input = Column(Integer, default=0)
    tokens_output = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)


# =============================================================================
# COURT SESSIONS
# =============================================================================

class CourtSession(Base):
    """Live hearing for a case"""
    __tablename__ = "court_sessions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    case_id = Column(String(36), ForeignKey("cases.id", ondelete="CASCADE"), nullable=False)
    court_code = Column(String(8), nullable=False, unique=True)
    status = Column(Enum(SessionStatus), default=SessionStatus.SCHEDULED, nullable=False)
    lawyer_type = Column(Enum(LawyerType), default=LawyerType.AI_LAWYER, nullable=False)
    actual_lawyer_id = Column(String(36), nullable=True)
    actual_lawyer_email = Column(String(255), nullable=True)
    actual_lawyer_otp_hash = Column(String(64), nullable=True)
    actual_lawyer_otp_expires_at = Column(DateTime, nullable=True)
    actual_lawyer_verified_at = Column(DateTime, nullable=True)
    total_fee = Column(Float, nullable=True)
    payment_status = Column(String(20), default="pending")
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    case = relationship("Case", back_populates="sessions")
    transcripts = relationship(
        "HearingTranscript",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="HearingTranscript.sequence_number",
    )


class HearingTranscript(Base):
    """Append-only, ordered log of what was said in a session"""
    __tablename__ = "hearing_transcripts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    session_id = Column(String(36), ForeignKey("court_sessions.id", ondelete="CASCADE"), nullable=False)
    speaker_name = Column(String(255), nullable=True)
    speaker_role = Column(String(50), nullable=False)
    message = Column(Text, nullable=False)
    is_ai_generated = Column(Boolean, default=False)
    sequence_number = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("session_id", "sequence_number", name="uq_transcript_session_seq"),
    )

    session = relationship("CourtSession", back_populates="transcripts")


# =============================================================================
# NOTIFICATIONS
# =============================================================================

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(Enum(NotificationType), default=NotificationType.INFO, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    related_case_id = Column(String(36), nullable=True)
    related_session_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

    user = relationship("User", back_populates="notifications")


# =============================================================================
# PAYMENTS
# =============================================================================

class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), default="INR")
    gateway = Column(Enum(PaymentGateway), nullable=False)
    payment_type = Column(Enum(PaymentType), nullable=True)
    status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    gateway_order_id = Column(String(100), nullable=True, unique=True)
    gateway_payment_id = Column(String(100), nullable=True)
    gateway_transaction_id = Column(String(100), nullable=True)
    failure_reason = Column(Text, nullable=True)
    hearing_session_id = Column(String(36), nullable=True)
    case_id = Column(String(36), nullable=True)
    extra_data = Column(JSONB, default=dict)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class PromoCode(Base):
    __tablename__ = "promo_codes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    code = Column(String(50), nullable=False, unique=True)
    discount_type = Column(Enum(DiscountType), nullable=False)
    discount_value = Column(Float, nullable=False)
    max_discount_amount = Column(Float, nullable=True)
    min_purchase_amount = Column(Float, default=0.0)
    max_uses = Column(Integer, nullable=True)
    used_count = Column(Integer, default=0)
    valid_from = Column(DateTime, default=datetime.utcnow)
    valid_until = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True)


class PromoCodeUsage(Base):
    __tablename__ = "promo_code_usage"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    promo_code_id = Column(String(36), ForeignKey("promo_codes.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    payment_id = Column(String(36), ForeignKey("payments.id", ondelete="CASCADE"), nullable=False)
    discount_amount = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    invoice_number = Column(String(50), nullable=False, unique=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    payment_id = Column(String(36), ForeignKey("payments.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Float, nullable=False)
    total_amount = Column(Float, nullable=False)
    status = Column(String(20), default="generated")
    invoice_data = Column(JSONB, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
