"""
Database Package - SQLAlchemy
=============================

Persistence layer for cases, hearings, notifications and payments.
"""

from .models import (
    Base,
    User, Profile, UserWallet, WalletTransaction,
    Case, Evidence, CaseMilestone, CaseStrengthAnalysis, CaseStrengthSuggestion,
    LegalAct, LegalSection, CaseAssistantLog, AIUsageLog,
    CourtSession, HearingTranscript,
    Notification,
    Payment, PromoCode, PromoCodeUsage, Invoice,
    UserRole, CaseStatus, EvidenceParty, SessionStatus, LawyerType,
    NotificationType, PaymentStatus, PaymentGateway, PaymentType, DiscountType,
)
from .session import get_db, get_db_session, init_db, get_engine, reset_engine

__all__ = [
    # Base
    "Base",
    # Users
    "User", "Profile", "UserWallet", "WalletTransaction",
    # Cases
    "Case", "Evidence", "CaseMilestone", "CaseStrengthAnalysis", "CaseStrengthSuggestion",
    # Legal knowledge & audit
    "LegalAct", "LegalSection", "CaseAssistantLog", "AIUsageLog",
    # Hearings
    "CourtSession", "HearingTranscript",
    "Notification",
    # Payments
    "Payment", "PromoCode", "PromoCodeUsage", "Invoice",
    # Enums
    "UserRole", "CaseStatus", "EvidenceParty", "SessionStatus", "LawyerType",
    "NotificationType", "PaymentStatus", "PaymentGateway", "PaymentType", "DiscountType",
    # Session
    "get_db", "get_db_session", "init_db", "get_engine", "reset_engine",
]
