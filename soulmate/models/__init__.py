from .user import User, SubscriptionTier
from .match import Match, MatchAction, MatchStatus, MatchBand
from .safety_report import SafetyReport, ReportReason, ReportStatus
