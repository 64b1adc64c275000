from .dto import OtpLoginIn, VerifiedIdentity
from .service import AuthService

__all__ = ["AuthService", "OtpLoginIn", "VerifiedIdentity"]
