from .service import OtpManager, generate_code, normalize_phone

__all__ = ["OtpManager", "generate_code", "normalize_phone"]
