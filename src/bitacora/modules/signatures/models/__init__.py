from .user_signature import UserSignature

__all__ = ['UserSignature']
