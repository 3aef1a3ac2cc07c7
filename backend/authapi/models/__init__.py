from authapi.models.user import User
from authapi.models.refresh_token import RefreshToken

__all__ = [
    "User",
    "RefreshToken",
]
