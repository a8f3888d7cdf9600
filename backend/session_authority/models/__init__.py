from session_authority.models.refresh_token import RefreshToken
from session_authority.models.user import User

__all__ = ["RefreshToken", "User"]
