"""JWT Token Verification"""
from jose import jwt
from typing import Dict


class JWTVerifier:
    """Handles verification of back-office JWT tokens signed with a shared secret"""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def verify_and_decode(self, token: str) -> Dict:
        """
        Verify JWT token signature and decode payload

        Raises:
            JWTError: Token is invalid or expired
        """
        return jwt.decode(
            token,
            self.secret,
            algorithms=[self.algorithm],
            options={
                "verify_aud": False  # tokens are issued without audience
            },
        )
