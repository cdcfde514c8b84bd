"""Authentication Middleware"""
from jose import JWTError
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer

from app import config
from app.auth.models import JWTPayload
from app.auth.jwt_verifier import JWTVerifier
from app.auth.permissions_manager import PermissionsManager


# Initialize components
security = HTTPBearer()
jwt_verifier = JWTVerifier(secret=config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)
permissions_manager = PermissionsManager()


async def verify_token(credentials = Depends(security)) -> JWTPayload:
    """
    Verify a back-office JWT and extract payload.

    Expected JWT claims:
    - sub: user_id
    - roles: list of role names (or a single `role` claim)
    - email: optional
    """
    token = credentials.credentials

    try:
        payload = jwt_verifier.verify_and_decode(token)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}"
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing subject"
        )

    roles = payload.get("roles")
    if roles is None:
        roles = [payload["role"]] if payload.get("role") else []

    return JWTPayload(
        sub=str(payload["sub"]),
        email=payload.get("email"),
        roles=roles,
        permissions=permissions_manager.get_permissions_for_roles(roles),
        iat=payload.get("iat"),
        exp=payload.get("exp"),
    )


def check_permission(jwt_payload: JWTPayload, required_permission: str):
    """
    Check if user has required permission.

    Args:
        jwt_payload: JWT payload containing user permissions
        required_permission: Permission string to check

    Raises:
        HTTPException: If user lacks required permission
    """
    if required_permission not in jwt_payload.permissions:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Missing required permission: {required_permission}"
        )
