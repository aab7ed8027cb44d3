from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

# Tells FastAPI where to look for the token. The service never issues tokens
# itself; debug tokens are configured through AB_TOKENS.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


def require_auth_token(request: Request, token: Annotated[str, Depends(oauth2_scheme)]):
    """
    Dependency guarding the debug routes with a static bearer token.

    If no token is provided, OAuth2PasswordBearer automatically raises
    a 401 Unauthorized exception.
    """
    if not token or token not in request.app.state.settings.TOKENS:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return token
