"""Bearer-token verification for the external identity provider.

Accounts, sign-in and token issuance live with the identity provider. This
backend only verifies the HS256 access tokens it issues.

Rules
-----
- NO hardcoded secrets in production: all from environment variables
- Audience is checked only when ``IDENTITY_JWT_AUDIENCE`` is set
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from jose import JWTError, jwt

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


def get_jwt_secret() -> str:
    return os.getenv("IDENTITY_JWT_SECRET", "trial-feasibility-dev-secret-change-in-production")


def get_jwt_audience() -> Optional[str]:
    return os.getenv("IDENTITY_JWT_AUDIENCE", "").strip() or None


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT. Returns payload dict or None."""
    audience = get_jwt_audience()
    try:
        return jwt.decode(
            token,
            get_jwt_secret(),
            algorithms=[JWT_ALGORITHM],
            audience=audience,
            options={"verify_aud": audience is not None},
        )
    except JWTError as exc:
        logger.info("Rejected access token: %s", exc)
        return None
