"""Request authentication: HTTP Basic against an htpasswd file, or Cognito Bearer tokens."""

from pathlib import Path
from typing import Dict, Optional, Union

import bcrypt
import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBasic, HTTPBasicCredentials, HTTPBearer

from common.logging_config import get_logger
from fragments import config
from fragments.exceptions import ConfigurationError, UnauthorizedError
from fragments.hashing import resolve_owner_id

logger = get_logger(__name__)

basic_security = HTTPBasic(auto_error=False)
bearer_security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password to hash

    Returns:
        Bcrypt hash of the password
    """
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Args:
        password: Plain text password to verify
        password_hash: Bcrypt hash to verify against ($2a$, $2b$ or $2y$)

    Returns:
        True if password matches hash, False otherwise
    """
    password_bytes = password.encode('utf-8')
    hash_bytes = password_hash.encode('utf-8')
    try:
        return bcrypt.checkpw(password_bytes, hash_bytes)
    except ValueError:
        logger.warning("Unrecognised password hash format in htpasswd file")
        return False


class HtpasswdAuthenticator:
    """Verifies Basic credentials against ``user:hash`` lines."""

    scheme = "Basic"

    def __init__(self, users: Dict[str, str]):
        self.users = users

    @classmethod
    def from_file(cls, path: Optional[str] = None) -> "HtpasswdAuthenticator":
        """
        Load users from an htpasswd file.

        Args:
            path: File path, defaults to HTPASSWD_FILE

        Raises:
            ConfigurationError: If no path is configured or the file is missing
        """
        path = path or config.HTPASSWD_FILE
        if not path:
            raise ConfigurationError("missing expected env var: HTPASSWD_FILE")

        htpasswd = Path(path)
        if not htpasswd.is_file():
            raise ConfigurationError(f"htpasswd file not found: {path}")

        users = {}
        for line in htpasswd.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#") or ":" not in line:
                continue
            username, password_hash = line.split(":", 1)
            users[username] = password_hash

        logger.info(f"Using HTTP Basic Auth with {len(users)} users from {htpasswd.name}")
        return cls(users)

    def authenticate(self, username: str, password: str) -> bool:
        password_hash = self.users.get(username)
        if password_hash is None:
            return False
        return verify_password(password, password_hash)

    def identify(
        self,
        basic: Optional[HTTPBasicCredentials],
        bearer: Optional[HTTPAuthorizationCredentials],
    ) -> Optional[dict]:
        if basic is None:
            return None
        if not self.authenticate(basic.username, basic.password):
            logger.warning("Invalid Basic credentials")
            return None
        return {"username": basic.username}


class CognitoAuthenticator:
    """
    Verifies Cognito identity tokens sent as Bearer credentials.

    Signing keys come from the user pool's JWKS endpoint and are cached by
    ``jwt.PyJWKClient``. A token is accepted only if it is signed with RS256,
    unexpired, issued by the pool, addressed to the app client and is an id
    token (``token_use == "id"``).
    """

    scheme = "Bearer"

    def __init__(self, pool_id: str, client_id: str, jwks_client: Optional[jwt.PyJWKClient] = None):
        self.pool_id = pool_id
        self.client_id = client_id
        region = pool_id.split("_")[0]
        self.issuer = f"https://cognito-idp.{region}.amazonaws.com/{pool_id}"
        self.jwks_client = jwks_client or jwt.PyJWKClient(
            f"{self.issuer}/.well-known/jwks.json",
            cache_jwk_set=True,
            lifespan=config.JWKS_CACHE_SECONDS,
        )
        logger.info(f"Using AWS Cognito for auth [pool_id={pool_id}]")

    def verify(self, token: str) -> Optional[dict]:
        """
        Verify an id token.

        Returns:
            The token claims, or None if the token is not acceptable
        """
        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(token)
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.client_id,
                issuer=self.issuer,
                options={"require": ["exp", "iss", "aud"]},
            )
        except jwt.PyJWTError as e:
            logger.warning(f"Could not verify token: {e}")
            return None

        if claims.get("token_use") != "id":
            logger.warning(f"Rejected token with token_use={claims.get('token_use')!r}")
            return None

        logger.debug(f"Verified user token [sub={claims.get('sub')}]")
        return claims

    def identify(
        self,
        basic: Optional[HTTPBasicCredentials],
        bearer: Optional[HTTPAuthorizationCredentials],
    ) -> Optional[dict]:
        if bearer is None:
            return None
        return self.verify(bearer.credentials)


def create_authenticator() -> Union[HtpasswdAuthenticator, CognitoAuthenticator]:
    """
    Pick the auth strategy from the environment.

    Cognito is used when AWS_COGNITO_POOL_ID and AWS_COGNITO_CLIENT_ID are set,
    HTTP Basic when HTPASSWD_FILE is set.

    Raises:
        ConfigurationError: If both or neither strategy is configured, or Cognito only partly
    """
    use_cognito = bool(config.AWS_COGNITO_POOL_ID or config.AWS_COGNITO_CLIENT_ID)

    if use_cognito and config.HTPASSWD_FILE:
        raise ConfigurationError("env contains configuration for both AWS Cognito and HTTP Basic Auth")

    if use_cognito:
        if not (config.AWS_COGNITO_POOL_ID and config.AWS_COGNITO_CLIENT_ID):
            raise ConfigurationError("missing expected env vars: AWS_COGNITO_POOL_ID, AWS_COGNITO_CLIENT_ID")
        return CognitoAuthenticator(config.AWS_COGNITO_POOL_ID, config.AWS_COGNITO_CLIENT_ID)

    if config.HTPASSWD_FILE:
        return HtpasswdAuthenticator.from_file(config.HTPASSWD_FILE)

    raise ConfigurationError("missing env vars: no authorization configuration found")


def get_current_user(
    request: Request,
    basic: Optional[HTTPBasicCredentials] = Depends(basic_security),
    bearer: Optional[HTTPAuthorizationCredentials] = Depends(bearer_security),
) -> str:
    """
    FastAPI dependency that authenticates the request and returns the hashed owner id.

    A plain ``def`` so bcrypt and token checks run in the threadpool.

    Raises:
        UnauthorizedError: If credentials are missing, invalid, or carry no identifier
    """
    if basic is None and bearer is None:
        logger.warning(f"Missing credentials for {request.url.path}")
        raise UnauthorizedError("unauthorized")

    authenticator = request.app.state.authenticator
    principal = authenticator.identify(basic, bearer)
    if principal is None:
        logger.warning(f"Invalid credentials for {request.url.path}")
        raise UnauthorizedError("unauthorized")

    owner_id = resolve_owner_id(principal)
    if owner_id is None:
        raise UnauthorizedError("unauthorized")

    request.state.user_id = owner_id
    logger.debug(f"Authorized user [owner_id={owner_id}]")
    return owner_id
