import base64
import json
import logging
import time

import httpx
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import FIREBASE_PROJECT_ID
from .database import get_db
from .errors import AuthError, PersistenceError, PodbookError
from .models import Host
from .security_middleware import set_rls_context

logger = logging.getLogger(__name__)

# auto_error is off so a missing header surfaces as our own 401
security = HTTPBearer(auto_error=False)

GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

# Cache for Google's public keys
_cached_keys = None


async def get_google_public_keys():
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys:
        logger.debug("✅ Using cached Google public keys")
        return _cached_keys

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(GOOGLE_CERTS_URL)
            if response.status_code == 200:
                _cached_keys = response.json()
                logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
                return _cached_keys
            logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"❌ Error fetching Google public keys: {str(e)}")
    return None


def _b64decode(segment: str) -> bytes:
    padding_needed = -len(segment) % 4
    return base64.urlsafe_b64decode(segment + "=" * padding_needed)


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token.

    The RS256 signature is checked against Google's published certificates,
    then the audience, issuer, expiry and issue time claims.
    """
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise AuthError("Authentication is not configured")

    parts = token.split(".")
    if len(parts) != 3:
        logger.error("❌ Invalid token format: wrong number of parts")
        raise AuthError("Invalid token format")

    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64decode(header_b64))
    except ValueError as e:
        logger.error(f"❌ Failed to decode token header: {str(e)}")
        raise AuthError("Invalid token header") from e

    kid = header.get("kid")
    alg = header.get("alg")

    if alg != "RS256":
        logger.error(f"❌ Invalid token algorithm: {alg}")
        raise AuthError("Invalid token algorithm")

    if not kid:
        logger.error("❌ Token missing key ID")
        raise AuthError("Token missing key ID")

    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        logger.warning(f"⚠️ Key ID {kid} not found in public keys, invalidating cache and retrying")
        global _cached_keys
        _cached_keys = None
        public_keys = await get_google_public_keys()
        if not public_keys or kid not in public_keys:
            logger.error(f"❌ Key ID {kid} not found in public keys after retry")
            raise AuthError("Unable to verify token signature")

    cert = load_pem_x509_certificate(public_keys[kid].encode(), default_backend())
    public_key = cert.public_key()

    try:
        signature = _b64decode(signature_b64)
        public_key.verify(
            signature, f"{header_b64}.{payload_b64}".encode(), padding.PKCS1v15(), hashes.SHA256()
        )
        logger.debug("✅ Token signature verified successfully")
    except Exception as e:
        logger.error(f"❌ Token signature verification failed: {str(e)}")
        raise AuthError("Invalid token signature") from e

    try:
        decoded_payload = json.loads(_b64decode(payload_b64))
    except ValueError as e:
        raise AuthError("Invalid token payload") from e

    if decoded_payload.get("aud") != FIREBASE_PROJECT_ID:
        logger.error("❌ Token audience mismatch")
        raise AuthError("Invalid token audience")

    if decoded_payload.get("iss") != f"https://securetoken.google.com/{FIREBASE_PROJECT_ID}":
        logger.error("❌ Token issuer mismatch")
        raise AuthError("Invalid token issuer")

    now = time.time()
    if decoded_payload.get("exp", 0) < now:
        raise AuthError("Token has expired. Please refresh your session.")

    # Allow 60 seconds clock skew
    if decoded_payload.get("iat", 0) > now + 60:
        logger.warning("⚠️ Token issued in the future")
        raise AuthError("Invalid token")

    if "auth_time" not in decoded_payload:
        raise AuthError("Invalid token claims")

    logger.debug(f"✅ Token verified for user: {decoded_payload.get('email')}")
    return decoded_payload


def split_name(name: str) -> tuple:
    """Split a provider display name into first and last name"""
    parts = (name or "").strip().split(None, 1)
    if not parts:
        return None, None
    if len(parts) == 1:
        return parts[0], None
    return parts[0], parts[1]


def find_or_create_host(db: Session, claims: dict) -> Host:
    """Resolve the Host row for verified token claims, creating it on first sign-in"""
    firebase_uid = claims.get("sub") or claims.get("user_id") or claims.get("uid")
    email = (claims.get("email") or "").lower()

    if not firebase_uid:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(claims.keys())}")
        raise AuthError("Invalid token claims")

    host = db.query(Host).filter(Host.firebase_uid == firebase_uid).first()
    if host:
        return host

    if email:
        host = db.query(Host).filter(Host.email == email).first()
        if host:
            # Same person signing in with a different provider
            logger.info(f"🔄 Migrating host {email} to Firebase UID {firebase_uid}")
            host.firebase_uid = firebase_uid
            try:
                db.commit()
                db.refresh(host)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"❌ Failed to migrate host: {str(e)}")
                raise PersistenceError("Failed to update host account") from e
            return host

    first_name, last_name = split_name(claims.get("name", ""))
    logger.info(f"🆕 Creating new host: {email}")
    host = Host(firebase_uid=firebase_uid, email=email, first_name=first_name, last_name=last_name)
    db.add(host)
    try:
        db.commit()
        db.refresh(host)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Failed to create host {email}: {str(e)}")
        raise PersistenceError("Failed to create host account") from e

    logger.info(f"✅ New host created: {host.email}")
    return host


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Host:
    """Get the current host from the Firebase token in the Authorization header"""
    if not credentials or not credentials.credentials:
        raise AuthError(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )

    try:
        claims = await verify_firebase_token(credentials.credentials)
        host = find_or_create_host(db, claims)
    except PodbookError:
        raise
    except Exception as e:
        logger.error(f"❌ Authentication failed: {str(e)}")
        raise AuthError("Authentication failed") from e

    set_rls_context(db, host.id)
    logger.debug(f"✅ Host authenticated: {host.email}")
    return host
