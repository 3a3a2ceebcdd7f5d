"""User API key service with secure key generation and hashing."""

import secrets
import bcrypt
from typing import Optional, Dict, Any
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from sqlalchemy import text
from app.infra.database import get_db_session


def generate_api_key() -> str:
    """
    Generate a secure random API key.

    Returns:
        A secure random API key string (64 characters, URL-safe)
    """
    return secrets.token_urlsafe(48)


def hash_api_key(api_key: str) -> str:
    """Hash an API key using bcrypt (cost factor 12)."""
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(api_key.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def check_api_key(api_key: str, key_hash: str) -> bool:
    """
    Verify an API key against its hash.

    Returns:
        True if key matches hash, False otherwise (including malformed hashes)
    """
    try:
        return bcrypt.checkpw(api_key.encode('utf-8'), key_hash.encode('utf-8'))
    except ValueError:
        return False


def get_key_prefix(api_key: str) -> str:
    """First 8 characters of the key, stored in clear for lookup."""
    return api_key[:8] if len(api_key) >= 8 else api_key


def create_api_key(
    user_id: str,
    name: Optional[str] = None,
    expires_in_days: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Create a new API key for a dashboard user.

    Returns:
        Dict with the plain text key (only shown once), key id and prefix
    """
    api_key = generate_api_key()
    key_hash = hash_api_key(api_key)
    key_prefix = get_key_prefix(api_key)

    expires_at = None
    if expires_in_days:
        expires_at = datetime.utcnow() + timedelta(days=expires_in_days)

    with get_db_session() as session:
        row = session.execute(
            text("""
                INSERT INTO user_api_keys (user_id, key_hash, key_prefix, name, is_active, expires_at)
                VALUES (:user_id, :key_hash, :key_prefix, :name, TRUE, :expires_at)
                RETURNING id, created_at
            """),
            {
                "user_id": user_id,
                "key_hash": key_hash,
                "key_prefix": key_prefix,
                "name": name,
                "expires_at": expires_at,
            }
        ).fetchone()

    return {
        "api_key": api_key,
        "key_id": str(row.id),
        "key_prefix": key_prefix,
        "name": name,
        "expires_at": expires_at.isoformat() if expires_at else None,
        "created_at": row.created_at.isoformat(),
    }


def verify_and_get_user_id(api_key: str, db: Session) -> Optional[str]:
    """
    Verify an API key and return the associated user id.

    Candidates are narrowed by prefix first because bcrypt checks are slow.
    """
    key_prefix = get_key_prefix(api_key)

    rows = db.execute(
        text("""
            SELECT id, user_id, key_hash
            FROM user_api_keys
            WHERE key_prefix = :key_prefix
              AND is_active = TRUE
              AND (expires_at IS NULL OR expires_at > NOW())
        """),
        {"key_prefix": key_prefix}
    ).fetchall()

    for row in rows:
        if check_api_key(api_key, row.key_hash):
            db.execute(
                text("UPDATE user_api_keys SET last_used_at = NOW() WHERE id = :key_id"),
                {"key_id": row.id}
            )
            db.commit()
            return str(row.user_id)

    return None
