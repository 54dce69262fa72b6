"""
Unit tests for security module
"""

import pytest
from datetime import timedelta
from jose import jwt

from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.security import (
    RESTRICTED_MESSAGE,
    display_name_from_claims,
    is_allowed_email,
    security_manager,
    viewer_from_token,
)


@pytest.mark.unit
class TestIdentityGate:
    """School-email restriction and display names"""

    @pytest.mark.parametrize("email,allowed", [
        ("bob@northwestern.edu", True),
        ("BOB@U.NORTHWESTERN.EDU", True),
        ("bob@gmail.com", False),
        ("bob@edu.com", False),
        ("", False),
        (None, False),
    ])
    def test_is_allowed_email(self, email, allowed):
        assert is_allowed_email(email) is allowed

    def test_display_name_prefers_provider_name(self):
        assert display_name_from_claims({"name": "Bob Smith", "email": "bob@nu.edu"}) == "Bob Smith"

    def test_display_name_falls_back_to_email(self):
        assert display_name_from_claims({"name": "  ", "email": "bsmith@nu.edu"}) == "bsmith"

    def test_display_name_last_resort(self):
        assert display_name_from_claims({}) == "User"


@pytest.mark.unit
class TestJWTTokens:
    """Test JWT token functionality"""

    @pytest.mark.asyncio
    async def test_decode_valid_token(self):
        token = security_manager.create_access_token({"sub": "uid-bob", "email": "bob@nu.edu"})
        decoded = await security_manager.decode_token(token)

        assert decoded["sub"] == "uid-bob"
        assert decoded["type"] == "access"

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self):
        token = security_manager.create_access_token(
            {"sub": "uid-bob"}, expires_delta=timedelta(seconds=-1)
        )
        with pytest.raises(AuthenticationError):
            await security_manager.decode_token(token)

    @pytest.mark.asyncio
    async def test_foreign_signature_rejected(self):
        token = jwt.encode({"sub": "uid-bob"}, "another-secret-key-of-sufficient-length", algorithm="HS256")
        with pytest.raises(AuthenticationError):
            await security_manager.decode_token(token)


@pytest.mark.unit
class TestViewerFromToken:

    @pytest.mark.asyncio
    async def test_school_account_becomes_viewer(self):
        token = security_manager.create_access_token(
            {"sub": "uid-bob", "name": "Bob", "email": "bob@northwestern.edu"}
        )
        viewer = await viewer_from_token(token)

        assert viewer.id == "uid-bob"
        assert viewer.name == "Bob"

    @pytest.mark.asyncio
    async def test_non_school_account_is_restricted(self):
        token = security_manager.create_access_token(
            {"sub": "uid-eve", "name": "Eve", "email": "eve@gmail.com"}
        )
        with pytest.raises(AuthorizationError) as exc_info:
            await viewer_from_token(token)
        assert exc_info.value.message == RESTRICTED_MESSAGE

    @pytest.mark.asyncio
    async def test_missing_subject_rejected(self):
        token = security_manager.create_access_token({"email": "bob@northwestern.edu"})
        with pytest.raises(AuthenticationError):
            await viewer_from_token(token)
