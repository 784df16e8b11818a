"""
Tests for the JWT endpoints.

Related files:
    - urls.py: TokenObtainPairView / TokenRefreshView routes
"""

from django.urls import reverse

from authentication.tests.factories import UserFactory


class TestTokenObtain:
    """Tests for POST /api/v1/auth/token/."""

    def test_returns_token_pair_for_valid_credentials(self, db, api_client):
        """
        Given an active user
        When they post their email and password
        Then an access and refresh token are returned
        """
        # Arrange
        user = UserFactory(password="CorrectHorse1!")

        # Act
        response = api_client.post(
            reverse("authentication:token-obtain"),
            {"email": user.email, "password": "CorrectHorse1!"},
            format="json",
        )

        # Assert
        assert response.status_code == 200
        assert "access" in response.data
        assert "refresh" in response.data

    def test_rejects_wrong_password(self, db, api_client):
        """
        Given an active user
        When they post a wrong password
        Then 401 is returned
        """
        user = UserFactory(password="CorrectHorse1!")

        response = api_client.post(
            reverse("authentication:token-obtain"),
            {"email": user.email, "password": "wrong"},
            format="json",
        )

        assert response.status_code == 401

    def test_access_token_authenticates_payment_endpoints(self, db, api_client):
        """
        Given a freshly issued access token
        When it is sent as a Bearer token to a payments endpoint
        Then the request is authenticated (validation runs instead of 401)
        """
        # Arrange
        user = UserFactory(password="CorrectHorse1!")
        tokens = api_client.post(
            reverse("authentication:token-obtain"),
            {"email": user.email, "password": "CorrectHorse1!"},
            format="json",
        ).data

        # Act
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
        response = api_client.post(
            reverse("payments:virtual_attendance_intent"), {}, format="json"
        )

        # Assert: authenticated, but the body is missing watchPartyId
        assert response.status_code == 400
