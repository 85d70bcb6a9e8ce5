"""Tests for the Ghost API client with mocked requests."""

import unittest
from unittest.mock import MagicMock, patch

import requests

from ghost_backup.api.client import (
    CLIENT_ID,
    ApiConnectionError,
    AuthenticationError,
    AuthenticationExpiredError,
    GhostApiError,
    GhostClient,
    TokenPair,
    TransferError,
    build_api_root,
)


def make_response(status_code: int = 200, json_data=None, content: bytes = b"") -> MagicMock:
    """Build a mock requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.reason = "Reason"
    response.content = content
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    return response


class TestBuildApiRoot(unittest.TestCase):
    """Tests for API root construction."""

    def test_bare_host_gets_https(self) -> None:
        self.assertEqual(build_api_root("example.com"), "https://example.com/ghost/api/v0.1")

    def test_http_url_kept(self) -> None:
        self.assertEqual(
            build_api_root("http://localhost:2368/"),
            "http://localhost:2368/ghost/api/v0.1",
        )


class TestTokenPair(unittest.TestCase):
    """Tests for TokenPair."""

    def test_repr_hides_tokens(self) -> None:
        """Test tokens do not appear in repr."""
        tokens = TokenPair(access_token="at-secret", refresh_token="rt-secret")

        self.assertNotIn("at-secret", repr(tokens))
        self.assertNotIn("rt-secret", repr(tokens))


class TestGhostClient(unittest.TestCase):
    """Tests for GhostClient requests."""

    def setUp(self) -> None:
        self.session = MagicMock()
        self.client = GhostClient("blog.example.com", session=self.session)

    def test_api_root(self) -> None:
        self.assertEqual(self.client.api_root, "https://blog.example.com/ghost/api/v0.1")

    def test_creates_session_when_none_given(self) -> None:
        """Test that a session is created lazily."""
        client = GhostClient("blog.example.com")

        with patch("ghost_backup.api.client.requests.Session") as mock_session_class:
            session = client._get_session()

        self.assertIs(session, mock_session_class.return_value)
        session.headers.update.assert_called_once_with({"Accept": "application/json"})

    def test_password_grant_success(self) -> None:
        """Test password grant request shape and result."""
        self.session.request.return_value = make_response(
            200, {"access_token": "at-1", "refresh_token": "rt-1", "token_type": "Bearer"}
        )

        tokens = self.client.password_grant("owner@example.com", "hunter2")

        self.assertEqual(tokens.access_token, "at-1")
        self.assertEqual(tokens.refresh_token, "rt-1")
        self.session.request.assert_called_once_with(
            "POST",
            "https://blog.example.com/ghost/api/v0.1/authentication/token",
            params=None,
            data={
                "grant_type": "password",
                "username": "owner@example.com",
                "password": "hunter2",
                "client_id": CLIENT_ID,
            },
        )

    def test_password_grant_rejected(self) -> None:
        """Test a rejected login raises AuthenticationError."""
        self.session.request.return_value = make_response(
            401, {"errors": [{"message": "Your password is incorrect."}]}
        )

        with self.assertRaises(AuthenticationError) as cm:
            self.client.password_grant("owner@example.com", "wrong")

        self.assertEqual(cm.exception.status_code, 401)
        self.assertIn("Your password is incorrect.", str(cm.exception))
        self.assertNotIn("wrong", str(cm.exception))

    def test_password_grant_missing_tokens(self) -> None:
        """Test a success response without tokens is an error."""
        self.session.request.return_value = make_response(200, {"access_token": "at-1"})

        with self.assertRaises(AuthenticationError):
            self.client.password_grant("owner@example.com", "hunter2")

    def test_password_grant_invalid_json(self) -> None:
        """Test a non-JSON success body is an error."""
        self.session.request.return_value = make_response(200)

        with self.assertRaises(AuthenticationError):
            self.client.password_grant("owner@example.com", "hunter2")

    def test_refresh_grant_success(self) -> None:
        """Test refresh grant request shape and result."""
        self.session.request.return_value = make_response(200, {"access_token": "at-2"})

        tokens = self.client.refresh_grant("rt-1")

        self.assertEqual(tokens.access_token, "at-2")
        self.assertIsNone(tokens.refresh_token)
        _, kwargs = self.session.request.call_args
        self.assertEqual(
            kwargs["data"],
            {"grant_type": "refresh_token", "refresh_token": "rt-1", "client_id": CLIENT_ID},
        )

    def test_refresh_grant_rejected(self) -> None:
        """Test rejected refresh tokens raise AuthenticationExpiredError."""
        for status in (400, 401, 403):
            with self.subTest(status=status):
                self.session.request.return_value = make_response(
                    status, {"error": "invalid_grant", "error_description": "Refresh token expired"}
                )

                with self.assertRaises(AuthenticationExpiredError) as cm:
                    self.client.refresh_grant("rt-old")

                self.assertIn("Refresh token expired", str(cm.exception))

    def test_refresh_grant_server_error(self) -> None:
        """Test a server error is not treated as an expired token."""
        self.session.request.return_value = make_response(500)

        with self.assertRaises(GhostApiError) as cm:
            self.client.refresh_grant("rt-1")

        self.assertNotIsInstance(cm.exception, AuthenticationExpiredError)
        self.assertEqual(cm.exception.status_code, 500)

    def test_export_database_success(self) -> None:
        """Test the export body is returned verbatim."""
        body = b'{"db": [{"meta": {"version": "1.0"}}]}'
        self.session.request.return_value = make_response(200, content=body)

        self.assertEqual(self.client.export_database("at-1"), body)
        self.session.request.assert_called_once_with(
            "GET",
            "https://blog.example.com/ghost/api/v0.1/db/",
            params={"access_token": "at-1"},
            data=None,
        )

    def test_export_database_failure(self) -> None:
        """Test a non-success export raises TransferError."""
        self.session.request.return_value = make_response(403)

        with self.assertRaises(TransferError) as cm:
            self.client.export_database("at-1")

        self.assertEqual(cm.exception.status_code, 403)

    def test_connection_error(self) -> None:
        """Test network failures raise ApiConnectionError."""
        self.session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with self.assertRaises(ApiConnectionError):
            self.client.export_database("at-1")

    def test_timeout(self) -> None:
        """Test timeouts raise ApiConnectionError."""
        self.session.request.side_effect = requests.exceptions.Timeout("slow")

        with self.assertRaises(ApiConnectionError) as cm:
            self.client.refresh_grant("rt-1")

        self.assertIn("timed out", str(cm.exception))

    def test_secrets_not_logged(self) -> None:
        """Test that tokens and passwords stay out of log records."""
        self.session.request.return_value = make_response(
            200, {"access_token": "at-secret", "refresh_token": "rt-secret"}
        )

        with self.assertLogs("ghost_backup.api.client", level="DEBUG") as logs:
            self.client.password_grant("owner@example.com", "hunter2")

        joined = "\n".join(logs.output)
        self.assertIn("POST /authentication/token -> 200", joined)
        for secret in ("hunter2", "at-secret", "rt-secret"):
            self.assertNotIn(secret, joined)


if __name__ == "__main__":
    unittest.main()
