import json
import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import boto3
import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import HTTPException
from moto import mock_aws

from app.core.config import Settings, build_settings
from app.core.logging_config import HumanFormatter, JsonFormatter
from app.core.security import TokenVerifier

ISSUER = "https://clerk.example.com"


# ==================== Config ====================

def test_settings_defaults():
    settings = Settings()

    assert settings.API_V1_STR == "/api/v1"
    assert settings.ALLOCATION_RENORMALIZE is True
    assert settings.ALLOCATION_TOLERANCE == 0.5


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("TABLE_PREFIX", "staging_")
    monkeypatch.setenv("ALLOCATION_RENORMALIZE", "false")

    settings = build_settings()

    assert settings.TABLE_PREFIX == "staging_"
    assert settings.ALLOCATION_RENORMALIZE is False


def test_secrets_manager_values_override_environment(monkeypatch):
    monkeypatch.setenv("SECRETS_NAME", "tharawat/api")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")

    with mock_aws():
        client = boto3.client("secretsmanager", region_name="us-east-1")
        client.create_secret(
            Name="tharawat/api",
            SecretString=json.dumps({
                "GEMINI_API_KEY": "from-secret",
                "CLERK_ISSUER": ISSUER,
                "UNRELATED": "ignored",
            }),
        )
        settings = build_settings()

    assert settings.GEMINI_API_KEY == "from-secret"
    assert settings.CLERK_ISSUER == ISSUER
    assert not hasattr(settings, "UNRELATED")


# ==================== Security ====================

@pytest.fixture
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def verifier(signing_key):
    verifier = TokenVerifier(jwks_url=f"{ISSUER}/.well-known/jwks.json", issuer=ISSUER)
    jwk = MagicMock()
    jwk.key = signing_key.public_key()
    verifier._jwks_client = MagicMock()
    verifier._jwks_client.get_signing_key_from_jwt.return_value = jwk
    return verifier


def _token(signing_key, **overrides):
    claims = {
        "sub": "user_2abc",
        "iss": ISSUER,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
        "email": "user@example.com",
    }
    claims.update(overrides)
    return jwt.encode(claims, signing_key, algorithm="RS256")


def test_decode_valid_token(verifier, signing_key):
    payload = verifier.decode_token(_token(signing_key))

    assert payload["sub"] == "user_2abc"
    assert payload["email"] == "user@example.com"


def test_expired_token_is_rejected(verifier, signing_key):
    token = _token(signing_key, exp=datetime.now(timezone.utc) - timedelta(minutes=1))

    with pytest.raises(HTTPException) as exc_info:
        verifier.decode_token(token)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Token has expired"


def test_wrong_issuer_is_rejected(verifier, signing_key):
    with pytest.raises(HTTPException) as exc_info:
        verifier.decode_token(_token(signing_key, iss="https://evil.example.com"))

    assert exc_info.value.status_code == 401


def test_unknown_signing_key_is_rejected(verifier, signing_key):
    verifier._jwks_client.get_signing_key_from_jwt.side_effect = jwt.PyJWKClientError("no matching key")

    with pytest.raises(HTTPException) as exc_info:
        verifier.decode_token(_token(signing_key))

    assert exc_info.value.status_code == 401


# ==================== Logging ====================

def _record(**extra):
    record = logging.LogRecord(
        name="app.services.valuation_service",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Holding excluded from valuation",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extras():
    output = json.loads(JsonFormatter().format(_record(holding_id="h-1", reason="unknown_ticker")))

    assert output["level"] == "WARNING"
    assert output["logger"] == "app.services.valuation_service"
    assert output["message"] == "Holding excluded from valuation"
    assert output["holding_id"] == "h-1"
    assert output["reason"] == "unknown_ticker"


def test_json_formatter_keeps_arabic_readable():
    output = JsonFormatter().format(_record(name_ar="الرياض"))

    assert "الرياض" in output


def test_human_formatter_strips_package_prefix():
    with patch("sys.stderr") as stderr:
        stderr.isatty.return_value = False
        output = HumanFormatter().format(_record(holding_id="h-1"))

    assert "[services.valuation_service]" in output
    assert "(holding_id=h-1)" in output
