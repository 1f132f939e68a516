# ethdash/adapters/secrets.py
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Protocol

import boto3
from botocore.exceptions import ClientError

# --- Typing helpers ----------------------------------------------------------

class _SecretsManager(Protocol):
    def get_secret_value(self, *, SecretId: str, VersionStage: str | None = None) -> Mapping[str, Any]: ...

def _strip_wrapping_quotes(s: str) -> str:
    s = s.strip()
    if len(s) >= 2 and ((s[0] == s[-1] == '"') or (s[0] == s[-1] == "'")):
        return s[1:-1]
    return s

def _extract_api_key(secret_str: str) -> str:
    """The secret is either ``{"api_key": "..."}`` or the bare key itself."""
    try:
        parsed: Any = json.loads(secret_str)
    except json.JSONDecodeError:
        parsed = secret_str

    if isinstance(parsed, dict):
        v = parsed.get("api_key") # type: ignore  # noqa: PGH003
    else:
        v = parsed
    if not isinstance(v, str) or not _strip_wrapping_quotes(v):
        raise RuntimeError("Secret missing or invalid 'api_key'")  # noqa: TRY003
    return _strip_wrapping_quotes(v)

def load_api_key(secret_name: str, secrets_client: _SecretsManager | None = None) -> str:
    """Read the explorer API key from AWS Secrets Manager (AWSCURRENT stage)."""
    secrets = secrets_client or boto3.client("secretsmanager") # type: ignore  # noqa: PGH003
    try:
        resp = secrets.get_secret_value(SecretId=secret_name, VersionStage="AWSCURRENT") # type: ignore  # noqa: PGH003
    except ClientError as e:
        raise RuntimeError(f"Failed to read secret '{secret_name}': {e}") from e  # noqa: TRY003

    return _extract_api_key(str(resp.get("SecretString") or ""))
