"""AWS Secrets Manager integration."""

import json
from typing import Dict, Any, Optional
import boto3
from botocore.exceptions import ClientError
import structlog

from spapi_oauth.config import Settings, settings as default_settings

logger = structlog.get_logger(__name__)


class SecretsManager:
    """Manager for AWS Secrets Manager."""

    def __init__(self, settings: Optional[Settings] = None, client=None):
        """Initialize secrets manager client."""
        self.settings = settings or default_settings

        if client is not None:
            self.client = client
        elif self.settings.secrets_manager_enabled:
            self.client = boto3.client(
                "secretsmanager",
                region_name=self.settings.aws_region,
                aws_access_key_id=self.settings.aws_access_key_id,
                aws_secret_access_key=self.settings.aws_secret_access_key,
            )
        else:
            self.client = None

    def get_secret(self, secret_arn: str) -> Dict[str, Any]:
        """
        Retrieve secret from AWS Secrets Manager.

        Args:
            secret_arn: ARN of the secret

        Returns:
            Secret data as dict

        Raises:
            ValueError: If the secret is missing or access is denied
        """
        if not self.client:
            raise ValueError("Secrets Manager is not enabled")

        try:
            logger.info("retrieving_secret", arn=secret_arn)

            response = self.client.get_secret_value(SecretId=secret_arn)
            secret_data = json.loads(response["SecretString"])

            logger.info("secret_retrieved", arn=secret_arn)
            return secret_data

        except ClientError as e:
            error_code = e.response["Error"]["Code"]
            logger.error("secret_retrieval_failed", arn=secret_arn, error_code=error_code)

            if error_code == "ResourceNotFoundException":
                raise ValueError(f"Secret not found: {secret_arn}")
            elif error_code == "AccessDeniedException":
                raise ValueError(f"Access denied to secret: {secret_arn}")
            else:
                raise

    def get_lwa_credentials(self) -> Optional[Dict[str, str]]:
        """
        Get LWA credentials from Secrets Manager.

        Returns:
            Dict with client_id and client_secret, or None if not enabled

        Raises:
            ValueError: If the secret lacks client_id or client_secret
        """
        if not self.settings.secrets_manager_enabled or not self.settings.lwa_secrets_arn:
            return None

        secret_data = self.get_secret(self.settings.lwa_secrets_arn)

        missing = [key for key in ("client_id", "client_secret") if not secret_data.get(key)]
        if missing:
            logger.error("lwa_secret_incomplete", arn=self.settings.lwa_secrets_arn, missing=missing)
            raise ValueError(f"LWA secret is missing: {', '.join(missing)}")

        return {
            "client_id": secret_data.get("client_id"),
            "client_secret": secret_data.get("client_secret"),
        }


def resolve_lwa_credentials(settings: Optional[Settings] = None) -> Dict[str, Optional[str]]:
    """Return LWA client credentials, preferring Secrets Manager when enabled."""
    settings = settings or default_settings

    from_secrets = SecretsManager(settings).get_lwa_credentials()
    if from_secrets:
        return from_secrets

    return {
        "client_id": settings.lwa_client_id,
        "client_secret": settings.lwa_client_secret,
    }
