import os
from aws_msk_iam_sasl_signer import MSKAuthTokenProvider

from northstar.core.config import APP_ENV, KAFKA_BROKER


def get_kafka_config():
    """
    Producer configuration depending on environment.
    Works both locally (PLAINTEXT) and on AWS (MSK IAM SASL_SSL).
    """
    if APP_ENV in ("production", "staging"):
        def auth_callback(config_str):
            auth_token, expiry_ms = MSKAuthTokenProvider.generate_auth_token(
                region=os.getenv("KAFKA_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1"))
            )
            return auth_token, expiry_ms / 1000.0

        return {
            "bootstrap.servers": KAFKA_BROKER,
            "security.protocol": "SASL_SSL",
            "sasl.mechanism": "OAUTHBEARER",
            "oauth_cb": auth_callback,
            "ssl.ca.location": "/etc/ssl/certs/ca-certificates.crt",
            "enable.idempotence": True,
        }

    # Local (Docker Compose)
    return {
        "bootstrap.servers": KAFKA_BROKER,
        "security.protocol": "PLAINTEXT",
    }
