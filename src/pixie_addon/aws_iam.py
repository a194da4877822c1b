from __future__ import annotations

import dataclasses
import json
import typing


@dataclasses.dataclass(frozen=True)
class IrsaConfig:
    """Where service account roles trust their web identity tokens from."""

    account_id: str
    oidc_url_tail: str

    @property
    def oidc_provider_arn(self) -> str:
        return f"arn:aws:iam::{self.account_id}:oidc-provider/{self.oidc_url_tail}"


def clean_issuer(url: str) -> str:
    return url.replace("https://", "")


def irsa_role_name(namespace: str, service_account: str, cluster_name: str | None = None) -> str:
    name = f"{service_account}.{namespace}"
    if cluster_name:
        name = f"{name}.{cluster_name}"

    # IAM role names top out at 64 characters.
    return name[:64]


def build_irsa_role_assume_role_policy(
    irsa: IrsaConfig,
    namespace: str,
    service_accounts: list[str],
) -> dict[str, typing.Any]:
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Action": "sts:AssumeRoleWithWebIdentity",
                "Effect": "Allow",
                "Principal": {
                    "Federated": irsa.oidc_provider_arn,
                },
                "Condition": {
                    "StringEquals": {
                        f"{irsa.oidc_url_tail}:aud": "sts.amazonaws.com",
                        f"{irsa.oidc_url_tail}:sub": [
                            f"system:serviceaccount:{namespace}:{account}" for account in service_accounts
                        ],
                    }
                },
            }
        ],
    }


def build_secret_read_policy(secret_arns: list[str]) -> dict[str, typing.Any]:
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Action": [
                    "secretsmanager:GetSecretValue",
                    "secretsmanager:DescribeSecret",
                ],
                "Resource": secret_arns,
            }
        ],
    }


def secretsmanager_object_names(secret_provider_class: typing.Mapping[str, typing.Any]) -> list[str]:
    """Secrets Manager secret names referenced by an AWS SecretProviderClass manifest."""
    spec = secret_provider_class.get("spec", {})
    if spec.get("provider") != "aws":
        return []

    raw = spec.get("parameters", {}).get("objects", "[]")
    objects = raw if isinstance(raw, list) else json.loads(raw)

    return [obj["objectName"] for obj in objects if obj.get("objectType") == "secretsmanager"]
