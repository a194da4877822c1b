import json

from pixie_addon.addon import secret_provider_class_manifest
from pixie_addon.aws_iam import (
    IrsaConfig,
    build_irsa_role_assume_role_policy,
    build_secret_read_policy,
    clean_issuer,
    irsa_role_name,
    secretsmanager_object_names,
)

IRSA = IrsaConfig(account_id="123456789012", oidc_url_tail="oidc.eks.us-east-2.amazonaws.com/id/ABC123")


def test_oidc_provider_arn() -> None:
    assert IRSA.oidc_provider_arn == (
        "arn:aws:iam::123456789012:oidc-provider/oidc.eks.us-east-2.amazonaws.com/id/ABC123"
    )


def test_clean_issuer() -> None:
    assert clean_issuer("https://oidc.eks.us-east-2.amazonaws.com/id/ABC123") == IRSA.oidc_url_tail
    assert clean_issuer(IRSA.oidc_url_tail) == IRSA.oidc_url_tail


def test_assume_role_policy_scoped_to_service_account() -> None:
    policy = build_irsa_role_assume_role_policy(IRSA, namespace="pl", service_accounts=["pixie-addon-secret-sa"])

    (statement,) = policy["Statement"]
    assert statement["Action"] == "sts:AssumeRoleWithWebIdentity"
    assert statement["Principal"]["Federated"] == IRSA.oidc_provider_arn
    assert statement["Condition"]["StringEquals"] == {
        f"{IRSA.oidc_url_tail}:aud": "sts.amazonaws.com",
        f"{IRSA.oidc_url_tail}:sub": ["system:serviceaccount:pl:pixie-addon-secret-sa"],
    }
    json.dumps(policy)


def test_secret_read_policy() -> None:
    policy = build_secret_read_policy(["arn:aws:secretsmanager:us-east-2:123456789012:secret:pixie-AbCdEf"])

    (statement,) = policy["Statement"]
    assert statement["Effect"] == "Allow"
    assert sorted(statement["Action"]) == ["secretsmanager:DescribeSecret", "secretsmanager:GetSecretValue"]
    assert statement["Resource"] == ["arn:aws:secretsmanager:us-east-2:123456789012:secret:pixie-AbCdEf"]


def test_irsa_role_name() -> None:
    assert irsa_role_name("pl", "pixie-addon-secret-sa") == "pixie-addon-secret-sa.pl"
    assert irsa_role_name("pl", "pixie-addon-secret-sa", "main01") == "pixie-addon-secret-sa.pl.main01"
    assert len(irsa_role_name("pl", "sa", "c" * 100)) == 64


def test_secretsmanager_object_names() -> None:
    manifest = secret_provider_class_manifest("pixie/deploy-key", "pl")
    assert secretsmanager_object_names(manifest) == ["pixie/deploy-key"]


def test_secretsmanager_object_names_ignores_other_providers() -> None:
    manifest = secret_provider_class_manifest("pixie/deploy-key", "pl")
    manifest["spec"]["provider"] = "azure"
    assert secretsmanager_object_names(manifest) == []


def test_secretsmanager_object_names_ignores_parameter_store() -> None:
    manifest = {
        "spec": {
            "provider": "aws",
            "parameters": {"objects": json.dumps([{"objectName": "/pixie/key", "objectType": "ssmparameter"}])},
        }
    }
    assert secretsmanager_object_names(manifest) == []
