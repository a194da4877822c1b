import json

import pulumi_aws as aws
import pulumi_kubernetes as k8s

from pixie_addon.aws_iam import IrsaConfig, clean_issuer


def get_provider_for_cluster(name: str) -> k8s.Provider:
    """Kubernetes provider for an EKS cluster, authenticated through ``aws eks get-token``.

    Server-side apply makes re-declaring an existing namespace an upsert.
    """
    return k8s.Provider(
        f"{name}-k8s",
        args=k8s.ProviderArgs(
            enable_server_side_apply=True,
            kubeconfig=get_kubeconfig_for_cluster(name),
        ),
    )


def get_kubeconfig_for_cluster(name: str, endpoint: str | None = None, ca_data: str | None = None) -> str:
    if endpoint is None or ca_data is None:
        cluster = aws.eks.get_cluster(name=name)
        endpoint = cluster.endpoint
        ca_data = cluster.certificate_authorities[0].data

    token_exec = {
        "apiVersion": "client.authentication.k8s.io/v1",
        "command": "aws",
        "args": ["eks", "get-token", "--cluster-name", name],
        "interactiveMode": "IfAvailable",
        "provideClusterInfo": False,
    }

    return json.dumps(
        {
            "apiVersion": "v1",
            "kind": "Config",
            "clusters": [{"name": name, "cluster": {"server": endpoint, "certificate-authority-data": ca_data}}],
            "users": [{"name": "aws", "user": {"exec": token_exec}}],
            "contexts": [{"name": "aws", "context": {"cluster": name, "user": "aws"}}],
            "current-context": "aws",
        }
    )


def get_irsa_for_cluster(name: str) -> IrsaConfig:
    cluster = aws.eks.get_cluster(name=name)
    return IrsaConfig(
        account_id=aws.get_caller_identity().account_id,
        oidc_url_tail=clean_issuer(cluster.identities[0].oidcs[0].issuer),
    )
