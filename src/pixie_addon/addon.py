from __future__ import annotations

import copy
import json
import typing

import deepmerge  # type: ignore
import pulumi

import pixie_addon
from pixie_addon.cluster import ClusterContext, HelmChartSpec
from pixie_addon.config import DEFAULT_CONFIG, PixieAddOnConfig, SecretsManagerDeployKey, merge
from pixie_addon.graph import ResourceHandle


def helm_values(cfg: PixieAddOnConfig) -> dict[str, typing.Any]:
    """Values handed to the Pixie chart.

    Options left unset are omitted so the chart's own defaults apply. The
    literal deploy key is only sent when it is the deploy key source; with
    Secrets Manager the chart reads ``pl-deploy-secrets`` from the cluster.
    """
    values: dict[str, typing.Any] = {
        "cloudAddr": cfg.cloud_addr,
        "useEtcdOperator": cfg.use_etcd_operator,
        "pemMemoryLimit": cfg.pem_memory_limit,
        "dataAccess": str(cfg.data_access),
    }

    if cfg.deploy_key is not None:
        values["deployKey"] = cfg.deploy_key

    if cfg.cluster_name is not None:
        values["clusterName"] = cfg.cluster_name

    if cfg.dev_cloud_namespace is not None:
        values["devCloudNamespace"] = cfg.dev_cloud_namespace

    if cfg.patches is not None:
        values["patches"] = dict(cfg.patches)

    if cfg.values:
        deepmerge.always_merger.merge(values, copy.deepcopy(dict(cfg.values)))

    if cfg.deploy_key_secret_name is not None and "deployKey" in values:
        pulumi.log.warn(
            f"{cfg.name}: ignoring 'deployKey' in chart values; "
            f"the deploy key comes from Secrets Manager secret {cfg.deploy_key_secret_name!r}"
        )
        del values["deployKey"]

    return values


def secret_provider_class_manifest(
    secret_name: str,
    namespace: str,
    name: str = pixie_addon.SECRET_PROVIDER_CLASS_NAME,
) -> dict[str, typing.Any]:
    """Project a Secrets Manager secret, looked up by name, into ``pl-deploy-secrets``.

    The secret's value must be the bare deploy key, not a JSON document.
    """
    return {
        "apiVersion": "secrets-store.csi.x-k8s.io/v1",
        "kind": str(pixie_addon.ResourceKinds.SECRET_PROVIDER_CLASS),
        "metadata": {
            "name": name,
            "namespace": namespace,
        },
        "spec": {
            "provider": "aws",
            "parameters": {
                "objects": json.dumps(
                    [
                        {
                            "objectName": secret_name,
                            "objectType": "secretsmanager",
                            "objectAlias": pixie_addon.DEPLOY_KEY_SECRET_KEY,
                        }
                    ]
                ),
            },
            "secretObjects": [
                {
                    "secretName": pixie_addon.DEPLOY_KEY_SECRET_NAME,
                    "type": "Opaque",
                    "data": [
                        {
                            "key": pixie_addon.DEPLOY_KEY_SECRET_KEY,
                            "objectName": pixie_addon.DEPLOY_KEY_SECRET_KEY,
                        },
                    ],
                }
            ],
        },
    }


def secret_pod_manifest(
    image: str,
    service_account_name: str,
    namespace: str,
    secret_provider_class_name: str,
) -> dict[str, typing.Any]:
    """A pod that keeps the secrets-store volume mounted.

    The CSI driver only syncs ``pl-deploy-secrets`` while some pod mounts the
    volume, so this one has to keep running for as long as the secret should
    exist.
    """
    name = pixie_addon.SECRET_POD_NAME
    return {
        "apiVersion": "apps/v1",
        "kind": str(pixie_addon.ResourceKinds.DEPLOYMENT),
        "metadata": {
            "name": name,
            "namespace": namespace,
        },
        "spec": {
            "replicas": 1,
            "selector": {"matchLabels": {"name": name}},
            "template": {
                "metadata": {"labels": {"name": name}},
                "spec": {
                    "serviceAccountName": service_account_name,
                    "containers": [
                        {
                            "name": name,
                            "image": image,
                            "command": ["sh", "-c", f"while :; do sleep {pixie_addon.SECRET_POD_SLEEP_SECONDS}; done"],
                            "volumeMounts": [
                                {
                                    "name": pixie_addon.SECRETS_STORE_VOLUME_NAME,
                                    "mountPath": pixie_addon.SECRETS_STORE_MOUNT_PATH,
                                    "readOnly": True,
                                }
                            ],
                        }
                    ],
                    "volumes": [
                        {
                            "name": pixie_addon.SECRETS_STORE_VOLUME_NAME,
                            "csi": {
                                "driver": pixie_addon.SECRETS_STORE_CSI_DRIVER,
                                "readOnly": True,
                                "volumeAttributes": {
                                    "secretProviderClass": secret_provider_class_name,
                                },
                            },
                        }
                    ],
                },
            },
        },
    }


class PixieAddOn:
    options: PixieAddOnConfig

    def __init__(self, props: typing.Mapping[str, typing.Any] | None = None):
        self.options = merge(DEFAULT_CONFIG, props)

    @property
    def uses_secrets_manager(self) -> bool:
        return isinstance(self.options.deploy_key_source, SecretsManagerDeployKey)

    def setup_secret(self, cluster: ClusterContext, service_account: ResourceHandle) -> ResourceHandle:
        secret_name = self.options.deploy_key_secret_name
        if not secret_name:
            msg = f"{self.options.name} has no Secrets Manager deploy key to set up"
            raise ValueError(msg)

        secret_provider_class = cluster.add_manifest(
            pixie_addon.SECRET_PROVIDER_CLASS_NAME,
            secret_provider_class_manifest(secret_name, self.options.namespace),
        )
        cluster.add_dependency(secret_provider_class, service_account)

        return secret_provider_class

    def deploy(self, cluster: ClusterContext) -> ResourceHandle:
        props = self.options
        secret_pod: ResourceHandle | None = None

        ns = cluster.create_namespace(props.namespace)

        if self.uses_secrets_manager:
            pulumi.log.info(
                f"{props.name}: mounting deploy key {props.deploy_key_secret_name!r} "
                f"from Secrets Manager into {props.namespace}/{pixie_addon.DEPLOY_KEY_SECRET_NAME}"
            )

            sa = cluster.create_service_account(pixie_addon.SECRET_SERVICE_ACCOUNT_NAME, props.namespace)
            cluster.add_dependency(sa, ns)

            secret_provider_class = self.setup_secret(cluster, sa)
            secret_pod = cluster.add_manifest(
                pixie_addon.SECRET_POD_NAME,
                secret_pod_manifest(
                    props.secret_pod_image,
                    pixie_addon.SECRET_SERVICE_ACCOUNT_NAME,
                    props.namespace,
                    pixie_addon.SECRET_PROVIDER_CLASS_NAME,
                ),
            )
            cluster.add_dependency(secret_pod, secret_provider_class)

        helm_release = cluster.add_helm_chart(
            props.release,
            HelmChartSpec(
                chart=props.chart,
                release=props.release,
                repository=props.repository,
                version=props.version,
                namespace=props.namespace,
                values=helm_values(props),
            ),
        )

        cluster.add_dependency(helm_release, ns)

        if secret_pod is not None:
            cluster.add_dependency(helm_release, secret_pod)
            cluster.add_dependency(secret_pod, ns)

        return helm_release
