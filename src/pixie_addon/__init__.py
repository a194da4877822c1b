from __future__ import annotations

import enum

ADDON_NAME = "pixie-addon"
CHART = "pixie-operator-chart"
CLOUD_ADDR = "withpixie.ai:443"
DEFAULT_NAMESPACE = "pl"
PEM_MEMORY_LIMIT = "2Gi"
RELEASE = "pixie"
REPOSITORY = "https://pixie-operator-charts.storage.googleapis.com"
VERSION = "0.0.21"

DEPLOY_KEY_SECRET_KEY = "deploy-key"  # noqa: S105
DEPLOY_KEY_SECRET_NAME = "pl-deploy-secrets"  # noqa: S105
SECRET_POD_IMAGE = "busybox"
SECRET_POD_NAME = "pixie-secret-pod"  # noqa: S105
SECRET_POD_SLEEP_SECONDS = 2073600
SECRET_PROVIDER_CLASS_NAME = "pixie-deploy-key-secret-class"  # noqa: S105
SECRET_SERVICE_ACCOUNT_NAME = "pixie-addon-secret-sa"  # noqa: S105
SECRETS_STORE_CSI_DRIVER = "secrets-store.csi.k8s.io"
SECRETS_STORE_MOUNT_PATH = "/mnt/secrets-store"
SECRETS_STORE_VOLUME_NAME = "secrets-store"


class DataAccess(enum.StrEnum):
    FULL = "Full"
    RESTRICTED = "Restricted"
    PII_RESTRICTED = "PIIRestricted"


class ResourceKinds(enum.StrEnum):
    DEPLOYMENT = "Deployment"
    HELM_RELEASE = "HelmRelease"
    NAMESPACE = "Namespace"
    SECRET_PROVIDER_CLASS = "SecretProviderClass"
    SERVICE_ACCOUNT = "ServiceAccount"


class TagKeys(enum.StrEnum):
    MANAGED_BY = "app.kubernetes.io/managed-by"
    PART_OF = "app.kubernetes.io/part-of"
