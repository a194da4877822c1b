from __future__ import annotations

import dataclasses
import typing
import warnings

import pixie_addon


@dataclasses.dataclass(frozen=True)
class LiteralDeployKey:
    value: str = ""


@dataclasses.dataclass(frozen=True)
class SecretsManagerDeployKey:
    secret_name: str


DeployKeySource = LiteralDeployKey | SecretsManagerDeployKey


class PixieAddOnProps(typing.TypedDict, total=False):
    name: str
    repository: str
    release: str
    chart: str
    version: str
    namespace: str
    cloud_addr: str
    deploy_key: str
    deploy_key_secret_name: str
    cluster_name: str
    dev_cloud_namespace: str
    use_etcd_operator: bool
    patches: dict[str, str]
    pem_memory_limit: str
    data_access: str | pixie_addon.DataAccess
    secret_pod_image: str
    values: dict[str, typing.Any]


@dataclasses.dataclass(frozen=True)
class PixieAddOnConfig:
    name: str = pixie_addon.ADDON_NAME
    repository: str = pixie_addon.REPOSITORY
    release: str = pixie_addon.RELEASE
    chart: str = pixie_addon.CHART
    version: str = pixie_addon.VERSION
    namespace: str = pixie_addon.DEFAULT_NAMESPACE
    # Pixie Cloud endpoint; Community Cloud unless overridden.
    cloud_addr: str = pixie_addon.CLOUD_ADDR
    deploy_key_source: DeployKeySource = LiteralDeployKey()
    cluster_name: str | None = None
    # Only needed for self-hosted clouds without DNS.
    dev_cloud_namespace: str | None = None
    use_etcd_operator: bool = False
    # Kubernetes resource name -> patch, applied by the chart.
    patches: typing.Mapping[str, str] | None = None
    pem_memory_limit: str = pixie_addon.PEM_MEMORY_LIMIT
    data_access: pixie_addon.DataAccess = pixie_addon.DataAccess.FULL
    secret_pod_image: str = pixie_addon.SECRET_POD_IMAGE
    values: typing.Mapping[str, typing.Any] | None = None

    @property
    def deploy_key(self) -> str | None:
        if isinstance(self.deploy_key_source, LiteralDeployKey):
            return self.deploy_key_source.value

        return None

    @property
    def deploy_key_secret_name(self) -> str | None:
        if isinstance(self.deploy_key_source, SecretsManagerDeployKey):
            return self.deploy_key_source.secret_name

        return None


DEFAULT_CONFIG = PixieAddOnConfig()

# camelCase spellings accepted from YAML and from callers used to the chart's naming.
OPTION_ALIASES = {
    "cloudAddr": "cloud_addr",
    "clusterName": "cluster_name",
    "dataAccess": "data_access",
    "deployKey": "deploy_key",
    "deployKeySecretName": "deploy_key_secret_name",
    "devCloudNamespace": "dev_cloud_namespace",
    "pemMemoryLimit": "pem_memory_limit",
    "secretPodImage": "secret_pod_image",
    "useEtcdOperator": "use_etcd_operator",
}

_STR_OPTIONS = frozenset(
    {
        "name",
        "repository",
        "release",
        "chart",
        "version",
        "namespace",
        "cloud_addr",
        "deploy_key",
        "deploy_key_secret_name",
        "cluster_name",
        "dev_cloud_namespace",
        "pem_memory_limit",
        "secret_pod_image",
    }
)
_MAPPING_OPTIONS = frozenset({"patches", "values"})
_DEPLOY_KEY_OPTIONS = frozenset({"deploy_key", "deploy_key_secret_name"})

RECOGNIZED_OPTIONS = _STR_OPTIONS | _MAPPING_OPTIONS | {"use_etcd_operator", "data_access"}


def canonical_option_names(raw: typing.Mapping[str, typing.Any]) -> dict[str, typing.Any]:
    """Rename camelCase options to their snake_case names, values untouched."""
    options: dict[str, typing.Any] = {}

    for key, value in raw.items():
        option = OPTION_ALIASES.get(key, key)

        if option not in RECOGNIZED_OPTIONS:
            msg = f"Unrecognized pixie add-on option {key!r}"
            raise ValueError(msg)

        if option in options:
            msg = f"Pixie add-on option {option!r} given more than once (as {key!r})"
            raise ValueError(msg)

        options[option] = value

    return options


def normalize_props(raw: typing.Mapping[str, typing.Any]) -> PixieAddOnProps:
    """Translate camelCase option names and reject anything unrecognized.

    Only value types are checked; whether a chart version or secret name is
    usable is left to the apply.
    """
    props: dict[str, typing.Any] = {}
    # Errors name the option the way the caller spelled it.
    spelling = {OPTION_ALIASES.get(key, key): key for key in raw}

    for option, value in canonical_option_names(raw).items():
        key = spelling[option]

        if value is None:
            continue

        if option in _STR_OPTIONS and not isinstance(value, str):
            msg = f"Pixie add-on option {key!r} must be a string, got {type(value).__name__}"
            raise TypeError(msg)

        if option in _MAPPING_OPTIONS and not isinstance(value, typing.Mapping):
            msg = f"Pixie add-on option {key!r} must be a mapping, got {type(value).__name__}"
            raise TypeError(msg)

        if option == "use_etcd_operator" and not isinstance(value, bool):
            msg = f"Pixie add-on option {key!r} must be a boolean, got {type(value).__name__}"
            raise TypeError(msg)

        if option == "data_access":
            value = data_access_level(value)

        props[option] = value

    return typing.cast(PixieAddOnProps, props)


def data_access_level(value: typing.Any) -> pixie_addon.DataAccess:
    if isinstance(value, pixie_addon.DataAccess):
        return value

    try:
        return pixie_addon.DataAccess(value)
    except ValueError:
        allowed = ", ".join(repr(str(level)) for level in pixie_addon.DataAccess)
        msg = f"Invalid data access level {value!r}; expected one of {allowed}"
        raise ValueError(msg) from None


def resolve_deploy_key_source(
    props: typing.Mapping[str, typing.Any],
    default: DeployKeySource,
) -> DeployKeySource:
    secret_name = props.get("deploy_key_secret_name")
    literal = props.get("deploy_key")

    if secret_name:
        if literal:
            warnings.warn(
                "both 'deployKey' and 'deployKeySecretName' were given; "
                "the literal deploy key is ignored in favour of Secrets Manager",
                stacklevel=3,
            )
        return SecretsManagerDeployKey(secret_name=secret_name)

    if literal is not None:
        return LiteralDeployKey(value=literal)

    return default


def merge(
    defaults: PixieAddOnConfig,
    overrides: typing.Mapping[str, typing.Any] | None = None,
) -> PixieAddOnConfig:
    """Overlay supplied options onto ``defaults``.

    Each option is replaced independently; options not supplied keep the
    default, and ``None`` counts as not supplied.
    """
    props = normalize_props(overrides or {})

    changes: dict[str, typing.Any] = {k: v for k, v in props.items() if k not in _DEPLOY_KEY_OPTIONS}
    changes["deploy_key_source"] = resolve_deploy_key_source(props, defaults.deploy_key_source)

    for option in _MAPPING_OPTIONS & changes.keys():
        changes[option] = dict(changes[option])

    return dataclasses.replace(defaults, **changes)
