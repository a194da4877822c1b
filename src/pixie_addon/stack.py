import dataclasses
import pathlib
import typing

import deepmerge  # type: ignore
import yaml

import pixie_addon.paths
from pixie_addon.config import canonical_option_names, normalize_props


@dataclasses.dataclass(frozen=True)
class ClusterConfig:
    # EKS cluster name; the kube provider is built from it when set.
    name: str | None = None
    # Give the secret service account an IAM role through the cluster's OIDC provider.
    irsa: bool = True


@dataclasses.dataclass(frozen=True)
class StackConfig:
    spec: dict[str, typing.Any]
    cluster: ClusterConfig = dataclasses.field(default_factory=ClusterConfig)


def _read_yaml(path: pathlib.Path) -> dict[str, typing.Any]:
    doc = yaml.safe_load(path.read_text()) or {}

    if not isinstance(doc, dict):
        msg = f"{path} must contain a mapping, got {type(doc).__name__}"
        raise ValueError(msg)

    return doc


def load_stack_config(stack_name: str, paths: pixie_addon.paths.Paths | None = None) -> StackConfig:
    """Load ``<root>/<stack>/pixie.yaml`` layered over an optional ``<root>/pixie.yaml``.

    Option names in the returned ``spec`` are snake_case, whichever spelling
    the files use. Both files share the layout::

        spec:
          version: 0.0.22
          deployKeySecretName: pixie/deploy-key
        cluster:
          name: main01
          irsa: true
    """
    paths = paths or pixie_addon.paths.Paths()

    stack_yaml = paths.stack_config(stack_name)
    if not stack_yaml.exists():
        msg = f"No pixie add-on config for stack {stack_name!r} at {stack_yaml}"
        raise FileNotFoundError(msg)

    doc: dict[str, typing.Any] = {"spec": {}, "cluster": {}}

    common_yaml = paths.root / pixie_addon.paths.CONFIG_FILENAME
    layers = [common_yaml, stack_yaml] if common_yaml.exists() else [stack_yaml]

    for path in layers:
        layer = _read_yaml(path)
        if not isinstance(layer.get("spec") or {}, dict):
            msg = f"{path}: 'spec' must be a mapping of add-on options"
            raise ValueError(msg)

        # A later file overrides an option however either file spells it.
        if layer.get("spec"):
            layer["spec"] = canonical_option_names(layer["spec"])
        deepmerge.always_merger.merge(doc, layer)

    unknown = set(doc) - {"spec", "cluster"}
    if unknown:
        msg = f"Unrecognized top-level keys in {stack_yaml}: {', '.join(sorted(unknown))}"
        raise ValueError(msg)

    # Fail on bad option names/types while the file name is still at hand.
    normalize_props(doc["spec"] or {})

    return StackConfig(
        spec=dict(doc["spec"] or {}),
        cluster=ClusterConfig(**(doc["cluster"] or {})),
    )
