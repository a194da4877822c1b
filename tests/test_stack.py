import pathlib

import pytest
import yaml

import pixie_addon.stack
from pixie_addon.paths import Paths
from pixie_addon.stack import ClusterConfig, load_stack_config


def _write(path: pathlib.Path, doc: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(doc))


def test_paths_root(pixie_root: pathlib.Path) -> None:
    paths = Paths()
    assert paths.root == pixie_root
    assert paths.stack_config("main01-staging") == pixie_root / "main01-staging" / "pixie.yaml"


def test_paths_root_requires_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PIXIE_ADDON_ROOT", raising=False)
    with pytest.raises(RuntimeError, match="PIXIE_ADDON_ROOT"):
        _ = Paths().root


def test_load_stack_config(pixie_root: pathlib.Path) -> None:
    _write(
        pixie_root / "main01-staging" / "pixie.yaml",
        {
            "spec": {"version": "0.0.22", "deployKeySecretName": "pixie/deploy-key"},
            "cluster": {"name": "main01-staging"},
        },
    )

    cfg = load_stack_config("main01-staging")
    assert cfg.spec == {"version": "0.0.22", "deploy_key_secret_name": "pixie/deploy-key"}
    assert cfg.cluster == ClusterConfig(name="main01-staging", irsa=True)


def test_stack_config_layers_over_common_config(pixie_root: pathlib.Path) -> None:
    _write(
        pixie_root / "pixie.yaml",
        {
            "spec": {"cloudAddr": "pixie.example.com:443", "patches": {"vizier-pem": "{}"}},
            "cluster": {"irsa": False},
        },
    )
    _write(
        pixie_root / "main01-staging" / "pixie.yaml",
        {"spec": {"clusterName": "main01", "patches": {"kelvin": "{}"}}},
    )

    cfg = load_stack_config("main01-staging")
    assert cfg.spec == {
        "cloud_addr": "pixie.example.com:443",
        "cluster_name": "main01",
        "patches": {"vizier-pem": "{}", "kelvin": "{}"},
    }
    assert cfg.cluster == ClusterConfig(name=None, irsa=False)


@pytest.mark.parametrize(
    ("common_key", "stack_key"),
    [
        ("cloudAddr", "cloud_addr"),
        ("cloud_addr", "cloudAddr"),
        ("cloudAddr", "cloudAddr"),
    ],
)
def test_stack_overrides_common_option_in_either_spelling(
    pixie_root: pathlib.Path, common_key: str, stack_key: str
) -> None:
    _write(pixie_root / "pixie.yaml", {"spec": {common_key: "a.example.com:443"}})
    _write(pixie_root / "main01-staging" / "pixie.yaml", {"spec": {stack_key: "b.example.com:443"}})

    cfg = load_stack_config("main01-staging")
    assert cfg.spec == {"cloud_addr": "b.example.com:443"}


def test_spec_must_be_a_mapping(pixie_root: pathlib.Path) -> None:
    _write(pixie_root / "main01-staging" / "pixie.yaml", {"spec": ["cloudAddr"]})
    with pytest.raises(ValueError, match="'spec' must be a mapping"):
        load_stack_config("main01-staging")


def test_missing_stack_config(pixie_root: pathlib.Path) -> None:
    with pytest.raises(FileNotFoundError, match="main01-staging"):
        load_stack_config("main01-staging")


def test_empty_stack_config(pixie_root: pathlib.Path) -> None:
    path = pixie_root / "main01-staging" / "pixie.yaml"
    path.parent.mkdir(parents=True)
    path.write_text("")

    cfg = load_stack_config("main01-staging")
    assert cfg.spec == {}
    assert cfg.cluster == ClusterConfig()


def test_unknown_option_in_stack_config(pixie_root: pathlib.Path) -> None:
    _write(pixie_root / "main01-staging" / "pixie.yaml", {"spec": {"deployKeySecret": "oops"}})
    with pytest.raises(ValueError, match="deployKeySecret"):
        load_stack_config("main01-staging")


def test_unknown_top_level_key(pixie_root: pathlib.Path) -> None:
    _write(pixie_root / "main01-staging" / "pixie.yaml", {"spec": {}, "helm": {}})
    with pytest.raises(ValueError, match="helm"):
        load_stack_config("main01-staging")


def test_non_mapping_document(pixie_root: pathlib.Path) -> None:
    path = pixie_root / "main01-staging" / "pixie.yaml"
    path.parent.mkdir(parents=True)
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError, match="must contain a mapping"):
        pixie_addon.stack.load_stack_config("main01-staging")


def test_explicit_paths(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PIXIE_ADDON_ROOT", str(tmp_path))
    _write(tmp_path / "dev" / "pixie.yaml", {"spec": {"namespace": "px"}})
    assert load_stack_config("dev", Paths()).spec == {"namespace": "px"}
