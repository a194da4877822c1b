from __future__ import annotations

import dataclasses
import typing

import pixie_addon
from pixie_addon.graph import ResourceGraph, ResourceHandle


@dataclasses.dataclass(frozen=True)
class HelmChartSpec:
    chart: str
    release: str
    repository: str
    version: str
    namespace: str
    values: typing.Mapping[str, typing.Any] = dataclasses.field(default_factory=dict)


class ClusterContext(typing.Protocol):
    """What an add-on may do to a cluster.

    Implementations decide when (and whether) declarations reach a real
    cluster; the add-on only declares resources and the edges between them.
    """

    def create_namespace(self, name: str) -> ResourceHandle: ...

    def create_service_account(self, name: str, namespace: str) -> ResourceHandle: ...

    def add_manifest(self, name: str, manifest: typing.Mapping[str, typing.Any]) -> ResourceHandle: ...

    def add_helm_chart(self, name: str, chart: HelmChartSpec) -> ResourceHandle: ...

    def add_dependency(self, dependent: ResourceHandle, dependency: ResourceHandle) -> None: ...


class RecordingCluster:
    """A :class:`ClusterContext` that only records declarations into a graph."""

    graph: ResourceGraph

    def __init__(self, graph: ResourceGraph | None = None) -> None:
        self.graph = graph if graph is not None else ResourceGraph()

    def create_namespace(self, name: str) -> ResourceHandle:
        return self.graph.add(pixie_addon.ResourceKinds.NAMESPACE, name, {"name": name})

    def create_service_account(self, name: str, namespace: str) -> ResourceHandle:
        return self.graph.add(
            pixie_addon.ResourceKinds.SERVICE_ACCOUNT,
            name,
            {"name": name, "namespace": namespace},
        )

    def add_manifest(self, name: str, manifest: typing.Mapping[str, typing.Any]) -> ResourceHandle:
        kind = manifest.get("kind")
        if not kind:
            msg = f"Manifest {name!r} has no kind"
            raise ValueError(msg)

        return self.graph.add(kind, name, manifest)

    def add_helm_chart(self, name: str, chart: HelmChartSpec) -> ResourceHandle:
        return self.graph.add(pixie_addon.ResourceKinds.HELM_RELEASE, name, dataclasses.asdict(chart))

    def add_dependency(self, dependent: ResourceHandle, dependency: ResourceHandle) -> None:
        self.graph.add_dependency(dependent, dependency)
