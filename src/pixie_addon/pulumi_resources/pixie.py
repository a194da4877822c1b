import typing

import pulumi
import pulumi_kubernetes as k8s

import pixie_addon
import pixie_addon.aws_iam
import pixie_addon.stack
from pixie_addon.addon import PixieAddOn
from pixie_addon.graph import ResourceHandle
from pixie_addon.pulumi_resources import ResourceTransformationFunc, eks
from pixie_addon.pulumi_resources.cluster import PulumiCluster


class Pixie(pulumi.ComponentResource):
    addon: PixieAddOn
    cluster: PulumiCluster
    helm_release_handle: ResourceHandle

    namespace: k8s.core.v1.Namespace
    helm_release: k8s.helm.v3.Release
    secret_pod: k8s.apps.v1.Deployment | None

    @classmethod
    def autoload(cls) -> "Pixie":
        stack_name = pulumi.get_stack()
        stack_cfg = pixie_addon.stack.load_stack_config(stack_name)

        provider = None
        irsa = None
        if stack_cfg.cluster.name is not None:
            provider = eks.get_provider_for_cluster(stack_cfg.cluster.name)
            if stack_cfg.cluster.irsa:
                irsa = eks.get_irsa_for_cluster(stack_cfg.cluster.name)

        return cls(
            stack_name,
            stack_cfg.spec,
            provider=provider,
            irsa=irsa,
            cluster_name=stack_cfg.cluster.name,
        )

    def __init__(
        self,
        name: str,
        props: typing.Mapping[str, typing.Any] | None = None,
        *args,
        provider: k8s.Provider | None = None,
        irsa: pixie_addon.aws_iam.IrsaConfig | None = None,
        cluster_name: str | None = None,
        transformations: list[ResourceTransformationFunc] | None = None,
        **kwargs,
    ):
        try:
            addon = PixieAddOn(props)
        except (TypeError, ValueError) as err:
            msg = f"{name}: invalid pixie add-on options: {err}"
            pulumi.error(msg)
            raise

        super().__init__(
            f"pixie:{self.__class__.__name__}",
            f"{name}-pixie",
            *args,
            **kwargs,
        )

        self.addon = addon
        self.cluster = PulumiCluster(
            f"{name}-{self.addon.options.name}",
            parent=self,
            provider=provider,
            irsa=irsa,
            cluster_name=cluster_name,
            transformations=transformations,
        )

        self._define_resources()

        self.register_outputs(
            {
                "namespace": self.namespace,
                "helm_release": self.helm_release,
                "deploy_key_secret_name": self.addon.options.deploy_key_secret_name,
            }
        )

    def _define_resources(self) -> None:
        try:
            self.helm_release_handle = self.addon.deploy(self.cluster)
        except ValueError as err:
            msg = f"{self.cluster.name}: could not declare pixie add-on resources: {err}"
            pulumi.error(msg, resource=self)
            raise

        resources = self.cluster.apply()

        self.helm_release = typing.cast(k8s.helm.v3.Release, resources[self.helm_release_handle])

        (ns_handle,) = self.cluster.graph.of_kind(pixie_addon.ResourceKinds.NAMESPACE)
        self.namespace = typing.cast(k8s.core.v1.Namespace, resources[ns_handle])

        self.secret_pod = None
        for handle in self.cluster.graph.of_kind(pixie_addon.ResourceKinds.DEPLOYMENT):
            if handle.name == pixie_addon.SECRET_POD_NAME:
                self.secret_pod = typing.cast(k8s.apps.v1.Deployment, resources[handle])
