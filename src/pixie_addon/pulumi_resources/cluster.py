import copy
import json
import typing

import pulumi
import pulumi_aws as aws
import pulumi_kubernetes as k8s

import pixie_addon
import pixie_addon.aws_iam
import pixie_addon.junkdrawer
from pixie_addon.cluster import RecordingCluster
from pixie_addon.graph import ResourceGraph, ResourceHandle
from pixie_addon.pulumi_resources import ResourceTransformationFunc


class PulumiCluster(RecordingCluster):
    """Records declarations, then turns the graph into Pulumi resources.

    Every graph edge becomes a ``depends_on`` on the dependent resource, so
    Pulumi applies (and destroys) in the declared order.
    """

    name: str
    parent: pulumi.Resource | None
    provider: k8s.Provider | None
    irsa: pixie_addon.aws_iam.IrsaConfig | None
    cluster_name: str | None
    transformations: list[ResourceTransformationFunc]

    resources: dict[ResourceHandle, pulumi.Resource]
    roles: dict[ResourceHandle, aws.iam.Role]
    role_policies: dict[ResourceHandle, aws.iam.RolePolicy]

    def __init__(
        self,
        name: str,
        *,
        parent: pulumi.Resource | None = None,
        provider: k8s.Provider | None = None,
        irsa: pixie_addon.aws_iam.IrsaConfig | None = None,
        cluster_name: str | None = None,
        transformations: list[ResourceTransformationFunc] | None = None,
        graph: ResourceGraph | None = None,
    ):
        super().__init__(graph)

        self.name = name
        self.parent = parent
        self.provider = provider
        self.irsa = irsa
        self.cluster_name = cluster_name
        self.transformations = transformations or []

        self.resources = {}
        self.roles = {}
        self.role_policies = {}

    @property
    def required_labels(self) -> dict[str, str]:
        return {
            str(pixie_addon.TagKeys.MANAGED_BY): "pulumi",
            str(pixie_addon.TagKeys.PART_OF): self.name,
        }

    def apply(self) -> dict[ResourceHandle, pulumi.Resource]:
        if self.resources:
            msg = f"{self.name}: cluster declarations were already applied"
            pulumi.log.error(msg)
            raise ValueError(msg)

        for handle in self.graph.topological_order():
            body = copy.deepcopy(dict(self.graph.declaration(handle).body))
            opts = pulumi.ResourceOptions(
                parent=self.parent,
                provider=self.provider,
                depends_on=[self.resources[dep] for dep in self.graph.dependencies(handle)],
            )

            for transformation in self.transformations:
                transformation(body, opts)

            self.resources[handle] = self._materialize(handle, body, opts)

        return self.resources

    def _resource_name(self, handle: ResourceHandle, suffix: str = "") -> str:
        return pixie_addon.junkdrawer.resource_name(self.name, handle.name, handle.kind.lower(), suffix)

    def _materialize(
        self,
        handle: ResourceHandle,
        body: dict[str, typing.Any],
        opts: pulumi.ResourceOptions,
    ) -> pulumi.Resource:
        if handle.kind == pixie_addon.ResourceKinds.NAMESPACE:
            return self._define_namespace(handle, body, opts)

        if handle.kind == pixie_addon.ResourceKinds.SERVICE_ACCOUNT:
            return self._define_service_account(handle, body, opts)

        if handle.kind == pixie_addon.ResourceKinds.HELM_RELEASE:
            return self._define_helm_release(handle, body, opts)

        # Manifests keep any labels of their own; ours win on conflict.
        body["metadata"]["labels"] = {**body["metadata"].get("labels", {}), **self.required_labels}

        if handle.kind == pixie_addon.ResourceKinds.DEPLOYMENT:
            return k8s.apps.v1.Deployment(
                self._resource_name(handle),
                metadata=body["metadata"],
                spec=body["spec"],
                opts=opts,
            )

        if handle.kind == pixie_addon.ResourceKinds.SECRET_PROVIDER_CLASS:
            grants = self._define_secret_read_grants(handle, body)
            if grants:
                opts = pulumi.ResourceOptions.merge(opts, pulumi.ResourceOptions(depends_on=grants))

        return k8s.apiextensions.CustomResource(
            self._resource_name(handle),
            api_version=body["apiVersion"],
            kind=body["kind"],
            metadata=body["metadata"],
            spec=body.get("spec"),
            opts=opts,
        )

    def _define_namespace(
        self,
        handle: ResourceHandle,
        body: dict[str, typing.Any],
        opts: pulumi.ResourceOptions,
    ) -> k8s.core.v1.Namespace:
        return k8s.core.v1.Namespace(
            self._resource_name(handle),
            metadata=k8s.meta.v1.ObjectMetaArgs(
                name=body["name"],
                labels=self.required_labels,
            ),
            opts=opts,
        )

    def _define_service_account(
        self,
        handle: ResourceHandle,
        body: dict[str, typing.Any],
        opts: pulumi.ResourceOptions,
    ) -> k8s.core.v1.ServiceAccount:
        annotations: dict[str, pulumi.Input[str]] = {}

        if self.irsa is not None:
            role = aws.iam.Role(
                self._resource_name(handle, "role"),
                aws.iam.RoleArgs(
                    name=pixie_addon.aws_iam.irsa_role_name(body["namespace"], body["name"], self.cluster_name),
                    assume_role_policy=json.dumps(
                        pixie_addon.aws_iam.build_irsa_role_assume_role_policy(
                            self.irsa,
                            namespace=body["namespace"],
                            service_accounts=[body["name"]],
                        )
                    ),
                ),
                opts=pulumi.ResourceOptions(parent=self.parent),
            )
            self.roles[handle] = role
            annotations["eks.amazonaws.com/role-arn"] = role.arn

        return k8s.core.v1.ServiceAccount(
            self._resource_name(handle),
            metadata=k8s.meta.v1.ObjectMetaArgs(
                name=body["name"],
                namespace=body["namespace"],
                annotations=annotations or None,
                labels=self.required_labels,
            ),
            opts=opts,
        )

    def _define_secret_read_grants(
        self,
        handle: ResourceHandle,
        body: dict[str, typing.Any],
    ) -> list[aws.iam.RolePolicy]:
        secret_names = pixie_addon.aws_iam.secretsmanager_object_names(body)
        if not secret_names:
            return []

        grants = []
        for dep in self.graph.dependencies(handle):
            role = self.roles.get(dep)
            if role is None:
                continue

            secret_arns = [aws.secretsmanager.get_secret_output(name=secret_name).arn for secret_name in secret_names]

            policy = aws.iam.RolePolicy(
                self._resource_name(handle, f"{dep.name}-read"),
                role=role.id,
                policy=pulumi.Output.all(*secret_arns).apply(
                    lambda arns: json.dumps(pixie_addon.aws_iam.build_secret_read_policy(list(arns)))
                ),
                opts=pulumi.ResourceOptions(parent=role),
            )
            self.role_policies[dep] = policy
            grants.append(policy)

        if not grants:
            pulumi.log.warn(
                f"{self.name}: no IAM role to grant read access to {', '.join(secret_names)}; "
                "the CSI driver will need credentials from elsewhere"
            )

        return grants

    def _define_helm_release(
        self,
        handle: ResourceHandle,
        body: dict[str, typing.Any],
        opts: pulumi.ResourceOptions,
    ) -> k8s.helm.v3.Release:
        return k8s.helm.v3.Release(
            self._resource_name(handle),
            chart=body["chart"],
            version=body["version"],
            namespace=body["namespace"],
            name=body["release"],
            repository_opts=k8s.helm.v3.RepositoryOptsArgs(
                repo=body["repository"],
            ),
            atomic=True,
            values=body["values"],
            opts=opts,
        )
