import typing

import pulumi

ResourceTransformationFunc = typing.Callable[[dict[str, typing.Any], pulumi.ResourceOptions], None]
