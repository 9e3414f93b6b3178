"""
EKS Module Functions
Creates the EKS control plane and its managed node group
"""

import pulumi
import pulumi_aws as aws
from typing import Dict, List

from validation import ConfigValidationError, validate_scaling


def create_eks_cluster(name: str, version: str, role_arn: pulumi.Output[str],
                       subnet_ids: List[pulumi.Output[str]],
                       depends_on: List[pulumi.Resource] = None,
                       endpoint_private_access: bool = False,
                       endpoint_public_access: bool = True,
                       tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create EKS cluster

    Args:
        name: Cluster name
        version: Kubernetes version
        role_arn: IAM role ARN for cluster
        subnet_ids: List of subnet IDs
        depends_on: Resources that must exist for the cluster's whole lifetime
            (policy attachments, subnet routing)
        endpoint_private_access: Enable private API endpoint
        endpoint_public_access: Enable public API endpoint
        tags: Additional tags

    Returns:
        Dict with cluster resource and outputs
    """
    tags = tags or {}

    cluster = aws.eks.Cluster(
        f"{name}-cluster",
        name=name,
        version=version,
        role_arn=role_arn,
        vpc_config=aws.eks.ClusterVpcConfigArgs(
            subnet_ids=subnet_ids,
            endpoint_private_access=endpoint_private_access,
            endpoint_public_access=endpoint_public_access
        ),
        tags={
            **tags,
            "Name": f"{name}-cluster",
            "Module": "eks"
        },
        opts=pulumi.ResourceOptions(depends_on=list(depends_on or []))
    )

    return {
        "cluster": cluster,
        "cluster_name": cluster.name,
        "cluster_arn": cluster.arn,
        "cluster_endpoint": cluster.endpoint,
        "cluster_version": cluster.version,
        "cluster_certificate_authority_data": cluster.certificate_authority.data
    }


def create_node_group(name: str, node_group_name: str, cluster: aws.eks.Cluster,
                      role_arn: pulumi.Output[str], subnet_ids: List[pulumi.Output[str]],
                      instance_types: List[str], desired_size: int, max_size: int, min_size: int,
                      disk_size: int = 20, capacity_type: str = "ON_DEMAND",
                      depends_on: List[pulumi.Resource] = None,
                      tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create EKS managed node group

    Args:
        name: Resource name prefix
        node_group_name: Node group name in EKS
        cluster: EKS cluster the nodes join
        role_arn: IAM role ARN for node group
        subnet_ids: List of subnet IDs
        instance_types: List of EC2 instance types
        desired_size: Desired number of nodes
        max_size: Maximum number of nodes
        min_size: Minimum number of nodes
        disk_size: EBS volume size in GB
        capacity_type: Capacity type (ON_DEMAND or SPOT)
        depends_on: Extra dependencies, typically the worker policy attachments
        tags: Additional tags

    Returns:
        Dict with node group resource and outputs
    """
    tags = tags or {}

    errors = validate_scaling(min_size, desired_size, max_size)
    if errors:
        raise ConfigValidationError(errors)

    node_group = aws.eks.NodeGroup(
        f"{name}-node-group",
        cluster_name=cluster.name,
        node_group_name=node_group_name,
        node_role_arn=role_arn,
        subnet_ids=subnet_ids,
        capacity_type=capacity_type,
        instance_types=instance_types,
        disk_size=disk_size,
        scaling_config=aws.eks.NodeGroupScalingConfigArgs(
            desired_size=desired_size,
            max_size=max_size,
            min_size=min_size
        ),
        update_config=aws.eks.NodeGroupUpdateConfigArgs(
            max_unavailable=1
        ),
        tags={
            **tags,
            "Name": f"{name}-node-group",
            "Module": "eks"
        },
        opts=pulumi.ResourceOptions(depends_on=[cluster, *(depends_on or [])])
    )

    return {
        "node_group": node_group,
        "node_group_name": node_group.node_group_name,
        "node_group_arn": node_group.arn,
        "node_group_status": node_group.status
    }


def create_eks_resources(cluster_name: str, cluster_version: str,
                         role_arn: pulumi.Output[str],
                         subnet_ids: List[pulumi.Output[str]],
                         node_group_name: str,
                         node_instance_types: List[str],
                         node_desired_size: int, node_max_size: int, node_min_size: int,
                         node_disk_size: int = 20, capacity_type: str = "ON_DEMAND",
                         endpoint_private_access: bool = False,
                         endpoint_public_access: bool = True,
                         policy_attachments: List[pulumi.Resource] = None,
                         network_dependencies: List[pulumi.Resource] = None,
                         tags: Dict[str, str] = None) -> Dict[str, any]:
    """
    Create the cluster and node layers

    Args:
        cluster_name: EKS cluster name
        cluster_version: Kubernetes version
        role_arn: IAM role ARN shared by cluster and nodes
        subnet_ids: List of subnet IDs
        node_group_name: Node group name in EKS
        node_instance_types: List of EC2 instance types
        node_desired_size: Desired number of nodes
        node_max_size: Maximum number of nodes
        node_min_size: Minimum number of nodes
        node_disk_size: EBS volume size in GB
        capacity_type: Capacity type (ON_DEMAND or SPOT)
        endpoint_private_access: Enable private API endpoint
        endpoint_public_access: Enable public API endpoint
        policy_attachments: Role policy attachments from the identity layer
        network_dependencies: Routing resources nodes need to reach the API
        tags: Additional tags

    Returns:
        Dict with all EKS resources and outputs
    """
    tags = tags or {}
    policy_attachments = list(policy_attachments or [])

    cluster_result = create_eks_cluster(
        name=cluster_name,
        version=cluster_version,
        role_arn=role_arn,
        subnet_ids=subnet_ids,
        depends_on=policy_attachments + list(network_dependencies or []),
        endpoint_private_access=endpoint_private_access,
        endpoint_public_access=endpoint_public_access,
        tags=tags
    )

    node_group_result = create_node_group(
        name=cluster_name,
        node_group_name=node_group_name,
        cluster=cluster_result["cluster"],
        role_arn=role_arn,
        subnet_ids=subnet_ids,
        instance_types=node_instance_types,
        desired_size=node_desired_size,
        max_size=node_max_size,
        min_size=node_min_size,
        disk_size=node_disk_size,
        capacity_type=capacity_type,
        depends_on=policy_attachments,
        tags=tags
    )

    return {
        "cluster_name": cluster_result["cluster_name"],
        "cluster_arn": cluster_result["cluster_arn"],
        "cluster_endpoint": cluster_result["cluster_endpoint"],
        "cluster_version_output": cluster_result["cluster_version"],
        "cluster_certificate_authority_data": cluster_result["cluster_certificate_authority_data"],
        "node_group_name": node_group_result["node_group_name"],
        "node_group_arn": node_group_result["node_group_arn"],
        "node_group_status": node_group_result["node_group_status"],
        # Keep references to resources for dependencies
        "_cluster": cluster_result["cluster"],
        "_node_group": node_group_result["node_group"]
    }
