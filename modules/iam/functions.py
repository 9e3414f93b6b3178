"""
IAM Module Functions
Creates the IAM role shared by the EKS control plane and its worker nodes
"""

import json
import pulumi
import pulumi_aws as aws
from typing import Dict, List

EKS_ROLE_SERVICES = ["eks.amazonaws.com", "ec2.amazonaws.com"]

EKS_ROLE_POLICIES = [
    ("cluster", "arn:aws:iam::aws:policy/AmazonEKSClusterPolicy"),
    ("worker", "arn:aws:iam::aws:policy/AmazonEKSWorkerNodePolicy"),
    ("cni", "arn:aws:iam::aws:policy/AmazonEKS_CNI_Policy"),
    ("registry", "arn:aws:iam::aws:policy/AmazonEC2ContainerRegistryReadOnly"),
]


def build_assume_role_policy(services: List[str]) -> str:
    """Trust policy allowing the given service principals to assume the role"""
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Action": "sts:AssumeRole",
            "Effect": "Allow",
            "Principal": {"Service": list(services)}
        }]
    })


def create_eks_role(name: str, tags: Dict[str, str] = None,
                    depends_on: List[pulumi.Resource] = None) -> Dict[str, any]:
    """
    Create IAM role for the EKS cluster and node group

    Args:
        name: Role name prefix
        tags: Additional tags
        depends_on: Resources that must outlive the role (the VPC)

    Returns:
        Dict with role resource, policy attachments and outputs
    """
    tags = tags or {}

    role = aws.iam.Role(
        f"{name}-eks-role",
        name=f"{name}-eks-role",
        assume_role_policy=build_assume_role_policy(EKS_ROLE_SERVICES),
        tags={
            **tags,
            "Name": f"{name}-eks-role",
            "Module": "iam"
        },
        opts=pulumi.ResourceOptions(depends_on=list(depends_on or []))
    )

    policy_attachments = {}
    for policy_name, policy_arn in EKS_ROLE_POLICIES:
        attachment = aws.iam.RolePolicyAttachment(
            f"{name}-{policy_name}-policy",
            policy_arn=policy_arn,
            role=role.name,
            opts=pulumi.ResourceOptions(depends_on=list(depends_on or []))
        )
        policy_attachments[f"{policy_name}_policy"] = attachment

    return {
        "role": role,
        "policy_attachments": policy_attachments,
        "role_arn": role.arn,
        "role_name": role.name
    }


def get_existing_role(role_name: str) -> Dict[str, any]:
    """
    Get existing IAM role

    Args:
        role_name: Name of existing role

    Returns:
        Dict with role information
    """
    role = aws.iam.get_role(name=role_name)

    return {
        "role": role,
        "role_arn": pulumi.Output.from_input(role.arn),
        "role_name": pulumi.Output.from_input(role.name)
    }


def create_iam_resources(cluster_name: str,
                         use_existing_role: bool = False,
                         existing_role_name: str = "",
                         tags: Dict[str, str] = None,
                         depends_on: List[pulumi.Resource] = None) -> Dict[str, any]:
    """
    Create or reference the identity layer for EKS

    Args:
        cluster_name: EKS cluster name
        use_existing_role: Use existing role instead of creating one
        existing_role_name: Name of existing role
        tags: Additional tags
        depends_on: Network resources the role is ordered after

    Returns:
        Dict with all IAM resources and outputs
    """
    tags = tags or {}

    if use_existing_role and existing_role_name:
        pulumi.log.info(f"Using existing IAM role {existing_role_name}")
        role_result = get_existing_role(existing_role_name)
    else:
        role_result = create_eks_role(cluster_name, tags, depends_on=depends_on)

    return {
        "role_arn": role_result["role_arn"],
        "role_name": role_result["role_name"],
        # Keep references to resources for dependencies
        "_role": role_result.get("role"),
        "_policy_attachments": list((role_result.get("policy_attachments") or {}).values())
    }
