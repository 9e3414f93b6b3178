"""
IAM Module for EKS
Identity layer: one role for the control plane and worker nodes
"""

from .functions import (
    EKS_ROLE_POLICIES,
    build_assume_role_policy,
    create_eks_role,
    create_iam_resources,
    get_existing_role,
)
