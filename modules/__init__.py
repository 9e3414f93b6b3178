"""
Pulumi modules for the EKS tutorial stack
One module per layer: network, identity, cluster and nodes, workload
"""

from .vpc import create_vpc_resources
from .iam import create_iam_resources
from .eks import create_eks_resources
from .workload import create_workload_resources

__all__ = [
    "create_vpc_resources",
    "create_iam_resources",
    "create_eks_resources",
    "create_workload_resources"
]
