"""
EKS Module
Cluster and node layers: control plane and managed node group
"""

from .functions import create_eks_cluster, create_eks_resources, create_node_group
