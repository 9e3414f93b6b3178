"""
VPC Module for EKS
Network layer: VPC, public subnets, internet gateway and routing
"""

from .functions import (
    create_internet_gateway,
    create_public_route_table,
    create_public_subnets,
    create_vpc,
    create_vpc_resources,
    subnet_cidr,
    subnet_cidrs,
)
