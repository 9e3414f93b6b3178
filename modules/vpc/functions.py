"""
VPC Module Functions
Creates the VPC, public subnets, internet gateway and routing for EKS
"""

import ipaddress
import pulumi
import pulumi_aws as aws
from typing import Dict, List, Any


def subnet_cidr(vpc_cidr: str, newbits: int, netnum: int) -> str:
    """
    Carve a subnet out of a VPC block (same arithmetic as Terraform's cidrsubnet)

    Args:
        vpc_cidr: Parent CIDR block, e.g. 10.0.0.0/16
        newbits: Number of bits added to the parent prefix
        netnum: Index of the subnet within the parent block

    Returns:
        Subnet CIDR string, e.g. 10.0.1.0/24 for (10.0.0.0/16, 8, 1)
    """
    network = ipaddress.IPv4Network(vpc_cidr, strict=False)
    new_prefix = network.prefixlen + newbits
    if newbits < 1 or new_prefix > 32:
        raise ValueError(f"Cannot add {newbits} bits to /{network.prefixlen} prefix")
    if not 0 <= netnum < 2 ** newbits:
        raise ValueError(f"Subnet index {netnum} does not fit in {newbits} bits")

    base = int(network.network_address) + (netnum << (32 - new_prefix))
    return str(ipaddress.IPv4Network((base, new_prefix)))


def subnet_cidrs(vpc_cidr: str, count: int, newbits: int = 8) -> List[str]:
    """Consecutive subnet CIDRs starting at index 0"""
    return [subnet_cidr(vpc_cidr, newbits, i) for i in range(count)]


def create_vpc(name: str, cidr: str, enable_dns_hostnames: bool = True,
               enable_dns_support: bool = True, tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create VPC with DNS settings

    Args:
        name: VPC name
        cidr: VPC CIDR block
        enable_dns_hostnames: Enable DNS hostnames in VPC
        enable_dns_support: Enable DNS support in VPC
        tags: Additional tags

    Returns:
        Dict with vpc resource and outputs
    """
    tags = tags or {}

    vpc = aws.ec2.Vpc(
        f"{name}-vpc",
        cidr_block=cidr,
        enable_dns_hostnames=enable_dns_hostnames,
        enable_dns_support=enable_dns_support,
        tags={
            **tags,
            "Name": f"{name}-vpc",
            f"kubernetes.io/cluster/{name}": "shared",
            "Module": "vpc"
        }
    )

    return {
        "vpc": vpc,
        "vpc_id": vpc.id,
        "vpc_cidr_block": vpc.cidr_block
    }


def create_internet_gateway(name: str, vpc_id: pulumi.Output[str], tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create Internet Gateway for VPC

    Args:
        name: Resource name prefix
        vpc_id: VPC ID to attach to
        tags: Additional tags

    Returns:
        Dict with igw resource and outputs
    """
    tags = tags or {}

    igw = aws.ec2.InternetGateway(
        f"{name}-igw",
        vpc_id=vpc_id,
        tags={
            **tags,
            "Name": f"{name}-igw",
            "Module": "vpc"
        }
    )

    return {
        "igw": igw,
        "igw_id": igw.id
    }


def create_public_subnets(name: str, vpc_id: pulumi.Output[str], subnet_cidrs: List[str],
                          availability_zones: List[str], map_public_ip_on_launch: bool = True,
                          tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create public subnets for EKS, one per availability zone

    Args:
        name: Resource name prefix
        vpc_id: VPC ID
        subnet_cidrs: List of CIDR blocks for subnets
        availability_zones: List of availability zones
        map_public_ip_on_launch: Auto-assign public IPs to instances
        tags: Additional tags

    Returns:
        Dict with subnet resources and outputs
    """
    tags = tags or {}

    if len(availability_zones) < len(subnet_cidrs):
        raise ValueError(
            f"{len(subnet_cidrs)} subnets need distinct availability zones, "
            f"only {len(availability_zones)} available"
        )

    subnets = []
    for i, cidr in enumerate(subnet_cidrs):
        subnet = aws.ec2.Subnet(
            f"{name}-public-subnet-{i+1}",
            vpc_id=vpc_id,
            cidr_block=cidr,
            availability_zone=availability_zones[i],
            map_public_ip_on_launch=map_public_ip_on_launch,
            tags={
                **tags,
                "Name": f"{name}-public-subnet-{i+1}",
                "Type": "public",
                f"kubernetes.io/cluster/{name}": "shared",
                "kubernetes.io/role/elb": "1",
                "Module": "vpc"
            }
        )
        subnets.append(subnet)

    return {
        "subnets": subnets,
        "subnet_ids": [subnet.id for subnet in subnets],
        "subnet_cidrs": list(subnet_cidrs),
        "availability_zones": list(availability_zones[:len(subnet_cidrs)])
    }


def create_public_route_table(name: str, vpc_id: pulumi.Output[str], igw_id: pulumi.Output[str],
                              subnet_ids: List[pulumi.Output[str]], tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create route table for public subnets

    Args:
        name: Resource name prefix
        vpc_id: VPC ID
        igw_id: Internet Gateway ID
        subnet_ids: List of subnet IDs to associate
        tags: Additional tags

    Returns:
        Dict with route table resources and outputs
    """
    tags = tags or {}

    route_table = aws.ec2.RouteTable(
        f"{name}-public-rt",
        vpc_id=vpc_id,
        tags={
            **tags,
            "Name": f"{name}-public-rt",
            "Module": "vpc"
        }
    )

    # Default route to internet gateway
    route = aws.ec2.Route(
        f"{name}-public-route",
        route_table_id=route_table.id,
        destination_cidr_block="0.0.0.0/0",
        gateway_id=igw_id
    )

    associations = []
    for i, subnet_id in enumerate(subnet_ids):
        association = aws.ec2.RouteTableAssociation(
            f"{name}-public-rta-{i+1}",
            subnet_id=subnet_id,
            route_table_id=route_table.id
        )
        associations.append(association)

    return {
        "route_table": route_table,
        "route": route,
        "associations": associations,
        "route_table_id": route_table.id
    }


def create_vpc_resources(cluster_name: str, vpc_cidr: str, public_subnet_cidrs: List[str],
                         enable_dns_hostnames: bool = True, enable_dns_support: bool = True,
                         map_public_ip_on_launch: bool = True, tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create complete network layer for EKS

    Args:
        cluster_name: EKS cluster name
        vpc_cidr: VPC CIDR block
        public_subnet_cidrs: List of public subnet CIDR blocks
        enable_dns_hostnames: Enable DNS hostnames in VPC
        enable_dns_support: Enable DNS support in VPC
        map_public_ip_on_launch: Auto-assign public IPs to instances
        tags: Additional tags for all resources

    Returns:
        Dict with all VPC resources and outputs
    """
    tags = tags or {}

    azs = aws.get_availability_zones(state="available")

    vpc_result = create_vpc(cluster_name, vpc_cidr, enable_dns_hostnames, enable_dns_support, tags)

    igw_result = create_internet_gateway(cluster_name, vpc_result["vpc_id"], tags)

    subnets_result = create_public_subnets(
        cluster_name,
        vpc_result["vpc_id"],
        public_subnet_cidrs,
        azs.names,
        map_public_ip_on_launch,
        tags
    )

    route_table_result = create_public_route_table(
        cluster_name,
        vpc_result["vpc_id"],
        igw_result["igw_id"],
        subnets_result["subnet_ids"],
        tags
    )

    return {
        "vpc_id": vpc_result["vpc_id"],
        "vpc_cidr_block": vpc_result["vpc_cidr_block"],
        "public_subnet_ids": subnets_result["subnet_ids"],
        "public_subnet_cidrs": subnets_result["subnet_cidrs"],
        "availability_zones": subnets_result["availability_zones"],
        "route_table_id": route_table_result["route_table_id"],
        # Keep references to all resources for dependencies
        "_vpc": vpc_result["vpc"],
        "_igw": igw_result["igw"],
        "_subnets": subnets_result["subnets"],
        "_route_table": route_table_result["route_table"],
        "_route": route_table_result["route"],
        "_associations": route_table_result["associations"]
    }
