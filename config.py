"""
Configuration management for the EKS tutorial stack
"""

import pulumi
from typing import Dict, List

from modules.vpc.functions import subnet_cidrs
from validation import validate_config


class Config:
    """Centralized configuration management for the EKS deployment"""

    def __init__(self):
        self.config = pulumi.Config()
        aws_config = pulumi.Config("aws")

        # AWS Configuration
        self.aws_region = aws_config.get("region") or "us-east-1"

        # Cluster Configuration
        self.cluster_name = self.config.get("cluster_name") or "eks-cluster"
        self.cluster_version = self.config.get("cluster_version") or "1.31"
        self.endpoint_public_access = self._bool("endpoint_public_access", True)
        self.endpoint_private_access = self._bool("endpoint_private_access", False)

        # VPC Configuration
        self.vpc_cidr = self.config.get("vpc_cidr") or "10.0.0.0/16"
        self.subnet_count = self._int("subnet_count", 2)
        self.subnet_newbits = self._int("subnet_newbits", 8)
        self.subnet_cidr_error = None
        self.public_subnet_cidrs = self.config.get_object("public_subnet_cidrs") or self._derived_subnet_cidrs()
        self.enable_dns_hostnames = self._bool("enable_dns_hostnames", True)
        self.enable_dns_support = self._bool("enable_dns_support", True)
        self.map_public_ip_on_launch = self._bool("map_public_ip_on_launch", True)

        # IAM Configuration
        self.use_existing_role = self._bool("use_existing_role", False)
        self.existing_role_name = self.config.get("existing_role_name") or ""

        # Node Configuration
        self.node_group_name = self.config.get("node_group_name") or f"{self.cluster_name}-nodes"
        self.node_instance_types = self.config.get_object("node_instance_types") or ["t3.medium"]
        self.node_desired_size = self._int("node_desired_size", 2)
        self.node_min_size = self._int("node_min_size", 1)
        self.node_max_size = self._int("node_max_size", 3)
        self.node_disk_size = self._int("node_disk_size", 20)
        self.enable_spot_instances = self._bool("enable_spot_instances", False)

        # Workload Configuration
        self.app_name = self.config.get("app_name") or "nginx"
        self.app_selector = self.config.get_object("app_selector") or self.app_labels
        self.app_image = self.config.get("app_image") or "nginx:latest"
        self.app_namespace = self.config.get("app_namespace") or "default"
        self.container_port = self._int("container_port", 80)
        self.service_port = self._int("service_port", 80)
        self.service_type = self.config.get("service_type") or "LoadBalancer"
        self.cpu_request = self.config.get("cpu_request") or "250m"
        self.memory_request = self.config.get("memory_request") or "50Mi"
        self.cpu_limit = self.config.get("cpu_limit") or "500m"
        self.memory_limit = self.config.get("memory_limit") or "512Mi"

        # Additional tags
        self.additional_tags = self.config.get_object("tags") or {}

    def _bool(self, key: str, default: bool) -> bool:
        value = self.config.get_bool(key)
        return default if value is None else value

    def _int(self, key: str, default: int) -> int:
        value = self.config.get_int(key)
        return default if value is None else value

    def _derived_subnet_cidrs(self) -> List[str]:
        try:
            return subnet_cidrs(self.vpc_cidr, self.subnet_count, self.subnet_newbits)
        except ValueError as e:
            self.subnet_cidr_error = f"Cannot derive {self.subnet_count} subnets from {self.vpc_cidr}: {e}"
            pulumi.log.warn(self.subnet_cidr_error)
            return []

    @property
    def common_tags(self) -> Dict[str, str]:
        """Get common tags for all resources"""
        base_tags = {
            "Environment": "tutorial",
            "Project": "eks-nginx",
            "ManagedBy": "pulumi",
        }
        base_tags.update(self.additional_tags)
        return base_tags

    @property
    def capacity_type(self) -> str:
        """Get node group capacity type based on spot instance configuration"""
        return "SPOT" if self.enable_spot_instances else "ON_DEMAND"

    @property
    def app_labels(self) -> Dict[str, str]:
        return {"app": self.app_name}

    @property
    def resource_requests(self) -> Dict[str, str]:
        return {"cpu": self.cpu_request, "memory": self.memory_request}

    @property
    def resource_limits(self) -> Dict[str, str]:
        return {"cpu": self.cpu_limit, "memory": self.memory_limit}

    @property
    def kubeconfig_command(self) -> str:
        """Command that hands cluster access over to the local kubectl"""
        return f"aws eks update-kubeconfig --region {self.aws_region} --name {self.cluster_name}"

    def validate(self) -> "Config":
        """Raise ConfigValidationError if the declared values are inconsistent"""
        validate_config(self)
        return self


def get_config() -> Config:
    """Get the global configuration instance"""
    return Config()
