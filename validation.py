"""
Configuration validation for the EKS tutorial stack
Checks the declared values before any resource is registered
"""

import ipaddress
from dataclasses import dataclass
from itertools import combinations
from typing import Any, Dict, List, Optional, Tuple

SERVICE_TYPES = ("ClusterIP", "NodePort", "LoadBalancer")

# EKS requires subnets in at least two availability zones
MIN_SUBNETS = 2


@dataclass
class ValidationErrorDetail:
    field: str
    message: str
    value: Any = None


class ConfigValidationError(Exception):
    """Exception raised when config validation fails."""

    def __init__(self, errors: List[ValidationErrorDetail]):
        self.errors = errors
        messages = [f"{e.field}: {e.message}" for e in errors]
        super().__init__(f"Configuration validation failed: {'; '.join(messages)}")


def is_valid_cidr(cidr: str) -> Tuple[bool, Optional[str]]:
    """Check if a CIDR string is valid.

    Returns (is_valid, error_message).
    """
    try:
        ipaddress.IPv4Network(cidr, strict=True)
        return True, None
    except ValueError as e:
        return False, str(e)


def cidrs_overlap(cidr1: str, cidr2: str) -> bool:
    """Check if two CIDR blocks overlap."""
    try:
        net1 = ipaddress.IPv4Network(cidr1, strict=False)
        net2 = ipaddress.IPv4Network(cidr2, strict=False)
        return net1.overlaps(net2)
    except ValueError:
        return False  # Invalid CIDRs handled elsewhere


def is_subnet_of(subnet_cidr: str, vpc_cidr: str) -> bool:
    """Check if subnet CIDR is a strict subset of the VPC CIDR range."""
    try:
        subnet = ipaddress.IPv4Network(subnet_cidr, strict=False)
        vpc = ipaddress.IPv4Network(vpc_cidr, strict=False)
        return subnet.subnet_of(vpc) and subnet.prefixlen > vpc.prefixlen
    except ValueError:
        return False


def validate_subnet_cidrs(vpc_cidr: str, subnet_cidrs: List[str]) -> List[ValidationErrorDetail]:
    """
    Validate subnet CIDRs against the VPC block

    At least MIN_SUBNETS are required. Every subnet must be valid, lie
    strictly inside the VPC block and not overlap any other subnet.
    """
    errors: List[ValidationErrorDetail] = []

    valid, err = is_valid_cidr(vpc_cidr)
    if not valid:
        errors.append(ValidationErrorDetail("vpc_cidr", f"Invalid VPC CIDR: {err}", vpc_cidr))
        return errors

    if len(subnet_cidrs) < MIN_SUBNETS:
        errors.append(ValidationErrorDetail(
            "public_subnet_cidrs", f"At least {MIN_SUBNETS} subnets are required", list(subnet_cidrs)))
        if not subnet_cidrs:
            return errors

    usable = []
    for i, cidr in enumerate(subnet_cidrs):
        field = f"public_subnet_cidrs[{i}]"
        valid, err = is_valid_cidr(cidr)
        if not valid:
            errors.append(ValidationErrorDetail(field, f"Invalid subnet CIDR: {err}", cidr))
            continue
        if not is_subnet_of(cidr, vpc_cidr):
            errors.append(ValidationErrorDetail(field, f"Subnet is not inside VPC block {vpc_cidr}", cidr))
            continue
        usable.append((i, cidr))

    for (i, first), (j, second) in combinations(usable, 2):
        if cidrs_overlap(first, second):
            errors.append(ValidationErrorDetail(
                f"public_subnet_cidrs[{j}]",
                f"Subnet overlaps public_subnet_cidrs[{i}] ({first})",
                second
            ))

    return errors


def validate_scaling(min_size: int, desired_size: int, max_size: int) -> List[ValidationErrorDetail]:
    """Validate node group scaling bounds (min <= desired <= max)."""
    errors: List[ValidationErrorDetail] = []

    if min_size < 0:
        errors.append(ValidationErrorDetail("node_min_size", "Must not be negative", min_size))
    if max_size < 1:
        errors.append(ValidationErrorDetail("node_max_size", "Must be at least 1", max_size))
    if min_size > desired_size:
        errors.append(ValidationErrorDetail(
            "node_desired_size", f"Must be >= node_min_size ({min_size})", desired_size))
    if desired_size > max_size:
        errors.append(ValidationErrorDetail(
            "node_desired_size", f"Must be <= node_max_size ({max_size})", desired_size))

    return errors


def selector_matches(selector: Dict[str, str], labels: Dict[str, str]) -> bool:
    """Check that a non-empty Service selector selects a Pod with these labels."""
    if not selector:
        return False
    return all(labels.get(key) == value for key, value in selector.items())


def validate_port(field: str, port: int) -> List[ValidationErrorDetail]:
    if not 1 <= port <= 65535:
        return [ValidationErrorDetail(field, "Port must be between 1 and 65535", port)]
    return []


def validate_config(cfg) -> None:
    """
    Validate a complete stack configuration

    Args:
        cfg: Config instance (see config.py)

    Raises:
        ConfigValidationError: listing every failing field
    """
    errors: List[ValidationErrorDetail] = []

    if not cfg.cluster_name:
        errors.append(ValidationErrorDetail("cluster_name", "Cluster name is required"))

    if cfg.use_existing_role and not cfg.existing_role_name:
        errors.append(ValidationErrorDetail(
            "existing_role_name", "Required when use_existing_role is true"))

    subnet_cidr_error = getattr(cfg, "subnet_cidr_error", None)
    if subnet_cidr_error:
        errors.append(ValidationErrorDetail("subnet_newbits", subnet_cidr_error, cfg.subnet_newbits))
    else:
        errors.extend(validate_subnet_cidrs(cfg.vpc_cidr, cfg.public_subnet_cidrs))
    errors.extend(validate_scaling(cfg.node_min_size, cfg.node_desired_size, cfg.node_max_size))

    if not cfg.node_instance_types:
        errors.append(ValidationErrorDetail("node_instance_types", "At least one instance type is required"))

    if cfg.service_type not in SERVICE_TYPES:
        errors.append(ValidationErrorDetail(
            "service_type", f"Must be one of {', '.join(SERVICE_TYPES)}", cfg.service_type))

    errors.extend(validate_port("container_port", cfg.container_port))
    errors.extend(validate_port("service_port", cfg.service_port))

    if not selector_matches(cfg.app_selector, cfg.app_labels):
        errors.append(ValidationErrorDetail(
            "app_selector", f"Selector does not match pod labels {cfg.app_labels}", cfg.app_selector))

    if errors:
        raise ConfigValidationError(errors)
