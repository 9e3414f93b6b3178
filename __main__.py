"""
EKS Tutorial Stack
VPC + IAM + EKS cluster + managed nodes + sample Nginx workload
"""
import pulumi
from config import get_config
from modules.vpc.functions import create_vpc_resources
from modules.iam.functions import create_iam_resources
from modules.eks.functions import create_eks_resources
from modules.workload.functions import create_workload_resources

# Configuration
config = get_config().validate()
tags = config.common_tags

# 1. Network layer
pulumi.log.info(f"Declaring network {config.vpc_cidr} with subnets {', '.join(config.public_subnet_cidrs)}")
network = create_vpc_resources(
    cluster_name=config.cluster_name,
    vpc_cidr=config.vpc_cidr,
    public_subnet_cidrs=config.public_subnet_cidrs,
    enable_dns_hostnames=config.enable_dns_hostnames,
    enable_dns_support=config.enable_dns_support,
    map_public_ip_on_launch=config.map_public_ip_on_launch,
    tags=tags
)

# 2. Identity layer
identity = create_iam_resources(
    cluster_name=config.cluster_name,
    use_existing_role=config.use_existing_role,
    existing_role_name=config.existing_role_name,
    tags=tags,
    depends_on=[network["_vpc"]]
)

# 3 + 4. Cluster and node layers
pulumi.log.info(
    f"Declaring cluster {config.cluster_name} with node group {config.node_group_name} "
    f"(min {config.node_min_size}, desired {config.node_desired_size}, max {config.node_max_size})"
)
eks = create_eks_resources(
    cluster_name=config.cluster_name,
    cluster_version=config.cluster_version,
    role_arn=identity["role_arn"],
    subnet_ids=network["public_subnet_ids"],
    node_group_name=config.node_group_name,
    node_instance_types=config.node_instance_types,
    node_desired_size=config.node_desired_size,
    node_max_size=config.node_max_size,
    node_min_size=config.node_min_size,
    node_disk_size=config.node_disk_size,
    capacity_type=config.capacity_type,
    endpoint_private_access=config.endpoint_private_access,
    endpoint_public_access=config.endpoint_public_access,
    policy_attachments=identity["_policy_attachments"],
    network_dependencies=[network["_route"], *network["_associations"]],
    tags=tags
)

# 5. Workload layer
pulumi.log.info(f"Declaring {config.app_image} pod behind a {config.service_type} service")
workload = create_workload_resources(
    cluster_name=config.cluster_name,
    cluster_name_output=eks["cluster_name"],
    cluster_endpoint=eks["cluster_endpoint"],
    cluster_ca_data=eks["cluster_certificate_authority_data"],
    node_group=eks["_node_group"],
    app_name=config.app_name,
    app_image=config.app_image,
    labels=config.app_labels,
    selector=config.app_selector,
    namespace=config.app_namespace,
    container_port=config.container_port,
    service_port=config.service_port,
    service_type=config.service_type,
    requests=config.resource_requests,
    limits=config.resource_limits,
    region=config.aws_region
)

# Exports
pulumi.export("cluster_name", eks["cluster_name"])
pulumi.export("cluster_endpoint", eks["cluster_endpoint"])
pulumi.export("vpc_id", network["vpc_id"])
pulumi.export("public_subnet_ids", network["public_subnet_ids"])
pulumi.export("public_subnet_cidrs", network["public_subnet_cidrs"])
pulumi.export("availability_zones", network["availability_zones"])
pulumi.export("role_arn", identity["role_arn"])
pulumi.export("node_group_name", eks["node_group_name"])
pulumi.export("app_service_name", workload["service_name"])
app_port = "" if config.service_port == 80 else f":{config.service_port}"
pulumi.export("app_url", workload["service_hostname"].apply(lambda host: f"http://{host}{app_port}" if host else ""))
pulumi.export("kubeconfig_command", config.kubeconfig_command)
