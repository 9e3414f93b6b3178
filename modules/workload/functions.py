"""
Workload Module Functions
Kubernetes provider for the EKS cluster and the sample Nginx Pod and Service
"""

import json
import pulumi
import pulumi_kubernetes as k8s
from typing import Dict, List

from validation import selector_matches

EXEC_API_VERSION = "client.authentication.k8s.io/v1beta1"


def build_kubeconfig(cluster_name: str, endpoint: str, ca_data: str,
                     region: str = None) -> Dict[str, any]:
    """
    Build a kubeconfig document that authenticates through `aws eks get-token`

    The token is fetched by the exec plugin each time the provider connects,
    so the document itself only changes when the cluster does.

    Args:
        cluster_name: EKS cluster name, used for cluster/context/user entries
        endpoint: Cluster API server URL
        ca_data: Base64 encoded cluster CA certificate
        region: AWS region passed to the token command

    Returns:
        Kubeconfig as a dict (serialize with json.dumps)
    """
    token_args = ["eks", "get-token", "--cluster-name", cluster_name]
    if region:
        token_args += ["--region", region]

    return {
        "apiVersion": "v1",
        "kind": "Config",
        "clusters": [{
            "name": cluster_name,
            "cluster": {
                "server": endpoint,
                "certificate-authority-data": ca_data
            }
        }],
        "contexts": [{
            "name": cluster_name,
            "context": {
                "cluster": cluster_name,
                "user": cluster_name
            }
        }],
        "current-context": cluster_name,
        "users": [{
            "name": cluster_name,
            "user": {
                "exec": {
                    "apiVersion": EXEC_API_VERSION,
                    "command": "aws",
                    "args": token_args
                }
            }
        }]
    }


def create_kubernetes_provider(name: str, cluster_name: pulumi.Output[str],
                               cluster_endpoint: pulumi.Output[str],
                               cluster_ca_data: pulumi.Output[str],
                               region: str = None) -> Dict[str, any]:
    """
    Create Kubernetes provider for EKS cluster

    Args:
        name: Provider name prefix
        cluster_name: EKS cluster name output
        cluster_endpoint: EKS cluster endpoint
        cluster_ca_data: EKS cluster CA certificate data
        region: AWS region for the token command

    Returns:
        Dict with provider and kubeconfig output
    """
    kubeconfig = pulumi.Output.all(cluster_name, cluster_endpoint, cluster_ca_data).apply(
        lambda args: json.dumps(build_kubeconfig(*args, region=region))
    )

    provider = k8s.Provider(
        f"{name}-k8s-provider",
        kubeconfig=kubeconfig
    )

    return {
        "provider": provider,
        "kubeconfig": kubeconfig
    }


def create_app_pod(name: str, app_name: str, image: str, labels: Dict[str, str],
                   provider: k8s.Provider, namespace: str = "default",
                   container_port: int = 80,
                   requests: Dict[str, str] = None, limits: Dict[str, str] = None,
                   depends_on: List[pulumi.Resource] = None) -> Dict[str, any]:
    """
    Create single-container application Pod

    Args:
        name: Resource name prefix
        app_name: Pod and container name
        image: Container image
        labels: Pod labels, matched by the Service selector
        provider: Kubernetes provider
        namespace: Kubernetes namespace
        container_port: Port the container listens on
        requests: Resource requests (cpu, memory)
        limits: Resource limits (cpu, memory)
        depends_on: Resources that must exist while the Pod runs (node group)

    Returns:
        Dict with pod resource and outputs
    """
    pod = k8s.core.v1.Pod(
        f"{name}-{app_name}-pod",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=app_name,
            namespace=namespace,
            labels=dict(labels)
        ),
        spec=k8s.core.v1.PodSpecArgs(
            containers=[
                k8s.core.v1.ContainerArgs(
                    name=app_name,
                    image=image,
                    ports=[k8s.core.v1.ContainerPortArgs(container_port=container_port)],
                    resources=k8s.core.v1.ResourceRequirementsArgs(
                        requests=requests or {},
                        limits=limits or {}
                    )
                )
            ]
        ),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=list(depends_on or []))
    )

    return {
        "pod": pod,
        "pod_name": app_name,
        "labels": dict(labels)
    }


def create_app_service(name: str, app_name: str, selector: Dict[str, str],
                       pod_labels: Dict[str, str], provider: k8s.Provider,
                       namespace: str = "default", port: int = 80, target_port: int = 80,
                       service_type: str = "LoadBalancer",
                       depends_on: List[pulumi.Resource] = None) -> Dict[str, any]:
    """
    Create Service exposing the application Pod

    Args:
        name: Resource name prefix
        app_name: Application name, the Service is named <app_name>-service
        selector: Service selector
        pod_labels: Labels of the Pod the Service must route to
        provider: Kubernetes provider
        namespace: Kubernetes namespace
        port: Service port
        target_port: Container port
        service_type: ClusterIP, NodePort or LoadBalancer
        depends_on: Extra dependencies (the Pod)

    Returns:
        Dict with service resource and outputs
    """
    if not selector_matches(selector, pod_labels):
        raise ValueError(f"Service selector {selector} does not match pod labels {pod_labels}")

    service_name = f"{app_name}-service"
    service = k8s.core.v1.Service(
        f"{name}-{service_name}",
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=service_name,
            namespace=namespace,
            labels=dict(pod_labels)
        ),
        spec=k8s.core.v1.ServiceSpecArgs(
            selector=dict(selector),
            ports=[k8s.core.v1.ServicePortArgs(
                port=port,
                target_port=target_port,
                protocol="TCP"
            )],
            type=service_type
        ),
        opts=pulumi.ResourceOptions(provider=provider, depends_on=list(depends_on or []))
    )

    # Hostname is only assigned to LoadBalancer services
    hostname = service.status.apply(
        lambda status: status.load_balancer.ingress[0].hostname
        if status and status.load_balancer and status.load_balancer.ingress else ""
    )

    return {
        "service": service,
        "service_name": service_name,
        "hostname": hostname
    }


def create_workload_resources(cluster_name: str,
                              cluster_name_output: pulumi.Output[str],
                              cluster_endpoint: pulumi.Output[str],
                              cluster_ca_data: pulumi.Output[str],
                              node_group: pulumi.Resource,
                              app_name: str = "nginx",
                              app_image: str = "nginx:latest",
                              labels: Dict[str, str] = None,
                              selector: Dict[str, str] = None,
                              namespace: str = "default",
                              container_port: int = 80,
                              service_port: int = 80,
                              service_type: str = "LoadBalancer",
                              requests: Dict[str, str] = None,
                              limits: Dict[str, str] = None,
                              region: str = None) -> Dict[str, any]:
    """
    Create the workload layer on the EKS cluster

    Args:
        cluster_name: EKS cluster name, used as resource name prefix
        cluster_name_output: Cluster name output (carries the cluster dependency)
        cluster_endpoint: EKS cluster endpoint
        cluster_ca_data: EKS cluster CA certificate data
        node_group: Node group the Pod is scheduled on
        app_name: Application name
        app_image: Container image
        labels: Pod labels, defaults to {"app": app_name}
        selector: Service selector, defaults to the Pod labels
        namespace: Kubernetes namespace
        container_port: Port the container listens on
        service_port: Port exposed by the Service
        service_type: Service type
        requests: Resource requests
        limits: Resource limits
        region: AWS region for the provider's token command

    Returns:
        Dict with all workload resources and outputs
    """
    labels = labels or {"app": app_name}
    selector = selector or labels

    provider_result = create_kubernetes_provider(
        cluster_name,
        cluster_name_output,
        cluster_endpoint,
        cluster_ca_data,
        region=region
    )

    pod_result = create_app_pod(
        name=cluster_name,
        app_name=app_name,
        image=app_image,
        labels=labels,
        provider=provider_result["provider"],
        namespace=namespace,
        container_port=container_port,
        requests=requests,
        limits=limits,
        depends_on=[node_group]
    )

    service_result = create_app_service(
        name=cluster_name,
        app_name=app_name,
        selector=selector,
        pod_labels=pod_result["labels"],
        provider=provider_result["provider"],
        namespace=namespace,
        port=service_port,
        target_port=container_port,
        service_type=service_type,
        depends_on=[pod_result["pod"]]
    )

    return {
        "pod_name": pod_result["pod_name"],
        "service_name": service_result["service_name"],
        "service_hostname": service_result["hostname"],
        "labels": pod_result["labels"],
        # Keep references to resources for dependencies
        "_k8s_provider": provider_result["provider"],
        "_kubeconfig": provider_result["kubeconfig"],
        "_pod": pod_result["pod"],
        "_service": service_result["service"]
    }
