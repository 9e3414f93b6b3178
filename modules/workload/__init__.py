"""
Workload Module
Kubernetes provider plus the sample Nginx Pod and LoadBalancer Service
"""

from .functions import (
    build_kubeconfig,
    create_app_pod,
    create_app_service,
    create_kubernetes_provider,
    create_workload_resources,
)
