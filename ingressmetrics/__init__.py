from .classifier import features_for_ingress, features_for_service_port
from .config import Config
from .exporter import PrometheusExporter
from .features import BackendFeature, FrontendFeature, NegFeature
from .metrics import ControllerMetrics
from .resources import (
    BackendConfig,
    CDNConfig,
    ConnectionDrainingConfig,
    CustomRequestHeadersConfig,
    HTTPIngressPath,
    IAPConfig,
    Ingress,
    IngressBackend,
    IngressRule,
    IngressState,
    IngressTLS,
    NegServiceState,
    SecurityPolicyConfig,
    ServicePort,
    ServicePortID,
    SessionAffinityConfig,
)
from .snapshot import Snapshot, SnapshotError, load_snapshot
from .VERSION import Version

__version__ = Version

__all__ = [
    "BackendConfig",
    "BackendFeature",
    "CDNConfig",
    "Config",
    "ConnectionDrainingConfig",
    "ControllerMetrics",
    "CustomRequestHeadersConfig",
    "FrontendFeature",
    "HTTPIngressPath",
    "IAPConfig",
    "Ingress",
    "IngressBackend",
    "IngressRule",
    "IngressState",
    "IngressTLS",
    "NegFeature",
    "NegServiceState",
    "PrometheusExporter",
    "SecurityPolicyConfig",
    "ServicePort",
    "ServicePortID",
    "SessionAffinityConfig",
    "Snapshot",
    "SnapshotError",
    "features_for_ingress",
    "features_for_service_port",
    "load_snapshot",
]
