import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ingressmetrics import (
    BackendConfig,
    BackendFeature,
    CDNConfig,
    ConnectionDrainingConfig,
    CustomRequestHeadersConfig,
    FrontendFeature,
    HTTPIngressPath,
    IAPConfig,
    Ingress,
    IngressBackend,
    IngressRule,
    IngressState,
    IngressTLS,
    SecurityPolicyConfig,
    ServicePort,
    ServicePortID,
    SessionAffinityConfig,
)
from ingressmetrics.features import (
    ALLOW_HTTP_KEY,
    GCE_L7_ILB_INGRESS_CLASS,
    INGRESS_CLASS_KEY,
    MANAGED_CERT_KEY,
    PRE_SHARED_CERT_KEY,
    STATIC_IP_KEY,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s test %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger("ingressmetrics")

TEST_TTL = 10
DEFAULT_NAMESPACE = "default"

F = FrontendFeature
B = BackendFeature

SERVICE_PORTS = [
    ServicePort(
        id=ServicePortID(DEFAULT_NAMESPACE, "dummy-service", 80),
        backend_config=BackendConfig(
            cdn=CDNConfig(enabled=True),
            session_affinity=SessionAffinityConfig(
                affinity_type="GENERATED_COOKIE", affinity_cookie_ttl_sec=TEST_TTL
            ),
            security_policy=SecurityPolicyConfig(name="security-policy-1"),
            connection_draining=ConnectionDrainingConfig(draining_timeout_sec=TEST_TTL),
        ),
    ),
    ServicePort(
        id=ServicePortID(DEFAULT_NAMESPACE, "foo-service", 80),
        neg_enabled=True,
        backend_config=BackendConfig(
            iap=IAPConfig(enabled=True),
            session_affinity=SessionAffinityConfig(
                affinity_type="CLIENT_IP", affinity_cookie_ttl_sec=TEST_TTL
            ),
            timeout_sec=TEST_TTL,
            custom_request_headers=CustomRequestHeadersConfig(headers=()),
        ),
    ),
    # NEG default backend, same ID as the first one.
    ServicePort(
        id=ServicePortID(DEFAULT_NAMESPACE, "dummy-service", 80),
        neg_enabled=True,
        l7_ilb_enabled=True,
    ),
    ServicePort(
        id=ServicePortID(DEFAULT_NAMESPACE, "bar-service", 5000),
        neg_enabled=True,
        l7_ilb_enabled=True,
        backend_config=BackendConfig(
            iap=IAPConfig(enabled=True),
            session_affinity=SessionAffinityConfig(
                affinity_type="GENERATED_COOKIE", affinity_cookie_ttl_sec=TEST_TTL
            ),
            connection_draining=ConnectionDrainingConfig(draining_timeout_sec=TEST_TTL),
        ),
    ),
]

DUMMY_BACKEND = IngressBackend("dummy-service", 80)
FOO_PATH_RULE = IngressRule(
    host="foo.bar", paths=(HTTPIngressPath("/foo", IngressBackend("foo-service", 80)),)
)


@dataclass
class IngressCase:
    desc: str
    ingress: Ingress
    frontend_features: List[FrontendFeature]
    service_ports: List[ServicePort] = field(default_factory=list)
    # Union of the backend features of service_ports, in first-seen order.
    backend_features: Optional[List[BackendFeature]] = None

    def state(self) -> IngressState:
        return IngressState(self.ingress, self.service_ports)


def _ingress(name: str, **kwargs) -> Ingress:
    return Ingress(namespace=DEFAULT_NAMESPACE, name=name, **kwargs)


INGRESS_CASES = [
    IngressCase(
        "empty spec",
        _ingress("ingress0"),
        [F.INGRESS, F.EXTERNAL_INGRESS, F.HTTP_ENABLED],
    ),
    IngressCase(
        "http disabled",
        _ingress("ingress1", annotations={ALLOW_HTTP_KEY: "false"}),
        [F.INGRESS, F.EXTERNAL_INGRESS],
    ),
    IngressCase(
        "default backend",
        _ingress("ingress2", default_backend=DUMMY_BACKEND),
        [F.INGRESS, F.EXTERNAL_INGRESS, F.HTTP_ENABLED],
        [SERVICE_PORTS[0]],
        [
            B.SERVICE_PORT,
            B.EXTERNAL_SERVICE_PORT,
            B.CLOUD_CDN,
            B.COOKIE_AFFINITY,
            B.CLOUD_ARMOR,
            B.BACKEND_CONNECTION_DRAINING,
        ],
    ),
    IngressCase(
        "host rule only",
        _ingress("ingress3", rules=(IngressRule(host="foo.bar"),)),
        [F.INGRESS, F.EXTERNAL_INGRESS, F.HTTP_ENABLED, F.HOST_BASED_ROUTING],
    ),
    IngressCase(
        "both host and path rules",
        _ingress("ingress4", rules=(FOO_PATH_RULE,)),
        [F.INGRESS, F.EXTERNAL_INGRESS, F.HTTP_ENABLED, F.HOST_BASED_ROUTING, F.PATH_BASED_ROUTING],
        [SERVICE_PORTS[1]],
        [
            B.SERVICE_PORT,
            B.EXTERNAL_SERVICE_PORT,
            B.NEG,
            B.CLOUD_IAP,
            B.CLIENT_IP_AFFINITY,
            B.BACKEND_TIMEOUT,
            B.CUSTOM_REQUEST_HEADERS,
        ],
    ),
    IngressCase(
        "default backend and host rule",
        _ingress("ingress5", default_backend=DUMMY_BACKEND, rules=(FOO_PATH_RULE,)),
        [F.INGRESS, F.EXTERNAL_INGRESS, F.HTTP_ENABLED, F.HOST_BASED_ROUTING, F.PATH_BASED_ROUTING],
        SERVICE_PORTS[:2],
        [
            B.SERVICE_PORT,
            B.EXTERNAL_SERVICE_PORT,
            B.CLOUD_CDN,
            B.COOKIE_AFFINITY,
            B.CLOUD_ARMOR,
            B.BACKEND_CONNECTION_DRAINING,
            B.NEG,
            B.CLOUD_IAP,
            B.CLIENT_IP_AFFINITY,
            B.BACKEND_TIMEOUT,
            B.CUSTOM_REQUEST_HEADERS,
        ],
    ),
    IngressCase(
        "tls termination with pre-shared certs",
        _ingress(
            "ingress6",
            annotations={PRE_SHARED_CERT_KEY: "pre-shared-cert1,pre-shared-cert2"},
            default_backend=DUMMY_BACKEND,
        ),
        [F.INGRESS, F.EXTERNAL_INGRESS, F.HTTP_ENABLED, F.PRE_SHARED_CERTS_FOR_TLS, F.TLS_TERMINATION],
        [SERVICE_PORTS[0]],
        [
            B.SERVICE_PORT,
            B.EXTERNAL_SERVICE_PORT,
            B.CLOUD_CDN,
            B.COOKIE_AFFINITY,
            B.CLOUD_ARMOR,
            B.BACKEND_CONNECTION_DRAINING,
        ],
    ),
    IngressCase(
        "tls termination with google managed certs",
        _ingress(
            "ingress7",
            annotations={MANAGED_CERT_KEY: "managed-cert1,managed-cert2"},
            default_backend=DUMMY_BACKEND,
        ),
        [F.INGRESS, F.EXTERNAL_INGRESS, F.HTTP_ENABLED, F.MANAGED_CERTS_FOR_TLS, F.TLS_TERMINATION],
        [SERVICE_PORTS[0]],
        [
            B.SERVICE_PORT,
            B.EXTERNAL_SERVICE_PORT,
            B.CLOUD_CDN,
            B.COOKIE_AFFINITY,
            B.CLOUD_ARMOR,
            B.BACKEND_CONNECTION_DRAINING,
        ],
    ),
    IngressCase(
        "tls termination with pre-shared and google managed certs",
        _ingress(
            "ingress8",
            annotations={
                PRE_SHARED_CERT_KEY: "pre-shared-cert1,pre-shared-cert2",
                MANAGED_CERT_KEY: "managed-cert1,managed-cert2",
            },
            default_backend=DUMMY_BACKEND,
        ),
        [
            F.INGRESS,
            F.EXTERNAL_INGRESS,
            F.HTTP_ENABLED,
            F.PRE_SHARED_CERTS_FOR_TLS,
            F.MANAGED_CERTS_FOR_TLS,
            F.TLS_TERMINATION,
        ],
        [SERVICE_PORTS[0]],
        [
            B.SERVICE_PORT,
            B.EXTERNAL_SERVICE_PORT,
            B.CLOUD_CDN,
            B.COOKIE_AFFINITY,
            B.CLOUD_ARMOR,
            B.BACKEND_CONNECTION_DRAINING,
        ],
    ),
    IngressCase(
        "tls termination with pre-shared and secret based certs",
        _ingress(
            "ingress9",
            annotations={PRE_SHARED_CERT_KEY: "pre-shared-cert1,pre-shared-cert2"},
            rules=(FOO_PATH_RULE,),
            tls=(IngressTLS(hosts=("foo.bar",), secret_name="secret-1"),),
        ),
        [
            F.INGRESS,
            F.EXTERNAL_INGRESS,
            F.HTTP_ENABLED,
            F.HOST_BASED_ROUTING,
            F.PATH_BASED_ROUTING,
            F.PRE_SHARED_CERTS_FOR_TLS,
            F.SECRET_BASED_CERTS_FOR_TLS,
            F.TLS_TERMINATION,
        ],
        [SERVICE_PORTS[1]],
        [
            B.SERVICE_PORT,
            B.EXTERNAL_SERVICE_PORT,
            B.NEG,
            B.CLOUD_IAP,
            B.CLIENT_IP_AFFINITY,
            B.BACKEND_TIMEOUT,
            B.CUSTOM_REQUEST_HEADERS,
        ],
    ),
    IngressCase(
        "global static ip",
        _ingress(
            "ingress10",
            annotations={
                PRE_SHARED_CERT_KEY: "pre-shared-cert1,pre-shared-cert2",
                STATIC_IP_KEY: "10.0.1.2",
            },
            default_backend=DUMMY_BACKEND,
        ),
        [
            F.INGRESS,
            F.EXTERNAL_INGRESS,
            F.HTTP_ENABLED,
            F.PRE_SHARED_CERTS_FOR_TLS,
            F.TLS_TERMINATION,
            F.STATIC_GLOBAL_IP,
        ],
        [SERVICE_PORTS[0]],
        [
            B.SERVICE_PORT,
            B.EXTERNAL_SERVICE_PORT,
            B.CLOUD_CDN,
            B.COOKIE_AFFINITY,
            B.CLOUD_ARMOR,
            B.BACKEND_CONNECTION_DRAINING,
        ],
    ),
    IngressCase(
        "default backend, host rule for internal load-balancer",
        _ingress(
            "ingress11",
            annotations={INGRESS_CLASS_KEY: GCE_L7_ILB_INGRESS_CLASS},
            default_backend=DUMMY_BACKEND,
            rules=(
                IngressRule(
                    host="bar",
                    paths=(HTTPIngressPath("/bar", IngressBackend("bar-service", 5000)),),
                ),
            ),
        ),
        [F.INGRESS, F.INTERNAL_INGRESS, F.HTTP_ENABLED, F.HOST_BASED_ROUTING, F.PATH_BASED_ROUTING],
        [SERVICE_PORTS[2], SERVICE_PORTS[3]],
        [
            B.SERVICE_PORT,
            B.INTERNAL_SERVICE_PORT,
            B.NEG,
            B.CLOUD_IAP,
            B.COOKIE_AFFINITY,
            B.BACKEND_CONNECTION_DRAINING,
        ],
    ),
]


def zero_ingress_counts():
    return {f: 0 for f in FrontendFeature}


def zero_service_port_counts():
    return {f: 0 for f in BackendFeature}
