# Copyright 2018 Datawire. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License

from __future__ import annotations
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

import dataclasses

PortRef = Union[int, str]


def _port_ref(value: Any) -> PortRef:
    # Ports show up as ints, as numeric strings, or as port names.
    try:
        return int(value)
    except (TypeError, ValueError):
        return str(value)


def _annotation_text(value: Any) -> str:
    # Unquoted YAML gives us bools, numbers and nulls; annotations are strings.
    if value is None:
        return ""

    if isinstance(value, bool):
        return "true" if value else "false"

    return str(value)


@dataclasses.dataclass(frozen=True)
class IngressBackend:
    """
    A reference from an Ingress to a port of a Service.
    """

    service_name: str
    service_port: PortRef

    @classmethod
    def from_k8s(cls, backend: Dict[str, Any]) -> Optional[IngressBackend]:
        # networking.k8s.io/v1 nests the reference under "service"; the
        # older API versions use serviceName/servicePort.
        service = backend.get("service")

        if service is not None:
            name = service.get("name")
            port = service.get("port", {})
            port_ref = port.get("number", port.get("name"))
        else:
            name = backend.get("serviceName")
            port_ref = backend.get("servicePort")

        if not name or port_ref is None:
            return None

        return cls(service_name=name, service_port=_port_ref(port_ref))


@dataclasses.dataclass(frozen=True)
class HTTPIngressPath:
    path: str
    backend: Optional[IngressBackend] = None


@dataclasses.dataclass(frozen=True)
class IngressRule:
    host: str = ""
    paths: Tuple[HTTPIngressPath, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "paths", tuple(self.paths))


@dataclasses.dataclass(frozen=True)
class IngressTLS:
    hosts: Tuple[str, ...] = ()
    secret_name: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "hosts", tuple(self.hosts))


@dataclasses.dataclass(frozen=True)
class Ingress:
    """
    The parts of an Ingress that matter for feature usage.

    The annotations dict is copied on construction, with every value turned
    into text the way Kubernetes would store it. It is still a dict, though:
    don't go altering it after the Ingress has been handed off.
    """

    namespace: str
    name: str
    annotations: Mapping[str, str] = dataclasses.field(default_factory=dict)
    default_backend: Optional[IngressBackend] = None
    rules: Tuple[IngressRule, ...] = ()
    tls: Tuple[IngressTLS, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "annotations",
            {str(k): _annotation_text(v) for k, v in (self.annotations or {}).items()},
        )
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(self, "tls", tuple(self.tls))

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    def backends(self) -> Iterator[IngressBackend]:
        """
        Yield every backend this Ingress references, default backend first,
        then path backends in rule order. Duplicates are not filtered.
        """

        if self.default_backend:
            yield self.default_backend

        for rule in self.rules:
            for path in rule.paths:
                if path.backend:
                    yield path.backend

    @classmethod
    def from_k8s(cls, obj: Dict[str, Any]) -> Ingress:
        metadata = obj.get("metadata") or {}
        name = metadata.get("name")

        if not name:
            raise ValueError("Ingress has no metadata.name")

        spec = obj.get("spec") or {}

        # spec.backend was renamed to spec.defaultBackend in networking.k8s.io/v1.
        default_backend = None
        raw_default = spec.get("defaultBackend", spec.get("backend"))

        if raw_default:
            default_backend = IngressBackend.from_k8s(raw_default)

        rules = []

        for rule in spec.get("rules") or []:
            http = rule.get("http") or {}
            paths = [
                HTTPIngressPath(
                    path=p.get("path", ""),
                    backend=IngressBackend.from_k8s(p.get("backend") or {}),
                )
                for p in http.get("paths") or []
            ]
            rules.append(IngressRule(host=rule.get("host") or "", paths=tuple(paths)))

        tls = [
            IngressTLS(hosts=tuple(t.get("hosts") or ()), secret_name=t.get("secretName") or "")
            for t in spec.get("tls") or []
        ]

        return cls(
            namespace=metadata.get("namespace") or "default",
            name=name,
            annotations=metadata.get("annotations") or {},
            default_backend=default_backend,
            rules=tuple(rules),
            tls=tuple(tls),
        )


@dataclasses.dataclass(frozen=True)
class ServicePortID:
    """
    Identifies a service port. Two ServicePorts with the same ID are the
    same backend as far as usage counting is concerned.
    """

    namespace: str
    service: str
    port: PortRef

    def __str__(self) -> str:
        return f"{self.namespace}/{self.service}:{self.port}"


@dataclasses.dataclass(frozen=True)
class CDNConfig:
    enabled: bool = False


@dataclasses.dataclass(frozen=True)
class IAPConfig:
    enabled: bool = False


@dataclasses.dataclass(frozen=True)
class SessionAffinityConfig:
    affinity_type: str = ""
    affinity_cookie_ttl_sec: Optional[int] = None


@dataclasses.dataclass(frozen=True)
class SecurityPolicyConfig:
    name: str = ""


@dataclasses.dataclass(frozen=True)
class ConnectionDrainingConfig:
    draining_timeout_sec: int = 0


@dataclasses.dataclass(frozen=True)
class CustomRequestHeadersConfig:
    headers: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", tuple(self.headers))


@dataclasses.dataclass(frozen=True)
class BackendConfig:
    """
    Advanced settings for a service port. None for any of these means
    "not configured".
    """

    cdn: Optional[CDNConfig] = None
    iap: Optional[IAPConfig] = None
    session_affinity: Optional[SessionAffinityConfig] = None
    security_policy: Optional[SecurityPolicyConfig] = None
    connection_draining: Optional[ConnectionDrainingConfig] = None
    timeout_sec: Optional[int] = None
    custom_request_headers: Optional[CustomRequestHeadersConfig] = None

    @classmethod
    def from_k8s(cls, obj: Dict[str, Any]) -> BackendConfig:
        """
        Build a BackendConfig from a cloud.google.com BackendConfig resource.
        Only the spec is looked at.
        """

        metadata = obj.get("metadata") or {}

        if not metadata.get("name"):
            raise ValueError("BackendConfig has no metadata.name")

        spec = obj.get("spec") or {}

        cdn = spec.get("cdn")
        iap = spec.get("iap")
        affinity = spec.get("sessionAffinity")
        policy = spec.get("securityPolicy")
        draining = spec.get("connectionDraining")
        headers = spec.get("customRequestHeaders")

        return cls(
            cdn=CDNConfig(enabled=bool(cdn.get("enabled"))) if cdn is not None else None,
            iap=IAPConfig(enabled=bool(iap.get("enabled"))) if iap is not None else None,
            session_affinity=SessionAffinityConfig(
                affinity_type=affinity.get("affinityType") or "",
                affinity_cookie_ttl_sec=affinity.get("affinityCookieTtlSec"),
            )
            if affinity is not None
            else None,
            security_policy=SecurityPolicyConfig(name=policy.get("name") or "")
            if policy is not None
            else None,
            connection_draining=ConnectionDrainingConfig(
                draining_timeout_sec=int(draining.get("drainingTimeoutSec") or 0)
            )
            if draining is not None
            else None,
            timeout_sec=spec.get("timeoutSec"),
            custom_request_headers=CustomRequestHeadersConfig(
                headers=tuple(headers.get("headers") or ())
            )
            if headers is not None
            else None,
        )


@dataclasses.dataclass(frozen=True)
class ServicePort:
    id: ServicePortID
    neg_enabled: bool = False
    l7_ilb_enabled: bool = False
    backend_config: Optional[BackendConfig] = None


@dataclasses.dataclass(frozen=True)
class IngressState:
    """
    An Ingress and the service ports it references, as handed to
    ControllerMetrics.set_ingress.
    """

    ingress: Ingress
    service_ports: Tuple[ServicePort, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "service_ports", tuple(self.service_ports))


@dataclasses.dataclass(frozen=True)
class NegServiceState:
    """
    NEG usage for one service: how many NEGs exist for it, by who asked
    for them.
    """

    standalone_neg: int = 0
    ingress_neg: int = 0
    asm_neg: int = 0
