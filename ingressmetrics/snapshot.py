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

"""
Turn a snapshot of raw Kubernetes resources into the states that
ControllerMetrics wants.

This does the same resolution the controller does before it calls
set_ingress: every Ingress backend is looked up in its Service, the
Service's NEG and BackendConfig annotations are applied, and the result is
a list of fully populated ServicePorts. It's used by the CLI, and it's
handy for feeding ControllerMetrics from a dump of a cluster.
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

import dataclasses
import logging

import yaml

from .classifier import is_l7_ilb_ingress
from .features import BACKEND_CONFIG_KEY, BETA_BACKEND_CONFIG_KEY, NEG_ANNOTATION_KEY
from .metrics import ControllerMetrics
from .resources import (
    BackendConfig,
    Ingress,
    IngressBackend,
    IngressState,
    NegServiceState,
    PortRef,
    ServicePort,
    ServicePortID,
)
from .utils import parse_json, parse_yaml

NamespacedName = Tuple[str, str]


class SnapshotError(Exception):
    pass


def _flatten(resources: Iterable[Any]) -> Iterator[Dict[str, Any]]:
    for obj in resources:
        if not isinstance(obj, dict):
            continue

        # List, IngressList, ServiceList, ... as kubectl get -o yaml produces.
        if (obj.get("kind") or "").endswith("List"):
            yield from _flatten(obj.get("items") or [])
        else:
            yield obj


@dataclasses.dataclass
class Snapshot:
    ingress_states: Dict[str, IngressState] = dataclasses.field(default_factory=dict)
    neg_states: Dict[str, NegServiceState] = dataclasses.field(default_factory=dict)

    def apply(self, metrics: ControllerMetrics) -> None:
        """Hand every state in this snapshot to the given ControllerMetrics."""

        for ing_key, ing_state in self.ingress_states.items():
            metrics.set_ingress(ing_key, ing_state)

        for svc_key, neg_state in self.neg_states.items():
            metrics.set_neg_service(svc_key, neg_state)

    @classmethod
    def from_resources(
        cls, resources: Iterable[Any], logger: Optional[logging.Logger] = None
    ) -> Snapshot:
        return _SnapshotResolver(logger or logging.getLogger("ingressmetrics.snapshot")).resolve(
            resources
        )


class _SnapshotResolver:
    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger

        self.services: Dict[NamespacedName, Dict[str, Any]] = {}
        self.backend_configs: Dict[NamespacedName, BackendConfig] = {}
        self.ingresses: List[Ingress] = []

        # Ports of each service that some ingress uses through a NEG.
        self.ingress_neg_ports: Dict[NamespacedName, Set[PortRef]] = {}

    def _namespaced_name(self, obj: Dict[str, Any]) -> NamespacedName:
        metadata = obj.get("metadata") or {}
        name = metadata.get("name")

        if not name:
            raise ValueError(f"{obj.get('kind')} has no metadata.name")

        return (metadata.get("namespace") or "default", name)

    def _load(self, resources: Iterable[Any]) -> None:
        for obj in _flatten(resources):
            kind = obj.get("kind")

            try:
                if kind == "Ingress":
                    self.ingresses.append(Ingress.from_k8s(obj))
                elif kind == "BackendConfig":
                    self.backend_configs[self._namespaced_name(obj)] = BackendConfig.from_k8s(obj)
                elif kind == "Service":
                    self.services[self._namespaced_name(obj)] = obj
                else:
                    self.logger.debug(f"ignoring {kind} resource")
            except (ValueError, AttributeError, TypeError) as e:
                self.logger.warning(f"skipping invalid {kind} resource: {e}")

    def _annotation_json(self, svc: Dict[str, Any], *keys: str) -> Optional[Dict[str, Any]]:
        annotations = (svc.get("metadata") or {}).get("annotations") or {}

        if not isinstance(annotations, dict):
            self.logger.warning(f"ignoring malformed annotations on service {svc['metadata']['name']}")
            return None

        for key in keys:
            raw = annotations.get(key)

            if raw is None:
                continue

            try:
                # An unquoted YAML mapping has already been parsed for us.
                value = raw if isinstance(raw, dict) else parse_json(raw)
            except (ValueError, TypeError) as e:
                self.logger.warning(
                    f"ignoring malformed {key} annotation on service {svc['metadata']['name']}: {e}"
                )
                return None

            if not isinstance(value, dict):
                self.logger.warning(
                    f"ignoring {key} annotation on service {svc['metadata']['name']}: not an object"
                )
                return None

            return value

        return None

    def _resolve_port(
        self, svc: Optional[Dict[str, Any]], port: PortRef
    ) -> Tuple[PortRef, Optional[str]]:
        """
        Return the port number (if we can find it) and the port name (if it
        has one) for the given port reference.
        """

        if svc is None:
            return port, port if isinstance(port, str) else None

        spec = svc.get("spec") or {}
        svc_ports = spec.get("ports") if isinstance(spec, dict) else None

        if not isinstance(svc_ports, list):
            if svc_ports is not None:
                self.logger.warning(f"ignoring malformed ports of service {svc['metadata']['name']}")

            svc_ports = []

        for svc_port in svc_ports:
            if not isinstance(svc_port, dict):
                self.logger.warning(
                    f"ignoring malformed port {svc_port!r} of service {svc['metadata']['name']}"
                )
                continue

            if isinstance(port, str) and svc_port.get("name") == port:
                number = svc_port.get("port")
                return (number if isinstance(number, int) else port), port

            if isinstance(port, int) and svc_port.get("port") == port:
                return port, svc_port.get("name")

        return port, port if isinstance(port, str) else None

    def _backend_config_for(
        self, nn: NamespacedName, svc: Dict[str, Any], port: PortRef, port_name: Optional[str]
    ) -> Optional[BackendConfig]:
        ann = self._annotation_json(svc, BACKEND_CONFIG_KEY, BETA_BACKEND_CONFIG_KEY)

        if ann is None:
            return None

        ports = ann.get("ports") or {}

        if not isinstance(ports, dict):
            self.logger.warning(f"ignoring malformed ports in backend-config annotation of service {nn[1]}")
            ports = {}

        bc_name = ports.get(str(port))

        if bc_name is None and port_name:
            bc_name = ports.get(port_name)

        if bc_name is None:
            bc_name = ann.get("default")

        if not bc_name or not isinstance(bc_name, str):
            return None

        bc = self.backend_configs.get((nn[0], bc_name))

        if bc is None:
            self.logger.warning(f"BackendConfig {nn[0]}/{bc_name} for service {nn[1]} not found")

        return bc

    def _service_port(
        self, ing: Ingress, backend: IngressBackend, l7_ilb: bool
    ) -> ServicePort:
        nn = (ing.namespace, backend.service_name)
        svc = self.services.get(nn)

        if svc is None:
            self.logger.warning(
                f"service {nn[0]}/{nn[1]} referenced by ingress {ing.key} not found"
            )

        port, port_name = self._resolve_port(svc, backend.service_port)

        neg_enabled = l7_ilb
        backend_config = None

        if svc is not None:
            neg = self._annotation_json(svc, NEG_ANNOTATION_KEY)

            if neg is not None and neg.get("ingress"):
                neg_enabled = True

            backend_config = self._backend_config_for(nn, svc, port, port_name)

            if neg_enabled:
                self.ingress_neg_ports.setdefault(nn, set()).add(port)

        return ServicePort(
            id=ServicePortID(namespace=nn[0], service=nn[1], port=port),
            neg_enabled=neg_enabled,
            l7_ilb_enabled=l7_ilb,
            backend_config=backend_config,
        )

    def _ingress_state(self, ing: Ingress) -> IngressState:
        l7_ilb = is_l7_ilb_ingress(ing)
        service_ports: Dict[ServicePortID, ServicePort] = {}

        for backend in ing.backends():
            sp = self._service_port(ing, backend, l7_ilb)
            service_ports.setdefault(sp.id, sp)

        return IngressState(ingress=ing, service_ports=tuple(service_ports.values()))

    def _neg_state(self, nn: NamespacedName, svc: Dict[str, Any]) -> Optional[NegServiceState]:
        neg = self._annotation_json(svc, NEG_ANNOTATION_KEY)
        ingress_ports = self.ingress_neg_ports.get(nn, set())

        if neg is None and not ingress_ports:
            return None

        exposed_ports = (neg or {}).get("exposed_ports") or {}

        if not isinstance(exposed_ports, dict):
            self.logger.warning(f"ignoring malformed exposed_ports of service {nn[0]}/{nn[1]}")
            exposed_ports = {}

        return NegServiceState(
            standalone_neg=len(exposed_ports),
            ingress_neg=len(ingress_ports),
            asm_neg=0,
        )

    def resolve(self, resources: Iterable[Any]) -> Snapshot:
        self._load(resources)

        snapshot = Snapshot()

        for ing in self.ingresses:
            snapshot.ingress_states[ing.key] = self._ingress_state(ing)

        for nn, svc in self.services.items():
            neg_state = self._neg_state(nn, svc)

            if neg_state is not None:
                snapshot.neg_states[f"{nn[0]}/{nn[1]}"] = neg_state

        self.logger.debug(
            f"resolved {len(snapshot.ingress_states)} ingresses and {len(snapshot.neg_states)} NEG services"
        )

        return snapshot


def load_snapshot(serialization: str, logger: Optional[logging.Logger] = None) -> Snapshot:
    """
    Parse a YAML (or JSON) stream of Kubernetes resources and resolve it
    into a Snapshot. Raises SnapshotError if the stream doesn't parse.
    """

    try:
        resources = parse_yaml(serialization)
    except yaml.YAMLError as e:
        raise SnapshotError(f"could not parse snapshot: {e}") from e

    return Snapshot.from_resources(resources, logger=logger)
