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

import logging
import threading
from typing import Dict, Optional, Tuple

from .classifier import features_for_ingress, features_for_service_port
from .features import BackendFeature, FrontendFeature, NegFeature
from .resources import IngressState, NegServiceState, ServicePort, ServicePortID

IngressCounts = Dict[FrontendFeature, int]
ServicePortCounts = Dict[BackendFeature, int]
NegCounts = Dict[NegFeature, int]


class ControllerMetrics:
    """
    ControllerMetrics keeps the latest known state of every Ingress and
    every NEG-using service, and computes feature usage counts from them.

    The reconciler calls set_ingress/delete_ingress and
    set_neg_service/delete_neg_service as resources change; whoever exports
    the metrics calls compute_ingress_metrics and compute_neg_metrics.

    Each store has its own lock. The lock is only held long enough to copy
    the store, so a compute pass never holds up a writer while it classifies
    things. Values handed to set_* are kept as-is: don't change them
    afterwards.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger("ingressmetrics.metrics")

        self._ingress_lock = threading.Lock()
        self._neg_lock = threading.Lock()

        self._ingress_map: Dict[str, IngressState] = {}
        self._neg_map: Dict[str, NegServiceState] = {}

    def set_ingress(self, ing_key: str, ing_state: IngressState) -> None:
        """Add or replace the state for the given ingress key."""
        with self._ingress_lock:
            self._ingress_map[ing_key] = ing_state

        self.logger.debug(f"set ingress {ing_key}: {len(ing_state.service_ports)} service ports")

    def delete_ingress(self, ing_key: str) -> None:
        """Forget the given ingress key. Unknown keys are fine."""
        with self._ingress_lock:
            existed = self._ingress_map.pop(ing_key, None) is not None

        if existed:
            self.logger.debug(f"deleted ingress {ing_key}")

    def set_neg_service(self, svc_key: str, neg_state: NegServiceState) -> None:
        """Add or replace the NEG state for the given service key."""
        with self._neg_lock:
            self._neg_map[svc_key] = neg_state

        self.logger.debug(f"set neg service {svc_key}: {neg_state}")

    def delete_neg_service(self, svc_key: str) -> None:
        """Forget the given service key. Unknown keys are fine."""
        with self._neg_lock:
            existed = self._neg_map.pop(svc_key, None) is not None

        if existed:
            self.logger.debug(f"deleted neg service {svc_key}")

    def compute_ingress_metrics(self) -> Tuple[IngressCounts, ServicePortCounts]:
        """
        Compute how many Ingresses use each frontend feature, and how many
        distinct service ports use each backend feature.

        Every feature is present in the results, zero-count ones included.
        A service port referenced by several Ingresses counts once; when
        two service ports share an ID, the first one seen is the one that
        gets classified.
        """

        with self._ingress_lock:
            ing_states = list(self._ingress_map.values())

        ingress_count: IngressCounts = {f: 0 for f in FrontendFeature}
        svc_port_count: ServicePortCounts = {f: 0 for f in BackendFeature}

        service_ports: Dict[ServicePortID, ServicePort] = {}

        for ing_state in ing_states:
            # A set guards against a feature being counted twice for one ingress.
            for feature in set(features_for_ingress(ing_state.ingress)):
                ingress_count[feature] += 1

            for svc_port in ing_state.service_ports:
                service_ports.setdefault(svc_port.id, svc_port)

        for svc_port in service_ports.values():
            for feature in set(features_for_service_port(svc_port)):
                svc_port_count[feature] += 1

        self.logger.debug(
            f"computed ingress metrics over {len(ing_states)} ingresses and {len(service_ports)} service ports"
        )

        return ingress_count, svc_port_count

    def compute_neg_metrics(self) -> NegCounts:
        """
        Sum up NEG usage over every known service. NegFeature.NEG is the
        grand total.
        """

        with self._neg_lock:
            neg_states = list(self._neg_map.values())

        counts: NegCounts = {f: 0 for f in NegFeature}

        for neg_state in neg_states:
            counts[NegFeature.STANDALONE_NEG] += neg_state.standalone_neg
            counts[NegFeature.INGRESS_NEG] += neg_state.ingress_neg
            counts[NegFeature.ASM_NEG] += neg_state.asm_neg
            counts[NegFeature.NEG] += (
                neg_state.standalone_neg + neg_state.ingress_neg + neg_state.asm_neg
            )

        self.logger.debug(f"computed neg metrics over {len(neg_states)} services")

        return counts
