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
from typing import Mapping, Optional

from prometheus_client import CollectorRegistry, Gauge

from .config import Config
from .metrics import ControllerMetrics
from .utils import dump_json

FEATURE_LABEL = "feature"


class PrometheusExporter:
    """
    Publish the usage counts computed by a ControllerMetrics as Prometheus
    gauges, one sample per feature.

    The gauges live in the registry we're given (or a fresh one), never in
    the prometheus_client default registry, so that several exporters can
    coexist.
    """

    def __init__(
        self,
        metrics: ControllerMetrics,
        registry: Optional[CollectorRegistry] = None,
        interval: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.metrics = metrics
        self.registry = registry if registry is not None else CollectorRegistry(auto_describe=True)
        self.interval = interval if interval is not None else Config.export_interval
        self.logger = logger or logging.getLogger("ingressmetrics.exporter")

        self.ingress_count = Gauge(
            "number_of_ingresses", "Number of Ingresses", [FEATURE_LABEL], registry=self.registry
        )
        self.service_port_count = Gauge(
            "number_of_service_ports",
            "Number of Service Ports",
            [FEATURE_LABEL],
            registry=self.registry,
        )
        self.neg_count = Gauge(
            "number_of_negs", "Number of NEGs", [FEATURE_LABEL], registry=self.registry
        )

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @staticmethod
    def _publish(gauge: Gauge, counts: Mapping) -> None:
        for feature, count in counts.items():
            gauge.labels(**{FEATURE_LABEL: str(feature)}).set(count)

    def export(self) -> None:
        """Compute the current counts and push them into the gauges."""

        ingress_count, svc_port_count = self.metrics.compute_ingress_metrics()
        neg_count = self.metrics.compute_neg_metrics()

        self._publish(self.ingress_count, ingress_count)
        self._publish(self.service_port_count, svc_port_count)
        self._publish(self.neg_count, neg_count)

        self.logger.info(
            "Exported ingress usage metrics: ingresses %s, service ports %s, NEGs %s"
            % (
                dump_json({str(k): v for k, v in ingress_count.items()}),
                dump_json({str(k): v for k, v in svc_port_count.items()}),
                dump_json({str(k): v for k, v in neg_count.items()}),
            )
        )

    def run(self, stop_event: threading.Event) -> None:
        """
        Export once per interval until stop_event is set. The first export
        happens after one full interval, to give the reconciler a chance to
        populate the state first.
        """

        self.logger.info(f"Starting ingress usage metrics export every {self.interval}s")

        while not stop_event.wait(self.interval):
            try:
                self.export()
            except Exception as e:
                # One bad pass shouldn't stop future exports.
                self.logger.exception(f"Ingress usage metrics export failed: {e}")

        self.logger.info("Stopped ingress usage metrics export")

    def start(self) -> None:
        if self._thread is not None:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run, args=(self._stop_event,), name="metrics-exporter", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        if self._thread is None:
            return

        self._stop_event.set()
        self._thread.join(timeout)
        self._thread = None
