#!python

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

########
# Compute ingress feature usage from a dump of Kubernetes resources, e.g.
#
#   kubectl get ingress,service,backendconfig -A -o yaml > snapshot.yaml
#   ingress-metrics snapshot.yaml
########

import sys

import functools
import logging
from typing import Any, Dict

import click
from prometheus_client import generate_latest

from ingressmetrics import Config, ControllerMetrics, PrometheusExporter
from ingressmetrics.snapshot import SnapshotError, load_snapshot
from ingressmetrics.utils import dump_json, dump_yaml, setup_logging

# Use this instead of click.option
click_option = functools.partial(click.option, show_default=True)


def counts_report(metrics: ControllerMetrics) -> Dict[str, Dict[str, Any]]:
    ingress_count, svc_port_count = metrics.compute_ingress_metrics()
    neg_count = metrics.compute_neg_metrics()

    return {
        "ingresses": {str(k): v for k, v in ingress_count.items()},
        "service_ports": {str(k): v for k, v in svc_port_count.items()},
        "negs": {str(k): v for k, v in neg_count.items()},
    }


@click.command(help="Compute ingress feature usage counts from a snapshot of Kubernetes resources")
@click.argument("snapshot-path", type=click.Path(exists=True, dir_okay=False))
@click_option(
    "-o",
    "--output",
    type=click.Choice(["json", "yaml", "prometheus"]),
    default="json",
    help="output format",
)
@click_option("--debug/--no-debug", default=False, help="enable debug logging")
def main(snapshot_path: str, output: str, debug: bool) -> None:
    setup_logging(
        json_logging=Config.json_logging, level=logging.DEBUG if debug else Config.log_level
    )
    logger = logging.getLogger("ingressmetrics.report")

    try:
        with open(snapshot_path, "r") as f:
            serialization = f.read()

        snapshot = load_snapshot(serialization, logger=logger)
    except (OSError, SnapshotError) as e:
        click.echo(f"could not load {snapshot_path}: {e}", err=True)
        sys.exit(1)

    metrics = ControllerMetrics()
    snapshot.apply(metrics)

    if output == "prometheus":
        exporter = PrometheusExporter(metrics)
        exporter.export()
        click.echo(generate_latest(exporter.registry).decode("utf-8"), nl=False)
    elif output == "yaml":
        click.echo(dump_yaml(counts_report(metrics), default_flow_style=False), nl=False)
    else:
        click.echo(dump_json(counts_report(metrics), pretty=True))

    sys.exit(0)


if __name__ == "__main__":
    main()
