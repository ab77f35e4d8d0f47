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
Feature classification for Ingresses and service ports.

Everything in here is a pure function of its argument: no state, no I/O,
safe to call from any number of threads at once. A feature that isn't in
use is simply left out of the result.
"""

from typing import List

from .features import (
    AFFINITY_CLIENT_IP,
    AFFINITY_GENERATED_COOKIE,
    ALLOW_HTTP_KEY,
    GCE_L7_ILB_INGRESS_CLASS,
    INGRESS_CLASS_KEY,
    MANAGED_CERT_KEY,
    PRE_SHARED_CERT_KEY,
    STATIC_IP_KEY,
    BackendFeature,
    FrontendFeature,
)
from .resources import Ingress, ServicePort
from .utils import strtobool


def is_l7_ilb_ingress(ing: Ingress) -> bool:
    return ing.annotations.get(INGRESS_CLASS_KEY, "") == GCE_L7_ILB_INGRESS_CLASS


def is_http_enabled(ing: Ingress) -> bool:
    val = ing.annotations.get(ALLOW_HTTP_KEY)

    if val is None:
        return True

    # Only an explicit false turns HTTP off; garbage leaves it on.
    try:
        return strtobool(val)
    except ValueError:
        return True


def has_secret_based_certs(ing: Ingress) -> bool:
    return any(tls.secret_name for tls in ing.tls)


def features_for_ingress(ing: Ingress) -> List[FrontendFeature]:
    """
    Return the frontend features used by the given Ingress, in a fixed
    order, each at most once.
    """

    features = [FrontendFeature.INGRESS]

    if is_l7_ilb_ingress(ing):
        features.append(FrontendFeature.INTERNAL_INGRESS)
    else:
        features.append(FrontendFeature.EXTERNAL_INGRESS)

    if is_http_enabled(ing):
        features.append(FrontendFeature.HTTP_ENABLED)

    if any(rule.host for rule in ing.rules):
        features.append(FrontendFeature.HOST_BASED_ROUTING)

    if any(rule.paths for rule in ing.rules):
        features.append(FrontendFeature.PATH_BASED_ROUTING)

    has_tls = False

    if ing.annotations.get(PRE_SHARED_CERT_KEY):
        has_tls = True
        features.append(FrontendFeature.PRE_SHARED_CERTS_FOR_TLS)

    if ing.annotations.get(MANAGED_CERT_KEY):
        has_tls = True
        features.append(FrontendFeature.MANAGED_CERTS_FOR_TLS)

    if has_secret_based_certs(ing):
        has_tls = True
        features.append(FrontendFeature.SECRET_BASED_CERTS_FOR_TLS)

    if has_tls:
        features.append(FrontendFeature.TLS_TERMINATION)

    # Reported whenever the annotation is there, whatever the ingress class.
    if ing.annotations.get(STATIC_IP_KEY):
        features.append(FrontendFeature.STATIC_GLOBAL_IP)

    return features


def features_for_service_port(sp: ServicePort) -> List[BackendFeature]:
    """
    Return the backend features used by the given service port, in a fixed
    order, each at most once.
    """

    features = [BackendFeature.SERVICE_PORT]

    if sp.l7_ilb_enabled:
        features.append(BackendFeature.INTERNAL_SERVICE_PORT)
    else:
        features.append(BackendFeature.EXTERNAL_SERVICE_PORT)

    if sp.neg_enabled:
        features.append(BackendFeature.NEG)

    bc = sp.backend_config

    if bc is None:
        return features

    if bc.cdn is not None and bc.cdn.enabled:
        features.append(BackendFeature.CLOUD_CDN)

    if bc.iap is not None and bc.iap.enabled:
        features.append(BackendFeature.CLOUD_IAP)

    if bc.session_affinity is not None:
        affinity_type = bc.session_affinity.affinity_type

        if affinity_type == AFFINITY_GENERATED_COOKIE:
            features.append(BackendFeature.COOKIE_AFFINITY)
        elif affinity_type == AFFINITY_CLIENT_IP:
            features.append(BackendFeature.CLIENT_IP_AFFINITY)

    if bc.security_policy is not None and bc.security_policy.name:
        features.append(BackendFeature.CLOUD_ARMOR)

    if bc.connection_draining is not None:
        features.append(BackendFeature.BACKEND_CONNECTION_DRAINING)

    if bc.timeout_sec is not None:
        features.append(BackendFeature.BACKEND_TIMEOUT)

    # Presence is what counts here: an empty header list is still in use.
    if bc.custom_request_headers is not None:
        features.append(BackendFeature.CUSTOM_REQUEST_HEADERS)

    return features
