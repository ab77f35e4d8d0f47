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

import enum


@enum.unique
class FrontendFeature(str, enum.Enum):
    """
    Features of an Ingress itself. Each Ingress using a feature counts once
    towards that feature.
    """

    INGRESS = "Ingress"
    EXTERNAL_INGRESS = "ExternalIngress"
    INTERNAL_INGRESS = "InternalIngress"
    HTTP_ENABLED = "HTTPEnabled"
    HOST_BASED_ROUTING = "HostBasedRouting"
    PATH_BASED_ROUTING = "PathBasedRouting"
    TLS_TERMINATION = "TLSTermination"
    SECRET_BASED_CERTS_FOR_TLS = "SecretBasedCertsForTLS"
    PRE_SHARED_CERTS_FOR_TLS = "PreSharedCertsForTLS"
    MANAGED_CERTS_FOR_TLS = "ManagedCertsForTLS"
    STATIC_GLOBAL_IP = "StaticGlobalIP"

    def __str__(self) -> str:
        return self.value


@enum.unique
class BackendFeature(str, enum.Enum):
    """
    Features of a service port. Each distinct service port counts once,
    however many Ingresses reference it.
    """

    SERVICE_PORT = "L7LBServicePort"
    EXTERNAL_SERVICE_PORT = "L7XLBServicePort"
    INTERNAL_SERVICE_PORT = "L7ILBServicePort"
    NEG = "NEG"
    CLOUD_CDN = "CloudCDN"
    CLOUD_ARMOR = "CloudArmor"
    CLOUD_IAP = "CloudIAP"
    BACKEND_TIMEOUT = "BackendTimeout"
    BACKEND_CONNECTION_DRAINING = "BackendConnectionDraining"
    CLIENT_IP_AFFINITY = "ClientIPAffinity"
    COOKIE_AFFINITY = "CookieAffinity"
    CUSTOM_REQUEST_HEADERS = "CustomRequestHeaders"

    def __str__(self) -> str:
        return self.value


@enum.unique
class NegFeature(str, enum.Enum):
    STANDALONE_NEG = "StandaloneNEG"
    INGRESS_NEG = "IngressNEG"
    ASM_NEG = "AsmNEG"
    # Sum of the three above.
    NEG = "NEG"

    def __str__(self) -> str:
        return self.value


# Annotations the classifier looks at.
INGRESS_CLASS_KEY = "kubernetes.io/ingress.class"
ALLOW_HTTP_KEY = "kubernetes.io/ingress.allow-http"
STATIC_IP_KEY = "kubernetes.io/ingress.global-static-ip-name"
PRE_SHARED_CERT_KEY = "ingress.gcp.kubernetes.io/pre-shared-cert"
MANAGED_CERT_KEY = "networking.gke.io/managed-certificates"

GCE_INGRESS_CLASS = "gce"
GCE_L7_ILB_INGRESS_CLASS = "gce-internal"

# Service annotations, used when resolving service ports from raw resources.
NEG_ANNOTATION_KEY = "cloud.google.com/neg"
BACKEND_CONFIG_KEY = "cloud.google.com/backend-config"
BETA_BACKEND_CONFIG_KEY = "beta.cloud.google.com/backend-config"

# BackendConfig session affinity types.
AFFINITY_GENERATED_COOKIE = "GENERATED_COOKIE"
AFFINITY_CLIENT_IP = "CLIENT_IP"
