import logging

from models import Metadata

LOG = logging.getLogger(__name__)

STATUS_KEY = "redis-exporter-sidecar.nais.io/status"
INJECT_KEY = "redis-exporter-sidecar.nais.io/inject"
PROMETHEUS_SCRAPE_KEY = "prometheus.io/scrape"
PROMETHEUS_PORT_KEY = "prometheus.io/port"
PROMETHEUS_PATH_KEY = "prometheus.io/path"

INJECTED = "injected"
TRUTHY = frozenset({"y", "yes", "true", "on"})


def should_mutate_annotations(annotations: dict[str, str] | None) -> bool:
    """Decide whether a pod with the given annotations needs the exporter.

    A pod whose status annotation says it has already been injected is never
    mutated again, whatever its inject annotation says.
    """

    if not annotations:
        return False

    if annotations.get(STATUS_KEY, "").lower() == INJECTED:
        return False

    return annotations.get(INJECT_KEY, "").lower() in TRUTHY


def should_mutate(metadata: Metadata) -> bool:
    required = should_mutate_annotations(metadata.annotations)
    status = (metadata.annotations or {}).get(STATUS_KEY, "")

    LOG.info(
        "Mutation policy for %s/%s: status: %r required: %s",
        metadata.namespace,
        metadata.name,
        status,
        required,
        extra={
            "pod_namespace": metadata.namespace,
            "pod_name": metadata.name,
            "status": status,
            "required": required,
        },
    )
    return required
