import copy
import functools

from kubernetes import client

from models import ContainerValue

EXPORTER_IMAGE = "oliver006/redis_exporter:v0.33.0-alpine"
EXPORTER_NAME = "exporter"
EXPORTER_PORT = 9121

# Requests and limits are equal so the sidecar never degrades the QoS class
# of the pod it is added to.
EXPORTER_RESOURCES = {
    "cpu": "100m",
    "memory": "100Mi",
}


def default_sidecar() -> client.V1Container:
    return client.V1Container(
        name=EXPORTER_NAME,
        image=EXPORTER_IMAGE,
        image_pull_policy="IfNotPresent",
        ports=[
            client.V1ContainerPort(
                container_port=EXPORTER_PORT,
                name="http",
                protocol="TCP",
            )
        ],
        resources=client.V1ResourceRequirements(
            requests=dict(EXPORTER_RESOURCES),
            limits=dict(EXPORTER_RESOURCES),
        ),
    )


@functools.cache
def _serialized_sidecar() -> dict:
    with client.ApiClient() as api:
        return api.sanitize_for_serialization(default_sidecar())


def sidecar_value() -> ContainerValue:
    """Return the exporter container serialized the way the API server
    expects it (camelCase keys, unset fields omitted)."""

    return ContainerValue(copy.deepcopy(_serialized_sidecar()))
