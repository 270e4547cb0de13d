import base64
import logging

import pydantic
import pydantic_core

from exc import PatchEncodeError
from models import (
    AnnotationMapValue,
    Patch,
    PatchAction,
    PatchOp,
    Pod,
    StringValue,
)
from policy import (
    INJECT_KEY,
    INJECTED,
    PROMETHEUS_PATH_KEY,
    PROMETHEUS_PORT_KEY,
    PROMETHEUS_SCRAPE_KEY,
)
from sidecar import sidecar_value

LOG = logging.getLogger(__name__)


def json_patch_escape(val):
    return val.replace("~", "~0").replace("/", "~1")


def add_sidecar() -> PatchAction:
    return PatchAction(
        op=PatchOp.ADD,
        path="/spec/containers/-",
        value=sidecar_value(),
    )


def update_annotation(annotations: dict[str, str] | None) -> PatchAction:
    # A pod without an inject value gets a fresh annotation map. This replaces
    # any annotations it already had.
    if not annotations or not annotations.get(INJECT_KEY):
        return PatchAction(
            op=PatchOp.ADD,
            path="/metadata/annotations",
            value=AnnotationMapValue(
                {
                    INJECT_KEY: INJECTED,
                    PROMETHEUS_SCRAPE_KEY: "true",
                    PROMETHEUS_PORT_KEY: "",
                    PROMETHEUS_PATH_KEY: "/metrics",
                }
            ),
        )

    return PatchAction(
        op=PatchOp.REPLACE,
        path=f"/metadata/annotations/{json_patch_escape(INJECT_KEY)}",
        value=StringValue(INJECTED),
    )


def build_patch(pod: Pod) -> Patch:
    """Build the operations that inject the exporter into a pod.

    The container operation always comes first, followed by the annotation
    update.
    """

    return Patch([add_sidecar(), update_annotation(pod.metadata.annotations)])


def create_patch(pod: Pod) -> str:
    """Return the base64-encoded JSON Patch document for a pod."""

    try:
        document = build_patch(pod).encode()
    except (pydantic.ValidationError, pydantic_core.PydanticSerializationError) as err:
        LOG.error("failed to encode patch: %s", err)
        raise PatchEncodeError(f"failed to encode patch: {err}") from err

    LOG.debug("patch: %s", document.decode())
    return base64.b64encode(document).decode()
