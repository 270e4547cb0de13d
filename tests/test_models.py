import base64

import pydantic
import pytest

from models import (
    AdmissionRequest,
    AdmissionResponse,
    AdmissionReview,
    AnnotationMapValue,
    Patch,
    PatchAction,
    Pod,
    StringValue,
)


def test_review_requires_request_or_response():
    with pytest.raises(pydantic.ValidationError):
        AdmissionReview()


def test_review_rejects_unknown_api_version():
    with pytest.raises(pydantic.ValidationError):
        AdmissionReview.model_validate(
            {"apiVersion": "admission.k8s.io/v2", "request": {"uid": "1"}}
        )


def test_request_requires_uid():
    with pytest.raises(pydantic.ValidationError):
        AdmissionRequest.model_validate({"object": {}})


def test_patch_action_requires_value():
    with pytest.raises(pydantic.ValidationError):
        PatchAction(op="add", path="/metadata/annotations")


def test_remove_action_has_no_value():
    patch = Patch([PatchAction(op="remove", path="/metadata/labels")])
    assert patch.encode() == b'[{"op":"remove","path":"/metadata/labels"}]'


def test_patch_action_path_is_pointer():
    with pytest.raises(pydantic.ValidationError):
        PatchAction(op="replace", path="metadata", value=StringValue("x"))


def test_response_encodes_patch():
    patch = Patch(
        [
            PatchAction(
                op="add",
                path="/metadata/annotations",
                value=AnnotationMapValue({"a": "b"}),
            )
        ]
    )
    res = AdmissionResponse(uid="1", allowed=True, patchType="JSONPatch", patch=patch)

    assert base64.b64decode(res.patch) == patch.encode()
    assert res.decoded_patch().encode() == patch.encode()


def test_response_rejects_invalid_patch():
    with pytest.raises(pydantic.ValidationError):
        AdmissionResponse(
            uid="1",
            allowed=True,
            patchType="JSONPatch",
            patch=base64.b64encode(b'{"not": "a patch"}'),
        )


def test_response_patch_requires_patch_type():
    patch = Patch([PatchAction(op="replace", path="/a", value=StringValue("b"))])
    with pytest.raises(pydantic.ValidationError):
        AdmissionResponse(uid="1", allowed=True, patch=patch)


def test_pod_keeps_missing_and_empty_annotations_apart():
    assert Pod.model_validate({"metadata": {}}).metadata.annotations is None
    assert Pod.model_validate({"metadata": {"annotations": {}}}).metadata.annotations == {}
    assert Pod.model_validate({}).metadata.annotations is None
