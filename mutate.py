import functools
import json
import logging
from typing import Any

import pydantic
import pydantic_core
from flask import Flask, request, jsonify

from exc import (
    DomainDecodeError,
    DomainError,
    EmptyBodyError,
    MalformedBodyError,
    PatchEncodeError,
    ResponseEncodeError,
    TransportError,
    UnsupportedMediaTypeError,
)
from models import (
    ApiVersion,
    BaseModel,
    AdmissionRequest,
    AdmissionReview,
    AdmissionResponse,
    AdmissionReviewStatus,
    PatchType,
    Pod,
)
from patches import create_patch
from policy import should_mutate

LOG = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


def jsonresponse():
    """Transforms the response from a view function into a JSON object."""

    def _outer(func):
        @functools.wraps(func)
        def _inner(*args, **kwargs):
            res = func(*args, **kwargs)
            try:
                if isinstance(res, BaseModel):
                    return jsonify(res.model_dump(mode="json", exclude_none=True))
                else:
                    return jsonify(res)
            except (pydantic_core.PydanticSerializationError, TypeError, ValueError) as err:
                raise ResponseEncodeError(f"could not encode response: {err}") from err

        return _inner

    return _outer


def read_body() -> bytes:
    body = request.get_data(cache=True)
    if not body:
        raise EmptyBodyError()

    content_type = request.headers.get("Content-Type")
    if content_type != JSON_CONTENT_TYPE:
        raise UnsupportedMediaTypeError(content_type)

    return body


def parse_body(body: bytes) -> Any:
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as err:
        raise MalformedBodyError(f"request body is not valid JSON: {err}") from err
    except (RecursionError, ValueError) as err:
        # Syntactically valid JSON that cannot be loaded, e.g. nesting too deep
        # or integers too long to convert.
        raise DomainDecodeError(f"could not decode request body: {err}") from err


def request_uid(data: Any) -> str:
    """Find the request uid in a document that may not be a valid
    AdmissionReview."""

    if isinstance(data, dict) and isinstance(data.get("request"), dict):
        uid = data["request"].get("uid")
        if isinstance(uid, str):
            return uid
    return ""


def response_api_version(data: Any) -> ApiVersion:
    # The API server expects the response in the version it sent.
    if isinstance(data, dict) and data.get("apiVersion") in tuple(ApiVersion):
        return ApiVersion(data["apiVersion"])
    return ApiVersion.V1


def decode_review(data: Any) -> AdmissionRequest:
    try:
        review = AdmissionReview.model_validate(data)
    except pydantic.ValidationError as err:
        raise DomainDecodeError(str(err)) from err

    if review.request is None:
        raise DomainDecodeError("admission review contains no request")

    return review.request


def decode_pod(admission_request: AdmissionRequest) -> Pod:
    if admission_request.object is None:
        raise DomainDecodeError("admission request contains no object")

    try:
        return Pod.model_validate(admission_request.object)
    except pydantic.ValidationError as err:
        raise DomainDecodeError(str(err)) from err


def review_pod(admission_request: AdmissionRequest) -> AdmissionResponse:
    pod = decode_pod(admission_request)

    LOG.info(
        "AdmissionReview for Kind=%s, Namespace=%s Name=%s (%s) UID=%s Operation=%s UserInfo=%s",
        admission_request.kind,
        admission_request.namespace,
        admission_request.name,
        pod.metadata.name,
        admission_request.uid,
        admission_request.operation,
        admission_request.userInfo,
        extra={
            "uid": admission_request.uid,
            "kind": str(admission_request.kind),
            "operation": str(admission_request.operation),
        },
    )

    if not should_mutate(pod.metadata):
        LOG.info(
            "Skipping mutation for %s/%s due to policy check",
            pod.metadata.namespace,
            pod.metadata.name,
        )
        return AdmissionResponse(allowed=True, uid=admission_request.uid)

    patch = create_patch(pod)

    try:
        response = AdmissionResponse(
            uid=admission_request.uid,
            allowed=True,
            patchType=PatchType.JSONPatch,
            patch=patch,
        )
    except pydantic.ValidationError as err:
        raise PatchEncodeError(f"failed to encode patch: {err}") from err

    LOG.info("AdmissionResponse: patch=%s", patch, extra={"uid": admission_request.uid})
    return response


@jsonresponse()
def mutate_pod():
    body = read_body()
    data = None
    uid = ""

    try:
        data = parse_body(body)
        uid = request_uid(data)
        admission_request = decode_review(data)
        response = review_pod(admission_request)
    except DomainError as err:
        LOG.error("Can't process admission review: %s", err, extra={"uid": uid})
        response = AdmissionResponse(
            allowed=False,
            uid=uid,
            status=AdmissionReviewStatus(message=str(err)),
        )

    return AdmissionReview(apiVersion=response_api_version(data), response=response)


def handle_transporterror(err):
    LOG.error("%s", err, extra={"http_status": err.status_code})
    return str(err), err.status_code, {"content-type": "text/plain"}


def health():
    return "OK", 200, {"content-type": "text/plain"}


def create_app(**config) -> Flask:
    """Use an application factory [1] to create the Flask app.

    This makes it much easier to write tests for the application, since we can
    set up the test environment before instantiating the app. This is difficult
    to do if the app is created at `import` time.

    [1]: https://flask.palletsprojects.com/en/3.0.x/patterns/appfactories/
    """

    app = Flask(__name__)
    if config:
        app.config.update(config)

    app.errorhandler(TransportError)(handle_transporterror)
    app.add_url_rule("/healthz", view_func=health)
    app.add_url_rule("/isAlive", endpoint="is_alive", view_func=health)
    app.add_url_rule("/isReady", endpoint="is_ready", view_func=health)
    app.add_url_rule("/mutate", view_func=mutate_pod, methods=["POST"])

    return app
