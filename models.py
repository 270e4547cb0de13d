import base64
from typing import Any, Literal
from pydantic import (
    BaseModel,
    Field,
    RootModel,
    model_validator,
    field_validator,
)
from enum import StrEnum


class ApiVersion(StrEnum):
    V1 = "admission.k8s.io/v1"
    V1BETA1 = "admission.k8s.io/v1beta1"


class Operation(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CONNECT = "CONNECT"


class PatchType(StrEnum):
    JSONPatch = "JSONPatch"


class PatchOp(StrEnum):
    REPLACE = "replace"
    ADD = "add"
    REMOVE = "remove"


class StringValue(RootModel[str]):
    pass


class AnnotationMapValue(RootModel[dict[str, str]]):
    pass


# A container object as accepted by the core/v1 API.
class ContainerValue(RootModel[dict[str, Any]]):
    pass


PatchValue = StringValue | AnnotationMapValue | ContainerValue


class PatchAction(BaseModel):
    op: PatchOp
    path: str
    value: PatchValue | None = None

    @field_validator("path")
    @classmethod
    def validate_path(cls, val):
        if not val.startswith("/"):
            raise ValueError(f"path {val!r} is not a JSON pointer")
        return val

    @model_validator(mode="after")
    def validate_model(self):
        if self.op != PatchOp.REMOVE and self.value is None:
            raise ValueError(f"{self.op} operation requires a value")

        return self


# https://jsonpatch.com/
class Patch(RootModel[list[PatchAction]]):
    def encode(self) -> bytes:
        return self.model_dump_json(exclude_none=True).encode()


# https://kubernetes.io/docs/reference/generated/kubernetes-api/v1.30/#status-v1-meta
class AdmissionReviewStatus(BaseModel):
    message: str


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionResponse
class AdmissionResponse(BaseModel):
    allowed: bool
    status: AdmissionReviewStatus | None = None
    uid: str = ""
    patchType: PatchType | None = None
    patch: str | None = None

    @field_validator("patch", mode="before")
    @classmethod
    def validate_patch(cls, val):
        if isinstance(val, Patch):
            val = base64.b64encode(val.encode()).decode()
        elif isinstance(val, (str, bytes)):
            # Make sure the base64 string contains valid data.
            Patch.model_validate_json(base64.b64decode(val))
            if isinstance(val, bytes):
                val = val.decode()
        return val

    @model_validator(mode="after")
    def validate_model(self):
        if self.patch and not self.patchType:
            raise ValueError("missing patchType field")
        if self.patchType and not self.patch:
            raise ValueError(f"patchType is {self.patchType} but there is no patch")

        return self

    def decoded_patch(self) -> Patch | None:
        if self.patch is None:
            return None
        return Patch.model_validate_json(base64.b64decode(self.patch))


class GroupVersionKind(BaseModel):
    group: str = ""
    version: str
    kind: str

    def __str__(self):
        return "/".join(part for part in (self.group, self.version, self.kind) if part)


class UserInfo(BaseModel):
    username: str | None = None
    uid: str | None = None
    groups: list[str] = []


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionRequest
class AdmissionRequest(BaseModel):
    uid: str
    kind: GroupVersionKind | None = None
    namespace: str | None = None
    name: str | None = None
    operation: Operation = Operation.CREATE
    userInfo: UserInfo | None = None
    object: dict[str, Any] | None = None


# https://kubernetes.io/docs/reference/config-api/apiserver-admission.v1/#admission-k8s-io-v1-AdmissionReview
class AdmissionReview(BaseModel):
    apiVersion: ApiVersion = ApiVersion.V1
    kind: Literal["AdmissionReview"] = "AdmissionReview"
    request: AdmissionRequest | None = None
    response: AdmissionResponse | None = None

    @model_validator(mode="after")
    def validate_model(self):
        if not (self.request or self.response):
            raise ValueError("must contain a request or a response")

        return self


class Metadata(BaseModel):
    name: str | None = None
    namespace: str | None = None
    annotations: dict[str, str] | None = None


class PodSpec(BaseModel):
    containers: list[dict[str, Any]] = []


class Pod(BaseModel):
    metadata: Metadata = Field(default_factory=Metadata)
    spec: PodSpec | None = None
