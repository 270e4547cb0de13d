import pytest

import mutate


INJECT_KEY = "redis-exporter-sidecar.nais.io/inject"
STATUS_KEY = "redis-exporter-sidecar.nais.io/status"


def make_pod(annotations=None, containers=None, name="redis-0", namespace="default"):
    metadata = {"name": name, "namespace": namespace}
    if annotations is not None:
        metadata["annotations"] = annotations

    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": metadata,
        "spec": {
            "containers": (
                containers
                if containers is not None
                else [{"name": "redis", "image": "redis:5"}]
            ),
        },
    }


def make_review(pod, uid="1234", api_version="admission.k8s.io/v1"):
    return {
        "apiVersion": api_version,
        "kind": "AdmissionReview",
        "request": {
            "uid": uid,
            "kind": {"group": "", "version": "v1", "kind": "Pod"},
            "namespace": "default",
            "name": "redis-0",
            "operation": "CREATE",
            "userInfo": {
                "username": "system:serviceaccount:kube-system:replicaset-controller",
                "groups": ["system:serviceaccounts"],
            },
            "object": pod,
        },
    }


@pytest.fixture()
def app():
    app = mutate.create_app(TESTING=True)
    yield app


@pytest.fixture()
def client(app):
    return app.test_client()
