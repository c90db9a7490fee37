"""Tests for manifest library."""

from typing import Any

import pytest

from maestro_watch.exceptions import InputException
from maestro_watch.manifest import (
    Condition,
    ManifestWork,
    WorkStatus,
    namespaced_key,
    split_key,
    work_uid,
)

BUNDLE: dict[str, Any] = {
    "id": "0c6f2d4e-8c3a-5e0e-9f3b-2d5b2f9b1a11",
    "kind": "ResourceBundle",
    "href": "/api/maestro/v1/resource-bundles/0c6f2d4e-8c3a-5e0e-9f3b-2d5b2f9b1a11",
    "name": "podinfo",
    "consumer_name": "cluster1",
    "version": 3,
    "manifests": [
        {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {"namespace": "default", "name": "podinfo"},
            "data": {"key": "value"},
        }
    ],
    "status": {
        "ObservedVersion": 3,
        "SequenceID": "1800",
        "conditions": [
            {
                "type": "Applied",
                "status": "True",
                "reason": "AppliedManifestWorkComplete",
                "message": "Apply manifest work complete",
                "lastTransitionTime": "2024-05-01T10:00:00Z",
                "observedGeneration": 1,
            }
        ],
        "resourceStatus": [
            {
                "resourceMeta": {"kind": "ConfigMap", "name": "podinfo"},
                "conditions": [],
            }
        ],
    },
}


def test_parse_bundle() -> None:
    """Test parsing a resource bundle document."""
    work = ManifestWork.parse_bundle(BUNDLE)
    assert work.uid == BUNDLE["id"]
    assert work.name == "podinfo"
    assert work.namespace == "cluster1"
    assert work.namespaced_name == "cluster1/podinfo"
    assert work.resource_version == 3
    assert work.manifests == BUNDLE["manifests"]
    assert work.status == WorkStatus(
        conditions=[
            Condition(
                type="Applied",
                status="True",
                reason="AppliedManifestWorkComplete",
                message="Apply manifest work complete",
                last_transition_time="2024-05-01T10:00:00Z",
                observed_generation=1,
            )
        ],
        resource_status=BUNDLE["status"]["resourceStatus"],
    )


def test_parse_bundle_without_status() -> None:
    """Test parsing a bundle the agent has not reported on yet."""
    doc = {k: v for k, v in BUNDLE.items() if k not in ("status", "version")}
    work = ManifestWork.parse_bundle(doc)
    assert work.status is None
    assert work.resource_version == 0


@pytest.mark.parametrize(
    "doc",
    [
        {"name": "x", "consumer_name": "cluster1"},
        {"id": "1", "consumer_name": "cluster1"},
        {"id": "1", "name": "x"},
        {"id": "1", "name": "x", "consumer_name": "c", "manifests": ["bad"]},
        {"id": "1", "name": "x", "consumer_name": "c", "version": "abc"},
        {"id": "1", "name": "x", "consumer_name": "c", "status": []},
        {
            "id": "1",
            "name": "x",
            "consumer_name": "c",
            "status": {"conditions": [{"reason": "missing type"}]},
        },
    ],
    ids=[
        "missing-id",
        "missing-name",
        "missing-consumer",
        "invalid-manifest",
        "invalid-version",
        "invalid-status",
        "invalid-condition",
    ],
)
def test_parse_invalid_bundle(doc: dict[str, Any]) -> None:
    """Test invalid bundle documents."""
    with pytest.raises(InputException):
        ManifestWork.parse_bundle(doc)


def test_identity() -> None:
    """Test the identity of a work drops its content."""
    work = ManifestWork.parse_bundle(BUNDLE)
    assert work.identity() == ManifestWork(
        name="podinfo", namespace="cluster1", uid=BUNDLE["id"]
    )


def test_compact_dict() -> None:
    """Test serializing a work omits unset fields."""
    work = ManifestWork(name="x", namespace="ns", uid="uid-x")
    assert work.compact_dict() == {
        "name": "x",
        "namespace": "ns",
        "uid": "uid-x",
        "resource_version": 0,
        "manifests": [],
    }


def test_keys() -> None:
    """Test encoding and decoding namespaced keys."""
    assert namespaced_key("ns", "x") == "ns/x"
    assert namespaced_key(None, "x") == "x"
    assert split_key("ns/x") == ("ns", "x")
    assert split_key("x") == (None, "x")
    for key in ("", "/x", "ns/"):
        with pytest.raises(InputException):
            split_key(key)


def test_work_uid() -> None:
    """Test work uids are stable and scoped to the source."""
    uid = work_uid("source-a", "cluster1", "podinfo")
    assert uid == work_uid("source-a", "cluster1", "podinfo")
    assert uid != work_uid("source-b", "cluster1", "podinfo")
    assert uid != work_uid("source-a", "cluster2", "podinfo")
    assert len(uid) == 36
