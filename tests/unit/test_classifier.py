"""Tests for event classification and name extraction."""
import pytest

from fga_publisher.core.classifier import EventClassifier, extract_attribute, parse_payload
from fga_publisher.core.events import EventDescriptor, Intent, ObjectType, OperationType, ResourceKind
from fga_publisher.core.exceptions import MalformedPayloadError, UnsupportedEventError
from fga_publisher.core.keycloak.exceptions import RoleNotFoundError


def descriptor(kind, path, operation=OperationType.CREATE, payload='{"name": "admin"}'):
    return EventDescriptor(
        resource_kind=kind,
        operation=operation,
        path_segments=tuple(path.split("/")),
        raw_payload=payload,
        tenant_id="acme-id",
        auth_tenant_id="master-id",
        event_id="evt-1",
    )


@pytest.fixture()
def classifier(fake_identity):
    return EventClassifier(fake_identity)


@pytest.mark.parametrize(
    "kind,path,expected",
    [
        (ResourceKind.USER_ROLE_MAPPING, "users/u1/role-mappings/realm", (ObjectType.USER, ObjectType.ROLE)),
        (ResourceKind.ROLE, "users/u1/role-mappings/realm", (ObjectType.USER, ObjectType.ROLE)),
        (ResourceKind.USER_ROLE_MAPPING, "roles-by-id/r-viewer/composites", (ObjectType.ROLE, ObjectType.ROLE)),
        (ResourceKind.ROLE, "roles-by-id/r-viewer/composites", (ObjectType.ROLE, ObjectType.ROLE)),
        (ResourceKind.ROLE_TO_ROLE_MAPPING, "roles-by-id/r-viewer/composites", (ObjectType.ROLE, ObjectType.ROLE)),
        (ResourceKind.GROUP_ROLE_MAPPING, "groups/g1/role-mappings/realm", (ObjectType.GROUP, ObjectType.ROLE)),
        (ResourceKind.ROLE, "groups/g1/role-mappings/realm", (ObjectType.GROUP, ObjectType.ROLE)),
        (ResourceKind.GROUP_MEMBERSHIP, "users/u1/groups/g1", (ObjectType.USER, ObjectType.GROUP)),
        (ResourceKind.GROUP_MEMBERSHIP, "groups/g1/members", (ObjectType.GROUP, ObjectType.GROUP)),
    ],
)
def test_classification_table(classifier, kind, path, expected):
    assert classifier.subject_and_object_types(descriptor(kind, path)) == expected


@pytest.mark.parametrize(
    "kind,path",
    [
        (ResourceKind.GROUP_ROLE_MAPPING, "users/u1/role-mappings/realm"),
        (ResourceKind.GROUP_MEMBERSHIP, "roles-by-id/r1"),
        (ResourceKind.OTHER, "users/u1"),
        (ResourceKind.USER_ROLE_MAPPING, "clients/c1/roles"),
        (ResourceKind.USER_ROLE_MAPPING, "users"),
    ],
)
def test_unhandled_combinations_are_unsupported(classifier, kind, path):
    with pytest.raises(UnsupportedEventError):
        classifier.classify(descriptor(kind, path))


def test_unhandled_operation_is_unsupported(classifier):
    event = descriptor(ResourceKind.USER_ROLE_MAPPING, "users/u1/role-mappings/realm", OperationType.OTHER)
    with pytest.raises(UnsupportedEventError):
        classifier.classify(event)


def test_classify_user_role(classifier, fake_identity):
    fields = classifier.classify(descriptor(ResourceKind.USER_ROLE_MAPPING, "users/u1/role-mappings/realm"))

    assert fields.subject_type == ObjectType.USER
    assert fields.subject_key == "u1"
    assert fields.object_type == ObjectType.ROLE
    assert fields.object_name == "admin"
    assert fields.intent == Intent.WRITE
    assert fake_identity.role_lookups == []


def test_classify_delete_sets_delete_intent(classifier):
    event = descriptor(ResourceKind.GROUP_MEMBERSHIP, "users/u1/groups/g1", OperationType.DELETE, '{"name": "ops"}')
    fields = classifier.classify(event)
    assert fields.intent == Intent.DELETE
    assert fields.object_name == "ops"


def test_role_subject_looked_up_in_session_realm(classifier, fake_identity):
    event = descriptor(ResourceKind.ROLE_TO_ROLE_MAPPING, "roles-by-id/r-viewer/composites")
    fields = classifier.classify(event, session_realm="acme")

    assert fields.subject_id == "r-viewer"
    assert fields.subject_name == "viewer"
    assert fields.subject_key == "viewer"
    assert fake_identity.role_lookups == [("acme", "r-viewer")]


def test_role_subject_without_session_uses_acting_realm(classifier, fake_identity):
    event = descriptor(ResourceKind.ROLE_TO_ROLE_MAPPING, "roles-by-id/r-viewer/composites")
    fields = classifier.classify(event)

    assert fields.subject_name == "master-viewer"
    assert fake_identity.role_lookups == [("master", "r-viewer")]


def test_role_subject_without_id_skips_lookup(classifier, fake_identity):
    event = descriptor(ResourceKind.ROLE_TO_ROLE_MAPPING, "roles-by-id//composites")
    fields = classifier.classify(event, session_realm="acme")

    assert fields.subject_id == ""
    assert fields.subject_name is None
    assert fake_identity.role_lookups == []


def test_unknown_role_subject_raises(classifier):
    event = descriptor(ResourceKind.ROLE_TO_ROLE_MAPPING, "roles-by-id/r-missing/composites")
    with pytest.raises(RoleNotFoundError):
        classifier.classify(event, session_realm="acme")


def test_extract_attribute_from_object_and_sequence():
    assert extract_attribute('{"id": "r1", "name": "admin"}') == "admin"
    assert extract_attribute('[{"name": "first"}, {"name": "second"}]') == "first"
    assert extract_attribute([{"name": "parsed"}]) == "parsed"
    assert extract_attribute(b'{"name": "bytes"}') == "bytes"


def test_extract_attribute_decodes_double_encoded_json():
    assert extract_attribute('"{\\"name\\": \\"admin\\"}"') == "admin"


def test_extract_attribute_stringifies_scalars():
    assert extract_attribute('{"name": 42}') == "42"
    assert extract_attribute('{"enabled": true}', "enabled") == "true"


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "not json",
        '"just a string"',
        "[]",
        "[1, 2]",
        '{"id": "r1"}',
        '{"name": null}',
        '{"name": {"nested": true}}',
    ],
)
def test_extract_attribute_malformed(payload):
    with pytest.raises(MalformedPayloadError):
        extract_attribute(payload)


def test_parse_payload_passes_parsed_documents_through():
    document = {"name": "admin"}
    assert parse_payload(document) is document
