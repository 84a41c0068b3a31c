from __future__ import annotations

import json
from dataclasses import FrozenInstanceError

import pytest

from keeper.backup.models import ChannelKind, TargetKind, TopologyDocument
from keeper.errors import ValidationError


def test_document_survives_json(scenario_document):
    payload = json.loads(json.dumps(scenario_document.to_dict()))

    assert TopologyDocument.from_dict(payload) == scenario_document


def test_masks_are_stored_as_strings(scenario_document):
    data = scenario_document.to_dict()

    assert data["version"] == 1
    assert data["roles"][0]["permissions"] == "0"
    assert data["channels"][1]["overwrites"][0] == {"target": "Mod", "target_kind": "role", "allow": "8", "deny": "0"}


def test_large_permission_mask_is_preserved(scenario_document):
    data = scenario_document.to_dict()
    data["roles"][0]["permissions"] = str(2**63 + 5)

    doc = TopologyDocument.from_dict(data)

    assert doc.roles[0].permissions == 2**63 + 5


def test_missing_meta_is_a_validation_error():
    with pytest.raises(ValidationError):
        TopologyDocument.from_dict({"roles": [], "channels": []})


def test_unknown_channel_kind_is_a_validation_error(scenario_document):
    data = scenario_document.to_dict()
    data["channels"][0]["kind"] = "hologram"

    with pytest.raises(ValidationError):
        TopologyDocument.from_dict(data)


def test_documents_are_immutable(scenario_document):
    with pytest.raises(FrozenInstanceError):
        scenario_document.roles[0].name = "Other"  # type: ignore[misc]


def test_summary_and_categories(scenario_document):
    assert [c.kind for c in scenario_document.categories] == [ChannelKind.CATEGORY]
    assert scenario_document.summary() == "'Source': 2 roles, 1 categories, 1 channels"
    assert scenario_document.channels[1].overwrites[0].target_kind is TargetKind.ROLE
