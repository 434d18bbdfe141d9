"""Tests for the JSON collection store and result merging."""

from __future__ import annotations

import json

import pytest

from payment_review import config
from payment_review.agents import DRGValidationAgent, reviewed_results
from payment_review.errors import StoreError
from payment_review.schemas.claims import Claim
from payment_review.schemas.drg import DRGClaim, DRGValidationStatus
from payment_review.store import JSONCollectionStore, merge_results

from builders import make_claim, make_drg_claim


class TestJSONCollectionStore:
    """Whole-file load and save."""

    def test_round_trip(self, tmp_path):
        """Test that saved claims load back unchanged."""
        store = JSONCollectionStore(tmp_path / "claims.json", Claim)
        claims = [make_claim("CLM-1"), make_claim("CLM-2", amount=250)]

        store.save(claims)

        assert [c.model_dump() for c in store.load()] == [c.model_dump() for c in claims]

    def test_camel_case_on_disk(self, tmp_path):
        """Test that records are written with camelCase keys and two-space indent."""
        path = tmp_path / "claims.json"
        JSONCollectionStore(path, Claim).save([make_claim("CLM-1")])

        text = path.read_text(encoding="utf-8")
        record = json.loads(text)[0]
        assert record["providerId"] == "PRV-1"
        assert record["serviceDate"] == "2024-03-01"
        assert "provider_id" not in record
        assert "aiReasoning" not in record
        assert text.startswith('[\n  {\n    "id": "CLM-1"')

    def test_unknown_keys_survive(self, tmp_path):
        """Test that keys outside the model are kept through a load and save."""
        path = tmp_path / "claims.json"
        record = make_claim("CLM-1").to_wire()
        record["payerNotes"] = "Escalated by payer"
        path.write_text(json.dumps([record]), encoding="utf-8")

        store = JSONCollectionStore(path, Claim)
        store.save(store.load())

        assert json.loads(path.read_text(encoding="utf-8"))[0]["payerNotes"] == "Escalated by payer"

    def test_save_creates_directories(self, tmp_path):
        """Test that missing parent directories are created."""
        path = tmp_path / "nested" / "data" / "claims.json"
        JSONCollectionStore(path, Claim).save([])
        assert json.loads(path.read_text(encoding="utf-8")) == []

    def test_in_data_dir(self, tmp_path, monkeypatch):
        """Test that collection files resolve under the configured data directory."""
        monkeypatch.setattr(config, "DATA_DIR", str(tmp_path))
        store = JSONCollectionStore.in_data_dir(config.DRG_CLAIMS_FILE, DRGClaim)
        assert store.path == tmp_path / "drg-claims.json"

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises StoreError."""
        with pytest.raises(StoreError, match="Cannot read collection"):
            JSONCollectionStore(tmp_path / "absent.json", Claim).load()

    def test_invalid_json(self, tmp_path):
        """Test that unparseable JSON raises StoreError."""
        path = tmp_path / "claims.json"
        path.write_text("[{not json", encoding="utf-8")
        with pytest.raises(StoreError):
            JSONCollectionStore(path, Claim).load()

    def test_not_an_array(self, tmp_path):
        """Test that a top-level object is rejected."""
        path = tmp_path / "claims.json"
        path.write_text('{"id": "CLM-1"}', encoding="utf-8")
        with pytest.raises(StoreError, match="not a JSON array"):
            JSONCollectionStore(path, Claim).load()

    def test_field_level_errors(self, tmp_path):
        """Test that invalid records are reported by index and field."""
        path = tmp_path / "claims.json"
        bad = make_claim("CLM-2").to_wire()
        del bad["amount"]
        path.write_text(json.dumps([make_claim("CLM-1").to_wire(), bad]), encoding="utf-8")

        with pytest.raises(StoreError) as excinfo:
            JSONCollectionStore(path, Claim).load()

        assert excinfo.value.errors == [
            {"field": "1.amount", "error": "Field required", "type": "missing"}
        ]


class TestMergeResults:
    """Applying review results back onto a collection."""

    def test_merge_by_id(self, reference):
        """Test that results replace matching entities and keep collection order."""
        collection = [make_drg_claim("DRG-A"), make_drg_claim("DRG-B"), make_drg_claim("DRG-C")]
        outcomes = DRGValidationAgent(reference=reference).review_selected(collection, ["DRG-C", "DRG-A"])

        merged, updated = merge_results(collection, reviewed_results(outcomes))

        assert [c.id for c in merged] == ["DRG-A", "DRG-B", "DRG-C"]
        assert [c.id for c in updated] == ["DRG-A", "DRG-C"]
        assert merged[0].validation_status == DRGValidationStatus.VALIDATED
        assert merged[0].reviewed_at is not None
        assert merged[1] is collection[1]
        assert merged[1].validation_status == DRGValidationStatus.PENDING

    def test_no_results(self):
        """Test that merging nothing leaves the collection untouched."""
        collection = [make_drg_claim("DRG-A")]
        merged, updated = merge_results(collection, [])
        assert merged == collection
        assert updated == []

    def test_review_and_persist(self, tmp_path, reference):
        """Test the load, review, merge and save cycle."""
        store = JSONCollectionStore(tmp_path / "drg-claims.json", DRGClaim)
        store.save([make_drg_claim("DRG-A"), make_drg_claim("DRG-B")])

        collection = store.load()
        outcomes = DRGValidationAgent(reference=reference).review_selected(collection, ["DRG-B"])
        merged, _ = merge_results(collection, reviewed_results(outcomes))
        store.save(merged)

        records = json.loads(store.path.read_text(encoding="utf-8"))
        assert records[0]["validationStatus"] == "Pending"
        assert records[1]["validationStatus"] == "Validated"
        assert records[1]["expectedReimbursement"] == 6370
        assert records[1]["expectedDRG"] == "194"
