import json

import pytest

from mockinterview.infrastructure.data import ProgressStore, SnapshotStore
from mockinterview.interview import CandidateProgress, PausedSnapshot, Speaker, Tier
from mockinterview.interview.testing import create_sample_parameters, create_test_conversation_data


def make_snapshot():
    return PausedSnapshot(
        parameters=create_sample_parameters(),
        turns=create_test_conversation_data(),
        language_code="ja",
    )


def test_snapshot_round_trip(tmp_path):
    store = SnapshotStore(str(tmp_path / "state" / "paused.json"))
    snapshot = make_snapshot()

    store.save(snapshot)
    loaded = store.load()

    assert store.exists()
    assert loaded.parameters == snapshot.parameters
    assert loaded.language_code == "ja"
    assert [t.to_dict() for t in loaded.turns] == [t.to_dict() for t in snapshot.turns]
    assert loaded.turns[1].speaker == Speaker.CANDIDATE


def test_snapshot_file_layout(tmp_path):
    path = tmp_path / "paused.json"
    SnapshotStore(str(path)).save(make_snapshot())

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["interviewData"] == {
        "companyName": "Acme Corp",
        "jobRole": "Product Manager",
        "companyUrl": "https://acme.example.com",
    }
    assert [m["sender"] for m in data["messages"]] == ["ai", "user", "ai"]
    assert data["language"] == "ja"


def test_missing_snapshot_loads_as_none(tmp_path):
    assert SnapshotStore(str(tmp_path / "nothing.json")).load() is None


def test_corrupt_snapshot_is_discarded(tmp_path):
    path = tmp_path / "paused.json"
    path.write_text("{not json", encoding="utf-8")
    store = SnapshotStore(str(path))

    assert store.load() is None
    assert not path.exists()


def test_snapshot_with_unknown_sender_is_discarded(tmp_path):
    path = tmp_path / "paused.json"
    data = make_snapshot().to_dict()
    data["messages"][0]["sender"] = "robot"
    path.write_text(json.dumps(data), encoding="utf-8")

    assert SnapshotStore(str(path)).load() is None


def test_clear_removes_snapshot(tmp_path):
    store = SnapshotStore(str(tmp_path / "paused.json"))
    store.save(make_snapshot())
    store.clear()
    assert not store.exists()
    store.clear()


def test_progress_defaults_to_beginner(tmp_path):
    progress = ProgressStore(str(tmp_path / "progress.json")).load()
    assert progress == CandidateProgress(tier=Tier.BEGINNER, interviews_completed=0)


def test_progress_round_trip(tmp_path):
    path = tmp_path / "progress.json"
    store = ProgressStore(str(path))
    store.save(CandidateProgress(tier=Tier.INTERMEDIATE, interviews_completed=2))

    assert json.loads(path.read_text(encoding="utf-8")) == {"progress": "intermediate", "interviewsCompleted": 2}
    assert store.load() == CandidateProgress(tier=Tier.INTERMEDIATE, interviews_completed=2)


def test_unreadable_progress_starts_fresh(tmp_path):
    path = tmp_path / "progress.json"
    path.write_text(json.dumps({"progress": "wizard"}), encoding="utf-8")
    assert ProgressStore(str(path)).load() == CandidateProgress()


def _corrupt(data, mutate):
    mutate(data)
    return data


@pytest.mark.parametrize("data", [
    _corrupt(make_snapshot().to_dict(), lambda d: d.__setitem__("messages", ["oops"])),
    _corrupt(make_snapshot().to_dict(), lambda d: d.__setitem__("messages", "oops")),
    _corrupt(make_snapshot().to_dict(), lambda d: d["interviewData"].__setitem__("companyName", 5)),
    _corrupt(make_snapshot().to_dict(), lambda d: d.__setitem__("interviewData", [])),
    _corrupt(make_snapshot().to_dict(), lambda d: d.__setitem__("language", None)),
    [1, 2],
    "paused",
])
def test_snapshot_of_the_wrong_shape_is_discarded(tmp_path, data):
    path = tmp_path / "paused.json"
    path.write_text(json.dumps(data), encoding="utf-8")

    assert SnapshotStore(str(path)).load() is None
    assert not path.exists()


@pytest.mark.parametrize("data", [[1, 2], "intermediate", 3, {"progress": 5}, {"interviewsCompleted": "many"}])
def test_progress_of_the_wrong_shape_starts_fresh(tmp_path, data):
    path = tmp_path / "progress.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    assert ProgressStore(str(path)).load() == CandidateProgress()
