import json
import pytest

from coherence_field.constants import HarmonicCycle, ParticipationState
from coherence_field.engine import CoherenceFieldEngine
from coherence_field.models import FieldSnapshot
from coherence_field.persistence import SnapshotStore

from conftest import AMPLITUDE


class TestSnapshotRecords:
    def test_round_trip_preserves_everything(self, pair):
        pair.phase_couple('a', 'b', 0.4, 1234)
        pair.run(12)
        data = pair.snapshot.to_dict()
        restored = FieldSnapshot.from_dict(json.loads(json.dumps(data)))
        assert restored.to_dict() == data
        assert restored.participants['a'].state in ParticipationState
        assert restored.couplings[('a', 'b')].locked_amplitude == 1234

    def test_layout(self, pair):
        pair.phase_couple('a', 'b', 0.4, 0)
        data = pair.snapshot.to_dict()
        assert set(data) == {'field', 'participants', 'couplings'}
        assert [p['participant_id'] for p in data['participants']] == ['a', 'b']
        assert data['participants'][0]['cycle'] == 'full'
        for record in data['participants'] + data['couplings'] + [data['field']]:
            for value in record.values():
                assert not isinstance(value, float)

    def test_copy_is_independent(self, pair):
        snap = pair.snapshot
        clone = snap.copy()
        clone.participants['a'].amplitude += 1
        clone.field.reserve_balance = 0
        assert snap.participants['a'].amplitude == AMPLITUDE
        assert snap.field.reserve_balance != 0


class TestSnapshotStore:
    def test_save_and_load(self, pair, tmp_path):
        store = SnapshotStore(str(tmp_path / 'snaps'))
        pair.run(3)
        path = store.save(pair.snapshot)
        assert path.name == 'snapshot_00000003.json'
        assert store.load(3).to_dict() == pair.snapshot.to_dict()

    def test_load_latest(self, pair, tmp_path):
        store = SnapshotStore(str(tmp_path))
        assert store.load_latest() is None
        for _ in range(3):
            store.save(pair.step())
        assert store.list_epochs() == [1, 2, 3]
        assert store.load_latest().epoch == 3

    def test_corrupt_files_skipped(self, pair, tmp_path):
        store = SnapshotStore(str(tmp_path))
        store.save(pair.step())
        (tmp_path / 'snapshot_00000099.json').write_text('{not json')
        assert store.list_epochs() == [1]
        assert store.load_latest().epoch == 1

    def test_resume_engine(self, pair, config, tmp_path):
        store = SnapshotStore(str(tmp_path))
        pair.run(4)
        store.save(pair.snapshot)
        resumed = CoherenceFieldEngine(config=config, snapshot=store.load_latest())
        pair.run(2)
        resumed.run(2)
        assert resumed.snapshot.to_dict() == pair.snapshot.to_dict()

    def test_missing_epoch(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            SnapshotStore(str(tmp_path)).load(7)
