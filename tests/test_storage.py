"""
Tests for the discovered-kernel database.
"""

import csv

import numpy as np
import pytest

from kernelca.config import SearchConfig
from kernelca.errors import CorruptDatabase
from kernelca.kernels import GAME_OF_LIFE, JELLYFISH
from kernelca.metrics import summarize_trial
from kernelca.storage import KernelDatabase, band_score, kernel_key


@pytest.fixture
def config() -> SearchConfig:
    return SearchConfig(trials=2, steps=3, grid_side=10, kernel_side=3, num_ones=4,
                        lower_bound=0, upper_bound=20)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "kernels.json"


class TestHelpers:
    """Tests for key and score helpers."""

    def test_kernel_key(self):
        """Kernel key lists rows separated by slashes."""
        assert kernel_key(GAME_OF_LIFE) == "1,1,1/1,0,1/1,1,1"

    def test_band_score(self):
        """Score is 1 at the center and 0 at the bounds."""
        assert band_score(10, 0, 20) == 1.0
        assert band_score(0, 0, 20) == 0.0
        assert band_score(20, 0, 20) == 0.0
        assert band_score(15, 0, 20) == pytest.approx(0.5)
        assert band_score(40, 0, 20) == 0.0


class TestKernelDatabase:
    """Tests for KernelDatabase."""

    def test_add_and_reload(self, db_path, config, make_trial):
        """Added kernels persist across instances."""
        db = KernelDatabase(str(db_path))
        summary = summarize_trial(make_trial(0, [5, 7]), config.lower_bound, config.upper_bound)

        record = db.add(GAME_OF_LIFE, summary, config)

        assert record.score == pytest.approx(0.7)
        reloaded = KernelDatabase(str(db_path))
        assert len(reloaded) == 1
        assert np.array_equal(reloaded.get_by_kernel(kernel_key(GAME_OF_LIFE)).kernel, GAME_OF_LIFE)
        assert reloaded.kernels[0].config["lower_bound"] == 0

    def test_duplicate_keeps_better(self, db_path, config, make_trial):
        """Re-adding a kernel keeps the better score."""
        db = KernelDatabase(str(db_path))
        worse = summarize_trial(make_trial(0, [3]), config.lower_bound, config.upper_bound)
        better = summarize_trial(make_trial(1, [10]), config.lower_bound, config.upper_bound)

        db.add(GAME_OF_LIFE, worse, config)
        db.add(GAME_OF_LIFE, better, config)
        db.add(GAME_OF_LIFE, worse, config)

        assert len(db) == 1
        assert db.kernels[0].score == 1.0
        assert db.kernels[0].metrics["final_population"] == 10

    def test_leaderboard(self, db_path, config, make_trial):
        """Leaderboard sorts by score."""
        db = KernelDatabase(str(db_path))
        db.add(GAME_OF_LIFE, summarize_trial(make_trial(0, [4]), 0, 20), config)
        db.add(JELLYFISH, summarize_trial(make_trial(1, [11]), 0, 20), config)

        board = db.get_leaderboard(5)

        assert [k.kernel_string for k in board] == [kernel_key(JELLYFISH), kernel_key(GAME_OF_LIFE)]
        assert len(db.get_leaderboard(1)) == 1

    def test_remove_and_clear(self, db_path, config, make_trial):
        """Kernels can be removed one at a time or all together."""
        db = KernelDatabase(str(db_path))
        db.add(GAME_OF_LIFE, summarize_trial(make_trial(0, [4]), 0, 20), config)
        db.add(JELLYFISH, summarize_trial(make_trial(1, [11]), 0, 20), config)

        assert db.remove(kernel_key(GAME_OF_LIFE))
        assert not db.remove(kernel_key(GAME_OF_LIFE))
        assert len(db) == 1

        db.clear()
        assert len(KernelDatabase(str(db_path))) == 0

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", "{\"rows\": []}", "{\"kernels\": [{\"score\": 1}]}"])
    def test_corrupt_file_rejected(self, db_path, content):
        """Unreadable files raise CorruptDatabase and are left on disk as they were."""
        db_path.write_text(content)

        with pytest.raises(CorruptDatabase, match="cannot read kernel database"):
            KernelDatabase(str(db_path))

        assert db_path.read_text() == content

    def test_missing_file_is_empty(self, db_path):
        """A database path that does not exist yet starts empty and is not created."""
        db = KernelDatabase(str(db_path))

        assert len(db) == 0
        assert not db_path.exists()

    def test_export_csv(self, db_path, tmp_path, config, make_trial):
        """CSV export has a header and one row per kernel."""
        db = KernelDatabase(str(db_path))
        db.add(GAME_OF_LIFE, summarize_trial(make_trial(0, [4]), 0, 20), config)
        out = tmp_path / "kernels.csv"

        db.export_csv(str(out))

        with open(out, newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0][0] == "kernel"
        assert rows[1][0] == kernel_key(GAME_OF_LIFE)
        assert rows[1][8] == "fixed"
