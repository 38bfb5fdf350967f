"""Tests for OS data acquisition."""

import pytest

from cpuline import procfs
from cpuline.errors import AcquisitionError, TopologyError
from cpuline.procfs import parse_stat, read_snapshot

STAT_TEXT = """\
cpu  3357 0 4313 1362393 120 0 15 0 0 0
cpu0 1500 0 2000 680000 60 0 8 0 0 0
cpu1 1857 0 2313 682393 60 0 7 0 0 0
intr 114930548 113199788 3 0 5 263 0 4 [... 7 ...]
ctxt 1990473
btime 1062191376
processes 2915
procs_running 1
procs_blocked 0
"""


class TestParseStat:
    """Tests for parse_stat."""

    def test_parses_aggregate_and_cores(self):
        """Test the aggregate and per-core lines are read in field order."""
        snapshot = parse_stat(STAT_TEXT, captured_at=4.0)

        assert snapshot.captured_at == 4.0
        assert snapshot.aggregate.user == 3357
        assert snapshot.aggregate.idle == 1362393
        assert snapshot.aggregate.softirq == 15
        assert snapshot.core_indices == [0, 1]
        assert snapshot.per_core[1].system == 2313

    def test_sparse_core_indices(self):
        """Test gaps in core numbering are kept as-is."""
        text = "cpu0 1 2 3 4\ncpu7 5 6 7 8\n"

        snapshot = parse_stat(text, captured_at=0.0)

        assert snapshot.core_indices == [0, 7]
        assert snapshot.aggregate is None

    def test_short_lines_use_minimal_fields(self):
        """Test older kernels with four columns still parse."""
        snapshot = parse_stat("cpu 10 20 30 40\n", captured_at=0.0)

        assert snapshot.aggregate.total_time == 100
        assert snapshot.aggregate.steal == 0

    @pytest.mark.parametrize(
        "line",
        [
            "cpu2 1 2 3",
            "cpu2 1 2 x 4",
            "cpux 1 2 3 4",
            "cpu-2 1 2 3 4",
            "cpu2 1 -2 3 4",
            "cpu2",
        ],
    )
    def test_malformed_lines_skipped(self, line):
        """Test a bad line is dropped and the rest of the table survives."""
        snapshot = parse_stat(f"cpu0 1 2 3 4\n{line}\ncpu3 5 6 7 8\n", captured_at=0.0)

        assert snapshot.core_indices == [0, 3]

    def test_malformed_aggregate_skipped(self):
        """Test a bad aggregate line leaves the aggregate absent."""
        snapshot = parse_stat("cpu 1 2\ncpu0 1 2 3 4\n", captured_at=0.0)

        assert snapshot.aggregate is None
        assert snapshot.core_indices == [0]

    def test_extra_columns_ignored(self):
        """Test columns beyond the known counters are ignored."""
        snapshot = parse_stat("cpu0 1 2 3 4 5 6 7 8 9 10 11 12\n", captured_at=0.0)

        assert snapshot.per_core[0].guest_nice == 10


class TestReadSnapshot:
    """Tests for read_snapshot."""

    def test_reads_file(self, tmp_path):
        """Test a stat file on disk is parsed and timestamped."""
        path = tmp_path / "stat"
        path.write_text(STAT_TEXT)

        snapshot = read_snapshot(str(path))

        assert snapshot.core_indices == [0, 1]
        assert snapshot.captured_at > 0

    def test_missing_file_raises_acquisition_error(self, tmp_path):
        """Test an unreadable source is reported as a skippable failure."""
        with pytest.raises(AcquisitionError):
            read_snapshot(str(tmp_path / "missing"))


def make_cpu(root, index, cur=None, low=None, high=None):
    """Create a sysfs-style cpuN directory; omitted values leave files absent."""
    cpu = root / f"cpu{index}"
    cpu.mkdir()
    if cur is None and low is None and high is None:
        return
    freq = cpu / "cpufreq"
    freq.mkdir()
    for name, value in (
        ("scaling_cur_freq", cur),
        ("cpuinfo_min_freq", low),
        ("cpuinfo_max_freq", high),
    ):
        if value is not None:
            (freq / name).write_text(f"{value}\n")


@pytest.fixture
def clustered_cpus(tmp_path):
    """Eight CPUs in two frequency clusters, as on big.LITTLE phones."""
    for index in range(4):
        make_cpu(tmp_path, index, cur=1000000 + index, low=300000, high=1800000)
    for index in range(4, 8):
        make_cpu(tmp_path, index, cur=2000000 + index, low=700000, high=2400000)
    (tmp_path / "cpufreq").mkdir()
    (tmp_path / "cpuidle").mkdir()
    return tmp_path


class TestFrequencies:
    """Tests for per-CPU frequency acquisition from sysfs."""

    def test_readings_keyed_by_cpu_number(self, clustered_cpus):
        """Test each CPU gets its own reading, not its cluster's position."""
        readings = procfs.read_frequencies(str(clustered_cpus))

        assert sorted(readings) == list(range(8))
        assert readings[1] == 1000001
        assert readings[4] == 2000004

    def test_clustered_bounds(self, clustered_cpus):
        """Test a core in the second cluster keeps that cluster's bounds."""
        cores = procfs.build_cores(window_capacity=4, cpu_root=str(clustered_cpus))

        assert [core.index for core in cores] == list(range(8))
        assert (cores[4].min_freq, cores[4].max_freq) == (700000, 2400000)
        assert (cores[3].min_freq, cores[3].max_freq) == (300000, 1800000)
        assert cores[0].freq_window.capacity == 4

    def test_offline_cpu_excluded_at_startup(self, tmp_path):
        """Test an offline CPU is left out instead of failing startup."""
        make_cpu(tmp_path, 0, cur=1000000, low=300000, high=1800000)
        make_cpu(tmp_path, 1)
        make_cpu(tmp_path, 2, cur=1200000, low=300000, high=1800000)

        cores = procfs.build_cores(cpu_root=str(tmp_path))

        assert [core.index for core in cores] == [0, 2]

    def test_degenerate_bounds_excluded(self, tmp_path):
        """Test a CPU reporting a zero-width range is left out."""
        make_cpu(tmp_path, 0, cur=0, low=0, high=0)
        make_cpu(tmp_path, 1, cur=1000000, low=300000, high=1800000)

        assert procfs.read_frequency_bounds(str(tmp_path)) == {1: (300000, 1800000)}

    def test_offline_cpu_skipped_at_runtime(self, tmp_path):
        """Test CPUs without a reading or reading zero are not sampled."""
        make_cpu(tmp_path, 0, cur=1000000, low=300000, high=1800000)
        make_cpu(tmp_path, 1)
        make_cpu(tmp_path, 2, cur=0, low=300000, high=1800000)
        make_cpu(tmp_path, 3, low=300000, high=1800000)

        assert procfs.read_frequencies(str(tmp_path)) == {0: 1000000}

    def test_read_frequencies_unavailable(self, tmp_path):
        """Test a system without cpufreq is a skippable failure."""
        make_cpu(tmp_path, 0)

        with pytest.raises(AcquisitionError):
            procfs.read_frequencies(str(tmp_path))

    def test_missing_root_is_skippable(self, tmp_path):
        """Test an unreadable sysfs root fails the tick, not the process."""
        with pytest.raises(AcquisitionError):
            procfs.read_frequencies(str(tmp_path / "missing"))

    def test_no_usable_bounds_is_fatal(self, tmp_path):
        """Test missing frequency support is reported as a topology error."""
        make_cpu(tmp_path, 0)
        make_cpu(tmp_path, 1, cur=0, low=0, high=0)

        with pytest.raises(TopologyError):
            procfs.build_cores(cpu_root=str(tmp_path))


class TestTopology:
    """Tests for topology queries."""

    def test_ticks_per_second(self, monkeypatch):
        """Test the clock tick rate comes from sysconf."""
        monkeypatch.setattr(procfs.os, "sysconf", lambda name: 100)

        assert procfs.ticks_per_second() == 100

    def test_ticks_per_second_failure(self, monkeypatch):
        """Test an unknown sysconf name is a topology error."""

        def fail(name):
            raise ValueError("unrecognized configuration name")

        monkeypatch.setattr(procfs.os, "sysconf", fail)

        with pytest.raises(TopologyError):
            procfs.ticks_per_second()

    def test_core_count(self, monkeypatch):
        """Test the logical CPU count is reported."""
        monkeypatch.setattr(procfs.psutil, "cpu_count", lambda logical: 8)

        assert procfs.core_count() == 8

    def test_core_count_unknown(self, monkeypatch):
        """Test an undetermined CPU count is a topology error."""
        monkeypatch.setattr(procfs.psutil, "cpu_count", lambda logical: None)

        with pytest.raises(TopologyError):
            procfs.core_count()
