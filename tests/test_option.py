import pytest

from hwinspect import option
from hwinspect.option import Option, SnapshotOptions

_ENV_KEYS = [
    "HWINSPECT_CHROOT",
    "HWINSPECT_DISABLE_WARNINGS",
    "HWINSPECT_DISABLE_TOOLS",
    "HWINSPECT_SNAPSHOT_PATH",
    "HWINSPECT_SNAPSHOT_ROOT",
    "HWINSPECT_SNAPSHOT_EXCLUSIVE",
    "HWINSPECT_SNAPSHOT_PRESERVE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _assert_matches(expected: Option, got: Option) -> None:
    if expected.chroot is not None:
        assert got.chroot == expected.chroot
    if expected.snapshot is not None:
        assert got.snapshot is not None
        assert got.snapshot.path == expected.snapshot.path
        assert got.snapshot.exclusive == expected.snapshot.exclusive
        if expected.snapshot.root is not None:
            assert got.snapshot.root == expected.snapshot.root
    if expected.enable_tools is not None:
        assert got.enable_tools == expected.enable_tools
    if expected.path_overrides is not None:
        assert got.path_overrides == expected.path_overrides


CASES = [
    (
        "multiple chroots",
        [option.with_chroot("/my/chroot/dir"), option.with_chroot("/my/chroot/dir/2")],
        Option(chroot="/my/chroot/dir/2", enable_tools=True),
    ),
    (
        "multiple chroots interleaved",
        [
            option.with_chroot("/my/chroot/dir"),
            option.with_snapshot(SnapshotOptions(path="/my/snapshot/dir")),
            option.with_chroot("/my/chroot/dir/2"),
        ],
        Option(chroot="/my/chroot/dir/2", snapshot=SnapshotOptions(path="/my/snapshot/dir")),
    ),
    (
        "multiple snapshots overriding path",
        [
            option.with_snapshot(SnapshotOptions(path="/my/snapshot/dir")),
            option.with_snapshot(SnapshotOptions(exclusive=True)),
        ],
        Option(chroot="/", snapshot=SnapshotOptions(path="", exclusive=True)),
    ),
    (
        "chroot and snapshot",
        [
            option.with_chroot("/my/chroot/dir"),
            option.with_snapshot(SnapshotOptions(path="/my/snapshot/dir", exclusive=True)),
        ],
        Option(
            chroot="/my/chroot/dir",
            snapshot=SnapshotOptions(path="/my/snapshot/dir", exclusive=True),
        ),
    ),
    (
        "chroot and snapshot with root",
        [
            option.with_chroot("/my/chroot/dir"),
            option.with_snapshot(
                SnapshotOptions(
                    path="/my/snapshot/dir",
                    root="/my/overridden/chroot/dir",
                    exclusive=True,
                )
            ),
        ],
        Option(
            chroot="/my/chroot/dir",
            snapshot=SnapshotOptions(
                path="/my/snapshot/dir",
                root="/my/overridden/chroot/dir",
                exclusive=True,
            ),
        ),
    ),
    (
        "chroot and disabling tools",
        [option.with_chroot("/my/chroot/dir"), option.with_disable_tools()],
        Option(chroot="/my/chroot/dir", enable_tools=False),
    ),
    (
        "paths",
        [option.with_path_overrides({"/run": "/host-run", "/var": "/host-var"})],
        Option(path_overrides={"/run": "/host-run", "/var": "/host-var"}),
    ),
    (
        "chroot paths",
        [
            option.with_chroot("/my/chroot/dir"),
            option.with_path_overrides({"/run": "/host-run", "/var": "/host-var"}),
        ],
        Option(
            chroot="/my/chroot/dir",
            path_overrides={"/run": "/host-run", "/var": "/host-var"},
        ),
    ),
]


@pytest.mark.parametrize("name,opts,expected", CASES, ids=[c[0] for c in CASES])
def test_merge_cases(name, opts, expected):
    _assert_matches(expected, option.merge(*opts))


def test_merge_defaults_without_env():
    merged = option.merge()
    assert merged.chroot == "/"
    assert merged.enable_tools is True
    assert merged.snapshot == SnapshotOptions(path="", root="", exclusive=False)
    assert merged.path_overrides is None


def test_merge_defaults_from_env(monkeypatch):
    monkeypatch.setenv("HWINSPECT_CHROOT", "/host")
    monkeypatch.setenv("HWINSPECT_DISABLE_TOOLS", "1")
    monkeypatch.setenv("HWINSPECT_SNAPSHOT_PATH", "/snap.tar.gz")
    monkeypatch.setenv("HWINSPECT_SNAPSHOT_ROOT", "/unpack")
    monkeypatch.setenv("HWINSPECT_SNAPSHOT_EXCLUSIVE", "")
    merged = option.merge()
    assert merged.chroot == "/host"
    assert merged.enable_tools is False
    assert merged.snapshot == SnapshotOptions(
        path="/snap.tar.gz", root="/unpack", exclusive=True
    )


def test_explicit_chroot_beats_env(monkeypatch):
    monkeypatch.setenv("HWINSPECT_CHROOT", "/host")
    assert option.merge(option.with_chroot("/mine")).chroot == "/mine"


def test_env_preserve_flag(monkeypatch):
    assert option.env_or_default_snapshot_preserve() is False
    monkeypatch.setenv("HWINSPECT_SNAPSHOT_PRESERVE", "yes")
    assert option.env_or_default_snapshot_preserve() is True


def test_null_alerter_is_merged():
    merged = option.merge(option.with_null_alerter())
    assert merged.alerter is option.NULL_ALERTER


def test_custom_alerter_is_merged():
    class Recorder:
        def warning(self, msg, *args):
            pass

    recorder = Recorder()
    assert option.merge(option.with_alerter(recorder)).alerter is recorder


def test_default_alerter_writes_stderr(capsys):
    alerter = option.env_or_default_alerter()
    alerter.warning("disk %s missing", "sda")
    assert capsys.readouterr().err == "disk sda missing\n"


def test_disabled_warnings_are_silent(monkeypatch, capsys):
    monkeypatch.setenv("HWINSPECT_DISABLE_WARNINGS", "1")
    alerter = option.env_or_default_alerter()
    alerter.warning("disk %s missing", "sda")
    assert alerter is option.NULL_ALERTER
    assert capsys.readouterr().err == ""