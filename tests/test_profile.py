import pytest

from devbox_bootstrap.lib.profile import ShellProfile, ensure_block, profile_satisfied, write_file
from devbox_bootstrap.steps.base import ProfileBlockStep

BLOCK = "# --- marker block ---\nexport FOO=1\n"


def test_creates_missing_file(tmp_path):
    rc = tmp_path / ".bashrc"
    assert ensure_block(ShellProfile(str(rc), "marker block", BLOCK)) is True
    assert rc.read_text() == "\n" + BLOCK


def test_sentinel_present_leaves_file_byte_for_byte(tmp_path):
    rc = tmp_path / ".zshrc"
    original = b"alias ll='ls -l'\n# marker block (added by hand)\nno trailing newline"
    rc.write_bytes(original)
    assert ensure_block(ShellProfile(str(rc), "marker block", BLOCK)) is False
    assert rc.read_bytes() == original


def test_second_run_is_a_noop(tmp_path):
    rc = tmp_path / ".bashrc"
    rc.write_text("export PATH=$PATH:/opt/bin\n")
    profile = ShellProfile(str(rc), "marker block", BLOCK)
    ensure_block(profile)
    once = rc.read_bytes()
    ensure_block(profile)
    assert rc.read_bytes() == once
    assert rc.read_text().count("marker block") == 1


def test_appends_after_content_without_trailing_newline(tmp_path):
    rc = tmp_path / ".bashrc"
    rc.write_text("export A=1")
    ensure_block(ShellProfile(str(rc), "marker block", BLOCK))
    assert rc.read_text() == "export A=1\n\n" + BLOCK


def test_dry_run_does_not_write(tmp_path):
    rc = tmp_path / ".bashrc"
    assert ensure_block(ShellProfile(str(rc), "marker block", BLOCK), dry_run=True) is True
    assert not rc.exists()


def test_sentinel_must_be_in_block():
    with pytest.raises(ValueError):
        ShellProfile("~/.bashrc", "absent", BLOCK)
    with pytest.raises(ValueError):
        ShellProfile("~/.bashrc", "", BLOCK)


def test_each_profile_checked_independently(ctx, home):
    (home / ".bashrc").write_text("# marker block already here\n")
    step = ProfileBlockStep("demo", sentinel="marker block", block=BLOCK)
    assert step.probe(ctx) is False

    step.apply(ctx)

    assert (home / ".bashrc").read_text() == "# marker block already here\n"
    assert (home / ".zshrc").read_text() == "\n" + BLOCK
    assert step.probe(ctx) is True
    assert all(profile_satisfied(ctx.state, t) for t in step.targets(ctx))


def test_write_file_overwrites(tmp_path):
    target = tmp_path / "sub" / ".zshrc"
    write_file(str(target), "one\n")
    write_file(str(target), "two\n")
    assert target.read_text() == "two\n"
