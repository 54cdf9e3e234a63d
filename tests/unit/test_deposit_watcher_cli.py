from pathlib import Path

import pytest

from scripts.deposit_watcher import parse_args, run


def test_parse_args_defaults():
    args = parse_args([])

    assert args.deposit is None
    assert args.export is None
    assert args.trash is None
    assert args.system_trash is False
    assert args.interval is None


def test_parse_args_overrides():
    args = parse_args([
        "--deposit", "/data/inbox",
        "--export", "/data/out",
        "--system-trash",
        "--interval", "2.5",
        "--log-level", "DEBUG",
    ])

    assert args.deposit == Path("/data/inbox")
    assert args.export == Path("/data/out")
    assert args.system_trash is True
    assert args.interval == 2.5
    assert args.log_level == "DEBUG"


@pytest.mark.asyncio
async def test_run_requires_deposit_folder():
    assert await run(parse_args([])) == 1


@pytest.mark.asyncio
async def test_run_rejects_invalid_folders(tmp_path, deposit):
    args = parse_args([
        "--deposit", str(deposit),
        "--export", str(tmp_path / "same"),
        "--trash", str(tmp_path / "same"),
    ])

    assert await run(args) == 1
