from __future__ import annotations

from pathlib import Path

import pytest

from conftest import write_placeholder
from lazywebp.core.discovery import (
    TaskDiscovery,
    filter_supported_images,
    is_image_file,
    resolve_output_path,
)
from lazywebp.core.errors import InvalidInputKind
from lazywebp.core.stats import RunStatistics


@pytest.mark.parametrize(
    "name",
    ["a.jpg", "a.JPEG", "a.png", "a.gif", "a.bmp", "a.tiff", "a.WebP", "dir.d/b.Png"],
)
def test_image_extensions_are_accepted(name: str) -> None:
    assert is_image_file(name)


@pytest.mark.parametrize("name", ["a.txt", "a.tif", "a.heic", "png", "a.png.bak", "noext"])
def test_other_extensions_are_rejected(name: str) -> None:
    assert not is_image_file(name)


def test_filter_supported_images_keeps_order() -> None:
    paths = [Path("b.png"), Path("notes.md"), Path("a.JPG")]
    assert filter_supported_images(paths) == [Path("b.png"), Path("a.JPG")]


def test_resolve_output_path() -> None:
    assert resolve_output_path(Path("/in/photo.jpeg")) == Path("/in/photo.webp")
    assert resolve_output_path(Path("/in/photo.jpeg"), Path("/out")) == Path("/out/photo.webp")


def collect(inputs, output_dir=None, recursive=False):
    stats = RunStatistics()
    logged: list[str] = []
    tasks = TaskDiscovery(stats, output_dir=output_dir, recursive=recursive, on_log=logged.append).collect(inputs)
    return tasks, stats, logged


def test_non_recursive_only_lists_immediate_children(tmp_path: Path) -> None:
    write_placeholder(tmp_path / "b.png")
    write_placeholder(tmp_path / "a.jpg")
    write_placeholder(tmp_path / "sub" / "c.png")

    tasks, stats, _ = collect([tmp_path])

    assert [task.input_path.name for task in tasks] == ["a.jpg", "b.png"]
    assert stats.total_files == 2


def test_recursive_same_directory_outputs_beside_sources(tmp_path: Path) -> None:
    write_placeholder(tmp_path / "top.png")
    write_placeholder(tmp_path / "sub" / "nested.gif")

    tasks, _, _ = collect([tmp_path], recursive=True)

    outputs = {task.input_path.name: task.output_path for task in tasks}
    assert outputs == {
        "top.png": tmp_path / "top.webp",
        "nested.gif": tmp_path / "sub" / "nested.webp",
    }


def test_separate_output_mirrors_relative_directories(tmp_path: Path) -> None:
    source = tmp_path / "src"
    write_placeholder(source / "x" / "y" / "deep.bmp")
    out = tmp_path / "out"

    tasks, _, _ = collect([source], output_dir=out, recursive=True)

    assert [task.output_path for task in tasks] == [out / "x" / "y" / "deep.webp"]
    assert out.is_dir()


def test_output_root_inside_input_is_not_walked(tmp_path: Path) -> None:
    write_placeholder(tmp_path / "a.png")
    write_placeholder(tmp_path / "out" / "a.webp")

    tasks, stats, _ = collect([tmp_path], output_dir=tmp_path / "out", recursive=True)

    assert [task.input_path.name for task in tasks] == ["a.png"]
    assert stats.total_files == 1


def test_temp_files_are_ignored(tmp_path: Path) -> None:
    write_placeholder(tmp_path / ".lazywebp-0123456789abcdef.webp")
    write_placeholder(tmp_path / "real.png")

    tasks, stats, _ = collect([tmp_path])

    assert [task.input_path.name for task in tasks] == ["real.png"]
    assert stats.skipped == 0


def test_non_image_entries_are_counted_as_skipped(tmp_path: Path) -> None:
    write_placeholder(tmp_path / "a.png")
    write_placeholder(tmp_path / "notes.txt")

    tasks, stats, logged = collect([tmp_path])

    assert len(tasks) == 1
    assert stats.total_files == 2
    assert stats.skipped == 1
    assert any("notes.txt" in message for message in logged)


def test_same_file_collision_is_skipped(tmp_path: Path) -> None:
    source = write_placeholder(tmp_path / "already.webp")

    tasks, stats, logged = collect([source])

    assert tasks == []
    assert stats.total_files == 1
    assert stats.skipped == 1
    assert "same file" in logged[0]


def test_shared_output_path_is_warned_about(tmp_path: Path) -> None:
    write_placeholder(tmp_path / "a.jpg")
    write_placeholder(tmp_path / "a.png")

    tasks, stats, logged = collect([tmp_path])

    assert len(tasks) == 2
    assert stats.skipped == 0
    assert len(logged) == 1
    assert "claimed by both" in logged[0]
    assert "a.webp" in logged[0]


def test_webp_source_with_output_directory_is_a_task(tmp_path: Path) -> None:
    source = write_placeholder(tmp_path / "already.webp")

    tasks, _, _ = collect([source], output_dir=tmp_path / "out")

    assert [task.output_path for task in tasks] == [tmp_path / "out" / "already.webp"]


def test_files_and_directories_can_be_mixed(tmp_path: Path) -> None:
    single = write_placeholder(tmp_path / "single.png")
    folder = tmp_path / "folder"
    write_placeholder(folder / "one.png")
    write_placeholder(folder / "two.png")

    tasks, stats, _ = collect([single, folder])

    assert [task.input_path.name for task in tasks] == ["single.png", "one.png", "two.png"]
    assert stats.total_files == 3


def test_missing_path_is_invalid(tmp_path: Path) -> None:
    with pytest.raises(InvalidInputKind):
        collect([tmp_path / "missing"])
