"""
Tests for glob resolution.
"""

import os

import pytest

from globwatcher.config import WatcherOptions
from globwatcher.errors import ResolutionError
from globwatcher.resolver import derive_directories, normalize_patterns, resolve


def opts(project, **kwargs):
    return WatcherOptions(cwd=str(project), **kwargs)


def p(project, *parts):
    return os.path.join(str(project), *parts)


def test_single_pattern(project):
    assert resolve("src/*.txt", opts(project)) == [p(project, "src", "a.txt"), p(project, "src", "b.txt")]


def test_patterns_keep_their_order_and_are_deduplicated(project):
    files = resolve(["lib/*", "src/b.txt", "**/*.txt"], opts(project))
    assert files == [
        p(project, "lib", "c.txt"),
        p(project, "lib", "notes.md"),
        p(project, "src", "b.txt"),
        p(project, "src", "a.txt"),
    ]


def test_recursive_globstar(project):
    (project / "src" / "deep").mkdir()
    (project / "src" / "deep" / "d.txt").write_text("d")
    files = resolve("**/*.txt", opts(project))
    assert p(project, "src", "deep", "d.txt") in files


def test_negated_patterns_and_ignore(project):
    files = resolve(["**/*", "!**/*.md"], opts(project, ignore=["src/a.txt"]))
    assert files == [p(project, "lib", "c.txt"), p(project, "src", "b.txt")]


def test_directories_are_dropped_unless_requested(project):
    with pytest.raises(ResolutionError):
        resolve("*", opts(project))
    assert resolve("*", opts(project, only_files=False)) == [p(project, "lib"), p(project, "src")]


def test_absolute_patterns(project):
    assert resolve(p(project, "lib", "*.md"), WatcherOptions(cwd="/")) == [p(project, "lib", "notes.md")]


def test_symlinks_can_be_excluded(project):
    link = project / "src" / "link.txt"
    try:
        os.symlink(p(project, "src", "a.txt"), str(link))
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")
    assert p(project, "src", "link.txt") in resolve("src/*.txt", opts(project))
    assert p(project, "src", "link.txt") not in resolve("src/*.txt", opts(project, symlinks=False))


def test_hidden_files_are_not_matched_by_wildcards(project):
    (project / "src" / ".hidden.txt").write_text("h")
    assert p(project, "src", ".hidden.txt") not in resolve("src/*.txt", opts(project))


@pytest.mark.parametrize("patterns", ["missing/*.txt", [], [""], ["  "], [3], ["!src/*"], 5])
def test_invalid_or_empty_patterns(project, patterns):
    with pytest.raises(ResolutionError):
        resolve(patterns, opts(project))


def test_normalize_patterns_accepts_iterables():
    assert normalize_patterns(("a", "b")) == ["a", "b"]
    assert normalize_patterns("a") == ["a"]


def test_derive_directories_unique_in_first_seen_order():
    files = ["/d2/z", "/d1/x", "/d1/y", "/d2/z"]
    assert derive_directories(files) == [os.path.normpath("/d2"), os.path.normpath("/d1")]
