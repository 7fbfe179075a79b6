"""Pytest configuration and fixtures."""

import io
import json
import logging
import tarfile

import pytest


@pytest.fixture(autouse=True)
def reset_weirddeps_logger():
    """Let caplog see pipeline logs even after the CLI configured rich output."""
    logger = logging.getLogger("weirddeps")
    yield
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def write_index_file(tmp_path):
    """Write an index file for a crate from a list of (version, yanked) pairs."""
    root = tmp_path / "crates.io-index"

    def _write(name, versions, subdir="ab/cd"):
        path = root / subdir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = [
            json.dumps({"name": name, "vers": vers, "deps": [], "cksum": "00", "yanked": yanked})
            for vers, yanked in versions
        ]
        path.write_text("\n".join(lines) + ("\n" if lines else ""))
        return path

    _write.root = root
    return _write


@pytest.fixture
def make_crate():
    """Build a gzipped tarball from a mapping of member path to text."""

    def _make(files):
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w:gz") as tar:
            for name, content in files.items():
                data = content.encode()
                info = tarfile.TarInfo(name)
                info.size = len(data)
                tar.addfile(info, io.BytesIO(data))
        return buf.getvalue()

    return _make


@pytest.fixture
def proc_macro_toml():
    """Cargo.toml text for a proc-macro crate with the given dependencies."""

    def _toml(name, deps=(), legacy=False):
        section = "project" if legacy else "package"
        flag = "proc_macro" if legacy else "proc-macro"
        lines = [f"[{section}]", f'name = "{name}"', 'version = "0.1.0"', "", "[lib]", f"{flag} = true"]
        if deps:
            lines += ["", "[dependencies]"]
            lines += [f'{dep} = "1"' for dep in deps]
        return "\n".join(lines) + "\n"

    return _toml
