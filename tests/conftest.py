"""
Pytest configuration and shared fixtures.
"""

import tempfile
from pathlib import Path

import pytest

from omniscore.compiler import CompileResult, ScoreCompiler

SAMPLE_SOURCE = """\
%% A small quartet exercising every declaration
omniscore {
  meta { title: "Etude", composer: "Test", tempo: 90, time: "4/4" }

  group "Strings" symbol=bracket {
    def vln "Violin" style=standard
    def vc "Cello" style=standard clef=bass
  }
  def gtr "Guitar" style=tab
  def drums "Kit" style=grid map=gm_kit

  macro Beat(vel) = { k:8.vol($vel) h s h }

  measure 1-2 {
    vln: c5:4 d e f |
    vc: { v1: c3:2 g | v2: e3:2 b2 }
    gtr: 0-6:4 3-6 5-5 0-4 |
    drums: $Beat(100) $Beat(60)
  }
}
"""


@pytest.fixture
def temp_dir() -> Path:
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def compiler() -> ScoreCompiler:
    """A lenient compiler with default options."""
    return ScoreCompiler()


@pytest.fixture
def sample_source() -> str:
    """A complete document with groups, macros, voices and all staff styles."""
    return SAMPLE_SOURCE


@pytest.fixture
def sample_result(compiler: ScoreCompiler, sample_source: str) -> CompileResult:
    """The compiled sample document."""
    return compiler.compile(sample_source)


@pytest.fixture
def scores_dir(temp_dir: Path) -> Path:
    """A scores directory holding one .omni file."""
    directory = temp_dir / "scores"
    directory.mkdir()
    (directory / "etude.omni").write_text(SAMPLE_SOURCE, encoding="utf-8")
    return directory
