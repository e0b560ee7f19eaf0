"""
Test configuration for Janus tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import create_parser
from semantics import create_analyzer


@pytest.fixture
def parser():
  """Provide a fresh parser for each test"""
  return create_parser()


@pytest.fixture
def compile_program(parser):
  """Parse and analyze source text, returning its function table"""
  analyzer = create_analyzer()

  def compile_source(source):
    return analyzer.analyze(parser.parse_string(source)).functions

  return compile_source


@pytest.fixture
def examples_dir():
  """Get the examples directory path"""
  return project_root / "examples"
