import shutil
import sys

import pytest

from coderunner.config import EngineConfig, Toolchain
from coderunner.executor import ExecutionEngine

HAS_GXX = shutil.which('g++') is not None
HAS_NODE = shutil.which('node') is not None

needs_gxx = pytest.mark.skipif(not HAS_GXX, reason='g++ not installed')
needs_node = pytest.mark.skipif(not HAS_NODE, reason='node not installed')


@pytest.fixture
def config(tmp_path):
    return EngineConfig(
        toolchain=Toolchain(
            cxx=shutil.which('g++') or 'g++',
            python=sys.executable,
            node=shutil.which('node') or 'node',
        ),
        workspace_root=str(tmp_path),
    )


@pytest.fixture
def engine(config):
    return ExecutionEngine(config)
