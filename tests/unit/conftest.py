"""Shared test fixtures."""

import copy
import json
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
from loguru import logger

from layer_query.core.importer.json_reader import parse_document_data
from layer_query.host import DocumentHost
from layer_query.models.node import SceneDocument
from tests.unit.sample_scene import SAMPLE_SCENE


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """CLI tests point loguru at a captured stream; reset it afterwards."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def document() -> SceneDocument:
    return parse_document_data(copy.deepcopy(SAMPLE_SCENE))


@pytest.fixture
def host(document: SceneDocument) -> DocumentHost:
    return DocumentHost(document)


@pytest.fixture
def scene_file(tmp_path: Path) -> Path:
    path = tmp_path / "scene.json"
    path.write_text(json.dumps(SAMPLE_SCENE))
    return path
