"""Shared pytest fixtures for Qt application lifecycle and FlowDraw models."""

import os
import sys
from itertools import count

import pytest

# Headless environments have no display; use the offscreen Qt platform by default.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import QCoreApplication
from PySide6.QtGui import QGuiApplication

from flowdraw import FlowchartModel, InteractionController


@pytest.fixture(scope="session")
def app():
    """Provide a single QGuiApplication for all tests."""
    instance = QGuiApplication.instance()
    if instance is None:
        instance = QGuiApplication(sys.argv)

    yield instance

    QCoreApplication.processEvents()


@pytest.fixture
def model(app):
    """Model with deterministic ids and a fixed default position."""
    ids = count(1)
    return FlowchartModel(
        id_factory=lambda prefix: f"{prefix}-{next(ids)}",
        position_factory=lambda: (10.0, 20.0),
    )


@pytest.fixture
def controller(model):
    return InteractionController(model)


@pytest.fixture
def three_nodes(model):
    a = model.add_node("start").id
    b = model.add_node("process").id
    c = model.add_node("end").id
    return a, b, c
