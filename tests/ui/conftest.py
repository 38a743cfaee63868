# tests/ui/conftest.py
import pytest
from PySide6.QtCore import QCoreApplication

# PySide6のタイマーとシグナルにはアプリケーションインスタンスが必要
@pytest.fixture(scope="session")
def qapp():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app
