"""
Basic tests for the VV Education API server packages
"""
from app import __version__


def test_version():
    """Test that version is defined."""
    assert __version__ == "0.1.0"


def test_import():
    """Test that app and engine packages can be imported."""
    import app
    import vvce

    assert app is not None
    assert vvce.__version__ == "1.0.0"


def test_api_package_describes_itself():
    from app.server.api import API_VERSION, describe

    assert API_VERSION == "v1"
    assert describe().startswith("VV Education API v1")
