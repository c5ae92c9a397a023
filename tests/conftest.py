"""Pytest configuration and shared fixtures."""
import pytest

from jsonstate import EditorConfig, WorkspaceManager, as_value


SAMPLE_DOCUMENT = {
    "id": "devcore-001",
    "active": True,
    "features": ["ai-explainer", "api-tester"],
    "config": {
        "theme": "dark",
        "version": 1,
        "metadata": {
            "created_by": "Ops Team",
            "project_name": "Nexus",
            "security_level": "Confidential",
        },
    },
}


@pytest.fixture
def sample_data():
    """Provide the sample document as plain Python data."""
    return SAMPLE_DOCUMENT


@pytest.fixture
def sample_value():
    """Provide the sample document as a Value tree."""
    return as_value(SAMPLE_DOCUMENT)


@pytest.fixture
def config():
    """Provide a test configuration with a small history cap."""
    return EditorConfig(default_expansion_depth=1, max_history_size=50)


@pytest.fixture
def workspace(config):
    """Provide an empty workspace using the test configuration."""
    return WorkspaceManager(config=config)


@pytest.fixture
def document(workspace, sample_data):
    """Provide an open document holding the sample value."""
    document_id = workspace.create_document(sample_data, name="sample.json")
    return workspace.get_document(document_id)
