import pytest

from nfe_samples import sample_nfe


@pytest.fixture
def nfe_xml():
    """NF-e processada (nfeProc + protNFe) com dois itens."""
    return sample_nfe()


@pytest.fixture
def sample_context():
    return {
        "trace_id": "test-trace-123",
        "execution_id": "exec-001",
        "tenant_id": "tenant-A",
    }
