from unittest.mock import MagicMock

import pytest


@pytest.fixture
def mock_cloudwatch_client():
    """Mock boto3 CloudWatch client for unit tests"""
    client = MagicMock()
    client.get_metric_statistics = MagicMock(return_value={"Datapoints": []})
    return client
