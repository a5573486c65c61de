"""Unit tests for the RSVP store."""
import os
from unittest.mock import patch

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from processor.models import RsvpResult
from storage.rsvp_store import RsvpStore


@pytest.fixture
def aws_env():
    """Fake credentials and region for boto3."""
    env_vars = {
        'AWS_ACCESS_KEY_ID': 'testing',
        'AWS_SECRET_ACCESS_KEY': 'testing',
        'AWS_DEFAULT_REGION': 'us-east-1'
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


@pytest.fixture
def rsvp_table(aws_env):
    """Create a mock DynamoDB table for testing."""
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')

        table = dynamodb.create_table(
            TableName='test-agenda-rsvp',
            KeySchema=[
                {'AttributeName': 'message_id', 'KeyType': 'HASH'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'message_id', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )

        yield table


@pytest.fixture
def store(rsvp_table):
    return RsvpStore('test-agenda-rsvp')


class TestRsvpStore:
    """Test cases for RsvpStore class."""

    def test_unknown_message_has_no_votes(self, store):
        assert store.get_votes(999) == 0

    def test_toggle_adds_vote(self, store, rsvp_table):
        result = store.toggle_vote(100, 1)

        assert result == RsvpResult(count=1, added=True)
        item = rsvp_table.get_item(Key={'message_id': '100'})['Item']
        assert item['voters'] == {'1'}

    def test_votes_from_several_users(self, store):
        store.toggle_vote(100, 1)
        store.toggle_vote(100, 2)
        result = store.toggle_vote(100, 3)

        assert result.count == 3
        assert store.get_votes(100) == 3

    def test_second_toggle_removes_vote(self, store):
        store.toggle_vote(100, 1)
        store.toggle_vote(100, 2)

        result = store.toggle_vote(100, 1)

        assert result == RsvpResult(count=1, added=False)
        assert store.get_votes(100) == 1

    def test_removing_last_vote(self, store):
        store.toggle_vote(100, 1)

        result = store.toggle_vote(100, 1)

        assert result == RsvpResult(count=0, added=False)
        assert store.get_votes(100) == 0

    def test_votes_are_per_message(self, store):
        store.toggle_vote(100, 1)
        store.toggle_vote(200, 1)

        assert store.get_votes(100) == 1
        assert store.get_votes(200) == 1

    def test_missing_table_raises(self, aws_env):
        """Test that DynamoDB errors are logged and re-raised."""
        with mock_aws():
            store = RsvpStore('no-such-table')

            with pytest.raises(ClientError):
                store.toggle_vote(100, 1)
