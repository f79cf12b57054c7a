"""
Unit tests for the DynamoDB description store.
"""

import pytest
from decimal import Decimal
from unittest.mock import MagicMock, Mock, patch
from botocore.exceptions import ClientError, EndpointConnectionError

from holiday_pipeline.aws_client import DynamoDBDescriptionStore
from holiday_pipeline.error_handler import StoreConnectionError, StoreError, ValidationError


def client_error(code, operation='Scan', message='boom'):
    return ClientError({'Error': {'Code': code, 'Message': message}}, operation)


@pytest.fixture
def mock_table():
    table = MagicMock()
    with patch('holiday_pipeline.aws_client.boto3.Session') as mock_session:
        mock_session.return_value.resource.return_value.Table.return_value = table
        yield table, mock_session


class TestDynamoDBDescriptionStore:
    """Test cases for DynamoDBDescriptionStore."""

    def test_init_with_profile_and_region(self, mock_table):
        _, mock_session = mock_table

        DynamoDBDescriptionStore('descriptions', region_name='ap-northeast-2', profile_name='prod')

        mock_session.assert_called_with(profile_name='prod')
        mock_session.return_value.resource.assert_called_with('dynamodb', region_name='ap-northeast-2')
        mock_session.return_value.resource.return_value.Table.assert_called_with('descriptions')

    def test_init_rejects_empty_table_name(self, mock_table):
        with pytest.raises(ValidationError):
            DynamoDBDescriptionStore('')

    def test_check_connection_success(self, mock_table):
        table, _ = mock_table
        DynamoDBDescriptionStore().check_connection()
        table.load.assert_called_once_with()

    def test_check_connection_table_missing(self, mock_table):
        table, _ = mock_table
        table.load.side_effect = client_error('ResourceNotFoundException', 'DescribeTable')

        with pytest.raises(StoreConnectionError, match="Table not found: holiday_descriptions"):
            DynamoDBDescriptionStore().check_connection()

    def test_check_connection_access_denied(self, mock_table):
        table, _ = mock_table
        table.load.side_effect = client_error('AccessDeniedException', 'DescribeTable')

        with pytest.raises(StoreConnectionError, match="AccessDeniedException"):
            DynamoDBDescriptionStore().check_connection()

    def test_check_connection_endpoint_unreachable(self, mock_table):
        table, _ = mock_table
        table.load.side_effect = EndpointConnectionError(endpoint_url='https://dynamodb.invalid')

        with pytest.raises(StoreConnectionError, match="Cannot connect"):
            DynamoDBDescriptionStore().check_connection()

    def test_find_existing_follows_pages(self, mock_table):
        table, _ = mock_table
        row = {'id': 'x', 'holiday_name': 'Chuseok', 'country_name': 'South Korea', 'locale': 'ko'}
        table.scan.side_effect = [
            {'Items': [], 'LastEvaluatedKey': {'id': 'a'}},
            {'Items': [row]},
        ]

        assert DynamoDBDescriptionStore().find_existing('Chuseok', 'South Korea', 'ko') == row
        assert table.scan.call_count == 2
        assert table.scan.call_args.kwargs['ExclusiveStartKey'] == {'id': 'a'}

    def test_find_existing_none(self, mock_table):
        table, _ = mock_table
        table.scan.return_value = {'Items': []}
        assert DynamoDBDescriptionStore().find_existing('X', 'Y', 'ko') is None

    def test_find_existing_scans_table_once(self, mock_table):
        table, _ = mock_table
        chuseok = {'id': 'x', 'holiday_name': 'Chuseok', 'country_name': 'South Korea', 'locale': 'ko'}
        table.scan.return_value = {'Items': [chuseok]}
        store = DynamoDBDescriptionStore()

        assert store.find_existing('Chuseok', 'South Korea', 'ko') == chuseok
        assert store.find_existing('Chuseok', 'South Korea', 'en') is None
        assert store.find_existing('Seollal', 'South Korea', 'ko') is None
        record_id = store.insert({'holiday_name': 'Seollal', 'country_name': 'South Korea', 'locale': 'ko'})

        assert store.find_existing('Seollal', 'South Korea', 'ko')['id'] == record_id
        assert table.scan.call_count == 1
        assert '#locale' in table.scan.call_args.kwargs['ProjectionExpression']
        assert 'FilterExpression' not in table.scan.call_args.kwargs

    def test_delete_by_modified_by_resets_existing_index(self, mock_table):
        table, _ = mock_table
        chuseok = {'id': 'x', 'holiday_name': 'Chuseok', 'country_name': 'South Korea', 'locale': 'ko'}
        table.batch_writer.return_value.__enter__.return_value = Mock()
        table.scan.side_effect = [
            {'Items': [chuseok]},
            {'Items': [{'id': 'x'}]},
            {'Items': []},
        ]
        store = DynamoDBDescriptionStore()

        assert store.find_existing('Chuseok', 'South Korea', 'ko') == chuseok
        store.delete_by_modified_by('migration_script')

        assert store.find_existing('Chuseok', 'South Korea', 'ko') is None
        assert table.scan.call_count == 3

    def test_find_existing_error_is_mapped(self, mock_table):
        table, _ = mock_table
        table.scan.side_effect = client_error('ProvisionedThroughputExceededException')

        with pytest.raises(StoreError) as exc_info:
            DynamoDBDescriptionStore().find_existing('Chuseok', 'South Korea', 'ko')

        assert exc_info.value.context_data['operation'] == 'find_existing'

    def test_insert_generates_id_and_converts_floats(self, mock_table):
        table, _ = mock_table

        record_id = DynamoDBDescriptionStore().insert({'holiday_name': 'Chuseok', 'confidence': 0.95})

        item = table.put_item.call_args.kwargs['Item']
        assert item['id'] == record_id
        assert len(record_id) == 36
        assert item['confidence'] == Decimal('0.95')
        assert 'ConditionExpression' in table.put_item.call_args.kwargs

    def test_insert_error_is_mapped(self, mock_table):
        table, _ = mock_table
        table.put_item.side_effect = client_error('ConditionalCheckFailedException', 'PutItem', 'exists')

        with pytest.raises(StoreError) as exc_info:
            DynamoDBDescriptionStore().insert({'holiday_name': 'Chuseok'})

        assert "ConditionalCheckFailedException" in str(exc_info.value)
        assert exc_info.value.context_data['operation'] == 'insert'

    def test_delete_by_modified_by(self, mock_table):
        table, _ = mock_table
        table.scan.side_effect = [
            {'Items': [{'id': '1'}, {'id': '2'}], 'LastEvaluatedKey': {'id': '2'}},
            {'Items': [{'id': '3'}]},
        ]
        batch = Mock()
        table.batch_writer.return_value.__enter__.return_value = batch

        deleted = DynamoDBDescriptionStore().delete_by_modified_by('migration_script')

        assert deleted == 3
        assert [c.kwargs['Key'] for c in batch.delete_item.call_args_list] == [
            {'id': '1'}, {'id': '2'}, {'id': '3'}
        ]

    def test_count_sums_pages(self, mock_table):
        table, _ = mock_table
        table.scan.side_effect = [
            {'Count': 10, 'LastEvaluatedKey': {'id': 'k'}},
            {'Count': 4},
        ]

        assert DynamoDBDescriptionStore().count() == 14
        assert table.scan.call_args_list[0].kwargs == {'Select': 'COUNT'}

    def test_sample(self, mock_table):
        table, _ = mock_table
        table.scan.return_value = {'Items': [{'id': '1'}]}

        assert DynamoDBDescriptionStore().sample(5) == [{'id': '1'}]
        table.scan.assert_called_once_with(Limit=5)

    def test_count_error_is_mapped(self, mock_table):
        table, _ = mock_table
        table.scan.side_effect = client_error('ProvisionedThroughputExceededException')

        with pytest.raises(StoreError, match="count on holiday_descriptions failed"):
            DynamoDBDescriptionStore().count()
