"""AWS DynamoDB client for the holiday description store."""

import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import BotoCoreError, ClientError

from .error_handler import StoreConnectionError, StoreError, ValidationError
from .migration import DescriptionStore


class DynamoDBDescriptionStore(DescriptionStore):
    """Holiday description table operations used by the migrator.

    The table is keyed by a string ``id`` attribute; every other column
    matches the migration target record.
    """

    def __init__(self, table_name: str = 'holiday_descriptions', region_name: Optional[str] = None,
                 profile_name: Optional[str] = None):
        """Initialize the DynamoDB table resource.

        Args:
            table_name: Description table name
            region_name: AWS region (session default when None)
            profile_name: AWS profile name (optional)
        """
        if not table_name or not isinstance(table_name, str):
            raise ValidationError("Invalid DynamoDB table name", field='table_name', value=table_name)

        self.table_name = table_name
        self.region_name = region_name
        self.logger = logging.getLogger(__name__)
        self._existing: Optional[Dict[Tuple[str, str, str], Dict[str, Any]]] = None

        try:
            session = boto3.Session(profile_name=profile_name)
            dynamodb = session.resource('dynamodb', region_name=region_name)
            self.table = dynamodb.Table(table_name)
        except BotoCoreError as e:
            raise StoreConnectionError(f"Failed to initialize DynamoDB client: {e}", table=table_name, cause=e)

    def _store_error(self, operation: str, error: Exception) -> StoreError:
        if isinstance(error, ClientError):
            code = error.response.get('Error', {}).get('Code', '')
            message = error.response.get('Error', {}).get('Message', str(error))
            return StoreError(f"{operation} on {self.table_name} failed ({code}): {message}",
                              table=self.table_name, operation=operation, cause=error)
        return StoreError(f"{operation} on {self.table_name} failed: {error}",
                          table=self.table_name, operation=operation, cause=error)

    def _scan_all(self, **scan_kwargs) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        while True:
            response = self.table.scan(**scan_kwargs)
            items.extend(response.get('Items', []))
            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                return items
            scan_kwargs['ExclusiveStartKey'] = last_key

    def check_connection(self) -> None:
        """Describe the table to confirm credentials and reachability.

        Raises:
            StoreConnectionError: If the table cannot be described
        """
        try:
            self.table.load()
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', '')
            if code == 'ResourceNotFoundException':
                raise StoreConnectionError(f"Table not found: {self.table_name}", table=self.table_name, cause=e)
            raise StoreConnectionError(f"Cannot access table {self.table_name} ({code}): {e}",
                                       table=self.table_name, cause=e)
        except BotoCoreError as e:
            raise StoreConnectionError(f"Cannot connect to DynamoDB: {e}", table=self.table_name, cause=e)

    def _existing_index(self) -> Dict[Tuple[str, str, str], Dict[str, Any]]:
        if self._existing is None:
            items = self._scan_all(
                ProjectionExpression='#id, #name, #country, #locale',
                ExpressionAttributeNames={'#id': 'id', '#name': 'holiday_name',
                                          '#country': 'country_name', '#locale': 'locale'},
            )
            self._existing = {}
            for item in items:
                key = (item.get('holiday_name'), item.get('country_name'), item.get('locale'))
                self._existing.setdefault(key, item)
            self.logger.debug(f"Indexed {len(self._existing)} existing rows from {self.table_name}")
        return self._existing

    def find_existing(self, holiday_name: str, country_name: str, locale: str) -> Optional[Dict[str, Any]]:
        """Return the row matching (holiday_name, country_name, locale), or None.

        The table is scanned once per store instance; later lookups and
        inserts go through the in-memory index.
        """
        try:
            return self._existing_index().get((holiday_name, country_name, locale))
        except (ClientError, BotoCoreError) as e:
            raise self._store_error('find_existing', e)

    def insert(self, record: Dict[str, Any]) -> str:
        """Insert one record under a new id and return the id."""
        item = dict(record)
        item['id'] = item.get('id') or str(uuid.uuid4())
        if isinstance(item.get('confidence'), float):
            item['confidence'] = Decimal(str(item['confidence']))
        try:
            self.table.put_item(Item=item, ConditionExpression=Attr('id').not_exists())
        except (ClientError, BotoCoreError) as e:
            raise self._store_error('insert', e)
        if self._existing is not None:
            key = (item.get('holiday_name'), item.get('country_name'), item.get('locale'))
            self._existing.setdefault(key, item)
        return item['id']

    def delete_by_modified_by(self, marker: str) -> int:
        """Delete every row whose ``modified_by`` equals marker; return how many."""
        try:
            items = self._scan_all(
                FilterExpression=Attr('modified_by').eq(marker),
                ProjectionExpression='#id',
                ExpressionAttributeNames={'#id': 'id'},
            )
            with self.table.batch_writer() as batch:
                for item in items:
                    batch.delete_item(Key={'id': item['id']})
        except (ClientError, BotoCoreError) as e:
            raise self._store_error('delete_by_modified_by', e)
        self._existing = None
        self.logger.info(f"Deleted {len(items)} items from {self.table_name} (modified_by={marker})")
        return len(items)

    def count(self) -> int:
        total = 0
        scan_kwargs: Dict[str, Any] = {'Select': 'COUNT'}
        try:
            while True:
                response = self.table.scan(**scan_kwargs)
                total += response.get('Count', 0)
                last_key = response.get('LastEvaluatedKey')
                if not last_key:
                    return total
                scan_kwargs['ExclusiveStartKey'] = last_key
        except (ClientError, BotoCoreError) as e:
            raise self._store_error('count', e)

    def sample(self, limit: int = 5) -> List[Dict[str, Any]]:
        try:
            return self.table.scan(Limit=limit).get('Items', [])
        except (ClientError, BotoCoreError) as e:
            raise self._store_error('sample', e)
