"""DynamoDB-backed RSVP counter for daily reminders."""
import logging

import boto3
from botocore.exceptions import ClientError

from processor.models import RsvpResult

logger = logging.getLogger(__name__)


class RsvpStore:
    """Attendance votes keyed by the message they were cast on."""

    def __init__(self, table_name: str):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB table (hash key: message_id)
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized RsvpStore for table: {table_name}")

    def get_votes(self, message_id: int) -> int:
        """
        Count the voters of a message.

        The bot itself only needs the count returned by toggle_vote; this
        read-only lookup is kept for operators checking attendance.

        Args:
            message_id: Telegram message ID

        Returns:
            Number of users attending (0 for unknown messages)
        """
        try:
            response = self.table.get_item(Key={'message_id': str(message_id)})
        except ClientError as e:
            logger.error(f"Error reading votes for message {message_id}: {e}")
            raise

        item = response.get('Item')
        if not item:
            return 0
        return len(item.get('voters', set()))

    def toggle_vote(self, message_id: int, user_id: int) -> RsvpResult:
        """
        Add the user's vote, or remove it if already cast.

        Args:
            message_id: Telegram message ID
            user_id: Telegram user ID

        Returns:
            RsvpResult with the new count and whether the vote was added
        """
        key = {'message_id': str(message_id)}
        voter = str(user_id)

        try:
            response = self.table.get_item(Key=key)
            voters = set(response.get('Item', {}).get('voters', set()))
            added = voter not in voters

            # String sets cannot be empty, so removing the last voter drops the attribute
            if added:
                response = self.table.update_item(
                    Key=key,
                    UpdateExpression='ADD voters :v',
                    ExpressionAttributeValues={':v': {voter}},
                    ReturnValues='ALL_NEW'
                )
            else:
                response = self.table.update_item(
                    Key=key,
                    UpdateExpression='DELETE voters :v',
                    ExpressionAttributeValues={':v': {voter}},
                    ReturnValues='ALL_NEW'
                )
        except ClientError as e:
            logger.error(f"Error toggling vote on message {message_id}: {e}")
            raise

        count = len(response.get('Attributes', {}).get('voters', set()))
        logger.info(
            f"RSVP {'added' if added else 'removed'} on message {message_id}: {count} attending"
        )
        return RsvpResult(count=count, added=added)
