import boto3
import json
from typing import Optional

from rewardapi.config import Settings, settings as default_settings


class SQSClient:
    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or default_settings
        self.sqs = boto3.client(
            'sqs',
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            endpoint_url=settings.SQS_ENDPOINT_URL
        )

    def send_message(self, queue_url: str, message_body: dict, group_id: Optional[str] = None):
        params = {
            "QueueUrl": queue_url,
            "MessageBody": json.dumps(message_body, ensure_ascii=False),
        }
        # FIFO 큐는 MessageGroupId 필수
        if queue_url.endswith(".fifo"):
            params["MessageGroupId"] = group_id or "default"
            params["MessageDeduplicationId"] = message_body.get("deduplication_id", "")
        return self.sqs.send_message(**params)
